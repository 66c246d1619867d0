"""Unit tests for metrics registry."""

from __future__ import annotations

from unittest.mock import patch

from yeelight_lan.metrics import registry


def _labels_seen(metric, labels: dict[str, str]) -> bool:
    return any(s.labels == labels for s in metric.collect()[0].samples)


class TestCommandMetrics:
    """Tests for command exchange metrics."""

    def test_record_command(self) -> None:
        registry.record_command("10.0.0.1:55443", "set_power", "ok")
        assert _labels_seen(
            registry.yeelight_command_total,
            {"address": "10.0.0.1:55443", "method": "set_power", "outcome": "ok"},
        )

    def test_record_command_latency(self) -> None:
        registry.record_command_latency("10.0.0.1:55443", 0.042)
        samples = registry.yeelight_command_latency_seconds.collect()[0].samples
        assert any(s.name.endswith("_count") and s.labels == {"address": "10.0.0.1:55443"} for s in samples)

    def test_record_decode_error(self) -> None:
        registry.record_decode_error("10.0.0.1:55443", "invalid_json")
        assert _labels_seen(registry.yeelight_decode_errors_total, {"address": "10.0.0.1:55443", "reason": "invalid_json"})

    def test_record_connection_error(self) -> None:
        registry.record_connection_error("10.0.0.1:55443", "timeout")
        assert _labels_seen(registry.yeelight_connection_errors_total, {"address": "10.0.0.1:55443", "kind": "timeout"})


class TestNotificationMetrics:
    """Tests for listener and notification metrics."""

    def test_record_notification(self) -> None:
        registry.record_notification("10.0.0.2:55443", "props")
        assert _labels_seen(registry.yeelight_notification_total, {"address": "10.0.0.2:55443", "method": "props"})

    def test_listener_gauge(self) -> None:
        gauge = registry.yeelight_listener_active.labels(address="10.0.0.3:55443")

        registry.record_listener_started("10.0.0.3:55443")
        assert gauge._value.get() == 1
        registry.record_listener_stopped("10.0.0.3:55443")
        assert gauge._value.get() == 0


class TestDiscoveryMetrics:
    def test_record_discovery(self) -> None:
        registry.record_discovery("not_found")
        assert _labels_seen(registry.yeelight_discovery_total, {"outcome": "not_found"})


class TestMetricsServer:
    """Tests for start_metrics_server idempotency."""

    def test_starts_once(self) -> None:
        with (
            patch.object(registry, "start_http_server") as mock_start,
            patch.dict(registry._server_state, {"started": False}),
        ):
            assert registry.start_metrics_server(9999) is True
            assert registry.start_metrics_server(9999) is False

        mock_start.assert_called_once_with(9999)
