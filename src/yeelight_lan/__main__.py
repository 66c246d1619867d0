import sys

from yeelight_lan.main import main

if __name__ == "__main__":
    sys.exit(main())
