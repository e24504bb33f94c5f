import sys

from scaledown.cli import main


if __name__ == "__main__":
    sys.exit(main())
