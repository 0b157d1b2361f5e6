"""Allow `python -m peat`."""

import sys

from peat.cli import main

if __name__ == "__main__":
    sys.exit(main())
