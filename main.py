import sys

from spread_probe.cli import main

if __name__ == "__main__":
    # Same as the `spread-probe` console script, e.g. `python main.py --once`
    sys.exit(main())
