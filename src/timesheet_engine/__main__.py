"""Entry point for ``python -m timesheet_engine``."""

import sys

from timesheet_engine.cli import main

if __name__ == "__main__":
    sys.exit(main())
