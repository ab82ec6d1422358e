"""Entry point for running the CLI as a module: python -m claimlink"""

import sys

from claimlink.cli import main

if __name__ == "__main__":
    sys.exit(main())
