"""Allow ``python -m exactshot``."""

import sys

from exactshot.cli import cli_main

if __name__ == "__main__":
    sys.exit(cli_main())
