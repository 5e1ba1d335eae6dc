"""Allow running as python -m promptvars."""

import sys

from promptvars.cli.main import main


if __name__ == '__main__':
    sys.exit(main())
