"""Allow `python -m concat_file`."""

import sys

from concat_file.cli import main

if __name__ == "__main__":
    sys.exit(main())
