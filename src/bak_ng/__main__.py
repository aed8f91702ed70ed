"""bak-ng: bak_ng/__main__.py.

Run declarative file and folder backups described by a JSON configuration.
"""

import sys

from .cli.dispatcher import main

if __name__ == "__main__":
    sys.exit(main())
