# src/offline_vsix/__main__.py

import sys

from offline_vsix.cli import main

if __name__ == "__main__":
    sys.exit(main())
