"""Entry point for running techtree directly.

Usage:
    python -m techtree
"""

import sys

from techtree.cli import main

if __name__ == "__main__":
    sys.exit(main())
