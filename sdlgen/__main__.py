"""
CLI entry point for sdlgen package.

Usage:
    python -m sdlgen <command> [options]
"""

import sys

from .cli import main

if __name__ == "__main__":
    sys.exit(main())
