#!/usr/bin/env python3
"""
editren - Main Entry

Usage:
    python -m editren [options] [dir]
"""

import sys

from .cli import main


if __name__ == "__main__":
    sys.exit(main())
