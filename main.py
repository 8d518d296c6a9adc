#!/usr/bin/env python3
"""
lumenforge - A Python Monte-Carlo Path Tracer

Main entry point for rendering scenes.
"""

import sys

from lumenforge.cli import main


if __name__ == '__main__':
    sys.exit(main())
