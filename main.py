#!/usr/bin/env python3
"""
main.py — Quick-start entry point.

    python main.py render photo.jpg mosaic.png

Or process a whole folder:

    python -m glyph_mosaic.cli batch --help
"""

from glyph_mosaic.cli import app

if __name__ == "__main__":
    app()
