#!/usr/bin/env python3
"""
main.py — Quick-start entry point.

    python main.py build-palette emojis.json data.json
    python main.py mosaic photo.jpg out.png 5
    python main.py emoji-art photo.jpg data.json 16

Or, once installed:

    emoji-mosaic --help
"""

from emoji_mosaic.cli import app

if __name__ == "__main__":
    app()
