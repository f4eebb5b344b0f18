#!/usr/bin/env python3
"""
gitplus - commit graph viewer with history editing

This is a convenience wrapper for running from the repo root.
The actual entry point is gitplus.main:main (for pip install).
"""

from gitplus.main import main

if __name__ == "__main__":
    main()
