#!/usr/bin/env python3
"""PomoSync — entry point.

Run with:
    python main.py
    python -m pomosync
"""

from pomosync.__main__ import main


if __name__ == "__main__":
    main()
