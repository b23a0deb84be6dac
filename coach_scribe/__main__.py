#!/usr/bin/env python3
"""
Coach Scribe - Package Entry Point
Run with python -m coach_scribe
"""

from coach_scribe.presentation.cli import main

if __name__ == "__main__":
    main()
