#!/usr/bin/env python3
"""
Coach Scribe - Infrastructure Layer
Infrastructure layer: external I/O, persistence, configuration loading
"""

from .config import load_settings

__all__ = [
    "load_settings",
]
