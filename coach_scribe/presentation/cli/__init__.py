#!/usr/bin/env python3
"""
Coach Scribe - CLI Presentation
CLI presentation layer
"""

# CLI controller
from .controller import CLIController

# CLI view
from .view import CLIView

# CLI entry point
from .main import main

__all__ = [
    # Controller
    "CLIController",
    # View
    "CLIView",
    # Entry point
    "main",
]
