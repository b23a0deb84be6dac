#!/usr/bin/env python3
"""
Coach Scribe - Presentation Layer
Presentation layer: pipeline runs, application logic and UI
"""

# Pipeline
from .pipeline import SessionOutcome, SessionPipeline

# Core application
from .app import CoachScribeApp

__all__ = [
    # Pipeline
    "SessionOutcome",
    "SessionPipeline",
    # Core application
    "CoachScribeApp",
]
