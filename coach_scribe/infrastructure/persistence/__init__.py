#!/usr/bin/env python3
"""
Coach Scribe - Persistence Layer
Infrastructure layer: session record storage
"""

from .session_store import JsonSessionStore, SessionStore

__all__ = [
    "JsonSessionStore",
    "SessionStore",
]
