"""Coach Scribe - Parenting session recording, transcription and behavioral coding."""

try:
    from coach_scribe._version import __version__
except ImportError:
    __version__ = "0.0.0.dev0"

__all__ = ["__version__"]
