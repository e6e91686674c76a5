"""Motion-JPEG AVI writing and RIFF chunk helpers."""

__version__ = "0.1.0"
__all__ = ["avi", "riff"]