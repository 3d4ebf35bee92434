"""clubsite — club website knowledge chat and content feed service."""

__version__ = "1.0.0"
