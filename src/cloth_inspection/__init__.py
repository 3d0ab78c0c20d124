"""Hand-gesture core for camera-driven cloth inspection."""

__version__ = "0.1.0"
