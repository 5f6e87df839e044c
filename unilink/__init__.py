"""UniLink: direct messaging with real-time notification delivery."""

__version__ = "1.0.0"
