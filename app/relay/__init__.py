"""Page relay: headless browser rendering, screenshots and session login."""

__version__ = "1.0.0"
