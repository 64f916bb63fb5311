"""PhotoFrame — NiceGUI digital photoframe with slideshow, timer and upload API."""

__version__ = "1.0.0"
