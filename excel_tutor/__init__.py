"""Excel tutor: chat backend plus a terminal front-end with local progress."""

__version__ = "0.3.0"
