"""Contact Manager: personal contact store shared by the extension and desktop app."""

__version__ = "0.1.0"
