"""dblebox: command-line client for dblebox threads."""

__version__ = "1.0.0"
