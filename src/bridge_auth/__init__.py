"""Bridge Auth - GitHub account linking for a chat bridge admin room."""

__version__ = "0.1.0"
