"""Per-content SQLite persistence for the portfolio CMS."""

__version__ = "0.1.0"
