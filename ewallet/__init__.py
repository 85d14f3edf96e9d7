"""An e-wallet web service: accounts, top-ups, transfers and history over SQLite."""

__version__ = "0.1.0"