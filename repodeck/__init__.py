"""repodeck — a dashboard of every git repo on your machine."""

__version__ = "0.1.0"
