"""Query Stream activity records and manage Stream alerts from the command line."""

__version__ = "0.1.0"
