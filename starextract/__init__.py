"""Star Extract: turn an uploaded image or spreadsheet into table rows."""

__version__ = "0.1.0"
