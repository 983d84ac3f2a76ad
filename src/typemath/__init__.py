"""typemath -- editable formula trees, markup transcoding and exact arithmetic."""

__version__ = "0.1.0"
