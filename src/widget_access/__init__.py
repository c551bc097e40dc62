"""Widget visibility and team access control."""

__version__ = "0.1.0"
