"""Designfolio: content-management API for designs, media and comments."""

__version__ = "1.0.0"
