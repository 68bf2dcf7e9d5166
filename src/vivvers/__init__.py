"""Vivvers - community API for sharing side-projects."""

__version__ = "0.1.0"
