"""Resize uploaded images into fixed variants and store them remotely."""

__version__ = "0.1.0"
