"""Lumina Press: editorial publishing service with a moderated post workflow."""

__version__ = "0.1.0"
