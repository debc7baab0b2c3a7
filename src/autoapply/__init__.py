"""Automated job application submission service."""

__version__ = "0.1.0"
