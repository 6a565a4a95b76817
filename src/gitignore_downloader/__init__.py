"""Fetch .gitignore templates from github/gitignore."""

__version__ = "0.3.0"
