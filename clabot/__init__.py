"""Contributor License Agreement enforcement for GitHub pull requests."""

__version__ = "0.1.0"
