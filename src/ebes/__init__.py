"""Recruiting-pipeline performance scoring and dropout approval workflow."""

__version__ = "0.3.0"
