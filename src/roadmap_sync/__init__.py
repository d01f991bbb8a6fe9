"""Roadmap sync - reconcile Linear tickets and GitHub issues into one roadmap."""

__version__ = "0.1.0"
