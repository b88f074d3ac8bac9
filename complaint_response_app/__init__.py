"""Complaint Response Desk: web front-end for complaint intake and response review."""

__version__ = "0.3.0"
