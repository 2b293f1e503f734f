"""Roastr: short roast posts with tags, votes, reports and moderation."""

__version__ = "0.1.0"
