"""Structured post content."""

from .document import Document, Mark, Paragraph, Text

__all__ = ["Document", "Mark", "Paragraph", "Text"]
