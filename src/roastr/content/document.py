"""Structured post content.

Post bodies arrive from the rich-text editor as a node tree::

    {"type": "doc", "content": [
        {"type": "paragraph", "content": [
            {"type": "text", "text": "Hello", "marks": [{"type": "bold"}]}
        ]}
    ]}

The tree is parsed into immutable value objects so that the core can validate
length, compare revisions and render previews without touching raw JSON.
"""

from __future__ import annotations

import html
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any

from roastr.core.errors import ValidationError


class Mark(StrEnum):
    """Inline formatting marks, in the order they are applied when rendering."""

    BOLD = "bold"
    ITALIC = "italic"
    UNDERLINE = "underline"


_HTML_TAGS = {
    Mark.BOLD: "strong",
    Mark.ITALIC: "em",
    Mark.UNDERLINE: "u",
}


@dataclass(frozen=True)
class Text:
    """A run of text carrying a set of marks."""

    text: str
    marks: frozenset[Mark] = field(default_factory=frozenset)

    def to_json(self) -> dict[str, Any]:
        node: dict[str, Any] = {"type": "text", "text": self.text}
        if self.marks:
            node["marks"] = [{"type": mark.value} for mark in Mark if mark in self.marks]
        return node

    def to_html(self) -> str:
        rendered = html.escape(self.text)
        for mark in Mark:
            if mark in self.marks:
                tag = _HTML_TAGS[mark]
                rendered = f"<{tag}>{rendered}</{tag}>"
        return rendered


@dataclass(frozen=True)
class Paragraph:
    inlines: tuple[Text, ...] = ()

    @property
    def plain_text(self) -> str:
        return "".join(inline.text for inline in self.inlines)

    def to_json(self) -> dict[str, Any]:
        node: dict[str, Any] = {"type": "paragraph"}
        if self.inlines:
            node["content"] = [inline.to_json() for inline in self.inlines]
        return node

    def to_html(self) -> str:
        inner = "".join(inline.to_html() for inline in self.inlines)
        return f"<p>{inner}</p>" if inner else ""


@dataclass(frozen=True)
class Document:
    """A post body: an ordered sequence of paragraphs."""

    blocks: tuple[Paragraph, ...] = ()

    @classmethod
    def from_text(cls, text: str) -> Document:
        """Build a document with one unformatted paragraph per line."""
        return cls(
            tuple(
                Paragraph((Text(line),) if line else ())
                for line in text.splitlines()
            )
        )

    @classmethod
    def from_json(cls, raw: Any) -> Document:
        """Parse an editor tree (or a plain string) into a document.

        Raises:
            ValidationError: If the tree has an unexpected shape or node type.
        """
        if isinstance(raw, Document):
            return raw
        if isinstance(raw, str):
            return cls.from_text(raw)
        if not isinstance(raw, Mapping) or raw.get("type") != "doc":
            raise ValidationError("Content must be a document with type 'doc'")
        return cls(tuple(_parse_block(node) for node in _children(raw)))

    def to_json(self) -> dict[str, Any]:
        return {"type": "doc", "content": [block.to_json() for block in self.blocks]}

    def to_plain_text(self) -> str:
        return "\n".join(block.plain_text for block in self.blocks)

    def to_html(self) -> str:
        return "".join(block.to_html() for block in self.blocks)

    @property
    def text_length(self) -> int:
        return len(self.to_plain_text())

    def is_blank(self) -> bool:
        return not self.to_plain_text().strip()

    def preview(self, limit: int = 120) -> str:
        """Return the plain text collapsed to one line and cut at ``limit`` characters."""
        flat = " ".join(self.to_plain_text().split())
        if len(flat) <= limit:
            return flat
        return flat[: max(limit - 1, 0)].rstrip() + "…"


def _children(node: Mapping[str, Any]) -> Iterable[Any]:
    content = node.get("content", [])
    if content is None:
        return []
    if not isinstance(content, list):
        raise ValidationError(f"'content' of a {node.get('type')} node must be a list")
    return content


def _parse_block(node: Any) -> Paragraph:
    if not isinstance(node, Mapping) or node.get("type") != "paragraph":
        kind = node.get("type") if isinstance(node, Mapping) else type(node).__name__
        raise ValidationError(f"Unsupported block node: {kind!r}")
    return Paragraph(tuple(_parse_inline(child) for child in _children(node)))


def _parse_inline(node: Any) -> Text:
    if not isinstance(node, Mapping):
        raise ValidationError(f"Unsupported inline node: {type(node).__name__!r}")
    kind = node.get("type")
    if kind == "hardBreak":
        return Text("\n")
    if kind != "text":
        raise ValidationError(f"Unsupported inline node: {kind!r}")
    text = node.get("text", "")
    if not isinstance(text, str):
        raise ValidationError("Text node must carry a string")
    return Text(text, frozenset(_parse_mark(mark) for mark in node.get("marks") or []))


def _parse_mark(node: Any) -> Mark:
    kind = node.get("type") if isinstance(node, Mapping) else node
    try:
        return Mark(kind)
    except ValueError as err:
        raise ValidationError(f"Unsupported text mark: {kind!r}") from err
