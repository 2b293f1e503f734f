# tests/test_document.py
"""Tests for the structured post document."""

import pytest

from roastr.content.document import Document, Mark, Paragraph, Text
from roastr.core.errors import ValidationError


def test_from_json_parses_paragraphs_and_marks() -> None:
    raw = {
        "type": "doc",
        "content": [
            {
                "type": "paragraph",
                "content": [
                    {"type": "text", "text": "Hot ", "marks": [{"type": "bold"}]},
                    {"type": "text", "text": "take"},
                ],
            },
            {"type": "paragraph"},
        ],
    }
    document = Document.from_json(raw)

    assert document.blocks[0] == Paragraph(
        (Text("Hot ", frozenset({Mark.BOLD})), Text("take")),
    )
    assert document.blocks[1] == Paragraph()
    assert document.to_plain_text() == "Hot take\n"


def test_to_json_round_trip_is_stable() -> None:
    raw = {
        "type": "doc",
        "content": [
            {
                "type": "paragraph",
                "content": [
                    {"type": "text", "text": "x", "marks": [{"type": "italic"}, {"type": "bold"}]},
                ],
            }
        ],
    }
    document = Document.from_json(raw)
    # Marks are emitted in a canonical order.
    assert document.to_json()["content"][0]["content"][0]["marks"] == [
        {"type": "bold"},
        {"type": "italic"},
    ]
    assert Document.from_json(document.to_json()) == document


def test_plain_string_becomes_one_paragraph_per_line() -> None:
    document = Document.from_json("first\n\nthird")
    assert len(document.blocks) == 3
    assert document.to_plain_text() == "first\n\nthird"


def test_to_html_escapes_and_nests_marks() -> None:
    document = Document((Paragraph((Text("<b>&", frozenset({Mark.BOLD, Mark.UNDERLINE})),)),))
    assert document.to_html() == "<p><u><strong>&lt;b&gt;&amp;</strong></u></p>"


def test_hard_break_renders_as_newline() -> None:
    document = Document.from_json(
        {
            "type": "doc",
            "content": [
                {
                    "type": "paragraph",
                    "content": [
                        {"type": "text", "text": "a"},
                        {"type": "hardBreak"},
                        {"type": "text", "text": "b"},
                    ],
                }
            ],
        }
    )
    assert document.to_plain_text() == "a\nb"


def test_is_blank_ignores_whitespace_only_content() -> None:
    assert Document.from_json("   \n  ").is_blank()
    assert Document.from_json({"type": "doc", "content": []}).is_blank()
    assert not Document.from_json("roast").is_blank()


def test_preview_truncates_with_ellipsis() -> None:
    document = Document.from_json("word " * 50)
    preview = document.preview(20)
    assert len(preview) <= 20
    assert preview.endswith("…")
    assert Document.from_json("short\ntext").preview() == "short text"


def test_documents_compare_by_value() -> None:
    assert Document.from_json("same") == Document.from_json(
        {"type": "doc", "content": [{"type": "paragraph", "content": [{"type": "text", "text": "same"}]}]}
    )
    assert Document.from_json("same") != Document.from_json("different")


@pytest.mark.parametrize(
    "raw",
    [
        42,
        {"type": "paragraph"},
        {"type": "doc", "content": "nope"},
        {"type": "doc", "content": [{"type": "heading"}]},
        {"type": "doc", "content": [{"type": "paragraph", "content": [{"type": "image"}]}]},
        {
            "type": "doc",
            "content": [
                {"type": "paragraph", "content": [{"type": "text", "text": "x", "marks": [{"type": "strike"}]}]}
            ],
        },
    ],
)
def test_malformed_documents_are_rejected(raw: object) -> None:
    with pytest.raises(ValidationError):
        Document.from_json(raw)
