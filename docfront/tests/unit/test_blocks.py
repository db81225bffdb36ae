from __future__ import annotations

import pytest

from docfront.features.blocks import (
    MEDIA,
    QUOTE,
    RICH_TEXT,
    SLIDER,
    BlockRenderer,
    MediaBlock,
    QuoteBlock,
    RichTextBlock,
    SliderBlock,
    UnknownBlock,
    parse_block,
    render,
)
from docfront.utils.logging import request_scope

ORIGIN = "http://cms.test"


def test_parse_block_dispatches_on_component_tag() -> None:
    assert parse_block({"__component": RICH_TEXT, "body": "hi"}) == RichTextBlock(body="hi")
    assert parse_block({"__component": MEDIA, "file": {"url": "/a.png"}}) == MediaBlock(
        file={"url": "/a.png"}
    )
    assert parse_block({"__component": QUOTE, "title": "T", "body": ""}) == QuoteBlock(
        title="T", body=None
    )
    assert parse_block({"__component": SLIDER, "files": []}) == SliderBlock(files=[])
    assert parse_block({"__component": "shared.unknown"}) == UnknownBlock("shared.unknown")
    assert parse_block("junk") == UnknownBlock(None)


def test_unknown_block_is_skipped_in_order() -> None:
    blocks = [
        {"__component": RICH_TEXT, "body": "first"},
        {"__component": "shared.unknown", "payload": 1},
        {"__component": QUOTE, "title": "last"},
    ]

    nodes = render(blocks, origin=ORIGIN)

    assert [node.kind for node in nodes] == [RICH_TEXT, QUOTE]
    assert "first" in str(nodes[0].html)
    assert "last" in str(nodes[1].html)


def test_rich_text_goes_through_markdown_collaborator() -> None:
    calls = []

    def fake_markdown(text: str) -> str:
        calls.append(text)
        return f"<p>{text.upper()}</p>"

    nodes = render([{"__component": RICH_TEXT, "body": "hello"}], origin=ORIGIN, markdown=fake_markdown)

    assert calls == ["hello"]
    assert "<p>HELLO</p>" in str(nodes[0].html)
    assert 'class="markdown-content my-6"' in str(nodes[0].html)


def test_rich_text_renders_markdown_by_default() -> None:
    nodes = render([{"__component": RICH_TEXT, "body": "**bold**"}], origin=ORIGIN)

    assert "<strong>bold</strong>" in str(nodes[0].html)


def test_markdown_failure_only_drops_that_block() -> None:
    def broken(_: str) -> str:
        raise RuntimeError("renderer crashed")

    nodes = render(
        [{"__component": RICH_TEXT, "body": "x"}, {"__component": QUOTE, "body": "kept"}],
        origin=ORIGIN,
        markdown=broken,
    )

    assert [node.kind for node in nodes] == [QUOTE]


@pytest.mark.parametrize(
    "file_ref",
    [
        {"data": {"id": 1, "attributes": {"url": "/uploads/a.png", "alternativeText": "Diagram"}}},
        {"id": 1, "url": "/uploads/a.png", "alternativeText": "Diagram"},
    ],
)
def test_media_block_resolves_relative_url(file_ref) -> None:
    nodes = render([{"__component": MEDIA, "file": file_ref}], origin=ORIGIN)

    assert len(nodes) == 1
    assert 'src="http://cms.test/uploads/a.png"' in str(nodes[0].html)
    assert 'alt="Diagram"' in str(nodes[0].html)


def test_media_block_keeps_absolute_url_and_default_alt() -> None:
    nodes = render(
        [{"__component": MEDIA, "file": {"url": "https://cdn.example.com/a.png"}}], origin=ORIGIN
    )

    assert 'src="https://cdn.example.com/a.png"' in str(nodes[0].html)
    assert 'alt="Media"' in str(nodes[0].html)


@pytest.mark.parametrize("file_ref", [None, {"data": None}, {"id": 1}, {"url": ""}])
def test_unresolvable_media_contributes_nothing(file_ref) -> None:
    assert render([{"__component": MEDIA, "file": file_ref}], origin=ORIGIN) == []


def test_quote_renders_present_parts_and_empty_shell() -> None:
    renderer = BlockRenderer(ORIGIN)

    titled = renderer.render([{"__component": QUOTE, "title": "Heads up"}])
    empty = renderer.render([{"__component": QUOTE}])

    assert "Heads up" in str(titled[0].html)
    assert "<p>" not in str(titled[0].html).replace('<p class="block-quote__title">', "")
    assert len(empty) == 1
    assert str(empty[0].html).startswith("<blockquote")


def test_quote_text_is_escaped() -> None:
    nodes = render([{"__component": QUOTE, "body": "<script>alert(1)</script>"}], origin=ORIGIN)

    assert "<script>" not in str(nodes[0].html)
    assert "&lt;script&gt;" in str(nodes[0].html)


def test_slider_skips_unresolvable_files_independently() -> None:
    files = {
        "data": [
            {"id": 1, "attributes": {"url": "/uploads/one.png", "alternativeText": "One"}},
            {"id": 2, "attributes": {"url": None}},
            {"id": 3, "attributes": {"url": "https://cdn.example.com/three.png"}},
        ]
    }

    nodes = render([{"__component": SLIDER, "files": files}], origin=ORIGIN)

    html = str(nodes[0].html)
    assert html.count("<img") == 2
    assert 'src="http://cms.test/uploads/one.png" alt="One"' in html
    assert 'src="https://cdn.example.com/three.png" alt="Slide 3"' in html


def test_render_counts_rendered_and_skipped_blocks() -> None:
    blocks = [
        {"__component": QUOTE, "title": "a"},
        {"__component": "shared.video"},
        {"__component": MEDIA, "file": None},
    ]

    with request_scope("blocks.test") as ctx:
        render(blocks, origin=ORIGIN)

    assert ctx.counters["blocks.rendered"] == 1
    assert ctx.counters["blocks.skipped"] == 2


def test_render_tolerates_missing_block_list() -> None:
    assert BlockRenderer(ORIGIN).render(None) == []
