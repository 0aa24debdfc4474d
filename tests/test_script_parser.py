import pytest

from ppt_studio.script_parser import (
    Card,
    Context,
    Document,
    SlideBlockParser,
    SlideRecord,
    parse_front_matter,
    parse_script,
    parse_script_file,
    parse_slide_block,
    render_script,
)

SCRIPT = '''---
title: "Demo Talk"
aspect: 16:9
---

# Slides

## Slide 01

```yaml
id: s01
type: cover
title: "Demo Talk"
subtitle: "A subtitle"
notes: |
  First line
  second line
```

## Slide 02

```yaml
title: "Cards"
bullets:
  - "a bullet before the cards"
cards:
  - title: "Card A"
    description: "desc A"
    items:
      - "item 1"
      - "item 2"
  - title: "Card B"
    value: "42%"
```

## Slide 03

```yaml
id: s03
title: "Flow"
visual:
  type: flow
  count: 3
  values: [10, 20.5, 30]
  data:
    steps:
      - title: "Collect"
        desc: "gather input"
      - title: "Write"
    levels:
      - label: "Top"
        sublabel: "strategy"
    items:
      - label: "Alpha", color: "blue"
      - label: Beta
chartData:
  labels: [Q1, Q2]
  values: [1, 2]
  horizontal: true
  segments:
    - label: "A"
      value: 30
leftTitle: "Left"
leftBullets:
  - "l1"
rightTitle: "Right"
rightBullets:
  - "r1"
```
'''


def test_front_matter_keeps_values_as_strings():
    front_matter, remaining = parse_front_matter(SCRIPT)
    assert front_matter == {"title": "Demo Talk", "aspect": "16:9"}
    assert remaining.lstrip().startswith("# Slides")


def test_front_matter_absent():
    front_matter, remaining = parse_front_matter("## Slide 1\n")
    assert front_matter == {}
    assert remaining == "## Slide 1\n"


def test_front_matter_falls_back_to_line_split():
    content = "---\ntitle: Broken: [yaml\nlang: zh\n---\nbody"
    front_matter, remaining = parse_front_matter(content)
    assert front_matter["lang"] == "zh"
    assert front_matter["title"] == "Broken: [yaml"
    assert remaining == "body"


def test_parse_script_slides_in_order():
    document = parse_script(SCRIPT)
    assert [s.id for s in document.slides] == ["s01", "s02", "s03"]
    assert [s.index for s in document.slides] == [1, 2, 3]
    assert document.title == "Demo Talk"

    cover = document.slides[0]
    assert cover.type == "cover"
    assert cover.subtitle == "A subtitle"
    assert cover.notes == "First line second line"


def test_cards_and_card_items_nest():
    slide = parse_script(SCRIPT).slides[1]
    assert slide.bullets == ["a bullet before the cards"]
    assert slide.cards == [
        Card(title="Card A", items=["item 1", "item 2"], description="desc A"),
        Card(title="Card B", value="42%"),
    ]


def test_visual_and_chart_data():
    slide = parse_script(SCRIPT).slides[2]
    assert slide.visual["type"] == "flow"
    assert slide.visual["count"] == 3
    assert slide.visual["values"] == [10.0, 20.5, 30.0]
    data = slide.visual["data"]
    assert data["steps"] == [
        {"title": "Collect", "desc": "gather input"},
        {"title": "Write", "desc": ""},
    ]
    assert data["levels"] == [{"label": "Top", "sublabel": "strategy"}]
    assert data["items"] == [
        {"label": "Alpha", "color": "blue"},
        {"label": "Beta", "color": "accent"},
    ]

    assert slide.chart_data == {
        "labels": ["Q1", "Q2"],
        "values": [1.0, 2.0],
        "horizontal": True,
        "segments": [{"label": "A", "value": 30.0}],
    }
    assert slide.left_title == "Left"
    assert slide.left_bullets == ["l1"]
    assert slide.right_bullets == ["r1"]


def test_declared_empty_list_differs_from_absent():
    slide = parse_slide_block('title: "x"\nbullets:\nnotes: |\n  hi', 1)
    assert slide.bullets == []
    assert slide.steps is None
    assert slide.notes == "hi"


def test_malformed_lines_are_ignored():
    slide = parse_slide_block("garbage line\n- stray item\n: nothing\ntitle: ok\ncount: abc", 4)
    assert slide.title == "ok"
    assert slide.bullets is None
    assert slide.id == "s04"


def test_notes_collect_continuation_text():
    slide = parse_slide_block("title: t\nnotes: |\n  intro\n  Remember: this\n  - dash line", 1)
    assert slide.notes == "intro Remember: this - dash line"


def test_inline_notes_value():
    slide = parse_slide_block("notes: short note", 1)
    assert slide.notes == "short note"


def test_invalid_visual_count_is_dropped():
    slide = parse_slide_block("visual:\n  count: many\n  cols: 2", 1)
    assert slide.visual == {"cols": 2}


def test_inline_bullet_list():
    slide = parse_slide_block('bullets: ["one", "two"]\ntitle: t', 1)
    assert slide.bullets == ["one", "two"]
    assert slide.title == "t"


def test_compound_bullet_text_stays_a_bullet():
    slide = parse_slide_block("bullets:\n  - Note: keep this whole", 1)
    assert slide.bullets == ["Note: keep this whole"]


def test_context_stack_closes_on_outer_key():
    parser = SlideBlockParser(1)
    parser.feed("cards:")
    parser.feed("  - title: A")
    parser.feed("    items:")
    assert parser.context is Context.CARD_ITEMS
    parser.feed("  - title: B")
    assert parser.context is Context.CARD
    parser.feed("subtitle: s")
    assert parser.context is Context.TOP_LEVEL
    assert parser.depth == 1
    assert [card.title for card in parser.slide.cards] == ["A", "B"]


def test_duplicate_ids_fall_back_to_sequential():
    content = (
        "## Slide 1\n\n```yaml\nid: intro\ntitle: a\n```\n\n"
        "## Slide 2\n\n```yaml\nid: intro\ntitle: b\n```\n"
    )
    document = parse_script(content)
    assert [s.id for s in document.slides] == ["intro", "s02"]


def test_section_without_fence_consumes_an_index():
    content = "## Slide 1\n\nno block here\n\n## Slide 2\n\n```yaml\ntitle: b\n```\n"
    document = parse_script(content)
    assert len(document.slides) == 1
    assert document.slides[0].id == "s02"


def test_plain_fence_is_accepted():
    document = parse_script("## Slide 1\n\n```\ntitle: plain\n```\n")
    assert document.slides[0].title == "plain"


def test_to_dict_uses_camel_case_and_omits_absent():
    slide = parse_script(SCRIPT).slides[2]
    data = slide.to_dict()
    assert data["leftTitle"] == "Left"
    assert "chartData" in data
    assert "bullets" not in data
    assert "contentType" not in data


def test_render_round_trip():
    document = parse_script(SCRIPT)
    reparsed = parse_script(render_script(document))
    assert reparsed.front_matter == document.front_matter
    assert [s.to_dict() for s in reparsed.slides] == [s.to_dict() for s in document.slides]


@pytest.mark.parametrize("notes", [
    "bullets: we cover three",
    "title: not a title",
    "```python code sample",
    'he said "hi"',
])
def test_notes_that_look_like_syntax_round_trip(notes):
    document = Document(slides=[
        SlideRecord(id="s01", title="t", bullets=["a bullet that is long enough"], notes=notes),
    ])
    slide = parse_script(render_script(document)).slides[0]
    assert slide.notes == notes
    assert slide.bullets == ["a bullet that is long enough"]
    assert slide.title == "t"


def test_multiline_notes_render_on_one_line():
    document = Document(slides=[SlideRecord(id="s01", title="t", notes="first\nsecond")])
    assert parse_script(render_script(document)).slides[0].notes == "first second"


def test_render_with_preamble():
    document = parse_script(SCRIPT)
    text = render_script(document, preamble="# Goal\n\n- goal")
    assert "# Goal" in text
    assert text.endswith("```\n")
    assert len(parse_script(text).slides) == 3


def test_parse_script_file_missing(tmp_path):
    with pytest.raises(FileNotFoundError):
        parse_script_file(tmp_path / "missing.md")
