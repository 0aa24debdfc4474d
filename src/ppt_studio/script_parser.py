"""Parsing of script.md slide documents.

A script document has optional front matter followed by one block per slide:

    ---
    title: "Episode title"
    language: "zh"
    ---

    ## Slide 01

    ```yaml
    id: s01
    type: cover
    title: "Episode title"
    bullets:
      - "First point"
    cards:
      - title: "Card"
        description: "Short text"
        items:
          - "Item"
    notes: |
      Speaker notes
    ```

The fenced block is a restricted, indentation-free list/map notation. It is
read line by line by SlideBlockParser, which keeps an explicit stack of open
contexts (bullets, cards, a single card, visual.data, chartData.segments, ...)
so every line lands in the most recently opened context that accepts it.
Malformed lines are dropped; parsing never raises.
"""

import re
import logging
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any

import yaml

logger = logging.getLogger(__name__)

SLIDE_HEADING = re.compile(r'^##\s+Slide\s+(\d+)\s*$', re.MULTILINE)
FENCE_OPEN = re.compile(r'^```\s*(?:ya?ml)?\s*$', re.IGNORECASE)
FENCE_CLOSE = '```'

_ITEM_LINE = re.compile(r'^-\s+(.*)$')
_KEY_LINE = re.compile(r'^([A-Za-z][A-Za-z0-9_]*):(?:\s+(.*))?$')
_INLINE_LIST = re.compile(r'\[(.*)\]')
_COLOR_ATTR = re.compile(r'color:\s*["\']?([^"\',]+)["\']?')
_SURROUNDING_QUOTES = re.compile(r'^["\']|["\']$')

# Marker for a plain "- value" list item (as opposed to "- key: value")
PLAIN_ITEM = ''

# Values that open a block scalar instead of carrying inline notes text
_BLOCK_SCALAR_MARKERS = frozenset({'|', '>', '|-', '>-', '|+', '>+'})


def default_slide_id(index: int) -> str:
    """Build the sequential slide id for a 1-based slide index."""
    return f"s{index:02d}"


@dataclass
class Card:
    """One card of a card-combo slide."""
    title: str = ""
    items: list[str] = field(default_factory=list)
    description: str | None = None
    value: str | None = None
    label: str | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {'title': self.title, 'items': list(self.items)}
        for key in ('description', 'value', 'label'):
            if getattr(self, key) is not None:
                data[key] = getattr(self, key)
        return data


@dataclass
class SlideRecord:
    """Structured content of a single output slide.

    List fields are None when absent and [] when declared without items;
    layout scoring treats the two differently.

    Attributes:
        id: Unique slide id, ``s`` + zero-padded index unless set explicitly.
        type: Slide-type tag (cover, problem, conclusion, ...).
        content_type: Content-type tag (process, comparison, ...).
        title: Slide title.
        index: 1-based position of the slide block in the document.
        visual: Visual component spec, optionally with a nested ``data`` dict.
        visual_data: Diagram data given next to (not inside) ``visual``.
        chart_data: Chart spec with labels/values or segments plus flags.
    """
    id: str = ""
    type: str = ""
    content_type: str = ""
    title: str = ""
    index: int = 0
    subtitle: str | None = None
    layout: str | None = None
    text_effect: str | None = None
    visual_type: str | None = None
    quote: str | None = None
    author: str | None = None
    attribution: str | None = None
    bullets: list[str] | None = None
    cards: list[Card] | None = None
    steps: list[str] | None = None
    stages: list[str] | None = None
    events: list[str] | None = None
    details: list[str] | None = None
    left_title: str | None = None
    right_title: str | None = None
    left_bullets: list[str] | None = None
    right_bullets: list[str] | None = None
    visual: dict[str, Any] | None = None
    visual_data: dict[str, Any] | None = None
    chart_data: dict[str, Any] | None = None
    recommended_visuals: list[str] | None = None
    notes: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Serialize with the camelCase keys used in scripts and artifacts."""
        data: dict[str, Any] = {}
        for key, attr in FIELD_NAMES.items():
            value = getattr(self, attr)
            if value is None or (attr in ('type', 'content_type') and not value):
                continue
            if attr == 'cards':
                value = [card.to_dict() for card in value]
            elif isinstance(value, list):
                value = list(value)
            data[key] = value
        return data


# Script key -> SlideRecord attribute, in serialization order
FIELD_NAMES: dict[str, str] = {
    'id': 'id',
    'type': 'type',
    'contentType': 'content_type',
    'layout': 'layout',
    'textEffect': 'text_effect',
    'visualType': 'visual_type',
    'title': 'title',
    'subtitle': 'subtitle',
    'quote': 'quote',
    'author': 'author',
    'attribution': 'attribution',
    'bullets': 'bullets',
    'cards': 'cards',
    'steps': 'steps',
    'stages': 'stages',
    'events': 'events',
    'details': 'details',
    'leftTitle': 'left_title',
    'leftBullets': 'left_bullets',
    'rightTitle': 'right_title',
    'rightBullets': 'right_bullets',
    'visual': 'visual',
    'visualData': 'visual_data',
    'chartData': 'chart_data',
    'recommendedVisuals': 'recommended_visuals',
    'notes': 'notes',
}

_SCALAR_KEYS = frozenset({
    'id', 'type', 'contentType', 'layout', 'textEffect', 'visualType',
    'title', 'subtitle', 'quote', 'author', 'attribution', 'leftTitle', 'rightTitle',
})


@dataclass
class Document:
    """A parsed script: front matter plus slides in document order."""
    front_matter: dict[str, str] = field(default_factory=dict)
    slides: list[SlideRecord] = field(default_factory=list)

    def get_slide(self, slide_id: str) -> SlideRecord | None:
        for slide in self.slides:
            if slide.id == slide_id:
                return slide
        return None

    @property
    def title(self) -> str:
        return self.front_matter.get('title', '')


class Context(Enum):
    """Open contexts of the slide block state machine."""
    TOP_LEVEL = "top-level"
    BULLETS = "bullets"
    STEPS = "steps"
    STAGES = "stages"
    EVENTS = "events"
    DETAILS = "details"
    LEFT_BULLETS = "left-bullets"
    RIGHT_BULLETS = "right-bullets"
    RECOMMENDED = "recommended-visuals"
    CARDS = "cards"
    CARD = "card"
    CARD_ITEMS = "card-items"
    NOTES = "notes"
    VISUAL = "visual"
    VISUAL_DATA = "visual-data"
    DATA_STEPS = "visual-data-steps"
    DATA_LEVELS = "visual-data-levels"
    DATA_LAYERS = "visual-data-layers"
    DATA_ITEMS = "visual-data-items"
    CHART_DATA = "chart-data"
    CHART_SEGMENTS = "chart-segments"


# Top-level list fields and the context each one opens
_LIST_CONTEXTS: dict[str, Context] = {
    'bullets': Context.BULLETS,
    'steps': Context.STEPS,
    'stages': Context.STAGES,
    'events': Context.EVENTS,
    'details': Context.DETAILS,
    'leftBullets': Context.LEFT_BULLETS,
    'rightBullets': Context.RIGHT_BULLETS,
    'recommendedVisuals': Context.RECOMMENDED,
}

_VISUAL_DATA_CONTEXTS: dict[str, Context] = {
    'steps': Context.DATA_STEPS,
    'levels': Context.DATA_LEVELS,
    'layers': Context.DATA_LAYERS,
    'items': Context.DATA_ITEMS,
}

# Field keys ("key: value" lines) each context accepts
ACCEPTED_KEYS: dict[Context, frozenset[str]] = {
    Context.TOP_LEVEL: frozenset(FIELD_NAMES),
    Context.CARD: frozenset({'description', 'value', 'label', 'items'}),
    Context.VISUAL: frozenset({'type', 'position', 'count', 'amplitude', 'cols', 'rows', 'values', 'data'}),
    Context.VISUAL_DATA: frozenset(_VISUAL_DATA_CONTEXTS),
    Context.DATA_STEPS: frozenset({'desc'}),
    Context.DATA_LEVELS: frozenset({'sublabel'}),
    Context.DATA_ITEMS: frozenset({'color'}),
    Context.CHART_DATA: frozenset({
        'labels', 'values', 'unit', 'horizontal', 'showValues', 'donut', 'centerText', 'segments',
    }),
    Context.CHART_SEGMENTS: frozenset({'value'}),
}

# List-item forms ("- value" or "- key: value") each context accepts
ACCEPTED_ITEMS: dict[Context, frozenset[str]] = {
    Context.BULLETS: frozenset({PLAIN_ITEM}),
    Context.STEPS: frozenset({PLAIN_ITEM}),
    Context.STAGES: frozenset({PLAIN_ITEM}),
    Context.EVENTS: frozenset({PLAIN_ITEM}),
    Context.DETAILS: frozenset({PLAIN_ITEM}),
    Context.LEFT_BULLETS: frozenset({PLAIN_ITEM}),
    Context.RIGHT_BULLETS: frozenset({PLAIN_ITEM}),
    Context.RECOMMENDED: frozenset({PLAIN_ITEM}),
    Context.CARDS: frozenset({'title'}),
    Context.CARD: frozenset({'description', 'value', 'label', PLAIN_ITEM}),
    Context.CARD_ITEMS: frozenset({PLAIN_ITEM}),
    Context.DATA_STEPS: frozenset({'title', 'desc'}),
    Context.DATA_LEVELS: frozenset({'label'}),
    Context.DATA_LAYERS: frozenset({'label'}),
    Context.DATA_ITEMS: frozenset({'label'}),
    Context.CHART_SEGMENTS: frozenset({'label'}),
}

_INT_VISUAL_KEYS = frozenset({'count', 'amplitude', 'cols', 'rows'})
_FLAG_CHART_KEYS = frozenset({'horizontal', 'showValues', 'donut'})


def _clean(value: str) -> str:
    """Trim a scalar and drop a leading/trailing quote character."""
    return _SURROUNDING_QUOTES.sub('', value.strip())


def _parse_inline_list(value: str) -> list[str] | None:
    """Parse "[a, b, c]" into its stripped parts, or None if not bracketed."""
    match = _INLINE_LIST.search(value)
    if not match:
        return None
    return [_clean(part) for part in match.group(1).split(',') if part.strip()]


def _to_float(value: str) -> float:
    try:
        return float(_clean(value))
    except ValueError:
        logger.debug(f"Non-numeric value {value!r}, using 0")
        return 0.0


@dataclass
class _Frame:
    context: Context
    target: Any


class SlideBlockParser:
    """Line-oriented state machine for the fenced block of one slide."""

    def __init__(self, index: int):
        self.slide = SlideRecord(id=default_slide_id(index), index=index)
        self.stack: list[_Frame] = [_Frame(Context.TOP_LEVEL, self.slide)]

    @property
    def context(self) -> Context:
        """The most recently opened context."""
        return self.stack[-1].context

    @property
    def depth(self) -> int:
        return len(self.stack)

    def feed(self, line: str) -> None:
        """Consume one line of the fenced block."""
        text = line.strip()
        if not text:
            return

        item_match = _ITEM_LINE.match(text)
        if item_match:
            if self._handle_item(item_match.group(1).strip()):
                return
        else:
            key_match = _KEY_LINE.match(text)
            if key_match and self._handle_key(key_match.group(1), key_match.group(2) or ''):
                return

        if self.context is Context.NOTES:
            self._append_note(text)
            return

        logger.debug(f"Slide {self.slide.id}: ignoring line {text!r} in {self.context.value}")

    def feed_all(self, text: str) -> SlideRecord:
        for line in text.split('\n'):
            self.feed(line)
        return self.slide

    # --- context resolution ---------------------------------------------

    def _find_frame(self, table: dict[Context, frozenset[str]], form: str) -> int:
        """Index of the innermost open frame accepting form, or -1."""
        for depth in range(len(self.stack) - 1, -1, -1):
            if form in table.get(self.stack[depth].context, ()):
                return depth
        return -1

    def _activate(self, depth: int) -> _Frame:
        """Close every context opened after the frame at depth."""
        del self.stack[depth + 1:]
        return self.stack[depth]

    def _push(self, context: Context, target: Any) -> None:
        self.stack.append(_Frame(context, target))

    def _handle_key(self, key: str, value: str) -> bool:
        depth = self._find_frame(ACCEPTED_KEYS, key)
        if depth < 0:
            return False
        frame = self._activate(depth)
        self._KEY_HANDLERS[frame.context](self, frame, key, value)
        return True

    def _handle_item(self, text: str) -> bool:
        forms: list[tuple[str, str]] = []
        compound = _KEY_LINE.match(text)
        if compound:
            forms.append((compound.group(1), compound.group(2) or ''))
        forms.append((PLAIN_ITEM, text))

        for form, value in forms:
            depth = self._find_frame(ACCEPTED_ITEMS, form)
            if depth >= 0:
                frame = self._activate(depth)
                self._add_item(frame, form, value)
                return True
        return False

    # --- field keys -------------------------------------------------------

    def _key_top_level(self, frame: _Frame, key: str, value: str) -> None:
        slide = self.slide
        if key in _SCALAR_KEYS:
            setattr(slide, FIELD_NAMES[key], _clean(value))
        elif key in _LIST_CONTEXTS:
            inline = _parse_inline_list(value)
            if inline is None and key == 'recommendedVisuals' and value.strip():
                inline = [_clean(part) for part in value.split(',') if part.strip()]
            if inline is not None:
                setattr(slide, FIELD_NAMES[key], inline)
            else:
                items: list[str] = []
                setattr(slide, FIELD_NAMES[key], items)
                self._push(_LIST_CONTEXTS[key], items)
        elif key == 'cards':
            slide.cards = []
            self._push(Context.CARDS, slide.cards)
        elif key == 'visual':
            slide.visual = {'type': _clean(value)} if value.strip() else {}
            self._push(Context.VISUAL, slide.visual)
        elif key == 'visualData':
            slide.visual_data = {}
            self._push(Context.VISUAL_DATA, slide.visual_data)
        elif key == 'chartData':
            slide.chart_data = {}
            self._push(Context.CHART_DATA, slide.chart_data)
        elif key == 'notes':
            stripped = value.strip()
            slide.notes = '' if not stripped or stripped in _BLOCK_SCALAR_MARKERS else _clean(stripped)
            self._push(Context.NOTES, slide)

    def _key_card(self, frame: _Frame, key: str, value: str) -> None:
        card: Card = frame.target
        if key == 'items':
            card.items = []
            self._push(Context.CARD_ITEMS, card.items)
        else:
            setattr(card, key, _clean(value))

    def _key_visual(self, frame: _Frame, key: str, value: str) -> None:
        visual: dict[str, Any] = frame.target
        if key == 'data':
            visual['data'] = {}
            self._push(Context.VISUAL_DATA, visual['data'])
        elif key in _INT_VISUAL_KEYS:
            try:
                visual[key] = int(_clean(value))
            except ValueError:
                logger.debug(f"Slide {self.slide.id}: non-integer visual.{key} {value!r}")
        elif key == 'values':
            parts = _parse_inline_list(value)
            if parts is not None:
                visual['values'] = [_to_float(part) for part in parts]
        else:
            visual[key] = _clean(value)

    def _key_visual_data(self, frame: _Frame, key: str, value: str) -> None:
        entries: list[dict[str, Any]] = []
        frame.target[key] = entries
        self._push(_VISUAL_DATA_CONTEXTS[key], entries)

    def _key_data_entry(self, frame: _Frame, key: str, value: str) -> None:
        entries: list[dict[str, Any]] = frame.target
        if entries:
            entries[-1][key] = _clean(value)

    def _key_chart_data(self, frame: _Frame, key: str, value: str) -> None:
        chart: dict[str, Any] = frame.target
        if key == 'segments':
            chart['segments'] = []
            self._push(Context.CHART_SEGMENTS, chart['segments'])
        elif key == 'labels':
            parts = _parse_inline_list(value)
            if parts is not None:
                chart['labels'] = parts
        elif key == 'values':
            parts = _parse_inline_list(value)
            if parts is not None:
                chart['values'] = [_to_float(part) for part in parts]
        elif key in _FLAG_CHART_KEYS:
            chart[key] = 'true' in value.lower()
        else:
            chart[key] = _clean(value)

    def _key_chart_segments(self, frame: _Frame, key: str, value: str) -> None:
        segments: list[dict[str, Any]] = frame.target
        if segments:
            segments[-1]['value'] = _to_float(value)

    _KEY_HANDLERS = {
        Context.TOP_LEVEL: _key_top_level,
        Context.CARD: _key_card,
        Context.VISUAL: _key_visual,
        Context.VISUAL_DATA: _key_visual_data,
        Context.DATA_STEPS: _key_data_entry,
        Context.DATA_LEVELS: _key_data_entry,
        Context.DATA_ITEMS: _key_data_entry,
        Context.CHART_DATA: _key_chart_data,
        Context.CHART_SEGMENTS: _key_chart_segments,
    }

    # --- list items -------------------------------------------------------

    def _add_item(self, frame: _Frame, form: str, value: str) -> None:
        context = frame.context
        text = _clean(value)

        if context is Context.CARDS:
            card = Card(title=text)
            frame.target.append(card)
            self._push(Context.CARD, card)
        elif context is Context.CARD:
            card = frame.target
            if form == PLAIN_ITEM:
                card.items.append(text)
            else:
                setattr(card, form, text)
        elif context is Context.DATA_STEPS:
            if form == 'title':
                frame.target.append({'title': text, 'desc': ''})
            elif frame.target:
                frame.target[-1]['desc'] = text
        elif context is Context.DATA_LEVELS:
            frame.target.append({'label': text, 'sublabel': ''})
        elif context is Context.DATA_LAYERS:
            frame.target.append({'label': text})
        elif context is Context.DATA_ITEMS:
            color = _COLOR_ATTR.search(value)
            frame.target.append({
                'label': _clean(value.split(',')[0]),
                'color': color.group(1).strip() if color else 'accent',
            })
        elif context is Context.CHART_SEGMENTS:
            frame.target.append({'label': text, 'value': 0})
        else:
            frame.target.append(text)

    def _append_note(self, text: str) -> None:
        notes = self.slide.notes or ''
        self.slide.notes = f"{notes} {text}" if notes else text


def parse_front_matter(content: str, delimiter: str = '---') -> tuple[dict[str, str], str]:
    """Extract the document front matter as a string-to-string map.

    Values are read with PyYAML's BaseLoader so every scalar stays a string
    ("16:9" is not turned into a number). If the block is not a YAML mapping
    it is split line by line on the first colon instead.

    Args:
        content: Full script content.
        delimiter: Front matter delimiter line.

    Returns:
        Tuple of (front_matter, remaining_content).
    """
    lines = content.split('\n')
    if not lines or lines[0].strip() != delimiter:
        return {}, content

    end_idx = -1
    for i in range(1, len(lines)):
        if lines[i].strip() == delimiter:
            end_idx = i
            break
    if end_idx == -1:
        return {}, content

    block = '\n'.join(lines[1:end_idx])
    try:
        loaded = yaml.load(block, Loader=yaml.BaseLoader)
    except yaml.YAMLError as e:
        logger.warning(f"Front matter is not valid YAML, reading it line by line: {e}")
        loaded = None

    if isinstance(loaded, dict):
        front_matter = {str(k): _clean(str(v)) for k, v in loaded.items() if v is not None}
    else:
        front_matter = {}
        for line in block.split('\n'):
            key, sep, value = line.partition(':')
            if sep and key.strip():
                front_matter[key.strip()] = _clean(value)

    remaining = '\n'.join(lines[end_idx + 1:])
    return front_matter, remaining


def _extract_fenced_block(section: str) -> str | None:
    """Return the body of the first fenced block in a slide section."""
    lines = section.split('\n')
    for start, line in enumerate(lines):
        if FENCE_OPEN.match(line.strip()):
            body: list[str] = []
            for inner in lines[start + 1:]:
                if inner.strip().startswith(FENCE_CLOSE):
                    return '\n'.join(body)
                body.append(inner)
            # Unterminated fence: take the rest of the section
            return '\n'.join(body)
    return None


def split_slide_sections(content: str) -> list[str]:
    """Split a script body into the text of each "## Slide N" section."""
    headings = list(SLIDE_HEADING.finditer(content))
    sections = []
    for i, heading in enumerate(headings):
        end = headings[i + 1].start() if i + 1 < len(headings) else len(content)
        sections.append(content[heading.start():end])
    return sections


def parse_slide_block(block: str, index: int) -> SlideRecord:
    """Parse the fenced block of one slide.

    Args:
        block: Body of the fenced block (without the fence lines).
        index: 1-based slide position, used for the default id.

    Returns:
        The parsed SlideRecord.
    """
    return SlideBlockParser(index).feed_all(block)


def parse_script(content: str) -> Document:
    """Parse a full script document.

    Sections without a fenced block are skipped but still count towards the
    numbering of default slide ids. Duplicate explicit ids fall back to the
    sequential id so ids stay unique.
    """
    front_matter, body = parse_front_matter(content)
    slides: list[SlideRecord] = []
    seen: set[str] = set()

    for position, section in enumerate(split_slide_sections(body), start=1):
        block = _extract_fenced_block(section)
        if block is None:
            logger.debug(f"Slide section {position} has no fenced block, skipping")
            continue

        slide = parse_slide_block(block, position)
        if slide.id in seen or not slide.id:
            fallback = default_slide_id(position)
            suffix = 2
            while fallback in seen:
                fallback = f"{default_slide_id(position)}-{suffix}"
                suffix += 1
            logger.warning(f"Slide {position}: duplicate id {slide.id!r}, using {fallback!r}")
            slide.id = fallback
        seen.add(slide.id)
        slides.append(slide)

    logger.debug(f"Parsed {len(slides)} slides, front matter keys: {list(front_matter)}")
    return Document(front_matter=front_matter, slides=slides)


def parse_script_file(script_file: Path) -> Document:
    """Read and parse a script.md file.

    Raises:
        FileNotFoundError: If the script file doesn't exist.
    """
    if not script_file.exists():
        raise FileNotFoundError(f"Script file not found: {script_file}")

    with open(script_file, 'r', encoding='utf-8') as f:
        content = f.read()

    logger.info(f"Parsing script file: {script_file} ({len(content)} chars)")
    return parse_script(content)


# =============================================================================
# Rendering back to the script grammar
# =============================================================================

def _quote(value: str) -> str:
    return f'"{value}"'


def _format_number(value: Any) -> str:
    if isinstance(value, bool):
        return 'true' if value else 'false'
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _inline_list(values: list[Any], quote: bool = False) -> str:
    parts = [_quote(str(v)) if quote else _format_number(v) for v in values]
    return f"[{', '.join(parts)}]"


def _render_list(lines: list[str], key: str, items: list[str], indent: str = '') -> None:
    lines.append(f"{indent}{key}:")
    for item in items:
        lines.append(f"{indent}  - {_quote(item)}")


def _render_visual_data(lines: list[str], data: dict[str, Any], indent: str) -> None:
    for key in _VISUAL_DATA_CONTEXTS:
        entries = data.get(key)
        if entries is None:
            continue
        lines.append(f"{indent}{key}:")
        for entry in entries:
            if key == 'steps':
                lines.append(f"{indent}  - title: {_quote(entry.get('title', ''))}")
                if entry.get('desc'):
                    lines.append(f"{indent}    desc: {_quote(entry['desc'])}")
            elif key == 'items':
                color = entry.get('color', 'accent')
                lines.append(f"{indent}  - label: {_quote(entry.get('label', ''))}, color: {_quote(color)}")
            else:
                lines.append(f"{indent}  - label: {_quote(entry.get('label', ''))}")
                if entry.get('sublabel'):
                    lines.append(f"{indent}    sublabel: {_quote(entry['sublabel'])}")


def _render_visual(lines: list[str], visual: dict[str, Any]) -> None:
    lines.append("visual:")
    for key, value in visual.items():
        if key == 'data':
            lines.append("  data:")
            _render_visual_data(lines, value, '    ')
        elif key == 'values':
            lines.append(f"  values: {_inline_list(value)}")
        else:
            lines.append(f"  {key}: {value}")


def _render_chart_data(lines: list[str], chart: dict[str, Any]) -> None:
    lines.append("chartData:")
    for key, value in chart.items():
        if key == 'labels':
            lines.append(f"  labels: {_inline_list(value, quote=True)}")
        elif key == 'values':
            lines.append(f"  values: {_inline_list(value)}")
        elif key == 'segments':
            lines.append("  segments:")
            for segment in value:
                lines.append(f"    - label: {_quote(str(segment.get('label', '')))}")
                lines.append(f"      value: {_format_number(segment.get('value', 0))}")
        elif key in _FLAG_CHART_KEYS:
            lines.append(f"  {key}: {_format_number(bool(value))}")
        else:
            lines.append(f"  {key}: {_quote(str(value))}")


def render_slide_block(slide: SlideRecord) -> str:
    """Render one SlideRecord as the body of its fenced block."""
    lines = [f"id: {slide.id}"]
    if slide.type:
        lines.append(f"type: {slide.type}")
    if slide.content_type:
        lines.append(f"contentType: {slide.content_type}")
    for key in ('layout', 'textEffect', 'visualType'):
        value = getattr(slide, FIELD_NAMES[key])
        if value is not None:
            lines.append(f"{key}: {value}")
    lines.append(f"title: {_quote(slide.title)}")
    for key in ('subtitle', 'quote', 'author', 'attribution'):
        value = getattr(slide, FIELD_NAMES[key])
        if value is not None:
            lines.append(f"{key}: {_quote(value)}")

    for key in ('bullets', 'steps', 'stages', 'events', 'details'):
        items = getattr(slide, FIELD_NAMES[key])
        if items is not None:
            _render_list(lines, key, items)

    if slide.cards is not None:
        lines.append("cards:")
        for card in slide.cards:
            lines.append(f"  - title: {_quote(card.title)}")
            for key in ('description', 'value', 'label'):
                if getattr(card, key) is not None:
                    lines.append(f"    {key}: {_quote(getattr(card, key))}")
            if card.items:
                _render_list(lines, 'items', card.items, indent='    ')

    if slide.left_title is not None:
        lines.append(f"leftTitle: {_quote(slide.left_title)}")
    if slide.left_bullets is not None:
        _render_list(lines, 'leftBullets', slide.left_bullets)
    if slide.right_title is not None:
        lines.append(f"rightTitle: {_quote(slide.right_title)}")
    if slide.right_bullets is not None:
        _render_list(lines, 'rightBullets', slide.right_bullets)

    if slide.visual is not None:
        _render_visual(lines, slide.visual)
    if slide.visual_data is not None:
        lines.append("visualData:")
        _render_visual_data(lines, slide.visual_data, '  ')
    if slide.chart_data is not None:
        _render_chart_data(lines, slide.chart_data)
    if slide.recommended_visuals:
        lines.append(f"recommendedVisuals: {', '.join(slide.recommended_visuals)}")

    if slide.notes:
        # Inline and quoted so text like "bullets: ..." or a fence stays notes
        notes = ' '.join(line.strip() for line in slide.notes.splitlines() if line.strip())
        lines.append(f"notes: {_quote(notes)}")
    elif slide.notes is not None:
        lines.append("notes: |")
    return '\n'.join(lines)


def render_front_matter(front_matter: dict[str, str]) -> str:
    lines = ['---']
    for key, value in front_matter.items():
        lines.append(f"{key}: {_quote(str(value))}")
    lines.append('---')
    return '\n'.join(lines)


def render_script(document: Document, preamble: str = '') -> str:
    """Render a Document in the script grammar that parse_script reads.

    Args:
        document: Front matter and slides to write.
        preamble: Optional markdown placed between front matter and slides.

    Returns:
        Script text ending with a newline.
    """
    parts = []
    if document.front_matter:
        parts.append(render_front_matter(document.front_matter))
        parts.append('')
    if preamble:
        parts.append(preamble.rstrip('\n'))
        parts.append('')
    parts.append('# Slides')
    parts.append('')

    blocks = []
    for position, slide in enumerate(document.slides, start=1):
        number = slide.id[1:] if re.fullmatch(r's\d+', slide.id) else f"{position:02d}"
        blocks.append(f"## Slide {number}\n\n```yaml\n{render_slide_block(slide)}\n```")
    parts.append('\n\n'.join(blocks))
    return '\n'.join(parts) + '\n'
