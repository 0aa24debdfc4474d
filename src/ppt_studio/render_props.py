"""Render plan: which layout each slide uses and the props the renderer gets.

Rendering itself happens outside this package. For each slide we resolve a
layout, map it to a composition id such as ``BulletList-Apple`` and write a
flat props file (build/props-<id>.json) that holds only the fields relevant
to that layout.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from .layouts import recommended_layouts_by_slide
from .manifest import write_json
from .project import ProjectPaths
from .script_parser import Document, SlideRecord

logger = logging.getLogger(__name__)

DEFAULT_LAYOUT = "bullet-list"
DEFAULT_COMPOSITION = "BulletList"

LAYOUT_TO_COMPOSITION: dict[str, str] = {
    # basic
    "title-hero": "CoverHero",
    "quote-callout": "QuoteCallout",
    "bullet-list": "BulletList",
    "key-stat": "KeyStat",
    "split-screen": "SplitScreen",
    "two-columns": "SplitScreen",
    "three-columns": "ThreeColumns",
    "icon-grid": "IconGrid",
    # infographics
    "linear-progression": "BulletList",
    "binary-comparison": "BinaryComparison",
    "hierarchical-layers": "VisualWithContent",
    "visual-content": "VisualWithContent",
    "hub-spoke": "CircularFlow",
    "circular-flow": "CircularFlow",
    "funnel": "Funnel",
    "timeline": "Timeline",
    # charts
    "bar-chart": "BarChart",
    "bar-horizontal": "BarChart",
    "chart": "BarChart",
    "line-chart": "LineChart",
    "pie-chart": "PieChart",
    # older layout names
    "cover-hero": "CoverHero",
    "card-combo-2": "CardCombo2",
    "card-combo-3": "CardCombo3",
    "card-combo-4": "CardCombo4",
    "flow-with-notes": "FlowWithNotes",
    "timeline-with-details": "TimelineWithDetails",
    "chart-with-sidebar": "ChartWithSidebar",
    "dashboard": "Dashboard",
    "diagonal-split": "DiagonalSplit",
    "full-image-overlay": "FullImageOverlay",
    "section": "SectionBreak",
}

# Slide types that pin a layout regardless of recommendations
SLIDE_TYPE_LAYOUTS: dict[str, str] = {
    "cover": "cover-hero",
    "quote": "quote-callout",
    "comparison": "binary-comparison",
    "split": "split-screen",
    "columns": "three-columns",
    "cycle": "circular-flow",
    "timeline": "timeline",
    "stats": "key-stat",
    "section": "section",
}

STYLE_COMPOSITION_NAMES: dict[str, str] = {
    "apple": "Apple",
    "tech": "Tech",
    "bold-editorial": "BoldEditorial",
    "minimal": "Minimal",
    "dark-atmospheric": "DarkAtmospheric",
}

# Dedicated visual slides render through a smaller set of compositions
VISUAL_COMPOSITIONS: dict[str, str] = {
    "PyramidDiagram": "DiagramsDemo",
    "HorizontalFlow": "DiagramsDemo",
    "CycleDiagram": "DiagramsDemo",
    "BinaryComparison": "BinaryComparison",
    "Timeline": "Timeline",
    "Funnel": "Funnel",
    "TreeDiagram": "DiagramsDemo",
}

COMPARISON_LAYOUTS = ("binary-comparison", "card-combo-2")


def style_composition_name(style: str) -> str:
    return STYLE_COMPOSITION_NAMES.get(style, "Apple")


def composition_id(layout: str, style: str) -> str:
    """Renderer composition id for a layout in a style."""
    return f"{LAYOUT_TO_COMPOSITION.get(layout, DEFAULT_COMPOSITION)}-{style_composition_name(style)}"


def resolve_layout(slide: SlideRecord, recommended: str | None = None) -> str:
    """Pick the layout a slide is rendered with.

    An explicit known ``layout:`` wins, then slide-type shortcuts, then
    visual fields, then the recommendation, then the bullet list.
    """
    if slide.layout and slide.layout in LAYOUT_TO_COMPOSITION:
        return slide.layout
    if slide.type in SLIDE_TYPE_LAYOUTS:
        return SLIDE_TYPE_LAYOUTS[slide.type]
    if slide.visual_type or slide.visual_data:
        return "visual-content"
    return recommended or DEFAULT_LAYOUT


def _chart_props(chart: dict[str, Any]) -> dict[str, Any]:
    props: dict[str, Any] = {}
    if chart.get('labels') and chart.get('values'):
        props['labels'] = chart['labels']
        props['values'] = chart['values']
        if chart.get('unit'):
            props['unit'] = chart['unit']
        for flag in ('horizontal', 'showValues'):
            if flag in chart:
                props[flag] = chart[flag]
    if chart.get('segments'):
        props['segments'] = chart['segments']
        if 'donut' in chart:
            props['donut'] = chart['donut']
        if chart.get('centerText'):
            props['centerText'] = chart['centerText']
    return props


def build_props(slide: SlideRecord, layout: str, style: str) -> dict[str, Any]:
    """Build the flat renderer props for one slide.

    Args:
        slide: Parsed slide.
        layout: Resolved layout name.
        style: Style name.

    Returns:
        Props dict with only the fields that are set and relevant.
    """
    props: dict[str, Any] = {'title': slide.title or '', 'style': style}

    if slide.subtitle:
        props['subtitle'] = slide.subtitle
    if slide.bullets:
        props['bullets'] = list(slide.bullets)
    if slide.cards:
        props['cards'] = [card.to_dict() for card in slide.cards]
    if slide.steps:
        props['steps'] = list(slide.steps)
        if slide.notes:
            props['notes'] = slide.notes
    if slide.stages:
        props['stages'] = list(slide.stages)
    if slide.events:
        props['events'] = list(slide.events)
        if slide.details:
            props['details'] = list(slide.details)
    if slide.quote:
        props['quote'] = slide.quote
        if slide.author:
            props['author'] = slide.author
        if slide.attribution:
            props['attribution'] = slide.attribution

    if layout in COMPARISON_LAYOUTS:
        left_title = slide.left_title or '左侧'
        right_title = slide.right_title or '右侧'
        if 'cards' not in props and (slide.left_title or slide.right_title):
            props['cards'] = [
                {'title': left_title, 'items': list(slide.left_bullets or [])},
                {'title': right_title, 'items': list(slide.right_bullets or [])},
            ]
        if slide.left_bullets is not None and slide.right_bullets is not None:
            props['leftTitle'] = left_title
            props['rightTitle'] = right_title
            props['leftBullets'] = list(slide.left_bullets)
            props['rightBullets'] = list(slide.right_bullets)

    if slide.visual:
        props['visual'] = slide.visual
    if slide.text_effect:
        props['textEffect'] = slide.text_effect
    if slide.visual_type:
        props['visualType'] = slide.visual_type
    if slide.visual_data:
        props['visualData'] = slide.visual_data
    if slide.chart_data:
        props.update(_chart_props(slide.chart_data))

    return props


@dataclass
class RenderRequest:
    """Everything an external renderer needs for one slide image."""
    slide_id: str
    layout: str
    composition_id: str
    props: dict[str, Any]
    props_path: Path
    output_path: Path


def plan_render(document: Document, layout_artifact: dict[str, Any] | None,
                paths: ProjectPaths, style: str | None = None,
                default_style: str = 'apple') -> list[RenderRequest]:
    """Resolve layout, composition and props for every slide, in order.

    Recommendations are matched by slide id, falling back to position.
    """
    layout_artifact = layout_artifact or {}
    style_entry = layout_artifact.get('style') if isinstance(layout_artifact, dict) else None
    style = style or (style_entry or {}).get('recommended') or default_style
    by_id = recommended_layouts_by_slide(layout_artifact)
    by_position = list(by_id.values())

    requests = []
    for index, slide in enumerate(document.slides):
        recommended = by_id.get(slide.id)
        if recommended is None and index < len(by_position):
            recommended = by_position[index]
        layout = resolve_layout(slide, recommended)
        requests.append(RenderRequest(
            slide_id=slide.id,
            layout=layout,
            composition_id=composition_id(layout, style),
            props=build_props(slide, layout, style),
            props_path=paths.props_file(slide.id),
            output_path=paths.slide_image(slide.id),
        ))
    return requests


def build_visual_slide_props(recommendation: dict[str, Any], slide: SlideRecord,
                             style: str) -> tuple[str, str, dict[str, Any]]:
    """Props for a dedicated visual slide.

    Returns:
        Tuple of (visual slide id, composition id, props).
    """
    composition = VISUAL_COMPOSITIONS.get(recommendation.get('composition', ''), "DiagramsDemo")
    props = {
        'style': style,
        'visualType': recommendation.get('detectedType'),
        'visualData': recommendation.get('extractedData') or {},
        'title': slide.title or '',
        'sourceSlideId': slide.id,
    }
    return f"{slide.id}-visual", f"{composition}-{style_composition_name(style)}", props


def write_render_plan(requests: list[RenderRequest]) -> None:
    """Write every request's props file."""
    for request in requests:
        write_json(request.props_path, request.props)
        logger.debug(f"Wrote props for {request.slide_id}: {request.props_path}")
