"""Layout and style recommendation.

Layouts are scored per slide against an ordered rule table; each rule returns
a score in [0, 1]. Styles are chosen once per document by counting keyword
hits. Both produce plain dicts that are written to
build/layout-recommendations.json and later edited by hand (``accepted``).
"""

import math
import re
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Iterator

from .config import Config
from .script_parser import Document, SlideRecord

logger = logging.getLogger(__name__)

_ORDINAL_MARKER = re.compile(r'第[一二三四五]')
_PERCENTAGE = re.compile(r'\d+%')

DEFAULT_LAYOUT_DESCRIPTION = "要点列表布局（默认）"


@dataclass(frozen=True)
class LayoutRule:
    """One entry of the layout rule table."""
    name: str
    priority: int
    description: str
    keywords: tuple[str, ...]
    match: Callable[[str, SlideRecord], float]


def _match_binary_comparison(text: str, slide: SlideRecord) -> float:
    if slide.left_title and slide.right_title:
        return 1.0
    if 'vs' in text or '对比' in text:
        return 0.9
    if '串行' in text and '并行' in text:
        return 0.8
    if '发散' in text and '收敛' in text:
        return 0.8
    return 0.0


def _match_linear_progression(text: str, slide: SlideRecord) -> float:
    if '步骤' in text or '流程' in text:
        return 0.9
    if _ORDINAL_MARKER.search(text):
        return 0.8
    return 0.0


def _match_hierarchical_layers(text: str, slide: SlideRecord) -> float:
    if '层级' in text or '顶层' in text or '底层' in text:
        return 0.9
    return 0.0


def _match_hub_spoke(text: str, slide: SlideRecord) -> float:
    if slide.type == 'framework':
        return 0.9
    if '核心' in text and '围绕' in text:
        return 0.8
    return 0.0


def _match_dashboard(text: str, slide: SlideRecord) -> float:
    if '指标' in text or 'KPI' in text:
        return 0.9
    if _PERCENTAGE.search(text):
        return 0.7
    return 0.0


def _match_quote_callout(text: str, slide: SlideRecord) -> float:
    if slide.type == 'conclusion':
        return 0.85
    if '结论' in text:
        return 0.8
    # A declared-but-empty bullets list still counts as having bullets
    if len(text) < 50 and slide.bullets is None:
        return 0.7
    return 0.0


def _match_title_hero(text: str, slide: SlideRecord) -> float:
    if slide.type == 'cover':
        return 1.0
    if slide.type == 'section':
        return 0.9
    return 0.0


def _match_bullet_list(text: str, slide: SlideRecord) -> float:
    return 0.7 if slide.bullets else 0.5


LAYOUT_RULES: tuple[LayoutRule, ...] = (
    LayoutRule("binary-comparison", 2, "A vs B 对比布局",
               ("vs", "对比", "比较", "优劣", "前后", "串行", "并行", "发散", "收敛"),
               _match_binary_comparison),
    LayoutRule("linear-progression", 2, "线性流程布局",
               ("步骤", "流程", "第一步", "第二步", "阶段", "过程"),
               _match_linear_progression),
    LayoutRule("hierarchical-layers", 2, "层级结构布局",
               ("层级", "顶层", "底层", "核心", "金字塔"),
               _match_hierarchical_layers),
    LayoutRule("hub-spoke", 2, "中心辐射布局",
               ("核心", "围绕", "中心", "结构", "框架"),
               _match_hub_spoke),
    LayoutRule("dashboard", 2, "数据仪表盘布局",
               ("指标", "数据", "增长", "KPI", "统计"),
               _match_dashboard),
    LayoutRule("quote-callout", 1, "引用/金句布局",
               ("结论", "最终", "金句", "核心观点"),
               _match_quote_callout),
    LayoutRule("title-hero", 3, "大标题居中布局", (), _match_title_hero),
    LayoutRule("bullet-list", 1, DEFAULT_LAYOUT_DESCRIPTION, (), _match_bullet_list),
)


@dataclass(frozen=True)
class StyleRule:
    name: str
    keywords: tuple[str, ...]
    description: str


STYLE_RULES: tuple[StyleRule, ...] = (
    StyleRule("tech", ("技术", "代码", "API", "数据", "算法", "架构", "系统", "框架"),
              "科技蓝风格 - 深蓝背景+浅蓝强调"),
    StyleRule("bold-editorial", ("产品", "发布", "营销", "用户", "市场", "增长", "转化"),
              "大胆对比风 - 高对比+多彩强调"),
    StyleRule("minimal", ("简洁", "高端", "留白", "设计", "品牌", "形象"),
              "极简留白风 - 克制配色+大量留白"),
    StyleRule("dark-atmospheric", ("电影", "氛围", "故事", "情绪", "叙事", "旅程"),
              "电影暗色风 - 深色+霓虹强调"),
)

ALL_STYLES: tuple[tuple[str, str], ...] = (
    ("apple", "经典苹果风 - 纯黑+白字+蓝色强调"),
    ("tech", "科技蓝风 - 深蓝背景+浅蓝强调"),
    ("bold-editorial", "大胆对比风 - 高对比+多彩强调"),
    ("minimal", "极简留白风 - 克制配色+大量留白"),
    ("dark-atmospheric", "电影暗色风 - 深色+霓虹强调"),
)

_SHORT_STYLE_DESCRIPTIONS = {name: description.split(' - ')[0] for name, description in ALL_STYLES}


@dataclass
class RecommenderSettings:
    """Fallbacks used when no rule matches."""
    default_layout: str = "bullet-list"
    default_layout_score: float = 0.5
    default_layout_description: str = DEFAULT_LAYOUT_DESCRIPTION
    max_alternatives: int = 2
    default_style: str = "apple"
    default_style_alternatives: list[str] = field(default_factory=lambda: ["tech", "bold-editorial"])

    @classmethod
    def from_config(cls, config: Config) -> "RecommenderSettings":
        defaults = cls()
        return cls(
            default_layout=config.get('recommender.default_layout', defaults.default_layout),
            default_layout_score=float(config.get('recommender.default_layout_score',
                                                  defaults.default_layout_score)),
            max_alternatives=int(config.get('recommender.max_alternatives', defaults.max_alternatives)),
            default_style=config.get('recommender.default_style', defaults.default_style),
            default_style_alternatives=list(config.get('recommender.default_style_alternatives',
                                                       defaults.default_style_alternatives)),
        )


def to_confidence(score: float) -> int:
    """Scale a score to a 0-100 confidence, rounding halves up."""
    return int(math.floor(score * 100 + 0.5))


def layout_text(slide: SlideRecord) -> str:
    parts = [slide.title, slide.subtitle, slide.notes, *(slide.bullets or [])]
    return ' '.join(part for part in parts if part)


def score_layouts(slide: SlideRecord,
                  rules: tuple[LayoutRule, ...] = LAYOUT_RULES) -> list[tuple[LayoutRule, float]]:
    """Evaluate every rule and return the positive scores, best first.

    Ties on score go to the higher priority, then to table order.
    """
    text = layout_text(slide)
    scored = [(rule, rule.match(text, slide)) for rule in rules]
    scored = [(rule, score) for rule, score in scored if score > 0]
    scored.sort(key=lambda entry: (-entry[1], -entry[0].priority))
    return scored


def recommend_layout(slide: SlideRecord, settings: RecommenderSettings | None = None,
                     rules: tuple[LayoutRule, ...] = LAYOUT_RULES) -> dict[str, Any]:
    """Build the layout recommendation entry for one slide.

    When no rule scores above zero the configured default layout is used.
    The built-in table always scores bullet-list, so that only happens with
    a custom rules table.
    """
    settings = settings or RecommenderSettings()
    scored = score_layouts(slide, rules)

    if scored:
        best_rule, best_score = scored[0]
        name, description = best_rule.name, best_rule.description
    else:
        name, description = settings.default_layout, settings.default_layout_description
        best_score = settings.default_layout_score

    alternatives = [
        {'name': rule.name, 'description': rule.description, 'confidence': to_confidence(score)}
        for rule, score in scored[1:1 + settings.max_alternatives]
    ]
    return {
        'slideId': slide.id,
        'slideType': slide.type,
        'title': slide.title,
        'recommended': name,
        'recommendedDescription': description,
        'confidence': to_confidence(best_score),
        'alternatives': alternatives,
        'accepted': False,
    }


def recommend_layouts(document: Document, settings: RecommenderSettings | None = None) -> list[dict[str, Any]]:
    return [recommend_layout(slide, settings) for slide in document.slides]


def recommend_style(all_text: str, settings: RecommenderSettings | None = None) -> dict[str, Any]:
    """Pick a visual style from keyword hits over the whole document.

    Text and keywords are compared lowercased, so "API" in the text counts
    as a hit for an "api" keyword and the reverse.

    Args:
        all_text: Text of every slide, joined.
        settings: Fallback style and alternatives.

    Returns:
        Dict with recommended, recommendedDescription and alternatives.
    """
    settings = settings or RecommenderSettings()
    text = all_text.lower()

    scores = [
        (rule, sum(1 for keyword in rule.keywords if keyword.lower() in text))
        for rule in STYLE_RULES
    ]
    scores.sort(key=lambda entry: -entry[1])

    best_rule, best_count = scores[0]
    if best_count > 0:
        return {
            'recommended': best_rule.name,
            'recommendedDescription': best_rule.description,
            'alternatives': [
                {'name': rule.name, 'description': rule.description}
                for rule, count in scores[1:1 + settings.max_alternatives]
                if count > 0
            ],
        }

    return {
        'recommended': settings.default_style,
        'recommendedDescription': dict(ALL_STYLES).get(settings.default_style, settings.default_style),
        'alternatives': [
            {'name': name, 'description': _SHORT_STYLE_DESCRIPTIONS.get(name, name)}
            for name in settings.default_style_alternatives
        ],
    }


def document_text(document: Document) -> str:
    return ' '.join(layout_text(slide) for slide in document.slides)


def build_layout_artifact(document: Document, settings: RecommenderSettings | None = None,
                          accept_all: bool = False) -> dict[str, Any]:
    """Build the content of build/layout-recommendations.json."""
    recommendations = recommend_layouts(document, settings)
    if accept_all:
        for recommendation in recommendations:
            recommendation['accepted'] = True

    return {
        'generatedAt': datetime.now(timezone.utc).isoformat(),
        'projectTitle': document.title,
        'totalSlides': len(document.slides),
        'style': recommend_style(document_text(document), settings),
        'recommendations': recommendations,
        'allLayouts': [{'name': rule.name, 'description': rule.description} for rule in LAYOUT_RULES],
        'allStyles': [{'name': name, 'description': description} for name, description in ALL_STYLES],
    }


def iter_recommendations(artifact: Any) -> Iterator[dict[str, Any]]:
    """Yield recommendation entries from any accepted artifact shape.

    The artifact may be a list of entries, an object keyed by slide index, or
    an object whose ``recommendations`` member is either of those.
    """
    if isinstance(artifact, dict) and 'recommendations' in artifact:
        artifact = artifact['recommendations']
    if isinstance(artifact, dict):
        entries = artifact.values()
    elif isinstance(artifact, list):
        entries = artifact
    else:
        return
    for entry in entries:
        if isinstance(entry, dict):
            yield entry


def accept_recommendations(artifact: Any, slide_ids: list[str] | None = None) -> int:
    """Mark recommendations as accepted, all of them or only slide_ids.

    Returns:
        Number of entries that changed from unaccepted to accepted.
    """
    wanted = set(slide_ids) if slide_ids else None
    changed = 0
    for entry in iter_recommendations(artifact):
        if wanted is not None and entry.get('slideId') not in wanted:
            continue
        if not entry.get('accepted'):
            entry['accepted'] = True
            changed += 1
    return changed


def unaccepted_slide_ids(artifact: Any) -> list[str]:
    return [
        str(entry.get('slideId', '?'))
        for entry in iter_recommendations(artifact)
        if not entry.get('accepted')
    ]


def recommended_layouts_by_slide(artifact: Any) -> dict[str, str]:
    """Map slide id to recommended layout name."""
    return {
        entry['slideId']: entry['recommended']
        for entry in iter_recommendations(artifact)
        if entry.get('slideId') and entry.get('recommended')
    }
