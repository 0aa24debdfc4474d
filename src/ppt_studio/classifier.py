"""Rule-based content-type and slide-type tagging."""

import logging
from dataclasses import dataclass

from .script_parser import Document, SlideRecord

logger = logging.getLogger(__name__)

DEFAULT_CONTENT_TYPE = "statement"
DEFAULT_SLIDE_TYPE = "statement"

# Ordered: on equal keyword counts the earlier content type wins.
CONTENT_TYPE_TABLE: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("process", ("步骤", "第一步", "第二步", "第三步", "流程", "阶段", "过程", "首先", "然后", "最后")),
    ("comparison", ("vs", "对比", "比较", "优劣", "前后", "a和b", "一方面", "另一方面")),
    ("data", ("数据", "统计", "%", "增长", "下降", "指标", "kpi", "数字")),
    ("hierarchy", ("层级", "顶层", "底层", "核心", "金字塔", "结构", "框架")),
    ("cycle", ("循环", "迭代", "周期", "闭环", "反馈", "持续")),
    ("timeline", ("年", "月", "日", "时间线", "历史", "发展", "演进")),
    ("summary", ("总结", "归纳", "结论", "要点", "核心", "关键")),
)

CONCLUSION_KEYWORDS = ("结论", "最终", "总结")

# Checked in order after the positional cover/conclusion rules.
SLIDE_TYPE_TRIGGERS: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("problem", ("问题", "为什么", "瓶颈")),
    ("conclusion", CONCLUSION_KEYWORDS),
    ("solution", ("测试", "发现", "方案")),
    ("framework", ("意味", "结构", "框架")),
    ("caveat", ("但", "不过", "注意")),
)

VISUAL_COMPONENT_MAP: dict[str, list[str]] = {
    "process": ["StepIndicator", "FlowArrows", "LinearProgression"],
    "comparison": ["BinaryComparison", "ScaleBar", "ComparisonMatrix"],
    "data": ["MiniBarChart", "StatCard", "ProgressBar", "Dashboard"],
    "hierarchy": ["TreeBranching", "HierarchicalLayers", "CircleRing"],
    "cycle": ["CycleDiagram", "CircularFlow"],
    "timeline": ["Timeline", "WindingRoadmap"],
    "summary": ["KeyStat", "QuoteCallout"],
    "statement": ["FloatingDots", "WaveLines"],
}


@dataclass
class Classification:
    """Tags assigned to one slide."""
    content_type: str
    slide_type: str
    recommended_visuals: list[str]


def slide_text(slide: SlideRecord) -> str:
    """Join title, subtitle, notes and bullets into one searchable blob."""
    parts = [slide.title, slide.subtitle or "", slide.notes or ""]
    parts.extend(slide.bullets or [])
    return " ".join(part for part in parts if part)


def content_type_scores(text: str) -> dict[str, int]:
    """Number of distinct keywords of each content type found in text."""
    lower = text.lower()
    return {
        name: sum(1 for keyword in keywords if keyword in lower)
        for name, keywords in CONTENT_TYPE_TABLE
    }


def detect_content_type(text: str) -> str:
    best_type, best_score = DEFAULT_CONTENT_TYPE, 0
    for name, score in content_type_scores(text).items():
        if score > best_score:
            best_type, best_score = name, score
    return best_type


def detect_slide_type(text: str, index: int, total: int) -> str:
    """Assign the slide-type tag from position and trigger keywords.

    Args:
        text: Slide text blob.
        index: 0-based slide position.
        total: Number of slides in the document.

    Returns:
        One of cover, problem, conclusion, solution, framework, caveat, statement.
    """
    lower = text.lower()
    if index == 0:
        return "cover"
    if index == total - 1 and any(keyword in lower for keyword in CONCLUSION_KEYWORDS):
        return "conclusion"

    for slide_type, keywords in SLIDE_TYPE_TRIGGERS:
        if any(keyword in lower for keyword in keywords):
            return slide_type
    return DEFAULT_SLIDE_TYPE


def recommended_visuals(content_type: str) -> list[str]:
    return list(VISUAL_COMPONENT_MAP.get(content_type, VISUAL_COMPONENT_MAP[DEFAULT_CONTENT_TYPE]))


def classify_slide(slide: SlideRecord, index: int, total: int) -> Classification:
    text = slide_text(slide)
    content_type = detect_content_type(text)
    return Classification(
        content_type=content_type,
        slide_type=detect_slide_type(text, index, total),
        recommended_visuals=recommended_visuals(content_type),
    )


def classify_document(document: Document) -> list[Classification]:
    """Classify every slide, filling in type/contentType where they are empty.

    Tags already present in the script are kept as written.

    Returns:
        One Classification per slide, in document order.
    """
    total = len(document.slides)
    results = []
    for index, slide in enumerate(document.slides):
        result = classify_slide(slide, index, total)
        if not slide.type:
            slide.type = result.slide_type
        if not slide.content_type:
            slide.content_type = result.content_type
        logger.debug(f"Slide {slide.id}: type={slide.type} contentType={slide.content_type}")
        results.append(result)
    return results
