"""Detection of diagram-worthy structures in slide text.

Each archetype pairs a set of detection regexes with an extractor that turns
the text into typed diagram data. An archetype is a candidate when its
patterns hit often enough and its extractor returns something; candidates are
ranked by the share of patterns that hit.
"""

import re
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable

from .script_parser import Document, SlideRecord

logger = logging.getLogger(__name__)

_NUMERALS = '一二三四五六七八九十'

INLINE = "inline"
CREATE_SEPARATE = "create-separate"


# =============================================================================
# Extractors
# =============================================================================

HIERARCHY_KEYWORDS = ("战略", "战术", "执行", "核心", "中间", "基础", "顶层", "中层", "底层")


def extract_hierarchy(text: str) -> dict[str, Any] | None:
    """Levels from short lines mentioning a layer keyword, 2 to 4 of them."""
    levels: list[dict[str, str]] = []
    for line in re.split(r'[。\n]', text):
        line = line.strip()
        if not 5 < len(line) < 50:
            continue
        for keyword in HIERARCHY_KEYWORDS:
            if keyword not in line:
                continue
            label = keyword if keyword.endswith('层') else f"{keyword}层"
            if any(level['label'] == label for level in levels):
                continue
            sublabel = re.sub(rf'{keyword}层?', '', line, count=1)
            sublabel = re.sub(r'[：:]', '', sublabel).strip()[:20]
            levels.append({'label': label, 'sublabel': sublabel})

    if len(levels) >= 2:
        return {'levels': levels[:4]}
    return None


_STEP_PATTERNS = (
    re.compile(rf'第([{_NUMERALS}\d]+)[步阶段][：:.\s]*(.+?)(?=第[{_NUMERALS}\d]+[步阶段]|[。\n]|$)', re.IGNORECASE),
    re.compile(rf'步骤\s*([{_NUMERALS}\d]+)[：:.\s]*(.+?)(?=步骤\s*[{_NUMERALS}\d]+|[。\n]|$)', re.IGNORECASE),
)
_FLOW_CONNECTIVES = re.compile(r'首先|然后|接着|最后|第一步|第二步|第三步')


def extract_flow(text: str) -> dict[str, Any] | None:
    """Steps from ordinal markers, else from sentences joined by connectives."""
    steps: list[dict[str, str]] = []
    for pattern in _STEP_PATTERNS:
        for match in pattern.finditer(text):
            title = match.group(2).strip()[:15]
            if title and not any(step['title'] == title for step in steps):
                steps.append({'title': title, 'description': ''})

    if len(steps) >= 2:
        return {'steps': steps[:6]}

    if len(_FLOW_CONNECTIVES.findall(text)) >= 2:
        sentences = [s.strip() for s in re.split(r'[。；]', text) if 5 < len(s.strip()) < 50]
        flow_steps = [{'title': s[:15], 'description': ''} for s in sentences[:5]]
        if len(flow_steps) >= 2:
            return {'steps': flow_steps}
    return None


DEFAULT_CYCLE_LABELS = ["计划", "执行", "检查", "改进"]
_PDCA_WORD = re.compile(r'计划|执行|检查|改进|Plan|Do|Check|Act', re.IGNORECASE)


def extract_cycle(text: str) -> dict[str, Any] | None:
    if not _PDCA_WORD.search(text):
        return None
    parts = [p.strip() for p in re.split(r'[，、。]', text) if 1 < len(p.strip()) < 10]
    if len(parts) >= 3:
        return {'labels': parts[:5]}
    return {'labels': list(DEFAULT_CYCLE_LABELS)}


_VERSUS = re.compile(r'(.+?)\s*(?:vs\.?|对比)\s*(.+)', re.IGNORECASE)


def extract_comparison(text: str) -> dict[str, Any] | None:
    """Two columns from an explicit "A vs B", else from framing lines."""
    versus = _VERSUS.search(text)
    if versus:
        return {
            'leftTitle': versus.group(1).strip()[:10],
            'leftItems': [],
            'rightTitle': versus.group(2).strip()[:10],
            'rightItems': [],
        }

    left_items: list[str] = []
    right_items: list[str] = []
    left_title = right_title = ''
    side = None

    for line in re.split(r'[。\n]', text):
        if '并行' in line or '发散' in line or '一方面' in line:
            side, left_title = 'left', line[:15]
        elif '系统' in line or '收敛' in line or '另一方面' in line:
            side, right_title = 'right', line[:15]
        elif 3 < len(line.strip()) < 30:
            if side == 'left':
                left_items.append(line.strip())
            elif side == 'right':
                right_items.append(line.strip())

    if left_title or right_title or left_items or right_items:
        return {
            'leftTitle': left_title or '方案A',
            'leftItems': left_items[:4],
            'rightTitle': right_title or '方案B',
            'rightItems': right_items[:4],
        }
    return None


_YEAR_EVENT = re.compile(r'(\d{4})年?[：:\s]*(.+?)(?=\d{4}年|[。\n]|$)')
_STAGE_EVENT = re.compile(rf'第([{_NUMERALS}\d]+)阶段[：:\s]*(.+?)(?=第[{_NUMERALS}\d]+阶段|[。\n]|$)')


def extract_timeline(text: str) -> dict[str, Any] | None:
    events = [
        {'year': m.group(1), 'title': m.group(2).strip()[:15] or '事件', 'description': ''}
        for m in _YEAR_EVENT.finditer(text)
    ]
    if len(events) >= 2:
        return {'events': events[:6]}

    stages = [
        {'year': f"阶段{m.group(1)}", 'title': m.group(2).strip()[:15], 'description': ''}
        for m in _STAGE_EVENT.finditer(text)
    ]
    if len(stages) >= 2:
        return {'events': stages[:6]}
    return None


FUNNEL_KEYWORDS = ("访问", "曝光", "浏览", "点击", "注册", "下载", "激活", "付费", "复购", "留存")
_FUNNEL_VALUE = re.compile(r'(\d+(?:\.\d+)?[%万]?)')


def extract_funnel(text: str) -> dict[str, Any] | None:
    stages: list[dict[str, str]] = []
    for segment in re.split(r'[，、。\n]', text):
        for keyword in FUNNEL_KEYWORDS:
            if keyword in segment:
                value = _FUNNEL_VALUE.search(segment)
                stages.append({'label': keyword, 'value': value.group(1) if value else ''})
                break

    if len(stages) >= 2:
        return {'stages': stages[:5]}
    return None


_BRANCH_LIST = re.compile(r'(?:包括|分为|含有)[：:]?\s*(.+?)(?=[。\n]|$)')


def extract_tree(text: str) -> dict[str, Any] | None:
    match = _BRANCH_LIST.search(text)
    if not match:
        return None
    items = [s.strip() for s in re.split(r'[、，,和与]', match.group(1))]
    children = [s for s in items if 1 < len(s) < 15]
    if len(children) >= 2:
        return {'root': text[:10], 'children': children[:5]}
    return None


# =============================================================================
# Archetype table
# =============================================================================

@dataclass(frozen=True)
class ArchetypeSpec:
    """Detection patterns, extractor and sizing for one diagram archetype."""
    name: str
    patterns: tuple[re.Pattern, ...]
    min_matches: int
    extract: Callable[[str], dict[str, Any] | None]
    composition: str
    threshold: int
    count_items: Callable[[dict[str, Any]], int]

    def match_count(self, text: str) -> int:
        return sum(len(pattern.findall(text)) for pattern in self.patterns)


def _patterns(*sources: str) -> tuple[re.Pattern, ...]:
    return tuple(re.compile(source, re.IGNORECASE) for source in sources)


def _count(key: str) -> Callable[[dict[str, Any]], int]:
    return lambda data: len(data.get(key) or [])


ARCHETYPES: tuple[ArchetypeSpec, ...] = (
    ArchetypeSpec(
        "hierarchy",
        _patterns(r'层级|层次|顶层|底层|核心层|基础层|战略层|战术层|执行层', r'金字塔|分层|架构.*层'),
        2, extract_hierarchy, "PyramidDiagram", 3, _count('levels'),
    ),
    ArchetypeSpec(
        "flow",
        _patterns(
            rf'第[{_NUMERALS}]+步',
            rf'步骤\s*[{_NUMERALS}\d]+',
            rf'阶段\s*[{_NUMERALS}\d]+',
            r'首先.+然后.+最后',
            r'流程|过程|步骤',
        ),
        2, extract_flow, "HorizontalFlow", 4, _count('steps'),
    ),
    ArchetypeSpec(
        "cycle",
        _patterns(r'循环|迭代|闭环|反馈|持续', r'PDCA|计划.*执行.*检查.*改进', r'周而复始|往复'),
        2, extract_cycle, "CycleDiagram", 4, _count('labels'),
    ),
    ArchetypeSpec(
        "comparison",
        _patterns(r'vs\.?|对比|比较|优劣', r'一方面.*另一方面', r'A[与和]B|两者', r'并行.*发散|收敛'),
        1, extract_comparison, "BinaryComparison", 4,
        lambda data: len(data.get('leftItems') or []) + len(data.get('rightItems') or []),
    ),
    ArchetypeSpec(
        "timeline",
        _patterns(r'\d{4}年|\d{1,2}月', r'时间线|发展历程|演进|历史', r'第一阶段|第二阶段|第三阶段'),
        2, extract_timeline, "Timeline", 4, _count('events'),
    ),
    ArchetypeSpec(
        "funnel",
        _patterns(r'漏斗|转化|留存', r'访问.*注册.*付费', r'曝光.*点击.*转化'),
        2, extract_funnel, "Funnel", 3, _count('stages'),
    ),
    ArchetypeSpec(
        "tree",
        _patterns(r'分支|子类|下属|包含', r'总部.*部门|根节点.*叶子'),
        1, extract_tree, "TreeDiagram", 3, _count('children'),
    ),
)

ARCHETYPES_BY_NAME = {spec.name: spec for spec in ARCHETYPES}


@dataclass
class VisualCandidate:
    type: str
    composition: str
    match_count: int
    data: dict[str, Any]
    confidence: float


def visual_text(slide: SlideRecord) -> str:
    """Title, subtitle and every bullet column joined by spaces."""
    parts = [slide.title, slide.subtitle or '']
    parts.extend(slide.bullets or [])
    parts.extend(slide.left_bullets or [])
    parts.extend(slide.right_bullets or [])
    return ' '.join(part for part in parts if part)


def detect_visual_candidates(text: str) -> list[VisualCandidate]:
    """Run every archetype over text and rank the ones that extract data.

    Returns:
        Candidates sorted by confidence, highest first; archetype table order
        breaks ties.
    """
    candidates = []
    for spec in ARCHETYPES:
        match_count = spec.match_count(text)
        if match_count < spec.min_matches:
            continue
        data = spec.extract(text)
        if not data:
            continue
        candidates.append(VisualCandidate(
            type=spec.name,
            composition=spec.composition,
            match_count=match_count,
            data=data,
            confidence=match_count / len(spec.patterns),
        ))

    candidates.sort(key=lambda candidate: -candidate.confidence)
    return candidates


def estimate_complexity(visual_type: str, data: dict[str, Any]) -> dict[str, Any]:
    """Decide whether extracted data fits inline or needs its own slide.

    Up to the archetype threshold the diagram is inlined; more than two items
    over it gets a dedicated slide. The band in between stays inline and is
    flagged as borderline.
    """
    spec = ARCHETYPES_BY_NAME.get(visual_type)
    if spec is None:
        return {'canInline': True, 'needsSeparateSlide': False, 'itemCount': 0, 'borderline': False}

    items = spec.count_items(data)
    can_inline = items <= spec.threshold
    needs_separate = items > spec.threshold + 2
    return {
        'canInline': can_inline,
        'needsSeparateSlide': needs_separate,
        'itemCount': items,
        'borderline': not can_inline and not needs_separate,
    }


def recommend_visual(slide: SlideRecord, index: int | None = None) -> dict[str, Any] | None:
    """Build the visual recommendation for one slide, or None if nothing fits."""
    candidates = detect_visual_candidates(visual_text(slide))
    if not candidates:
        return None

    best = candidates[0]
    complexity = estimate_complexity(best.type, best.data)
    return {
        'slideId': slide.id,
        'slideIndex': slide.index or index,
        'title': slide.title,
        'detectedType': best.type,
        'composition': best.composition,
        'extractedData': best.data,
        'confidence': best.confidence,
        'complexity': complexity,
        'action': CREATE_SEPARATE if complexity['needsSeparateSlide'] else INLINE,
    }


def analyze_document(document: Document, style: str = 'apple') -> dict[str, Any]:
    """Build the content of build/visual-recommendations.json."""
    recommendations = []
    for index, slide in enumerate(document.slides, start=1):
        recommendation = recommend_visual(slide, index)
        if recommendation is None:
            continue
        logger.info(
            f"Slide {slide.id}: {recommendation['detectedType']} "
            f"({recommendation['confidence']:.0%}), {recommendation['action']}"
        )
        recommendations.append(recommendation)

    return {
        'style': style,
        'analyzedAt': datetime.now(timezone.utc).isoformat(),
        'totalSlides': len(document.slides),
        'slidesWithVisuals': len(recommendations),
        'recommendations': recommendations,
    }


def separate_visual_slides(artifact: dict[str, Any]) -> list[dict[str, Any]]:
    """Recommendations that need a dedicated visual slide."""
    return [r for r in artifact.get('recommendations', []) if r.get('action') == CREATE_SEPARATE]
