"""First-draft script generation from raw narrative text.

The draft is a starting point for manual authoring: blocks of the input are
turned into slides, each tagged by the classifier, with policy-conforming
bullets mined from the text and the rest kept as speaker notes.
"""

import math
import re
import logging
from dataclasses import dataclass

from .classifier import detect_content_type, detect_slide_type, recommended_visuals
from .config import Config
from .metrics import count_words, split_paragraphs, target_slide_count
from .script_parser import Document, SlideRecord, default_slide_id

logger = logging.getLogger(__name__)

_SENTENCE_BREAK = re.compile(r'[。！？；\n]')
_NOTES_SENTENCE_BREAK = re.compile(r'[。！？；]')
_CLAUSE_BREAK = re.compile(r'[，、：]')
_NUMBERED_LINE = re.compile(r'^\d+[.、)]')
_BULLET_MARKER = re.compile(r'^[-•\d.、)]+\s*')

COMPARISON_MARKERS = ("vs", "对比", "发散")
LEFT_COLUMN = ("并行（发散）", ["扩张可能性", "放大试错密度"])
RIGHT_COLUMN = ("系统（收敛）", ["压缩噪声", "形成可执行结论"])

GOAL_PREAMBLE = """# Goal

- [自动生成：请补充本期目标]
- [自动生成：请补充受众]

# Data Files

[如需引用数据文件，请在此列出]"""


@dataclass
class BulletPolicy:
    """Length and count limits for slide bullets."""
    min_length: int = 15
    max_length: int = 50
    max_bullets: int = 4

    @classmethod
    def from_config(cls, config: Config) -> "BulletPolicy":
        return cls(
            min_length=int(config.get('script.bullet_min_length', 15)),
            max_length=int(config.get('script.bullet_max_length', 50)),
            max_bullets=int(config.get('script.max_bullets', 4)),
        )

    def fits(self, text: str) -> bool:
        return self.min_length <= len(text) <= self.max_length


def _bullets_from_long_text(text: str, policy: BulletPolicy) -> list[str]:
    """Mine bullets from prose: whole sentences first, then clauses of long ones."""
    result: list[str] = []
    for sentence in _SENTENCE_BREAK.split(text):
        if len(result) >= policy.max_bullets:
            break
        sentence = sentence.strip()
        if policy.fits(sentence):
            result.append(sentence)
        elif len(sentence) > policy.max_length:
            for clause in _CLAUSE_BREAK.split(sentence):
                if len(result) >= policy.max_bullets:
                    break
                clause = clause.strip()
                if policy.fits(clause):
                    result.append(clause)
    return result


def _is_marked_line(line: str) -> bool:
    return line.startswith('-') or line.startswith('•') or bool(_NUMBERED_LINE.match(line))


def extract_bullets(block: str, policy: BulletPolicy | None = None) -> tuple[list[str], str]:
    """Split a text block into bullets and narrative.

    Marked lines (dash, bullet or numbered) become bullets when they fit the
    policy; longer ones are broken into sentences and clauses. Unmarked lines
    form the narrative. A short block without marked lines is mined for
    bullets sentence by sentence and has no narrative left over.

    Args:
        block: Raw text of one slide block.
        policy: Bullet limits, defaults to 15-50 characters and 4 bullets.

    Returns:
        Tuple of (bullets, narrative).
    """
    policy = policy or BulletPolicy()
    lines = [line for line in block.split('\n') if line.strip()]
    bullets: list[str] = []
    narrative: list[str] = []

    for line in lines:
        text = line.strip()
        if _is_marked_line(text):
            bullet = _BULLET_MARKER.sub('', text)
            if policy.fits(bullet):
                bullets.append(bullet)
            elif len(bullet) > policy.max_length:
                bullets.extend(_bullets_from_long_text(bullet, policy))
        elif not text.startswith('```') and not text.startswith('#'):
            narrative.append(text)

    if not bullets and len(lines) <= 8:
        for line in lines:
            text = line.strip()
            if text.startswith(('```', '#', '|')):
                continue
            if len(bullets) >= policy.max_bullets:
                break
            for candidate in _bullets_from_long_text(text, policy):
                if len(bullets) >= policy.max_bullets:
                    break
                if candidate not in bullets:
                    bullets.append(candidate)
        narrative = []

    return bullets[:policy.max_bullets], ' '.join(narrative)


def _truncate(text: str, limit: int) -> str:
    return text[:limit] + '...' if len(text) > limit else text


def generate_title(block: str, slide_type: str) -> str:
    """Derive a slide title from the first non-blank line of a block."""
    lines = [line for line in block.split('\n') if line.strip()]
    first_line = lines[0] if lines else ''

    if slide_type == 'problem':
        if '问题' in first_line or '为什么' in first_line:
            return first_line
        return '问题：' + _truncate(first_line, 30)
    if slide_type == 'conclusion':
        if '结论' in first_line or '总结' in first_line:
            return first_line
        return '总结：' + _truncate(first_line, 30)
    return _truncate(first_line, 50)


def _pack_paragraphs(content: str, target: int) -> list[list[str]]:
    """Greedily pack paragraphs into roughly equal word budgets."""
    paragraphs = split_paragraphs(content)
    words_per_slide = math.ceil(count_words(content) / target)

    blocks: list[list[str]] = []
    current: list[str] = []
    current_words = 0

    for i, paragraph in enumerate(paragraphs):
        words = count_words(paragraph)
        is_last = i == len(paragraphs) - 1

        if not blocks and not current:
            # The opening block closes early so the cover stays light
            current.append(paragraph)
            current_words += words
            if current_words >= words_per_slide * 0.5 or is_last:
                blocks.append(current)
                current, current_words = [], 0
        elif current and current_words + words > words_per_slide * 1.3:
            blocks.append(current)
            current, current_words = [paragraph], words
        else:
            current.append(paragraph)
            current_words += words

        if is_last and current:
            blocks.append(current)

    if len(blocks) > target * 1.2:
        ratio = math.ceil(len(blocks) / target)
        blocks = [
            [paragraph for block in blocks[i:i + ratio] for paragraph in block]
            for i in range(0, len(blocks), ratio)
        ]
    return blocks


def split_into_blocks(content: str, target: int) -> list[str]:
    """Split raw content into one text block per slide.

    Paragraphs are used directly when their number is within 20% of the
    target slide count; otherwise they are packed by word budget.
    """
    paragraphs = split_paragraphs(content)
    if target * 0.8 <= len(paragraphs) <= target * 1.2:
        return paragraphs
    return ['\n'.join(block) for block in _pack_paragraphs(content, target)]


def _draft_slide(block: str, index: int, total: int, title: str,
                 policy: BulletPolicy) -> SlideRecord:
    lines = [line for line in block.split('\n') if line.strip()]
    slide_type = detect_slide_type(block, index, total)
    content_type = detect_content_type(block)
    bullets, narrative = extract_bullets(block, policy)

    slide = SlideRecord(
        id=default_slide_id(index + 1),
        index=index + 1,
        type=slide_type,
        content_type=content_type,
        title=title if slide_type == 'cover' else generate_title(block, slide_type),
        recommended_visuals=recommended_visuals(content_type),
    )

    if slide_type == 'cover':
        if len(lines) > 1 and len(lines[1]) < 60:
            slide.subtitle = lines[1]
        slide.notes = ' '.join(lines[:2])
    elif slide_type == 'framework' or content_type == 'comparison':
        if any(marker in block for marker in COMPARISON_MARKERS):
            slide.left_title, left = LEFT_COLUMN
            slide.right_title, right = RIGHT_COLUMN
            slide.left_bullets = list(left)
            slide.right_bullets = list(right)
        elif bullets:
            slide.bullets = bullets
        slide.notes = ' '.join(lines)
    else:
        if bullets:
            slide.bullets = bullets
        slide.notes = narrative or ' '.join(lines[:3])

    # Sparse slides borrow sentences from the narrative
    total_chars = sum(len(b) for b in slide.bullets or []) + len(slide.title) + len(slide.subtitle or '')
    if total_chars < 100 and narrative and slide.left_title is None:
        room = policy.max_bullets - len(slide.bullets or [])
        extra = [
            sentence.strip() for sentence in _NOTES_SENTENCE_BREAK.split(narrative)
            if policy.fits(sentence.strip())
        ][:max(room, 0)]
        if extra:
            slide.bullets = ((slide.bullets or []) + extra)[:policy.max_bullets]

    if not slide.notes or len(slide.notes) < 20:
        slide.notes = ' '.join(lines)[:200]
    return slide


def draft_slides(content: str, title: str, policy: BulletPolicy | None = None) -> list[SlideRecord]:
    """Turn raw narrative text into draft slides.

    Args:
        content: Raw narrative text.
        title: Episode title, used for the cover slide.
        policy: Bullet limits.

    Returns:
        Slides in order, the first one tagged as cover.
    """
    policy = policy or BulletPolicy()
    word_count = count_words(content)
    target = target_slide_count(word_count)
    blocks = split_into_blocks(content, target)
    logger.info(f"Word count: {word_count}, target slides: {target}, blocks: {len(blocks)}")

    return [_draft_slide(block, i, len(blocks), title, policy) for i, block in enumerate(blocks)]


def draft_document(content: str, title: str, lang: str = 'zh',
                   policy: BulletPolicy | None = None) -> Document:
    """Draft a complete script document with front matter."""
    front_matter = {
        'title': title,
        'language': lang,
        'aspect': '16:9',
        'theme': 'auto',
        'defaultSlideSeconds': '6',
    }
    return Document(front_matter=front_matter, slides=draft_slides(content, title, policy))
