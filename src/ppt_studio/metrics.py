"""Word and paragraph metrics for narrative input text.

Word counting treats every CJK ideograph as one word and every run of ASCII
letters as one word, so mixed Chinese/English copy gets a usable estimate.
"""

import math
import re

_CJK_CHAR = re.compile(r'[\u4e00-\u9fa5]')
_ASCII_WORD = re.compile(r'[a-zA-Z]+')
_PARAGRAPH_BREAK = re.compile(r'\n\s*\n+')

# (max words, min slides, max slides), checked in order
SLIDE_COUNT_RULES: tuple[tuple[float, int, int], ...] = (
    (1000, 5, 10),
    (3000, 10, 18),
    (5000, 15, 25),
    (math.inf, 20, 30),
)

WORDS_PER_SLIDE = 200


def count_words(text: str) -> int:
    """Count CJK characters plus ASCII words in text."""
    if not text:
        return 0
    return len(_CJK_CHAR.findall(text)) + len(_ASCII_WORD.findall(text))


def split_paragraphs(text: str) -> list[str]:
    """Split text on blank lines, dropping empty paragraphs."""
    if not text:
        return []
    return [p for p in _PARAGRAPH_BREAK.split(text) if p.strip()]


def count_paragraphs(text: str) -> int:
    """Count non-blank paragraphs separated by blank lines."""
    return len(split_paragraphs(text))


def recommended_slide_range(word_count: int) -> tuple[int, int]:
    """Return the (min, max) slide count recommended for a word count."""
    for max_words, min_slides, max_slides in SLIDE_COUNT_RULES:
        if word_count <= max_words:
            return min_slides, max_slides
    return SLIDE_COUNT_RULES[-1][1], SLIDE_COUNT_RULES[-1][2]


def target_slide_count(word_count: int) -> int:
    """Pick a concrete slide count inside the recommended range."""
    low, high = recommended_slide_range(word_count)
    return min(high, max(low, math.ceil(word_count / WORDS_PER_SLIDE)))
