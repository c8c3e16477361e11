"""
Approximate text fitting.

Widths come from a character-count heuristic, not from glyph metrics, so
wrap points are approximate for proportional fonts.
"""

import math
from typing import List

# Average glyph width as a fraction of the font size (Helvetica)
CHAR_WIDTH_RATIO = 0.5
ELLIPSIS = '...'


def estimate_width(text: str, font_size: float) -> float:
    return len(text) * font_size * CHAR_WIDTH_RATIO


def wrap(text: str, max_width: float, font_size: float) -> List[str]:
    """Greedily wrap ``text`` into lines no wider than ``max_width``.

    Explicit newlines always start a new line. A single word wider than
    ``max_width`` is kept whole on its own line.
    """
    lines: List[str] = []
    if not text or not text.strip():
        return lines

    for paragraph in text.split('\n'):
        line = ''
        for word in paragraph.split():
            candidate = f"{line} {word}" if line else word
            if not line or estimate_width(candidate, font_size) <= max_width:
                line = candidate
            else:
                lines.append(line)
                line = word
        if line:
            lines.append(line)
    return lines


def truncate(text: str, max_width: float, font_size: float) -> str:
    """Return ``text`` if it fits, else a prefix followed by an ellipsis."""
    if estimate_width(text, font_size) <= max_width:
        return text
    max_chars = math.floor(max_width / (font_size * CHAR_WIDTH_RATIO))
    keep = max(max_chars - len(ELLIPSIS), 0)
    return text[:keep] + ELLIPSIS
