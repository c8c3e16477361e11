"""
Page geometry for credit reports.

All values are PDF points with the origin at the top-left corner of the
page and y growing downwards. The backend flips to ReportLab's bottom-left
origin when drawing.
"""

from dataclasses import dataclass

from reportlab.lib.pagesizes import A4
from reportlab.lib.units import mm


PAGE_SIZE = A4
PAGE_WIDTH, PAGE_HEIGHT = PAGE_SIZE

MARGIN_TOP = 30 * mm
MARGIN_BOTTOM = 25 * mm
MARGIN_LEFT = 20 * mm
MARGIN_RIGHT = 20 * mm

# Chrome anchors, inside the margins
HEADER_TEXT_Y = 14 * mm
HEADER_RULE_Y = 20 * mm
FOOTER_RULE_Y = PAGE_HEIGHT - 17 * mm
FOOTER_TEXT_Y = PAGE_HEIGHT - 10 * mm
FOOTER_NOTE_Y = PAGE_HEIGHT - 6 * mm


@dataclass(frozen=True)
class PageGeometry:
    """Page size and margins with the derived content region."""
    width: float = PAGE_WIDTH
    height: float = PAGE_HEIGHT
    margin_top: float = MARGIN_TOP
    margin_bottom: float = MARGIN_BOTTOM
    margin_left: float = MARGIN_LEFT
    margin_right: float = MARGIN_RIGHT

    @property
    def content_top(self) -> float:
        return self.margin_top

    @property
    def content_bottom(self) -> float:
        return self.height - self.margin_bottom

    @property
    def content_left(self) -> float:
        return self.margin_left

    @property
    def content_right(self) -> float:
        return self.width - self.margin_right

    @property
    def content_width(self) -> float:
        return self.width - self.margin_left - self.margin_right

    @property
    def content_height(self) -> float:
        return self.content_bottom - self.content_top

    def remaining_space(self, y: float) -> float:
        """Vertical room left between ``y`` and the content bottom."""
        return self.content_bottom - y

    def exceeds_bottom(self, y: float, height: float) -> bool:
        """True if a block of ``height`` placed at ``y`` crosses the bottom."""
        return y + height > self.content_bottom

    def in_content_region(self, top: float, bottom: float) -> bool:
        return self.content_top <= top and bottom <= self.content_bottom


DEFAULT_GEOMETRY = PageGeometry()
