"""
Credit Report Theme
===================
Color palette, text styles and semantic lookups for credit reports.

Pure lookups, no state. Confidence and risk tables must cover every member
of their enum; a gap is a configuration error raised at import time.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional, Tuple

from report_errors import ConfigurationError
from report_models import ConfidenceLevel, RiskLevel


class CreditReportColors:
    """Brand colors for printed credit reports (hex strings)."""
    NAVY = '#0F2A4A'
    GOLD = '#EFA219'
    GOLD_TEXT = '#B47814'
    GREEN = '#16A34A'
    SUCCESS = '#22C55E'
    INFO = '#3B82F6'
    WARNING = '#EAB308'
    DANGER = '#EF4444'
    TEXT = '#000000'
    GRAY = '#666666'
    MUTED = '#969696'
    BORDER = '#2E2E2E'
    TABLE_HEADER = '#E8EDF3'
    ZEBRA = '#FAFAFA'
    CARD = '#F3F4F6'
    WHITE = '#FFFFFF'


# Bar chart colors, assigned to categories by position
CHART_PALETTE = (
    '#3B82F6',  # blue
    '#10B981',  # green
    '#F59E0B',  # amber
    '#8B5CF6',  # purple
    '#EF4444',  # red
    '#EC4899',  # pink
    '#6366F1',  # indigo
    '#6B7280',  # gray
)


@dataclass(frozen=True)
class TextStyle:
    font: str
    size: float
    color: str
    leading: float

    def with_color(self, color: str) -> 'TextStyle':
        return TextStyle(self.font, self.size, color, self.leading)


@dataclass(frozen=True)
class RectStyle:
    fill: Optional[str] = None
    stroke: Optional[str] = None
    line_width: float = 0.5
    radius: float = 0


FONT = 'Helvetica'
FONT_BOLD = 'Helvetica-Bold'
FONT_MONO = 'Courier'

TEXT_STYLES: Dict[str, TextStyle] = {
    'title': TextStyle(FONT_BOLD, 24, CreditReportColors.NAVY, 32),
    'subtitle': TextStyle(FONT_BOLD, 14, CreditReportColors.GOLD, 22),
    'h1': TextStyle(FONT_BOLD, 16, CreditReportColors.NAVY, 26),
    'h2': TextStyle(FONT_BOLD, 14, CreditReportColors.NAVY, 22),
    'h3': TextStyle(FONT_BOLD, 12, CreditReportColors.NAVY, 18),
    'body': TextStyle(FONT, 10, CreditReportColors.GRAY, 14),
    'body_bold': TextStyle(FONT_BOLD, 10, CreditReportColors.NAVY, 14),
    'body_dark': TextStyle(FONT, 10, CreditReportColors.TEXT, 14),
    'small': TextStyle(FONT, 9, CreditReportColors.GRAY, 12),
    'small_bold': TextStyle(FONT_BOLD, 9, CreditReportColors.NAVY, 12),
    'tiny': TextStyle(FONT, 8, CreditReportColors.MUTED, 11),
    'value': TextStyle(FONT_BOLD, 20, CreditReportColors.GREEN, 26),
    'table_header': TextStyle(FONT_BOLD, 7, CreditReportColors.NAVY, 9),
    'table_cell': TextStyle(FONT, 7, CreditReportColors.TEXT, 9),
    'table_detail': TextStyle(FONT, 6, CreditReportColors.GRAY, 8),
    'table_total': TextStyle(FONT_BOLD, 7, CreditReportColors.WHITE, 9),
    'mono': TextStyle(FONT_MONO, 8, CreditReportColors.GRAY, 10),
    'badge': TextStyle(FONT_BOLD, 7, CreditReportColors.WHITE, 9),
}


CONFIDENCE_STYLES: Dict[ConfidenceLevel, Tuple[str, str]] = {
    ConfidenceLevel.HIGH: ('High', CreditReportColors.SUCCESS),
    ConfidenceLevel.MEDIUM: ('Medium', CreditReportColors.WARNING),
    ConfidenceLevel.LOW: ('Low', CreditReportColors.DANGER),
}

RISK_STYLES: Dict[RiskLevel, Tuple[str, str]] = {
    RiskLevel.NONE: ('None', CreditReportColors.SUCCESS),
    RiskLevel.LOW: ('Low', CreditReportColors.INFO),
    RiskLevel.MEDIUM: ('Medium', CreditReportColors.WARNING),
    RiskLevel.HIGH: ('High', CreditReportColors.DANGER),
}


def check_coverage(table: Dict[Enum, Tuple[str, str]], enum_type) -> None:
    """Raise ConfigurationError if ``table`` misses a member of ``enum_type``."""
    missing = [member.value for member in enum_type if member not in table]
    if missing:
        raise ConfigurationError(
            f"{enum_type.__name__} has no theme entry for: {', '.join(missing)}"
        )


check_coverage(CONFIDENCE_STYLES, ConfidenceLevel)
check_coverage(RISK_STYLES, RiskLevel)


class ReportTheme:
    """Resolves semantic states to the palette."""

    colors = CreditReportColors

    def __init__(self, styles: Optional[Dict[str, TextStyle]] = None):
        self.styles = dict(styles or TEXT_STYLES)

    def style(self, name: str) -> TextStyle:
        return self.styles[name]

    def confidence(self, level: ConfidenceLevel) -> Tuple[str, str]:
        """(label, color) for a confidence tier."""
        return CONFIDENCE_STYLES[ConfidenceLevel(level)]

    def risk(self, level: RiskLevel) -> Tuple[str, str]:
        """(label, color) for a risk tier."""
        return RISK_STYLES[RiskLevel(level)]

    def category_color(self, position: int) -> str:
        return CHART_PALETTE[position % len(CHART_PALETTE)]


DEFAULT_THEME = ReportTheme()
