"""
Layout Blocks
=============
Declarative, position-free units of report content.

Every block pairs ``height()`` with ``render(x, y, theme)``: the height is
known before placement, and rendering at the top-left corner ``(x, y)``
never draws outside ``[y, y + height()]``. Blocks hold no reference to the
cursor; the FlowWriter is the only component that decides where they go.
"""

import logging
import math
from dataclasses import dataclass
from functools import cached_property
from io import BytesIO
from typing import List, Optional, Tuple

from reportlab.lib.utils import ImageReader

from draw_commands import ImageCommand, RectCommand, TextCommand
from report_theme import RectStyle, ReportTheme, TextStyle
from text_fitter import ELLIPSIS, estimate_width, truncate, wrap

logger = logging.getLogger("credit-report.blocks")

TABLE_HEADER_HEIGHT = 16
TABLE_ROW_HEIGHT = 13
TABLE_DETAIL_HEIGHT = 9
CELL_PADDING = 3
CARD_PADDING = 8
CARD_FIELD_LABEL_WIDTH = 90
BADGE_HEIGHT = 14
BADGE_PADDING = 5
BAR_HEIGHT = 14
BAR_GAP = 6


def _baseline(y: float, style: TextStyle) -> float:
    """Baseline of a text line whose line box starts at ``y``."""
    return y + style.size + (style.leading - style.size) / 2


def _aligned_x(x: float, width: float, align: str) -> float:
    if align == 'center':
        return x + width / 2
    if align == 'right':
        return x + width
    return x


class Block:
    """Base class of the block union."""

    keep_with_next: float = 0.0
    splittable: bool = False

    def height(self) -> float:
        raise NotImplementedError

    def render(self, x: float, y: float, theme: ReportTheme) -> List:
        raise NotImplementedError


@dataclass(frozen=True)
class TextLine(Block):
    """A single line of text, truncated to its width."""
    text: str
    style: TextStyle
    width: float
    align: str = 'left'
    space_after: float = 0
    keep_with_next: float = 0

    def height(self) -> float:
        return self.style.leading + self.space_after

    def render(self, x, y, theme):
        text = truncate(self.text, self.width, self.style.size)
        return [TextCommand(text, _aligned_x(x, self.width, self.align), _baseline(y, self.style),
                            self.style, align=self.align)]


@dataclass(frozen=True)
class Paragraph(Block):
    """Wrapped text. Splits across pages at line boundaries."""
    text: str
    style: TextStyle
    width: float
    indent: float = 0
    space_after: float = 0
    line_override: Optional[Tuple[str, ...]] = None

    splittable = True

    @cached_property
    def lines(self) -> Tuple[str, ...]:
        if self.line_override is not None:
            return self.line_override
        return tuple(wrap(self.text, self.width - self.indent, self.style.size))

    def height(self) -> float:
        return len(self.lines) * self.style.leading + self.space_after

    def split(self, available: float) -> Optional[Tuple['Paragraph', 'Paragraph']]:
        """Split into a head fitting ``available`` and the remaining tail."""
        fitting = min(math.floor(available / self.style.leading), len(self.lines) - 1)
        if fitting <= 0:
            return None
        head = Paragraph(self.text, self.style, self.width, self.indent, 0, self.lines[:fitting])
        tail = Paragraph(self.text, self.style, self.width, self.indent, self.space_after,
                         self.lines[fitting:])
        return head, tail

    def render(self, x, y, theme):
        commands = []
        for i, line in enumerate(self.lines):
            line_y = y + i * self.style.leading
            commands.append(TextCommand(line, x + self.indent, _baseline(line_y, self.style), self.style))
        return commands


@dataclass(frozen=True)
class Card(Block):
    """Bordered box with a title, an optional headline value, key/value
    fields and a short body."""
    title: str
    width: float
    title_style: TextStyle
    body_style: TextStyle
    value: Optional[str] = None
    value_style: Optional[TextStyle] = None
    fields: Tuple[Tuple[str, str], ...] = ()
    body: Optional[str] = None
    fill: Optional[str] = None
    accent: Optional[str] = None
    max_body_lines: int = 6
    space_after: float = 0

    @cached_property
    def body_lines(self) -> Tuple[str, ...]:
        if not self.body:
            return ()
        lines = wrap(self.body, self.width - 2 * CARD_PADDING, self.body_style.size)
        if len(lines) > self.max_body_lines:
            lines = lines[:self.max_body_lines]
            last = lines[-1]
            lines[-1] = (last[:len(last) - len(ELLIPSIS)] if len(last) > len(ELLIPSIS) else '') + ELLIPSIS
        return tuple(lines)

    def box_height(self) -> float:
        h = 2 * CARD_PADDING + self.title_style.leading
        if self.value is not None:
            h += self.value_style.leading
        h += len(self.fields) * self.body_style.leading
        h += len(self.body_lines) * self.body_style.leading
        return h

    def height(self) -> float:
        return self.box_height() + self.space_after

    def render(self, x, y, theme):
        commands = [RectCommand(x, y, self.width, self.box_height(),
                                RectStyle(fill=self.fill, stroke=self.accent, line_width=0.8, radius=4))]
        inner_x = x + CARD_PADDING
        inner_w = self.width - 2 * CARD_PADDING
        cursor = y + CARD_PADDING

        commands.append(TextCommand(truncate(self.title, inner_w, self.title_style.size), inner_x,
                                    _baseline(cursor, self.title_style), self.title_style))
        cursor += self.title_style.leading

        if self.value is not None:
            commands.append(TextCommand(self.value, inner_x, _baseline(cursor, self.value_style),
                                        self.value_style))
            cursor += self.value_style.leading

        label_style = theme.style('body_bold').with_color(self.title_style.color)
        for label, value in self.fields:
            baseline = _baseline(cursor, self.body_style)
            commands.append(TextCommand(label, inner_x, baseline, label_style))
            commands.append(TextCommand(truncate(value, inner_w - CARD_FIELD_LABEL_WIDTH, self.body_style.size),
                                        inner_x + CARD_FIELD_LABEL_WIDTH, baseline, self.body_style))
            cursor += self.body_style.leading

        for line in self.body_lines:
            commands.append(TextCommand(line, inner_x, _baseline(cursor, self.body_style), self.body_style))
            cursor += self.body_style.leading
        return commands


@dataclass(frozen=True)
class Badge(Block):
    """Caption followed by a small colored label and an optional note."""
    caption: str
    label: str
    color: str
    caption_style: TextStyle
    label_style: TextStyle
    note: Optional[str] = None
    caption_width: float = 110
    space_after: float = 4

    def height(self) -> float:
        return BADGE_HEIGHT + self.space_after

    def pill_width(self) -> float:
        return estimate_width(self.label, self.label_style.size) + 2 * BADGE_PADDING

    def render(self, x, y, theme):
        text_baseline = y + (BADGE_HEIGHT + self.caption_style.size) / 2 - 1
        commands = [TextCommand(self.caption, x, text_baseline, self.caption_style)]
        pill_x = x + self.caption_width
        pill_w = self.pill_width()
        commands.append(RectCommand(pill_x, y, pill_w, BADGE_HEIGHT, RectStyle(fill=self.color, radius=3)))
        commands.append(TextCommand(self.label, pill_x + pill_w / 2,
                                    y + (BADGE_HEIGHT + self.label_style.size) / 2 - 1,
                                    self.label_style, align='center'))
        if self.note:
            commands.append(TextCommand(self.note, pill_x + pill_w + 8, text_baseline, self.caption_style))
        return commands


@dataclass(frozen=True)
class Bar(Block):
    """One horizontal bar of a chart. ``bar_width`` is precomputed by the
    composer against the largest sibling value."""
    label: str
    amount: str
    bar_width: float
    color: str
    label_style: TextStyle
    value_style: TextStyle
    label_width: float = 100

    def height(self) -> float:
        return BAR_HEIGHT + BAR_GAP

    def render(self, x, y, theme):
        baseline = y + (BAR_HEIGHT + self.label_style.size) / 2 - 1
        commands = [TextCommand(truncate(self.label, self.label_width - 6, self.label_style.size),
                                x, baseline, self.label_style)]
        bar_x = x + self.label_width
        if self.bar_width > 0:
            commands.append(RectCommand(bar_x, y, self.bar_width, BAR_HEIGHT,
                                        RectStyle(fill=self.color, radius=1)))
        commands.append(TextCommand(self.amount, bar_x + self.bar_width + 6, baseline, self.value_style))
        return commands


@dataclass(frozen=True)
class Column:
    label: str
    width: float
    align: str = 'left'


@dataclass(frozen=True)
class TableHeader(Block):
    """Header row of a fixed-column table."""
    columns: Tuple[Column, ...]
    style: TextStyle
    keep_with_next: float = TABLE_ROW_HEIGHT

    @property
    def width(self) -> float:
        return sum(column.width for column in self.columns)

    def height(self) -> float:
        return TABLE_HEADER_HEIGHT

    def render(self, x, y, theme):
        commands = [RectCommand(x, y, self.width, TABLE_HEADER_HEIGHT,
                                RectStyle(fill=theme.colors.TABLE_HEADER))]
        commands.extend(_cells(x, y, TABLE_HEADER_HEIGHT, self.columns,
                               [column.label for column in self.columns], self.style))
        return commands


@dataclass(frozen=True)
class TableRow(Block):
    """Body or total row of the table owned by ``header``."""
    header: TableHeader
    cells: Tuple[str, ...]
    position: int
    style: TextStyle
    detail: Optional[str] = None
    detail_style: Optional[TextStyle] = None
    zebra: bool = True
    total: bool = False

    def height(self) -> float:
        h = TABLE_ROW_HEIGHT
        if self.detail:
            h += TABLE_DETAIL_HEIGHT
        return h

    def render(self, x, y, theme):
        commands = []
        width = self.header.width
        if self.total:
            commands.append(RectCommand(x, y, width, self.height(), RectStyle(fill=theme.colors.GOLD)))
        elif self.zebra and self.position % 2 == 0:
            commands.append(RectCommand(x, y, width, self.height(), RectStyle(fill=theme.colors.ZEBRA)))
        commands.extend(_cells(x, y, TABLE_ROW_HEIGHT, self.header.columns, self.cells, self.style))
        if self.detail:
            indent = self.header.columns[0].width
            detail_style = self.detail_style or self.style
            text = truncate(self.detail, width - indent - CELL_PADDING, detail_style.size)
            baseline = y + TABLE_ROW_HEIGHT + detail_style.size
            commands.append(TextCommand(text, x + indent + CELL_PADDING, baseline, detail_style))
        return commands


def _cells(x, y, row_height, columns, values, style) -> List[TextCommand]:
    commands = []
    baseline = y + (row_height + style.size) / 2 - 1
    col_x = x
    for column, value in zip(columns, values):
        inner = column.width - 2 * CELL_PADDING
        text = truncate(str(value), inner, style.size)
        commands.append(TextCommand(text, _aligned_x(col_x + CELL_PADDING, inner, column.align),
                                    baseline, style, align=column.align))
        col_x += column.width
    return commands


@dataclass(frozen=True)
class Separator(Block):
    width: float
    color: str
    thickness: float = 0.5
    space_before: float = 4
    space_after: float = 4

    def height(self) -> float:
        return self.space_before + self.thickness + self.space_after

    def render(self, x, y, theme):
        return [RectCommand(x, y + self.space_before, self.width, self.thickness,
                            RectStyle(fill=self.color))]


@dataclass(frozen=True)
class Spacer(Block):
    size: float

    def height(self) -> float:
        return self.size

    def render(self, x, y, theme):
        return []


@dataclass(frozen=True)
class PageBreak(Block):
    """Starts the next placed block on a fresh page."""

    def height(self) -> float:
        return 0

    def render(self, x, y, theme):
        return []


def _decodable(data: bytes) -> bool:
    try:
        width, height = ImageReader(BytesIO(data)).getSize()
    except Exception as e:
        logger.warning(f"Logo image could not be decoded, using text fallback: {e}")
        return False
    return width > 0 and height > 0


@dataclass(frozen=True)
class Logo(Block):
    """Optional image. Falls back to a text label in the same box when the
    image is missing or does not decode."""
    data: Optional[bytes]
    width: float
    box_height: float
    fallback_label: str
    fallback_style: TextStyle

    def height(self) -> float:
        return self.box_height

    def render(self, x, y, theme):
        if self.data and _decodable(self.data):
            return [ImageCommand(self.data, x, y, self.width, self.box_height, name='logo')]
        baseline = y + (self.box_height + self.fallback_style.size) / 2 - 1
        return [TextCommand(self.fallback_label, x, baseline, self.fallback_style)]
