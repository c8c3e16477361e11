"""
Flow Writer
===========
The cursor that places blocks onto pages.

The writer is the only mutable state of a layout run: it owns the current
page and the vertical position ``y``, and ``place`` is the only operation
that advances ``y`` or opens a page. Pages are opened lazily, so a layout
never ends with a trailing empty page.
"""

import logging
from dataclasses import dataclass, field
from typing import List, Optional

from layout_blocks import Block, PageBreak, TableHeader, TableRow
from report_errors import LayoutError
from report_geometry import DEFAULT_GEOMETRY, PageGeometry
from report_theme import DEFAULT_THEME, ReportTheme

logger = logging.getLogger("credit-report.layout")


@dataclass(frozen=True)
class Placement:
    block: Block
    top: float
    height: float

    @property
    def bottom(self) -> float:
        return self.top + self.height


@dataclass
class Page:
    index: int
    placements: List[Placement] = field(default_factory=list)
    commands: List = field(default_factory=list)
    chrome: List = field(default_factory=list)

    @property
    def all_commands(self) -> List:
        return self.commands + self.chrome


class FlowWriter:
    """Places blocks top-down within the content region, breaking pages
    when a block would cross the bottom margin."""

    def __init__(self, geometry: PageGeometry = DEFAULT_GEOMETRY, theme: ReportTheme = DEFAULT_THEME):
        self.geometry = geometry
        self.theme = theme
        self.pages: List[Page] = []
        self.y = geometry.content_top
        self._break_pending = False

    @property
    def page(self) -> Optional[Page]:
        return self.pages[-1] if self.pages else None

    @property
    def page_index(self) -> int:
        return len(self.pages) - 1

    def _new_page(self) -> Page:
        page = Page(index=len(self.pages))
        self.pages.append(page)
        self.y = self.geometry.content_top
        self._break_pending = False
        logger.debug(f"Opened page {page.index + 1}")
        return page

    def _page_has_content(self) -> bool:
        return self.page is not None and bool(self.page.placements)

    def _draw(self, block: Block, height: float) -> None:
        x = self.geometry.content_left
        self.page.commands.extend(block.render(x, self.y, self.theme))
        self.page.placements.append(Placement(block, self.y, height))
        self.y += height

    def place(self, block: Block) -> None:
        if isinstance(block, PageBreak):
            if self._page_has_content():
                self._break_pending = True
            return

        if self.page is None or self._break_pending:
            self._new_page()

        height = block.height()
        if height > self.geometry.content_height:
            if block.splittable:
                if not self._place_split(block):
                    self._new_page()
                    self._place_split(block)
                return
            raise LayoutError(
                f"{type(block).__name__} of height {height:.1f}pt cannot fit a content "
                f"region of {self.geometry.content_height:.1f}pt"
            )

        if self._page_has_content() and self.geometry.exceeds_bottom(self.y, height + block.keep_with_next):
            if block.splittable and self._place_split(block):
                return
            self._new_page()

        if isinstance(block, TableRow) and not self._page_has_header(block.header):
            self._draw(block.header, block.header.height())
        self._draw(block, height)

    def _place_split(self, block: Block) -> bool:
        """Fill the current page with the head of ``block`` and carry the
        tail forward. Returns False when not even one line fits."""
        parts = block.split(self.geometry.remaining_space(self.y))
        if parts is None:
            if not self._page_has_content():
                raise LayoutError(f"{type(block).__name__} cannot be split to fit an empty page")
            return False
        head, tail = parts
        self._draw(head, head.height())
        self._new_page()
        self.place(tail)
        return True

    def _page_has_header(self, header: TableHeader) -> bool:
        """True if ``header`` was already drawn on the current page."""
        return any(placement.block is header for placement in self.page.placements)

    def finish(self) -> List[Page]:
        logger.debug(f"Layout finished with {len(self.pages)} page(s)")
        return self.pages
