"""
Credit Report Generator
=======================
Generates paginated PDF credit reports from aggregated credit data.

Rendering runs in two phases:
- Layout: every section's blocks stream through one FlowWriter, producing
  pages with body content only. The page count is known only at the end.
- Chrome: a second pass over the finished pages stamps the header and the
  "Page i of N" footer into the margins. The cover page has no chrome.

Integrity violations abort the render before any layout happens. A missing
or broken logo degrades to a text label and never fails the report.
"""

import logging
import os
import re
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple, Union

from draw_commands import RectCommand, TextCommand
from flow_writer import FlowWriter, Page
from layout_blocks import Block
from pdf_backend import DrawingBackend, ReportLabBackend
from report_errors import BackendWriteError, ConfigurationError, ReportError
from report_format import format_datetime
from report_geometry import (
    DEFAULT_GEOMETRY, FOOTER_NOTE_Y, FOOTER_RULE_Y, FOOTER_TEXT_Y,
    HEADER_RULE_Y, HEADER_TEXT_Y, PageGeometry,
)
from report_models import EntityInfo, Record, ReportData, check_integrity
from report_sections import SectionContext, compose_sections
from report_theme import DEFAULT_THEME, RectStyle, ReportTheme
from text_fitter import truncate

logger = logging.getLogger("credit-report")

DEFAULT_TITLE = "TAX CREDIT REPORT"
DEFAULT_BRAND = "Credit Analysis"
FOOTER_DISCLAIMER = ("Estimates for decision support only. Validate with a qualified "
                     "accountant before any recovery filing.")


@dataclass
class ReportConfig:
    """Presentation settings for one render."""
    title: str = DEFAULT_TITLE
    brand_name: str = DEFAULT_BRAND
    footer_disclaimer: str = FOOTER_DISCLAIMER
    max_rows_per_category: int = 15
    max_annex_rows: int = 5000
    top_recommendations: int = 3
    category_sort_key: Optional[Callable[[Record], Any]] = None  # None keeps input order
    contact_lines: Tuple[str, ...] = ()
    geometry: PageGeometry = DEFAULT_GEOMETRY

    def __post_init__(self):
        for name in ('max_rows_per_category', 'max_annex_rows'):
            if getattr(self, name) < 1:
                raise ConfigurationError(f"{name} must be at least 1, got {getattr(self, name)}")
        if self.top_recommendations < 0:
            raise ConfigurationError(f"top_recommendations cannot be negative, got {self.top_recommendations}")

    @classmethod
    def from_env(cls, **overrides) -> 'ReportConfig':
        """Build a config from CREDIT_REPORT_* environment variables."""
        values: Dict[str, Any] = {}
        if os.getenv("CREDIT_REPORT_MAX_ROWS"):
            values['max_rows_per_category'] = _env_int("CREDIT_REPORT_MAX_ROWS")
        if os.getenv("CREDIT_REPORT_MAX_ANNEX_ROWS"):
            values['max_annex_rows'] = _env_int("CREDIT_REPORT_MAX_ANNEX_ROWS")
        if os.getenv("CREDIT_REPORT_BRAND"):
            values['brand_name'] = os.getenv("CREDIT_REPORT_BRAND")
        values.update(overrides)
        return cls(**values)


def _env_int(name: str) -> int:
    raw = os.getenv(name, "")
    try:
        return int(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be an integer, got {raw!r}") from None


@dataclass(frozen=True)
class Document:
    """A fully laid out report. Immutable once returned by ``render``."""
    id: str
    generated_at: datetime
    period_start: date
    period_end: date
    subject: EntityInfo
    pages: Tuple[Page, ...]
    geometry: PageGeometry = DEFAULT_GEOMETRY

    @property
    def page_count(self) -> int:
        return len(self.pages)


# ─── Phase 1: content layout ──────────────────────────────────────────────────

def layout_pages(
    blocks: Sequence[Block],
    geometry: PageGeometry = DEFAULT_GEOMETRY,
    theme: ReportTheme = DEFAULT_THEME
) -> List[Page]:
    """Stream blocks through a fresh FlowWriter. Pages carry no chrome."""
    writer = FlowWriter(geometry, theme)
    for block in blocks:
        writer.place(block)
    return writer.finish()


# ─── Phase 2: chrome stamping ─────────────────────────────────────────────────

def _page_header(subject_name: str, report_id: str, geometry: PageGeometry, theme: ReportTheme) -> List:
    name_style = theme.style('small_bold')
    id_style = theme.style('small')
    half = geometry.content_width / 2
    return [
        TextCommand(truncate(subject_name, half, name_style.size), geometry.content_left,
                    HEADER_TEXT_Y, name_style),
        TextCommand(truncate(report_id, half, id_style.size), geometry.content_right,
                    HEADER_TEXT_Y, id_style, align='right'),
        RectCommand(geometry.content_left, HEADER_RULE_Y, geometry.content_width, 0.8,
                    RectStyle(fill=theme.colors.GOLD)),
    ]


def _page_footer(number: int, total: int, generated_at: datetime, disclaimer: str,
                 geometry: PageGeometry, theme: ReportTheme) -> List:
    small = theme.style('small')
    tiny = theme.style('tiny')
    return [
        RectCommand(geometry.content_left, FOOTER_RULE_Y, geometry.content_width, 0.5,
                    RectStyle(fill=theme.colors.MUTED)),
        TextCommand(f"Generated on {format_datetime(generated_at)}", geometry.content_left,
                    FOOTER_TEXT_Y, tiny),
        TextCommand(f"Page {number} of {total}", geometry.content_right, FOOTER_TEXT_Y,
                    small, align='right'),
        TextCommand(truncate(disclaimer, geometry.content_width, tiny.size),
                    geometry.content_left + geometry.content_width / 2, FOOTER_NOTE_Y,
                    tiny, align='center'),
    ]


def stamp_chrome(
    pages: Sequence[Page],
    subject_name: str,
    report_id: str,
    generated_at: datetime,
    disclaimer: str = FOOTER_DISCLAIMER,
    geometry: PageGeometry = DEFAULT_GEOMETRY,
    theme: ReportTheme = DEFAULT_THEME
) -> List[Page]:
    """Return new pages with header and footer drawn in the margins.

    Body commands and placements are copied untouched. The cover page
    (index 0) is returned without chrome.
    """
    total = len(pages)
    stamped = []
    for page in pages:
        chrome = []
        if page.index > 0:
            chrome = (_page_header(subject_name, report_id, geometry, theme)
                      + _page_footer(page.index + 1, total, generated_at, disclaimer, geometry, theme))
        stamped.append(Page(page.index, list(page.placements), list(page.commands), chrome))
    return stamped


# ─── Public API ───────────────────────────────────────────────────────────────

def render(
    data: Union[ReportData, Dict[str, Any]],
    logo: Optional[bytes] = None,
    config: Optional[ReportConfig] = None,
    generated_at: Optional[datetime] = None,
    theme: ReportTheme = DEFAULT_THEME
) -> Document:
    """
    Lay out a credit report.

    Args:
        data: Report data, or a dict validated into ReportData
        logo: Cover logo image bytes; None renders the text fallback
        config: Presentation settings (defaults to ReportConfig())
        generated_at: Generation timestamp (defaults to now)
        theme: Palette and text styles

    Returns:
        The finished Document

    Raises:
        DataIntegrityError: totals do not add up
        LayoutError: a block cannot fit on an empty page
    """
    if not isinstance(data, ReportData):
        data = ReportData.model_validate(data)
    check_integrity(data)

    config = config or ReportConfig()
    generated_at = generated_at or datetime.now()
    report_id = data.report_id or f"RPT-{generated_at.strftime('%Y%m%d%H%M%S')}"
    geometry = config.geometry

    ctx = SectionContext(config, theme, geometry, report_id, generated_at, logo)
    pages = layout_pages(compose_sections(data, ctx), geometry, theme)
    pages = stamp_chrome(pages, data.subject.legal_name, report_id, generated_at,
                         config.footer_disclaimer, geometry, theme)

    logger.info(f"Report {report_id} rendered: {len(data.records)} records on {len(pages)} pages")
    return Document(
        id=report_id,
        generated_at=generated_at,
        period_start=data.period_start,
        period_end=data.period_end,
        subject=data.subject,
        pages=tuple(pages),
        geometry=geometry,
    )


def export_pdf(document: Document, backend: Optional[DrawingBackend] = None) -> bytes:
    """Replay every page onto the backend and return the serialized bytes."""
    if backend is None:
        backend = ReportLabBackend(document.geometry, title=f"Credit Report {document.id}",
                                   author=document.subject.legal_name)
    try:
        for page in document.pages:
            backend.new_page(page.index)
            for command in page.all_commands:
                command.apply(backend)
            backend.save_page()
        return backend.serialize()
    except ReportError:
        raise
    except Exception as e:
        logger.error(f"Backend failed writing report {document.id}: {e}", exc_info=True)
        raise BackendWriteError(f"backend could not write report {document.id}: {e}") from e


def suggested_filename(document: Document) -> str:
    safe_id = re.sub(r'[^A-Za-z0-9_-]', '_', document.id)
    return f"Credit_Report_{safe_id}_{document.generated_at.strftime('%Y%m%d')}.pdf"


class CreditReportGenerator:
    """
    Generates credit report PDFs with a fixed configuration and theme.

    The generator holds no per-report state; one instance can serve any
    number of renders.
    """

    def __init__(
        self,
        config: Optional[ReportConfig] = None,
        theme: ReportTheme = DEFAULT_THEME,
        backend_factory: Callable[[Document], DrawingBackend] = None
    ):
        self.config = config or ReportConfig()
        self.theme = theme
        self.backend_factory = backend_factory

    def render(self, data, logo: Optional[bytes] = None, generated_at: Optional[datetime] = None) -> Document:
        return render(data, logo=logo, config=self.config, generated_at=generated_at, theme=self.theme)

    def generate_report(self, data, logo: Optional[bytes] = None,
                        generated_at: Optional[datetime] = None) -> Tuple[bytes, str]:
        """Render and export. Returns (pdf bytes, suggested filename)."""
        document = self.render(data, logo=logo, generated_at=generated_at)
        backend = self.backend_factory(document) if self.backend_factory else None
        return export_pdf(document, backend), suggested_filename(document)


# Convenience function for generating reports
def generate_credit_report(
    data: Union[ReportData, Dict[str, Any]],
    logo: Optional[bytes] = None,
    config: Optional[ReportConfig] = None,
    generated_at: Optional[datetime] = None
) -> bytes:
    """
    Generate a credit report PDF.

    Args:
        data: Report data or an equivalent dict
        logo: Optional cover logo bytes
        config: Presentation settings
        generated_at: Generation timestamp

    Returns:
        PDF bytes
    """
    return export_pdf(render(data, logo=logo, config=config, generated_at=generated_at))


if __name__ == "__main__":
    from report_samples import sample_report_data

    pdf = generate_credit_report(sample_report_data())
    with open('sample_credit_report.pdf', 'wb') as f:
        f.write(pdf)
    print(f"Generated sample_credit_report.pdf ({len(pdf)} bytes)")
