"""
Report Sections
===============
Section composers: pure functions from ReportData to an ordered list of
blocks, one per logical part of the credit report.

Composers never see pages or coordinates. They only decide what goes into
each section and in which order; the FlowWriter decides where it lands.

Sections, in document order:
- Cover
- Executive Summary (totals, confidence breakdown, distribution, bar chart)
- Methodology (data provenance, analysis process, confidence criteria)
- Detailed Category Analysis (one sub-section per category)
- Recommendations
- Assumptions, Limitations and Legal Notice
- Traceability Annex (every record, by credit value)
- Contact (only when contact lines are configured)
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional, Sequence, Tuple

from reportlab.lib.units import mm

from layout_blocks import (
    Badge, Bar, Block, Card, Column, Logo, PageBreak, Paragraph, Separator,
    Spacer, TableHeader, TableRow, TextLine, TABLE_DETAIL_HEIGHT, TABLE_ROW_HEIGHT,
)
from report_format import (
    format_currency, format_date, format_document_key, format_percent,
    format_tax_id, regime_name,
)
from report_geometry import PageGeometry
from report_models import Category, ConfidenceLevel, Record, ReportData
from report_theme import ReportTheme

logger = logging.getLogger("credit-report.sections")

HEADING_KEEP = 40
# summary line, risk badge, table header and the first row
CATEGORY_HEADING_KEEP = 100
BAR_LABEL_WIDTH = 110
BAR_VALUE_ROOM = 90

ANALYSIS_STEPS = (
    ("Collection", "Electronic invoices (NF-e XML) and fiscal bookkeeping files for the "
                   "period were imported and deduplicated by access key."),
    ("Classification", "Each item was classified by product code, operation code (CFOP) "
                       "and tax situation code (CST) against the current tax tables."),
    ("Rule application", "Credit rules were applied per tax and per item, considering the "
                         "tax regime of the company and of each supplier."),
    ("Quantification", "Credit values were computed per document and aggregated by "
                       "category, keeping every value traceable to its source document."),
    ("Review", "Each finding received a confidence level according to the quality of "
               "the source data and the legal certainty of the applied rule."),
)

CONFIDENCE_CRITERIA = {
    ConfidenceLevel.HIGH: "Complete document data and a rule with settled legal "
                          "understanding. Ready for recovery.",
    ConfidenceLevel.MEDIUM: "Consistent data, but the rule depends on a factual check "
                            "or on an interpretation that should be confirmed.",
    ConfidenceLevel.LOW: "Incomplete data or a disputed rule. Requires specialist review "
                         "before any recovery filing.",
}

LEGAL_NOTICE = (
    "The values in this report are estimates computed from the documents supplied "
    "for the analyzed period. They do not replace a formal tax audit.",
    "Recovery of any credit depends on validation by a qualified accountant or tax "
    "lawyer, and on the filing of the corresponding ancillary obligations.",
    "Records with missing or invalid access keys were kept for traceability but may "
    "not be accepted by the tax authorities without supporting evidence.",
    "Tax legislation changes frequently. The rules applied reflect the understanding "
    "in force on the date this report was generated.",
    "This report is confidential and intended exclusively for the analyzed company "
    "and its advisors.",
)


@dataclass(frozen=True)
class SectionContext:
    """Everything a composer needs besides the report data."""
    config: 'ReportConfig'
    theme: ReportTheme
    geometry: PageGeometry
    report_id: str
    generated_at: datetime
    logo: Optional[bytes] = None

    @property
    def width(self) -> float:
        return self.geometry.content_width

    def heading(self, text: str, level: str = 'h1', keep_with_next: float = HEADING_KEEP) -> TextLine:
        return TextLine(text, self.theme.style(level), self.width, space_after=4,
                        keep_with_next=keep_with_next)

    def line(self, text: str, style: str = 'body', space_after: float = 2, align: str = 'left') -> TextLine:
        return TextLine(text, self.theme.style(style), self.width, align=align, space_after=space_after)

    def paragraph(self, text: str, style: str = 'body', indent: float = 0, space_after: float = 6) -> Paragraph:
        return Paragraph(text, self.theme.style(style), self.width, indent=indent, space_after=space_after)

    def card(self, title: str, **kwargs) -> Card:
        kwargs.setdefault('fill', self.theme.colors.CARD)
        kwargs.setdefault('accent', self.theme.colors.NAVY)
        kwargs.setdefault('space_after', 10)
        return Card(title, self.width, self.theme.style('small_bold'), self.theme.style('body_dark'), **kwargs)

    def separator(self) -> Separator:
        return Separator(self.width, self.theme.colors.BORDER, space_before=6, space_after=10)

    def table_header(self, columns: Sequence[Tuple[str, float, str]], keep_with_next: float = TABLE_ROW_HEIGHT) -> TableHeader:
        """Build a header from ``(label, share of width, align)`` triples."""
        cols = tuple(Column(label, share * self.width, align) for label, share, align in columns)
        return TableHeader(cols, self.theme.style('table_header'), keep_with_next=keep_with_next)

    def row(self, header: TableHeader, cells, position: int, detail: Optional[str] = None) -> TableRow:
        return TableRow(header, tuple(cells), position, self.theme.style('table_cell'),
                        detail=detail, detail_style=self.theme.style('table_detail'))

    def total_row(self, header: TableHeader, cells, position: int) -> TableRow:
        return TableRow(header, tuple(cells), position, self.theme.style('table_total'), total=True)


def _period(data: ReportData) -> str:
    return f"{format_date(data.period_start)} to {format_date(data.period_end)}"


def _rate(record: Record) -> str:
    return f"{record.rate:.2f}%" if record.rate is not None else '-'


def _document_value(record: Record) -> str:
    return format_currency(record.document_value) if record.document_value is not None else '-'


def overflow_notice(ctx: SectionContext, omitted: int) -> TextLine:
    return ctx.line(f"+ {omitted} additional records not shown", style='small', space_after=4)


def build_cover(data: ReportData, ctx: SectionContext) -> List[Block]:
    """Cover page: logo, title, analyzed company and report details."""
    elements = []
    config = ctx.config

    elements.append(Logo(ctx.logo, 50 * mm, 18 * mm, config.brand_name, ctx.theme.style('h2')))
    elements.append(Spacer(30 * mm))
    elements.append(ctx.line(config.title, style='title', space_after=4))
    elements.append(ctx.line("Tax credit recovery analysis", style='subtitle', space_after=20))

    subject = data.subject
    company = [('Legal name', subject.legal_name)]
    if subject.trade_name:
        company.append(('Trade name', subject.trade_name))
    company.append(('Tax id', format_tax_id(subject.tax_id)))
    company.append(('Tax regime', regime_name(subject.regime)))
    elements.append(ctx.card('ANALYZED COMPANY', fields=tuple(company), space_after=16))

    details = (
        ('Report ID', ctx.report_id),
        ('Issued on', format_date(ctx.generated_at)),
        ('Period', _period(data)),
        ('Documents', str(data.provenance.documents_analyzed)),
    )
    elements.append(ctx.card('REPORT DETAILS', fields=details, accent=ctx.theme.colors.GOLD))

    elements.append(Spacer(30 * mm))
    elements.append(ctx.separator())
    elements.append(ctx.line(f"{config.brand_name} | Confidential", style='small', align='center'))
    elements.append(PageBreak())
    return elements


def _distribution_table(data: ReportData, ctx: SectionContext) -> List[Block]:
    elements = []
    header = ctx.table_header((
        ('Category', 0.38, 'left'),
        ('Legal basis', 0.27, 'left'),
        ('Records', 0.10, 'right'),
        ('Value', 0.15, 'right'),
        ('Share', 0.10, 'right'),
    ))
    grand_total = data.totals.grand_total
    elements.append(header)
    for position, category in enumerate(data.categories):
        elements.append(ctx.row(header, (
            category.name,
            category.legal_basis or '-',
            str(len(category.records)),
            format_currency(category.total_value),
            format_percent(category.total_value, grand_total),
        ), position))
    elements.append(ctx.total_row(header, (
        'TOTAL', '', str(len(data.records)), format_currency(grand_total), '100.0%' if grand_total else '0.0%',
    ), len(data.categories)))
    return elements


def category_bars(categories: Sequence[Category], ctx: SectionContext) -> List[Bar]:
    """Bar chart normalised against the largest category total."""
    max_value = max((category.total_value for category in categories), default=0)
    max_bar_width = ctx.width - BAR_LABEL_WIDTH - BAR_VALUE_ROOM
    bars = []
    for position, category in enumerate(categories):
        value = max(category.total_value, 0)
        bar_width = value / max_value * max_bar_width if max_value > 0 else 0
        bars.append(Bar(category.name, format_currency(category.total_value), bar_width,
                        ctx.theme.category_color(position), ctx.theme.style('small'),
                        ctx.theme.style('small_bold'), label_width=BAR_LABEL_WIDTH))
    return bars


def build_executive_summary(data: ReportData, ctx: SectionContext) -> List[Block]:
    elements = []
    totals = data.totals

    elements.append(ctx.heading("1. EXECUTIVE SUMMARY"))
    elements.append(ctx.paragraph(
        f"This report presents the tax credits identified for {data.subject.legal_name} "
        f"in the period {_period(data)}, based on {data.provenance.documents_analyzed} "
        f"analyzed documents. Every value is traceable to its source document in the annex."
    ))

    savings = None
    if totals.annual_savings_min is not None and totals.annual_savings_max is not None:
        savings = (f"Estimated annual savings: {format_currency(totals.annual_savings_min)} "
                   f"to {format_currency(totals.annual_savings_max)}")
    elements.append(ctx.card(
        'TOTAL RECOVERABLE CREDITS',
        value=format_currency(totals.grand_total),
        value_style=ctx.theme.style('value'),
        body=savings,
        accent=ctx.theme.colors.GREEN,
    ))

    elements.append(ctx.heading("Confidence breakdown", level='h3'))
    for level, amount in totals.by_confidence_tier.as_dict().items():
        label, color = ctx.theme.confidence(level)
        elements.append(Badge(
            f"{label} confidence", label.upper(), color,
            ctx.theme.style('body_dark'), ctx.theme.style('badge'),
            note=f"{format_currency(amount)} ({format_percent(amount, totals.grand_total)})",
        ))
    elements.append(Spacer(8))

    elements.append(ctx.heading("Distribution by category", level='h3'))
    if data.categories:
        elements.extend(_distribution_table(data, ctx))
        elements.append(Spacer(12))
        elements.append(ctx.heading("Credits by category", level='h3'))
        elements.extend(category_bars(data.categories, ctx))
    else:
        elements.append(ctx.line("No credits were identified in the analyzed period."))

    top = data.recommendations[:ctx.config.top_recommendations]
    if top:
        elements.append(Spacer(8))
        elements.append(ctx.heading("Priority recommendations", level='h3'))
        for i, text in enumerate(top, 1):
            elements.append(ctx.paragraph(f"{i}. {text}", space_after=3))

    elements.append(PageBreak())
    return elements


def build_methodology(data: ReportData, ctx: SectionContext) -> List[Block]:
    elements = []

    elements.append(ctx.heading("2. METHODOLOGY"))
    elements.append(ctx.heading("Data sources", level='h3'))
    elements.append(ctx.card('DATA PROVENANCE', fields=(
        ('Documents', str(data.provenance.documents_analyzed)),
        ('Suppliers', str(data.suppliers_analyzed)),
        ('Rules applied', str(data.provenance.rules_applied)),
        ('Period', _period(data)),
    )))

    elements.append(ctx.heading("Analysis process", level='h3'))
    for i, (step, description) in enumerate(ANALYSIS_STEPS, 1):
        elements.append(ctx.line(f"{i}. {step}", style='body_bold', space_after=0))
        elements.append(ctx.paragraph(description, indent=12, space_after=4))

    elements.append(ctx.heading("Confidence criteria", level='h3'))
    for level in ConfidenceLevel:
        label, color = ctx.theme.confidence(level)
        elements.append(Badge(f"{label} confidence", label.upper(), color,
                              ctx.theme.style('body_dark'), ctx.theme.style('badge'), space_after=2))
        elements.append(ctx.paragraph(CONFIDENCE_CRITERIA[level], style='small', indent=12))

    elements.append(PageBreak())
    return elements


CATEGORY_COLUMNS = (
    ('Doc. no.', 0.11, 'left'),
    ('Issuer', 0.25, 'left'),
    ('Date', 0.11, 'left'),
    ('Item', 0.10, 'left'),
    ('CFOP', 0.07, 'left'),
    ('CST', 0.06, 'left'),
    ('Rate', 0.08, 'right'),
    ('Conf.', 0.09, 'left'),
    ('Credit', 0.13, 'right'),
)


def _category_table(category: Category, ctx: SectionContext) -> List[Block]:
    elements = []
    records = list(category.records)
    if ctx.config.category_sort_key is not None:
        records.sort(key=ctx.config.category_sort_key)

    max_rows = ctx.config.max_rows_per_category
    shown = records[:max_rows]
    header = ctx.table_header(CATEGORY_COLUMNS)
    elements.append(header)
    for position, record in enumerate(shown):
        label, _ = ctx.theme.confidence(record.confidence_level)
        elements.append(ctx.row(header, (
            record.document_number,
            record.issuer_name or record.issuer_id,
            format_date(record.issue_date),
            record.item_code,
            record.operation_code,
            record.tax_situation_code,
            _rate(record),
            label,
            format_currency(record.credit_value),
        ), position))

    omitted = len(records) - len(shown)
    if omitted > 0:
        logger.info(f"Category '{category.name}': showing {len(shown)} of {len(records)} records")
        elements.append(overflow_notice(ctx, omitted))
    return elements


def build_category_analysis(data: ReportData, ctx: SectionContext) -> List[Block]:
    elements = []

    elements.append(ctx.heading("3. DETAILED CATEGORY ANALYSIS"))
    if not data.categories:
        elements.append(ctx.line("No categories were identified in the analyzed period."))

    for i, category in enumerate(data.categories, 1):
        elements.append(ctx.heading(f"3.{i} {category.name} credits", level='h2',
                                   keep_with_next=CATEGORY_HEADING_KEEP))
        elements.append(ctx.line(
            f"Total identified: {format_currency(category.total_value)} | "
            f"{len(category.records)} documents",
            style='body_bold', space_after=4,
        ))
        if category.legal_basis:
            elements.append(ctx.line(f"Legal basis: {category.legal_basis}", space_after=2))
        if category.legal_basis_description:
            elements.append(ctx.paragraph(category.legal_basis_description, style='small', indent=12))

        label, color = ctx.theme.risk(category.risk_level)
        elements.append(Badge("Risk level:", label.upper(), color,
                              ctx.theme.style('body_dark'), ctx.theme.style('badge'),
                              caption_width=70, space_after=8))

        if category.records:
            elements.extend(_category_table(category, ctx))
        else:
            elements.append(ctx.line("No records for this category.", style='small'))
        elements.append(Spacer(14))

    elements.append(PageBreak())
    return elements


def build_recommendations(data: ReportData, ctx: SectionContext) -> List[Block]:
    elements = []

    elements.append(ctx.heading("4. RECOMMENDATIONS AND NEXT STEPS"))
    if data.recommendations:
        for i, text in enumerate(data.recommendations, 1):
            elements.append(ctx.paragraph(f"{i}. {text}", style='body_dark', space_after=5))
    else:
        elements.append(ctx.line("No specific recommendations for this period."))

    elements.append(PageBreak())
    return elements


def build_disclaimers(data: ReportData, ctx: SectionContext) -> List[Block]:
    elements = []

    elements.append(ctx.heading("5. ASSUMPTIONS, LIMITATIONS AND LEGAL NOTICE"))
    for text in LEGAL_NOTICE:
        elements.append(ctx.paragraph(text))
    if data.disclaimers:
        elements.append(ctx.heading("Additional notes", level='h3'))
        for text in data.disclaimers:
            elements.append(ctx.paragraph(f"- {text}", indent=6))

    elements.append(PageBreak())
    return elements


ANNEX_COLUMNS = (
    ('#', 0.05, 'right'),
    ('Category', 0.12, 'left'),
    ('Doc. no.', 0.11, 'left'),
    ('Issuer', 0.16, 'left'),
    ('Date', 0.10, 'left'),
    ('Item', 0.08, 'left'),
    ('CFOP', 0.06, 'left'),
    ('Conf.', 0.08, 'left'),
    ('Doc. value', 0.12, 'right'),
    ('Credit', 0.12, 'right'),
)


def annex_records(data: ReportData) -> List[Tuple[str, Record]]:
    """(category name, record) pairs by credit value, largest first.
    Equal values keep their input order."""
    pairs = [(category.name, record) for category in data.categories for record in category.records]
    return sorted(pairs, key=lambda pair: -pair[1].credit_value)


def build_traceability_annex(data: ReportData, ctx: SectionContext) -> List[Block]:
    """One continuous table of every record, split across as many pages as
    needed. The FlowWriter repeats the header on each continuation page."""
    elements = []
    pairs = annex_records(data)

    elements.append(ctx.heading("6. TRACEABILITY ANNEX"))
    elements.append(ctx.heading("ANNEX A - DOCUMENT TRACEABILITY", level='h2'))
    elements.append(ctx.paragraph(
        f"The {len(pairs)} records below support every credit in this report, ordered "
        f"by credit value. Each line shows the access key and the recommended action."
    ))

    if not pairs:
        elements.append(ctx.line("No records to list."))
        elements.append(PageBreak())
        return elements

    header = ctx.table_header(ANNEX_COLUMNS, keep_with_next=TABLE_ROW_HEIGHT + TABLE_DETAIL_HEIGHT)
    shown = pairs[:ctx.config.max_annex_rows]
    elements.append(header)
    for position, (category_name, record) in enumerate(shown):
        label, _ = ctx.theme.confidence(record.confidence_level)
        detail = f"Key: {format_document_key(record.document_key)}"
        if record.recommended_action:
            detail += f" | Action: {record.recommended_action}"
        elements.append(ctx.row(header, (
            str(position + 1),
            category_name,
            record.document_number,
            record.issuer_name or record.issuer_id,
            format_date(record.issue_date),
            record.item_code,
            record.operation_code,
            label,
            _document_value(record),
            format_currency(record.credit_value),
        ), position, detail=detail))

    omitted = len(pairs) - len(shown)
    if omitted > 0:
        logger.info(f"Annex: showing {len(shown)} of {len(pairs)} records")
        elements.append(overflow_notice(ctx, omitted))

    elements.append(ctx.total_row(header, (
        '', 'TOTAL', '', f"{len(pairs)} documents", '', '', '', '', '',
        format_currency(sum(record.credit_value for _, record in pairs)),
    ), len(shown)))
    elements.append(Spacer(8))
    elements.append(ctx.paragraph(
        "Access keys can be validated on the national electronic invoice portal "
        "(www.nfe.fazenda.gov.br) to confirm the authenticity of each document.",
        style='tiny',
    ))
    elements.append(PageBreak())
    return elements


def build_contact(data: ReportData, ctx: SectionContext) -> List[Block]:
    lines = ctx.config.contact_lines
    if not lines:
        return []
    elements = [ctx.heading("Need help?", level='h2')]
    for text in lines:
        elements.append(ctx.line(text, style='body_dark'))
    return elements


SECTION_COMPOSERS = (
    build_cover,
    build_executive_summary,
    build_methodology,
    build_category_analysis,
    build_recommendations,
    build_disclaimers,
    build_traceability_annex,
    build_contact,
)


def compose_sections(data: ReportData, ctx: SectionContext) -> List[Block]:
    """Concatenate every section into one block stream."""
    blocks = []
    for composer in SECTION_COMPOSERS:
        blocks.extend(composer(data, ctx))
    return blocks
