# Tests configuration for the credit report engine
import base64
import sys
from datetime import date, datetime
from pathlib import Path

import pytest

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from pdf_backend import DrawingBackend
from report_models import (
    Category, ConfidenceLevel, ConfidenceTotals, EntityInfo, Provenance,
    Record, ReportData, RiskLevel, Totals,
)

GENERATED_AT = datetime(2024, 7, 15, 10, 30)

# 1x1 transparent PNG
PNG_PIXEL = base64.b64decode(
    "iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAQAAAC1HAwCAAAAC0lEQVR42mNkYAAAAAYAAjCB0C8AAAAASUVORK5CYII="
)


def build_record(number, credit_value, confidence=ConfidenceLevel.HIGH, **kwargs):
    values = dict(
        document_key="35240112345678000190550010000012341000012345",
        document_number=str(number),
        issuer_id="12345678000190",
        issuer_name="Distribuidora Alfa Ltda",
        issue_date=date(2024, 3, 1),
        item_code="3004.90.99",
        operation_code="5405",
        tax_situation_code="04",
        rate=9.25,
        confidence_level=confidence,
        credit_value=credit_value,
        recommended_action="File PER/DCOMP",
    )
    values.update(kwargs)
    return Record(**values)


def build_category(name, records, **kwargs):
    kwargs.setdefault('legal_basis', "Law 10,147/2000")
    kwargs.setdefault('risk_level', RiskLevel.LOW)
    return Category(
        name=name,
        total_value=round(sum(record.credit_value for record in records), 2),
        records=records,
        **kwargs
    )


def build_report(categories, **kwargs):
    """Consistent ReportData: totals and tiers derived from the records."""
    tiers = {level: 0.0 for level in ConfidenceLevel}
    for category in categories:
        for record in category.records:
            tiers[record.confidence_level] += record.credit_value
    values = dict(
        report_id="RPT-TEST-001",
        period_start=date(2024, 1, 1),
        period_end=date(2024, 6, 30),
        subject=EntityInfo(legal_name="Farmacia Teste Ltda", tax_id="11222333000181", regime="presumido"),
        totals=Totals(
            grand_total=round(sum(category.total_value for category in categories), 2),
            by_confidence_tier=ConfidenceTotals(
                high=tiers[ConfidenceLevel.HIGH],
                medium=tiers[ConfidenceLevel.MEDIUM],
                low=tiers[ConfidenceLevel.LOW],
            ),
        ),
        categories=categories,
        recommendations=["Recover monophasic PIS/COFINS", "Review ICMS-ST base"],
        disclaimers=["Test disclaimer"],
        provenance=Provenance(documents_analyzed=10, rules_applied=4),
    )
    values.update(kwargs)
    return ReportData(**values)


def many_records(count, start_value=100.0):
    return [build_record(1000 + n, start_value + n) for n in range(count)]


def all_placements(document):
    """(page, placement) pairs across the whole document, in order."""
    return [(page, placement) for page in document.pages for placement in page.placements]


class RecordingBackend(DrawingBackend):
    """Records every primitive call instead of drawing."""

    def __init__(self):
        self.calls = []

    def new_page(self, index):
        self.calls.append(('new_page', index))

    def draw_text(self, text, x, y, style, align='left'):
        self.calls.append(('text', text, x, y, align))

    def draw_rect(self, x, y, width, height, style):
        self.calls.append(('rect', x, y, width, height))

    def add_image(self, data, x, y, width, height):
        self.calls.append(('image', x, y, width, height))

    def save_page(self):
        self.calls.append(('save_page',))

    def serialize(self):
        return b'recorded'


@pytest.fixture
def generated_at():
    return GENERATED_AT


@pytest.fixture
def scenario_report():
    """A=1000 over 3 records, B=500 over 2 records, C=0 without records."""
    category_a = build_category("A", [
        build_record(1, 500.0),
        build_record(2, 300.0, ConfidenceLevel.MEDIUM),
        build_record(3, 200.0, ConfidenceLevel.LOW),
    ])
    category_b = build_category("B", [
        build_record(4, 350.0),
        build_record(5, 150.0, ConfidenceLevel.MEDIUM),
    ], risk_level=RiskLevel.MEDIUM)
    category_c = build_category("C", [], risk_level=RiskLevel.NONE)
    return build_report([category_a, category_b, category_c])


@pytest.fixture
def recording_backend():
    return RecordingBackend()
