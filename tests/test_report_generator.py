"""
Tests for the document composer: two-phase rendering, export and the
end-to-end report properties.
"""
import re

import pytest

from conftest import (
    GENERATED_AT, RecordingBackend, all_placements, build_category, build_report,
    many_records,
)
from draw_commands import RectCommand, TextCommand
from layout_blocks import Bar, Card, Spacer, TableHeader, TableRow, TextLine
from report_errors import BackendWriteError, ConfigurationError, DataIntegrityError
from report_generator import (
    CreditReportGenerator, ReportConfig, export_pdf, generate_credit_report,
    layout_pages, render, stamp_chrome, suggested_filename,
)
from report_geometry import DEFAULT_GEOMETRY
from report_models import ConfidenceTotals, Totals

EPS = 1e-6
geometry = DEFAULT_GEOMETRY


def chrome_texts(page):
    return [command.text for command in page.chrome if isinstance(command, TextCommand)]


class TestConservation:

    def test_summary_shows_grand_total(self, scenario_report):
        document = render(scenario_report, generated_at=GENERATED_AT)
        expected = "R$ 1.500,00"
        total = sum(category.total_value for category in scenario_report.categories)
        assert total == scenario_report.totals.grand_total
        cards = [p.block for _, p in all_placements(document)
                 if isinstance(p.block, Card) and p.block.title == 'TOTAL RECOVERABLE CREDITS']
        assert [card.value for card in cards] == [expected]
        summary_page = document.pages[1]
        assert expected in [c.text for c in summary_page.commands if isinstance(c, TextCommand)]


class TestNoOverlap:

    def test_body_stays_in_content_region(self, generated_at):
        report = build_report([
            build_category("Big", many_records(120)),
            build_category("Small", many_records(3, 50.0)),
        ])
        document = render(report, generated_at=generated_at)
        assert document.page_count > 3
        for page in document.pages:
            bottom = geometry.content_top
            for placement in page.placements:
                assert placement.top >= bottom - EPS
                assert placement.bottom <= geometry.content_bottom + EPS
                bottom = placement.bottom
            for command in page.commands:
                assert command.top >= geometry.content_top - EPS
                assert command.bottom <= geometry.content_bottom + EPS

    def test_chrome_stays_in_margins(self, scenario_report):
        document = render(scenario_report, generated_at=GENERATED_AT)
        for page in document.pages:
            for command in page.chrome:
                assert command.bottom <= geometry.content_top or command.top >= geometry.content_bottom


class TestTableContinuation:

    def test_category_table_header_repeats(self):
        report = build_report([build_category("Big", many_records(90))])
        config = ReportConfig(max_rows_per_category=200)
        document = render(report, config=config, generated_at=GENERATED_AT)

        pages_with_rows = {}
        for page, placement in all_placements(document):
            block = placement.block
            if isinstance(block, TableRow) and block.header.columns[0].label == 'Doc. no.':
                pages_with_rows.setdefault(page.index, block.header)
        assert len(pages_with_rows) > 1

        for index, header in sorted(pages_with_rows.items())[1:]:
            page = document.pages[index]
            assert page.placements[0].block is header

    def test_annex_is_one_continuous_table(self):
        report = build_report([build_category("Big", many_records(90))])
        document = render(report, generated_at=GENERATED_AT)
        headers = {id(p.block) for _, p in all_placements(document)
                   if isinstance(p.block, TableHeader) and p.block.columns[0].label == '#'}
        assert len(headers) == 1


class TestPageCount:

    def test_footer_reads_page_i_of_n(self):
        report = build_report([build_category("Big", many_records(60))])
        document = render(report, generated_at=GENERATED_AT)
        n = document.page_count
        assert n == len(document.pages)
        assert chrome_texts(document.pages[0]) == []
        for page in document.pages[1:]:
            footers = [t for t in chrome_texts(page) if t.startswith("Page ")]
            assert footers == [f"Page {page.index + 1} of {n}"]

    def test_header_names_subject_and_report(self, scenario_report):
        document = render(scenario_report, generated_at=GENERATED_AT)
        texts = chrome_texts(document.pages[1])
        assert "Farmacia Teste Ltda" in texts
        assert "RPT-TEST-001" in texts


class TestOverflowNotice:

    def test_max_rows_plus_five(self):
        max_rows = 15
        report = build_report([build_category("Big", many_records(max_rows + 5))])
        document = render(report, config=ReportConfig(max_rows_per_category=max_rows),
                          generated_at=GENERATED_AT)
        blocks = [p.block for _, p in all_placements(document)]
        category_rows = [i for i, block in enumerate(blocks)
                         if isinstance(block, TableRow) and block.header.columns[0].label == 'Doc. no.']
        assert len(category_rows) == max_rows
        notice = blocks[category_rows[-1] + 1]
        assert isinstance(notice, TextLine)
        assert re.search(r"\b5\b", notice.text)
        assert notice.text == "+ 5 additional records not shown"


class TestEndToEnd:

    def test_three_category_scenario(self, scenario_report):
        document = render(scenario_report, generated_at=GENERATED_AT)
        placements = all_placements(document)

        bars = [p.block for _, p in placements if isinstance(p.block, Bar)]
        assert [bar.label for bar in bars] == ["A", "B", "C"]
        visible = [bar.label for bar in bars
                   if any(isinstance(c, RectCommand) for c in bar.render(0, 0, None))]
        assert visible == ["A", "B"]

        annex_rows = [p.block for _, p in placements
                      if isinstance(p.block, TableRow) and not p.block.total
                      and p.block.header.columns[0].label == '#']
        assert len(annex_rows) == 3 + 2
        assert [row.cells[-1] for row in annex_rows] == [
            "R$ 500,00", "R$ 350,00", "R$ 300,00", "R$ 200,00", "R$ 150,00",
        ]

    def test_document_fields(self, scenario_report):
        document = render(scenario_report, generated_at=GENERATED_AT)
        assert document.id == "RPT-TEST-001"
        assert document.generated_at == GENERATED_AT
        assert document.subject.legal_name == "Farmacia Teste Ltda"
        assert isinstance(document.pages, tuple)

    def test_generated_id_when_missing(self, scenario_report):
        report = scenario_report.model_copy(update={'report_id': None})
        assert render(report, generated_at=GENERATED_AT).id == "RPT-20240715103000"

    def test_accepts_plain_dict(self, scenario_report):
        document = render(scenario_report.model_dump(mode='json'), generated_at=GENERATED_AT)
        assert document.id == "RPT-TEST-001"


class TestFallbackIdempotence:

    def test_same_bytes_without_logo(self, scenario_report):
        first = export_pdf(render(scenario_report, logo=None, generated_at=GENERATED_AT))
        second = export_pdf(render(scenario_report, logo=None, generated_at=GENERATED_AT))
        assert first == second

    def test_broken_logo_matches_missing_logo(self, scenario_report):
        missing = export_pdf(render(scenario_report, logo=None, generated_at=GENERATED_AT))
        broken = export_pdf(render(scenario_report, logo=b"\x89PNG broken", generated_at=GENERATED_AT))
        assert missing == broken


class TestFailures:

    def test_integrity_error_aborts_before_layout(self, scenario_report, monkeypatch):
        import report_generator
        bad = scenario_report.model_copy(update={'totals': Totals(
            grand_total=9999.0, by_confidence_tier=ConfidenceTotals(high=9999.0))})
        monkeypatch.setattr(report_generator, 'layout_pages',
                            lambda *args, **kwargs: pytest.fail("layout must not run"))
        with pytest.raises(DataIntegrityError):
            render(bad, generated_at=GENERATED_AT)

    def test_backend_failure_is_wrapped(self, scenario_report):
        class BrokenBackend(RecordingBackend):
            def serialize(self):
                raise OSError("disk full")

        document = render(scenario_report, generated_at=GENERATED_AT)
        with pytest.raises(BackendWriteError) as exc:
            export_pdf(document, BrokenBackend())
        assert isinstance(exc.value.__cause__, OSError)

    def test_backend_receives_every_page(self, scenario_report, recording_backend):
        document = render(scenario_report, generated_at=GENERATED_AT)
        assert export_pdf(document, recording_backend) == b'recorded'
        saves = [call for call in recording_backend.calls if call[0] == 'save_page']
        assert len(saves) == document.page_count


class TestPhases:

    def test_layout_pages_has_no_chrome(self):
        pages = layout_pages([Spacer(500), Spacer(500)])
        assert len(pages) == 2
        assert all(page.chrome == [] for page in pages)

    def test_stamp_chrome_returns_new_pages(self):
        pages = layout_pages([Spacer(500), Spacer(500), Spacer(500)])
        stamped = stamp_chrome(pages, "Subject", "RPT-1", GENERATED_AT)
        assert all(page.chrome == [] for page in pages)
        assert stamped[0].chrome == []
        assert "Page 3 of 3" in chrome_texts(stamped[2])
        assert [p.placements for p in stamped] == [p.placements for p in pages]


class TestConfig:

    def test_defaults(self):
        config = ReportConfig()
        assert config.max_rows_per_category == 15
        assert config.max_annex_rows == 5000
        assert config.top_recommendations == 3

    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("CREDIT_REPORT_MAX_ROWS", "7")
        monkeypatch.setenv("CREDIT_REPORT_MAX_ANNEX_ROWS", "100")
        monkeypatch.setenv("CREDIT_REPORT_BRAND", "Acme")
        config = ReportConfig.from_env()
        assert (config.max_rows_per_category, config.max_annex_rows, config.brand_name) == (7, 100, "Acme")

    def test_invalid_env(self, monkeypatch):
        monkeypatch.setenv("CREDIT_REPORT_MAX_ROWS", "many")
        with pytest.raises(ConfigurationError):
            ReportConfig.from_env()

    def test_invalid_cap(self):
        with pytest.raises(ConfigurationError):
            ReportConfig(max_rows_per_category=0)


class TestOutput:

    def test_suggested_filename(self, scenario_report):
        document = render(scenario_report, generated_at=GENERATED_AT)
        assert suggested_filename(document) == "Credit_Report_RPT-TEST-001_20240715.pdf"

    def test_generate_credit_report(self, scenario_report):
        assert generate_credit_report(scenario_report, generated_at=GENERATED_AT).startswith(b"%PDF")

    def test_generator_class(self, scenario_report):
        backend = RecordingBackend()
        generator = CreditReportGenerator(backend_factory=lambda document: backend)
        pdf, filename = generator.generate_report(scenario_report, generated_at=GENERATED_AT)
        assert pdf == b'recorded'
        assert filename.startswith("Credit_Report_RPT-TEST-001")
