"""
Tests for the FlowWriter cursor.
"""
import pytest

from flow_writer import FlowWriter
from layout_blocks import Column, PageBreak, Paragraph, Spacer, TableHeader, TableRow, TextLine
from report_errors import LayoutError
from report_geometry import DEFAULT_GEOMETRY
from report_theme import DEFAULT_THEME

geometry = DEFAULT_GEOMETRY
BODY = DEFAULT_THEME.style('body')
WIDTH = geometry.content_width


def place_all(blocks):
    writer = FlowWriter()
    for block in blocks:
        writer.place(block)
    return writer.finish()


def lines(count):
    return Paragraph("\n".join(f"line {i}" for i in range(count)), BODY, WIDTH)


class TestPages:

    def test_no_blocks_no_pages(self):
        assert place_all([]) == []

    def test_leading_page_break_creates_nothing(self):
        pages = place_all([PageBreak(), TextLine("a", BODY, WIDTH)])
        assert len(pages) == 1

    def test_repeated_and_trailing_breaks_never_leave_empty_pages(self):
        pages = place_all([
            TextLine("a", BODY, WIDTH), PageBreak(), PageBreak(),
            TextLine("b", BODY, WIDTH), PageBreak(),
        ])
        assert len(pages) == 2
        assert all(page.placements for page in pages)

    def test_first_block_starts_at_content_top(self):
        [page] = place_all([Spacer(10), Spacer(20)])
        assert page.placements[0].top == geometry.content_top
        assert page.placements[1].top == geometry.content_top + 10

    def test_break_when_block_crosses_bottom(self):
        pages = place_all([Spacer(100) for _ in range(7)])
        # 685.98pt of content height holds six 100pt blocks
        assert [len(page.placements) for page in pages] == [6, 1]
        assert pages[1].placements[0].top == geometry.content_top

    def test_oversized_block_is_layout_error(self):
        with pytest.raises(LayoutError):
            place_all([Spacer(geometry.content_height + 1)])

    def test_page_indexes(self):
        pages = place_all([Spacer(400), Spacer(400), Spacer(400)])
        assert [page.index for page in pages] == [0, 1, 2]


class TestKeepWithNext:

    def test_heading_moves_with_following_content(self):
        filler = Spacer(geometry.content_height - 30)
        heading = TextLine("Heading", BODY, WIDTH, keep_with_next=40)
        pages = place_all([filler, heading, Spacer(10)])
        assert pages[1].placements[0].block is heading

    def test_without_keep_heading_stays(self):
        filler = Spacer(geometry.content_height - 30)
        heading = TextLine("Heading", BODY, WIDTH)
        pages = place_all([filler, heading])
        assert len(pages) == 1


class TestParagraphSplit:

    def test_split_fills_remaining_space(self):
        filler = Spacer(geometry.content_height - 45)
        pages = place_all([filler, lines(10)])
        head = pages[0].placements[-1].block
        tail = pages[1].placements[0].block
        assert len(head.lines) == 3
        assert len(tail.lines) == 7

    def test_paragraph_longer_than_a_page(self):
        pages = place_all([lines(120)])
        per_page = int(geometry.content_height // BODY.leading)
        assert [len(page.placements[0].block.lines) for page in pages] == [per_page, per_page, 120 - 2 * per_page]

    def test_no_line_fits_moves_whole_paragraph(self):
        filler = Spacer(geometry.content_height - 5)
        pages = place_all([filler, lines(3)])
        assert len(pages[1].placements[0].block.lines) == 3


class TestTableContinuation:

    def test_header_repeats_on_new_page(self):
        header = TableHeader((Column('A', WIDTH),), DEFAULT_THEME.style('table_header'))
        rows = [TableRow(header, (str(i),), i, DEFAULT_THEME.style('table_cell')) for i in range(80)]
        pages = place_all([header] + rows)
        assert len(pages) > 1
        for page in pages:
            assert page.placements[0].block is header
            assert [p.block for p in page.placements].count(header) == 1
        placed_rows = [p.block for page in pages for p in page.placements if isinstance(p.block, TableRow)]
        assert placed_rows == rows

    def test_header_not_orphaned(self):
        header = TableHeader((Column('A', WIDTH),), DEFAULT_THEME.style('table_header'))
        row = TableRow(header, ("x",), 0, DEFAULT_THEME.style('table_cell'))
        filler = Spacer(geometry.content_height - header.height() - 5)
        pages = place_all([filler, header, row])
        assert len(pages) == 2
        assert [p.block for p in pages[1].placements] == [header, row]


def test_placements_never_overlap():
    blocks = [lines(7), Spacer(33), TextLine("x", BODY, WIDTH, keep_with_next=20)] * 30
    for page in place_all(blocks):
        bottom = geometry.content_top
        for placement in page.placements:
            assert placement.top >= bottom - 1e-6
            assert placement.bottom <= geometry.content_bottom + 1e-6
            bottom = placement.bottom
