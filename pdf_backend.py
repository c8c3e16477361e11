"""
Drawing backends.

The layout engine only knows the primitive capability set of
``DrawingBackend``. ``ReportLabBackend`` implements it on a ReportLab canvas
in invariant mode, so the same document always serializes to the same bytes.
"""

import io
from typing import Optional

from reportlab.lib.colors import HexColor
from reportlab.lib.utils import ImageReader
from reportlab.pdfgen.canvas import Canvas

from report_geometry import DEFAULT_GEOMETRY, PageGeometry
from report_theme import RectStyle, TextStyle


class DrawingBackend:
    """Primitive drawing operations in top-down page coordinates."""

    def new_page(self, index: int) -> None:
        raise NotImplementedError

    def draw_text(self, text: str, x: float, y: float, style: TextStyle, align: str = 'left') -> None:
        raise NotImplementedError

    def draw_rect(self, x: float, y: float, width: float, height: float, style: RectStyle) -> None:
        raise NotImplementedError

    def add_image(self, data: bytes, x: float, y: float, width: float, height: float) -> None:
        raise NotImplementedError

    def save_page(self) -> None:
        raise NotImplementedError

    def serialize(self) -> bytes:
        raise NotImplementedError


class ReportLabBackend(DrawingBackend):
    """Draws onto a ``reportlab.pdfgen.canvas.Canvas``, flipping y to the
    bottom-left PDF origin."""

    def __init__(self, geometry: PageGeometry = DEFAULT_GEOMETRY, title: Optional[str] = None,
                 author: Optional[str] = None):
        self.geometry = geometry
        self._buffer = io.BytesIO()
        self.canvas = Canvas(self._buffer, pagesize=(geometry.width, geometry.height), invariant=1)
        if title:
            self.canvas.setTitle(title)
        if author:
            self.canvas.setAuthor(author)

    def _flip(self, y: float) -> float:
        return self.geometry.height - y

    def new_page(self, index: int) -> None:
        # the canvas opens its first page itself and showPage() opens the rest
        pass

    def draw_text(self, text, x, y, style, align='left'):
        c = self.canvas
        c.setFont(style.font, style.size)
        c.setFillColor(HexColor(style.color))
        if align == 'right':
            c.drawRightString(x, self._flip(y), text)
        elif align == 'center':
            c.drawCentredString(x, self._flip(y), text)
        else:
            c.drawString(x, self._flip(y), text)

    def draw_rect(self, x, y, width, height, style):
        c = self.canvas
        fill = 1 if style.fill else 0
        stroke = 1 if style.stroke else 0
        if style.fill:
            c.setFillColor(HexColor(style.fill))
        if style.stroke:
            c.setStrokeColor(HexColor(style.stroke))
            c.setLineWidth(style.line_width)
        bottom = self._flip(y + height)
        if style.radius:
            c.roundRect(x, bottom, width, height, style.radius, stroke=stroke, fill=fill)
        else:
            c.rect(x, bottom, width, height, stroke=stroke, fill=fill)

    def add_image(self, data, x, y, width, height):
        self.canvas.drawImage(ImageReader(io.BytesIO(data)), x, self._flip(y + height),
                              width=width, height=height, preserveAspectRatio=True, mask='auto')

    def save_page(self):
        self.canvas.showPage()

    def serialize(self) -> bytes:
        self.canvas.save()
        return self._buffer.getvalue()
