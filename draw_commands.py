"""
Draw commands emitted by block renderers.

Coordinates are top-down page points. Each command replays itself onto a
drawing backend, so the layout never talks to a backend directly.
"""

from dataclasses import dataclass
from typing import Optional

from report_theme import RectStyle, TextStyle


@dataclass(frozen=True)
class TextCommand:
    text: str
    x: float
    y: float  # baseline
    style: TextStyle
    align: str = 'left'

    @property
    def top(self) -> float:
        return self.y - self.style.size

    @property
    def bottom(self) -> float:
        return self.y

    def apply(self, backend) -> None:
        backend.draw_text(self.text, self.x, self.y, self.style, align=self.align)


@dataclass(frozen=True)
class RectCommand:
    x: float
    y: float
    width: float
    height: float
    style: RectStyle

    @property
    def top(self) -> float:
        return self.y

    @property
    def bottom(self) -> float:
        return self.y + self.height

    def apply(self, backend) -> None:
        backend.draw_rect(self.x, self.y, self.width, self.height, self.style)


@dataclass(frozen=True)
class ImageCommand:
    data: bytes
    x: float
    y: float
    width: float
    height: float
    name: Optional[str] = None

    @property
    def top(self) -> float:
        return self.y

    @property
    def bottom(self) -> float:
        return self.y + self.height

    def apply(self, backend) -> None:
        backend.add_image(self.data, self.x, self.y, self.width, self.height)
