"""CHIP-8 display model."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, List


@dataclass
class Chip8Display:
    WIDTH: int = 64
    HEIGHT: int = 32

    pixels: List[bool] = field(default_factory=lambda: [False] * (64 * 32))

    def __post_init__(self) -> None:
        if len(self.pixels) != self.WIDTH * self.HEIGHT:
            raise ValueError("display buffer must be 64x32 pixels")

    # ------------------------------------------------------------------
    # Pixel access
    # ------------------------------------------------------------------
    def _offset(self, x: int, y: int) -> int:
        if not (0 <= x < self.WIDTH and 0 <= y < self.HEIGHT):
            raise ValueError("pixel coordinate out of range")
        return y * self.WIDTH + x

    def get_pixel(self, x: int, y: int) -> bool:
        return self.pixels[self._offset(x, y)]

    def set_pixel(self, x: int, y: int, lit: bool) -> None:
        self.pixels[self._offset(x, y)] = bool(lit)

    def xor_pixel(self, x: int, y: int, bit: bool) -> bool:
        """XOR ``bit`` into the pixel and report whether a lit pixel was hit."""

        offset = self._offset(x, y)
        current = self.pixels[offset]
        self.pixels[offset] = current ^ bool(bit)
        return bool(bit) and current

    def clear(self) -> None:
        self.fill(False)

    def fill(self, lit: bool) -> None:
        self.pixels = [bool(lit)] * (self.WIDTH * self.HEIGHT)

    def load_pixels(self, data: Iterable[bool]) -> None:
        values = [bool(value) for value in data]
        if len(values) != self.WIDTH * self.HEIGHT:
            raise ValueError("display buffer must be 64x32 pixels")
        self.pixels = values

    def lit_count(self) -> int:
        return sum(1 for value in self.pixels if value)

    # ------------------------------------------------------------------
    # Rendering
    # ------------------------------------------------------------------
    def render_rows(self) -> List[List[bool]]:
        return [self.pixels[row * self.WIDTH:(row + 1) * self.WIDTH] for row in range(self.HEIGHT)]

    def render_text(self, on: str = "#", off: str = ".") -> str:
        return "\n".join("".join(on if lit else off for lit in row) for row in self.render_rows())
