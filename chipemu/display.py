"""Monochrome 64x32 framebuffer held as the set of lit pixels."""
from __future__ import annotations

from typing import FrozenSet, Iterable, Iterator, Set, Tuple

from .constants import SCREEN_H, SCREEN_W

Pixel = Tuple[int, int]


class Framebuffer:
    def __init__(self, width: int = SCREEN_W, height: int = SCREEN_H):
        self.width = width
        self.height = height
        self._lit: Set[Pixel] = set()

    def clear(self) -> None:
        self._lit.clear()

    def draw_pixels(self, pixels: Iterable[Pixel]) -> bool:
        """XOR each pixel onto the screen.

        Returns True if any pixel was lit before the draw and got erased.
        """
        collision = False
        for pixel in pixels:
            if pixel in self._lit:
                self._lit.remove(pixel)
                collision = True
            else:
                self._lit.add(pixel)
        return collision

    def is_lit(self, x: int, y: int) -> bool:
        return (x, y) in self._lit

    def snapshot(self) -> FrozenSet[Pixel]:
        return frozenset(self._lit)

    def __contains__(self, pixel) -> bool:
        return pixel in self._lit

    def __iter__(self) -> Iterator[Pixel]:
        return iter(self._lit)

    def __len__(self) -> int:
        return len(self._lit)

    def __repr__(self) -> str:
        return f"Framebuffer({self.width}x{self.height}, lit={len(self._lit)})"
