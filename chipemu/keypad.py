"""Hex keypad state, written by the host and read by the CPU."""
from __future__ import annotations

from typing import Iterable, List, Optional

from .constants import KEY_COUNT


class Keypad:
    def __init__(self):
        self._pressed: List[bool] = [False] * KEY_COUNT

    def __getitem__(self, key: int) -> bool:
        return self._pressed[key]

    def __setitem__(self, key: int, pressed: bool) -> None:
        if not 0 <= key < KEY_COUNT:
            raise ValueError(f"no such key: {key:#x}")
        self._pressed[key] = bool(pressed)

    def press(self, key: int) -> None:
        self[key] = True

    def release(self, key: int) -> None:
        self[key] = False

    def release_all(self) -> None:
        self._pressed = [False] * KEY_COUNT

    def update(self, states: Iterable[bool]) -> None:
        """Replace the whole key state, one flag per key 0x0..0xF."""
        states = [bool(s) for s in states]
        if len(states) != KEY_COUNT:
            raise ValueError(f"expected {KEY_COUNT} key states, got {len(states)}")
        self._pressed = states

    def is_key_pressed(self, key: int) -> bool:
        # registers can hold values past 0xF; those keys never exist
        return 0 <= key < KEY_COUNT and self._pressed[key]

    def get_key_pressed(self) -> Optional[int]:
        """Lowest-numbered key currently held, or None."""
        for key, pressed in enumerate(self._pressed):
            if pressed:
                return key
        return None
