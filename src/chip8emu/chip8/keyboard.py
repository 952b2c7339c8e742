"""CHIP-8 hex keypad handling."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional

KEY_COUNT = 16

# Host keys laid out as the COSMAC VIP keypad:
#   1 2 3 C      1 2 3 4
#   4 5 6 D  <-  q w e r
#   7 8 9 E      a s d f
#   A 0 B F      z x c v
KEYPAD_LAYOUT: Dict[str, int] = {
    "1": 0x1,
    "2": 0x2,
    "3": 0x3,
    "4": 0xC,
    "q": 0x4,
    "w": 0x5,
    "e": 0x6,
    "r": 0xD,
    "a": 0x7,
    "s": 0x8,
    "d": 0x9,
    "f": 0xE,
    "z": 0xA,
    "x": 0x0,
    "c": 0xB,
    "v": 0xF,
}


@dataclass
class Chip8Keypad:
    """Sixteen key-down flags, written by the host and read by EX9E/EXA1/FX0A."""

    _keys: List[bool] = field(default_factory=lambda: [False] * KEY_COUNT)

    @staticmethod
    def _check(key: int) -> int:
        if not (0 <= key < KEY_COUNT):
            raise ValueError("key out of range")
        return key

    def press(self, key: int) -> None:
        self._keys[self._check(key)] = True

    def release(self, key: int) -> None:
        self._keys[self._check(key)] = False

    def is_pressed(self, key: int) -> bool:
        return self._keys[key & 0x0F]

    def first_pressed(self) -> Optional[int]:
        for key, down in enumerate(self._keys):
            if down:
                return key
        return None

    def set_keys(self, states: Iterable[bool]) -> None:
        values = [bool(value) for value in states]
        if len(values) != KEY_COUNT:
            raise ValueError("keypad has 16 keys")
        self._keys = values

    def get_keys(self) -> List[bool]:
        return list(self._keys)

    def clear(self) -> None:
        self._keys = [False] * KEY_COUNT
