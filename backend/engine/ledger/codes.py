"""Account-code normalization: localized digits and per-level prefix slicing."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any

import pandas as pd


# Arabic-Indic (U+0660..U+0669) and Extended Arabic-Indic / Persian (U+06F0..U+06F9).
_DIGIT_TRANSLATION = str.maketrans(
    {
        **{chr(0x0660 + i): str(i) for i in range(10)},
        **{chr(0x06F0 + i): str(i) for i in range(10)},
    }
)

_NUMERIC_RUN = re.compile(r"(\d+)")


@dataclass(frozen=True)
class CodeWidths:
    """Digit counts that identify each level of the account-code hierarchy."""

    group: int = 2
    general: int = 4
    specific: int = 6

    def __post_init__(self) -> None:
        if min(self.group, self.general, self.specific) <= 0:
            raise ValueError(f"Code widths must be positive, got {self}")
        if not (self.group < self.general < self.specific):
            raise ValueError(
                f"Code widths must be strictly increasing (group < general < specific), got {self}"
            )


DEFAULT_WIDTHS = CodeWidths()


def _raw_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, float) and pd.isna(value):
        return ""
    return str(value).strip()


def to_ascii_digits(value: Any) -> str:
    """Map Persian/Arabic-Indic digits to ASCII; other characters pass through."""
    return _raw_text(value).translate(_DIGIT_TRANSLATION)


def normalize_code(value: Any, digits: int) -> str:
    """Return the first *digits* characters of a code with ASCII digits.

    Never raises. Empty input gives ``""``; a code shorter than *digits*
    returns whatever prefix exists, unpadded.
    """
    raw = _raw_text(value)
    if not raw or digits <= 0:
        return ""
    return raw[:digits].strip().translate(_DIGIT_TRANSLATION)


def group_code_of(value: Any, widths: CodeWidths = DEFAULT_WIDTHS) -> str:
    return normalize_code(value, widths.group)


def general_code_of(value: Any, widths: CodeWidths = DEFAULT_WIDTHS) -> str:
    return normalize_code(value, widths.general)


def specific_code_of(value: Any, widths: CodeWidths = DEFAULT_WIDTHS) -> str:
    return normalize_code(value, widths.specific)


def detail_code_of(value: Any) -> str:
    """Detail codes have no fixed width: the whole trimmed code, ASCII digits."""
    return to_ascii_digits(value)


def natural_sort_key(code: str) -> tuple:
    """Sort key comparing digit runs by value, so ``"9"`` sorts before ``"10"``."""
    parts = _NUMERIC_RUN.split(code)
    return tuple(
        (0, int(part), part) if part.isdigit() else (1, 0, part.lower())
        for part in parts
        if part != ""
    )


def sorted_codes(codes) -> list[str]:
    return sorted(set(codes), key=natural_sort_key)
