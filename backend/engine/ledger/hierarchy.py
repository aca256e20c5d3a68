"""Hierarchy index: titles per level and parent→children code lists from the catalog."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from engine.ledger.codes import (
    DEFAULT_WIDTHS,
    CodeWidths,
    detail_code_of,
    general_code_of,
    group_code_of,
    natural_sort_key,
    specific_code_of,
)

_log = logging.getLogger(__name__)


class DuplicatePolicy(str, Enum):
    """What to do when two catalog records normalize to the same code at one level."""

    LAST = "last"
    FIRST = "first"
    REJECT = "reject"


class DuplicateCodeError(ValueError):
    def __init__(self, kind: str, code: str):
        super().__init__(f"Duplicate {kind} code '{code}' in catalog")
        self.kind = kind
        self.code = code


@dataclass
class HierarchyIndex:
    group_titles: dict[str, str] = field(default_factory=dict)
    general_titles: dict[str, str] = field(default_factory=dict)
    specific_titles: dict[str, str] = field(default_factory=dict)
    detail_titles: dict[str, str] = field(default_factory=dict)
    group_to_generals: dict[str, list[str]] = field(default_factory=dict)
    general_to_specifics: dict[str, list[str]] = field(default_factory=dict)

    @property
    def is_empty(self) -> bool:
        return not (self.group_titles or self.general_titles or self.specific_titles)

    def generals_of(self, group_code: str) -> list[str]:
        return self.group_to_generals.get(group_code, [])

    def specifics_of(self, general_code: str) -> list[str]:
        return self.general_to_specifics.get(general_code, [])


def _field(record: Any, name: str) -> Any:
    if isinstance(record, Mapping):
        return record.get(name)
    return getattr(record, name, None)


def _register_title(
    titles: dict[str, str],
    kind: str,
    code: str,
    title: str,
    policy: DuplicatePolicy,
) -> None:
    if code in titles:
        _log.warning("Duplicate %s code %r in catalog (policy=%s)", kind, code, policy.value)
        if policy is DuplicatePolicy.REJECT:
            raise DuplicateCodeError(kind, code)
        if policy is DuplicatePolicy.FIRST:
            return
    titles[code] = title


def _link(children: dict[str, list[str]], parent: str, child: str) -> None:
    bucket = children.setdefault(parent, [])
    if child not in bucket:
        bucket.append(child)


def build_hierarchy_index(
    codes: Iterable[Any],
    details: Iterable[Any] = (),
    *,
    widths: CodeWidths = DEFAULT_WIDTHS,
    duplicates: DuplicatePolicy = DuplicatePolicy.LAST,
) -> HierarchyIndex:
    """Build title lookups and parent/child code lists from catalog records.

    Records may be pydantic models, dataclasses or plain dicts exposing
    ``code``, ``title`` and ``kind``. Parent links come from slicing the
    record's own code, so a general whose group is missing from the catalog
    is still listed under that group prefix.
    """
    index = HierarchyIndex()
    skipped = 0

    for record in codes:
        kind = str(_field(record, "kind") or "").strip().lower()
        raw_code = _field(record, "code")
        title = str(_field(record, "title") or "")

        if kind == "group":
            code = group_code_of(raw_code, widths)
            if not code:
                skipped += 1
                continue
            _register_title(index.group_titles, kind, code, title, duplicates)
        elif kind == "general":
            code = general_code_of(raw_code, widths)
            if not code:
                skipped += 1
                continue
            _register_title(index.general_titles, kind, code, title, duplicates)
            _link(index.group_to_generals, group_code_of(raw_code, widths), code)
        elif kind == "specific":
            code = specific_code_of(raw_code, widths)
            if not code:
                skipped += 1
                continue
            _register_title(index.specific_titles, kind, code, title, duplicates)
            _link(index.general_to_specifics, general_code_of(raw_code, widths), code)
        else:
            _log.debug("Ignoring catalog record with unknown kind %r", kind)
            skipped += 1

    for children in (index.group_to_generals, index.general_to_specifics):
        for parent in children:
            children[parent].sort(key=natural_sort_key)

    for record in details:
        code = detail_code_of(_field(record, "code"))
        if not code:
            continue
        _register_title(index.detail_titles, "detail", code, str(_field(record, "title") or ""), duplicates)

    _log.info(
        "Built hierarchy index: %d groups, %d generals, %d specifics, %d details (%d skipped)",
        len(index.group_titles),
        len(index.general_titles),
        len(index.specific_titles),
        len(index.detail_titles),
        skipped,
    )
    return index
