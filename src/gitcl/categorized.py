"""Ordered category -> messages container used while segmenting history."""

from __future__ import annotations

from typing import Dict, Iterator, List, Mapping, Tuple


class CategorizedEntries(Mapping[str, Tuple[str, ...]]):
    """Mapping from category to the messages collected under it.

    Inputs:
      - None; start empty and fill with upsert_append().

    Outputs:
      - Read-only mapping view (category -> tuple of messages) plus the single
        mutating operation upsert_append().

    Notes:
      - Category keys are compared exactly. 'Added' and 'added' are two
        categories; only rendering capitalizes them.
      - Messages keep insertion order within a category. Rendering iterates
        categories via categories(), which is lexicographic.

    Example:
      >>> ce = CategorizedEntries()
      >>> ce.upsert_append("fixed", "bug A")
      >>> ce.upsert_append("added", "feature B")
      >>> ce.upsert_append("fixed", "bug C")
      >>> ce["fixed"]
      ('bug A', 'bug C')
      >>> ce.categories()
      ['added', 'fixed']
    """

    def __init__(self) -> None:
        self._items: Dict[str, List[str]] = {}

    def upsert_append(self, category: str, message: str) -> None:
        """Brief: Append message under category, creating the category if new.

        Inputs:
          - category: Category key (exact match).
          - message: Entry text.

        Outputs:
          - None.
        """

        self._items.setdefault(category, []).append(message)

    def categories(self) -> List[str]:
        return sorted(self._items)

    def is_empty(self) -> bool:
        return not self._items

    def as_dict(self) -> Dict[str, List[str]]:
        return {k: list(v) for k, v in self._items.items()}

    def __getitem__(self, category: str) -> Tuple[str, ...]:
        return tuple(self._items[category])

    def __iter__(self) -> Iterator[str]:
        return iter(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, CategorizedEntries):
            return self._items == other._items
        return NotImplemented

    def __repr__(self) -> str:
        return f"CategorizedEntries({self._items!r})"
