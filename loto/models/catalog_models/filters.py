"""Filter criteria used to narrow the isolation point catalog.

:class:`FilterCriteria` is built either directly or from loosely typed
input (query strings, JSON bodies) through :meth:`FilterCriteria.from_mapping`,
which is strict: anything that is not a string or a list of strings is a
:class:`~loto.errors.ValidationError`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, FrozenSet, Iterable, Mapping, Optional

from loto.errors import ValidationError

DIMENSIONS = ("units", "types", "methods", "positions")


def _as_set(values: Optional[Iterable[str]]) -> FrozenSet[str]:
    if not values:
        return frozenset()
    return frozenset(values)


@dataclass(frozen=True)
class FilterCriteria:
    search: Optional[str] = field(default=None)
    units: FrozenSet[str] = field(default_factory=frozenset)
    types: FrozenSet[str] = field(default_factory=frozenset)
    methods: FrozenSet[str] = field(default_factory=frozenset)
    positions: FrozenSet[str] = field(default_factory=frozenset)

    def __post_init__(self) -> None:
        # Accept lists/tuples from callers while keeping the instance hashable
        for name in DIMENSIONS:
            object.__setattr__(self, name, _as_set(getattr(self, name)))
        # the term is matched as typed; only an empty string means no search
        object.__setattr__(self, "search", self.search or None)

    @property
    def is_empty(self) -> bool:
        return not self.search and not any(getattr(self, d) for d in DIMENSIONS)

    @classmethod
    def from_mapping(cls, data: Optional[Mapping[str, Any]]) -> "FilterCriteria":
        """
        Builds criteria from a dict-like payload.

        Each dimension may be a single string (``"Unit 1"``), a list of
        strings, or absent. Unknown keys are ignored.
        """
        if data is None:
            return cls()
        if not isinstance(data, Mapping):
            raise ValidationError("Filter criteria must be an object.")

        search = data.get("search")
        if search is not None and not isinstance(search, str):
            raise ValidationError("'search' must be a string.")

        dims = {}
        for name in DIMENSIONS:
            raw = data.get(name)
            if raw is None:
                dims[name] = frozenset()
                continue
            if isinstance(raw, str):
                raw = [raw]
            if not isinstance(raw, (list, tuple, set, frozenset)):
                raise ValidationError(f"'{name}' must be a list of strings.")
            values = []
            for v in raw:
                if not isinstance(v, str):
                    raise ValidationError(f"'{name}' must be a list of strings.")
                v = v.strip()
                if v:
                    values.append(v)
            dims[name] = frozenset(values)

        return cls(search=search, **dims)
