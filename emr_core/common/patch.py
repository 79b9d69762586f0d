# emr_core/common/patch.py
from __future__ import annotations

from dataclasses import dataclass, fields
from typing import Any, Mapping


class _Missing:
    """Marks a patch field that was not supplied by the caller."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "MISSING"

    def __bool__(self) -> bool:
        return False


MISSING: Any = _Missing()


@dataclass(frozen=True)
class Patch:
    """
    Base for partial-update records.

    Each field is either MISSING (leave the stored value alone) or a value,
    where None explicitly clears a nullable column. Subclasses declare their
    fields with `= MISSING` defaults.
    """

    @classmethod
    def from_data(cls, data: Mapping[str, Any]):
        allowed = {f.name for f in fields(cls)}
        unknown = set(data) - allowed
        if unknown:
            raise TypeError(f"{cls.__name__} got unexpected fields: {sorted(unknown)}")
        return cls(**dict(data))

    def is_present(self, name: str) -> bool:
        return getattr(self, name) is not MISSING

    def changes(self) -> dict[str, Any]:
        return {f.name: getattr(self, f.name) for f in fields(self) if self.is_present(f.name)}

    def without(self, *names: str):
        data = self.changes()
        for name in names:
            data.pop(name, None)
        return type(self).from_data(data)
