"""Lifecycle status base classes with flag-based metadata and transition tables.

This module provides a declarative way to define lifecycle statuses with
combinable flags for metadata (initial, open, final), plus an exhaustive
transition table that every mutation site validates against.

Usage:
    class MyStatus(LifecycleStatusEnum):
        ACTIVE = Status("active", Flags.INITIAL | Flags.OPEN, display="Active")
        DONE = Status("done", Flags.FINAL, display="Done")

    MY_TRANSITIONS = TransitionTable(
        MyStatus,
        {
            MyStatus.ACTIVE: {MyStatus.DONE},
            MyStatus.DONE: set(),
        },
    )
"""

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from enum import IntFlag, StrEnum, auto
from typing import Any, Generic, TypeVar


class Flags(IntFlag):
    """Lifecycle status metadata flags.

    Flags:
        INITIAL - State a record is created in
        OPEN    - Record accepts regular mutations (edits, quotes, resubmission)
        FINAL   - Terminal state, no further transitions
    """

    NONE = 0
    INITIAL = auto()
    OPEN = auto()
    FINAL = auto()


@dataclass(frozen=True)
class FlagRule:
    """Rule for validating flag combinations.

    Attributes:
        when: All these bits must be present to trigger the rule
        required: These bits must also be present (when rule triggers)
        forbidden: These bits must be absent (when rule triggers)
    """

    when: Flags
    required: Flags = Flags.NONE
    forbidden: Flags = Flags.NONE

    def __post_init__(self) -> None:
        if self.when == Flags.NONE:
            raise ValueError("when may not be empty")
        if self.required & self.forbidden:
            raise ValueError("required and forbidden overlap")


FLAG_RULES: set[FlagRule] = {
    # A record is created mutable
    FlagRule(
        when=Flags.INITIAL,
        required=Flags.OPEN,
    ),
    # FINAL forbids INITIAL and OPEN
    FlagRule(
        when=Flags.FINAL,
        forbidden=Flags.INITIAL | Flags.OPEN,
    ),
}


def validate_flags(value: Flags) -> None:
    """Validate flag combination against rules."""
    for rule in FLAG_RULES:
        # Rule triggers only if all `when` bits are present
        if (value & rule.when) != rule.when:
            continue

        missing = rule.required & ~value
        present_forbidden = value & rule.forbidden

        if missing or present_forbidden:
            parts: list[str] = []
            if missing:
                missing_name = missing.name or str(missing)
                parts.append(f"{missing_name.replace('|', ' and ')} must be present")
            if present_forbidden:
                forbidden_name = present_forbidden.name or str(present_forbidden)
                parts.append(f"{forbidden_name.replace('|', ' and ')} cannot be present")

            when_name = rule.when.name or str(rule.when)
            when_txt = when_name.replace("|", " and ")
            raise ValueError(f"When {when_txt}: " + " and ".join(parts))


@dataclass(frozen=True, slots=True)
class Status:
    """Status definition with value, flags, and display name."""

    value: str
    flags: Flags = Flags.NONE
    display: str = ""

    def __post_init__(self) -> None:
        validate_flags(self.flags)

    @property
    def is_initial(self) -> bool:
        return bool(self.flags & Flags.INITIAL)

    @property
    def is_open(self) -> bool:
        return bool(self.flags & Flags.OPEN)

    @property
    def is_final(self) -> bool:
        return bool(self.flags & Flags.FINAL)


# Registry to store Status metadata for each enum class
_status_registries: dict[type, dict[str, Status]] = {}


class LifecycleStatusEnum(StrEnum):
    """Base class for lifecycle status enums with metadata support.

    Subclasses define members using Status objects:
        ACTIVE = Status("active", Flags.INITIAL | Flags.OPEN, display="...")

    The enum value is the string (for DB), metadata accessible via .meta
    """

    def __new__(cls, status: Status | str) -> "LifecycleStatusEnum":
        if isinstance(status, Status):
            value = status.value
            if cls not in _status_registries:
                _status_registries[cls] = {}
            _status_registries[cls][value] = status
        else:
            value = status

        obj = str.__new__(cls, value)
        obj._value_ = value
        return obj

    @property
    def meta(self) -> Status:
        """Get metadata for this status."""
        registry = _status_registries.get(type(self), {})
        return registry.get(self._value_, Status(self._value_))

    @classmethod
    def initial_state(cls) -> "Any":
        """The single state new records start in (INITIAL flag)."""
        initial = [s for s in cls if s.meta.is_initial]
        if len(initial) != 1:
            raise ValueError(f"{cls.__name__} must define exactly one INITIAL state, found {len(initial)}")
        return initial[0]

    @classmethod
    def open_states(cls) -> "frozenset[Any]":
        """States in which the record accepts regular mutations (OPEN flag)."""
        return frozenset(s for s in cls if s.meta.is_open)

    @classmethod
    def final_states(cls) -> "frozenset[Any]":
        """Terminal states (FINAL flag)."""
        return frozenset(s for s in cls if s.meta.is_final)


TStatus = TypeVar("TStatus", bound=LifecycleStatusEnum)


class TransitionTable(Generic[TStatus]):
    """Exhaustive table of allowed status transitions for one status enum.

    Every member of the enum must appear as a source. FINAL states must not
    have outgoing edges and no edge may lead back to the INITIAL state.
    """

    def __init__(self, status_cls: type[TStatus], edges: Mapping[TStatus, Iterable[TStatus]]) -> None:
        missing = set(status_cls) - set(edges)
        if missing:
            names = ", ".join(sorted(s.value for s in missing))
            raise ValueError(f"{status_cls.__name__}: transition table is missing sources: {names}")

        initial = status_cls.initial_state()
        normalized: dict[TStatus, frozenset[TStatus]] = {}
        for source, targets in edges.items():
            target_set = frozenset(targets)
            if source.meta.is_final and target_set:
                raise ValueError(f"{status_cls.__name__}: final state {source.value} cannot have transitions")
            if initial in target_set:
                raise ValueError(f"{status_cls.__name__}: {source.value} cannot transition back to {initial.value}")
            normalized[source] = target_set

        self.status_cls = status_cls
        self._edges = normalized

    def allowed(self, source: TStatus, target: TStatus) -> bool:
        return target in self._edges[source]

    def sources_of(self, target: TStatus) -> frozenset[TStatus]:
        """All states from which `target` can be reached in one step."""
        return frozenset(s for s, targets in self._edges.items() if target in targets)
