"""Domain models for the directory sync bounded context.

Pure value objects describing directory profiles, cycle progress, interval
bounds and batch outcomes, independent of any infrastructure (ORM,
LDAP, Celery).  All dataclasses use frozen=True for immutability.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from enum import Enum


# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

SECONDS_PER_DAY = 24 * 60 * 60
DEFAULT_MIN_INTERVAL = 30 * 60  # 30min
DEFAULT_MAX_INTERVAL = 12 * 60 * 60  # 12h
DEFAULT_PAGING_SIZE = 500


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class ApplyOutcome(str, Enum):
    """Result of applying one directory record to the identity store."""

    APPLIED = "applied"
    SKIPPED_ALREADY_MAPPED = "skipped_already_mapped"


class SyncOutcome(str, Enum):
    """What a single controller invocation did."""

    MANUAL_MODE = "manual_mode"  # host not in background mode, no work
    NO_PROFILES = "no_profiles"  # registry empty
    INELIGIBLE = "ineligible"  # config-change cooldown not elapsed
    ADVANCED = "advanced"  # full page fetched, offset moved forward
    RETIRED = "retired"  # profile exhausted, moved to next profile
    UNAVAILABLE = "unavailable"  # directory unreachable, moved to next profile


# ---------------------------------------------------------------------------
# Value Objects
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class DirectoryProfile:
    """One configured directory server, identified by its config prefix."""

    prefix: str
    host: str = ""
    port: int = 389
    bind_dn: str = ""
    bind_password: str = ""
    base_dn: str = ""
    user_filter: str = "(objectClass=inetOrgPerson)"
    display_name_attribute: str = "displayName"
    email_attribute: str = "mail"
    uuid_attribute: str = "entryUUID"
    search_attributes: tuple[str, ...] = ()
    paging_size: int = DEFAULT_PAGING_SIZE
    use_tls: bool = False

    def __post_init__(self) -> None:
        if self.paging_size < 0:
            raise ValueError(f"paging_size must be >= 0, got {self.paging_size}")


@dataclass(frozen=True)
class CycleState:
    """Pointer into the profile rotation: active profile and record offset."""

    prefix: str | None
    offset: int = 0

    def __post_init__(self) -> None:
        if self.offset < 0:
            raise ValueError(f"offset must be >= 0, got {self.offset}")

    def advanced_by(self, page_size: int) -> CycleState:
        return CycleState(prefix=self.prefix, offset=self.offset + page_size)


@dataclass(frozen=True)
class IntervalConfig:
    """Bounds for the self-tuned run interval, in seconds.

    ``current_seconds`` is the interval in effect, always within the bounds.
    """

    min_seconds: int = DEFAULT_MIN_INTERVAL
    max_seconds: int = DEFAULT_MAX_INTERVAL
    current_seconds: int = DEFAULT_MIN_INTERVAL

    def __post_init__(self) -> None:
        if self.min_seconds > self.max_seconds:
            raise ValueError(
                f"min_seconds ({self.min_seconds}) exceeds "
                f"max_seconds ({self.max_seconds})"
            )
        if not self.min_seconds <= self.current_seconds <= self.max_seconds:
            raise ValueError(
                f"current_seconds ({self.current_seconds}) outside "
                f"[{self.min_seconds}, {self.max_seconds}]"
            )

    def clamp(self, seconds: float) -> int:
        return int(min(max(seconds, self.min_seconds), self.max_seconds))

    def with_current(self, seconds: float) -> IntervalConfig:
        return replace(self, current_seconds=self.clamp(seconds))


@dataclass(frozen=True)
class DirectoryRecord:
    """A single entry returned by the directory.

    Attribute names are matched case-insensitively, as LDAP does.
    """

    dn: str
    attributes: Mapping[str, tuple[str, ...]] = field(default_factory=dict)

    def first(self, name: str) -> str | None:
        wanted = name.lower()
        for key, values in self.attributes.items():
            if key.lower() == wanted and values:
                return values[0]
        return None


@dataclass(frozen=True)
class BatchResult:
    """Outcome of fetching and applying one page of records."""

    fetched_count: int
    page_size: int
    applied: int = 0
    skipped: int = 0

    @property
    def expects_more_results(self) -> bool:
        """Whether the same profile should be queried again at the next offset.

        A page size of 0 means the directory returned everything in one
        call, so the profile is done after a single fetch.
        """
        if self.page_size == 0:
            return False
        return self.fetched_count == self.page_size


@dataclass(frozen=True)
class SyncCycleResult:
    """What the controller reports back to the hosting task."""

    outcome: SyncOutcome
    prefix: str | None = None
    offset: int | None = None
    interval: int | None = None
    batch: BatchResult | None = None
