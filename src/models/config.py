"""
Settle rule configuration.

Immutable view of the rules file: project mappings, override rules, filler
definitions and the policy constants used by the reconciliation pipeline.
Built by core.config_loader; the services only ever read it.
"""

from dataclasses import dataclass, field

from core.config import (
    ADMIN_PROJECT_PREFIX,
    DEFAULT_TASK_TITLE,
    HOUR_INCREMENT,
    LOOKBACK_DAYS,
    MAX_SYNTHETIC_HOURS,
    MEETING_HEAVY_RATIO,
    TARGET_HOURS,
    WORK_PROJECT_SUFFIX,
)


@dataclass(frozen=True)
class ProjectMapping:
    """Chrono project -> DevPro project."""

    chrono_project: str
    devpro_project: str
    billability: str


@dataclass(frozen=True)
class OverrideRule:
    """Description pattern that redirects an entry to another DevPro project."""

    pattern: str
    devpro_project: str
    billability: str
    max_hours: float | None = None

    def matches(self, description: str) -> bool:
        return self.pattern.lower() in description.lower()


@dataclass(frozen=True)
class Filler:
    """Synthetic activity used to pad meeting-only days."""

    devpro_project: str
    task_title: str
    billability: str
    min_hours: float
    max_hours: float
    max_hours_per_period: float | None = None


@dataclass(frozen=True)
class SettleConfig:
    """Rules and policy constants for one settle run."""

    chrono_api: str
    mappings: tuple[ProjectMapping, ...] = ()
    overrides: tuple[OverrideRule, ...] = ()
    fillers: tuple[Filler, ...] = ()
    target_hours: float = TARGET_HOURS
    max_synthetic_hours: float = MAX_SYNTHETIC_HOURS
    hour_increment: float = HOUR_INCREMENT
    lookback_days: int = LOOKBACK_DAYS
    meeting_heavy_ratio: float = MEETING_HEAVY_RATIO
    work_project_suffix: str = WORK_PROJECT_SUFFIX
    admin_project_prefix: str = ADMIN_PROJECT_PREFIX
    default_task_title: str = DEFAULT_TASK_TITLE
    _mapping_index: dict = field(default=None, init=False, repr=False, compare=False)

    def __post_init__(self):
        index = {m.chrono_project: m for m in self.mappings}
        object.__setattr__(self, "_mapping_index", index)

    def mapping_for(self, chrono_project: str) -> ProjectMapping | None:
        return self._mapping_index.get(chrono_project)

    def find_override(self, description: str) -> OverrideRule | None:
        """First override whose pattern occurs in the description (case-insensitive)."""
        if not description.strip():
            return None
        for rule in self.overrides:
            if rule.matches(description):
                return rule
        return None
