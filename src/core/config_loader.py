"""
Rules file loading.

Reads ~/.tt-config.yaml (or TT_CONFIG_PATH) into an immutable SettleConfig.
"""

from pathlib import Path
from typing import Any

import yaml

from core.config import CHRONO_API_URL, SETTLE_CONFIG_PATH
from core.errors import ConfigError
from models.config import Filler, OverrideRule, ProjectMapping, SettleConfig

EXAMPLE_CONFIG = """\
chrono_api: "http://localhost:9247"

mappings:
  - chrono_project: "Your Chrono Project"
    devpro_project: "DevPro Project Name"
    billability: "Billable"
"""

# Optional top-level keys copied straight onto SettleConfig
POLICY_KEYS = {
    "target_hours": float,
    "max_synthetic_hours": float,
    "hour_increment": float,
    "lookback_days": int,
    "meeting_heavy_ratio": float,
    "work_project_suffix": str,
    "admin_project_prefix": str,
    "default_task_title": str,
}


def load_settle_config(path: Path = SETTLE_CONFIG_PATH) -> SettleConfig:
    """
    Load and validate the rules file.

    Raises:
        FileNotFoundError: If the file does not exist
        ConfigError: If it cannot be parsed or is missing required keys
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(
            f"Config file not found: {path}\n\nCreate {path} with:\n\n{EXAMPLE_CONFIG}"
        )

    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"Failed to parse config: {e}") from e

    return parse_settle_config(data)


def parse_settle_config(data: dict[str, Any]) -> SettleConfig:
    if not isinstance(data, dict):
        raise ConfigError("Config root must be a mapping")

    try:
        mappings = tuple(
            ProjectMapping(
                chrono_project=str(m["chrono_project"]),
                devpro_project=str(m["devpro_project"]),
                billability=str(m["billability"]),
            )
            for m in data.get("mappings") or []
        )
        overrides = tuple(
            OverrideRule(
                pattern=str(o["pattern"]),
                devpro_project=str(o["devpro_project"]),
                billability=str(o["billability"]),
                max_hours=_optional_float(o.get("max_hours")),
            )
            for o in data.get("overrides") or []
        )
        fillers = tuple(
            Filler(
                devpro_project=str(f["devpro_project"]),
                task_title=str(f["task_title"]),
                billability=str(f["billability"]),
                min_hours=float(f["min_hours"]),
                max_hours=float(f["max_hours"]),
                max_hours_per_period=_optional_float(f.get("max_hours_per_period")),
            )
            for f in data.get("fillers") or []
        )
        policy = {
            key: cast(data[key]) for key, cast in POLICY_KEYS.items() if key in data
        }
    except KeyError as e:
        raise ConfigError(f"Failed to parse config: missing key {e}") from e
    except (TypeError, ValueError) as e:
        raise ConfigError(f"Failed to parse config: {e}") from e

    errors = validate_rules(mappings, fillers)
    if errors:
        raise ConfigError("Invalid config:\n" + "\n".join(f"  - {e}" for e in errors))

    return SettleConfig(
        chrono_api=str(data.get("chrono_api") or CHRONO_API_URL),
        mappings=mappings,
        overrides=overrides,
        fillers=fillers,
        **policy,
    )


def validate_rules(mappings: tuple[ProjectMapping, ...], fillers: tuple[Filler, ...]) -> list[str]:
    """Duplicate mappings and inverted filler ranges."""
    errors = []
    seen = set()
    for mapping in mappings:
        if mapping.chrono_project in seen:
            errors.append(f"Duplicate mapping for Chrono project '{mapping.chrono_project}'")
        seen.add(mapping.chrono_project)

    for filler in fillers:
        if filler.min_hours < 0 or filler.max_hours < filler.min_hours:
            errors.append(
                f"Filler '{filler.task_title}' has invalid range "
                f"{filler.min_hours}-{filler.max_hours}h"
            )
    return errors


def _optional_float(value) -> float | None:
    return None if value is None else float(value)
