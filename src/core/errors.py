"""
Exception types raised across the settle pipeline.

Configuration and planning problems are ValueErrors so callers can treat them
the same way as other validation failures; transport problems are not.
"""


class ConfigError(ValueError):
    """Rules file missing or malformed."""


class UnmappedProjectError(ValueError):
    """Chrono project has no mapping and no override matched."""

    def __init__(self, chrono_project: str, configured: list[str]):
        self.chrono_project = chrono_project
        self.configured = configured
        lines = [
            f"Chrono project '{chrono_project}' has no mapping in config.",
            "",
            "Add to ~/.tt-config.yaml:",
            "",
            "mappings:",
            f'  - chrono_project: "{chrono_project}"',
            '    devpro_project: "YourDevProProjectName"',
            '    billability: "Billable"',
            "",
            "Currently configured projects:",
        ]
        lines.extend(f"  - {name}" for name in configured)
        super().__init__("\n".join(lines))


class ProjectNotFoundError(ValueError):
    """DevPro project name not among the user's assigned projects."""

    def __init__(self, name: str, available: list[str]):
        self.name = name
        self.available = available
        lines = [f"DevPro project '{name}' not found.", "", "Available projects:"]
        lines.extend(f"  - {project}" for project in available)
        super().__init__("\n".join(lines))


class PlanValidationError(ValueError):
    """Plan contains actions that must not be written."""

    def __init__(self, problems: list[str]):
        self.problems = problems
        super().__init__(
            f"Found {len(problems)} entries with non-positive hours. Aborting.\n"
            + "\n".join(problems)
        )


class ChronoError(RuntimeError):
    """Chrono time tracker unreachable or returned an error."""


class ApiError(RuntimeError):
    """DevPro portal returned an error status."""

    def __init__(self, status_code: int, message: str):
        self.status_code = status_code
        super().__init__(message)
