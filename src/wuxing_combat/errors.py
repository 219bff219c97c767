class WuxingCombatError(Exception):
    """Base error for wuxing combat domain exceptions."""


class RegistryError(WuxingCombatError):
    """Raised when the skill data table is malformed or cannot be loaded."""


class UnknownSkillError(RegistryError, KeyError):
    """Raised when a skill id is not present in the registry."""

    def __init__(self, skill_id: str) -> None:
        super().__init__(f"Unknown skill id: {skill_id!r}")
        self.skill_id = skill_id

    def __str__(self) -> str:
        return self.args[0]


class UnknownTriggerError(WuxingCombatError, ValueError):
    """Raised when a trigger phase is not one the pipeline knows how to resolve."""


class SnapshotError(WuxingCombatError):
    """Raised when combatant snapshot data fails validation."""

    def __init__(self, message: str, errors: list | None = None) -> None:
        super().__init__(message)
        self.errors = errors or []

    def to_human(self) -> str:
        parts = [str(self)]
        for e in self.errors:
            loc = "/".join(str(p) for p in e.get("loc", ())) or "<root>"
            parts.append(f" - at {loc}: {e.get('msg', '')}")
        return "\n".join(parts)


class EngineStateError(WuxingCombatError):
    """Raised when an engine operation is invoked with an invalid target or state."""
