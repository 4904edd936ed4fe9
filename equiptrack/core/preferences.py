"""Preferences — user settings persisted under their own storage slot.

Invariants:
    - Missing keys fall back to defaults; unknown keys are ignored
    - Wrongly typed values fall back to defaults rather than failing the load
"""

from dataclasses import dataclass, replace
from typing import Any


@dataclass(frozen=True)
class Preferences:
    autosave_enabled: bool = True
    display_name: str = ""


def preferences_to_snapshot(prefs: Preferences) -> dict:
    return {"autosave": prefs.autosave_enabled, "displayName": prefs.display_name}


def preferences_from_snapshot(data: Any) -> Preferences:
    defaults = Preferences()
    if not isinstance(data, dict):
        return defaults
    autosave = data.get("autosave", defaults.autosave_enabled)
    name = data.get("displayName", defaults.display_name)
    return Preferences(
        autosave_enabled=autosave if isinstance(autosave, bool) else defaults.autosave_enabled,
        display_name=name if isinstance(name, str) else defaults.display_name,
    )


def update_preferences(prefs: Preferences, **changes) -> Preferences:
    """Apply non-None changes."""
    return replace(prefs, **{k: v for k, v in changes.items() if v is not None})
