# webauto/timings.py
"""
@file timings.py
@brief Time configuration presets and defaults for browser synchronization.
"""

from __future__ import annotations
from copy import deepcopy
from typing import Any, Dict


TIMEOUT_FIELDS: Dict[str, Dict[str, Any]] = {
    "explicit_wait": {"timeout": 15.0, "interval": 0.25},
    "presence_wait": {"timeout": 15.0, "interval": 0.25},
    "visibility_wait": {"timeout": 15.0, "interval": 0.25},
    "clickable_wait": {"timeout": 15.0, "interval": 0.25},
    "invisibility_wait": {"timeout": 15.0, "interval": 0.25},
    "text_wait": {"timeout": 15.0, "interval": 0.25},
    "url_wait": {"timeout": 15.0, "interval": 0.25},
    "soft_wait": {"timeout": 3.0, "interval": 0.2},
    "page_load": {"timeout": 30.0, "interval": 0.25},
    "script": {"timeout": 20.0, "interval": 0.25},
    "settle_wait": {"timeout": 15.0, "interval": 0.25},
    "stability_wait": {"timeout": 10.0, "interval": 0.1},
    "click_action": {"timeout": 5.0, "interval": 0.3, "retry_count": 3},
    "set_value_action": {"timeout": 5.0, "interval": 0.3, "retry_count": 3},
    "select_action": {"timeout": 5.0, "interval": 0.3, "retry_count": 3},
}

PAUSE_FIELDS: Dict[str, float] = {
    "not_found_backoff": 0.25,
    "stability_quiet_period": 0.5,
    "after_action_pause": 0.0,
}

PRESET_OVERRIDES: Dict[str, Dict[str, Any]] = {
    "fast": {
        "explicit_wait": {"timeout": 8.0, "interval": 0.1},
        "presence_wait": {"timeout": 8.0, "interval": 0.1},
        "visibility_wait": {"timeout": 8.0, "interval": 0.1},
        "clickable_wait": {"timeout": 8.0, "interval": 0.1},
        "invisibility_wait": {"timeout": 8.0, "interval": 0.1},
        "soft_wait": {"timeout": 1.5, "interval": 0.1},
        "settle_wait": {"timeout": 8.0, "interval": 0.1},
        "stability_wait": {"timeout": 5.0, "interval": 0.05},
        "action_timeout": {"timeout": 3.0, "interval": 0.15, "retry_count": 2},
        "not_found_backoff": 0.1,
        "stability_quiet_period": 0.3,
    },
    "slow": {
        "explicit_wait": {"timeout": 30.0, "interval": 0.4},
        "presence_wait": {"timeout": 30.0, "interval": 0.4},
        "visibility_wait": {"timeout": 30.0, "interval": 0.4},
        "clickable_wait": {"timeout": 30.0, "interval": 0.4},
        "invisibility_wait": {"timeout": 30.0, "interval": 0.4},
        "page_load": {"timeout": 60.0, "interval": 0.5},
        "settle_wait": {"timeout": 30.0, "interval": 0.4},
        "stability_wait": {"timeout": 20.0, "interval": 0.2},
        "action_timeout": {"timeout": 8.0, "interval": 0.5, "retry_count": 4},
        "not_found_backoff": 0.5,
        "stability_quiet_period": 0.8,
        "after_action_pause": 0.1,
    },
    "ci": {
        "explicit_wait": {"timeout": 30.0, "interval": 0.3},
        "presence_wait": {"timeout": 30.0, "interval": 0.3},
        "visibility_wait": {"timeout": 30.0, "interval": 0.3},
        "clickable_wait": {"timeout": 30.0, "interval": 0.3},
        "invisibility_wait": {"timeout": 30.0, "interval": 0.3},
        "page_load": {"timeout": 60.0, "interval": 0.5},
        "script": {"timeout": 30.0, "interval": 0.3},
        "settle_wait": {"timeout": 30.0, "interval": 0.3},
        "stability_wait": {"timeout": 20.0, "interval": 0.15},
        "action_timeout": {"timeout": 10.0, "interval": 0.5, "retry_count": 5},
        "not_found_backoff": 0.5,
        "stability_quiet_period": 0.8,
        "after_action_pause": 0.1,
    },
}


def list_presets() -> Dict[str, Dict[str, Any]]:
    return {"default": {}, **PRESET_OVERRIDES}


def build_preset_values(preset: str) -> Dict[str, Any]:
    preset_key = (preset or "default").lower()
    values: Dict[str, Any] = {}
    values.update(deepcopy(TIMEOUT_FIELDS))
    values.update(deepcopy(PAUSE_FIELDS))

    if preset_key == "default":
        return values

    overrides = PRESET_OVERRIDES.get(preset_key)
    if overrides is None:
        raise ValueError(f"Unknown timing preset: {preset}")

    for key, value in overrides.items():

        # action_timeout fans out to every *_action field
        if key == "action_timeout":
            for timeout_key in values.keys():
                if timeout_key.endswith("_action"):
                    base = deepcopy(values[timeout_key])
                    base.update(value)
                    values[timeout_key] = base
            continue

        if key in TIMEOUT_FIELDS:
            base = deepcopy(values[key])
            base.update(value)
            values[key] = base
        else:
            values[key] = value

    return values
