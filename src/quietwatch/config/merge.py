"""Layering of config dicts from user, project, environment and CLI sources."""

from __future__ import annotations

from typing import Any


def deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Return ``base`` with ``override`` layered on top.

    - Sections (nested dicts) merge key by key
    - Lists replace: ``watch: [docs]`` in a project file drops the user's roots
    - ``None`` leaves the lower layer's value in place, so an unset CLI flag
      never masks a value from a config file

    Neither input is modified.
    """
    result = dict(base)

    for key, value in override.items():
        if value is None:
            continue
        current = result.get(key)
        if isinstance(current, dict) and isinstance(value, dict):
            result[key] = deep_merge(current, value)
        elif isinstance(value, dict):
            # Unset keys are dropped here too; a section that sets nothing
            # leaves the lower value alone
            section = deep_merge({}, value)
            if section or key not in result:
                result[key] = section
        else:
            result[key] = value

    return result


def merge_configs(*layers: dict[str, Any]) -> dict[str, Any]:
    """Merge config layers given lowest priority first."""
    result: dict[str, Any] = {}
    for layer in layers:
        if layer:
            result = deep_merge(result, layer)
    return result
