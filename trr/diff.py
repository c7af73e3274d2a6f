from __future__ import annotations

import copy
import json
from typing import Any


def create_merge_patch(original: Any, modified: Any) -> Any:
    """Return the RFC 7386 merge patch turning ``original`` into ``modified``.

    Objects are diffed key by key (removed keys become null); anything else,
    lists included, is replaced wholesale when it differs.
    """
    if not isinstance(original, dict) or not isinstance(modified, dict):
        return copy.deepcopy(modified)

    patch: dict[str, Any] = {}
    for key in original:
        if key not in modified:
            patch[key] = None
    for key, value in modified.items():
        if key not in original:
            patch[key] = copy.deepcopy(value)
            continue
        if original[key] == value:
            continue
        if isinstance(original[key], dict) and isinstance(value, dict):
            patch[key] = create_merge_patch(original[key], value)
        else:
            patch[key] = copy.deepcopy(value)
    return patch


def apply_merge_patch(target: Any, patch: Any) -> Any:
    """Overlay a merge patch onto ``target``; ``target`` itself is not mutated."""
    if not isinstance(patch, dict):
        return copy.deepcopy(patch)
    out = copy.deepcopy(target) if isinstance(target, dict) else {}
    for key, value in patch.items():
        if value is None:
            out.pop(key, None)
        else:
            out[key] = apply_merge_patch(out.get(key), value)
    return out


def create_two_way_merge_patch(original: dict[str, Any], modified: dict[str, Any]) -> tuple[bytes, bool]:
    """Serialized merge patch plus whether it changes anything."""
    patch = create_merge_patch(original, modified)
    body = json.dumps(patch, sort_keys=True, separators=(",", ":")).encode("utf-8")
    return body, patch != {}
