"""
JSON output for timecapsule.

Serialises capsule views and summaries with ISO-8601 timestamps and
snake_case keys, for scripts consuming ``--json`` output.
"""

import json
from typing import Any

from timecapsule.errors import TimeCapsuleError
from timecapsule.schema import CapsuleSummary, CapsuleView


def view_to_dict(view: CapsuleView) -> dict[str, Any]:
    """Convert a capsule view into plain JSON-ready data."""
    data = view.model_dump(mode="json")
    data["state"] = view.state.value
    return data


def capsules_to_json(views: list[CapsuleView], indent: int = 2) -> str:
    """Serialise a list of capsule views."""
    return json.dumps([view_to_dict(v) for v in views], indent=indent)


def capsule_to_json(view: CapsuleView, indent: int = 2) -> str:
    """Serialise one capsule view."""
    return json.dumps(view_to_dict(view), indent=indent)


def summary_to_json(summary: CapsuleSummary, indent: int = 2) -> str:
    """Serialise a summary."""
    return json.dumps(summary.model_dump(mode="json"), indent=indent)


def error_to_json(error: Exception, indent: int = 2) -> str:
    """Serialise an error, with code and context for timecapsule errors."""
    if isinstance(error, TimeCapsuleError):
        data = {"error": True, **error.to_dict()}
    else:
        data = {
            "error": True,
            "error_type": type(error).__name__,
            "message": str(error),
        }
    return json.dumps(data, indent=indent)
