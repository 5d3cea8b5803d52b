"""
Reporting module for timecapsule.

Output formats:
    - Console: Rich tables and panels with lock status icons
    - JSON: Structured output for programmatic consumption
"""

from timecapsule.report.console import print_capsule, print_capsule_table, print_summary
from timecapsule.report.json import (
    capsule_to_json,
    capsules_to_json,
    error_to_json,
    summary_to_json,
    view_to_dict,
)

__all__ = [
    "capsule_to_json",
    "capsules_to_json",
    "error_to_json",
    "print_capsule",
    "print_capsule_table",
    "print_summary",
    "summary_to_json",
    "view_to_dict",
]
