"""Opt-in anonymous usage telemetry.

Classes:
    :class:`TelemetryClient` -- non-blocking event sender with a bounded flush.

Functions:
    :func:`check_and_prompt_consent` -- one-time interactive consent prompt.
"""

from stackeye.telemetry.client import TelemetryClient, hash_org_id, sanitize_command
from stackeye.telemetry.consent import check_and_prompt_consent, mark_prompted

__all__ = [
    "TelemetryClient",
    "check_and_prompt_consent",
    "hash_org_id",
    "mark_prompted",
    "sanitize_command",
]
