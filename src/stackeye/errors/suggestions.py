"""Fuzzy "did you mean" suggestions for invalid enumerated input.

:func:`suggest_from_options` compares a rejected value against the valid
choices by Levenshtein distance and returns the closest one. The helpers at
the bottom build consistently worded :class:`~stackeye.exceptions.InvalidUsageError`
instances for flag validation, e.g.::

    Error: invalid value "htpp" for --check-type: must be one of: http, ping, tcp, dns_resolve
      Did you mean "http"?
"""

from __future__ import annotations

from typing import Sequence

from stackeye.exceptions import InvalidUsageError

DEFAULT_MAX_DISTANCE = 2


def levenshtein_distance(s1: str, s2: str) -> int:
    """Return the minimum number of single-character edits turning *s1* into *s2*.

    Insertions, deletions, and substitutions all cost one.
    """
    if not s1:
        return len(s2)
    if not s2:
        return len(s1)

    previous = list(range(len(s2) + 1))
    for i, c1 in enumerate(s1, start=1):
        current = [i]
        for j, c2 in enumerate(s2, start=1):
            cost = 0 if c1 == c2 else 1
            current.append(min(
                previous[j] + 1,         # deletion
                current[j - 1] + 1,      # insertion
                previous[j - 1] + cost,  # substitution
            ))
        previous = current
    return previous[-1]


def suggest_from_options(
    value: str,
    options: Sequence[str],
    max_distance: int = DEFAULT_MAX_DISTANCE,
) -> str:
    """Return the closest valid option to *value*, or ``""``.

    An exact case-insensitive match needs no correction and yields ``""``.
    Candidates farther than *max_distance* edits are ignored; a non-positive
    *max_distance* means the default of 2. Ties are broken alphabetically on
    the original option spelling.

    Args:
        value: The user-supplied (rejected) value.
        options: The valid choices.
        max_distance: Largest edit distance still worth suggesting.

    Returns:
        The suggested option, or an empty string.
    """
    if max_distance <= 0:
        max_distance = DEFAULT_MAX_DISTANCE

    lowered = value.lower()
    if any(lowered == opt.lower() for opt in options):
        return ""

    candidates: list[tuple[int, str]] = []
    for opt in options:
        dist = levenshtein_distance(lowered, opt.lower())
        if 0 < dist <= max_distance:
            candidates.append((dist, opt))

    if not candidates:
        return ""
    candidates.sort()
    return candidates[0][1]


# --- Flag validation errors ---


def invalid_value_error(flag: str, value: str, options: Sequence[str]) -> InvalidUsageError:
    """Build the error for a flag value outside *options*, with a suggestion if any."""
    message = f'invalid value "{value}" for {flag}: must be one of: {", ".join(options)}'
    suggestion = suggest_from_options(value, options)
    hint = f'Did you mean "{suggestion}"?' if suggestion else None
    return InvalidUsageError(message, hint=hint)


def invalid_value_with_hint_error(flag: str, value: str, hint: str) -> InvalidUsageError:
    """Build the error for a flag value rejected for a reason other than membership."""
    return InvalidUsageError(f'invalid value "{value}" for {flag}: {hint}')


def required_flag_error(flag: str) -> InvalidUsageError:
    return InvalidUsageError(f'required flag "{flag}" not set')


def required_arg_error(arg: str) -> InvalidUsageError:
    return InvalidUsageError(f'required argument "{arg}" not provided')


def validate_choice(flag: str, value: str, options: Sequence[str]) -> str:
    """Return the canonical spelling of *value* from *options*.

    Matching is case-insensitive.

    Raises:
        InvalidUsageError: If *value* is not one of *options*.
    """
    for opt in options:
        if opt.lower() == value.lower():
            return opt
    raise invalid_value_error(flag, value, options)


# --- Common valid options ---

VALID_CHECK_TYPES = ("http", "ping", "tcp", "dns_resolve")
VALID_HTTP_METHODS = ("GET", "POST", "PUT", "DELETE", "PATCH", "HEAD", "OPTIONS")
VALID_OUTPUT_FORMATS = ("table", "json", "yaml", "wide")
VALID_ALERT_STATUSES = ("active", "acknowledged", "resolved")
VALID_PERIODS = ("24h", "7d", "30d")
VALID_CHANNEL_TYPES = ("email", "slack", "webhook", "pagerduty", "discord", "teams", "sms")
VALID_INCIDENT_STATUSES = ("investigating", "identified", "monitoring", "resolved")
VALID_TEAM_ROLES = ("owner", "admin", "member", "viewer")
VALID_SEVERITIES = ("critical", "warning", "info")
VALID_COLOR_MODES = ("auto", "always", "never")
