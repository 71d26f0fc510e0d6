"""Read-only message tables used when rendering errors.

:class:`MessageCatalog` bundles two mappings:

* **hints** -- topic key (``auth_required``, ``rate_limited``, ...) to a
  follow-up line telling the user what to do next.
* **api_messages** -- API error code (``expired_token``, ``quota_exceeded``,
  ...) to a short user-friendly summary.

Both are wrapped in :class:`types.MappingProxyType` so a catalog cannot be
mutated after construction. Lookups are case-insensitive.
"""

from __future__ import annotations

from types import MappingProxyType
from typing import Mapping, Optional

FALLBACK_MESSAGE = "An unexpected error occurred."

COMMON_HINTS: dict[str, str] = {
    # Authentication
    "auth_required": "Run 'stackeye login' to authenticate.",
    "session_expired": "Your session has expired. Run 'stackeye login' to re-authenticate.",
    "invalid_api_key": "Your API key is invalid. Run 'stackeye login' to generate a new one.",
    "token_expired": "Your token has expired. Run 'stackeye login' to refresh.",
    "invalid_token": "Your authentication token is invalid. Run 'stackeye login' to get a new token.",
    "no_api_key": "Run 'stackeye login' or set STACKEYE_API_KEY environment variable.",
    "no_org_context": "Run 'stackeye org switch' to select an organization.",
    "mfa_required": "Multi-factor authentication is required. Complete MFA in your browser.",
    "account_locked": "Your account has been locked. Contact support for assistance.",
    # Authorization
    "forbidden": "You may not have access to this resource or organization.",
    "permission_denied": "You don't have permission to perform this action.",
    "insufficient_scope": "Your API key doesn't have the required scope for this action.",
    "read_only": "This resource is read-only and cannot be modified.",
    "owner_only": "Only the organization owner can perform this action.",
    "admin_only": "This action requires admin privileges.",
    # Resources
    "probe_not_found": "Run 'stackeye probe list' to see available probes.",
    "alert_not_found": "Run 'stackeye alert list' to see available alerts.",
    "channel_not_found": "Run 'stackeye channel list' to see available channels.",
    "org_not_found": "Run 'stackeye org list' to see your organizations.",
    "incident_not_found": "Run 'stackeye incident list' to see available incidents.",
    "api_key_not_found": "Run 'stackeye apikey list' to see your API keys.",
    "label_not_found": "Run 'stackeye label list' to see available labels.",
    "resource_not_found": "The requested resource does not exist or has been deleted.",
    "already_exists": "A resource with this identifier already exists.",
    "conflict": "The resource was modified by another request. Refresh and try again.",
    "dependency_exists": "Cannot delete because other resources depend on this one.",
    "circular_dependency": "This would create a circular dependency.",
    # Rate limiting
    "rate_limited": "Please wait a moment and try again.",
    "too_many": "Too many requests. Wait a few seconds before retrying.",
    "quota_exceed": "API quota exceeded. Wait until the quota resets.",
    "daily_limit": "Daily limit reached. Try again tomorrow.",
    # Plan limits
    "plan_limit": "Upgrade your plan at https://stackeye.io/billing",
    "probe_limit": "You've reached your plan's probe limit. Upgrade to add more.",
    "team_limit": "You've reached your plan's team member limit. Upgrade to add more.",
    "channel_limit": "You've reached your plan's notification channel limit. Upgrade to add more.",
    "trial_expired": "Your trial has expired. Subscribe to continue using StackEye.",
    "payment_required": "Payment is required to continue. Update your billing information.",
    # Server
    "server_error": "If this persists, check https://status.stackeye.io",
    "maintenance": "StackEye is undergoing maintenance. Check https://status.stackeye.io for updates.",
    "service_down": "The service is temporarily unavailable. Try again in a few minutes.",
    "timeout": "The request timed out. Try again with a smaller request.",
    "overloaded": "The service is overloaded. Try again in a few minutes.",
    # Network
    "connection_refused": "The server may be down or unreachable. Check your network connection.",
    "connection_reset": "Connection was reset. Try again or check https://status.stackeye.io",
    "connection_timeout": "The server took too long to respond. Try again later.",
    "dns_failure": "DNS lookup failed. Check your network and DNS settings.",
    "network_error": "Check your internet connection and try again.",
    "ssl_error": "SSL/TLS error. Check your system's certificate store.",
    "proxy_error": "Proxy connection failed. Check your proxy settings.",
    # Validation
    "invalid_url": "URL must start with http:// or https://",
    "invalid_email": "Please provide a valid email address.",
    "invalid_uuid": "Please provide a valid UUID.",
    "invalid_json": "The provided JSON is malformed.",
    "invalid_yaml": "The provided YAML is malformed.",
    "missing_field": "Required field is missing.",
    "invalid_enum": "Value must be one of the allowed options.",
    "invalid_cron": "Invalid cron expression.",
    "invalid_port": "Port must be between 1 and 65535.",
    "invalid_interval": "Please provide a valid time interval.",
    "validation": "Check the request fields and try again.",
    # CLI
    "config_not_found": "Run 'stackeye login' to initialize configuration.",
    "config_parse": "Config file is corrupted. Run 'stackeye config reset' to fix.",
    "config_write": "Could not write config file. Check file permissions.",
    "invalid_output": "Invalid output format. Use 'table', 'json', 'yaml', or 'wide'.",
    "invalid_flag": "Invalid flag value. Run 'stackeye <command> --help' for usage.",
    "missing_argument": "Missing required argument. Run 'stackeye <command> --help' for usage.",
    "invalid_subcommand": "Unknown subcommand. Run 'stackeye <command> --help' for available subcommands.",
    "interactive_required": "This command requires interactive input. Remove --no-input flag.",
}

API_ERROR_MESSAGES: dict[str, str] = {
    # Authentication
    "unauthorized": "Authentication required.",
    "expired_token": "Your session has expired.",
    "invalid_api_key": "Invalid API key.",
    "invalid_token": "Invalid authentication token.",
    "token_revoked": "Your token has been revoked.",
    "mfa_required": "Multi-factor authentication required.",
    "account_locked": "Account locked due to too many failed attempts.",
    "account_disabled": "Your account has been disabled.",
    "session_invalid": "Your session is no longer valid.",
    "ip_blocked": "Your IP address has been blocked.",
    # Authorization
    "forbidden": "Permission denied.",
    "insufficient_scope": "Your API key lacks the required permissions.",
    "read_only": "This resource is read-only.",
    "owner_only": "Only the owner can perform this action.",
    "admin_required": "Admin privileges required.",
    "org_mismatch": "Resource belongs to a different organization.",
    "not_member": "You are not a member of this organization.",
    # Resources
    "not_found": "Resource not found.",
    "already_exists": "Resource already exists.",
    "conflict": "Resource conflict detected.",
    "gone": "Resource has been deleted.",
    "locked": "Resource is locked.",
    "archived": "Resource has been archived.",
    "version_mismatch": "Resource version mismatch.",
    # Rate limiting
    "rate_limited": "Rate limit exceeded.",
    "quota_exceeded": "API quota exceeded.",
    "too_many_requests": "Too many requests.",
    "burst_exceeded": "Request burst limit exceeded.",
    # Plan limits
    "plan_limit_exceeded": "Plan limit exceeded.",
    "probe_limit_exceeded": "Probe limit reached.",
    "team_limit_exceeded": "Team member limit reached.",
    "channel_limit_exceeded": "Notification channel limit reached.",
    "feature_not_available": "Feature not available on your plan.",
    "upgrade_required": "Plan upgrade required.",
    "trial_expired": "Trial period has expired.",
    "payment_required": "Payment required to continue.",
    # Validation
    "validation": "Invalid request.",
    "invalid_input": "Invalid input provided.",
    "malformed_json": "Malformed JSON in request body.",
    "missing_field": "Required field is missing.",
    "invalid_field": "Field value is invalid.",
    "out_of_range": "Value is out of allowed range.",
    # Server
    "internal_server": "Internal server error.",
    "service_unavailable": "Service temporarily unavailable.",
    "bad_gateway": "Bad gateway error.",
    "gateway_timeout": "Gateway timeout.",
    "maintenance": "Service under maintenance.",
    "overloaded": "Service is overloaded.",
    "database_error": "Database error occurred.",
    "upstream_error": "Upstream service error.",
}


class MessageCatalog:
    """Immutable hint and API-message lookup tables.

    Args:
        hints: Topic key to hint text.
        api_messages: API error code to user-friendly summary.

    Example::

        catalog = MessageCatalog.default()
        catalog.hint("auth_required")
        # "Run 'stackeye login' to authenticate."
    """

    def __init__(
        self,
        hints: Optional[Mapping[str, str]] = None,
        api_messages: Optional[Mapping[str, str]] = None,
    ) -> None:
        self._hints = MappingProxyType({k.lower(): v for k, v in (hints or {}).items()})
        self._api_messages = MappingProxyType(
            {k.lower(): v for k, v in (api_messages or {}).items()}
        )

    @classmethod
    def default(cls) -> MessageCatalog:
        """Build a catalog holding the stock StackEye tables."""
        return cls(COMMON_HINTS, API_ERROR_MESSAGES)

    @property
    def hints(self) -> Mapping[str, str]:
        return self._hints

    @property
    def api_messages(self) -> Mapping[str, str]:
        return self._api_messages

    def hint(self, topic: str) -> str:
        """Return the hint for *topic*, or ``""`` when none is defined."""
        return self._hints.get(topic.lower(), "")

    def user_message(self, code: str, default: str = "") -> str:
        """Return the friendly summary for API error *code*.

        Falls back to *default*, then to a generic sentence, so the result
        is never empty.
        """
        msg = self._api_messages.get(code.lower())
        if msg:
            return msg
        return default or FALLBACK_MESSAGE
