"""Tests for stackeye.errors.catalog -- hint and API-message tables."""

from __future__ import annotations

import pytest

from stackeye.errors.catalog import FALLBACK_MESSAGE, MessageCatalog


@pytest.fixture
def catalog() -> MessageCatalog:
    return MessageCatalog.default()


class TestHints:
    @pytest.mark.parametrize(
        "topic",
        [
            "auth_required",
            "forbidden",
            "permission_denied",
            "rate_limited",
            "plan_limit",
            "server_error",
            "timeout",
            "dns_failure",
            "connection_refused",
            "connection_reset",
            "network_error",
        ],
    )
    def test_classifier_topics_are_defined(self, catalog: MessageCatalog, topic: str) -> None:
        assert catalog.hint(topic)

    def test_auth_hint_mentions_login(self, catalog: MessageCatalog) -> None:
        assert "login" in catalog.hint("auth_required")

    def test_lookup_is_case_insensitive(self, catalog: MessageCatalog) -> None:
        assert catalog.hint("AUTH_REQUIRED") == catalog.hint("auth_required")

    def test_unknown_topic(self, catalog: MessageCatalog) -> None:
        assert catalog.hint("no_such_topic") == ""


class TestUserMessage:
    @pytest.mark.parametrize(
        "code, expected",
        [
            ("unauthorized", "Authentication required."),
            ("expired_token", "Your session has expired."),
            ("Rate_Limited", "Rate limit exceeded."),
            ("plan_limit_exceeded", "Plan limit exceeded."),
        ],
    )
    def test_known_codes(self, catalog: MessageCatalog, code: str, expected: str) -> None:
        assert catalog.user_message(code) == expected

    def test_unknown_code_uses_default(self, catalog: MessageCatalog) -> None:
        assert catalog.user_message("weird", "Something odd.") == "Something odd."

    def test_unknown_code_without_default(self, catalog: MessageCatalog) -> None:
        assert catalog.user_message("weird") == FALLBACK_MESSAGE
        assert catalog.user_message("") == "An unexpected error occurred."


class TestImmutability:
    def test_tables_are_read_only(self, catalog: MessageCatalog) -> None:
        with pytest.raises(TypeError):
            catalog.hints["auth_required"] = "changed"  # type: ignore[index]
        with pytest.raises(TypeError):
            catalog.api_messages["new"] = "x"  # type: ignore[index]

    def test_custom_tables(self) -> None:
        source = {"Greeting": "hello"}
        custom = MessageCatalog(hints=source)
        source["Greeting"] = "changed"
        assert custom.hint("greeting") == "hello"
        assert custom.user_message("unauthorized") == FALLBACK_MESSAGE
