"""Unit tests for client identity resolution."""

import asyncio
from unittest.mock import Mock

import pytest
from starlette.datastructures import Headers

from quota_api.core.identity import (
    UNKNOWN_IDENTITY,
    get_client_identity,
    hash_identity,
    mask_identity,
    resolve_identity,
)


class TestResolveIdentity:
    """Header priority and parsing."""

    def test_forwarded_chain_takes_priority_over_real_ip(self) -> None:
        headers = {"X-Forwarded-For": "1.2.3.4, 5.6.7.8", "X-Real-IP": "9.9.9.9"}
        assert resolve_identity(headers) == "1.2.3.4"

    def test_cdn_header_alone(self) -> None:
        assert resolve_identity({"CF-Connecting-IP": "7.7.7.7"}) == "7.7.7.7"

    def test_no_relevant_headers_falls_back_to_unknown(self) -> None:
        assert resolve_identity({}) == UNKNOWN_IDENTITY
        assert resolve_identity({"User-Agent": "pytest"}) == "unknown"

    def test_real_ip_beats_platform_and_cdn_headers(self) -> None:
        headers = {
            "X-Real-IP": "9.9.9.9",
            "X-Vercel-Forwarded-For": "3.3.3.3",
            "CF-Connecting-IP": "7.7.7.7",
        }
        assert resolve_identity(headers) == "9.9.9.9"

    def test_platform_chain_uses_leftmost_entry(self) -> None:
        headers = {
            "X-Vercel-Forwarded-For": "3.3.3.3, 10.0.0.1",
            "CF-Connecting-IP": "7.7.7.7",
        }
        assert resolve_identity(headers) == "3.3.3.3"

    def test_values_are_trimmed(self) -> None:
        assert resolve_identity({"X-Forwarded-For": "  1.2.3.4  ,5.6.7.8"}) == "1.2.3.4"
        assert resolve_identity({"X-Real-IP": "  9.9.9.9 "}) == "9.9.9.9"

    @pytest.mark.parametrize(
        "headers, expected",
        [
            ({"X-Forwarded-For": "", "X-Real-IP": "9.9.9.9"}, "9.9.9.9"),
            ({"X-Forwarded-For": "   ", "X-Real-IP": "9.9.9.9"}, "9.9.9.9"),
            ({"X-Forwarded-For": ", 5.6.7.8", "X-Real-IP": "9.9.9.9"}, "9.9.9.9"),
            ({"X-Real-IP": " ", "CF-Connecting-IP": "7.7.7.7"}, "7.7.7.7"),
            ({"X-Forwarded-For": " , "}, "unknown"),
        ],
    )
    def test_blank_values_count_as_absent(self, headers: dict, expected: str) -> None:
        assert resolve_identity(headers) == expected

    def test_header_names_are_case_insensitive(self) -> None:
        assert resolve_identity({"x-forwarded-for": "1.2.3.4"}) == "1.2.3.4"
        assert resolve_identity({"X-REAL-IP": "9.9.9.9"}) == "9.9.9.9"

    def test_accepts_starlette_headers(self) -> None:
        headers = Headers(raw=[(b"x-forwarded-for", b"1.2.3.4, 5.6.7.8"), (b"x-real-ip", b"9.9.9.9")])
        assert resolve_identity(headers) == "1.2.3.4"

    def test_ipv6_identity_is_kept_verbatim(self) -> None:
        assert resolve_identity({"X-Forwarded-For": "2001:db8::1, 10.0.0.1"}) == "2001:db8::1"


def test_mask_identity_keeps_first_eight_characters() -> None:
    assert mask_identity("192.168.100.200") == "192.168.***"
    assert mask_identity("unknown") == "unknown***"


def test_hash_identity_is_stable_and_opaque() -> None:
    digest = hash_identity("1.2.3.4")

    assert digest == hash_identity("1.2.3.4")
    assert digest != hash_identity("1.2.3.5")
    assert len(digest) == 16
    assert "1.2.3.4" not in digest


def test_get_client_identity_dependency_reads_request_headers() -> None:
    request = Mock()
    request.headers = {"CF-Connecting-IP": "7.7.7.7"}

    assert asyncio.run(get_client_identity(request)) == "7.7.7.7"
