"""Tests for client IP hint extraction."""

import pytest
from multidict import CIMultiDict

from netintel.api.client_hint import clean_ip_candidate, get_client_ip_hint, parse_ip_from_header_value


class TestCleanIpCandidate:
    @pytest.mark.parametrize("raw,expected", [
        ("203.0.113.5", "203.0.113.5"),
        ("  203.0.113.5  ", "203.0.113.5"),
        ("203.0.113.5:8443", "203.0.113.5"),
        ("[2001:db8::1]", "2001:db8::1"),
        ("[2001:db8::1]:443", "2001:db8::1"),
        ("fe80::1%eth0", "fe80::1"),
        ('"203.0.113.5"', "203.0.113.5"),
        ("for=203.0.113.5", "203.0.113.5"),
        ("For=203.0.113.5;proto=https", "203.0.113.5"),
    ])
    def test_cleans_to_address(self, raw, expected):
        assert clean_ip_candidate(raw) == expected

    @pytest.mark.parametrize("raw", ["", "   ", "unknown", "_hidden", "999.1.1.1"])
    def test_rejects_non_addresses(self, raw):
        assert clean_ip_candidate(raw) is None


class TestParseHeaderValue:
    def test_first_valid_entry_wins(self):
        assert parse_ip_from_header_value("unknown, 203.0.113.5, 198.51.100.7") == "203.0.113.5"

    def test_forwarded_syntax(self):
        raw = 'for="[2001:db8:cafe::17]:4711";proto=http;by=203.0.113.43'
        assert parse_ip_from_header_value(raw) == "2001:db8:cafe::17"

    def test_forwarded_multiple_hops(self):
        assert parse_ip_from_header_value("for=_gazonk, for=198.51.100.17") == "198.51.100.17"

    def test_nothing_usable(self):
        assert parse_ip_from_header_value("unknown, _hidden") is None


class TestGetClientIpHint:
    def test_priority_order(self):
        headers = {
            "X-Forwarded-For": "198.51.100.7",
            "CF-Connecting-IP": "203.0.113.5",
        }
        hint = get_client_ip_hint(headers)
        assert hint.ip == "203.0.113.5"
        assert hint.source == "cf-connecting-ip"
        assert hint.source_label == "request-header:cf-connecting-ip"

    def test_skips_unparseable_headers(self):
        headers = {"x-real-ip": "garbage", "x-forwarded-for": "2001:db8::1, 10.0.0.1"}
        hint = get_client_ip_hint(headers)
        assert hint.ip == "2001:db8::1"
        assert hint.source == "x-forwarded-for"

    def test_repeated_header_lines_keep_first_address(self):
        headers = CIMultiDict([
            ("X-Forwarded-For", "203.0.113.5"),
            ("X-Forwarded-For", "10.0.0.1"),
        ])
        hint = get_client_ip_hint(headers)
        assert hint.ip == "203.0.113.5"
        assert hint.source == "x-forwarded-for"

    def test_repeated_header_skips_unusable_first_line(self):
        headers = CIMultiDict([
            ("X-Forwarded-For", "unknown"),
            ("x-forwarded-for", "198.51.100.7"),
        ])
        assert get_client_ip_hint(headers).ip == "198.51.100.7"

    def test_no_headers(self):
        assert get_client_ip_hint({}) is None
        assert get_client_ip_hint({"user-agent": "curl/8"}) is None
