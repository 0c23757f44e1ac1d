"""
Unit tests for the shared/ utility modules.

Covers:
- shared.fingerprint     (classify_*, normalize_ip_prefix, get_referrer_host,
                          build_click_signals)
- shared.bot_detection   (is_likely_bot_user_agent, get_bot_name)
- shared.crypto          (hash_text, unique_fingerprint_hash)
- shared.datetime_utils  (day_bucket_from_unix_seconds)
- shared.validators      (is_http_url, normalize_base_url, resolve_public_base_url)
- shared.generators      (generate_random_code, generate_tracer_token)
- shared.ip_utils        (get_client_ip)
- shared.logging         (should_sample, redact_sensitive_fields)
"""

from __future__ import annotations

import hashlib
import re
from unittest.mock import MagicMock

import pytest

from shared import logging as shared_logging
from shared.bot_detection import get_bot_name, is_likely_bot_user_agent
from shared.crypto import build_fingerprint_source, hash_text, unique_fingerprint_hash
from shared.datetime_utils import day_bucket_from_unix_seconds
from shared.fingerprint import (
    build_click_signals,
    classify_device_type,
    classify_os_family,
    classify_ua_family,
    get_referrer_host,
    normalize_ip_prefix,
)
from shared.generators import generate_random_code, generate_tracer_token
from shared.ip_utils import get_client_ip
from shared.validators import is_http_url, normalize_base_url, resolve_public_base_url

CHROME_MAC = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)
EDGE_WIN = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36 Edg/120.0.2210.91"
)
OPERA_WIN = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/119.0.0.0 Safari/537.36 OPR/105.0.0.0"
)
FIREFOX_LINUX = "Mozilla/5.0 (X11; Linux x86_64; rv:121.0) Gecko/20100101 Firefox/121.0"
SAFARI_IPHONE = (
    "Mozilla/5.0 (iPhone; CPU iPhone OS 17_2 like Mac OS X) AppleWebKit/605.1.15 "
    "(KHTML, like Gecko) Version/17.2 Mobile/15E148 Safari/604.1"
)
SAFARI_IPAD = (
    "Mozilla/5.0 (iPad; CPU OS 17_2 like Mac OS X) AppleWebKit/605.1.15 "
    "(KHTML, like Gecko) Version/17.2 Mobile/15E148 Safari/604.1"
)
CHROME_ANDROID = (
    "Mozilla/5.0 (Linux; Android 14; Pixel 8) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Mobile Safari/537.36"
)
SLACKBOT = "Slackbot-LinkExpanding 1.0 (+https://api.slack.com/robots)"
CURL = "curl/8.4.0"


def _make_request(headers: dict, client_host: str | None = "10.0.0.1") -> MagicMock:
    """Minimal mock of a FastAPI Request."""
    req = MagicMock()
    req.headers = headers
    if client_host is None:
        req.client = None
    else:
        req.client = MagicMock()
        req.client.host = client_host
    return req


# ── shared.fingerprint — classification ──────────────────────────────────────


@pytest.mark.parametrize(
    "ua, expected",
    [
        (SAFARI_IPAD, "tablet"),
        (SAFARI_IPHONE, "mobile"),
        (CHROME_ANDROID, "mobile"),
        (CHROME_MAC, "desktop"),
        (FIREFOX_LINUX, "desktop"),
        (CURL, "unknown"),
        ("", "unknown"),
        (None, "unknown"),
    ],
    ids=["ipad", "iphone", "android", "mac", "linux", "curl", "empty", "none"],
)
def test_classify_device_type(ua, expected):
    assert classify_device_type(ua) == expected


@pytest.mark.parametrize(
    "ua, expected",
    [
        (EDGE_WIN, "edge"),
        (OPERA_WIN, "opera"),
        (CHROME_MAC, "chrome"),
        (FIREFOX_LINUX, "firefox"),
        (SAFARI_IPHONE, "safari"),
        (CURL, "bot"),
        ("SomethingElse/1.0", "unknown"),
        (None, "unknown"),
    ],
    ids=["edge", "opera", "chrome", "firefox", "safari", "bot", "other", "none"],
)
def test_classify_ua_family(ua, expected):
    assert classify_ua_family(ua) == expected


@pytest.mark.parametrize(
    "ua, expected",
    [
        (EDGE_WIN, "windows"),
        (CHROME_ANDROID, "android"),
        (SAFARI_IPHONE, "ios"),
        (SAFARI_IPAD, "ios"),
        (CHROME_MAC, "macos"),
        (FIREFOX_LINUX, "linux"),
        (CURL, "unknown"),
    ],
    ids=["windows", "android", "iphone", "ipad", "mac", "linux", "curl"],
)
def test_classify_os_family(ua, expected):
    assert classify_os_family(ua) == expected


# ── shared.fingerprint — IP prefix and referrer ──────────────────────────────


@pytest.mark.parametrize(
    "ip, expected",
    [
        ("203.0.113.42", "203.0.113.0/24"),
        ("::ffff:203.0.113.42", "203.0.113.0/24"),
        ("2001:db8:85a3:8d3:1319:8a2e:370:7348", "2001:db8:85a3:8d3::/64"),
        ("2001:db8::1", "2001:db8:1::/64"),
        ("  198.51.100.7 ", "198.51.100.0/24"),
        ("testclient", None),
        ("", None),
        (None, None),
    ],
    ids=["ipv4", "mapped", "ipv6", "ipv6_short", "padded", "hostname", "empty", "none"],
)
def test_normalize_ip_prefix(ip, expected):
    assert normalize_ip_prefix(ip) == expected


@pytest.mark.parametrize(
    "referrer, expected",
    [
        ("https://www.LinkedIn.com/feed/", "www.linkedin.com"),
        ("http://user:pw@mail.example.com:8080/x", "mail.example.com:8080"),
        ("not a url", None),
        ("", None),
        (None, None),
    ],
    ids=["https", "userinfo", "garbage", "empty", "none"],
)
def test_get_referrer_host(referrer, expected):
    assert get_referrer_host(referrer) == expected


class TestBuildClickSignals:
    def test_human_click(self):
        s = build_click_signals(
            clicked_at=1_700_000_000,
            ip="203.0.113.42",
            user_agent=CHROME_MAC,
            referrer="https://mail.google.com/",
        )
        assert s.day_bucket == "2023-11-14"
        assert s.is_likely_bot is False
        assert (s.device_type, s.ua_family, s.os_family) == ("desktop", "chrome", "macos")
        assert s.referrer_host == "mail.google.com"
        assert s.ip_hash == hash_text("203.0.113.0/24")
        assert s.unique_fingerprint_hash == hash_text(
            f"203.0.113.0/24|{CHROME_MAC.lower()}|2023-11-14"
        )

    def test_raw_ip_never_hashed(self):
        s = build_click_signals(
            clicked_at=1_700_000_000, ip="203.0.113.42", user_agent=None, referrer=None
        )
        assert s.ip_hash != hash_text("203.0.113.42")

    def test_bot_click(self):
        s = build_click_signals(
            clicked_at=1_700_000_000, ip=None, user_agent=SLACKBOT, referrer=None
        )
        assert s.is_likely_bot is True
        assert s.ip_hash is None
        assert s.unique_fingerprint_hash is not None

    def test_nothing_known(self):
        s = build_click_signals(clicked_at=0, ip=None, user_agent="", referrer=None)
        assert s.ip_hash is None
        assert s.unique_fingerprint_hash is None
        assert s.ua_family == "unknown"


# ── shared.bot_detection ─────────────────────────────────────────────────────


class TestBotDetection:
    @pytest.mark.parametrize(
        "ua",
        [
            SLACKBOT,
            CURL,
            "Wget/1.21",
            "facebookexternalhit/1.1",
            "WhatsApp/2.23.20.0",
            "Mozilla/5.0 (compatible; Googlebot/2.1; +http://www.google.com/bot.html)",
            "Mozilla/5.0 (Windows NT 10.0) LinkedInBot/1.0",
        ],
    )
    def test_bots(self, ua):
        assert is_likely_bot_user_agent(ua) is True

    @pytest.mark.parametrize("ua", [CHROME_MAC, SAFARI_IPHONE, "", None])
    def test_humans(self, ua):
        assert is_likely_bot_user_agent(ua) is False

    def test_get_bot_name(self):
        assert get_bot_name(CURL) == "curl"
        assert get_bot_name(CHROME_MAC) is None


# ── shared.crypto ────────────────────────────────────────────────────────────


class TestCrypto:
    def test_hash_text_is_sha256(self):
        assert hash_text("abc") == hashlib.sha256(b"abc").hexdigest()

    def test_fingerprint_source_placeholders(self):
        assert build_fingerprint_source(None, "", "2024-01-01") == "na|na|2024-01-01"

    def test_fingerprint_lowercases_ua(self):
        a = unique_fingerprint_hash("1.2.3.0/24", "Chrome", "2024-01-01")
        b = unique_fingerprint_hash("1.2.3.0/24", "chrome", "2024-01-01")
        assert a == b

    def test_fingerprint_rolls_over_daily(self):
        a = unique_fingerprint_hash("1.2.3.0/24", "ua", "2024-01-01")
        b = unique_fingerprint_hash("1.2.3.0/24", "ua", "2024-01-02")
        assert a != b

    def test_fingerprint_none_without_inputs(self):
        assert unique_fingerprint_hash(None, "  ", "2024-01-01") is None


@pytest.mark.parametrize(
    "seconds, expected",
    [(0, "1970-01-01"), (86_399, "1970-01-01"), (86_400, "1970-01-02")],
)
def test_day_bucket_from_unix_seconds(seconds, expected):
    assert day_bucket_from_unix_seconds(seconds) == expected


# ── shared.validators ────────────────────────────────────────────────────────


@pytest.mark.parametrize(
    "value, expected",
    [
        ("https://github.com/jane", True),
        ("http://example.com", True),
        ("mailto:jane@example.com", False),
        ("ftp://example.com/file", False),
        ("/relative/path", False),
        ("", False),
        (None, False),
    ],
)
def test_is_http_url(value, expected):
    assert is_http_url(value) is expected


class TestBaseUrl:
    def test_normalize_strips_trailing_slash(self):
        assert normalize_base_url(" https://jobops.app/ ") == "https://jobops.app"

    def test_normalize_rejects_non_http(self):
        assert normalize_base_url("ftp://jobops.app") is None

    def test_request_origin_preferred(self):
        assert (
            resolve_public_base_url("https://a.example", "https://b.example")
            == "https://a.example"
        )

    def test_fallback_used_when_origin_invalid(self):
        assert resolve_public_base_url("null", "https://b.example/") == "https://b.example"

    def test_none_when_both_invalid(self):
        assert resolve_public_base_url(None, "") is None


# ── shared.generators ────────────────────────────────────────────────────────


class TestGenerators:
    def test_random_code_alphabet_and_length(self):
        code = generate_random_code(16)
        assert len(code) == 16
        assert re.fullmatch(r"[A-Za-z0-9]+", code)

    def test_tracer_token_shape(self):
        token = generate_tracer_token("jane-acme", 10)
        assert re.fullmatch(r"jane-acme-[A-Za-z0-9]{10}", token)

    def test_tracer_tokens_differ(self):
        assert generate_tracer_token("x") != generate_tracer_token("x")


# ── shared.ip_utils — get_client_ip ──────────────────────────────────────────


@pytest.mark.parametrize(
    "headers, client_host, expected_ip",
    [
        ({"CF-Connecting-IP": "1.1.1.1", "X-Forwarded-For": "2.2.2.2"}, "10.0.0.1", "1.1.1.1"),
        ({"X-Forwarded-For": "2.2.2.2, 10.0.0.5"}, "10.0.0.1", "2.2.2.2"),
        ({"X-Real-IP": "3.3.3.3"}, "10.0.0.1", "3.3.3.3"),
        ({}, "10.0.0.1", "10.0.0.1"),
    ],
    ids=["cloudflare", "forwarded_first_hop", "real_ip", "socket_peer"],
)
def test_get_client_ip(headers, client_host, expected_ip):
    assert get_client_ip(_make_request(headers, client_host)) == expected_ip


def test_get_client_ip_ignores_headers_when_untrusted():
    req = _make_request({"X-Forwarded-For": "2.2.2.2"}, "10.0.0.1")
    assert get_client_ip(req, trust_proxy_headers=False) == "10.0.0.1"


def test_get_client_ip_no_client_returns_none():
    assert get_client_ip(_make_request({}, client_host=None)) is None


# ── shared.logging ───────────────────────────────────────────────────────────


class TestLogging:
    def test_should_sample_bounds(self, monkeypatch):
        monkeypatch.setitem(shared_logging.SAMPLING_RATES, "tracer_redirect", 0.0)
        monkeypatch.setitem(shared_logging.SAMPLING_RATES, "tracer_analytics", 1.0)
        assert shared_logging.should_sample("tracer_redirect") is False
        assert shared_logging.should_sample("tracer_analytics") is True

    def test_unknown_event_always_sampled(self):
        assert shared_logging.should_sample("something_else") is True

    def test_redaction_keeps_tracer_token(self):
        event = shared_logging.redact_sensitive_fields(
            None, "info", {"event": "x", "tracer_token": "jane-acme-abc", "password": "p"}
        )
        assert event["tracer_token"] == "jane-acme-abc"
        assert event["password"] != "p"
