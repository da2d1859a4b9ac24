"""Unit tests for the cookie model, filtering and output formats."""

import json
import time

import pytest

from cdpcookies.connection import decode_response
from cdpcookies.cookies import (
    LIGHT_COOKIE_LIFETIME,
    Cookie,
    LightCookie,
    decode_cookies,
    filter_cookies,
    format_human,
    format_modified,
    load_cookie_file,
    render_cookies,
)
from cdpcookies.exceptions import CDPDecodeError, CDPUsageError


@pytest.fixture
def cookie_records():
    return [
        {
            "name": "SID",
            "value": "abc123",
            "domain": ".bank.example.org",
            "path": "/",
            "expires": 1767225600.5,
            "size": 9,
            "httpOnly": True,
            "secure": True,
            "session": False,
            "sameSite": "Lax",
            "priority": "High",
            "sameParty": False,
        },
        {
            "name": "theme",
            "value": "dark",
            "domain": "news.example.com",
            "path": "/",
            "expires": -1,
            "size": 9,
            "httpOnly": False,
            "secure": False,
            "session": True,
            "priority": "Medium",
        },
        {
            "name": "bank_pref",
            "value": "1",
            "domain": "shop.example.net",
            "path": "/cart",
            "expires": 1800000000,
            "size": 10,
            "httpOnly": False,
            "secure": True,
            "session": False,
            "sameSite": "Strict",
            "priority": "Low",
        },
    ]


@pytest.fixture
def cookies(cookie_records):
    return decode_cookies(cookie_records)


def cookies_frame(records):
    return json.dumps({"id": 1, "result": {"cookies": records}})


@pytest.mark.unit
class TestCookieModel:

    def test_fields(self, cookies):
        cookie = cookies[0]

        assert cookie.name == "SID"
        assert cookie.expires == 1767225600.5
        assert cookie.httpOnly is True
        assert cookie.sameSite == "Lax"

    def test_all_fields_optional(self):
        cookie = Cookie({})

        assert cookie.name == ""
        assert cookie.domain == ""
        assert cookie.expires == 0.0
        assert cookie.size == 0
        assert cookie.secure is False
        assert cookie.priority == ""

    def test_null_fields_read_as_zero_values(self):
        cookie = Cookie(
            {"name": None, "value": None, "domain": "a.com", "expires": None,
             "size": None, "secure": None, "sameSite": None}
        )

        assert cookie.name == ""
        assert cookie.value == ""
        assert cookie.expires == 0.0
        assert cookie.size == 0
        assert cookie.secure is False
        assert cookie.sameSite == ""
        assert cookie.matches("a.com")
        assert not cookie.matches("SID")

    def test_to_dict_keeps_unmodelled_fields(self, cookie_records):
        assert Cookie(cookie_records[0]).to_dict() == cookie_records[0]


@pytest.mark.unit
class TestFiltering:

    def test_matches_name_or_domain(self, cookies):
        assert [c.name for c in filter_cookies(cookies, "bank")] == ["SID", "bank_pref"]

    def test_case_sensitive(self, cookies):
        assert filter_cookies(cookies, "BANK") == []
        assert [c.name for c in filter_cookies(cookies, "SID")] == ["SID"]

    def test_value_and_path_not_searched(self, cookies):
        assert filter_cookies(cookies, "dark") == []
        assert filter_cookies(cookies, "/cart") == []

    @pytest.mark.parametrize("grep", [None, ""])
    def test_empty_filter_keeps_all_in_order(self, cookies, grep):
        assert filter_cookies(cookies, grep) == cookies


@pytest.mark.unit
class TestHumanFormat:

    def test_block_layout(self, cookies):
        output = format_human(cookies[:1])

        assert output == (
            "name: SID\n"
            "value: abc123\n"
            "domain: .bank.example.org\n"
            "path: /\n"
            "expires: 1767225600.500000\n"
            "size: 9\n"
            "httpOnly: true\n"
            "secure: true\n"
            "session: false\n"
            "sameSite: Lax\n"
            "priority: High\n"
            "\n"
        )

    def test_one_block_per_cookie(self, cookies):
        output = format_human(cookies)
        blocks = [b for b in output.split("\n\n") if b]

        assert len(blocks) == 3
        assert all(b.startswith("name: ") for b in blocks)
        assert "sameSite: \n" in output  # theme has no sameSite

    def test_empty(self):
        assert format_human([]) == ""


@pytest.mark.unit
class TestModifiedFormat:

    def test_light_cookie_projection(self, cookies):
        light = LightCookie.from_cookie(cookies[0], now=1_700_000_000.9)

        assert light.to_dict() == {
            "name": "SID",
            "value": "abc123",
            "domain": ".bank.example.org",
            "path": "/",
            "expirationDate": 1_700_000_000.0 + LIGHT_COOKIE_LIFETIME,
        }

    def test_lifetime_is_ten_years(self):
        assert LIGHT_COOKIE_LIFETIME == 315_360_000

    def test_expiry_near_now_plus_ten_years(self, cookies):
        before = time.time()
        output = json.loads(format_modified(cookies))

        assert len(output) == 3
        for item in output:
            assert set(item) == {"name", "value", "domain", "path", "expirationDate"}
            assert abs(item["expirationDate"] - (before + LIGHT_COOKIE_LIFETIME)) < 5

    def test_idempotent_on_non_temporal_fields(self, cookies):
        first = json.loads(format_modified(cookies))
        second = json.loads(format_modified(cookies))

        for a, b in zip(first, second):
            for key in ("name", "value", "domain", "path"):
                assert a[key] == b[key]

    def test_compact_json(self, cookies):
        output = format_modified(cookies[:1], now=0)
        assert output == (
            '[{"name":"SID","value":"abc123","domain":".bank.example.org",'
            '"path":"/","expirationDate":315360000.0}]'
        )

    def test_empty(self):
        assert format_modified([]) == "[]"


@pytest.mark.unit
class TestRenderCookies:

    def test_raw_is_verbatim_and_unfiltered(self, cookie_records):
        frame = cookies_frame(cookie_records)
        response = decode_response(frame, "Storage.getCookies")

        assert render_cookies(response, "raw", grep="nothing-matches") == frame

    def test_modified_with_filter(self, cookie_records):
        response = decode_response(cookies_frame(cookie_records), "Storage.getCookies")
        output = json.loads(render_cookies(response, "modified", grep="example.com"))

        assert [c["name"] for c in output] == ["theme"]

    def test_human_with_filter(self, cookie_records):
        response = decode_response(cookies_frame(cookie_records), "Storage.getCookies")
        output = render_cookies(response, "human", grep="SID")

        assert output.count("name: ") == 1

    @pytest.mark.parametrize("grep", [None, "a.com"])
    def test_null_name_renders_empty(self, grep):
        frame = cookies_frame([{"name": None, "domain": "a.com"}])
        response = decode_response(frame, "Storage.getCookies")

        output = render_cookies(response, "human", grep=grep)

        assert output.startswith("name: \nvalue: \ndomain: a.com\n")
        assert "None" not in output

    def test_empty_cookie_list(self):
        response = decode_response(cookies_frame([]), "Storage.getCookies")

        assert render_cookies(response, "modified") == "[]"
        assert render_cookies(response, "human") == ""

    def test_unknown_format(self, cookie_records):
        response = decode_response(cookies_frame(cookie_records), "Storage.getCookies")

        with pytest.raises(CDPUsageError, match="Unknown cookie format"):
            render_cookies(response, "yaml")


@pytest.mark.unit
class TestLoadCookieFile:

    def test_load_array(self, tmp_path, cookie_records):
        path = tmp_path / "cookies.json"
        path.write_text(json.dumps(cookie_records))

        assert load_cookie_file(str(path)) == cookie_records

    def test_missing_file(self, tmp_path):
        with pytest.raises(CDPUsageError, match="Cannot read cookie file"):
            load_cookie_file(str(tmp_path / "missing.json"))

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "cookies.json"
        path.write_text("[{")

        with pytest.raises(CDPDecodeError, match="Invalid JSON"):
            load_cookie_file(str(path))

    def test_not_an_array(self, tmp_path):
        path = tmp_path / "cookies.json"
        path.write_text('{"cookies": []}')

        with pytest.raises(CDPDecodeError, match="JSON array"):
            load_cookie_file(str(path))
