"""Tests for plotstats.report — wire encoding of report documents."""

from __future__ import annotations

import json

import pytest

from plotstats.environment import EnvironmentFacts, HostMetadata
from plotstats.report import build_report, encode_pair, escape_json, is_numeric_literal


class TestIsNumericLiteral:
    @pytest.mark.parametrize("value", ["0", "3.5", "7", "42", "-3", "1e5", ".5", "1."])
    def test_bare(self, value):
        assert is_numeric_literal(value)

    @pytest.mark.parametrize("value", [" 5", "5\t", "1d", "1f", "2.5D"])
    def test_padded_and_suffixed_are_bare(self, value):
        assert is_numeric_literal(value)

    @pytest.mark.parametrize("value", ["10", "100", "2.50", "0.0", "-20"])
    def test_trailing_zero_is_quoted(self, value):
        assert not is_numeric_literal(value)

    @pytest.mark.parametrize("value", ["abc", "", "1.2.3", "nan", "inf", "1_5", ".", "1df"])
    def test_not_numeric(self, value):
        assert not is_numeric_literal(value)

    @pytest.mark.parametrize("value", ["٣", "５", "1５", "١.5"])
    def test_non_ascii_digits_are_quoted(self, value):
        assert not is_numeric_literal(value)


class TestEscapeJson:
    def test_quotes_and_newline(self):
        assert escape_json('he said "hi"\n') == '"he said \\"hi\\"\\n"'

    def test_backslash_and_whitespace_controls(self):
        assert escape_json("a\\b\tc\rd\be") == '"a\\\\b\\tc\\rd\\be"'

    def test_other_control_chars_use_unicode_escape(self):
        assert escape_json("\x01\x1f") == '"\\u0001\\u001f"'

    def test_non_ascii_passes_through(self):
        assert escape_json("héllo ✓") == '"héllo ✓"'

    def test_output_is_valid_json(self):
        text = 'quote " slash \\ ctrl \x02 nl \n'
        assert json.loads(escape_json(text)) == text


class TestEncodePair:
    def test_numeric_value_is_bare(self):
        assert encode_pair("cores", "8") == '"cores":8'

    def test_string_value_is_quoted(self):
        assert encode_pair("osname", "Linux") == '"osname":"Linux"'

    def test_ten_is_quoted(self):
        assert encode_pair("players_online", "10") == '"players_online":"10"'


class TestBuildReport:
    def _host(self, auth_mode=True):
        return HostMetadata("App", "1.5", "srv 2", auth_mode=auth_mode, online_count=lambda: 3)

    def _facts(self):
        return EnvironmentFacts("Linux", "x86_64", "6.1", "3.12.1", 4)

    def test_standard_fields(self):
        doc = json.loads(build_report("abc-123", self._host(), self._facts()))
        assert doc == {
            "guid": "abc-123",
            "plugin_version": 1.5,
            "server_version": "srv 2",
            "players_online": 3,
            "osname": "Linux",
            "osarch": "x86_64",
            "osversion": 6.1,
            "cores": 4,
            "auth_mode": 1,
            "java_version": "3.12.1",
        }

    def test_field_order(self):
        doc = build_report("g", self._host(), self._facts())
        keys = list(json.loads(doc).keys())
        assert keys[0] == "guid"
        assert keys[-1] == "java_version"

    def test_auth_mode_off(self):
        doc = json.loads(build_report("g", self._host(auth_mode=False), self._facts()))
        assert doc["auth_mode"] == 0

    def test_ping_marker(self):
        assert "ping" not in json.loads(build_report("g", self._host(), self._facts()))
        doc = build_report("g", self._host(), self._facts(), ping=True)
        assert '"ping":1' in doc

    def test_graphs_section(self):
        values = {"Usage": {"Players": 5, "Bans": 20}, "Other": {"Default": 0}}
        doc = build_report("g", self._host(), self._facts(), values)
        assert '"Usage":{"Players":5,"Bans":"20"}' in doc
        parsed = json.loads(doc)
        assert set(parsed["graphs"]) == {"Usage", "Other"}
        assert parsed["graphs"]["Other"] == {"Default": 0}

    def test_empty_graphs_omitted(self):
        doc = build_report("g", self._host(), self._facts(), {})
        assert "graphs" not in doc

    def test_non_ascii_digit_version_stays_valid_json(self):
        host = HostMetadata("App", "５", "srv", online_count=lambda: 3)
        doc = json.loads(build_report("g", host, self._facts()))
        assert doc["plugin_version"] == "５"

    def test_graph_without_plotters(self):
        doc = build_report("g", self._host(), self._facts(), {"Empty": {}})
        assert '"graphs":{"Empty":{}}' in doc
