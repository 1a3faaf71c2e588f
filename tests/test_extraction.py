"""Tests for extraction utilities."""

from sde.utils.extraction import _extract_balanced, _is_valid_json, extract_json_block


class TestExtractJsonBlock:
    def test_raw_json(self):
        result = extract_json_block('{"key": "value"}')
        assert result == '{"key": "value"}'

    def test_raw_json_with_whitespace(self):
        assert extract_json_block('  \n{"a": 1}\n ') == '{"a": 1}'

    def test_fenced_json(self):
        text = 'Here you go:\n```json\n{"a": 1}\n```\nDone.'
        assert extract_json_block(text) == '{"a": 1}'

    def test_fenced_without_language(self):
        assert extract_json_block('```\n{"a": 1}\n```') == '{"a": 1}'

    def test_embedded_object(self):
        text = 'Sure! {"a": {"b": 2}} hope that helps'
        assert extract_json_block(text) == '{"a": {"b": 2}}'

    def test_braces_inside_strings(self):
        text = 'prefix {"msg": "use } carefully", "n": 1} suffix'
        assert extract_json_block(text) == '{"msg": "use } carefully", "n": 1}'

    def test_no_json(self):
        assert extract_json_block("no object here") is None

    def test_unbalanced(self):
        assert extract_json_block('{"a": 1') is None


class TestHelpers:
    def test_extract_balanced_escaped_quote(self):
        text = r'{"a": "say \"}\" now"}'
        assert _extract_balanced(text, "{", "}") == text

    def test_is_valid_json(self):
        assert _is_valid_json('{"a": 1}')
        assert not _is_valid_json("{a: 1}")
