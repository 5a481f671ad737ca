"""
Propagation Helper Tests

Verifies recovery of embedded headers from raw invocation events:
- First balanced JSON object is extracted
- Braces inside strings do not end the object
- Malformed payloads yield no headers
- Integer parsing infers the base from the prefix
"""

import pytest

from lifecycle.propagation import (
    MAX_UINT64,
    convert_raw_payload,
    extract_json_object,
    parse_int64,
    parse_uint64,
    random_id,
)


def test_extracts_object_surrounded_by_noise():
    raw = 'noise{"headers":{"x-datadog-trace-id":"42"}}tail'
    assert extract_json_object(raw) == '{"headers":{"x-datadog-trace-id":"42"}}'


def test_brace_inside_string_is_ignored():
    raw = '{"body":"a } b { c","headers":{}} trailing }'
    assert extract_json_object(raw) == '{"body":"a } b { c","headers":{}}'


def test_escaped_quote_inside_string():
    raw = '{"body":"say \\"}\\" loudly"}'
    assert extract_json_object(raw) == raw


def test_no_brace_returns_none():
    assert extract_json_object("plain text event") is None


def test_unbalanced_object_returns_none():
    assert extract_json_object('{"headers":{"a":"b"}') is None


def test_only_first_object_is_considered():
    raw = '{"other":1} {"headers":{"x-datadog-trace-id":"7"}}'
    assert extract_json_object(raw) == '{"other":1}'


def test_convert_payload_with_headers():
    payload = convert_raw_payload('{"headers":{"x-datadog-trace-id":"42"}}')
    assert payload.headers == {"x-datadog-trace-id": "42"}


@pytest.mark.parametrize("raw", [
    "",
    "no json here",
    "{not json}",
    "[1, 2, 3]",
    '{"headers":"not a mapping"}',
    '{"body":"no headers key"}',
])
def test_convert_payload_without_usable_headers(raw):
    assert convert_raw_payload(raw).headers is None


def test_empty_headers_object_is_still_headers():
    assert convert_raw_payload('{"headers":{}}').headers == {}


def test_non_string_header_values_keep_siblings():
    payload = convert_raw_payload(
        '{"headers":{"x-datadog-trace-id":"42","x-forwarded-for":null,"x-datadog-sampling-priority":1}}'
    )
    assert payload.headers == {
        "x-datadog-trace-id": "42",
        "x-forwarded-for": None,
        "x-datadog-sampling-priority": 1,
    }


@pytest.mark.parametrize("text,expected", [
    ("42", 42),
    ("0x2a", 42),
    ("0X2A", 42),
    ("052", 42),
    ("0o52", 42),
    ("0b101010", 42),
    ("0", 0),
    ("1_000", 1000),
    (str(MAX_UINT64), MAX_UINT64),
])
def test_parse_uint64_accepts(text, expected):
    assert parse_uint64(text) == expected


@pytest.mark.parametrize("text", [
    None,
    42,
    1.5,
    "",
    "-1",
    "+1",
    "abc",
    " 42",
    "4.2",
    "0x",
    "09",
    str(MAX_UINT64 + 1),
])
def test_parse_uint64_rejects(text):
    with pytest.raises(ValueError):
        parse_uint64(text)


def test_parse_int64_accepts_negative_priority():
    assert parse_int64("-1") == -1
    assert parse_int64("2") == 2
    assert parse_int64("+1") == 1


def test_parse_int64_rejects_out_of_range():
    with pytest.raises(ValueError):
        parse_int64(str(1 << 63))


def test_random_id_is_64_bit():
    for _ in range(100):
        assert 0 <= random_id() <= MAX_UINT64
