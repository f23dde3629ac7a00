import json

import pytest

from nightscout_bar.poller.errors import DecodeError, EmptyBodyError, NoEntriesError, ParseError
from nightscout_bar.poller.parser import parse_entries, parse_entry
from nightscout_bar.shared.models import Reading


def test_entry_without_direction():
    body = b'[{"sgv":120,"dateString":"2024-01-01T12:00:00.000Z"}]'
    reading = parse_entries(body)
    assert reading == Reading(value=120, direction=None, server_timestamp="2024-01-01T12:00:00.000Z")


def test_only_first_entry_is_used():
    body = json.dumps(
        [
            {"sgv": 101, "direction": "SingleUp", "dateString": "2024-01-01T12:05:00.000Z"},
            {"sgv": 95, "direction": "Flat", "dateString": "2024-01-01T12:00:00.000Z"},
        ]
    ).encode()
    reading = parse_entries(body)
    assert reading.value == 101
    assert reading.direction == "SingleUp"


def test_extra_fields_are_ignored():
    body = json.dumps(
        [{"_id": "abc", "sgv": 88.5, "dateString": "x", "type": "sgv", "noise": 1}]
    ).encode()
    assert parse_entries(body).value == 88.5


def test_empty_array():
    with pytest.raises(NoEntriesError):
        parse_entries(b"[]")


@pytest.mark.parametrize("body", [b"", b"   \n", None])
def test_empty_body(body):
    with pytest.raises(EmptyBodyError):
        parse_entries(body)


@pytest.mark.parametrize(
    "body",
    [
        b"{not json",
        b"<html>Unauthorized</html>",
        b'{"status": 401, "message": "Unauthorized"}',
        b'"just a string"',
        b"\xff\xfe\x00",
    ],
)
def test_malformed_or_wrong_shape(body):
    with pytest.raises(DecodeError):
        parse_entries(body)


@pytest.mark.parametrize(
    "entry, missing",
    [
        ({"dateString": "2024-01-01T12:00:00.000Z"}, "sgv"),
        ({"sgv": 120}, "dateString"),
        ({"sgv": "120", "dateString": "2024-01-01T12:00:00.000Z"}, "sgv"),
        ({"sgv": True, "dateString": "2024-01-01T12:00:00.000Z"}, "sgv"),
        ({"sgv": 120, "dateString": 1704110400000}, "dateString"),
    ],
)
def test_required_fields(entry, missing):
    with pytest.raises(DecodeError, match=missing):
        parse_entry(entry)


def test_non_object_entry():
    with pytest.raises(DecodeError, match="entry object"):
        parse_entries(b"[120]")


def test_non_string_direction_is_treated_as_absent():
    reading = parse_entry({"sgv": 120, "direction": 3, "dateString": "x"})
    assert reading.direction is None


def test_parse_errors_have_distinct_diagnostics():
    messages = set()
    for body in (b"", b"{", b"[]"):
        with pytest.raises(ParseError) as info:
            parse_entries(body)
        messages.add(info.value.diagnostic)
    assert len(messages) == 3


@pytest.mark.parametrize("literal", [b"NaN", b"Infinity", b"-Infinity", b"1" * 400])
def test_non_finite_sgv_rejected(literal):
    body = b'[{"sgv": ' + literal + b', "direction": "Flat", "dateString": "2024-01-01T12:00:00Z"}]'
    with pytest.raises(DecodeError, match="finite number"):
        parse_entries(body)


def test_oversized_integer_literal_is_decode_error():
    with pytest.raises(DecodeError):
        parse_entries(b'[{"sgv": ' + b"9" * 5000 + b', "dateString": "x"}]')
