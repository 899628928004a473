import pytest

from src.application.memo.narrative_parser import parse_narrative, strip_code_fences
from src.domain.errors import NarrativeGenerationError, NarrativeParseError


def test_json_fence_is_stripped():
    reply = '```json\n{"company": {"name": "Apple"}}\n```'

    assert parse_narrative(reply) == {"company": {"name": "Apple"}}


def test_bare_fence_and_surrounding_whitespace():
    assert strip_code_fences('\n  ```\n{"a": 1}\n```  \n') == '{"a": 1}'


def test_unfenced_json_passes_through():
    assert parse_narrative('{"a": [1, 2]}') == {"a": [1, 2]}


def test_crlf_fence():
    assert parse_narrative('```json\r\n{"a": 1}\r\n```') == {"a": 1}


def test_invalid_json_keeps_raw_reply():
    reply = "Sure! Here is the memo you asked for."

    with pytest.raises(NarrativeParseError) as excinfo:
        parse_narrative(reply)

    assert excinfo.value.raw_response == reply
    assert isinstance(excinfo.value, NarrativeGenerationError)


def test_non_object_json_is_rejected():
    with pytest.raises(NarrativeParseError):
        parse_narrative("[1, 2, 3]")


def test_empty_reply_is_rejected():
    with pytest.raises(NarrativeParseError):
        parse_narrative("")


def test_fence_surrounded_by_prose():
    reply = 'Here is the memo you asked for:\n```json\n{"company": {"name": "Apple Inc."}}\n```\nLet me know if you need more.'

    assert strip_code_fences(reply) == '{"company": {"name": "Apple Inc."}}'
    assert parse_narrative(reply)["company"]["name"] == "Apple Inc."


def test_first_of_several_embedded_fences_wins():
    reply = 'Sure.\n```\n{"a": 1}\n```\nAlternatively:\n```json\n{"a": 2}\n```'

    assert parse_narrative(reply) == {"a": 1}
