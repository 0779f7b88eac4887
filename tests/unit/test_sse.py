"""Tests for SSE framing."""

from dify_ai._sse import frame_payload, iter_payloads


def test_frames_split_on_blank_lines():
    lines = ['data: {"a": 1}', "", 'data: {"b": 2}', ""]
    assert list(iter_payloads(lines)) == ['{"a": 1}', '{"b": 2}']


def test_trailing_frame_flushed():
    assert list(iter_payloads(['data: {"a": 1}'])) == ['{"a": 1}']


def test_ping_and_comment_frames_skipped():
    lines = ["event: ping", "", ": keep-alive", "", 'data: {"a": 1}', ""]
    assert list(iter_payloads(lines)) == ['{"a": 1}']


def test_multi_line_data_joined():
    assert frame_payload("data: {\"a\":\ndata: 1}") == '{"a":\n1}'


def test_data_without_space():
    assert frame_payload('data:{"a": 1}') == '{"a": 1}'


def test_empty_frame():
    assert frame_payload("") is None
    assert frame_payload("data: ") is None
