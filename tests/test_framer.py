"""
Line framing over arbitrarily chunked serial input.
"""

import asyncio

import pytest

from ecoin_link.core.link.framer import LineFramer
from fakes import FakeReader

STREAM = "boot ok\r\n1\r\nDETECT sensor A\n\n  temp=21.5  \r\nlast"


def frame_all(chunks):
    framer = LineFramer()
    lines = []
    for chunk in chunks:
        lines.extend(framer.feed(chunk))
    tail = framer.flush()
    if tail is not None:
        lines.append(tail)
    return lines


def expected_lines(text):
    return [part.strip() for part in text.split("\n")]


@pytest.mark.parametrize("size", [1, 2, 3, 5, 7, 64])
def test_framing_is_chunk_boundary_independent(size):
    chunks = [STREAM[i:i + size] for i in range(0, len(STREAM), size)]
    assert frame_all(chunks) == expected_lines(STREAM)


def test_whole_stream_in_one_chunk():
    assert frame_all([STREAM]) == ["boot ok", "1", "DETECT sensor A", "", "temp=21.5", "last"]


def test_partial_line_is_held_until_newline():
    framer = LineFramer()
    assert framer.feed("DET") == []
    assert framer.feed("ECT\r") == []
    assert framer.feed("\n") == ["DETECT"]
    assert framer.flush() is None


def test_utf8_sequence_split_across_chunks():
    framer = LineFramer()
    raw = "temp 21°C\n".encode("utf-8")
    cut = raw.index(b"\xb0")
    assert framer.feed_bytes(raw[:cut]) == []
    assert framer.feed_bytes(raw[cut:]) == ["temp 21°C"]


def test_invalid_utf8_is_replaced_not_raised():
    framer = LineFramer()
    assert framer.feed_bytes(b"\xffok\n") == ["�ok"]


def test_iter_lines_flushes_tail_at_end_of_stream():
    async def run():
        reader = FakeReader()
        for chunk in (b"no", b"ise\n1", b"\r\nDETECT", b""):
            reader.push(chunk)
        return [line async for line in LineFramer().iter_lines(reader)]

    assert asyncio.run(run()) == ["noise", "1", "DETECT"]
