import pytest

from gdv_pipeline.errors import OutOfBoundsError
from gdv_pipeline.segment import Segment, split_chunks


def test_new_segment_carries_tag_and_sequence():
    segment = Segment("0123", 2)

    assert len(segment.buffer) == 256
    assert segment.tag == "0123"
    assert segment.sequence == "2"
    assert segment.offset == 256
    assert segment.buffer[4:255] == " " * 251


def test_sequence_digit_wraps_for_large_indexes():
    assert Segment("0220", 12).sequence == "2"


def test_invalid_segment_geometry():
    with pytest.raises(ValueError):
        Segment("0123", 0)
    with pytest.raises(ValueError):
        Segment("0123", 1, width=4)


def test_write_and_read():
    segment = Segment("0100")
    segment.write("Hello", 4)

    assert segment.read(4, 5) == "Hello"
    assert segment.buffer.startswith("0100Hello ")


@pytest.mark.parametrize(("offset", "length"), [(-1, 2), (250, 7), (256, 1)])
def test_read_out_of_bounds(offset, length):
    with pytest.raises(OutOfBoundsError):
        Segment("0100").read(offset, length)


def test_write_out_of_bounds():
    with pytest.raises(OutOfBoundsError):
        Segment("0100").write("abc", 254)


def test_load_pads_short_chunk():
    segment = Segment("0100")
    segment.load("0200abc")

    assert len(segment.buffer) == 256
    assert segment.tag == "0200"
    assert segment.read(4, 3) == "abc"


def test_load_rejects_long_chunk():
    with pytest.raises(OutOfBoundsError):
        Segment("0100", width=8).load("0100abcde")


def test_renumber():
    segment = Segment("0001", 3)
    segment.renumber(1)

    assert segment.index == 1
    assert segment.offset == 0
    assert segment.sequence == "1"


def test_reserved_fields_use_absolute_positions():
    segment = Segment("0001", 2)
    tag, sequence = segment.reserved_fields()

    assert (tag.start, tag.end) == (257, 260)
    assert tag.content == "0001"
    assert (sequence.start, sequence.end) == (512, 512)
    assert sequence.content == "2"


def test_export_appends_end_marker():
    segment = Segment("9999", width=8)

    assert segment.export() == "9999   1"
    assert segment.export("\r\n") == "9999   1\r\n"


def test_split_chunks_by_width():
    assert list(split_chunks("A" * 10, 4)) == ["AAAA", "AAAA", "AA"]


def test_split_chunks_honours_line_breaks():
    text = "A" * 10 + "\n" + "B" * 5 + "\r\n" + "C" * 8

    assert list(split_chunks(text, 8)) == ["AAAAAAAA", "AA", "BBBBB", "CCCCCCCC"]


def test_split_chunks_skips_end_marker():
    assert list(split_chunks("AAAA#BBBB#", 4, "#")) == ["AAAA", "BBBB"]


def test_split_chunks_of_empty_text():
    assert list(split_chunks("", 256)) == []
    assert list(split_chunks("\r\n\r\n", 256)) == []
