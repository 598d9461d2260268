import struct

import pytest

from ntspgen.packing.errors import NtspError, E_LAYOUT
from ntspgen.packing.layout import ByteWriter, pack_name_string


def test_writer_tracks_offsets_and_fills_exactly():
    w = ByteWriter(10)
    assert w.write(b"abcd") == 0
    assert w.write(struct.pack("<HI", 1, 2)) == 4
    assert w.offset == 10
    assert w.getvalue() == b"abcd" + b"\x01\x00" + b"\x02\x00\x00\x00"


def test_writer_rejects_write_past_bound():
    w = ByteWriter(4)
    w.write(b"abc")
    with pytest.raises(NtspError) as ei:
        w.write(b"de")
    assert ei.value.code == E_LAYOUT
    assert w.offset == 3


def test_writer_rejects_underfilled_buffer():
    w = ByteWriter(8)
    w.write(b"1234")
    with pytest.raises(NtspError):
        w.getvalue()


def test_expect_offset():
    w = ByteWriter(8)
    w.write(b"12")
    w.expect_offset(2, "table")
    with pytest.raises(NtspError):
        w.expect_offset(3, "table")


def test_pack_name_string_null_terminated():
    assert pack_name_string("rock") == b"rock\x00"
    assert pack_name_string("") == b"\x00"


def test_pack_name_string_keeps_raw_filename_bytes():
    assert pack_name_string("caf\udce9") == b"caf\xe9\x00"
