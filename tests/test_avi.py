import io
import struct

import pytest

from mjpegavi.avi import MjpegError, MjpegWriter
from mjpegavi.riff import (
    AviMainHeader,
    BitmapInfoHeader,
    IndexEntry,
    StreamHeader,
    VideoProperties,
    make_fourcc,
)


def _u32(data, pos):
    return struct.unpack_from("<I", data, pos)[0]


def _layout(data):
    hdrl_size = _u32(data, 16)
    hdrl_end = 20 + hdrl_size
    movi_size = _u32(data, hdrl_end + 4)
    movi_start = hdrl_end + 8
    return {
        "riff_size": _u32(data, 4),
        "hdrl_size": hdrl_size,
        "hdrl_end": hdrl_end,
        "movi_size": movi_size,
        "movi_start": movi_start,
        "index_start": movi_start + movi_size,
    }


def _record(frames, index=None, **headers):
    out = io.BytesIO()
    writer = MjpegWriter(out, index if index is not None else io.BytesIO(), **headers)
    writer.write_header()
    for frame in frames:
        writer.write_frame(frame)
    writer.finish()
    return out.getvalue(), writer


def test_header_starts_with_fixed_tags():
    data, _ = _record([])
    assert data[:4] == b"RIFF"
    assert data[8:12] == b"AVI "
    assert data[12:16] == b"LIST"
    assert data[20:24] == b"HDLR"
    assert data[24:28] == b"avih"
    assert _u32(data, 28) == AviMainHeader.SIZE


def test_riff_size_is_file_size_minus_eight():
    data, writer = _record([b"\xff\xd8abc\xff\xd9", b"\xff\xd8ab\xff\xd9"])
    assert _u32(data, 4) == len(data) - 8
    assert writer.riff_size == len(data) - 8


def test_empty_recording_has_only_movi_tag():
    data, writer = _record([])
    layout = _layout(data)
    assert layout["movi_size"] == 4
    assert data[layout["movi_start"]:layout["movi_start"] + 4] == b"movi"
    assert layout["index_start"] == len(data)
    assert writer.total_frames == 0


def test_hdrl_list_ends_at_movi_list():
    data, _ = _record([b"abcd"])
    layout = _layout(data)
    assert data[layout["hdrl_end"]:layout["hdrl_end"] + 4] == b"LIST"


def test_strl_list_and_sub_chunks():
    data, writer = _record([])
    strl_pos = 32 + AviMainHeader.SIZE
    assert data[strl_pos:strl_pos + 4] == b"LIST"
    strl_size = _u32(data, strl_pos + 4)
    assert strl_size == writer.strl_size
    assert strl_pos + 8 + strl_size == _layout(data)["hdrl_end"]
    body = strl_pos + 8
    assert data[body:body + 4] == b"strl"
    pos = body + 4
    for tag, size in (
        (b"strh", StreamHeader.SIZE),
        (b"strf", BitmapInfoHeader.SIZE),
        (b"vprp", VideoProperties.SIZE),
    ):
        assert data[pos:pos + 4] == tag
        assert _u32(data, pos + 4) == size
        pos += 8 + size
    assert pos == strl_pos + 8 + strl_size


def test_frames_are_stored_with_padding():
    frames = [b"odd", b"even"]
    data, _ = _record(frames)
    layout = _layout(data)
    pos = layout["movi_start"] + 4
    for frame in frames:
        assert data[pos:pos + 4] == b"00dc"
        assert _u32(data, pos + 4) == len(frame)
        assert data[pos + 8:pos + 8 + len(frame)] == frame
        pos += 8 + len(frame)
        if len(frame) % 2:
            assert data[pos:pos + 1] == b"\0"
            pos += 1
    assert pos == layout["index_start"]
    assert layout["movi_size"] % 2 == 0


def test_index_entries_point_at_frame_chunks():
    frames = [b"x" * 5, b"y" * 8, b"z" * 1]
    data, _ = _record(frames)
    layout = _layout(data)
    base = layout["movi_start"]
    assert len(data) - layout["index_start"] == IndexEntry.SIZE * len(frames)
    for number, frame in enumerate(frames):
        start = layout["index_start"] + number * IndexEntry.SIZE
        entry = IndexEntry.unpack(data[start:start + IndexEntry.SIZE])
        assert entry.id == make_fourcc("00dc")
        assert entry.flags == 0
        assert entry.size == len(frame)
        assert data[base + entry.offset:base + entry.offset + 4] == b"00dc"
        payload = base + entry.offset + 8
        assert data[payload:payload + entry.size] == frame


def test_first_index_offset_follows_movi_tag():
    data, _ = _record([b"frame"])
    start = _layout(data)["index_start"]
    assert IndexEntry.unpack(data[start:]).offset == 4


def test_frame_counts_are_patched():
    frames = [b"a", b"bb", b"ccc"]
    data, _ = _record(frames)
    avih = AviMainHeader.unpack(data[32:32 + AviMainHeader.SIZE])
    assert avih.total_frames == len(frames)
    strh_pos = 32 + AviMainHeader.SIZE + 12 + 8
    strh = StreamHeader.unpack(data[strh_pos:strh_pos + StreamHeader.SIZE])
    assert strh.length == len(frames)


def test_given_headers_are_written():
    avih = AviMainHeader(micro_sec_per_frame=40000, width=320, height=240, streams=1)
    strh = StreamHeader(type=make_fourcc("vids"), handler=make_fourcc("MJPG"), scale=1, rate=25)
    bmph = BitmapInfoHeader(width=320, height=240, planes=1, bit_count=24,
                            compression=make_fourcc("MJPG"))
    vprp = VideoProperties(frame_width_in_pixels=320, frame_height_in_lines=240,
                           fields_per_frame=1)
    data, _ = _record([b"jpeg"], avih=avih, strh=strh, bmph=bmph, vprp=vprp)
    read_avih = AviMainHeader.unpack(data[32:])
    assert (read_avih.width, read_avih.height, read_avih.micro_sec_per_frame) == (320, 240, 40000)
    assert read_avih.total_frames == 1
    strh_pos = 32 + AviMainHeader.SIZE + 12 + 8
    read_strh = StreamHeader.unpack(data[strh_pos:])
    assert read_strh.handler == make_fourcc("MJPG")
    assert read_strh.rate == 25
    bmph_pos = strh_pos + StreamHeader.SIZE + 8
    assert BitmapInfoHeader.unpack(data[bmph_pos:]) == bmph
    vprp_pos = bmph_pos + BitmapInfoHeader.SIZE + 8
    assert VideoProperties.unpack(data[vprp_pos:]) == vprp


def test_default_index_is_temporary_file():
    out = io.BytesIO()
    writer = MjpegWriter(out)
    writer.write_header()
    writer.write_frame(b"abc")
    writer.finish()
    data = out.getvalue()
    assert _u32(data, 4) == len(data) - 8
    assert writer.index.closed


def test_context_manager_writes_complete_file():
    out = io.BytesIO()
    with MjpegWriter(out, io.BytesIO()) as writer:
        writer.write_frame(b"one")
        writer.write_frame(b"two!")
    data = out.getvalue()
    assert _u32(data, 4) == len(data) - 8
    assert writer.total_frames == 2


def test_context_manager_leaves_file_unfinished_on_error():
    out = io.BytesIO()
    with pytest.raises(ValueError):
        with MjpegWriter(out) as writer:
            writer.write_frame(b"one")
            raise ValueError("stop")
    assert _u32(out.getvalue(), 4) == 0


def test_truncated_index_raises():
    index = io.BytesIO()
    out = io.BytesIO()
    writer = MjpegWriter(out, index)
    writer.write_header()
    writer.write_frame(b"first")
    writer.write_frame(b"second")
    index.truncate(IndexEntry.SIZE)
    with pytest.raises(MjpegError):
        writer.finish()


def test_frame_before_header_raises():
    writer = MjpegWriter(io.BytesIO(), io.BytesIO())
    with pytest.raises(MjpegError):
        writer.write_frame(b"x")


def test_finish_before_header_raises():
    writer = MjpegWriter(io.BytesIO(), io.BytesIO())
    with pytest.raises(MjpegError):
        writer.finish()


def test_header_twice_raises():
    writer = MjpegWriter(io.BytesIO(), io.BytesIO())
    writer.write_header()
    with pytest.raises(MjpegError):
        writer.write_header()


def test_frame_after_finish_raises():
    out = io.BytesIO()
    writer = MjpegWriter(out, io.BytesIO())
    writer.write_header()
    writer.finish()
    with pytest.raises(MjpegError):
        writer.write_frame(b"late")