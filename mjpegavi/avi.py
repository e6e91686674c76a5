"""Motion-JPEG AVI writer built on the RIFF primitives."""

from __future__ import annotations

import enum
import struct
import tempfile
from typing import BinaryIO

from .riff import (
    FOURCC_00DC,
    FOURCC_AVI,
    FOURCC_AVIH,
    FOURCC_HDLR,
    FOURCC_LIST,
    FOURCC_MOVI,
    FOURCC_RIFF,
    FOURCC_STRF,
    FOURCC_STRH,
    FOURCC_STRL,
    FOURCC_VPRP,
    AviMainHeader,
    BitmapInfoHeader,
    IndexEntry,
    StreamHeader,
    VideoProperties,
    write_chunk,
    write_fourcc,
)

__all__ = ["MjpegError", "MjpegWriter"]

_U32 = struct.Struct("<I")
_PLACEHOLDER = 0


class MjpegError(Exception):
    """Raised when an MJPEG AVI file cannot be written as requested."""


class _State(enum.Enum):
    NEW = "new"
    RECORDING = "recording"
    FINISHED = "finished"


class MjpegWriter:
    """Write JPEG frames into an AVI container.

    The header is written with placeholder sizes, frames are appended to the
    ``movi`` list while their index entries go to a separate index stream,
    and :meth:`finish` appends the index and patches every size and count.
    """

    def __init__(
        self,
        out: BinaryIO,
        index: BinaryIO | None = None,
        avih: AviMainHeader | None = None,
        strh: StreamHeader | None = None,
        bmph: BitmapInfoHeader | None = None,
        vprp: VideoProperties | None = None,
    ) -> None:
        self.out = out
        self._owns_index = index is None
        self.index: BinaryIO = tempfile.TemporaryFile() if index is None else index
        self.avih = avih if avih is not None else AviMainHeader()
        self.strh = strh if strh is not None else StreamHeader()
        self.bmph = bmph if bmph is not None else BitmapInfoHeader()
        self.vprp = vprp if vprp is not None else VideoProperties()

        self.riff_size = 0
        self.hdrl_size = 0
        self.strl_size = 0
        self.movi_size = 0
        self.total_frames = 0

        self._riff_size_pos = 0
        self._hdrl_size_pos = 0
        self._strl_size_pos = 0
        self._movi_size_pos = 0
        self._total_frames_pos = 0
        self._strh_length_pos = 0
        self._state = _State.NEW

    def _write(self, data: bytes) -> int:
        self.out.write(data)
        return len(data)

    def _patch(self, pos: int, value: int) -> None:
        back = self.out.tell()
        try:
            self.out.seek(pos)
            self.out.write(_U32.pack(value))
        finally:
            self.out.seek(back)

    def _close_index(self) -> None:
        if self._owns_index and not self.index.closed:
            self.index.close()

    def write_header(self) -> None:
        """Write the RIFF, hdrl and movi headers, leaving sizes to patch later."""
        if self._state is not _State.NEW:
            raise MjpegError("the header has already been written")
        out = self.out

        write_fourcc(FOURCC_RIFF, out)
        self._riff_size_pos = out.tell()
        write_fourcc(_PLACEHOLDER, out)

        self.riff_size += write_fourcc(FOURCC_AVI, out)
        self.riff_size += write_fourcc(FOURCC_LIST, out)
        self._hdrl_size_pos = out.tell()
        self.riff_size += write_fourcc(_PLACEHOLDER, out)

        self.hdrl_size += write_fourcc(FOURCC_HDLR, out)
        self.hdrl_size += write_chunk(FOURCC_AVIH, AviMainHeader.SIZE, out)
        self._total_frames_pos = out.tell() + AviMainHeader.TOTAL_FRAMES_OFFSET
        self.hdrl_size += self._write(self.avih.pack())

        self.hdrl_size += write_fourcc(FOURCC_LIST, out)
        self._strl_size_pos = out.tell()
        self.hdrl_size += write_fourcc(_PLACEHOLDER, out)

        self.strl_size += write_fourcc(FOURCC_STRL, out)
        self.strl_size += write_chunk(FOURCC_STRH, StreamHeader.SIZE, out)
        self._strh_length_pos = out.tell() + StreamHeader.LENGTH_OFFSET
        self.strl_size += self._write(self.strh.pack())
        self.strl_size += write_chunk(FOURCC_STRF, BitmapInfoHeader.SIZE, out)
        self.strl_size += self._write(self.bmph.pack())
        self.strl_size += write_chunk(FOURCC_VPRP, VideoProperties.SIZE, out)
        self.strl_size += self._write(self.vprp.pack())

        self._patch(self._strl_size_pos, self.strl_size)
        self.hdrl_size += self.strl_size
        self._patch(self._hdrl_size_pos, self.hdrl_size)
        self.riff_size += self.hdrl_size

        self.riff_size += write_fourcc(FOURCC_LIST, out)
        self._movi_size_pos = out.tell()
        self.riff_size += write_fourcc(_PLACEHOLDER, out)
        self.movi_size += write_fourcc(FOURCC_MOVI, out)

        self._state = _State.RECORDING

    def write_frame(self, frame: bytes) -> None:
        """Append one JPEG image as a '00dc' chunk and record its index entry."""
        if self._state is not _State.RECORDING:
            raise MjpegError("frames can only be written after the header and before finishing")
        data = bytes(frame)
        self.total_frames += 1

        entry = IndexEntry(id=FOURCC_00DC, flags=0, offset=self.movi_size, size=len(data))
        self.index.write(entry.pack())

        self.movi_size += write_chunk(FOURCC_00DC, len(data), self.out)
        self.movi_size += self._write(data)
        if len(data) % 2:
            self.movi_size += self._write(b"\0")

    def finish(self) -> None:
        """Append the index and patch the sizes and frame counts."""
        if self._state is not _State.RECORDING:
            raise MjpegError("the file cannot be finished in its current state")

        self._patch(self._movi_size_pos, self.movi_size)
        self.riff_size += self.movi_size

        self.index.seek(0)
        for number in range(self.total_frames):
            raw = self.index.read(IndexEntry.SIZE)
            if len(raw) != IndexEntry.SIZE:
                raise MjpegError(
                    f"index entry {number}: expected {IndexEntry.SIZE} bytes, got {len(raw)}"
                )
            self.riff_size += self._write(raw)

        self._patch(self._riff_size_pos, self.riff_size)
        self._patch(self._total_frames_pos, self.total_frames)
        self._patch(self._strh_length_pos, self.total_frames)

        self._state = _State.FINISHED
        self._close_index()

    def __enter__(self) -> MjpegWriter:
        if self._state is _State.NEW:
            self.write_header()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        try:
            if exc_type is None and self._state is _State.RECORDING:
                self.finish()
        finally:
            self._close_index()