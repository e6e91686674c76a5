"""RIFF/AVI primitives: FOURCC codes, on-disk header records and chunk I/O."""

from __future__ import annotations

import enum
import io
import struct
from dataclasses import dataclass, field, fields
from typing import Any, BinaryIO, ClassVar

__all__ = [
    "AviFlag",
    "IndexFlag",
    "Aspect",
    "WaveFormatTag",
    "Mp3Flag",
    "MPEGLAYER3_ID_MPEG",
    "AviMainHeader",
    "FrameRect",
    "StreamHeader",
    "Rgba",
    "Rgb",
    "BitmapInfoHeader",
    "WaveFormat",
    "AdpcmHeader",
    "Mp3Header",
    "IndexEntry",
    "SubtitleHeader",
    "VideoFieldDesc",
    "VideoProperties",
    "make_fourcc",
    "fourcc_to_str",
    "read_chunk",
    "read_fourcc",
    "copy_bytes",
    "write_chunk",
    "write_fourcc",
    "update_chunk_size",
]

_COPY_BLOCK = 4096
_CHUNK = struct.Struct("<II")
_FOURCC = struct.Struct("<I")


def make_fourcc(text: str) -> int:
    """Return the little-endian integer code of a four-character tag."""
    if not isinstance(text, str) or len(text) != 4:
        raise ValueError(f"a FOURCC needs exactly four characters, got {text!r}")
    try:
        raw = text.encode("latin-1")
    except UnicodeEncodeError as exc:
        raise ValueError(f"FOURCC {text!r} is not single-byte text") from exc
    return int.from_bytes(raw, "little")


def fourcc_to_str(fcc: int) -> str:
    """Return the four-character tag of an integer FOURCC code."""
    try:
        return fcc.to_bytes(4, "little").decode("latin-1")
    except OverflowError as exc:
        raise ValueError(f"FOURCC code out of range: {fcc!r}") from exc


FOURCC_RIFF = make_fourcc("RIFF")
FOURCC_AVI = make_fourcc("AVI ")
FOURCC_JUNK = make_fourcc("JUNK")
FOURCC_LIST = make_fourcc("LIST")
FOURCC_INFO = make_fourcc("INFO")
FOURCC_DXDT = make_fourcc("DXDT")
FOURCC_HDLR = make_fourcc("HDLR")
FOURCC_AVIH = make_fourcc("avih")
FOURCC_STRL = make_fourcc("strl")
FOURCC_STRH = make_fourcc("strh")
FOURCC_STRF = make_fourcc("strf")
FOURCC_STRD = make_fourcc("strd")
FOURCC_STRN = make_fourcc("strn")
FOURCC_VIDS = make_fourcc("vids")
FOURCC_AUDS = make_fourcc("auds")
FOURCC_ODML = make_fourcc("odml")
FOURCC_DMLH = make_fourcc("dmlh")
FOURCC_MOVI = make_fourcc("movi")
FOURCC_IDX1 = make_fourcc("idx1")
FOURCC_VPRP = make_fourcc("vprp")
FOURCC_WAVE = make_fourcc("WAVE")
FOURCC_FMT = make_fourcc("fmt ")
FOURCC_DATA = make_fourcc("data")
FOURCC_00DC = make_fourcc("00dc")
FOURCC_JPEG = make_fourcc("MJPG")


class AviFlag(enum.IntFlag):
    """Flags of the AVI main header."""

    HASINDEX = 0x00000010
    MUSTUSEINDEX = 0x00000020
    ISINTERLEAVED = 0x00000100
    TRUSTCKTYPE = 0x00000800
    WASCAPTUREFILE = 0x00010000
    COPYRIGHTED = 0x00020000


class IndexFlag(enum.IntFlag):
    """Flags of an idx1 index entry."""

    LIST = 0x00000001
    KEYFRAME = 0x00000010
    NOTIME = 0x00000100


class Aspect(enum.IntEnum):
    """Frame aspect ratios, high word to low word."""

    ASPECT_16_9 = 0x00100009
    ASPECT_4_3 = 0x00040003
    ASPECT_3_2 = 0x00030002


class Mp3Flag(enum.IntEnum):
    """Padding modes of an MPEG layer 3 stream."""

    PADDING_ISO = 0x00000000
    PADDING_ON = 0x00000001
    PADDING_OFF = 0x00000002


MPEGLAYER3_ID_MPEG = 1


class WaveFormatTag(enum.IntEnum):
    """Registered wave format tags."""

    UNKNOWN = 0x0000
    PCM = 0x0001
    ADPCM = 0x0002
    IEEE_FLOAT = 0x0003
    VSELP = 0x0004
    IBM_CVSD = 0x0005
    ALAW = 0x0006
    MULAW = 0x0007
    DTS = 0x0008
    OKI_ADPCM = 0x0010
    DVI_ADPCM = 0x0011
    IMA_ADPCM = 0x0011
    MEDIASPACE_ADPCM = 0x0012
    SIERRA_ADPCM = 0x0013
    G723_ADPCM = 0x0014
    DIGISTD = 0x0015
    DIGIFIX = 0x0016
    DIALOGIC_OKI_ADPCM = 0x0017
    MEDIAVISION_ADPCM = 0x0018
    CU_CODEC = 0x0019
    YAMAHA_ADPCM = 0x0020
    SONARC = 0x0021
    DSPGROUP_TRUESPEECH = 0x0022
    ECHOSC1 = 0x0023
    AUDIOFILE_AF36 = 0x0024
    APTX = 0x0025
    AUDIOFILE_AF10 = 0x0026
    PROSODY_1612 = 0x0027
    LRC = 0x0028
    DOLBY_AC2 = 0x0030
    GSM610 = 0x0031
    MSNAUDIO = 0x0032
    ANTEX_ADPCME = 0x0033
    CONTROL_RES_VQLPC = 0x0034
    DIGIREAL = 0x0035
    DIGIADPCM = 0x0036
    CONTROL_RES_CR10 = 0x0037
    NMS_VBXADPCM = 0x0038
    CS_IMAADPCM = 0x0039
    ECHOSC3 = 0x003A
    ROCKWELL_ADPCM = 0x003B
    ROCKWELL_DIGITALK = 0x003C
    XEBEC = 0x003D
    G721_ADPCM = 0x0040
    G728_CELP = 0x0041
    MSG723 = 0x0042
    MPEG = 0x0050
    RT24 = 0x0052
    PAC = 0x0053
    MPEGLAYER3 = 0x0055
    LUCENT_G723 = 0x0059
    CIRRUS = 0x0060
    ESPCM = 0x0061
    VOXWARE = 0x0062
    CANOPUS_ATRAC = 0x0063
    G726_ADPCM = 0x0064
    G722_ADPCM = 0x0065
    DSAT_DISPLAY = 0x0067
    VOXWARE_BYTE_ALIGNED = 0x0069
    VOXWARE_AC8 = 0x0070
    VOXWARE_AC10 = 0x0071
    VOXWARE_AC16 = 0x0072
    VOXWARE_AC20 = 0x0073
    VOXWARE_RT24 = 0x0074
    VOXWARE_RT29 = 0x0075
    VOXWARE_RT29HW = 0x0076
    VOXWARE_VR12 = 0x0077
    VOXWARE_VR18 = 0x0078
    VOXWARE_TQ40 = 0x0079
    SOFTSOUND = 0x0080
    VOXWARE_TQ60 = 0x0081
    MSRT24 = 0x0082
    G729A = 0x0083
    MVI_MVI2 = 0x0084
    DF_G726 = 0x0085
    DF_GSM610 = 0x0086
    ISIAUDIO = 0x0088
    ONLIVE = 0x0089
    SBC24 = 0x0091
    DOLBY_AC3_SPDIF = 0x0092
    MEDIASONIC_G723 = 0x0093
    PROSODY_8KBPS = 0x0094
    ZYXEL_ADPCM = 0x0097
    PHILIPS_LPCBB = 0x0098
    PACKED = 0x0099
    MALDEN_PHONYTALK = 0x00A0
    RHETOREX_ADPCM = 0x0100
    IRAT = 0x0101
    VIVO_G723 = 0x0111
    VIVO_SIREN = 0x0112
    DIGITAL_G723 = 0x0123
    SANYO_LD_ADPCM = 0x0125
    SIPROLAB_ACEPLNET = 0x0130
    SIPROLAB_ACELP4800 = 0x0131
    SIPROLAB_ACELP8V3 = 0x0132
    SIPROLAB_G729 = 0x0133
    SIPROLAB_G729A = 0x0134
    SIPROLAB_KELVIN = 0x0135
    G726ADPCM = 0x0140
    QUALCOMM_PUREVOICE = 0x0150
    QUALCOMM_HALFRATE = 0x0151
    TUBGSM = 0x0155
    MSAUDIO1 = 0x0160
    CREATIVE_ADPCM = 0x0200
    CREATIVE_FASTSPEECH8 = 0x0202
    CREATIVE_FASTSPEECH10 = 0x0203
    UHER_ADPCM = 0x0210
    QUARTERDECK = 0x0220
    ILINK_VC = 0x0230
    RAW_SPORT = 0x0240
    IPI_HSX = 0x0250
    IPI_RPELP = 0x0251
    CS2 = 0x0260
    SONY_SCX = 0x0270
    FM_TOWNS_SND = 0x0300
    BTV_DIGITAL = 0x0400
    QDESIGN_MUSIC = 0x0450
    VME_VMPCM = 0x0680
    TPC = 0x0681
    OLIGSM = 0x1000
    OLIADPCM = 0x1001
    OLICELP = 0x1002
    OLISBC = 0x1003
    OLIOPR = 0x1004
    LH_CODEC = 0x1100
    NORRIS = 0x1400
    SOUNDSPACE_MUSICOMPRESS = 0x1500
    DVM = 0x2000
    EXTENSIBLE = 0xFFFE


def _pack(layout: struct.Struct, *values: int | bytes) -> bytes:
    try:
        return layout.pack(*values)
    except struct.error as exc:
        raise ValueError(str(exc)) from exc


def _unpack(layout: struct.Struct, data: bytes, offset: int = 0) -> tuple:
    if len(data) - offset < layout.size:
        raise ValueError(
            f"need {layout.size} bytes, got {max(len(data) - offset, 0)}"
        )
    return layout.unpack_from(data, offset)


def _pack_flat(record: Any) -> bytes:
    """Pack a record whose dataclass fields map one to one onto its layout."""
    return _pack(record._STRUCT, *(getattr(record, f.name) for f in fields(record)))


@dataclass
class AviMainHeader:
    """The 'avih' main AVI header."""

    _STRUCT: ClassVar[struct.Struct] = struct.Struct("<14I")
    SIZE: ClassVar[int] = _STRUCT.size
    TOTAL_FRAMES_OFFSET: ClassVar[int] = 16

    micro_sec_per_frame: int = 0
    max_bytes_per_sec: int = 0
    padding_granularity: int = 0
    flags: int = 0
    total_frames: int = 0
    initial_frames: int = 0
    streams: int = 0
    suggested_buffer_size: int = 0
    width: int = 0
    height: int = 0
    reserved: tuple[int, int, int, int] = (0, 0, 0, 0)

    def pack(self) -> bytes:
        """Return the little-endian on-disk bytes of this header."""
        if len(self.reserved) != 4:
            raise ValueError("reserved must hold exactly four values")
        return _pack(
            self._STRUCT,
            self.micro_sec_per_frame,
            self.max_bytes_per_sec,
            self.padding_granularity,
            self.flags,
            self.total_frames,
            self.initial_frames,
            self.streams,
            self.suggested_buffer_size,
            self.width,
            self.height,
            *self.reserved,
        )

    @classmethod
    def unpack(cls, data: bytes) -> AviMainHeader:
        """Build a header from the first bytes of ``data``."""
        values = _unpack(cls._STRUCT, data)
        return cls(*values[:10], reserved=tuple(values[10:]))


@dataclass
class FrameRect:
    """Destination rectangle of a stream."""

    _STRUCT: ClassVar[struct.Struct] = struct.Struct("<4H")
    SIZE: ClassVar[int] = _STRUCT.size

    left: int = 0
    top: int = 0
    right: int = 0
    bottom: int = 0

    def pack(self) -> bytes:
        """Return the little-endian on-disk bytes of this rectangle."""
        return _pack_flat(self)

    @classmethod
    def unpack(cls, data: bytes) -> FrameRect:
        """Build a rectangle from the first bytes of ``data``."""
        return cls(*_unpack(cls._STRUCT, data))


@dataclass
class StreamHeader:
    """The 'strh' stream header."""

    _STRUCT: ClassVar[struct.Struct] = struct.Struct("<3I2H8I")
    SIZE: ClassVar[int] = _STRUCT.size + FrameRect.SIZE
    LENGTH_OFFSET: ClassVar[int] = 32

    type: int = 0
    handler: int = 0
    flags: int = 0
    priority: int = 0
    language: int = 0
    initial_frames: int = 0
    scale: int = 0
    rate: int = 0
    start: int = 0
    length: int = 0
    suggested_buffer_size: int = 0
    quality: int = 0
    sample_size: int = 0
    frame: FrameRect = field(default_factory=FrameRect)

    def pack(self) -> bytes:
        """Return the little-endian on-disk bytes of this header."""
        head = _pack(
            self._STRUCT,
            self.type,
            self.handler,
            self.flags,
            self.priority,
            self.language,
            self.initial_frames,
            self.scale,
            self.rate,
            self.start,
            self.length,
            self.suggested_buffer_size,
            self.quality,
            self.sample_size,
        )
        return head + self.frame.pack()

    @classmethod
    def unpack(cls, data: bytes) -> StreamHeader:
        """Build a header from the first bytes of ``data``."""
        if len(data) < cls.SIZE:
            raise ValueError(f"need {cls.SIZE} bytes, got {len(data)}")
        values = _unpack(cls._STRUCT, data)
        return cls(*values, frame=FrameRect.unpack(data[cls._STRUCT.size:]))


@dataclass
class Rgba:
    """A colour with alpha, stored blue first."""

    _STRUCT: ClassVar[struct.Struct] = struct.Struct("<4B")
    SIZE: ClassVar[int] = _STRUCT.size

    blue: int = 0
    green: int = 0
    red: int = 0
    alpha: int = 0

    def pack(self) -> bytes:
        """Return the on-disk bytes of this colour."""
        return _pack_flat(self)

    @classmethod
    def unpack(cls, data: bytes) -> Rgba:
        """Build a colour from the first bytes of ``data``."""
        return cls(*_unpack(cls._STRUCT, data))


@dataclass
class Rgb:
    """A colour, stored blue first."""

    _STRUCT: ClassVar[struct.Struct] = struct.Struct("<3B")
    SIZE: ClassVar[int] = _STRUCT.size

    blue: int = 0
    green: int = 0
    red: int = 0

    def pack(self) -> bytes:
        """Return the on-disk bytes of this colour."""
        return _pack_flat(self)

    @classmethod
    def unpack(cls, data: bytes) -> Rgb:
        """Build a colour from the first bytes of ``data``."""
        return cls(*_unpack(cls._STRUCT, data))


@dataclass
class BitmapInfoHeader:
    """The bitmap info header used as the video 'strf' format."""

    _STRUCT: ClassVar[struct.Struct] = struct.Struct("<IiiHHIIiiII")
    SIZE: ClassVar[int] = _STRUCT.size

    size: int = _STRUCT.size
    width: int = 0
    height: int = 0
    planes: int = 0
    bit_count: int = 0
    compression: int = 0
    img_size: int = 0
    x_pels_per_meter: int = 0
    y_pels_per_meter: int = 0
    clr_used: int = 0
    clr_important: int = 0

    def pack(self) -> bytes:
        """Return the little-endian on-disk bytes of this header."""
        return _pack_flat(self)

    @classmethod
    def unpack(cls, data: bytes) -> BitmapInfoHeader:
        """Build a header from the first bytes of ``data``."""
        return cls(*_unpack(cls._STRUCT, data))


@dataclass
class WaveFormat:
    """The wave format header used as the audio 'strf' format."""

    _STRUCT: ClassVar[struct.Struct] = struct.Struct("<HHIIHH")
    SIZE: ClassVar[int] = _STRUCT.size

    format: int = 0
    channels: int = 0
    samples_per_sec: int = 0
    avg_bytes_per_sec: int = 0
    block_align: int = 0
    bits_per_sample: int = 0

    def pack(self) -> bytes:
        """Return the little-endian on-disk bytes of this header."""
        return _pack_flat(self)

    @classmethod
    def unpack(cls, data: bytes) -> WaveFormat:
        """Build a header from the first bytes of ``data``."""
        return cls(*_unpack(cls._STRUCT, data))


@dataclass
class AdpcmHeader:
    """ADPCM extension of a wave format."""

    _STRUCT: ClassVar[struct.Struct] = struct.Struct("<HH")
    SIZE: ClassVar[int] = _STRUCT.size

    samples_per_block: int = 0
    num_coef: int = 0

    def pack(self) -> bytes:
        """Return the little-endian on-disk bytes of this header."""
        return _pack_flat(self)

    @classmethod
    def unpack(cls, data: bytes) -> AdpcmHeader:
        """Build a header from the first bytes of ``data``."""
        return cls(*_unpack(cls._STRUCT, data))


@dataclass
class Mp3Header:
    """MPEG layer 3 wave format, laid out with natural alignment."""

    _STRUCT: ClassVar[struct.Struct] = struct.Struct("<HHIHHH2x")
    SIZE: ClassVar[int] = WaveFormat.SIZE + _STRUCT.size

    wave: WaveFormat = field(default_factory=WaveFormat)
    size: int = 0
    id: int = 0
    flags: int = 0
    block_size: int = 0
    frames_per_block: int = 0
    codec_delay: int = 0

    def pack(self) -> bytes:
        """Return the on-disk bytes of this header, trailing padding included."""
        return self.wave.pack() + _pack(
            self._STRUCT,
            self.size,
            self.id,
            self.flags,
            self.block_size,
            self.frames_per_block,
            self.codec_delay,
        )

    @classmethod
    def unpack(cls, data: bytes) -> Mp3Header:
        """Build a header from the first bytes of ``data``."""
        if len(data) < cls.SIZE:
            raise ValueError(f"need {cls.SIZE} bytes, got {len(data)}")
        wave = WaveFormat.unpack(data)
        return cls(wave, *_unpack(cls._STRUCT, data, WaveFormat.SIZE))


@dataclass
class IndexEntry:
    """One entry of the 'idx1' index."""

    _STRUCT: ClassVar[struct.Struct] = struct.Struct("<4I")
    SIZE: ClassVar[int] = _STRUCT.size

    id: int = 0
    flags: int = 0
    offset: int = 0
    size: int = 0

    def pack(self) -> bytes:
        """Return the little-endian on-disk bytes of this entry."""
        return _pack_flat(self)

    @classmethod
    def unpack(cls, data: bytes) -> IndexEntry:
        """Build an entry from the first bytes of ``data``."""
        return cls(*_unpack(cls._STRUCT, data))


@dataclass
class SubtitleHeader:
    """Header of an XSUB bitmap subtitle."""

    _STRUCT: ClassVar[struct.Struct] = struct.Struct("<27s7H")
    TIME_LENGTH: ClassVar[int] = 27
    SIZE: ClassVar[int] = _STRUCT.size + 4 * Rgb.SIZE

    time: str = ""
    width: int = 0
    height: int = 0
    tlx: int = 0
    tly: int = 0
    brx: int = 0
    bry: int = 0
    size: int = 0
    colors: tuple[Rgb, Rgb, Rgb, Rgb] = field(
        default_factory=lambda: (Rgb(), Rgb(), Rgb(), Rgb())
    )

    def pack(self) -> bytes:
        """Return the on-disk bytes of this header."""
        raw_time = self.time.encode("latin-1")
        if len(raw_time) > self.TIME_LENGTH:
            raise ValueError(f"time text longer than {self.TIME_LENGTH} bytes")
        if len(self.colors) != 4:
            raise ValueError("colors must hold exactly four entries")
        head = _pack(
            self._STRUCT,
            raw_time,
            self.width,
            self.height,
            self.tlx,
            self.tly,
            self.brx,
            self.bry,
            self.size,
        )
        return head + b"".join(color.pack() for color in self.colors)

    @classmethod
    def unpack(cls, data: bytes) -> SubtitleHeader:
        """Build a header from the first bytes of ``data``."""
        if len(data) < cls.SIZE:
            raise ValueError(f"need {cls.SIZE} bytes, got {len(data)}")
        raw_time, *numbers = _unpack(cls._STRUCT, data)
        base = cls._STRUCT.size
        colors = tuple(
            Rgb.unpack(data[base + n * Rgb.SIZE:base + (n + 1) * Rgb.SIZE])
            for n in range(4)
        )
        time = raw_time.rstrip(b"\0").decode("latin-1")
        return cls(time, *numbers, colors=colors)


@dataclass
class VideoFieldDesc:
    """Description of one video field inside 'vprp'."""

    _STRUCT: ClassVar[struct.Struct] = struct.Struct("<8I")
    SIZE: ClassVar[int] = _STRUCT.size

    compressed_bm_height: int = 0
    compressed_bm_width: int = 0
    valid_bm_height: int = 0
    valid_bm_width: int = 0
    valid_bm_x_offset: int = 0
    valid_bm_y_offset: int = 0
    video_x_offset_in_t: int = 0
    video_y_valid_start_line: int = 0

    def pack(self) -> bytes:
        """Return the little-endian on-disk bytes of this description."""
        return _pack_flat(self)

    @classmethod
    def unpack(cls, data: bytes) -> VideoFieldDesc:
        """Build a description from the first bytes of ``data``."""
        return cls(*_unpack(cls._STRUCT, data))


@dataclass
class VideoProperties:
    """The 'vprp' video properties header with a single field."""

    _STRUCT: ClassVar[struct.Struct] = struct.Struct("<9I")
    SIZE: ClassVar[int] = _STRUCT.size + VideoFieldDesc.SIZE

    video_format_token: int = 0
    video_standard: int = 0
    vertical_refresh_rate: int = 0
    h_total_in_t: int = 0
    v_total_in_lines: int = 0
    frame_aspect_ratio: int = 0
    frame_width_in_pixels: int = 0
    frame_height_in_lines: int = 0
    fields_per_frame: int = 0
    field: VideoFieldDesc = field(default_factory=VideoFieldDesc)

    def pack(self) -> bytes:
        """Return the on-disk bytes of this header."""
        head = _pack(
            self._STRUCT,
            self.video_format_token,
            self.video_standard,
            self.vertical_refresh_rate,
            self.h_total_in_t,
            self.v_total_in_lines,
            self.frame_aspect_ratio,
            self.frame_width_in_pixels,
            self.frame_height_in_lines,
            self.fields_per_frame,
        )
        return head + self.field.pack()

    @classmethod
    def unpack(cls, data: bytes) -> VideoProperties:
        """Build a header from the first bytes of ``data``."""
        if len(data) < cls.SIZE:
            raise ValueError(f"need {cls.SIZE} bytes, got {len(data)}")
        values = _unpack(cls._STRUCT, data)
        return cls(*values, field=VideoFieldDesc.unpack(data[cls._STRUCT.size:]))


def _read_exact(stream: BinaryIO, size: int) -> bytes:
    data = stream.read(size)
    if len(data) < size:
        raise EOFError(f"expected {size} bytes, got {len(data)}")
    return data


def read_chunk(stream: BinaryIO) -> tuple[int, int]:
    """Read a chunk header and return its FOURCC and size."""
    return _CHUNK.unpack(_read_exact(stream, _CHUNK.size))


def read_fourcc(stream: BinaryIO) -> int:
    """Read a single FOURCC code."""
    return _FOURCC.unpack(_read_exact(stream, _FOURCC.size))[0]


def copy_bytes(src: BinaryIO, dst: BinaryIO | None, size: int) -> int:
    """Copy up to ``size`` bytes from ``src`` to ``dst``; skip them if ``dst`` is None.

    Returns the number of bytes written.
    """
    if dst is None:
        src.seek(size, io.SEEK_CUR)
        return 0
    wrote = 0
    remaining = size
    while True:
        wants = min(remaining, _COPY_BLOCK)
        data = src.read(wants)
        if data:
            dst.write(data)
            wrote += len(data)
        if len(data) < wants or remaining == wants:
            break
        remaining -= wants
    return wrote


def write_chunk(fcc: int, size: int, out: BinaryIO) -> int:
    """Write a chunk header and return the number of bytes written."""
    data = _pack(_CHUNK, fcc, size)
    out.write(data)
    return len(data)


def write_fourcc(fcc: int, out: BinaryIO) -> int:
    """Write a FOURCC code and return the number of bytes written."""
    data = _pack(_FOURCC, fcc)
    out.write(data)
    return len(data)


def update_chunk_size(out: BinaryIO, pos: int, value: int) -> None:
    """Rewrite the size of the chunk header at ``pos``, keeping the stream position."""
    back = out.tell()
    try:
        out.seek(pos)
        fcc, _ = read_chunk(out)
        out.seek(pos)
        write_chunk(fcc, value, out)
    finally:
        out.seek(back)