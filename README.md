# mjpegavi

Build Motion-JPEG AVI files from JPEG frames, one frame at a time.

The package has two modules:

- `mjpegavi.riff` – four-character codes (`make_fourcc`, `fourcc_to_str` and
  constants such as `FOURCC_RIFF`, `FOURCC_MOVI`, `FOURCC_00DC`), flag and
  format enums (`AviFlag`, `IndexFlag`, `Aspect`, `WaveFormatTag`, `Mp3Flag`),
  the packed AVI header records (`AviMainHeader`, `StreamHeader`,
  `FrameRect`, `BitmapInfoHeader`, `VideoProperties`, `VideoFieldDesc`,
  `IndexEntry`, `WaveFormat`, `AdpcmHeader`, `Mp3Header`, `SubtitleHeader`,
  `Rgb`, `Rgba`), each a dataclass with `pack()` and the class method
  `unpack(data)`, and helpers for RIFF chunks on binary streams:
  `read_chunk`, `read_fourcc`, `write_chunk`, `write_fourcc`,
  `update_chunk_size` and `copy_bytes`.
- `mjpegavi.avi` – `MjpegWriter`, which writes the RIFF/AVI header, appends
  `00dc` frame chunks, keeps the `idx1` index entries in a second stream and,
  when finished, copies those entries to the end of the file and patches the
  size and frame-count fields that were not known in advance.

## Installing

```
pip install .
```

## Writing a video

```python
from mjpegavi.avi import MjpegWriter
from mjpegavi.riff import (
    AviMainHeader,
    BitmapInfoHeader,
    StreamHeader,
    VideoProperties,
    make_fourcc,
)

width, height, fps = 640, 480, 10
frames = [...]  # the bytes of one JPEG image per item

avih = AviMainHeader(micro_sec_per_frame=1_000_000 // fps, width=width,
                     height=height, streams=1)
strh = StreamHeader(type=make_fourcc("vids"), handler=make_fourcc("MJPG"),
                    scale=1, rate=fps)
bmph = BitmapInfoHeader(width=width, height=height, planes=1, bit_count=24,
                        compression=make_fourcc("MJPG"),
                        img_size=width * height * 3)
vprp = VideoProperties(vertical_refresh_rate=fps, frame_width_in_pixels=width,
                       frame_height_in_lines=height, fields_per_frame=1)

with open("out.avi", "w+b") as out:
    with MjpegWriter(out, avih=avih, strh=strh, bmph=bmph, vprp=vprp) as writer:
        for jpeg in frames:
            writer.write_frame(jpeg)
```

Entering the `with` block writes the header if it has not been written yet;
leaving it without an exception appends the index and patches the sizes, the
total frame count in the main header and the stream length. The same steps are
available as `write_header()`, `write_frame()` and `finish()`; calling them out
of order raises `MjpegError`, as does an index stream that returns fewer bytes
than an entry needs.

Frames with an odd length are padded with one zero byte. Each index entry
records the frame's offset within the `movi` list and its length, with flags
set to 0.

If no `index` stream is given, the writer keeps its index in a temporary file
and closes it when finished or when the `with` block exits. Any header record
left out is written with its default (zeroed) values. The output stream must
support `seek` and `tell`, since fields written earlier are updated in place.

## What the package does not do

- It has no command-line program; it is used as a library.
- It writes a single video stream only: there is no writer for audio streams,
  even though the wave format records can be packed and unpacked.
- It does not read or play back AVI files beyond the low-level chunk helpers
  in `mjpegavi.riff`.
- It does not encode images: frames must already be JPEG bytes.

## Running the tests

```
pip install .[test]
pytest
```