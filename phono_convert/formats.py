"""Output formats, option tables and conversion configurations.

The values in this module describe everything the upload form offers and the
parser accepts.  They are plain data so both the HTML renderer and the
submission parser can share them without importing Flask.

Usage Example
-------------
>>> from phono_convert.formats import DEFAULT_CATALOG, BitRateMode
>>> DEFAULT_CATALOG.accept
'.wav, .mp3'
>>> DEFAULT_CATALOG.mp3_bit_rate_modes[BitRateMode.VBR]
'VBR'

Design notes
------------
* ``BitRateMode`` and ``ChannelMode`` follow the integer numbering used by the
  LAME encoder so the parsed values can be forwarded to an MP3 backend without
  translation.  Dual channel output is not offered by the form.
* Each :data:`OutputConfig` variant is a frozen dataclass carrying only the
  fields its format needs.  A VBR configuration cannot hold a bit rate and a
  fixed-rate configuration cannot hold a VBR quality.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntEnum
from types import MappingProxyType
from typing import ClassVar, Mapping, Optional, Tuple, Union

__all__ = [
    "WAV_FORMAT",
    "MP3_FORMAT",
    "BitRateMode",
    "ChannelMode",
    "OptionsCatalog",
    "DEFAULT_CATALOG",
    "WavConfig",
    "Mp3VbrConfig",
    "Mp3BitRateConfig",
    "OutputConfig",
]

WAV_FORMAT = "wav"
MP3_FORMAT = "mp3"


class BitRateMode(IntEnum):
    """MP3 bit rate strategy."""

    VBR = 0
    ABR = 1
    CBR = 2


class ChannelMode(IntEnum):
    """MP3 channel layout as numbered by LAME."""

    STEREO = 0
    JOINT_STEREO = 1
    MONO = 3


# Bit depths supported by the WAV encoder mapped to the label shown in the
# form's drop-down.
WAV_BIT_DEPTHS: Mapping[int, str] = MappingProxyType(
    {
        8: "8 bit",
        16: "16 bit",
        24: "24 bit",
        32: "32 bit",
    }
)

# Element ids and toggle classes in the rendered markup use the enum member
# names (``mode.name``), so the mode-specific inputs only toggle correctly while
# those names stay VBR, ABR and CBR.
MP3_BIT_RATE_MODES: Mapping[BitRateMode, str] = MappingProxyType(
    {
        BitRateMode.VBR: "VBR",
        BitRateMode.ABR: "ABR",
        BitRateMode.CBR: "CBR",
    }
)

MP3_CHANNEL_MODES: Mapping[ChannelMode, str] = MappingProxyType(
    {
        ChannelMode.STEREO: "Stereo",
        ChannelMode.JOINT_STEREO: "Joint stereo",
        ChannelMode.MONO: "Mono",
    }
)


@dataclass(frozen=True)
class OptionsCatalog:
    """Static table of everything the form lets a user choose.

    Attributes:
        accept: Value of the file input's ``accept`` attribute, a comma
            separated list of extensions.
        out_formats: Output formats offered as radio buttons, in display
            order.
        wav_bit_depths: Bit depth to label mapping.
        mp3_bit_rate_modes: Bit rate mode to label mapping.
        mp3_channel_modes: Channel mode to label mapping.
    """

    accept: str
    out_formats: Tuple[str, ...]
    wav_bit_depths: Mapping[int, str] = field(default_factory=lambda: WAV_BIT_DEPTHS)
    mp3_bit_rate_modes: Mapping[BitRateMode, str] = field(
        default_factory=lambda: MP3_BIT_RATE_MODES
    )
    mp3_channel_modes: Mapping[ChannelMode, str] = field(
        default_factory=lambda: MP3_CHANNEL_MODES
    )

    def __post_init__(self) -> None:
        # Freeze caller supplied dictionaries so a catalog shared between
        # requests cannot be modified after the form has been rendered.
        for name in ("wav_bit_depths", "mp3_bit_rate_modes", "mp3_channel_modes"):
            value = getattr(self, name)
            if not isinstance(value, MappingProxyType):
                object.__setattr__(self, name, MappingProxyType(dict(value)))
        object.__setattr__(self, "out_formats", tuple(self.out_formats))


DEFAULT_CATALOG = OptionsCatalog(
    accept=f".{WAV_FORMAT}, .{MP3_FORMAT}",
    out_formats=(WAV_FORMAT, MP3_FORMAT),
)


@dataclass(frozen=True)
class WavConfig:
    """WAV output parameters."""

    format: ClassVar[str] = WAV_FORMAT

    bit_depth: int


@dataclass(frozen=True)
class Mp3VbrConfig:
    """Variable bit rate MP3 output.

    ``quality`` is the optional encoder algorithm quality and stays ``None``
    unless the user ticked the form's quality checkbox.
    """

    format: ClassVar[str] = MP3_FORMAT
    bit_rate_mode: ClassVar[BitRateMode] = BitRateMode.VBR

    channel_mode: int
    vbr_quality: int
    quality: Optional[int] = None


@dataclass(frozen=True)
class Mp3BitRateConfig:
    """Average or constant bit rate MP3 output."""

    format: ClassVar[str] = MP3_FORMAT

    bit_rate_mode: int
    channel_mode: int
    bit_rate: int
    quality: Optional[int] = None


OutputConfig = Union[WavConfig, Mp3VbrConfig, Mp3BitRateConfig]
