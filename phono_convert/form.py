"""Conversion form rendering and submission parsing.

This module owns both halves of the upload form's contract:

* :class:`ConvertForm` renders ``templates/convert.html`` once from an
  :class:`~phono_convert.formats.OptionsCatalog` and keeps the resulting bytes
  so every request is served the same document.
* :func:`parse`, :func:`extract_file` and :func:`extract_format` read a
  submitted form back into an :data:`~phono_convert.formats.OutputConfig`, the
  uploaded file and the input format.

Usage Example
-------------
>>> form = ConvertForm.build()
>>> form.data().startswith(b"<html>")
True
>>> parse_form({"format": "wav", "wav-bit-depth": "16"})
WavConfig(bit_depth=16)

Every numeric field goes through :func:`parse_int_value`, which only checks
that a value is present and is an integer.  Ranges shown in the form (bit
rate 8-320, VBR quality 0-10) are hints for the user and are left to the
conversion backend to enforce.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Mapping, Optional

from jinja2 import (
    Environment,
    FileSystemLoader,
    StrictUndefined,
    TemplateError,
    select_autoescape,
)
from werkzeug.datastructures import FileStorage
from werkzeug.wrappers import Request

from .formats import (
    DEFAULT_CATALOG,
    MP3_FORMAT,
    WAV_FORMAT,
    BitRateMode,
    Mp3BitRateConfig,
    Mp3VbrConfig,
    OptionsCatalog,
    OutputConfig,
    WavConfig,
)

__all__ = [
    "ConvertForm",
    "FormBuildError",
    "SubmissionError",
    "MissingFileError",
    "MissingFieldError",
    "MalformedFieldError",
    "UnsupportedFormatError",
    "INPUT_FILE_FIELD",
    "extract_format",
    "extract_file",
    "parse",
    "parse_form",
    "parse_int_value",
]

logger = logging.getLogger(__name__)

TEMPLATE_DIR = Path(__file__).resolve().parent / "templates"
TEMPLATE_NAME = "convert.html"

# Name of the multipart field carrying the uploaded audio file.
INPUT_FILE_FIELD = "input-file"

_INTEGER_PATTERN = re.compile(r"[+-]?[0-9]+")


class FormBuildError(RuntimeError):
    """Raised when the conversion form template cannot be rendered."""


class SubmissionError(ValueError):
    """Base class for problems with a submitted conversion form."""


class MissingFileError(SubmissionError):
    """Raised when the submission carries no input file."""


class MissingFieldError(SubmissionError):
    """Raised when a required form field is empty or absent."""


class MalformedFieldError(SubmissionError):
    """Raised when a numeric form field is not an integer."""


class UnsupportedFormatError(SubmissionError):
    """Raised when the requested output format is unknown."""


_environment = Environment(
    loader=FileSystemLoader(TEMPLATE_DIR),
    autoescape=select_autoescape(["html"]),
    undefined=StrictUndefined,
)


class ConvertForm:
    """Pre-rendered conversion form.

    Instances are immutable once built and may be shared freely between
    request handlers.
    """

    __slots__ = ("_data",)

    def __init__(self, data: bytes) -> None:
        self._data = bytes(data)

    @classmethod
    def build(
        cls,
        catalog: OptionsCatalog = DEFAULT_CATALOG,
        environment: Optional[Environment] = None,
    ) -> "ConvertForm":
        """Render the form template for ``catalog``.

        Parameters:
            catalog: Formats and option tables to present.
            environment: Jinja environment to load the template from. The
                package's own environment is used when omitted.

        Returns:
            ConvertForm: Form holding the UTF-8 encoded document.

        Raises:
            FormBuildError: If the template is missing, malformed or refers to
                a value the catalog does not provide.
        """

        env = environment or _environment
        try:
            template = env.get_template(TEMPLATE_NAME)
            html = template.render(catalog=catalog, modes=BitRateMode)
        except TemplateError as exc:
            raise FormBuildError(f"failed to render convert form: {exc}") from exc
        logger.debug("Rendered convert form (%d characters)", len(html))
        return cls(html.encode("utf-8"))

    def data(self) -> bytes:
        """Return the rendered document, ready to be served."""
        return self._data


def extract_format(request: Request) -> str:
    """Return the input format named by the last segment of the URL path.

    The browser points the form's action at the uploaded file's extension, so
    a POST to ``/convert/mp3`` yields ``"mp3"``. The value is not validated.
    """

    return request.path.rstrip("/").rsplit("/", 1)[-1]


def extract_file(request: Request) -> FileStorage:
    """Return the uploaded input file.

    The returned :class:`~werkzeug.datastructures.FileStorage` exposes the
    data via ``stream`` and the metadata via ``filename``, ``content_type``
    and ``headers``.

    Raises:
        MissingFileError: If no file was uploaded under ``input-file``.
    """

    upload = request.files.get(INPUT_FILE_FIELD)
    # Browsers submit an empty part with no filename when nothing was chosen.
    if upload is None or not upload.filename:
        raise MissingFileError("missing input file")
    return upload


def parse(request: Request) -> OutputConfig:
    """Parse the output configuration submitted with ``request``."""

    return parse_form(request.form)


def parse_form(form: Mapping[str, str]) -> OutputConfig:
    """Parse an output configuration from submitted form values.

    Parameters:
        form: Mapping of field names to the raw strings sent by the browser.

    Returns:
        OutputConfig: :class:`WavConfig`, :class:`Mp3VbrConfig` or
        :class:`Mp3BitRateConfig` depending on the requested format.

    Raises:
        UnsupportedFormatError: If ``format`` is neither ``wav`` nor ``mp3``.
        MissingFieldError: If a required field is empty.
        MalformedFieldError: If a required field is not an integer.
    """

    out_format = form.get("format", "")
    if out_format == WAV_FORMAT:
        return _parse_wav_config(form)
    if out_format == MP3_FORMAT:
        return _parse_mp3_config(form)
    raise UnsupportedFormatError(f"unsupported format: {out_format}")


def _parse_wav_config(form: Mapping[str, str]) -> WavConfig:
    bit_depth = parse_int_value(form, "wav-bit-depth", "bit depth")
    return WavConfig(bit_depth=bit_depth)


def _parse_mp3_config(form: Mapping[str, str]) -> OutputConfig:
    bit_rate_mode = parse_int_value(form, "mp3-bit-rate-mode", "bit rate mode")
    channel_mode = parse_int_value(form, "mp3-channel-mode", "channel mode")

    if bit_rate_mode == BitRateMode.VBR:
        vbr_quality = parse_int_value(form, "mp3-vbr-quality", "vbr quality")
        return Mp3VbrConfig(
            channel_mode=channel_mode,
            vbr_quality=vbr_quality,
            quality=_parse_mp3_quality(form),
        )

    bit_rate = parse_int_value(form, "mp3-bit-rate", "bit rate")
    return Mp3BitRateConfig(
        bit_rate_mode=bit_rate_mode,
        channel_mode=channel_mode,
        bit_rate=bit_rate,
        quality=_parse_mp3_quality(form),
    )


def _parse_mp3_quality(form: Mapping[str, str]) -> Optional[int]:
    """Return the encoder quality when the quality checkbox was ticked.

    A ticked box with an empty value leaves the encoder default in place.
    """

    # Unchecked checkboxes are not submitted at all.
    if not form.get("mp3-use-quality") or not form.get("mp3-quality"):
        return None
    return parse_int_value(form, "mp3-quality", "quality")


def _parse_base10(raw: str) -> int:
    """Convert ``raw`` to an int, accepting only an optional sign and ASCII digits."""

    # ``int`` alone also takes underscores, surrounding whitespace and
    # non-ASCII digits.
    if not _INTEGER_PATTERN.fullmatch(raw):
        raise ValueError(f"invalid base-10 integer {raw!r}")
    return int(raw, 10)


def parse_int_value(form: Mapping[str, str], key: str, label: str) -> int:
    """Return the integer submitted under ``key``.

    Parameters:
        form: Submitted form values.
        key: Field name in the form.
        label: Human readable field name used in error messages.

    Raises:
        MissingFieldError: If the value is empty or absent.
        MalformedFieldError: If the value is not a plain base-10 integer.
    """

    raw = form.get(key, "")
    if not raw:
        raise MissingFieldError(f"please provide {label}")
    try:
        return _parse_base10(raw)
    except ValueError as exc:
        raise MalformedFieldError(f"failed parsing {label} {raw}: {exc}") from exc
