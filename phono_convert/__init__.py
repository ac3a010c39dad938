"""phono convert form library.

This package renders the HTML form used to request an audio conversion and
parses its multipart submissions into typed output configurations.  The
conversion itself is performed by an external engine; the package hands it a
:data:`~phono_convert.formats.OutputConfig` together with the uploaded file.

A typical workflow is::

    from phono_convert import ConvertForm, parse

    form = ConvertForm.build()
    html = form.data()        # serve on GET
    config = parse(request)   # WavConfig, Mp3VbrConfig or Mp3BitRateConfig

The Flask application in :mod:`phono_convert.web_gui` wires both halves to
HTTP routes.
"""

__version__ = "0.1.0"

from .formats import (  # noqa: E402
    DEFAULT_CATALOG,
    MP3_FORMAT,
    WAV_FORMAT,
    BitRateMode,
    ChannelMode,
    Mp3BitRateConfig,
    Mp3VbrConfig,
    OptionsCatalog,
    OutputConfig,
    WavConfig,
)
from .form import (  # noqa: E402
    ConvertForm,
    FormBuildError,
    MalformedFieldError,
    MissingFieldError,
    MissingFileError,
    SubmissionError,
    UnsupportedFormatError,
    extract_file,
    extract_format,
    parse,
    parse_form,
    parse_int_value,
)


def main():
    from .cli import main as _main
    return _main()
