#!/usr/bin/env python3
"""Flask web interface for phono convert.

The application serves the pre-rendered conversion form and validates the
multipart submissions it produces.  Audio conversion itself is delegated to a
*converter* callable supplied by the deployment; this module only hands it the
uploaded file, the input format and a typed output configuration.

* **Start-up check** – :func:`create_app` renders the form before any route is
  registered.  A template failure is logged at ``CRITICAL`` and raised as
  :class:`RuntimeError` so a broken form is never served.
* **Request size limiting** – Flask's ``MAX_CONTENT_LENGTH`` bounds uploads,
  configured through the ``MAX_UPLOAD_MB`` environment variable.
* **Validation errors** – any :class:`~phono_convert.form.SubmissionError`
  becomes an HTTP ``400`` response carrying the error message.

Example
-------
A converter receives the upload and returns any Flask response value::

    def convert(upload, input_format, config):
        ...
        return send_file(result_path, as_attachment=True)

    app = create_app(converter=convert)
"""

from __future__ import annotations

import logging
import os
from typing import Callable, Optional

from flask import Flask, Response, current_app, make_response, request
from werkzeug.datastructures import FileStorage

from phono_convert.form import (
    ConvertForm,
    FormBuildError,
    SubmissionError,
    extract_file,
    extract_format,
    parse,
)
from phono_convert.formats import DEFAULT_CATALOG, OptionsCatalog, OutputConfig

__all__ = ["Converter", "create_app", "get_form", "index", "convert"]

# Callable performing the actual conversion. It receives the uploaded file,
# the input format taken from the URL and the parsed output configuration.
Converter = Callable[[FileStorage, str, OutputConfig], object]

# Logger used throughout the module for diagnostic messages.
logger = logging.getLogger(__name__)

# Key under which the rendered form is stored in ``app.extensions``.
FORM_EXTENSION = "convert_form"

DEFAULT_MAX_UPLOAD_MB = 100


def get_form() -> ConvertForm:
    """Return the form rendered for the current application."""
    return current_app.extensions[FORM_EXTENSION]


def index() -> Response:
    """Serve the conversion form."""

    response = make_response(get_form().data())
    response.mimetype = "text/html"
    return response


def convert(input_path: str):
    """Validate a form submission and hand it to the configured converter.

    ``input_path`` is the segment the browser appended to the form action,
    normally the uploaded file's extension.  It is re-read through
    :func:`~phono_convert.form.extract_format` so the view and the parser agree
    on the same convention.

    @returns Response: Converter output, ``400`` for invalid submissions or
        ``501`` when no converter is configured.
    """

    input_format = extract_format(request)
    try:
        upload = extract_file(request)
        config = parse(request)
    except SubmissionError as exc:
        logger.info("Rejected %s submission: %s", input_format, exc)
        return _text_response(str(exc), 400)

    converter: Optional[Converter] = current_app.config.get("CONVERTER")
    if converter is None:
        logger.warning("No converter configured; cannot convert %s", upload.filename)
        return _text_response("conversion is not available", 501)

    logger.info(
        "Converting %s from %s to %s", upload.filename, input_format, config.format
    )
    return converter(upload, input_format, config)


def _text_response(message: str, status: int) -> Response:
    response = make_response(message, status)
    response.mimetype = "text/plain"
    return response


def _max_upload_mb() -> int:
    """Read ``MAX_UPLOAD_MB`` from the environment, falling back to the default."""

    raw = os.environ.get("MAX_UPLOAD_MB")
    if not raw:
        return DEFAULT_MAX_UPLOAD_MB
    try:
        max_mb = int(raw)
    except ValueError:
        logger.warning(
            "Invalid MAX_UPLOAD_MB value %r; defaulting to %d MB.",
            raw,
            DEFAULT_MAX_UPLOAD_MB,
        )
        return DEFAULT_MAX_UPLOAD_MB
    if max_mb <= 0:
        logger.warning(
            "MAX_UPLOAD_MB must be positive; defaulting to %d MB.",
            DEFAULT_MAX_UPLOAD_MB,
        )
        return DEFAULT_MAX_UPLOAD_MB
    return max_mb


def create_app(
    converter: Optional[Converter] = None,
    catalog: OptionsCatalog = DEFAULT_CATALOG,
) -> Flask:
    """Build and configure the Flask application instance.

    The form is rendered here, before any route exists, so template problems
    surface while the server is starting rather than on the first request.

    Parameters:
        converter: Callable performing the conversion. ``None`` leaves the
            upload route answering ``501``.
        catalog: Options presented by the form.

    Returns:
        Flask: Configured application ready for use by a WSGI server.
    Raises:
        RuntimeError: If the conversion form cannot be rendered.
    """

    try:
        form = ConvertForm.build(catalog)
    except FormBuildError as exc:
        logger.critical("Conversion form could not be rendered: %s", exc)
        raise RuntimeError("Failed to build conversion form") from exc

    app = Flask(__name__)
    app.extensions[FORM_EXTENSION] = form
    app.config["CONVERTER"] = converter
    # Flask answers HTTP 413 on its own once the limit is exceeded.
    app.config["MAX_CONTENT_LENGTH"] = _max_upload_mb() * 1024 * 1024

    app.add_url_rule("/", view_func=index, methods=["GET"])
    app.add_url_rule("/<path:input_path>", view_func=convert, methods=["POST"])

    @app.errorhandler(413)
    def handle_request_too_large(_err):
        """Return a concise message when the client uploads too much data."""
        return "Request exceeds configured size limit.", 413

    return app


# Instantiate a default application for WSGI servers while still exposing
# ``create_app`` for deployments that plug in a converter.
app = create_app()
