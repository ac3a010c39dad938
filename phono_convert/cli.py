"""Command line helpers for phono convert.

The ``main`` function either runs the Flask development server or prints
information derived from the options catalog.  Production deployments should
serve :data:`phono_convert.web_gui.app` (or an app built with
:func:`~phono_convert.web_gui.create_app`) from a WSGI server instead.

Example
-------
Running ``python -m phono_convert --dump-form form.html`` writes the rendered
conversion form to ``form.html``.  ``python -m phono_convert --port 8080``
serves it on ``http://127.0.0.1:8080/``.
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from .form import ConvertForm, FormBuildError
from .formats import DEFAULT_CATALOG

__all__ = ["build_parser", "main"]


def build_parser() -> argparse.ArgumentParser:
    """Return the argument parser used by :func:`main`."""

    parser = argparse.ArgumentParser(
        description="Serve the audio conversion form."
    )
    parser.add_argument("--host", type=str, default="127.0.0.1", help="Interface to bind.")
    parser.add_argument("--port", type=int, default=5000, help="Port to listen on.")
    parser.add_argument("--debug", action="store_true", help="Enable Flask debug mode.")
    parser.add_argument(
        "--dump-form",
        nargs="?",
        const="-",
        metavar="PATH",
        help="Write the rendered form to PATH (stdout when omitted) and exit.",
    )
    parser.add_argument(
        "--list-options",
        action="store_true",
        help="List output formats and their options and exit.",
    )
    return parser


def _list_options() -> None:
    catalog = DEFAULT_CATALOG
    print("formats: " + ", ".join(catalog.out_formats))
    print("wav bit depths:")
    for bit_depth, label in catalog.wav_bit_depths.items():
        print(f"  {bit_depth}: {label}")
    print("mp3 bit rate modes:")
    for mode, label in catalog.mp3_bit_rate_modes.items():
        print(f"  {int(mode)}: {label}")
    print("mp3 channel modes:")
    for mode, label in catalog.mp3_channel_modes.items():
        print(f"  {int(mode)}: {label}")


def _dump_form(target: str) -> int:
    try:
        data = ConvertForm.build().data()
    except FormBuildError as exc:
        logging.error(str(exc))
        return 1

    if target == "-":
        sys.stdout.buffer.write(data)
        sys.stdout.flush()
        return 0

    path = Path(target)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)
    except OSError as exc:
        logging.error(f"Could not write form to {path}: {exc}")
        return 1
    logging.info(f"Form written to {path}")
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """Entry point for ``python -m phono_convert``.

    Returns the process exit status so callers and tests can inspect it.
    """

    logging.basicConfig(level=logging.INFO, format="%(levelname)s: %(message)s")
    args = build_parser().parse_args(argv)

    if args.list_options:
        _list_options()
        return 0
    if args.dump_form is not None:
        return _dump_form(args.dump_form)

    # Imported lazily so listing options does not construct the Flask app.
    from .web_gui import create_app

    try:
        app = create_app()
    except RuntimeError as exc:
        logging.error(str(exc))
        return 1
    app.run(host=args.host, port=args.port, debug=args.debug)
    return 0
