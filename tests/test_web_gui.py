"""Tests for the Flask based web interface.

These tests post form submissions to the application and check that invalid
input is rejected with HTTP 400, that valid input reaches the configured
converter with a typed configuration, and that start-up fails loudly when the
form template cannot be rendered. Oversized uploads are rejected according to
``MAX_UPLOAD_MB``.
"""

import importlib
import io
import logging
import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

pytest.importorskip("flask")

web_gui = importlib.import_module("phono_convert.web_gui")

from phono_convert.form import FormBuildError  # noqa: E402
from phono_convert.formats import BitRateMode, Mp3BitRateConfig, WavConfig  # noqa: E402


class RecordingConverter:
    """Converter stand-in remembering the arguments of each call."""

    def __init__(self):
        self.calls = []

    def __call__(self, upload, input_format, config):
        self.calls.append((upload.filename, upload.read(), input_format, config))
        return "converted"


def _upload(name="song.wav", data=b"RIFF0000WAVE"):
    return (io.BytesIO(data), name)


def test_index_serves_rendered_form():
    """The index page returns the pre-rendered document byte for byte."""
    app = web_gui.create_app()
    client = app.test_client()
    resp = client.get("/")
    assert resp.status_code == 200
    assert resp.mimetype == "text/html"
    assert resp.data == app.extensions[web_gui.FORM_EXTENSION].data()
    assert client.get("/").data == resp.data


def test_wav_submission_reaches_converter():
    converter = RecordingConverter()
    client = web_gui.create_app(converter=converter).test_client()
    resp = client.post(
        "/mp3",
        data={
            "input-file": _upload("track.mp3", b"ID3"),
            "format": "wav",
            "wav-bit-depth": "24",
        },
    )
    assert resp.status_code == 200
    assert resp.data == b"converted"
    assert converter.calls == [("track.mp3", b"ID3", "mp3", WavConfig(bit_depth=24))]


def test_mp3_submission_reaches_converter():
    converter = RecordingConverter()
    client = web_gui.create_app(converter=converter).test_client()
    resp = client.post(
        "/wav",
        data={
            "input-file": _upload(),
            "format": "mp3",
            "mp3-bit-rate-mode": str(int(BitRateMode.CBR)),
            "mp3-channel-mode": "0",
            "mp3-bit-rate": "256",
        },
    )
    assert resp.status_code == 200
    _, _, input_format, config = converter.calls[0]
    assert input_format == "wav"
    assert config == Mp3BitRateConfig(
        bit_rate_mode=int(BitRateMode.CBR), channel_mode=0, bit_rate=256
    )


def test_missing_file_rejected():
    converter = RecordingConverter()
    client = web_gui.create_app(converter=converter).test_client()
    resp = client.post("/wav", data={"format": "wav", "wav-bit-depth": "16"})
    assert resp.status_code == 400
    assert b"missing input file" in resp.data
    assert converter.calls == []


@pytest.mark.parametrize(
    "fields, message",
    [
        ({"format": "flac"}, b"unsupported format: flac"),
        ({"format": "wav"}, b"please provide bit depth"),
        ({"format": "wav", "wav-bit-depth": "deep"}, b"failed parsing bit depth deep"),
        (
            {
                "format": "mp3",
                "mp3-bit-rate-mode": str(int(BitRateMode.CBR)),
                "mp3-channel-mode": "0",
            },
            b"please provide bit rate",
        ),
    ],
)
def test_invalid_submission_returns_400(fields, message, caplog):
    """Validation failures become plain text 400 responses and are logged."""
    caplog.set_level(logging.INFO, logger="phono_convert.web_gui")
    converter = RecordingConverter()
    client = web_gui.create_app(converter=converter).test_client()
    resp = client.post("/wav", data=dict(fields, **{"input-file": _upload()}))
    assert resp.status_code == 400
    assert resp.mimetype == "text/plain"
    assert message in resp.data
    assert converter.calls == []
    assert "Rejected wav submission" in caplog.text


def test_without_converter_returns_501():
    client = web_gui.create_app().test_client()
    resp = client.post(
        "/wav",
        data={"input-file": _upload(), "format": "wav", "wav-bit-depth": "16"},
    )
    assert resp.status_code == 501


def test_get_on_upload_route_not_allowed():
    client = web_gui.create_app().test_client()
    assert client.get("/wav").status_code == 405


def test_form_build_failure_aborts_startup(monkeypatch, caplog):
    """A broken template stops ``create_app`` before any route is served."""

    def broken_build(*_args, **_kwargs):
        raise FormBuildError("failed to render convert form: boom")

    monkeypatch.setattr(web_gui.ConvertForm, "build", broken_build)
    caplog.set_level(logging.CRITICAL)
    with pytest.raises(RuntimeError, match="Failed to build conversion form"):
        web_gui.create_app()
    assert "could not be rendered" in caplog.text


def test_max_upload_from_environment(monkeypatch):
    monkeypatch.setenv("MAX_UPLOAD_MB", "1")
    app = web_gui.create_app(converter=RecordingConverter())
    assert app.config["MAX_CONTENT_LENGTH"] == 1024 * 1024

    client = app.test_client()
    resp = client.post(
        "/wav",
        data={
            "input-file": _upload(data=b"0" * (2 * 1024 * 1024)),
            "format": "wav",
            "wav-bit-depth": "16",
        },
    )
    assert resp.status_code == 413
    assert b"Request exceeds configured size limit." in resp.data


@pytest.mark.parametrize("raw", ["lots", "0", "-4"])
def test_invalid_max_upload_uses_default(monkeypatch, caplog, raw):
    caplog.set_level(logging.WARNING)
    monkeypatch.setenv("MAX_UPLOAD_MB", raw)
    app = web_gui.create_app()
    assert app.config["MAX_CONTENT_LENGTH"] == web_gui.DEFAULT_MAX_UPLOAD_MB * 1024 * 1024
    assert "MAX_UPLOAD_MB" in caplog.text


def test_module_level_app_exists():
    """A default application is available for WSGI servers."""
    assert web_gui.app.config["CONVERTER"] is None
    assert web_gui.app.test_client().get("/").status_code == 200
