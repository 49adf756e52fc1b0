import subprocess

import pytest

from whspr import convert
from whspr.convert import ConversionError, convert_to_mp3


def test_missing_ffmpeg_keeps_raw_file(tmp_path, monkeypatch):
    wav = tmp_path / "whspr-1.wav"
    wav.write_bytes(b"RIFF")
    monkeypatch.setattr(convert.shutil, "which", lambda name: None)

    with pytest.raises(ConversionError) as excinfo:
        convert_to_mp3(wav)
    assert excinfo.value.source == wav
    assert wav.exists()


def test_non_zero_exit_is_a_conversion_error(tmp_path, monkeypatch):
    wav = tmp_path / "whspr-1.wav"
    wav.write_bytes(b"RIFF")
    monkeypatch.setattr(convert.shutil, "which", lambda name: "/usr/bin/ffmpeg")
    monkeypatch.setattr(
        convert.subprocess,
        "run",
        lambda cmd, **kwargs: subprocess.CompletedProcess(cmd, 1, "", "Invalid data found"),
    )

    with pytest.raises(ConversionError, match="Invalid data found"):
        convert_to_mp3(wav)
    assert wav.exists()
    assert not wav.with_suffix(".mp3").exists()


def test_successful_conversion_replaces_wav(tmp_path, monkeypatch):
    wav = tmp_path / "whspr-1.wav"
    wav.write_bytes(b"RIFF")
    commands = []

    def fake_run(cmd, **kwargs):
        commands.append(cmd)
        (tmp_path / "whspr-1.mp3").write_bytes(b"ID3")
        return subprocess.CompletedProcess(cmd, 0, "", "")

    monkeypatch.setattr(convert.shutil, "which", lambda name: "/usr/bin/ffmpeg")
    monkeypatch.setattr(convert.subprocess, "run", fake_run)

    mp3 = convert_to_mp3(wav)

    assert mp3 == tmp_path / "whspr-1.mp3"
    assert mp3.exists()
    assert not wav.exists()
    assert commands[0][0] == "/usr/bin/ffmpeg"
    assert "libmp3lame" in commands[0]
