from __future__ import annotations

import numpy as np
import pytest

from clinscribe import cli
from clinscribe.audio.wav import encode_wav, read_wav
from clinscribe.models.audio import RawAudioBuffer


@pytest.fixture()
def cli_env(tmp_path, monkeypatch):
    monkeypatch.setenv("CLINSCRIBE_DATA_DIR", str(tmp_path / "data"))
    monkeypatch.setenv("CLINSCRIBE_LOG_DIR", str(tmp_path / "logs"))
    return tmp_path


def test_phone_commands(cli_env, capsys) -> None:
    assert cli.main(["phone", "show"]) == 0
    assert capsys.readouterr().out.strip() == "(none)"

    assert cli.main(["phone", "set", "12345"]) == 2
    assert "Invalid phone number" in capsys.readouterr().err

    assert cli.main(["phone", "set", "98765 43210"]) == 0
    capsys.readouterr()
    assert cli.main(["phone", "show"]) == 0
    assert capsys.readouterr().out.strip() == "9876543210"

    assert cli.main(["phone", "clear"]) == 0
    capsys.readouterr()
    cli.main(["phone", "show"])
    assert capsys.readouterr().out.strip() == "(none)"


def test_encode_raw_capture_file(cli_env, capsys) -> None:
    src = cli_env / "capture.raw"
    src.write_bytes(np.linspace(-0.5, 0.5, 8000, dtype="<f4").tobytes())
    out = cli_env / "capture.wav"

    code = cli.main(
        [
            "encode",
            str(src),
            "--out",
            str(out),
            "--media-type",
            "audio/x-raw;format=f32le;rate=8000;channels=1",
        ]
    )

    assert code == 0
    decoded = read_wav(out.read_bytes())
    assert decoded.sample_rate == 8000
    assert decoded.frame_count == 8000
    assert str(out) in capsys.readouterr().out


def test_encode_with_segments(cli_env) -> None:
    src = cli_env / "visit.wav"
    tone = np.zeros(2500)
    src.write_bytes(encode_wav(RawAudioBuffer(sample_rate=1000, channels=(tone,))).data)

    assert cli.main(["encode", str(src), "--out", str(cli_env / "seg.wav"), "--segment-s", "1"]) == 0

    parts = sorted(cli_env.glob("seg_*.wav"))
    assert [p.name for p in parts] == ["seg_000.wav", "seg_001.wav", "seg_002.wav"]
    assert [read_wav(p.read_bytes()).frame_count for p in parts] == [1000, 1000, 500]


def test_encode_missing_input(cli_env, capsys) -> None:
    assert cli.main(["encode", str(cli_env / "nope.webm")]) == 2
    assert "Input not found" in capsys.readouterr().err


@pytest.mark.parametrize("value", ["0", "-5", "abc"])
def test_encode_rejects_non_positive_segment_length(cli_env, capsys, value) -> None:
    src = cli_env / "visit.wav"
    src.write_bytes(encode_wav(RawAudioBuffer(sample_rate=1000, channels=(np.zeros(100),))).data)

    with pytest.raises(SystemExit) as excinfo:
        cli.main(["encode", str(src), "--segment-s", value])
    assert excinfo.value.code == 2
    assert "--segment-s" in capsys.readouterr().err


def test_encode_segment_shorter_than_a_frame(cli_env, capsys) -> None:
    src = cli_env / "visit.wav"
    src.write_bytes(encode_wav(RawAudioBuffer(sample_rate=1000, channels=(np.zeros(100),))).data)

    assert cli.main(["encode", str(src), "--segment-s", "0.0001"]) == 2
    assert "Invalid segment length" in capsys.readouterr().err
    assert not list(cli_env.glob("*_pcm16*.wav"))
