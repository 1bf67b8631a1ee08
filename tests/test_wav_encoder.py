from __future__ import annotations

import struct

import numpy as np
import pytest

from clinscribe.audio.wav import HEADER_SIZE, encode_wav, parse_wav_info, quantize_pcm16, read_wav
from clinscribe.exceptions import DecodeError, EncodeError
from clinscribe.models.audio import RawAudioBuffer

from conftest import sine_buffer


def _samples(data: bytes) -> list[int]:
    return np.frombuffer(data[HEADER_SIZE:], dtype="<i2").tolist()


def test_encode_mono_header_layout() -> None:
    buffer = RawAudioBuffer(sample_rate=16000, channels=(np.array([0.0, 0.5, -0.5, 1.0, -1.0]),))
    container = encode_wav(buffer)
    data = container.data

    assert HEADER_SIZE == 44
    assert len(data) == 44 + 10
    assert data[0:4] == b"RIFF"
    assert struct.unpack_from("<I", data, 4)[0] == 36 + 10
    assert data[8:12] == b"WAVE"
    assert data[12:16] == b"fmt "
    assert struct.unpack_from("<IHHIIHH", data, 16) == (16, 1, 1, 16000, 32000, 2, 16)
    assert data[36:40] == b"data"
    assert struct.unpack_from("<I", data, 40)[0] == 10

    assert container.sample_rate == 16000
    assert container.channel_count == 1
    assert container.data_length == 10
    assert container.frame_count == 5
    assert container.media_type == "audio/wav"


def test_encode_quantizes_with_asymmetric_scale() -> None:
    buffer = RawAudioBuffer(sample_rate=8000, channels=(np.array([0.0, 0.5, -0.5, 1.0, -1.0]),))
    assert _samples(encode_wav(buffer).data) == [0, 16383, -16384, 32767, -32768]


def test_quantize_truncates_toward_zero() -> None:
    assert quantize_pcm16([0.1, -0.1]).tolist() == [3276, -3276]


def test_quantize_clips_out_of_range_values() -> None:
    out = quantize_pcm16([2.0, -3.0, np.inf, -np.inf])
    assert out.tolist() == [32767, -32768, 32767, -32768]
    assert out.dtype == np.dtype("<i2")


def test_quantize_rejects_nan() -> None:
    with pytest.raises(EncodeError):
        quantize_pcm16([0.0, np.nan])


def test_encode_stereo_interleaves_frames() -> None:
    buffer = RawAudioBuffer(
        sample_rate=44100,
        channels=(np.array([0.5, 0.0]), np.array([-0.5, 1.0])),
    )
    container = encode_wav(buffer)
    data = container.data

    assert struct.unpack_from("<HHIIHH", data, 20) == (1, 2, 44100, 44100 * 4, 4, 16)
    assert _samples(data) == [16383, -16384, 0, 32767]
    assert container.block_align == 4
    assert container.frame_count == 2


def test_encode_empty_buffer_is_header_only() -> None:
    container = encode_wav(RawAudioBuffer.empty(8000))
    assert len(container.data) == HEADER_SIZE
    assert struct.unpack_from("<I", container.data, 4)[0] == 36
    assert struct.unpack_from("<I", container.data, 40)[0] == 0
    assert container.duration_s == 0.0


def test_encode_is_deterministic() -> None:
    buffer = sine_buffer(0.25, sample_rate=8000, channels=2)
    assert encode_wav(buffer).data == encode_wav(buffer).data


def test_container_length_matches_frames() -> None:
    buffer = sine_buffer(1.5, sample_rate=22050, channels=2)
    container = encode_wav(buffer)
    assert len(container) == HEADER_SIZE + buffer.frame_count * 2 * 2
    assert container.duration_s == pytest.approx(1.5, abs=1e-4)


def test_read_wav_recovers_samples_within_one_step() -> None:
    rng = np.random.default_rng(7)
    left = rng.uniform(-1.0, 1.0, 2000)
    right = rng.uniform(-1.0, 1.0, 2000)
    buffer = RawAudioBuffer(sample_rate=16000, channels=(left, right))

    decoded = read_wav(encode_wav(buffer).data)

    assert decoded.sample_rate == 16000
    assert decoded.channel_count == 2
    assert decoded.frame_count == 2000
    for original, restored in zip(buffer.channels, decoded.channels, strict=True):
        assert np.max(np.abs(original.astype(np.float64) - restored)) <= 1 / 32767 + 1e-6


def test_buffer_rejects_mismatched_channel_lengths() -> None:
    with pytest.raises(EncodeError):
        RawAudioBuffer(sample_rate=8000, channels=(np.zeros(3), np.zeros(4)))


def test_buffer_rejects_non_positive_rate() -> None:
    with pytest.raises(EncodeError):
        RawAudioBuffer(sample_rate=0, channels=(np.zeros(3),))


def test_parse_wav_info_skips_unknown_chunks() -> None:
    container = encode_wav(RawAudioBuffer(sample_rate=8000, channels=(np.array([0.25, -0.25]),)))
    data = container.data
    # Insert a LIST chunk between fmt and data.
    extra = b"LIST" + struct.pack("<I", 3) + b"abc\x00"
    patched = data[:36] + extra + data[36:]
    patched = patched[:4] + struct.pack("<I", len(patched) - 8) + patched[8:]

    info = parse_wav_info(patched)
    assert info.data_offset == 44 + len(extra)
    assert info.data_length == 4
    assert read_wav(patched).frame_count == 2


def test_read_wav_rejects_float_wav() -> None:
    data = bytearray(encode_wav(RawAudioBuffer(sample_rate=8000, channels=(np.zeros(2),))).data)
    struct.pack_into("<H", data, 20, 3)
    struct.pack_into("<H", data, 34, 32)
    with pytest.raises(DecodeError):
        read_wav(bytes(data))


def test_parse_wav_info_requires_fmt_and_data() -> None:
    with pytest.raises(DecodeError):
        parse_wav_info(b"RIFF\x04\x00\x00\x00WAVE")
