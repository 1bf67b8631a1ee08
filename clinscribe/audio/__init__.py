"""Audio core: capture orchestration, WAV encoding and segmentation."""

from clinscribe.audio.segmenter import segment_buffer
from clinscribe.audio.wav import encode_wav, is_wav, quantize_pcm16, read_wav

__all__ = ["encode_wav", "is_wav", "quantize_pcm16", "read_wav", "segment_buffer"]
