"""Microphone capture backends."""

from clinscribe.providers.capture.base import CaptureBackend, CaptureStream, candidate_formats

__all__ = ["CaptureBackend", "CaptureStream", "candidate_formats"]
