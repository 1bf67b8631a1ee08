"""ClinScribe command line.

Usage:
  clinscribe record --language kn --submit --phone 9876543210
  clinscribe encode consult.webm --out consult.wav --segment-s 30
  clinscribe phone show | set <number> | clear
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import mimetypes
import sys
import uuid
from pathlib import Path

from clinscribe.audio.capture import CaptureSession
from clinscribe.audio.pipeline import AudioPipeline
from clinscribe.config import Settings
from clinscribe.exceptions import ClinScribeError
from clinscribe.models.audio import CapturedAudio, PcmContainer
from clinscribe.models.record import ClinicalRecord
from clinscribe.pipeline.context import IntakeContext
from clinscribe.pipeline.factory import build_intake_pipeline
from clinscribe.providers import get_capture_backend, get_capture_formats, get_decoder, provider_for_language
from clinscribe.services.airtable import AirtableClient
from clinscribe.services.messaging import build_whatsapp_url, normalize_phone
from clinscribe.services.phone_store import PhoneNumberStore
from clinscribe.utils.logging_setup import setup_logging

logger = logging.getLogger(__name__)

_EXTRA_MEDIA_TYPES = {
    ".webm": "audio/webm",
    ".m4a": "audio/mp4",
    ".wav": "audio/wav",
    ".flac": "audio/flac",
    ".ogg": "audio/ogg",
}


def _positive_float(value: str) -> float:
    try:
        number = float(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"not a number: {value!r}") from None
    if not number > 0:
        raise argparse.ArgumentTypeError(f"must be greater than 0 (got {value})")
    return number


def _parse_args(argv: list[str] | None) -> argparse.Namespace:
    p = argparse.ArgumentParser(prog="clinscribe", description="Clinical intake from recorded consultations")
    sub = p.add_subparsers(dest="command", required=True)

    rec = sub.add_parser("record", help="Record a consultation and extract intake fields")
    rec.add_argument("--language", default=None, help="Spoken language code (default: ASR_DEFAULT_LANGUAGE)")
    rec.add_argument("--save-wav", default=None, help="Optional path to keep the encoded WAV")
    rec.add_argument("--submit", action="store_true", help="Submit the record to Airtable")
    rec.add_argument("--doctor-name", default=None, help="Doctor name for the submitted row")
    rec.add_argument("--phone", default=None, help="10-digit number for the WhatsApp report link")

    enc = sub.add_parser("encode", help="Convert an audio file to 16-bit PCM WAV")
    enc.add_argument("input", help="Input audio file")
    enc.add_argument("--out", default=None, help="Output path (default: <input>.wav)")
    enc.add_argument("--media-type", default=None, help="Override the detected media type")
    enc.add_argument("--segment-s", type=_positive_float, default=None, help="Split into segments of at most N seconds")

    phone = sub.add_parser("phone", help="Manage the cached doctor phone number")
    phone_sub = phone.add_subparsers(dest="phone_command", required=True)
    phone_sub.add_parser("show")
    phone_set = phone_sub.add_parser("set")
    phone_set.add_argument("number")
    phone_sub.add_parser("clear")

    return p.parse_args(argv)


def _guess_media_type(path: Path) -> str | None:
    suffix = path.suffix.lower()
    if suffix in _EXTRA_MEDIA_TYPES:
        return _EXTRA_MEDIA_TYPES[suffix]
    guessed, _ = mimetypes.guess_type(path.name)
    return guessed


def _write_containers(containers: list[PcmContainer], out: Path) -> list[Path]:
    out.parent.mkdir(parents=True, exist_ok=True)
    if len(containers) == 1:
        out.write_bytes(containers[0].data)
        return [out]
    paths: list[Path] = []
    for i, container in enumerate(containers):
        path = out.with_name(f"{out.stem}_{i:03d}{out.suffix or '.wav'}")
        path.write_bytes(container.data)
        paths.append(path)
    return paths


def _capture(settings: Settings) -> CapturedAudio | None:
    session = CaptureSession(
        get_capture_backend(settings),
        formats=get_capture_formats(settings),
        chunk_ms=settings.capture.chunk_ms,
    )
    handle = session.start()
    print(f"Recording ({handle.capture_format.media_type}). Press Enter to stop.", flush=True)
    try:
        input()
    finally:
        captured = session.stop(handle)
    return captured


async def _run_intake(settings: Settings, captured: CapturedAudio, language: str) -> IntakeContext:
    pipeline = build_intake_pipeline(settings)
    try:
        context = await pipeline.run(
            {
                "session_id": captured.session_id,
                "language": language,
                "captured_audio": captured,
            }
        )
    finally:
        await pipeline.close()
    return context


async def _submit(settings: Settings, record: ClinicalRecord, doctor_name: str) -> list[str]:
    settings.require_credentials("airtable")
    cfg = settings.airtable
    async with AirtableClient(
        api_key=cfg.api_key,
        base_id=cfg.base_id,
        table=cfg.table,
        base_url=cfg.base_url,
        timeout=cfg.timeout,
    ) as client:
        return await client.submit(record, doctor_name=doctor_name)


def _cmd_record(args: argparse.Namespace, settings: Settings) -> int:
    language = args.language or settings.asr.default_language
    # Fail before recording rather than after.
    settings.require_credentials(provider_for_language(language, settings), "gemini")
    if args.submit:
        settings.require_credentials("airtable")

    store = PhoneNumberStore(settings.phone_cache_path)
    phone = args.phone or store.load()
    if args.phone and normalize_phone(args.phone) is None:
        print(f"Invalid phone number: {args.phone!r} (expected 10 digits)", file=sys.stderr)
        return 2

    captured = _capture(settings)
    if captured is None or not captured.data:
        print("No audio captured.", file=sys.stderr)
        return 1

    context = asyncio.run(_run_intake(settings, captured, language))
    record = context["record"]
    if args.save_wav:
        for path in _write_containers(context["containers"], Path(args.save_wav)):
            print(f"Saved {path}")

    print(json.dumps(record.to_dict(), ensure_ascii=False, indent=2))

    if args.submit:
        doctor_name = args.doctor_name or settings.airtable.doctor_name
        ids = asyncio.run(_submit(settings, record, doctor_name))
        print(f"Submitted to Airtable: {', '.join(ids)}")

    if phone:
        url = build_whatsapp_url(
            phone,
            record,
            country_code=settings.messaging.country_code,
            base_url=settings.messaging.base_url,
        )
        store.save(phone)
        print(f"WhatsApp: {url}")
    return 0


async def _encode(settings: Settings, data: bytes, media_type: str | None, segment_s: float | None) -> list[PcmContainer]:
    audio = AudioPipeline(get_decoder(settings))
    if segment_s is not None:
        return await audio.decode_and_segment(data, media_type, segment_s)
    return [await audio.encode_if_needed(data, media_type)]


def _cmd_encode(args: argparse.Namespace, settings: Settings) -> int:
    src = Path(args.input)
    if not src.exists():
        print(f"Input not found: {src}", file=sys.stderr)
        return 2
    media_type = args.media_type or _guess_media_type(src)
    out = Path(args.out) if args.out else src.with_suffix(".wav")
    if out.resolve() == src.resolve():
        out = src.with_name(f"{src.stem}_pcm16.wav")

    try:
        containers = asyncio.run(_encode(settings, src.read_bytes(), media_type, args.segment_s))
    except ValueError as exc:
        print(f"Invalid segment length: {exc}", file=sys.stderr)
        return 2
    for path, container in zip(_write_containers(containers, out), containers, strict=True):
        print(f"{path} ({container.duration_s:.2f}s, {container.sample_rate} Hz, {container.channel_count} ch)")
    return 0


def _cmd_phone(args: argparse.Namespace, settings: Settings) -> int:
    store = PhoneNumberStore(settings.phone_cache_path)
    match args.phone_command:
        case "show":
            print(store.load() or "(none)")
        case "set":
            if not store.save(args.number):
                print(f"Invalid phone number: {args.number!r} (expected 10 digits)", file=sys.stderr)
                return 2
            print("Saved.")
        case "clear":
            store.clear()
            print("Cleared.")
    return 0


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)
    settings = Settings()
    setup_logging(settings)

    try:
        match args.command:
            case "record":
                return _cmd_record(args, settings)
            case "encode":
                return _cmd_encode(args, settings)
            case "phone":
                return _cmd_phone(args, settings)
    except ClinScribeError as exc:
        logger.debug("command failed", exc_info=True)
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    return 2


if __name__ == "__main__":
    raise SystemExit(main())
