#!/usr/bin/env python3
"""Voice chatbox relay: mic → speech segments → translation → OSC chatbox."""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from dataclasses import replace
from pathlib import Path
from typing import Optional, Sequence

from capture import AudioCapture, PipelineChannel, list_input_devices
from chatbox import ChunkedDispatcher, OscTransport, TypingIndicator
from config import RelayConfig, load_relay_config
from errors import CaptureError
from pricing import CostLedger, PriceTable
from rate_limiter import RateLimiter
from relay import RelayPipeline
from services import ChatTranslator, WhisperTranscriber

RELAY_LOG = logging.getLogger("relay")


def setup_logging(quiet: bool = False, verbose: bool = False) -> None:
    level = logging.INFO
    if quiet:
        level = logging.WARNING
    elif verbose:
        level = logging.DEBUG
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Translate speech from the mic into the OSC chatbox")
    parser.add_argument("--device-index", type=int, default=None, help="Mic device index (default: system input)")
    parser.add_argument("--list-devices", action="store_true", help="List input devices and exit")
    parser.add_argument("--target-language", default=None, help="Language to translate into")
    parser.add_argument(
        "--include-original",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Append the original transcript under the translation",
    )
    parser.add_argument("--osc-port", type=int, default=None, help="Chatbox OSC port")
    parser.add_argument("--quiet", action="store_true", help="Reduce console logs")
    parser.add_argument("--verbose", action="store_true", help="Debug logging")
    return parser


def apply_args(cfg: RelayConfig, args: argparse.Namespace) -> RelayConfig:
    audio = cfg.audio
    if args.device_index is not None:
        audio = replace(audio, device_index=args.device_index)
    translation = cfg.translation
    if args.target_language:
        translation = replace(translation, target_language=args.target_language)
    if args.include_original is not None:
        translation = replace(translation, include_original_message=args.include_original)
    osc = cfg.osc
    if args.osc_port is not None:
        osc = replace(osc, output_port=args.osc_port)
    return replace(cfg, audio=audio, translation=translation, osc=osc)


def build_pipeline(cfg: RelayConfig) -> RelayPipeline:
    rpm = cfg.rate_limit.requests_per_minute
    transport = OscTransport.from_config(cfg.osc)
    return RelayPipeline(
        cfg,
        WhisperTranscriber(cfg.openai, RateLimiter(rpm, label="transcription")),
        ChatTranslator(cfg.openai, cfg.translation, RateLimiter(rpm, label="translation")),
        ChunkedDispatcher.from_config(transport, cfg.osc),
        TypingIndicator(transport),
        prices=PriceTable(),
        ledger=CostLedger.load(Path(cfg.cost_file) if cfg.cost_file else None),
    )


async def _serve(pipeline: RelayPipeline, channel: PipelineChannel) -> None:
    try:
        await pipeline.run(channel)
    finally:
        # Unblocks the receive worker so the loop can shut down.
        channel.close()
        transcriber = pipeline.transcriber
        if isinstance(transcriber, WhisperTranscriber):
            await transcriber.aclose()


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(list(argv) if argv is not None else None)
    setup_logging(quiet=args.quiet, verbose=args.verbose)

    if args.list_devices:
        try:
            devices = list_input_devices()
        except CaptureError as exc:
            print(exc, file=sys.stderr)
            return 2
        for dev in devices:
            print(f"{dev['index']:>3}  {dev['name']}  ({dev['channels']} ch, {dev['sample_rate']:.0f} Hz)")
        return 0

    cfg = apply_args(load_relay_config(), args)
    if not cfg.openai.api_key:
        RELAY_LOG.error("OPENAI_API_KEY missing; set it or create openai_api_key.txt")
        return 2

    pipeline = build_pipeline(cfg)
    RELAY_LOG.info("Loaded total cost: $%.4f", pipeline.ledger.total)

    channel = PipelineChannel(cfg.audio.channel_capacity)
    cap = AudioCapture(cfg.audio, channel)
    cap.start()
    try:
        cap.wait_started()
    except CaptureError as exc:
        RELAY_LOG.error("%s", exc)
        return 2

    RELAY_LOG.info("Starting continuous audio recording...")
    RELAY_LOG.info("Translating to: %s", cfg.translation.target_language)
    RELAY_LOG.info("Rate limit: %d requests per minute", cfg.rate_limit.requests_per_minute)
    if not args.quiet:
        print("Listening… (Ctrl+C to stop)")

    try:
        asyncio.run(_serve(pipeline, channel))
    except KeyboardInterrupt:
        pass
    finally:
        cap.stop()
        channel.close()
        cap.join(timeout=1)

    if cap.error is not None:
        RELAY_LOG.error("Audio capture stopped: %s", cap.error)
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
