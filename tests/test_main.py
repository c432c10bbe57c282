import capture
from chatbox import ChunkedDispatcher
from config import RelayConfig, TranslationConfig
from errors import CaptureError
from main import apply_args, build_parser, build_pipeline, main
from services import ChatTranslator, WhisperTranscriber


def test_cli_overrides_config():
    args = build_parser().parse_args(
        ["--device-index", "2", "--target-language", "French", "--include-original", "--osc-port", "9100"]
    )
    cfg = apply_args(RelayConfig(), args)
    assert cfg.audio.device_index == 2
    assert cfg.translation.target_language == "French"
    assert cfg.translation.include_original_message is True
    assert cfg.osc.output_port == 9100


def test_cli_defaults_keep_config():
    base = RelayConfig()
    cfg = apply_args(base, build_parser().parse_args([]))
    assert cfg == base


def test_build_pipeline_wires_separate_rate_limiters():
    cfg = RelayConfig(cost_file=None)
    pipeline = build_pipeline(cfg)
    assert isinstance(pipeline.transcriber, WhisperTranscriber)
    assert isinstance(pipeline.translator, ChatTranslator)
    assert isinstance(pipeline.dispatcher, ChunkedDispatcher)
    assert pipeline.transcriber.rate_limiter is not pipeline.translator.rate_limiter
    assert pipeline.ledger.path is None


def _no_sounddevice():
    raise CaptureError("No input device available")


def test_main_exits_2_when_device_cannot_open(monkeypatch):
    monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
    monkeypatch.setenv("RELAY_COST_FILE", "")
    monkeypatch.setattr(capture, "_import_sounddevice", _no_sounddevice)

    assert main(["--quiet"]) == 2


def test_include_original_can_be_turned_off():
    base = RelayConfig(translation=TranslationConfig(include_original_message=True))
    cfg = apply_args(base, build_parser().parse_args(["--no-include-original"]))
    assert cfg.translation.include_original_message is False

    cfg = apply_args(base, build_parser().parse_args([]))
    assert cfg.translation.include_original_message is True
