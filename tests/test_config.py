from relay_parameters import (
    AudioConfig,
    OpenAIConfig,
    OscConfig,
    RateLimitConfig,
    RelayConfig,
    TranslationConfig,
    load_openai_api_key,
)


def test_audio_config_from_env(monkeypatch):
    monkeypatch.setenv("RELAY_NOISE_GATE_THRESHOLD", "0.05")
    monkeypatch.setenv("RELAY_SILENCE_FRAMES", "not-a-number")
    monkeypatch.setenv("RELAY_DEVICE_INDEX", "3")
    cfg = AudioConfig.from_env()
    assert cfg.noise_gate_threshold == 0.05
    assert cfg.silence_frames == AudioConfig().silence_frames
    assert cfg.device_index == 3


def test_osc_config_from_env(monkeypatch):
    monkeypatch.setenv("RELAY_OSC_PORT", "9001")
    monkeypatch.setenv("RELAY_DISPLAY_TIME_MS", "250")
    cfg = OscConfig.from_env()
    assert cfg.output_port == 9001
    assert cfg.display_time == 0.25


def test_bool_and_rate_limit_parsing(monkeypatch):
    monkeypatch.setenv("RELAY_INCLUDE_ORIGINAL", "yes")
    monkeypatch.setenv("RELAY_REQUESTS_PER_MINUTE", "0")
    assert TranslationConfig.from_env().include_original_message is True
    assert RateLimitConfig.from_env().requests_per_minute == 1

    monkeypatch.setenv("RELAY_INCLUDE_ORIGINAL", "off")
    assert TranslationConfig.from_env().include_original_message is False


def test_api_key_from_file(monkeypatch, tmp_path):
    key_file = tmp_path / "key.txt"
    key_file.write_text("  sk-from-file\n")
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    monkeypatch.setenv("OPENAI_API_KEY_FILE", str(key_file))
    assert load_openai_api_key() == "sk-from-file"
    assert OpenAIConfig.from_env().api_key == "sk-from-file"


def test_api_key_env_wins(monkeypatch):
    monkeypatch.setenv("OPENAI_API_KEY", "sk-env")
    assert load_openai_api_key() == "sk-env"


def test_empty_cost_file_disables_persistence(monkeypatch):
    monkeypatch.setenv("RELAY_COST_FILE", "")
    assert RelayConfig.from_env().cost_file is None
