"""Unit tests for settings and the TOML config loader."""

import pytest
from pydantic import ValidationError

from sr_bot.config.loader import load_config
from sr_bot.config.settings import DEFAULT_TRANSCRIPTION_ENDPOINT, Settings, TranscriptionConfig


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    for name in (
        "TELEGRAM_BOT_TOKEN",
        "API_ENDPOINT",
        "TELEMETRY_GRPC_TARGET",
        "SR_BOT_CONFIG_FILE",
        "SR_BOT_TELEGRAM_TOKEN",
        "SR_BOT_TRANSCRIPTION_ENDPOINT",
        "SR_BOT_TELEMETRY_GRPC_TARGET",
        "SR_BOT_TRANSCRIPTION_MAX_AUDIO_BYTES",
        "SR_BOT_METRICS_PORT",
        "SR_BOT_LOG_LEVEL",
    ):
        monkeypatch.delenv(name, raising=False)


def test_defaults(tmp_path):
    settings = load_config(tmp_path / "missing.toml")

    assert settings.telegram.token == ""
    assert settings.transcription.endpoint == DEFAULT_TRANSCRIPTION_ENDPOINT
    assert settings.transcription.max_audio_bytes is None
    assert settings.telemetry.grpc_target is None
    assert settings.metrics.port == 2112


def test_legacy_environment_names(monkeypatch, tmp_path):
    monkeypatch.setenv("TELEGRAM_BOT_TOKEN", "123:abc")
    monkeypatch.setenv("API_ENDPOINT", "http://stt:8787/upload")
    monkeypatch.setenv("TELEMETRY_GRPC_TARGET", "otel:4317")

    settings = load_config(tmp_path / "missing.toml")

    assert settings.telegram.token == "123:abc"
    assert settings.transcription.endpoint == "http://stt:8787/upload"
    assert settings.telemetry.grpc_target == "otel:4317"


def test_toml_file(tmp_path):
    config_file = tmp_path / "config.toml"
    config_file.write_text(
        'log_level = "DEBUG"\n'
        "\n"
        "[transcription]\n"
        'endpoint = "http://file:9000/upload"\n'
        "max_audio_bytes = 1048576\n"
        "\n"
        "[metrics]\n"
        "port = 9100\n"
    )

    settings = load_config(config_file)

    assert settings.log_level == "DEBUG"
    assert settings.transcription.endpoint == "http://file:9000/upload"
    assert settings.transcription.max_audio_bytes == 1048576
    assert settings.metrics.port == 9100


def test_environment_overrides_toml(monkeypatch, tmp_path):
    config_file = tmp_path / "config.toml"
    config_file.write_text('[transcription]\nendpoint = "http://file:9000/upload"\n')
    monkeypatch.setenv("API_ENDPOINT", "http://env:8000/upload")
    monkeypatch.setenv("SR_BOT_METRICS_PORT", "9200")

    settings = load_config(config_file)

    assert settings.transcription.endpoint == "http://env:8000/upload"
    assert settings.metrics.port == 9200


def test_dotenv_file(tmp_path):
    (tmp_path / ".env").write_text(
        "TELEGRAM_BOT_TOKEN=123:abc\n"
        "API_ENDPOINT=http://dotenv:8000/upload\n"
        "SR_BOT_METRICS_PORT=9300\n"
        "SR_BOT_LOG_LEVEL=DEBUG\n"
    )

    settings = load_config(tmp_path / "missing.toml")

    assert settings.telegram.token == "123:abc"
    assert settings.transcription.endpoint == "http://dotenv:8000/upload"
    assert settings.metrics.port == 9300
    assert settings.log_level == "DEBUG"


def test_dotenv_overrides_toml(tmp_path):
    config_file = tmp_path / "config.toml"
    config_file.write_text('[telegram]\ntoken = "from-file"\n')
    (tmp_path / ".env").write_text("SR_BOT_TELEGRAM_TOKEN=from-dotenv\n")

    settings = load_config(config_file)

    assert settings.telegram.token == "from-dotenv"


def test_config_file_from_environment(monkeypatch, tmp_path):
    config_file = tmp_path / "custom.toml"
    config_file.write_text('[telegram]\ntoken = "from-file"\n')
    monkeypatch.setenv("SR_BOT_CONFIG_FILE", str(config_file))

    settings = load_config()

    assert settings.telegram.token == "from-file"


def test_invalid_size_cap():
    with pytest.raises(ValidationError):
        TranscriptionConfig(max_audio_bytes=0)


def test_invalid_log_format():
    with pytest.raises(ValidationError):
        Settings(log_format="xml")
