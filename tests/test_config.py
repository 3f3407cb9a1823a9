from pathlib import Path

from hurler.config import DEFAULT_MAX_OUTPUT, DEFAULT_TIMEOUT, Settings


def test_settings_from_env(monkeypatch, tmp_path):
    monkeypatch.setenv("HURLER_DATA_DIR", str(tmp_path / "data"))
    monkeypatch.setenv("HURLER_HURL_BIN", "/opt/hurl")
    monkeypatch.setenv("HURLER_TIMEOUT", "5")
    monkeypatch.setenv("HURLER_MAX_OUTPUT", "not a number")
    monkeypatch.setenv("HURLER_LOG_LEVEL", "debug")

    settings = Settings.from_env()

    assert settings.data_dir == (tmp_path / "data").resolve()
    assert settings.hurl_bin == "/opt/hurl"
    assert settings.timeout == 5.0
    assert settings.max_output_bytes == DEFAULT_MAX_OUTPUT
    assert settings.log_level == "DEBUG"
    assert settings.collections_dir == settings.data_dir / "collections"
    assert settings.metadata_path.name == "metadata.json"


def test_explicit_data_dir_wins(monkeypatch, tmp_path):
    monkeypatch.setenv("HURLER_DATA_DIR", str(tmp_path / "ignored"))
    monkeypatch.delenv("HURLER_TIMEOUT", raising=False)
    settings = Settings.from_env(tmp_path / "chosen")
    assert settings.data_dir == Path(tmp_path / "chosen").resolve()
    assert settings.timeout == DEFAULT_TIMEOUT
