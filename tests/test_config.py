"""Tests for configuration loading and credential lookup."""

import json

import pytest
import yaml

from fractal.core.config import (
    DEFAULT_ENDPOINT,
    DEFAULT_MODEL,
    ChainedCredentialProvider,
    Config,
    EnvCredentialProvider,
    FileCredentialProvider,
    StaticCredentialProvider,
    clean_credential,
)


@pytest.fixture
def isolated_home(tmp_path, monkeypatch):
    """Point HOME and cwd at empty temp dirs so no real config leaks in."""
    home = tmp_path / "home"
    work = tmp_path / "work"
    home.mkdir()
    work.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.chdir(work)
    return home


class TestConfig:
    """Test Config hierarchy."""

    def test_defaults(self, isolated_home):
        config = Config.load()
        assert config.model == DEFAULT_MODEL
        assert config.endpoint == DEFAULT_ENDPOINT
        assert config.timeout is None
        assert config.credential_key == "GroqAPIKey"

    def test_user_then_project_then_cli(self, isolated_home):
        user_dir = isolated_home / ".fractal"
        user_dir.mkdir()
        (user_dir / "config.yaml").write_text(
            yaml.dump({"model": "user-model", "timeout": 30}), encoding="utf-8"
        )
        (isolated_home.parent / "work" / ".fractal.yaml").write_text(
            yaml.dump({"model": "project-model"}), encoding="utf-8"
        )

        config = Config.load()
        assert config.model == "project-model"
        assert config.timeout == 30

        config = Config.load(cli_args={"model": "cli-model", "timeout": None})
        assert config.model == "cli-model"
        assert config.timeout == 30

    def test_json_config_file(self, isolated_home, tmp_path):
        path = tmp_path / "custom.json"
        path.write_text(json.dumps({"endpoint": "https://example.test/v1"}), encoding="utf-8")
        assert Config.load(config_file=path).endpoint == "https://example.test/v1"

    def test_broken_file_ignored(self, isolated_home, tmp_path):
        path = tmp_path / "broken.yaml"
        path.write_text("model: [unterminated", encoding="utf-8")
        assert Config.load(config_file=path).model == DEFAULT_MODEL

    def test_unknown_keys_ignored(self, isolated_home, tmp_path):
        path = tmp_path / "extra.yaml"
        path.write_text(yaml.dump({"colour": "blue"}), encoding="utf-8")
        assert not hasattr(Config.load(config_file=path), "colour")

    def test_unknown_log_level_ignored(self, isolated_home, tmp_path):
        path = tmp_path / "levels.yaml"
        path.write_text(yaml.dump({"log_level": "verbose"}), encoding="utf-8")
        assert Config.load(config_file=path).log_level == "WARNING"

    def test_log_level_normalized(self, isolated_home, tmp_path):
        path = tmp_path / "levels.yaml"
        path.write_text(yaml.dump({"log_level": "debug"}), encoding="utf-8")
        assert Config.load(config_file=path).log_level == "DEBUG"

    def test_save_round_trip(self, isolated_home, tmp_path):
        config = Config()
        config.model = "saved-model"
        path = tmp_path / "out.yaml"
        config.save(path)
        assert Config.load(config_file=path).model == "saved-model"

    def test_data_file_default(self, isolated_home):
        path = Config().get_data_file()
        assert path == isolated_home / ".fractal" / "goals.json"
        assert path.parent.is_dir()


class TestCredentials:
    """Test credential providers."""

    def test_clean_credential(self):
        assert clean_credential('  "gsk_abc" ') == "gsk_abc"
        assert clean_credential("  ") is None
        assert clean_credential(None) is None

    def test_static(self):
        provider = StaticCredentialProvider({"GroqAPIKey": "gsk_abc"})
        assert provider.get("GroqAPIKey") == "gsk_abc"
        assert provider.get("Other") is None

    def test_env(self, monkeypatch):
        monkeypatch.delenv("FRACTAL_API_KEY", raising=False)
        monkeypatch.setenv("GROQ_API_KEY", "gsk_env")
        assert EnvCredentialProvider().get("GroqAPIKey") == "gsk_env"
        monkeypatch.setenv("FRACTAL_API_KEY", "gsk_first")
        assert EnvCredentialProvider().get("GroqAPIKey") == "gsk_first"

    def test_file(self, tmp_path):
        path = tmp_path / "secrets.yaml"
        path.write_text(yaml.dump({"GroqAPIKey": "gsk_file"}), encoding="utf-8")
        assert FileCredentialProvider(path).get("GroqAPIKey") == "gsk_file"
        assert FileCredentialProvider(tmp_path / "missing.yaml").get("GroqAPIKey") is None

    def test_chain_skips_empty(self):
        chain = ChainedCredentialProvider(
            [StaticCredentialProvider({"GroqAPIKey": ""}), StaticCredentialProvider({"GroqAPIKey": "gsk_2"})]
        )
        assert chain.get("GroqAPIKey") == "gsk_2"
        assert ChainedCredentialProvider([]).get("GroqAPIKey") is None
