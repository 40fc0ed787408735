"""Configuration management for Fractal."""

import json
import os
from pathlib import Path
from typing import Any, Optional, Protocol

import yaml

from fractal.core.logging import LogLevel

DEFAULT_MODEL = "llama3-8b-8192"
DEFAULT_ENDPOINT = "https://api.groq.com/openai/v1/chat/completions"
DEFAULT_CREDENTIAL_KEY = "GroqAPIKey"

# Environment variables checked for the API key, in order
CREDENTIAL_ENV_VARS = ("FRACTAL_API_KEY", "GROQ_API_KEY")


def _read_mapping(path: Path) -> Optional[dict[str, Any]]:
    """Read a YAML or JSON mapping, returning None for unknown formats or non-mappings."""
    content = path.read_text(encoding="utf-8")
    if path.suffix in [".yaml", ".yml"]:
        data = yaml.safe_load(content)
    elif path.suffix == ".json":
        data = json.loads(content)
    else:
        return None
    return data if isinstance(data, dict) else None


def clean_credential(value: Optional[str]) -> Optional[str]:
    """Strip whitespace and stray quotes; empty values become None."""
    if value is None:
        return None
    cleaned = str(value).strip().strip('"').strip("'").strip()
    return cleaned or None


class Config:
    """Configuration manager with hierarchy: CLI args > project config > user config > defaults."""

    def __init__(self):
        """Initialize configuration with default values."""
        self.model: str = DEFAULT_MODEL
        self.endpoint: str = DEFAULT_ENDPOINT
        self.timeout: Optional[float] = None
        self.data_file: Optional[str] = None
        self.secrets_file: Optional[str] = None
        self.credential_key: str = DEFAULT_CREDENTIAL_KEY
        self.log_level: str = "WARNING"
        self.json_logs: bool = False

    @classmethod
    def load(
        cls,
        cli_args: Optional[dict[str, Any]] = None,
        config_file: Optional[Path] = None,
    ) -> "Config":
        """
        Load configuration from hierarchy: CLI args > explicit file > project config > user config > defaults.

        Args:
            cli_args: Dictionary of CLI arguments to override config
            config_file: Optional explicit config file (YAML or JSON)

        Returns:
            Config instance with loaded values
        """
        config = cls()

        # Load user config (~/.fractal/config.yaml)
        user_config_path = Path.home() / ".fractal" / "config.yaml"
        if user_config_path.exists():
            config._load_file(user_config_path)

        # Load project config (.fractal.yaml in current directory)
        project_config_path = Path.cwd() / ".fractal.yaml"
        if project_config_path.exists():
            config._load_file(project_config_path)

        if config_file is not None and config_file.exists():
            config._load_file(config_file)

        # Override with CLI args
        if cli_args:
            for key, value in cli_args.items():
                if value is not None and hasattr(config, key):
                    setattr(config, key, value)

        return config

    def _load_file(self, config_path: Path) -> None:
        """Load configuration from a YAML or JSON file."""
        try:
            data = _read_mapping(config_path)
        except (OSError, ValueError, yaml.YAMLError):
            # Unreadable config files are ignored
            return
        if not data:
            return

        for key, value in data.items():
            if key == "log_level" and value is not None:
                value = str(value).upper()
                if value not in LogLevel.__members__:
                    # Unknown levels keep the previous setting
                    continue
            if hasattr(self, key) and value is not None:
                setattr(self, key, value)

    def to_dict(self) -> dict[str, Any]:
        """Convert config to dictionary."""
        return {
            "model": self.model,
            "endpoint": self.endpoint,
            "timeout": self.timeout,
            "data_file": self.data_file,
            "secrets_file": self.secrets_file,
            "credential_key": self.credential_key,
            "log_level": self.log_level,
            "json_logs": self.json_logs,
        }

    def save(self, path: Path, format: str = "yaml") -> None:
        """
        Save configuration to file.

        Args:
            path: Path to save config file
            format: Format to save as ('yaml' or 'json')
        """
        path.parent.mkdir(parents=True, exist_ok=True)

        # Remove None values for cleaner config
        data = {k: v for k, v in self.to_dict().items() if v is not None}

        if format == "yaml":
            content = yaml.dump(data, default_flow_style=False, sort_keys=False)
        else:
            content = json.dumps(data, indent=2)

        path.write_text(content, encoding="utf-8")

    def get_data_file(self) -> Path:
        """Get the goals snapshot path, creating its directory if needed."""
        if self.data_file:
            file_path = Path(self.data_file).expanduser()
        else:
            file_path = Path.home() / ".fractal" / "goals.json"
        file_path.parent.mkdir(parents=True, exist_ok=True)
        return file_path

    def get_secrets_file(self) -> Path:
        """Get the secrets file path (not created)."""
        if self.secrets_file:
            return Path(self.secrets_file).expanduser()
        return Path.home() / ".fractal" / "secrets.yaml"

    def credential_provider(self) -> "CredentialProvider":
        """Build the default provider chain: environment first, then the secrets file."""
        return ChainedCredentialProvider(
            [EnvCredentialProvider(), FileCredentialProvider(self.get_secrets_file())]
        )


class CredentialProvider(Protocol):
    """Source of a single string credential looked up by key."""

    def get(self, key: str) -> Optional[str]:
        ...


class StaticCredentialProvider:
    """Fixed mapping of credentials, mostly useful in tests."""

    def __init__(self, values: Optional[dict[str, str]] = None):
        self.values = dict(values or {})

    def get(self, key: str) -> Optional[str]:
        return clean_credential(self.values.get(key))


class EnvCredentialProvider:
    """Reads the API key from environment variables, ignoring the key name."""

    def __init__(self, env_vars: tuple[str, ...] = CREDENTIAL_ENV_VARS):
        self.env_vars = env_vars

    def get(self, key: str) -> Optional[str]:
        for name in self.env_vars:
            value = clean_credential(os.getenv(name))
            if value:
                return value
        return None


class FileCredentialProvider:
    """Reads credentials from a YAML or JSON secrets mapping."""

    def __init__(self, path: Path):
        self.path = path

    def get(self, key: str) -> Optional[str]:
        if not self.path.exists():
            return None
        try:
            data = _read_mapping(self.path)
        except (OSError, ValueError, yaml.YAMLError):
            return None
        if not data:
            return None
        return clean_credential(data.get(key))


class ChainedCredentialProvider:
    """Returns the first non-empty credential from a list of providers."""

    def __init__(self, providers: list[CredentialProvider]):
        self.providers = providers

    def get(self, key: str) -> Optional[str]:
        for provider in self.providers:
            value = provider.get(key)
            if value:
                return value
        return None
