"""
Workspace management for kb-gaps.
"""

import json
from pathlib import Path
from typing import Any

import yaml
from jsonschema import ValidationError, validate

from kb_gaps.exceptions import InvalidConfigError
from kb_gaps.util.files import ensure_dir

SCHEMA_FILE = Path(__file__).parent / "schema" / "config.schema.json"


class Workspace:
    """Manages the kb-gaps workspace structure and configuration."""

    CONFIG_NAME = "kb-gaps.yaml"

    REQUIRED_DIRS = [
        "input",
        "output",
    ]

    DEFAULT_CONFIG = {
        "llm": {
            "provider": "openai",
            "model": "gpt-4o-mini",
            "api_key_env": "OPENAI_API_KEY",
            "batch_size": 10,
            "retry_limit": 3,
            "batch_delay": 0.5,  # seconds between batches
            "max_tokens": 3000,
            "temperature": 0.1,
        },
        "search": {
            "provider": "pinecone",
            "api_key_env": "PINECONE_API_KEY",
            "host": "",
            "namespace": "",
            "threshold": 0.8,
            "top_k": 3,
            "item_delay": 0.1,  # seconds between queries
            "timeout": 30,
            "fields": ["title", "article", "locale"],
            "embed_model": "llama-text-embed-v2",
            "dimension": 1024,
        },
    }

    def __init__(self, root: Path):
        self.root = Path(root)
        self.config_file = self.root / self.CONFIG_NAME
        self._config_cache: dict[str, Any] | None = None

    @property
    def output_dir(self) -> Path:
        return self.root / "output"

    def initialize(self) -> None:
        """Initialize workspace directory structure and config."""
        for dir_path in self.REQUIRED_DIRS:
            ensure_dir(self.root / dir_path)

        with open(self.config_file, "w") as f:
            yaml.dump(self.DEFAULT_CONFIG, f, default_flow_style=False, sort_keys=False)

    def load_config(self) -> dict[str, Any]:
        """Load and validate workspace configuration (cached after the first call)."""
        if self._config_cache is not None:
            return self._config_cache

        if not self.config_file.exists():
            raise InvalidConfigError(f"config file not found: {self.config_file}")

        with open(self.config_file) as f:
            try:
                config = yaml.safe_load(f)
            except yaml.YAMLError as e:
                raise InvalidConfigError(f"{self.config_file} is not valid YAML: {e}") from e

        if config is None:
            raise InvalidConfigError(f"config file is empty: {self.config_file}")

        if not isinstance(config, dict):
            raise InvalidConfigError(f"expected a mapping, got {type(config).__name__}")

        validate_config(config)

        self._config_cache = config

        return config


def validate_config(config: dict) -> None:
    """
    Validate a config mapping against the packaged JSON schema.

    Raises:
        InvalidConfigError: If the config does not match the schema
    """
    schema = json.loads(SCHEMA_FILE.read_text())
    try:
        validate(instance=config, schema=schema)
    except ValidationError as e:
        path = ".".join(str(p) for p in e.path)
        raise InvalidConfigError(f"{e.message} (at {path or '<root>'})") from e
