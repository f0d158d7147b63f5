"""Configuration models for esa-cli."""

import os
import stat
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from pydantic import BaseModel, Field, SecretStr, field_validator


def default_config_path() -> Path:
    return Path.home() / ".config" / "esa-cli" / "config.yaml"


class EsaConfig(BaseModel):
    """Configuration for the esa API connection."""

    team: str = Field(
        ...,
        min_length=1,
        description="Team name as it appears in https://<team>.esa.io"
    )

    access_token: SecretStr = Field(
        ...,
        description="Personal access token with read/write scope"
    )

    base_url: str = Field(
        default="https://api.esa.io/v1",
        description="API base URL"
    )

    timeout: float = Field(
        default=30.0,
        gt=0,
        description="HTTP timeout in seconds"
    )

    model_config = {"frozen": True}


class EditorConfig(BaseModel):
    """Configuration for the external editor round trip."""

    command: str = Field(
        default="vi",
        min_length=1,
        description="Editor command; the scratch file path is appended as its last argument"
    )

    scratch_dir: str = Field(
        default="~/.esa",
        description="Directory holding the scratch file"
    )

    scratch_file: str = Field(
        default="edit.md",
        description="Scratch file name inside scratch_dir"
    )

    @field_validator("scratch_file")
    @classmethod
    def validate_scratch_file(cls, v: str) -> str:
        """Scratch file must be a bare file name."""
        if not v or "/" in v or v in (".", ".."):
            raise ValueError(f"scratch_file must be a plain file name, got: {v!r}")
        return v

    @property
    def scratch_path(self) -> Path:
        return Path(self.scratch_dir).expanduser() / self.scratch_file

    model_config = {"frozen": True}


class Config(BaseModel):
    """Root configuration for esa-cli."""

    esa: EsaConfig = Field(..., description="esa API settings")
    editor: EditorConfig = Field(default_factory=EditorConfig, description="Editor settings")

    @classmethod
    def load(cls, path: Optional[Path] = None) -> "Config":
        """
        Load configuration from YAML file with environment variable overrides.

        Validates file permissions before loading because the file holds
        an access token. Environment variables fill in or override values:

        - ESA_TEAM_ID: esa.team
        - ESA_ACCESS_TOKEN: esa.access_token
        - EDITOR: editor.command
        - ESA_CLI_SCRATCH_DIR: editor.scratch_dir

        Args:
            path: Path to config.yaml (default: ~/.config/esa-cli/config.yaml)

        Returns:
            Validated Config instance

        Raises:
            PermissionError: If file permissions are too open
            FileNotFoundError: If there is neither a config file nor ESA_* variables
            ValueError: If YAML is invalid or validation fails
        """
        if path is None:
            path = default_config_path()

        data: Dict[str, Any] = {}
        if path.exists():
            # Check file permissions (must be 600)
            mode = os.stat(path).st_mode
            if mode & (stat.S_IRWXG | stat.S_IRWXO):
                raise PermissionError(
                    f"Config file has overly permissive permissions: {oct(mode)}\n"
                    f"Run: chmod 600 {path}"
                )

            with open(path, encoding="utf-8") as f:
                try:
                    data = yaml.safe_load(f) or {}
                except yaml.YAMLError as e:
                    raise ValueError(f"Invalid YAML in {path}: {e}") from e

            if not isinstance(data, dict):
                raise ValueError(f"Config file {path} must contain a mapping")
        elif not (os.getenv("ESA_TEAM_ID") or os.getenv("ESA_ACCESS_TOKEN")):
            raise FileNotFoundError(
                f"Configuration file not found at {path}\n\n"
                f"Please create the file with the following format:\n\n"
                f"esa:\n"
                f"  team: YOUR_TEAM\n"
                f"  access_token: YOUR_ACCESS_TOKEN\n\n"
                f"editor:\n"
                f"  command: vim\n\n"
                f"or set ESA_TEAM_ID and ESA_ACCESS_TOKEN.\n"
            )

        return cls(**_apply_env_overrides(data))

    model_config = {"frozen": True}


def _apply_env_overrides(data: Dict[str, Any]) -> Dict[str, Any]:
    """Apply environment variable overrides to configuration data."""
    data = dict(data)
    esa = dict(data.get("esa") or {})
    editor = dict(data.get("editor") or {})

    if env_team := os.getenv("ESA_TEAM_ID"):
        esa["team"] = env_team

    if env_token := os.getenv("ESA_ACCESS_TOKEN"):
        esa["access_token"] = env_token

    if env_editor := os.getenv("EDITOR"):
        editor["command"] = env_editor

    if env_scratch_dir := os.getenv("ESA_CLI_SCRATCH_DIR"):
        editor["scratch_dir"] = env_scratch_dir

    data["esa"] = esa
    data["editor"] = editor
    return data
