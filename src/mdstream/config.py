"""Application configuration: settings schema and config.yaml loader"""

import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field


CONFIG_FILE = "config.yaml"
ENV_PREFIX = "MDSTREAM_"


class Settings(BaseModel):
    app_name:          str  = "mdstream"
    parser_preset:     str  = Field(default="gfm-like", description="MarkdownIt parser preset name")
    repair_markers:    bool = Field(default=True,  description="Close unterminated markers before tokenizing")
    extract_footnotes: bool = Field(default=True,  description="Collect [^id]: definitions into one trailing block")
    chunk_size:        int  = Field(default=8, ge=1, description="Characters per simulated stream chunk")
    output_dir:        str  = Field(default="dist", description="Directory for rendered block JSON files")
    log_level:         str  = Field(default="WARNING", pattern="^(DEBUG|INFO|WARNING|ERROR)$")


def load_config(overrides: dict[str, Any] = None) -> Settings:
    """Load Settings from config.yaml, then MDSTREAM_<FIELD> env vars, then non-None CLI overrides."""
    data: dict[str, Any] = {}
    if Path(CONFIG_FILE).exists():
        try:
            data = yaml.safe_load(Path(CONFIG_FILE).read_text()) or {}
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid {CONFIG_FILE}: {e}") from e
        if not isinstance(data, dict):
            raise ValueError(f"Invalid {CONFIG_FILE}: expected a mapping, got {type(data).__name__}")

    for name in Settings.model_fields:
        if val := os.getenv(f"{ENV_PREFIX}{name.upper()}"):
            data[name] = val

    if overrides:
        data.update({k: v for k, v in overrides.items() if v is not None})
    return Settings(**data)
