from functools import lru_cache
from pathlib import Path
from typing import Any, Dict

import tomli
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from .rules import DEFAULT_EFFECT_MEASURES

CONFIG_PATH = Path("config/revman.toml")

_PARSE_OPTIONS = (
    "p_rounding",
    "remove_empty_outcomes",
    "debug_outcomes",
    "format_sof_tables",
    "reconstruct_outcomes",
    "parallel_metrics",
    "schema_version",
)


def _default_effect_measures() -> Dict[str, str]:
    return dict(DEFAULT_EFFECT_MEASURES)


class Settings(BaseSettings):
    """Parse options loaded from ``config/revman.toml`` and ``REVMAN_*`` variables."""

    p_rounding: int = Field(default=6, ge=0)
    remove_empty_outcomes: bool = True
    debug_outcomes: bool = False
    format_sof_tables: bool = True
    reconstruct_outcomes: bool = True
    parallel_metrics: bool = True
    schema_version: str | None = None
    effect_measure_lookup: Dict[str, str] = Field(default_factory=_default_effect_measures)

    model_config = SettingsConfigDict(env_prefix="REVMAN_", extra="ignore", frozen=True)

    @classmethod
    def settings_customise_sources(
            cls, settings_cls, init_settings, env_settings, dotenv_settings, file_secret_settings
    ):
        return (
            init_settings,
            env_settings,
            _toml_config_settings_source,
            file_secret_settings,
        )


def _toml_config_settings_source() -> Dict[str, Any]:
    if not CONFIG_PATH.exists():
        return {}
    data = tomli.loads(CONFIG_PATH.read_text(encoding="utf-8"))
    parse_cfg = data.get("parse", {}) or {}
    values: Dict[str, Any] = {
        key: parse_cfg[key] for key in _PARSE_OPTIONS if key in parse_cfg
    }
    measures = data.get("effect_measures")
    if isinstance(measures, dict) and measures:
        values["effect_measure_lookup"] = {
            **DEFAULT_EFFECT_MEASURES,
            **{str(code): str(label) for code, label in measures.items()},
        }
    return values


@lru_cache
def get_settings() -> Settings:
    """Return cached parse settings."""

    return Settings()
