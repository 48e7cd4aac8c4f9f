# ABOUTME: Loads SMILE analytics settings from YAML with environment overrides.
# ABOUTME: Supplies the tier table and LLM insight settings to the engines and CLI.

from __future__ import annotations

import os
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import yaml

from .schemas import Tier

DEFAULT_CONFIG_PATH = Path("configs/smile.yaml")
LLM_PROVIDERS = ("openai", "anthropic")


class ConfigError(ValueError):
    """Raised when a settings file is unreadable or structurally invalid."""


@dataclass(frozen=True)
class LLMSettings:
    enabled: bool = False
    provider: str = "openai"
    model: str = "gpt-4o-mini"
    temperature: float = 0.7
    max_tokens: int = 400
    api_key: Optional[str] = None


@dataclass(frozen=True)
class SmileSettings:
    tiers: Tuple[Tier, ...]
    llm: LLMSettings = field(default_factory=LLMSettings)


def load_settings(config_path: Optional[Path] = None, environ: Optional[Dict[str, str]] = None) -> SmileSettings:
    """
    Build settings from an optional YAML file, then apply environment overrides.

    A missing file falls back to the built-in SMILE tiers with LLM insights off.
    """
    # Imported lazily: the tier package depends on this module's Tier schema.
    from src.tiers.tiers import SMILE_TIERS, load_tiers

    environ = os.environ if environ is None else environ
    raw: Dict[str, Any] = {}
    if config_path is not None and Path(config_path).exists():
        with open(config_path) as f:
            try:
                raw = yaml.safe_load(f) or {}
            except yaml.YAMLError as exc:
                raise ConfigError(f"Invalid YAML in {config_path}: {exc}") from exc
        if not isinstance(raw, dict):
            raise ConfigError(f"Expected a mapping at the top of {config_path}")

    tiers = load_tiers(raw["tiers"] or []) if "tiers" in raw else SMILE_TIERS
    llm = _llm_settings(raw.get("llm") or {})
    llm = _apply_env(llm, environ)
    if llm.provider not in LLM_PROVIDERS:
        raise ConfigError(f"Unsupported LLM provider '{llm.provider}'. Expected one of: {', '.join(LLM_PROVIDERS)}.")
    return SmileSettings(tiers=tiers, llm=llm)


def _llm_settings(section: Dict[str, Any]) -> LLMSettings:
    if not isinstance(section, dict):
        raise ConfigError("The 'llm' section must be a mapping.")
    defaults = LLMSettings()
    return LLMSettings(
        enabled=bool(section.get("enabled", defaults.enabled)),
        provider=str(section.get("provider", defaults.provider)).lower(),
        model=str(section.get("model", defaults.model)),
        temperature=float(section.get("temperature", defaults.temperature)),
        max_tokens=int(section.get("max_tokens", defaults.max_tokens)),
    )


def _apply_env(llm: LLMSettings, environ: Dict[str, str]) -> LLMSettings:
    if "USE_LLM_INSIGHTS" in environ:
        llm = replace(llm, enabled=environ["USE_LLM_INSIGHTS"].lower() == "true")
    if environ.get("LLM_PROVIDER"):
        llm = replace(llm, provider=environ["LLM_PROVIDER"].lower())
    if environ.get("LLM_MODEL"):
        llm = replace(llm, model=environ["LLM_MODEL"])
    key_var = "ANTHROPIC_API_KEY" if llm.provider == "anthropic" else "OPENAI_API_KEY"
    if environ.get(key_var):
        llm = replace(llm, api_key=environ[key_var])
    return llm
