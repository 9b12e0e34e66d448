"""Configuration utilities.

Provides:
- `load_model_config()`: loads `model_config.yaml`
- `build_pooling_engine(cfg)`: wires a PoolingEngine from the loaded sections
- `build_fare_service(cfg)`: wires a FareQuoteService from the `fares` section

Defaults live on the config dataclasses; the YAML file only overrides them.
"""

from dataclasses import fields
from pathlib import Path
from typing import Any, Dict, Optional, Type, TypeVar
import logging
import os

import yaml
from dotenv import load_dotenv

from ..core.pooling import (
    CompatibilityConfig,
    CompatibilityScorer,
    ConfigurationError,
    CostAllocator,
    CostModel,
    PoolConfiguration,
    PoolEventBus,
    PoolingEngine,
)
from ..core.pricing.fare_quote import FareConfig, FareQuoteService

logger = logging.getLogger(__name__)

load_dotenv()

T = TypeVar("T")


def _default_config_path() -> Path:
    env_path = os.getenv("POOLING_CONFIG_PATH")
    if env_path:
        return Path(env_path)

    root = Path(__file__).resolve().parents[2]
    return root / "backend" / "config" / "model_config.yaml"


def load_model_config(path: Optional[str] = None) -> Dict[str, Any]:
    """Load model configuration from YAML.

    Returns empty dict if no config found.

    Raises:
        ConfigurationError: file exists but is not a valid YAML mapping
    """
    cfg_path = Path(path) if path else _default_config_path()
    if not cfg_path.exists():
        logger.debug(f"Model config not found at {cfg_path}")
        return {}

    try:
        loaded = yaml.safe_load(cfg_path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Failed to parse model config {cfg_path}: {e}") from e

    if not isinstance(loaded, dict):
        raise ConfigurationError(f"Model config {cfg_path} must be a mapping")

    logger.info(f"Loaded model config from {cfg_path}")
    return loaded


def section_to_dataclass(cls: Type[T], section: Optional[Dict[str, Any]]) -> T:
    """Build config dataclass from a YAML section, ignoring unknown keys."""
    section = section or {}
    known = {f.name for f in fields(cls)}

    unknown = set(section) - known
    if unknown:
        logger.warning(f"Ignoring unknown {cls.__name__} keys: {sorted(unknown)}")

    return cls(**{k: v for k, v in section.items() if k in known})


def build_pooling_engine(
    cfg: Optional[Dict[str, Any]] = None,
    event_bus: Optional[PoolEventBus] = None,
) -> PoolingEngine:
    """Create a PoolingEngine from the `pooling`, `compatibility` and `cost` sections."""
    cfg = load_model_config() if cfg is None else cfg

    return PoolingEngine(
        config=section_to_dataclass(PoolConfiguration, cfg.get("pooling")),
        scorer=CompatibilityScorer(
            section_to_dataclass(CompatibilityConfig, cfg.get("compatibility"))
        ),
        allocator=CostAllocator(section_to_dataclass(CostModel, cfg.get("cost"))),
        event_bus=event_bus,
    )


def build_fare_service(cfg: Optional[Dict[str, Any]] = None) -> FareQuoteService:
    cfg = load_model_config() if cfg is None else cfg
    return FareQuoteService(section_to_dataclass(FareConfig, cfg.get("fares")))
