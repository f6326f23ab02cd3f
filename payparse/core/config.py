"""
Extraction configuration loaded from YAML.
"""
import logging
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from ..models.schema import CurrencyCode, CurrencyDefinition
from .registry import CurrencyRegistry

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path(__file__).parent.parent / "config" / "default.yaml"


class OCRSettings(BaseModel):
    """Knobs for turning OCR text into records."""
    model_config = ConfigDict(frozen=True)

    counterparty_label: str = "Receipt (OCR)"
    placeholder_description: str = "receipt item"
    max_context_length: int = Field(default=50, gt=0)
    total_labels: tuple[str, ...] = ("total", "subtotal", "amount")


class ExtractionConfig(BaseModel):
    """Immutable configuration passed into every pipeline entry point."""
    model_config = ConfigDict(frozen=True)

    currencies: tuple[CurrencyDefinition, ...]
    fallback_currency: CurrencyCode
    payment_keywords: tuple[str, ...] = ()
    image_extensions: tuple[str, ...] = ("jpg", "jpeg", "png", "gif", "webp")
    attachment_match_threshold: float = Field(default=85, ge=0, le=100)
    ocr: OCRSettings = OCRSettings()

    @field_validator('image_extensions', mode='before')
    @classmethod
    def lowercase_extensions(cls, v):
        return tuple(str(ext).lower().lstrip('.') for ext in v)

    @model_validator(mode='after')
    def validate_currencies(self):
        if not self.currencies:
            raise ValueError("At least one currency must be configured")

        codes = [currency.code for currency in self.currencies]
        duplicates = {code.value for code in codes if codes.count(code) > 1}
        if duplicates:
            raise ValueError(f"Duplicate currency codes: {sorted(duplicates)}")

        if self.fallback_currency not in codes:
            raise ValueError(
                f"Fallback currency {self.fallback_currency.value} is not in the registry"
            )
        return self

    @property
    def registry(self) -> CurrencyRegistry:
        return CurrencyRegistry(self.currencies)


def _read_yaml(path: Path) -> Dict[str, Any]:
    with open(path, 'r', encoding='utf-8') as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Configuration must be a mapping: {path}")
    return data


def _merge(defaults: Dict[str, Any], overrides: Dict[str, Any]) -> Dict[str, Any]:
    """Shallow merge per top-level key; nested mappings are merged one level deep."""
    merged = dict(defaults)
    for key, value in overrides.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            nested = dict(merged[key])
            nested.update(value)
            merged[key] = nested
        else:
            merged[key] = value
    return merged


def load_config(path: Optional[Path] = None) -> ExtractionConfig:
    """
    Load extraction configuration.

    Args:
        path: Optional YAML file whose keys override the packaged defaults

    Returns:
        Validated ExtractionConfig

    Raises:
        FileNotFoundError: If ``path`` does not exist
        ValueError: If the merged configuration is invalid
    """
    data = _read_yaml(DEFAULT_CONFIG_PATH)

    if path is not None:
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Configuration file not found: {path}")
        overrides = _read_yaml(path)
        if not overrides:
            logger.warning(f"Configuration file {path} is empty, using defaults")
        data = _merge(data, overrides)
        logger.info(f"Loaded configuration overrides from {path}")

    config = ExtractionConfig.model_validate(data)
    logger.debug(
        f"Configured {len(config.currencies)} currencies, "
        f"fallback {config.fallback_currency.value}"
    )
    return config


@lru_cache(maxsize=1)
def default_config() -> ExtractionConfig:
    """Packaged configuration, loaded once."""
    return load_config()
