"""
Configuration for the field extraction pipeline.

Every threshold and keyword list used by the extraction stages lives on
ExtractionConfig so document families can be tuned without code changes.
Settings are read from defaults, an optional JSON file, then environment
variables.
"""

import os
import re
import json
import logging
from dataclasses import dataclass, field, fields, asdict, replace
from pathlib import Path
from typing import List, Optional, Dict, Any, Union

from extraction.exceptions import ConfigurationError


logger = logging.getLogger(__name__)

# Value shipped in the original .env template; treated as "no key".
PLACEHOLDER_API_KEY = 'tu_api_key_de_gemini_aqui'

DEFAULT_FIELDS = ['ID de carga', 'Número de orden', 'Nombre de artículo', 'Cantidad']

# Settings that must hold at least one non-empty entry
NON_EMPTY_LIST_SETTINGS = ('relevance_keywords', 'article_markers', 'unit_markers',
                           'quantity_context_words')

POSITIVE_SETTINGS = ('max_output_tokens', 'max_text_length', 'min_line_count',
                     'max_quantity', 'plausible_quantity_max', 'max_pdf_pages', 'page_workers')

# Environment variable -> (setting, converter)
ENVIRONMENT_OVERRIDES = {
    'GEMINI_API_KEY': ('api_key', str),
    'FIELD_EXTRACTOR_MODEL': ('model_name', str),
    'FIELD_EXTRACTOR_MAX_TEXT_LENGTH': ('max_text_length', int),
    'FIELD_EXTRACTOR_TEMPERATURE': ('temperature', float),
    'FIELD_EXTRACTOR_MAX_OUTPUT_TOKENS': ('max_output_tokens', int),
    'FIELD_EXTRACTOR_MAX_PDF_PAGES': ('max_pdf_pages', int),
}


@dataclass
class ExtractionConfig:
    """
    Tunable settings of the extraction pipeline.

    Defaults match the PVC pipe delivery documents the pipeline was built
    for: load IDs like CG-00014961, order codes like CPOV-000009927, and
    quantities written as "40 UND".
    """
    # AI service
    api_key: Optional[str] = None
    model_name: str = 'gemini-2.0-flash'
    temperature: float = 0.1
    max_output_tokens: int = 8000
    max_text_length: int = 100000
    use_ai: bool = True

    # Line reconstruction
    min_line_count: int = 5
    min_reconstructed_line_length: int = 10
    record_start_pattern: str = r'CG-\d+'
    anchor_phrase: str = 'TUBOS PVC'
    line_y_tolerance: float = 5.0

    # Relevance filtering
    relevance_keywords: List[str] = field(
        default_factory=lambda: ['TUBOS PVC', 'CORVI-SONACA', 'CPOV-', 'CAOV-', 'CG-'])

    # Quantity disambiguation
    article_markers: List[str] = field(default_factory=lambda: ['TUBOS PVC', 'CORVI-SONACA'])
    unit_markers: List[str] = field(default_factory=lambda: ['UND', 'UNIDADES', 'PCS', 'PIEZAS'])
    order_collision_threshold: int = 500

    # Validation
    max_quantity: int = 99999
    plausible_quantity_max: int = 9999
    quantity_context_words: List[str] = field(
        default_factory=lambda: ['und', 'unidades', 'pcs', 'piezas', 'cantidad'])
    min_article_length: int = 6

    # Document reading
    max_pdf_pages: int = 50
    page_workers: int = 4

    @property
    def has_api_key(self) -> bool:
        return bool(self.api_key) and self.api_key != PLACEHOLDER_API_KEY

    @classmethod
    def from_dict(cls, values: Dict[str, Any]) -> 'ExtractionConfig':
        """
        Build a configuration from a plain dictionary.

        Raises:
            ConfigurationError: If a key is unknown or a value has the wrong type
        """
        return cls().updated(values)

    @classmethod
    def load(cls, config_file: Optional[Union[str, Path]] = None,
             environ: Optional[Dict[str, str]] = None) -> 'ExtractionConfig':
        """
        Load configuration from defaults, an optional JSON file and the environment.

        Args:
            config_file: Optional JSON file with setting overrides
            environ: Environment mapping (defaults to os.environ)

        Returns:
            Effective configuration
        """
        config = cls()
        if config_file:
            config = config.updated(_read_config_file(config_file))
        return config.with_environment(os.environ if environ is None else environ)

    def updated(self, values: Dict[str, Any]) -> 'ExtractionConfig':
        """Return a copy with the given settings replaced, checking their types."""
        known = {f.name: f for f in fields(self)}
        changes = {}
        for key, value in values.items():
            if key not in known:
                raise ConfigurationError(f"Unknown setting: {key}", setting=key, value=value)
            changes[key] = _coerce(key, value, getattr(self, key))
        config = replace(self, **changes)
        config.validate()
        return config

    def with_environment(self, environ: Dict[str, str]) -> 'ExtractionConfig':
        changes = {}
        for variable, (setting, converter) in ENVIRONMENT_OVERRIDES.items():
            raw = environ.get(variable)
            if raw is None or raw == '':
                continue
            try:
                changes[setting] = converter(raw)
            except ValueError as e:
                raise ConfigurationError(
                    f"Invalid value for {variable}: {raw}", setting=setting, value=raw
                ) from e
            logger.debug(f"Setting {setting} overridden by {variable}")
        if not changes:
            return self
        config = replace(self, **changes)
        config.validate()
        return config

    def validate(self) -> None:
        """
        Check setting values that a type check cannot catch.

        Raises:
            ConfigurationError: If a pattern does not compile, a keyword list is
                empty or a count is not positive
        """
        try:
            re.compile(self.record_start_pattern)
        except re.error as e:
            raise ConfigurationError(
                f"Invalid record_start_pattern: {e}",
                setting='record_start_pattern', value=self.record_start_pattern,
            ) from e

        if not self.record_start_pattern or not self.anchor_phrase.strip():
            setting = 'anchor_phrase' if self.record_start_pattern else 'record_start_pattern'
            raise ConfigurationError(f"Setting {setting} must not be empty",
                                     setting=setting, value=getattr(self, setting))

        for setting in NON_EMPTY_LIST_SETTINGS:
            values = getattr(self, setting)
            if not values or not all(value.strip() for value in values):
                raise ConfigurationError(
                    f"Setting {setting} needs at least one entry and no blank entries",
                    setting=setting, value=values,
                )

        for setting in POSITIVE_SETTINGS:
            if getattr(self, setting) < 1:
                raise ConfigurationError(f"Setting {setting} must be at least 1",
                                         setting=setting, value=getattr(self, setting))

    def to_dict(self, mask_secrets: bool = True) -> Dict[str, Any]:
        data = asdict(self)
        if mask_secrets and data.get('api_key'):
            data['api_key'] = data['api_key'][:4] + '...'
        return data


def _read_config_file(config_file: Union[str, Path]) -> Dict[str, Any]:
    path = Path(config_file)
    try:
        with open(path, 'r', encoding='utf-8') as f:
            values = json.load(f)
    except OSError as e:
        raise ConfigurationError(f"Cannot read config file {path}: {e}") from e
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"Config file {path} is not valid JSON: {e}") from e

    if not isinstance(values, dict):
        raise ConfigurationError(f"Config file {path} must contain a JSON object")
    logger.info(f"Loaded {len(values)} settings from {path}")
    return values


def _coerce(key: str, value: Any, current: Any) -> Any:
    """Convert a raw setting to the type of its current value."""
    if key == 'api_key':
        if value is None or isinstance(value, str):
            return value
    elif isinstance(current, bool):
        if isinstance(value, bool):
            return value
        if isinstance(value, str) and value.lower() in ('true', '1', 'yes', 'on', 'false', '0', 'no', 'off'):
            return value.lower() in ('true', '1', 'yes', 'on')
    elif isinstance(current, int):
        if isinstance(value, int) and not isinstance(value, bool):
            return value
    elif isinstance(current, float):
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return float(value)
    elif isinstance(current, str):
        if isinstance(value, str):
            return value
    elif isinstance(current, list):
        if isinstance(value, list) and all(isinstance(item, str) for item in value):
            return list(value)

    raise ConfigurationError(
        f"Invalid type for setting {key}: expected {type(current).__name__}",
        setting=key, value=value,
    )
