"""
Centralized configuration management for the DMR vehicle designation extractor.

This module provides the ConfigManager class that serves as the single source of truth
for processing parameters and record/field markers, including environment variable
handling and optional marker profile files (JSON or YAML).
"""

import os
import json
import logging

from pathlib import Path
from typing import Any, Dict, Optional, Union
from dataclasses import dataclass, fields

import yaml

from .processing_defaults import ProcessingDefaults, default_worker_count
from ..models import MarkerConfig
from ..exceptions import ConfigurationError


def _env_bool(name: str, default: bool) -> bool:
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in ('1', 'true', 'yes', 'on')


@dataclass
class ProcessingParameters:
    """Processing parameters with environment variable support."""
    parser: str = ProcessingDefaults.PARSER
    workers: Optional[int] = ProcessingDefaults.WORKERS
    strict: bool = True
    queue_depth_factor: int = ProcessingDefaults.QUEUE_DEPTH_FACTOR
    encoding: str = ProcessingDefaults.ENCODING
    profile_path: Optional[str] = None

    def __post_init__(self):
        """Validate processing parameters."""
        if self.parser not in ('string', 'xml'):
            raise ConfigurationError(f"Invalid parser: {self.parser!r} (expected 'string' or 'xml')")
        if self.workers is not None and self.workers <= 0:
            raise ConfigurationError("workers must be positive")
        if self.queue_depth_factor <= 0:
            raise ConfigurationError("queue_depth_factor must be positive")

    @property
    def worker_count(self) -> int:
        """Configured worker count, or cpu count - 1 when unset."""
        return self.workers or default_worker_count()

    @classmethod
    def from_environment(cls) -> 'ProcessingParameters':
        """Create processing parameters from environment variables."""
        try:
            workers = os.environ.get('DMR_EXTRACTOR_WORKERS')
            return cls(
                parser=os.environ.get('DMR_EXTRACTOR_PARSER', cls.parser),
                workers=int(workers) if workers else cls.workers,
                strict=_env_bool('DMR_EXTRACTOR_STRICT', True),
                queue_depth_factor=int(os.environ.get('DMR_EXTRACTOR_QUEUE_DEPTH_FACTOR', cls.queue_depth_factor)),
                encoding=os.environ.get('DMR_EXTRACTOR_ENCODING', cls.encoding),
                profile_path=os.environ.get('DMR_EXTRACTOR_PROFILE_PATH'),
            )
        except ValueError as e:
            raise ConfigurationError(f"Invalid DMR_EXTRACTOR_* environment value: {e}")


class ConfigManager:
    """
    Centralized configuration manager serving as single source of truth.

    This class consolidates:
    - Processing parameters (parser, workers, strictness, encoding)
    - Record and field markers, optionally overridden by a profile file
    - Environment variable handling
    """

    def __init__(self, processing_params: Optional[ProcessingParameters] = None):
        """
        Initialize the configuration manager.

        Args:
            processing_params: Explicit parameters. If None, read from the environment.
        """
        self.logger = logging.getLogger(__name__)
        self.processing_params = processing_params or ProcessingParameters.from_environment()
        self._marker_cache: Dict[str, MarkerConfig] = {}

        self.logger.debug(f"ConfigManager initialized: parser={self.processing_params.parser}, "
                          f"workers={self.processing_params.worker_count}")

    def get_marker_config(self, profile_path: Optional[Union[str, Path]] = None) -> MarkerConfig:
        """
        Get marker configuration, loading a profile file when one is configured.

        Args:
            profile_path: Optional profile path. If None, uses DMR_EXTRACTOR_PROFILE_PATH.

        Returns:
            MarkerConfig with profile values applied over the defaults
        """
        if profile_path is None:
            profile_path = self.processing_params.profile_path
        if not profile_path:
            return MarkerConfig()

        cache_key = str(profile_path)
        if cache_key in self._marker_cache:
            self.logger.debug(f"Returning cached marker profile for {cache_key}")
            return self._marker_cache[cache_key]

        markers = self._parse_marker_profile(self._read_profile(Path(profile_path)), cache_key)
        self._marker_cache[cache_key] = markers
        self.logger.info(f"Loaded marker profile from {cache_key}")
        return markers

    def _read_profile(self, full_path: Path) -> Dict[str, Any]:
        if not full_path.exists():
            raise ConfigurationError(f"Marker profile file not found: {full_path}")

        try:
            with open(full_path, 'r', encoding='utf-8') as file:
                if full_path.suffix.lower() in ['.yaml', '.yml']:
                    data = yaml.safe_load(file)
                elif full_path.suffix.lower() == '.json':
                    data = json.load(file)
                else:
                    raise ConfigurationError(f"Unsupported file format: {full_path.suffix}")
        except (json.JSONDecodeError, yaml.YAMLError) as e:
            raise ConfigurationError(f"Failed to parse marker profile {full_path}: {e}")
        except OSError as e:
            raise ConfigurationError(f"Failed to read marker profile {full_path}: {e}")

        if data is None:
            return {}
        if not isinstance(data, dict):
            raise ConfigurationError(f"Marker profile {full_path} must contain a mapping")
        return data

    def _parse_marker_profile(self, data: Dict[str, Any], source: str) -> MarkerConfig:
        # Profiles may nest the values under a "markers" section
        data = data.get('markers', data)
        known = {f.name for f in fields(MarkerConfig)}
        unknown = set(data) - known
        if unknown:
            raise ConfigurationError(f"Unknown marker settings in {source}: {', '.join(sorted(unknown))}")

        values = dict(data)
        if 'vehicle_sentinel' in values:
            values['vehicle_sentinel'] = str(values['vehicle_sentinel'])
        if 'namespaces' in values and not isinstance(values['namespaces'], dict):
            raise ConfigurationError(f"namespaces in {source} must be a mapping of prefix to URI")

        try:
            return MarkerConfig(**values)
        except (TypeError, ValueError) as e:
            raise ConfigurationError(f"Invalid marker profile {source}: {e}")

    def get_configuration_summary(self) -> Dict[str, Any]:
        """Return a summary of the active configuration for logging."""
        params = self.processing_params
        return {
            'parser': params.parser,
            'workers': params.worker_count,
            'strict': params.strict,
            'queue_depth_factor': params.queue_depth_factor,
            'encoding': params.encoding,
            'profile_path': params.profile_path,
        }
