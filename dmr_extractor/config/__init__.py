"""Configuration management components."""

from .config_manager import ConfigManager, ProcessingParameters
from .processing_defaults import ProcessingDefaults, default_worker_count

__all__ = ['ConfigManager', 'ProcessingParameters', 'ProcessingDefaults', 'default_worker_count']
