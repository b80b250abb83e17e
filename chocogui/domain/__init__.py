"""Domain package exports for value objects, engine records and errors."""

from .engine_records import EngineFeature, EnginePackage, EngineSetting, EngineSource
from .entities import FeatureFlag, Package, Setting, SourceConfig
from .errors import (
    ConfigCoreError,
    EngineUnavailableError,
    SecretDecryptionError,
    StoreUnavailableError,
    UnknownFeatureError,
)
from .mapping import MappingBatch, SkippedRecord

__all__ = [
    "ConfigCoreError",
    "EngineFeature",
    "EnginePackage",
    "EngineSetting",
    "EngineSource",
    "EngineUnavailableError",
    "FeatureFlag",
    "MappingBatch",
    "Package",
    "SecretDecryptionError",
    "Setting",
    "SkippedRecord",
    "SourceConfig",
    "StoreUnavailableError",
    "UnknownFeatureError",
]
