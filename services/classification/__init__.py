"""Classification registry package."""

from services.classification.registry import (
    ClassificationRegistry,
    ClassificationSource,
    DatabaseClassificationSource,
    StaticClassificationSource,
)
from services.classification.types import (
    ClassificationEntry,
    RegistryLoadReport,
    RejectedRow,
    normalize_code,
)

__all__ = [
    "ClassificationEntry",
    "ClassificationRegistry",
    "ClassificationSource",
    "DatabaseClassificationSource",
    "RegistryLoadReport",
    "RejectedRow",
    "StaticClassificationSource",
    "normalize_code",
]
