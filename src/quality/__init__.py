"""Quality module - Extraction result validation."""

from .validators import ExtractionValidator, ValidationConfig, ValidationResult

__all__ = ['ExtractionValidator', 'ValidationConfig', 'ValidationResult']
