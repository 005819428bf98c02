"""Result quality validator for extracted torrents."""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional

from src.config.extractor_config import EXTRACTION_STATS
from src.extraction.models import Torrent

logger = logging.getLogger(__name__)

# Fields whose absence makes a torrent unusable
REQUIRED_FIELDS = ('id', 'title', 'url')
# Optional fields tracked for missing rates
TRACKED_FIELDS = ('link', 'size', 'seeders', 'leechers', 'time', 'category')


@dataclass
class ValidationConfig:
    """Validation thresholds."""
    warning_threshold: float = EXTRACTION_STATS['warn_threshold']


@dataclass
class ValidationResult:
    """Validation result."""
    site: str
    timestamp: datetime
    total: int
    unique: int
    duplicate_rate: float
    valid: int
    valid_rate: float
    field_missing_rates: Dict[str, float] = field(default_factory=dict)
    diagnostic: Optional[str] = None


def _missing(torrent: Torrent, name: str) -> bool:
    value = getattr(torrent, name, None)
    return value is None or value == '' or value == 0


class ExtractionValidator:
    """Validator for one site's extraction output."""

    def __init__(self, config: ValidationConfig = None):
        self.config = config or ValidationConfig()

    def validate(self, torrents: List[Torrent], site: str = '', diagnostic: str = None) -> ValidationResult:
        """Compute duplicate, validity and per-field missing rates."""
        if not torrents:
            return ValidationResult(
                site=site, timestamp=datetime.now(), total=0, unique=0,
                duplicate_rate=0.0, valid=0, valid_rate=0.0, diagnostic=diagnostic
            )

        total = len(torrents)
        unique = len(set(str(t.id) for t in torrents if t.id not in (None, '')))
        missing = {name: 0 for name in REQUIRED_FIELDS + TRACKED_FIELDS}
        valid = 0

        for torrent in torrents:
            is_valid = True
            for name in missing:
                if _missing(torrent, name):
                    missing[name] += 1
                    if name in REQUIRED_FIELDS:
                        is_valid = False
            if is_valid:
                valid += 1

        result = ValidationResult(
            site=site, timestamp=datetime.now(), total=total, unique=unique,
            duplicate_rate=(total - unique) / total,
            valid=valid, valid_rate=valid / total,
            field_missing_rates={k: v / total for k, v in missing.items()},
            diagnostic=diagnostic,
        )
        if result.valid_rate < self.config.warning_threshold:
            logger.warning(f"[{site}] Only {result.valid_rate:.1%} of {total} torrents valid")
        else:
            logger.info(f"[{site}] Validation: {total} torrents, {result.valid_rate:.1%} valid")
        return result
