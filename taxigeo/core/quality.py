"""Calibrate provider confidence scores into a quality tier and precision radius."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Optional, Sequence, Tuple

from taxigeo.core.models import Provenance, QualityAssessment, QualityTier

logger = logging.getLogger(__name__)

PRECISION_METERS = {
    QualityTier.EXCELLENT: 10,
    QualityTier.GOOD: 30,
    QualityTier.ACCEPTABLE: 150,
    QualityTier.LOW: 600,
    QualityTier.UNKNOWN: 999,
}
GAZETTEER_PRECISION_METERS = 5

# (minimum score, tier), checked top-down; anything below the last is LOW.
_OPENCAGE_THRESHOLDS: Tuple[Tuple[float, QualityTier], ...] = (
    (9, QualityTier.EXCELLENT),
    (7, QualityTier.GOOD),
    (4, QualityTier.ACCEPTABLE),
)
_MAPBOX_THRESHOLDS: Tuple[Tuple[float, QualityTier], ...] = (
    (0.9, QualityTier.EXCELLENT),
    (0.7, QualityTier.GOOD),
    (0.4, QualityTier.ACCEPTABLE),
)
_THRESHOLDS = {
    Provenance.PROVIDER_A: _OPENCAGE_THRESHOLDS,
    Provenance.REVERSE_PROVIDER_A: _OPENCAGE_THRESHOLDS,
    Provenance.PROVIDER_B: _MAPBOX_THRESHOLDS,
}

_ONE_TIER_DOWN = {
    QualityTier.EXCELLENT: QualityTier.GOOD,
    QualityTier.GOOD: QualityTier.ACCEPTABLE,
}

_DIGIT = re.compile(r"\d")

DEFAULT_COUNTRY = "méxico"
DEFAULT_REGION = "nayarit"
DEFAULT_LOCALITIES = ("tepic", "xalisco", "san blas", "compostela")


def _assessment(tier: QualityTier) -> QualityAssessment:
    return QualityAssessment(tier=tier, precision_meters=PRECISION_METERS[tier])


@dataclass(frozen=True)
class QualityGrader:
    """Grades a resolved location; the demotion rules know the operator's region."""

    country_name: str = DEFAULT_COUNTRY
    region_name: str = DEFAULT_REGION
    locality_names: Sequence[str] = DEFAULT_LOCALITIES

    def _postal_only_pattern(self) -> "re.Pattern[str]":
        return re.compile(
            rf"^\d{{5}},\s*({re.escape(self.region_name)},\s*)?{re.escape(self.country_name)}$"
        )

    def bucket(self, provenance: Provenance, raw_confidence: Optional[float]) -> QualityTier:
        thresholds = _THRESHOLDS.get(provenance)
        if thresholds is None or raw_confidence is None:
            return QualityTier.UNKNOWN
        for minimum, tier in thresholds:
            if raw_confidence >= minimum:
                return tier
        return QualityTier.LOW

    def is_generic(self, found: str) -> bool:
        return (
            self.country_name in found
            and not any(name in found for name in self.locality_names)
            and not _DIGIT.search(found)
        )

    def is_postal_code_only(self, found: str) -> bool:
        return bool(self._postal_only_pattern().match(found.strip()))

    def grade(
        self,
        provenance: Provenance,
        raw_confidence: Optional[float],
        found_address: Optional[str],
        original_input: Optional[str],
    ) -> QualityAssessment:
        if provenance is Provenance.GAZETTEER:
            return QualityAssessment(QualityTier.EXCELLENT, GAZETTEER_PRECISION_METERS)

        tier = self.bucket(provenance, raw_confidence)
        found = (found_address or "").lower()
        original = (original_input or "").lower()

        if self.is_generic(found) or self.is_postal_code_only(found):
            logger.warning(
                "Quality for '%s' (input '%s') demoted to %s: result is too generic",
                found_address, original_input, QualityTier.LOW.value,
            )
            tier = QualityTier.LOW
        elif tier in _ONE_TIER_DOWN and not _DIGIT.search(found) and _DIGIT.search(original):
            demoted = _ONE_TIER_DOWN[tier]
            logger.warning(
                "Quality for '%s' (input '%s') demoted to %s: house number missing from result",
                found_address, original_input, demoted.value,
            )
            tier = demoted

        assessment = _assessment(tier)
        logger.debug("Graded %s score=%s as %s", provenance.value, raw_confidence, assessment)
        return assessment


def grade(
    provenance: Provenance,
    raw_confidence: Optional[float],
    found_address: Optional[str],
    original_input: Optional[str],
) -> QualityAssessment:
    """Grade with the default regional settings."""
    return QualityGrader().grade(provenance, raw_confidence, found_address, original_input)
