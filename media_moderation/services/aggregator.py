"""
Safety Aggregator - reduces likelihood observations to one verdict per category.
Aggregates across every video frame (or the single image reading) and derives
the overall keep/quarantine disposition.
"""

from dataclasses import dataclass
from typing import Dict, Iterable, Tuple

from media_moderation.models.content import AnnotationObservation, SafetyVerdict
from media_moderation.models.enums import Disposition, LikelihoodLevel, SafetyCategory


@dataclass(frozen=True)
class SafetyAssessment:
    """Aggregated verdicts, ordered by SafetyCategory iteration."""
    verdicts: Tuple[SafetyVerdict, ...]

    @property
    def flagged_categories(self) -> Tuple[SafetyCategory, ...]:
        return tuple(v.category for v in self.verdicts if v.is_flagged)

    @property
    def any_flagged(self) -> bool:
        # A single flagged category is enough to flag the whole item
        return any(v.is_flagged for v in self.verdicts)

    @property
    def disposition(self) -> Disposition:
        return Disposition.QUARANTINE if self.any_flagged else Disposition.KEEP


def aggregate(
    observations: Iterable[AnnotationObservation],
    reported: Iterable[SafetyCategory] = ()
) -> SafetyAssessment:
    """
    Single pass max-reduction over observations.

    Holds one running maximum per category, so observations may be a
    generator over an arbitrarily long frame sequence. Categories named in
    `reported` but never observed come out as UNKNOWN; categories neither
    reported nor observed are omitted.
    """
    maxima: Dict[SafetyCategory, LikelihoodLevel] = {c: LikelihoodLevel.UNKNOWN for c in reported}

    for observation in observations:
        current = maxima.get(observation.category)
        if current is None or observation.level > current:
            maxima[observation.category] = observation.level

    return SafetyAssessment(verdicts=tuple(
        SafetyVerdict(category=category, level=maxima[category])
        for category in SafetyCategory
        if category in maxima
    ))
