"""
Recommendation engine for the Virtual Try-On AI service.

Scores every affordable catalog item and returns the best matches:

    score = affinity(item)                    # in [0.7, 1.0)
    score *= compatibility_factor             # when clothing was detected
    score += style_bonus                      # when the user style names the item type
    score = clamp(score, 0, 1)

Ranking is by score descending, then catalog id ascending.
"""
import logging
import math
import numbers
import random
from dataclasses import dataclass
from typing import Callable, Iterable, List, Optional, Union

from catalog import CatalogItem, CatalogStore
from exceptions import InvalidInput

logger = logging.getLogger(__name__)

AFFINITY_FLOOR = 0.7
AFFINITY_SPAN = 0.3


@dataclass(frozen=True)
class Recommendation:
    """A catalog item with its match score for the current request."""

    item: CatalogItem
    match_score: float

    @property
    def id(self) -> int:
        return self.item.id

    @property
    def price(self) -> float:
        return self.item.price

    def to_dict(self) -> dict:
        data = self.item.to_dict()
        data["match_score"] = round(self.match_score, 4)
        return data


class SeededAffinity:
    """
    Reproducible per-item base affinity in [0.7, 1.0).

    Each item draws from its own random.Random seeded with "<seed>:<id>",
    so the value depends only on the seed and the item id.
    """

    def __init__(self, seed: int = 0):
        self.seed = seed

    def __call__(self, item: CatalogItem) -> float:
        rng = random.Random(f"{self.seed}:{item.id}")
        return AFFINITY_FLOOR + AFFINITY_SPAN * rng.random()


def validate_budget(budget) -> float:
    if isinstance(budget, bool) or not isinstance(budget, numbers.Real):
        raise InvalidInput(f"Budget must be a number, got {budget!r}")
    try:
        budget = float(budget)
    except OverflowError as e:
        raise InvalidInput("Budget is too large to represent") from e
    if math.isnan(budget):
        raise InvalidInput("Budget must be a number, got NaN")
    if budget < 0:
        raise InvalidInput(f"Budget must not be negative, got {budget}")
    return budget


def _normalize_style(user_style: Union[str, Iterable[str], None]) -> frozenset:
    if user_style is None:
        return frozenset()
    if isinstance(user_style, str):
        user_style = [user_style]
    return frozenset(str(style).strip().lower() for style in user_style if style)


class RecommendationEngine:
    """Budget-filtered, ranked recommendations from a catalog."""

    def __init__(
        self,
        catalog: CatalogStore,
        affinity: Optional[Callable[[CatalogItem], float]] = None,
        compatibility_factor: float = 0.9,
        style_bonus: float = 0.1,
        max_results: int = 6,
    ):
        self.catalog = catalog
        self.affinity = affinity or SeededAffinity()
        self.compatibility_factor = compatibility_factor
        self.style_bonus = style_bonus
        self.max_results = max_results

    @classmethod
    def from_config(cls, catalog: CatalogStore, config) -> "RecommendationEngine":
        return cls(
            catalog,
            affinity=SeededAffinity(config.affinity_seed),
            compatibility_factor=config.compatibility_factor,
            style_bonus=config.style_bonus,
            max_results=config.max_recommendations,
        )

    def calculate_match_score(self, item: CatalogItem, has_detections: bool, styles: frozenset) -> float:
        score = self.affinity(item)

        # Outfit coherence with what the user is already wearing
        if has_detections:
            score *= self.compatibility_factor

        if item.type.value in styles:
            score += self.style_bonus

        return min(max(score, 0.0), 1.0)

    def generate_recommendations(self, detected_items, user_style, budget) -> List[Recommendation]:
        """
        Rank affordable catalog items for a request.

        Args:
            detected_items: DetectedItems found in the user's photo
            user_style: Clothing type name(s) the user prefers, or None
            budget: Inclusive price ceiling

        Returns:
            list: At most max_results Recommendations, best first

        Raises:
            InvalidInput: budget is not a number or is negative
        """
        budget = validate_budget(budget)
        styles = _normalize_style(user_style)
        has_detections = bool(detected_items)

        recommendations = [
            Recommendation(item=item, match_score=self.calculate_match_score(item, has_detections, styles))
            for item in self.catalog
            if item.price <= budget
        ]
        recommendations.sort(key=lambda rec: (-rec.match_score, rec.id))

        logger.info(
            f"Scored {len(recommendations)} catalog items within budget {budget}, "
            f"returning {min(len(recommendations), self.max_results)}"
        )
        return recommendations[:self.max_results]
