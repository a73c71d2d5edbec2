"""Selection strategies that pick one suggestion from a scored pool."""

import asyncio
import json
import logging
import random
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Protocol

from meal_decider.domain.errors import StrategyError
from meal_decider.domain.food import FoodFilters, SelectionContext
from meal_decider.domain.suggestions import (
    FoodSuggestion,
    ScoredFoodItem,
    StrategyType,
)

_logger = logging.getLogger(__name__)

RANKING_SCHEMA: dict[str, object] = {
    "type": "object",
    "properties": {
        "ranked_ids": {"type": "array", "items": {"type": "string"}},
        "reason": {"type": "string"},
    },
    "required": ["ranked_ids", "reason"],
    "additionalProperties": False,
}


class SelectionStrategy(Protocol):
    """Interface for the final decision rule."""

    strategy_type: StrategyType

    async def pick(
        self,
        pool: list[ScoredFoodItem],
        filters: FoodFilters,
        context: SelectionContext,
    ) -> FoodSuggestion:
        """Pick one suggestion from a non-empty pool."""


class RankingClient(Protocol):
    """Interface for an external model that orders candidates."""

    async def rank(
        self,
        *,
        model: str,
        store: bool,
        schema: dict[str, object],
        prompt: str,
    ) -> dict[str, object]:
        """Return structured ranking data."""


def _require_pool(pool: list[ScoredFoodItem]) -> None:
    if not pool:
        raise StrategyError("Cannot pick from an empty pool")


@dataclass
class RandomStrategy:
    """Uniform choice that ignores scores ("surprise me")."""

    rng: random.Random = field(default_factory=random.Random)
    strategy_type: StrategyType = StrategyType.RANDOM

    async def pick(
        self,
        pool: list[ScoredFoodItem],
        filters: FoodFilters,
        context: SelectionContext,
    ) -> FoodSuggestion:
        """Pick any candidate with equal probability."""
        _require_pool(pool)
        chosen = self.rng.choice(pool)
        return FoodSuggestion.from_scored(
            chosen,
            self.strategy_type,
            f"Surprise pick out of {len(pool)} options.",
        )


@dataclass
class WeightedRandomStrategy:
    """Random choice with probability proportional to score."""

    rng: random.Random = field(default_factory=random.Random)
    strategy_type: StrategyType = StrategyType.WEIGHTED_RANDOM

    async def pick(
        self,
        pool: list[ScoredFoodItem],
        filters: FoodFilters,
        context: SelectionContext,
    ) -> FoodSuggestion:
        """Draw a candidate, falling back to uniform when all scores are zero."""
        _require_pool(pool)
        weights = [max(candidate.score, 0.0) for candidate in pool]
        total = sum(weights)
        if total <= 0:
            chosen = self.rng.choice(pool)
            return FoodSuggestion.from_scored(
                chosen,
                self.strategy_type,
                "No option stood out, so this one was drawn at random.",
            )
        chosen = self.rng.choices(pool, weights=weights, k=1)[0]
        share = max(chosen.score, 0.0) / total
        return FoodSuggestion.from_scored(
            chosen,
            self.strategy_type,
            f"Drawn with a {share:.0%} chance based on how well it matches you.",
        )


@dataclass
class RuleBasedStrategy:
    """Deterministic top-score pick.

    Ties on score are broken by the lowest source priority, then by the
    lexically lowest item id.
    """

    source_priority: Callable[[str], int] = lambda _source_id: 0
    strategy_type: StrategyType = StrategyType.RULE_BASED

    def best(self, pool: list[ScoredFoodItem]) -> ScoredFoodItem:
        """Return the top candidate according to the tie-break rules."""
        _require_pool(pool)
        return min(
            pool,
            key=lambda candidate: (
                -candidate.score,
                self.source_priority(candidate.item.source),
                candidate.item.id,
            ),
        )

    async def pick(
        self,
        pool: list[ScoredFoodItem],
        filters: FoodFilters,
        context: SelectionContext,
    ) -> FoodSuggestion:
        """Pick the highest scored candidate."""
        chosen = self.best(pool)
        return FoodSuggestion.from_scored(
            chosen, self.strategy_type, _top_reason(chosen, len(pool))
        )


@dataclass
class ModelRankedStrategy:
    """Delegates ranking to an external model.

    When the model call fails, times out or returns no usable id, the pick
    falls back to the rule-based strategy and the suggestion is attributed to
    it. Without a fallback the failure is raised as StrategyError.
    """

    client: RankingClient
    model: str
    fallback: RuleBasedStrategy | None = None
    store: bool = False
    timeout_seconds: float = 5.0
    strategy_type: StrategyType = StrategyType.MODEL_RANKED

    async def pick(
        self,
        pool: list[ScoredFoodItem],
        filters: FoodFilters,
        context: SelectionContext,
    ) -> FoodSuggestion:
        """Pick the model's first choice that is present in the pool."""
        _require_pool(pool)
        if len(pool) == 1:
            return FoodSuggestion.from_scored(
                pool[0], self.strategy_type, "The only option that fits right now."
            )
        try:
            raw = await asyncio.wait_for(
                self.client.rank(
                    model=self.model,
                    store=self.store,
                    schema=RANKING_SCHEMA,
                    prompt=_ranking_prompt(pool, filters, context),
                ),
                timeout=self.timeout_seconds,
            )
            chosen, reason = _first_ranked(pool, raw)
        except Exception as exc:
            if self.fallback is None:
                raise StrategyError(f"Model ranking unavailable: {exc}") from exc
            _logger.warning("Model ranking failed, using rule-based pick: %s", exc)
            best = self.fallback.best(pool)
            return FoodSuggestion.from_scored(
                best,
                self.fallback.strategy_type,
                "Ranking service unavailable; " + _top_reason(best, len(pool)),
            )
        return FoodSuggestion.from_scored(chosen, self.strategy_type, reason)


def _top_reason(candidate: ScoredFoodItem, pool_size: int) -> str:
    if pool_size == 1:
        return "The only option that fits right now."
    return f"Best match out of {pool_size} options (score {candidate.score:.2f})."


def _first_ranked(
    pool: list[ScoredFoodItem], raw: dict[str, object]
) -> tuple[ScoredFoodItem, str]:
    by_id = {candidate.item.id: candidate for candidate in pool}
    ranked = raw.get("ranked_ids")
    if not isinstance(ranked, list):
        raise ValueError("Ranking response has no ranked_ids")
    for item_id in ranked:
        candidate = by_id.get(str(item_id))
        if candidate is not None:
            reason = str(raw.get("reason") or "").strip()
            return candidate, reason or "Ranked first by the recommendation model."
    raise ValueError("Ranking response referenced no known items")


def _ranking_prompt(
    pool: list[ScoredFoodItem], filters: FoodFilters, context: SelectionContext
) -> str:
    """Describe the candidates and the user's situation to the model."""
    candidates = [
        {
            "id": candidate.item.id,
            "name": candidate.item.name,
            "tags": sorted(candidate.item.tags),
            "calories": (
                candidate.item.nutrition.calories if candidate.item.nutrition else None
            ),
            "score": round(candidate.score, 4),
        }
        for candidate in pool
    ]
    prefs = context.preferences
    situation = {
        "meal_type": filters.meal_type.value if filters.meal_type else None,
        "liked_tags": sorted(prefs.liked_tags),
        "disliked_tags": sorted(prefs.disliked_tags),
        "calorie_target": prefs.calorie_target,
        "recently_eaten": [item.name for item in context.recent_decisions],
        "local_time": context.timestamp.isoformat(),
    }
    return (
        "Rank these food options for what the user should eat now. "
        "Prefer variety over recently eaten dishes. "
        "Return every id ordered best first and a one-sentence reason "
        "for the first choice.\n"
        f"User: {json.dumps(situation)}\n"
        f"Options: {json.dumps(candidates)}"
    )
