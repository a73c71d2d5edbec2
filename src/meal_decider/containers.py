"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from supabase import create_client

from meal_decider.adapters.catalog_client import HttpxCatalogClient
from meal_decider.adapters.local_catalog import LocalCatalogSource
from meal_decider.adapters.openai_ranking_client import OpenAIRankingClient
from meal_decider.adapters.remote_catalog_source import RemoteCatalogSource
from meal_decider.adapters.supabase_community_source import CommunityCatalogSource
from meal_decider.adapters.supabase_history_repository import (
    SupabaseHistoryRepository,
)
from meal_decider.adapters.supabase_preference_repository import (
    SupabasePreferenceRepository,
)
from meal_decider.adapters.supabase_trace_repository import SupabaseTraceRepository
from meal_decider.config import Settings, parse_feature_flags, parse_strategy_cohorts
from meal_decider.services.cache import InMemoryCache
from meal_decider.services.diversity import DiversityPenalty
from meal_decider.services.history import HistoryService
from meal_decider.services.pipeline import SuggestionPipeline
from meal_decider.services.preferences import PreferenceService
from meal_decider.services.resolver import StrategyRegistry, StrategyResolver
from meal_decider.services.scoring import Scorer, ScoringWeights
from meal_decider.services.sources import SourceAggregator, SourceRegistry
from meal_decider.services.strategies import (
    ModelRankedStrategy,
    RandomStrategy,
    RuleBasedStrategy,
    WeightedRandomStrategy,
)
from meal_decider.services.suggestions import SuggestionService
from meal_decider.services.toggles import StaticFeatureToggle
from meal_decider.services.tracing import (
    CompositeTraceSink,
    InMemoryTraceSink,
    LoggingTraceSink,
)


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    source_registry: SourceRegistry
    strategy_registry: StrategyRegistry
    pipeline: SuggestionPipeline
    preference_service: PreferenceService
    history_service: HistoryService
    suggestion_service: SuggestionService
    trace_store: InMemoryTraceSink
    close_resources: Callable[[], Awaitable[None]]


def build_strategy_registry(
    source_registry: SourceRegistry, ranking: ModelRankedStrategy | None = None
) -> StrategyRegistry:
    """Register the built-in strategies."""
    rule_based = RuleBasedStrategy(source_priority=source_registry.priority_of)
    registry = StrategyRegistry()
    registry.register(RandomStrategy())
    registry.register(WeightedRandomStrategy())
    registry.register(rule_based)
    if ranking is not None:
        ranking.fallback = rule_based
        registry.register(ranking)
    return registry


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    supabase_client = create_client(
        resolved_settings.supabase_url, resolved_settings.supabase_service_key
    )
    toggles = StaticFeatureToggle(parse_feature_flags(resolved_settings.feature_flags))

    source_registry = SourceRegistry()
    if resolved_settings.local_catalog_path:
        source_registry.register(
            LocalCatalogSource.from_file(resolved_settings.local_catalog_path)
        )
    else:
        source_registry.register(LocalCatalogSource.default())
    catalog_client: HttpxCatalogClient | None = None
    if resolved_settings.remote_catalog_url:
        catalog_client = HttpxCatalogClient.create(
            base_url=resolved_settings.remote_catalog_url,
            api_key=resolved_settings.remote_catalog_api_key,
        )
        source_registry.register(
            RemoteCatalogSource(client=catalog_client, cache=InMemoryCache())
        )
    source_registry.register(CommunityCatalogSource(client=supabase_client))

    ranking_client: OpenAIRankingClient | None = None
    ranking: ModelRankedStrategy | None = None
    if resolved_settings.openai_api_key:
        ranking_client = OpenAIRankingClient.create(resolved_settings.openai_api_key)
        ranking = ModelRankedStrategy(
            client=ranking_client,
            model=resolved_settings.openai_model,
            store=resolved_settings.openai_store,
            timeout_seconds=resolved_settings.ranking_timeout_seconds,
        )
    strategy_registry = build_strategy_registry(source_registry, ranking)

    trace_store = InMemoryTraceSink()
    pipeline = SuggestionPipeline(
        aggregator=SourceAggregator(registry=source_registry, toggles=toggles),
        scorer=Scorer(
            weights=ScoringWeights(
                preference=resolved_settings.weight_preference,
                nutrition=resolved_settings.weight_nutrition,
                freshness=resolved_settings.weight_freshness,
                favorite=resolved_settings.weight_favorite,
            ),
            freshness_half_life_days=resolved_settings.freshness_half_life_days,
        ),
        diversity=DiversityPenalty(
            strength=resolved_settings.diversity_strength,
            decay=resolved_settings.diversity_decay,
        ),
        resolver=StrategyResolver(
            registry=strategy_registry,
            toggles=toggles,
            default=resolved_settings.default_strategy,
            cohorts=parse_strategy_cohorts(resolved_settings.strategy_cohorts),
        ),
        trace_sink=CompositeTraceSink(
            [
                LoggingTraceSink(),
                trace_store,
                SupabaseTraceRepository(supabase_client),
            ]
        ),
        fetch_timeout_seconds=resolved_settings.fetch_timeout_seconds,
    )
    preference_service = PreferenceService(
        SupabasePreferenceRepository(supabase_client)
    )
    history_service = HistoryService(SupabaseHistoryRepository(supabase_client))
    suggestion_service = SuggestionService(
        pipeline=pipeline,
        preference_service=preference_service,
        history_service=history_service,
        history_window=resolved_settings.history_window,
    )

    async def close_resources() -> None:
        if catalog_client is not None:
            await catalog_client.close()
        if ranking_client is not None:
            await ranking_client.close()

    return AppContainer(
        settings=resolved_settings,
        source_registry=source_registry,
        strategy_registry=strategy_registry,
        pipeline=pipeline,
        preference_service=preference_service,
        history_service=history_service,
        suggestion_service=suggestion_service,
        trace_store=trace_store,
        close_resources=close_resources,
    )
