"""
Analytic odds preview and balancing helpers.
"""

from dre.preview.odds import (
    DifficultyRecommendation,
    HitOddsReport,
    OddsComparison,
    OddsReport,
    compare_odds,
    empirical_odds,
    preview_combat_hit,
    preview_odds,
    recommend_difficulty,
    summarize_odds,
    tier_percentages,
)

__all__ = [
    "DifficultyRecommendation",
    "HitOddsReport",
    "OddsComparison",
    "OddsReport",
    "compare_odds",
    "empirical_odds",
    "preview_combat_hit",
    "preview_odds",
    "recommend_difficulty",
    "summarize_odds",
    "tier_percentages",
]
