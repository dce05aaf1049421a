"""Tests for score mapping (F1)."""

import math

import pytest

from levelup.config.app_config import TierRange, config_from_dict
from levelup.core.models import DifficultyTier, SubjectCategory
from levelup.core.score_mapper import (
    clamp_percentage,
    map_score,
    resolve_range,
    round_half_up,
)


@pytest.fixture
def scoring():
    return config_from_dict({}).scoring


class TestMapScore:
    """Tests for map_score."""

    def test_math_easy_90_percent(self, scoring):
        """90% on Math/Easy maps to 470."""
        assert map_score(90, DifficultyTier.EASY, SubjectCategory.MATH, scoring) == 470

    def test_math_hard_40_percent(self, scoring):
        """40% on Math/Hard maps to 650."""
        assert map_score(40, DifficultyTier.HARD, SubjectCategory.MATH, scoring) == 650

    def test_zero_percent_is_band_min(self, scoring):
        for tier in DifficultyTier:
            for category in SubjectCategory:
                band = scoring.range_for(category.name, tier.name)
                assert map_score(0, tier, category, scoring) == band.min

    def test_hundred_percent_is_band_max(self, scoring):
        for tier in DifficultyTier:
            for category in SubjectCategory:
                band = scoring.range_for(category.name, tier.name)
                assert map_score(100, tier, category, scoring) == band.max

    def test_same_percentage_scores_higher_on_harder_tier(self, scoring):
        """Harder tiers never score lower for the same percentage."""
        for pct in (0, 25, 50, 75, 100):
            easy = map_score(pct, DifficultyTier.EASY, SubjectCategory.MATH, scoring)
            medium = map_score(pct, DifficultyTier.MEDIUM, SubjectCategory.MATH, scoring)
            hard = map_score(pct, DifficultyTier.HARD, SubjectCategory.MATH, scoring)
            assert easy <= medium <= hard

    def test_monotonic_in_percentage(self, scoring):
        previous = -1
        for pct in range(0, 101):
            scaled = map_score(pct, DifficultyTier.MEDIUM, SubjectCategory.READING_WRITING, scoring)
            assert scaled >= previous
            previous = scaled

    def test_percentage_above_100_is_clamped(self, scoring):
        assert map_score(150, DifficultyTier.EASY, SubjectCategory.MATH, scoring) == 500

    def test_negative_percentage_is_clamped(self, scoring):
        assert map_score(-20, DifficultyTier.EASY, SubjectCategory.MATH, scoring) == 200

    def test_nan_and_none_treated_as_zero(self, scoring):
        assert map_score(math.nan, DifficultyTier.EASY, SubjectCategory.MATH, scoring) == 200
        assert map_score(None, DifficultyTier.EASY, SubjectCategory.MATH, scoring) == 200

    def test_unknown_tier_uses_medium_band(self, scoring):
        """Unknown tiers never raise; they use MEDIUM's band."""
        assert map_score(100, "legendary", SubjectCategory.MATH, scoring) == 680
        assert map_score(0, None, SubjectCategory.MATH, scoring) == 350

    def test_unknown_category_uses_reading_writing(self, scoring):
        assert map_score(100, DifficultyTier.EASY, "history", scoring) == 520

    def test_accepts_string_tier_and_category(self, scoring):
        assert map_score(90, "easy", "math", scoring) == 470

    def test_half_rounds_up(self):
        """x.5 rounds upward, not to even."""
        scoring = config_from_dict(
            {"scoring": {"ranges": {"MATH": {"EASY": {"min": 0, "max": 5}}}}}
        ).scoring
        # 0 + 0.5 * 5 = 2.5
        assert map_score(50, DifficultyTier.EASY, SubjectCategory.MATH, scoring) == 3

    def test_result_is_int(self, scoring):
        result = map_score(33.3, DifficultyTier.MEDIUM, SubjectCategory.MATH, scoring)
        assert isinstance(result, int)


class TestHelpers:
    """Tests for clamping, rounding and range lookup."""

    def test_clamp_percentage(self):
        assert clamp_percentage(55.5) == 55.5
        assert clamp_percentage(101) == 100.0
        assert clamp_percentage(-1) == 0.0
        assert clamp_percentage("abc") == 0.0
        assert clamp_percentage("42") == 42.0

    def test_round_half_up(self):
        assert round_half_up(2.5) == 3
        assert round_half_up(3.5) == 4
        assert round_half_up(2.49) == 2

    def test_resolve_range(self, scoring):
        assert resolve_range(DifficultyTier.HARD, SubjectCategory.MATH, scoring) == TierRange(550, 800)
        assert resolve_range("unknown", "unknown", scoring) == TierRange(350, 700)
