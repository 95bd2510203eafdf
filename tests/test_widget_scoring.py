"""Tests for widget scoring strategies and the default catalogue."""

from __future__ import annotations

import pytest

from cyberpulse.errors import ConfigurationError, UniqueViolation
from cyberpulse.services.widget_catalog import DEFAULT_WIDGETS, build_widget, seed_default_widgets
from cyberpulse.services.widget_scoring import (
    ScoringType,
    calculate_widget_score,
    clamp_points,
    score_widget,
)
from cyberpulse.store import data_store

RANGE_CONFIG = {"min": 2, "max": 5, "points": 10, "fallback": 0}
PCT_CONFIG = {"scale": 0.1, "max_points": 10}


class TestYesNo:
    """Yes/no widgets."""

    def test_true_gives_yes_value(self):
        assert score_widget("yesno", {"yes_value": 10, "no_value": 0}, True) == 10

    def test_false_gives_exactly_zero(self):
        assert score_widget("yesno", {"yes_value": 10, "no_value": 0}, False) == 0.0

    @pytest.mark.parametrize("value", [1, "true", None, 1.0])
    def test_truthy_non_bool_is_not_yes(self, value):
        """Only the boolean True counts as yes."""
        assert score_widget("yesno", {"yes_value": 10, "no_value": 2}, value) == 2

    def test_missing_values_default_to_zero(self):
        assert score_widget("yesno", {}, True) == 0


class TestRange:
    """Bounded-range widgets."""

    @pytest.mark.parametrize("value", [2, 3, 5, 4.5])
    def test_inside_range_gets_points(self, value):
        assert score_widget("range", RANGE_CONFIG, value) == 10

    @pytest.mark.parametrize("value", [0, 1, 1.99, 5.01, 6, 100, -3])
    def test_outside_range_never_gets_points(self, value):
        assert score_widget("range", RANGE_CONFIG, value) == 0

    def test_outside_range_uses_fallback(self):
        config = {**RANGE_CONFIG, "fallback": 3}
        assert score_widget("range", config, 9) == 3

    def test_non_numeric_scores_zero(self):
        assert score_widget("range", RANGE_CONFIG, "3") == 0
        assert score_widget("range", RANGE_CONFIG, True) == 0

    def test_missing_bounds_is_configuration_error(self):
        with pytest.raises(ConfigurationError):
            score_widget("range", {"points": 10}, 3)


class TestPercentage:
    """Percentage and inverse-percentage widgets."""

    def test_scaled_value(self):
        assert score_widget("percentage", PCT_CONFIG, 50) == pytest.approx(5.0)

    def test_capped_at_max_points(self):
        assert score_widget("percentage", {"scale": 0.5, "max_points": 10}, 100) == 10

    def test_inverse_rewards_lower_values(self):
        assert score_widget("percentage_inverse", PCT_CONFIG, 20) == pytest.approx(8.0)
        assert score_widget("percentage_inverse", PCT_CONFIG, 100) == 0

    def test_inverse_never_negative(self):
        assert score_widget("percentage_inverse", PCT_CONFIG, 150) == 0

    def test_missing_scale_is_configuration_error(self):
        with pytest.raises(ConfigurationError):
            score_widget("percentage", {"max_points": 10}, 50)

    def test_none_value_scores_zero(self):
        assert score_widget("percentage", PCT_CONFIG, None) == 0


class TestMisconfiguration:
    """Unknown types never abort scoring."""

    def test_unknown_type_raises_in_strict_form(self):
        with pytest.raises(ConfigurationError):
            score_widget("logarithmic", {}, 5)

    def test_unknown_type_is_zero_points(self):
        assert calculate_widget_score("logarithmic", {}, 5) == 0.0

    def test_missing_config_is_zero_points(self):
        assert calculate_widget_score("percentage", None, 50) == 0.0

    def test_enum_values(self):
        assert [t.value for t in ScoringType] == ["yesno", "range", "percentage", "percentage_inverse"]


class TestClampPoints:
    """Rounding and clamping each widget's contribution."""

    @pytest.mark.parametrize(
        "points,available,expected",
        [(6.5, 10, 7), (7.2, 10, 7), (0.49, 10, 0), (12, 10, 10), (-1, 10, 0), (2.5, 10, 3)],
    )
    def test_round_half_up_and_clamp(self, points, available, expected):
        assert clamp_points(points, available) == expected

    @pytest.mark.parametrize("points,expected", [(9.6, 7), (7.5, 7), (6.6, 7), (3.2, 3)])
    def test_fractional_ceiling_rounds_down(self, points, expected):
        result = clamp_points(points, 7.5)
        assert result == expected
        assert isinstance(result, int)


class TestCatalog:
    """The default widget catalogue."""

    def test_catalog_has_22_unique_widgets(self):
        keys = [w[0] for w in DEFAULT_WIDGETS]
        assert len(keys) == 22
        assert len(set(keys)) == 22

    def test_every_catalog_config_is_valid(self):
        for key, _, _, scoring_type, config, *_ in DEFAULT_WIDGETS:
            # Raises ConfigurationError when a required key is missing
            score_widget(scoring_type.value, config, 0)

    def test_patch_compliance_is_inactive(self):
        entry = next(w for w in DEFAULT_WIDGETS if w[0] == "patchCompliance")
        assert entry[7] is False

    def test_unsupported_devices_defaults_to_100(self):
        entry = next(w for w in DEFAULT_WIDGETS if w[0] == "unsupportedDevices")
        assert entry[6] is True
        assert entry[8] == 100.0

    def test_seed_is_idempotent(self):
        assert seed_default_widgets(data_store) == 22
        assert seed_default_widgets(data_store) == 0
        assert len(data_store.list_widgets()) == 22

    def test_duplicate_widget_key_rejected(self):
        seed_default_widgets(data_store)
        with pytest.raises(UniqueViolation):
            data_store.add_widget(build_widget("trustedLocations", "Dup", "identity", ScoringType.YES_NO, {}, 10))
