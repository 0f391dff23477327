# tests/test_filters.py

"""
Tests for the two-sided and one-sided Hodrick-Prescott filters.

Covers the closed-form cases (linear and constant inputs, lambda = 0), the
statsmodels HP filter as an independent reference for the two-sided trend,
the agreement of the one-sided trend with the last point of two-sided
trends on expanding samples, causality and reconstruction properties,
container handling for arrays, Series and DataFrames, error reporting and
the asynchronous wrappers.
"""

import asyncio
import logging

import matplotlib.pyplot as plt
import numpy as np
import pandas as pd
import pytest
from hypothesis import assume, given, settings, strategies as st
from statsmodels.tsa.filters.hp_filter import hpfilter

from hptrend.core.config import set_config
from hptrend.core.exceptions import (
    DataError, DimensionError, NotFittedError, ParameterError
)
from hptrend.core.types import FilterSide
from hptrend.models.time_series.filters import (
    FilterResult, OneSidedHPFilter, TwoSidedHPFilter, hp_filter, one_sided_hp_filter
)
from tests.conftest import lambda_strategy, series_strategy


class TestTwoSidedHPFilter:
    """Tests for the full-sample HP filter."""

    def test_initialization(self):
        hp = TwoSidedHPFilter()
        assert hp.lambda_ == 1600.0
        assert hp.side is FilterSide.TWO_SIDED
        assert hp.name == "Hodrick-Prescott Filter"
        assert not hp.fitted

        hp.lambda_ = 14400
        assert hp.lambda_ == 14400.0

    def test_invalid_initialization(self):
        with pytest.raises(ParameterError):
            TwoSidedHPFilter(lambda_=-1.0)
        hp = TwoSidedHPFilter()
        with pytest.raises(ParameterError):
            hp.lambda_ = np.inf

    def test_linear_input_is_its_own_trend(self):
        y = np.arange(1.0, 11.0)
        np.testing.assert_allclose(hp_filter(y, lambda_=1600), y, atol=1e-8)

    def test_zero_lambda_returns_input(self, trend_cycle_panel):
        result = TwoSidedHPFilter(lambda_=0.0).filter(trend_cycle_panel)
        np.testing.assert_array_equal(result.trend, trend_cycle_panel)
        np.testing.assert_array_equal(result.cycle, np.zeros_like(trend_cycle_panel))

    @pytest.mark.parametrize("lambda_", [6.25, 1600.0, 129600.0])
    def test_matches_statsmodels(self, trend_cycle_series, lambda_):
        cycle, trend = hpfilter(trend_cycle_series, lamb=lambda_)
        result = TwoSidedHPFilter(lambda_=lambda_).filter(trend_cycle_series)
        np.testing.assert_allclose(result.trend[:, 0], trend, rtol=1e-8, atol=1e-8)
        np.testing.assert_allclose(result.cycle[:, 0], cycle, rtol=1e-8, atol=1e-8)

    def test_columns_filtered_independently(self, trend_cycle_panel):
        panel = TwoSidedHPFilter().filter(trend_cycle_panel).trend
        for k in range(trend_cycle_panel.shape[1]):
            np.testing.assert_allclose(panel[:, k], hp_filter(trend_cycle_panel[:, k]),
                                       rtol=1e-12, atol=1e-12)

    def test_result_object(self, trend_cycle_panel):
        hp = TwoSidedHPFilter(lambda_=1600)
        result = hp.filter(trend_cycle_panel)

        assert isinstance(result, FilterResult)
        assert hp.fitted
        assert hp.results is result
        assert result.trend.shape == trend_cycle_panel.shape
        assert result.parameters == {"lambda_": 1600.0}
        assert result.filter_name == "Hodrick-Prescott Filter"
        assert result.columns == [0, 1, 2]
        assert result.components == {}
        np.testing.assert_array_equal(hp.trend, result.trend)
        np.testing.assert_array_equal(hp.data, trend_cycle_panel)

    def test_lambda_override(self, trend_cycle_series):
        hp = TwoSidedHPFilter(lambda_=1600)
        result = hp.filter(trend_cycle_series, lambda_=100)
        assert hp.lambda_ == 100.0
        np.testing.assert_allclose(result.trend[:, 0], hp_filter(trend_cycle_series, lambda_=100))

    def test_dataframe_round_trip(self, panel_frame):
        trend = hp_filter(panel_frame)
        assert isinstance(trend, pd.DataFrame)
        pd.testing.assert_index_equal(trend.index, panel_frame.index)
        pd.testing.assert_index_equal(trend.columns, panel_frame.columns)
        np.testing.assert_allclose(trend.to_numpy(), hp_filter(panel_frame.to_numpy()))

    def test_series_round_trip(self, gdp_series):
        trend = hp_filter(gdp_series)
        assert isinstance(trend, pd.Series)
        assert trend.name == "gdp"
        pd.testing.assert_index_equal(trend.index, gdp_series.index)

    def test_vector_round_trip(self, trend_cycle_series):
        trend = hp_filter(trend_cycle_series)
        assert isinstance(trend, np.ndarray)
        assert trend.shape == trend_cycle_series.shape

    def test_minimum_length(self):
        np.testing.assert_allclose(hp_filter(np.array([1.0, 2.0, 3.0, 4.0])), [1, 2, 3, 4])
        with pytest.raises(ParameterError, match="too short") as excinfo:
            hp_filter(np.array([1.0, 2.0, 3.0]))
        assert excinfo.value.param_name == "nobs"
        with pytest.raises(ParameterError, match="too short"):
            one_sided_hp_filter(np.array([1.0, 2.0, 3.0]))
        with pytest.raises(ParameterError):
            OneSidedHPFilter().filter(pd.DataFrame({"a": [1.0, 2.0, 3.0]}))

    def test_invalid_data(self):
        with pytest.raises(DataError, match="NaN"):
            hp_filter(np.array([1.0, np.nan, 3.0, 4.0, 5.0]))
        with pytest.raises(DataError, match="infinite"):
            hp_filter(np.array([1.0, 2.0, np.inf, 4.0, 5.0]))
        with pytest.raises(DimensionError):
            hp_filter(np.ones((5, 2, 2)))
        with pytest.raises(DataError, match="non-numeric"):
            hp_filter(pd.DataFrame({"a": list("abcde")}))
        with pytest.raises(TypeError):
            hp_filter([1.0, 2.0, 3.0, 4.0, 5.0])

    def test_negative_lambda(self, trend_cycle_series):
        with pytest.raises(ParameterError):
            hp_filter(trend_cycle_series, lambda_=-1.0)

    def test_not_fitted(self):
        hp = TwoSidedHPFilter()
        with pytest.raises(NotFittedError):
            hp.trend
        with pytest.raises(NotFittedError):
            hp.cycle
        with pytest.raises(NotFittedError):
            hp.results
        assert "not fitted" in hp.summary()

    def test_rejected_call_keeps_settings(self, trend_cycle_series):
        hp = TwoSidedHPFilter(lambda_=400)
        with pytest.raises(ParameterError):
            hp.filter(trend_cycle_series, lambda_=-1.0)
        assert hp.lambda_ == 400.0
        with pytest.raises(ParameterError):
            hp.filter(np.arange(3.0), lambda_=10.0)
        assert hp.lambda_ == 400.0
        assert not hp.fitted

    def test_zero_lambda_logs_warning(self, trend_cycle_series, caplog):
        with caplog.at_level(logging.WARNING, logger="hptrend.models.time_series.filters"):
            trend = hp_filter(trend_cycle_series, lambda_=0.0)
        np.testing.assert_allclose(trend, trend_cycle_series)
        assert "trend equals the data" in caplog.text

    def test_default_lambda_from_config(self, trend_cycle_series):
        set_config("filters", "default_lambda", 100.0)
        assert TwoSidedHPFilter().lambda_ == 100.0
        np.testing.assert_allclose(hp_filter(trend_cycle_series),
                                   hp_filter(trend_cycle_series, lambda_=100.0))

    @given(y=series_strategy(), lambda_=lambda_strategy)
    @settings(max_examples=25, deadline=None)
    def test_reconstruction(self, y, lambda_):
        result = TwoSidedHPFilter(lambda_=lambda_).filter(y)
        np.testing.assert_allclose(result.trend + result.cycle, result.original, atol=1e-9)

    @given(y=series_strategy(), lambda_=lambda_strategy)
    @settings(max_examples=25, deadline=None)
    def test_time_reversal(self, y, lambda_):
        forward = hp_filter(y, lambda_=lambda_)
        backward = hp_filter(y[::-1].copy(), lambda_=lambda_)
        np.testing.assert_allclose(backward[::-1], forward, atol=1e-6)

    @given(
        y=series_strategy(),
        scale=st.floats(min_value=-10.0, max_value=10.0),
        intercept=st.floats(min_value=-100.0, max_value=100.0),
        slope=st.floats(min_value=-5.0, max_value=5.0)
    )
    @settings(max_examples=25, deadline=None)
    def test_affine_equivariance(self, y, scale, intercept, slope):
        line = intercept + slope * np.arange(len(y))
        transformed = hp_filter(scale * y + line)
        np.testing.assert_allclose(transformed, scale * hp_filter(y) + line, atol=1e-6)

    @pytest.mark.asyncio
    async def test_filter_async(self, trend_cycle_panel):
        hp = TwoSidedHPFilter()
        result = await hp.filter_async(trend_cycle_panel, lambda_=400)
        assert hp.fitted
        np.testing.assert_allclose(result.trend, hp_filter(trend_cycle_panel, lambda_=400))

    @pytest.mark.asyncio
    async def test_concurrent_filters(self, trend_cycle_panel):
        filters = [TwoSidedHPFilter(lambda_=lam) for lam in (10, 100, 1000)]
        results = await asyncio.gather(*(f.filter_async(trend_cycle_panel) for f in filters))
        for f, result in zip(filters, results):
            np.testing.assert_allclose(result.trend, hp_filter(trend_cycle_panel, lambda_=f.lambda_))


class TestOneSidedHPFilter:
    """Tests for the causal (Kalman) HP filter."""

    def test_initialization(self):
        hp = OneSidedHPFilter()
        assert hp.lambda_ == 1600.0
        assert hp.side is FilterSide.ONE_SIDED
        assert hp.discard == 0
        hp.discard = 4
        hp.lambda_ = 10
        assert (hp.lambda_, hp.discard) == (10.0, 4)

    @pytest.mark.parametrize("lambda_", [0.0, -3.0])
    def test_non_positive_lambda(self, lambda_, trend_cycle_series):
        with pytest.raises(ParameterError):
            OneSidedHPFilter(lambda_=lambda_)
        with pytest.raises(ParameterError):
            one_sided_hp_filter(trend_cycle_series, lambda_=lambda_)

    def test_constant_input(self):
        np.testing.assert_array_equal(one_sided_hp_filter(np.full(5, 5.0)), np.full(5, 5.0))

    def test_discard_drops_leading_rows(self, trend_cycle_panel, sample_size):
        full = OneSidedHPFilter().filter(trend_cycle_panel)
        trimmed = OneSidedHPFilter(discard=10).filter(trend_cycle_panel)
        assert trimmed.trend.shape == (sample_size - 10, 3)
        assert trimmed.start == 10
        np.testing.assert_array_equal(trimmed.trend, full.trend[10:])
        np.testing.assert_array_equal(trimmed.original, trend_cycle_panel[10:])
        assert trimmed.components["slope"].shape == trimmed.trend.shape

    def test_discard_keeps_index_labels(self, panel_frame):
        trend = one_sided_hp_filter(panel_frame, discard=8)
        assert isinstance(trend, pd.DataFrame)
        pd.testing.assert_index_equal(trend.index, panel_frame.index[8:])
        pd.testing.assert_index_equal(trend.columns, panel_frame.columns)

    def test_series_output(self, gdp_series):
        trend = one_sided_hp_filter(gdp_series, discard=3)
        assert isinstance(trend, pd.Series)
        assert trend.name == "gdp"
        assert len(trend) == len(gdp_series) - 3

    @pytest.mark.parametrize("discard", [-1, 2.5, True])
    def test_invalid_discard(self, discard, trend_cycle_series):
        with pytest.raises(ParameterError):
            one_sided_hp_filter(trend_cycle_series, discard=discard)

    def test_discard_must_leave_rows(self, trend_cycle_series, sample_size):
        trend = one_sided_hp_filter(trend_cycle_series, discard=sample_size - 1)
        assert trend.shape == (1,)
        with pytest.raises(ParameterError, match="smaller than the number of observations"):
            one_sided_hp_filter(trend_cycle_series, discard=sample_size)

    def test_matches_last_point_of_two_sided(self, trend_cycle_series):
        # Equivalence is exact in the diffuse limit of the initial covariance
        set_config("filters", "diffuse_variance", 1e7)
        lambda_ = 1600.0
        one_sided = one_sided_hp_filter(trend_cycle_series, lambda_=lambda_)
        for t in range(4, 60):
            two_sided = hp_filter(trend_cycle_series[:t + 1], lambda_=lambda_)
            assert one_sided[t] == pytest.approx(two_sided[-1], abs=1e-4)

    def test_default_initial_conditions_are_explicit(self, trend_cycle_panel):
        y = trend_cycle_panel
        slope0 = y[1] - y[0]
        x_user = np.vstack([y[0] - slope0, slope0])
        P_user = [1e5 * np.eye(2)] * 3
        explicit = one_sided_hp_filter(y, x_user=x_user, P_user=P_user)
        np.testing.assert_array_equal(explicit, one_sided_hp_filter(y))

    def test_initial_conditions_change_early_trend(self, trend_cycle_series):
        tight = one_sided_hp_filter(trend_cycle_series, x_user=[50.0, 0.0],
                                    P_user=np.eye(2) * 1e-6)
        default = one_sided_hp_filter(trend_cycle_series)
        assert abs(tight[0] - default[0]) > 1.0

    def test_single_covariance_as_nested_list(self, trend_cycle_series):
        P_user = [[1e5, 0.0], [0.0, 1e5]]
        np.testing.assert_array_equal(
            one_sided_hp_filter(trend_cycle_series, P_user=P_user),
            one_sided_hp_filter(trend_cycle_series, P_user=np.array(P_user))
        )

    def test_singular_prior_logs_warning(self, trend_cycle_series, caplog):
        P_user = np.array([[1.0, 0.0], [0.0, 0.0]])
        with caplog.at_level(logging.WARNING, logger="hptrend.core.validation"):
            trend = one_sided_hp_filter(trend_cycle_series, x_user=[100.0, 0.0], P_user=P_user)
        assert np.isfinite(trend).all()
        assert "P_user[0] is singular" in caplog.text

    def test_initial_condition_errors(self, trend_cycle_panel):
        with pytest.raises(DimensionError):
            one_sided_hp_filter(trend_cycle_panel, x_user=np.zeros((2, 2)))
        with pytest.raises(DimensionError):
            one_sided_hp_filter(trend_cycle_panel, P_user=[np.eye(2)] * 2)
        with pytest.raises(DataError, match="symmetric"):
            one_sided_hp_filter(trend_cycle_panel,
                                P_user=[np.eye(2), np.array([[1.0, 0.5], [0.0, 1.0]]), np.eye(2)])
        with pytest.raises(DataError, match="positive semi-definite"):
            one_sided_hp_filter(trend_cycle_panel, P_user=-np.tile(np.eye(2), (3, 1, 1)))

    def test_result_metadata(self, panel_frame):
        result = OneSidedHPFilter(lambda_=400, discard=2).filter(panel_frame)
        assert result.parameters["lambda_"] == 400.0
        assert result.parameters["discard"] == 2
        assert len(result.parameters["steady_state_step"]) == 3
        assert result.columns == ["gdp", "consumption", "investment"]
        pd.testing.assert_index_equal(result.index, panel_frame.index[2:])
        np.testing.assert_allclose(result.trend + result.cycle, result.original)

    def test_rejected_call_keeps_settings(self, trend_cycle_series):
        hp = OneSidedHPFilter(lambda_=400, discard=2)
        with pytest.raises(ParameterError):
            hp.filter(np.arange(10.0), discard=50)
        assert (hp.lambda_, hp.discard) == (400.0, 2)
        with pytest.raises(DimensionError):
            hp.filter(trend_cycle_series, lambda_=10.0, discard=4, x_user=np.zeros((2, 3)))
        assert (hp.lambda_, hp.discard) == (400.0, 2)
        assert not hp.fitted

        # Later calls without overrides use the original settings
        result = hp.filter(np.arange(10.0))
        assert result.trend.shape == (8, 1)
        assert result.parameters["discard"] == 2

    def test_large_discard_logs_warning(self, trend_cycle_series, sample_size, caplog):
        with caplog.at_level(logging.WARNING, logger="hptrend.models.time_series.filters"):
            one_sided_hp_filter(trend_cycle_series, discard=sample_size // 2 + 1)
        assert "more than half" in caplog.text

    def test_filter_call_overrides(self, trend_cycle_series):
        hp = OneSidedHPFilter()
        result = hp.filter(trend_cycle_series, lambda_=100.0, discard=5)
        assert (hp.lambda_, hp.discard) == (100.0, 5)
        np.testing.assert_array_equal(
            result.trend[:, 0],
            one_sided_hp_filter(trend_cycle_series, lambda_=100.0, discard=5)
        )

    @given(
        y=series_strategy(min_size=8, max_size=30),
        lambda_=lambda_strategy,
        data=st.data()
    )
    @settings(max_examples=30, deadline=None)
    def test_causality(self, y, lambda_, data):
        # The first prediction lands on y_1, so y_2 reaches trend_0 only through rounding
        k = data.draw(st.integers(min_value=0, max_value=len(y) - 2))
        perturbed = y.copy()
        perturbed[k + 1:] += data.draw(st.floats(min_value=-50.0, max_value=50.0))
        original = one_sided_hp_filter(y, lambda_=lambda_)
        changed = one_sided_hp_filter(perturbed, lambda_=lambda_)
        np.testing.assert_allclose(changed[:k + 1], original[:k + 1], rtol=0, atol=1e-10)

    @given(y=series_strategy(min_size=8, max_size=30), lambda_=lambda_strategy)
    @settings(max_examples=20, deadline=None)
    def test_causality_with_user_state(self, y, lambda_):
        x_user = np.array([0.0, 0.0])
        original = one_sided_hp_filter(y, lambda_=lambda_, x_user=x_user)
        perturbed = y.copy()
        perturbed[1:] += 1.0
        assert one_sided_hp_filter(perturbed, lambda_=lambda_, x_user=x_user)[0] == original[0]

    @given(
        lambda_=st.floats(min_value=0.1, max_value=1e4),
        level=st.floats(min_value=-100.0, max_value=100.0),
        start=st.floats(min_value=-10.0, max_value=10.0)
    )
    @settings(max_examples=25, deadline=None)
    def test_converges_on_constant_input(self, lambda_, level, start):
        assume(abs(level - start) > 1e-3)
        y = np.full(400, level)
        trend = one_sided_hp_filter(y, lambda_=lambda_, x_user=[start, 0.0])
        assert trend[-1] == pytest.approx(level, abs=1e-4)

    @given(y=series_strategy(), lambda_=lambda_strategy,
           discard=st.integers(min_value=0, max_value=7))
    @settings(max_examples=25, deadline=None)
    def test_output_length_and_reconstruction(self, y, lambda_, discard):
        result = OneSidedHPFilter(lambda_=lambda_, discard=discard).filter(y)
        assert result.trend.shape == (len(y) - discard, 1)
        np.testing.assert_allclose(result.trend + result.cycle, y[discard:].reshape(-1, 1),
                                   atol=1e-9)

    @pytest.mark.asyncio
    async def test_filter_async(self, panel_frame):
        hp = OneSidedHPFilter(lambda_=1600)
        result = await hp.filter_async(panel_frame, discard=4)
        np.testing.assert_array_equal(result.trend_as_input_type().to_numpy(),
                                      one_sided_hp_filter(panel_frame, discard=4).to_numpy())


class TestFilterResult:
    """Tests for the result container."""

    def test_shape_validation(self):
        with pytest.raises(DimensionError):
            FilterResult(original=np.zeros((5, 1)), trend=np.zeros((4, 1)), cycle=np.zeros((5, 1)))
        with pytest.raises(DimensionError):
            FilterResult(original=np.zeros((5, 1)), trend=np.zeros((5, 1)),
                         cycle=np.zeros((5, 1)), components={"slope": np.zeros((5, 2))})

    def test_to_dataframe(self, panel_frame):
        result = OneSidedHPFilter(discard=2).filter(panel_frame)
        frame = result.to_dataframe()
        assert frame.columns.names == ["component", "variable"]
        assert set(frame.columns.get_level_values("component")) == {
            "original", "trend", "cycle", "slope"
        }
        pd.testing.assert_index_equal(frame.index, panel_frame.index[2:])
        np.testing.assert_allclose(frame["trend"].to_numpy(), result.trend)

    def test_to_dataframe_without_index(self, trend_cycle_series):
        result = OneSidedHPFilter(discard=5).filter(trend_cycle_series)
        frame = result.to_dataframe()
        assert frame.index[0] == 5
        assert len(frame) == len(trend_cycle_series) - 5

    def test_to_dict(self, trend_cycle_series):
        result_dict = TwoSidedHPFilter().filter(trend_cycle_series).to_dict()
        assert result_dict["filter_name"] == "Hodrick-Prescott Filter"
        assert result_dict["parameters"] == {"lambda_": 1600.0}
        assert "index" not in result_dict

    def test_summary(self, panel_frame):
        hp = TwoSidedHPFilter()
        hp.filter(panel_frame)
        summary = hp.summary()
        assert "Hodrick-Prescott Filter" in summary
        assert "gdp" in summary
        assert "lambda_: 1600.0" in summary
        assert str(hp) == summary

    def test_plot(self, panel_frame):
        result = OneSidedHPFilter().filter(panel_frame)
        fig = result.plot(components=["trend", "slope"])
        assert len(fig.axes) == 2
        plt.close(fig)

    def test_plot_unknown_component(self, trend_cycle_series):
        result = TwoSidedHPFilter().filter(trend_cycle_series)
        with pytest.warns(UserWarning, match="not found"):
            fig = result.plot(components=["trend", "noise"])
        assert len(fig.axes) == 1
        plt.close(fig)

    def test_trend_without_dataset(self):
        result = FilterResult(original=np.ones((4, 1)), trend=np.ones((4, 1)),
                              cycle=np.zeros((4, 1)))
        np.testing.assert_array_equal(result.trend_as_input_type(), np.ones((4, 1)))
