'''
Pytest configuration and fixtures for the HP Trend Toolbox test suite.

Provides seeded data generators (random walks with cyclical noise, as
arrays, Series and DataFrames), hypothesis strategies for filter inputs,
and an autouse fixture that restores the default configuration after every
test.
'''

import matplotlib

matplotlib.use("Agg")

import numpy as np
import pandas as pd
import pytest
from hypothesis import HealthCheck, settings, strategies as st

from hptrend.core.config import reset_config

# The configuration reset below is function scoped and shared by every
# example of a property test
settings.register_profile(
    "hptrend", suppress_health_check=[HealthCheck.function_scoped_fixture]
)
settings.load_profile("hptrend")


# ---- Configuration Isolation ----

@pytest.fixture(autouse=True)
def default_config():
    """Run every test against the built-in configuration defaults."""
    reset_config()
    yield
    reset_config()


# ---- Basic Data Generation Fixtures ----

@pytest.fixture
def rng() -> np.random.Generator:
    """Provide a seeded random number generator for reproducible tests."""
    return np.random.default_rng(42)


@pytest.fixture
def sample_size() -> int:
    """Default sample size for test data."""
    return 120


@pytest.fixture
def trend_cycle_series(rng: np.random.Generator, sample_size: int) -> np.ndarray:
    """Random walk with drift plus a stationary cycle, shape (T,)."""
    trend = np.cumsum(0.5 + 0.2 * rng.standard_normal(sample_size))
    t = np.arange(sample_size)
    cycle = 2.0 * np.sin(2 * np.pi * t / 24) + 0.3 * rng.standard_normal(sample_size)
    return trend + cycle


@pytest.fixture
def trend_cycle_panel(rng: np.random.Generator, sample_size: int) -> np.ndarray:
    """Three independent trend-plus-cycle series, shape (T, 3)."""
    drift = np.array([0.5, -0.2, 0.0])
    trend = np.cumsum(drift + 0.3 * rng.standard_normal((sample_size, 3)), axis=0)
    cycle = rng.standard_normal((sample_size, 3))
    return 100.0 + trend + cycle


@pytest.fixture
def quarterly_index(sample_size: int) -> pd.DatetimeIndex:
    return pd.date_range("1990-01-01", periods=sample_size, freq="QS")


@pytest.fixture
def panel_frame(trend_cycle_panel: np.ndarray, quarterly_index: pd.DatetimeIndex) -> pd.DataFrame:
    """The three-series panel as a DataFrame with a quarterly index."""
    return pd.DataFrame(trend_cycle_panel, index=quarterly_index,
                        columns=["gdp", "consumption", "investment"])


@pytest.fixture
def gdp_series(panel_frame: pd.DataFrame) -> pd.Series:
    return panel_frame["gdp"]


# ---- Hypothesis Strategies for Property-Based Testing ----

def series_strategy(min_size: int = 8, max_size: int = 40) -> st.SearchStrategy:
    """Finite, moderately scaled series as float arrays."""
    return st.lists(
        st.floats(min_value=-100.0, max_value=100.0, allow_nan=False, allow_infinity=False),
        min_size=min_size, max_size=max_size
    ).map(lambda values: np.asarray(values, dtype=np.float64))


lambda_strategy = st.floats(min_value=0.1, max_value=1e5, allow_nan=False, allow_infinity=False)
