"""Tests for the histogram grid, statistics table and text panels."""

import numpy as np
import pandas as pd
import pytest

from compound_process import ProcessParameters, run_horizons, summarize_horizons
from histogram_plots import (
    PARAMETER_IMPACT,
    STATS_COLUMNS,
    build_histogram_grid,
    build_stats_table,
    theory_text,
    trim_for_display,
)


@pytest.fixture
def params():
    return ProcessParameters(1.0, 1.0)


@pytest.fixture
def samples(params):
    return run_horizons(params, 2_000, seed=2024)


def test_theory_text_lists_every_horizon():
    text = theory_text(1.0, 1.0)
    assert text.startswith("t = 10:\n  E[S(t)] = 10.00\n  Var[S(t)] = 20.00\n\n")
    assert "t = 10000:\n  E[S(t)] = 10000.00\n  Var[S(t)] = 20000.00" in text


def test_theory_text_custom_horizons():
    assert theory_text(1.0, 2.0, time_horizons=(10,)) == (
        "t = 10:\n  E[S(t)] = 5.00\n  Var[S(t)] = 5.00\n\n"
    )


def test_parameter_impact_mentions_squared_effect():
    assert "1/μ²" in PARAMETER_IMPACT
    assert "λ (arrival rate)" in PARAMETER_IMPACT


class TestTrimForDisplay:

    def test_drops_values_above_99th_percentile(self):
        values = np.arange(1, 101, dtype=float)
        trimmed = trim_for_display(values)
        assert trimmed.size == 99
        assert trimmed.max() == 99.0

    def test_does_not_modify_input(self):
        values = np.array([0.0, 1.0, 2.0, 1000.0])
        trim_for_display(values, quantile=0.5)
        np.testing.assert_array_equal(values, [0.0, 1.0, 2.0, 1000.0])

    def test_keeps_point_mass_at_zero(self):
        values = np.zeros(50)
        assert trim_for_display(values).size == 50

    def test_empty_sample(self):
        assert trim_for_display([]).size == 0


class TestHistogramGrid:

    def test_one_density_histogram_per_horizon(self, samples, params):
        fig = build_histogram_grid(samples, params)
        histograms = [trace for trace in fig.data if trace.type == "histogram"]
        assert len(histograms) == len(samples)
        for trace in histograms:
            assert trace.histnorm == "probability density"
            assert trace.nbinsx == 50

    def test_histograms_are_trimmed(self, samples, params):
        fig = build_histogram_grid(samples, params)
        for trace, sample in zip(fig.data, samples.values()):
            assert max(trace.x) <= np.quantile(sample, 0.99)

    def test_marks_theoretical_means(self, samples, params):
        fig = build_histogram_grid(samples, params)
        lines = [shape for shape in fig.layout.shapes if shape.type == "line"]
        assert sorted(shape.x0 for shape in lines) == pytest.approx([10.0, 100.0, 1000.0, 10000.0])

    def test_title_names_parameters(self, samples):
        fig = build_histogram_grid(samples, ProcessParameters(2.5, 0.5))
        assert "λ = 2.5" in fig.layout.title.text
        assert "μ = 0.5" in fig.layout.title.text


class TestStatsTable:

    def test_columns_and_rows(self, samples, params):
        table = build_stats_table(summarize_horizons(samples, params))
        assert list(table.columns) == STATS_COLUMNS
        assert list(table["Time"]) == [10.0, 100.0, 1000.0, 10000.0]
        assert list(table["Theoretical_Mean"]) == [10.0, 100.0, 1000.0, 10000.0]

    def test_rounding(self, params):
        samples = {10.0: np.array([0.0, 1.23456, 2.34567])}
        table = build_stats_table(summarize_horizons(samples, params))
        assert table.loc[0, "Simulated_Mean"] == pytest.approx(1.19)
        assert table.loc[0, "P(S(t)=0)"] == pytest.approx(0.3333)

    def test_statistics_use_untrimmed_sample(self, params):
        sample = np.concatenate([np.full(99, 10.0), [1010.0]])
        table = build_stats_table(summarize_horizons({10.0: sample}, params))
        assert table.loc[0, "Simulated_Mean"] == pytest.approx(20.0)
        assert isinstance(table, pd.DataFrame)
