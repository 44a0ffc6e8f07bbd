"""
Tests for report output and summary statistics
"""

import json

import pytest
import pandas as pd
import numpy as np
import sys
from pathlib import Path

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from alphasim.report import ReportWriter, compute_summary, TRADING_DAYS


def make_report(returns, turnover=None):
    n = len(returns)
    return pd.DataFrame({
        'date': 20200101 + np.arange(n),
        'return': returns,
        'turnover': turnover if turnover is not None else [0.1] * n,
    })


class TestComputeSummary:
    """Test summary statistics."""

    def test_basic(self):
        summary = compute_summary(make_report([0.01, -0.02, 0.03, 0.0], [0.5, 0.1, 0.2, 0.2]))

        assert summary['annual_return'] == pytest.approx(0.005 * TRADING_DAYS)
        expected_vol = np.std([0.01, -0.02, 0.03, 0.0], ddof=1) * np.sqrt(TRADING_DAYS)
        assert summary['vol'] == pytest.approx(expected_vol)
        assert summary['sharpe'] == pytest.approx(0.005 * TRADING_DAYS / expected_vol)
        assert summary['max_drawdown'] == pytest.approx(-0.02)
        assert summary['hit_rate'] == 0.5
        assert summary['avg_turnover'] == pytest.approx(0.25)
        assert summary['n_days'] == 4
        assert summary['first_date'] == 20200101
        assert summary['last_date'] == 20200104

    def test_drawdown_from_start(self):
        summary = compute_summary(make_report([-0.01, 0.02]))
        assert summary['max_drawdown'] == pytest.approx(-0.01)

    def test_no_drawdown(self):
        summary = compute_summary(make_report([0.01, 0.01, 0.02]))
        assert summary['max_drawdown'] == 0.0

    def test_single_day(self):
        summary = compute_summary(make_report([0.01]))

        assert summary['vol'] == 0.0
        assert summary['sharpe'] == 0.0

    def test_empty(self):
        summary = compute_summary(make_report([]))

        assert summary['n_days'] == 0
        assert summary['sharpe'] == 0.0
        assert summary['first_date'] is None


class TestReportWriter:
    """Test file output."""

    def test_creates_store(self, tmp_path):
        ReportWriter(tmp_path / "a" / "b")
        assert (tmp_path / "a" / "b").is_dir()

    def test_perf_csv(self, tmp_path):
        writer = ReportWriter(tmp_path)
        report = make_report([0.1 / 3, -1e-9], [0.5, 0.25])
        report['extra'] = 1

        path = writer.write_perf("alpha_one", report)

        assert path == tmp_path / "alpha_one" / "perf.csv"
        lines = path.read_text().splitlines()
        assert lines[0] == "date,return,turnover"
        assert len(lines) == 3
        written = pd.read_csv(path, float_precision="round_trip")
        assert written['return'].iloc[0] == 0.1 / 3
        assert written['return'].iloc[1] == -1e-9

    def test_empty_perf_has_header(self, tmp_path):
        path = ReportWriter(tmp_path).write_perf("idle", make_report([]))
        assert path.read_text().strip() == "date,return,turnover"

    def test_summary_json(self, tmp_path):
        path = ReportWriter(tmp_path).write_summary("alpha_one", {'sharpe': 1.5, 'alpha': 'alpha_one'})

        with open(path) as f:
            assert json.load(f) == {'alpha': 'alpha_one', 'sharpe': 1.5}
