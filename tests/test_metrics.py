"""Tests for run metrics, regime helpers and run records."""
import json
from datetime import datetime

import numpy as np
import pytest

from kuramoto_field.engine import KuramotoEngine, run
from kuramoto_field.metrics import (
    build_run_record,
    calculate_run_metrics,
    classify_regime,
    classify_sync_state,
    estimate_critical_coupling,
    format_for_log,
)
from kuramoto_field.networks import create_ring


class TestRunMetrics:
    @pytest.mark.parametrize("history", [None, {}, {"time": [], "order_parameter": []}])
    def test_empty(self, history):
        assert calculate_run_metrics(history) == {
            "final_r": 0.0, "mean_r": 0.0, "std_r": 0.0, "min_r": 0.0, "max_r": 0.0,
            "settling_time": None, "converged": False, "oscillating": False,
        }

    def test_short_series_never_judged(self):
        m = calculate_run_metrics({"order_parameter": [0.5] * 50})
        assert m["final_r"] == 0.5
        assert m["converged"] is False and m["oscillating"] is False
        assert m["settling_time"] == 0.0

    def test_flat_series_converges(self):
        t = list(np.arange(200) * 0.05)
        m = calculate_run_metrics({"time": t, "order_parameter": [0.9] * 200})
        assert m["converged"] is True
        assert m["oscillating"] is False
        assert m["std_r"] == 0.0 and m["mean_r"] == 0.9

    def test_alternating_series_oscillates(self):
        r = [0.2, 0.8] * 100
        m = calculate_run_metrics({"time": list(range(200)), "order_parameter": r})
        assert m["oscillating"] is True
        assert m["converged"] is False
        assert m["settling_time"] is None
        assert (m["min_r"], m["max_r"], m["final_r"]) == (0.2, 0.8, 0.8)

    def test_settling_time_of_exponential_rise(self):
        t = np.linspace(0.0, 10.0, 1001)
        r = 1.0 - np.exp(-t)
        m = calculate_run_metrics({"time": t.tolist(), "orderParameter": r.tolist()})
        assert m["settling_time"] == pytest.approx(3.0)
        assert m["settling_time"] <= t[-1]
        assert m["converged"] is True and m["oscillating"] is False

    def test_values_rounded(self):
        m = calculate_run_metrics({"order_parameter": [0.123456789] * 10})
        assert m["final_r"] == 0.1235

    def test_engine_history(self):
        eng = KuramotoEngine(N=20, K=8.0, seed=1)
        run(eng, 400, log_every=0)
        m = calculate_run_metrics(eng.history)
        assert m["final_r"] == pytest.approx(eng.order_parameter(), abs=1e-4)
        assert 0.0 <= m["min_r"] <= m["mean_r"] <= m["max_r"] <= 1.0
        if m["settling_time"] is not None:
            assert m["settling_time"] <= eng.time


class TestRegimes:
    @pytest.mark.parametrize("r, label", [
        (0.1, "incoherent"),
        (0.3, "weakly synchronized"),
        (0.6, "partially synchronized"),
        (0.9, "strongly synchronized"),
        (0.97, "fully synchronized"),
    ])
    def test_sync_state(self, r, label):
        assert classify_sync_state(r) == label

    def test_critical_coupling(self):
        assert estimate_critical_coupling("all-to-all") == 0.64
        assert estimate_critical_coupling("ring") == 2.0
        assert estimate_critical_coupling(None) == 0.64
        assert estimate_critical_coupling("custom") == 0.64

    def test_regime(self):
        assert classify_regime(0.5, "all-to-all") == "subcritical"
        assert classify_regime(0.64, "all-to-all") == "critical"
        assert classify_regime(2.0, "all-to-all") == "supercritical"
        assert classify_regime(2.0, "ring") == "critical"


class TestRunRecord:
    def test_record_from_engine(self):
        eng = KuramotoEngine(N=10, seed=3)
        run(eng, 20, log_every=0)
        rec = build_run_record(eng)
        assert set(rec) == {"parameters", "network", "metrics", "timestamp"}
        assert rec["parameters"]["N"] == 10 and rec["parameters"]["seed"] == 3
        assert rec["network"] == {"topology": "all-to-all", "params": {}, "N": 10}
        assert rec["metrics"] == calculate_run_metrics(eng.history)
        assert datetime.fromisoformat(rec["timestamp"]).tzinfo is not None
        json.dumps(rec)

    def test_record_with_network(self):
        eng = KuramotoEngine(N=10, seed=3)
        net = create_ring(10, 2)
        eng.set_network(net)
        rec = build_run_record(eng, network=net, metrics={"final_r": 0.5})
        assert rec["network"]["topology"] == "ring"
        assert rec["network"]["num_edges"] == 20
        assert rec["metrics"] == {"final_r": 0.5}


class TestFormatForLog:
    def test_ensemble_and_field_rows(self):
        rows = [
            {"time": 1.0, "N": 5, "order_parameter": 0.5, "K": 2.0, "topology": "ring"},
            {"time": 2.0, "grid_size": 4, "attention_map": [0.5, 1.0],
             "objects": [{}], "tracked_objects": [], "topology": "spatial"},
        ]
        lines = format_for_log(rows).split("\n")
        assert lines[0] == "[t=1.00, N=5] r=0.5000 K=2.000 net=ring"
        assert lines[1] == "[t=2.00, grid=4] A_mean=0.750 A_max=1.000 objects=1 tracked=0 net=spatial"
