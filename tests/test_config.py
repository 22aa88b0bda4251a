"""Tests for config dataclasses and defaults.json loading."""
import json
from pathlib import Path
from types import SimpleNamespace

import pytest

from kuramoto_field.config import FieldCfg, KuramotoCfg, _config_to_dict, load_defaults
from kuramoto_field.errors import ConfigurationError, KuramotoFieldError

REPO_DEFAULTS = Path(__file__).resolve().parent.parent / "defaults.json"


class TestCfg:
    def test_defaults(self):
        k = KuramotoCfg()
        assert (k.N, k.K, k.dt, k.frequency_std, k.history_max) == (50, 2.0, 0.05, 1.0, 10000)
        f = FieldCfg()
        assert f.grid_size == 32 and f.N == 1024
        assert (f.K_stim, f.K_feat, f.spatial_range, f.spatial_decay) == (1.5, 2.0, 4.0, 0.3)
        assert f.num_features == 3 and f.frequency_std == 0.5 and f.history_max == 500

    def test_from_dict_aliases_and_overrides(self):
        cfg = KuramotoCfg.from_dict({"n": 10, "noiseLevel": 0.1, "K": None, "bogus": 1}, k=4)
        assert cfg.N == 10 and cfg.noise_level == 0.1 and cfg.K == 4.0

    def test_none_keeps_default(self):
        assert FieldCfg.from_dict({"gridSize": None}).grid_size == 32

    def test_zero_is_not_replaced(self):
        cfg = KuramotoCfg.from_dict({"K": 0, "noiseLevel": 0})
        assert cfg.K == 0.0 and cfg.noise_level == 0.0

    def test_from_object(self):
        cfg = FieldCfg.from_dict(SimpleNamespace(grid_size=8, num_features=2))
        assert cfg.N == 64 and cfg.num_features == 2
        assert KuramotoCfg.from_dict(KuramotoCfg(N=7)).N == 7

    def test_unsupported_source(self):
        with pytest.raises(ConfigurationError):
            _config_to_dict(5)

    @pytest.mark.parametrize("bad", [{"N": 0}, {"N": "many"}, {"dt": "fast"},
                                     {"dt": float("inf")}, {"history_max": 0}])
    def test_validation(self, bad):
        with pytest.raises(ConfigurationError):
            KuramotoCfg(**bad)

    def test_unbounded_history_allowed(self):
        assert KuramotoCfg(history_max=None).history_max is None

    def test_merged_validates(self):
        cfg = FieldCfg(grid_size=8)
        assert cfg.merged({"gridSize": 10}).grid_size == 10
        assert cfg.grid_size == 8
        with pytest.raises(ConfigurationError):
            cfg.merged({"num_features": 0})

    def test_error_hierarchy(self):
        assert issubclass(ConfigurationError, KuramotoFieldError)
        assert issubclass(ConfigurationError, ValueError)


class TestLoadDefaults:
    def test_repo_file(self):
        d = load_defaults(str(REPO_DEFAULTS))
        assert d["kuramoto"].N == 50 and d["kuramoto"].seed == 0
        assert d["field"].grid_size == 32 and d["field"].spatial_range == 4.0

    def test_partial_sections(self, tmp_path):
        p = tmp_path / "defaults.json"
        p.write_text(json.dumps({"field": {"gridSize": 8}}))
        d = load_defaults(str(p))
        assert d["field"].grid_size == 8
        assert d["kuramoto"] == KuramotoCfg()

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigurationError):
            load_defaults(str(tmp_path / "nope.json"))

    def test_bad_json(self, tmp_path):
        p = tmp_path / "defaults.json"
        p.write_text("{'kuramoto': {}}")
        with pytest.raises(ConfigurationError):
            load_defaults(str(p))

    def test_non_object(self, tmp_path):
        p = tmp_path / "defaults.json"
        p.write_text("[1, 2]")
        with pytest.raises(ConfigurationError):
            load_defaults(str(p))

    def test_invalid_values(self, tmp_path):
        p = tmp_path / "defaults.json"
        p.write_text(json.dumps({"kuramoto": {"dt": -1}}))
        with pytest.raises(ConfigurationError):
            load_defaults(str(p))
