from __future__ import annotations

import pytest

from connection_coach.config import DEFAULT_CONFIG_PATH, RecommendationSettings, load_config
from connection_coach.ml.recommendations.config import DEFAULT_LIMIT, HISTORY_LIMIT


def _write(path, text):
    path.write_text(text, encoding="utf-8")
    return path


def test_default_config_file_loads():
    cfg = load_config(DEFAULT_CONFIG_PATH)
    settings = RecommendationSettings.from_config(cfg)
    assert settings.default_limit == 5
    assert settings.weights.category_balance == pytest.approx(0.70)


def test_env_var_overrides_path(tmp_path, monkeypatch):
    cfg_file = _write(tmp_path / "alt.yaml", "recommendations:\n  default_limit: 7\n")
    monkeypatch.setenv("CONNECTION_COACH_CONFIG", str(cfg_file))
    assert load_config() == {"recommendations": {"default_limit": 7}}


def test_missing_file_raises(tmp_path, monkeypatch):
    monkeypatch.setenv("CONNECTION_COACH_CONFIG", str(tmp_path / "nope.yaml"))
    with pytest.raises(FileNotFoundError):
        load_config()


def test_empty_file_is_empty_config(tmp_path):
    assert load_config(_write(tmp_path / "empty.yaml", "")) == {}


def test_weights_must_sum_to_one(tmp_path):
    cfg = load_config(
        _write(
            tmp_path / "bad.yaml",
            "recommendations:\n  weights:\n    category_balance: 0.5\n    engagement: 0.2\n    filters: 0.1\n",
        )
    )
    with pytest.raises(ValueError, match="sum to 1.0"):
        RecommendationSettings.from_config(cfg)


def test_from_config_maps_fields(tmp_path):
    cfg = load_config(
        _write(
            tmp_path / "custom.yaml",
            "recommendations:\n"
            "  default_limit: 8\n"
            "  history_limit: 40\n"
            "  weights:\n"
            "    category_balance: 0.6\n"
            "    engagement: 0.3\n"
            "    filters: 0.1\n"
            "telemetry:\n"
            "  slow_call_ms: 250\n",
        )
    )
    settings = RecommendationSettings.from_config(cfg)
    assert settings.default_limit == 8
    assert settings.history_limit == 40
    assert settings.slow_call_ms == 250.0
    assert settings.weights.engagement == pytest.approx(0.3)


def test_from_config_defaults_when_sections_missing():
    settings = RecommendationSettings.from_config({})
    assert settings.default_limit == DEFAULT_LIMIT
    assert settings.history_limit == HISTORY_LIMIT
    assert settings.slow_call_ms == 500.0
