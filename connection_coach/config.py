from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from connection_coach.ml.recommendations.config import DEFAULT_LIMIT, HISTORY_LIMIT
from connection_coach.ml.recommendations.score_calculator import ScoreWeights

PROJECT_ROOT = Path(__file__).resolve().parents[1]
DEFAULT_CONFIG_PATH = PROJECT_ROOT / "configs" / "config.yaml"


def load_config(path: Optional[Path] = None) -> Dict[str, Any]:
    cfg_path = Path(path or os.getenv("CONNECTION_COACH_CONFIG") or DEFAULT_CONFIG_PATH)
    if not cfg_path.exists():
        raise FileNotFoundError(f"{cfg_path} not found")
    with cfg_path.open("r", encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


@dataclass(frozen=True)
class RecommendationSettings:
    default_limit: int = DEFAULT_LIMIT
    history_limit: int = HISTORY_LIMIT
    weights: ScoreWeights = ScoreWeights()
    slow_call_ms: float = 500.0

    @classmethod
    def from_config(cls, cfg: Dict[str, Any]) -> "RecommendationSettings":
        rec = cfg.get("recommendations") or {}
        tel = cfg.get("telemetry") or {}
        return cls(
            default_limit=int(rec.get("default_limit", DEFAULT_LIMIT)),
            history_limit=int(rec.get("history_limit", HISTORY_LIMIT)),
            weights=ScoreWeights.from_mapping(rec.get("weights")),
            slow_call_ms=float(tel.get("slow_call_ms", 500)),
        )


def configure_logging(cfg: Dict[str, Any]) -> None:
    level = str((cfg.get("logging") or {}).get("level", "INFO")).upper()
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
