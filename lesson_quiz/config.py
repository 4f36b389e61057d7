from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path

CONFIG_PATH = Path(__file__).resolve().parent.parent / "config.json"

DEFAULTS = {
    "score_webhook_url": "",
    "score_webhook_timeout": 10.0,
    "auto_record_score": True,
    "bonus_points": 1,
    "default_difficulty": "medium",
    "host": "127.0.0.1",
    "port": 8765,
}


@dataclass
class Settings:
    score_webhook_url: str = DEFAULTS["score_webhook_url"]
    score_webhook_timeout: float = DEFAULTS["score_webhook_timeout"]
    auto_record_score: bool = DEFAULTS["auto_record_score"]
    bonus_points: int = DEFAULTS["bonus_points"]
    default_difficulty: str = DEFAULTS["default_difficulty"]
    host: str = DEFAULTS["host"]
    port: int = DEFAULTS["port"]

    def to_dict(self) -> dict:
        return {
            "score_webhook_url": self.score_webhook_url,
            "score_webhook_timeout": self.score_webhook_timeout,
            "auto_record_score": self.auto_record_score,
            "bonus_points": self.bonus_points,
            "default_difficulty": self.default_difficulty,
            "host": self.host,
            "port": self.port,
        }


def load_settings() -> Settings:
    if CONFIG_PATH.exists():
        raw = json.loads(CONFIG_PATH.read_text())
        known = {f.name for f in Settings.__dataclass_fields__.values()}
        filtered = {k: v for k, v in raw.items() if k in known}
        return Settings(**filtered)
    return Settings()


def save_settings(settings: Settings) -> None:
    CONFIG_PATH.write_text(json.dumps(settings.to_dict(), indent=4) + "\n")
