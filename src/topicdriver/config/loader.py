import json, os, pathlib
from typing import Mapping, Optional

from topicdriver.core.models import ConnectorOptions, Handler, PayloadMode

DEFAULT_PATH = pathlib.Path("config/driver.json")

def load_settings(path: Optional[pathlib.Path] = None) -> dict:
    p = pathlib.Path(path) if path else DEFAULT_PATH
    if not p.exists():
        return {}
    try:
        text = p.read_text(encoding="utf-8").strip()
        if not text:
            return {}
        data = json.loads(text)
        return data if isinstance(data, dict) else {}
    except Exception:
        # malformed JSON → fall back to defaults
        return {}

def get_driver_config(path: Optional[pathlib.Path] = None) -> dict:
    cfg = load_settings(path).get("driver", {})
    env = os.environ
    return {
        "url": env.get("TOPICDRIVER_URL") or str(cfg.get("url", "http://localhost:7070")),
        "period_seconds": float(env.get("TOPICDRIVER_PERIOD") or cfg.get("period_seconds", 30)),
        "timeout_seconds": float(env.get("TOPICDRIVER_TIMEOUT") or cfg.get("timeout_seconds", 30)),
        "payload": PayloadMode(env.get("TOPICDRIVER_PAYLOAD") or cfg.get("payload", "json")).value,
    }

def load_options(topics: Optional[Mapping[str, Handler]] = None, path: Optional[pathlib.Path] = None) -> ConnectorOptions:
    """Build ConnectorOptions from the settings file; handlers can't live in JSON so they're passed in."""
    cfg = get_driver_config(path)
    return ConnectorOptions(
        url=cfg["url"],
        period=cfg["period_seconds"],
        topics=dict(topics or {}),
        payload=PayloadMode(cfg["payload"]),
        timeout=cfg["timeout_seconds"],
    )
