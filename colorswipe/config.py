# colorswipe/config.py
from __future__ import annotations
import json, logging, os
from typing import Dict, Any

from pathlib import Path

logger = logging.getLogger(__name__)

PKG_DIR = Path(__file__).resolve().parent


def data_dir() -> Path:
    # COLORSWIPE_HOME wins so tests and portable installs can redirect all files
    env = os.environ.get("COLORSWIPE_HOME")
    return Path(env).expanduser() if env else Path.home() / ".colorswipe"


def _abs(path: str) -> str:
    p = Path(path).expanduser()
    return str(p) if p.is_absolute() else str((PKG_DIR / p).resolve())


CONFIG_PATH = data_dir() / "config.json"
STORAGE_PATH = data_dir() / "storage.json"

DEFAULT_CFG: Dict[str, Any] = {
    "display": {"fullscreen": False, "fps": 60, "windowed_size": [540, 960]},
    "backend": {
        "url": "",
        "api_key": "",
        "table": "scores",
        "timeout_sec": 5.0,
        "sync_interval_sec": 30.0,
    },
    "input": {"swipe_threshold_px": 50},
    "modes": {
        "NORMAL": {"initial_ms": 1500, "step_ms": 50, "floor_ms": 500},
        "HARD":   {"initial_ms": 1200, "step_ms": 75, "floor_ms": 300},
        "INSANE": {"initial_ms": 1300, "step_ms": 40, "floor_ms": 400},
    },
    "revive": {"prompt_sec": 5.0, "countdown_step_ms": 700},
    "skins": {"directory": "assets/skins", "price": 1000},
}

def _deepcopy(obj):
    return json.loads(json.dumps(obj))

def _merge(dst: dict, src: dict) -> dict:
    for k, v in src.items():
        if isinstance(v, dict) and isinstance(dst.get(k), dict):
            _merge(dst[k], v)
        else:
            dst[k] = v
    return dst

def _sanitize_cfg(cfg: dict) -> dict:
    d = cfg["display"]
    d["fullscreen"] = bool(d.get("fullscreen", False))
    d["fps"] = int(max(30, min(240, d.get("fps", 60))))
    ws = d.get("windowed_size", [540, 960])
    if isinstance(ws, (list, tuple)) and len(ws) == 2 and all(isinstance(x, (int, float)) for x in ws):
        w, h = max(200, min(10000, int(ws[0]))), max(200, min(10000, int(ws[1])))
        d["windowed_size"] = [w, h]
    else:
        d["windowed_size"] = [540, 960]

    b = cfg["backend"]
    b["url"] = str(b.get("url") or "").rstrip("/")
    b["api_key"] = str(b.get("api_key") or "")
    b["table"] = str(b.get("table") or "scores")
    b["timeout_sec"] = float(max(0.5, min(60.0, b.get("timeout_sec", 5.0))))
    b["sync_interval_sec"] = float(max(5.0, min(3600.0, b.get("sync_interval_sec", 30.0))))

    i = cfg["input"]
    i["swipe_threshold_px"] = int(max(5, min(500, i.get("swipe_threshold_px", 50))))

    r = cfg["revive"]
    r["prompt_sec"] = float(max(1.0, min(30.0, r.get("prompt_sec", 5.0))))
    r["countdown_step_ms"] = int(max(100, min(3000, r.get("countdown_step_ms", 700))))

    s = cfg["skins"]
    s["directory"] = _abs(str(s.get("directory") or "assets/skins"))
    s["price"] = int(max(1, min(1_000_000, s.get("price", 1000))))

    cfg["config_path"] = str(CONFIG_PATH)
    cfg["storage_path"] = str(STORAGE_PATH)
    return cfg

def save_config(partial_cfg: dict) -> None:
    try:
        with open(CONFIG_PATH, "r", encoding="utf-8") as f:
            base = json.load(f)
        if not isinstance(base, dict): base = {}
    except FileNotFoundError:
        base = {}
    except (OSError, json.JSONDecodeError) as e:
        logger.warning("Could not read %s, rewriting it: %s", CONFIG_PATH, e)
        base = {}
    merged = _merge(base, partial_cfg)
    try:
        CONFIG_PATH.parent.mkdir(parents=True, exist_ok=True)
        with open(CONFIG_PATH, "w", encoding="utf-8") as f:
            json.dump(merged, f, ensure_ascii=False, indent=2)
    except OSError as e:
        logger.warning("Could not save config to %s: %s", CONFIG_PATH, e)

def load_config(path: Path | None = None) -> dict:
    cfg = _deepcopy(DEFAULT_CFG)
    src = path or CONFIG_PATH
    try:
        with open(src, "r", encoding="utf-8") as f:
            user = json.load(f)
        if isinstance(user, dict):
            _merge(cfg, user)
        else:
            logger.warning("Ignoring %s: top level is not an object", src)
    except FileNotFoundError:
        pass
    except (OSError, json.JSONDecodeError) as e:
        logger.warning("Could not load config from %s: %s", src, e)
    return _sanitize_cfg(cfg)

def persist_windowed_size(width: int, height: int) -> None:
    save_config({"display": {"windowed_size": [int(width), int(height)]}})

CFG = load_config()
