import copy, os, threading
import toml

CONFIG_PATH = os.environ.get("DREAM_CONFIG", "config.toml")
_lock = threading.Lock()

DEFAULTS = {
    "server": {"port": 3000, "cors_origins": ["*"]},
    "limits": {"max_attempts": 20, "cooldown_hours": 24, "strict": True},
    "runware": {
        "api_url": "https://api.runware.ai/v1/tasks",
        "model": "civitai:4384@128713",
        "width": 512,
        "height": 512,
        "number_results": 1,
        "timeout": 120,
    },
    "logging": {"verbose": False},
}


def _merge(base, override):
    out = copy.deepcopy(base)
    for k, v in override.items():
        if isinstance(v, dict) and isinstance(out.get(k), dict):
            out[k] = _merge(out[k], v)
        else:
            out[k] = v
    return out


def load_config():
    with _lock:
        if not os.path.exists(CONFIG_PATH):
            return copy.deepcopy(DEFAULTS)
        return _merge(DEFAULTS, toml.load(CONFIG_PATH))

def get_limits(cfg=None):
    """Return (max_attempts, cooldown_ms, strict) from the [limits] table."""
    limits = (cfg or load_config()).get("limits", {})
    max_attempts = int(limits.get("max_attempts", 20))
    cooldown_ms = int(float(limits.get("cooldown_hours", 24)) * 60 * 60 * 1000)
    return max_attempts, cooldown_ms, bool(limits.get("strict", True))
