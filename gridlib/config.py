import json

from gridlib.errors import ConfigError

DEFAULT_CONFIG = {
    "interval": 500,                 # ms between frames
    "scale": None,                   # integer upscale factor
    "pad_x": 0,
    "pad_y": 0,
    "performance_log": False,
    "parked_position": (0, 0),       # where unused identities wait
    "monitor_index": 0,
    "surface_size": None,            # (width, height); queried when None
    "batch_count": 4,
    "delete_mode": "park",           # "park" or "remove"
    "control_address": "tcp://127.0.0.1:5556",
    "threshold": 128,
    "max_width": 64,
    "max_height": 64,
    "loop": False
}


def _check_pair(config, key):
    value = config[key]
    if value is None and key == "surface_size":
        return
    if not isinstance(value, (list, tuple)) or len(value) != 2:
        raise ConfigError(f"'{key}' must be a pair of numbers, got {value!r}")
    if not all(isinstance(v, (int, float)) and not isinstance(v, bool) for v in value):
        raise ConfigError(f"'{key}' must be a pair of numbers, got {value!r}")
    config[key] = tuple(value)


def _check_int(config, key, minimum, allow_none=False):
    value = config[key]
    if value is None and allow_none:
        return
    if not isinstance(value, int) or isinstance(value, bool) or value < minimum:
        raise ConfigError(f"'{key}' must be an integer >= {minimum}, got {value!r}")


def validate_config(config):
    """Check value types and ranges. Raises ConfigError."""
    unknown = set(config) - set(DEFAULT_CONFIG)
    if unknown:
        raise ConfigError(f"Unknown configuration keys: {', '.join(sorted(unknown))}")

    if not isinstance(config["interval"], (int, float)) or config["interval"] < 0:
        raise ConfigError(f"'interval' must be a non-negative number, got {config['interval']!r}")
    _check_int(config, "scale", 1, allow_none=True)
    _check_int(config, "pad_x", 0)
    _check_int(config, "pad_y", 0)
    _check_int(config, "monitor_index", 0)
    _check_int(config, "batch_count", 1)
    _check_int(config, "max_width", 1)
    _check_int(config, "max_height", 1)
    _check_int(config, "threshold", 0)
    _check_pair(config, "parked_position")
    _check_pair(config, "surface_size")
    if config["delete_mode"] not in ("park", "remove"):
        raise ConfigError(f"'delete_mode' must be 'park' or 'remove', got {config['delete_mode']!r}")
    return config


def load_config(file_path=None, overrides=None):
    """Defaults, then the JSON file (if any), then overrides that are not None."""
    config = dict(DEFAULT_CONFIG)
    if file_path:
        try:
            with open(file_path, 'r') as f:
                loaded = json.load(f)
        except (OSError, ValueError) as e:
            raise ConfigError(f"Could not read config {file_path}: {e}") from e
        if not isinstance(loaded, dict):
            raise ConfigError(f"Config {file_path} must contain a JSON object")
        config.update(loaded)

    for key, value in (overrides or {}).items():
        if value is not None:
            config[key] = value

    return validate_config(config)
