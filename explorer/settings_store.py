import configparser
from pathlib import Path

SETTINGS_PATH = Path(__file__).with_name("explore.ini")
SECTION = "explore"

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")

# Empty string means "not set": random seed, or no limit.
DEFAULT_SETTINGS = {
    "seed": "",
    "max_states": "",
    "max_expanded": "",
    "max_seconds": "",
    "draw_group": "3",
    "strict_runs": "false",
    "log_level": "INFO",
}


def _optional_number(raw, cast, minimum):
    raw = str(raw).strip()
    if raw in ("", "None"):
        return ""
    try:
        value = cast(raw)
    except ValueError:
        return ""
    if value < minimum:
        return ""
    return str(value)


def _sanitize(settings):
    data = dict(DEFAULT_SETTINGS)
    data.update({k: v for k, v in settings.items() if k in DEFAULT_SETTINGS})

    data["seed"] = _optional_number(data["seed"], int, 0)
    data["max_states"] = _optional_number(data["max_states"], int, 1)
    data["max_expanded"] = _optional_number(data["max_expanded"], int, 0)
    data["max_seconds"] = _optional_number(data["max_seconds"], float, 0.0)

    group = _optional_number(data["draw_group"], int, 1)
    data["draw_group"] = group if group else DEFAULT_SETTINGS["draw_group"]

    strict = str(data["strict_runs"]).strip().lower()
    data["strict_runs"] = "true" if strict in ("1", "true", "yes", "on") else "false"

    level = str(data["log_level"]).strip().upper()
    data["log_level"] = level if level in LOG_LEVELS else DEFAULT_SETTINGS["log_level"]
    return data


def load_settings(path=None):
    path = Path(path) if path is not None else SETTINGS_PATH
    if not path.exists():
        return dict(DEFAULT_SETTINGS)
    parser = configparser.ConfigParser()
    try:
        parser.read(path, encoding="utf-8")
    except configparser.Error:
        return dict(DEFAULT_SETTINGS)
    if SECTION not in parser:
        return dict(DEFAULT_SETTINGS)
    raw = {key: parser[SECTION].get(key, default) for key, default in DEFAULT_SETTINGS.items()}
    return _sanitize(raw)


def save_settings(settings, path=None):
    path = Path(path) if path is not None else SETTINGS_PATH
    parser = configparser.ConfigParser()
    parser[SECTION] = _sanitize(settings)
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as f:
        parser.write(f)
