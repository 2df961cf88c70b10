import os

import streamlit as st

from data_model import MIN_DURATION, floor_int
from utils.routine_config import RoutineConfig

ENV_KEYS = {
    "data_dir": "ROUTINE_DATA_DIR",
    "lead_in_seconds": "ROUTINE_LEAD_IN",
    "default_duration": "ROUTINE_DEFAULT_DURATION",
    "history_days": "ROUTINE_HISTORY_DAYS",
}


def get_secret(key: str):
    """Look up ``key`` in Streamlit secrets: top level first, then [routine_timer]."""
    try:
        if key in st.secrets:
            return st.secrets[key]
    except Exception:
        # no secrets.toml at all
        return None
    try:
        section = st.secrets.get("routine_timer", {})
        return section.get(key)
    except Exception:
        return None


def get_setting(env_key: str):
    value = get_secret(env_key)
    if value in (None, ""):
        value = os.getenv(env_key)
    return value


def load_config() -> RoutineConfig:
    cfg = RoutineConfig()
    for name, env_key in ENV_KEYS.items():
        value = get_setting(env_key)
        if value in (None, ""):
            continue
        if name == "data_dir":
            cfg.data_dir = str(value)
            continue
        parsed = floor_int(value)
        if parsed is None or parsed < 0:
            continue
        if name == "default_duration":
            parsed = max(MIN_DURATION, parsed)
        elif name == "history_days" and parsed == 0:
            continue
        setattr(cfg, name, parsed)
    return cfg
