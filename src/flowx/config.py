# src/flowx/config.py

"""Centralized settings loaded from environment variables (+ optional .env).

Design goals:
- One Settings object for the whole app.
- No secrets required at import time.
- Components receive settings by injection; get_settings() is only used by the composition root.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

ENV_PREFIX = "FLOWX"

load_dotenv(override=False)


def _k(suffix: str) -> str:
    """Build env var name with the project prefix."""
    return f"{ENV_PREFIX}_{suffix}"


def _env(name: str, default: str = "") -> str:
    v = os.getenv(name)
    return default if v is None else v


def _first_env(*names: str, default: str | None = None) -> str | None:
    for n in names:
        v = os.getenv(n)
        if v is not None and v.strip() != "":
            return v
    return default


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _env_list(name: str, default: list[str]) -> list[str]:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return list(default)
    return [p.strip() for p in raw.replace(",", " ").split() if p.strip()]


def _env_path(name: str, default: Path) -> Path:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return Path(raw).expanduser()


@dataclass(frozen=True, slots=True)
class Settings:
    # ---- App / logging ----
    app_name: str
    log_level: str

    # ---- Local data paths (ignored by git) ----
    data_dir: Path
    storage_db_path: Path

    # ---- Scoring / countdown ----
    late_credit: float
    countdown_interval_seconds: float

    # ---- LLM / OpenRouter ----
    openrouter_api_key: str | None
    openrouter_base_url: str
    llm_models: list[str]
    extra_headers: dict[str, str]
    ai_timeout_seconds: float

    # ---- Voice (optional TTS) ----
    tts_mode: bool
    speaker_wav: str
    xtts_speaker_name: str
    xtts_language: str

    llm_first_token_timeout_seconds: float
    llm_read_timeout_seconds: float
    llm_connect_timeout_seconds: float

    @staticmethod
    def from_env() -> "Settings":
        app_name = _first_env(_k("APP_NAME"), default="flow-x") or "flow-x"
        log_level = _env(_k("LOG_LEVEL"), "INFO")

        data_dir = _env_path(_k("DATA_DIR"), Path(".local/flowx"))
        storage_db_path = _env_path(_k("STORAGE_DB_PATH"), data_dir / "flowx.sqlite3")

        # Clamp to [0, 1]: a late completion never earns more than an on-time one.
        late_credit = min(1.0, max(0.0, _env_float(_k("LATE_CREDIT"), 0.5)))
        countdown_interval_seconds = max(0.05, _env_float(_k("COUNTDOWN_INTERVAL_SECONDS"), 1.0))

        openrouter_api_key = _first_env(_k("OPENROUTER_API_KEY"), "OPENROUTER_API_KEY", default=None)
        openrouter_base_url = _env(_k("OPENROUTER_BASE_URL"), "https://openrouter.ai/api/v1")

        http_referer = _env(_k("HTTP_REFERER"), "https://example.com")
        title = _env(_k("APP_TITLE"), app_name)
        extra_headers = {
            "HTTP-Referer": http_referer,
            "X-Title": title,
        }

        llm_models = _env_list(
            _k("LLM_MODELS"),
            [
                "google/gemini-2.0-flash-exp:free",
                "qwen/qwen-2.5-72b-instruct:free",
                "deepseek/deepseek-chat-v3-0324:free",
            ],
        )
        ai_timeout_seconds = max(1.0, _env_float(_k("AI_TIMEOUT_SECONDS"), 20.0))

        tts_mode = _env_bool(_k("TTS_MODE"), False)
        speaker_wav = _env(_k("SPEAKER_WAV"), "")
        xtts_speaker_name = _env(_k("XTTS_SPEAKER_NAME"), "Ana Florence")
        xtts_language = _env(_k("XTTS_LANGUAGE"), "en")

        first_token = _env_float(_k("LLM_FIRST_TOKEN_TIMEOUT_SECONDS"), 20.0)
        read_timeout = _env_float(_k("LLM_READ_TIMEOUT_SECONDS"), 25.0)
        connect_timeout = _env_float(_k("LLM_CONNECT_TIMEOUT_SECONDS"), 5.0)

        return Settings(
            app_name=app_name,
            log_level=log_level,
            data_dir=data_dir,
            storage_db_path=storage_db_path,
            late_credit=late_credit,
            countdown_interval_seconds=countdown_interval_seconds,
            openrouter_api_key=openrouter_api_key,
            openrouter_base_url=openrouter_base_url,
            llm_models=llm_models,
            extra_headers=extra_headers,
            ai_timeout_seconds=ai_timeout_seconds,
            tts_mode=tts_mode,
            speaker_wav=speaker_wav,
            xtts_speaker_name=xtts_speaker_name,
            xtts_language=xtts_language,
            llm_first_token_timeout_seconds=first_token,
            # keep read >= first_token as a sane baseline
            llm_read_timeout_seconds=max(read_timeout, first_token),
            llm_connect_timeout_seconds=connect_timeout,
        )


_SETTINGS: Settings | None = None


def get_settings() -> Settings:
    global _SETTINGS
    if _SETTINGS is None:
        _SETTINGS = Settings.from_env()
    return _SETTINGS
