import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv


def _load_env() -> None:
    env_file = os.getenv("ENV_FILE", "").strip()
    if env_file:
        load_dotenv(dotenv_path=env_file)
        return

    repo_root = Path(__file__).resolve().parents[2]
    parent_root = repo_root.parent
    candidates = [
        parent_root / ".env",
        repo_root / ".env",
        Path.cwd() / ".env",
    ]

    for candidate in candidates:
        if candidate.exists():
            load_dotenv(dotenv_path=candidate)
            return

    load_dotenv()


_load_env()


LENGTH_NAMES = ("short", "medium", "long")
DEFAULT_LENGTH_BUDGETS = {
    "short": (256, 50),
    "medium": (512, 100),
    "long": (1024, 200),
}


@dataclass(frozen=True)
class Settings:
    telegram_api_id: int
    telegram_api_hash: str
    telegram_bot_token: str
    session_name: str
    db_path: str
    openai_api_key: str
    openai_base_url: str
    openai_model: str
    openai_transcription_model: str
    openai_temperature: float
    openai_top_p: float
    openai_request_timeout_seconds: int
    ledger_capacity: int
    max_summarize_count: int
    ask_default_count: int
    default_summary_length: str
    length_budgets: dict[str, tuple[int, int]]
    idle_poll_seconds: float
    retry_cooldown_seconds: float
    retry_max_attempts: int
    command_channel_capacity: int
    prompt_char_budget: int
    fetch_batch_size: int
    delete_trigger_messages: bool
    stt_provider: str
    stt_model: str
    stt_device: str
    stt_compute_type: str
    log_level: str


def _int_env(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None or value.strip() == "":
        return default
    return int(value)


def _float_env(name: str, default: float) -> float:
    value = os.getenv(name)
    if value is None or value.strip() == "":
        return default
    return float(value)


def _bool_env(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "on"}:
        return True
    if normalized in {"0", "false", "no", "off"}:
        return False
    return default


def _required_env(name: str) -> str:
    value = os.getenv(name, "").strip()
    if not value:
        raise ValueError(f"Missing {name} in environment.")
    return value


def _length_budgets() -> dict[str, tuple[int, int]]:
    budgets: dict[str, tuple[int, int]] = {}
    for name in LENGTH_NAMES:
        default_tokens, default_words = DEFAULT_LENGTH_BUDGETS[name]
        tokens = max(16, _int_env(f"SUMMARY_{name.upper()}_TOKENS", default_tokens))
        words = max(10, _int_env(f"SUMMARY_{name.upper()}_WORDS", default_words))
        budgets[name] = (tokens, words)
    return budgets


def get_settings() -> Settings:
    api_id_text = _required_env("TG_API_ID")
    try:
        api_id = int(api_id_text)
    except ValueError as exc:
        raise ValueError(f"Invalid TG_API_ID: {api_id_text}") from exc

    default_length = os.getenv("DEFAULT_SUMMARY_LENGTH", "medium").strip().lower()
    if default_length not in LENGTH_NAMES:
        raise ValueError(f"Invalid DEFAULT_SUMMARY_LENGTH: {default_length}")

    max_summarize_count = max(1, _int_env("MAX_SUMMARIZE_COUNT", 200))

    return Settings(
        telegram_api_id=api_id,
        telegram_api_hash=_required_env("TG_API_HASH"),
        telegram_bot_token=_required_env("BOT_TOKEN"),
        session_name=os.getenv("SESSION_NAME", "./db/session"),
        db_path=os.getenv("DB_PATH", "./db/db.sqlite3"),
        openai_api_key=_required_env("OPENAI_API_KEY"),
        openai_base_url=os.getenv("OPENAI_BASE_URL", "https://api.openai.com/v1").strip(),
        openai_model=os.getenv("OPENAI_MODEL", "gpt-4o-mini").strip(),
        openai_transcription_model=os.getenv("OPENAI_TRANSCRIPTION_MODEL", "whisper-1").strip(),
        openai_temperature=_float_env("OPENAI_TEMPERATURE", 0.5),
        openai_top_p=_float_env("OPENAI_TOP_P", 0.5),
        openai_request_timeout_seconds=max(20, _int_env("OPENAI_REQUEST_TIMEOUT_SECONDS", 120)),
        ledger_capacity=max(1, _int_env("LEDGER_CAPACITY", 200)),
        max_summarize_count=max_summarize_count,
        ask_default_count=max(1, min(max_summarize_count, _int_env("ASK_DEFAULT_COUNT", 100))),
        default_summary_length=default_length,
        length_budgets=_length_budgets(),
        idle_poll_seconds=max(0.05, _float_env("IDLE_POLL_SECONDS", 1.0)),
        retry_cooldown_seconds=max(0.0, _float_env("RETRY_COOLDOWN_SECONDS", 60.0)),
        retry_max_attempts=max(0, _int_env("RETRY_MAX_ATTEMPTS", 0)),
        command_channel_capacity=max(1, _int_env("COMMAND_CHANNEL_CAPACITY", 1000)),
        prompt_char_budget=max(500, _int_env("PROMPT_CHAR_BUDGET", 12000)),
        fetch_batch_size=max(1, min(100, _int_env("FETCH_BATCH_SIZE", 100))),
        delete_trigger_messages=_bool_env("DELETE_TRIGGER_MESSAGES", True),
        stt_provider=os.getenv("STT_PROVIDER", "openai").strip().lower(),
        stt_model=os.getenv("STT_MODEL", "large-v3").strip(),
        stt_device=os.getenv("STT_DEVICE", "auto").strip().lower(),
        stt_compute_type=os.getenv("STT_COMPUTE_TYPE", "auto").strip().lower(),
        log_level=os.getenv("LOG_LEVEL", "INFO").strip().upper(),
    )
