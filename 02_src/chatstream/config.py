"""Project-level configuration and path helpers."""

import os
from dataclasses import dataclass
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent
LOGS_DIR = PROJECT_ROOT / "04_logs"
DEFAULT_LOG_PATH = LOGS_DIR / "app.log"

DEFAULT_SUBSCRIBER_CAPACITY = 20
DEFAULT_ALLOWED_COMMANDS = (
    "date",
    "echo",
    "hostname",
    "ls",
    "pwd",
    "uname",
    "uptime",
    "whoami",
)


@dataclass(frozen=True)
class Settings:
    """Runtime settings shared by the server and the console client."""

    api_host: str = "localhost"
    api_port: int = 3000
    server_url: str = "http://localhost:3000"
    subscriber_capacity: int = DEFAULT_SUBSCRIBER_CAPACITY
    char_delay: float = 0.05
    connect_timeout: float = 10.0
    command_timeout: float = 10.0
    allowed_commands: tuple[str, ...] = DEFAULT_ALLOWED_COMMANDS
    cors_origins: tuple[str, ...] = ("*",)
    log_level: str = "INFO"


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from None


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {raw!r}") from None


def _env_list(name: str, default: tuple[str, ...]) -> tuple[str, ...]:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return tuple(item.strip() for item in raw.split(",") if item.strip())


def load_settings() -> Settings:
    """Build Settings from environment variables."""
    api_host = os.getenv("API_HOST", "localhost")
    api_port = _env_int("API_PORT", 3000)

    capacity = _env_int("SUBSCRIBER_CAPACITY", DEFAULT_SUBSCRIBER_CAPACITY)
    if capacity < 1:
        raise ValueError("SUBSCRIBER_CAPACITY must be at least 1")

    return Settings(
        api_host=api_host,
        api_port=api_port,
        server_url=os.getenv("SERVER_URL", f"http://{api_host}:{api_port}"),
        subscriber_capacity=capacity,
        char_delay=_env_float("CHAR_DELAY", 0.05),
        connect_timeout=_env_float("CONNECT_TIMEOUT", 10.0),
        command_timeout=_env_float("COMMAND_TIMEOUT", 10.0),
        allowed_commands=_env_list("ALLOWED_COMMANDS", DEFAULT_ALLOWED_COMMANDS),
        cors_origins=_env_list("CORS_ORIGINS", ("*",)),
        log_level=os.getenv("LOG_LEVEL", "INFO"),
    )
