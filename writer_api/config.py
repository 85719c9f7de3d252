from __future__ import annotations
import os
from pathlib import Path
from typing import Dict, List, Optional

from pydantic import BaseModel, Field

OPENAI_ENDPOINT = "https://api.openai.com/v1/chat/completions"
OPENAI_MODEL = "gpt-4o"

# Checked in order when resolving the process-wide credential
API_KEY_VARS = ("OPENAI_API_KEY", "NEXT_PUBLIC_OPENAI_API_KEY")


class Settings(BaseModel):
    """Process-wide configuration, read once at startup and passed to constructors."""

    openai_api_key: str = Field("", description="Fallback credential when a request carries none")
    openai_endpoint: str = OPENAI_ENDPOINT
    model: str = OPENAI_MODEL
    temperature: float = 0.7
    max_tokens: int = 1000
    timeout_secs: float = Field(30.0, description="Per-call HTTP timeout")
    deadline_secs: float = Field(60.0, description="Budget for one completion including retries")
    retry_max_attempts: int = 3
    retry_initial_delay: float = 1.0
    retry_max_delay: float = 10.0
    allow_origins: List[str] = Field(default_factory=lambda: ["*"])
    log_level: str = "INFO"


def read_dotenv(path: str | Path) -> Dict[str, str]:
    """Parse KEY=VALUE lines from a .env file; a missing or unreadable file yields {}."""
    env_path = Path(path)
    if not env_path.is_file():
        return {}
    try:
        lines = env_path.read_text(encoding="utf-8").splitlines()
    except (OSError, UnicodeDecodeError):
        return {}
    values: Dict[str, str] = {}
    for line in lines:
        s = line.strip()
        if not s or s.startswith("#") or "=" not in s:
            continue
        key, val = s.split("=", 1)
        key = key.strip()
        if key.startswith("export "):
            key = key[len("export "):].strip()
        val = val.strip()
        if len(val) >= 2 and val[0] == val[-1] and val[0] in {'"', "'"}:
            val = val[1:-1]
        if key:
            values[key] = val
    return values


def process_env() -> Dict[str, str]:
    """os.environ layered over .env, which is ignored under pytest."""
    env: Dict[str, str] = {}
    if not os.getenv("PYTEST_CURRENT_TEST"):
        env.update(read_dotenv(os.getenv("DOTENV_PATH", ".env")))
    env.update(os.environ)
    return env


def _env_float(env: Dict[str, str], name: str, default: float) -> float:
    raw = (env.get(name) or "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _env_int(env: Dict[str, str], name: str, default: int) -> int:
    raw = (env.get(name) or "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def load_settings(env: Optional[Dict[str, str]] = None) -> Settings:
    """Build Settings from the process environment (or an explicit mapping).

    Malformed numeric values fall back to their defaults rather than failing startup.
    """
    if env is None:
        env = process_env()
    origins = [o.strip() for o in env.get("ALLOW_ORIGINS", "*").split(",") if o.strip()]
    attempts = _env_int(env, "RETRY_MAX_ATTEMPTS", 3)
    api_key = next((env[k].strip() for k in API_KEY_VARS if (env.get(k) or "").strip()), "")
    return Settings(
        openai_api_key=api_key,
        openai_endpoint=(env.get("OPENAI_ENDPOINT") or OPENAI_ENDPOINT).strip(),
        model=(env.get("OPENAI_MODEL") or OPENAI_MODEL).strip(),
        temperature=_env_float(env, "TEMPERATURE", 0.7),
        max_tokens=_env_int(env, "LLM_MAX_TOKENS", 1000),
        timeout_secs=_env_float(env, "LLM_TIMEOUT_SECS", 30.0),
        deadline_secs=_env_float(env, "LLM_DEADLINE_SECS", 60.0),
        retry_max_attempts=max(1, attempts),
        retry_initial_delay=_env_float(env, "RETRY_INITIAL_DELAY", 1.0),
        retry_max_delay=_env_float(env, "RETRY_MAX_DELAY", 10.0),
        allow_origins=origins or ["*"],
        log_level=(env.get("LOG_LEVEL") or "INFO").strip().upper(),
    )
