import os
from dataclasses import dataclass
from typing import List, Optional
import pathlib
import yaml


PACKAGE_ROOT = pathlib.Path(__file__).resolve().parent
DEFAULT_TEMPLATES_PATH = PACKAGE_ROOT / "templates.yml"
DEFAULT_PROMPTS_PATH = PACKAGE_ROOT / "prompts.yml"


@dataclass(frozen=True)
class Settings:
    openai_api_key: Optional[str]
    openai_model: str
    openai_max_tokens: int
    openai_temperature: float
    openai_timeout: float
    cors_allow_origins: List[str]
    api_tokens: List[str]
    auth_disabled: bool
    templates_path: pathlib.Path
    log_level: str
    prompts: dict


def load_settings() -> Settings:
    cors_env = os.getenv("CORS_ALLOW_ORIGINS", "*")
    cors = [o.strip() for o in cors_env.split(",") if o.strip()] or ["*"]
    tokens_env = os.getenv("API_AUTH_TOKENS", "")
    tokens = [t.strip() for t in tokens_env.split(",") if t.strip()]
    templates_env = os.getenv("TEMPLATES_PATH")
    return Settings(
        openai_api_key=os.getenv("OPENAI_API_KEY"),
        openai_model=os.getenv("OPENAI_MODEL", "gpt-4o"),
        openai_max_tokens=_env_number("OPENAI_MAX_TOKENS", int, 16000),
        openai_temperature=_env_number("OPENAI_TEMPERATURE", float, 0.2),
        openai_timeout=_env_number("OPENAI_TIMEOUT_SECONDS", float, 60.0),
        cors_allow_origins=cors,
        api_tokens=tokens,
        auth_disabled=_env_flag("AUTH_DISABLED"),
        templates_path=pathlib.Path(templates_env) if templates_env else DEFAULT_TEMPLATES_PATH,
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        prompts=_load_prompts(),
    )


def _env_flag(name: str) -> bool:
    return os.getenv(name, "false").lower() in {"1", "true", "yes"}


def _env_number(name: str, cast, default):
    raw = os.getenv(name)
    try:
        return cast(raw) if raw else default
    except ValueError:
        return default


def _load_prompts() -> dict:
    prompts_path = pathlib.Path(os.getenv("PROMPTS_PATH") or DEFAULT_PROMPTS_PATH)
    if not prompts_path.exists():
        return {}
    with open(prompts_path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        return {}
    return data
