"""Service configuration read from the environment."""

from __future__ import annotations

import os
import re
from collections.abc import Mapping
from dataclasses import dataclass, field

from dotenv import load_dotenv

from . import logger

DEFAULT_MODELS = "gpt-4.1-mini,claude-3-7-sonnet,grok-3-mini,qwen-qwq"

_BOOLS = {
    **dict.fromkeys(("1", "t", "T", "TRUE", "true", "True"), True),
    **dict.fromkeys(("0", "f", "F", "FALSE", "false", "False"), False),
}


class ConfigError(ValueError):
    """Raised when the environment holds an invalid configuration."""


@dataclass
class Config:
    """Settings of the proxy service."""

    port: str = "8080"
    api_key: str = ""
    user_ids: list[str] = field(default_factory=list)
    http_proxy: str = ""
    models: list[str] = field(default_factory=lambda: DEFAULT_MODELS.split(","))
    retry: int = 1
    chat_delete: bool = False


def load_config(environ: Mapping[str, str] | None = None) -> Config:
    """Build a Config from ``environ``, or from a ``.env`` file and the process environment."""
    if environ is None:
        load_dotenv()
        environ = os.environ

    user_ids = environ.get("USERIDS", "")
    if not user_ids:
        raise ConfigError("USERIDS is empty")

    retry = environ.get("RETRY") or "1"
    if not re.fullmatch(r"[+-]?[0-9]+", retry):
        raise ConfigError("RETRY is not a number")

    chat_delete = environ.get("CHAT_DELETE") or "false"
    logger.info("CHAT_DELETE: %s", chat_delete)
    if chat_delete not in _BOOLS:
        raise ConfigError("CHAT_DELETE should be true or false")

    return Config(
        port=environ.get("PORT") or "8080",
        api_key=environ.get("APIKEY", ""),
        user_ids=user_ids.split(","),
        http_proxy=environ.get("http_proxy") or environ.get("HTTP_PROXY", ""),
        models=(environ.get("MODELS") or DEFAULT_MODELS).split(","),
        retry=max(int(retry), 1),
        chat_delete=_BOOLS[chat_delete],
    )