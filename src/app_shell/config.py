import logging
import os

from src.rules.models import Rules

logger = logging.getLogger(__name__)


class ConfigurationError(Exception):
    """Rules are valid YAML but cannot be used to start the app."""


def validate_backend_rules(rules: Rules) -> None:
    """
    Validate operational requirements before startup.

    Raises ConfigurationError listing every problem found.
    """
    backend = rules.backend
    problems = []

    # 1. Remote backend needs a URL and its key in the environment
    if backend.kind == "remote":
        if not backend.url:
            problems.append("backend.url is required when backend.kind is 'remote'")
        if not os.environ.get(backend.api_key_env):
            problems.append(f"missing required environment variable: {backend.api_key_env}")

    # 2. Cache namespace must be usable as a key prefix
    if not rules.cache.key_prefix.strip():
        problems.append("cache.key_prefix must not be empty")

    if problems:
        raise ConfigurationError("; ".join(problems))

    logger.info("Configuration validated (backend=%s)", backend.kind)
