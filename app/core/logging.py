"""Logging setup for the messaging backend.

Configuration comes from a YAML dictConfig under config/, picked per
environment (config/logging.<env>.yaml, then config/logging.yaml).
"""

import logging
import logging.config
import os
from pathlib import Path
from typing import Optional

import yaml

CONFIG_DIR = Path(__file__).resolve().parent.parent.parent / "config"
APP_LOGGER = "app"


def resolve_logging_config(
    config_path: Optional[str] = None, environment: Optional[str] = None
) -> Path:
    """
    Pick the logging config file.

    LOG_CFG in the environment wins over an explicit path; without either the
    environment-specific file is used when present.
    """
    override = os.getenv("LOG_CFG", config_path)
    if override:
        return Path(override)

    environment = (environment or os.getenv("ENVIRONMENT", "development")).lower()
    env_config = CONFIG_DIR / f"logging.{environment}.yaml"
    if env_config.exists():
        return env_config
    return CONFIG_DIR / "logging.yaml"


def setup_logging(
    config_path: Optional[str] = None,
    default_level: int = logging.INFO,
    level_override: Optional[str] = None,
) -> Path:
    """
    Configure logging from YAML, falling back to basicConfig.

    Args:
        config_path: Explicit config file; LOG_CFG still takes precedence
        default_level: Level used by the basicConfig fallback
        level_override: Level name forced on the "app" logger (e.g. "DEBUG")

    Returns:
        The config path that was tried.
    """
    path = resolve_logging_config(config_path)
    logger = logging.getLogger(__name__)

    if not path.exists():
        logging.basicConfig(level=default_level)
        logger.warning(f"Logging config not found at {path}; using basic config")
    else:
        try:
            with open(path, "r") as f:
                logging.config.dictConfig(yaml.safe_load(f))
        except (OSError, ValueError, TypeError, yaml.YAMLError) as e:
            logging.basicConfig(level=default_level)
            logger.warning(f"Invalid logging config {path}, using basic config: {e}")
        else:
            logger.info(f"Logging configured from {path}")

    if level_override:
        logging.getLogger(APP_LOGGER).setLevel(level_override.upper())

    return path


def get_logger(name: str) -> logging.Logger:
    """Module logger; callers pass __name__."""
    return logging.getLogger(name)


def configure_sqlalchemy_logging(echo: bool = False, echo_pool: bool = False) -> None:
    """Turn SQL statement and pool logging on or off."""
    for name, enabled in (("sqlalchemy.engine", echo), ("sqlalchemy.pool", echo_pool)):
        logging.getLogger(name).setLevel(logging.INFO if enabled else logging.WARNING)


def log_startup_info(settings) -> None:
    """Log the settings that shape messaging behaviour."""
    logger = get_logger(__name__)
    logger.info(f"{settings.PROJECT_NAME} starting ({settings.ENVIRONMENT})")
    logger.info(
        f"Realtime gateway at {settings.WS_PATH}; "
        f"message rate limit {settings.MESSAGE_RATE_LIMIT_PER_MINUTE}"
        f"/{settings.RATE_LIMIT_WINDOW_SECONDS}s"
    )
    logger.info(f"Storage call timeout {settings.STORAGE_TIMEOUT_SECONDS}s")


def log_shutdown_info(settings, online_users: int = 0) -> None:
    logger = get_logger(__name__)
    logger.info(
        f"{settings.PROJECT_NAME} shutting down; "
        f"dropping {online_users} realtime connections"
    )
