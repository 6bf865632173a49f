"""Configuration and logging setup for the Linode API client."""

import logging
import os
import pathlib

import pydantic
import structlog

from .client import API_KEY_ENV_VAR, DEFAULT_BASE_URL, DEFAULT_TIMEOUT, LinodeClient

CONFIG_ENV_VAR = "LINODE_CONFIG_PATH"
logger = structlog.get_logger(__name__)


class ClientConfig(pydantic.BaseModel):
    """Configuration for the Linode API client."""

    api_key: str | None = pydantic.Field(
        None,
        description=f"API key, read from {API_KEY_ENV_VAR} when unset",
    )
    base_url: str = pydantic.Field(DEFAULT_BASE_URL, description="Base URL of the API")
    timeout: float = pydantic.Field(
        DEFAULT_TIMEOUT,
        description="Request timeout in seconds",
        gt=0,
    )
    log_level: str = pydantic.Field("INFO", description="Logging level")


def configure_logging(log_level_name: str) -> None:
    """Route client logs through structlog as logfmt lines on stdout.

    Unknown level names fall back to INFO.
    """
    log_level = getattr(logging, log_level_name.upper(), logging.INFO)
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.EventRenamer("msg"),
            structlog.processors.format_exc_info,
            structlog.processors.LogfmtRenderer(
                key_order=("timestamp", "level", "msg"),
            ),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=False,
    )


def load_config(config_path: str) -> ClientConfig:
    """Load a :class:`ClientConfig` from a JSON object file.

    Recognized keys are ``api_key``, ``base_url``, ``timeout`` and
    ``log_level``; omitted keys keep their defaults.

    Raises:
        FileNotFoundError: If the file does not exist.
        pydantic.ValidationError: If the file is not valid JSON or a value
            is out of range.
    """
    path = pathlib.Path(config_path)
    if not path.exists():
        msg = f"Configuration file not found: {config_path}"
        raise FileNotFoundError(msg)

    return ClientConfig.model_validate_json(path.read_text())


def create_client(config_path: str | None = None) -> LinodeClient:
    """Create a client from a config file, or from the environment alone.

    The path defaults to ``LINODE_CONFIG_PATH``; without either, defaults
    apply and the API key comes from ``LINODE_KEY``.
    """
    resolved_path = config_path or os.environ.get(CONFIG_ENV_VAR)
    config = load_config(resolved_path) if resolved_path else ClientConfig()
    configure_logging(config.log_level)

    client = LinodeClient(
        api_key=config.api_key,
        base_url=config.base_url,
        timeout=config.timeout,
    )
    logger.info("Created Linode client", base_url=client.base_url)
    return client
