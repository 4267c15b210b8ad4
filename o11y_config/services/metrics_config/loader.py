"""
Two-phase loading of the metrics dashboard configuration.

The document is first decoded with its own field names, then re-read and
overlaid with environment overrides. Both phases must succeed; failures are
logged and re-raised unchanged.
"""

from pathlib import Path
from typing import Mapping, Optional, Union

import structlog

from o11y_config.core.config import settings
from o11y_config.services.metrics_config.decoder import decode_document
from o11y_config.services.metrics_config.exceptions import (
    ConfigFileError,
    DecodeError,
    OverlayError,
)
from o11y_config.services.metrics_config.overlay import resolve_overlay
from o11y_config.services.metrics_config.schemas import O11yConfig
from o11y_config.utils.logger import get_logger


def load_configs(
    raw: Union[bytes, str],
    logger: Optional[structlog.stdlib.BoundLogger] = None,
    environ: Optional[Mapping[str, str]] = None,
    *,
    strict: Optional[bool] = None,
    delimiter: Optional[str] = None,
    env_prefix: Optional[str] = None,
) -> O11yConfig:
    """
    Load configuration from a JSON document plus environment overrides.

    Args:
        raw: JSON configuration document
        logger: Structured logger for failures; defaults to this module's
        environ: Environment mapping; defaults to ``os.environ``
        strict: Fail on uncoercible overrides (default from settings)
        delimiter: Override path separator (default from settings)
        env_prefix: Override variable prefix (default from settings)

    Returns:
        The resolved configuration

    Raises:
        DecodeError: If the document cannot be decoded
        OverlayError: If environment overrides cannot be applied
    """
    log = logger or get_logger(__name__)

    try:
        document = decode_document(raw)
    except DecodeError as e:
        log.error("metrics_config_decode_failed", error=str(e))
        raise
    log.debug(
        "metrics_config_document_decoded",
        providers=[kind for kind, _ in document.configured_providers()],
    )

    try:
        config = resolve_overlay(
            raw,
            environ,
            delimiter=delimiter if delimiter is not None else settings.ENV_NESTED_DELIMITER,
            env_prefix=env_prefix if env_prefix is not None else settings.ENV_PREFIX,
            strict=strict if strict is not None else settings.STRICT_ENV_OVERRIDES,
            logger=log,
        )
    except OverlayError as e:
        log.error("metrics_config_overlay_failed", error=str(e), variable=e.variable)
        raise

    log.info(
        "metrics_config_loaded",
        providers=[kind for kind, _ in config.configured_providers()],
    )
    return config


def load_configs_from_file(
    path: Optional[Union[str, Path]] = None,
    logger: Optional[structlog.stdlib.BoundLogger] = None,
    environ: Optional[Mapping[str, str]] = None,
    **options: object,
) -> O11yConfig:
    """
    Read a configuration document from disk and load it.

    ``path`` defaults to the CONFIG_PATH setting. Remaining keyword options
    are passed to :func:`load_configs`.

    Raises:
        ConfigFileError: If no path is configured or the file cannot be read
    """
    log = logger or get_logger(__name__)
    config_path = path if path is not None else settings.CONFIG_PATH
    if not config_path:
        raise ConfigFileError("no configuration path given and O11Y_CONFIG_PATH is not set")

    try:
        raw = Path(config_path).read_bytes()
    except OSError as e:
        log.error("metrics_config_read_failed", path=str(config_path), error=str(e))
        raise ConfigFileError(f"cannot read configuration file {config_path}: {e}") from e

    return load_configs(raw, log, environ, **options)
