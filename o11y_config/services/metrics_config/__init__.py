"""Observability dashboard configuration: schema, two-phase loader and lookups."""

from o11y_config.services.metrics_config.decoder import decode_document
from o11y_config.services.metrics_config.exceptions import (
    ConfigFileError,
    DecodeError,
    MetricsConfigError,
    OverlayError,
)
from o11y_config.services.metrics_config.loader import load_configs, load_configs_from_file
from o11y_config.services.metrics_config.overlay import resolve_overlay
from o11y_config.services.metrics_config.schemas import (
    Application,
    Dashboard,
    Graph,
    MetricsConfigProvider,
    O11yConfig,
    ProviderDescriptor,
    Row,
    Threshold,
)

__all__ = [
    "Application",
    "ConfigFileError",
    "Dashboard",
    "DecodeError",
    "Graph",
    "MetricsConfigError",
    "MetricsConfigProvider",
    "O11yConfig",
    "OverlayError",
    "ProviderDescriptor",
    "Row",
    "Threshold",
    "decode_document",
    "load_configs",
    "load_configs_from_file",
    "resolve_overlay",
]
