"""
Schema of the observability dashboard configuration document.

A root :class:`O11yConfig` holds one :class:`MetricsConfigProvider` per
metrics backend. Each provider lists applications, which own dashboards,
which own rows of graphs. The tree is built once at load time and never
mutated afterwards; the lookup helpers below only navigate it.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict

from o11y_config.services.metrics_config.naming import config_field


class MetricsConfigModel(BaseModel):
    """Common model settings: immutable, unknown keys ignored."""

    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)


class Threshold(MetricsConfigModel):
    """Alert threshold drawn on a graph."""

    key: str = config_field("key", "KEY", default="")
    name: str = config_field("name", "NAME", default="")
    color: str = config_field("color", "COLOR", default="")
    value: str = config_field("value", "VALUE", default="")
    unit: str = config_field("unit", "UNIT", default="")
    query_expression: str = config_field("queryExpression", "QUERY_EXPRESSION", default="")


class Graph(MetricsConfigModel):
    """
    A single graph panel.

    ``query_expression`` is a template with named placeholders such as
    ``{{.namespace}}`` or ``{{.name}}``, filled in by the metrics client.
    """

    name: str = config_field("name", "NAME", default="")
    title: str = config_field("title", "TITLE", default="")
    description: str = config_field("description", "DESCRIPTION", default="")
    graph_type: str = config_field("graphType", "GRAPH_TYPE", default="")
    metric_name: str = config_field("metricName", "METRIC_NAME", default="")
    color_schemes: List[str] = config_field("colorSchemes", "COLOR_SCHEMES", default_factory=list)
    thresholds: List[Threshold] = config_field("thresholds", "THRESHOLDS", default_factory=list)
    query_expression: str = config_field("queryExpression", "QUERY_EXPRESSION", default="")
    y_axis_unit: str = config_field("yAxisUnit", "Y_AXIS_UNIT", default="")
    value_rounding: int = config_field("valueRounding", "VALUE_ROUNDING", default=0)


class Row(MetricsConfigModel):
    """A named row of graphs shown on one dashboard tab."""

    name: str = config_field("name", "NAME", default="")
    title: str = config_field("title", "TITLE", default="")
    tab: str = config_field("tab", "TAB", default="")
    graphs: List[Graph] = config_field("graphs", "GRAPHS", default_factory=list)

    def get_graph(self, name: str) -> Optional[Graph]:
        """Return the first graph called ``name``, or None."""
        for graph in self.graphs:
            if graph.name == name:
                return graph
        return None


class Dashboard(MetricsConfigModel):
    """Dashboard applied to workloads of one group kind (e.g. "deployment")."""

    name: str = config_field("name", "NAME", default="")
    group_kind: str = config_field("groupKind", "GROUP_KIND", default="")
    refresh_rate: str = config_field("refreshRate", "REFRESH_RATE", default="")
    tabs: List[str] = config_field("tabs", "TABS", default_factory=list)
    rows: List[Row] = config_field("rows", "ROWS", default_factory=list)
    provider_type: str = config_field("providerType", "PROVIDER_TYPE", default="")
    intervals: List[str] = config_field("intervals", "INTERVALS", default_factory=list)

    def get_row(self, name: str) -> Optional[Row]:
        """Return the first row called ``name``, or None."""
        for row in self.rows:
            if row.name == name:
                return row
        return None


class Application(MetricsConfigModel):
    """A monitored application and the dashboards shown for it."""

    name: str = config_field("name", "NAME", default="")
    default: bool = config_field("default", "DEFAULT", default=False)
    default_dashboard: Optional[Dashboard] = config_field(
        "defaultDashboard", "DEFAULT_DASHBOARD", default=None
    )
    dashboards: List[Dashboard] = config_field("dashboards", "DASHBOARDS", default_factory=list)

    def get_dashboard(self, group_kind: str) -> Optional[Dashboard]:
        """
        Return the first dashboard for ``group_kind``.

        Falls back to ``default_dashboard``, which may itself be None.
        """
        for dashboard in self.dashboards:
            if dashboard.group_kind == group_kind:
                return dashboard
        return self.default_dashboard


class ProviderDescriptor(MetricsConfigModel):
    """Connection descriptor of a metrics backend."""

    name: str = config_field("name", "NAME", default="")
    address: str = config_field("address", "ADDRESS", default="")
    default: bool = config_field("default", "DEFAULT", default=False)
    # Transport/TLS settings are handed to the metrics client untouched
    tls_config: Dict[str, Any] = config_field("TLSConfig", "TLS_CONFIG", default_factory=dict)


class MetricsConfigProvider(MetricsConfigModel):
    """Applications and connection descriptor for one metrics backend."""

    applications: List[Application] = config_field(
        "applications", "APPLICATIONS", default_factory=list
    )
    provider: ProviderDescriptor = config_field(
        "provider", "PROVIDER", default_factory=ProviderDescriptor
    )

    def get_app(self, name: str) -> Application:
        """
        Return the application called ``name``.

        An exact match returns immediately. Otherwise the last application
        flagged ``default`` in list order is returned, and when none is
        flagged an empty ``Application()``.
        """
        default_app = Application()
        for app in self.applications:
            if app.name == name:
                return app
            if app.default:
                default_app = app
        return default_app


class O11yConfig(MetricsConfigModel):
    """Root configuration: one optional block per supported metrics backend."""

    prometheus: Optional[MetricsConfigProvider] = config_field(
        "prometheus", "PROMETHEUS", default=None
    )
    wavefront: Optional[MetricsConfigProvider] = config_field(
        "wavefront", "WAVEFRONT", default=None
    )

    def get_provider(self, kind: str) -> Optional[MetricsConfigProvider]:
        """Return the block for backend ``kind`` (case-insensitive), or None."""
        kind = kind.casefold()
        for field_name in type(self).model_fields:
            if field_name == kind:
                return getattr(self, field_name)
        return None

    def configured_providers(self) -> List[Tuple[str, MetricsConfigProvider]]:
        """Return ``(kind, provider)`` pairs for every backend present in the document."""
        return [
            (field_name, getattr(self, field_name))
            for field_name in type(self).model_fields
            if getattr(self, field_name) is not None
        ]
