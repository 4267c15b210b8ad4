from typing import Any, Dict, List

import pytest
from pydantic import ValidationError

from o11y_config.services.metrics_config import OverlayError, decode_document, resolve_overlay
from o11y_config.services.metrics_config.overlay import (
    FieldKind,
    build_override_table,
    coerce_value,
)


def test_override_table_lists_provider_fields():
    variables = {target.variable: target for target in build_override_table()}

    assert set(variables) == {
        "PROMETHEUS__PROVIDER__NAME",
        "PROMETHEUS__PROVIDER__ADDRESS",
        "PROMETHEUS__PROVIDER__DEFAULT",
        "PROMETHEUS__PROVIDER__TLS_CONFIG",
        "WAVEFRONT__PROVIDER__NAME",
        "WAVEFRONT__PROVIDER__ADDRESS",
        "WAVEFRONT__PROVIDER__DEFAULT",
        "WAVEFRONT__PROVIDER__TLS_CONFIG",
    }
    address = variables["PROMETHEUS__PROVIDER__ADDRESS"]
    assert address.path == ("prometheus", "provider", "address")
    assert address.kind is FieldKind.STRING
    assert variables["WAVEFRONT__PROVIDER__DEFAULT"].kind is FieldKind.BOOL
    assert variables["WAVEFRONT__PROVIDER__TLS_CONFIG"].kind is FieldKind.MAPPING


def test_override_table_prefix_and_delimiter():
    variables = [target.variable for target in build_override_table(delimiter="_x_", env_prefix="O11Y_")]
    assert "O11Y_PROMETHEUS_x_PROVIDER_x_ADDRESS" in variables


def test_no_environment_matches_document_decode(raw_config):
    assert resolve_overlay(raw_config, {}) == decode_document(raw_config)


def test_address_override_changes_only_that_field(raw_config):
    baseline = resolve_overlay(raw_config, {})

    config = resolve_overlay(raw_config, {"PROMETHEUS__PROVIDER__ADDRESS": "http://overridden-prometheus:9090"})

    assert config.prometheus.provider.address == "http://overridden-prometheus:9090"
    assert config.prometheus.provider.model_copy(update={"address": baseline.prometheus.provider.address}) == (
        baseline.prometheus.provider
    )
    assert config.prometheus.applications == baseline.prometheus.applications
    assert config.wavefront is None


def test_bool_and_name_overrides(raw_config):
    config = resolve_overlay(
        raw_config,
        {
            "PROMETHEUS__PROVIDER__DEFAULT": "false",
            "PROMETHEUS__PROVIDER__NAME": "env-override",
        },
    )

    assert config.prometheus.provider.default is False
    assert config.prometheus.provider.name == "env-override"
    assert config.prometheus.provider.address == "http://prometheus-service.monitoring.svc.cluster.local:8080"
    assert len(config.prometheus.applications) == 2


def test_tls_config_override_replaces_opaque_block(raw_config):
    config = resolve_overlay(raw_config, {"PROMETHEUS__PROVIDER__TLS_CONFIG": '{"ca_file": "/etc/ca.pem"}'})
    assert config.prometheus.provider.tls_config == {"ca_file": "/etc/ca.pem"}


def test_unrelated_and_lowercase_variables_are_ignored(raw_config):
    baseline = resolve_overlay(raw_config, {})

    config = resolve_overlay(
        raw_config,
        {
            "prometheus__provider__address": "http://lower",
            "PROMETHEUS__APPLICATIONS": "[]",
            "PATH": "/usr/bin",
        },
    )

    assert config == baseline


def test_override_under_absent_backend_is_skipped(raw_config):
    config = resolve_overlay(raw_config, {"WAVEFRONT__PROVIDER__ADDRESS": "https://wf.example"})
    assert config.wavefront is None


def test_prefix_and_custom_delimiter(raw_config):
    environ = {
        "O11Y_PROMETHEUS__PROVIDER__ADDRESS": "http://prefixed",
        "PROMETHEUS.PROVIDER.NAME": "dotted",
    }

    prefixed = resolve_overlay(raw_config, environ, env_prefix="O11Y_")
    dotted = resolve_overlay(raw_config, environ, delimiter=".")

    assert prefixed.prometheus.provider.address == "http://prefixed"
    assert prefixed.prometheus.provider.name == "default"
    assert dotted.prometheus.provider.name == "dotted"


def test_uncoercible_value_fails_when_strict(raw_config):
    with pytest.raises(OverlayError) as exc_info:
        resolve_overlay(raw_config, {"PROMETHEUS__PROVIDER__DEFAULT": "maybe"})

    assert exc_info.value.variable == "PROMETHEUS__PROVIDER__DEFAULT"
    assert isinstance(exc_info.value.__cause__, ValidationError)


def test_uncoercible_value_ignored_when_lenient(raw_config, log_capture):
    config = resolve_overlay(
        raw_config,
        {
            "PROMETHEUS__PROVIDER__DEFAULT": "maybe",
            "PROMETHEUS__PROVIDER__ADDRESS": "http://still-applied",
        },
        strict=False,
    )

    assert config.prometheus.provider.default is True
    assert config.prometheus.provider.address == "http://still-applied"
    warnings = [entry for entry in log_capture if entry["event"] == "env_override_ignored"]
    assert len(warnings) == 1
    assert warnings[0]["variable"] == "PROMETHEUS__PROVIDER__DEFAULT"


def test_reads_process_environment_by_default(raw_config, monkeypatch):
    monkeypatch.setenv("PROMETHEUS__PROVIDER__ADDRESS", "http://from-os-environ")

    config = resolve_overlay(raw_config)

    assert config.prometheus.provider.address == "http://from-os-environ"


@pytest.mark.parametrize("raw", [b"not json", b"[]"])
def test_generic_parse_failure_raises_overlay_error(raw):
    with pytest.raises(OverlayError):
        resolve_overlay(raw, {})


def test_override_name_decode_failure_raises_overlay_error():
    with pytest.raises(OverlayError, match="error applying env overrides"):
        resolve_overlay(b'{"prometheus": {"provider": {"default": "perhaps"}}}', {})


@pytest.mark.parametrize("spelling", ["t", "f", "true", "False", "yes", "no", "y", "n", "on", "off", "1", "0"])
def test_bool_override_accepts_document_spellings(raw_config, spelling):
    document = decode_document(b'{"prometheus": {"provider": {"default": "%s"}}}' % spelling.encode())

    config = resolve_overlay(raw_config, {"PROMETHEUS__PROVIDER__DEFAULT": spelling})

    assert config.prometheus.provider.default is document.prometheus.provider.default


def test_deeply_nested_input_raises_overlay_error():
    with pytest.raises(OverlayError) as exc_info:
        resolve_overlay(b"[" * 100000, {})

    assert isinstance(exc_info.value.__cause__, RecursionError)


@pytest.mark.parametrize(
    "raw, annotation, expected",
    [
        ("plain text", str, "plain text"),
        ("t", bool, True),
        ("off", bool, False),
        ("42", int, 42),
        ("1h, 6h,,24h", List[str], ["1h", "6h", "24h"]),
        ('["a", "b"]', List[str], ["a", "b"]),
        ("", List[str], []),
        ('{"k": 1}', Dict[str, Any], {"k": 1}),
    ],
)
def test_coerce_value(raw, annotation, expected):
    assert coerce_value(raw, annotation) == expected


@pytest.mark.parametrize(
    "raw, annotation",
    [
        ("maybe", bool),
        ("4.5", int),
        ("[1, 2]", List[str]),
        ("[1, 2]", Dict[str, Any]),
        ("not json", Dict[str, Any]),
    ],
)
def test_coerce_value_rejects(raw, annotation):
    with pytest.raises(ValidationError):
        coerce_value(raw, annotation)


def test_override_table_carries_field_annotation():
    variables = {target.variable: target for target in build_override_table()}

    assert variables["PROMETHEUS__PROVIDER__DEFAULT"].annotation is bool
    assert variables["PROMETHEUS__PROVIDER__TLS_CONFIG"].annotation == Dict[str, Any]
