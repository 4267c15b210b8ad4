"""
Environment overlay resolution.

The raw document is parsed a second time into a generic tree, decoded by
override names, and then any environment variable whose name spells a
field's override path replaces that field. Paths are the nested override
names joined by a delimiter, e.g. ``PROMETHEUS__PROVIDER__ADDRESS``.

Only fields reachable without crossing a list are addressable: element
indexes of applications, dashboards, rows and graphs have no override path.
Environment strings are validated by pydantic against the field's
annotation, so they accept the same spellings as the document does.
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass
from enum import Enum
from functools import lru_cache
from typing import (
    Annotated,
    Any,
    Iterator,
    List,
    Mapping,
    Optional,
    Tuple,
    Type,
    Union,
    get_args,
    get_origin,
)

import structlog
from pydantic import BaseModel, BeforeValidator, TypeAdapter, ValidationError

from o11y_config.services.metrics_config.exceptions import OverlayError
from o11y_config.services.metrics_config.naming import (
    OVERRIDE_NAMES,
    is_model,
    override_name,
    unwrap_optional,
)
from o11y_config.services.metrics_config.schemas import O11yConfig
from o11y_config.utils.logger import get_logger

DEFAULT_DELIMITER = "__"


class FieldKind(str, Enum):
    """Semantic type of an environment-addressable field."""

    STRING = "string"
    BOOL = "bool"
    INT = "int"
    SEQUENCE = "sequence"
    MAPPING = "mapping"


@dataclass(frozen=True)
class OverrideTarget:
    """A field addressable from the environment."""

    variable: str
    path: Tuple[str, ...]
    kind: FieldKind
    annotation: Any


def _leaf_kind(annotation: Any) -> Optional[FieldKind]:
    if annotation is bool:
        return FieldKind.BOOL
    if annotation is int:
        return FieldKind.INT
    if annotation is str:
        return FieldKind.STRING
    origin = get_origin(annotation)
    if origin is list:
        args = get_args(annotation)
        if args and args[0] is str:
            return FieldKind.SEQUENCE
        return None
    if origin is dict or annotation is dict:
        return FieldKind.MAPPING
    return None


def _walk(
    model: Type[BaseModel], segments: Tuple[str, ...], path: Tuple[str, ...]
) -> Iterator[Tuple[Tuple[str, ...], Tuple[str, ...], FieldKind, Any]]:
    for field_name, info in model.model_fields.items():
        annotation = unwrap_optional(info.annotation)
        field_segments = segments + (override_name(info),)
        field_path = path + (field_name,)
        if is_model(annotation):
            yield from _walk(annotation, field_segments, field_path)
            continue
        kind = _leaf_kind(annotation)
        if kind is not None:
            yield field_segments, field_path, kind, annotation


def build_override_table(
    model: Type[BaseModel] = O11yConfig,
    delimiter: str = DEFAULT_DELIMITER,
    env_prefix: str = "",
) -> List[OverrideTarget]:
    """
    List every environment-addressable field of ``model``.

    The table is derived from the schema's override names, in field
    declaration order.
    """
    return [
        OverrideTarget(
            variable=env_prefix + delimiter.join(segments),
            path=path,
            kind=kind,
            annotation=annotation,
        )
        for segments, path, kind, annotation in _walk(model, (), ())
    ]


def _split_list(value: Any) -> Any:
    """Allow a JSON array or a comma-separated string for list fields."""
    if isinstance(value, str):
        text = value.strip()
        if text.startswith("["):
            return json.loads(text)
        return [item.strip() for item in text.split(",") if item.strip()]
    return value


def _parse_object(value: Any) -> Any:
    """Mapping fields take a JSON object."""
    if isinstance(value, str):
        return json.loads(value)
    return value


@lru_cache(maxsize=None)
def _adapter_for(annotation: Any) -> TypeAdapter:
    origin = get_origin(annotation)
    if origin is list:
        return TypeAdapter(Annotated[annotation, BeforeValidator(_split_list)])
    if origin is dict or annotation is dict:
        return TypeAdapter(Annotated[annotation, BeforeValidator(_parse_object)])
    return TypeAdapter(annotation)


def coerce_value(raw: str, annotation: Any) -> Any:
    """
    Validate an environment string against a field annotation.

    Raises:
        ValidationError: If the string cannot represent a value of the field's type
    """
    return _adapter_for(annotation).validate_python(raw)


def _replace(node: BaseModel, path: Tuple[str, ...], value: Any) -> BaseModel:
    head, rest = path[0], path[1:]
    if rest:
        value = _replace(getattr(node, head), rest, value)
    fields = {name: getattr(node, name) for name in type(node).model_fields}
    fields[head] = value
    return type(node).model_validate(fields)


def _parent_present(node: BaseModel, path: Tuple[str, ...]) -> bool:
    for segment in path[:-1]:
        node = getattr(node, segment)
        if node is None:
            return False
    return True


def decode_override_names(raw: Union[bytes, str]) -> O11yConfig:
    """
    Parse ``raw`` generically and decode it by override field names.

    Without environment overrides this yields the same tree as the document
    decode for documents written with the standard field names.

    Raises:
        OverlayError: If the generic parse or the decode fails
    """
    try:
        tree = json.loads(raw)
    except (json.JSONDecodeError, UnicodeDecodeError, RecursionError) as e:
        raise OverlayError(f"error reading config for env overrides: {e}") from e

    if not isinstance(tree, dict):
        raise OverlayError(
            f"error reading config for env overrides: expected an object, got {type(tree).__name__}"
        )

    try:
        return O11yConfig.model_validate(OVERRIDE_NAMES.fold(tree, O11yConfig))
    except ValidationError as e:
        raise OverlayError(f"error applying env overrides: {e}") from e


def apply_overrides(
    config: O11yConfig,
    environ: Mapping[str, str],
    *,
    delimiter: str = DEFAULT_DELIMITER,
    env_prefix: str = "",
    strict: bool = True,
    logger: Optional[structlog.stdlib.BoundLogger] = None,
) -> O11yConfig:
    """
    Overwrite fields of ``config`` from matching environment variables.

    Overrides addressing a field below a backend that is absent from the
    document are skipped. Under the strict policy a value that cannot be
    coerced raises; otherwise it is logged and ignored.

    Raises:
        OverlayError: If ``strict`` and an environment value cannot be coerced
    """
    log = logger or get_logger(__name__)

    for target in build_override_table(O11yConfig, delimiter, env_prefix):
        if target.variable not in environ:
            continue
        if not _parent_present(config, target.path):
            log.debug("env_override_skipped", variable=target.variable, reason="absent_parent")
            continue

        try:
            value = coerce_value(environ[target.variable], target.annotation)
        except ValidationError as e:
            if strict:
                raise OverlayError(
                    f"cannot coerce {target.variable} to {target.kind.value}: {e}",
                    variable=target.variable,
                ) from e
            log.warning(
                "env_override_ignored",
                variable=target.variable,
                kind=target.kind.value,
                error=str(e),
            )
            continue

        config = _replace(config, target.path, value)
        log.debug("env_override_applied", variable=target.variable, field=".".join(target.path))

    return config


def resolve_overlay(
    raw: Union[bytes, str],
    environ: Optional[Mapping[str, str]] = None,
    *,
    delimiter: str = DEFAULT_DELIMITER,
    env_prefix: str = "",
    strict: bool = True,
    logger: Optional[structlog.stdlib.BoundLogger] = None,
) -> O11yConfig:
    """
    Resolve the final configuration from ``raw`` and the environment.

    Args:
        raw: The same JSON document given to the document decoder
        environ: Environment mapping; defaults to ``os.environ``
        delimiter: Separator between override path segments
        env_prefix: Prefix expected on every override variable name
        strict: Fail on uncoercible values instead of ignoring them
        logger: Structured logger for override events

    Returns:
        The configuration with environment values applied
    """
    config = decode_override_names(raw)
    environment: Mapping[str, str] = environ if environ is not None else os.environ
    return apply_overrides(
        config,
        environment,
        delimiter=delimiter,
        env_prefix=env_prefix,
        strict=strict,
        logger=logger,
    )

