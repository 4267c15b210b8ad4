"""
Field naming conventions for the metrics configuration schema.

Every schema field carries two name bindings: the *document name* used by
the JSON configuration file (lower camel case) and the *override name* used
to address the field from environment variables (upper snake case). This
module declares those bindings and folds raw JSON keys onto schema field
names under either convention.
"""

from __future__ import annotations

import types
from typing import Any, Callable, Dict, Optional, Type, Union, get_args, get_origin

from pydantic import BaseModel, Field
from pydantic.fields import FieldInfo

OVERRIDE_NAME_KEY = "override_name"


def config_field(document: str, override: str, **kwargs: Any) -> Any:
    """Declare a schema field with its document and override names."""
    return Field(alias=document, json_schema_extra={OVERRIDE_NAME_KEY: override}, **kwargs)


def document_name(info: FieldInfo) -> str:
    return info.alias or ""


def override_name(info: FieldInfo) -> str:
    extra = info.json_schema_extra
    if isinstance(extra, dict):
        return str(extra.get(OVERRIDE_NAME_KEY, ""))
    return ""


def unwrap_optional(annotation: Any) -> Any:
    """Return ``X`` for ``Optional[X]``; other annotations are returned unchanged."""
    if get_origin(annotation) in (Union, types.UnionType):
        args = [arg for arg in get_args(annotation) if arg is not type(None)]
        if len(args) == 1:
            return args[0]
    return annotation


def is_model(annotation: Any) -> bool:
    return isinstance(annotation, type) and issubclass(annotation, BaseModel)


class NamingConvention:
    """
    Binds raw object keys to schema fields by one of the two field names.

    Keys are compared after ``normalize`` is applied to both the key and the
    declared name, so matching can be made insensitive to case or
    separators.
    """

    def __init__(
        self,
        label: str,
        binding: Callable[[FieldInfo], str],
        normalize: Callable[[str], str],
    ):
        self.label = label
        self.binding = binding
        self.normalize = normalize
        self._lookup: Dict[Type[BaseModel], Dict[str, str]] = {}

    def __repr__(self) -> str:
        return f"NamingConvention({self.label!r})"

    def field_for(self, model: Type[BaseModel], key: str) -> Optional[str]:
        """Return the schema field name bound to ``key``, or None if unknown."""
        lookup = self._lookup.get(model)
        if lookup is None:
            lookup = {
                self.normalize(self.binding(info)): field_name
                for field_name, info in model.model_fields.items()
            }
            self._lookup[model] = lookup
        return lookup.get(self.normalize(key))

    def fold(self, data: Any, model: Type[BaseModel]) -> Any:
        """
        Rewrite the keys of a generic JSON tree to ``model``'s field names.

        Unknown keys are dropped. Values that are not JSON objects where an
        object is expected are passed through untouched so that validation
        reports the mismatch.
        """
        if not isinstance(data, dict):
            return data

        folded: Dict[str, Any] = {}
        for key, value in data.items():
            field_name = self.field_for(model, key)
            if field_name is None:
                continue
            annotation = model.model_fields[field_name].annotation
            folded[field_name] = self._fold_value(value, annotation)
        return folded

    def _fold_value(self, value: Any, annotation: Any) -> Any:
        annotation = unwrap_optional(annotation)
        if is_model(annotation):
            return self.fold(value, annotation)
        if get_origin(annotation) is list and isinstance(value, list):
            item_type = get_args(annotation)[0] if get_args(annotation) else Any
            if is_model(item_type):
                return [self.fold(item, item_type) for item in value]
        # Opaque mappings and scalars keep their keys as written
        return value


# Document keys match case-insensitively: "Name" binds name.
DOCUMENT_NAMES = NamingConvention("document", document_name, str.casefold)

# "QUERY_EXPRESSION" binds both QUERY_EXPRESSION and queryExpression.
OVERRIDE_NAMES = NamingConvention(
    "override", override_name, lambda key: key.replace("_", "").casefold()
)
