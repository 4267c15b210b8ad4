"""Document decode: raw JSON bytes to :class:`O11yConfig` by document field names."""

import json
from typing import Union

from pydantic import ValidationError

from o11y_config.services.metrics_config.exceptions import DecodeError
from o11y_config.services.metrics_config.naming import DOCUMENT_NAMES
from o11y_config.services.metrics_config.schemas import O11yConfig


def decode_document(raw: Union[bytes, str]) -> O11yConfig:
    """
    Decode a configuration document using its own field naming.

    Args:
        raw: JSON document as bytes or text

    Returns:
        The decoded configuration tree

    Raises:
        DecodeError: If the input is not JSON or does not fit the schema
    """
    try:
        data = json.loads(raw)
    except (json.JSONDecodeError, UnicodeDecodeError, RecursionError) as e:
        raise DecodeError(f"error parsing JSON config: {e}") from e

    if not isinstance(data, dict):
        raise DecodeError(
            f"error decoding JSON config: expected an object at top level, got {type(data).__name__}"
        )

    try:
        return O11yConfig.model_validate(DOCUMENT_NAMES.fold(data, O11yConfig))
    except ValidationError as e:
        raise DecodeError(f"error decoding JSON config: {e}") from e
