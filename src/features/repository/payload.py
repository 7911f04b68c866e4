"""Decoding and validation of the feature endpoint body."""

import json
from typing import Any

from pydantic import ValidationError
from pydantic_core import ErrorDetails

from src.features.repository.errors import PayloadParseError, ToggleValidationError
from src.features.toggles.models import FeaturePayload, ToggleDefinition


def _describe(errors: list[ErrorDetails], skip: int = 0) -> str:
    parts = []
    for item in errors:
        location = ".".join(str(part) for part in item["loc"][skip:]) or "toggle"
        parts.append(f"{location}: {item['msg']}")
    return "; ".join(parts)


def _toggle_index(item: ErrorDetails) -> int | None:
    loc = item["loc"]
    if len(loc) >= 2 and loc[0] == "features" and isinstance(loc[1], int):
        return loc[1]
    return None


def _classify(
    error: ValidationError, document: Any
) -> PayloadParseError | ToggleValidationError:
    """Map a payload validation error to the failure it represents.

    Problems with the document itself are parse failures. Otherwise the
    first offending toggle (lowest index) is reported.
    """
    errors = error.errors()
    indexed: list[tuple[int, ErrorDetails]] = []
    for item in errors:
        toggle_index = _toggle_index(item)
        if toggle_index is not None:
            indexed.append((toggle_index, item))

    if not indexed:
        msg = f"Invalid feature payload: {_describe(errors)}"
        return PayloadParseError(msg)

    index = min(i for i, _ in indexed)
    raw = document["features"][index]
    name = raw.get("name") if isinstance(raw, dict) else None
    if not isinstance(name, str):
        name = None

    label = f"'{name}'" if name is not None else f"at index {index}"
    details = _describe([item for i, item in indexed if i == index], skip=2)
    msg = f"Invalid toggle {label}: {details}"
    return ToggleValidationError(msg, toggle_name=name, index=index)


def parse_features(body: bytes | str) -> list[ToggleDefinition]:
    """Decode a feature document and validate every toggle in it.

    Validation is all-or-nothing: one invalid toggle aborts the whole batch.

    Args:
        body: Raw response body.

    Returns:
        Toggles in payload order.

    Raises:
        PayloadParseError: If the body is not JSON or has no ``features`` array.
        ToggleValidationError: If any toggle has the wrong shape.
    """
    try:
        document = json.loads(body)
    except json.JSONDecodeError as e:
        msg = f"Invalid JSON payload: {e.msg} (line {e.lineno}, column {e.colno})"
        raise PayloadParseError(msg, line=e.lineno, column=e.colno) from e
    except UnicodeDecodeError as e:
        msg = f"Invalid JSON payload: {e}"
        raise PayloadParseError(msg) from e

    try:
        payload = FeaturePayload.model_validate(document)
    except ValidationError as e:
        raise _classify(e, document) from e
    return list(payload.features)


def index_by_name(toggles: list[ToggleDefinition]) -> dict[str, ToggleDefinition]:
    """Key toggles by name; later duplicates replace earlier ones."""
    return {toggle.name: toggle for toggle in toggles}
