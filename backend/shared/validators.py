"""Validation helpers for server settings read from the environment."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any

from pydantic_settings import EnvSettingsSource

if TYPE_CHECKING:
    from pydantic.fields import FieldInfo

_ORIGIN_SCHEMES = ("http://", "https://")


def parse_origin_list(value: str | list[str]) -> list[str]:
    """Parse a list of allowed origins.

    Accepts a list of strings, a JSON array string ('["a","b"]') or a
    comma-separated string ('a,b'). Every entry must be "*" or an
    http(s) origin. Raises ValueError for empty input, malformed JSON
    or a malformed origin.
    """
    if isinstance(value, list):
        origins = value
    else:
        stripped = value.strip()
        if not stripped:
            raise ValueError("Origin list must not be empty")
        if stripped.startswith("["):
            try:
                origins = json.loads(stripped)
            except json.JSONDecodeError as e:
                raise ValueError(f"Invalid JSON array: {e}") from e
            if not isinstance(origins, list) or not all(isinstance(item, str) for item in origins):
                raise ValueError("JSON value must be an array of strings")
        else:
            origins = [item.strip() for item in stripped.split(",") if item.strip()]

    if not origins:
        raise ValueError("Origin list must not be empty")
    for origin in origins:
        if origin != "*" and not origin.startswith(_ORIGIN_SCHEMES):
            raise ValueError(f"Invalid origin {origin!r}: must be '*' or start with http:// or https://")
    return origins


_ORIGIN_LIST_FIELDS = {"cors_origins"}


class OriginListEnvSettingsSource(EnvSettingsSource):
    """Env settings source that hands origin-list fields to validators as raw strings.

    pydantic-settings JSON-decodes list-typed fields from env vars before
    validators run, which rejects the comma-separated form. Skipping that
    step lets parse_origin_list accept both JSON and CSV.
    """

    def prepare_field_value(
        self,
        field_name: str,
        field: FieldInfo,
        value: Any,  # noqa: ANN401
        value_is_complex: bool,  # noqa: FBT001
    ) -> Any:  # noqa: ANN401
        if field_name in _ORIGIN_LIST_FIELDS and isinstance(value, str):
            return value
        return super().prepare_field_value(field_name, field, value, value_is_complex)
