"""Input normalisation and settings helpers for list-valued environment variables."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any

from pydantic_settings import EnvSettingsSource

if TYPE_CHECKING:
    from pydantic.fields import FieldInfo


def normalize_email(value: str) -> str:
    """Canonical form used for every email write and lookup.

    Surrounding whitespace is dropped and the domain is lowercased, matching
    what ``EmailStr`` produces; the local part is kept as typed.
    """
    value = value.strip()
    local, sep, domain = value.rpartition("@")
    if not sep:
        return value
    return f"{local}@{domain.lower()}"


def parse_string_list(value: str | list[str], *, allow_empty: bool = False) -> list[str]:
    """Parse a list of strings from a JSON array (``'["a","b"]'``) or CSV (``'a,b'``).

    Lists pass through unchanged. Raises ValueError on malformed JSON, and on
    empty results unless allow_empty is set.
    """
    if isinstance(value, list):
        items = value
    elif value.strip().startswith("["):
        try:
            items = json.loads(value)
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid JSON array: {e}") from e
        if not isinstance(items, list) or not all(isinstance(item, str) for item in items):
            raise ValueError("JSON value must be an array of strings")
    else:
        items = [part.strip() for part in value.split(",") if part.strip()]

    if not allow_empty and not items:
        raise ValueError("String list value must not be empty")
    return items


class CsvListEnvSettingsSource(EnvSettingsSource):
    """Env source that hands list fields to validators as raw strings.

    pydantic-settings JSON-decodes list-typed env values before validators
    run, which rejects the CSV form. Fields named in the settings class's
    ``csv_list_fields`` skip that decoding so ``parse_string_list`` sees them.
    """

    def prepare_field_value(
        self,
        field_name: str,
        field: FieldInfo,
        value: Any,  # noqa: ANN401
        value_is_complex: bool,  # noqa: FBT001
    ) -> Any:  # noqa: ANN401
        csv_fields = getattr(self.settings_cls, "csv_list_fields", frozenset())
        if field_name in csv_fields and isinstance(value, str):
            return value
        return super().prepare_field_value(field_name, field, value, value_is_complex)
