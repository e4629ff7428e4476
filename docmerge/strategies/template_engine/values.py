"""Entry values and their text form.

Entries map variable names to a small closed set of scalars. Each variant
has one stringification rule so merged documents never depend on
duck-typed coercion.
"""

import datetime
from collections.abc import Mapping

EntryValue = str | bool | int | float | datetime.datetime | datetime.date | datetime.time | None


def stringify_value(value: EntryValue) -> str:
    """Render an entry value as document text.

    - None -> ""
    - bool -> "true" / "false"
    - integral float -> no trailing ".0"
    - int / float -> str()
    - date, datetime, time -> ISO 8601
    - str -> unchanged
    - anything else -> str()
    """
    if value is None:
        return ""
    # bool before int: bool is an int subclass
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        if value.is_integer():
            return str(int(value))
        return str(value)
    if isinstance(value, int):
        return str(value)
    if isinstance(value, (datetime.date, datetime.time)):
        return value.isoformat()
    if isinstance(value, str):
        return value
    return str(value)


def build_context(names: list[str], values: Mapping[str, EntryValue]) -> dict[str, str]:
    """Resolve a value for every canonical name.

    Missing keys render as empty strings; keys that are not template
    variables are ignored.
    """
    return {name: stringify_value(values.get(name)) for name in names}
