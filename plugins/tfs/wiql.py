"""WIQL query builder.

Field references and literals are validated and quoted here so that
configured values (release numbers, project names, custom field names)
can never change the shape of a query.
"""

import re
from typing import Any, List, Optional, Tuple

from providers.exceptions import InvalidArgument

# Reference names look like "System.Title" or "Custom.Release_Number"
_FIELD_REFERENCE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*(\.[A-Za-z0-9_]+)*$")


def field_reference(name: str) -> str:
    """Return a bracketed field reference, rejecting anything but a reference name."""
    if not name or not _FIELD_REFERENCE.match(name):
        raise InvalidArgument("field", f"Invalid work item field reference name: {name!r}")
    return f"[{name}]"


def literal(value: Any) -> str:
    """Render a WIQL literal; strings are single-quoted with quotes doubled."""
    if isinstance(value, bool):
        raise InvalidArgument("value", "Boolean values are not valid WIQL literals")
    if isinstance(value, int):
        return str(value)
    text = str(value)
    return "'" + text.replace("'", "''") + "'"


class WiqlQuery:
    """A flat SELECT ... FROM WorkItems [WHERE ...] [ORDER BY ...] query.

    Conditions are equality tests joined with AND, kept in the order
    they were added.
    """

    def __init__(self, fields: List[str]):
        self.fields: List[str] = []
        self.conditions: List[Tuple[str, Any]] = []
        self.order_by: List[Tuple[str, str]] = []
        for field in fields:
            self.select(field)

    def select(self, field: Optional[str]) -> "WiqlQuery":
        if field and field not in self.fields:
            field_reference(field)
            self.fields.append(field)
        return self

    def where_equals(self, field: str, value: Any) -> "WiqlQuery":
        field_reference(field)
        self.conditions.append((field, value))
        return self

    def order_by_ascending(self, field: str) -> "WiqlQuery":
        field_reference(field)
        self.order_by.append((field, "ASC"))
        return self

    def build(self) -> str:
        query = "SELECT " + ", ".join(field_reference(f) for f in self.fields)
        query += " FROM WorkItems"
        if self.conditions:
            query += " WHERE " + " AND ".join(
                f"{field_reference(field)} = {literal(value)}"
                for field, value in self.conditions
            )
        if self.order_by:
            query += " ORDER BY " + ", ".join(
                f"{field_reference(field)} {direction}" for field, direction in self.order_by
            )
        return query

    def __str__(self) -> str:
        return self.build()
