"""Recognizer for the ``ListUsers`` filter expression.

Cognito accepts ``attribute = "value"`` (exact) and ``attribute ^= "value"``
(prefix). Only ``email`` and ``username`` are translated; any other text in
the expression is ignored rather than rejected.
"""
from __future__ import annotations
import re
from dataclasses import dataclass
from typing import Dict, List, Optional

EXACT = "="
PREFIX = "^="

SUPPORTED_FIELDS = ("email", "username")

_CLAUSE = re.compile(r'\b(?P<field>email|username)\s*(?P<op>\^=|=)\s*"(?P<value>[^"]+)"')


@dataclass(frozen=True)
class FilterClause:
    field: str
    operator: str
    value: str

    @property
    def is_exact(self) -> bool:
        return self.operator == EXACT


def parse_filter(expression: Optional[str]) -> List[FilterClause]:
    """Extract recognized clauses; the first clause per field wins."""
    if not expression:
        return []
    clauses: Dict[str, FilterClause] = {}
    for match in _CLAUSE.finditer(expression):
        field = match.group("field")
        if field not in clauses:
            clauses[field] = FilterClause(field, match.group("op"), match.group("value"))
    return list(clauses.values())


def to_query_params(clauses: List[FilterClause]) -> Dict[str, object]:
    """Translate clauses into Keycloak ``GET /users`` query parameters.

    Keycloak's field parameters match substrings unless ``exact`` is set,
    and ``exact`` covers every field in the query. A prefix clause is sent
    as ``search`` instead, which Keycloak matches as a prefix and which
    overrides the field parameters. The result is a superset; narrow it
    with ``matches``.
    """
    if not clauses:
        return {}
    prefixes = [clause for clause in clauses if not clause.is_exact]
    if prefixes:
        return {"search": prefixes[0].value}
    params: Dict[str, object] = {clause.field: clause.value for clause in clauses}
    params["exact"] = True
    return params


def matches(clauses: List[FilterClause], user: Dict[str, object]) -> bool:
    """Case-insensitive check of a Keycloak user against every clause."""
    for clause in clauses:
        value = str(user.get(clause.field) or "").lower()
        wanted = clause.value.lower()
        if clause.is_exact and value != wanted:
            return False
        if not clause.is_exact and not value.startswith(wanted):
            return False
    return True
