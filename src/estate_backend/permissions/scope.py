from typing import Any, TypeVar, Union
from sqlalchemy import Select, false
from sqlalchemy.orm import Query

from estate_backend.permissions.ownership import Ids, Scope, Unrestricted

Q = TypeVar("Q", Query, Select)


def scope_predicate(scope: Ids, column: Any):
    if scope.is_empty:
        # Never omit the filter: an empty scope must match zero rows
        return false()
    return column.in_(scope.sorted_ids())


def inject_scope(scope: Scope, query: Q, column: Any) -> Q:
    """AND the scope into ``query`` as a predicate on ``column``.

    ``Unrestricted`` returns the query unchanged. Filters already on the query are
    kept as they are.
    """

    if isinstance(scope, Unrestricted):
        return query

    if not isinstance(scope, Ids):
        raise TypeError(f"Not a scope: {scope!r}")

    predicate = scope_predicate(scope, column)

    if isinstance(query, Select):
        return query.where(predicate)
    return query.filter(predicate)
