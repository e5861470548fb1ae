"""Helpers shared by the service layer."""

from typing import Any, Mapping, Optional

from portfolio_cms.models.content import STATUS_VALUES, VISIBILITY_VALUES
from portfolio_cms.storage.content_mapper import PLACEHOLDER_FIELDS
from portfolio_cms.storage.index_db import IndexDatabase


def placeholder_values(
    index: IndexDatabase,
    content_id: str,
    fallback: Optional[Mapping[str, Any]] = None,
) -> dict[str, Any]:
    """
    Values for a placeholder ``contents`` row.

    The index entry of the content ID wins over ``fallback``; values that
    would violate the row's CHECK constraints are dropped.
    """
    values = {
        field: fallback[field]
        for field in PLACEHOLDER_FIELDS
        if fallback and fallback.get(field) is not None
    }

    with index.repository() as repo:
        entry = repo.get_entry(content_id)
    if entry is not None:
        for field, value in entry.model_dump(include=set(PLACEHOLDER_FIELDS)).items():
            if value is not None:
                values[field] = value

    if values.get("visibility") not in VISIBILITY_VALUES:
        values.pop("visibility", None)
    if values.get("status") not in STATUS_VALUES:
        values.pop("status", None)
    return values
