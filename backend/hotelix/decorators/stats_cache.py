"""Cache invalidation decorator for views that mutate interventions.

Usage examples:

@invalidates_stats()
def create_intervention():
    ... return _intervention_json(i), 201

@invalidates_stats(pre_fetch=lambda a, kw: prefetch_assignment(kw.get('intervention_id')))
def assign_intervention(intervention_id): ...

After a successful (status < 400) response the decorator invalidates:
  - global stats of ``hotel_id`` found in the returned JSON object
  - technician stats of ``assigne_id`` found in the returned JSON object
  - hotel / technician ids from the pre_fetch snapshot (e.g. the previous assignee)

Flask view return values are handled the same way as elsewhere:
    dict | (dict, status) | (dict, status, headers)
"""
from __future__ import annotations

from functools import wraps
from typing import Any, Callable, Dict, Optional, Set

from hotelix.cache.intervention_cache import intervention_cache


def _extract_payload(rv: Any):
    """Return (data, status) where data is the JSON-able dict for inspection."""
    if isinstance(rv, tuple) and rv:
        status = rv[1] if len(rv) > 1 and isinstance(rv[1], int) else 200
        return rv[0], status
    return rv, getattr(rv, 'status_code', 200)


def _ids(source: Optional[Dict[str, Any]], key: str) -> Set[int]:
    if not isinstance(source, dict):
        return set()
    value = source.get(key)
    return {int(value)} if value else set()


def invalidates_stats(
    *,
    pre_fetch: Optional[Callable[[tuple, dict], Dict[str, Any]]] = None,
    hotel_key: str = 'hotel_id',
    technician_key: str = 'assigne_id',
):
    def outer(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            before = pre_fetch(args, kwargs) if pre_fetch else None
            rv = fn(*args, **kwargs)
            data, status = _extract_payload(rv)
            if status >= 400:
                return rv
            for hotel_id in _ids(data, hotel_key) | _ids(before, hotel_key):
                intervention_cache.invalidate_hotel_stats(hotel_id)
            for tech_id in _ids(data, technician_key) | _ids(before, technician_key):
                intervention_cache.invalidate_technician_stats(tech_id)
            return rv
        return wrapper
    return outer


__all__ = ['invalidates_stats']
