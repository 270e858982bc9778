"""Reusable validation helpers.

Field validators return an error message or None so forms can collect every
failure before answering; the ``validate_choice`` / ``parse_*`` helpers abort with 400.
"""
from __future__ import annotations
import re
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, Optional
from flask import abort

EMAIL_RE = re.compile(r'^[^\s@]+@[^\s@]+\.[^\s@]+$')
MIN_PASSWORD_LENGTH = 6


def validate_email(email: Any) -> Optional[str]:
    if not email:
        return 'Email required'
    if not isinstance(email, str) or not EMAIL_RE.match(email):
        return 'Invalid email format'
    return None


def validate_password(password: Any) -> Optional[str]:
    if not password or not isinstance(password, str):
        return 'Password required'
    if len(password) < MIN_PASSWORD_LENGTH:
        return f'Password must be at least {MIN_PASSWORD_LENGTH} characters'
    return None


def validate_hotel_id(hotel_id: Any) -> Optional[str]:
    try:
        value = int(hotel_id)
    except (TypeError, ValueError):
        return 'Hotel required'
    if value < 1:
        return 'Hotel required'
    return None


def validate_login_form(data: Dict[str, Any]) -> Dict[str, str]:
    errors: Dict[str, str] = {}
    for name, check in (('email', validate_email), ('password', validate_password), ('hotel_id', validate_hotel_id)):
        msg = check(data.get(name))
        if msg:
            errors[name] = msg
    return errors


def validate_register_form(data: Dict[str, Any]) -> Dict[str, str]:
    errors = validate_login_form(data)
    confirm = data.get('confirm_password')
    if not confirm:
        errors['confirm_password'] = 'Password confirmation required'
    elif confirm != data.get('password'):
        errors['confirm_password'] = 'Passwords do not match'
    return errors


def validate_choice(value: Any, allowed: Iterable[str], field_name: str = 'status') -> str:
    """Return value when inside allowed, else abort 400."""
    if value not in allowed:
        abort(400, description=f"{field_name} invalid")
    return value


def parse_int(raw: Any, field_name: str, minimum: Optional[int] = None,
              maximum: Optional[int] = None) -> Optional[int]:
    if raw is None or raw == '':
        return None
    try:
        value = int(raw)
    except (TypeError, ValueError):
        abort(400, description=f'{field_name} must be int')
    if minimum is not None and value < minimum:
        abort(400, description=f'{field_name} must be >= {minimum}')
    if maximum is not None and value > maximum:
        abort(400, description=f'{field_name} must be <= {maximum}')
    return value


def parse_date(raw: Optional[str], field_name: str, end_of_day: bool = False) -> Optional[datetime]:
    """Parse an ISO date or datetime (naive values are UTC).

    With ``end_of_day`` a date-only value covers the whole day, so it can be
    used as an inclusive upper bound.
    """
    if not raw:
        return None
    for fmt in ('%Y-%m-%d', '%Y-%m-%dT%H:%M:%S', '%Y-%m-%dT%H:%M:%S%z'):
        try:
            dt = datetime.strptime(raw.replace('Z', '+0000'), fmt)
        except ValueError:
            continue
        if end_of_day and fmt == '%Y-%m-%d':
            dt = dt.replace(hour=23, minute=59, second=59, microsecond=999999)
        return dt if dt.tzinfo else dt.replace(tzinfo=timezone.utc)
    abort(400, description=f'{field_name} invalid date')


__all__ = [
    'validate_email', 'validate_password', 'validate_hotel_id', 'validate_login_form',
    'validate_register_form', 'validate_choice', 'parse_int', 'parse_date',
]
