"""HTTP errors carrying a machine-readable code and optional field messages.

The app-level error handler copies ``error_code`` and ``fields`` into the JSON
error body next to status/title/detail.
"""
from __future__ import annotations
from typing import Dict, NoReturn, Optional
from werkzeug.exceptions import BadRequest, default_exceptions

VALIDATION_ERROR = 'VALIDATION_ERROR'
INVALID_CREDENTIALS = 'INVALID_CREDENTIALS'
EMAIL_TAKEN = 'EMAIL_TAKEN'
HOTEL_NOT_FOUND = 'HOTEL_NOT_FOUND'


class ValidationFailed(BadRequest):
    error_code = VALIDATION_ERROR

    def __init__(self, fields: Dict[str, str], description: str = 'Invalid data'):
        super().__init__(description=description)
        self.fields = dict(fields)


def abort_with_code(status: int, code: str, description: Optional[str] = None) -> NoReturn:
    exc = default_exceptions[status](description=description)
    exc.error_code = code  # type: ignore[attr-defined]
    raise exc


def raise_if_invalid(fields: Dict[str, str]):
    if fields:
        raise ValidationFailed(fields)


__all__ = ['ValidationFailed', 'abort_with_code', 'raise_if_invalid',
           'VALIDATION_ERROR', 'INVALID_CREDENTIALS', 'EMAIL_TAKEN', 'HOTEL_NOT_FOUND']
