"""Acceptance rules applied to registration forms before they reach the store."""

from __future__ import annotations

import re
from dataclasses import dataclass

from .errors import ValidationError, ValidationFailure

# Optional sign followed by ASCII digits only; rejects "1_000", "1.0" and
# non-ASCII digit characters that ``int()`` would otherwise accept.
_INTEGER_PATTERN = re.compile(r"[+-]?[0-9]+")

MIN_NUMBER = 1
# Largest value an SQLite INTEGER column can hold.
MAX_NUMBER = 2**63 - 1
# Digit count of MAX_NUMBER; longer literals are out of range without parsing.
_MAX_DIGITS = len(str(MAX_NUMBER))


@dataclass(frozen=True)
class ValidRegistration:
    """Form fields that passed validation, ready for :meth:`EntryStore.insert`."""

    first_name: str
    surname: str
    email: str
    number: int


def _parse_integer(text: str) -> int:
    if not _INTEGER_PATTERN.fullmatch(text):
        raise ValidationError(ValidationFailure.NOT_A_NUMBER)
    digits = text.lstrip("+-").lstrip("0") or "0"
    if len(digits) > _MAX_DIGITS:
        raise ValidationError(ValidationFailure.OUT_OF_RANGE)
    value = int(digits)
    return -value if text.startswith("-") else value


def validate(
    first_name: str, surname: str, email: str, number_text: str
) -> ValidRegistration:
    """Check a registration form and return the normalized values.

    Surrounding whitespace is stripped from every field. The rules are checked
    in order and the first failure wins:

    1. any field empty -> ``MISSING_FIELD``
    2. ``number_text`` is not an integer literal -> ``NOT_A_NUMBER``
    3. the number is below 1 (or too large to store) -> ``OUT_OF_RANGE``

    Parameters
    ----------
    first_name, surname, email : str
        Free text fields; only non-emptiness is checked.
    number_text : str
        The entrant's guess as typed.

    Returns
    -------
    ValidRegistration
        Stripped text fields and the parsed number.

    Raises
    ------
    ValidationError
        If any rule fails.
    """
    fields = [
        (value or "").strip() for value in (first_name, surname, email, number_text)
    ]
    if any(not value for value in fields):
        raise ValidationError(ValidationFailure.MISSING_FIELD)

    first, last, mail, raw_number = fields
    number = _parse_integer(raw_number)
    if number < MIN_NUMBER or number > MAX_NUMBER:
        raise ValidationError(ValidationFailure.OUT_OF_RANGE)

    return ValidRegistration(first_name=first, surname=last, email=mail, number=number)


def parse_target_number(text: str) -> int:
    """Parse the operator's target number.

    Any integer is accepted, except literals with more digits than
    ``MAX_NUMBER``, which raise ``OUT_OF_RANGE``.
    """
    stripped = (text or "").strip()
    if not stripped:
        raise ValidationError(ValidationFailure.MISSING_FIELD)
    return _parse_integer(stripped)


__all__ = ["MAX_NUMBER", "MIN_NUMBER", "ValidRegistration", "parse_target_number", "validate"]
