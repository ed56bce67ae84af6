# Overview: Service-layer operations for human-readable codes; encapsulates sequence work.

"""
Code Service - sequential human-readable identifiers

FORMATS:
- Invoice numbers: INV-000001 (prefix, dash, 6 digits)
- Item codes:      ITM00001   (prefix, 5 digits)
- Category codes:  CAT0001    (prefix, 4 digits)

SOURCES:
- Invoice numbers come from the invoice's own storage-assigned row id, so
  two concurrent sales can never compute the same number.
- Item and category codes come from an atomic counter row in code_sequences.
  The counter is seeded once from the last issued code (by issuance order).

FAILURE: An unparseable last code raises CodeGenerationError. Restarting the
sequence at 1 would hand out duplicates.
"""

from __future__ import annotations

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..models import CodeSequence


class CodeGenerationError(Exception):
    """Raised when the next code cannot be derived safely."""
    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.details = details or {}


def format_code(prefix: str, number: int, width: int) -> str:
    if number < 1:
        raise CodeGenerationError(f"Code number must be positive, got {number}")
    return f"{prefix}{number:0{width}d}"


def parse_code_number(code: str, prefix: str) -> int:
    """Extract the numeric suffix of a code issued with this prefix."""
    if not code or not code.startswith(prefix):
        raise CodeGenerationError(
            f"Cannot parse code {code!r}: expected prefix {prefix!r}",
            details={"code": code, "prefix": prefix},
        )
    suffix = code[len(prefix):]
    if not suffix.isdigit():
        raise CodeGenerationError(
            f"Cannot parse code {code!r}: suffix {suffix!r} is not numeric",
            details={"code": code, "prefix": prefix},
        )
    return int(suffix)


def next_code(prefix: str, last_code: str | None, width: int) -> str:
    """
    Next code after last_code; the first code of the sequence when none exists.

    Raises CodeGenerationError if last_code does not parse.
    """
    if last_code is None:
        return format_code(prefix, 1, width)
    return format_code(prefix, parse_code_number(last_code, prefix) + 1, width)


def invoice_number_for(row_id: int, *, prefix: str = "INV", width: int = 6) -> str:
    """Invoice number derived from the invoice's storage-assigned id."""
    if row_id is None:
        raise CodeGenerationError("Invoice id not assigned; flush the invoice before numbering it")
    return format_code(f"{prefix}-", row_id, width)


def _seed_number(prefix: str, last_issued) -> int:
    last_code = last_issued() if last_issued else None
    if last_code is None:
        return 1
    return parse_code_number(last_code, prefix) + 1


def allocate_code(
    *,
    sequence_name: str,
    prefix: str,
    width: int,
    last_issued=None,
) -> str:
    """
    Atomically allocate the next code of a named sequence.

    Single UPDATE ... SET next_number = next_number + 1 on the sequence row;
    the database serializes concurrent allocations. When the row does not
    exist yet it is created from last_issued() (a callable returning the most
    recently issued code or None). Must run inside the caller's transaction.
    """
    if not sequence_name:
        raise CodeGenerationError("sequence_name is required")

    stmt = (
        update(CodeSequence)
        .where(CodeSequence.name == sequence_name)
        .values(next_number=CodeSequence.next_number + 1)
    )

    result = db.session.execute(stmt)
    if not result.rowcount:
        start = _seed_number(prefix, last_issued)
        try:
            with db.session.begin_nested():
                db.session.add(CodeSequence(name=sequence_name, next_number=start + 1))
            return format_code(prefix, start, width)
        except IntegrityError:
            # Another writer seeded the row first; take the next number from it
            result = db.session.execute(stmt)
            if not result.rowcount:
                raise

    current = (
        db.session.query(CodeSequence.next_number)
        .filter_by(name=sequence_name)
        .scalar()
    )
    return format_code(prefix, current - 1, width)
