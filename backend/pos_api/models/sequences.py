from __future__ import annotations

from ..extensions import db


class CodeSequence(db.Model):
    """
    Atomic counters for human-readable codes (item codes, category codes).

    WHY: Prevent race conditions when two writers derive the next code from
    the same "last issued" row.
    """
    __tablename__ = "code_sequences"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(32), nullable=False, unique=True)
    next_number = db.Column(db.Integer, nullable=False, default=1)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())

    def __repr__(self) -> str:
        return f"<CodeSequence name={self.name!r} next_number={self.next_number}>"
