from __future__ import annotations

from ..extensions import db
from tabstock.time_utils import to_utc_z


class User(db.Model):
    """
    Member of the shared tab.

    Read-only for the ledger: users are created by the member-facing side
    (or `flask system seed-demo`), never by the admin API.
    """
    __tablename__ = "users"
    __table_args__ = (
        db.Index("ix_users_active_name", "is_active", "name"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(120), nullable=False)
    email = db.Column(db.String(255), nullable=True)
    is_active = db.Column(db.Boolean, nullable=False, default=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def __repr__(self) -> str:
        return f"<User id={self.id} name={self.name!r}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "is_active": self.is_active,
            "created_at": to_utc_z(self.created_at),
        }
