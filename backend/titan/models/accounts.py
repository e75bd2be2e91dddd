from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z
from ..validation import format_cents


ACCOUNT_STATUS_PENDING = "pending"
ACCOUNT_STATUS_ACTIVE = "active"
ACCOUNT_STATUS_BLOCKED = "blocked"

VALID_ACCOUNT_STATUSES = [
    ACCOUNT_STATUS_PENDING,
    ACCOUNT_STATUS_ACTIVE,
    ACCOUNT_STATUS_BLOCKED,
]


class Account(db.Model):
    """
    Customer account: credentials, profile, and the mutable balance.

    The balance is stored in integer cents and may never go negative.
    Balance changes happen only through the ledger service, which appends a
    Transaction row in the same database transaction.
    """
    __tablename__ = "accounts"
    __table_args__ = (
        db.CheckConstraint("balance_cents >= 0", name="ck_accounts_balance_non_negative"),
        db.CheckConstraint(
            "status IN ('pending', 'active', 'blocked')",
            name="ck_accounts_status_valid",
        ),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    account_number = db.Column(db.String(20), nullable=False, unique=True, index=True)
    email = db.Column(db.String(255), nullable=False, unique=True, index=True)
    full_name = db.Column(db.String(128), nullable=False)
    phone_number = db.Column(db.String(32), nullable=False)

    # Bcrypt hashed password
    password_hash = db.Column(db.String(255), nullable=False)

    balance_cents = db.Column(db.Integer, nullable=False, default=0, server_default="0")

    # New accounts start pending until activated (CLI: accounts set-status)
    status = db.Column(
        db.String(16),
        nullable=False,
        default=ACCOUNT_STATUS_PENDING,
        server_default=ACCOUNT_STATUS_PENDING,
    )

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    @property
    def is_blocked(self) -> bool:
        return self.status == ACCOUNT_STATUS_BLOCKED

    def to_profile_dict(self) -> dict:
        return {
            "accountNumber": self.account_number,
            "email": self.email,
            "fullName": self.full_name,
            "phoneNumber": self.phone_number,
            "balance": format_cents(self.balance_cents),
            "balanceCents": self.balance_cents,
            "status": self.status,
            "createdAt": to_utc_z(self.created_at),
        }

    def to_summary_dict(self) -> dict:
        return {
            "accountNumber": self.account_number,
            "fullName": self.full_name,
            "balance": format_cents(self.balance_cents),
            "balanceCents": self.balance_cents,
        }


class Cashier(db.Model):
    """
    Back-office staff member. Role is implicitly 'cashier'; there is no
    status flag, so valid credentials alone gate access.
    """
    __tablename__ = "cashiers"
    __table_args__ = (
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String(255), nullable=False, unique=True, index=True)
    password_hash = db.Column(db.String(255), nullable=False)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
