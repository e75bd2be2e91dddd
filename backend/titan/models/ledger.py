from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z
from ..validation import format_cents


TX_DEPOSIT = "deposit"
TX_WITHDRAWAL = "withdrawal"
TX_TRANSFER_OUT = "transfer_out"
TX_TRANSFER_IN = "transfer_in"


class Transaction(db.Model):
    """
    Append-only ledger record. One row per deposit or withdrawal,
    two rows per transfer (transfer_out on the sender, transfer_in on the
    receiver, each referencing the other account).

    amount_cents is always a positive magnitude; the direction is carried
    by type.
    """
    __tablename__ = "transactions"
    __table_args__ = (
        db.CheckConstraint("amount_cents > 0", name="ck_transactions_amount_positive"),
        db.CheckConstraint(
            "type IN ('deposit', 'withdrawal', 'transfer_out', 'transfer_in')",
            name="ck_transactions_type_valid",
        ),
        db.Index("ix_transactions_account_created", "account_number", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    account_number = db.Column(
        db.String(20), db.ForeignKey("accounts.account_number"), nullable=False, index=True
    )
    reference_account = db.Column(db.String(20), db.ForeignKey("accounts.account_number"), nullable=True)
    amount_cents = db.Column(db.Integer, nullable=False)
    type = db.Column(db.String(16), nullable=False)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "accountNumber": self.account_number,
            "referenceAccount": self.reference_account,
            "amount": format_cents(self.amount_cents),
            "amountCents": self.amount_cents,
            "type": self.type,
            "createdAt": to_utc_z(self.created_at),
        }
