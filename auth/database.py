"""Database operations for the accounts table.

The accounts table is the only durable server-side state. Every mutation is
a single statement so concurrent requests never interleave a read and a
write on the same row.
"""

from datetime import datetime
from typing import Any
from uuid import UUID

from psycopg2.extras import Json

from clients.postgres_client import PostgresClient
from auth.types import Account, AccountTier
from utils.timezone import to_utc


ACCOUNT_COLUMNS = """id, email, tier, is_verified, otp_code, otp_expires_at,
    created_at, last_login_at, subscription_end_at, last_payment_at,
    razorpay_order_id, razorpay_payment_id, settings"""


def _utc(value: datetime | None) -> datetime | None:
    # timestamptz comes back in the session time zone
    return to_utc(value) if value is not None else None


def _row_to_account(row: dict[str, Any]) -> Account:
    return Account(
        id=UUID(row["id"]) if isinstance(row["id"], str) else row["id"],
        email=row["email"],
        tier=AccountTier(row["tier"]),
        is_verified=row["is_verified"],
        otp_code=row["otp_code"],
        otp_expires_at=_utc(row["otp_expires_at"]),
        created_at=_utc(row["created_at"]),
        last_login_at=_utc(row["last_login_at"]),
        subscription_end_at=_utc(row["subscription_end_at"]),
        last_payment_at=_utc(row["last_payment_at"]),
        razorpay_order_id=row["razorpay_order_id"],
        razorpay_payment_id=row["razorpay_payment_id"],
        settings=row["settings"] or {},
    )


class AccountDatabase:
    """Database operations for accounts."""

    def __init__(self, postgres: PostgresClient):
        self._db = postgres

    def get_account_by_email(self, email: str) -> Account | None:
        """Find account by email (case-insensitive)."""
        row = self._db.execute_single(
            f"SELECT {ACCOUNT_COLUMNS} FROM accounts WHERE email = lower(%s)",
            (email,),
        )
        return _row_to_account(row) if row else None

    def get_account_by_id(self, account_id: UUID) -> Account | None:
        """Find account by ID."""
        row = self._db.execute_single(
            f"SELECT {ACCOUNT_COLUMNS} FROM accounts WHERE id = %s",
            (account_id,),
        )
        return _row_to_account(row) if row else None

    def get_or_create_account(self, email: str) -> tuple[Account, bool]:
        """Get existing or create new account.

        Returns:
            Tuple of (account, was_created)
        """
        rows = self._db.execute_returning(
            f"""INSERT INTO accounts (email)
                VALUES (lower(%s))
                ON CONFLICT (email) DO NOTHING
                RETURNING {ACCOUNT_COLUMNS}""",
            (email,),
        )
        if rows:
            return _row_to_account(rows[0]), True

        existing = self.get_account_by_email(email)
        if existing is None:
            raise RuntimeError(f"Account for {email} vanished during get_or_create")
        return existing, False

    def store_otp(self, account_id: UUID, code: str, expires_at: datetime) -> None:
        """Replace any pending code with a new one."""
        self._db.execute_returning(
            """UPDATE accounts
               SET otp_code = %s, otp_expires_at = %s
               WHERE id = %s
               RETURNING id""",
            (code, expires_at, account_id),
        )

    def consume_otp(self, email: str, code: str, now: datetime) -> Account | None:
        """Atomically check-and-clear a pending code.

        The row is only updated while the stored code still equals `code`
        and has not expired, so of two concurrent verifications at most one
        gets a row back.

        Returns:
            Updated account (code cleared, verified, last_login set), or None.
        """
        rows = self._db.execute_returning(
            f"""UPDATE accounts
                SET otp_code = NULL,
                    otp_expires_at = NULL,
                    is_verified = true,
                    last_login_at = %s
                WHERE email = lower(%s)
                  AND otp_code = %s
                  AND otp_expires_at > %s
                RETURNING {ACCOUNT_COLUMNS}""",
            (now, email, code, now),
        )
        return _row_to_account(rows[0]) if rows else None

    def merge_settings(self, account_id: UUID, updates: dict[str, Any]) -> Account | None:
        """Merge `updates` into the settings document, leaving other keys untouched."""
        rows = self._db.execute_returning(
            f"""UPDATE accounts
                SET settings = COALESCE(settings, '{{}}'::jsonb) || %s::jsonb
                WHERE id = %s
                RETURNING {ACCOUNT_COLUMNS}""",
            (Json(updates), account_id),
        )
        return _row_to_account(rows[0]) if rows else None

    def apply_entitlement(
        self,
        account_id: UUID,
        tier: AccountTier,
        order_id: str,
        payment_id: str,
        paid_at: datetime,
        subscription_end_at: datetime,
    ) -> Account | None:
        """Record a verified payment and the resulting paid tier."""
        rows = self._db.execute_returning(
            f"""UPDATE accounts
                SET tier = %s,
                    razorpay_order_id = %s,
                    razorpay_payment_id = %s,
                    last_payment_at = %s,
                    subscription_end_at = %s
                WHERE id = %s
                RETURNING {ACCOUNT_COLUMNS}""",
            (tier.value, order_id, payment_id, paid_at, subscription_end_at, account_id),
        )
        return _row_to_account(rows[0]) if rows else None

    def delete_account(self, account_id: UUID) -> bool:
        """Permanently delete account.

        Returns:
            True if account was found and deleted, False if not found.
        """
        rows = self._db.execute_returning(
            "DELETE FROM accounts WHERE id = %s RETURNING id",
            (account_id,),
        )
        return len(rows) > 0

