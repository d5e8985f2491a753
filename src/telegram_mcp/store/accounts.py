"""
Account and session registry backed by the ``sessions`` table.

Each row is one phone-identified Telegram account. The same row is exposed
two ways:
    - Account: status derived from is_active, with a nested Session once the
      account is linked to a Telegram user (user_id != "")
    - Session: the raw authentication fields

Status on read is always ACTIVE or INACTIVE. ``create_account`` returns
PENDING_AUTH, which is not stored; a later read of the same account reports
INACTIVE until ``activate_session`` runs.
"""

import sqlite3
from collections.abc import Callable

from telegram_mcp.schema import Account, AccountStatus, Session
from telegram_mcp.store.db import Database, generate_id, now_ms


class AccountRegistry:
    """
    CRUD over Telegram accounts.

    Attributes:
        db: Shared database handle
        clock: Returns the current time in ms
    """

    def __init__(self, db: Database, clock: Callable[[], int] = now_ms) -> None:
        self.db = db
        self.clock = clock

    def create_account(self, phone: str) -> Account:
        """
        Create an unlinked, inactive account for ``phone``.

        Returns:
            The new account with status PENDING_AUTH

        Raises:
            StorageWriteError: If an account with this phone already exists
        """
        now = self.clock()
        account = Account(
            id=generate_id(),
            phone=phone,
            status=AccountStatus.PENDING_AUTH,
            created_at=now,
            updated_at=now,
        )
        self.db.write(
            "accounts.create",
            """
            INSERT INTO sessions (
                id, phone, user_id, username, created_at, last_active_at, is_active
            ) VALUES (?, ?, '', NULL, ?, ?, 0)
            """,
            (account.id, phone, now, now),
        )
        return account

    def get_account(self, account_id: str) -> Account | None:
        """Get an account by id."""
        row = self.db.read_one(
            "accounts.get",
            "SELECT * FROM sessions WHERE id = ?",
            (account_id,),
        )
        return self._row_to_account(row) if row else None

    def get_account_by_phone(self, phone: str) -> Account | None:
        """Get an account by phone number."""
        row = self.db.read_one(
            "accounts.get_by_phone",
            "SELECT * FROM sessions WHERE phone = ?",
            (phone,),
        )
        return self._row_to_account(row) if row else None

    def get_all_accounts(self) -> list[Account]:
        """All accounts, most recently created first."""
        rows = self.db.read_all(
            "accounts.get_all",
            "SELECT * FROM sessions ORDER BY created_at DESC, rowid DESC",
        )
        return [self._row_to_account(row) for row in rows]

    def get_active_accounts(self) -> list[Account]:
        """Active accounts, most recently active first."""
        rows = self.db.read_all(
            "accounts.get_active",
            """
            SELECT * FROM sessions
            WHERE is_active = 1
            ORDER BY last_active_at DESC, rowid DESC
            """,
        )
        return [self._row_to_account(row) for row in rows]

    def update_account_status(
        self,
        account_id: str,
        status: AccountStatus | str,
        error: str | None = None,
    ) -> None:
        """
        Set is_active from ``status``.

        Only ACTIVE marks the account active; every other status stores
        inactive. ``error`` is accepted but not persisted.
        """
        is_active = 1 if AccountStatus(status) == AccountStatus.ACTIVE else 0
        self.db.write(
            "accounts.update_status",
            "UPDATE sessions SET is_active = ? WHERE id = ?",
            (is_active, account_id),
        )

    def activate_session(
        self,
        account_id: str,
        user_id: str,
        username: str | None = None,
    ) -> None:
        """Link the account to a Telegram user and mark it active."""
        self.db.write(
            "accounts.activate",
            """
            UPDATE sessions
            SET user_id = ?, username = ?, last_active_at = ?, is_active = 1
            WHERE id = ?
            """,
            (user_id, username, self.clock(), account_id),
        )

    def deactivate_session(self, account_id: str) -> None:
        """Mark the account inactive; last_active_at is left unchanged."""
        self.db.write(
            "accounts.deactivate",
            "UPDATE sessions SET is_active = 0 WHERE id = ?",
            (account_id,),
        )

    def touch_session(self, account_id: str) -> None:
        """Set last_active_at to now."""
        self.db.write(
            "accounts.touch",
            "UPDATE sessions SET last_active_at = ? WHERE id = ?",
            (self.clock(), account_id),
        )

    def delete_account(self, account_id: str) -> bool:
        """Delete an account; True if it existed."""
        changed = self.db.write(
            "accounts.delete",
            "DELETE FROM sessions WHERE id = ?",
            (account_id,),
        )
        return changed > 0

    def get_session(self, account_id: str) -> Session | None:
        """Get the session view of an account."""
        row = self.db.read_one(
            "accounts.get_session",
            "SELECT * FROM sessions WHERE id = ?",
            (account_id,),
        )
        return self._row_to_session(row) if row else None

    def get_active_session(self) -> Session | None:
        """The most recently active session, if any account is active."""
        row = self.db.read_one(
            "accounts.get_active_session",
            """
            SELECT * FROM sessions
            WHERE is_active = 1
            ORDER BY last_active_at DESC, rowid DESC
            LIMIT 1
            """,
        )
        return self._row_to_session(row) if row else None

    def count(self) -> int:
        """Number of accounts."""
        return self.db.scalar("accounts.count", "SELECT COUNT(*) FROM sessions")

    def _row_to_account(self, row: sqlite3.Row) -> Account:
        """Convert a sessions row into an Account."""
        status = AccountStatus.ACTIVE if row["is_active"] else AccountStatus.INACTIVE
        return Account(
            id=row["id"],
            phone=row["phone"],
            status=status,
            session=self._row_to_session(row) if row["user_id"] else None,
            created_at=row["created_at"],
            updated_at=row["last_active_at"],
        )

    def _row_to_session(self, row: sqlite3.Row) -> Session:
        """Convert a sessions row into a Session."""
        return Session(
            id=row["id"],
            phone=row["phone"],
            user_id=row["user_id"],
            username=row["username"],
            created_at=row["created_at"],
            last_active_at=row["last_active_at"],
            is_active=bool(row["is_active"]),
        )
