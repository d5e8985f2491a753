"""
Schema definitions for telegram-mcp.

This module defines the Pydantic models used throughout the project:
- CacheEntry/CacheStats: Key-value cache rows and statistics
- LogEntry/LogFilter: Structured log records and the predicates to find them
- Account/Session: Two views over one row of the sessions table
- Chat/Message/User/UserInfo/Attachment: Telegram data returned by providers

Design Decisions:
    - All timestamps are integer milliseconds since the epoch
    - Storage rows are converted to models at the store boundary
    - Telegram models are mutable; the mock provider updates them in place
"""

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


# =============================================================================
# Enums
# =============================================================================


class LogLevel(str, Enum):
    """Severity of a persisted log entry, ordered debug < info < warn < error."""

    DEBUG = "debug"
    INFO = "info"
    WARN = "warn"
    ERROR = "error"

    @property
    def priority(self) -> int:
        """Numeric priority used for level gating."""
        return _LOG_LEVEL_PRIORITY[self]


_LOG_LEVEL_PRIORITY = {
    LogLevel.DEBUG: 0,
    LogLevel.INFO: 1,
    LogLevel.WARN: 2,
    LogLevel.ERROR: 3,
}


class AccountStatus(str, Enum):
    """
    Status of a Telegram account.

    Reads only ever derive ACTIVE or INACTIVE from the stored is_active flag.
    PENDING_AUTH is reported once, by create_account, and is never persisted.
    """

    ACTIVE = "active"
    INACTIVE = "inactive"
    PENDING_AUTH = "pending_auth"
    ERROR = "error"


class ChatType(str, Enum):
    """Kind of Telegram conversation."""

    PRIVATE = "private"
    GROUP = "group"
    CHANNEL = "channel"


class AttachmentType(str, Enum):
    """Kind of message attachment."""

    PHOTO = "photo"
    VIDEO = "video"
    AUDIO = "audio"
    DOCUMENT = "document"
    VOICE = "voice"


# =============================================================================
# Cache Models
# =============================================================================


class CacheEntry(BaseModel):
    """
    A row of the cache table.

    Attributes:
        key: Unique cache key
        value: Deserialized value
        expires_at: Absolute expiry in ms, None if the entry never expires
        created_at: Time of the last write in ms
    """

    model_config = ConfigDict(frozen=True)

    key: str
    value: Any = None
    expires_at: int | None = None
    created_at: int

    def is_expired(self, now: int) -> bool:
        """Whether the entry is expired at ``now``."""
        return self.expires_at is not None and self.expires_at < now


class CacheStats(BaseModel):
    """
    Cache statistics.

    total_entries, expired_entries and size are read fresh from storage;
    hit_count and miss_count are process-local counters.
    """

    model_config = ConfigDict(frozen=True)

    total_entries: int = Field(default=0, ge=0)
    expired_entries: int = Field(default=0, ge=0)
    hit_count: int = Field(default=0, ge=0)
    miss_count: int = Field(default=0, ge=0)
    size: int = Field(default=0, ge=0, description="Total bytes of serialized values")


# =============================================================================
# Log Models
# =============================================================================


class LogEntry(BaseModel):
    """
    A structured log record.

    The free-text message passed to the log store is not part of the record;
    only the structured fields are persisted.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    timestamp: int
    level: LogLevel
    tool: str | None = None
    action: str | None = None
    arguments: dict[str, Any] | None = None
    result: Any = None
    error: str | None = None
    duration: int | None = None
    session_id: str | None = None
    project_id: str | None = None
    server_id: str | None = None
    metadata: dict[str, Any] | None = None


# Columns a LogFilter may constrain, mapped to (column, operator).
_FILTER_COLUMNS: dict[str, tuple[str, str]] = {
    "level": ("level", "="),
    "tool": ("tool", "="),
    "session_id": ("session_id", "="),
    "start_date": ("timestamp", ">="),
    "end_date": ("timestamp", "<="),
}


class LogFilter(BaseModel):
    """
    Conjunctive predicates over the logs table.

    Unset fields add no predicate. ``level`` is a plain string so that an
    unknown level simply matches nothing.

    Attributes:
        level: Exact level match
        tool: Exact tool match
        session_id: Exact session id match
        start_date: Inclusive lower bound on timestamp (ms)
        end_date: Inclusive upper bound on timestamp (ms)
        limit: Maximum rows returned by a query
        offset: Rows skipped by a query
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    level: str | None = None
    tool: str | None = None
    session_id: str | None = None
    start_date: int | None = None
    end_date: int | None = None
    limit: int = Field(default=100, ge=1)
    offset: int = Field(default=0, ge=0)

    def predicates(self) -> list[tuple[str, Any]]:
        """Return (sql_fragment, parameter) pairs for every set field."""
        result = []
        for name, (column, op) in _FILTER_COLUMNS.items():
            value = getattr(self, name)
            if value is not None:
                result.append((f"{column} {op} ?", value))
        return result

    def where_clause(self) -> tuple[str, list[Any]]:
        """Build a WHERE clause (possibly empty) and its parameters."""
        preds = self.predicates()
        if not preds:
            return "", []
        clause = "WHERE " + " AND ".join(fragment for fragment, _ in preds)
        return clause, [value for _, value in preds]


# =============================================================================
# Account Models
# =============================================================================


class Session(BaseModel):
    """Authentication view of a sessions row."""

    id: str
    phone: str
    user_id: str
    username: str | None = None
    created_at: int
    last_active_at: int
    is_active: bool


class Account(BaseModel):
    """
    Account view of a sessions row.

    Attributes:
        id: Account id
        phone: Phone number, unique across accounts
        status: Derived from is_active on reads
        session: Present only once the account is linked to a Telegram user
        created_at: Creation time in ms
        updated_at: Mirrors the row's last_active_at
        error: Last error message; never persisted
    """

    id: str
    phone: str
    status: AccountStatus
    session: Session | None = None
    created_at: int
    updated_at: int
    error: str | None = None


# =============================================================================
# Telegram Models
# =============================================================================


class User(BaseModel):
    """A Telegram user."""

    id: str
    username: str | None = None
    first_name: str | None = None
    last_name: str | None = None
    phone: str | None = None
    is_bot: bool = False
    photo_url: str | None = None


class UserInfo(BaseModel):
    """The currently logged-in user as reported by a provider."""

    id: str
    phone: str
    username: str | None = None
    first_name: str | None = None
    last_name: str | None = None
    is_bot: bool = False


class Attachment(BaseModel):
    """A file attached to a message."""

    type: AttachmentType
    url: str | None = None
    file_name: str | None = None
    file_size: int | None = None
    mime_type: str | None = None


class Message(BaseModel):
    """A Telegram message."""

    id: str
    chat_id: str
    sender: User
    text: str
    timestamp: int
    reply_to: "Message | None" = None
    attachments: list[Attachment] | None = None
    is_read: bool = False


class Chat(BaseModel):
    """A Telegram conversation."""

    id: str
    title: str
    type: ChatType
    username: str | None = None
    photo_url: str | None = None
    last_message: Message | None = None
    unread_count: int = Field(default=0, ge=0)
