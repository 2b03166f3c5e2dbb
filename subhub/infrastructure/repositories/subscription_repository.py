"""Repository for Subscription persistence."""

import logging
import sqlite3
import uuid
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, Dict, Iterator, List, Optional

from subhub.domain.exceptions import StorageError
from subhub.domain.models.subscription import ACCESS_STATUSES, TRIALING, Subscription

logger = logging.getLogger(__name__)

_UPDATABLE_FIELDS = (
    "plan",
    "status",
    "billing_cycle",
    "current_period_start",
    "current_period_end",
    "cancel_at_period_end",
    "provider_subscription_id",
)


class SubscriptionRepository:
    """Repository for managing Subscription entities in SQLite."""

    def __init__(self, db_path: str):
        self.db_path = db_path
        self._initialize_table()

    def _initialize_table(self) -> None:
        """Create subscriptions table if it doesn't exist."""
        with self._connect("initialize subscriptions table") as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS subscriptions (
                    id TEXT PRIMARY KEY,
                    user_id TEXT NOT NULL,
                    plan TEXT NOT NULL,
                    status TEXT NOT NULL,
                    billing_cycle TEXT NOT NULL,
                    current_period_start TEXT NOT NULL,
                    current_period_end TEXT NOT NULL,
                    cancel_at_period_end INTEGER NOT NULL DEFAULT 0,
                    provider_subscription_id TEXT UNIQUE,
                    created_at TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                )
            """)
            conn.execute(
                "CREATE INDEX IF NOT EXISTS idx_subscriptions_user_id ON subscriptions(user_id)"
            )
            # One access-granting record per user.
            conn.execute(
                """
                CREATE UNIQUE INDEX IF NOT EXISTS idx_subscriptions_one_effective
                ON subscriptions(user_id) WHERE status IN ('active', 'trialing')
                """
            )

    @contextmanager
    def _connect(self, operation: str) -> Iterator[sqlite3.Connection]:
        conn: Optional[sqlite3.Connection] = None
        try:
            conn = sqlite3.connect(self.db_path)
            conn.row_factory = sqlite3.Row
            with conn:
                yield conn
        except sqlite3.Error as exc:
            logger.error("Failed to %s: %s", operation, exc)
            raise StorageError(f"Failed to {operation}", details=str(exc)) from exc
        finally:
            if conn is not None:
                conn.close()

    def create(
        self,
        user_id: str,
        plan: str,
        status: str,
        billing_cycle: str,
        current_period_start: datetime,
        current_period_end: datetime,
        cancel_at_period_end: bool = False,
        provider_subscription_id: Optional[str] = None,
    ) -> Subscription:
        """Create a new subscription."""
        subscription_id = uuid.uuid4().hex
        now = _format(datetime.now(timezone.utc))

        with self._connect("create subscription") as conn:
            conn.execute(
                """
                INSERT INTO subscriptions (
                    id, user_id, plan, status, billing_cycle,
                    current_period_start, current_period_end, cancel_at_period_end,
                    provider_subscription_id, created_at, updated_at
                )
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    subscription_id,
                    user_id,
                    plan,
                    status,
                    billing_cycle,
                    _format(current_period_start),
                    _format(current_period_end),
                    int(cancel_at_period_end),
                    provider_subscription_id,
                    now,
                    now,
                ),
            )

        created = self.get_by_id(subscription_id)
        if created is None:
            raise StorageError("Failed to create subscription")
        return created

    def get_by_id(self, subscription_id: str) -> Optional[Subscription]:
        """Get subscription by ID."""
        with self._connect("fetch subscription") as conn:
            row = conn.execute(
                "SELECT * FROM subscriptions WHERE id = ?", (subscription_id,)
            ).fetchone()

        if not row:
            return None

        return self._row_to_subscription(row)

    def find_effective_subscriptions(self, user_id: str) -> List[Subscription]:
        """List the user's access-granting (active or trialing) subscriptions, newest first."""
        placeholders = ", ".join("?" for _ in ACCESS_STATUSES)
        with self._connect("fetch subscription") as conn:
            rows = conn.execute(
                f"""
                SELECT * FROM subscriptions
                WHERE user_id = ? AND status IN ({placeholders})
                ORDER BY created_at DESC
                """,
                (user_id, *ACCESS_STATUSES),
            ).fetchall()

        return [self._row_to_subscription(row) for row in rows]

    def list_by_user_id(self, user_id: str) -> List[Subscription]:
        """List all subscriptions for a user."""
        with self._connect("list subscriptions") as conn:
            rows = conn.execute(
                """
                SELECT * FROM subscriptions
                WHERE user_id = ?
                ORDER BY created_at DESC
                """,
                (user_id,),
            ).fetchall()

        return [self._row_to_subscription(row) for row in rows]

    def list_expiring_trials(self, ended_after: datetime, ended_before: datetime) -> List[Subscription]:
        """List trials whose current period ended inside the given window.

        Trials already scheduled to cancel at period end are left out.
        """
        with self._connect("query expiring trials") as conn:
            rows = conn.execute(
                """
                SELECT * FROM subscriptions
                WHERE status = ?
                  AND cancel_at_period_end = 0
                  AND current_period_end <= ?
                  AND current_period_end >= ?
                ORDER BY current_period_end ASC
                """,
                (TRIALING, _format(ended_before), _format(ended_after)),
            ).fetchall()

        return [self._row_to_subscription(row) for row in rows]

    def update_subscription(self, subscription_id: str, patch: Dict[str, Any]) -> Subscription:
        """Apply a partial update and return the stored record."""
        unknown = set(patch) - set(_UPDATABLE_FIELDS)
        if unknown:
            raise ValueError(f"Cannot update subscription fields: {', '.join(sorted(unknown))}")

        updates = []
        params: List[Any] = []
        for field_name in _UPDATABLE_FIELDS:
            if field_name not in patch:
                continue
            value = patch[field_name]
            if isinstance(value, datetime):
                value = _format(value)
            elif isinstance(value, bool):
                value = int(value)
            updates.append(f"{field_name} = ?")
            params.append(value)

        updates.append("updated_at = ?")
        params.append(_format(datetime.now(timezone.utc)))
        params.append(subscription_id)

        with self._connect("update subscription") as conn:
            cursor = conn.execute(
                f"UPDATE subscriptions SET {', '.join(updates)} WHERE id = ?",
                params,
            )
            if cursor.rowcount == 0:
                raise StorageError(f"Subscription {subscription_id} does not exist")

        updated = self.get_by_id(subscription_id)
        if updated is None:
            raise StorageError(f"Subscription {subscription_id} does not exist")
        return updated

    def _row_to_subscription(self, row: sqlite3.Row) -> Subscription:
        """Convert database row to Subscription entity."""
        return Subscription(
            id=row["id"],
            user_id=row["user_id"],
            plan=row["plan"],
            status=row["status"],
            billing_cycle=row["billing_cycle"],
            current_period_start=_parse_datetime(row["current_period_start"]),
            current_period_end=_parse_datetime(row["current_period_end"]),
            cancel_at_period_end=bool(row["cancel_at_period_end"]),
            provider_subscription_id=row["provider_subscription_id"],
            created_at=_parse_datetime(row["created_at"]),
            updated_at=_parse_datetime(row["updated_at"]),
        )


def _format(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat()


def _parse_datetime(value: str) -> datetime:
    try:
        result = datetime.fromisoformat(value)
    except ValueError:
        # Fallback for legacy formats without 'T'
        result = datetime.strptime(value, "%Y-%m-%d %H:%M:%S")
    if result.tzinfo is None:
        return result.replace(tzinfo=timezone.utc)
    return result.astimezone(timezone.utc)
