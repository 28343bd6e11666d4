"""
Thread-safe SQLite store for synchronized content.

SyncStore mirrors a sync session on disk. It plugs into the page merger
as a PersistenceIntegration: upserts and deletions are written as they
are merged, and each page is committed as one transaction right after its
token advance. A crash mid-page therefore loses at most that page, and
the stored token always matches the stored resources.

Schema:
    schema_version:  Single row with the schema version
    entries:         One row per live entry (raw JSON, content type, updated_at)
    assets:          One row per live asset (raw JSON, updated_at)
    deletions:       Ids deleted remotely, with their resource type
    sync_meta:       Key/value pairs (sync_token, last_synced, locales)

Usage:
    store = SyncStore(config.storage.database_path)

    async with ContentDeliveryClient(config, persistence=store) as client:
        table = await client.fetch_locales()
        state = await client.sync(store.load_state(table))
"""

import json
import sqlite3
import threading
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Generator

from content_delivery.core.exceptions import DatabaseError, DecodingError
from content_delivery.resources.decoder import decode_resource
from content_delivery.resources.locale import LocaleTable
from content_delivery.resources.models import Asset, Entry
from content_delivery.sync.persistence import PersistenceIntegration
from content_delivery.sync.resolver import resolve_against
from content_delivery.sync.state import SyncState


DATABASE_VERSION = 1

META_SYNC_TOKEN = "sync_token"
META_LOCALES = "locales"
META_LAST_SYNCED = "last_synced"


_SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS schema_version (
    version INTEGER PRIMARY KEY
);

CREATE TABLE IF NOT EXISTS entries (
    id TEXT PRIMARY KEY,
    content_type_id TEXT,
    updated_at TEXT,
    raw TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS assets (
    id TEXT PRIMARY KEY,
    updated_at TEXT,
    raw TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS deletions (
    id TEXT NOT NULL,
    resource_type TEXT NOT NULL,
    deleted_at TEXT,
    PRIMARY KEY (id, resource_type)
);

CREATE TABLE IF NOT EXISTS sync_meta (
    key TEXT PRIMARY KEY,
    value TEXT
);

CREATE INDEX IF NOT EXISTS idx_entries_content_type ON entries(content_type_id);
"""


class SyncStore(PersistenceIntegration):
    """
    Thread-safe SQLite mirror of a SyncState.

    Uses a single persistent connection with thread locking for safety.
    All public methods acquire self._lock before executing.
    """

    def __init__(self, db_path: Path) -> None:
        self.db_path = db_path
        self._lock = threading.Lock()
        self._conn: sqlite3.Connection | None = None

        if not db_path.parent.exists():
            raise DatabaseError(
                f"Parent directory does not exist: {db_path.parent}",
                details={"path": str(db_path.parent)}
            )

        try:
            self._init_database()
        except sqlite3.Error as e:
            raise DatabaseError(
                f"Failed to initialize database: {e}",
                details={"path": str(db_path)}
            ) from e

    @contextmanager
    def _get_connection(self) -> Generator[sqlite3.Connection, None, None]:
        """
        Yield the persistent connection, creating it on first use.

        sqlite3 errors raised inside the block are wrapped in DatabaseError.
        """
        if self._conn is None:
            self._conn = sqlite3.connect(
                str(self.db_path),
                timeout=30.0,
                check_same_thread=False  # We handle thread safety with _lock
            )
            self._conn.row_factory = sqlite3.Row
            self._conn.execute("PRAGMA journal_mode = WAL")
        try:
            yield self._conn
        except sqlite3.Error as e:
            raise DatabaseError(
                f"Database operation failed: {e}",
                details={"path": str(self.db_path)}
            ) from e

    def close(self) -> None:
        """Close the connection. Uncommitted changes are rolled back."""
        with self._lock:
            if self._conn is not None:
                self._conn.close()
                self._conn = None

    def __del__(self) -> None:
        if getattr(self, "_conn", None) is not None:
            try:
                self._conn.close()
            except sqlite3.Error:
                pass

    def _init_database(self) -> None:
        with self._get_connection() as conn:
            conn.executescript(_SCHEMA_SQL)

            cursor = conn.execute("SELECT version FROM schema_version LIMIT 1")
            row = cursor.fetchone()

            if row is None:
                conn.execute("INSERT INTO schema_version (version) VALUES (?)", (DATABASE_VERSION,))
            elif row[0] != DATABASE_VERSION:
                raise DatabaseError(
                    f"Database version mismatch: expected {DATABASE_VERSION}, got {row[0]}",
                    details={"expected": DATABASE_VERSION, "actual": row[0]}
                )
            conn.commit()

    def _now_iso(self) -> str:
        return datetime.now(timezone.utc).isoformat()

    def _set_meta(self, conn: sqlite3.Connection, key: str, value: str) -> None:
        conn.execute("""
            INSERT INTO sync_meta (key, value) VALUES (?, ?)
            ON CONFLICT(key) DO UPDATE SET value = excluded.value
        """, (key, value))

    def _get_meta(self, key: str) -> str | None:
        with self._lock:
            with self._get_connection() as conn:
                row = conn.execute("SELECT value FROM sync_meta WHERE key = ?", (key,)).fetchone()
                return row[0] if row else None

    # =========================================================================
    # PersistenceIntegration hooks (called by the page merger)
    # =========================================================================

    def on_locales_updated(self, locale_codes: list[str]) -> None:
        with self._lock:
            with self._get_connection() as conn:
                self._set_meta(conn, META_LOCALES, json.dumps(locale_codes))
                conn.commit()

    def on_entry_upserted(self, entry: Entry) -> None:
        updated_at = entry.sys.updated_at.isoformat() if entry.sys.updated_at else None
        with self._lock:
            with self._get_connection() as conn:
                conn.execute("""
                    INSERT INTO entries (id, content_type_id, updated_at, raw)
                    VALUES (?, ?, ?, ?)
                    ON CONFLICT(id) DO UPDATE SET
                        content_type_id = excluded.content_type_id,
                        updated_at = excluded.updated_at,
                        raw = excluded.raw
                """, (entry.id, entry.content_type_id, updated_at, json.dumps(entry.raw)))
                conn.execute(
                    "DELETE FROM deletions WHERE id = ? AND resource_type = 'Entry'", (entry.id,)
                )

    def on_asset_upserted(self, asset: Asset) -> None:
        updated_at = asset.sys.updated_at.isoformat() if asset.sys.updated_at else None
        with self._lock:
            with self._get_connection() as conn:
                conn.execute("""
                    INSERT INTO assets (id, updated_at, raw)
                    VALUES (?, ?, ?)
                    ON CONFLICT(id) DO UPDATE SET
                        updated_at = excluded.updated_at,
                        raw = excluded.raw
                """, (asset.id, updated_at, json.dumps(asset.raw)))
                conn.execute(
                    "DELETE FROM deletions WHERE id = ? AND resource_type = 'Asset'", (asset.id,)
                )

    def _record_deletion(self, table: str, resource_type: str, resource_id: str) -> None:
        with self._lock:
            with self._get_connection() as conn:
                conn.execute(f"DELETE FROM {table} WHERE id = ?", (resource_id,))
                conn.execute("""
                    INSERT OR REPLACE INTO deletions (id, resource_type, deleted_at)
                    VALUES (?, ?, ?)
                """, (resource_id, resource_type, self._now_iso()))

    def on_entry_deleted(self, entry_id: str) -> None:
        self._record_deletion("entries", "Entry", entry_id)

    def on_asset_deleted(self, asset_id: str) -> None:
        self._record_deletion("assets", "Asset", asset_id)

    def on_sync_token_advanced(self, sync_token: str) -> None:
        with self._lock:
            with self._get_connection() as conn:
                self._set_meta(conn, META_SYNC_TOKEN, sync_token)
                self._set_meta(conn, META_LAST_SYNCED, self._now_iso())

    def on_page_committed(self) -> None:
        with self._lock:
            with self._get_connection() as conn:
                conn.commit()

    def rollback(self) -> None:
        """Discard changes of a page that was not committed."""
        with self._lock:
            with self._get_connection() as conn:
                conn.rollback()

    # =========================================================================
    # Reading back
    # =========================================================================

    def get_sync_token(self) -> str | None:
        return self._get_meta(META_SYNC_TOKEN)

    def get_locale_codes(self) -> list[str]:
        value = self._get_meta(META_LOCALES)
        return json.loads(value) if value else []

    def get_last_synced(self) -> str | None:
        return self._get_meta(META_LAST_SYNCED)

    def counts(self) -> dict[str, int]:
        """Row counts: entries, assets, deleted_entries, deleted_assets."""
        with self._lock:
            with self._get_connection() as conn:
                stats = {}
                stats["entries"] = conn.execute("SELECT COUNT(*) FROM entries").fetchone()[0]
                stats["assets"] = conn.execute("SELECT COUNT(*) FROM assets").fetchone()[0]
                stats["deleted_entries"] = conn.execute(
                    "SELECT COUNT(*) FROM deletions WHERE resource_type = 'Entry'"
                ).fetchone()[0]
                stats["deleted_assets"] = conn.execute(
                    "SELECT COUNT(*) FROM deletions WHERE resource_type = 'Asset'"
                ).fetchone()[0]
                return stats

    def load_state(self, locale_table: LocaleTable) -> SyncState:
        """
        Rebuild a resumable SyncState from the stored rows.

        Links between stored resources are resolved again.

        Raises:
            DatabaseError: If a stored row cannot be decoded.
        """
        with self._lock:
            with self._get_connection() as conn:
                entry_rows = conn.execute("SELECT id, raw FROM entries ORDER BY rowid").fetchall()
                asset_rows = conn.execute("SELECT id, raw FROM assets ORDER BY rowid").fetchall()
                deletion_rows = conn.execute("SELECT id, resource_type FROM deletions").fetchall()
                meta = dict(conn.execute("SELECT key, value FROM sync_meta").fetchall())

        state = SyncState(sync_token=meta.get(META_SYNC_TOKEN) or "")

        for row in asset_rows:
            state.assets_by_id[row["id"]] = self._decode_row(row, locale_table)
        for row in entry_rows:
            state.entries_by_id[row["id"]] = self._decode_row(row, locale_table)

        for row in deletion_rows:
            if row["resource_type"] == "Entry":
                state.deleted_entry_ids.add(row["id"])
            else:
                state.deleted_asset_ids.add(row["id"])

        resolve_against(state.entries_by_id.values(), state.entries_by_id, state.assets_by_id)
        return state

    def _decode_row(self, row: sqlite3.Row, locale_table: LocaleTable) -> Entry | Asset:
        try:
            return decode_resource(json.loads(row["raw"]), locale_table)
        except (ValueError, DecodingError) as e:
            raise DatabaseError(
                f"Stored resource '{row['id']}' is corrupted: {e}",
                details={"id": row["id"]}
            ) from e

    def reset(self) -> None:
        """Delete all stored resources, deletions and sync metadata."""
        with self._lock:
            with self._get_connection() as conn:
                conn.execute("DELETE FROM entries")
                conn.execute("DELETE FROM assets")
                conn.execute("DELETE FROM deletions")
                conn.execute("DELETE FROM sync_meta")
                conn.commit()
