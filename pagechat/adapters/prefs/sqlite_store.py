"""Namespaced key-value preference store on SQLite.

Several app instances may share one database file. Each store remembers the
version of every key it has seen; `poll_changes()` reports rows whose version
moved since then (i.e. writes made by other instances) to subscribers of the
row's namespace. A store's own writes update its snapshot directly and are
never reported back to it.
"""

from __future__ import annotations

import asyncio
import json
import logging
import os
import sqlite3
import threading
from typing import Any, Callable

from pagechat.core.models import PreferenceChange

logger = logging.getLogger(__name__)

ChangeCallback = Callable[[PreferenceChange], None]


class PreferenceStore:
    def __init__(self, db_path: str):
        self.db_path = db_path
        self._seen: dict[tuple[str, str], tuple[int, Any]] = {}
        self._subscribers: dict[str, list[ChangeCallback]] = {}
        self._lock = threading.Lock()

    def _connect(self) -> sqlite3.Connection:
        return sqlite3.connect(self.db_path, timeout=10)

    def init_db(self) -> None:
        d = os.path.dirname(self.db_path)
        if d:
            os.makedirs(d, exist_ok=True)
        conn = self._connect()
        cur = conn.cursor()
        cur.execute("""
        CREATE TABLE IF NOT EXISTS preferences(
            namespace TEXT NOT NULL,
            key TEXT NOT NULL,
            value_json TEXT,
            version INTEGER NOT NULL DEFAULT 1,
            PRIMARY KEY(namespace, key)
        );
        """)
        conn.commit()
        conn.close()
        # Values present at startup are the baseline, not changes.
        with self._lock:
            for ns, key, version, value in self._read_all():
                self._seen[(ns, key)] = (version, value)

    def _read_all(self) -> list[tuple[str, str, int, Any]]:
        conn = self._connect()
        cur = conn.cursor()
        cur.execute("SELECT namespace, key, version, value_json FROM preferences")
        rows = cur.fetchall()
        conn.close()
        out = []
        for ns, key, version, raw in rows:
            try:
                value = json.loads(raw) if raw is not None else None
            except ValueError:
                logger.warning("Skipping undecodable preference %s/%s", ns, key)
                continue
            out.append((ns, key, version, value))
        return out

    def get(self, namespace: str, key: str, default: Any = None) -> Any:
        conn = self._connect()
        cur = conn.cursor()
        cur.execute("SELECT value_json FROM preferences WHERE namespace=? AND key=?", (namespace, key))
        row = cur.fetchone()
        conn.close()
        if not row or row[0] is None:
            return default
        try:
            return json.loads(row[0])
        except ValueError:
            logger.warning("Undecodable preference %s/%s; using default", namespace, key)
            return default

    def set(self, namespace: str, key: str, value: Any) -> None:
        conn = self._connect()
        cur = conn.cursor()
        cur.execute(
            """
            INSERT INTO preferences(namespace, key, value_json, version) VALUES(?,?,?,1)
            ON CONFLICT(namespace, key) DO UPDATE SET
                value_json=excluded.value_json,
                version=preferences.version + 1
            """,
            (namespace, key, json.dumps(value)),
        )
        cur.execute("SELECT version FROM preferences WHERE namespace=? AND key=?", (namespace, key))
        version = cur.fetchone()[0]
        conn.commit()
        conn.close()
        with self._lock:
            self._seen[(namespace, key)] = (version, value)

    def subscribe(self, namespace: str, callback: ChangeCallback) -> Callable[[], None]:
        """Register `callback` for external changes in `namespace`; returns an unsubscribe function."""
        self._subscribers.setdefault(namespace, []).append(callback)

        def unsubscribe() -> None:
            callbacks = self._subscribers.get(namespace, [])
            if callback in callbacks:
                callbacks.remove(callback)

        return unsubscribe

    def _collect_changes(self) -> list[PreferenceChange]:
        changes: list[PreferenceChange] = []
        with self._lock:
            for ns, key, version, value in self._read_all():
                prev = self._seen.get((ns, key))
                if prev is not None and prev[0] == version:
                    continue
                self._seen[(ns, key)] = (version, value)
                changes.append(PreferenceChange(
                    namespace=ns,
                    key=key,
                    old_value=prev[1] if prev else None,
                    new_value=value,
                ))
        return changes

    def _dispatch(self, changes: list[PreferenceChange]) -> None:
        for change in changes:
            for callback in list(self._subscribers.get(change.namespace, [])):
                try:
                    callback(change)
                except Exception:
                    # a failing subscriber is logged and skipped
                    logger.exception("Preference change handler failed for %s/%s", change.namespace, change.key)

    def poll_changes(self) -> list[PreferenceChange]:
        changes = self._collect_changes()
        self._dispatch(changes)
        return changes

    async def watch(self, interval: float) -> None:
        """Poll for external changes until cancelled."""
        while True:
            await asyncio.sleep(interval)
            try:
                changes = await asyncio.to_thread(self._collect_changes)
            except (sqlite3.Error, ValueError) as e:
                logger.warning("Preference poll failed: %s", e)
                continue
            # callbacks run on the event loop, not the worker thread
            self._dispatch(changes)
