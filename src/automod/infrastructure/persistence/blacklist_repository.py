"""Per-guild domain blacklist data access"""
from __future__ import annotations

import sqlite3
import time
from typing import Callable


class BlacklistRepository:
    def __init__(self, conn: sqlite3.Connection, clock: Callable[[], float] = time.time):
        self.conn = conn
        self._clock = clock

    def get_blacklisted_domains(self, guild_id: int) -> list[str]:
        cur = self.conn.execute(
            "SELECT domain FROM blacklisted_domains WHERE guild_id=? ORDER BY domain",
            (str(guild_id),),
        )
        return [r[0] for r in cur.fetchall()]

    def add_to_blacklist(self, guild_id: int, domain: str, reason: str) -> bool:
        """Insert ``domain``; returns False when it was already listed."""
        cur = self.conn.execute(
            "INSERT OR IGNORE INTO blacklisted_domains(guild_id,domain,reason,ts) VALUES(?,?,?,?)",
            (str(guild_id), domain.strip().lower(), reason, int(self._clock())),
        )
        self.conn.commit()
        return cur.rowcount > 0

    def get_entry(self, guild_id: int, domain: str) -> dict | None:
        cur = self.conn.execute(
            "SELECT domain, reason, ts FROM blacklisted_domains WHERE guild_id=? AND domain=?",
            (str(guild_id), domain.strip().lower()),
        )
        row = cur.fetchone()
        if not row:
            return None
        return {"domain": row[0], "reason": row[1], "ts": row[2]}

__all__ = ["BlacklistRepository"]
