"""Anti-raid audit log & raid state data access"""
from __future__ import annotations

import sqlite3
import time
from typing import Callable, Optional

from ...domain.moderation.models import AntiRaidLogEntry, RaidState


class RaidRepository:
    def __init__(self, conn: sqlite3.Connection, clock: Callable[[], float] = time.time):
        self.conn = conn
        self._clock = clock

    def log_event(self, entry: AntiRaidLogEntry) -> int:
        cur = self.conn.execute(
            "INSERT INTO antiraid_log(ts,guild_id,event_type,raid_id,user_id,user_tag,account_age_days,join_count,"
            "young_ratio,action_type,action_duration,member_count,verification_level,join_source) "
            "VALUES(?,?,?,?,?,?,?,?,?,?,?,?,?,?)",
            (
                int(self._clock()),
                str(entry.guild_id),
                entry.event_type,
                entry.raid_id,
                str(entry.user_id) if entry.user_id else None,
                entry.user_tag,
                entry.account_age_days,
                entry.join_count,
                entry.young_ratio,
                entry.action_type,
                entry.action_duration,
                entry.member_count,
                entry.verification_level,
                entry.join_source,
            ),
        )
        self.conn.commit()
        return int(cur.lastrowid)

    def fetch_events(self, guild_id: int, limit: int = 20, event_type: Optional[str] = None) -> list[dict]:
        where = "guild_id=?"
        params: list = [str(guild_id)]
        if event_type:
            where += " AND event_type=?"
            params.append(event_type)
        sql = (
            "SELECT id, ts, event_type, raid_id, user_id, account_age_days, join_count, young_ratio, action_type, join_source "
            f"FROM antiraid_log WHERE {where} ORDER BY id DESC LIMIT ?"
        )
        params.append(int(limit))
        keys = ('id', 'ts', 'event_type', 'raid_id', 'user_id', 'account_age_days', 'join_count', 'young_ratio', 'action_type', 'join_source')
        return [dict(zip(keys, r)) for r in self.conn.execute(sql, params).fetchall()]

    def set_raid_active(self, guild_id: int, started_at: Optional[int] = None) -> None:
        started = int(started_at if started_at is not None else self._clock())
        self.conn.execute(
            "INSERT INTO raid_state(guild_id,active,started_at) VALUES(?,1,?) "
            "ON CONFLICT(guild_id) DO UPDATE SET active=1, started_at=excluded.started_at",
            (str(guild_id), started),
        )
        self.conn.commit()

    def clear_raid(self, guild_id: int) -> bool:
        cur = self.conn.execute(
            "UPDATE raid_state SET active=0 WHERE guild_id=? AND active=1",
            (str(guild_id),),
        )
        self.conn.commit()
        return cur.rowcount > 0

    def get_raid_state(self, guild_id: int) -> RaidState:
        cur = self.conn.execute(
            "SELECT active, started_at FROM raid_state WHERE guild_id=?",
            (str(guild_id),),
        )
        row = cur.fetchone()
        if not row:
            return RaidState(guild_id=guild_id, active=False)
        return RaidState(guild_id=guild_id, active=bool(row[0]), started_at=row[1])

__all__ = ["RaidRepository"]
