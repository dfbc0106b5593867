"""Warning counters & violation history data access"""
from __future__ import annotations

import json
import sqlite3
import time
from typing import Callable, Optional

from ...domain.moderation.models import ViolationRecord


class WarningRepository:
    """Per (guild, user, rule type) warning counters plus the append-only violation log.

    A counter whose last violation is older than ``decay_seconds`` reads as
    zero and is cleared on that read. ``decay_seconds=0`` disables decay.
    """
    def __init__(self, conn: sqlite3.Connection, decay_seconds: int = 3600, clock: Callable[[], float] = time.time):
        self.conn = conn
        self.decay_seconds = decay_seconds
        self._clock = clock

    def _now(self) -> int:
        return int(self._clock())

    def _decayed(self, last_ts) -> bool:
        return bool(self.decay_seconds) and last_ts is not None and self._now() - int(last_ts) > self.decay_seconds

    def get_warning_count(self, guild_id: int, user_id: int, rule_type: str) -> int:
        cur = self.conn.execute(
            "SELECT count, last_violation_ts FROM warning_counts WHERE guild_id=? AND user_id=? AND rule_type=?",
            (str(guild_id), str(user_id), rule_type),
        )
        row = cur.fetchone()
        if not row:
            return 0
        if self._decayed(row[1]):
            self.reset_warning_count(guild_id, user_id, rule_type)
            return 0
        return max(0, int(row[0] or 0))

    def get_total_warning_count(self, guild_id: int, user_id: int) -> int:
        """Live warnings for a member summed over every rule type."""
        rows = self.conn.execute(
            "SELECT count, last_violation_ts FROM warning_counts WHERE guild_id=? AND user_id=?",
            (str(guild_id), str(user_id)),
        ).fetchall()
        return sum(max(0, int(count or 0)) for count, last_ts in rows if not self._decayed(last_ts))

    def increment_warning_count(self, guild_id: int, user_id: int, rule_type: str, amount: int = 1) -> int:
        # a decayed counter restarts from zero
        current = self.get_warning_count(guild_id, user_id, rule_type)
        self.conn.execute(
            "INSERT INTO warning_counts(guild_id,user_id,rule_type,count,last_violation_ts) VALUES(?,?,?,?,?) "
            "ON CONFLICT(guild_id,user_id,rule_type) DO UPDATE SET count=excluded.count, "
            "last_violation_ts=excluded.last_violation_ts",
            (str(guild_id), str(user_id), rule_type, current + int(amount), self._now()),
        )
        self.conn.commit()
        return current + int(amount)

    def reset_warning_count(self, guild_id: int, user_id: int, rule_type: str) -> None:
        self.conn.execute(
            "UPDATE warning_counts SET count=0 WHERE guild_id=? AND user_id=? AND rule_type=?",
            (str(guild_id), str(user_id), rule_type),
        )
        self.conn.commit()

    def record_violation(self, record: ViolationRecord) -> int:
        cur = self.conn.execute(
            "INSERT INTO violations(ts,guild_id,user_id,rule_id,rule_type,rule_name,reason,message_content,channel_id,"
            "message_id,action_taken,warning_increment,total_warnings,threshold,moderator_id,is_auto_mod,severity,metadata_json) "
            "VALUES(?,?,?,?,?,?,?,?,?,?,?,?,?,?,?,?,?,?)",
            (
                self._now(),
                str(record.guild_id),
                str(record.user_id),
                record.rule_id,
                record.rule_type,
                record.rule_name,
                record.reason,
                record.message_content,
                str(record.channel_id) if record.channel_id else None,
                str(record.message_id) if record.message_id else None,
                record.action_taken,
                record.warning_increment,
                record.total_warnings,
                record.threshold,
                str(record.moderator_id) if record.moderator_id else None,
                1 if record.is_auto_mod else 0,
                record.severity,
                json.dumps(record.metadata or {}),
            ),
        )
        self.conn.commit()
        return int(cur.lastrowid)

    def fetch_violations(self, guild_id: int, user_id: int, limit: int = 20, offset: int = 0, window_minutes: Optional[int] = None) -> list[dict]:
        clauses = ["guild_id = ?", "user_id = ?"]
        params: list = [str(guild_id), str(user_id)]
        if window_minutes is not None and window_minutes > 0:
            clauses.append("ts >= ?")
            params.append(self._now() - window_minutes * 60)
        sql = (
            "SELECT id, ts, rule_name, rule_type, reason, action_taken, severity, total_warnings, threshold, metadata_json, message_content "
            f"FROM violations WHERE {' AND '.join(clauses)} ORDER BY ts DESC, id DESC LIMIT ? OFFSET ?"
        )
        params.append(int(limit))
        params.append(int(max(0, offset)))
        rows: list[dict] = []
        for r in self.conn.execute(sql, params).fetchall():
            rows.append(
                {
                    'id': r[0],
                    'ts': r[1],
                    'rule_name': r[2],
                    'rule_type': r[3],
                    'reason': r[4],
                    'action_taken': r[5],
                    'severity': r[6],
                    'total_warnings': r[7],
                    'threshold': r[8],
                    'metadata': json.loads(r[9]) if r[9] else {},
                    'message_content': r[10],
                }
            )
        return rows

    def count_violations(self, guild_id: int, user_id: int) -> int:
        cur = self.conn.execute(
            "SELECT COUNT(*) FROM violations WHERE guild_id=? AND user_id=?",
            (str(guild_id), str(user_id)),
        )
        row = cur.fetchone()
        return int(row[0]) if row else 0

__all__ = ["WarningRepository"]
