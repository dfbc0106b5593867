"""Lightweight runtime migration helpers."""
from __future__ import annotations

import sqlite3

# table -> [(column, ddl)] added after the first schema release
_ADDED_COLUMNS = {
    'violations': [
        ('severity', "ALTER TABLE violations ADD COLUMN severity TEXT DEFAULT 'medium'"),
        ('metadata_json', "ALTER TABLE violations ADD COLUMN metadata_json TEXT"),
        ('moderator_id', "ALTER TABLE violations ADD COLUMN moderator_id TEXT"),
    ],
    'antiraid_log': [
        ('verification_level', "ALTER TABLE antiraid_log ADD COLUMN verification_level INTEGER"),
        ('join_source', "ALTER TABLE antiraid_log ADD COLUMN join_source TEXT"),
    ],
    'warning_counts': [
        ('rule_type', "ALTER TABLE warning_counts ADD COLUMN rule_type TEXT"),
    ],
}

_REKEY_WARNING_COUNTS = """
ALTER TABLE warning_counts RENAME TO warning_counts_old;
CREATE TABLE warning_counts(
  guild_id TEXT NOT NULL,
  user_id TEXT NOT NULL,
  rule_type TEXT NOT NULL DEFAULT '',
  count INTEGER NOT NULL DEFAULT 0,
  last_violation_ts INTEGER,
  PRIMARY KEY (guild_id, user_id, rule_type)
);
INSERT INTO warning_counts(guild_id,user_id,rule_type,count,last_violation_ts)
  SELECT guild_id, user_id, COALESCE(rule_type, ''), count, last_violation_ts FROM warning_counts_old;
DROP TABLE warning_counts_old;
"""


def _primary_key(conn: sqlite3.Connection, table: str) -> list[str]:
    # PRAGMA table_info: (cid, name, type, notnull, default, pk)
    rows = conn.execute(f"PRAGMA table_info({table})").fetchall()
    return [row[1] for row in sorted((r for r in rows if r[5]), key=lambda r: r[5])]


def apply_runtime_migrations(conn: sqlite3.Connection) -> None:
    """Ensure newly added columns and keys exist (idempotent)."""
    altered = False
    for table, columns in _ADDED_COLUMNS.items():
        cur = conn.execute(f"PRAGMA table_info({table})")
        existing = {row[1] for row in cur.fetchall()}
        for name, ddl in columns:
            if name not in existing:
                conn.execute(ddl)
                altered = True
    if altered:
        conn.commit()
    # counters were once keyed per (guild, user); old rows keep their stored rule type
    if _primary_key(conn, 'warning_counts') != ['guild_id', 'user_id', 'rule_type']:
        conn.executescript(_REKEY_WARNING_COUNTS)
        conn.commit()

__all__ = ["apply_runtime_migrations"]
