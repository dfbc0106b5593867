"""SQLite persistence core"""
from __future__ import annotations

import os
import sqlite3
import time
from typing import Callable

from .migrations import apply_runtime_migrations
from .warning_repository import WarningRepository
from .blacklist_repository import BlacklistRepository
from .raid_repository import RaidRepository

DB_PATH = os.getenv("SQLITE_PATH", "storage/automod.db")

SCHEMA = """
CREATE TABLE IF NOT EXISTS warning_counts(
  guild_id TEXT NOT NULL,
  user_id TEXT NOT NULL,
  rule_type TEXT NOT NULL DEFAULT '',
  count INTEGER NOT NULL DEFAULT 0,
  last_violation_ts INTEGER,
  PRIMARY KEY (guild_id, user_id, rule_type)
);
CREATE TABLE IF NOT EXISTS violations(
  id INTEGER PRIMARY KEY AUTOINCREMENT,
  ts INTEGER,
  guild_id TEXT,
  user_id TEXT,
  rule_id INTEGER,
  rule_type TEXT,
  rule_name TEXT,
  reason TEXT,
  message_content TEXT,
  channel_id TEXT,
  message_id TEXT,
  action_taken TEXT,
  warning_increment INTEGER DEFAULT 1,
  total_warnings INTEGER,
  threshold INTEGER,
  moderator_id TEXT,
  is_auto_mod INTEGER DEFAULT 1,
  severity TEXT DEFAULT 'medium',
  metadata_json TEXT
);
CREATE INDEX IF NOT EXISTS idx_violations_user_ts ON violations(guild_id, user_id, ts);
CREATE TABLE IF NOT EXISTS blacklisted_domains(
  guild_id TEXT NOT NULL,
  domain TEXT NOT NULL,
  reason TEXT,
  ts INTEGER,
  PRIMARY KEY (guild_id, domain)
);
CREATE TABLE IF NOT EXISTS antiraid_log(
  id INTEGER PRIMARY KEY AUTOINCREMENT,
  ts INTEGER,
  guild_id TEXT,
  event_type TEXT,
  raid_id TEXT,
  user_id TEXT,
  user_tag TEXT,
  account_age_days REAL,
  join_count INTEGER,
  young_ratio REAL,
  action_type TEXT,
  action_duration INTEGER,
  member_count INTEGER,
  verification_level INTEGER,
  join_source TEXT
);
CREATE INDEX IF NOT EXISTS idx_antiraid_guild_ts ON antiraid_log(guild_id, ts);
CREATE TABLE IF NOT EXISTS raid_state(
  guild_id TEXT PRIMARY KEY,
  active INTEGER NOT NULL DEFAULT 0,
  started_at INTEGER
);
"""


def init_connection(path: str = DB_PATH) -> sqlite3.Connection:
    if path != ":memory:":
        directory = os.path.dirname(path)
        if directory:
            os.makedirs(directory, exist_ok=True)
    conn = sqlite3.connect(path, check_same_thread=False)
    conn.executescript(SCHEMA)
    conn.commit()
    apply_runtime_migrations(conn)
    return conn


class ModerationDB:
    """Facade over the warning, blacklist and raid repositories.

    Engine components depend on the narrow repository surfaces; the facade
    exists so the client and slash commands can hold a single handle.
    """
    def __init__(self, path: str = DB_PATH, warning_decay_seconds: int = 3600, clock: Callable[[], float] = time.time):
        self.conn = init_connection(path)
        self.warnings = WarningRepository(self.conn, decay_seconds=warning_decay_seconds, clock=clock)
        self.blacklist = BlacklistRepository(self.conn, clock=clock)
        self.raids = RaidRepository(self.conn, clock=clock)

    # Warnings & violations
    def get_warning_count(self, *a, **kw):
        return self.warnings.get_warning_count(*a, **kw)

    def increment_warning_count(self, *a, **kw):
        return self.warnings.increment_warning_count(*a, **kw)

    def reset_warning_count(self, *a, **kw):
        return self.warnings.reset_warning_count(*a, **kw)

    def get_total_warning_count(self, *a, **kw):
        return self.warnings.get_total_warning_count(*a, **kw)

    def record_violation(self, *a, **kw):
        return self.warnings.record_violation(*a, **kw)

    def fetch_violations(self, *a, **kw):
        return self.warnings.fetch_violations(*a, **kw)

    def count_violations(self, *a, **kw):
        return self.warnings.count_violations(*a, **kw)

    # Domain blacklist
    def get_blacklisted_domains(self, *a, **kw):
        return self.blacklist.get_blacklisted_domains(*a, **kw)

    def add_to_blacklist(self, *a, **kw):
        return self.blacklist.add_to_blacklist(*a, **kw)

    # Anti-raid
    def log_raid_event(self, *a, **kw):
        return self.raids.log_event(*a, **kw)

    def set_raid_active(self, *a, **kw):
        return self.raids.set_raid_active(*a, **kw)

    def clear_raid(self, *a, **kw):
        return self.raids.clear_raid(*a, **kw)

    def get_raid_state(self, *a, **kw):
        return self.raids.get_raid_state(*a, **kw)

    def fetch_raid_events(self, *a, **kw):
        return self.raids.fetch_events(*a, **kw)

    def close(self):
        self.conn.close()

__all__ = [
    'ModerationDB', 'init_connection', 'WarningRepository', 'BlacklistRepository', 'RaidRepository', 'DB_PATH'
]
