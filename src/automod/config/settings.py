"""Application settings using Pydantic BaseSettings for validation & env loading.

Centralizes all environment parsing and adds validation rules:
 - DISCORD_TOKEN is only enforced by the launcher (dry runs work without it).
 - Reputation provider keys are optional; a missing key disables that provider.
 - Timeouts / intervals coerced to non-negative numbers.
"""
from __future__ import annotations

from typing import Optional
from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings


class AutomodConfig(BaseSettings):
	# Discord
	discord_token: Optional[str] = Field(None, env="DISCORD_TOKEN")
	test_guild_id: Optional[int] = Field(None, env="TEST_GUILD_ID")

	# Policy & static data files (None -> packaged defaults)
	policy_file: str = Field("policies/automod.yaml", env="POLICY_FILE")
	heuristics_file: Optional[str] = Field(None, env="HEURISTICS_FILE")
	trusted_domains_file: Optional[str] = Field(None, env="TRUSTED_DOMAINS_FILE")

	# Persistence
	sqlite_path: str = Field("storage/automod.db", env="SQLITE_PATH")
	warning_decay_minutes: int = Field(60, env="WARNING_DECAY_MINUTES")

	# Link reputation providers
	google_safe_browsing_api_key: Optional[str] = Field(None, env="GOOGLE_SAFE_BROWSING_API_KEY")
	virustotal_api_key: Optional[str] = Field(None, env="VIRUSTOTAL_API_KEY")
	phishtank_app_key: str = Field("discord-bot", env="PHISHTANK_APP_KEY")
	reputation_timeout_seconds: float = Field(10.0, env="REPUTATION_TIMEOUT_SECONDS")
	# flagged when malicious + suspicious engine votes exceed this
	virustotal_detection_threshold: int = Field(2, env="VIRUSTOTAL_DETECTION_THRESHOLD")

	# Background work
	hygiene_interval_seconds: int = Field(3600, env="HYGIENE_INTERVAL_SECONDS")
	raid_member_delay_seconds: float = Field(0.1, env="RAID_MEMBER_DELAY_SECONDS")
	raid_ban_delay_seconds: float = Field(0.2, env="RAID_BAN_DELAY_SECONDS")

	# Slash command access
	mod_exempt_role_names: str = Field("mod,admin", env="MOD_EXEMPT_ROLE_NAMES")

	# Misc
	log_level: str = Field("INFO", env="LOG_LEVEL")
	log_json: bool = Field(False, env="LOG_JSON")

	class Config:
		case_sensitive = False
		env_file = ".env"
		env_file_encoding = "utf-8"
		extra = "ignore"

	@field_validator("log_level", mode="before")
	def _normalize_level(cls, v: str):  # noqa: D401
		return (v or "INFO").upper()

	@field_validator(
		"warning_decay_minutes",
		"virustotal_detection_threshold",
		"hygiene_interval_seconds",
		mode="before",
	)
	def _coerce_non_negative_int(cls, v):
		try:
			iv = int(v)
		except (TypeError, ValueError):
			iv = 0
		if iv < 0:
			iv = 0
		return iv

	@field_validator(
		"reputation_timeout_seconds",
		"raid_member_delay_seconds",
		"raid_ban_delay_seconds",
		mode="before",
	)
	def _coerce_non_negative_float(cls, v):
		try:
			fv = float(v)
		except (TypeError, ValueError):
			fv = 0.0
		return max(0.0, fv)

	@model_validator(mode="after")
	def _validate_all(self):  # noqa: D401
		if self.reputation_timeout_seconds <= 0:
			raise ValueError("REPUTATION_TIMEOUT_SECONDS must be greater than zero")
		if self.hygiene_interval_seconds <= 0:
			raise ValueError("HYGIENE_INTERVAL_SECONDS must be greater than zero")
		return self

	@property
	def moderator_role_names(self) -> set[str]:
		return {r.strip().lower() for r in (self.mod_exempt_role_names or "").split(',') if r.strip()}


def load_config() -> AutomodConfig:
	return AutomodConfig()  # type: ignore[call-arg]


__all__ = ["AutomodConfig", "load_config"]
