"""Policy formatting utilities."""
from __future__ import annotations

from typing import List
from .models import GuildPolicy


def format_rules(policy: GuildPolicy, detail: bool = False) -> str:
    lines: List[str] = []
    for r in policy.rules:
        state = "" if r.enabled else " (disabled)"
        threshold = f" threshold={r.threshold_value}" if r.threshold_value else ""
        if detail:
            lines.append(f"- #{r.id} {r.name}{state}: {r.trigger_type}{threshold}")
            extras = [f"action={r.action_type}"]
            if r.duration:
                extras.append(f"duration={r.duration}m")
            if r.delete_message:
                extras.append("delete_message")
            extras.append(f"escalation={'on' if r.escalation_enabled else 'off'}@{r.escalation_threshold}")
            if r.whitelist_channels or r.whitelist_roles:
                extras.append(f"exempt={len(r.whitelist_channels)}ch/{len(r.whitelist_roles)}roles")
            lines.append("    " + ", ".join(extras))
        else:
            lines.append(f"{r.name}{state}: {r.trigger_type}{threshold} -> {r.action_type}")
    if not detail:
        return "\n".join(lines)
    raid = policy.anti_raid
    lines.append("")
    lines.append("Anti-raid:")
    lines.append(f"  enabled: {raid.enabled}")
    lines.append(f"  joins: {raid.join_rate} per {raid.join_window}s, young account < {raid.account_age}d")
    lines.append(f"  action: {raid.raid_action} ({raid.raid_action_duration}m)")
    lines.append(f"  grace period: {raid.grace_period}m, auto_kick={raid.auto_kick}")
    return "\n".join(lines)

__all__ = ['format_rules']
