"""Bot runtime launcher.

Provides a console entry point for `python -m automod` with optional flags:
  --dry-run     Validate config, policy and detection tables, print summary, exit.
  --sync-only   Register slash commands then exit (sync occurs on connect).

Default with no flags: start the Discord bot.
"""
from __future__ import annotations

import argparse
import sys

from .discord.client import bot, CONFIG  # imports initialize logging & config
from .discord.commands import register_all_commands
from .discord import events  # noqa: F401 -- import registers event handlers
from .domain.detection.heuristics import load_heuristics, load_trusted_domains
from .domain.policy.loader import load_policy
from .domain.policy.formatter import format_rules


def _print_header():
    keys = [
        name for name, value in (
            ("safe_browsing", CONFIG.google_safe_browsing_api_key),
            ("virustotal", CONFIG.virustotal_api_key),
            ("phishtank", CONFIG.phishtank_app_key),
        ) if value
    ]
    print("automod: policy=%s db=%s reputation=%s" % (CONFIG.policy_file, CONFIG.sqlite_path, ",".join(keys) or "none"))


def _validate_policy(verbose: bool = False):
    try:
        pol = load_policy(CONFIG.policy_file)
    except (FileNotFoundError, ValueError) as e:
        print(f"Policy load failed: {e}", file=sys.stderr)
        return False
    if verbose:
        text = format_rules(pol.defaults, detail=False)
        print("Default rules loaded:\n" + (text or "(none)"))
        for gid in pol.guilds:
            print(f"Guild override: {gid} ({len(pol.for_guild(gid).rules)} rules)")
    return True


def _validate_tables():
    try:
        trusted = load_trusted_domains(CONFIG.trusted_domains_file)
        heuristics = load_heuristics(CONFIG.heuristics_file)
    except (OSError, ValueError) as e:
        print(f"Detection table load failed: {e}", file=sys.stderr)
        return False
    print(f"Trusted domains: {len(trusted.domains)}  heuristic families: {len(heuristics.families)}")
    return True


def _dry_run() -> int:
    if not (_validate_policy(verbose=True) and _validate_tables()):
        return 1
    try:
        register_all_commands(bot)
    except (TypeError, ValueError) as e:
        # discord.app_commands rejects bad names and descriptions with these
        print(f"Command registration check failed: {e}", file=sys.stderr)
        return 1
    print(f"Registered {len(bot.tree.get_commands())} slash commands.")
    print("\nDry run validation successful.")
    return 0


def main(argv: list[str] | None = None):  # pragma: no cover (manual entry)
    parser = argparse.ArgumentParser(prog="automod", description="Run the Discord automod engine")
    mode = parser.add_mutually_exclusive_group()
    mode.add_argument("--dry-run", action="store_true", help="Validate config, policy & detection tables then exit")
    mode.add_argument("--sync-only", action="store_true", help="Register commands and exit (login not performed)")
    args = parser.parse_args(argv)

    _print_header()
    if args.dry_run:
        sys.exit(_dry_run())

    register_all_commands(bot)
    if args.sync_only:
        print("Commands registered (sync occurs on connect).")
        sys.exit(0)

    if not CONFIG.discord_token:
        print("DISCORD_TOKEN is not set", file=sys.stderr)
        sys.exit(1)
    bot.run(CONFIG.discord_token)


if __name__ == "__main__":  # pragma: no cover
    main()
