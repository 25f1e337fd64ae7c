"""
Command line entry point.

    jobcopilot sync [--fresh]
    jobcopilot digest
    jobcopilot setup --groq-key KEY --linkedin profile.txt
    jobcopilot clear-cache

Scheduling is left to cron or the host's task scheduler.
"""

import argparse
import sys
from typing import Dict, List, Optional

from .__version__ import __version__
from .core.context_parser import build_candidate_context, prepare_profile
from .core.digest import send_daily_digest
from .core.orchestrator import TriageOrchestrator
from .core.render import CsvTableRenderer
from .core.triage_cache import JsonFileCacheStore, TriageCache
from .exceptions import ConfigError, JobCopilotError
from .providers import ProviderGateway
from .sources import MboxMailSource
from .utils import secrets
from .utils.config import load_config
from .utils.logger import logger, set_level
from .utils.notify import SmtpNotifier
from .utils.telemetry import Telemetry


def build_orchestrator(config: Dict) -> TriageOrchestrator:
    mbox_path = config.get("mail_source", {}).get("mbox_path")
    if not mbox_path:
        raise ConfigError("mail_source.mbox_path is not configured")

    candidate_context = build_candidate_context(
        secrets.get_profile("linkedin"), secrets.get_profile("resume")
    )
    return TriageOrchestrator(
        MboxMailSource(mbox_path, owner_email=config.get("owner_email")),
        TriageCache(JsonFileCacheStore(config["cache_path"])),
        credentials=secrets.load_credentials(config.get("providers")),
        config=config,
        telemetry=Telemetry.from_config(config.get("telemetry"), secrets.get_install_id),
        renderer=CsvTableRenderer(config["table_path"]),
        candidate_context=candidate_context,
    )


def cmd_sync(args, config: Dict) -> int:
    result = build_orchestrator(config).sync(fresh=args.fresh)
    stats = result.stats
    print(
        f"{stats['total']} threads: {stats['reply_needed']} reply needed, "
        f"{stats['follow_up']} follow up, {stats['waiting']} waiting "
        f"({stats['llm_calls']} LLM calls, {stats['cache_hits']} cached, "
        f"{stats['excluded']} excluded, {stats['runtime_ms']}ms)"
    )
    return 0


def cmd_digest(args, config: Dict) -> int:
    orchestrator = build_orchestrator(config)
    notifier = SmtpNotifier.from_config(config.get("smtp", {}))
    owner = config.get("owner_email") or config.get("smtp", {}).get("user")
    if not owner:
        raise ConfigError("owner_email is required to send the digest")
    sent = send_daily_digest(orchestrator, notifier, owner)
    print("Digest sent." if sent else "No digest sent.")
    return 0


def _read_file(path: str) -> str:
    with open(path, "r", encoding="utf-8", errors="replace") as f:
        return f.read()


def cmd_setup(args, config: Dict) -> int:
    keys = {"groq": args.groq_key, "gemini": args.gemini_key}
    keys = {name: key for name, key in keys.items() if key}
    if not keys and not secrets.load_credentials(config.get("providers")):
        print("Please provide at least one API key (--groq-key or --gemini-key).", file=sys.stderr)
        return 1

    gateway = ProviderGateway({}, providers_config=config.get("providers"))
    failures: List[str] = []
    for name, key in keys.items():
        if gateway.test_key(name, key):
            secrets.set_api_key(name, key)
            print(f"{name}: key verified and stored")
        else:
            failures.append(name)
            print(f"{name}: key rejected", file=sys.stderr)

    for kind in ("linkedin", "resume"):
        path = getattr(args, kind)
        if not path:
            continue
        profile = prepare_profile(_read_file(path), kind)
        if profile is None:
            print(f"{kind}: profile too sparse, not saved", file=sys.stderr)
        elif secrets.set_profile(kind, profile):
            print(f"{kind}: profile saved ({len(profile)} chars)")

    if failures and len(failures) == len(keys):
        return 1

    telemetry = Telemetry.from_config(config.get("telemetry"), secrets.get_install_id)
    telemetry.install()
    return 0


def cmd_clear_cache(args, config: Dict) -> int:
    removed = TriageCache(JsonFileCacheStore(config["cache_path"])).clear()
    print(f"Cleared {removed} cached threads.")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="jobcopilot",
        description="Triage sent job-search email and suggest next moves.",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--config", help="Path to a config.json file")
    sub = parser.add_subparsers(dest="command", required=True)

    sync = sub.add_parser("sync", help="Classify sent threads and write the dashboard")
    sync.add_argument("--fresh", action="store_true", help="Clear the cache first")
    sync.set_defaults(func=cmd_sync)

    digest = sub.add_parser("digest", help="Email the daily digest")
    digest.set_defaults(func=cmd_digest)

    setup = sub.add_parser("setup", help="Store API keys and candidate profiles")
    setup.add_argument("--groq-key", help="Groq API key")
    setup.add_argument("--gemini-key", help="Gemini API key")
    setup.add_argument("--linkedin", metavar="FILE", help="Text file with your LinkedIn profile")
    setup.add_argument("--resume", metavar="FILE", help="Text file with your resume")
    setup.set_defaults(func=cmd_setup)

    clear = sub.add_parser("clear-cache", help="Drop every cached classification")
    clear.set_defaults(func=cmd_clear_cache)
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        config = load_config(args.config)
        set_level(config.get("log_level", "INFO"))
        return args.func(args, config)
    except (JobCopilotError, OSError) as e:
        logger.error(f"{args.command} failed: {e}")
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
