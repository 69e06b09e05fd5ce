"""
Command-line interface for the watchdom system.

This module provides the main CLI entry point with commands for:
- watch: Poll a domain until it becomes available
- query: One-shot lookup with status and registrar
- time: Countdown to a target time without any lookup
- list-tlds / add-tld / test-tld: TLD registry management

A bare domain as the first argument is treated as 'watch DOMAIN'.
"""

import argparse
import asyncio
import re
import signal
import sys
import time
from typing import Callable, Optional

from . import __version__
from .audit_logger import AuditLogger
from .config import WatchConfig, load_config
from .display import ConsoleRenderer, NullRenderer, PASS, FAIL, format_epoch, human_duration
from .domain_validator import DomainValidator
from .enums import ExitCode, LogLevel, RegistryErrorCode, ValidationErrorCode
from .exceptions import RegistryError, ValidationError, WatchdomError
from .grace import AutoConfirmDecisionProvider, InteractiveDecisionProvider
from .i18n import get_message
from .matcher import AvailabilityMatcher, extract_domain_status, extract_registrar, matches
from .models import PollTarget, QueryReport
from .notifications import NotificationDispatcher
from .orchestrator import WatchOrchestrator
from .scheduler import parse_target_time
from .tld_registry import Registry, extract_tld, normalize_tld
from .whois_client import WhoisClient

COMMANDS = ("watch", "query", "time", "list-tlds", "add-tld", "test-tld")
LEGACY_DOMAIN = re.compile(r"^[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$")
_VALUE_OPTIONS = frozenset({
    "-l", "--language", "-i", "--interval", "-e", "--expect", "-n", "--max-checks", "--until",
})

AGGRESSIVE_INTERVAL = 10
MAX_SANE_INTERVAL = 86400
OUTPUT_PREVIEW_LINES = 20


class Context:
    """Per-invocation settings shared by the command handlers."""

    def __init__(self, args: argparse.Namespace, config: WatchConfig) -> None:
        self.args = args
        self.config = config
        self.quiet = getattr(args, "quiet", False)
        self.language = getattr(args, "language", None) or config.language
        self.logger = AuditLogger.from_flags(
            debug=getattr(args, "debug", False) and not self.quiet,
            trace=getattr(args, "trace", False) and not self.quiet,
            output_format=config.logging.output_format,
            default_level=LogLevel.ERROR if self.quiet else LogLevel(config.logging.level),
        )

    def info(self, text: str) -> None:
        if not self.quiet:
            print(text)

    def ok(self, text: str) -> None:
        if not self.quiet:
            print(f"{PASS} {text}")


def _fail(text: str) -> None:
    print(f"{FAIL} {text}", file=sys.stderr)


def _preview(raw: str, lines: int, indent: str = "") -> str:
    return "\n".join(indent + line for line in raw.splitlines()[:lines])


def _make_client(ctx: Context) -> WhoisClient:
    client = WhoisClient(
        timeout=ctx.config.query_timeout,
        simulation_mode=getattr(ctx.args, "dry_run", False) or ctx.config.simulation_mode,
    )
    client.check_dependency()
    return client


def _check_interval(ctx: Context, interval: int) -> int:
    if interval <= 0:
        raise ValidationError(
            ValidationErrorCode.INVALID_INTERVAL.value,
            f"Invalid interval: {interval} (must be positive integer)",
            {"interval": interval},
        )
    if interval < AGGRESSIVE_INTERVAL:
        ctx.logger.warn("CLI", f"Interval {interval}s is aggressive; consider >=30s")
    elif interval > MAX_SANE_INTERVAL:
        ctx.logger.warn("CLI", f"Interval {interval}s is longer than a day")
    return interval


def _check_pattern(pattern: Optional[str]) -> Optional[str]:
    if pattern is None:
        return None
    try:
        re.compile(pattern, re.IGNORECASE)
    except re.error as e:
        raise RegistryError(
            RegistryErrorCode.INVALID_PATTERN.value,
            f"Pattern is not a valid regular expression: {e}",
            {"pattern": pattern},
        ) from e
    return pattern


def cmd_watch(ctx: Context) -> int:
    """Handle the 'watch' command."""
    args = ctx.args
    domain = DomainValidator().canonicalize(args.domain)
    interval = _check_interval(ctx, args.interval if args.interval is not None else ctx.config.interval)

    max_checks = args.max_checks if args.max_checks is not None else ctx.config.max_checks
    if max_checks < 0:
        raise ValidationError(
            ValidationErrorCode.INVALID_MAX_CHECKS.value,
            f"Invalid max checks: {max_checks}",
            {"max_checks": max_checks},
        )

    target = PollTarget(
        domain=domain,
        base_interval_seconds=interval,
        target_epoch=parse_target_time(args.until) if args.until else None,
        max_checks=max_checks or None,
        pattern_override=_check_pattern(args.expect),
    )

    registry = Registry.load(ctx.config.rc_path, ctx.logger)
    client = _make_client(ctx)
    dispatcher = NotificationDispatcher(
        ctx.config.notifications, language=ctx.language, logger=ctx.logger,
    )
    if args.yes:
        provider = AutoConfirmDecisionProvider(sys.stderr, ctx.language)
    else:
        provider = InteractiveDecisionProvider(sys.stdin, sys.stderr, ctx.language)
    renderer = NullRenderer() if ctx.quiet else ConsoleRenderer(local_time=args.time_local)

    orchestrator = WatchOrchestrator(
        registry=registry,
        client=client,
        dispatcher=dispatcher,
        decision_provider=provider,
        renderer=renderer,
        logger=ctx.logger,
        language=ctx.language,
    )
    result = asyncio.run(orchestrator.run(target))

    if result.matched and not ctx.quiet:
        print(_preview(result.last_output, OUTPUT_PREVIEW_LINES))
    return int(result.exit_code)


def cmd_query(ctx: Context) -> int:
    """Handle the 'query' command."""
    domain = DomainValidator().canonicalize(ctx.args.domain)
    registry = Registry.load(ctx.config.rc_path, ctx.logger)
    entry = registry.resolve(domain)
    if entry is None:
        tld = extract_tld(domain)
        raise RegistryError(
            RegistryErrorCode.NOT_FOUND.value,
            get_message("registry.unsupported", ctx.language, tld=tld),
            {"tld": tld},
        )

    client = _make_client(ctx)
    raw = asyncio.run(client.query(domain, entry.server))
    report = QueryReport(
        domain=domain,
        server=entry.server,
        raw_output=raw,
        status=extract_domain_status(raw),
        registrar=extract_registrar(raw),
        matched=AvailabilityMatcher().evaluate(raw, entry.pattern),
    )

    key = "query.available" if report.matched else "query.taken"
    print(get_message(key, ctx.language, domain=domain))
    print(f"  Status    : {report.status.value}")
    print(f"  Registrar : {report.registrar}")
    print(f"  Server    : {report.server}")
    if not ctx.quiet:
        print()
        print(_preview(report.raw_output, OUTPUT_PREVIEW_LINES, "  "))
    return int(ExitCode.SUCCESS if report.matched else ExitCode.NOT_FOUND)


def cmd_time(ctx: Context) -> int:
    """Handle the 'time' command."""
    target_epoch = parse_target_time(ctx.args.when)
    remaining = target_epoch - int(time.time())
    label = "Remaining (Local)" if ctx.args.time_local else "Remaining"

    if remaining < 0:
        print(f"{label}: 0s (time passed)")
    else:
        print(f"{label}: {human_duration(remaining)}")

    if not ctx.args.time_local:
        print(f"Target UTC  : {format_epoch(target_epoch)}")
    print(f"Target Local: {format_epoch(target_epoch, local=True)}")
    print(f"UNTIL_EPOCH={target_epoch}")
    return int(ExitCode.SUCCESS)


def cmd_list_tlds(ctx: Context) -> int:
    """Handle the 'list-tlds' command."""
    registry = Registry.load(ctx.config.rc_path, ctx.logger)

    print("Supported TLD patterns:\n")
    print(f"{'TLD':<8} {'WHOIS SERVER':<25} {'SOURCE':<8} AVAILABLE PATTERN")
    print(f"{'---':<8} {'------------':<25} {'------':<8} -----------------")
    for entry in registry.entries():
        source = "built-in" if entry.builtin else "user"
        print(f"{entry.tld:<8} {entry.server:<25} {source:<8} {entry.pattern}")

    print("\nConfiguration sources:")
    builtins = ", ".join(e.tld for e in registry.entries() if e.builtin)
    print(f"  Built-in: {builtins}")
    suffix = "" if registry.rc_path.exists() else " (not found)"
    print(f"  User config: {registry.rc_path}{suffix}")
    return int(ExitCode.SUCCESS)


def cmd_add_tld(ctx: Context) -> int:
    """Handle the 'add-tld' command."""
    args = ctx.args
    registry = Registry.load(ctx.config.rc_path, ctx.logger)
    try:
        entry = registry.add(args.tld, args.server, args.pattern, overwrite=args.force)
    except RegistryError as e:
        if e.code != RegistryErrorCode.ALREADY_EXISTS.value:
            raise
        _fail(e.message)
        _fail("Use -f to force override existing configuration")
        return int(ExitCode.NOT_FOUND)

    ctx.ok(get_message("registry.added", ctx.language, tld=entry.tld, server=entry.server))
    return int(ExitCode.SUCCESS)


def cmd_test_tld(ctx: Context) -> int:
    """Handle the 'test-tld' command."""
    args = ctx.args
    tld = normalize_tld(args.tld)
    domain = DomainValidator().canonicalize(args.domain)

    registry = Registry.load(ctx.config.rc_path, ctx.logger)
    entry = registry.get(tld)
    if entry is None:
        _fail(f"TLD {tld} is not configured")
        _fail("Use 'list-tlds' to see supported TLDs or 'add-tld' to add support")
        return int(ExitCode.NOT_FOUND)

    ctx.info(f"Testing TLD {tld} against domain {domain}")
    ctx.info(f"Server: {entry.server}")
    ctx.info(f"Pattern: {entry.pattern}")

    client = _make_client(ctx)
    raw = asyncio.run(client.query(domain, entry.server))

    if matches(raw, entry.pattern):
        ctx.ok("Pattern MATCHED - domain appears available")
        return int(ExitCode.SUCCESS)

    print("Pattern NOT matched - domain may be registered or pattern incorrect")
    print("First 10 lines of whois output:")
    print(_preview(raw, 10, "  "))
    return int(ExitCode.NOT_FOUND)


def _common_flags() -> argparse.ArgumentParser:
    # SUPPRESS keeps a flag given before the command from being reset by
    # the subparser's defaults
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        "-d", "--debug", action="store_true", default=argparse.SUPPRESS,
        help="Show debug messages",
    )
    common.add_argument(
        "-t", "--trace", action="store_true", default=argparse.SUPPRESS,
        help="Show trace messages (verbose polling)",
    )
    common.add_argument(
        "-q", "--quiet", action="store_true", default=argparse.SUPPRESS,
        help="Only print results and errors",
    )
    common.add_argument(
        "-l", "--language", choices=["de", "en"], default=argparse.SUPPRESS,
        help="Output language (default: WATCHDOM_LANG or en)",
    )
    return common


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser for the CLI."""
    common = _common_flags()
    parser = argparse.ArgumentParser(
        prog="watchdom",
        description="Registry WHOIS watcher with phase-aware polling",
        parents=[common],
        epilog="A bare DOMAIN is shorthand for 'watch DOMAIN'.",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # 'watch' command
    watch_parser = subparsers.add_parser(
        "watch", parents=[common], help="Watch a domain until it becomes available",
    )
    watch_parser.add_argument("domain", help="Domain to watch (e.g., example.com)")
    watch_parser.add_argument(
        "-i", "--interval", type=int, default=None,
        help="Base poll interval in seconds (default: 60)",
    )
    watch_parser.add_argument(
        "-e", "--expect", default=None,
        help="Override the expected availability pattern (regex)",
    )
    watch_parser.add_argument(
        "-n", "--max-checks", dest="max_checks", type=int, default=None,
        help="Stop after N checks (default: unlimited)",
    )
    watch_parser.add_argument(
        "--until", default=None,
        help="Target datetime or epoch seconds (e.g., '2025-12-25 18:00:00 UTC')",
    )
    watch_parser.add_argument(
        "-y", "--yes", action="store_true",
        help="Continue automatically when the grace period expires",
    )
    watch_parser.add_argument(
        "--time-local", "--time_local", dest="time_local", action="store_true",
        help="Display timestamps in local time",
    )
    watch_parser.add_argument(
        "--dry-run", action="store_true",
        help="Simulation mode - no real WHOIS queries",
    )
    watch_parser.set_defaults(func=cmd_watch)

    # 'query' command
    query_parser = subparsers.add_parser(
        "query", parents=[common], help="Look a domain up once",
    )
    query_parser.add_argument("domain", help="Domain to look up")
    query_parser.add_argument(
        "--dry-run", action="store_true",
        help="Simulation mode - no real WHOIS queries",
    )
    query_parser.set_defaults(func=cmd_query)

    # 'time' command
    time_parser = subparsers.add_parser(
        "time", parents=[common], help="Show the time remaining until a target",
    )
    time_parser.add_argument("when", help="Target datetime or epoch seconds")
    time_parser.add_argument(
        "--time-local", "--time_local", dest="time_local", action="store_true",
        help="Display the target in local time only",
    )
    time_parser.set_defaults(func=cmd_time)

    # 'list-tlds' command
    list_parser = subparsers.add_parser(
        "list-tlds", parents=[common], help="Show supported TLDs",
    )
    list_parser.set_defaults(func=cmd_list_tlds)

    # 'add-tld' command
    add_parser = subparsers.add_parser(
        "add-tld", parents=[common], help="Add custom TLD support",
    )
    add_parser.add_argument("tld", help="TLD (e.g., .uk)")
    add_parser.add_argument("server", help="WHOIS server (e.g., whois.nominet.uk)")
    add_parser.add_argument("pattern", help="Availability pattern (regex)")
    add_parser.add_argument(
        "-f", "--force", action="store_true",
        help="Override an existing configuration",
    )
    add_parser.set_defaults(func=cmd_add_tld)

    # 'test-tld' command
    test_parser = subparsers.add_parser(
        "test-tld", parents=[common], help="Test a TLD pattern against a domain",
    )
    test_parser.add_argument("tld", help="TLD to test (e.g., .com)")
    test_parser.add_argument("domain", help="Domain to look up")
    test_parser.add_argument(
        "--dry-run", action="store_true",
        help="Simulation mode - no real WHOIS queries",
    )
    test_parser.set_defaults(func=cmd_test_tld)

    return parser


def normalize_argv(argv: list[str]) -> list[str]:
    """Turn the legacy 'watchdom DOMAIN [options]' form into 'watch DOMAIN'."""
    skip = False
    for token in argv:
        if skip:
            skip = False
            continue
        if token.startswith("-"):
            skip = token in _VALUE_OPTIONS
            continue
        if token not in COMMANDS and LEGACY_DOMAIN.match(token):
            return ["watch"] + argv
        break
    return argv


def _raise_interrupt(signum, frame) -> None:
    raise KeyboardInterrupt


def main(argv: Optional[list[str]] = None) -> int:
    """
    Main entry point for the CLI.

    Args:
        argv: Command line arguments (defaults to sys.argv[1:])

    Returns:
        Exit code
    """
    parser = create_parser()
    argv = normalize_argv(list(sys.argv[1:] if argv is None else argv))
    try:
        args = parser.parse_args(argv)
    except SystemExit as e:
        # argparse exits with 2 on bad usage and 0 for --help/--version
        return int(e.code or 0)

    if args.command is None:
        parser.print_help()
        return int(ExitCode.INVALID_INPUT)

    ctx = Context(args, load_config())
    handler: Callable[[Context], int] = args.func

    previous = signal.signal(signal.SIGTERM, _raise_interrupt)
    try:
        return handler(ctx)
    except WatchdomError as e:
        _fail(e.message)
        hint = e.details.get("hint")
        if hint:
            _fail(hint)
        ctx.logger.log_error("CLI", e.message, e, e.details, level=LogLevel.DEBUG)
        return int(e.exit_code)
    except KeyboardInterrupt:
        print(file=sys.stderr)
        ctx.logger.info("CLI", "Monitoring stopped")
        return int(ExitCode.INTERRUPTED)
    finally:
        signal.signal(signal.SIGTERM, previous)


if __name__ == "__main__":
    sys.exit(main())
