"""
Tests for the command-line interface.

Every lookup runs with --dry-run, and the user store points at a
temporary file.
"""

import functools

import pytest

from watchdom.cli import Context, create_parser, main, normalize_argv
from watchdom.config import load_config
from watchdom.enums import ExitCode, LogLevel
from watchdom.orchestrator import WatchOrchestrator


@pytest.fixture
def rc_path(tmp_path, monkeypatch):
    path = tmp_path / "watchdomrc"
    monkeypatch.setenv("WATCHDOM_RC", str(path))
    monkeypatch.setenv("WATCHDOM_LANG", "en")
    for name in ("NOTIFY_EMAIL", "NOTIFY_SMTP_HOST", "WATCHDOM_NOTIFY_WEBHOOK_URL"):
        monkeypatch.delenv(name, raising=False)
    return path


class TestNormalizeArgv:
    @pytest.mark.parametrize(
        "argv, expected",
        [
            (["example.com"], ["watch", "example.com"]),
            (["-d", "example.com", "-i", "30"], ["watch", "-d", "example.com", "-i", "30"]),
            (["-l", "de", "example.com"], ["watch", "-l", "de", "example.com"]),
            (["--interval", "30", "example.com"], ["watch", "--interval", "30", "example.com"]),
            (["--max-checks", "5", "--expect", "free", "example.com"],
             ["watch", "--max-checks", "5", "--expect", "free", "example.com"]),
            (["query", "example.com"], ["query", "example.com"]),
            (["list-tlds"], ["list-tlds"]),
            (["not_a_domain"], ["not_a_domain"]),
            ([], []),
        ],
    )
    def test_forms(self, argv, expected) -> None:
        assert normalize_argv(argv) == expected


class TestParser:
    def test_watch_options(self) -> None:
        args = create_parser().parse_args(
            ["watch", "example.com", "-i", "30", "-e", "free", "-n", "5",
             "--until", "2025-12-25 18:00:00 UTC", "-y", "--time_local", "-q"]
        )
        assert args.interval == 30
        assert args.expect == "free"
        assert args.max_checks == 5
        assert args.until == "2025-12-25 18:00:00 UTC"
        assert args.yes and args.time_local and args.quiet

    def test_global_flag_before_command_survives(self) -> None:
        args = create_parser().parse_args(["-d", "list-tlds"])
        assert args.debug is True


class TestExitCodes:
    def test_no_command(self, rc_path, capsys) -> None:
        assert main([]) == ExitCode.INVALID_INPUT

    def test_bad_usage(self, rc_path, capsys) -> None:
        assert main(["watch"]) == 2

    def test_version(self, rc_path, capsys) -> None:
        assert main(["--version"]) == 0
        assert "watchdom" in capsys.readouterr().out

    def test_invalid_interval(self, rc_path, capsys) -> None:
        assert main(["watch", "example.com", "-i", "0", "--dry-run"]) == ExitCode.INVALID_INPUT
        assert "Invalid interval" in capsys.readouterr().err

    def test_invalid_domain(self, rc_path, capsys) -> None:
        assert main(["query", "not a domain", "--dry-run"]) == ExitCode.INVALID_INPUT

    def test_unparseable_until(self, rc_path, capsys) -> None:
        assert main(["watch", "example.com", "--until", "soonish", "--dry-run"]) == ExitCode.PARSE_ERROR

    def test_invalid_pattern(self, rc_path, capsys) -> None:
        assert main(["watch", "example.com", "-e", "(open", "--dry-run"]) == ExitCode.INVALID_INPUT


class TestTimeCommand:
    def test_past_epoch(self, rc_path, capsys) -> None:
        assert main(["time", "1766685600"]) == 0
        out = capsys.readouterr().out
        assert "Remaining: 0s (time passed)" in out
        assert "Target UTC  : 2025-12-25 18:00:00 UTC" in out
        assert "Target Local:" in out
        assert out.rstrip().endswith("UNTIL_EPOCH=1766685600")

    def test_local_only(self, rc_path, capsys) -> None:
        assert main(["time", "2025-12-25 18:00:00 UTC", "--time-local"]) == 0
        out = capsys.readouterr().out
        assert "Target UTC" not in out
        assert "Remaining (Local)" in out
        assert "UNTIL_EPOCH=1766685600" in out


class TestRegistryCommands:
    def test_list_tlds(self, rc_path, capsys) -> None:
        assert main(["list-tlds"]) == 0
        out = capsys.readouterr().out
        assert "whois.verisign-grs.com" in out
        assert "built-in" in out
        assert f"User config: {rc_path} (not found)" in out

    def test_add_then_duplicate(self, rc_path, capsys) -> None:
        assert main(["add-tld", ".uk", "whois.nic.uk", "No such domain"]) == 0
        assert "Added TLD configuration: .uk -> whois.nic.uk" in capsys.readouterr().out
        assert rc_path.read_text(encoding="utf-8").endswith(".uk|whois.nic.uk|No such domain\n")

        assert main(["add-tld", "uk", "whois.other.uk", "free"]) == ExitCode.NOT_FOUND
        assert "-f" in capsys.readouterr().err

        assert main(["add-tld", "uk", "whois.other.uk", "free", "-f"]) == 0
        main(["list-tlds"])
        assert "whois.other.uk" in capsys.readouterr().out

    def test_add_invalid_server(self, rc_path, capsys) -> None:
        assert main(["add-tld", ".uk", "bad server", "x"]) == ExitCode.INVALID_INPUT
        assert not rc_path.exists()

    def test_test_tld(self, rc_path, capsys) -> None:
        assert main(["test-tld", ".com", "available-name.com", "--dry-run"]) == 0
        assert "Pattern MATCHED" in capsys.readouterr().out
        assert main(["test-tld", ".com", "example.com", "--dry-run"]) == ExitCode.NOT_FOUND
        assert main(["test-tld", ".zz", "example.zz", "--dry-run"]) == ExitCode.NOT_FOUND


class TestLookupCommands:
    def test_query_available(self, rc_path, capsys) -> None:
        assert main(["query", "available-name.com", "--dry-run"]) == 0
        out = capsys.readouterr().out
        assert "available-name.com is available" in out
        assert "Status    : AVAILABLE" in out

    def test_query_taken(self, rc_path, capsys) -> None:
        assert main(["query", "example.com", "--dry-run", "-q"]) == ExitCode.NOT_FOUND
        out = capsys.readouterr().out
        assert "example.com is not available" in out
        assert "Registrar : Example Registrar" in out

    def test_query_unsupported_tld(self, rc_path, capsys) -> None:
        assert main(["query", "example.zz", "--dry-run"]) == ExitCode.INVALID_INPUT

    def test_watch_match(self, rc_path, capsys) -> None:
        assert main(["watch", "available-name.com", "--dry-run"]) == 0
        assert "No match for" in capsys.readouterr().out

    def test_legacy_form(self, rc_path, capsys) -> None:
        assert main(["available-name.com", "--dry-run", "-q"]) == 0

    def test_watch_limit(self, rc_path, capsys) -> None:
        assert main(["watch", "example.com", "--dry-run", "-n", "1", "-y"]) == ExitCode.NOT_FOUND


class TestInterrupt:
    def test_interrupted_watch_exits_130(self, rc_path, capsys, monkeypatch) -> None:
        async def interrupting_sleep(seconds: float) -> None:
            raise KeyboardInterrupt

        monkeypatch.setattr(
            "watchdom.cli.WatchOrchestrator",
            functools.partial(WatchOrchestrator, sleep=interrupting_sleep),
        )
        code = main(["watch", "example.com", "--dry-run", "-y", "-q"])
        assert code == ExitCode.INTERRUPTED == 130


class TestLoggingSettings:
    def test_configured_level_and_format(self, rc_path, monkeypatch) -> None:
        monkeypatch.setenv("WATCHDOM_LOG_LEVEL", "info")
        monkeypatch.setenv("WATCHDOM_LOG_FORMAT", "json")
        args = create_parser().parse_args(["list-tlds"])
        context = Context(args, load_config())
        assert context.logger.min_level == LogLevel.INFO
        assert context.logger.output_format == "json"

    def test_quiet_keeps_errors_only(self, rc_path, monkeypatch) -> None:
        monkeypatch.setenv("WATCHDOM_LOG_LEVEL", "trace")
        args = create_parser().parse_args(["watch", "example.com", "-q"])
        assert Context(args, load_config()).logger.min_level == LogLevel.ERROR
