"""
Tests for the WHOIS client.

The subprocess is replaced by a fake process object, so no real
lookups are made.
"""

import asyncio
from typing import Optional
from unittest.mock import patch

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from watchdom.exceptions import DependencyMissingError, QueryFailedError
from watchdom.matcher import matches
from watchdom.whois_client import WhoisClient


def run_async(coro):
    """Run an async coroutine synchronously."""
    return asyncio.new_event_loop().run_until_complete(coro)


class FakeProcess:
    """Stand-in for asyncio.subprocess.Process."""

    def __init__(self, stdout: bytes = b"", stderr: bytes = b"", returncode: int = 0, delay: float = 0) -> None:
        self._stdout = stdout
        self._stderr = stderr
        self.returncode = returncode
        self._delay = delay
        self.killed = False

    async def communicate(self):
        if self._delay:
            await asyncio.sleep(self._delay)
        return self._stdout, self._stderr

    def kill(self) -> None:
        self.killed = True

    async def wait(self) -> int:
        return self.returncode


class ExitedProcess(FakeProcess):
    """Process that exits between the timeout and the kill."""

    def kill(self) -> None:
        raise ProcessLookupError


def fake_exec(process: FakeProcess, calls: Optional[list] = None):
    async def _exec(*args, **kwargs):
        if calls is not None:
            calls.append(args)
        return process
    return _exec


class TestSimulationMode:
    """Dry runs never start a subprocess."""

    @given(label=st.text(alphabet="abcdefghij0123", min_size=1, max_size=10))
    @settings(max_examples=50)
    def test_available_prefix(self, label: str) -> None:
        client = WhoisClient(simulation_mode=True)
        output = run_async(client.query(f"available-{label}.com"))
        assert matches(output, "No match for")

    def test_registered_record(self) -> None:
        client = WhoisClient(simulation_mode=True)
        output = run_async(client.query("example.com", "whois.verisign-grs.com"))
        assert not matches(output, "No match for")
        assert "Registrar: Example Registrar" in output

    def test_dependency_check_skipped(self) -> None:
        with patch("watchdom.whois_client.shutil.which", return_value=None):
            WhoisClient(simulation_mode=True).check_dependency()


class TestQuery:
    """Command line and output handling."""

    def test_server_flag_and_verbatim_output(self) -> None:
        calls: list = []
        process = FakeProcess(b"Domain Name: EXAMPLE.COM\n")
        with patch("watchdom.whois_client.asyncio.create_subprocess_exec", fake_exec(process, calls)):
            output = run_async(WhoisClient().query("example.com", "whois.verisign-grs.com"))
        assert output == "Domain Name: EXAMPLE.COM\n"
        assert calls == [("whois", "-h", "whois.verisign-grs.com", "example.com")]

    def test_default_server(self) -> None:
        calls: list = []
        process = FakeProcess(b"x\n")
        with patch("watchdom.whois_client.asyncio.create_subprocess_exec", fake_exec(process, calls)):
            run_async(WhoisClient(executable="/usr/bin/whois").query("example.zz"))
        assert calls == [("/usr/bin/whois", "example.zz")]

    def test_nonzero_exit_with_output_is_returned(self) -> None:
        process = FakeProcess(b"No match for \"EXAMPLE.COM\".\n", returncode=1)
        with patch("watchdom.whois_client.asyncio.create_subprocess_exec", fake_exec(process)):
            output = run_async(WhoisClient().query("example.com"))
        assert matches(output, "No match for")

    @pytest.mark.parametrize("returncode, code", [(0, "empty_output"), (2, "exit_status")])
    def test_empty_output_fails(self, returncode: int, code: str) -> None:
        process = FakeProcess(b"  \n", b"connect: refused", returncode=returncode)
        with patch("watchdom.whois_client.asyncio.create_subprocess_exec", fake_exec(process)):
            with pytest.raises(QueryFailedError) as exc:
                run_async(WhoisClient().query("example.com"))
        assert exc.value.code == code
        assert exc.value.details["stderr"] == "connect: refused"

    def test_timeout_kills_process(self) -> None:
        process = FakeProcess(b"late", delay=5)
        with patch("watchdom.whois_client.asyncio.create_subprocess_exec", fake_exec(process)):
            with pytest.raises(QueryFailedError) as exc:
                run_async(WhoisClient(timeout=0.01).query("example.com"))
        assert exc.value.code == "timeout"
        assert process.killed

    def test_timeout_after_process_already_exited(self) -> None:
        process = ExitedProcess(b"late", delay=5)
        with patch("watchdom.whois_client.asyncio.create_subprocess_exec", fake_exec(process)):
            with pytest.raises(QueryFailedError) as exc:
                run_async(WhoisClient(timeout=0.01).query("example.com"))
        assert exc.value.code == "timeout"

    def test_spawn_failure(self) -> None:
        async def _boom(*args, **kwargs):
            raise FileNotFoundError("whois")

        with patch("watchdom.whois_client.asyncio.create_subprocess_exec", _boom):
            with pytest.raises(QueryFailedError) as exc:
                run_async(WhoisClient().query("example.com"))
        assert exc.value.code == "spawn_failed"

    def test_undecodable_bytes_replaced(self) -> None:
        process = FakeProcess(b"Registrar: Caf\xe9\n")
        with patch("watchdom.whois_client.asyncio.create_subprocess_exec", fake_exec(process)):
            output = run_async(WhoisClient().query("example.com"))
        assert output.startswith("Registrar: Caf")


class TestDependency:
    """The lookup client must be on PATH."""

    def test_missing(self) -> None:
        with patch("watchdom.whois_client.shutil.which", return_value=None):
            with pytest.raises(DependencyMissingError) as exc:
                WhoisClient().check_dependency()
        assert exc.value.code == "missing_whois"
        assert "hint" in exc.value.details

    def test_present(self) -> None:
        with patch("watchdom.whois_client.shutil.which", return_value="/usr/bin/whois"):
            WhoisClient().check_dependency()
