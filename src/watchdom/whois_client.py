"""
WHOIS Client module for the watchdom system.

Runs the system `whois` client against a specific server and hands back
the raw text. No parsing and no retries happen here: the orchestrator
decides what a failed lookup means for the run.
"""

import asyncio
import contextlib
import shutil
from typing import Optional

from .exceptions import DependencyMissingError, QueryFailedError


class WhoisClient:
    """
    Thin async wrapper around the `whois` command-line client.

    Each query is one subprocess bounded by a timeout, so a hung server
    cannot stall the polling loop.
    """

    def __init__(
        self,
        timeout: float = 30.0,
        executable: str = "whois",
        simulation_mode: bool = False,
    ) -> None:
        """
        Initialize the WHOIS client.

        Args:
            timeout: Seconds to wait for the subprocess
            executable: Name or path of the lookup client
            simulation_mode: If True, no subprocess is started
        """
        self._timeout = timeout
        self._executable = executable
        self._simulation_mode = simulation_mode

    @property
    def timeout(self) -> float:
        return self._timeout

    def check_dependency(self) -> None:
        """
        Make sure the lookup client is installed.

        Raises:
            DependencyMissingError: If the executable is not on PATH
        """
        if self._simulation_mode:
            return
        if shutil.which(self._executable) is None:
            raise DependencyMissingError(
                "missing_whois",
                f"Required command '{self._executable}' not found",
                {
                    "hint": "Install with: apt-get install whois (Ubuntu/Debian) "
                    "or brew install whois (macOS)",
                },
            )

    async def query(self, domain: str, server: Optional[str] = None) -> str:
        """
        Query a WHOIS server for a domain.

        Args:
            domain: Domain to look up
            server: WHOIS server hostname; the client's default when None

        Returns:
            Raw output, verbatim

        Raises:
            QueryFailedError: On timeout, OS error, failing exit status
                or empty output
        """
        if self._simulation_mode:
            return self._get_simulated_response(domain)

        args = [self._executable]
        if server:
            args += ["-h", server]
        args.append(domain)

        try:
            process = await asyncio.create_subprocess_exec(
                *args,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            raise QueryFailedError(
                "spawn_failed",
                f"Could not start {self._executable}: {e}",
                {"domain": domain, "server": server},
            ) from e

        try:
            stdout, stderr = await asyncio.wait_for(
                process.communicate(), timeout=self._timeout
            )
        except asyncio.TimeoutError as e:
            with contextlib.suppress(ProcessLookupError):
                process.kill()
            await process.wait()
            raise QueryFailedError(
                "timeout",
                f"WHOIS query timed out after {self._timeout}s",
                {"domain": domain, "server": server},
            ) from e

        output = stdout.decode("utf-8", errors="replace")

        # whois exits non-zero for some "no match" answers, so only fail
        # when there is nothing to look at
        if not output.strip():
            raise QueryFailedError(
                "empty_output" if process.returncode == 0 else "exit_status",
                f"WHOIS query returned no output for {domain}",
                {
                    "domain": domain,
                    "server": server,
                    "returncode": process.returncode,
                    "stderr": stderr.decode("utf-8", errors="replace").strip(),
                },
            )

        return output

    def _get_simulated_response(self, domain: str) -> str:
        """
        Return a simulated response for dry runs.

        Domains whose first label starts with 'available-' get a
        "No match" answer, others a registered record.
        """
        sld = domain.split(".")[0] if "." in domain else domain
        if sld.startswith("available-"):
            return f"[SIMULATED]\nNo match for \"{domain.upper()}\".\n"
        return (
            "[SIMULATED]\n"
            f"Domain Name: {domain.upper()}\n"
            "Registrar: Example Registrar\n"
            "Creation Date: 2020-01-01\n"
            "Name Server: NS1.EXAMPLE.NET\n"
        )
