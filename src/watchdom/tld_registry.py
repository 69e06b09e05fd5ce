"""
TLD Registry - WHOIS servers and availability patterns per TLD.

Built-in entries are seeded first; entries from the user store
(~/.watchdomrc, one "TLD|SERVER|PATTERN" per line) override them in
file order. New entries are only ever appended to the store.
"""

import re
from pathlib import Path
from typing import TYPE_CHECKING, Optional

from .config import DEFAULT_RC_PATH, TldEntry
from .enums import LogLevel, RegistryErrorCode
from .exceptions import RegistryError

if TYPE_CHECKING:
    from .audit_logger import AuditLogger

RC_HEADER = "# watchdom TLD configuration\n# Format: TLD|SERVER|PATTERN\n"

TLD_PATTERN = re.compile(r"^\.[a-zA-Z0-9-]+$")
SERVER_PATTERN = re.compile(r"^[a-zA-Z0-9.-]+$")

# ============================================================================
# BUILT-IN TLDs
# ============================================================================
BUILTIN_TLDS = [
    TldEntry(tld=".com", server="whois.verisign-grs.com", pattern="No match for", builtin=True),
    TldEntry(tld=".net", server="whois.verisign-grs.com", pattern="No match for", builtin=True),
    TldEntry(tld=".org", server="whois.pir.org", pattern="(NOT FOUND|Domain not found)", builtin=True),
    TldEntry(tld=".info", server="whois.afilias.net", pattern="NOT FOUND", builtin=True),
    TldEntry(tld=".biz", server="whois.nic.biz", pattern="No Data Found", builtin=True),
    TldEntry(tld=".io", server="whois.nic.io", pattern="NOT FOUND", builtin=True),
    TldEntry(tld=".co", server="whois.nic.co", pattern="No Data Found", builtin=True),
    TldEntry(tld=".de", server="whois.denic.de", pattern="Status: free", builtin=True),
    TldEntry(tld=".eu", server="whois.eu", pattern="Status: AVAILABLE", builtin=True),
]


def normalize_tld(tld: str) -> str:
    """Lowercase and ensure a single leading dot."""
    tld = tld.strip().lower()
    return tld if tld.startswith(".") else f".{tld}"


def extract_tld(domain: str) -> str:
    """
    Extract the TLD key from a domain, URL or host.

    >>> extract_tld("https://Sub.Example.COM/path")
    '.com'
    """
    host = domain.strip()
    if "://" in host:
        host = host.split("://", 1)[1]
    host = host.split("/", 1)[0].rstrip(".")
    return normalize_tld(host.rsplit(".", 1)[-1])


class Registry:
    """
    TLD to (server, pattern) mapping for one process.

    Construct with Registry.load(); the instance is then passed to the
    orchestrator and the CLI commands that need it.
    """

    def __init__(
        self,
        rc_path: Path = DEFAULT_RC_PATH,
        logger: Optional["AuditLogger"] = None,
    ) -> None:
        self._rc_path = Path(rc_path)
        self._logger = logger
        self._entries: dict[str, TldEntry] = {
            entry.tld: entry for entry in BUILTIN_TLDS
        }

    @classmethod
    def load(
        cls,
        rc_path: Path = DEFAULT_RC_PATH,
        logger: Optional["AuditLogger"] = None,
    ) -> "Registry":
        """
        Seed the built-ins and merge the user store.

        Never raises: an unreadable store or malformed line is skipped
        with a warning.
        """
        registry = cls(rc_path, logger)
        registry._load_user_entries()
        return registry

    @property
    def rc_path(self) -> Path:
        return self._rc_path

    def _load_user_entries(self) -> None:
        if not self._rc_path.exists():
            return

        try:
            lines = self._rc_path.read_text(encoding="utf-8").splitlines()
        except (OSError, UnicodeDecodeError) as e:
            self._log(
                LogLevel.WARN,
                f"Could not read TLD store: {e}",
                {"path": str(self._rc_path)},
            )
            return

        for lineno, line in enumerate(lines, start=1):
            stripped = line.strip()
            if not stripped or stripped.startswith("#"):
                continue

            parts = stripped.split("|", 2)
            if len(parts) != 3 or not all(p.strip() for p in parts):
                self._log(
                    LogLevel.WARN,
                    "Skipping malformed TLD store line",
                    {"path": str(self._rc_path), "line": lineno},
                )
                continue

            tld, server, pattern = (p.strip() for p in parts)
            entry = TldEntry(tld=normalize_tld(tld), server=server, pattern=pattern)
            self._entries[entry.tld] = entry
            self._log(
                LogLevel.TRACE,
                f"Loaded custom TLD: {entry.tld} -> {entry.server}",
                {"pattern": entry.pattern},
            )

    def resolve(self, domain: str) -> Optional[TldEntry]:
        """Look up the entry for a domain's TLD; None if unsupported."""
        return self._entries.get(extract_tld(domain))

    def get(self, tld: str) -> Optional[TldEntry]:
        return self._entries.get(normalize_tld(tld))

    def entries(self) -> list[TldEntry]:
        """All entries sorted by TLD."""
        return sorted(self._entries.values(), key=lambda e: e.tld)

    def __contains__(self, tld: str) -> bool:
        return normalize_tld(tld) in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def add(
        self,
        tld: str,
        server: str,
        pattern: str,
        overwrite: bool = False,
    ) -> TldEntry:
        """
        Validate and append a TLD entry to the user store.

        Args:
            tld: TLD with or without leading dot
            server: WHOIS server hostname
            pattern: Case-insensitive availability regex
            overwrite: Replace an existing entry for the same TLD

        Returns:
            The stored TldEntry

        Raises:
            RegistryError: invalid_tld, invalid_server, empty_pattern,
                invalid_pattern, already_exists or write_failed
        """
        tld = (tld or "").strip()
        if not tld.startswith("."):
            tld = f".{tld}"
        if not TLD_PATTERN.match(tld):
            raise RegistryError(
                RegistryErrorCode.INVALID_TLD.value,
                f"Invalid TLD format: {tld} (should be like .com, .org, .uk)",
                {"tld": tld},
            )
        tld = tld.lower()

        server = (server or "").strip()
        if not SERVER_PATTERN.match(server):
            raise RegistryError(
                RegistryErrorCode.INVALID_SERVER.value,
                f"Invalid server format: {server} (should be like whois.example.com)",
                {"server": server},
            )

        if not pattern or not pattern.strip():
            raise RegistryError(
                RegistryErrorCode.EMPTY_PATTERN.value,
                "Pattern cannot be empty",
            )
        try:
            re.compile(pattern, re.IGNORECASE)
        except re.error as e:
            raise RegistryError(
                RegistryErrorCode.INVALID_PATTERN.value,
                f"Pattern is not a valid regular expression: {e}",
                {"pattern": pattern},
            ) from e

        existing = self._entries.get(tld)
        if existing is not None and not overwrite:
            raise RegistryError(
                RegistryErrorCode.ALREADY_EXISTS.value,
                f"TLD {tld} already configured with server {existing.server}",
                {"tld": tld, "server": existing.server},
            )

        entry = TldEntry(tld=tld, server=server, pattern=pattern)
        self._append(entry)
        self._entries[tld] = entry
        self._log(
            LogLevel.INFO,
            f"Added TLD configuration: {tld} -> {server}",
            {"pattern": pattern},
        )
        return entry

    def _append(self, entry: TldEntry) -> None:
        try:
            self._rc_path.parent.mkdir(parents=True, exist_ok=True)
            is_new = not self._rc_path.exists()
            with open(self._rc_path, "a", encoding="utf-8") as f:
                if is_new:
                    f.write(RC_HEADER)
                f.write(entry.to_line() + "\n")
        except OSError as e:
            raise RegistryError(
                RegistryErrorCode.WRITE_FAILED.value,
                f"Failed to save TLD configuration: {e}",
                {"path": str(self._rc_path)},
            ) from e

    def _log(self, level: LogLevel, message: str, data: dict) -> None:
        if self._logger:
            self._logger.log(level, "Registry", message, data)
