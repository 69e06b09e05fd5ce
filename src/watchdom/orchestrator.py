"""
Watch Orchestrator for the watchdom system.

This module runs the polling loop for a single domain. Each cycle:
- computes the phase and effective interval for the current instant
- runs one WHOIS lookup and screens it for rate limiting
- tests the output against the availability pattern
- fires the one-shot target-reached and grace-period events
- enforces the max-check limit
- counts the interval down one second at a time

The clock and the sleep function are injectable so a whole run can be
replayed deterministically. Notifications go out in background tasks;
the run only waits for them, bounded, before it returns.
"""

import asyncio
import time
from typing import Awaitable, Callable, Optional

from .audit_logger import AuditLogger
from .display import NullRenderer, format_epoch
from .enums import EventKind, ExitCode, GraceChoice, LogLevel, Phase, RegistryErrorCode, WatchState
from .exceptions import QueryFailedError, RateLimitedError, RegistryError
from .grace import AutoConfirmDecisionProvider, DecisionProvider, GracePrompt
from .i18n import get_message
from .matcher import AvailabilityMatcher, extract_domain_status, extract_registrar
from .models import NotificationEvent, PollState, PollTarget, WatchResult
from .notifications import NotificationDispatcher
from .scheduler import calculate_phase
from .tld_registry import Registry, extract_tld
from .whois_client import WhoisClient


def _epoch_now() -> int:
    return int(time.time())


class WatchOrchestrator:
    """
    Polling loop for one watch run.

    Args:
        registry: Loaded TLD registry
        client: WHOIS client used for every lookup
        dispatcher: Notification dispatcher; events are dropped when None
        decision_provider: Source of the grace decision (auto-confirm by default)
        renderer: ConsoleRenderer or NullRenderer
        logger: Optional AuditLogger
        clock: Returns the current epoch second
        sleep: Awaitable sleep, called with 1 for every countdown tick
        language: Language for user-facing lines
        notify_timeout: Seconds to wait for pending notifications when the
            run ends
    """

    def __init__(
        self,
        registry: Registry,
        client: WhoisClient,
        dispatcher: Optional[NotificationDispatcher] = None,
        decision_provider: Optional[DecisionProvider] = None,
        renderer: Optional[NullRenderer] = None,
        logger: Optional[AuditLogger] = None,
        clock: Callable[[], int] = _epoch_now,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        language: str = "en",
        notify_timeout: float = 60.0,
    ) -> None:
        self._registry = registry
        self._client = client
        self._dispatcher = dispatcher
        self._renderer = renderer or NullRenderer()
        self._logger = logger
        self._clock = clock
        self._sleep = sleep
        self._language = language
        self._grace = GracePrompt(
            decision_provider or AutoConfirmDecisionProvider(),
            notify=self._notify,
            logger=logger,
        )
        self._state = WatchState.IDLE
        self._notify_timeout = notify_timeout
        self._deliveries: set[asyncio.Task] = set()

    @property
    def state(self) -> WatchState:
        return self._state

    async def run(self, target: PollTarget) -> WatchResult:
        """
        Watch a domain until it becomes available or the run ends.

        Returns:
            WatchResult in one of the terminal states MATCHED,
            LIMIT_REACHED, DECLINED or RATE_LIMITED

        Raises:
            RegistryError: If the TLD is unknown and no pattern override was given
        """
        try:
            result = await self._watch(target)
        except (asyncio.CancelledError, KeyboardInterrupt):
            self._state = WatchState.ABORTED
            for task in list(self._deliveries):
                task.cancel()
            self._log(LogLevel.INFO, "Watch interrupted", {"domain": target.domain})
            raise
        await self._drain_deliveries()
        return result

    async def _watch(self, target: PollTarget) -> WatchResult:
        entry = self._registry.resolve(target.domain)
        if entry is None and not target.pattern_override:
            tld = extract_tld(target.domain)
            raise RegistryError(
                RegistryErrorCode.NOT_FOUND.value,
                get_message("registry.unsupported", self._language, tld=tld),
                {"domain": target.domain, "tld": tld},
            )
        server = entry.server if entry else None
        registry_pattern = entry.pattern if entry else ""
        matcher = AvailabilityMatcher(target.pattern_override)

        state = PollState()
        started = self._clock()
        last_phase: Optional[Phase] = None
        last_output = ""
        errors: list[str] = []

        self._log(LogLevel.INFO, f"Watching {target.domain} via {server}", {
            "base_interval": target.base_interval_seconds,
            "pattern": matcher.effective_pattern(registry_pattern),
            "target_epoch": target.target_epoch,
            "max_checks": target.max_checks,
        })
        self._renderer.start(
            target.domain, server or "default", target.base_interval_seconds, target.target_epoch,
        )

        def finish(final: WatchState, exit_code: ExitCode) -> WatchResult:
            self._state = final
            elapsed = self._clock() - started
            result = WatchResult(
                domain=target.domain,
                state=final,
                exit_code=exit_code,
                check_count=state.check_count,
                elapsed_seconds=elapsed,
                phase=last_phase,
                last_output=last_output,
                domain_status=extract_domain_status(last_output),
                registrar=extract_registrar(last_output),
                errors=errors,
            )
            self._renderer.finish(
                final == WatchState.MATCHED,
                target.domain,
                result.domain_status.value,
                result.registrar,
                elapsed,
                state.check_count,
            )
            return result

        while True:
            now = self._clock()
            phase = calculate_phase(
                state.custom_interval_override or target.base_interval_seconds,
                target.target_epoch,
                now,
            )
            interval = state.custom_interval_override or phase.effective_interval_seconds

            if phase.phase != last_phase:
                self._renderer.phase_changed(last_phase, phase.phase, interval)
                self._log(LogLevel.DEBUG, "Phase changed", {
                    "from": last_phase.value if last_phase else None,
                    "to": phase.phase.value,
                    "interval": interval,
                })
                last_phase = phase.phase

            # Query
            self._state = WatchState.QUERYING
            state.check_count += 1
            matched = False
            try:
                last_output = await self._client.query(target.domain, server)
            except QueryFailedError as e:
                last_output = ""
                errors.append(e.message)
                if self._logger:
                    self._logger.log_error(
                        "WatchOrchestrator", "WHOIS query failed", e,
                        {"domain": target.domain, "check": state.check_count},
                        level=LogLevel.WARN,
                    )
            else:
                try:
                    matched = matcher.evaluate(last_output, registry_pattern)
                except RateLimitedError as e:
                    errors.append(e.message)
                    self._renderer.message(get_message("watch.rate_limited", self._language))
                    if self._logger:
                        self._logger.log_error(
                            "WatchOrchestrator", e.message, e, {"domain": target.domain},
                        )
                    return finish(WatchState.RATE_LIMITED, ExitCode.RATE_LIMITED)

            if matched:
                self._renderer.message(get_message("watch.available", self._language, domain=target.domain))
                await self._notify(NotificationEvent(
                    EventKind.SUCCESS, target.domain, f"Detected at {format_epoch(now)}",
                ))
                return finish(WatchState.MATCHED, ExitCode.SUCCESS)

            self._state = WatchState.NOT_MATCHED
            self._log(LogLevel.TRACE, "No match yet", {
                "check": state.check_count, "interval": interval,
            })

            # Target and grace
            if target.target_epoch is not None:
                since_target = now - target.target_epoch
                if since_target >= 0 and not state.target_alerted:
                    state.target_alerted = True
                    self._renderer.message(get_message("watch.target_reached", self._language))
                    await self._notify(NotificationEvent(
                        EventKind.TARGET_REACHED,
                        target.domain,
                        f"Target: {format_epoch(target.target_epoch)}",
                    ))

                decision = await self._grace.check(state, target.domain, since_target)
                if decision is not None and decision.choice == GraceChoice.EXIT:
                    self._renderer.message(get_message("watch.declined", self._language))
                    return finish(WatchState.DECLINED, ExitCode.NOT_FOUND)
                if state.custom_interval_override:
                    interval = state.custom_interval_override

            if target.max_checks and state.check_count >= target.max_checks:
                self._renderer.message(
                    get_message("watch.limit_reached", self._language, max_checks=target.max_checks)
                )
                return finish(WatchState.LIMIT_REACHED, ExitCode.NOT_FOUND)

            # Countdown
            self._state = WatchState.WAITING
            for remaining in range(interval, 0, -1):
                self._renderer.tick(
                    target.domain, phase.phase, remaining, target.target_epoch, self._clock(),
                )
                await self._sleep(1)

    async def _notify(self, event: NotificationEvent) -> bool:
        """Schedule delivery in the background; the loop never waits on a mailer."""
        if self._dispatcher is None:
            return False
        task = asyncio.create_task(self._dispatcher.notify(event))
        self._deliveries.add(task)
        task.add_done_callback(self._delivery_done)
        return True

    def _delivery_done(self, task: asyncio.Task) -> None:
        self._deliveries.discard(task)
        if task.cancelled():
            return
        error = task.exception()
        if error is not None and self._logger:
            self._logger.log_error(
                "WatchOrchestrator", "Notification delivery failed", error, level=LogLevel.WARN,
            )

    async def _drain_deliveries(self) -> None:
        if not self._deliveries:
            return
        _, pending = await asyncio.wait(set(self._deliveries), timeout=self._notify_timeout)
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)
            self._log(LogLevel.WARN, "Notification delivery still pending, giving up", {
                "pending": len(pending),
            })

    def _log(self, level: LogLevel, message: str, data: dict) -> None:
        if self._logger:
            self._logger.log(level, "WatchOrchestrator", message, data)
