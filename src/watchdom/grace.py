"""
Grace period escalation for the watchdom system.

Once a run is more than three hours past its target time, the user is
asked (once) whether to keep watching. The answer comes from a decision
provider so that non-interactive runs and tests never block on input.
"""

import sys
from typing import TYPE_CHECKING, Awaitable, Callable, Optional, Protocol, TextIO, runtime_checkable

from .enums import EventKind, GraceChoice
from .i18n import get_message
from .models import GRACE_WINDOW_SECONDS, GraceDecision, NotificationEvent, PollState

if TYPE_CHECKING:
    from .audit_logger import AuditLogger

# Interval kept after the user chooses to continue past the grace window
CONTINUE_INTERVAL_SECONDS = 3600


@runtime_checkable
class DecisionProvider(Protocol):
    """Source of the continue/exit/custom decision."""

    def decide(self) -> GraceDecision:
        ...


class AutoConfirmDecisionProvider:
    """Always continues; used with --yes and in unattended runs."""

    def __init__(self, output: Optional[TextIO] = None, language: str = "en") -> None:
        self._output = output
        self._language = language

    def decide(self) -> GraceDecision:
        if self._output is not None:
            self._output.write(get_message("grace.auto_continue", self._language) + "\n")
        return GraceDecision(GraceChoice.CONTINUE)


class InteractiveDecisionProvider:
    """
    Asks on a text stream.

    'n' exits, 'c' asks for a custom interval in seconds, anything else
    (including EOF) continues. A non-positive or non-numeric custom
    interval falls back to continuing with a warning.
    """

    def __init__(
        self,
        input_stream: Optional[TextIO] = None,
        output: Optional[TextIO] = None,
        language: str = "en",
    ) -> None:
        self._input = input_stream or sys.stdin
        self._output = output or sys.stdout
        self._language = language

    def _say(self, key: str, newline: bool = True) -> None:
        self._output.write(get_message(key, self._language) + ("\n" if newline else ""))
        self._output.flush()

    def _read(self) -> Optional[str]:
        line = self._input.readline()
        if not line:
            return None
        return line.strip()

    def decide(self) -> GraceDecision:
        self._output.write("\n")
        for key in ("grace.header", "grace.option_yes", "grace.option_no", "grace.option_custom"):
            self._say(key)
        self._say("grace.choice", newline=False)

        answer = self._read()
        if answer is None:
            return GraceDecision(GraceChoice.CONTINUE)

        choice = answer[:1].lower()
        if choice == "n":
            return GraceDecision(GraceChoice.EXIT)
        if choice != "c":
            return GraceDecision(GraceChoice.CONTINUE)

        self._say("grace.custom_prompt", newline=False)
        raw = self._read()
        if raw is not None and raw.isdigit() and int(raw) > 0:
            return GraceDecision(GraceChoice.CUSTOM, int(raw))

        self._say("grace.invalid_custom")
        return GraceDecision(GraceChoice.CONTINUE)


class GracePrompt:
    """
    One-shot escalation point.

    The prompted flag lives in PollState.grace_alerted, so a prompt that
    has fired stays fired for the rest of the run.
    """

    def __init__(
        self,
        provider: DecisionProvider,
        notify: Optional[Callable[[NotificationEvent], Awaitable[bool]]] = None,
        logger: Optional["AuditLogger"] = None,
    ) -> None:
        self._provider = provider
        self._notify = notify
        self._logger = logger

    @staticmethod
    def is_due(state: PollState, since_target: Optional[int]) -> bool:
        return (
            not state.grace_alerted
            and since_target is not None
            and since_target > GRACE_WINDOW_SECONDS
        )

    async def check(
        self,
        state: PollState,
        domain: str,
        since_target: Optional[int],
    ) -> Optional[GraceDecision]:
        """
        Fire the escalation if it is due.

        Returns:
            The decision if the prompt fired on this call, otherwise None.
            CUSTOM stores its interval as the run's interval override,
            CONTINUE stores CONTINUE_INTERVAL_SECONDS.
        """
        if not self.is_due(state, since_target):
            return None

        state.grace_alerted = True

        if self._notify is not None:
            await self._notify(NotificationEvent(
                kind=EventKind.GRACE_ENTERED,
                domain=domain,
                details=f"{since_target}s past target",
            ))

        # Blocking read on the loop thread; background deliveries wait until
        # the user answers
        decision = self._provider.decide()
        if decision.choice == GraceChoice.CUSTOM and decision.custom_interval:
            state.custom_interval_override = decision.custom_interval
        elif decision.choice == GraceChoice.CONTINUE:
            state.custom_interval_override = CONTINUE_INTERVAL_SECONDS

        if self._logger:
            self._logger.info(
                "GracePrompt",
                "Grace decision received",
                {
                    "domain": domain,
                    "choice": decision.choice.value,
                    "custom_interval": decision.custom_interval,
                },
            )
        return decision
