"""Minimal step runner behind ``ReleaseDriver``.

The state names its own next step. A handler returns the updated state and
says whether the run continues; the first error ends the run.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass

from mdeploy.core.result import Err, Ok, Result
from mdeploy.services.release.errors import ReleaseError


@dataclass(frozen=True, slots=True)
class StepOutcome[S]:
    state: S
    final: bool = False


type StepHandler[S] = Callable[[S], Result[StepOutcome[S], ReleaseError]]


def advance[S](state: S) -> StepOutcome[S]:
    return StepOutcome(state)


def finish[S](state: S) -> StepOutcome[S]:
    return StepOutcome(state, final=True)


def run_state_machine[S](
    *,
    initial_state: S,
    get_step: Callable[[S], str],
    handlers: Mapping[str, StepHandler[S]],
    on_advance: Callable[[S], None] | None = None,
) -> Result[S, ReleaseError]:
    state = initial_state
    while True:
        step = get_step(state)
        if step not in handlers:
            return Err(ReleaseError(kind="internal_error", message=f"unknown release step: {step}"))

        outcome = handlers[step](state)
        if isinstance(outcome, Err):
            return outcome
        state = outcome.value.state
        if outcome.value.final:
            return Ok(state)
        if on_advance is not None:
            on_advance(state)
