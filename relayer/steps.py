"""
Relay Step Executor

Purpose: Keep the per-commitment relay run composable and testable with
minimal abstraction.

Provides:
- RelayStep: Protocol for individual relay steps
- RelayState: Dataclass holding intermediate results of one run
- StepExecutor: Runner that executes steps in sequence
- call_with_timeout: Bound a collaborator call by a caller-supplied timeout
"""

from __future__ import annotations

import logging
from concurrent.futures import Executor, TimeoutError as FutureTimeoutError
from dataclasses import dataclass, field
from typing import Any, Callable, Optional, Protocol, TypeVar

from core.merkle import InclusionProof
from core.proving.backend import ProofObject
from core.schemas.bridge import CreditReceipt
from core.schemas.errors import BridgeException, ErrorCodes, StepTimeoutException

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class RelayState:
    """
    Holds intermediate artifacts as one commitment moves through the relay.

    Fields are Optional to allow incremental population.
    """

    commitment: str
    amount: int = 0

    # Step 1: inclusion proof from the source chain
    inclusion: Optional[InclusionProof] = None

    # Step 2: proof from the backend
    proof: Optional[ProofObject] = None

    # Step 3: destination ledger receipt
    receipt: Optional[CreditReceipt] = None

    # Failure details
    errors: list[str] = field(default_factory=list)
    error_code: Optional[str] = None
    failed_step: Optional[str] = None
    ok: bool = True

    def add_error(self, error: str, code: str = ErrorCodes.RELAY_STEP_ERROR) -> None:
        """Add an error message and mark state as not ok. The first code wins."""
        self.errors.append(error)
        if self.error_code is None:
            self.error_code = code
        self.ok = False

    @property
    def error_reason(self) -> Optional[str]:
        return self.errors[0] if self.errors else None


class RelayStep(Protocol):
    """
    Protocol for a single relay step.

    Each step has a name and a run method that transforms state.
    """

    @property
    def name(self) -> str:
        """Unique name for this step."""
        ...

    def run(self, state: RelayState) -> RelayState:
        ...


@dataclass
class FunctionStep:
    """
    Adapter to create a RelayStep from a plain function.

    Example:
        step = FunctionStep("fetch_inclusion", lambda s: fetch(s))
    """

    _name: str
    _func: Callable[[RelayState], RelayState]

    @property
    def name(self) -> str:
        return self._name

    def run(self, state: RelayState) -> RelayState:
        return self._func(state)


class StepExecutor:
    """
    Executor that runs a sequence of RelaySteps.

    Bridge exceptions become state errors carrying their code; anything
    else is logged with a traceback and recorded as RELAY_STEP_ERROR.
    """

    def __init__(self, *, stop_on_error: bool = True):
        """
        Args:
            stop_on_error: If True, stop execution on first step error.
                          If False, continue and aggregate errors.
        """
        self.stop_on_error = stop_on_error

    def execute(
        self,
        steps: list[RelayStep],
        state: RelayState,
    ) -> tuple[RelayState, list[tuple[str, bool, Optional[str]]]]:
        """
        Execute all steps in sequence.

        Returns:
            Final state and a list of (step_name, success, error_message)
        """
        results: list[tuple[str, bool, Optional[str]]] = []

        for step in steps:
            try:
                state = step.run(state)
                results.append((step.name, True, None))

                if self.stop_on_error and not state.ok:
                    break

            except BridgeException as e:
                state.add_error(e.message, e.code)
                state.failed_step = step.name
                results.append((step.name, False, e.message))
                if self.stop_on_error:
                    break

            except Exception as e:
                logger.exception(f"Relay step '{step.name}' raised unexpectedly")
                state.add_error(f"Step '{step.name}' failed: {e}")
                state.failed_step = step.name
                results.append((step.name, False, str(e)))
                if self.stop_on_error:
                    break

        return state, results


def make_step(name: str, func: Callable[[RelayState], RelayState]) -> RelayStep:
    """Convenience function to create a step from a function."""
    return FunctionStep(name, func)


def call_with_timeout(
    pool: Executor,
    step: str,
    timeout_s: Optional[float],
    func: Callable[..., T],
    *args: Any,
) -> T:
    """
    Run func on `pool` and wait at most timeout_s seconds.

    A timed-out call is abandoned, not rolled back; it may still finish
    in the background.

    Raises:
        StepTimeoutException: If the call does not finish in time
    """
    if not timeout_s or timeout_s <= 0:
        return func(*args)

    future = pool.submit(func, *args)
    try:
        return future.result(timeout=timeout_s)
    except FutureTimeoutError:
        future.cancel()
        logger.warning(f"Step '{step}' exceeded {timeout_s}s; abandoning call")
        raise StepTimeoutException(step, timeout_s)


__all__ = [
    "RelayState",
    "RelayStep",
    "FunctionStep",
    "StepExecutor",
    "make_step",
    "call_with_timeout",
]
