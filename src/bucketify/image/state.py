"""Operation lifecycle state machine.

Tracks one logical client operation (create, update, delete, or a batch
of them) through its steps and enforces valid transitions, so that a
step can never run after the operation has already failed or finished.
"""

from __future__ import annotations

import logging

from bucketify.models import OperationState


class OperationStateMachine:
    """Finite state machine for a single client operation.

    Valid transitions::

        CHECKING_CONNECTIVITY -> VALIDATING | CALLING_TRANSPORT
        VALIDATING            -> COMPRESSING
        COMPRESSING           -> CALLING_TRANSPORT
        CALLING_TRANSPORT     -> BUILDING_RESULT | DONE
        BUILDING_RESULT       -> DONE
        any non-terminal      -> FAILED
        DONE, FAILED          -> (terminal)

    Delete operations skip validation and compression; operations with
    nothing to return go straight from ``CALLING_TRANSPORT`` to ``DONE``.

    Parameters
    ----------
    op:
        Name of the client operation, used in log records.
    logger:
        Optional logger receiving a debug record per transition.
    """

    VALID_TRANSITIONS: dict[OperationState, set[OperationState]] = {
        OperationState.CHECKING_CONNECTIVITY: {
            OperationState.VALIDATING,
            OperationState.CALLING_TRANSPORT,
            OperationState.FAILED,
        },
        OperationState.VALIDATING: {OperationState.COMPRESSING, OperationState.FAILED},
        OperationState.COMPRESSING: {OperationState.CALLING_TRANSPORT, OperationState.FAILED},
        OperationState.CALLING_TRANSPORT: {
            OperationState.BUILDING_RESULT,
            OperationState.DONE,
            OperationState.FAILED,
        },
        OperationState.BUILDING_RESULT: {OperationState.DONE, OperationState.FAILED},
        OperationState.DONE: set(),
        OperationState.FAILED: set(),
    }

    def __init__(self, op: str, logger: logging.Logger | None = None) -> None:
        self.op: str = op
        self.state: OperationState = OperationState.CHECKING_CONNECTIVITY
        self._log = logger

    @property
    def is_terminal(self) -> bool:
        return not self.VALID_TRANSITIONS[self.state]

    def transition(self, new_state: OperationState) -> None:
        """Move to *new_state*.

        Raises
        ------
        ValueError
            If the transition from the current state is not valid.
        """
        allowed = self.VALID_TRANSITIONS.get(self.state, set())
        if new_state not in allowed:
            raise ValueError(
                f"Invalid state transition: {self.state.value} -> {new_state.value} "
                f"for operation {self.op}. "
                f"Allowed transitions from {self.state.value}: "
                f"{{{', '.join(sorted(s.value for s in allowed))}}}"
            )

        if self._log is not None:
            self._log.debug(
                "Operation state changed",
                extra={
                    "extra_fields": {
                        "op": self.op,
                        "from_state": self.state.value,
                        "to_state": new_state.value,
                    }
                },
            )
        self.state = new_state

    def fail(self) -> None:
        """Move to ``FAILED`` unless the operation already ended."""
        if not self.is_terminal:
            self.transition(OperationState.FAILED)
