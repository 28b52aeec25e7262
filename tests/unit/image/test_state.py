"""Tests for OperationStateMachine."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from bucketify.image.state import OperationStateMachine
from bucketify.models import OperationState as S


class TestTransitions:
    def test_starts_checking_connectivity(self):
        assert OperationStateMachine("op").state is S.CHECKING_CONNECTIVITY

    def test_create_path(self):
        m = OperationStateMachine("create_image")
        for state in (S.VALIDATING, S.COMPRESSING, S.CALLING_TRANSPORT, S.BUILDING_RESULT, S.DONE):
            m.transition(state)
        assert m.state is S.DONE
        assert m.is_terminal

    def test_delete_path_skips_validation(self):
        m = OperationStateMachine("delete_image")
        m.transition(S.CALLING_TRANSPORT)
        m.transition(S.DONE)
        assert m.state is S.DONE

    def test_compress_cannot_run_before_validation(self):
        m = OperationStateMachine("create_image")
        with pytest.raises(ValueError, match="Invalid state transition"):
            m.transition(S.COMPRESSING)

    def test_no_step_after_failure(self):
        m = OperationStateMachine("create_image")
        m.transition(S.FAILED)
        with pytest.raises(ValueError):
            m.transition(S.VALIDATING)

    @pytest.mark.parametrize(
        "path",
        [
            [],
            [S.VALIDATING],
            [S.VALIDATING, S.COMPRESSING],
            [S.CALLING_TRANSPORT],
            [S.CALLING_TRANSPORT, S.BUILDING_RESULT],
        ],
    )
    def test_fail_from_any_non_terminal(self, path):
        m = OperationStateMachine("op")
        for state in path:
            m.transition(state)
        m.fail()
        assert m.state is S.FAILED

    def test_fail_after_done_is_noop(self):
        m = OperationStateMachine("op")
        m.transition(S.CALLING_TRANSPORT)
        m.transition(S.DONE)
        m.fail()
        assert m.state is S.DONE

    def test_fail_twice_is_noop(self):
        m = OperationStateMachine("op")
        m.fail()
        m.fail()
        assert m.state is S.FAILED

    def test_error_message_lists_allowed(self):
        m = OperationStateMachine("op")
        with pytest.raises(ValueError, match="validating"):
            m.transition(S.DONE)


class TestLogging:
    def test_each_transition_logged(self):
        logger = MagicMock()
        m = OperationStateMachine("delete_image", logger)
        m.transition(S.CALLING_TRANSPORT)
        logger.debug.assert_called_once()
        fields = logger.debug.call_args.kwargs["extra"]["extra_fields"]
        assert fields == {
            "op": "delete_image",
            "from_state": "checking_connectivity",
            "to_state": "calling_transport",
        }
