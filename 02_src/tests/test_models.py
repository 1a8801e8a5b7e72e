"""Tests for data models."""

from decimal import Decimal

from debt_tracker.models import (
    Action,
    ConversationState,
    Debt,
    DialogueStep,
    RenderMode,
    RenderRequest,
    total_debt,
)


class TestTotalDebt:
    """Tests for total_debt."""

    def test_sum_of_debts(self):
        """Test that the total is the exact sum of amounts."""
        debts = [
            Debt(id=1, debtor_id=1, amount=Decimal("0.10"), reason="a"),
            Debt(id=2, debtor_id=1, amount=Decimal("0.20"), reason="b"),
        ]
        assert total_debt(debts) == Decimal("0.30")

    def test_no_debts(self):
        """Test that a debtor without debts owes zero."""
        assert total_debt([]) == Decimal("0")


class TestConversationState:
    """Tests for ConversationState."""

    def test_new_state_is_idle(self):
        """Test the baseline."""
        state = ConversationState(chat_id=1)
        assert state.step is DialogueStep.IDLE
        assert state.is_idle

    def test_reset_drops_focus(self):
        """Test that reset returns to the idle baseline."""
        state = ConversationState(
            chat_id=1,
            step=DialogueStep.AWAITING_DEBT_AMOUNT,
            debtor_id=3,
            debt_id=4,
            draft_reason="lunch",
        )
        assert not state.is_idle

        state.reset()

        assert state.is_idle
        assert state.chat_id == 1

    def test_step_values(self):
        """Test that step values are stable strings."""
        assert DialogueStep.CONFIRMING_DELETE_DEBTOR.value == "confirming_delete_debtor"
        assert DialogueStep("idle") is DialogueStep.IDLE


class TestRenderRequest:
    """Tests for RenderRequest."""

    def test_defaults(self):
        """Test a plain text message."""
        request = RenderRequest(chat_id=1, text="hi")
        assert request.mode is RenderMode.SEND
        assert request.actions == []
        assert request.document is None

    def test_payloads(self):
        """Test flattening the action rows."""
        request = RenderRequest(
            chat_id=1,
            text="x",
            actions=[
                [Action("A", "a:1"), Action("B", "b:2")],
                [Action("C", "c:3")],
            ],
        )
        assert request.payloads == ["a:1", "b:2", "c:3"]
