"""Tests for rendered views."""

from datetime import date
from decimal import Decimal

from debt_tracker.dialogue import views
from debt_tracker.models import Debt, Debtor, RenderMode


def _debtor(**kwargs) -> Debtor:
    return Debtor(id=5, chat_id=42, name="Alice", **kwargs)


class TestDebtorDetail:
    """Tests for the debtor view."""

    def test_lists_debts_and_total(self):
        """Test that every debt and the derived total are shown."""
        debts = [
            Debt(id=1, debtor_id=5, amount=Decimal("10.00"), reason="lunch"),
            Debt(id=2, debtor_id=5, amount=Decimal("2.50"), reason="coffee"),
        ]
        request = views.debtor_detail(_debtor(), debts)

        assert "- 10.00 for lunch" in request.text
        assert "- 2.50 for coffee" in request.text
        assert "Total debt: 12.50" in request.text
        assert request.chat_id == 42

    def test_per_debt_buttons(self):
        """Test that each debt gets edit and close buttons carrying its id."""
        debts = [Debt(id=9, debtor_id=5, amount=Decimal("1"), reason="gum")]
        payloads = views.debtor_detail(_debtor(), debts).payloads

        assert "edit_debt:9" in payloads
        assert "close_debt:9" in payloads
        assert "add_debt_to_existing:5" in payloads
        assert "delete_debtor:5" in payloads

    def test_payment_plan_unset(self):
        """Test the set buttons when no plan is recorded."""
        request = views.debtor_detail(_debtor(), [])

        assert "Payment date" not in request.text
        assert "set_payment_date:5" in request.payloads
        assert "set_payment_amount:5" in request.payloads
        assert "Total debt: 0.00" in request.text

    def test_payment_plan_set(self):
        """Test the edit and clear buttons when a plan is recorded."""
        debtor = _debtor(payment_date=date(2024, 12, 31), payment_amount=Decimal("50"))
        request = views.debtor_detail(debtor, [])

        assert "Payment date: 31.12.2024" in request.text
        assert "Payment amount: 50.00" in request.text
        assert {
            "edit_payment_date:5",
            "clear_payment_date:5",
            "edit_payment_amount:5",
            "clear_payment_amount:5",
        } <= set(request.payloads)
        assert "set_payment_date:5" not in request.payloads


class TestOtherViews:
    """Tests for lists, confirmations and replies."""

    def test_debtor_list(self):
        """Test one button per debtor with its debt count."""
        request = views.debtor_list(42, [(_debtor(), 1), (Debtor(6, 42, "Bob"), 3)])

        labels = [row[0].label for row in request.actions]
        assert labels == ["Alice (1 debt)", "Bob (3 debts)"]
        assert request.payloads == ["select_debtor:5", "select_debtor:6"]

    def test_confirm_close_cancel_targets_debtor(self):
        """Test that cancelling a close returns to the debtor."""
        debt = Debt(id=9, debtor_id=5, amount=Decimal("1"), reason="gum")
        request = views.confirm_close(debt, 42, message_id=3)

        assert request.payloads == ["confirm_close:9", "cancel:5"]
        assert request.mode is RenderMode.EDIT
        assert request.message_id == 3

    def test_reply_without_message_sends(self):
        """Test that a reply with no known message is sent fresh."""
        request = views.reply(42, "x", None)
        assert request.mode is RenderMode.SEND
        assert request.message_id is None

    def test_export_document(self):
        """Test the attached CSV file."""
        request = views.export_document(42, "a,b\r\n")

        assert request.document.filename == "debts_42.csv"
        assert request.document.content == b"a,b\r\n"
