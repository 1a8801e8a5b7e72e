"""Tests for button payloads."""

import pytest

from debt_tracker.dialogue import ButtonAction, ButtonPayload, decode_payload, encode_payload
from debt_tracker.errors import InvalidInput


class TestButtonPayload:
    """Tests for payload encoding and decoding."""

    def test_encode(self):
        """Test the wire form of a payload."""
        assert encode_payload(ButtonAction.CLOSE_DEBT, 17) == "close_debt:17"

    def test_decode(self):
        """Test decoding into action and id."""
        payload = decode_payload("select_debtor:3")
        assert payload == ButtonPayload(ButtonAction.SELECT_DEBTOR, 3)

    def test_every_action_decodes(self):
        """Test that each action survives encoding."""
        for action in ButtonAction:
            assert decode_payload(encode_payload(action, 1)).action is action

    @pytest.mark.parametrize(
        "raw",
        ["", "cancel", "unknown:1", "close_debt:", "close_debt:abc", "close_debt:1.5"],
    )
    def test_malformed_payload_raises(self, raw):
        """Test that malformed payloads are rejected."""
        with pytest.raises(InvalidInput):
            decode_payload(raw)
