"""
Unit tests for wire messages.

Tests cover:
- Outbound serialization (start/end wire shapes)
- Inbound decoding into the closed message union
- ProtocolError for unknown tags and malformed envelopes
"""

import pytest

from substream.exceptions import ProtocolError
from substream.messages import (
    DataMessage,
    EndMessage,
    FailMessage,
    MessageType,
    StartMessage,
    SubscriptionOptions,
    SuccessMessage,
    decode_inbound,
)


class TestSubscriptionOptions:
    def test_is_immutable(self):
        options = SubscriptionOptions(query="subscription { a }")
        with pytest.raises(Exception):
            options.query = "subscription { b }"  # type: ignore[misc]

    def test_to_wire_omits_unset_fields(self):
        options = SubscriptionOptions(query="subscription { a }")
        assert options.to_wire() == {"query": "subscription { a }"}

    def test_to_wire_uses_camel_case(self):
        options = SubscriptionOptions.model_validate(
            {
                "query": "subscription { a }",
                "operationName": "A",
                "variables": {"x": 1},
                "context": {"token": "t"},
            }
        )
        assert options.to_wire() == {
            "query": "subscription { a }",
            "operationName": "A",
            "variables": {"x": 1},
            "context": {"token": "t"},
        }


class TestOutbound:
    def test_start_message_wire_shape(self):
        options = SubscriptionOptions(query="subscription { a }", variables={"x": 1})
        message = StartMessage(id=3, options=options)
        assert message.type is MessageType.START
        assert message.to_wire() == {
            "type": "start",
            "id": 3,
            "query": "subscription { a }",
            "variables": {"x": 1},
        }

    def test_start_message_forwards_extra_option_keys(self):
        options = SubscriptionOptions.model_validate(
            {"query": "subscription { a }", "extensions": {"v": 1}, "id": 99, "type": "x"}
        )
        assert StartMessage(id=3, options=options).to_wire() == {
            "type": "start",
            "id": 3,
            "query": "subscription { a }",
            "extensions": {"v": 1},
        }

    def test_end_message_wire_shape(self):
        assert EndMessage(id=9).to_wire() == {"type": "end", "id": 9}


class TestDecodeInbound:
    def test_success(self):
        message = decode_inbound({"type": "success", "id": 1})
        assert isinstance(message, SuccessMessage)
        assert message.id == 1

    def test_fail_with_errors(self):
        message = decode_inbound(
            {"type": "fail", "id": 2, "payload": {"errors": [{"message": "nope"}]}}
        )
        assert isinstance(message, FailMessage)
        assert message.errors == [{"message": "nope"}]

    def test_fail_without_payload(self):
        message = decode_inbound({"type": "fail", "id": 2})
        assert isinstance(message, FailMessage)
        assert message.errors is None

    def test_data_with_data(self):
        message = decode_inbound({"type": "data", "id": 4, "payload": {"data": {"n": 1}}})
        assert isinstance(message, DataMessage)
        assert message.data == {"n": 1}
        assert message.errors is None

    def test_data_with_null_payload(self):
        message = decode_inbound({"type": "data", "id": 4, "payload": None})
        assert isinstance(message, DataMessage)
        assert message.data is None
        assert message.errors is None

    def test_decoded_message_passes_through(self):
        message = SuccessMessage(type="success", id=5)
        assert decode_inbound(message) is message

    @pytest.mark.parametrize("message_type", ["start", "end", "subscription_data", "", None, 7])
    def test_unknown_type_raises_protocol_error(self, message_type):
        with pytest.raises(ProtocolError) as exc_info:
            decode_inbound({"type": message_type, "id": 0})
        assert exc_info.value.message_type == message_type

    def test_missing_type_raises_protocol_error(self):
        with pytest.raises(ProtocolError):
            decode_inbound({"id": 0})

    def test_non_mapping_raises_protocol_error(self):
        with pytest.raises(ProtocolError, match="expected a mapping"):
            decode_inbound(["success", 0])

    def test_missing_id_raises_protocol_error(self):
        with pytest.raises(ProtocolError, match="malformed"):
            decode_inbound({"type": "success"})
