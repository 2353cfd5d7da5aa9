"""
Unit tests for webhook fan-out into the chat log.
"""
from datetime import datetime

from loandesk.models import ChatMessage
from loandesk.services import whatsapp_service


def webhook_payload(*messages, field="messages"):
    return {
        "object": "whatsapp_business_account",
        "entry": [
            {
                "id": "1234",
                "changes": [
                    {"field": field, "value": {"messaging_product": "whatsapp", "messages": list(messages)}},
                ],
            },
        ],
    }


TEXT = {"from": "9876543210", "type": "text", "text": {"body": "Need a loan"}}
DOCUMENT = {
    "from": "+919812345678",
    "type": "document",
    "document": {"url": "https://files.example/doc.pdf"},
}
IMAGE = {"from": "919800000000", "type": "image", "image": {"id": "img"}}


class TestExtractInboundMessages:

    def test_text_message(self):
        (message,) = whatsapp_service.extract_inbound_messages(webhook_payload(TEXT))

        assert message.session_id == "919876543210"
        assert message.message["type"] == "human"
        assert message.message["content"] == "Need a loan"
        assert message.message["additional_kwargs"] == {}
        assert message.message["tool_calls"] == []

    def test_document_without_caption_gets_default(self):
        (message,) = whatsapp_service.extract_inbound_messages(webhook_payload(DOCUMENT))

        assert message.session_id == "919812345678"
        assert message.message["content"] == "Document received"
        assert message.message["additional_kwargs"]["attachment"] == {
            "url": "https://files.example/doc.pdf",
            "type": "document",
        }

    def test_unsupported_types_and_fields_are_skipped(self):
        payload = webhook_payload(TEXT, IMAGE)
        payload["entry"][0]["changes"].append({"field": "statuses", "value": {"messages": [TEXT]}})

        messages = whatsapp_service.extract_inbound_messages(payload)

        assert len(messages) == 1

    def test_malformed_message_is_skipped_alone(self):
        broken_text = {"from": "9876543210", "type": "text", "text": "hi"}
        broken_document = {"from": "9876543210", "type": "document", "document": ["x"]}
        overlong_sender = {"from": "9" * 30, "type": "text", "text": {"body": "hi"}}

        messages = whatsapp_service.extract_inbound_messages(
            webhook_payload(broken_text, "garbage", broken_document, overlong_sender, TEXT)
        )

        assert [m.message["content"] for m in messages] == ["Need a loan"]

    def test_empty_payload(self):
        assert whatsapp_service.extract_inbound_messages({}) == []
        assert whatsapp_service.extract_inbound_messages({"entry": [{"changes": []}]}) == []


class TestChatLog:

    def test_store_inbound_messages(self, db_session):
        messages = whatsapp_service.extract_inbound_messages(webhook_payload(TEXT, DOCUMENT))

        stored = whatsapp_service.store_inbound_messages(db_session, messages)

        assert stored == 2
        assert db_session.query(ChatMessage).count() == 2

    def test_conversation_is_oldest_first(self, db_session):
        first = whatsapp_service.build_chat_message("human", "hello")
        second = whatsapp_service.build_chat_message("ai", "hi, how can we help?")
        whatsapp_service.save_chat_message(db_session, "919876543210", second, datetime(2025, 7, 1, 10, 5))
        whatsapp_service.save_chat_message(db_session, "919876543210", first, datetime(2025, 7, 1, 10, 0))
        whatsapp_service.save_chat_message(db_session, "910000000000", first, datetime(2025, 7, 1, 9, 0))

        conversation = whatsapp_service.list_conversation(db_session, "919876543210")

        assert [m.message["content"] for m in conversation] == ["hello", "hi, how can we help?"]
