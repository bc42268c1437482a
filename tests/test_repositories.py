import pytest

from app.exceptions import ChatNotFoundError
from app.models import MessageRole, StoredCitation
from app.repositories import ChatStore, generate_title


def test_generate_title_truncates_long_messages():
    assert generate_title("  Short question  ") == "Short question"
    long_text = "a" * 60
    assert generate_title(long_text) == "a" * 47 + "..."
    assert generate_title("   ") == "New Chat"


def test_create_and_get_chat(chat_store):
    chat = chat_store.create_chat()
    loaded = chat_store.get_chat(chat.id)

    assert loaded is not None
    assert loaded.title == "New Chat"
    assert loaded.citation_panel_open is False
    assert loaded.messages == []
    assert chat_store.get_chat("missing") is None


def test_first_user_message_names_the_chat(chat_store):
    chat = chat_store.create_chat()
    chat_store.add_message(chat.id, "user", "What is promissory estoppel?")
    chat_store.add_message(chat.id, MessageRole.USER, "And how is it proven?")

    loaded = chat_store.get_chat(chat.id)
    assert loaded.title == "What is promissory estoppel?"
    assert [message.content for message in loaded.messages] == [
        "What is promissory estoppel?",
        "And how is it proven?",
    ]


def test_assistant_message_keeps_citations_in_order(chat_store):
    chat = chat_store.create_chat()
    citations = [
        StoredCitation(title="Hadley v. Baxendale", authors=["Court of Exchequer"], year=1854),
        StoredCitation(title="Paper", authors=["A", "B"], journal="Nature", url="https://example.org"),
    ]
    message = chat_store.add_message(
        chat.id, MessageRole.ASSISTANT, "Answer [[C1]] [[C2]]", citations=citations, completion_tokens=42
    )

    assert message.role == "assistant"
    assert message.completion_tokens == 42
    assert [citation.title for citation in message.citations] == ["Hadley v. Baxendale", "Paper"]
    assert message.citations[1].authors == ["A", "B"]
    assert chat_store.get_chat(chat.id).title == "New Chat"


def test_list_chats_orders_by_last_activity(chat_store):
    first = chat_store.create_chat()
    second = chat_store.create_chat()
    assert [chat.id for chat in chat_store.list_chats()] == [second.id, first.id]

    chat_store.add_message(first.id, "user", "bump")
    assert chat_store.list_chats()[0].id == first.id


def test_update_title_and_citation_panel(chat_store):
    chat = chat_store.create_chat()
    chat_store.update_title(chat.id, "Renamed")
    chat_store.set_citation_panel(chat.id, True)

    loaded = chat_store.get_chat(chat.id)
    assert loaded.title == "Renamed"
    assert loaded.citation_panel_open is True


def test_delete_cascades_to_messages(tmp_path):
    store = ChatStore(tmp_path / "nested" / "chats.db")
    chat = store.create_chat()
    store.add_message(chat.id, "assistant", "x", citations=[StoredCitation(title="t")])

    store.delete_chat(chat.id)

    assert store.get_chat(chat.id) is None
    assert store.list_chats() == []


@pytest.mark.parametrize(
    "operation",
    [
        lambda store: store.add_message("missing", "user", "hi"),
        lambda store: store.update_title("missing", "t"),
        lambda store: store.set_citation_panel("missing", True),
        lambda store: store.delete_chat("missing"),
    ],
)
def test_unknown_chat_raises(chat_store, operation):
    with pytest.raises(ChatNotFoundError):
        operation(chat_store)
