"""Builds the model-facing conversation from context and session history."""

from __future__ import annotations

from agentic_rag.types import ChatMessage, Message, RetrievedDocument, Role

CONTEXT_HEADER = "Context information from relevant documents:\n\n"
CONTEXT_FOOTER = "Based on the above context, please answer the user's question."


def format_context(documents: list[RetrievedDocument]) -> str:
    body = "".join(f"From {doc.file_name}: {doc.content}\n\n" for doc in documents)
    return f"{CONTEXT_HEADER}{body}{CONTEXT_FOOTER}"


def build_conversation(
    history: list[Message], documents: list[RetrievedDocument]
) -> list[ChatMessage]:
    """Prepend one context message (when documents exist) to the history.

    Tool messages stay in the session log but are not sent to the model.
    """

    conversation: list[ChatMessage] = []
    if documents:
        conversation.append(ChatMessage.user(format_context(documents)))

    for message in history:
        if message.role is Role.USER:
            conversation.append(ChatMessage.user(message.content))
        elif message.role is Role.ASSISTANT:
            conversation.append(ChatMessage.assistant(message.content))
    return conversation
