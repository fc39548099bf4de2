CONVERSATION_CHANNEL_PREFIX = "conversation:"


def conversation_channel(conversation_id: int) -> str:
    return f"{CONVERSATION_CHANNEL_PREFIX}{conversation_id}"
