"""
Assistant service — pass-through to the dialogue service.

Every conversation is identified by the session handle returned from
``start_session``; callers send it back with each message, so any number
of conversations can be live at once.
"""
import logging

from app.assistant import AssistantClient, SessionExpired
from app.exceptions import SessionNotStartedError
from app.session_store import SessionStore

logger = logging.getLogger(__name__)


async def start_session(client: AssistantClient, store: SessionStore) -> str:
    session_id = await client.create_session()
    await store.register(session_id)
    logger.info("Session created successfully: %s", session_id)
    return session_id


async def send_message(
    client: AssistantClient,
    store: SessionStore,
    session_id: str | None,
    text: str,
) -> dict:
    """
    Forward *text* to the assistant under *session_id* and return its output.

    Raises SessionNotStartedError for a missing, unknown or expired handle.
    """
    if not session_id or not await store.exists(session_id):
        raise SessionNotStartedError()

    try:
        output = await client.send_message(session_id, text)
    except SessionExpired:
        await store.discard(session_id)
        raise SessionNotStartedError()

    await store.touch(session_id)
    return output
