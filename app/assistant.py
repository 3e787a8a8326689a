"""
HTTP client for the external dialogue service (Watson Assistant v2).

Only two calls are used: open a session and send a text message in it.
Nothing is interpreted here; the assistant's ``output`` object is handed
back to the caller as-is.
"""
import logging

import httpx

from app.config import settings
from app.exceptions import ExternalServiceError

logger = logging.getLogger(__name__)


class SessionExpired(Exception):
    """The assistant no longer knows the session id it was given."""


class AssistantClient:
    def __init__(
        self,
        url: str | None = None,
        apikey: str | None = None,
        assistant_id: str | None = None,
        version: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.url = (url or settings.ASSISTANT_URL).rstrip("/")
        self.apikey = apikey if apikey is not None else settings.ASSISTANT_APIKEY
        self.assistant_id = assistant_id if assistant_id is not None else settings.ASSISTANT_ID
        self.version = version or settings.ASSISTANT_VERSION
        self.timeout = timeout or settings.ASSISTANT_TIMEOUT
        self._http: httpx.AsyncClient | None = None
        if transport is not None:
            self.open(transport)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def open(self, transport: httpx.AsyncBaseTransport | None = None) -> None:
        """Build the shared HTTP client.  A no-op when one is already open."""
        if self._http is not None:
            return
        self._http = httpx.AsyncClient(
            base_url=f"{self.url}/v2/assistants/{self.assistant_id}",
            auth=httpx.BasicAuth("apikey", self.apikey),
            params={"version": self.version},
            timeout=self.timeout,
            transport=transport,
        )

    async def close(self) -> None:
        """Release the connection pool.  Called once at application shutdown."""
        if self._http is not None:
            await self._http.aclose()
            self._http = None

    @property
    def http(self) -> httpx.AsyncClient:
        # Opened lazily for callers running outside the app lifespan.
        if self._http is None:
            self.open()
        return self._http

    # ------------------------------------------------------------------
    # Calls
    # ------------------------------------------------------------------

    async def create_session(self) -> str:
        """Open a new session and return its id."""
        try:
            resp = await self.http.post("/sessions")
            resp.raise_for_status()
            session_id = resp.json()["session_id"]
        except (httpx.HTTPError, KeyError, ValueError) as exc:
            logger.error("Error creating assistant session: %s", exc)
            raise ExternalServiceError("Error creating session") from exc
        return session_id

    async def send_message(self, session_id: str, text: str) -> dict:
        """
        Send *text* in *session_id* and return the assistant's ``output``.

        Raises SessionExpired when the assistant answers 404 for the
        session, ExternalServiceError for any other failure.
        """
        payload = {"input": {"message_type": "text", "text": text}}
        try:
            resp = await self.http.post(f"/sessions/{session_id}/message", json=payload)
            if resp.status_code == 404:
                raise SessionExpired(session_id)
            resp.raise_for_status()
            result = resp.json()
        except (httpx.HTTPError, ValueError) as exc:
            logger.error("Error sending message to assistant: %s", exc)
            raise ExternalServiceError() from exc

        logger.debug("Assistant response for session %s: %s", session_id, result)
        return result.get("output", {})


# Module-level singleton shared across all request handlers.
assistant = AssistantClient()
