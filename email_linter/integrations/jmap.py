"""Async client for a JMAP server (session discovery and raw API calls).

The client knows about HTTP and bearer auth only. Building method calls and
interpreting their responses is done by ``email_linter.executors.batched_query``.
"""

import logging

import httpx
from pydantic import ValidationError

from email_linter.errors import AuthenticationError, ProtocolError, TransportError
from email_linter.schemas.jmap import JmapSession

logger = logging.getLogger(__name__)

JMAP_USING = ["urn:ietf:params:jmap:core", "urn:ietf:params:jmap:mail"]

# Fastmail answers these literal bodies instead of a JSON error object.
MALFORMED_JSON_BODY = "Malformed JSON"
BAD_AUTH_HEADER_BODY = "Authorization header not a valid format"


class JmapClient:
    """Async HTTP client for a JMAP server.

    Usage::

        async with JmapClient(session_url, token) as client:
            session = await client.get_session()
            body = await client.call(method_calls)
    """

    def __init__(
        self,
        session_url: str,
        token: str,
        *,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._session_url = session_url
        self._session: JmapSession | None = None
        self._client = httpx.AsyncClient(
            headers={
                "Authorization": f"Bearer {token}",
                "Content-Type": "application/json",
            },
            timeout=timeout,
            transport=transport,
        )

    async def __aenter__(self) -> "JmapClient":
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.close()

    async def close(self) -> None:
        await self._client.aclose()

    # ------------------------------------------------------------------
    # Session
    # ------------------------------------------------------------------

    async def get_session(self) -> JmapSession:
        """Fetch (once) and return the JMAP session resource."""
        if self._session is not None:
            return self._session

        response = await self._send("GET", self._session_url)
        body = response.text
        if body.strip().lower() == BAD_AUTH_HEADER_BODY.lower() or response.status_code in (401, 403):
            raise AuthenticationError("The API token is invalid or malformed")
        self._raise_for_status(response)

        try:
            self._session = JmapSession.model_validate_json(body)
        except ValidationError as exc:
            raise ProtocolError(f"Invalid JMAP session response: {exc}") from exc

        logger.debug("JMAP API URL: %s", self._session.apiUrl)
        return self._session

    async def account_id(self) -> str:
        """Return the primary mail account id from the session."""
        session = await self.get_session()
        account_id = session.mail_account_id
        if not account_id:
            raise ProtocolError("Session has no primary mail account")
        logger.debug("Account ID: %s", account_id)
        return account_id

    # ------------------------------------------------------------------
    # API calls
    # ------------------------------------------------------------------

    async def call(self, method_calls: list[list]) -> str:
        """POST a batch of method calls and return the raw response body."""
        session = await self.get_session()
        payload = {"using": JMAP_USING, "methodCalls": method_calls}
        response = await self._send("POST", session.apiUrl, json=payload)
        if response.status_code in (401, 403):
            raise AuthenticationError("The API token was rejected")
        body = response.text
        if body.strip() == MALFORMED_JSON_BODY:
            raise TransportError("Server reported the request as malformed JSON")
        self._raise_for_status(response)
        return body

    async def _send(self, method: str, url: str, **kwargs) -> httpx.Response:
        try:
            return await self._client.request(method, url, **kwargs)
        except httpx.HTTPError as exc:
            raise TransportError(f"{method} {url} failed: {exc}") from exc

    @staticmethod
    def _raise_for_status(response: httpx.Response) -> None:
        try:
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise TransportError(
                f"HTTP {response.status_code} from {response.request.url}"
            ) from exc
