"""Protocol definitions for dependency injection and interface contracts."""

from typing import Any, Dict, Mapping, Optional, Protocol


class Transport(Protocol):
    """Protocol for the HTTP request primitive used to reach Vault."""

    async def make_request(
        self,
        method: str,
        path: str,
        body: Optional[Mapping[str, Any]] = None,
        headers: Optional[Mapping[str, str]] = None,
    ) -> Dict[str, Any]:
        """Send one request and return the parsed JSON body.

        Raises:
            TransportError: On network failures and non-2xx responses.
            MalformedResponseError: If the body is not a JSON object.
        """
        ...
