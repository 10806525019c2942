"""
Handles authentication with the NAS: logging in to the Download Station
session and logging out of it.
"""

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Optional

from .error_codes import AUTH_ERRORS, describe_error
from .results import ApiError, ApiResult, Success

if TYPE_CHECKING:
    from .client import NasClient

log = logging.getLogger(__name__)

AUTH_PATH = "auth.cgi"
AUTH_API = "SYNO.API.Auth"
SESSION_NAME = "DownloadStation"


@dataclass(frozen=True)
class DownloadSession:
    """
    An authenticated Download Station session.

    Returned by a successful login. Pass it to task operations to make the
    dependency on a login explicit instead of relying on the client's
    current session.
    """

    endpoint: str
    sid: str = field(repr=False)

    def __repr__(self) -> str:
        return f"DownloadSession(endpoint={self.endpoint!r}, sid='{self.sid[:4]}...')"


class NasAuthenticator:
    """
    Manages the login/logout flow for the NAS client.
    """

    def __init__(self, api_client: "NasClient"):
        """
        Initializes the authenticator.

        Args:
            api_client: A reference to the main NasClient instance.
        """
        self._api_client = api_client

    async def login(self, username: str, password: str) -> ApiResult:
        """
        Logs in with a username and plaintext password.

        On success the new session becomes the client's current session and
        is returned as the payload. On failure the current session is left
        untouched.
        """
        log.info(f"Logging in to {self._api_client.host}")

        result = await self._api_client.api_call(
            AUTH_PATH,
            AUTH_API,
            6,
            "login",
            {
                "session": SESSION_NAME,
                "format": "sid",
                "account": username,
                "passwd": password,
            },
            errors=AUTH_ERRORS,
        )
        if not result:
            return result

        data = result.payload
        sid = data.get("sid") if isinstance(data, dict) else None
        if not sid:
            log.error("[red]Login succeeded but no session id was returned[/red]")
            return ApiError(None, describe_error(None), result.envelope)

        session = DownloadSession(endpoint=self._api_client.origin, sid=sid)
        self._api_client.session = session
        log.debug(f"Logged in, sid: {sid[:4]}...")
        return Success(session, result.envelope)

    async def logout(self, session: Optional[DownloadSession] = None) -> ApiResult:
        """
        Logs out of the Download Station session.

        The client's current session is cleared whenever it is the one being
        logged out, even if the NAS reports a failure.
        """
        session = session or self._api_client.session

        result = await self._api_client.api_call(
            AUTH_PATH,
            AUTH_API,
            1,
            "logout",
            {"session": SESSION_NAME},
            session=session,
        )

        if session is not None and session == self._api_client.session:
            self._api_client.session = None

        if not result:
            return result
        return Success(bool(result.envelope.get("success")), result.envelope)
