"""
Async client for the Download Station web API of a Synology-style NAS.
"""

import asyncio
import dataclasses
import logging
import time
from typing import Any, Dict, Iterable, List, Optional, Union
from urllib.parse import quote, urlencode

import aiohttp
from rich.markup import escape
from yarl import URL

from dstation_cli.utils.structured_logger import APILogger, create_api_logger

from .auth import DownloadSession, NasAuthenticator
from .error_codes import TASK_ERRORS, describe_error
from .results import ApiError, ApiResult, HttpStatusError, Success, TransportError

log = logging.getLogger(__name__)

DEFAULT_URL = "https://localhost:5001"
WEBAPI_PREFIX = "/webapi/"

INFO_PATH = "query.cgi"
INFO_API = "SYNO.API.Info"
TASK_PATH = "DownloadStation/task.cgi"
TASK_API = "SYNO.DownloadStation.Task"

_DEFAULT_PORTS = {"http": 80, "https": 443}

TaskIds = Union[str, Iterable[str]]


def parse_origin(url: Union[str, URL, None]) -> URL:
    """
    Reduces a URL to its origin, falling back to the default NAS address
    when the value is missing or not an absolute http(s) URL.
    """
    if url is None:
        return URL(DEFAULT_URL)
    try:
        parsed = url if isinstance(url, URL) else URL(str(url))
        if (
            parsed.is_absolute()
            and parsed.scheme in _DEFAULT_PORTS
            and parsed.host
            and parsed.port
        ):
            return parsed.origin()
    except (TypeError, ValueError):
        pass
    log.warning(f"[yellow]Invalid NAS URL {url!r}, using {DEFAULT_URL}[/yellow]")
    return URL(DEFAULT_URL)


def _join_ids(ids: TaskIds) -> str:
    if isinstance(ids, str):
        return ids
    return ",".join(ids)


class NasClient:
    """
    Thin async client for the NAS download task API.

    Every operation performs exactly one GET request and returns an
    ``ApiResult``. Failures are logged and returned, never raised:
    - ``TransportError`` when the NAS cannot be reached
    - ``HttpStatusError`` for any status other than 200
    - ``ApiError`` when the envelope reports ``success: false``

    Certificate validation is disabled so appliances with self-signed
    certificates can be reached.
    """

    def __init__(
        self,
        url: Union[str, URL, None] = None,
        *,
        timeout: Optional[float] = None,
        api_logger: Optional[APILogger] = None,
    ):
        """
        Initializes the client.

        Args:
            url: Address of the NAS, e.g. ``https://192.168.1.241:5001``.
            timeout: Total request timeout in seconds. The transport default
                applies when omitted.
            api_logger: Receives an event for every API round trip.
        """
        self._url = parse_origin(url)
        self.timeout = timeout

        # State set by the authenticator
        self.session: Optional[DownloadSession] = None

        self._http: Optional[aiohttp.ClientSession] = None
        self._api_logger = api_logger or create_api_logger()
        self._authenticator = NasAuthenticator(self)

    @property
    def protocol(self) -> str:
        """URL scheme, ``http`` or ``https``."""
        return self._url.scheme

    @property
    def hostname(self) -> str:
        """Domain name or IP address."""
        return self._url.host

    @property
    def port(self) -> int:
        return self._url.port

    @property
    def host(self) -> str:
        """Hostname with the port appended unless it is the scheme default."""
        if self.port == _DEFAULT_PORTS.get(self.protocol):
            return self.hostname
        return f"{self.hostname}:{self.port}"

    @property
    def origin(self) -> str:
        return f"{self.protocol}://{self.host}"

    @property
    def sid(self) -> str:
        return self.session.sid if self.session else ""

    async def _initialize_session(self) -> None:
        """Ensures an active aiohttp session is available."""
        if self._http is None or self._http.closed:
            kwargs: Dict[str, Any] = {}
            if self.timeout is not None:
                kwargs["timeout"] = aiohttp.ClientTimeout(total=self.timeout)
            self._http = aiohttp.ClientSession(
                connector=aiohttp.TCPConnector(ssl=False),
                **kwargs,
            )

    async def close(self) -> None:
        """Gracefully closes the aiohttp session."""
        if self._http and not self._http.closed:
            await self._http.close()

    async def __aenter__(self) -> "NasClient":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    def build_api_url(self, path: str, query: Dict[str, Any]) -> str:
        """
        Builds the full request URL for a CGI path and escapes it as a whole.

        Meant for display and logging; requests are issued with structured
        parameters instead.
        """
        url = f"{self.origin}{WEBAPI_PREFIX}{path}?{urlencode(query, quote_via=quote)}"
        return quote(url, safe="!~*'()")

    async def api_call(
        self,
        path: str,
        api: str,
        version: int,
        method: str,
        params: Optional[Dict[str, Any]] = None,
        *,
        session: Optional[DownloadSession] = None,
        errors: Optional[Dict[int, str]] = None,
    ) -> ApiResult:
        """
        Performs one GET request against ``/webapi/<path>`` and unwraps the
        response envelope.

        Args:
            path: CGI path below ``/webapi/``.
            api: SYNO API name.
            version: API version to request.
            method: API method name.
            params: Extra query parameters.
            session: When given, its sid is sent as ``_sid``.
            errors: API-specific error code table used to describe failures.

        Returns:
            ``Success`` whose payload is the envelope's ``data``, or a failure.
        """
        await self._initialize_session()

        query: Dict[str, Any] = {"api": api, "version": version, "method": method}
        if params:
            query.update(params)
        if session is not None:
            query["_sid"] = session.sid

        self._api_logger.request_started(api, method, query)
        start_time = time.monotonic()

        try:
            async with self._http.get(
                self._url.with_path(WEBAPI_PREFIX + path), params=query, ssl=False
            ) as r:
                duration_ms = (time.monotonic() - start_time) * 1000
                if r.status != 200:
                    log.error(f"[red]Http error code: {r.status}[/red]")
                    self._api_logger.request_failed(
                        api, method, "http_status", duration_ms, status_code=r.status
                    )
                    return HttpStatusError(r.status)
                envelope = await r.json(content_type=None)
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
            duration_ms = (time.monotonic() - start_time) * 1000
            message = str(e) or type(e).__name__
            log.error(f"[red]Request {api}.{method} failed: {escape(message)}[/red]")
            self._api_logger.request_failed(api, method, message, duration_ms)
            return TransportError(message)

        success = isinstance(envelope, dict) and bool(envelope.get("success"))
        self._api_logger.request_completed(api, method, 200, duration_ms, success)

        if not isinstance(envelope, dict):
            log.error(f"[red]Unexpected response from {api}.{method}[/red]")
            return ApiError(None, describe_error(None), envelope)

        if not success:
            error = envelope.get("error")
            code = error.get("code") if isinstance(error, dict) else None
            message = describe_error(code, errors)
            log.error(f"[red]API Error Code: {code} ({message})[/red]")
            return ApiError(code, message, envelope)

        return Success(envelope.get("data"), envelope)

    async def _task_call(
        self,
        method: str,
        params: Dict[str, Any],
        session: Optional[DownloadSession],
        version: int = 1,
    ) -> ApiResult:
        session = session or self.session
        if session is None:
            log.debug(f"No session for {TASK_API}.{method}, sending without sid")
        return await self.api_call(
            TASK_PATH,
            TASK_API,
            version,
            method,
            params,
            session=session,
            errors=TASK_ERRORS,
        )

    # Public API Methods
    async def query_api_catalog(self) -> ApiResult:
        """
        Lists every API the NAS supports.

        The payload maps API names to
        ``{"minVersion", "maxVersion", "path", "requestFormat"}``.
        """
        return await self.api_call(
            INFO_PATH, INFO_API, 1, "query", {"query": "all"}
        )

    async def login(self, username: str, password: str) -> ApiResult:
        return await self._authenticator.login(username, password)

    async def logout(self, session: Optional[DownloadSession] = None) -> ApiResult:
        return await self._authenticator.logout(session)

    async def get_task_list(
        self,
        offset: int = 0,
        limit: int = -1,
        additional: str = "",
        session: Optional[DownloadSession] = None,
    ) -> ApiResult:
        """
        Lists download tasks.

        Args:
            offset: Index of the first task to return.
            limit: Number of tasks to return, -1 for all.
            additional: Extra fields to include, a comma separated subset of
                detail, transfer, file, tracker and peer.
            session: Session to use instead of the current one.

        Returns:
            ``Success`` whose payload is the ``tasks`` list.
        """
        result = await self._task_call(
            "list",
            {"offset": offset, "limit": limit, "additional": additional},
            session,
        )
        if not result:
            return result
        if not isinstance(result.payload, dict):
            log.error(f"[red]Unexpected task list from {TASK_API}.list[/red]")
            return ApiError(None, describe_error(None), result.envelope)
        return dataclasses.replace(result, payload=result.payload.get("tasks"))

    async def get_task_info(
        self,
        ids: TaskIds,
        additional: str = "",
        session: Optional[DownloadSession] = None,
    ) -> ApiResult:
        """Gets details of one or more tasks; the payload holds ``tasks``."""
        return await self._task_call(
            "getinfo", {"id": _join_ids(ids), "additional": additional}, session
        )

    async def create_task(
        self,
        uri: str,
        destination: Optional[str] = None,
        session: Optional[DownloadSession] = None,
    ) -> ApiResult:
        """
        Creates a download task for an HTTP, FTP, magnet or ED2K link.

        Args:
            uri: The link to download.
            destination: Shared folder path, e.g. ``home/downloads``. The
                NAS default destination is used when omitted.
            session: Session to use instead of the current one.
        """
        params: Dict[str, Any] = {"uri": uri}
        if destination:
            params["destination"] = destination
        return await self._task_call("create", params, session, version=3)

    async def delete_task(
        self,
        ids: TaskIds,
        force_complete: bool = False,
        session: Optional[DownloadSession] = None,
    ) -> ApiResult:
        """
        Deletes tasks. With ``force_complete`` unfinished files are moved to
        the destination instead of being removed.
        """
        result = await self._task_call(
            "delete",
            {
                "id": _join_ids(ids),
                "force_complete": "true" if force_complete else "false",
            },
            session,
        )
        self._log_task_errors("delete", result)
        return result

    async def pause_task(
        self, ids: TaskIds, session: Optional[DownloadSession] = None
    ) -> ApiResult:
        """Pauses tasks; the payload lists per-task ``{"error", "id"}`` entries."""
        result = await self._task_call("pause", {"id": _join_ids(ids)}, session)
        self._log_task_errors("pause", result)
        return result

    async def resume_task(
        self, ids: TaskIds, session: Optional[DownloadSession] = None
    ) -> ApiResult:
        """Resumes tasks; the payload lists per-task ``{"error", "id"}`` entries."""
        result = await self._task_call("resume", {"id": _join_ids(ids)}, session)
        self._log_task_errors("resume", result)
        return result

    @staticmethod
    def _log_task_errors(action: str, result: ApiResult) -> None:
        if not result or not isinstance(result.payload, list):
            return
        failed: List[Dict[str, Any]] = [
            item
            for item in result.payload
            if isinstance(item, dict) and item.get("error")
        ]
        for item in failed:
            log.warning(
                f"[yellow]Could not {action} task {item.get('id')}: "
                f"{describe_error(item['error'], TASK_ERRORS)}[/yellow]"
            )
