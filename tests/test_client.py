"""Tests for NasClient: endpoint handling, request construction and envelope unwrapping."""

from urllib.parse import unquote

import pytest
from yarl import URL

from dstation_cli.api.auth import DownloadSession
from dstation_cli.api.client import DEFAULT_URL, NasClient
from dstation_cli.api.results import ApiError, HttpStatusError, Success, TransportError

TASK_API = "SYNO.DownloadStation.Task"


# ---------------------------------------------------------------------------
# Endpoint and accessors
# ---------------------------------------------------------------------------


class TestEndpoint:
    def test_accessors_match_url(self) -> None:
        client = NasClient("https://192.168.1.241:5001")
        assert client.protocol == "https"
        assert client.hostname == "192.168.1.241"
        assert client.port == 5001
        assert client.host == "192.168.1.241:5001"
        assert client.origin == "https://192.168.1.241:5001"

    def test_accepts_yarl_url_and_hides_default_port(self) -> None:
        client = NasClient(URL("http://nas.local"))
        assert client.port == 80
        assert client.host == "nas.local"
        assert client.origin == "http://nas.local"

    def test_keeps_only_the_origin(self) -> None:
        client = NasClient("https://nas.local:5001/webapi/entry.cgi?x=1")
        assert client.origin == "https://nas.local:5001"

    def test_no_argument_uses_default(self) -> None:
        client = NasClient()
        assert client.origin == DEFAULT_URL
        assert client.hostname == "localhost"
        assert client.port == 5001

    @pytest.mark.parametrize(
        "value", ["not a url", "", "ftp://nas.local:21", "nas.local:5001", 12345]
    )
    def test_malformed_value_uses_default(self, value) -> None:
        assert NasClient(value).origin == DEFAULT_URL

    def test_starts_without_session(self) -> None:
        client = NasClient()
        assert client.session is None
        assert client.sid == ""


def test_build_api_url_escapes_whole_url() -> None:
    client = NasClient("https://nas.local:5001")
    url = client.build_api_url(
        "auth.cgi", {"api": "SYNO.API.Auth", "version": 6, "account": "a b"}
    )
    assert "/" not in url and "?" not in url and "&" not in url
    assert unquote(url) == (
        "https://nas.local:5001/webapi/auth.cgi?api=SYNO.API.Auth&version=6&account=a%20b"
    )


# ---------------------------------------------------------------------------
# API catalog
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_query_api_catalog_returns_data_exactly(nas, client) -> None:
    data = {"SYNO.API.Auth": {"minVersion": 1, "maxVersion": 6, "path": "auth.cgi"}}
    nas.stub("SYNO.API.Info", "query", {"success": True, "data": data})

    result = await client.query_api_catalog()

    assert isinstance(result, Success)
    assert result.payload == data
    query = nas.last_query("query")
    assert query["path"] == "/webapi/query.cgi"
    assert query["version"] == "1"
    assert query["query"] == "all"
    assert "_sid" not in query


@pytest.mark.asyncio
async def test_query_api_catalog_envelope_failure(nas, client) -> None:
    nas.stub("SYNO.API.Info", "query", {"success": False, "error": {"code": 101}})

    result = await client.query_api_catalog()

    assert not result
    assert isinstance(result, ApiError)
    assert result.code == 101
    assert result.message == "Invalid parameter"
    assert result.payload is None


@pytest.mark.asyncio
async def test_non_200_status_is_reported(nas, client) -> None:
    nas.stub("SYNO.API.Info", "query", {"success": True, "data": {}}, status=500)

    result = await client.query_api_catalog()

    assert result == HttpStatusError(500)
    assert not result


@pytest.mark.asyncio
async def test_undecodable_body_is_a_transport_error(nas, client) -> None:
    nas.stub("SYNO.API.Info", "query", "<html>not json</html>")

    result = await client.query_api_catalog()

    assert isinstance(result, TransportError)
    assert not result


@pytest.mark.asyncio
async def test_non_object_envelope_is_an_api_error(nas, client) -> None:
    nas.stub("SYNO.API.Info", "query", [1, 2, 3])

    result = await client.query_api_catalog()

    assert isinstance(result, ApiError)
    assert result.code is None
    assert result.envelope == [1, 2, 3]


@pytest.mark.asyncio
async def test_non_object_error_field_is_malformed(nas, client) -> None:
    body = {"success": False, "error": 101}
    nas.stub("SYNO.API.Info", "query", body)

    result = await client.query_api_catalog()

    assert isinstance(result, ApiError)
    assert result.code is None
    assert result.message == "Malformed response envelope"
    assert result.envelope == body


@pytest.mark.asyncio
async def test_get_task_list_with_non_object_data_is_malformed(nas, client) -> None:
    body = {"success": True, "data": "oops"}
    nas.stub(TASK_API, "list", body)

    result = await client.get_task_list()

    assert isinstance(result, ApiError)
    assert result.code is None
    assert result.envelope == body


# ---------------------------------------------------------------------------
# Task operations
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_get_task_list_returns_tasks_unmodified(nas, client) -> None:
    tasks = [
        {"id": "dbid_1", "title": "a.iso", "status": "downloading", "size": 10},
        {"id": "dbid_2", "title": "b.iso", "status": "paused", "size": 20},
    ]
    envelope = {"success": True, "data": {"offset": 0, "total": 2, "tasks": tasks}}
    nas.stub(TASK_API, "list", envelope)

    result = await client.get_task_list()

    assert result.payload == tasks
    assert result.envelope == envelope


@pytest.mark.asyncio
async def test_get_task_list_forwards_paging_and_fields(nas, client) -> None:
    nas.stub(TASK_API, "list", {"success": True, "data": {"tasks": []}})

    await client.get_task_list(offset=5, limit=10, additional="detail,transfer")

    query = nas.last_query("list")
    assert query["path"] == "/webapi/DownloadStation/task.cgi"
    assert query["version"] == "1"
    assert query["offset"] == "5"
    assert query["limit"] == "10"
    assert query["additional"] == "detail,transfer"


@pytest.mark.asyncio
async def test_get_task_list_envelope_failure(nas, client) -> None:
    nas.stub(TASK_API, "list", {"success": False, "error": {"code": 105}})

    result = await client.get_task_list()

    assert not result
    assert result.payload is None
    assert result.code == 105


@pytest.mark.asyncio
async def test_get_task_info_payload_is_data(nas, client) -> None:
    data = {"tasks": [{"id": "dbid_1", "title": "a.iso"}]}
    nas.stub(TASK_API, "getinfo", {"success": True, "data": data})

    result = await client.get_task_info(["dbid_1", "dbid_2"], additional="detail")

    assert result.payload == data
    query = nas.last_query("getinfo")
    assert query["id"] == "dbid_1,dbid_2"
    assert query["additional"] == "detail"


@pytest.mark.asyncio
async def test_create_task_uses_version_3(nas, client) -> None:
    body = {"success": True}
    nas.stub(TASK_API, "create", body)
    uri = "magnet:?xt=urn:btih:abcdef&dn=file"

    result = await client.create_task(uri)

    assert result
    assert result.envelope == body
    query = nas.last_query("create")
    assert query["version"] == "3"
    assert query["uri"] == uri
    assert "destination" not in query


@pytest.mark.asyncio
async def test_create_task_with_destination(nas, client) -> None:
    nas.stub(TASK_API, "create", {"success": True})

    await client.create_task("https://example.com/a.iso", destination="home/dl")

    assert nas.last_query("create")["destination"] == "home/dl"


@pytest.mark.asyncio
async def test_create_task_failure_keeps_envelope(nas, client) -> None:
    body = {"success": False, "error": {"code": 403}}
    nas.stub(TASK_API, "create", body)

    result = await client.create_task("https://example.com/a.iso")

    assert not result
    assert result.message == "Destination does not exist"
    assert result.envelope == body


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "method, call",
    [
        ("delete", lambda c: c.delete_task("dbid_1")),
        ("pause", lambda c: c.pause_task("dbid_1")),
        ("resume", lambda c: c.resume_task("dbid_1")),
    ],
)
async def test_task_action_failure_keeps_envelope(nas, client, method, call) -> None:
    body = {"success": False, "error": {"code": 405}}
    nas.stub(TASK_API, method, body)

    result = await call(client)

    assert isinstance(result, ApiError)
    assert result.code == 405
    assert result.envelope == body
    assert result.payload is None

@pytest.mark.asyncio
@pytest.mark.parametrize("force_complete, expected", [(False, "false"), (True, "true")])
async def test_delete_task(nas, client, force_complete, expected) -> None:
    body = {"success": True, "data": [{"error": 0, "id": "dbid_1"}]}
    nas.stub(TASK_API, "delete", body)

    result = await client.delete_task("dbid_1", force_complete=force_complete)

    assert result.envelope == body
    assert result.payload == body["data"]
    assert nas.last_query("delete")["force_complete"] == expected


@pytest.mark.asyncio
@pytest.mark.parametrize("method", ["pause", "resume"])
async def test_pause_and_resume_return_per_task_outcome(nas, client, method) -> None:
    body = {
        "success": True,
        "data": [{"error": 0, "id": "dbid_100"}, {"error": 404, "id": "dbid_9"}],
    }
    nas.stub(TASK_API, method, body)
    operation = client.pause_task if method == "pause" else client.resume_task

    result = await operation(["dbid_100", "dbid_9"])

    assert result.envelope == body
    assert result.payload == body["data"]
    assert nas.last_query(method)["id"] == "dbid_100,dbid_9"


@pytest.mark.asyncio
async def test_task_calls_use_current_session(nas, client) -> None:
    nas.stub(
        "SYNO.API.Auth", "login", {"success": True, "data": {"sid": "current-sid"}}
    )
    nas.stub(TASK_API, "pause", {"success": True, "data": []})

    await client.login("admin", "secret")
    await client.pause_task("dbid_1")

    assert nas.last_query("pause")["_sid"] == "current-sid"


@pytest.mark.asyncio
async def test_explicit_session_overrides_current(nas, client) -> None:
    nas.stub(TASK_API, "list", {"success": True, "data": {"tasks": []}})
    session = DownloadSession(endpoint=nas.url, sid="explicit-sid")

    await client.get_task_list(session=session)

    assert nas.last_query("list")["_sid"] == "explicit-sid"


@pytest.mark.asyncio
async def test_task_calls_without_session_send_no_sid(nas, client) -> None:
    nas.stub(TASK_API, "list", {"success": True, "data": {"tasks": []}})

    await client.get_task_list()

    assert "_sid" not in nas.last_query("list")


# ---------------------------------------------------------------------------
# Transport failures
# ---------------------------------------------------------------------------


OPERATIONS = {
    "query_api_catalog": lambda c: c.query_api_catalog(),
    "login": lambda c: c.login("admin", "secret"),
    "logout": lambda c: c.logout(),
    "get_task_list": lambda c: c.get_task_list(),
    "get_task_info": lambda c: c.get_task_info("dbid_1"),
    "create_task": lambda c: c.create_task("https://example.com/a.iso"),
    "delete_task": lambda c: c.delete_task("dbid_1"),
    "pause_task": lambda c: c.pause_task("dbid_1"),
    "resume_task": lambda c: c.resume_task("dbid_1"),
}


@pytest.mark.asyncio
@pytest.mark.parametrize("name", sorted(OPERATIONS))
async def test_unreachable_nas_returns_transport_error(unreachable_url, name) -> None:
    async with NasClient(unreachable_url) as client:
        result = await OPERATIONS[name](client)

    assert isinstance(result, TransportError)
    assert not result
    assert result.payload is None
