import json
from unittest.mock import Mock

import pytest

from switchyard.core.serializer import (
    AwsSerializer,
    AzureSerializer,
    HttpSerializer,
    SocketSerializer,
    create_serializer,
)
from switchyard.models.globals import Globals
from switchyard.models.request import Runtime
from switchyard.models.response import Response


@pytest.mark.asyncio
async def test_aws_reply_encodes_json_body():
    response = Response(status=201, body={"ok": True})

    reply = await AwsSerializer().serialize(response, Globals())

    assert reply == {
        "statusCode": 201,
        "headers": response.headers,
        "body": json.dumps({"ok": True}),
        "isBase64Encoded": False,
    }


@pytest.mark.asyncio
async def test_aws_reply_keeps_non_json_body():
    response = Response(body="<p>hi</p>", headers={"Content-Type": "text/html"})

    reply = await AwsSerializer().serialize(response, Globals())

    assert reply["body"] == "<p>hi</p>"


@pytest.mark.asyncio
async def test_azure_reply():
    reply = await AzureSerializer().serialize(Response(status=404, body="Not Found"), Globals())

    assert reply["status"] == 404
    assert reply["body"] == '"Not Found"'
    assert "statusCode" not in reply


@pytest.mark.asyncio
async def test_http_reply_leaves_body_to_framework():
    reply = await HttpSerializer().serialize(Response(body={"a": [1, 2]}), Globals())

    assert reply["body"] == {"a": [1, 2]}


@pytest.mark.asyncio
async def test_socket_reply_emits_on_request_path(make_request, fake_socket):
    request = make_request(path="/chat/1", method="socket", runtime=Runtime.SOCKET)
    response = Response(body="hi", request=request)

    result = await SocketSerializer().serialize(response, Globals(socket=fake_socket))

    assert result is None
    assert fake_socket.emitted == [
        ("/chat/1", {"status": 200, "headers": response.headers, "body": "hi"})
    ]


@pytest.mark.asyncio
async def test_socket_reply_accepts_sync_emit():
    socket = Mock()

    await SocketSerializer().serialize(Response(status=500, body="x"), Globals(socket=socket))

    socket.emit.assert_called_once()
    assert socket.emit.call_args.args[0] == "error"


@pytest.mark.asyncio
async def test_socket_reply_without_connection_fails():
    with pytest.raises(RuntimeError):
        await SocketSerializer().serialize(Response(), Globals())


def test_create_serializer():
    assert isinstance(create_serializer("aws"), AwsSerializer)
    assert isinstance(create_serializer(Runtime.HTTP), HttpSerializer)
