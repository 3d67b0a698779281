import pytest
from pydantic import ValidationError

from switchyard.models import Globals, Request, Response, Route, Runtime
from switchyard.models.response import DEFAULT_HEADERS


def test_route_methods_are_lowercased():
    route = Route(name="files", method=["GET", "Put"], path="/files/{key+}")

    assert route.methods == ["get", "put"]
    assert route.allows("PUT")
    assert not route.allows("delete")
    assert not route.is_socket


def test_request_is_immutable(make_request):
    request = make_request()

    with pytest.raises(ValidationError):
        request.path = "/other"

    updated = request.model_copy(update={"path": "/other"})
    assert updated.path == "/other"
    assert request.path == "/test"


def test_request_header_lookup_is_case_insensitive(make_request):
    request = make_request(headers={"X-Api-Key": "secret"})

    assert request.header("x-api-key") == "secret"
    assert request.header("missing", "default") == "default"


def test_request_keeps_globals_identity(make_request):
    globals_ = Globals({"EAPI_TYPE": "http"})

    request = make_request(globals=globals_)

    assert request.globals is globals_


def test_request_rejects_unknown_runtime():
    with pytest.raises(ValidationError):
        Request(runtime="gcp", method="get", path="/")


def test_response_defaults():
    response = Response()

    assert response.status == 200
    assert response.headers == DEFAULT_HEADERS
    assert response.headers is not DEFAULT_HEADERS
    assert not response.is_error


def test_response_request_is_not_serialized(make_request):
    response = Response(body="x", request=make_request())

    assert "request" not in response.model_dump()


def test_coerce_plain_value(make_request):
    request = make_request()

    response = Response.coerce([1, 2], request)

    assert response.status == 200
    assert response.body == [1, 2]
    assert response.request is request


def test_coerce_status_mapping():
    response = Response.coerce({"status": 418, "body": "teapot", "headers": {"X-Tea": "1"}})

    assert response.status == 418
    assert response.body == "teapot"
    assert response.headers["X-Tea"] == "1"
    assert response.headers["Pragma"] == "no-cache"


def test_coerce_mapping_without_status_is_body():
    response = Response.coerce({"body": "only"})

    assert response.body == {"body": "only"}


def test_globals_are_read_only():
    globals_ = Globals({"EAPI_NAME": "x"}, {"db:main": object()})

    with pytest.raises(TypeError):
        globals_.environment["EAPI_NAME"] = "y"
    with pytest.raises(TypeError):
        globals_.services["cache:main"] = object()


def test_globals_reject_duplicate_service():
    globals_ = Globals()
    globals_.add_service("db:main", object())

    with pytest.raises(KeyError):
        globals_.add_service("db:main", object())


def test_runtime_values():
    assert [r.value for r in Runtime] == ["aws", "azure", "http", "socket"]
