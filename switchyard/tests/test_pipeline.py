from unittest.mock import AsyncMock

import pytest

from switchyard.exceptions import ClientError, DataError, InternalError
from switchyard.models.request import Runtime
from switchyard.models.response import ErrorKind, Response
from switchyard.services.pipeline import END, IN, MOUNT, OUT, START, MiddlewarePipeline


def tagger(tag, calls):
    def handler(request):
        calls.append(tag)
        seen = request.context.get("seen", []) + [tag]
        return request.model_copy(update={"context": dict(request.context, seen=seen)})

    return handler


@pytest.mark.asyncio
async def test_request_stages_compose_in_registration_order(make_request):
    calls = []
    pipeline = MiddlewarePipeline(error_logging="none")
    pipeline.register(START, [{"start": tagger("s1", calls)}, {"start": tagger("s2", calls)}])
    pipeline.register(MOUNT, {"mount": tagger("m1", calls)})
    pipeline.register(IN, {"in": tagger("i1", calls)})

    async def dispatch(request):
        return Response(body=request.context["seen"])

    response = await pipeline.execute(make_request(), dispatch)

    assert calls == ["s1", "s2", "m1", "i1"]
    # each handler saw the previous handler's output
    assert response.body == ["s1", "s2", "m1", "i1"]
    assert response.status == 200


@pytest.mark.asyncio
async def test_response_stages_compose_sequentially(make_request, echo_dispatch):
    def add_header(name):
        def handler(response):
            response.headers[name] = str(len(response.headers))
            return response

        return handler

    async def replace(response):
        return Response(status=201, body="replaced", headers=dict(response.headers))

    pipeline = MiddlewarePipeline(error_logging="none")
    pipeline.register(OUT, [{"out": add_header("X-First")}, {"out": replace}])
    pipeline.register(END, {"end": add_header("X-Last")})

    response = await pipeline.execute(make_request(), echo_dispatch)

    assert response.status == 201
    assert response.body == "replaced"
    assert "X-First" in response.headers
    assert "X-Last" in response.headers


@pytest.mark.asyncio
async def test_failure_skips_remaining_handlers_but_runs_end(make_request, recorder):
    def fail(request):
        raise ClientError("Forbidden", 403)

    pipeline = MiddlewarePipeline(error_logging="none")
    pipeline.register_all(recorder.middleware("first"))
    pipeline.register(MOUNT, {"mount": fail})
    pipeline.register_all(recorder.middleware("later"))
    dispatch = AsyncMock()

    seen = []
    pipeline.register(END, {"end": lambda r: seen.append(r) or r})

    response = await pipeline.execute(make_request(), dispatch)

    dispatch.assert_not_called()
    assert recorder.stages("mount") == ["first"]
    assert recorder.stages("in") == []
    assert recorder.stages("out") == []
    assert recorder.stages("end") == ["first", "later"]
    assert seen == [response]
    assert response.status == 403
    assert response.error is ErrorKind.CLIENT


@pytest.mark.asyncio
async def test_controller_failure_skips_out(make_request, recorder):
    pipeline = MiddlewarePipeline(error_logging="none")
    pipeline.register_all(recorder.middleware("mw"))
    dispatch = AsyncMock(side_effect=DataError("db down", details={"driver": "timeout"}))

    response = await pipeline.execute(make_request(), dispatch)

    assert recorder.stages("in") == ["mw"]
    assert recorder.stages("out") == []
    assert recorder.stages("end") == ["mw"]
    assert response.status == 500
    assert response.error is ErrorKind.DATA


@pytest.mark.asyncio
async def test_end_failure_does_not_mask_response(make_request, echo_dispatch):
    ran = []

    def broken_end(response):
        raise RuntimeError("teardown failed")

    def later_end(response):
        ran.append(response.status)
        return response

    pipeline = MiddlewarePipeline(error_logging="none")
    pipeline.register(END, [{"end": broken_end}, {"end": later_end}])

    response = await pipeline.execute(make_request(), echo_dispatch)

    assert response.status == 200
    assert response.body == {"path": "/test"}
    assert ran == [200]


@pytest.mark.asyncio
async def test_end_returning_wrong_type_keeps_previous_response(make_request, echo_dispatch):
    pipeline = MiddlewarePipeline(error_logging="none")
    pipeline.register(END, {"end": lambda response: None})

    response = await pipeline.execute(make_request(), echo_dispatch)

    assert isinstance(response, Response)
    assert response.status == 200


@pytest.mark.asyncio
async def test_all_stages_registration_runs_out_and_end_once(make_request, echo_dispatch):
    class Counter:
        def __init__(self):
            self.counts = {"out": 0, "end": 0}

        def out(self, response):
            self.counts["out"] += 1
            return response

        def end(self, response):
            self.counts["end"] += 1
            return response

    counter = Counter()
    pipeline = MiddlewarePipeline(error_logging="none")
    pipeline.register_all(counter)

    await pipeline.execute(make_request(), echo_dispatch)

    assert counter.counts == {"out": 1, "end": 1}
    assert pipeline.handlers(START) == []


@pytest.mark.asyncio
async def test_same_handler_registered_twice_runs_twice(make_request, echo_dispatch, recorder):
    mw = recorder.middleware("dup", stages=("in",))
    pipeline = MiddlewarePipeline(error_logging="none")
    pipeline.register(IN, mw)
    pipeline.register(IN, mw)

    await pipeline.execute(make_request(), echo_dispatch)

    assert recorder.stages("in") == ["dup", "dup"]


@pytest.mark.asyncio
async def test_class_based_in_handler_uses_trailing_underscore(make_request, echo_dispatch):
    class Auth:
        def __init__(self):
            self.called = False

        async def in_(self, request):
            self.called = True
            return request

    auth = Auth()
    pipeline = MiddlewarePipeline(error_logging="none")
    pipeline.register_all(auth)

    await pipeline.execute(make_request(), echo_dispatch)

    assert auth.called is True
    assert len(pipeline.handlers(IN)) == 1


@pytest.mark.asyncio
async def test_handler_returning_wrong_type_is_system_error(make_request, echo_dispatch):
    pipeline = MiddlewarePipeline(error_logging="none")
    pipeline.register(MOUNT, {"mount": lambda request: {"not": "a request"}})

    response = await pipeline.execute(make_request(), echo_dispatch)

    assert response.status == 500
    assert response.error is ErrorKind.SYSTEM


@pytest.mark.asyncio
async def test_handler_cannot_change_runtime(make_request, echo_dispatch):
    pipeline = MiddlewarePipeline(error_logging="none")
    pipeline.register(
        START, {"start": lambda r: r.model_copy(update={"runtime": Runtime.SOCKET})}
    )

    response = await pipeline.execute(make_request(), echo_dispatch)

    assert response.status == 500


@pytest.mark.asyncio
async def test_unmatched_route_runs_start_then_skips_to_end(make_request, recorder):
    pipeline = MiddlewarePipeline(error_logging="none")
    pipeline.register_all(recorder.middleware("mw"))
    dispatch = AsyncMock()

    request = make_request(path="/nowhere")
    request = request.model_copy(update={"route": None})
    response = await pipeline.execute(request, dispatch)

    dispatch.assert_not_called()
    assert recorder.stages("start") == ["mw"]
    assert recorder.stages("mount") == []
    assert recorder.stages("in") == []
    assert recorder.stages("out") == []
    assert recorder.stages("end") == ["mw"]
    assert response.status == 404
    assert response.body == "Not Found"


def test_register_unknown_stage_fails():
    pipeline = MiddlewarePipeline()

    with pytest.raises(InternalError):
        pipeline.register("before", {"before": lambda r: r})
