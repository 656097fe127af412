import asyncio
from contextlib import asynccontextmanager

import pytest
from aiohttp import test_utils, web

from places_gateway.errors import DecodeError, TransportError, UpstreamStatusError
from places_gateway.places_client import PlacesClient

MOSCOW = {
    "code": "MOW",
    "name": "Moscow",
    "country_name": "Russia",
    "country_code": "RU",
    "type": "city",
    "weight": 1006321,
    "index_strings": ["defaultcity", "moscow"],
    "coordinates": {"lon": 37.617633, "lat": 55.755786},
    "cases": {"vi": "в Москву"},
    "state_code": None,
    "country_cases": {"su": "Россия"},
    "main_airport_name": None,
}


@asynccontextmanager
async def _upstream(handler):
    app = web.Application()
    app.router.add_get("/{tail:.*}", handler)
    server = test_utils.TestServer(app)
    await server.start_server()
    try:
        yield f"http://{server.host}:{server.port}"
    finally:
        await server.close()


@pytest.mark.asyncio
async def test_fetch_decodes_items_and_ignores_extra_fields():
    async def handler(request):
        return web.json_response([MOSCOW, {"code": "LED", "name": None, "weight": "heavy"}])

    async with _upstream(handler) as base_url:
        items = await PlacesClient(base_url=base_url).fetch("/v2/places.json?term=Moscow", 1.0)

    assert [(i.code, i.name, i.country_name) for i in items] == [
        ("MOW", "Moscow", "Russia"),
        ("LED", "", ""),
    ]


@pytest.mark.asyncio
async def test_fetch_forwards_path_and_query_verbatim():
    seen = []

    async def handler(request):
        seen.append(request.raw_path)
        return web.json_response([])

    path_and_query = "/v2/places.json?term=%D0%9C%D0%BE%D1%81&locale=ru&types[]=city"
    async with _upstream(handler) as base_url:
        await PlacesClient(base_url=base_url).fetch(path_and_query, 1.0)

    assert seen == [path_and_query]


@pytest.mark.asyncio
async def test_fetch_null_body_is_empty_collection():
    async def handler(request):
        return web.Response(text="null", content_type="application/json")

    async with _upstream(handler) as base_url:
        assert await PlacesClient(base_url=base_url).fetch("/", 1.0) == []


@pytest.mark.asyncio
async def test_non_200_raises_status_error():
    async def handler(request):
        return web.Response(status=503, text="maintenance")

    async with _upstream(handler) as base_url:
        with pytest.raises(UpstreamStatusError) as exc:
            await PlacesClient(base_url=base_url).fetch("/v2/places.json", 1.0)

    assert exc.value.status == 503
    assert exc.value.reason == "Service Unavailable"


@pytest.mark.asyncio
@pytest.mark.parametrize("body", ["{not json", '{"code": "MOW"}', '["MOW"]'])
async def test_malformed_body_raises_decode_error(body):
    async def handler(request):
        return web.Response(text=body, content_type="application/json")

    async with _upstream(handler) as base_url:
        with pytest.raises(DecodeError):
            await PlacesClient(base_url=base_url).fetch("/", 1.0)


@pytest.mark.asyncio
async def test_slow_upstream_raises_transport_error():
    async def handler(request):
        await asyncio.sleep(0.5)
        return web.json_response([MOSCOW])

    async with _upstream(handler) as base_url:
        with pytest.raises(TransportError):
            await PlacesClient(base_url=base_url).fetch("/", 0.05)


@pytest.mark.asyncio
async def test_connection_refused_raises_transport_error():
    async def handler(request):
        return web.json_response([])

    async with _upstream(handler) as base_url:
        pass

    # The server is closed now, so nothing listens on its port.
    with pytest.raises(TransportError):
        await PlacesClient(base_url=base_url).fetch("/", 1.0)
