"""Unit tests for catalog loading and request coalescing."""

import asyncio

import httpx
import orjson
import pytest

from ports_search.config import Settings
from ports_search.domain.model import Catalog
from ports_search.errors import IndexLoadError
from ports_search.services.index_loader import CatalogSource, IndexLoader, LoaderState, StaticIndexLoader


URL = "https://ports.example.org/ports.json"


def _client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


@pytest.mark.unit
class TestIndexLoader:
    """Fetching, memoization and failure handling."""

    @pytest.mark.asyncio
    async def test_first_get_fetches_and_decodes(self, sample_records):
        requests: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return httpx.Response(200, content=orjson.dumps(sample_records))

        async with _client(handler) as client:
            loader = IndexLoader(URL, client=client)
            assert loader.state is LoaderState.UNINITIALIZED

            catalog = await loader.get()

        assert len(catalog) == 5
        assert loader.state is LoaderState.READY
        assert loader.catalog is catalog
        assert str(requests[0].url) == URL
        assert requests[0].headers["accept"] == "application/json"

    @pytest.mark.asyncio
    async def test_later_gets_are_served_from_memory(self, sample_records):
        calls = 0

        def handler(request: httpx.Request) -> httpx.Response:
            nonlocal calls
            calls += 1
            return httpx.Response(200, content=orjson.dumps(sample_records))

        async with _client(handler) as client:
            loader = IndexLoader(URL, client=client)
            first = await loader.get()
            second = await loader.get()

        assert first is second
        assert calls == 1
        assert loader.fetch_count == 1

    @pytest.mark.asyncio
    async def test_concurrent_gets_share_one_fetch(self, sample_records):
        release = asyncio.Event()
        calls = 0

        async def handler(request: httpx.Request) -> httpx.Response:
            nonlocal calls
            calls += 1
            await release.wait()
            return httpx.Response(200, content=orjson.dumps(sample_records))

        async with _client(handler) as client:
            loader = IndexLoader(URL, client=client)
            waiters = [asyncio.create_task(loader.get()) for _ in range(3)]
            await asyncio.sleep(0)
            await asyncio.sleep(0)
            assert loader.state is LoaderState.LOADING

            release.set()
            results = await asyncio.gather(*waiters)

        assert calls == 1
        assert results[0] is results[1] is results[2]

    @pytest.mark.asyncio
    async def test_cancelled_caller_does_not_cancel_fetch(self, sample_records):
        release = asyncio.Event()

        async def handler(request: httpx.Request) -> httpx.Response:
            await release.wait()
            return httpx.Response(200, content=orjson.dumps(sample_records))

        async with _client(handler) as client:
            loader = IndexLoader(URL, client=client)
            impatient = asyncio.create_task(loader.get())
            patient = asyncio.create_task(loader.get())
            await asyncio.sleep(0)
            impatient.cancel()
            release.set()

            catalog = await patient

        assert len(catalog) == 5
        assert loader.state is LoaderState.READY

    @pytest.mark.asyncio
    async def test_http_error_status(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(404)

        async with _client(handler) as client:
            loader = IndexLoader(URL, client=client)
            with pytest.raises(IndexLoadError) as exc_info:
                await loader.get()

        assert exc_info.value.status_code == 404
        assert exc_info.value.reason == "HTTP 404"
        assert exc_info.value.url == URL
        assert loader.state is LoaderState.FAILED
        assert loader.error is exc_info.value

    @pytest.mark.asyncio
    async def test_transport_error(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        async with _client(handler) as client:
            loader = IndexLoader(URL, client=client)
            with pytest.raises(IndexLoadError, match="transport error: ConnectError"):
                await loader.get()

        assert loader.error.status_code is None

    @pytest.mark.asyncio
    @pytest.mark.parametrize("body", [b"<html>not json</html>", b'{"ports": []}', b'[{"n": "x"}]'])
    async def test_invalid_payload_is_a_load_failure(self, body):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, content=body)

        async with _client(handler) as client:
            loader = IndexLoader(URL, client=client)
            with pytest.raises(IndexLoadError, match="invalid catalog payload"):
                await loader.get()

        assert loader.state is LoaderState.FAILED

    @pytest.mark.asyncio
    async def test_failure_is_not_retried(self):
        calls = 0

        def handler(request: httpx.Request) -> httpx.Response:
            nonlocal calls
            calls += 1
            return httpx.Response(500)

        async with _client(handler) as client:
            loader = IndexLoader(URL, client=client)
            for _ in range(3):
                with pytest.raises(IndexLoadError):
                    await loader.get()

        assert calls == 1

    @pytest.mark.asyncio
    async def test_reset_allows_a_fresh_fetch(self, sample_records):
        responses = [httpx.Response(503), httpx.Response(200, content=orjson.dumps(sample_records))]

        def handler(request: httpx.Request) -> httpx.Response:
            return responses.pop(0)

        async with _client(handler) as client:
            loader = IndexLoader(URL, client=client)
            with pytest.raises(IndexLoadError):
                await loader.get()

            loader.reset()
            assert loader.state is LoaderState.UNINITIALIZED
            catalog = await loader.get()

        assert len(catalog) == 5
        assert loader.fetch_count == 2

    @pytest.mark.asyncio
    async def test_reset_while_loading_is_rejected(self, sample_records):
        release = asyncio.Event()

        async def handler(request: httpx.Request) -> httpx.Response:
            await release.wait()
            return httpx.Response(200, content=orjson.dumps(sample_records))

        async with _client(handler) as client:
            loader = IndexLoader(URL, client=client)
            pending = asyncio.create_task(loader.get())
            await asyncio.sleep(0)

            with pytest.raises(RuntimeError):
                loader.reset()

            release.set()
            await pending

    @pytest.mark.asyncio
    async def test_closed_client_is_a_load_failure(self):
        client = _client(lambda request: httpx.Response(200, content=b"[]"))
        await client.aclose()
        loader = IndexLoader(URL, client=client)

        with pytest.raises(IndexLoadError, match="unexpected error: RuntimeError"):
            await loader.get()

        assert loader.state is LoaderState.FAILED
        loader.reset()
        assert loader.state is LoaderState.UNINITIALIZED

    @pytest.mark.asyncio
    async def test_unexpected_handler_error_is_wrapped(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise KeyError("content-length")

        async with _client(handler) as client:
            loader = IndexLoader(URL, client=client)
            with pytest.raises(IndexLoadError, match="unexpected error: KeyError") as exc_info:
                await loader.get()

        assert isinstance(exc_info.value.__cause__, KeyError)
        assert loader.error is exc_info.value

    @pytest.mark.asyncio
    async def test_offline_mode_reads_file(self, tmp_path, sample_records):
        path = tmp_path / "ports.json"
        path.write_bytes(orjson.dumps(sample_records))

        loader = IndexLoader(str(path), offline=True)
        catalog = await loader.get()

        assert [port.name for port in catalog][:2] == ["vim", "nano"]

    @pytest.mark.asyncio
    async def test_offline_mode_accepts_file_scheme(self, tmp_path, sample_records):
        path = tmp_path / "ports.json"
        path.write_bytes(orjson.dumps(sample_records))

        catalog = await IndexLoader(f"file://{path}", offline=True).get()

        assert len(catalog) == 5

    @pytest.mark.asyncio
    async def test_offline_mode_missing_file(self, tmp_path):
        loader = IndexLoader(str(tmp_path / "missing.json"), offline=True)

        with pytest.raises(IndexLoadError, match="cannot read file"):
            await loader.get()

    def test_from_settings_resolves_url(self):
        settings = Settings(base_url="https://ports.example.org/", ports_url="")

        loader = IndexLoader.from_settings(settings)

        assert loader.url == "https://ports.example.org/ports.json"
        assert loader.offline is False

    def test_from_settings_offline(self):
        settings = Settings(operation_mode="offline", ports_url="/srv/ports.json")

        loader = IndexLoader.from_settings(settings)

        assert loader.offline is True
        assert loader.url == "/srv/ports.json"

    def test_satisfies_catalog_source(self):
        assert isinstance(IndexLoader(URL), CatalogSource)


@pytest.mark.unit
class TestStaticIndexLoader:
    """In-memory catalog source."""

    @pytest.mark.asyncio
    async def test_returns_catalog_and_counts_calls(self, catalog):
        loader = StaticIndexLoader(catalog)

        assert await loader.get() is catalog
        assert await loader.get() is catalog
        assert loader.calls == 2
        assert loader.state is LoaderState.READY

    def test_satisfies_catalog_source(self):
        assert isinstance(StaticIndexLoader(Catalog()), CatalogSource)
