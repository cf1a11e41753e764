"""HTTP API tests over the in-memory catalog store."""

from collections.abc import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from learnpath.main import create_app
from tests.conftest import InMemoryCatalogStore


BASE = "/api/v1/users/user-1/progress"


@pytest_asyncio.fixture
async def client(store: InMemoryCatalogStore) -> AsyncGenerator[AsyncClient, None]:
    app = create_app(store)
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as http_client:
        yield http_client


@pytest.mark.asyncio
async def test_lesson_unlock_flow(client: AsyncClient) -> None:
    resp = await client.get(f"{BASE}/lessons/L2")
    assert resp.status_code == 200
    assert resp.json() == {"lesson_id": "L2", "completed": False, "progress": 0, "accessible": False}

    resp = await client.post(f"{BASE}/lessons/L1/complete", json={"course_id": "C", "module_id": "M1"})
    assert resp.status_code == 200
    body = resp.json()
    assert body["completed"] is True
    assert body["progress"] == 100

    resp = await client.get(f"{BASE}/lessons/L2")
    assert resp.json()["accessible"] is True


@pytest.mark.asyncio
async def test_progress_update_is_monotonic(client: AsyncClient, store: InMemoryCatalogStore) -> None:
    payload = {"course_id": "C", "module_id": "M1"}
    assert (await client.put(f"{BASE}/lessons/L1", json={**payload, "progress": 70})).json()["progress"] == 70
    assert (await client.put(f"{BASE}/lessons/L1", json={**payload, "progress": 10})).json()["progress"] == 70

    assert len(store.records_for("L1")) == 1


@pytest.mark.asyncio
async def test_progress_out_of_range_is_unprocessable(client: AsyncClient) -> None:
    resp = await client.put(f"{BASE}/lessons/L1", json={"course_id": "C", "module_id": "M1", "progress": 150})

    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_summaries_and_next_lesson(client: AsyncClient) -> None:
    await client.post(f"{BASE}/lessons/L1/complete", json={"course_id": "C", "module_id": "M1"})

    course = (await client.get(f"{BASE}/courses/C")).json()
    assert course == {
        "scope": "course",
        "id": "C",
        "completed_lessons": 1,
        "total_lessons": 3,
        "progress_percentage": 33,
    }

    module = (await client.get(f"{BASE}/modules/M1")).json()
    assert module["progress_percentage"] == 50

    following = (await client.get(f"{BASE}/lessons/L2/next", params={"course_id": "C", "module_id": "M1"})).json()
    assert following["lesson"]["id"] == "L3"

    last = (await client.get(f"{BASE}/last-accessed")).json()
    assert last == {"course_id": "C"}


@pytest.mark.asyncio
async def test_unknown_course_is_not_found(client: AsyncClient) -> None:
    resp = await client.get(f"{BASE}/courses/nope")

    assert resp.status_code == 404
    assert resp.json()["error"]["code"] == "NOT_FOUND"


@pytest.mark.asyncio
async def test_write_failure_is_service_unavailable(client: AsyncClient, store: InMemoryCatalogStore) -> None:
    store.fail_writes = True

    resp = await client.post(f"{BASE}/lessons/L1/complete", json={"course_id": "C", "module_id": "M1"})

    assert resp.status_code == 503
    assert resp.json()["error"]["code"] == "WRITE_FAILED"


@pytest.mark.asyncio
async def test_catalog_outage_on_course_lookup(client: AsyncClient, store: InMemoryCatalogStore) -> None:
    await client.post(f"{BASE}/refresh")
    store.fail_reads = True

    resp = await client.get(f"{BASE}/courses/C")

    assert resp.status_code == 503
    assert resp.json()["error"]["code"] == "SERVICE_UNAVAILABLE"


@pytest.mark.asyncio
async def test_refresh_reports_stale_state(client: AsyncClient, store: InMemoryCatalogStore) -> None:
    store.seed("L1", completed=True)
    assert (await client.post(f"{BASE}/refresh")).json() == {"state": "fresh", "records": 1}

    store.fail_reads = True
    assert (await client.post(f"{BASE}/refresh")).json() == {"state": "stale", "records": 1}


@pytest.mark.asyncio
async def test_sign_out(client: AsyncClient) -> None:
    await client.post(f"{BASE}/refresh")

    assert (await client.delete(f"{BASE}/session")).status_code == 204
    assert (await client.delete(f"{BASE}/session")).status_code == 404
