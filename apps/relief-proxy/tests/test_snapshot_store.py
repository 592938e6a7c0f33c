from __future__ import annotations

import asyncio
import json

import pytest
from botocore.exceptions import ClientError

from relief_proxy.errors import DurableUnavailableError
from relief_proxy.quality import EmergencyQualityGate
from relief_proxy.schemas.emergency import Emergency
from relief_proxy.schemas.feed import FeedCollection
from relief_proxy.storage import blob_store
from relief_proxy.storage.blob_store import BlobStore, FileBlobStore, InMemoryBlobStore, RedisBlobStore, S3BlobStore
from relief_proxy.storage.snapshot_store import DurableSnapshotStore


def emergency(emergency_id: str, people: int = 3) -> Emergency:
    return Emergency.model_validate(
        {
            "id": emergency_id,
            "latitude": 10.0,
            "longitude": 123.0,
            "numberOfPeople": people,
            "urgencyLevel": "LOW",
            "status": "pending",
        }
    )


class FailingBlobStore(BlobStore):
    async def get(self, key: str) -> bytes | None:
        raise ConnectionError("blob backend down")

    async def put(self, key: str, body: bytes, content_type: str = "application/json") -> None:
        raise ConnectionError("blob backend down")


class FakeRedis:
    def __init__(self) -> None:
        self.values: dict[str, object] = {}

    async def get(self, key: str) -> object:
        return self.values.get(key)

    async def set(self, key: str, value: bytes) -> bool:
        self.values[key] = value
        return True


class FakeBody:
    def __init__(self, body: bytes) -> None:
        self._body = body

    def read(self) -> bytes:
        return self._body


class FakeS3:
    def __init__(self) -> None:
        self.objects: dict[tuple[str, str], bytes] = {}
        self.content_types: dict[str, str] = {}

    def get_object(self, Bucket: str, Key: str) -> dict:
        if (Bucket, Key) not in self.objects:
            raise ClientError({"Error": {"Code": "NoSuchKey", "Message": "missing"}}, "GetObject")
        return {"Body": FakeBody(self.objects[(Bucket, Key)])}

    def put_object(self, Bucket: str, Key: str, Body: bytes, ContentType: str) -> dict:
        self.objects[(Bucket, Key)] = Body
        self.content_types[Key] = ContentType
        return {}


@pytest.mark.asyncio
async def test_snapshot_round_trip_through_memory_blob() -> None:
    store = DurableSnapshotStore(InMemoryBlobStore(), EmergencyQualityGate())
    collection = FeedCollection(data=(emergency("a"), emergency("b")))

    assert await store.write(collection) is True
    loaded = await store.read()

    assert [record.id for record in loaded.data] == ["a", "b"]
    assert loaded.count == 2


@pytest.mark.asyncio
async def test_read_missing_snapshot_is_durable_unavailable() -> None:
    store = DurableSnapshotStore(InMemoryBlobStore(), EmergencyQualityGate())

    with pytest.raises(DurableUnavailableError) as exc_info:
        await store.read()

    assert "does not exist" in str(exc_info.value)


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "body",
    [b"{not json", b'{"success": false, "data": []}', b'{"success": true, "data": "x"}'],
)
async def test_read_corrupt_snapshot_is_durable_unavailable(body: bytes) -> None:
    blobs = InMemoryBlobStore()
    await blobs.put("emergencies.json", body)
    store = DurableSnapshotStore(blobs, EmergencyQualityGate())

    with pytest.raises(DurableUnavailableError):
        await store.read()


@pytest.mark.asyncio
async def test_read_backend_failure_is_durable_unavailable() -> None:
    store = DurableSnapshotStore(FailingBlobStore(), EmergencyQualityGate())

    with pytest.raises(DurableUnavailableError) as exc_info:
        await store.read()

    assert "blob backend down" in str(exc_info.value)


@pytest.mark.asyncio
async def test_write_failure_is_reported_not_raised() -> None:
    store = DurableSnapshotStore(FailingBlobStore(), EmergencyQualityGate())

    written = await store.write(FeedCollection(data=(emergency("a"),)))

    assert written is False


@pytest.mark.asyncio
async def test_read_filters_legacy_records_over_people_limit() -> None:
    blobs = InMemoryBlobStore()
    legacy = {
        "success": True,
        "count": 2,
        "data": [
            {"id": "a", "latitude": 1, "longitude": 2, "numberOfPeople": 5, "urgencyLevel": "LOW", "status": "pending"},
            {"id": "b", "latitude": 1, "longitude": 2, "numberOfPeople": 9000, "urgencyLevel": "LOW", "status": "pending"},
        ],
    }
    await blobs.put("emergencies.json", json.dumps(legacy).encode("utf-8"))
    store = DurableSnapshotStore(blobs, EmergencyQualityGate(max_people=3000))

    loaded = await store.read()

    assert [record.id for record in loaded.data] == ["a"]
    assert loaded.count == 1


@pytest.mark.asyncio
async def test_file_blob_store_writes_atomically(tmp_path) -> None:
    blobs = FileBlobStore(str(tmp_path / "snapshots"))

    assert await blobs.get("emergencies.json") is None
    await blobs.put("emergencies.json", b'{"success": true, "data": []}')
    await blobs.put("emergencies.json", b'{"success": true, "count": 0, "data": []}')

    assert await blobs.get("emergencies.json") == b'{"success": true, "count": 0, "data": []}'
    assert [path.name for path in (tmp_path / "snapshots").iterdir()] == ["emergencies.json"]


@pytest.mark.asyncio
async def test_file_blob_store_rejects_escaping_keys(tmp_path) -> None:
    blobs = FileBlobStore(str(tmp_path))

    with pytest.raises(ValueError):
        await blobs.get("../outside.json")


@pytest.mark.asyncio
async def test_file_blob_store_runs_disk_io_off_the_event_loop(tmp_path, monkeypatch) -> None:
    offloaded: list[str] = []
    real_to_thread = asyncio.to_thread

    async def recording_to_thread(func, /, *args, **kwargs):
        offloaded.append(func.__name__)
        return await real_to_thread(func, *args, **kwargs)

    monkeypatch.setattr(blob_store.asyncio, "to_thread", recording_to_thread)
    blobs = FileBlobStore(str(tmp_path))

    await blobs.put("emergencies.json", b"{}")
    assert await blobs.get("emergencies.json") == b"{}"

    assert offloaded == ["_put_sync", "_get_sync"]


@pytest.mark.asyncio
async def test_redis_blob_store_namespaces_keys_and_accepts_str_values() -> None:
    redis = FakeRedis()
    blobs = RedisBlobStore(redis, namespace="relief-proxy:snapshot:")

    await blobs.put("emergencies.json", b"{}")
    redis.values["relief-proxy:snapshot:legacy.json"] = '{"success": true}'

    assert redis.values["relief-proxy:snapshot:emergencies.json"] == b"{}"
    assert await blobs.get("emergencies.json") == b"{}"
    assert await blobs.get("legacy.json") == b'{"success": true}'
    assert await blobs.get("missing.json") is None


@pytest.mark.asyncio
async def test_s3_blob_store_treats_missing_object_as_absent() -> None:
    s3 = FakeS3()
    blobs = S3BlobStore("relief-snapshots", prefix="/prod/", client=s3)

    assert await blobs.get("emergencies.json") is None
    await blobs.put("emergencies.json", b"{}")

    assert s3.objects[("relief-snapshots", "prod/emergencies.json")] == b"{}"
    assert s3.content_types["prod/emergencies.json"] == "application/json"
    assert await blobs.get("emergencies.json") == b"{}"


@pytest.mark.asyncio
async def test_s3_blob_store_propagates_other_client_errors() -> None:
    class DeniedS3(FakeS3):
        def get_object(self, Bucket: str, Key: str) -> dict:
            raise ClientError({"Error": {"Code": "AccessDenied", "Message": "denied"}}, "GetObject")

    store = DurableSnapshotStore(S3BlobStore("relief-snapshots", client=DeniedS3()), EmergencyQualityGate())

    with pytest.raises(DurableUnavailableError):
        await store.read()
