import pytest

from devkit.redis import AsyncRedisManager, create_redis_client


def test_create_redis_client_none() -> None:
    assert create_redis_client(None) is None
    assert create_redis_client("") is None


@pytest.mark.asyncio
async def test_async_redis_manager_reconnects_on_failure() -> None:
    class FakeClient:
        def __init__(self, fail_once: bool) -> None:
            self.fail_once = fail_once
            self.values: dict[str, bytes] = {}

        async def ping(self) -> bool:
            return True

        async def get(self, key: str) -> bytes | None:
            if self.fail_once:
                self.fail_once = False
                raise RuntimeError("transient")
            return self.values.get(key, b"snapshot")

        async def close(self) -> None:
            return None

    created: list[FakeClient] = []

    def factory(_url: str) -> FakeClient:
        client = FakeClient(fail_once=(len(created) == 0))
        created.append(client)
        return client

    manager = AsyncRedisManager("redis://example:6379/0", base_delay_seconds=0.0, client_factory=factory)
    value = await manager.get("emergencies.json")

    assert value == b"snapshot"
    assert len(created) >= 2


@pytest.mark.asyncio
async def test_async_redis_manager_gives_up_after_max_retries() -> None:
    class BrokenClient:
        async def ping(self) -> bool:
            return True

        async def set(self, _key: str, _value: bytes) -> bool:
            raise ConnectionError("down")

        async def close(self) -> None:
            return None

    manager = AsyncRedisManager(
        "redis://example:6379/0",
        max_retries=2,
        base_delay_seconds=0.0,
        client_factory=lambda _url: BrokenClient(),
    )

    with pytest.raises(ConnectionError):
        await manager.set("emergencies.json", b"{}")
