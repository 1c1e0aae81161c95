import pytest

from scripts import health_check


class FakeValkey:
    def __init__(self, healthy: bool) -> None:
        self.healthy = healthy

    async def ping(self) -> bool:
        if not self.healthy:
            raise ConnectionError("valkey unreachable")
        return True


@pytest.mark.asyncio
async def test_check_valkey_uses_shared_client(monkeypatch):
    monkeypatch.setattr(health_check, "valkey_client", FakeValkey(healthy=True))

    assert await health_check.check_valkey() is True


@pytest.mark.asyncio
async def test_check_valkey_propagates_connection_errors(monkeypatch):
    monkeypatch.setattr(health_check, "valkey_client", FakeValkey(healthy=False))

    with pytest.raises(ConnectionError):
        await health_check.check_valkey()
