from datetime import datetime, timedelta, timezone

import pytest

from gastito.db.repo import GastitoRepository


class DummyDB:
    def __init__(self) -> None:
        self.links = {}

    async def fetchrow(self, query: str, *args):
        if "group_invite_links" in query:
            token = args[0]
            return self.links.get(token)
        return None

    async def execute(self, query: str, *args):
        return "OK"


def _link(token: str, **overrides) -> dict:
    row = {
        "id": 1,
        "group_id": 1,
        "token": token,
        "max_uses": None,
        "uses": 0,
        "expires_at": None,
    }
    row.update(overrides)
    return row


@pytest.mark.asyncio
async def test_invitelink_expired():
    db = DummyDB()
    repo = GastitoRepository(db)  # type: ignore[arg-type]
    now = datetime.now(timezone.utc)
    db.links["abc"] = _link("abc", expires_at=now - timedelta(hours=1))

    link = await repo.get_invite_link_by_token("abc")
    assert link is not None
    assert link.group_id == 1
    assert link.is_usable(now) is False


@pytest.mark.asyncio
async def test_invitelink_exhausted():
    db = DummyDB()
    repo = GastitoRepository(db)  # type: ignore[arg-type]
    db.links["full"] = _link("full", max_uses=2, uses=2)

    link = await repo.get_invite_link_by_token("full")
    assert link is not None
    assert link.is_usable(datetime.now(timezone.utc)) is False


@pytest.mark.asyncio
async def test_invitelink_valid_and_missing():
    db = DummyDB()
    repo = GastitoRepository(db)  # type: ignore[arg-type]
    now = datetime.now(timezone.utc)
    db.links["ok"] = _link("ok", max_uses=5, uses=1, expires_at=now + timedelta(days=1))

    link = await repo.get_invite_link_by_token("ok")
    assert link is not None
    assert link.is_usable(now) is True
    assert await repo.get_invite_link_by_token("nope") is None
