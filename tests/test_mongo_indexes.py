import pytest

from foodlink.repos.mongo import MongoRepo

pytestmark = pytest.mark.anyio


class RecordingCollection:
    def __init__(self):
        self.created = {}

    async def _names(self):
        for name in self.created:
            yield {"name": name}

    def list_indexes(self):
        return self._names()

    async def create_index(self, keys, name, **kwargs):
        self.created[name] = (keys, kwargs)


class RecordingDb:
    def __init__(self):
        self.cols = {}

    def __getattr__(self, name):
        return self.cols.setdefault(name, RecordingCollection())


async def test_accepted_by_index_is_plain():
    db = RecordingDb()
    await MongoRepo(db).ensure_indexes()
    keys, opts = db.donations.created["accepted_by_1"]
    assert keys == [("accepted_by", 1)]
    assert opts == {}

async def test_indexes_created_once():
    db = RecordingDb()
    repo = MongoRepo(db)
    await repo.ensure_indexes()
    await repo.ensure_indexes()
    assert db.users.created["email_1"][1] == {"unique": True}
    assert db.revoked_tokens.created["expires_at_ttl"][1] == {"expireAfterSeconds": 0}
