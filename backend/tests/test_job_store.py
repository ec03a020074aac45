from datetime import timedelta

import fakeredis
import pytest

from pim_sync.models.job import Job, RowResult, utc_now
from pim_sync.services.job_store import MemoryJobStore, RedisJobStore


def make_job(auth, rows=None, **kwargs) -> Job:
    return Job(rows=rows or [{"Internal ID": "1"}], auth=auth, **kwargs)


@pytest.fixture
def redis_store():
    return RedisJobStore(fakeredis.FakeRedis(decode_responses=True), ttl=timedelta(hours=1))


@pytest.fixture(params=["memory", "redis"])
def store(request, redis_store):
    if request.param == "redis":
        return redis_store
    return MemoryJobStore(ttl=timedelta(hours=1))


def test_job_defaults(auth):
    job = make_job(auth, rows=[{"a": 1}, {"b": 2}])

    assert job.status == "pending"
    assert job.total == 2
    assert job.processed == 0
    assert job.results == []
    assert job.environment == "Sandbox"


def test_record_keeps_processed_in_step(auth):
    job = make_job(auth)
    job.record(RowResult(item_id="x", status="Success"))

    assert job.processed == len(job.results) == 1
    assert job.counts() == {"Success": 1, "Error": 0, "Skipped": 0}


def test_insert_get_roundtrip(store, auth):
    job = make_job(auth)
    store.insert(job)

    loaded = store.get(job.id)

    assert loaded is not None
    assert loaded.id == job.id
    assert loaded.rows == job.rows
    assert loaded.auth == job.auth
    assert store.exists(job.id)


def test_unknown_id(store):
    assert store.get("nope") is None
    assert not store.exists("nope")


def test_duplicate_insert_rejected(store, auth):
    job = make_job(auth)
    store.insert(job)

    with pytest.raises(ValueError):
        store.insert(job)


def test_save_persists_progress(store, auth):
    job = make_job(auth)
    store.insert(job)
    job.mark_running()
    job.record(RowResult(item_id="1", status="Success", response={"main": {"id": "1"}}))

    assert store.save(job)
    loaded = store.get(job.id)
    assert loaded.status == "running"
    assert loaded.processed == 1
    assert loaded.results[0].response == {"main": {"id": "1"}}


def test_save_does_not_resurrect_deleted_job(store, auth):
    job = make_job(auth)
    store.insert(job)

    assert store.delete(job.id)
    assert not store.save(job)
    assert store.get(job.id) is None


def test_list_newest_first_with_status_filter(store, auth):
    now = utc_now()
    old = make_job(auth, created_at=now - timedelta(minutes=5))
    new = make_job(auth, created_at=now)
    store.insert(old)
    store.insert(new)
    new.mark_completed()
    store.save(new)

    assert [j.id for j in store.list()] == [new.id, old.id]
    assert [j.id for j in store.list(status="pending")] == [old.id]
    assert [j.id for j in store.list(limit=1)] == [new.id]


def test_memory_store_evicts_only_old_finished_jobs(auth):
    store = MemoryJobStore(ttl=timedelta(minutes=10))
    finished = make_job(auth)
    waiting = make_job(auth, created_at=utc_now() - timedelta(days=2))
    store.insert(finished)
    store.insert(waiting)
    finished.mark_completed()

    assert store.evict_expired(utc_now() + timedelta(minutes=5)) == 0
    assert store.evict_expired(utc_now() + timedelta(minutes=11)) == 1
    assert store.get(finished.id) is None
    assert store.get(waiting.id) is not None


def test_redis_store_expires_terminal_snapshots(redis_store, auth):
    job = make_job(auth)
    redis_store.insert(job)
    key = redis_store._key(job.id)

    assert redis_store.client.ttl(key) == -1
    job.mark_error("boom")
    redis_store.save(job)
    assert 0 < redis_store.client.ttl(key) <= 3600


def test_redis_store_prunes_index_of_expired_keys(redis_store, auth):
    job = make_job(auth)
    redis_store.insert(job)
    redis_store.client.delete(redis_store._key(job.id))

    assert redis_store.evict_expired() == 1
    assert redis_store.client.zcard(RedisJobStore.INDEX_KEY) == 0
    assert redis_store.list() == []


def test_ping(store):
    assert store.ping()


def test_redis_snapshot_holds_no_credentials(redis_store, auth):
    job = make_job(auth)
    redis_store.insert(job)
    job.mark_running()
    redis_store.save(job)

    raw = redis_store.client.get(redis_store._key(job.id))

    for secret in ("token-id", "token-secret", "consumer-key", "consumer-secret"):
        assert secret not in raw
    assert "alice" in raw
    assert redis_store.get(job.id).auth.token_secret == "token-secret"


def test_redis_store_forgets_credentials_of_finished_jobs(redis_store, auth):
    job = make_job(auth)
    redis_store.insert(job)
    job.mark_completed()
    redis_store.save(job)

    loaded = redis_store.get(job.id)

    assert loaded.auth.username == "alice"
    assert loaded.auth.token_secret == ""
    assert loaded.auth.environment.consumer_secret is None
    assert loaded.auth.environment.missing_fields() == ["consumer_key", "consumer_secret"]


def test_snapshot_read_by_another_process_cannot_sign(redis_store, auth):
    job = make_job(auth)
    redis_store.insert(job)
    other = RedisJobStore(redis_store.client)

    loaded = other.get(job.id)

    assert loaded.status == "pending"
    assert loaded.auth.token_id == ""
    assert loaded.auth.environment.missing_fields() == ["consumer_key", "consumer_secret"]
