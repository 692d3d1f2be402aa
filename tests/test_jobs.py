import pytest

from homescore.jobs import tasks
from homescore.jobs.queue import DEDUPE_KEY_PREFIX, CeleryJobQueue
from homescore.jobs.types import TASK_NAMES, JobType, dedupe_key
from homescore.models import RiskReport


class FakeRedis:
    def __init__(self):
        self.store = {}

    def set(self, key, value, nx=False, ex=None):
        if nx and key in self.store:
            return None
        self.store[key] = value
        return True

    def exists(self, key):
        return int(key in self.store)

    def delete(self, key):
        self.store.pop(key, None)


class FakeCelery:
    def __init__(self, fail=False):
        self.fail = fail
        self.sent = []

    def send_task(self, name, kwargs=None, task_id=None):
        if self.fail:
            raise ConnectionError("broker unreachable")
        self.sent.append((name, kwargs, task_id))


def test_dedupe_key_format():
    assert dedupe_key(12, JobType.CALCULATE_RISK_REPORT) == "12-CALCULATE_RISK_REPORT"


def test_enqueue_claims_key_and_sends_task():
    redis_client, celery = FakeRedis(), FakeCelery()
    queue = CeleryJobQueue(redis_client=redis_client, celery_app=celery, ttl_seconds=60)
    key = dedupe_key(3, JobType.CALCULATE_RISK_REPORT)

    assert queue.enqueue(JobType.CALCULATE_RISK_REPORT, {"property_id": 3}, key) is True
    assert queue.enqueue(JobType.CALCULATE_RISK_REPORT, {"property_id": 3}, key) is False

    assert celery.sent == [
        (TASK_NAMES[JobType.CALCULATE_RISK_REPORT], {"payload": {"property_id": 3}, "dedupe_key": key}, key)
    ]
    assert queue.is_pending(key)

    queue.release(key)
    assert not queue.is_pending(key)


def test_failed_send_frees_the_key():
    redis_client = FakeRedis()
    queue = CeleryJobQueue(redis_client=redis_client, celery_app=FakeCelery(fail=True), ttl_seconds=60)
    key = dedupe_key(3, JobType.CALCULATE_FINANCIAL_REPORT)

    with pytest.raises(ConnectionError):
        queue.enqueue(JobType.CALCULATE_FINANCIAL_REPORT, {"property_id": 3}, key)
    assert DEDUPE_KEY_PREFIX + key not in redis_client.store


def test_risk_task_calculates_and_releases_key(monkeypatch, session_factory, db, catalog, make_property):
    prop = make_property()
    released = []

    class ReleasingQueue:
        def release(self, key):
            released.append(key)

    monkeypatch.setattr(tasks, "SessionLocal", session_factory)
    monkeypatch.setattr(tasks, "CeleryJobQueue", ReleasingQueue)
    key = dedupe_key(prop.id, JobType.CALCULATE_RISK_REPORT)

    result = tasks.calculate_risk_report_task({"property_id": prop.id}, dedupe_key=key)

    assert result["status"] == "CALCULATED"
    assert released == [key]
    assert db.query(RiskReport).filter(RiskReport.property_id == prop.id).count() == 1
