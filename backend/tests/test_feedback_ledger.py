from datetime import datetime, timedelta, timezone

import pytest

from jobfilter.models import FeedbackLabel, JobDecision, JobFeedback, JobEmbedding, PreferenceCentroid
from jobfilter.schemas.jobs import build_job_snapshot
from jobfilter.services.feedback import FeedbackLedger
from jobfilter.utils.timestamps import as_utc


@pytest.mark.asyncio
async def test_resubmitting_same_label_is_idempotent(session, payload_factory):
    ledger = FeedbackLedger()
    snapshot = build_job_snapshot(payload_factory("job-1", "Data Engineer"))
    first_seen = datetime(2025, 1, 1, 9, 0, 0, tzinfo=timezone.utc)

    first = await ledger.submit(
        session, user_id="u1", job_id="job-1", label=FeedbackLabel.LIKE, snapshot=snapshot, now=first_seen
    )
    first_id = first.id
    second = await ledger.submit(
        session,
        user_id="u1",
        job_id="job-1",
        label=FeedbackLabel.LIKE,
        snapshot=snapshot,
        now=first_seen + timedelta(minutes=5),
    )

    assert second.id == first_id
    assert as_utc(second.created_at) == first_seen
    assert as_utc(second.updated_at) == first_seen + timedelta(minutes=5)
    assert len(await ledger.list_feedback(session, user_id="u1")) == 1


@pytest.mark.asyncio
async def test_relabel_overwrites_label_and_snapshot(session, payload_factory):
    ledger = FeedbackLedger()
    await ledger.submit(
        session,
        user_id="u1",
        job_id="job-1",
        label=FeedbackLabel.LIKE,
        snapshot=build_job_snapshot(payload_factory("job-1", "Data Engineer")),
    )
    record = await ledger.submit(
        session,
        user_id="u1",
        job_id="job-1",
        label=FeedbackLabel.DISLIKE,
        snapshot=build_job_snapshot(payload_factory("job-1", "Senior Data Engineer")),
    )

    assert record.label == FeedbackLabel.DISLIKE.value
    assert record.job["title"] == "Senior Data Engineer"
    counts = await ledger.count_labels(session, user_id="u1")
    assert counts == {FeedbackLabel.LIKE: 0, FeedbackLabel.DISLIKE: 1}


@pytest.mark.asyncio
async def test_list_feedback_is_per_user_and_ordered(session, payload_factory):
    ledger = FeedbackLedger()
    start = datetime(2025, 1, 1, 9, 0, 0, tzinfo=timezone.utc)
    for offset, (user_id, job_id, label) in enumerate(
        [
            ("u1", "job-b", FeedbackLabel.LIKE),
            ("u2", "job-x", FeedbackLabel.DISLIKE),
            ("u1", "job-a", FeedbackLabel.DISLIKE),
        ]
    ):
        await ledger.submit(
            session,
            user_id=user_id,
            job_id=job_id,
            label=label,
            snapshot=build_job_snapshot(payload_factory(job_id, "Analyst")),
            now=start + timedelta(seconds=offset),
        )

    records = await ledger.list_feedback(session, user_id="u1")
    assert [record.job_id for record in records] == ["job-b", "job-a"]
    assert await ledger.get(session, user_id="u1", job_id="job-x") is None
    assert await ledger.count_labels(session, user_id="u3") == {
        FeedbackLabel.LIKE: 0,
        FeedbackLabel.DISLIKE: 0,
    }


def test_model_timestamps_default_to_aware_utc():
    records = [
        JobFeedback(user_id="u1", job_id="job-1", label="like"),
        JobEmbedding(user_id="u1", job_id="job-1", model_id="m1", text_hash="h", vector=b"", dim=0),
        PreferenceCentroid(user_id="u1", model_id="m1"),
        JobDecision(user_id="u1", job_id="job-1", model_id="m1", accepted=True),
    ]
    stamps = [records[0].created_at, records[1].updated_at, records[2].updated_at, records[3].decided_at]
    assert all(stamp.utcoffset() == timedelta(0) for stamp in stamps)


@pytest.mark.asyncio
async def test_submit_writes_timestamps_without_explicit_clock(session, payload_factory):
    ledger = FeedbackLedger()
    before = datetime.now(timezone.utc)

    record = await ledger.submit(
        session,
        user_id="u1",
        job_id="job-1",
        label=FeedbackLabel.LIKE,
        snapshot=build_job_snapshot(payload_factory("job-1", "Data Engineer")),
    )

    assert before - timedelta(seconds=1) <= as_utc(record.created_at) <= datetime.now(timezone.utc)
    assert as_utc(record.updated_at) == as_utc(record.created_at)
