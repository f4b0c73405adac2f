"""Tests for the job lifecycle: creation, cancellation refunds, completion and reviews."""

from decimal import Decimal

import pytest

from apps.bids.models import Bid
from apps.credits.models import CreditLedgerEntry
from apps.jobs.models import JobPost, Review
from apps.users.models import Provider
from core.constants import (
    BID_STATUS_ACCEPTED, BID_STATUS_PENDING, CREDIT_REFUND,
    JOB_STATUS_BIDDING, JOB_STATUS_CANCELLED, JOB_STATUS_COMPLETED, JOB_STATUS_DRAFT,
    JOB_STATUS_IN_PROGRESS, JOB_STATUS_OPEN, JOB_STATUS_PENDING_CONFIRMATION,
)
from core.exceptions import ConflictError, ForbiddenError, NotFoundError, ValidationError


@pytest.fixture
def assigned_job(requester, job, provider, bid_service, place_bid):
    """A job whose bid from ``provider`` has been accepted."""
    bid = place_bid(job, provider)
    bid_service.accept_bid(bid.pk, requester)
    job.refresh_from_db()
    return job


# ---------------------------------------------------------------------------
# create / update
# ---------------------------------------------------------------------------


def test_create_job_opens_it_and_notifies_the_area(requester, job_service, notifier, job_fields):
    job = job_service.create_job(requester, job_fields)

    assert job.status == JOB_STATUS_OPEN
    assert job.bid_count == 0
    assert job.latitude == Decimal("40.970001")
    assert len(notifier.area_events) == 1
    event = notifier.area_events[0]
    assert event["event"] == "new_job_available"
    assert (event["city"], event["district"], event["category"]) == ("Istanbul", "Kadikoy", "klima")
    assert event["exclude_user_id"] == requester.pk
    assert event["payload"]["job_id"] == job.pk


def test_unknown_category_routes_to_default_service_category(requester, job_service, notifier, job_fields):
    job_service.create_job(requester, {**job_fields, "category": "Garden"})

    assert notifier.area_events[0]["category"] == "elektrik"


@pytest.mark.parametrize("missing", ["title", "description", "category", "address", "city", "district", "latitude", "longitude"])
def test_create_job_requires_fields(requester, job_service, notifier, job_fields, missing):
    fields = dict(job_fields)
    del fields[missing]

    with pytest.raises(ValidationError):
        job_service.create_job(requester, fields)

    assert not JobPost.objects.exists()
    assert notifier.area_events == []


def test_create_job_rejects_blank_title(requester, job_service, job_fields):
    with pytest.raises(ValidationError):
        job_service.create_job(requester, {**job_fields, "title": "  "})


def test_update_open_job(requester, job, job_service):
    updated = job_service.update_job(job.pk, requester, {"title": "Two sockets sparking", "status": "COMPLETED"})

    updated.refresh_from_db()
    assert updated.title == "Two sockets sparking"
    assert updated.status == JOB_STATUS_OPEN


def test_update_job_by_stranger(job, make_requester, job_service):
    with pytest.raises(ForbiddenError):
        job_service.update_job(job.pk, make_requester(username="zeynep"), {"title": "Mine now"})


@pytest.mark.parametrize("status", [JOB_STATUS_BIDDING, JOB_STATUS_IN_PROGRESS, JOB_STATUS_COMPLETED])
def test_update_job_outside_open_or_draft(requester, make_job, job_service, status):
    job = make_job(requester, status=status)

    with pytest.raises(ValidationError):
        job_service.update_job(job.pk, requester, {"title": "Changed"})


def test_update_missing_job(requester, job_service):
    with pytest.raises(NotFoundError):
        job_service.update_job(123456, requester, {"title": "x"})


# ---------------------------------------------------------------------------
# cancel
# ---------------------------------------------------------------------------


def test_cancel_refunds_pending_and_accepted_bids(requester, job, make_provider, ledger, bid_service, place_bid, job_service, notifier):
    accepted_by = make_provider(username="usta1", credits=1)
    pending_by = make_provider(username="usta2", credits=1)
    withdrawn_by = make_provider(username="usta3", credits=1)
    accepted = place_bid(job, accepted_by)
    pending = place_bid(job, pending_by)
    withdrawn = place_bid(job, withdrawn_by)
    bid_service.withdraw_bid(withdrawn.pk, withdrawn_by)
    # legacy row: accepted bid on a job still in BIDDING
    Bid.objects.filter(pk=accepted.pk).update(status=BID_STATUS_ACCEPTED)

    cancelled = job_service.cancel_job(job.pk, requester, reason="Fixed it myself")

    assert cancelled.status == JOB_STATUS_CANCELLED
    assert cancelled.cancelled_at is not None
    assert cancelled.cancellation_reason == "Fixed it myself"
    refunds = CreditLedgerEntry.objects.filter(transaction_type=CREDIT_REFUND)
    assert sorted(refunds.values_list("related_id", flat=True)) == sorted([str(accepted.pk), str(pending.pk)])
    assert ledger.get_balance(accepted_by) == 1
    assert ledger.get_balance(pending_by) == 1
    assert ledger.get_balance(withdrawn_by) == 0
    assert notifier.events_for(accepted_by.pk) == ["job_cancelled"]
    assert notifier.events_for(pending_by.pk) == ["job_cancelled"]
    assert "job_cancelled" not in notifier.events_for(withdrawn_by.pk)


def test_cancel_does_not_refund_a_bid_twice(requester, job, make_provider, ledger, place_bid, job_service, notifier):
    provider = make_provider(credits=1)
    bid = place_bid(job, provider)
    # an earlier cancellation attempt already refunded this bid
    ledger.refund_bid(bid)

    job_service.cancel_job(job.pk, requester)

    assert CreditLedgerEntry.objects.filter(transaction_type=CREDIT_REFUND, related_id=str(bid.pk)).count() == 1
    assert ledger.get_balance(provider) == 1
    assert ledger.replay(provider) == 1
    message = [p["message"] for uid, event, p in notifier.user_events if event == "job_cancelled"][0]
    assert "already refunded" in message


def test_cancel_message_mentions_fresh_refund(requester, job, provider, place_bid, job_service, notifier):
    place_bid(job, provider)

    job_service.cancel_job(job.pk, requester)

    message = [p["message"] for uid, event, p in notifier.user_events if event == "job_cancelled"][0]
    assert "Your credit has been refunded." in message


def test_cancellations_lock_accounts_in_provider_order(requester, make_job, make_provider, ledger, place_bid, job_service, monkeypatch):
    first = make_provider(username="usta1", credits=2)
    second = make_provider(username="usta2", credits=2)
    job_a = make_job(requester, title="Job A")
    job_b = make_job(requester, title="Job B")
    place_bid(job_a, first)
    place_bid(job_a, second)
    place_bid(job_b, second)
    place_bid(job_b, first)

    locked = []
    lock_account = ledger.lock_account

    def recording_lock(provider):
        locked.append(getattr(provider, "pk", provider))
        return lock_account(provider)

    monkeypatch.setattr(ledger, "lock_account", recording_lock)

    job_service.cancel_job(job_a.pk, requester)
    order_a = list(dict.fromkeys(locked))
    locked.clear()
    job_service.cancel_job(job_b.pk, requester)
    order_b = list(dict.fromkeys(locked))

    assert order_a == order_b == sorted([first.pk, second.pk])


def test_cancel_job_in_progress_is_rejected(requester, assigned_job, provider, ledger, job_service):
    balance_before = ledger.get_balance(provider)
    entries_before = CreditLedgerEntry.objects.count()

    with pytest.raises(ValidationError):
        job_service.cancel_job(assigned_job.pk, requester)

    assigned_job.refresh_from_db()
    assert assigned_job.status == JOB_STATUS_IN_PROGRESS
    assert ledger.get_balance(provider) == balance_before
    assert CreditLedgerEntry.objects.count() == entries_before


@pytest.mark.parametrize("status", [
    JOB_STATUS_IN_PROGRESS, JOB_STATUS_PENDING_CONFIRMATION, JOB_STATUS_COMPLETED, JOB_STATUS_CANCELLED,
])
def test_late_states_are_not_cancellable(requester, make_job, job_service, status):
    job = make_job(requester, status=status)

    with pytest.raises(ValidationError):
        job_service.cancel_job(job.pk, requester)


@pytest.mark.parametrize("status", [JOB_STATUS_DRAFT, JOB_STATUS_OPEN, JOB_STATUS_BIDDING])
def test_early_states_are_cancellable(requester, make_job, job_service, status):
    job = make_job(requester, status=status)

    assert job_service.cancel_job(job.pk, requester).status == JOB_STATUS_CANCELLED


def test_cancel_by_stranger(job, make_requester, job_service):
    with pytest.raises(ForbiddenError):
        job_service.cancel_job(job.pk, make_requester(username="zeynep"))


# ---------------------------------------------------------------------------
# completion
# ---------------------------------------------------------------------------


def test_full_completion_flow(requester, assigned_job, provider, job_service, notifier):
    marked = job_service.mark_job_complete(assigned_job.pk, provider)
    assert marked.status == JOB_STATUS_PENDING_CONFIRMATION
    assert "job_marked_complete" in notifier.events_for(requester.pk)

    completed = job_service.confirm_job_complete(assigned_job.pk, requester)

    assert completed.status == JOB_STATUS_COMPLETED
    assert completed.completed_at is not None
    assert Provider.objects.get(user=provider).completed_jobs_count == 1
    assert "job_completed" in notifier.events_for(provider.pk)


def test_requester_can_confirm_straight_from_in_progress(requester, assigned_job, job_service):
    assert job_service.confirm_job_complete(assigned_job.pk, requester).status == JOB_STATUS_COMPLETED


def test_only_assigned_provider_marks_complete(assigned_job, make_provider, job_service):
    with pytest.raises(ForbiddenError):
        job_service.mark_job_complete(assigned_job.pk, make_provider(username="usta9"))


def test_mark_complete_twice(assigned_job, provider, job_service):
    job_service.mark_job_complete(assigned_job.pk, provider)

    with pytest.raises(ValidationError):
        job_service.mark_job_complete(assigned_job.pk, provider)


def test_confirm_before_assignment(requester, job, job_service):
    with pytest.raises(ValidationError):
        job_service.confirm_job_complete(job.pk, requester)


def test_confirm_by_stranger(assigned_job, make_requester, job_service):
    with pytest.raises(ForbiddenError):
        job_service.confirm_job_complete(assigned_job.pk, make_requester(username="zeynep"))


# ---------------------------------------------------------------------------
# delete
# ---------------------------------------------------------------------------


def test_deleted_job_disappears_from_reads(requester, job, job_service):
    deleted = job_service.delete_job(job.pk, requester)

    assert deleted.status == JOB_STATUS_CANCELLED
    assert deleted.deleted_at is not None
    assert JobPost.objects.filter(pk=job.pk).exists()
    assert job_service.list_jobs(status=JOB_STATUS_CANCELLED)["jobs"] == []
    assert list(job_service.my_jobs(requester)) == []
    with pytest.raises(NotFoundError):
        job_service.get_job(job.pk)


# ---------------------------------------------------------------------------
# reviews
# ---------------------------------------------------------------------------


def _complete(job_service, job, requester, provider):
    job_service.mark_job_complete(job.pk, provider)
    return job_service.confirm_job_complete(job.pk, requester)


def test_review_updates_provider_rating(requester, make_job, provider, bid_service, place_bid, job_service, notifier):
    for rating in (5, 4):
        job = make_job(requester, title=f"Job rated {rating}")
        bid_service.accept_bid(place_bid(job, provider).pk, requester)
        _complete(job_service, job, requester, provider)
        job_service.create_review(job.pk, requester, rating, "Quick and tidy")

    profile = Provider.objects.get(user=provider)
    assert profile.total_reviews == 2
    assert profile.rating_average == Decimal("4.50")
    assert notifier.events_for(provider.pk).count("new_review") == 2


def test_second_review_conflicts(requester, assigned_job, provider, job_service):
    _complete(job_service, assigned_job, requester, provider)
    job_service.create_review(assigned_job.pk, requester, 5)

    with pytest.raises(ConflictError):
        job_service.create_review(assigned_job.pk, requester, 1)

    assert Review.objects.filter(job=assigned_job).count() == 1


def test_review_before_completion(requester, assigned_job, job_service):
    with pytest.raises(ValidationError):
        job_service.create_review(assigned_job.pk, requester, 5)


@pytest.mark.parametrize("rating", [0, 6, 4.5, "5", True])
def test_review_rating_range(requester, assigned_job, provider, job_service, rating):
    _complete(job_service, assigned_job, requester, provider)

    with pytest.raises(ValidationError):
        job_service.create_review(assigned_job.pk, requester, rating)


# ---------------------------------------------------------------------------
# reads
# ---------------------------------------------------------------------------


def test_list_jobs_filters_and_paginates(requester, make_job, job_service):
    for i in range(5):
        make_job(requester, title=f"Kadikoy job {i}")
    make_job(requester, title="Besiktas job", district="Besiktas")
    make_job(requester, title="Plumbing job", category="tesisat")
    make_job(requester, title="Taken job", status=JOB_STATUS_IN_PROGRESS)

    result = job_service.list_jobs(category="elektrik", district="Kadikoy", page=2, limit=2)

    assert [j.title for j in result["jobs"]] == ["Kadikoy job 2", "Kadikoy job 1"]
    assert result["pagination"] == {"page": 2, "limit": 2, "total": 5, "total_pages": 3}


def test_list_jobs_defaults_to_open(requester, make_job, job_service):
    make_job(requester, title="Open")
    make_job(requester, title="Bidding", status=JOB_STATUS_BIDDING)

    assert [j.title for j in job_service.list_jobs()["jobs"]] == ["Open"]


def test_get_job_counts_views_from_others_only(requester, job, provider, job_service):
    job_service.get_job(job.pk, viewer=requester)
    job_service.get_job(job.pk, viewer=None)
    viewed = job_service.get_job(job.pk, viewer=provider)

    assert viewed.view_count == 1
    job.refresh_from_db()
    assert job.view_count == 1


def test_my_jobs_for_requester_and_provider(requester, make_job, make_requester, provider, place_bid, job_service):
    own = make_job(requester, title="Mine")
    other = make_job(make_requester(username="zeynep"), title="Someone else's")
    place_bid(other, provider)

    assert [j.pk for j in job_service.my_jobs(requester)] == [own.pk]
    assert [j.pk for j in job_service.my_jobs(provider)] == [other.pk]


def test_accepted_job_keeps_assignment_pair(assigned_job, provider):
    assert assigned_job.assigned_provider_id == provider.pk
    assert assigned_job.accepted_bid.provider_id == provider.pk
    assert Bid.objects.filter(job=assigned_job, status=BID_STATUS_PENDING).count() == 0
