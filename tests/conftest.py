"""
Pytest fixtures for the marketplace tests.

Services get a RecordingNotifier instead of the real router so assertions
can look at exactly which events a lifecycle operation emitted.
"""

from decimal import Decimal

import pytest

from apps.bids.services import BidService
from apps.credits.services import CreditLedger
from apps.jobs.models import JobPost
from apps.jobs.services import JobService
from apps.users.models import Provider, Requester, ServiceLocation, User
from core.constants import CREDIT_PURCHASE, JOB_STATUS_OPEN


class RecordingNotifier:
    """Notifier fake that keeps every call in memory."""

    def __init__(self):
        self.user_events = []
        self.area_events = []
        self.resyncs = []

    def notify_user(self, user_id, event, payload):
        self.user_events.append((user_id, event, payload))

    def notify_area(self, city, district, category, event, payload, exclude_user_id=None):
        self.area_events.append({
            "city": city,
            "district": district,
            "category": category,
            "event": event,
            "payload": payload,
            "exclude_user_id": exclude_user_id,
        })

    def resync_rooms(self, user_id):
        self.resyncs.append(user_id)

    def events_for(self, user_id):
        return [event for uid, event, _ in self.user_events if uid == user_id]


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def ledger():
    return CreditLedger()


@pytest.fixture
def job_service(notifier, ledger):
    return JobService(notifier, ledger=ledger)


@pytest.fixture
def bid_service(notifier, ledger):
    return BidService(notifier, ledger=ledger)


@pytest.fixture
def make_requester(db):
    def _make(username="ayse", city="Istanbul"):
        user = User.objects.create_user(
            username=username, email=f"{username}@example.com", password="s3cret-pass"
        )
        Requester.objects.create(user=user, city=city)
        return user

    return _make


@pytest.fixture
def make_provider(db, ledger):
    def _make(username="mehmet", credits=0, city="Istanbul", district="Kadikoy", category="elektrik"):
        user = User.objects.create_user(
            username=username, email=f"{username}@example.com", password="s3cret-pass"
        )
        provider = Provider.objects.create(user=user, service_category=category)
        if city:
            ServiceLocation.objects.create(provider=provider, city=city, district=district or "")
        if credits:
            ledger.apply_delta(user, credits, CREDIT_PURCHASE, description="Test credits")
        return user

    return _make


@pytest.fixture
def requester(make_requester):
    return make_requester()


@pytest.fixture
def provider(make_provider):
    return make_provider(credits=5)


@pytest.fixture
def make_job(db):
    def _make(requester, **overrides):
        fields = dict(
            title="Kitchen socket is sparking",
            description="Socket next to the fridge sparks when plugging anything in.",
            category="elektrik",
            address="Moda Cd. 12",
            city="Istanbul",
            district="Kadikoy",
            latitude=Decimal("40.987654"),
            longitude=Decimal("29.025678"),
            status=JOB_STATUS_OPEN,
        )
        fields.update(overrides)
        return JobPost.objects.create(requester=requester, **fields)

    return _make


@pytest.fixture
def job(make_job, requester):
    return make_job(requester)


@pytest.fixture
def job_fields():
    return {
        "title": "Air conditioner leaking",
        "description": "Indoor unit drips water onto the floor.",
        "category": "klima",
        "address": "Bagdat Cd. 200",
        "city": "Istanbul",
        "district": "Kadikoy",
        "latitude": "40.970001",
        "longitude": "29.060002",
        "urgency_level": "HIGH",
    }


@pytest.fixture
def place_bid(bid_service):
    def _place(job, provider, amount="250.00", message="I can come this afternoon."):
        return bid_service.create_bid(job.pk, provider, amount, 2, message)

    return _place
