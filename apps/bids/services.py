import logging
from decimal import Decimal, InvalidOperation

from django.db import transaction
from django.utils import timezone

from apps.credits.services import CreditLedger
from apps.jobs.models import JobPost
from core.constants import (
    BID_ACTIVE_STATUSES, BID_COST, BID_STATUS_ACCEPTED, BID_STATUS_PENDING,
    BID_STATUS_REJECTED, BID_STATUS_WITHDRAWN, CREDIT_BID_SPENT,
    JOB_BIDDABLE_STATUSES, JOB_STATUS_BIDDING, JOB_STATUS_IN_PROGRESS, JOB_STATUS_OPEN,
)
from core.exceptions import ForbiddenError, InsufficientCreditError, NotFoundError, ValidationError
from core.utils import contains_phone_number
from .models import Bid

logger = logging.getLogger(__name__)


def _user_id(user):
    return getattr(user, 'pk', user)


def clean_amount(amount):
    try:
        value = Decimal(str(amount))
    except (InvalidOperation, TypeError, ValueError):
        raise ValidationError('Bid amount must be a positive number')
    if not value.is_finite() or value <= 0:
        raise ValidationError('Bid amount must be a positive number')
    return value


def clean_duration(estimated_duration):
    try:
        value = int(estimated_duration)
    except (TypeError, ValueError):
        raise ValidationError('Estimated duration must be a positive number of hours')
    # 2.5 hours would silently become 2
    if isinstance(estimated_duration, float) and not estimated_duration.is_integer():
        raise ValidationError('Estimated duration must be a whole number of hours')
    if value <= 0:
        raise ValidationError('Estimated duration must be a positive number of hours')
    return value


def clean_message(message):
    message = (message or '').strip()
    if not message:
        raise ValidationError('Bid message is required')
    if contains_phone_number(message):
        raise ValidationError('Sharing phone numbers in bid messages is not allowed')
    return message


class BidService:
    """
    Bid lifecycle: PENDING -> ACCEPTED | REJECTED | WITHDRAWN.

    Job rows are always locked before credit account rows.
    """

    def __init__(self, notifier, ledger=None):
        self.notifier = notifier
        self.ledger = ledger or CreditLedger()

    def _get_bid(self, bid_id):
        bid = Bid.objects.select_related('job').filter(pk=bid_id, job__deleted_at__isnull=True).first()
        if bid is None:
            raise NotFoundError('Bid not found')
        return bid

    def _lock(self, bid):
        """Lock the bid's job, then re-read the bid. Call inside transaction.atomic()."""
        job = JobPost.objects.select_for_update().get(pk=bid.job_id)
        bid = Bid.objects.select_for_update().get(pk=bid.pk)
        bid.job = job
        return job, bid

    def create_bid(self, job_id, provider, amount, estimated_duration, message, estimated_start_date=None):
        amount = clean_amount(amount)
        estimated_duration = clean_duration(estimated_duration)
        message = clean_message(message)
        provider_id = _user_id(provider)

        with transaction.atomic():
            job = JobPost.objects.visible().select_for_update().filter(pk=job_id).first()
            if job is None:
                raise NotFoundError('Job post not found')
            if job.status not in JOB_BIDDABLE_STATUSES:
                raise ValidationError('Job is not accepting bids')
            if job.requester_id == provider_id:
                raise ForbiddenError('You cannot bid on your own job')

            if Bid.objects.filter(job=job, provider_id=provider_id, status__in=BID_ACTIVE_STATUSES).exists():
                raise ValidationError('You already have an active bid on this job')

            account = self.ledger.lock_account(provider_id)
            if account.balance < BID_COST:
                raise InsufficientCreditError()

            bid = Bid.objects.create(
                job=job,
                provider_id=provider_id,
                amount=amount,
                estimated_duration=estimated_duration,
                estimated_start_date=estimated_start_date,
                message=message,
            )

            job.bid_count += 1
            if job.status == JOB_STATUS_OPEN:
                job.status = JOB_STATUS_BIDDING
            job.save(update_fields=['bid_count', 'status', 'updated_at'])

            self.ledger.apply_delta(
                provider_id, -BID_COST, CREDIT_BID_SPENT,
                related_id=bid.pk,
                description=f"Bid placed on job: {job.title}",
            )

            self.notifier.notify_user(job.requester_id, 'bid_received', {
                'title': 'New bid received',
                'message': f"You received a {amount} bid for '{job.title}'.",
                'related_id': str(job.pk),
                'related_type': 'JOB',
                'job_id': job.pk,
                'bid_id': bid.pk,
                'amount': str(amount),
            })

        logger.info(f"Bid {bid.pk} created by provider {provider_id} on job {job.pk}")
        return bid

    def accept_bid(self, bid_id, requester):
        bid = self._get_bid(bid_id)
        if not bid.job.is_owned_by(requester):
            raise ForbiddenError('Only the job owner can accept bids')

        with transaction.atomic():
            job, bid = self._lock(bid)
            if bid.status != BID_STATUS_PENDING:
                raise ValidationError('Only pending bids can be accepted')
            if job.status not in JOB_BIDDABLE_STATUSES:
                raise ValidationError('Job is no longer accepting bids')

            now = timezone.now()
            siblings = list(
                Bid.objects.filter(job=job, status=BID_STATUS_PENDING)
                .exclude(pk=bid.pk)
                .values_list('pk', 'provider_id')
            )
            Bid.objects.filter(pk__in=[pk for pk, _ in siblings]).update(
                status=BID_STATUS_REJECTED, rejected_at=now, updated_at=now
            )

            bid.status = BID_STATUS_ACCEPTED
            bid.accepted_at = now
            bid.save(update_fields=['status', 'accepted_at', 'updated_at'])

            job.status = JOB_STATUS_IN_PROGRESS
            job.assigned_provider_id = bid.provider_id
            job.accepted_bid = bid
            job.save(update_fields=['status', 'assigned_provider', 'accepted_bid', 'updated_at'])

            self.notifier.notify_user(bid.provider_id, 'bid_accepted', {
                'title': 'Your bid was accepted',
                'message': f"Your bid for '{job.title}' was accepted.",
                'related_id': str(job.pk),
                'related_type': 'JOB',
                'job_id': job.pk,
                'bid_id': bid.pk,
            })
            for sibling_id, sibling_provider_id in siblings:
                self.notifier.notify_user(sibling_provider_id, 'bid_rejected', {
                    'title': 'Your bid was not selected',
                    'message': f"Another bid was accepted for '{job.title}'.",
                    'related_id': str(job.pk),
                    'related_type': 'JOB',
                    'job_id': job.pk,
                    'bid_id': sibling_id,
                })

        logger.info(f"Bid {bid.pk} accepted on job {job.pk}, {len(siblings)} sibling bid(s) rejected")
        return bid

    def reject_bid(self, bid_id, requester):
        bid = self._get_bid(bid_id)
        if not bid.job.is_owned_by(requester):
            raise ForbiddenError('Only the job owner can reject bids')

        with transaction.atomic():
            job, bid = self._lock(bid)
            if bid.status != BID_STATUS_PENDING:
                raise ValidationError('Only pending bids can be rejected')

            bid.status = BID_STATUS_REJECTED
            bid.rejected_at = timezone.now()
            bid.save(update_fields=['status', 'rejected_at', 'updated_at'])

            self.notifier.notify_user(bid.provider_id, 'bid_rejected', {
                'title': 'Your bid was rejected',
                'message': f"Your bid for '{job.title}' was rejected.",
                'related_id': str(job.pk),
                'related_type': 'JOB',
                'job_id': job.pk,
                'bid_id': bid.pk,
            })

        logger.info(f"Bid {bid.pk} rejected on job {job.pk}")
        return bid

    def withdraw_bid(self, bid_id, provider):
        """Provider pulls back a pending bid. The spent credit is not refunded."""
        bid = self._get_bid(bid_id)
        if bid.provider_id != _user_id(provider):
            raise ForbiddenError('You can only withdraw your own bids')

        with transaction.atomic():
            job, bid = self._lock(bid)
            if bid.status != BID_STATUS_PENDING:
                raise ValidationError('Only pending bids can be withdrawn')

            bid.status = BID_STATUS_WITHDRAWN
            bid.save(update_fields=['status', 'updated_at'])
            job.bid_count = max(job.bid_count - 1, 0)
            job.save(update_fields=['bid_count', 'updated_at'])

            self.notifier.notify_user(job.requester_id, 'bid_withdrawn', {
                'title': 'A bid was withdrawn',
                'message': f"A provider withdrew their bid for '{job.title}'.",
                'related_id': str(job.pk),
                'related_type': 'JOB',
                'job_id': job.pk,
                'bid_id': bid.pk,
            })

        logger.info(f"Bid {bid.pk} withdrawn from job {job.pk}")
        return bid

    def delete_bid(self, bid_id, provider):
        bid = self._get_bid(bid_id)
        if bid.provider_id != _user_id(provider):
            raise ForbiddenError('You can only delete your own bids')

        with transaction.atomic():
            job, bid = self._lock(bid)
            if bid.status != BID_STATUS_PENDING:
                raise ValidationError('Only pending bids can be deleted')

            bid_pk = bid.pk
            bid.delete()
            job.bid_count = max(job.bid_count - 1, 0)
            job.save(update_fields=['bid_count', 'updated_at'])

        logger.info(f"Bid {bid_pk} deleted from job {job.pk}")

    def update_bid(self, bid_id, provider, fields):
        bid = self._get_bid(bid_id)
        if bid.provider_id != _user_id(provider):
            raise ForbiddenError('You can only update your own bids')

        changes = {}
        if 'amount' in fields:
            changes['amount'] = clean_amount(fields['amount'])
        if 'estimated_duration' in fields:
            changes['estimated_duration'] = clean_duration(fields['estimated_duration'])
        if 'message' in fields:
            changes['message'] = clean_message(fields['message'])
        if 'estimated_start_date' in fields:
            changes['estimated_start_date'] = fields['estimated_start_date']

        with transaction.atomic():
            job, bid = self._lock(bid)
            if bid.status != BID_STATUS_PENDING:
                raise ValidationError('Only pending bids can be updated')
            if job.status not in JOB_BIDDABLE_STATUSES:
                raise ValidationError('Job is no longer accepting bids')

            for field, value in changes.items():
                setattr(bid, field, value)
            bid.save(update_fields=[*changes, 'updated_at'])

        return bid

    def job_bids(self, job_id, viewer=None):
        """
        Bids on a job, newest first. The owner and anonymous visitors see
        every bid; any other signed-in user only sees their own.
        """
        job = JobPost.objects.visible().filter(pk=job_id).first()
        if job is None:
            raise NotFoundError('Job post not found')

        bids = Bid.objects.filter(job=job).select_related('provider')
        if viewer is not None and getattr(viewer, 'is_authenticated', False) and not job.is_owned_by(viewer):
            bids = bids.filter(provider=viewer)
        return bids.order_by('-created_at', '-id')

    def my_bids(self, provider):
        return (
            Bid.objects.filter(provider_id=_user_id(provider), job__deleted_at__isnull=True)
            .select_related('job')
            .order_by('-created_at', '-id')
        )
