import logging
from decimal import Decimal, InvalidOperation

from django.conf import settings
from django.db import DatabaseError, IntegrityError, transaction
from django.db.models import Avg, Count, F
from django.utils import timezone

from apps.bids.models import Bid
from apps.credits.services import CreditLedger
from apps.users.models import Provider
from core.constants import (
    BID_ACTIVE_STATUSES, BID_STATUS_ACCEPTED, JOB_CANCELLABLE_STATUSES, JOB_CONFIRMABLE_STATUSES,
    JOB_EDITABLE_STATUSES, JOB_STATUS_CANCELLED, JOB_STATUS_COMPLETED, JOB_STATUS_IN_PROGRESS,
    JOB_STATUS_OPEN, JOB_STATUS_PENDING_CONFIRMATION, URGENCY_LEVEL_CHOICES,
    normalize_service_category,
)
from core.exceptions import ConflictError, ForbiddenError, NotFoundError, ValidationError
from .models import JobPost, Review

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ('title', 'description', 'category')
LOCATION_FIELDS = ('address', 'city', 'district', 'latitude', 'longitude')
OPTIONAL_FIELDS = ('subcategory', 'neighborhood', 'urgency_level', 'estimated_budget')
EDITABLE_FIELDS = REQUIRED_FIELDS + LOCATION_FIELDS + OPTIONAL_FIELDS

MAX_PAGE_SIZE = 100
COORDINATE_PRECISION = Decimal('0.000001')


def _user_id(user):
    return getattr(user, 'pk', user)


def _is_blank(value):
    return value is None or (isinstance(value, str) and not value.strip())


def _clean_fields(fields, partial=False):
    """Validate and normalise job fields. With partial=True only the given keys are checked."""
    cleaned = {}
    for name in REQUIRED_FIELDS + LOCATION_FIELDS:
        if name not in fields:
            if not partial:
                if name in LOCATION_FIELDS:
                    raise ValidationError(f"Location is incomplete: {name} is required")
                raise ValidationError(f"{name.capitalize()} is required")
            continue
        if _is_blank(fields[name]):
            raise ValidationError(f"{name.capitalize()} cannot be empty")
        cleaned[name] = fields[name].strip() if isinstance(fields[name], str) else fields[name]

    for name in ('latitude', 'longitude'):
        if name in cleaned:
            try:
                cleaned[name] = Decimal(str(cleaned[name])).quantize(COORDINATE_PRECISION)
            except (InvalidOperation, ValueError):
                raise ValidationError(f"{name.capitalize()} must be a number")
    if 'latitude' in cleaned and not -90 <= cleaned['latitude'] <= 90:
        raise ValidationError('Latitude must be between -90 and 90')
    if 'longitude' in cleaned and not -180 <= cleaned['longitude'] <= 180:
        raise ValidationError('Longitude must be between -180 and 180')

    for name in OPTIONAL_FIELDS:
        if name in fields:
            cleaned[name] = fields[name]
    if cleaned.get('urgency_level') is None:
        cleaned.pop('urgency_level', None)
    elif cleaned['urgency_level'] not in dict(URGENCY_LEVEL_CHOICES):
        raise ValidationError('Urgency level must be LOW, MEDIUM or HIGH')
    if cleaned.get('estimated_budget') is not None:
        try:
            cleaned['estimated_budget'] = Decimal(str(cleaned['estimated_budget']))
        except (InvalidOperation, ValueError):
            raise ValidationError('Estimated budget must be a number')
        if cleaned['estimated_budget'] < 0:
            raise ValidationError('Estimated budget cannot be negative')
    return cleaned


class JobService:
    """
    Job lifecycle:

        DRAFT -> OPEN -> BIDDING -> IN_PROGRESS -> PENDING_CONFIRMATION -> COMPLETED

    CANCELLED is reachable from DRAFT, OPEN and BIDDING only. Bid acceptance
    (BIDDING -> IN_PROGRESS) lives in BidService.
    """

    def __init__(self, notifier, ledger=None):
        self.notifier = notifier
        self.ledger = ledger or CreditLedger()

    def _get_job(self, job_id, lock=False):
        jobs = JobPost.objects.visible()
        if lock:
            jobs = jobs.select_for_update()
        job = jobs.filter(pk=job_id).first()
        if job is None:
            raise NotFoundError('Job post not found')
        return job

    def _get_owned_job(self, job_id, requester, message, lock=False):
        job = self._get_job(job_id, lock=lock)
        if not job.is_owned_by(requester):
            raise ForbiddenError(message)
        return job

    def create_job(self, requester, fields):
        cleaned = _clean_fields(fields)
        with transaction.atomic():
            job = JobPost.objects.create(
                requester_id=_user_id(requester),
                status=JOB_STATUS_OPEN,
                bid_count=0,
                **cleaned,
            )
            self.notifier.notify_area(
                job.city,
                job.district,
                normalize_service_category(job.category),
                'new_job_available',
                {
                    'title': 'New job in your area',
                    'message': f"{job.title} - {job.district}, {job.city}",
                    'related_id': str(job.pk),
                    'related_type': 'JOB',
                    'job_id': job.pk,
                    'category': job.category,
                    'city': job.city,
                    'district': job.district,
                    'urgency_level': job.urgency_level,
                },
                exclude_user_id=job.requester_id,
            )
        logger.info(f"Job {job.pk} created by requester {job.requester_id} in {job.city}/{job.district}")
        return job

    def update_job(self, job_id, requester, fields):
        cleaned = _clean_fields({k: v for k, v in fields.items() if k in EDITABLE_FIELDS}, partial=True)
        with transaction.atomic():
            job = self._get_owned_job(job_id, requester, 'You can only update your own jobs', lock=True)
            if job.status not in JOB_EDITABLE_STATUSES:
                raise ValidationError('Only open or draft jobs can be updated')
            for name, value in cleaned.items():
                setattr(job, name, value)
            job.save()
        logger.info(f"Job {job.pk} updated")
        return job

    def cancel_job(self, job_id, requester, reason=None):
        """
        Cancel a job and give back the credit of every pending or accepted bid.
        Refunds are keyed on the bid id, so re-running a cancellation never
        refunds the same bid twice.
        """
        with transaction.atomic():
            job = self._get_owned_job(job_id, requester, 'You can only cancel your own jobs', lock=True)
            if job.status not in JOB_CANCELLABLE_STATUSES:
                raise ValidationError(f"Job cannot be cancelled while {job.status}")

            refunded = 0
            # credit accounts are always locked in provider order
            active_bids = list(
                Bid.objects.filter(job=job, status__in=BID_ACTIVE_STATUSES).order_by('provider_id', 'id')
            )
            for bid in active_bids:
                entry = self.ledger.refund_bid(bid, description=f"Refund: job '{job.title}' was cancelled")
                if entry is not None:
                    refunded += 1
                    credit_note = 'Your credit has been refunded.'
                else:
                    credit_note = 'The credit for this bid was already refunded.'
                self.notifier.notify_user(bid.provider_id, 'job_cancelled', {
                    'title': 'Job cancelled',
                    'message': f"'{job.title}' was cancelled by the customer. {credit_note}",
                    'related_id': str(job.pk),
                    'related_type': 'JOB',
                    'job_id': job.pk,
                    'bid_id': bid.pk,
                    'reason': reason,
                })

            job.status = JOB_STATUS_CANCELLED
            job.cancelled_at = timezone.now()
            job.cancellation_reason = reason
            job.save(update_fields=['status', 'cancelled_at', 'cancellation_reason', 'updated_at'])

        logger.info(f"Job {job.pk} cancelled, {refunded} of {len(active_bids)} bid(s) refunded")
        return job

    def mark_job_complete(self, job_id, provider):
        with transaction.atomic():
            job = self._get_job(job_id, lock=True)
            holds_accepted_bid = Bid.objects.filter(
                job=job, provider_id=_user_id(provider), status=BID_STATUS_ACCEPTED
            ).exists()
            if not holds_accepted_bid:
                raise ForbiddenError('Only the assigned provider can mark this job as complete')
            if job.status != JOB_STATUS_IN_PROGRESS:
                raise ValidationError('Only jobs in progress can be marked as complete')

            job.status = JOB_STATUS_PENDING_CONFIRMATION
            job.save(update_fields=['status', 'updated_at'])

            self.notifier.notify_user(job.requester_id, 'job_marked_complete', {
                'title': 'Job marked as complete',
                'message': f"The provider marked '{job.title}' as complete. Please confirm.",
                'related_id': str(job.pk),
                'related_type': 'JOB',
                'job_id': job.pk,
            })

        logger.info(f"Job {job.pk} marked complete by provider {_user_id(provider)}")
        return job

    def confirm_job_complete(self, job_id, requester):
        with transaction.atomic():
            job = self._get_owned_job(job_id, requester, 'Only the job owner can confirm completion', lock=True)
            if job.status not in JOB_CONFIRMABLE_STATUSES:
                raise ValidationError('Job is not awaiting completion')

            job.status = JOB_STATUS_COMPLETED
            job.completed_at = timezone.now()
            job.save(update_fields=['status', 'completed_at', 'updated_at'])

            if job.assigned_provider_id:
                Provider.objects.filter(user_id=job.assigned_provider_id).update(
                    completed_jobs_count=F('completed_jobs_count') + 1
                )
                self.notifier.notify_user(job.assigned_provider_id, 'job_completed', {
                    'title': 'Job completed',
                    'message': f"The customer confirmed '{job.title}' as completed.",
                    'related_id': str(job.pk),
                    'related_type': 'JOB',
                    'job_id': job.pk,
                })

        logger.info(f"Job {job.pk} completed")
        return job

    def delete_job(self, job_id, requester):
        with transaction.atomic():
            job = self._get_owned_job(job_id, requester, 'You can only delete your own jobs', lock=True)
            job.deleted_at = timezone.now()
            job.status = JOB_STATUS_CANCELLED
            job.save(update_fields=['deleted_at', 'status', 'updated_at'])
        logger.info(f"Job {job.pk} deleted")
        return job

    def create_review(self, job_id, requester, rating, comment=None):
        if isinstance(rating, bool) or not isinstance(rating, int) or not 1 <= rating <= 5:
            raise ValidationError('Rating must be a whole number between 1 and 5')

        with transaction.atomic():
            job = self._get_owned_job(job_id, requester, 'Only the job owner can leave a review', lock=True)
            if job.status != JOB_STATUS_COMPLETED:
                raise ValidationError('Only completed jobs can be reviewed')
            if job.assigned_provider_id is None:
                raise ValidationError('Job has no assigned provider')
            if Review.objects.filter(job=job).exists():
                raise ConflictError('This job has already been reviewed')

            try:
                with transaction.atomic():
                    review = Review.objects.create(
                        job=job,
                        reviewer_id=job.requester_id,
                        provider_id=job.assigned_provider_id,
                        rating=rating,
                        comment=comment,
                    )
            except IntegrityError:
                raise ConflictError('This job has already been reviewed')

            stats = Review.objects.filter(provider_id=job.assigned_provider_id).aggregate(
                average=Avg('rating'), total=Count('id')
            )
            Provider.objects.filter(user_id=job.assigned_provider_id).update(
                rating_average=round(Decimal(str(stats['average'] or 0)), 2),
                total_reviews=stats['total'],
            )

            self.notifier.notify_user(job.assigned_provider_id, 'new_review', {
                'title': 'New review',
                'message': f"You received a {rating}-star review for '{job.title}'.",
                'related_id': str(job.pk),
                'related_type': 'JOB',
                'job_id': job.pk,
                'rating': rating,
            })

        logger.info(f"Review {review.pk} created for job {job.pk}")
        return review

    def list_jobs(self, status=JOB_STATUS_OPEN, category=None, city=None, district=None, page=1, limit=None):
        limit = min(max(int(limit or settings.JOBS_PAGE_SIZE), 1), MAX_PAGE_SIZE)
        page = max(int(page or 1), 1)

        jobs = JobPost.objects.visible().filter(status=status or JOB_STATUS_OPEN)
        if category:
            jobs = jobs.filter(category=category)
        if city:
            jobs = jobs.filter(city=city)
        if district:
            jobs = jobs.filter(district=district)

        total = jobs.count()
        offset = (page - 1) * limit
        return {
            'jobs': list(jobs.select_related('requester')[offset:offset + limit]),
            'pagination': {
                'page': page,
                'limit': limit,
                'total': total,
                'total_pages': (total + limit - 1) // limit,
            },
        }

    def get_job(self, job_id, viewer=None):
        job = JobPost.objects.visible().select_related('requester').filter(pk=job_id).first()
        if job is None:
            raise NotFoundError('Job post not found')

        if viewer is not None and getattr(viewer, 'is_authenticated', False) and not job.is_owned_by(viewer):
            try:
                with transaction.atomic():
                    JobPost.objects.filter(pk=job.pk).update(view_count=F('view_count') + 1)
                job.view_count += 1
            except DatabaseError as e:
                logger.warning(f"Failed to increment view count for job {job.pk}: {str(e)}")
        return job

    def my_jobs(self, user):
        jobs = JobPost.objects.visible().select_related('requester')
        if getattr(user, 'is_requester', False):
            return jobs.filter(requester=user)
        if getattr(user, 'is_provider', False):
            return jobs.filter(bids__provider=user).distinct()
        return jobs.none()
