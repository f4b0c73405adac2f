import logging

from django.db import transaction
from django.db.models import Sum

from core.constants import CREDIT_PACKAGES, CREDIT_PURCHASE, CREDIT_REFUND, BID_COST
from core.exceptions import InsufficientCreditError, ValidationError
from .models import CreditAccount, CreditLedgerEntry

logger = logging.getLogger(__name__)


def _pk(provider):
    return getattr(provider, 'pk', provider)


class CreditLedger:
    """
    Single write path for provider credits.

    Every change locks the provider's account row, moves the running balance
    and appends one ledger entry carrying the resulting balance, so replaying
    the entries in creation order always reproduces the balance.
    """

    def get_balance(self, provider):
        balance = CreditAccount.objects.filter(provider_id=_pk(provider)).values_list('balance', flat=True).first()
        return balance or 0

    def lock_account(self, provider):
        """Lock (creating if needed) the provider's account row. Call inside transaction.atomic()."""
        account, _ = CreditAccount.objects.select_for_update().get_or_create(provider_id=_pk(provider))
        return account

    def apply_delta(self, provider, amount, transaction_type, related_id=None, description=''):
        with transaction.atomic():
            account = self.lock_account(provider)
            new_balance = account.balance + amount
            if new_balance < 0:
                raise InsufficientCreditError()

            account.balance = new_balance
            account.save(update_fields=['balance', 'updated_at'])
            entry = CreditLedgerEntry.objects.create(
                provider_id=account.provider_id,
                amount=amount,
                transaction_type=transaction_type,
                related_id=str(related_id) if related_id is not None else None,
                description=description,
                balance_after=new_balance,
            )
        logger.info(f"Credit {transaction_type} {amount:+d} for provider {account.provider_id}, balance {new_balance}")
        return entry

    def refund_bid(self, bid, description=''):
        """
        Give back the credit spent on ``bid``. A bid is refunded at most once:
        if a REFUND for it already exists nothing is written and None is returned.
        """
        with transaction.atomic():
            self.lock_account(bid.provider_id)
            already_refunded = CreditLedgerEntry.objects.filter(
                provider_id=bid.provider_id,
                transaction_type=CREDIT_REFUND,
                related_id=str(bid.pk),
            ).exists()
            if already_refunded:
                logger.info(f"Bid {bid.pk} already refunded, skipping")
                return None
            return self.apply_delta(
                bid.provider_id, BID_COST, CREDIT_REFUND,
                related_id=bid.pk,
                description=description or f"Refund for bid {bid.pk}",
            )

    def purchase(self, provider, package_id):
        package = CREDIT_PACKAGES.get(package_id)
        if package is None:
            raise ValidationError('Invalid credit package')
        return self.apply_delta(
            provider, package['credits'], CREDIT_PURCHASE,
            description=f"{package['credits']} credits purchased ({package['name']})",
        )

    def history(self, provider, limit=50):
        return CreditLedgerEntry.objects.filter(provider_id=_pk(provider)).order_by('-created_at', '-id')[:limit]

    def replay(self, provider):
        total = CreditLedgerEntry.objects.filter(provider_id=_pk(provider)).aggregate(total=Sum('amount'))['total']
        return total or 0
