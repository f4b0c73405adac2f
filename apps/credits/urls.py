from django.urls import path
from .views import CreditBalanceView, CreditPackageListView, CreditPurchaseView, CreditTransactionListView

urlpatterns = [
    path('balance/', CreditBalanceView.as_view(), name='credit_balance'),
    path('packages/', CreditPackageListView.as_view(), name='credit_packages'),
    path('purchase/', CreditPurchaseView.as_view(), name='credit_purchase'),
    path('transactions/', CreditTransactionListView.as_view(), name='credit_transactions'),
]
