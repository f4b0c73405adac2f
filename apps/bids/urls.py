from django.urls import path
from .views import (
    BidCreateView, JobBidListView, MyBidListView, BidDetailView,
    BidAcceptView, BidRejectView, BidWithdrawView
)

urlpatterns = [
    path('', BidCreateView.as_view(), name='bid_create'),
    path('job/<int:job_id>/', JobBidListView.as_view(), name='job_bids'),
    path('my-bids/', MyBidListView.as_view(), name='my_bids'),
    path('<int:pk>/', BidDetailView.as_view(), name='bid_detail'),
    path('<int:pk>/accept/', BidAcceptView.as_view(), name='bid_accept'),
    path('<int:pk>/reject/', BidRejectView.as_view(), name='bid_reject'),
    path('<int:pk>/withdraw/', BidWithdrawView.as_view(), name='bid_withdraw'),
]
