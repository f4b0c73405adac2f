from django.urls import path
from .views import (
    JobListCreateView, MyJobListView, JobDetailView, JobCancelView,
    JobMarkCompleteView, JobConfirmCompleteView, JobReviewView
)

urlpatterns = [
    path('', JobListCreateView.as_view(), name='job_list_create'),
    path('mine/', MyJobListView.as_view(), name='my_jobs'),
    path('<int:pk>/', JobDetailView.as_view(), name='job_detail'),
    path('<int:pk>/cancel/', JobCancelView.as_view(), name='job_cancel'),
    path('<int:pk>/mark-complete/', JobMarkCompleteView.as_view(), name='job_mark_complete'),
    path('<int:pk>/confirm-complete/', JobConfirmCompleteView.as_view(), name='job_confirm_complete'),
    path('<int:pk>/review/', JobReviewView.as_view(), name='job_review'),
]
