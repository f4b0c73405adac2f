from rest_framework.views import APIView
from rest_framework.response import Response
from rest_framework import status
from rest_framework.permissions import IsAuthenticated, AllowAny
from drf_yasg.utils import swagger_auto_schema
from drf_yasg import openapi

from apps.notifications.router import get_notifier
from core.utils import IsProvider, IsRequester, envelope
from .serializers import (
    JobPostSerializer, JobPostWriteSerializer, JobCancelSerializer,
    ReviewSerializer, ReviewCreateSerializer, JobListQuerySerializer
)
from .services import JobService

def job_service():
    return JobService(get_notifier())

job_id_param = openapi.Parameter('pk', openapi.IN_PATH, type=openapi.TYPE_INTEGER, description='Job ID')

pagination_schema = openapi.Schema(
    type=openapi.TYPE_OBJECT,
    properties={
        'page': openapi.Schema(type=openapi.TYPE_INTEGER),
        'limit': openapi.Schema(type=openapi.TYPE_INTEGER),
        'total': openapi.Schema(type=openapi.TYPE_INTEGER),
        'total_pages': openapi.Schema(type=openapi.TYPE_INTEGER),
    }
)

class JobListCreateView(APIView):

    def get_permissions(self):
        if self.request.method == 'POST':
            return [IsAuthenticated(), IsRequester()]
        return [AllowAny()]

    @swagger_auto_schema(
        operation_description="List jobs, newest first. Defaults to open jobs.",
        query_serializer=JobListQuerySerializer,
        responses={
            200: openapi.Response(
                description='Paginated jobs',
                schema=openapi.Schema(
                    type=openapi.TYPE_OBJECT,
                    properties={
                        'jobs': openapi.Schema(type=openapi.TYPE_ARRAY, items=openapi.Schema(type=openapi.TYPE_OBJECT)),
                        'pagination': pagination_schema,
                    }
                )
            )
        }
    )
    def get(self, request):
        query = JobListQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)
        result = job_service().list_jobs(**query.validated_data)
        return Response(envelope({
            'jobs': JobPostSerializer(result['jobs'], many=True).data,
            'pagination': result['pagination'],
        }))

    @swagger_auto_schema(
        operation_description="Create a job. Providers serving the job's area and category are notified.",
        request_body=JobPostWriteSerializer,
        responses={
            201: JobPostSerializer,
            400: 'Bad Request',
            401: 'Unauthorized',
            403: 'Forbidden'
        }
    )
    def post(self, request):
        serializer = JobPostWriteSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        job = job_service().create_job(request.user, serializer.validated_data)
        return Response(envelope(JobPostSerializer(job).data), status=status.HTTP_201_CREATED)

class MyJobListView(APIView):
    permission_classes = [IsAuthenticated]

    @swagger_auto_schema(
        operation_description="Requesters get their own jobs; providers get the jobs they bid on.",
        responses={200: JobPostSerializer(many=True), 401: 'Unauthorized'}
    )
    def get(self, request):
        jobs = job_service().my_jobs(request.user)
        return Response(envelope(JobPostSerializer(jobs, many=True).data))

class JobDetailView(APIView):

    def get_permissions(self):
        if self.request.method in ('PUT', 'DELETE'):
            return [IsAuthenticated(), IsRequester()]
        return [AllowAny()]

    @swagger_auto_schema(
        operation_description="Retrieve a job. Views by anyone but the owner are counted.",
        manual_parameters=[job_id_param],
        responses={200: JobPostSerializer, 404: 'Not Found'}
    )
    def get(self, request, pk):
        job = job_service().get_job(pk, viewer=request.user)
        return Response(envelope(JobPostSerializer(job).data))

    @swagger_auto_schema(
        operation_description="Update an open or draft job.",
        manual_parameters=[job_id_param],
        request_body=JobPostWriteSerializer,
        responses={
            200: JobPostSerializer,
            400: 'Bad Request',
            401: 'Unauthorized',
            403: 'Forbidden',
            404: 'Not Found'
        }
    )
    def put(self, request, pk):
        serializer = JobPostWriteSerializer(data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        job = job_service().update_job(pk, request.user, serializer.validated_data)
        return Response(envelope(JobPostSerializer(job).data))

    @swagger_auto_schema(
        operation_description="Soft delete a job.",
        manual_parameters=[job_id_param],
        responses={200: 'Deleted', 401: 'Unauthorized', 403: 'Forbidden', 404: 'Not Found'}
    )
    def delete(self, request, pk):
        job_service().delete_job(pk, request.user)
        return Response(envelope({'message': 'Job deleted successfully'}))

class JobCancelView(APIView):
    permission_classes = [IsAuthenticated, IsRequester]

    @swagger_auto_schema(
        operation_description="Cancel a job. Every pending or accepted bid gets its credit refunded.",
        manual_parameters=[job_id_param],
        request_body=JobCancelSerializer,
        responses={200: JobPostSerializer, 400: 'Bad Request', 403: 'Forbidden', 404: 'Not Found'}
    )
    def post(self, request, pk):
        serializer = JobCancelSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        job = job_service().cancel_job(pk, request.user, reason=serializer.validated_data.get('reason'))
        return Response(envelope(JobPostSerializer(job).data))

class JobMarkCompleteView(APIView):
    permission_classes = [IsAuthenticated, IsProvider]

    @swagger_auto_schema(
        operation_description="Assigned provider marks the job as done; the requester must confirm.",
        manual_parameters=[job_id_param],
        responses={200: JobPostSerializer, 400: 'Bad Request', 403: 'Forbidden', 404: 'Not Found'}
    )
    def post(self, request, pk):
        job = job_service().mark_job_complete(pk, request.user)
        return Response(envelope(JobPostSerializer(job).data))

class JobConfirmCompleteView(APIView):
    permission_classes = [IsAuthenticated, IsRequester]

    @swagger_auto_schema(
        operation_description="Requester confirms the job is completed.",
        manual_parameters=[job_id_param],
        responses={200: JobPostSerializer, 400: 'Bad Request', 403: 'Forbidden', 404: 'Not Found'}
    )
    def post(self, request, pk):
        job = job_service().confirm_job_complete(pk, request.user)
        return Response(envelope(JobPostSerializer(job).data))

class JobReviewView(APIView):
    permission_classes = [IsAuthenticated, IsRequester]

    @swagger_auto_schema(
        operation_description="Review the provider of a completed job. One review per job.",
        manual_parameters=[job_id_param],
        request_body=ReviewCreateSerializer,
        responses={
            201: ReviewSerializer,
            400: 'Bad Request',
            403: 'Forbidden',
            404: 'Not Found',
            409: 'Already reviewed'
        }
    )
    def post(self, request, pk):
        serializer = ReviewCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        review = job_service().create_review(
            pk, request.user, serializer.validated_data['rating'], serializer.validated_data.get('comment')
        )
        return Response(envelope(ReviewSerializer(review).data), status=status.HTTP_201_CREATED)
