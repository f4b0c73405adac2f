from rest_framework.views import APIView
from rest_framework.response import Response
from rest_framework import status
from rest_framework.permissions import IsAuthenticated, AllowAny
from drf_yasg.utils import swagger_auto_schema
from drf_yasg import openapi

from apps.notifications.router import get_notifier
from core.utils import IsProvider, IsRequester, envelope
from .serializers import BidSerializer, BidCreateSerializer, BidUpdateSerializer
from .services import BidService

def bid_service():
    return BidService(get_notifier())

bid_id_param = openapi.Parameter('pk', openapi.IN_PATH, type=openapi.TYPE_INTEGER, description='Bid ID')

class BidCreateView(APIView):
    permission_classes = [IsAuthenticated, IsProvider]

    @swagger_auto_schema(
        operation_description="Place a bid on an open job. Costs 1 credit.",
        request_body=BidCreateSerializer,
        responses={
            201: BidSerializer,
            400: 'Bad Request (validation, duplicate bid or insufficient credit)',
            401: 'Unauthorized',
            403: 'Forbidden',
            404: 'Job Not Found'
        }
    )
    def post(self, request):
        serializer = BidCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        bid = bid_service().create_bid(
            data['job_id'],
            request.user,
            data['amount'],
            data['estimated_duration'],
            data['message'],
            estimated_start_date=data.get('estimated_start_date'),
        )
        return Response(envelope(BidSerializer(bid).data), status=status.HTTP_201_CREATED)

class JobBidListView(APIView):
    permission_classes = [AllowAny]

    @swagger_auto_schema(
        operation_description="List bids for a job. The owner sees every bid, other providers only their own.",
        responses={200: BidSerializer(many=True), 404: 'Job Not Found'}
    )
    def get(self, request, job_id):
        viewer = request.user if request.user.is_authenticated else None
        bids = bid_service().job_bids(job_id, viewer)
        return Response(envelope(BidSerializer(bids, many=True).data))

class MyBidListView(APIView):
    permission_classes = [IsAuthenticated, IsProvider]

    @swagger_auto_schema(
        operation_description="List the authenticated provider's bids.",
        responses={200: BidSerializer(many=True), 401: 'Unauthorized'}
    )
    def get(self, request):
        bids = bid_service().my_bids(request.user)
        return Response(envelope(BidSerializer(bids, many=True).data))

class BidDetailView(APIView):
    permission_classes = [IsAuthenticated, IsProvider]

    @swagger_auto_schema(
        operation_description="Update a pending bid.",
        manual_parameters=[bid_id_param],
        request_body=BidUpdateSerializer,
        responses={200: BidSerializer, 400: 'Bad Request', 403: 'Forbidden', 404: 'Not Found'}
    )
    def put(self, request, pk):
        serializer = BidUpdateSerializer(data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        bid = bid_service().update_bid(pk, request.user, serializer.validated_data)
        return Response(envelope(BidSerializer(bid).data))

    @swagger_auto_schema(
        operation_description="Delete a pending bid. The spent credit is not refunded.",
        manual_parameters=[bid_id_param],
        responses={200: 'Deleted', 400: 'Bad Request', 403: 'Forbidden', 404: 'Not Found'}
    )
    def delete(self, request, pk):
        bid_service().delete_bid(pk, request.user)
        return Response(envelope({'message': 'Bid deleted successfully'}))

class BidAcceptView(APIView):
    permission_classes = [IsAuthenticated, IsRequester]

    @swagger_auto_schema(
        operation_description="Accept a pending bid. Every other pending bid on the job is rejected.",
        manual_parameters=[bid_id_param],
        responses={200: BidSerializer, 400: 'Bad Request', 403: 'Forbidden', 404: 'Not Found'}
    )
    def post(self, request, pk):
        bid = bid_service().accept_bid(pk, request.user)
        return Response(envelope(BidSerializer(bid).data))

class BidRejectView(APIView):
    permission_classes = [IsAuthenticated, IsRequester]

    @swagger_auto_schema(
        operation_description="Reject a pending bid.",
        manual_parameters=[bid_id_param],
        responses={200: BidSerializer, 400: 'Bad Request', 403: 'Forbidden', 404: 'Not Found'}
    )
    def post(self, request, pk):
        bid = bid_service().reject_bid(pk, request.user)
        return Response(envelope(BidSerializer(bid).data))

class BidWithdrawView(APIView):
    permission_classes = [IsAuthenticated, IsProvider]

    @swagger_auto_schema(
        operation_description="Withdraw a pending bid. The spent credit is not refunded.",
        manual_parameters=[bid_id_param],
        responses={200: BidSerializer, 400: 'Bad Request', 403: 'Forbidden', 404: 'Not Found'}
    )
    def post(self, request, pk):
        bid = bid_service().withdraw_bid(pk, request.user)
        return Response(envelope(BidSerializer(bid).data))
