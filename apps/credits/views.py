from rest_framework.views import APIView
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from drf_yasg.utils import swagger_auto_schema
from drf_yasg import openapi

from core.constants import CREDIT_PACKAGES
from core.utils import IsProvider, envelope
from .serializers import CreditLedgerEntrySerializer, CreditPurchaseSerializer
from .services import CreditLedger

class CreditBalanceView(APIView):
    permission_classes = [IsAuthenticated, IsProvider]

    @swagger_auto_schema(operation_description="Current credit balance of the authenticated provider.")
    def get(self, request):
        return Response(envelope({'balance': CreditLedger().get_balance(request.user)}))

class CreditPackageListView(APIView):
    permission_classes = [IsAuthenticated]

    @swagger_auto_schema(operation_description="Available credit packages.")
    def get(self, request):
        packages = [{'id': package_id, **package} for package_id, package in CREDIT_PACKAGES.items()]
        return Response(envelope(packages))

class CreditPurchaseView(APIView):
    permission_classes = [IsAuthenticated, IsProvider]

    @swagger_auto_schema(
        operation_description="Buy a credit package. Payment is not processed; credits are added to the ledger.",
        request_body=openapi.Schema(
            type=openapi.TYPE_OBJECT,
            required=['package_id'],
            properties={
                'package_id': openapi.Schema(type=openapi.TYPE_STRING, enum=list(CREDIT_PACKAGES.keys())),
            },
        ),
        responses={200: 'Credits added', 400: 'Bad Request', 401: 'Unauthorized', 403: 'Forbidden'}
    )
    def post(self, request):
        serializer = CreditPurchaseSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        entry = CreditLedger().purchase(request.user, serializer.validated_data['package_id'])
        return Response(envelope({'credits_added': entry.amount, 'new_balance': entry.balance_after}))

class CreditTransactionListView(APIView):
    permission_classes = [IsAuthenticated, IsProvider]

    @swagger_auto_schema(
        operation_description="Latest 50 credit ledger entries, newest first.",
        responses={200: CreditLedgerEntrySerializer(many=True)}
    )
    def get(self, request):
        entries = CreditLedger().history(request.user)
        return Response(envelope(CreditLedgerEntrySerializer(entries, many=True).data))
