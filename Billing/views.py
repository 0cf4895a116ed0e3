import logging

from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.exceptions import APIException
from rest_framework.permissions import AllowAny
from rest_framework.response import Response

from Accounts.permissions import IsPlatformAdmin, IsRecruiter
from Billing import credits as credit_service
from Billing import subscriptions
from Billing.models import Invoice
from Billing.plans import PLANS
from Billing.pricing import ASSESSMENT_PRICING, CREDIT_ADDON_PRICE, CREDIT_PACKAGES
from Billing.serializers import (
    AddCreditsSerializer,
    CreditLedgerEntrySerializer,
    InvoiceSerializer,
    TaxDataSerializer,
)
from Notifications.service import notify
from Taskio.utils import create_response, error_response


class BillingViewSet(viewsets.ViewSet):
    permission_classes = (IsRecruiter,)

    @action(detail=False, methods=["get"], permission_classes=[AllowAny])
    def plans(self, request):
        pricing = {
            t: {d: {k: float(v) for k, v in p._asdict().items()} for d, p in by_difficulty.items()}
            for t, by_difficulty in ASSESSMENT_PRICING.items()
        }
        return Response({"plans": PLANS, "assessment_pricing": pricing})

    @action(detail=False, methods=["post"], url_path="change-plan")
    def change_plan(self, request):
        plan_id = request.data.get("plan_id")
        if not plan_id:
            return create_response(False, "plan_id is required", status_code=status.HTTP_400_BAD_REQUEST)
        try:
            result = subscriptions.change_plan(request.user.company, str(plan_id))
        except APIException as e:
            return error_response(e)
        except Exception as e:
            logging.exception("[POST /billing/change-plan] failed")
            return create_response(False, str(e), status_code=status.HTTP_500_INTERNAL_SERVER_ERROR)

        if not result["changed"]:
            return create_response(True, "Already on this plan", result)

        plan_name = next(p["name"] for p in PLANS if p["id"] == result["plan_id"])
        notify(request.user, "SUBSCRIPTION_CHANGED", plan_name=plan_name)
        return create_response(True, "Plan changed", result)

    @action(detail=False, methods=["get", "patch"])
    def taxdata(self, request):
        company = request.user.company
        if request.method == "GET":
            return Response(TaxDataSerializer(company).data)
        serializer = TaxDataSerializer(company, data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        serializer.save()
        return create_response(True, "Tax data updated", serializer.data)

    @action(detail=False, methods=["get"])
    def invoices(self, request):
        invoices = Invoice.objects.filter(company=request.user.company)
        return Response(InvoiceSerializer(invoices, many=True).data)

    @action(detail=False, methods=["get"])
    def credits(self, request):
        company = request.user.company
        history = credit_service.get_credit_history(company.id, limit=50)
        return Response({
            "balance": credit_service.get_credit_balance(company),
            "packages": CREDIT_PACKAGES,
            "addon_price": CREDIT_ADDON_PRICE,
            "history": CreditLedgerEntrySerializer(history, many=True).data,
        })

    @action(detail=False, methods=["post"], url_path="credits/add", permission_classes=[IsPlatformAdmin])
    def add_credits(self, request):
        serializer = AddCreditsSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        company = credit_service.add_credits(data["company"].id, data["amount"], data["reason"])
        return create_response(True, "Credits added", {"company": company.id, "available": float(company.assessment_credits)})
