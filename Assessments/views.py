import logging

from django.db import transaction
from django.db.models import Q
from rest_framework import mixins, status, viewsets
from rest_framework.decorators import action
from rest_framework.exceptions import APIException
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from Accounts.permissions import IsRecruiter
from Assessments import attempts as attempt_service
from Assessments import invites as invite_service
from Assessments.models import AssessmentTemplate, JobAssessment
from Assessments.serializers import (
    AssessmentInviteSerializer,
    AssessmentTemplateCreateSerializer,
    AssessmentTemplateSerializer,
)
from Taskio.utils import create_response, error_response, get_client_ip


class AssessmentTemplateViewSet(mixins.ListModelMixin, mixins.CreateModelMixin, viewsets.GenericViewSet):
    serializer_class = AssessmentTemplateSerializer
    lookup_value_regex = r"\d+"

    def get_permissions(self):
        if self.action in ("create", "cancel_invite"):
            return [IsRecruiter()]
        return [IsAuthenticated()]

    def get_serializer_class(self):
        if self.action == "create":
            return AssessmentTemplateCreateSerializer
        return AssessmentTemplateSerializer

    def get_queryset(self):
        if getattr(self, "swagger_fake_view", False):
            return AssessmentTemplate.objects.none()
        user = self.request.user
        visible = Q(company__isnull=True)
        if user.company_id:
            visible |= Q(company_id=user.company_id)
        if self.action == "retrieve":
            # candidates may open company templates assigned to a job
            visible |= Q(id__in=JobAssessment.objects.values("template_id"))
        return AssessmentTemplate.objects.filter(visible, is_active=True).order_by("title", "id")

    def perform_create(self, serializer):
        serializer.save(company=self.request.user.company)

    def retrieve(self, request, pk=None):
        template = self.get_object()
        data = AssessmentTemplateSerializer(template).data
        data["user_status"] = attempt_service.user_status(request.user, template)
        return Response(data)

    @action(detail=True, methods=["post"])
    @transaction.atomic
    def start(self, request, pk=None):
        try:
            result = attempt_service.start_attempt(
                int(pk),
                request.user,
                application_id=request.data.get("application") or None,
                token=request.data.get("token") or None,
                ip_address=get_client_ip(request),
                user_agent=request.META.get("HTTP_USER_AGENT") or "unknown",
            )
            return create_response(True, "Attempt started", result)
        except APIException as e:
            transaction.set_rollback(True)
            return error_response(e)
        except Exception as e:
            transaction.set_rollback(True)
            logging.exception("[ASSESSMENT] start failed for template %s", pk)
            return create_response(False, str(e), status_code=status.HTTP_500_INTERNAL_SERVER_ERROR)

    @action(detail=False, methods=["get"], url_path="my-invites")
    def my_invites(self, request):
        rows = invite_service.candidate_invites(request.user)
        counts = invite_service.summarize_ui_states(state for _, _, state in rows)
        badge = counts["pending"] + counts["inProgress"]
        if request.query_params.get("mode") == "count":
            return Response({"badge": badge}, headers={"Cache-Control": "no-store"})

        data = []
        for invite, attempt, state in rows:
            item = AssessmentInviteSerializer(invite).data
            item["ui_state"] = state
            item["attempt"] = None if attempt is None else {
                "id": attempt.id,
                "status": attempt.status,
                "expires_at": attempt.expires_at,
                "total_score": attempt.total_score,
            }
            data.append(item)
        return Response(
            {"invites": data, "counts": counts, "total": len(data), "badge": badge},
            headers={"Cache-Control": "no-store"},
        )

    @action(detail=False, methods=["post"], url_path=r"invites/(?P<invite_id>\d+)/cancel")
    def cancel_invite(self, request, invite_id=None):
        try:
            invite = invite_service.cancel_invite(int(invite_id), request.user.company_id)
        except APIException as e:
            return error_response(e)
        return create_response(True, "Invite cancelled", AssessmentInviteSerializer(invite).data)


class AttemptViewSet(viewsets.ViewSet):
    lookup_value_regex = r"\d+"

    @action(detail=True, methods=["post"])
    @transaction.atomic
    def answer(self, request, pk=None):
        try:
            answer = attempt_service.save_answer(
                int(pk),
                request.user,
                request.data.get("question"),
                request.data.get("selected_options"),
                request.data.get("time_spent"),
            )
            return create_response(True, "Answer saved", {"answer_id": answer.id})
        except APIException as e:
            transaction.set_rollback(True)
            return error_response(e)
        except Exception as e:
            transaction.set_rollback(True)
            logging.exception("[ASSESSMENT] saving answer failed for attempt %s", pk)
            return create_response(False, str(e), status_code=status.HTTP_500_INTERNAL_SERVER_ERROR)

    @action(detail=True, methods=["patch"])
    def flags(self, request, pk=None):
        try:
            flags = attempt_service.record_flag(int(pk), request.user, request.data.get("event"), request.data.get("meta"))
        except APIException as e:
            return error_response(e)
        return create_response(True, "Flag recorded", {"flags": flags})

    @action(detail=True, methods=["get"])
    def state(self, request, pk=None):
        try:
            return Response(attempt_service.attempt_state(int(pk), request.user), headers={"Cache-Control": "no-store"})
        except APIException as e:
            return error_response(e)

    @action(detail=True, methods=["post"])
    @transaction.atomic
    def submit(self, request, pk=None):
        try:
            result = attempt_service.submit_attempt(int(pk), request.user)
            return create_response(True, "Assessment submitted", result)
        except APIException as e:
            transaction.set_rollback(True)
            return error_response(e)
        except Exception as e:
            transaction.set_rollback(True)
            logging.exception("[ASSESSMENT] submit failed for attempt %s", pk)
            return create_response(False, str(e), status_code=status.HTTP_500_INTERNAL_SERVER_ERROR)

    @action(detail=True, methods=["post"], permission_classes=[IsRecruiter])
    def evaluate(self, request, pk=None):
        try:
            attempt = attempt_service.evaluate_attempt(int(pk), request.user, str(request.data.get("notes") or ""))
        except APIException as e:
            return error_response(e)
        return create_response(True, "Attempt evaluated", {"id": attempt.id, "status": attempt.status})

    @action(detail=True, methods=["get"])
    def results(self, request, pk=None):
        try:
            return Response(attempt_service.attempt_results(int(pk), request.user), headers={"Cache-Control": "no-store"})
        except APIException as e:
            return error_response(e)
