import logging

from django.db import IntegrityError, transaction
from django.db.models import Q
from django.utils.timezone import now
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.exceptions import APIException
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response

from Accounts.permissions import IsCandidate, IsRecruiter
from Assessments import invites as invite_service
from Assessments.models import AssessmentTemplate, JobAssessment
from Assessments.serializers import AssessmentInviteSerializer, JobAssessmentSerializer
from Billing.plans import get_company_plan, max_active_jobs
from Jobs.agent import ai_suggest_assessments_for_job
from Jobs.models import Application, Job
from Jobs.recommender import rank_applicants
from Jobs.serializers import ApplicationCreateSerializer, ApplicationSerializer, JobSerializer
from Notifications.service import notify
from Taskio.exceptions import Conflict
from Taskio.utils import create_response, error_response

PUBLIC_ACTIONS = ("list", "retrieve")


def ensure_can_open_job(company, exclude_job_id=None):
    limit = max_active_jobs(company)
    if limit is None:
        return
    open_jobs = Job.objects.filter(company=company, status="OPEN")
    if exclude_job_id:
        open_jobs = open_jobs.exclude(id=exclude_job_id)
    count = open_jobs.count()
    if count >= limit:
        plan = get_company_plan(company)
        raise Conflict(
            f"Your {plan['name']} plan allows {limit} open jobs. Close a job or upgrade your plan.",
            code="PLAN_LIMIT_REACHED",
            error_code="PLAN_LIMIT_REACHED",
            active_jobs_count=count,
            max_active_jobs=limit,
        )


def _clamp_score(value):
    if value in (None, ""):
        return None
    try:
        return max(0, min(100, int(value)))
    except (TypeError, ValueError):
        return None


class JobViewSet(viewsets.ModelViewSet):
    serializer_class = JobSerializer
    lookup_value_regex = r"\d+"

    def get_permissions(self):
        if self.action in PUBLIC_ACTIONS:
            return [AllowAny()]
        return [IsRecruiter()]

    def get_queryset(self):
        if getattr(self, "swagger_fake_view", False):
            return Job.objects.none()
        user = self.request.user
        if self.action == "list":
            return self._public_jobs()
        if self.action == "retrieve":
            visible = Q(status="OPEN")
            if user.is_authenticated and user.company_id:
                visible |= Q(company_id=user.company_id)
            return Job.objects.filter(visible).select_related("company")
        return Job.objects.filter(company_id=user.company_id).select_related("company")

    def _public_jobs(self):
        params = self.request.query_params
        qs = Job.objects.filter(status="OPEN").select_related("company")

        q = (params.get("q") or "").strip()
        if q:
            qs = qs.filter(
                Q(title__icontains=q) | Q(company__name__icontains=q) | Q(skills__icontains=q)
            )
        location = (params.get("location") or "").strip()
        if location:
            qs = qs.filter(location__icontains=location)
        remote = params.get("remote")
        if remote in ("true", "false"):
            qs = qs.filter(remote=remote == "true")
        if params.get("seniority"):
            qs = qs.filter(seniority=params["seniority"].upper())
        if params.get("employment_type"):
            qs = qs.filter(employment_type=params["employment_type"].upper())
        return qs.order_by("-created_at", "-id")

    @transaction.atomic
    def create(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        try:
            company = request.user.company
            if serializer.validated_data.get("status", "OPEN") == "OPEN":
                ensure_can_open_job(company)
            job = serializer.save(company=company, recruiter=request.user)
            return create_response(True, "Job created", JobSerializer(job).data, status_code=status.HTTP_201_CREATED)
        except APIException as e:
            transaction.set_rollback(True)
            return error_response(e)
        except Exception as e:
            transaction.set_rollback(True)
            logging.exception("Job creation failed")
            return create_response(False, str(e), status_code=status.HTTP_500_INTERNAL_SERVER_ERROR)

    @transaction.atomic
    def update(self, request, *args, **kwargs):
        job = self.get_object()
        serializer = self.get_serializer(job, data=request.data, partial=kwargs.pop("partial", False))
        serializer.is_valid(raise_exception=True)
        try:
            if serializer.validated_data.get("status") == "OPEN" and job.status != "OPEN":
                ensure_can_open_job(job.company, exclude_job_id=job.id)
            job = serializer.save()
            return create_response(True, "Job updated", JobSerializer(job).data)
        except APIException as e:
            transaction.set_rollback(True)
            return error_response(e)

    def destroy(self, request, *args, **kwargs):
        job = self.get_object()
        job.delete()
        return create_response(True, "Job deleted", status_code=status.HTTP_200_OK)

    @action(detail=True, methods=["post"], url_path="status")
    @transaction.atomic
    def change_status(self, request, pk=None):
        job = self.get_object()
        new_status = str(request.data.get("status") or "").upper()
        if new_status not in dict(Job.STATUS):
            return create_response(False, "Invalid status", status_code=status.HTTP_400_BAD_REQUEST)
        try:
            if new_status == "OPEN" and job.status != "OPEN":
                ensure_can_open_job(job.company, exclude_job_id=job.id)
        except APIException as e:
            return error_response(e)
        job.status = new_status
        job.save(update_fields=["status", "updated_at"])
        return create_response(True, "Job status updated", JobSerializer(job).data)

    @action(detail=True, methods=["get", "post"])
    def assessments(self, request, pk=None):
        job = self.get_object()
        if request.method == "GET":
            items = JobAssessment.objects.filter(job=job).select_related("template")
            return Response(JobAssessmentSerializer(items, many=True).data)

        template_id = request.data.get("template")
        template = (
            AssessmentTemplate.objects.filter(id=template_id, is_active=True)
            .filter(Q(company__isnull=True) | Q(company_id=job.company_id))
            .first()
            if str(template_id or "").isdigit() else None
        )
        if not template:
            return create_response(False, "Invalid template", status_code=status.HTTP_400_BAD_REQUEST)
        if JobAssessment.objects.filter(job=job, template=template).exists():
            return create_response(False, "Assessment already assigned to this job", status_code=status.HTTP_409_CONFLICT)
        try:
            with transaction.atomic():
                item = JobAssessment.objects.create(
                    job=job,
                    template=template,
                    is_required=bool(request.data.get("is_required", True)),
                    min_score=_clamp_score(request.data.get("min_score")),
                )
        except IntegrityError:
            return create_response(False, "Assessment already assigned to this job", status_code=status.HTTP_409_CONFLICT)
        return create_response(True, "Assessment assigned", JobAssessmentSerializer(item).data, status_code=status.HTTP_201_CREATED)

    @action(detail=True, methods=["delete"], url_path=r"assessments/(?P<job_assessment_id>\d+)")
    def remove_assessment(self, request, pk=None, job_assessment_id=None):
        job = self.get_object()
        deleted, _ = JobAssessment.objects.filter(job=job, id=job_assessment_id).delete()
        if not deleted:
            return create_response(False, "Assessment not found", status_code=status.HTTP_404_NOT_FOUND)
        return create_response(True, "Assessment removed")

    @action(detail=True, methods=["get"])
    def ranking(self, request, pk=None):
        job = self.get_object()
        ranked = rank_applicants(job)
        return Response([
            {
                "application": ApplicationSerializer(application).data,
                "fit_score": fit,
                "breakdown": breakdown,
            }
            for application, fit, breakdown in ranked
        ])

    @action(detail=True, methods=["post"], url_path="suggest-assessments")
    def suggest_assessments(self, request, pk=None):
        job = self.get_object()
        payload = {
            "title": job.title,
            "description": job.description,
            "seniority": job.seniority,
            "skills": job.skills,
        }
        suggestions = ai_suggest_assessments_for_job(payload)
        return create_response(True, "Assessment suggestions", suggestions)


class ApplicationViewSet(viewsets.ReadOnlyModelViewSet):
    serializer_class = ApplicationSerializer
    lookup_value_regex = r"\d+"

    def get_permissions(self):
        if self.action == "create":
            return [IsCandidate()]
        if self.action in ("change_status", "interest", "assessment_invite"):
            return [IsRecruiter()]
        return [IsAuthenticated()]

    def get_queryset(self):
        if getattr(self, "swagger_fake_view", False):
            return Application.objects.none()
        user = self.request.user
        qs = Application.objects.select_related("job", "job__company", "candidate")
        if user.role in ("RECRUITER", "ADMIN") and user.company_id:
            qs = qs.filter(job__company_id=user.company_id)
            job_id = self.request.query_params.get("job")
            if self.action == "list" and job_id and job_id.isdigit():
                qs = qs.filter(job_id=job_id)
        else:
            qs = qs.filter(candidate=user)
        return qs.order_by("-created_at", "-id")

    def create(self, request, *args, **kwargs):
        serializer = ApplicationCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        job = Job.objects.filter(id=data["job"]).select_related("recruiter").first()
        if not job:
            return create_response(False, "Job not found", status_code=status.HTTP_404_NOT_FOUND)
        if job.status != "OPEN":
            return create_response(False, "This job is not accepting applications", status_code=status.HTTP_400_BAD_REQUEST)
        if Application.objects.filter(job=job, candidate=request.user).exists():
            return create_response(False, "You already applied to this job", status_code=status.HTTP_409_CONFLICT)

        try:
            with transaction.atomic():
                application = Application.objects.create(
                    job=job,
                    candidate=request.user,
                    cover_letter=data.get("cover_letter", ""),
                    resume_url=data.get("resume_url") or request.user.resume_url or "",
                )
        except IntegrityError:
            return create_response(False, "You already applied to this job", status_code=status.HTTP_409_CONFLICT)

        if job.recruiter:
            notify(
                job.recruiter,
                "NEW_APPLICATION",
                job_title=job.title,
                candidate_name=request.user.full_name,
                job_id=job.id,
            )
        return create_response(
            True, "Application submitted", ApplicationSerializer(application).data, status_code=status.HTTP_201_CREATED
        )

    @action(detail=True, methods=["post"], url_path="status")
    def change_status(self, request, pk=None):
        application = self.get_object()
        new_status = str(request.data.get("status") or "").upper()
        if new_status not in dict(Application.STATUS):
            return create_response(False, "Invalid status", status_code=status.HTTP_400_BAD_REQUEST)

        application.status = new_status
        fields = ["status", "updated_at"]
        if new_status == "REJECTED" and application.rejected_at is None:
            application.rejected_at = now()
            fields.append("rejected_at")
        application.save(update_fields=fields)

        notify(
            application.candidate,
            "APPLICATION_STATUS_CHANGE",
            job_title=application.job.title,
            status=application.get_status_display(),
        )
        return create_response(True, "Application status updated", ApplicationSerializer(application).data)

    @action(detail=True, methods=["patch"])
    def interest(self, request, pk=None):
        application = self.get_object()
        value = str(request.data.get("recruiter_interest") or "").strip().upper()
        if value not in dict(Application.INTEREST):
            return create_response(False, "Invalid recruiter_interest", status_code=status.HTTP_400_BAD_REQUEST)
        application.recruiter_interest = value
        application.save(update_fields=["recruiter_interest", "updated_at"])
        return create_response(True, "Interest updated", ApplicationSerializer(application).data)

    @action(detail=True, methods=["post"], url_path="assessment-invite")
    @transaction.atomic
    def assessment_invite(self, request, pk=None):
        application = self.get_object()
        try:
            template = invite_service.pick_template_for_application(application, request.data.get("template"))
            invite, attempt, reused = invite_service.ensure_invite_for_application(
                application, template, invited_by=request.user
            )
            return create_response(True, "Assessment invite sent", {
                "template": {"id": template.id, "title": template.title},
                "attempt": {"id": attempt.id, "status": attempt.status},
                "invite": AssessmentInviteSerializer(invite).data,
                "reused": reused,
            })
        except APIException as e:
            transaction.set_rollback(True)
            return error_response(e)
        except Exception as e:
            transaction.set_rollback(True)
            logging.exception("[ASSESSMENT INVITE] failed for application %s", pk)
            return create_response(False, str(e), status_code=status.HTTP_500_INTERNAL_SERVER_ERROR)
