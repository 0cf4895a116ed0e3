import logging

from django.db import IntegrityError, transaction
from rest_framework import status, viewsets
from rest_framework.authtoken.models import Token
from rest_framework.decorators import action
from rest_framework.exceptions import APIException
from rest_framework.parsers import FormParser, JSONParser, MultiPartParser
from rest_framework.permissions import AllowAny, IsAuthenticated

from Accounts.models import User
from Accounts.permissions import IsRecruiter
from Accounts.serializers import (
    CandidateSignupSerializer,
    CompanySerializer,
    RecruiterSignupSerializer,
    SignInSerializer,
    UserSerializer,
)
from Accounts.tokens import consume_verification_token, send_verification_email
from Taskio.utils import create_response, error_response, extract_pdf_text


class AuthViewSet(viewsets.ViewSet):
    permission_classes = (AllowAny,)

    def _signup(self, request, serializer_class):
        serializer = serializer_class(data=request.data)
        serializer.is_valid(raise_exception=True)

        email = serializer.validated_data["email"]
        if User.objects.filter(email__iexact=email).exists():
            return create_response(False, "Email already registered", status_code=status.HTTP_409_CONFLICT)

        try:
            with transaction.atomic():
                user: User = serializer.save()
        except IntegrityError:
            return create_response(False, "Email already registered", status_code=status.HTTP_409_CONFLICT)

        try:
            send_verification_email(user)
        except Exception:
            logging.exception("[SIGNUP] verification email failed for %s", user.email)

        token, _ = Token.objects.get_or_create(user=user)
        return create_response(
            True,
            "Account created",
            {"user": UserSerializer(user).data, "token": token.key},
            status_code=status.HTTP_201_CREATED,
        )

    @action(detail=False, methods=["post"], url_path="signup/candidate")
    def signup_candidate(self, request):
        return self._signup(request, CandidateSignupSerializer)

    @action(detail=False, methods=["post"], url_path="signup/recruiter")
    def signup_recruiter(self, request):
        return self._signup(request, RecruiterSignupSerializer)

    @action(detail=False, methods=["post"])
    def signin(self, request):
        serializer = SignInSerializer(data=request.data, context={"request": request})
        serializer.is_valid(raise_exception=True)
        user = serializer.validated_data["user"]
        token, _ = Token.objects.get_or_create(user=user)
        return create_response(True, "Signed in", {"user": UserSerializer(user).data, "token": token.key})

    @action(detail=False, methods=["get"], url_path="check-email")
    def check_email(self, request):
        email = (request.query_params.get("email") or "").strip().lower()
        if not email:
            return create_response(False, "email is required", status_code=status.HTTP_400_BAD_REQUEST)
        return create_response(True, "ok", {"exists": User.objects.filter(email__iexact=email).exists()})

    @action(detail=False, methods=["post"])
    def verify(self, request):
        raw = str(request.data.get("token") or "")
        if not raw:
            return create_response(False, "token is required", status_code=status.HTTP_400_BAD_REQUEST)
        try:
            user = consume_verification_token(raw)
        except APIException as e:
            return error_response(e)
        return create_response(True, "Email verified", UserSerializer(user).data)

    @action(detail=False, methods=["post"], url_path="resend-verification", permission_classes=[IsAuthenticated])
    def resend_verification(self, request):
        user = request.user
        if user.email_verified_at:
            return create_response(True, "Email already verified")
        sent = send_verification_email(user)
        return create_response(sent, "Verification email sent" if sent else "Could not send verification email")


class ProfileViewSet(viewsets.ViewSet):
    permission_classes = (IsAuthenticated,)
    parser_classes = (JSONParser, MultiPartParser, FormParser)

    def list(self, request):
        return create_response(True, "ok", UserSerializer(request.user).data)

    @action(detail=False, methods=["patch"], url_path="update")
    def update_profile(self, request):
        serializer = UserSerializer(request.user, data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        serializer.save()
        return create_response(True, "Profile updated", serializer.data)

    @action(detail=False, methods=["post"], parser_classes=[MultiPartParser, FormParser])
    def resume(self, request):
        resume_file = request.data.get("resume")
        if not resume_file:
            return create_response(False, "Resume is required", status_code=status.HTTP_400_BAD_REQUEST)

        resume_text = extract_pdf_text(resume_file)
        if not resume_text:
            return create_response(False, "Could not read text from the PDF", status_code=status.HTTP_400_BAD_REQUEST)

        user = request.user
        user.resume_text = resume_text
        user.save(update_fields=["resume_text"])
        return create_response(True, "Resume processed", {"characters": len(resume_text)})

    @action(detail=False, methods=["get", "patch"], permission_classes=[IsRecruiter])
    def company(self, request):
        company = request.user.company
        if request.method == "GET":
            return create_response(True, "ok", CompanySerializer(company).data)
        serializer = CompanySerializer(company, data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        serializer.save()
        return create_response(True, "Company updated", serializer.data)
