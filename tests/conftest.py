from decimal import Decimal

import pytest
from rest_framework.test import APIClient

from Accounts.models import Company, User
from Assessments.models import AssessmentQuestion, AssessmentTemplate, JobAssessment
from Jobs.models import Application, Job

PASSWORD = "Blue-Harbor-2931"


@pytest.fixture(autouse=True)
def fast_hashing(settings):
    settings.PASSWORD_HASHERS = ["django.contrib.auth.hashers.MD5PasswordHasher"]
    settings.EMAIL_BACKEND = "django.core.mail.backends.locmem.EmailBackend"


@pytest.fixture
def api_client():
    return APIClient()


@pytest.fixture
def client_for():
    def make(user):
        client = APIClient()
        client.force_authenticate(user=user)
        return client
    return make


@pytest.fixture
def company(db):
    return Company.objects.create(name="Acme Labs", assessment_credits=Decimal("10"))


@pytest.fixture
def other_company(db):
    return Company.objects.create(name="Globex", assessment_credits=Decimal("10"))


@pytest.fixture
def recruiter(company):
    return User.objects.create_user(
        email="rita@acme.mx", password=PASSWORD, role=User.ROLE_RECRUITER, company=company, first_name="Rita",
    )


@pytest.fixture
def other_recruiter(other_company):
    return User.objects.create_user(
        email="hank@globex.mx", password=PASSWORD, role=User.ROLE_RECRUITER, company=other_company,
    )


@pytest.fixture
def candidate(db):
    return User.objects.create_user(
        email="carlos@example.com",
        password=PASSWORD,
        role=User.ROLE_CANDIDATE,
        first_name="Carlos",
        last_name="Ruiz",
        skills=[{"name": "Python", "level": 80}],
    )


@pytest.fixture
def admin_user(db):
    return User.objects.create_superuser(email="root@taskio.dev", password=PASSWORD)


@pytest.fixture
def job(company, recruiter):
    return Job.objects.create(
        company=company,
        recruiter=recruiter,
        title="Backend Developer",
        location="CDMX",
        description="Build APIs with Django and PostgreSQL.",
        skills=["Python", "Django"],
        seniority="MID",
    )


@pytest.fixture
def template(db):
    tpl = AssessmentTemplate.objects.create(
        title="Python basics",
        slug="python-basics",
        type="MCQ",
        difficulty="MID",
        time_limit=30,
        passing_score=60,
        total_questions=2,
        sections=[{"name": "Core", "questions": 2}],
        shuffle_questions=False,
    )
    AssessmentQuestion.objects.create(
        template=tpl,
        section="Core",
        question_text="Which keyword defines a function?",
        options=[
            {"id": "a", "text": "def", "isCorrect": True},
            {"id": "b", "text": "func"},
            {"id": "c", "text": "lambda"},
        ],
    )
    AssessmentQuestion.objects.create(
        template=tpl,
        section="Core",
        question_text="Which types are immutable?",
        allow_multiple=True,
        options=[
            {"id": "a", "text": "tuple", "isCorrect": True},
            {"id": "b", "text": "list"},
            {"id": "c", "text": "str", "isCorrect": True},
        ],
    )
    return tpl


@pytest.fixture
def questions(template):
    return list(template.questions.order_by("id"))


@pytest.fixture
def job_assessment(job, template):
    return JobAssessment.objects.create(job=job, template=template)


@pytest.fixture
def application(job, candidate):
    return Application.objects.create(job=job, candidate=candidate)
