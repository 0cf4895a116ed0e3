from django.conf import settings
from django.db import models

from Accounts.models import Company
from Jobs.models import Application, Job


class AssessmentTemplate(models.Model):
    TYPES = [
        ("MCQ", "Multiple choice"),
        ("CODING", "Coding"),
        ("MIXED", "Mixed"),
    ]
    DIFFICULTIES = [
        ("JUNIOR", "Junior"),
        ("MID", "Mid"),
        ("SENIOR", "Senior"),
    ]

    title = models.CharField(max_length=160)
    slug = models.SlugField(max_length=180, unique=True)
    description = models.TextField(blank=True, default="")
    type = models.CharField(max_length=16, choices=TYPES, default="MCQ")
    difficulty = models.CharField(max_length=16, choices=DIFFICULTIES, default="MID")
    time_limit = models.PositiveIntegerField(default=30)  # minutes
    passing_score = models.PositiveIntegerField(default=70)  # 0-100
    total_questions = models.PositiveIntegerField(default=0)
    # [{"name": "Python", "questions": 10}, ...]
    sections = models.JSONField(default=list, blank=True)
    allow_retry = models.BooleanField(default=False)
    max_attempts = models.PositiveIntegerField(default=1)
    shuffle_questions = models.BooleanField(default=True)
    penalize_wrong = models.BooleanField(default=False)
    is_active = models.BooleanField(default=True)
    # null company: platform-wide template
    company = models.ForeignKey(Company, related_name="assessment_templates", null=True, blank=True, on_delete=models.CASCADE)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self) -> str:
        return f"{self.title} ({self.type}/{self.difficulty})"


class AssessmentQuestion(models.Model):
    template = models.ForeignKey(AssessmentTemplate, related_name="questions", on_delete=models.CASCADE)
    section = models.CharField(max_length=80, blank=True, default="")
    difficulty = models.CharField(max_length=16, choices=AssessmentTemplate.DIFFICULTIES, default="MID")
    tags = models.JSONField(default=list, blank=True)
    question_text = models.TextField()
    code_snippet = models.TextField(blank=True, default="")
    # [{"id": "a", "text": "...", "isCorrect": true}, ...]
    options = models.JSONField(default=list)
    allow_multiple = models.BooleanField(default=False)
    explanation = models.TextField(blank=True, default="")
    is_active = models.BooleanField(default=True)
    times_used = models.PositiveIntegerField(default=0)

    def __str__(self) -> str:
        return self.question_text[:60]


class JobAssessment(models.Model):
    job = models.ForeignKey(Job, related_name="assessments", on_delete=models.CASCADE)
    template = models.ForeignKey(AssessmentTemplate, related_name="job_assignments", on_delete=models.CASCADE)
    is_required = models.BooleanField(default=True)
    min_score = models.PositiveIntegerField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        unique_together = ("job", "template")
        ordering = ("created_at", "id")


class AssessmentInvite(models.Model):
    STATUS = [
        ("SENT", "Sent"),
        ("STARTED", "Started"),
        ("SUBMITTED", "Submitted"),
        ("EVALUATED", "Evaluated"),
        ("CANCELLED", "Cancelled"),
        ("EXPIRED", "Expired"),
    ]

    application = models.ForeignKey(Application, related_name="assessment_invites", on_delete=models.CASCADE)
    job = models.ForeignKey(Job, related_name="assessment_invites", on_delete=models.CASCADE)
    candidate = models.ForeignKey(settings.AUTH_USER_MODEL, related_name="assessment_invites", on_delete=models.CASCADE)
    template = models.ForeignKey(AssessmentTemplate, related_name="invites", on_delete=models.CASCADE)
    token = models.CharField(max_length=64, unique=True)
    status = models.CharField(max_length=16, choices=STATUS, default="SENT")
    expires_at = models.DateTimeField(null=True, blank=True)
    sent_at = models.DateTimeField(null=True, blank=True)
    cancelled_at = models.DateTimeField(null=True, blank=True)
    invited_by = models.ForeignKey(
        settings.AUTH_USER_MODEL, related_name="sent_assessment_invites", null=True, blank=True, on_delete=models.SET_NULL
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        unique_together = ("application", "template")

    def __str__(self) -> str:
        return f"Invite {self.id} ({self.status})"


class AssessmentAttempt(models.Model):
    STATUS = [
        ("NOT_STARTED", "Not started"),
        ("IN_PROGRESS", "In progress"),
        ("SUBMITTED", "Submitted"),
        ("EVALUATED", "Evaluated"),
    ]
    CONSUMED = ("SUBMITTED", "EVALUATED")

    candidate = models.ForeignKey(settings.AUTH_USER_MODEL, related_name="assessment_attempts", on_delete=models.CASCADE)
    template = models.ForeignKey(AssessmentTemplate, related_name="attempts", on_delete=models.CASCADE)
    application = models.ForeignKey(
        Application, related_name="assessment_attempts", null=True, blank=True, on_delete=models.SET_NULL
    )
    status = models.CharField(max_length=16, choices=STATUS, default="NOT_STARTED")
    attempt_number = models.PositiveIntegerField(default=1)
    started_at = models.DateTimeField(null=True, blank=True)
    expires_at = models.DateTimeField(null=True, blank=True)
    submitted_at = models.DateTimeField(null=True, blank=True)
    total_score = models.IntegerField(null=True, blank=True)
    section_scores = models.JSONField(null=True, blank=True)
    passed = models.BooleanField(null=True, blank=True)
    time_spent = models.PositiveIntegerField(null=True, blank=True)  # seconds
    ip_address = models.CharField(max_length=64, blank=True, default="")
    user_agent = models.CharField(max_length=400, blank=True, default="")
    # question/option order plus anti-cheat counters
    flags = models.JSONField(default=dict, blank=True)
    reviewed_by = models.ForeignKey(
        settings.AUTH_USER_MODEL, related_name="reviewed_attempts", null=True, blank=True, on_delete=models.SET_NULL
    )
    review_notes = models.TextField(blank=True, default="")
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self) -> str:
        return f"Attempt {self.id} ({self.status})"


class AttemptAnswer(models.Model):
    attempt = models.ForeignKey(AssessmentAttempt, related_name="answers", on_delete=models.CASCADE)
    question = models.ForeignKey(AssessmentQuestion, related_name="answers", on_delete=models.CASCADE)
    selected_options = models.JSONField(default=list)
    is_correct = models.BooleanField(default=False)
    points_earned = models.FloatField(default=0.0)
    time_spent = models.PositiveIntegerField(null=True, blank=True)  # seconds
    answered_at = models.DateTimeField()

    class Meta:
        unique_together = ("attempt", "question")
