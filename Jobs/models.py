from django.conf import settings
from django.db import models

from Accounts.models import Company


class Job(models.Model):
    EMPLOYMENT_TYPES = [
        ("FULL_TIME", "Full time"),
        ("PART_TIME", "Part time"),
        ("CONTRACT", "Contract"),
        ("INTERNSHIP", "Internship"),
    ]
    SENIORITIES = [
        ("JUNIOR", "Junior"),
        ("MID", "Mid"),
        ("SENIOR", "Senior"),
        ("LEAD", "Lead"),
    ]
    STATUS = [
        ("DRAFT", "Draft"),
        ("OPEN", "Open"),
        ("PAUSED", "Paused"),
        ("CLOSED", "Closed"),
    ]

    company = models.ForeignKey(Company, related_name="jobs", on_delete=models.CASCADE)
    recruiter = models.ForeignKey(
        settings.AUTH_USER_MODEL, related_name="posted_jobs", null=True, blank=True, on_delete=models.SET_NULL
    )
    title = models.CharField(max_length=160)
    location = models.CharField(max_length=120)
    employment_type = models.CharField(max_length=16, choices=EMPLOYMENT_TYPES, default="FULL_TIME")
    seniority = models.CharField(max_length=16, choices=SENIORITIES, default="MID")
    description = models.TextField()
    skills = models.JSONField(default=list, blank=True)
    salary_min = models.PositiveIntegerField(null=True, blank=True)
    salary_max = models.PositiveIntegerField(null=True, blank=True)
    currency = models.CharField(max_length=3, default="MXN")
    remote = models.BooleanField(default=False)
    status = models.CharField(max_length=16, choices=STATUS, default="OPEN")
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ("-created_at", "-id")

    def __str__(self) -> str:
        return f"{self.title} ({self.status})"


class Application(models.Model):
    STATUS = [
        ("SUBMITTED", "Submitted"),
        ("REVIEWING", "Reviewing"),
        ("INTERVIEW", "Interview"),
        ("OFFER", "Offer"),
        ("HIRED", "Hired"),
        ("REJECTED", "Rejected"),
    ]
    INTEREST = [
        ("REVIEW", "Review"),
        ("MAYBE", "Maybe"),
        ("ACCEPTED", "Accepted"),
        ("REJECTED", "Rejected"),
    ]

    job = models.ForeignKey(Job, related_name="applications", on_delete=models.CASCADE)
    candidate = models.ForeignKey(settings.AUTH_USER_MODEL, related_name="applications", on_delete=models.CASCADE)
    cover_letter = models.TextField(blank=True, default="")
    resume_url = models.URLField(blank=True, default="")
    status = models.CharField(max_length=16, choices=STATUS, default="SUBMITTED")
    recruiter_interest = models.CharField(max_length=16, choices=INTEREST, default="REVIEW")
    rejected_at = models.DateTimeField(null=True, blank=True)
    rejection_email_sent = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        unique_together = ("job", "candidate")
        ordering = ("-created_at", "-id")

    def __str__(self) -> str:
        return f"{self.candidate_id} -> {self.job_id} ({self.status})"
