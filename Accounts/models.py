from decimal import Decimal

from django.contrib.auth.models import AbstractUser, BaseUserManager
from django.db import models
from django.utils.text import slugify


class Company(models.Model):
    PLANS = [
        ("FREE", "Free"),
        ("PRO", "Pro"),
        ("BUSINESS", "Business"),
        ("AGENCY", "Agency"),
    ]

    name = models.CharField(max_length=160)
    slug = models.SlugField(max_length=180, blank=True)
    website = models.URLField(blank=True, default="")
    logo_url = models.URLField(blank=True, default="")
    billing_plan = models.CharField(max_length=16, choices=PLANS, default="FREE")

    # credits are kept as decimals with one fractional digit (0.5 steps)
    assessment_credits = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal("0"))
    assessment_credits_reserved = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal("0"))
    assessment_credits_used = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal("0"))

    tax_legal_name = models.CharField(max_length=200, blank=True, default="")
    tax_rfc = models.CharField(max_length=13, blank=True, default="")
    tax_regime = models.CharField(max_length=8, blank=True, default="")
    tax_zip = models.CharField(max_length=10, blank=True, default="")
    tax_address_line1 = models.CharField(max_length=200, blank=True, default="")
    tax_address_line2 = models.CharField(max_length=200, blank=True, default="")
    tax_email = models.EmailField(blank=True, default="")
    cfdi_use_default = models.CharField(max_length=8, blank=True, default="G03")

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        verbose_name_plural = "companies"

    def save(self, *args, **kwargs):
        if not self.slug:
            self.slug = slugify(self.name)[:180]
        super().save(*args, **kwargs)

    @property
    def effective_credits(self) -> Decimal:
        return self.assessment_credits - self.assessment_credits_reserved

    def __str__(self) -> str:
        return self.name


class UserManager(BaseUserManager):
    use_in_migrations = True

    def _create_user(self, email, password, **extra_fields):
        if not email:
            raise ValueError("Email is required")
        email = self.normalize_email(email).lower()
        extra_fields.setdefault("username", email)
        user = self.model(email=email, **extra_fields)
        user.set_password(password)
        user.save(using=self._db)
        return user

    def create_user(self, email, password=None, **extra_fields):
        extra_fields.setdefault("is_staff", False)
        extra_fields.setdefault("is_superuser", False)
        return self._create_user(email, password, **extra_fields)

    def create_superuser(self, email, password=None, **extra_fields):
        extra_fields.setdefault("is_staff", True)
        extra_fields.setdefault("is_superuser", True)
        extra_fields.setdefault("role", User.ROLE_ADMIN)
        return self._create_user(email, password, **extra_fields)


class User(AbstractUser):
    ROLE_CANDIDATE = "CANDIDATE"
    ROLE_RECRUITER = "RECRUITER"
    ROLE_ADMIN = "ADMIN"
    ROLES = [
        (ROLE_CANDIDATE, "Candidate"),
        (ROLE_RECRUITER, "Recruiter"),
        (ROLE_ADMIN, "Admin"),
    ]

    email = models.EmailField(unique=True)
    role = models.CharField(max_length=16, choices=ROLES, default=ROLE_CANDIDATE)
    company = models.ForeignKey(Company, related_name="members", null=True, blank=True, on_delete=models.SET_NULL)
    email_verified_at = models.DateTimeField(null=True, blank=True)

    phone = models.CharField(max_length=32, blank=True, default="")
    location = models.CharField(max_length=120, blank=True, default="")
    headline = models.CharField(max_length=200, blank=True, default="")
    # [{"name": "python", "level": 80}, ...]
    skills = models.JSONField(default=list, blank=True)
    resume_text = models.TextField(blank=True, default="")
    resume_url = models.URLField(blank=True, default="")

    USERNAME_FIELD = "email"
    REQUIRED_FIELDS = ["username"]

    objects = UserManager()

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip() or self.email

    @property
    def is_candidate(self) -> bool:
        return self.role == self.ROLE_CANDIDATE

    @property
    def is_recruiter(self) -> bool:
        return self.role == self.ROLE_RECRUITER

    @property
    def is_platform_admin(self) -> bool:
        return self.role == self.ROLE_ADMIN

    def __str__(self) -> str:
        return f"{self.email} ({self.role})"


class VerificationToken(models.Model):
    PURPOSES = [("VERIFY_EMAIL", "Verify email")]

    user = models.ForeignKey(User, related_name="verification_tokens", on_delete=models.CASCADE)
    token = models.CharField(max_length=64, unique=True)
    purpose = models.CharField(max_length=32, choices=PURPOSES, default="VERIFY_EMAIL")
    expires_at = models.DateTimeField()
    used_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
