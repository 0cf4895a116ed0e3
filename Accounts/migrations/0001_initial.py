from decimal import Decimal

import django.contrib.auth.validators
import django.db.models.deletion
import django.utils.timezone
from django.conf import settings
from django.db import migrations, models

import Accounts.models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("auth", "0012_alter_user_first_name_max_length"),
    ]

    operations = [
        migrations.CreateModel(
            name="Company",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(max_length=160)),
                ("slug", models.SlugField(blank=True, max_length=180)),
                ("website", models.URLField(blank=True, default="")),
                ("logo_url", models.URLField(blank=True, default="")),
                ("billing_plan", models.CharField(choices=[("FREE", "Free"), ("PRO", "Pro"), ("BUSINESS", "Business"), ("AGENCY", "Agency")], default="FREE", max_length=16)),
                ("assessment_credits", models.DecimalField(decimal_places=2, default=Decimal("0"), max_digits=10)),
                ("assessment_credits_reserved", models.DecimalField(decimal_places=2, default=Decimal("0"), max_digits=10)),
                ("assessment_credits_used", models.DecimalField(decimal_places=2, default=Decimal("0"), max_digits=10)),
                ("tax_legal_name", models.CharField(blank=True, default="", max_length=200)),
                ("tax_rfc", models.CharField(blank=True, default="", max_length=13)),
                ("tax_regime", models.CharField(blank=True, default="", max_length=8)),
                ("tax_zip", models.CharField(blank=True, default="", max_length=10)),
                ("tax_address_line1", models.CharField(blank=True, default="", max_length=200)),
                ("tax_address_line2", models.CharField(blank=True, default="", max_length=200)),
                ("tax_email", models.EmailField(blank=True, default="", max_length=254)),
                ("cfdi_use_default", models.CharField(blank=True, default="G03", max_length=8)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
            ],
            options={
                "verbose_name_plural": "companies",
            },
        ),
        migrations.CreateModel(
            name="User",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("password", models.CharField(max_length=128, verbose_name="password")),
                ("last_login", models.DateTimeField(blank=True, null=True, verbose_name="last login")),
                ("is_superuser", models.BooleanField(default=False, help_text="Designates that this user has all permissions without explicitly assigning them.", verbose_name="superuser status")),
                ("username", models.CharField(error_messages={"unique": "A user with that username already exists."}, help_text="Required. 150 characters or fewer. Letters, digits and @/./+/-/_ only.", max_length=150, unique=True, validators=[django.contrib.auth.validators.UnicodeUsernameValidator()], verbose_name="username")),
                ("first_name", models.CharField(blank=True, max_length=150, verbose_name="first name")),
                ("last_name", models.CharField(blank=True, max_length=150, verbose_name="last name")),
                ("is_staff", models.BooleanField(default=False, help_text="Designates whether the user can log into this admin site.", verbose_name="staff status")),
                ("is_active", models.BooleanField(default=True, help_text="Designates whether this user should be treated as active. Unselect this instead of deleting accounts.", verbose_name="active")),
                ("date_joined", models.DateTimeField(default=django.utils.timezone.now, verbose_name="date joined")),
                ("email", models.EmailField(max_length=254, unique=True)),
                ("role", models.CharField(choices=[("CANDIDATE", "Candidate"), ("RECRUITER", "Recruiter"), ("ADMIN", "Admin")], default="CANDIDATE", max_length=16)),
                ("email_verified_at", models.DateTimeField(blank=True, null=True)),
                ("phone", models.CharField(blank=True, default="", max_length=32)),
                ("location", models.CharField(blank=True, default="", max_length=120)),
                ("headline", models.CharField(blank=True, default="", max_length=200)),
                ("skills", models.JSONField(blank=True, default=list)),
                ("resume_text", models.TextField(blank=True, default="")),
                ("resume_url", models.URLField(blank=True, default="")),
                ("company", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="members", to="Accounts.company")),
                ("groups", models.ManyToManyField(blank=True, help_text="The groups this user belongs to. A user will get all permissions granted to each of their groups.", related_name="user_set", related_query_name="user", to="auth.group", verbose_name="groups")),
                ("user_permissions", models.ManyToManyField(blank=True, help_text="Specific permissions for this user.", related_name="user_set", related_query_name="user", to="auth.permission", verbose_name="user permissions")),
            ],
            options={
                "verbose_name": "user",
                "verbose_name_plural": "users",
                "abstract": False,
            },
            managers=[
                ("objects", Accounts.models.UserManager()),
            ],
        ),
        migrations.CreateModel(
            name="VerificationToken",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("token", models.CharField(max_length=64, unique=True)),
                ("purpose", models.CharField(choices=[("VERIFY_EMAIL", "Verify email")], default="VERIFY_EMAIL", max_length=32)),
                ("expires_at", models.DateTimeField()),
                ("used_at", models.DateTimeField(blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("user", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="verification_tokens", to=settings.AUTH_USER_MODEL)),
            ],
        ),
    ]
