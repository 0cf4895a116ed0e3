import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("Accounts", "0001_initial"),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Job",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("title", models.CharField(max_length=160)),
                ("location", models.CharField(max_length=120)),
                ("employment_type", models.CharField(choices=[("FULL_TIME", "Full time"), ("PART_TIME", "Part time"), ("CONTRACT", "Contract"), ("INTERNSHIP", "Internship")], default="FULL_TIME", max_length=16)),
                ("seniority", models.CharField(choices=[("JUNIOR", "Junior"), ("MID", "Mid"), ("SENIOR", "Senior"), ("LEAD", "Lead")], default="MID", max_length=16)),
                ("description", models.TextField()),
                ("skills", models.JSONField(blank=True, default=list)),
                ("salary_min", models.PositiveIntegerField(blank=True, null=True)),
                ("salary_max", models.PositiveIntegerField(blank=True, null=True)),
                ("currency", models.CharField(default="MXN", max_length=3)),
                ("remote", models.BooleanField(default=False)),
                ("status", models.CharField(choices=[("DRAFT", "Draft"), ("OPEN", "Open"), ("PAUSED", "Paused"), ("CLOSED", "Closed")], default="OPEN", max_length=16)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("company", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="jobs", to="Accounts.company")),
                ("recruiter", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="posted_jobs", to=settings.AUTH_USER_MODEL)),
            ],
            options={
                "ordering": ("-created_at", "-id"),
            },
        ),
        migrations.CreateModel(
            name="Application",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("cover_letter", models.TextField(blank=True, default="")),
                ("resume_url", models.URLField(blank=True, default="")),
                ("status", models.CharField(choices=[("SUBMITTED", "Submitted"), ("REVIEWING", "Reviewing"), ("INTERVIEW", "Interview"), ("OFFER", "Offer"), ("HIRED", "Hired"), ("REJECTED", "Rejected")], default="SUBMITTED", max_length=16)),
                ("recruiter_interest", models.CharField(choices=[("REVIEW", "Review"), ("MAYBE", "Maybe"), ("ACCEPTED", "Accepted"), ("REJECTED", "Rejected")], default="REVIEW", max_length=16)),
                ("rejected_at", models.DateTimeField(blank=True, null=True)),
                ("rejection_email_sent", models.BooleanField(default=False)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("candidate", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="applications", to=settings.AUTH_USER_MODEL)),
                ("job", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="applications", to="Jobs.job")),
            ],
            options={
                "ordering": ("-created_at", "-id"),
                "unique_together": {("job", "candidate")},
            },
        ),
    ]
