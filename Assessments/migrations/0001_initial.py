import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models

DIFFICULTIES = [("JUNIOR", "Junior"), ("MID", "Mid"), ("SENIOR", "Senior")]


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("Accounts", "0001_initial"),
        ("Jobs", "0001_initial"),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="AssessmentTemplate",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("title", models.CharField(max_length=160)),
                ("slug", models.SlugField(max_length=180, unique=True)),
                ("description", models.TextField(blank=True, default="")),
                ("type", models.CharField(choices=[("MCQ", "Multiple choice"), ("CODING", "Coding"), ("MIXED", "Mixed")], default="MCQ", max_length=16)),
                ("difficulty", models.CharField(choices=DIFFICULTIES, default="MID", max_length=16)),
                ("time_limit", models.PositiveIntegerField(default=30)),
                ("passing_score", models.PositiveIntegerField(default=70)),
                ("total_questions", models.PositiveIntegerField(default=0)),
                ("sections", models.JSONField(blank=True, default=list)),
                ("allow_retry", models.BooleanField(default=False)),
                ("max_attempts", models.PositiveIntegerField(default=1)),
                ("shuffle_questions", models.BooleanField(default=True)),
                ("penalize_wrong", models.BooleanField(default=False)),
                ("is_active", models.BooleanField(default=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("company", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.CASCADE, related_name="assessment_templates", to="Accounts.company")),
            ],
        ),
        migrations.CreateModel(
            name="AssessmentQuestion",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("section", models.CharField(blank=True, default="", max_length=80)),
                ("difficulty", models.CharField(choices=DIFFICULTIES, default="MID", max_length=16)),
                ("tags", models.JSONField(blank=True, default=list)),
                ("question_text", models.TextField()),
                ("code_snippet", models.TextField(blank=True, default="")),
                ("options", models.JSONField(default=list)),
                ("allow_multiple", models.BooleanField(default=False)),
                ("explanation", models.TextField(blank=True, default="")),
                ("is_active", models.BooleanField(default=True)),
                ("times_used", models.PositiveIntegerField(default=0)),
                ("template", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="questions", to="Assessments.assessmenttemplate")),
            ],
        ),
        migrations.CreateModel(
            name="JobAssessment",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("is_required", models.BooleanField(default=True)),
                ("min_score", models.PositiveIntegerField(blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("job", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="assessments", to="Jobs.job")),
                ("template", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="job_assignments", to="Assessments.assessmenttemplate")),
            ],
            options={
                "ordering": ("created_at", "id"),
                "unique_together": {("job", "template")},
            },
        ),
        migrations.CreateModel(
            name="AssessmentInvite",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("token", models.CharField(max_length=64, unique=True)),
                ("status", models.CharField(choices=[("SENT", "Sent"), ("STARTED", "Started"), ("SUBMITTED", "Submitted"), ("EVALUATED", "Evaluated"), ("CANCELLED", "Cancelled"), ("EXPIRED", "Expired")], default="SENT", max_length=16)),
                ("expires_at", models.DateTimeField(blank=True, null=True)),
                ("sent_at", models.DateTimeField(blank=True, null=True)),
                ("cancelled_at", models.DateTimeField(blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("application", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="assessment_invites", to="Jobs.application")),
                ("candidate", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="assessment_invites", to=settings.AUTH_USER_MODEL)),
                ("invited_by", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="sent_assessment_invites", to=settings.AUTH_USER_MODEL)),
                ("job", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="assessment_invites", to="Jobs.job")),
                ("template", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="invites", to="Assessments.assessmenttemplate")),
            ],
            options={
                "unique_together": {("application", "template")},
            },
        ),
        migrations.CreateModel(
            name="AssessmentAttempt",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("status", models.CharField(choices=[("NOT_STARTED", "Not started"), ("IN_PROGRESS", "In progress"), ("SUBMITTED", "Submitted"), ("EVALUATED", "Evaluated")], default="NOT_STARTED", max_length=16)),
                ("attempt_number", models.PositiveIntegerField(default=1)),
                ("started_at", models.DateTimeField(blank=True, null=True)),
                ("expires_at", models.DateTimeField(blank=True, null=True)),
                ("submitted_at", models.DateTimeField(blank=True, null=True)),
                ("total_score", models.IntegerField(blank=True, null=True)),
                ("section_scores", models.JSONField(blank=True, null=True)),
                ("passed", models.BooleanField(blank=True, null=True)),
                ("time_spent", models.PositiveIntegerField(blank=True, null=True)),
                ("ip_address", models.CharField(blank=True, default="", max_length=64)),
                ("user_agent", models.CharField(blank=True, default="", max_length=400)),
                ("flags", models.JSONField(blank=True, default=dict)),
                ("review_notes", models.TextField(blank=True, default="")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("application", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="assessment_attempts", to="Jobs.application")),
                ("candidate", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="assessment_attempts", to=settings.AUTH_USER_MODEL)),
                ("reviewed_by", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="reviewed_attempts", to=settings.AUTH_USER_MODEL)),
                ("template", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="attempts", to="Assessments.assessmenttemplate")),
            ],
        ),
        migrations.CreateModel(
            name="AttemptAnswer",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("selected_options", models.JSONField(default=list)),
                ("is_correct", models.BooleanField(default=False)),
                ("points_earned", models.FloatField(default=0.0)),
                ("time_spent", models.PositiveIntegerField(blank=True, null=True)),
                ("answered_at", models.DateTimeField()),
                ("attempt", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="answers", to="Assessments.assessmentattempt")),
                ("question", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="answers", to="Assessments.assessmentquestion")),
            ],
            options={
                "unique_together": {("attempt", "question")},
            },
        ),
    ]
