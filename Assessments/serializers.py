from django.db import transaction
from django.utils.text import slugify
from rest_framework import serializers

from Assessments.models import AssessmentInvite, AssessmentQuestion, AssessmentTemplate, JobAssessment


class AssessmentTemplateSerializer(serializers.ModelSerializer):
    question_count = serializers.SerializerMethodField()

    class Meta:
        model = AssessmentTemplate
        fields = (
            "id", "title", "slug", "description", "type", "difficulty", "time_limit", "passing_score",
            "total_questions", "sections", "allow_retry", "max_attempts", "shuffle_questions",
            "penalize_wrong", "is_active", "company", "question_count", "created_at",
        )
        read_only_fields = ("slug", "company", "total_questions", "created_at")

    def get_question_count(self, obj):
        return obj.questions.filter(is_active=True).count()


class AssessmentQuestionSerializer(serializers.ModelSerializer):
    class Meta:
        model = AssessmentQuestion
        fields = (
            "id", "section", "difficulty", "tags", "question_text", "code_snippet", "options",
            "allow_multiple", "explanation", "is_active",
        )

    def validate_options(self, value):
        if not isinstance(value, list) or len(value) < 2:
            raise serializers.ValidationError("A question needs at least two options.")
        ids = []
        for opt in value:
            if not isinstance(opt, dict) or not str(opt.get("id", "")).strip() or not str(opt.get("text", "")).strip():
                raise serializers.ValidationError("Every option needs an id and a text.")
            ids.append(str(opt["id"]))
        if len(set(ids)) != len(ids):
            raise serializers.ValidationError("Option ids must be unique.")
        if not any(opt.get("isCorrect") for opt in value):
            raise serializers.ValidationError("Mark at least one option as correct.")
        return value

    def validate(self, attrs):
        options = attrs.get("options") or []
        correct = sum(1 for opt in options if opt.get("isCorrect"))
        if correct > 1 and not attrs.get("allow_multiple", False):
            raise serializers.ValidationError("Several correct options require allow_multiple.")
        return attrs


class AssessmentTemplateCreateSerializer(AssessmentTemplateSerializer):
    """Template plus its questions, created in one go by a recruiter."""

    questions = AssessmentQuestionSerializer(many=True)

    class Meta(AssessmentTemplateSerializer.Meta):
        fields = AssessmentTemplateSerializer.Meta.fields + ("questions",)

    def validate_title(self, value):
        if len(value.strip()) < 3:
            raise serializers.ValidationError("Title must be at least 3 characters.")
        return value.strip()

    def validate_passing_score(self, value):
        if value > 100:
            raise serializers.ValidationError("passing_score must be between 0 and 100.")
        return value

    def validate_questions(self, value):
        if not value:
            raise serializers.ValidationError("Add at least one question.")
        return value

    @transaction.atomic
    def create(self, validated_data):
        questions = validated_data.pop("questions")
        base = slugify(validated_data["title"])[:160] or "assessment"
        slug, n = base, 1
        while AssessmentTemplate.objects.filter(slug=slug).exists():
            n += 1
            slug = f"{base}-{n}"
        template = AssessmentTemplate.objects.create(slug=slug, total_questions=len(questions), **validated_data)
        AssessmentQuestion.objects.bulk_create([AssessmentQuestion(template=template, **q) for q in questions])
        return template


class JobAssessmentSerializer(serializers.ModelSerializer):
    template = AssessmentTemplateSerializer(read_only=True)

    class Meta:
        model = JobAssessment
        fields = ("id", "job", "template", "is_required", "min_score", "created_at")


class AssessmentInviteSerializer(serializers.ModelSerializer):
    template_title = serializers.CharField(source="template.title", read_only=True)
    job_title = serializers.CharField(source="job.title", read_only=True)
    candidate_email = serializers.CharField(source="candidate.email", read_only=True)

    class Meta:
        model = AssessmentInvite
        fields = (
            "id", "application", "job", "job_title", "candidate", "candidate_email", "template",
            "template_title", "token", "status", "expires_at", "sent_at", "cancelled_at", "created_at",
        )
