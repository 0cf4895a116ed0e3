from rest_framework import serializers

from Accounts.serializers import UserSummarySerializer
from Jobs.models import Application, Job


class SkillListField(serializers.Field):
    """Accepts a list of strings or a comma separated string."""

    def to_internal_value(self, data):
        if isinstance(data, str):
            items = data.split(",")
        elif isinstance(data, list):
            items = data
        else:
            raise serializers.ValidationError("skills must be a list or a comma separated string.")
        out = []
        for item in items:
            item = str(item).strip()
            if item and item.lower() not in [s.lower() for s in out]:
                out.append(item[:64])
        return out

    def to_representation(self, value):
        return list(value or [])


class JobSerializer(serializers.ModelSerializer):
    skills = SkillListField(required=False)
    company_name = serializers.CharField(source="company.name", read_only=True)
    applications_count = serializers.SerializerMethodField()

    class Meta:
        model = Job
        fields = (
            "id", "company", "company_name", "recruiter", "title", "location", "employment_type",
            "seniority", "description", "skills", "salary_min", "salary_max", "currency", "remote",
            "status", "applications_count", "created_at", "updated_at",
        )
        read_only_fields = ("company", "recruiter", "created_at", "updated_at")

    def get_applications_count(self, obj):
        return obj.applications.count()

    def validate_title(self, value):
        value = value.strip()
        if len(value) < 3:
            raise serializers.ValidationError("Title must be at least 3 characters.")
        return value

    def validate_description(self, value):
        value = value.strip()
        if len(value) < 10:
            raise serializers.ValidationError("Description must be at least 10 characters.")
        return value

    def validate_location(self, value):
        value = value.strip()
        if len(value) < 2:
            raise serializers.ValidationError("Location must be at least 2 characters.")
        return value

    def validate_currency(self, value):
        return value.strip().upper()

    def validate(self, attrs):
        salary_min = attrs.get("salary_min", getattr(self.instance, "salary_min", None))
        salary_max = attrs.get("salary_max", getattr(self.instance, "salary_max", None))
        if salary_min is not None and salary_max is not None and salary_min > salary_max:
            raise serializers.ValidationError({"salary_min": "salary_min cannot be greater than salary_max."})
        return attrs


class ApplicationSerializer(serializers.ModelSerializer):
    candidate = UserSummarySerializer(read_only=True)
    job_title = serializers.CharField(source="job.title", read_only=True)
    company_name = serializers.CharField(source="job.company.name", read_only=True)

    class Meta:
        model = Application
        fields = (
            "id", "job", "job_title", "company_name", "candidate", "cover_letter", "resume_url",
            "status", "recruiter_interest", "rejected_at", "created_at", "updated_at",
        )
        read_only_fields = ("status", "recruiter_interest", "rejected_at", "created_at", "updated_at")


class ApplicationCreateSerializer(serializers.Serializer):
    job = serializers.IntegerField()
    cover_letter = serializers.CharField(required=False, allow_blank=True, default="")
    resume_url = serializers.URLField(required=False, allow_blank=True, default="")
