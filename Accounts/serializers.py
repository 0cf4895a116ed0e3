from django.contrib.auth import authenticate, password_validation
from django.db import transaction
from rest_framework import serializers

from Accounts.models import Company, User


class CompanySerializer(serializers.ModelSerializer):
    class Meta:
        model = Company
        fields = (
            "id", "name", "slug", "website", "logo_url", "billing_plan",
            "assessment_credits", "assessment_credits_reserved", "assessment_credits_used",
            "created_at",
        )
        read_only_fields = (
            "slug", "billing_plan", "assessment_credits", "assessment_credits_reserved",
            "assessment_credits_used", "created_at",
        )


class UserSkillSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=64)
    level = serializers.IntegerField(min_value=0, max_value=100, default=50)


class UserSerializer(serializers.ModelSerializer):
    skills = UserSkillSerializer(many=True, required=False)
    company = CompanySerializer(read_only=True)
    email_verified = serializers.SerializerMethodField()

    class Meta:
        model = User
        fields = (
            "id", "email", "first_name", "last_name", "role", "company", "email_verified",
            "phone", "location", "headline", "skills", "resume_url", "date_joined",
        )
        read_only_fields = ("email", "role", "company", "date_joined")

    def get_email_verified(self, obj):
        return obj.email_verified_at is not None

    def validate_skills(self, value):
        unique = {}
        for s in value:
            name = s["name"].strip()
            if name and name.lower() not in unique:
                unique[name.lower()] = {"name": name, "level": int(s.get("level", 50))}
        return list(unique.values())

    def update(self, instance, validated_data):
        skills_data = validated_data.pop("skills", None)
        for k, v in validated_data.items():
            setattr(instance, k, v)
        if skills_data is not None:
            instance.skills = skills_data
        instance.save()
        return instance


class UserSummarySerializer(serializers.ModelSerializer):
    class Meta:
        model = User
        fields = ("id", "email", "first_name", "last_name")


class CandidateSignupSerializer(serializers.Serializer):
    email = serializers.EmailField()
    password = serializers.CharField(write_only=True)
    first_name = serializers.CharField(max_length=150)
    last_name = serializers.CharField(max_length=150, required=False, allow_blank=True, default="")
    phone = serializers.CharField(max_length=32, required=False, allow_blank=True, default="")
    location = serializers.CharField(max_length=120, required=False, allow_blank=True, default="")

    def validate_email(self, value):
        return value.strip().lower()

    def validate(self, attrs):
        candidate = User(email=attrs["email"], first_name=attrs["first_name"], last_name=attrs.get("last_name", ""))
        password_validation.validate_password(attrs["password"], user=candidate)
        return attrs

    def create(self, validated_data):
        password = validated_data.pop("password")
        return User.objects.create_user(password=password, role=User.ROLE_CANDIDATE, **validated_data)


class RecruiterSignupSerializer(CandidateSignupSerializer):
    company_name = serializers.CharField(min_length=2, max_length=160)
    company_website = serializers.URLField(required=False, allow_blank=True, default="")

    @transaction.atomic
    def create(self, validated_data):
        company = Company.objects.create(
            name=validated_data.pop("company_name").strip(),
            website=validated_data.pop("company_website", ""),
        )
        password = validated_data.pop("password")
        return User.objects.create_user(
            password=password,
            role=User.ROLE_RECRUITER,
            company=company,
            **validated_data,
        )


class SignInSerializer(serializers.Serializer):
    email = serializers.EmailField()
    password = serializers.CharField(write_only=True)

    def validate(self, attrs):
        user = authenticate(
            request=self.context.get("request"),
            email=attrs["email"].strip().lower(),
            password=attrs["password"],
        )
        if not user:
            raise serializers.ValidationError("Invalid email or password.")
        if not user.is_active:
            raise serializers.ValidationError("Account disabled.")
        attrs["user"] = user
        return attrs
