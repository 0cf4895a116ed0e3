from django.contrib import admin

from Assessments.models import (
    AssessmentAttempt,
    AssessmentInvite,
    AssessmentQuestion,
    AssessmentTemplate,
    JobAssessment,
)


class AssessmentQuestionInline(admin.TabularInline):
    model = AssessmentQuestion
    extra = 0
    fields = ("section", "difficulty", "question_text", "allow_multiple", "is_active", "times_used")
    readonly_fields = ("times_used",)


@admin.register(AssessmentTemplate)
class AssessmentTemplateAdmin(admin.ModelAdmin):
    list_display = ("title", "type", "difficulty", "company", "is_active")
    list_filter = ("type", "difficulty", "is_active")
    search_fields = ("title", "slug")
    inlines = [AssessmentQuestionInline]


@admin.register(AssessmentInvite)
class AssessmentInviteAdmin(admin.ModelAdmin):
    list_display = ("id", "candidate", "template", "job", "status", "expires_at")
    list_filter = ("status",)


@admin.register(AssessmentAttempt)
class AssessmentAttemptAdmin(admin.ModelAdmin):
    list_display = ("id", "candidate", "template", "status", "total_score", "passed", "submitted_at")
    list_filter = ("status", "passed")


admin.site.register(JobAssessment)
