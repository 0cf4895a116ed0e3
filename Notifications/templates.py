"""Title, message and link for each notification type, rendered from metadata."""

NOTIFICATION_TEMPLATES = {
    "NEW_APPLICATION": {
        "title": "New application for {job_title}",
        "message": "{candidate_name} applied to {job_title}.",
        "action_url": "/dashboard/jobs/{job_id}/applications",
        "priority": "MEDIUM",
        "email": True,
    },
    "APPLICATION_STATUS_CHANGE": {
        "title": "Your application was updated",
        "message": "Your application to {job_title} moved to {status}.",
        "action_url": "/profile/applications",
        "priority": "HIGH",
        "email": True,
    },
    "ASSESSMENT_INVITATION": {
        "title": "Assessment invitation: {template_title}",
        "message": "You were invited to take {template_title} for {job_title}. "
                   "The invitation expires on {expires_at}.",
        "action_url": "/assessments/{template_id}?token={token}",
        "priority": "HIGH",
        "email": True,
    },
    "ASSESSMENT_COMPLETED": {
        "title": "{candidate_name} completed {template_title}",
        "message": "{candidate_name} scored {total_score}% on {template_title} for {job_title}.",
        "action_url": "/assessments/attempts/{attempt_id}/results",
        "priority": "MEDIUM",
        "email": True,
    },
    "ASSESSMENT_RESULTS": {
        "title": "Your results for {template_title} were reviewed",
        "message": "A recruiter reviewed your attempt on {template_title}.",
        "action_url": "/assessments/attempts/{attempt_id}/results",
        "priority": "HIGH",
        "email": False,
    },
    "ACCOUNT_VERIFIED": {
        "title": "Account verified",
        "message": "Your email address was confirmed.",
        "action_url": "/",
        "priority": "MEDIUM",
        "email": False,
    },
    "SUBSCRIPTION_CHANGED": {
        "title": "Plan changed to {plan_name}",
        "message": "Your company is now on the {plan_name} plan.",
        "action_url": "/dashboard/billing",
        "priority": "HIGH",
        "email": True,
    },
}


class _SafeDict(dict):
    def __missing__(self, key):
        return ""


def render(template: str, metadata: dict) -> str:
    return template.format_map(_SafeDict(metadata))
