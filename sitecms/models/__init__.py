from .content import Content, ContentStatus
from .content_type import ContentType, FieldType
from .form_submission import FormSubmission, SubmissionStatus
from .media import Media, MediaType
from .revision import Revision
from .user import User, UserRole
from .webhook import Webhook, WebhookDelivery, WebhookEvent, WebhookStatus
from .website import Website

__all__ = [
    "Content",
    "ContentStatus",
    "ContentType",
    "FieldType",
    "FormSubmission",
    "SubmissionStatus",
    "Media",
    "MediaType",
    "Revision",
    "User",
    "UserRole",
    "Webhook",
    "WebhookDelivery",
    "WebhookEvent",
    "WebhookStatus",
    "Website",
]
