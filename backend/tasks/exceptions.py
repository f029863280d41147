# tasks/exceptions.py
"""
Error kinds raised by the task services.

Each carries the HTTP status and a short machine-readable code so views can
render them without knowing which operation failed.
"""


class TaskServiceError(Exception):
    status_code = 500
    code = 'error'
    default_message = 'Request failed'

    def __init__(self, message=None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(TaskServiceError):
    """Malformed or missing input, rejected before touching the store."""
    status_code = 400
    code = 'validation_error'
    default_message = 'Invalid request data'


class NothingToScheduleError(ValidationError):
    code = 'nothing_to_schedule'
    default_message = 'No incomplete tasks to schedule'


class NotFoundError(TaskServiceError):
    """Task is missing or owned by someone else."""
    status_code = 404
    code = 'not_found'
    default_message = 'Task not found'


class QuotaExceededError(TaskServiceError):
    """Free-tier limit reached; the caller should offer an upgrade."""
    status_code = 403
    code = 'quota_exceeded'
    default_message = 'Free plan limit reached. Upgrade to premium.'


class ConflictError(TaskServiceError):
    status_code = 409
    code = 'conflict'
    default_message = 'Task already has an AI suggestion'


class ExternalServiceError(TaskServiceError):
    """The AI service is unreachable, not configured, or returned unusable output."""
    status_code = 502
    code = 'external_service_error'
    default_message = 'AI service unavailable'
