# tasks/services.py
import logging

from django.conf import settings
from django.utils import timezone

from . import ai_client
from .exceptions import (
    ConflictError,
    ExternalServiceError,
    NothingToScheduleError,
    NotFoundError,
    QuotaExceededError,
    ValidationError,
)
from .models import Task
from .scheduling import FallbackScheduler, reconcile_ai_schedule

logger = logging.getLogger(__name__)

SOURCE_AI = 'ai'
SOURCE_FALLBACK = 'fallback'


def task_to_schedule_input(task):
    """Convert a Task row to the dictionary format the schedulers work on."""
    return {
        'id': str(task.id),
        'title': task.title,
        'priority': task.priority,
        'deadline': task.deadline,
    }


def get_owned_task(user, task_id):
    try:
        return Task.objects.get(id=task_id, user=user)
    except Task.DoesNotExist:
        raise NotFoundError()


def count_suggestions_used(user):
    """Number of the user's tasks that already carry an AI suggestion."""
    return (
        Task.objects.filter(user=user, ai_suggestion__isnull=False)
        .exclude(ai_suggestion='')
        .count()
    )


def generate_schedule(user):
    """
    Build a schedule for the user's incomplete tasks.

    The AI service is tried first; any ExternalServiceError (not configured,
    unreachable, timed out, unusable reply) falls back to FallbackScheduler,
    so this only fails on the precondition checks.

    Returns:
        Dict with 'schedule', 'totalTasks', 'generatedAt' and 'source'
    """
    incomplete = list(Task.objects.filter(user=user, status=Task.Status.INCOMPLETE))

    if not incomplete:
        raise NothingToScheduleError()

    limit = settings.FREE_SCHEDULE_TASK_LIMIT
    if not user.is_premium and len(incomplete) > limit:
        raise QuotaExceededError(
            f"Free users can schedule up to {limit} tasks. "
            "Upgrade to premium for unlimited scheduling."
        )

    tasks_list = [task_to_schedule_input(task) for task in incomplete]
    logger.info("Generating schedule for %d tasks for user %s", len(tasks_list), user.pk)

    try:
        items = ai_client.request_schedule(tasks_list)
        entries = reconcile_ai_schedule(items, tasks_list)
        source = SOURCE_AI
    except ExternalServiceError as e:
        logger.warning("AI schedule unavailable, using fallback: %s", e.message)
        entries = FallbackScheduler().schedule(tasks_list)
        source = SOURCE_FALLBACK

    return {
        'schedule': [entry.as_dict() for entry in entries],
        'totalTasks': len(tasks_list),
        'generatedAt': timezone.now().isoformat(),
        'source': source,
    }


def generate_suggestion(user, task_id):
    """
    Generate and store the one-time AI suggestion for a task.

    Checks, in order: task id present, task owned by the user, no suggestion
    yet, free-tier quota. AI failures propagate as ExternalServiceError.

    Returns:
        The updated Task
    """
    if not task_id or not isinstance(task_id, str) or not task_id.strip():
        raise ValidationError("Task ID is required")

    task = get_owned_task(user, task_id.strip())

    if task.has_suggestion:
        raise ConflictError()

    limit = settings.FREE_SUGGESTION_LIMIT
    if not user.is_premium and count_suggestions_used(user) >= limit:
        raise QuotaExceededError(
            "AI suggestion limit reached. Upgrade to premium for unlimited suggestions."
        )

    suggestion = ai_client.request_suggestion(task)

    task.ai_suggestion = suggestion
    task.save(update_fields=['ai_suggestion'])
    logger.info("Stored AI suggestion for task %s", task.id)
    return task
