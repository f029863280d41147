# tasks/ai_client.py
"""
Calls to the OpenAI-compatible chat completion service.

No secrets are needed at import time; the client is created on first use from
Django settings. Retries are disabled so a failing schedule request falls
through to the local scheduler within one bounded wait.
"""
import json
import logging
import re
from typing import Dict, List

import openai
from django.conf import settings
from openai import OpenAI
from pydantic import ValidationError as PydanticValidationError

from .exceptions import ExternalServiceError
from .schemas import ScheduleItemPayload, schedule_payload_adapter

logger = logging.getLogger(__name__)

_clients: Dict[tuple, OpenAI] = {}

_FENCE_OPEN = re.compile(r'^```(?:json)?\s*', re.IGNORECASE)
_FENCE_CLOSE = re.compile(r'\s*```\s*$')
_JSON_ARRAY = re.compile(r'\[[\s\S]*\]')

SCHEDULE_PROMPT = """You are a productivity expert AI. Analyze these tasks and create an optimized daily schedule.

Tasks to schedule:
{tasks}

Create scheduling recommendations that:
1. Prioritize high-priority tasks during peak productivity hours (9-11 AM)
2. Consider deadlines and urgency
3. Suggest realistic time blocks (1-3 hours per task)
4. Include brief reasoning for each scheduling decision
5. Optimize for productivity flow and energy management

IMPORTANT: Respond ONLY with a valid JSON array. No additional text or explanation outside the JSON.

Format each schedule item exactly like this:
[
  {{
    "taskTitle": "Task name here",
    "priority": "High|Medium|Low",
    "suggestedTimeSlot": "9:00 - 11:00",
    "estimatedDuration": "2 hours",
    "reasoning": "Brief explanation for timing choice"
  }}
]

Keep reasoning concise (1-2 sentences) and focus on productivity optimization."""

SUGGESTION_INSTRUCTIONS = (
    "Provide a concise, actionable suggestion (1-2 sentences) that helps the user "
    "complete this task more effectively. Focus on time management, task breakdown, "
    "or productivity tips."
)


def _get_client() -> OpenAI:
    api_key = (settings.AI_API_KEY or '').strip()
    base_url = (settings.AI_BASE_URL or '').strip()

    if not api_key:
        raise ExternalServiceError("AI service not configured")
    if not base_url:
        raise ExternalServiceError("AI service base URL not configured")

    key = (api_key, base_url, settings.AI_TIMEOUT_SECONDS)
    client = _clients.get(key)
    if client is None:
        client = OpenAI(
            base_url=base_url,
            api_key=api_key,
            timeout=settings.AI_TIMEOUT_SECONDS,
            max_retries=0,
        )
        _clients[key] = client
    return client


def complete(prompt: str, max_tokens: int) -> str:
    """Send a single user prompt and return the stripped reply text."""
    client = _get_client()
    try:
        response = client.chat.completions.create(
            model=settings.AI_MODEL,
            messages=[{"role": "user", "content": prompt}],
            temperature=0.7,
            top_p=0.7,
            frequency_penalty=1,
            max_tokens=max_tokens,
        )
    except openai.OpenAIError as e:
        raise ExternalServiceError(f"AI request failed: {e.__class__.__name__}") from e

    if not response.choices:
        raise ExternalServiceError("AI service returned no choices")

    message = response.choices[0].message
    content = (message.content or '').strip() if message is not None else ''
    if not content:
        raise ExternalServiceError("AI service returned an empty response")
    return content


def _deadline_text(deadline) -> str:
    if not deadline:
        return "No deadline"
    if hasattr(deadline, 'date'):
        return deadline.date().isoformat()
    return str(deadline)


def build_schedule_prompt(tasks: List[Dict]) -> str:
    lines = [
        f'- "{task["title"]}" (Priority: {task["priority"]}, Deadline: {_deadline_text(task.get("deadline"))})'
        for task in tasks
    ]
    return SCHEDULE_PROMPT.format(tasks="\n".join(lines))


def build_suggestion_prompt(task) -> str:
    prompt = (
        "You are a productivity assistant. Analyze this task and provide a helpful "
        "suggestion for completing it efficiently:\n\n"
        f"Task: {task.title}"
    )
    if task.description:
        prompt += f"\nDescription: {task.description}"
    if task.priority:
        prompt += f"\nPriority: {task.priority}"
    if task.deadline:
        prompt += f"\nDeadline: {_deadline_text(task.deadline)}"
    return prompt + "\n\n" + SUGGESTION_INSTRUCTIONS


def parse_schedule_response(text: str) -> List[ScheduleItemPayload]:
    """
    Extract and validate the schedule array from a model reply.

    Markdown code fences and any prose around the first [...] block are
    ignored. Raises ExternalServiceError when no non-empty array of objects
    can be recovered.
    """
    cleaned = _FENCE_CLOSE.sub('', _FENCE_OPEN.sub('', (text or '').strip()))
    match = _JSON_ARRAY.search(cleaned)
    if match:
        cleaned = match.group(0)

    try:
        data = json.loads(cleaned)
    except ValueError as e:
        raise ExternalServiceError("AI schedule is not valid JSON") from e

    if not isinstance(data, list):
        raise ExternalServiceError("AI schedule is not an array")

    try:
        items = schedule_payload_adapter.validate_python(data)
    except PydanticValidationError as e:
        raise ExternalServiceError("AI schedule items have an unexpected shape") from e

    if not items:
        raise ExternalServiceError("AI schedule is empty")
    return items


def request_schedule(tasks: List[Dict]) -> List[ScheduleItemPayload]:
    """Ask the AI service to order ``tasks``; only title, priority and deadline are sent."""
    text = complete(build_schedule_prompt(tasks), max_tokens=2048)
    logger.debug("AI schedule response received, length: %d", len(text))
    return parse_schedule_response(text)


def request_suggestion(task) -> str:
    return complete(build_suggestion_prompt(task), max_tokens=1536)
