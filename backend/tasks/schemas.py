# tasks/schemas.py
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, field_validator

PRIORITY_LABELS = ('High', 'Medium', 'Low')


class ScheduleItemPayload(BaseModel):
    """
    One item of the schedule array returned by the AI service.

    Every field is optional: the model is free-form text, so anything missing,
    blank or of the wrong type becomes None and is filled in later from the
    matched task or a fixed default.
    """

    model_config = ConfigDict(populate_by_name=True, extra='ignore')

    task_title: Optional[str] = Field(None, alias='taskTitle')
    priority: Optional[str] = None
    suggested_time_slot: Optional[str] = Field(None, alias='suggestedTimeSlot')
    estimated_duration: Optional[str] = Field(None, alias='estimatedDuration')
    reasoning: Optional[str] = None

    @field_validator(
        'task_title', 'priority', 'suggested_time_slot', 'estimated_duration', 'reasoning',
        mode='before',
    )
    @classmethod
    def _coerce_text(cls, value):
        if value is None or isinstance(value, (dict, list, bool)):
            return None
        text = str(value).strip()
        return text or None

    @field_validator('priority')
    @classmethod
    def _normalize_priority(cls, value):
        if value is None:
            return None
        for label in PRIORITY_LABELS:
            if value.lower() == label.lower():
                return label
        return None


schedule_payload_adapter = TypeAdapter(List[ScheduleItemPayload])
