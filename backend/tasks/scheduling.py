# tasks/scheduling.py
from dataclasses import dataclass
from datetime import date, datetime, time, timezone
from typing import Dict, List, Optional

DEFAULT_DURATION = "2 hours"
DEFAULT_PRIORITY = "Medium"
FIRST_SLOT_HOUR = 9
SLOT_LENGTH_HOURS = 2

PRIORITY_WEIGHTS = {
    'High': 3,
    'Medium': 2,
    'Low': 1,
}


def time_slot(position: int) -> str:
    """Two-hour block for the task at zero-based ``position``, starting at 9:00."""
    start = FIRST_SLOT_HOUR + SLOT_LENGTH_HOURS * position
    return f"{start}:00 - {start + SLOT_LENGTH_HOURS}:00"


def _deadline_timestamp(deadline) -> Optional[float]:
    """
    Convert a deadline to a UTC timestamp for comparison.

    Accepts datetimes, dates and ISO strings. Naive values are read as UTC so
    they compare cleanly against aware ones. Anything unparseable counts as
    no deadline.
    """
    if deadline is None or deadline == '':
        return None

    if isinstance(deadline, str):
        try:
            deadline = datetime.fromisoformat(deadline.replace('Z', '+00:00'))
        except ValueError:
            return None

    if isinstance(deadline, datetime):
        if deadline.tzinfo is None:
            deadline = deadline.replace(tzinfo=timezone.utc)
        return deadline.timestamp()

    if isinstance(deadline, date):
        return datetime.combine(deadline, time.min, tzinfo=timezone.utc).timestamp()

    return None


def _deadline_label(deadline) -> Optional[str]:
    if deadline is None or deadline == '':
        return None
    if isinstance(deadline, (datetime, date)):
        return deadline.isoformat()
    return str(deadline)


@dataclass(frozen=True)
class ScheduleEntry:
    task_id: str
    title: str
    priority: str
    deadline: Optional[str]
    estimated_duration: str
    suggested_time_slot: str
    reasoning: str

    @property
    def id(self) -> str:
        return f"schedule-{self.task_id}"

    def as_dict(self) -> Dict:
        return {
            'id': self.id,
            'taskId': self.task_id,
            'title': self.title,
            'priority': self.priority,
            'deadline': self.deadline,
            'estimatedDuration': self.estimated_duration,
            'suggestedTimeSlot': self.suggested_time_slot,
            'reasoning': self.reasoning,
        }


class FallbackScheduler:
    """
    Deterministic schedule used whenever the AI service cannot be used.

    Ordering:
    - Priority weight, highest first (High=3, Medium=2, Low=1)
    - Among equal priorities, tasks with a deadline come first, earliest first
    - Everything else keeps its input order (the sort is stable)

    Each task then gets a consecutive two-hour slot starting at 9:00.
    The scheduler accepts any finite list of task dicts and never raises.
    """

    def priority_weight(self, priority: Optional[str]) -> int:
        """Weight of a priority label; unknown labels weigh as Medium."""
        return PRIORITY_WEIGHTS.get(priority, PRIORITY_WEIGHTS[DEFAULT_PRIORITY])

    def sort_key(self, task: Dict):
        deadline = _deadline_timestamp(task.get('deadline'))
        return (
            -self.priority_weight(task.get('priority')),
            deadline is None,
            deadline if deadline is not None else 0.0,
        )

    def order_tasks(self, tasks: List[Dict]) -> List[Dict]:
        """
        Return a new list with ``tasks`` in scheduling order.

        Args:
            tasks: Task dictionaries with 'priority' and optional 'deadline'

        Returns:
            The same dictionaries, reordered. The input list is not modified.
        """
        return sorted(tasks, key=self.sort_key)

    def reasoning_for(self, priority: str) -> str:
        return f"{priority} priority task scheduled based on deadline and importance"

    def schedule(self, tasks: List[Dict]) -> List[ScheduleEntry]:
        """
        Build one schedule entry per task, in scheduling order.

        Args:
            tasks: Task dictionaries with 'id', 'title', 'priority' and 'deadline'

        Returns:
            List of ScheduleEntry, same length as ``tasks``
        """
        entries = []
        for position, task in enumerate(self.order_tasks(tasks)):
            priority = task.get('priority') or DEFAULT_PRIORITY
            entries.append(ScheduleEntry(
                task_id=str(task.get('id', f"task_{position}")),
                title=task.get('title') or "",
                priority=priority,
                deadline=_deadline_label(task.get('deadline')),
                estimated_duration=DEFAULT_DURATION,
                suggested_time_slot=time_slot(position),
                reasoning=self.reasoning_for(priority),
            ))
        return entries


def _match_task(title: Optional[str], position: int, tasks: List[Dict]) -> Optional[Dict]:
    """
    Find the stored task an AI schedule item refers to.

    Exact title first, then the first case-insensitive substring match in
    either direction, then the task at the same position.
    """
    if title:
        for task in tasks:
            if task.get('title') == title:
                return task

        needle = title.lower()
        for task in tasks:
            candidate = (task.get('title') or '').lower()
            if candidate and (needle in candidate or candidate in needle):
                return task

    if 0 <= position < len(tasks):
        return tasks[position]
    return None


def reconcile_ai_schedule(items, tasks: List[Dict]) -> List[ScheduleEntry]:
    """
    Turn validated AI schedule items into schedule entries.

    Args:
        items: ScheduleItemPayload objects, in the order the AI returned them
        tasks: The incomplete task dictionaries that were sent to the AI

    Returns:
        One ScheduleEntry per item. Items that match no task keep their own
        title and get an ``unknown-<position>`` task id.
    """
    entries = []
    for position, item in enumerate(items):
        task = _match_task(item.task_title, position, tasks)

        if task is not None:
            task_id = str(task.get('id'))
            title = item.task_title or task.get('title') or "Unknown Task"
            priority = item.priority or task.get('priority') or DEFAULT_PRIORITY
            deadline = _deadline_label(task.get('deadline'))
        else:
            task_id = f"unknown-{position}"
            title = item.task_title or "Unknown Task"
            priority = item.priority or DEFAULT_PRIORITY
            deadline = None

        entries.append(ScheduleEntry(
            task_id=task_id,
            title=title,
            priority=priority,
            deadline=deadline,
            estimated_duration=item.estimated_duration or DEFAULT_DURATION,
            suggested_time_slot=item.suggested_time_slot or time_slot(position),
            reasoning=item.reasoning or f"{priority} priority task scheduled for optimal productivity",
        ))
    return entries
