"""
Ordered registry of deployment pipeline steps.
"""

from collections import OrderedDict
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterable, Iterator, List, Optional, Tuple


SUCCESS_MARKER = "✅"
ERROR_MARKER = "❌"


class StepStatus(Enum):
    """Step status states."""
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    SUCCESS = "success"
    ERROR = "error"

    @property
    def is_terminal(self) -> bool:
        return self in (StepStatus.SUCCESS, StepStatus.ERROR)


@dataclass
class Step:
    """One named phase of a deployment pipeline."""
    id: str
    label: str
    logs: List[str] = field(default_factory=list)
    status: StepStatus = StepStatus.PENDING

    def to_dict(self) -> Dict[str, object]:
        return {"id": self.id, "label": self.label, "logs": list(self.logs), "status": self.status.value}


# (id, label) pairs shown before the worker reports its own pipeline
DEFAULT_STEPS: List[Tuple[str, str]] = [
    ("auth", "🔐 Authentication"),
    ("clone", "📦 Cloning Repository"),
    ("docker", "🐳 Docker Build"),
    ("push", "📤 Push Image"),
    ("deploy", "🚀 Deploy to Cloud Run"),
]


def derive_status(current: StepStatus, msg: str) -> StepStatus:
    """Next status for a step after it logs msg. Terminal states never move."""
    if current.is_terminal:
        return current
    if SUCCESS_MARKER in msg:
        return StepStatus.SUCCESS
    if ERROR_MARKER in msg:
        return StepStatus.ERROR
    if current == StepStatus.PENDING:
        return StepStatus.IN_PROGRESS
    return current


class StepRegistry:
    """
    Steps keyed by id, iterated in first-seen order.

    Steps are only ever added, appended to or re-statused. reset() is the one
    operation that discards accumulated progress.
    """

    def __init__(self, template: Optional[Iterable[Tuple[str, str]]] = None):
        self._template = list(template) if template is not None else list(DEFAULT_STEPS)
        self._steps: "OrderedDict[str, Step]" = OrderedDict()
        self.reset()

    def reset(self) -> None:
        self._steps = OrderedDict((step_id, Step(id=step_id, label=label)) for step_id, label in self._template)

    def __contains__(self, step_id: str) -> bool:
        return step_id in self._steps

    def __iter__(self) -> Iterator[Step]:
        return iter(self._steps.values())

    def __len__(self) -> int:
        return len(self._steps)

    def get(self, step_id: str) -> Optional[Step]:
        return self._steps.get(step_id)

    def ids(self) -> List[str]:
        return list(self._steps.keys())

    def upsert(self, step_id: str, label: Optional[str] = None) -> Step:
        """Return the step with step_id, creating it at the end if it is new."""
        step = self._steps.get(step_id)
        if step is None:
            step = Step(id=step_id, label=label or step_id)
            self._steps[step_id] = step
        return step

    def append_log(self, step_id: str, msg: str) -> Tuple[Step, bool]:
        """
        Append a log line to a step, synthesizing the step when unknown.

        Returns:
            (step, created) where created is True if the step did not exist before
        """
        created = step_id not in self._steps
        step = self.upsert(step_id)
        step.logs.append(msg)
        step.status = derive_status(step.status, msg)
        return step, created

    def merge(self, entries: Iterable[Tuple[str, str]]) -> None:
        """
        Merge an authoritative step list from the worker.

        Existing steps keep their logs, status and position; new ones are
        appended as pending. Steps missing from the list are dropped only
        if they have no logs yet.
        """
        entries = list(entries)
        wanted = {step_id for step_id, _ in entries}

        merged: "OrderedDict[str, Step]" = OrderedDict()
        for step_id, step in self._steps.items():
            if step_id in wanted or step.logs:
                merged[step_id] = step
        for step_id, label in entries:
            step = merged.get(step_id)
            if step is None:
                merged[step_id] = Step(id=step_id, label=label or step_id)
            elif label:
                step.label = label
        self._steps = merged

    def to_list(self) -> List[Dict[str, object]]:
        return [step.to_dict() for step in self._steps.values()]

    def copy_steps(self) -> List[Step]:
        return [Step(id=s.id, label=s.label, logs=list(s.logs), status=s.status) for s in self._steps.values()]
