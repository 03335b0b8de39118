"""Writing prompt model.

A prompt is either a Task 1 item (graph, table, process or map, always
with a visual description) or a Task 2 item (an essay question of one of
five fixed types). The two are separate classes; code that needs to
treat them differently dispatches on the class.

Dict shape (storage rows, API payloads and oracle candidates):
    task, task1_type, task2_question_type, prompt_text, difficulty,
    topic_tags, visual_description, image_url, metadata
with the alternate fields of the other task set to null.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Literal, Union

from ielts_writing.core.errors import PromptValidationError

# =============================================================================
# TYPES
# =============================================================================

TaskType = Literal["task1", "task2"]
Task1Type = Literal["graph", "table", "process", "map"]
Task2QuestionType = Literal[
    "agree_disagree",
    "discuss_both_views",
    "problem_solution",
    "advantages_disadvantages",
    "two_direct_questions",
]

TASK_TYPES: tuple[str, ...] = ("task1", "task2")
TASK1_TYPES: tuple[str, ...] = ("graph", "table", "process", "map")
TASK2_QUESTION_TYPES: tuple[str, ...] = (
    "agree_disagree",
    "discuss_both_views",
    "problem_solution",
    "advantages_disadvantages",
    "two_direct_questions",
)
DIFFICULTIES: tuple[int, ...] = (1, 2, 3)

TASK_LABELS: dict[str, str] = {
    "task1": "Writing Task 1",
    "task2": "Writing Task 2",
}


# =============================================================================
# DATA CLASSES
# =============================================================================


@dataclass
class ProcessMetadata:
    """Extra detail for a process diagram."""

    stages: int
    flow: Literal["linear", "cyclical"]
    inputs: list[str] | None = None
    output: str | None = None


@dataclass
class MapMetadata:
    """Extra detail for a map comparison."""

    years: tuple[int, int]
    key_changes: list[str]
    retained: list[str] | None = None


@dataclass
class Task1Prompt:
    """A Task 1 report prompt built around a visual."""

    task1_type: Task1Type
    prompt_text: str
    visual_description: str
    difficulty: int = 2
    topic_tags: list[str] = field(default_factory=list)
    image_url: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)
    prompt_id: str | None = None
    created_at: str = ""

    task: TaskType = field(default="task1", init=False)

    def process_metadata(self) -> ProcessMetadata | None:
        """Typed metadata for process prompts."""
        if self.task1_type != "process":
            return None
        return ProcessMetadata(
            stages=int(self.metadata["stages"]),
            flow=self.metadata["flow"],
            inputs=self.metadata.get("inputs"),
            output=self.metadata.get("output"),
        )

    def map_metadata(self) -> MapMetadata | None:
        """Typed metadata for map prompts."""
        if self.task1_type != "map":
            return None
        first, second = self.metadata["years"]
        return MapMetadata(
            years=(int(first), int(second)),
            key_changes=list(self.metadata["key_changes"]),
            retained=self.metadata.get("retained"),
        )


@dataclass
class Task2Prompt:
    """A Task 2 essay question."""

    task2_question_type: Task2QuestionType
    prompt_text: str
    difficulty: int = 2
    topic_tags: list[str] = field(default_factory=list)
    image_url: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)
    prompt_id: str | None = None
    created_at: str = ""

    task: TaskType = field(default="task2", init=False)


WritingPrompt = Union[Task1Prompt, Task2Prompt]


# =============================================================================
# VALIDATION
# =============================================================================


def _validate_process_metadata(metadata: dict[str, Any]) -> None:
    stages = metadata.get("stages")
    if not isinstance(stages, int) or isinstance(stages, bool) or stages < 1:
        raise PromptValidationError("process metadata needs a positive integer 'stages'")
    if metadata.get("flow") not in ("linear", "cyclical"):
        raise PromptValidationError("process metadata 'flow' must be 'linear' or 'cyclical'")


def _validate_map_metadata(metadata: dict[str, Any]) -> None:
    years = metadata.get("years")
    if (
        not isinstance(years, (list, tuple))
        or len(years) != 2
        or not all(isinstance(y, int) and not isinstance(y, bool) for y in years)
    ):
        raise PromptValidationError("map metadata 'years' must be two integers")
    key_changes = metadata.get("key_changes")
    if not isinstance(key_changes, list) or not key_changes:
        raise PromptValidationError("map metadata needs a non-empty 'key_changes' list")


def _common_fields(data: dict[str, Any]) -> dict[str, Any]:
    prompt_text = (data.get("prompt_text") or "").strip()
    if not prompt_text:
        raise PromptValidationError("prompt_text is required")

    difficulty = data.get("difficulty", 2)
    if isinstance(difficulty, bool) or difficulty not in DIFFICULTIES:
        raise PromptValidationError(f"difficulty must be one of {DIFFICULTIES}")

    topic_tags = data.get("topic_tags") or []
    if not isinstance(topic_tags, list) or not all(isinstance(t, str) for t in topic_tags):
        raise PromptValidationError("topic_tags must be a list of strings")

    metadata = data.get("metadata") or {}
    if not isinstance(metadata, dict):
        raise PromptValidationError("metadata must be an object")

    return {
        "prompt_text": prompt_text,
        "difficulty": int(difficulty),
        "topic_tags": topic_tags,
        "image_url": data.get("image_url"),
        "metadata": metadata,
        "prompt_id": data.get("prompt_id") or data.get("id"),
        "created_at": data.get("created_at") or "",
    }


def prompt_from_dict(data: dict[str, Any]) -> WritingPrompt:
    """Build a typed prompt from its flat dict shape.

    Raises:
        PromptValidationError: If the dict does not describe a valid prompt
    """
    task = data.get("task")
    common = _common_fields(data)

    if task == "task1":
        if data.get("task2_question_type") is not None:
            raise PromptValidationError("task1 prompts cannot carry a task2_question_type")
        task1_type = data.get("task1_type")
        if task1_type not in TASK1_TYPES:
            raise PromptValidationError(f"task1_type must be one of {TASK1_TYPES}")
        visual = (data.get("visual_description") or "").strip()
        if not visual:
            raise PromptValidationError("task1 prompts need a visual_description")
        if task1_type == "process":
            _validate_process_metadata(common["metadata"])
        elif task1_type == "map":
            _validate_map_metadata(common["metadata"])
        return Task1Prompt(task1_type=task1_type, visual_description=visual, **common)

    if task == "task2":
        if data.get("task1_type") is not None:
            raise PromptValidationError("task2 prompts cannot carry a task1_type")
        question_type = data.get("task2_question_type")
        if question_type not in TASK2_QUESTION_TYPES:
            raise PromptValidationError(
                f"task2_question_type must be one of {TASK2_QUESTION_TYPES}"
            )
        return Task2Prompt(task2_question_type=question_type, **common)

    raise PromptValidationError(f"task must be one of {TASK_TYPES}, got {task!r}")


def prompt_to_dict(prompt: WritingPrompt) -> dict[str, Any]:
    """Flatten a typed prompt to its dict shape."""
    base = {
        "prompt_id": prompt.prompt_id,
        "task": prompt.task,
        "prompt_text": prompt.prompt_text,
        "difficulty": prompt.difficulty,
        "topic_tags": list(prompt.topic_tags),
        "image_url": prompt.image_url,
        "metadata": dict(prompt.metadata),
        "created_at": prompt.created_at,
    }
    if isinstance(prompt, Task1Prompt):
        base.update(
            task1_type=prompt.task1_type,
            task2_question_type=None,
            visual_description=prompt.visual_description,
        )
    elif isinstance(prompt, Task2Prompt):
        base.update(
            task1_type=None,
            task2_question_type=prompt.task2_question_type,
            visual_description=None,
        )
    else:
        raise TypeError(f"Unknown prompt type: {type(prompt).__name__}")
    return base


def prompt_subtype(prompt: WritingPrompt) -> str:
    """The task-specific sub-type: task1_type or task2_question_type."""
    if isinstance(prompt, Task1Prompt):
        return prompt.task1_type
    if isinstance(prompt, Task2Prompt):
        return prompt.task2_question_type
    raise TypeError(f"Unknown prompt type: {type(prompt).__name__}")


def examiner_prompt_text(prompt: WritingPrompt) -> str:
    """Question text as shown to the examiner.

    Task 1 prompts append the visual description so the examiner can
    check reported figures against it. Process and map prompts add their
    stage or year facts.
    """
    if isinstance(prompt, Task1Prompt):
        text = f"{prompt.prompt_text}\n\nVisual description:\n{prompt.visual_description}"
        process = prompt.process_metadata()
        if process is not None:
            text += f"\nStages: {process.stages} ({process.flow})"
        maps = prompt.map_metadata()
        if maps is not None:
            text += f"\nYears: {maps.years[0]} to {maps.years[1]}"
            text += f"\nKey changes: {'; '.join(maps.key_changes)}"
        return text
    if isinstance(prompt, Task2Prompt):
        return prompt.prompt_text
    raise TypeError(f"Unknown prompt type: {type(prompt).__name__}")


def utc_now() -> str:
    """Current UTC time as an ISO 8601 string."""
    return datetime.now(timezone.utc).isoformat()
