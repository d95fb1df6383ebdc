"""
Domain errors raised by the planning engines and their services.

None of them is an internal failure: every one is recoverable by the caller.
Insufficient resources is not an error and is returned as a typed result
(see ``ecoloop.schemas.planning.InsufficientResources``).
"""

from typing import Optional


class EcoLoopError(Exception):
    """Base class for the domain errors."""

    message = "Eco Loop error"

    def __init__(self, message: Optional[str] = None, **context):
        super().__init__(message or self.message)
        self.context = context


class NoTemplatesFound(EcoLoopError):
    message = "No task templates found"

    def __init__(self, cycle_type: str, experience_level: Optional[str] = None):
        super().__init__(
            f"No task templates found for cycle type: {cycle_type}",
            cycle_type=cycle_type,
            experience_level=experience_level,
        )


class AlreadyGenerated(EcoLoopError):
    message = "Tasks have already been generated for this plan"

    def __init__(self, farm_plan_id: int):
        super().__init__(self.message, farm_plan_id=farm_plan_id)


class NotFoundOrForbidden(EcoLoopError):
    # Same error for "missing" and "owned by someone else"
    message = "Not found"


class AlreadyCompleted(EcoLoopError):
    message = "Task already completed"

    def __init__(self, task_id: int):
        super().__init__(self.message, task_id=task_id)
