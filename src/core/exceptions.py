"""
Domain exceptions.

Все ошибки — ошибки клиентского ввода, ни одна не повторяется (retry).
Наследуются от ValueError, как и исключения сервисного слоя.
API слой переводит их в HTTP статусы (см. api/errors.py).
"""


class TaskError(ValueError):
    """Base class for all task domain errors."""

    code = "TASK_ERROR"

    def __init__(self, message: str, field: str | None = None):
        self.message = message
        self.field = field
        super().__init__(message)


class ValidationError(TaskError):
    """
    A stored field violates its constraint.

    Raised by the Task model validators (title, description, priority,
    due date, tags, completion flag).
    """

    code = "VALIDATION_ERROR"

    def __init__(self, field: str, message: str):
        super().__init__(message, field=field)


class InvalidIdError(TaskError):
    """Identifier is not a 24-character hexadecimal string."""

    code = "INVALID_ID"

    def __init__(self, task_id: str):
        self.task_id = task_id
        super().__init__("Invalid task ID format", field="id")


class InvalidDueDateError(TaskError):
    """Due date is not strictly in the future."""

    code = "INVALID_DUE_DATE"

    def __init__(self, message: str = "Due date must be in the future"):
        super().__init__(message, field="dueDate")


class NotFoundError(TaskError):
    """Well-formed identifier, but no such record."""

    code = "NOT_FOUND"

    def __init__(self, resource: str, resource_id: str):
        self.resource = resource
        self.resource_id = resource_id
        super().__init__(f"{resource} not found")
