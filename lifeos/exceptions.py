"""
Custom exceptions for the LifeOS routine engine.
Provides specific exception types for better error handling and recovery.
"""


class LifeOSException(Exception):
    """Base exception for the application"""
    pass


class ValidationException(LifeOSException):
    """Raised when input data fails validation (reported as 400)"""
    def __init__(self, field: str, message: str):
        self.field = field
        self.message = message
        super().__init__(f"Validation error for {field}: {message}")


class TaskNotFoundException(LifeOSException):
    """Raised when a task is missing or has been deactivated"""
    def __init__(self, task_id: int):
        self.task_id = task_id
        super().__init__(f"Task with ID {task_id} not found")


class RestDayNotFoundException(LifeOSException):
    """Raised when a rest day is not found"""
    def __init__(self, rest_day_id: int):
        self.rest_day_id = rest_day_id
        super().__init__(f"Rest day with ID {rest_day_id} not found")


class LogConflictException(LifeOSException):
    """Raised when two writers race to create the log for the same (task, day)"""
    def __init__(self, task_id: int, day):
        self.task_id = task_id
        self.day = day
        super().__init__(f"Concurrent write for task {task_id} on {day}")


class LedgerUnderflowException(LifeOSException):
    """Raised internally when a subtraction would drive a ledger total negative"""
    def __init__(self, domain: str, available: int, requested: int):
        self.domain = domain
        self.available = available
        self.requested = requested
        super().__init__(
            f"Cannot subtract {requested} points from {domain}: only {available} available"
        )


class NotificationDeliveryException(LifeOSException):
    """Raised by a notification sender when delivery to one recipient fails"""
    def __init__(self, channel: str, message: str):
        self.channel = channel
        super().__init__(f"Notification via {channel} failed: {message}")
