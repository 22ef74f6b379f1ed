"""
Custom exceptions for the StudyBuddy backend.
Provides specific exception types for better error handling and recovery.
"""


class StudyBuddyException(Exception):
    """Base exception for the application"""
    pass


class UserNotFoundException(StudyBuddyException):
    """Raised when a user record is not found"""
    def __init__(self, user_id: str):
        self.user_id = user_id
        super().__init__(f"User with ID {user_id} not found")


class TaskNotFoundException(StudyBuddyException):
    """Raised when a task is not found"""
    def __init__(self, task_id: int):
        self.task_id = task_id
        super().__init__(f"Task with ID {task_id} not found")


class InvalidDateFormatException(StudyBuddyException):
    """Raised when a date string is not YYYY-MM-DD"""
    def __init__(self, date_str: str):
        self.date_str = date_str
        super().__init__(f"Invalid date format: {date_str}. Expected YYYY-MM-DD")


class InvalidTimeFormatException(StudyBuddyException):
    """Raised when time format is invalid"""
    def __init__(self, time_str: str):
        self.time_str = time_str
        super().__init__(f"Invalid time format: {time_str}. Expected HH:MM")


class InvalidTimezoneException(StudyBuddyException):
    """Raised when a timezone name cannot be resolved"""
    def __init__(self, tz_name: str):
        self.tz_name = tz_name
        super().__init__(f"Unknown timezone: {tz_name}")


class ValidationException(StudyBuddyException):
    """Raised when data validation fails"""
    def __init__(self, field: str, message: str):
        self.field = field
        super().__init__(f"Validation error for {field}: {message}")


class NotificationDeliveryException(StudyBuddyException):
    """Raised when a push notification could not be delivered"""
    def __init__(self, user_id: str, details: str):
        self.user_id = user_id
        self.details = details
        super().__init__(f"Notification to user {user_id} failed: {details}")


class ConcurrentUpdateException(StudyBuddyException):
    """Raised when a user record keeps changing under a read-modify-write"""
    def __init__(self, user_id: str, attempts: int):
        self.user_id = user_id
        self.attempts = attempts
        super().__init__(
            f"User {user_id} was modified concurrently; gave up after {attempts} attempts"
        )


class ConfigurationException(StudyBuddyException):
    """Raised when static configuration breaks an invariant"""
    def __init__(self, message: str):
        super().__init__(f"Configuration error: {message}")


class DatabaseException(StudyBuddyException):
    """Raised when database operations fail"""
    def __init__(self, operation: str, details: str):
        self.operation = operation
        self.details = details
        super().__init__(f"Database {operation} failed: {details}")
