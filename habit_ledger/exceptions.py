"""
Custom exceptions for the habit ledger.
Provides specific exception types so callers see failures instead of silent no-ops.
"""


class HabitLedgerException(Exception):
    """Base exception for the habit ledger"""
    pass


class HabitNotFoundException(HabitLedgerException):
    """Raised when a habit is missing or deactivated"""
    def __init__(self, habit_id: int):
        self.habit_id = habit_id
        super().__init__(f"Habit with ID {habit_id} not found")


class GoalNotFoundException(HabitLedgerException):
    """Raised when a goal is not found"""
    def __init__(self, goal_id: int):
        self.goal_id = goal_id
        super().__init__(f"Goal with ID {goal_id} not found")


class InvalidTimeFormatException(HabitLedgerException):
    """Raised when time format is invalid"""
    def __init__(self, time_str: str):
        self.time_str = time_str
        super().__init__(f"Invalid time format: {time_str}. Expected HH:MM")


class DatabaseException(HabitLedgerException):
    """Raised when database operations fail"""
    def __init__(self, operation: str, details: str):
        self.operation = operation
        self.details = details
        super().__init__(f"Database {operation} failed: {details}")


class StoreInitializationException(HabitLedgerException):
    """Raised when the store cannot be opened at startup. Not recoverable."""
    def __init__(self, details: str):
        self.details = details
        super().__init__(f"Store initialization failed: {details}")


class ValidationException(HabitLedgerException):
    """Raised when data validation fails"""
    def __init__(self, field: str, message: str):
        self.field = field
        super().__init__(f"Validation error for {field}: {message}")
