class ExpenseTrackerError(Exception):
    """Base class for errors that carry a user-facing message."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(ExpenseTrackerError):
    status_code = 422


class InvalidCategoryError(ValidationError):
    def __init__(self, category_id: str):
        super().__init__(f"Category '{category_id}' does not exist")
        self.category_id = category_id


class InvalidDateRangeError(ValidationError):
    def __init__(self, start, end):
        super().__init__(f"start_date ({start}) must not be after end_date ({end})")


class NotFoundError(ExpenseTrackerError):
    status_code = 404

    def __init__(self, kind: str, record_id: str):
        super().__init__(f"{kind} '{record_id}' not found")
        self.kind = kind
        self.record_id = record_id


class ConflictError(ExpenseTrackerError):
    status_code = 409


class DuplicateCategoryError(ConflictError):
    def __init__(self, name: str):
        super().__init__(f"A category named '{name}' already exists")
        self.name = name


class CategoryInUseError(ConflictError):
    def __init__(self, category_id: str):
        super().__init__("Category is still used by one or more expenses and cannot be removed")
        self.category_id = category_id
