"""Domain-specific exceptions"""


class DomainException(Exception):
    """Base exception for domain layer"""

    pass


class PlannedExpenseNotFoundError(DomainException):
    """Referenced planned expense does not exist"""

    def __init__(self, planned_expense_id: str):
        super().__init__(f"Planned expense not found: {planned_expense_id}")
        self.planned_expense_id = planned_expense_id


class TransientDataError(DomainException):
    """Wallets, income sources or transactions could not be loaded"""

    pass


class PersistenceError(DomainException):
    """Confidence level could not be written back"""

    pass
