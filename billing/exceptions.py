class BillingError(Exception):
    """Base class for billing errors"""


class InsufficientBalance(BillingError):
    """A debit would take a balance below zero"""

    def __init__(self, balance, amount):
        self.balance = balance
        self.amount = amount
        super().__init__(f"Insufficient balance: {balance} available, {amount} required")


class SchedulerLocked(BillingError):
    """Another run of a scheduled job holds its lock"""

    def __init__(self, name):
        self.name = name
        super().__init__(f"Job '{name}' is already running")
