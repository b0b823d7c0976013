"""Exception hierarchy for invoicecast."""


class BillingError(Exception):
    """Base exception for all invoicecast errors."""


class TransactionDataError(BillingError):
    """Raised when a transaction export is structurally unusable."""


class ConfigurationError(BillingError):
    """Raised when configuration is invalid."""
