class FuelCompanionError(Exception):
    """Base exception for fuel companion errors."""


class InvalidInputError(FuelCompanionError):
    """Raised when a caller supplies a missing, non-numeric or non-positive value."""


class NotFoundError(FuelCompanionError):
    """Raised when a ledger operation references an unknown record id."""


class PersistenceError(FuelCompanionError):
    """Raised when serializing or writing to the key-value store fails."""


class DeserializationError(FuelCompanionError):
    """Raised when a persisted collection cannot be decoded."""


class CatalogError(FuelCompanionError):
    """Raised when a static catalog file is missing or malformed."""
