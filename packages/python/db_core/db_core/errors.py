"""Errors raised while reaching the document store."""


class ConfigurationError(RuntimeError):
    """Raised when a required connection setting is missing."""


class StoreConnectionError(ConnectionError):
    """Raised when the store cannot be reached or rejects the credentials."""
