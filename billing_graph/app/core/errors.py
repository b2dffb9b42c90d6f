from __future__ import annotations


class MaterializationError(Exception):
    """Base class for errors raised by the graph materialization engine."""


class UnknownRootTypeError(MaterializationError, KeyError):
    def __init__(self, token: str):
        super().__init__(token)
        self.token = token

    def __str__(self) -> str:
        return f"no entity type registered for root token '{self.token}'"


class RegistryFrozenError(MaterializationError):
    def __init__(self, token: str):
        super().__init__(f"cannot register '{token}': registry is frozen after first use")
        self.token = token


class InvalidPatternError(MaterializationError, ValueError):
    def __init__(self, pattern: str, reason: str):
        super().__init__(f"invalid dynamic field pattern '{pattern}': {reason}")
        self.pattern = pattern
        self.reason = reason


class MapperError(MaterializationError, ValueError):
    """Raised by generated mappers when a property bag cannot be mapped."""

    def __init__(self, token: str, message: str):
        super().__init__(f"{token}: {message}")
        self.token = token
