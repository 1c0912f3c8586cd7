"""
Resultado explicito de una busqueda por clave natural.

Distingue "no existe" de "fallo de I/O" sin recurrir a None ni a excepciones
que crucen la frontera de los servicios.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Generic, Optional, TypeVar

T = TypeVar("T")


class LookupOutcome(str, Enum):
    FOUND = "found"
    NOT_FOUND = "not_found"
    ERROR = "error"


@dataclass(frozen=True)
class LookupResult(Generic[T]):
    """Found(record) | NotFound | Error(cause)."""

    outcome: LookupOutcome
    record: Optional[T] = None
    error: Optional[BaseException] = None

    @classmethod
    def found(cls, record: T) -> "LookupResult[T]":
        return cls(outcome=LookupOutcome.FOUND, record=record)

    @classmethod
    def not_found(cls) -> "LookupResult[T]":
        return cls(outcome=LookupOutcome.NOT_FOUND)

    @classmethod
    def failed(cls, error: BaseException) -> "LookupResult[T]":
        return cls(outcome=LookupOutcome.ERROR, error=error)

    @property
    def is_found(self) -> bool:
        return self.outcome == LookupOutcome.FOUND

    @property
    def is_not_found(self) -> bool:
        return self.outcome == LookupOutcome.NOT_FOUND

    @property
    def is_error(self) -> bool:
        return self.outcome == LookupOutcome.ERROR

    def unwrap(self) -> T:
        """
        Retorna el registro encontrado.

        Raises:
            LookupError: si no hay registro
            la excepcion original: si la busqueda fallo
        """
        if self.is_error and self.error is not None:
            raise self.error
        if not self.is_found:
            raise LookupError("El registro no existe")
        return self.record
