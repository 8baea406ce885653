"""Validator policies - who may confirm pending requests."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Iterable

from .types import normalize_address


class ValidatorPolicy(ABC):
    """Decides whether a caller may confirm pending requests."""

    @abstractmethod
    def is_authorized_validator(self, caller: str | None) -> bool:
        ...

    def __call__(self, caller: str | None) -> bool:
        return self.is_authorized_validator(caller)


@dataclass(frozen=True)
class AllowListPolicy(ValidatorPolicy):
    """Only the listed addresses may confirm."""
    validators: frozenset[str] = field(default_factory=frozenset)

    @classmethod
    def of(cls, validators: Iterable[str]) -> AllowListPolicy:
        return cls(frozenset(normalize_address(v) for v in validators))

    def is_authorized_validator(self, caller: str | None) -> bool:
        return caller is not None and normalize_address(caller) in self.validators


class AllowAnyPolicy(ValidatorPolicy):
    """Every caller, including anonymous ones, may confirm."""

    def is_authorized_validator(self, caller: str | None) -> bool:
        return True
