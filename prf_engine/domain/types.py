from dataclasses import dataclass
from typing import Generic, TypeVar

T = TypeVar("T")
E = TypeVar("E", bound=BaseException)


@dataclass(frozen=True)
class Result(Generic[T, E]):
    ok: bool
    value: T | None = None
    error: E | None = None

    @staticmethod
    def success(v: T) -> "Result[T, E]":
        return Result(ok=True, value=v)

    @staticmethod
    def failure(e: E) -> "Result[T, E]":
        return Result(ok=False, error=e)


Term = str
Weight = float
Score = float
