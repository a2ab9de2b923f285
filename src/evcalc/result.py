"""Tagged success/failure values returned by fallible operations."""

from dataclasses import dataclass
from typing import Generic, TypeVar, Union

T = TypeVar("T")
E = TypeVar("E")


@dataclass(frozen=True)
class Ok(Generic[T]):
    """Successful outcome carrying a value."""

    value: T
    success = True


@dataclass(frozen=True)
class Err(Generic[E]):
    """Failed outcome carrying a typed error."""

    error: E
    success = False


Result = Union[Ok[T], Err[E]]
