"""Override-merge helpers and error-accumulating validation results."""

from dataclasses import dataclass, field
from typing import Callable, Dict, Generic, List, Optional, TypeVar

T = TypeVar("T")
U = TypeVar("U")
K = TypeVar("K")
V = TypeVar("V")


def last(left: Optional[T], right: Optional[T]) -> Optional[T]:
    """Rightmost set value wins; ``None`` is the unset identity."""
    return left if right is None else right


def merge_maps(left: Dict[K, V], right: Dict[K, V]) -> Dict[K, V]:
    """Key-wise union where ``right`` wins on collision."""
    merged = dict(left)
    merged.update(right)
    return merged


@dataclass
class Validation(Generic[T]):
    """Either a value or the list of every problem found while building it."""

    value: Optional[T] = None
    errors: List[str] = field(default_factory=list)

    @classmethod
    def success(cls, value: T) -> "Validation[T]":
        return cls(value=value)

    @classmethod
    def failure(cls, *errors: str) -> "Validation[T]":
        return cls(errors=list(errors))

    @property
    def ok(self) -> bool:
        return not self.errors

    def map(self, func: Callable[[T], U]) -> "Validation[U]":
        if not self.ok:
            return Validation(errors=list(self.errors))
        return Validation.success(func(self.value))


def require(name: str, value: Optional[T]) -> Validation[T]:
    if value is None:
        return Validation.failure(f"Missing {name} option")
    return Validation.success(value)


def with_context(context: str, result: Validation[T]) -> Validation[T]:
    """Prefix every error of ``result`` with a field path such as ``"postgres_plan: "``."""
    if result.ok:
        return result
    return Validation(errors=[f"{context}{error}" for error in result.errors])


def accumulate(**results: Validation) -> Validation[Dict[str, object]]:
    """Run independent validations side by side and concatenate their failures.

    On success the value is a mapping of keyword to unwrapped value, ready to be
    splatted into a complete record constructor.
    """
    errors: List[str] = []
    values: Dict[str, object] = {}
    for name, result in results.items():
        if result.ok:
            values[name] = result.value
        else:
            errors.extend(result.errors)
    if errors:
        return Validation(errors=errors)
    return Validation.success(values)
