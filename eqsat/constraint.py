"""A small constraint solver that assigns values, such as sorts, to variables."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field, replace
from typing import Any, Callable, Hashable, Iterable, MutableMapping, Optional

KeyFn = Callable[[Any], Any]


def _identity(value: Any) -> Any:
    return value


@dataclass(frozen=True)
class ArityMismatch:
    """An atom was given a different number of arguments than its head takes."""

    head: str
    args: tuple
    expected: int
    actual: int

    def __post_init__(self) -> None:
        object.__setattr__(self, "args", tuple(self.args))


class ConstraintError(Exception):
    """Raised when a set of constraints cannot be satisfied."""


class InconsistentConstraint(ConstraintError):
    """A variable would have to take two different values."""

    def __init__(self, var: Hashable, expected: Any, actual: Any) -> None:
        super().__init__(f"{var!r}: expected {expected!r}, got {actual!r}")
        self.var = var
        self.expected = expected
        self.actual = actual


class UnconstrainedVar(ConstraintError):
    """No constraint determined the value of a variable."""

    def __init__(self, var: Hashable) -> None:
        super().__init__(f"cannot infer a value for {var!r}")
        self.var = var


class NoConstraintSatisfied(ConstraintError):
    """Every alternative of an exclusive choice failed."""

    def __init__(self, errors: Iterable[ConstraintError]) -> None:
        self.errors = list(errors)
        super().__init__(f"all {len(self.errors)} alternatives failed")


class ImpossibleCaseIdentified(ConstraintError):
    """A constraint that can never hold was reached."""

    def __init__(self, reason: ArityMismatch) -> None:
        super().__init__(f"impossible constraint: {reason}")
        self.reason = reason


class Constraint(ABC):
    """A condition on a partial assignment of values to variables."""

    __slots__ = ()

    @abstractmethod
    def update(self, assignment: MutableMapping, key: KeyFn = _identity) -> bool:
        """Refine ``assignment`` in place; return whether it changed.

        Values are compared through ``key``. Raises :class:`ConstraintError`
        on a conflict, leaving ``assignment`` as it was.
        """


@dataclass(frozen=True)
class Eq(Constraint):
    """Two variables take the same value."""

    x: Hashable
    y: Hashable

    def update(self, assignment: MutableMapping, key: KeyFn = _identity) -> bool:
        x_known, y_known = self.x in assignment, self.y in assignment
        if x_known and not y_known:
            assignment[self.y] = assignment[self.x]
            return True
        if y_known and not x_known:
            assignment[self.x] = assignment[self.y]
            return True
        if x_known and y_known:
            v1, v2 = assignment[self.x], assignment[self.y]
            if key(v1) == key(v2):
                return False
            raise InconsistentConstraint(self.x, v1, v2)
        return False


@dataclass(frozen=True)
class Assign(Constraint):
    """A variable takes a given value."""

    var: Hashable
    value: Any

    def update(self, assignment: MutableMapping, key: KeyFn = _identity) -> bool:
        if self.var not in assignment:
            assignment[self.var] = self.value
            return True
        current = assignment[self.var]
        if key(current) == key(self.value):
            return False
        raise InconsistentConstraint(self.var, self.value, current)


@dataclass(frozen=True)
class And(Constraint):
    """All of the constraints hold."""

    constraints: tuple = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "constraints", tuple(self.constraints))

    def update(self, assignment: MutableMapping, key: KeyFn = _identity) -> bool:
        original = dict(assignment)
        updated = False
        for constraint in self.constraints:
            try:
                updated |= constraint.update(assignment, key)
            except ConstraintError:
                assignment.clear()
                assignment.update(original)
                raise
        return updated


@dataclass(frozen=True)
class Xor(Constraint):
    """Exactly one of the constraints holds and all others are false.

    While more than one alternative is still consistent, nothing is learnt.
    """

    constraints: tuple = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "constraints", tuple(self.constraints))

    def update(self, assignment: MutableMapping, key: KeyFn = _identity) -> bool:
        successes = 0
        result: Optional[dict] = None
        result_updated = False
        errors: list[ConstraintError] = []
        for constraint in self.constraints:
            trial = dict(assignment)
            try:
                updated = constraint.update(trial, key)
            except ConstraintError as error:
                errors.append(error)
                continue
            successes += 1
            if successes > 1:
                break
            result, result_updated = trial, updated

        if successes == 1:
            assert result is not None
            assignment.clear()
            assignment.update(result)
            return result_updated
        if successes > 1:
            return False
        raise NoConstraintSatisfied(errors)


@dataclass(frozen=True)
class Impossible(Constraint):
    """A constraint that never holds."""

    reason: ArityMismatch

    def update(self, assignment: MutableMapping, key: KeyFn = _identity) -> bool:
        raise ImpossibleCaseIdentified(self.reason)


@dataclass
class Problem:
    """A conjunction of constraints solved by propagation to a fixed point."""

    constraints: list = field(default_factory=list)

    def solve(self, variables: Iterable[Hashable] = (), key: KeyFn = _identity) -> dict:
        """Return an assignment satisfying every constraint.

        Raises :class:`UnconstrainedVar` if one of ``variables`` is left unassigned.
        """
        assignment: dict = {}
        changed = True
        while changed:
            changed = False
            for constraint in self.constraints:
                changed |= constraint.update(assignment, key)
        for var in variables:
            if var not in assignment:
                raise UnconstrainedVar(var)
        return assignment


@dataclass(frozen=True)
class SimpleTypeConstraint:
    """Assigns each argument, output included, exactly one fixed sort."""

    name: str
    sorts: tuple

    def __post_init__(self) -> None:
        object.__setattr__(self, "sorts", tuple(self.sorts))

    def get(self, arguments) -> list[Constraint]:
        arguments = tuple(arguments)
        if len(arguments) != len(self.sorts):
            return [
                Impossible(
                    ArityMismatch(self.name, arguments, len(self.sorts), len(arguments))
                )
            ]
        return [Assign(arg, sort) for arg, sort in zip(arguments, self.sorts)]


@dataclass(frozen=True)
class AllEqualTypeConstraint:
    """Requires all arguments to have the same sort."""

    name: str
    sort: Any = None
    exact_length: Optional[int] = None
    output: Any = None

    def with_all_arguments_sort(self, sort: Any) -> AllEqualTypeConstraint:
        """Require every argument to have ``sort``; the output too unless set separately."""
        return replace(self, sort=sort)

    def with_exact_length(self, exact_length: int) -> AllEqualTypeConstraint:
        """Require exactly ``exact_length`` arguments, the output included."""
        return replace(self, exact_length=exact_length)

    def with_output_sort(self, output_sort: Any) -> AllEqualTypeConstraint:
        """Require the output argument to have ``output_sort``."""
        return replace(self, output=output_sort)

    def get(self, arguments) -> list[Constraint]:
        arguments = tuple(arguments)
        if not arguments:
            raise ValueError("all arguments should have length > 0")
        if self.exact_length is not None and self.exact_length != len(arguments):
            return [
                Impossible(
                    ArityMismatch(self.name, arguments, self.exact_length, len(arguments))
                )
            ]

        constraints: list[Constraint] = []
        if self.output is not None:
            *rest, out = arguments
            constraints.append(Assign(out, self.output))
            arguments = tuple(rest)

        if self.sort is not None:
            constraints.extend(Assign(arg, self.sort) for arg in arguments)
        elif arguments:
            first, *rest = arguments
            constraints.extend(Eq(arg, first) for arg in rest)
        return constraints