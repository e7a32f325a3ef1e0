"""
Lazy pull-based enumerators and combinators.

An enumerator is a cursor with three capabilities:
- has_current(): is there a value under the cursor
- current(): read it (only while has_current() is true)
- advance(): move to the next value, returning the enumerator itself

Leaf enumerators:
- Sequence: arithmetic progression t0, t0 + dt, ... (infinite)
- BufferView: non-owning view of a run of a numpy buffer

Combinators (take, pair, when, until, apply, counted, fold, chain) wrap
copies of their inputs, so building a combinator never moves the cursor
it was built from. Copying an enumerator duplicates the cursor, never the
underlying storage.
"""

import copy as _copy
from abc import ABC, abstractmethod
from typing import Any, Callable, Generic, Iterator, Optional, Tuple, TypeVar

import numpy as np

T = TypeVar("T")
S = TypeVar("S")


class ExhaustedError(IndexError):
    """Raised when current() is read from an exhausted enumerator."""


class Enumerator(ABC, Generic[T]):
    """
    Abstract pull-based enumerator.

    Subclasses must implement has_current, current and advance. Once
    has_current() is false, advance() is a no-op and the enumerator stays
    exhausted.

    Equality is structural: two enumerators of the same type with the same
    cursor state compare equal. Callables held by combinators compare by
    identity.
    """

    @abstractmethod
    def has_current(self) -> bool:
        """True while current() may be read."""
        pass

    @abstractmethod
    def current(self) -> T:
        """
        Value under the cursor.

        Raises:
            ExhaustedError: If the enumerator is exhausted
        """
        pass

    @abstractmethod
    def advance(self) -> "Enumerator[T]":
        """Move to the next value and return self."""
        pass

    def advanced(self) -> "Enumerator[T]":
        """Advance self and return a snapshot of the state before advancing."""
        snapshot = self.copy()
        self.advance()
        return snapshot

    def copy(self) -> "Enumerator[T]":
        """Duplicate the cursor state (not the underlying storage)."""
        return _copy.copy(self)

    def is_infinite(self) -> bool:
        """True only for enumerators known never to exhaust."""
        return False

    def _state(self) -> Tuple[Any, ...]:
        return tuple(vars(self).values())

    def _require(self) -> None:
        if not self.has_current():
            raise ExhaustedError(f"{type(self).__name__} is exhausted")

    def __bool__(self) -> bool:
        return self.has_current()

    def __eq__(self, other: object) -> bool:
        if type(self) is not type(other):
            return NotImplemented
        return self._state() == other._state()

    __hash__ = None

    def __iter__(self) -> Iterator[T]:
        """Iterate the values of a copy; self is left unchanged."""
        e = self.copy()
        while e.has_current():
            yield e.current()
            e.advance()


class Sequence(Enumerator[float]):
    """
    Arithmetic progression t0, t0 + dt, t0 + 2 dt, ...

    Never exhausts. The k-th value is computed as t0 + k*dt so long
    progressions do not accumulate rounding drift.
    """

    def __init__(self, t0: float = 0.0, dt: float = 1.0):
        self.t0 = t0
        self.dt = dt
        self._k = 0

    def has_current(self) -> bool:
        return True

    def current(self) -> float:
        return self.t0 + self._k * self.dt

    def advance(self) -> "Sequence":
        self._k += 1
        return self

    def is_infinite(self) -> bool:
        return True

    def __repr__(self) -> str:
        return f"Sequence(t0={self.t0}, dt={self.dt}, k={self._k})"


def constant(c: float) -> Sequence:
    """Infinite enumerator repeating c."""
    return Sequence(c, 0.0)


class BufferView(Enumerator[float]):
    """
    Non-owning view of n elements of a buffer starting at offset.

    The view holds a reference to the buffer and a position into it. The
    buffer owner must keep the buffer alive and unmodified for as long as
    any view (or copy of a view) is in use. Lists and tuples are converted
    to a numpy array once, at construction; numpy arrays are referenced
    as given.

    Advancing past the counted length exhausts the view; it never reads
    outside the run.
    """

    def __init__(self, buffer, n: Optional[int] = None, offset: int = 0):
        if not isinstance(buffer, np.ndarray):
            buffer = np.asarray(buffer, dtype=float)
        if buffer.ndim != 1:
            raise ValueError(f"Buffer must be one dimensional, got shape {buffer.shape}")
        if n is None:
            n = len(buffer) - offset
        if offset < 0 or n < 0 or offset + n > len(buffer):
            raise ValueError(
                f"View [{offset}, {offset + n}) is outside buffer of length {len(buffer)}"
            )
        self._buffer = buffer
        self._pos = offset
        self._n = n

    @property
    def remaining(self) -> int:
        """Number of elements left in the view."""
        return self._n

    def has_current(self) -> bool:
        return self._n != 0

    def current(self) -> float:
        self._require()
        return self._buffer[self._pos]

    def advance(self) -> "BufferView":
        if self._n != 0:
            self._n -= 1
            self._pos += 1
        return self

    def _state(self) -> Tuple[Any, ...]:
        return (id(self._buffer), self._pos, self._n)

    def __repr__(self) -> str:
        return f"BufferView(pos={self._pos}, remaining={self._n})"


def array(buffer, n: Optional[int] = None) -> BufferView:
    """View of the first n elements of buffer (all of it by default)."""
    return BufferView(buffer, n)


class take(Enumerator[T]):
    """At most n items of e; exhausted when n reaches 0 or e is exhausted."""

    def __init__(self, n: int, e: Enumerator[T]):
        if n < 0:
            raise ValueError(f"take count must be non-negative, got {n}")
        self._n = n
        self._inner = e.copy()

    def has_current(self) -> bool:
        return self._n != 0 and self._inner.has_current()

    def current(self) -> T:
        self._require()
        return self._inner.current()

    def advance(self) -> "take[T]":
        if self.has_current():
            self._n -= 1
            self._inner.advance()
        return self

    def copy(self) -> "take[T]":
        return take(self._n, self._inner)


def drop(n: int, e: Enumerator[T]) -> Enumerator[T]:
    """Copy of e advanced n times."""
    e = e.copy()
    for _ in range(n):
        e.advance()
    return e


class pair(Enumerator[Tuple[T, S]]):
    """
    Zip two enumerators.

    Live while both are live; current() is the tuple of both currents and
    advance() moves both together.
    """

    def __init__(self, first: Enumerator[T], second: Enumerator[S]):
        self.first = first.copy()
        self.second = second.copy()

    def has_current(self) -> bool:
        return self.first.has_current() and self.second.has_current()

    def current(self) -> Tuple[T, S]:
        self._require()
        return (self.first.current(), self.second.current())

    def advance(self) -> "pair[T, S]":
        if self.has_current():
            self.first.advance()
            self.second.advance()
        return self

    def copy(self) -> "pair[T, S]":
        return pair(self.first, self.second)

    def is_infinite(self) -> bool:
        return self.first.is_infinite() and self.second.is_infinite()


def upto(e: Enumerator[T], p: Callable[[T], bool]) -> Enumerator[T]:
    """Copy of e positioned at the first item satisfying p, or exhausted."""
    e = e.copy()
    while e.has_current() and not p(e.current()):
        e.advance()
    return e


class when(Enumerator[T]):
    """
    Filter: only the items of e satisfying p.

    Skipping is eager, at construction and after each advance, so
    has_current() is always answered without calling p.
    """

    def __init__(self, e: Enumerator[T], p: Callable[[T], bool]):
        self.p = p
        self._inner = upto(e, p)

    def has_current(self) -> bool:
        return self._inner.has_current()

    def current(self) -> T:
        self._require()
        return self._inner.current()

    def advance(self) -> "when[T]":
        if self._inner.has_current():
            self._inner.advance()
            while self._inner.has_current() and not self.p(self._inner.current()):
                self._inner.advance()
        return self

    def copy(self) -> "when[T]":
        clone = _copy.copy(self)
        clone._inner = self._inner.copy()
        return clone

    def is_infinite(self) -> bool:
        return self._inner.is_infinite()


class until(Enumerator[T]):
    """
    Items of e up to, not including, the first one satisfying p.

    Stopping does not discard the underlying position: ``inner`` is left on
    the item that satisfied p, so a scan can be continued from there.
    """

    def __init__(self, e: Enumerator[T], p: Callable[[T], bool]):
        self.p = p
        self._inner = e.copy()

    @property
    def inner(self) -> Enumerator[T]:
        """The wrapped enumerator (live, not a copy)."""
        return self._inner

    def has_current(self) -> bool:
        return self._inner.has_current() and not self.p(self._inner.current())

    def current(self) -> T:
        self._require()
        return self._inner.current()

    def advance(self) -> "until[T]":
        if self.has_current():
            self._inner.advance()
        return self

    def copy(self) -> "until[T]":
        return until(self._inner, self.p)


class apply(Enumerator[S]):
    """
    Lazy map: current() is f(current of e).

    f is held by reference and must stay valid, and give the same answer
    for the same input, for the lifetime of the combinator.
    """

    def __init__(self, e: Enumerator[T], f: Callable[[T], S]):
        self.f = f
        self._inner = e.copy()

    def has_current(self) -> bool:
        return self._inner.has_current()

    def current(self) -> S:
        self._require()
        return self.f(self._inner.current())

    def advance(self) -> "apply[S]":
        self._inner.advance()
        return self

    def copy(self) -> "apply[S]":
        return apply(self._inner, self.f)

    def is_infinite(self) -> bool:
        return self._inner.is_infinite()


class counted(Enumerator[T]):
    """Enumerator that counts how many times it was advanced while live."""

    def __init__(self, e: Enumerator[T], n: int = 0):
        self._inner = e.copy()
        self._n = n

    @property
    def inner(self) -> Enumerator[T]:
        """The wrapped enumerator (live, not a copy)."""
        return self._inner

    def count(self) -> int:
        return self._n

    def has_current(self) -> bool:
        return self._inner.has_current()

    def current(self) -> T:
        self._require()
        return self._inner.current()

    def advance(self) -> "counted[T]":
        if self._inner.has_current():
            self._n += 1
            self._inner.advance()
        return self

    def copy(self) -> "counted[T]":
        return counted(self._inner, self._n)

    def is_infinite(self) -> bool:
        return self._inner.is_infinite()


class fold(Enumerator[S]):
    """
    Running accumulation of e.

    current() is f applied over init and every item up to and including
    the current one, e.g. fold(e, operator.add, 0) yields partial sums.
    """

    def __init__(self, e: Enumerator[T], f: Callable[[S, T], S], init: S):
        self.f = f
        self._acc = init
        self._inner = e.copy()

    def has_current(self) -> bool:
        return self._inner.has_current()

    def current(self) -> S:
        self._require()
        return self.f(self._acc, self._inner.current())

    def advance(self) -> "fold[S]":
        if self._inner.has_current():
            self._acc = self.current()
            self._inner.advance()
        return self

    def copy(self) -> "fold[S]":
        clone = _copy.copy(self)
        clone._inner = self._inner.copy()
        return clone

    def is_infinite(self) -> bool:
        return self._inner.is_infinite()


class chain(Enumerator[T]):
    """Concatenation: the items of first, then the items of second."""

    def __init__(self, first: Enumerator[T], second: Enumerator[T]):
        self.first = first.copy()
        self.second = second.copy()

    def has_current(self) -> bool:
        return self.first.has_current() or self.second.has_current()

    def current(self) -> T:
        self._require()
        if self.first.has_current():
            return self.first.current()
        return self.second.current()

    def advance(self) -> "chain[T]":
        if self.first.has_current():
            self.first.advance()
        else:
            self.second.advance()
        return self

    def copy(self) -> "chain[T]":
        return chain(self.first, self.second)

    def is_infinite(self) -> bool:
        return self.first.is_infinite() or self.second.is_infinite()


def length(e: Enumerator[Any]) -> int:
    """
    Number of items in e, by draining a copy.

    O(n) and never terminates on an infinite enumerator. Meant for tests
    and diagnostics, not for streaming code.
    """
    e = e.copy()
    n = 0
    while e.has_current():
        e.advance()
        n += 1
    return n


def equal(a: Enumerator[Any], b: Enumerator[Any]) -> bool:
    """True if a and b have the same items in the same order."""
    a, b = a.copy(), b.copy()
    while a.has_current() and b.has_current():
        if a.current() != b.current():
            return False
        a.advance()
        b.advance()
    return not a.has_current() and not b.has_current()


def back(e: Enumerator[T]) -> Enumerator[T]:
    """Copy of e positioned at its last item, or exhausted if e is empty."""
    e = e.copy()
    if not e.has_current():
        return e
    while True:
        last = e.advanced()
        if not e.has_current():
            return last


def all_true(e: Enumerator[Any]) -> bool:
    """True if every item of e is truthy (vacuously true when empty)."""
    return not upto(e, lambda v: not v).has_current()


def any_true(e: Enumerator[Any]) -> bool:
    """True if some item of e is truthy."""
    return upto(e, bool).has_current()


def sum_of(e: Enumerator[Any], start: Any = 0):
    """Sum of the items of e."""
    total = start
    for v in e:
        total = total + v
    return total


__all__ = [
    "ExhaustedError",
    "Enumerator",
    "Sequence",
    "constant",
    "BufferView",
    "array",
    "take",
    "drop",
    "pair",
    "upto",
    "when",
    "until",
    "apply",
    "counted",
    "fold",
    "chain",
    "length",
    "equal",
    "back",
    "all_true",
    "any_true",
    "sum_of",
]
