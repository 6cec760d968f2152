"""Persistent edge paths.

An edge path is a word in the oriented edges of a graph. Paths are immutable
and built as a small tree of nodes so that the operations applied on every
move of the algorithm (inversion, concatenation, substitution, prefixes and
suffixes) never have to flatten long images eagerly:

- FlatPath: a plain tuple of oriented edges
- ConcatPath: a concatenation of non-flat subpaths
- ConjugatePath: a conjugate ``outer · inner · outer⁻¹`` (or the right-hand variant)
- NamedPath: a path bound to a definition name, printed by that name

Equality and hashing always refer to the flattened sequence of edges.
"""

from abc import ABC, abstractmethod
from collections.abc import Callable, Iterable, Iterator
from typing import Protocol, Union


class Letter(Protocol):
    """Anything that can appear in an edge path (in practice an OrientedEdge)."""

    @property
    def name(self) -> str: ...

    def reversed(self) -> "Letter": ...


Substitution = Callable[[Letter], Union[Letter, "EdgePath", None]]


def reverse_case(name: str) -> str:
    """Name of the reversed orientation: ``a`` <-> ``A``, ``a1`` <-> ``A1``."""
    for char in name:
        if char.isalpha():
            return name.lower() if char.isupper() else name.upper()
    return name


class EdgePath(ABC):
    """Immutable, possibly empty word in oriented edges."""

    @abstractmethod
    def __len__(self) -> int: ...

    @abstractmethod
    def __iter__(self) -> Iterator[Letter]: ...

    @abstractmethod
    def inverse(self) -> "EdgePath":
        """Reverse the order and flip every edge."""

    @abstractmethod
    def replace(self, substitution: Substitution) -> "EdgePath":
        """Apply a substitution homomorphism.

        Args:
            substitution: Maps every letter to a letter, a path, or None to
                drop the letter

        Returns:
            The substituted path
        """

    @abstractmethod
    def relabel(self, relabeling: Callable[[Letter], Letter]) -> "EdgePath":
        """Replace letters one-for-one, keeping the tree structure and names."""

    @abstractmethod
    def take(self, count: int) -> "EdgePath":
        """Prefix of the given length."""

    @abstractmethod
    def skip(self, count: int) -> "EdgePath":
        """Suffix obtained by dropping the given number of letters."""

    @abstractmethod
    def _render(self) -> str: ...

    def concat(self, other: "EdgePath") -> "EdgePath":
        if not other:
            return self
        if not self:
            return other
        return EdgePath.concatenate((self, other))

    def __add__(self, other: object) -> "EdgePath":
        if not isinstance(other, EdgePath):
            return NotImplemented
        return self.concat(other)

    def conjugate(self, outer: "EdgePath", left: bool = True) -> "EdgePath":
        """Conjugate this path by ``outer``.

        Args:
            outer: The conjugating path
            left: If True the result reads ``outer · self · outer⁻¹``,
                otherwise ``outer⁻¹ · self · outer``

        Returns:
            The conjugate (self if outer is empty, empty if self is empty)
        """
        if not self:
            return EMPTY
        if not outer:
            return self
        return ConjugatePath(self, outer, left)

    def __getitem__(self, index: int) -> Letter:
        length = len(self)
        if index < 0:
            index += length
        if not 0 <= index < length:
            raise IndexError(f"index {index} out of range for path of length {length}")
        return self._element_at(index)

    def _element_at(self, index: int) -> Letter:
        for position, letter in enumerate(self):
            if position == index:
                return letter
        raise IndexError(index)

    def __bool__(self) -> bool:
        return len(self) > 0

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, EdgePath):
            return NotImplemented
        if len(self) != len(other):
            return False
        return all(a == b for a, b in zip(self, other))

    def __hash__(self) -> int:
        return hash(tuple(self))

    @property
    def first(self) -> Letter | None:
        return self[0] if self else None

    @property
    def last(self) -> Letter | None:
        return self[-1] if self else None

    def count(self, letter: Letter) -> int:
        return sum(1 for other in self if other == letter)

    def named_paths(self) -> list["NamedPath"]:
        """Definitions used inside this path."""
        return []

    def to_string(self, max_length: int | None = None, tail: int = 10) -> str:
        """Render the path.

        Args:
            max_length: Paths longer than this are printed flat and truncated
            tail: Number of trailing edges kept after the ellipsis

        Returns:
            Human readable form of the path
        """
        if max_length is not None and len(self) > max_length:
            letters = list(self)
            head = letters[: max(max_length - tail, 0)]
            end = letters[len(letters) - min(tail, len(letters)) :]
            return (
                " ".join(letter.name for letter in head)
                + " ... "
                + " ".join(letter.name for letter in end)
            )
        return self._render()

    def __str__(self) -> str:
        return self.to_string()

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.to_string(40)!r})"

    @staticmethod
    def from_letters(letters: Iterable[Letter]) -> "EdgePath":
        path = FlatPath(letters)
        return path if path else EMPTY

    @staticmethod
    def concatenate(paths: Iterable["EdgePath"]) -> "EdgePath":
        """Concatenate paths, merging flat parts and compatible conjugates."""
        parts: list[EdgePath] = []
        pending: list[Letter] = []
        for path in paths:
            pieces = path.parts if isinstance(path, ConcatPath) else (path,)
            for piece in pieces:
                if not piece:
                    continue
                if isinstance(piece, FlatPath):
                    pending.extend(piece.letters)
                    continue
                if pending:
                    parts.append(FlatPath(pending))
                    pending = []
                previous = parts[-1] if parts else None
                if (
                    isinstance(piece, ConjugatePath)
                    and isinstance(previous, ConjugatePath)
                    and previous.mergeable(piece)
                ):
                    parts[-1] = previous.merge(piece)
                    continue
                parts.append(piece)
        if pending:
            parts.append(FlatPath(pending))
        if not parts:
            return EMPTY
        if len(parts) == 1:
            return parts[0]
        return ConcatPath(parts)


class FlatPath(EdgePath):
    """A plain sequence of oriented edges."""

    def __init__(self, letters: Iterable[Letter] = ()) -> None:
        self._letters = tuple(letters)
        self._inverse: EdgePath | None = None

    @property
    def letters(self) -> tuple[Letter, ...]:
        return self._letters

    def __len__(self) -> int:
        return len(self._letters)

    def __iter__(self) -> Iterator[Letter]:
        return iter(self._letters)

    def _element_at(self, index: int) -> Letter:
        return self._letters[index]

    def inverse(self) -> EdgePath:
        if self._inverse is None:
            inverse = FlatPath(letter.reversed() for letter in reversed(self._letters))
            inverse._inverse = self
            self._inverse = inverse
        return self._inverse

    def replace(self, substitution: Substitution) -> EdgePath:
        images = []
        flat = True
        for letter in self._letters:
            image = substitution(letter)
            if image is None:
                continue
            if isinstance(image, EdgePath):
                flat = False
            images.append(image)
        if flat:
            return EdgePath.from_letters(images)
        return EdgePath.concatenate(
            image if isinstance(image, EdgePath) else FlatPath((image,)) for image in images
        )

    def relabel(self, relabeling: Callable[[Letter], Letter]) -> EdgePath:
        return FlatPath(relabeling(letter) for letter in self._letters)

    def take(self, count: int) -> EdgePath:
        if count >= len(self._letters):
            return self
        if count <= 0:
            return EMPTY
        return FlatPath(self._letters[:count])

    def skip(self, count: int) -> EdgePath:
        if count <= 0:
            return self
        if count >= len(self._letters):
            return EMPTY
        return FlatPath(self._letters[count:])

    def _render(self) -> str:
        return " ".join(letter.name for letter in self._letters)


class ConcatPath(EdgePath):
    """Concatenation of subpaths, at least one of which is not flat."""

    def __init__(self, parts: Iterable[EdgePath]) -> None:
        self._parts = tuple(parts)
        self._length = sum(len(part) for part in self._parts)
        self._inverse: EdgePath | None = None

    @property
    def parts(self) -> tuple[EdgePath, ...]:
        return self._parts

    def __len__(self) -> int:
        return self._length

    def __iter__(self) -> Iterator[Letter]:
        for part in self._parts:
            yield from part

    def _element_at(self, index: int) -> Letter:
        for part in self._parts:
            if index < len(part):
                return part[index]
            index -= len(part)
        raise IndexError(index)

    def inverse(self) -> EdgePath:
        if self._inverse is None:
            inverse = ConcatPath(part.inverse() for part in reversed(self._parts))
            inverse._inverse = self
            self._inverse = inverse
        return self._inverse

    def replace(self, substitution: Substitution) -> EdgePath:
        return EdgePath.concatenate(part.replace(substitution) for part in self._parts)

    def relabel(self, relabeling: Callable[[Letter], Letter]) -> EdgePath:
        return ConcatPath(part.relabel(relabeling) for part in self._parts)

    def take(self, count: int) -> EdgePath:
        if count >= self._length:
            return self
        if count <= 0:
            return EMPTY
        pieces = []
        for part in self._parts:
            if count >= len(part):
                pieces.append(part)
                count -= len(part)
                continue
            pieces.append(part.take(count))
            break
        return EdgePath.concatenate(pieces)

    def skip(self, count: int) -> EdgePath:
        if count <= 0:
            return self
        if count >= self._length:
            return EMPTY
        for index, part in enumerate(self._parts):
            if count < len(part):
                return EdgePath.concatenate((part.skip(count),) + self._parts[index + 1 :])
            count -= len(part)
        return EMPTY

    def named_paths(self) -> list["NamedPath"]:
        return [named for part in self._parts for named in part.named_paths()]

    def _render(self) -> str:
        return " ".join(part._render() for part in self._parts)


class ConjugatePath(EdgePath):
    """Conjugate of ``inner`` by ``outer``.

    A left conjugate reads ``outer · inner · outer⁻¹``; a right conjugate reads
    ``outer⁻¹ · inner · outer``.
    """

    def __init__(self, inner: EdgePath, outer: EdgePath, left: bool = True) -> None:
        self.inner = inner
        self.outer = outer
        self.left = left
        self._length = len(inner) + 2 * len(outer)

    @property
    def parts(self) -> tuple[EdgePath, EdgePath, EdgePath]:
        if self.left:
            return (self.outer, self.inner, self.outer.inverse())
        return (self.outer.inverse(), self.inner, self.outer)

    def __len__(self) -> int:
        return self._length

    def __iter__(self) -> Iterator[Letter]:
        for part in self.parts:
            yield from part

    def _element_at(self, index: int) -> Letter:
        for part in self.parts:
            if index < len(part):
                return part[index]
            index -= len(part)
        raise IndexError(index)

    def inverse(self) -> EdgePath:
        return ConjugatePath(self.inner.inverse(), self.outer, self.left)

    def replace(self, substitution: Substitution) -> EdgePath:
        return self.inner.replace(substitution).conjugate(
            self.outer.replace(substitution), self.left
        )

    def relabel(self, relabeling: Callable[[Letter], Letter]) -> EdgePath:
        return ConjugatePath(
            self.inner.relabel(relabeling), self.outer.relabel(relabeling), self.left
        )

    def take(self, count: int) -> EdgePath:
        if count >= self._length:
            return self
        return ConcatPath(self.parts).take(count)

    def skip(self, count: int) -> EdgePath:
        if count <= 0:
            return self
        return ConcatPath(self.parts).skip(count)

    def mergeable(self, other: "ConjugatePath") -> bool:
        """Whether ``self · other`` is again a conjugate by the same outer path."""
        if other.left == self.left:
            return other.outer == self.outer
        return other.outer == self.outer.inverse()

    def merge(self, other: "ConjugatePath") -> "ConjugatePath":
        return ConjugatePath(self.inner.concat(other.inner), self.outer, self.left)

    def named_paths(self) -> list["NamedPath"]:
        return self.inner.named_paths() + self.outer.named_paths()

    def _render(self) -> str:
        inner = _grouped(self.inner)
        outer = _grouped(self.outer)
        return f"{outer}°{inner}" if self.left else f"{inner}^{outer}"


class NamedPath(EdgePath):
    """A path introduced by a definition such as ``x := a b``."""

    def __init__(self, value: EdgePath, name: str) -> None:
        self.value = value
        self.name = name

    def __len__(self) -> int:
        return len(self.value)

    def __iter__(self) -> Iterator[Letter]:
        return iter(self.value)

    def _element_at(self, index: int) -> Letter:
        return self.value[index]

    def inverse(self) -> EdgePath:
        return NamedPath(self.value.inverse(), reverse_case(self.name))

    def replace(self, substitution: Substitution) -> EdgePath:
        return self.value.replace(substitution)

    def relabel(self, relabeling: Callable[[Letter], Letter]) -> EdgePath:
        return NamedPath(self.value.relabel(relabeling), self.name)

    def take(self, count: int) -> EdgePath:
        if count >= len(self):
            return self
        return self.value.take(count)

    def skip(self, count: int) -> EdgePath:
        if count <= 0:
            return self
        return self.value.skip(count)

    def named_paths(self) -> list["NamedPath"]:
        return [self] + self.value.named_paths()

    def _render(self) -> str:
        return self.name


def _grouped(path: EdgePath) -> str:
    text = path._render()
    if isinstance(path, NamedPath) or len(path) <= 1:
        return text
    return f"({text})"


EMPTY: EdgePath = FlatPath(())
