"""Parser for the edge-path mini-language and for graph map texts.

Path expressions:
- edge names, lowercase for the forward and uppercase for the reversed edge
- ``*``, ``·`` or whitespace for concatenation
- ``'`` to invert the preceding edge or group
- ``x^y`` for the right conjugate ``y⁻¹ x y`` and ``x°y`` for the left
  conjugate ``x y x⁻¹``
- parentheses for grouping
- names of earlier definitions (``name := expr``)

Map texts hold one entry per line or comma, each of the form ``g(a) = w``,
``a -> w``, ``a ↦ w``, ``a := w`` or ``a = w``.
"""

import re
from collections.abc import Mapping
from typing import NoReturn

from fibred.domain.edge_path import EMPTY, EdgePath, FlatPath, Letter, NamedPath
from fibred.exceptions import MapDefinitionError, PathSyntaxError, UnknownEdgeError

SEPARATORS = frozenset("*· \t\n")
CONJUGATIONS = frozenset("^°")

MAP_ENTRY_PATTERNS = (
    re.compile(r"g\s*\((.+)\)\s*=(.*)"),
    re.compile(r"(.+)->(.*)"),
    re.compile(r"(.+)↦(.*)"),
    re.compile(r"(.+):=(.*)"),
    re.compile(r"(.+)=(.*)"),
)


class PathParser:
    """Parses path expressions over a fixed alphabet.

    Attributes:
        letters: Oriented edges by name (both orientations)
        definitions: Named paths usable in expressions
    """

    def __init__(
        self,
        letters: Mapping[str, Letter],
        definitions: Mapping[str, NamedPath] | None = None,
    ) -> None:
        self.letters = letters
        self.definitions = dict(definitions or {})

    def parse(self, text: str) -> EdgePath:
        """Parse an expression into an edge path.

        Args:
            text: The expression

        Returns:
            The parsed path (EMPTY for blank input)

        Raises:
            PathSyntaxError: If the expression is malformed
            UnknownEdgeError: If a name is neither an edge nor a definition
        """
        if text.count("(") != text.count(")"):
            raise PathSyntaxError(
                text, "different number of opening and closing parentheses"
            )
        return _PathReader(self, text).read()

    def define(self, name: str, text: str) -> NamedPath:
        """Parse ``text`` and register it (and its inverse) under ``name``."""
        named = NamedPath(self.parse(text), name)
        inverse = named.inverse()
        self.definitions[named.name] = named
        if isinstance(inverse, NamedPath):
            self.definitions[inverse.name] = inverse
        return named

    def lookup(self, name: str, text: str) -> EdgePath:
        if name in self.letters:
            return FlatPath((self.letters[name],))
        if name in self.definitions:
            return self.definitions[name]
        raise UnknownEdgeError(name, text)


class _PathReader:
    """Single-use reader holding the state of one parse."""

    def __init__(self, parser: PathParser, text: str) -> None:
        self.parser = parser
        self.text = text
        self.position = 0
        self.result: list[EdgePath] = []
        self.flat: list[Letter] = []
        self.name = ""
        self.last_letter: Letter | None = None
        self.last_thing: EdgePath | None = None

    def read(self) -> EdgePath:
        text = self.text
        while self.position < len(text):
            char = text[self.position]
            if char in SEPARATORS:
                self._push_last_thing()
                self._close_name()
                self._push_last_letter()
            elif char == "'":
                self._close_name()
                if self.last_letter is not None:
                    self.last_letter = self.last_letter.reversed()
                elif self.last_thing is not None:
                    self.last_thing = self.last_thing.inverse()
                else:
                    self._fail("' must follow an edge or a group")
            elif char in CONJUGATIONS:
                self._close_name()
                self._promote_letter()
                self._push_flat()
                if self.last_thing is None:
                    self._fail(f"nothing to conjugate before {char}")
                operand = self._read_next_thing()
                if char == "^":
                    self.last_thing = self.last_thing.conjugate(operand, left=False)
                else:
                    self.last_thing = operand.conjugate(self.last_thing, left=True)
            elif char == "(":
                self._push_last_thing()
                self._close_name()
                self._push_last_letter()
                self._push_flat()
                self.last_thing = self._read_parentheses()
            elif char == ")":
                self._fail("unmatched closing parenthesis")
            else:
                self._push_last_thing()
                self._push_last_letter()
                self.name += char
            self.position += 1

        self._push_last_thing()
        self._close_name()
        self._push_last_letter()
        self._push_flat()
        return EdgePath.concatenate(self.result)

    def _fail(self, reason: str) -> NoReturn:
        raise PathSyntaxError(self.text, reason, self.position)

    def _close_name(self) -> None:
        if not self.name:
            return
        name, self.name = self.name, ""
        if name in self.parser.letters:
            self.last_letter = self.parser.letters[name]
        elif name in self.parser.definitions:
            self._push_flat()
            self.last_thing = self.parser.definitions[name]
        else:
            raise UnknownEdgeError(name, self.text)

    def _push_last_letter(self) -> None:
        if self.last_letter is not None:
            self.flat.append(self.last_letter)
            self.last_letter = None
        elif isinstance(self.last_thing, NamedPath):
            self._push_last_thing()

    def _promote_letter(self) -> None:
        if self.last_letter is not None:
            self.last_thing = FlatPath((self.last_letter,))
            self.last_letter = None

    def _push_flat(self) -> None:
        if self.flat:
            self.result.append(FlatPath(self.flat))
            self.flat = []

    def _push_last_thing(self) -> None:
        if self.last_thing is not None:
            self._push_flat()
            self.result.append(self.last_thing)
            self.last_thing = None

    def _read_parentheses(self) -> EdgePath:
        start = self.position + 1
        depth = 1
        while depth > 0:
            self.position += 1
            if self.position >= len(self.text):
                self._fail("unmatched opening parenthesis")
            char = self.text[self.position]
            if char == "(":
                depth += 1
            elif char == ")":
                depth -= 1
        return self.parser.parse(self.text[start : self.position])

    def _read_next_thing(self) -> EdgePath:
        """Read the operand following ``^`` or ``°``."""
        name = ""

        def close() -> EdgePath | None:
            return self.parser.lookup(name, self.text) if name else None

        self.position += 1
        while self.position < len(self.text):
            char = self.text[self.position]
            if char in SEPARATORS:
                operand = close()
                if operand is not None:
                    return operand
            elif char == "'":
                operand = close()
                if operand is None:
                    self._fail("' must follow an edge or a group")
                return operand.inverse()
            elif char in CONJUGATIONS:
                operand = close()
                if operand is None:
                    self._fail("two conjugation operators in a row")
                self.position -= 1
                return operand
            elif char == "(":
                operand = close()
                if operand is None:
                    return self._read_parentheses()
                self.position -= 1
                return operand
            elif char == ")":
                self._fail("unexpected closing parenthesis after a conjugation")
            else:
                name += char
            self.position += 1

        operand = close()
        if operand is None:
            self._fail("input ended after a conjugation operator")
        return operand


def parse_path(text: str, letters: Mapping[str, Letter]) -> EdgePath:
    """Parse an expression without definitions."""
    return PathParser(letters).parse(text) if text.strip() else EMPTY


def parse_map_text(text: str) -> dict[str, str]:
    """Split a map text into ``{key: expression}`` entries.

    Args:
        text: Entries separated by newlines or commas

    Returns:
        Entries in input order, keys stripped of whitespace

    Raises:
        MapDefinitionError: If an entry matches none of the accepted forms
    """
    entries: dict[str, str] = {}
    for raw in re.split(r"[,\n]", text):
        entry = raw.strip()
        if not entry:
            continue
        for pattern in MAP_ENTRY_PATTERNS:
            match = pattern.fullmatch(entry)
            if match:
                key = match.group(1).strip()
                if not key:
                    raise MapDefinitionError(entry, "missing edge name")
                entries[key] = match.group(2).strip()
                break
        else:
            raise MapDefinitionError(
                entry, "expected 'g(a) = w', 'a -> w', 'a ↦ w', 'a := w' or 'a = w'"
            )
    return entries
