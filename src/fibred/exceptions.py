"""Exception hierarchy for fibred."""


class FibredError(Exception):
    """Base exception for all fibred errors."""

    pass


class InputError(FibredError):
    """Errors caused by user input; the surface is left untouched."""

    pass


class PathSyntaxError(InputError):
    """Malformed edge-path expression."""

    def __init__(self, text: str, reason: str, position: int | None = None) -> None:
        self.text = text
        self.reason = reason
        self.position = position
        where = f" at position {position}" if position is not None else ""
        super().__init__(f"Cannot parse '{text}'{where}: {reason}")


class UnknownEdgeError(InputError):
    """A name in an expression is neither an edge nor a definition."""

    def __init__(self, name: str, text: str | None = None) -> None:
        self.name = name
        self.text = text
        context = f" in '{text}'" if text is not None else ""
        super().__init__(f"Unknown edge or definition '{name}'{context}")


class MapDefinitionError(InputError):
    """Invalid graph map update."""

    def __init__(self, entry: str, reason: str) -> None:
        self.entry = entry
        self.reason = reason
        super().__init__(f"Invalid map entry '{entry}': {reason}")


class SurfaceDefinitionError(InputError):
    """Invalid description of a fibred surface."""

    def __init__(self, source: str, reason: str) -> None:
        self.source = source
        self.reason = reason
        super().__init__(f"Invalid surface '{source}': {reason}")


class SelectionError(InputError):
    """A button or selection that does not fit the current suggestion."""

    def __init__(self, button: str, reason: str) -> None:
        self.button = button
        self.reason = reason
        super().__init__(f"Cannot apply '{button}': {reason}")


class AlgorithmError(FibredError):
    """Internal consistency failure of a graph move."""

    def __init__(self, operation: str, reason: str) -> None:
        self.operation = operation
        self.reason = reason
        super().__init__(f"{operation} failed: {reason}")


class IterationLimitError(AlgorithmError):
    """A bounded loop ran past its limit."""

    def __init__(self, operation: str, limit: int) -> None:
        self.limit = limit
        super().__init__(operation, f"did not terminate within {limit} iterations")


class TrainTrackConversionError(AlgorithmError):
    """The graph map is not efficient and cannot be made a train track."""

    def __init__(self, reason: str) -> None:
        super().__init__("Train track conversion", reason)


class IntegrityError(FibredError):
    """A structural invariant of the fibred surface is broken."""

    def __init__(self, check: str, details: str) -> None:
        self.check = check
        self.details = details
        super().__init__(f"Integrity check '{check}' failed: {details}")
