"""Surface reader for loading fibred surfaces from TOML or JSON files.

A surface file describes either a graph (``edges``, a list of edge tables) or
a one-vertex rose (``rose``, a table of image words)::

    name = "golden rose"
    rose = { a = "a b", b = "a" }

    [[edges]]
    name = "e"
    source = "v"
    target = "w"
    image = "a e p"
    order_start = 2

Optional keys are ``peripheral`` (names of peripheral edges), ``map`` (a map
update applied after construction) and ``map_mode``.
"""

import json
import logging
import tomllib
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, ValidationError, model_validator

from fibred.core.factory import EdgeSpec, build_surface, rose_spine
from fibred.core.graph_map import GraphMapUpdateMode, update_map
from fibred.domain.surface import FibredSurface
from fibred.exceptions import InputError, SurfaceDefinitionError

logger = logging.getLogger(__name__)

SUPPORTED_SUFFIXES = (".toml", ".json")


class EdgeDescription(BaseModel):
    """One edge of a surface file."""

    name: str
    source: str
    target: str
    image: str = ""
    order_start: float | None = None
    order_end: float | None = None
    start_direction: tuple[float, float] | None = None
    end_direction: tuple[float, float] | None = None

    def to_spec(self) -> EdgeSpec:
        return EdgeSpec(
            self.name,
            self.source,
            self.target,
            self.image,
            self.order_start,
            self.order_end,
            self.start_direction,
            self.end_direction,
        )


class SurfaceDescription(BaseModel):
    """Contents of a surface file."""

    name: str = "fibred surface"
    edges: list[EdgeDescription] = Field(default_factory=list)
    rose: dict[str, str] | None = None
    peripheral: list[str] = Field(default_factory=list)
    map: str | None = None
    map_mode: GraphMapUpdateMode = GraphMapUpdateMode.REPLACE

    @model_validator(mode="after")
    def _check_form(self) -> "SurfaceDescription":
        if self.edges and self.rose is not None:
            raise ValueError("give either 'edges' or 'rose', not both")
        if not self.edges and not self.rose:
            raise ValueError("one of 'edges' or 'rose' is required")
        return self

    def build(self, validate: bool = True, prefix_depth: int = 4) -> FibredSurface:
        """Construct the described surface and apply its map update.

        Raises:
            SurfaceDefinitionError: If the description is not a valid surface
        """
        if self.rose is not None:
            surface = rose_spine(self.rose, self.peripheral, self.name, validate)
        else:
            surface = build_surface(
                [edge.to_spec() for edge in self.edges],
                self.peripheral,
                self.name,
                validate,
                prefix_depth,
            )
        if self.map:
            try:
                update_map(surface, self.map, self.map_mode)
            except InputError as e:
                raise SurfaceDefinitionError(self.name, f"map update: {e}") from e
        return surface


class SurfaceReader:
    """Loads surface descriptions from TOML or JSON files.

    Example:
        reader = SurfaceReader(Path("rose.toml"))
        reader.load()
        surface = reader.build()
    """

    def __init__(self, path: Path) -> None:
        """Initialize the surface reader.

        Args:
            path: Path to a ``.toml`` or ``.json`` file
        """
        self._path = path
        self._description: SurfaceDescription | None = None

    def load(self) -> SurfaceDescription:
        """Load and validate the file.

        Raises:
            FileNotFoundError: If the file does not exist
            SurfaceDefinitionError: If the file cannot be parsed or validated
        """
        if not self._path.exists():
            raise FileNotFoundError(f"Surface file not found: {self._path}")
        suffix = self._path.suffix.lower()
        if suffix not in SUPPORTED_SUFFIXES:
            raise SurfaceDefinitionError(
                str(self._path), f"unsupported file type '{suffix}', use .toml or .json"
            )
        try:
            if suffix == ".toml":
                with self._path.open("rb") as handle:
                    data = tomllib.load(handle)
            else:
                with self._path.open(encoding="utf-8") as handle:
                    data = json.load(handle)
        except (tomllib.TOMLDecodeError, json.JSONDecodeError) as e:
            raise SurfaceDefinitionError(str(self._path), f"cannot parse file: {e}") from e

        if not isinstance(data, dict):
            raise SurfaceDefinitionError(str(self._path), "the file must contain a table")
        data.setdefault("name", self._path.stem)
        self._description = parse_description(data, str(self._path))
        logger.debug("Loaded surface description %s from %s", self._description.name, self._path)
        return self._description

    @property
    def description(self) -> SurfaceDescription:
        """Return the loaded description.

        Raises:
            RuntimeError: If the file has not been loaded yet
        """
        if self._description is None:
            raise RuntimeError("Surface not loaded. Call load() first.")
        return self._description

    def build(self, validate: bool = True, prefix_depth: int = 4) -> FibredSurface:
        return self.description.build(validate, prefix_depth)


def parse_description(data: dict[str, Any], source: str = "surface") -> SurfaceDescription:
    """Validate raw file contents.

    Raises:
        SurfaceDefinitionError: If the contents do not describe a surface
    """
    try:
        return SurfaceDescription.model_validate(data)
    except ValidationError as e:
        reasons = "; ".join(
            f"{'.'.join(str(part) for part in error['loc']) or 'file'}: {error['msg']}"
            for error in e.errors()
        )
        raise SurfaceDefinitionError(source, reasons) from e


def load_description(path: Path) -> SurfaceDescription:
    return SurfaceReader(path).load()


def read_surface(path: Path, validate: bool = True, prefix_depth: int = 4) -> FibredSurface:
    """Load a surface file and build the surface it describes."""
    reader = SurfaceReader(path)
    reader.load()
    return reader.build(validate, prefix_depth)
