"""Editing the graph map of a fibred surface.

Map updates are parsed and validated completely before anything on the
surface changes, so a rejected update leaves the surface as it was.
"""

import logging
from collections.abc import Mapping
from enum import Enum

from fibred.domain.edge_path import EdgePath, FlatPath, NamedPath
from fibred.domain.graph import Edge, OrientedEdge, Vertex
from fibred.domain.surface import FibredSurface
from fibred.exceptions import MapDefinitionError
from fibred.io.parser import PathParser, parse_map_text

logger = logging.getLogger(__name__)


class GraphMapUpdateMode(str, Enum):
    """How a supplied map is combined with the current one."""

    REPLACE = "replace"
    PRECOMPOSE = "precompose"
    POSTCOMPOSE = "postcompose"


def parse_map(
    surface: FibredSurface, text: str | Mapping[str, str]
) -> dict[OrientedEdge, EdgePath]:
    """Parse a map update for the edges of ``surface``.

    Entries whose key is not an edge name are definitions; they are parsed in
    input order and may be used by later entries. Edges without an entry get
    the identity.

    Args:
        surface: Surface providing the edge alphabet
        text: Map text or already split ``{key: expression}`` entries

    Returns:
        Image path for one orientation of every edge
    """
    entries = parse_map_text(text) if isinstance(text, str) else dict(text)
    letters = surface.letters()
    definitions: dict[str, NamedPath] = {}
    for named in surface.named_paths():
        definitions[named.name] = named
    parser = PathParser(letters, definitions)

    edge_names = {edge.name.lower() for edge in surface.edges}
    for key, expression in entries.items():
        if key.lower() not in edge_names:
            parser.define(key, expression)

    images: dict[OrientedEdge, EdgePath] = {}
    for key, expression in entries.items():
        if key.lower() not in edge_names:
            continue
        if key not in letters:
            raise MapDefinitionError(key, "not the name of an oriented edge")
        oriented = letters[key]
        if oriented in images or oriented.reversed() in images:
            raise MapDefinitionError(key, "the edge has more than one image")
        images[oriented] = parser.parse(expression)

    for edge in surface.edges:
        if edge.forward not in images and edge.reversed() not in images:
            images[edge.forward] = FlatPath((edge.forward,))
    return images


def induced_vertex_images(
    surface: FibredSurface, paths: Mapping[Edge, EdgePath] | None = None
) -> dict[Vertex, Vertex]:
    """Vertex images forced by the edge images.

    Args:
        surface: The surface
        paths: Replacement images for some edges (current images otherwise)

    Returns:
        Image of every vertex that is an endpoint of a non-trivial image

    Raises:
        MapDefinitionError: If an image is not a continuous path or two
            images disagree about the image of a vertex
    """
    paths = paths or {}
    images: dict[Vertex, Vertex] = {}
    for edge in surface.edges:
        path = paths.get(edge, edge.path)
        letters = list(path)
        for previous, current in zip(letters, letters[1:]):
            if previous.target is not current.source:
                raise MapDefinitionError(
                    f"g({edge.name}) = {path}",
                    f"{previous.name} does not end where {current.name} starts",
                )
        if not letters:
            continue
        for vertex, image in ((edge.source, letters[0].source), (edge.target, letters[-1].target)):
            known = images.setdefault(vertex, image)
            if known is not image:
                raise MapDefinitionError(
                    f"g({edge.name}) = {path}",
                    f"vertex {vertex} would map to both {known} and {image}",
                )
    return images


def set_map(
    surface: FibredSurface,
    images: Mapping[OrientedEdge, EdgePath],
    mode: GraphMapUpdateMode = GraphMapUpdateMode.REPLACE,
) -> None:
    """Combine the supplied map with the current graph map.

    Args:
        surface: Surface to update
        images: Supplied images (one orientation per edge is enough)
        mode: REPLACE assigns the images, PRECOMPOSE applies the old map to
            the supplied images, POSTCOMPOSE applies the supplied map to the
            old images

    Raises:
        MapDefinitionError: If the result is not a valid graph map
    """
    new_paths: dict[Edge, EdgePath] = {}
    if mode is GraphMapUpdateMode.POSTCOMPOSE:
        full: dict[OrientedEdge, EdgePath] = {}
        for oriented, path in images.items():
            full[oriented] = path
            full[oriented.reversed()] = path.inverse()
        missing = [edge.name for edge in surface.edges if edge.forward not in full]
        if missing:
            raise MapDefinitionError(", ".join(missing), "postcomposition needs every edge")
        for edge in surface.edges:
            new_paths[edge] = edge.path.replace(lambda letter: full[letter])
    else:
        old = {edge: edge.path for edge in surface.edges}

        def old_image(letter: OrientedEdge) -> EdgePath:
            path = old[letter.edge]
            return path.inverse() if letter.reverse else path

        for oriented, path in images.items():
            if mode is GraphMapUpdateMode.PRECOMPOSE:
                path = path.replace(old_image)
            new_paths[oriented.edge] = path.inverse() if oriented.reverse else path

    vertex_images = induced_vertex_images(surface, new_paths)
    for edge, path in new_paths.items():
        edge.path = path
    for vertex, image in vertex_images.items():
        vertex.image = image
    logger.debug("Graph map updated: mode=%s, edges=%d", mode.value, len(new_paths))


def update_map(
    surface: FibredSurface,
    text: str | Mapping[str, str],
    mode: GraphMapUpdateMode = GraphMapUpdateMode.REPLACE,
) -> None:
    """Parse a map text and combine it with the current map."""
    set_map(surface, parse_map(surface, text), mode)
