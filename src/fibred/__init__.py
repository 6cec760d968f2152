"""fibred - Train track representatives of surface homeomorphisms.

fibred implements the Bestvina-Handel algorithm. Starting from a graph map on
a spine of a punctured surface it collapses invariant forests, pulls tight,
removes low-valence vertices, absorbs into the periphery and folds away
inefficiencies until the map is an efficient train track, or until an
invariant subgraph shows that the mapping class is reducible.

Example:
    $ fibred run golden.toml

This prints the efficient representative, its growth rate and whether the
map is pseudo-Anosov or of finite order.
"""

__version__ = "0.1.0"
__author__ = "fibred developers"

__all__ = ["__author__", "__version__"]
