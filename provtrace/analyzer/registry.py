"""Module graph registry.

A file-path keyed store of ModuleGraphs filled incrementally while a build analyzes its
files. It is passed explicitly to the analysis entry point; a new build either creates a new
registry or calls ``reset()``.
"""
import posixpath
import threading
from pathlib import Path
from typing import Dict, Iterator, List, Optional, Tuple

import networkx as nx

from .module_graph import LiteralIndexRow, ModuleGraph, MutationRow
from .resolver import ImportResolver


class ModuleGraphRegistry:
    """Thread-safe store of module graphs keyed by file path."""

    def __init__(self):
        self._graphs: Dict[str, ModuleGraph] = {}
        self._lock = threading.Lock()

    def put(self, file_path: str, graph: ModuleGraph):
        with self._lock:
            self._graphs[file_path] = graph

    def get(self, file_path: str) -> Optional[ModuleGraph]:
        with self._lock:
            return self._graphs.get(file_path)

    def files(self) -> List[str]:
        with self._lock:
            return sorted(self._graphs)

    def reset(self):
        """Drop every graph (start of a fresh build)."""
        with self._lock:
            self._graphs.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._graphs)

    def __contains__(self, file_path: str) -> bool:
        with self._lock:
            return file_path in self._graphs

    def _snapshot(self) -> List[Tuple[str, ModuleGraph]]:
        with self._lock:
            return sorted(self._graphs.items())

    def items(self) -> Iterator[Tuple[str, ModuleGraph]]:
        return iter(self._snapshot())

    def find_literals(self, text: str, exact: bool = True) -> List[Tuple[str, LiteralIndexRow]]:
        """Find exported string literals by their text.

        Args:
            text: Text to look for
            exact: Require equality; otherwise substring match

        Returns:
            List of (file, row) tuples
        """
        matches = []
        for file_path, graph in self._snapshot():
            for row in graph.literal_index:
                if (row.text == text) if exact else (text in row.text):
                    matches.append((file_path, row))
        return matches

    def find_mutations(self, root: str) -> List[Tuple[str, MutationRow]]:
        """Mutation rows whose root identifier is ``root``."""
        return [
            (file_path, row)
            for file_path, graph in self._snapshot()
            for row in graph.mutations
            if row.root == root
        ]

    def exporters_of(self, name: str) -> List[str]:
        """Files that export or re-export ``name``."""
        files = []
        for file_path, graph in self._snapshot():
            exported = {row.exported for row in graph.exports}
            exported.update(row.exported for row in graph.reexports)
            if name in exported:
                files.append(file_path)
        return files

    def dependency_graph(self, resolver: Optional[ImportResolver] = None) -> nx.DiGraph:
        """Build a directed graph of module dependencies.

        Edge (A, B) means "A imports from B" or "A re-exports from B". Only targets that are
        registered files become edges.

        Args:
            resolver: Resolver for aliased and project-root specifiers. Without one only
                      relative specifiers are matched against registered paths.

        Returns:
            NetworkX DiGraph; edges carry ``kind`` (import|reexport) and ``names``
        """
        graph = nx.DiGraph()
        snapshot = self._snapshot()
        registered = {file_path for file_path, _ in snapshot}
        graph.add_nodes_from(registered)

        for file_path, module in snapshot:
            for kind, rows in (('import', module.imports), ('reexport', module.reexports)):
                for row in rows:
                    target = self._resolve_target(file_path, row.source, registered, resolver)
                    if target is None or target == file_path:
                        continue
                    name = row.local if kind == 'import' else row.exported
                    if graph.has_edge(file_path, target):
                        edge = graph.edges[file_path, target]
                        if name not in edge['names']:
                            edge['names'].append(name)
                        if kind == 'reexport':
                            edge['kind'] = 'reexport'
                    else:
                        graph.add_edge(file_path, target, kind=kind, names=[name])

        return graph

    def _resolve_target(self, file_path: str, source: str, registered: set,
                        resolver: Optional[ImportResolver]) -> Optional[str]:
        if resolver is not None:
            resolved = resolver.resolve(Path(file_path), source)
            if resolved is None:
                return None
            if str(resolved) in registered:
                return str(resolved)
            try:
                relative = resolved.relative_to(resolver.root).as_posix()
            except ValueError:
                return None
            return relative if relative in registered else None

        if not source.startswith('.'):
            return None
        base = posixpath.normpath(posixpath.join(posixpath.dirname(file_path), source))
        candidates = [base]
        candidates.extend(base + ext for ext in ImportResolver.EXTENSIONS)
        candidates.extend(posixpath.join(base, 'index' + ext) for ext in ImportResolver.EXTENSIONS)
        for candidate in candidates:
            if candidate in registered:
                return candidate
        return None

    def to_dict(self) -> dict:
        return {file_path: graph.to_dict() for file_path, graph in self._snapshot()}
