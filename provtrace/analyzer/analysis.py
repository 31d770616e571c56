"""Module analysis entry point.

Runs the two analysis phases for one module: the binding table is built completely before
anything is traced, then the module graph and the element reports are produced. When a
registry is supplied the module graph is stored in it under the module's file path.
"""
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Union

from tree_sitter import Node, Tree

from .bindings import BindingTable, collect_bindings
from .elements import ElementAnalyzer, ElementReport
from .module_graph import ModuleGraph, ModuleGraphCollector
from .parser import LanguageParser
from .provenance import ExpressionTracer, ProvenanceChain
from .ranking import Candidate, aggregate_kinds, rank_candidates
from .registry import ModuleGraphRegistry
from .symbol_refs import SymbolRef, SymbolRefCollector


logger = logging.getLogger(__name__)


@dataclass
class TraceResult:
    """Chain plus derived candidates and kinds for one traced expression."""
    chain: ProvenanceChain
    candidates: List[Candidate]
    kinds: List[str]

    def to_dict(self) -> dict:
        return {
            'chain': self.chain.to_list(),
            'candidates': [c.to_dict() for c in self.candidates],
            'kinds': list(self.kinds),
        }


@dataclass
class ModuleAnalysis:
    """Everything known about one analyzed module."""
    file_path: str
    bindings: BindingTable
    graph: ModuleGraph
    elements: List[ElementReport] = field(default_factory=list)

    def trace(self, expr: Node) -> TraceResult:
        """Trace an arbitrary expression node of this module."""
        chain = ExpressionTracer(self.file_path, self.bindings).trace(expr)
        return TraceResult(chain, rank_candidates(chain), aggregate_kinds(chain))

    def symbol_refs(self, expr: Node) -> List[SymbolRef]:
        return SymbolRefCollector(self.file_path, self.bindings).collect(expr)

    def elements_at_line(self, line: int) -> List[ElementReport]:
        """Element reports whose source range covers ``line``."""
        return [e for e in self.elements if e.start_line <= line <= e.end_line]

    def to_dict(self) -> dict:
        return {
            'file': self.file_path,
            'graph': self.graph.to_dict(),
            'elements': [e.to_dict() for e in self.elements],
        }


def analyze_module(tree: Union[Tree, Node], file_path: str,
                   registry: Optional[ModuleGraphRegistry] = None,
                   graph: Optional[ModuleGraph] = None,
                   with_elements: bool = True) -> ModuleAnalysis:
    """Analyze one parsed module.

    Args:
        tree: Parsed tree (or its root node)
        file_path: Logical file path used in spans and as registry key
        registry: Optional registry receiving the module graph
        graph: Previously collected graph (e.g. from the cache) to reuse instead of
               collecting a new one
        with_elements: Trace JSX elements; when False only bindings and the graph are built

    Returns:
        ModuleAnalysis for the module
    """
    root = tree.root_node if isinstance(tree, Tree) else tree

    # Phase 1: bindings must be complete before any tracing
    bindings = collect_bindings(root, file_path)

    # Phase 2: graph and elements
    if graph is None:
        graph = ModuleGraphCollector(file_path).collect(root)
    elements = ElementAnalyzer(file_path, bindings).analyze(root) if with_elements else []

    if registry is not None:
        registry.put(file_path, graph)

    logger.debug(
        "Analyzed %s: %d bindings, %d elements, %s",
        file_path, len(bindings), len(elements), graph.counts(),
    )
    return ModuleAnalysis(file_path=file_path, bindings=bindings, graph=graph, elements=elements)


def analyze_file(path: Union[str, Path], registry: Optional[ModuleGraphRegistry] = None,
                 display_path: Optional[str] = None,
                 graph: Optional[ModuleGraph] = None,
                 with_elements: bool = True) -> Optional[ModuleAnalysis]:
    """Parse and analyze a source file.

    Args:
        path: File on disk
        registry: Optional registry receiving the module graph
        display_path: Path to use in spans (defaults to ``str(path)``)
        graph: Cached module graph to reuse
        with_elements: Trace JSX elements (see analyze_module)

    Returns:
        ModuleAnalysis, or None if the file type is unsupported or unreadable
    """
    path = Path(path)
    parser = LanguageParser.from_file_extension(path)
    if parser is None:
        logger.debug("Skipping %s: unsupported file type", path)
        return None

    tree = parser.parse_file(path)
    if tree is None:
        logger.debug("Skipping %s: file could not be read", path)
        return None

    return analyze_module(tree, display_path or str(path), registry=registry, graph=graph,
                          with_elements=with_elements)
