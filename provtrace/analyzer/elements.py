"""JSX element analysis.

Every rendered element gets a report of where its displayed data comes from: all embedded
``{expr}`` children and ``{expr}`` attribute values are traced into one provenance chain,
from which edit candidates, source kinds and symbol references are derived.
"""
from dataclasses import dataclass, field
from typing import List, Optional

from tree_sitter import Node

from .bindings import BindingTable
from .provenance import ExpressionTracer, ProvenanceChain
from .ranking import Candidate, aggregate_kinds, rank_candidates
from .symbol_refs import SymbolRef, SymbolRefCollector
from .syntax import expression_children, make_span, node_text


JSX_ELEMENT_TYPES = ('jsx_element', 'jsx_self_closing_element')


@dataclass
class ElementReport:
    """Provenance summary for one JSX element."""
    tag: str
    span: str
    start_line: int
    end_line: int
    chain: ProvenanceChain
    candidates: List[Candidate] = field(default_factory=list)
    kinds: List[str] = field(default_factory=list)
    symbol_refs: List[SymbolRef] = field(default_factory=list)
    expression_count: int = 0

    @property
    def line_range(self) -> str:
        return f"{self.start_line}-{self.end_line}"

    def to_dict(self) -> dict:
        return {
            'tag': self.tag,
            'span': self.span,
            'lines': self.line_range,
            'candidates': [c.to_dict() for c in self.candidates],
            'kinds': list(self.kinds),
            'symbol_refs': [ref.to_dict() for ref in self.symbol_refs],
            'chain': self.chain.to_list(),
            'truncated': self.chain.truncated,
        }


class ElementAnalyzer:
    """Produce ElementReports for every JSX element of a module."""

    def __init__(self, file_path: str, bindings: BindingTable):
        self.file_path = file_path
        self.bindings = bindings
        self.tracer = ExpressionTracer(file_path, bindings)
        self.ref_collector = SymbolRefCollector(file_path, bindings)

    def analyze(self, root: Node) -> List[ElementReport]:
        reports = []
        stack = [root]

        while stack:
            node = stack.pop()
            if node.type in JSX_ELEMENT_TYPES:
                reports.append(self.analyze_element(node))
            stack.extend(reversed(node.named_children))

        return reports

    def analyze_element(self, element: Node) -> ElementReport:
        """Trace the data expressions of a single JSX element."""
        opening = element if element.type == 'jsx_self_closing_element' \
            else element.child_by_field_name('open_tag')
        if opening is None and element.named_children:
            opening = element.named_children[0]

        chain = ProvenanceChain()
        refs: List[SymbolRef] = []
        expressions = data_expressions(element, opening)

        for expr in expressions:
            # Each expression gets its own cycle guard; they share the chain bound
            self.tracer.trace_expression(expr, chain, 0, set())
            self.ref_collector.collect(expr, refs)

        return ElementReport(
            tag=element_tag(opening),
            span=make_span(self.file_path, opening if opening is not None else element),
            start_line=element.start_point[0] + 1,
            end_line=element.end_point[0] + 1,
            chain=chain,
            candidates=rank_candidates(chain),
            kinds=aggregate_kinds(chain),
            symbol_refs=refs,
            expression_count=len(expressions),
        )


def element_tag(opening: Optional[Node]) -> str:
    if opening is None:
        return 'Fragment'
    name = opening.child_by_field_name('name')
    if name is None:
        return 'Fragment'
    return node_text(name)


def data_expressions(element: Node, opening: Optional[Node]) -> List[Node]:
    """Expressions embedded in an element's attributes and direct children."""
    containers = []
    if opening is not None:
        for attribute in opening.named_children:
            if attribute.type != 'jsx_attribute':
                continue
            containers.extend(
                child for child in attribute.named_children if child.type == 'jsx_expression'
            )
    if element.type == 'jsx_element':
        containers.extend(child for child in element.named_children if child.type == 'jsx_expression')

    expressions = []
    for container in containers:
        for expr in expression_children(container):
            if expr.type != 'spread_element':
                expressions.append(expr)
    return expressions
