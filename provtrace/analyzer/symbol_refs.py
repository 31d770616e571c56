"""Symbol reference collection for cross-reference indexing.

Records which module-level identifiers (and static member paths below them) an expression
reads, following identifiers into their initializers so that indirect reads are attributed
too.
"""
from dataclasses import asdict, dataclass
from typing import List, Optional

from tree_sitter import Node

from .bindings import BindingTable
from .member_path import static_member_path
from .provenance import MAX_DEPTH
from .syntax import MEMBER_TYPES, expression_children, make_span, node_text, unwrap


@dataclass(frozen=True)
class SymbolRef:
    file: str
    local: str
    path: str
    span: str

    def to_dict(self) -> dict:
        return asdict(self)


class SymbolRefCollector:
    """Collects SymbolRefs for expressions of one module."""

    def __init__(self, file_path: str, bindings: BindingTable):
        self.file_path = file_path
        self.bindings = bindings

    def collect(self, expr: Optional[Node], refs: Optional[List[SymbolRef]] = None) -> List[SymbolRef]:
        """Collect references read by ``expr`` in pre-order.

        Initializers are followed at most once per identifier and no deeper than MAX_DEPTH.

        Args:
            expr: Expression node
            refs: Optional list to extend

        Returns:
            The list of collected references
        """
        if refs is None:
            refs = []
        seen = set()
        stack = [(expr, 0)]

        while stack:
            node, depth = stack.pop()
            node = unwrap(node)
            if node is None or depth > MAX_DEPTH:
                continue

            if node.type == 'identifier':
                name = node_text(node)
                refs.append(SymbolRef(self.file_path, name, '', make_span(self.file_path, node)))
                if name in seen:
                    continue
                seen.add(name)
                binding = self.bindings.lookup(name)
                if binding is not None and binding.init is not None:
                    stack.append((binding.init, depth + 1))

            elif node.type in MEMBER_TYPES:
                member_path = static_member_path(node)
                if member_path is not None:
                    refs.append(SymbolRef(
                        self.file_path,
                        member_path.root,
                        member_path.path,
                        make_span(self.file_path, node),
                    ))
                if node.type == 'subscript_expression':
                    stack.append((node.child_by_field_name('index'), depth + 1))
                stack.append((node.child_by_field_name('object'), depth + 1))

            elif node.type == 'call_expression':
                pending = []
                callee = unwrap(node.child_by_field_name('function'))
                if callee is not None and callee.type not in ('super', 'import'):
                    pending.append(callee)
                arguments = node.child_by_field_name('arguments')
                if arguments is not None and arguments.type == 'arguments':
                    pending.extend(
                        arg for arg in expression_children(arguments)
                        if arg.type != 'spread_element'
                    )
                stack.extend((child, depth + 1) for child in reversed(pending))

        return refs
