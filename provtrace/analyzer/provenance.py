"""Provenance tracing for JS/TS expressions.

Walks an expression the way a reader would ask "where does this value come from?":
identifiers are followed to their initializers or imports, member accesses to their
objects, calls to their arguments, and so on. Every step is recorded as a provenance node
in an append-only chain.

Tracing is bounded: it never goes deeper than MAX_DEPTH levels and a chain never holds more
than MAX_CHAIN nodes. Identifiers are expanded at most once per trace, so self-referential
initializers terminate.
"""
from dataclasses import asdict, dataclass, field
from typing import Iterator, List, Optional, Set, Union

from tree_sitter import Node

from .bindings import BindingTable
from .syntax import (
    MEMBER_TYPES,
    array_elements,
    expression_children,
    make_span,
    node_text,
    property_key,
    unwrap,
)


MAX_DEPTH = 8
MAX_CHAIN = 128


@dataclass(frozen=True)
class LiteralNode:
    span: str
    value_kind: str  # 'string' | 'number' | 'other'
    kind: str = field(default='Literal', init=False)


@dataclass(frozen=True)
class IdentNode:
    name: str
    span: str
    kind: str = field(default='Ident', init=False)


@dataclass(frozen=True)
class InitNode:
    span: str
    kind: str = field(default='Init', init=False)


@dataclass(frozen=True)
class ImportNode:
    source: str
    imported: str
    span: str
    kind: str = field(default='Import', init=False)


@dataclass(frozen=True)
class MemberNode:
    span: str
    kind: str = field(default='Member', init=False)


@dataclass(frozen=True)
class ObjectPropNode:
    key: str
    span: str
    kind: str = field(default='ObjectProp', init=False)


@dataclass(frozen=True)
class ArrayElemNode:
    index: int
    span: str
    kind: str = field(default='ArrayElem', init=False)


@dataclass(frozen=True)
class CallNode:
    callee: str
    callsite: str
    callee_span: str
    fn_def_span: Optional[str] = None
    kind: str = field(default='Call', init=False)

    @property
    def span(self) -> str:
        return self.callsite


@dataclass(frozen=True)
class CtorNode:
    callee: str
    span: str
    kind: str = field(default='Ctor', init=False)


@dataclass(frozen=True)
class OpNode:
    op: str
    span: str
    kind: str = field(default='Op', init=False)


@dataclass(frozen=True)
class EnvNode:
    key: str
    span: str
    kind: str = field(default='Env', init=False)


@dataclass(frozen=True)
class UnknownNode:
    span: str
    kind: str = field(default='Unknown', init=False)


ProvNode = Union[
    LiteralNode, IdentNode, InitNode, ImportNode, MemberNode, ObjectPropNode,
    ArrayElemNode, CallNode, CtorNode, OpNode, EnvNode, UnknownNode,
]


def node_to_dict(node: ProvNode) -> dict:
    """Plain dict form of a provenance node (``kind`` included)."""
    data = asdict(node)
    if data.get('fn_def_span', '') is None:
        del data['fn_def_span']
    return data


class ProvenanceChain:
    """Append-only, size-bounded sequence of provenance nodes."""

    def __init__(self, limit: int = MAX_CHAIN):
        self.limit = limit
        self.truncated = False
        self._nodes: List[ProvNode] = []

    def append(self, node: ProvNode) -> bool:
        """Append a node; returns False (and drops it) once the chain is full."""
        if len(self._nodes) >= self.limit:
            self.truncated = True
            return False
        self._nodes.append(node)
        return True

    def is_full(self) -> bool:
        return len(self._nodes) >= self.limit

    def kinds(self) -> List[str]:
        return [node.kind for node in self._nodes]

    def to_list(self) -> List[dict]:
        return [node_to_dict(node) for node in self._nodes]

    def __iter__(self) -> Iterator[ProvNode]:
        return iter(self._nodes)

    def __len__(self) -> int:
        return len(self._nodes)

    def __getitem__(self, index):
        return self._nodes[index]

    def __repr__(self) -> str:
        return f"ProvenanceChain({self.kinds()!r})"


class ExpressionTracer:
    """Traces expressions of one module against its binding table."""

    def __init__(self, file_path: str, bindings: BindingTable):
        self.file_path = file_path
        self.bindings = bindings

    def span(self, node: Optional[Node]) -> str:
        return make_span(self.file_path, node)

    def trace(self, expr: Node) -> ProvenanceChain:
        """Trace a single expression into a fresh chain."""
        chain = ProvenanceChain()
        self.trace_expression(expr, chain)
        return chain

    def trace_expression(self, expr: Optional[Node], chain: ProvenanceChain,
                         depth: int = 0, seen: Optional[Set[str]] = None) -> ProvenanceChain:
        """Append the provenance of ``expr`` to ``chain``.

        Args:
            expr: Expression node to trace
            chain: Chain to append to
            depth: Current recursion depth (0 for the traced expression itself)
            seen: Identifiers already expanded in this trace

        Returns:
            The same chain, for convenience
        """
        if seen is None:
            seen = set()
        if expr is None or depth > MAX_DEPTH or chain.is_full():
            return chain

        expr = unwrap(expr)
        kind = expr.type
        span = self.span(expr)

        if kind == 'string':
            chain.append(LiteralNode(span=span, value_kind='string'))

        elif kind == 'number':
            chain.append(LiteralNode(span=span, value_kind='number'))

        elif kind in ('true', 'false', 'null'):
            chain.append(LiteralNode(span=span, value_kind='other'))

        elif kind in ('identifier', 'shorthand_property_identifier', 'undefined'):
            self._trace_identifier(expr, chain, depth, seen)

        elif kind in MEMBER_TYPES:
            self._trace_member(expr, chain, depth, seen)

        elif kind == 'call_expression':
            self._trace_call(expr, chain, depth, seen)

        elif kind == 'new_expression':
            callee = unwrap(expr.child_by_field_name('constructor'))
            name = node_text(callee) if callee is not None and callee.type == 'identifier' else '<expr>'
            chain.append(CtorNode(callee=name, span=span))
            self._trace_arguments(expr.child_by_field_name('arguments'), chain, depth, seen)

        elif kind == 'template_string':
            chain.append(OpNode(op='template', span=span))
            for child in expr.named_children:
                if child.type == 'template_substitution':
                    for inner in expression_children(child):
                        self.trace_expression(inner, chain, depth + 1, seen)

        elif kind == 'binary_expression':
            operator = expr.child_by_field_name('operator')
            chain.append(OpNode(op=f"binary:{operator.type if operator is not None else '?'}", span=span))
            self.trace_expression(expr.child_by_field_name('left'), chain, depth + 1, seen)
            self.trace_expression(expr.child_by_field_name('right'), chain, depth + 1, seen)

        elif kind == 'unary_expression':
            operator = expr.child_by_field_name('operator')
            chain.append(OpNode(op=f"unary:{operator.type if operator is not None else '?'}", span=span))
            self.trace_expression(expr.child_by_field_name('argument'), chain, depth + 1, seen)

        elif kind == 'update_expression':
            chain.append(OpNode(op='update', span=span))
            self.trace_expression(expr.child_by_field_name('argument'), chain, depth + 1, seen)

        elif kind == 'ternary_expression':
            chain.append(OpNode(op='cond', span=span))
            for field_name in ('condition', 'consequence', 'alternative'):
                self.trace_expression(expr.child_by_field_name(field_name), chain, depth + 1, seen)

        elif kind == 'object':
            self._trace_object(expr, chain, depth, seen)

        elif kind == 'array':
            for index, element in array_elements(expr):
                if element.type == 'spread_element':
                    continue
                chain.append(ArrayElemNode(index=index, span=self.span(element)))
                self.trace_expression(element, chain, depth + 1, seen)

        else:
            chain.append(UnknownNode(span=span))

        return chain

    def _trace_identifier(self, expr: Node, chain: ProvenanceChain, depth: int, seen: Set[str]):
        name = node_text(expr)
        chain.append(IdentNode(name=name, span=self.span(expr)))

        # Cycle guard
        if name in seen:
            return
        seen.add(name)

        binding = self.bindings.lookup(name)
        if binding is None:
            return
        if binding.init is not None:
            chain.append(InitNode(span=self.span(binding.init)))
            self.trace_expression(binding.init, chain, depth + 1, seen)
        if binding.import_info is not None:
            chain.append(ImportNode(
                source=binding.import_info.source,
                imported=binding.import_info.imported,
                span=binding.def_span,
            ))

    def _trace_member(self, expr: Node, chain: ProvenanceChain, depth: int, seen: Set[str]):
        env_key = detect_env_member(expr)
        if env_key is not None:
            chain.append(EnvNode(key=env_key, span=self.span(expr)))
            return

        chain.append(MemberNode(span=self.span(expr)))
        self.trace_expression(expr.child_by_field_name('object'), chain, depth + 1, seen)
        if expr.type == 'subscript_expression':
            self.trace_expression(expr.child_by_field_name('index'), chain, depth + 1, seen)

    def _trace_call(self, expr: Node, chain: ProvenanceChain, depth: int, seen: Set[str]):
        arguments = expr.child_by_field_name('arguments')
        # Tagged templates (tag`...`) are not calls with an argument list
        if arguments is not None and arguments.type == 'template_string':
            chain.append(UnknownNode(span=self.span(expr)))
            return

        callee = unwrap(expr.child_by_field_name('function'))
        callee_name = '<expr>'
        callee_span = self.span(expr)
        fn_def_span = None

        if callee is not None and callee.type == 'identifier':
            callee_name = node_text(callee)
            callee_span = self.span(callee)
            binding = self.bindings.lookup(callee_name)
            if binding is not None:
                fn_def_span = binding.fn_body_span or binding.def_span
        elif callee is not None and callee.type in MEMBER_TYPES:
            callee_name = '<member>'
            callee_span = self.span(callee)

        chain.append(CallNode(
            callee=callee_name,
            callsite=self.span(expr),
            callee_span=callee_span,
            fn_def_span=fn_def_span,
        ))
        self._trace_arguments(arguments, chain, depth, seen)

    def _trace_arguments(self, arguments: Optional[Node], chain: ProvenanceChain,
                         depth: int, seen: Set[str]):
        for arg in expression_children(arguments):
            if arg.type != 'spread_element':
                self.trace_expression(arg, chain, depth + 1, seen)

    def _trace_object(self, expr: Node, chain: ProvenanceChain, depth: int, seen: Set[str]):
        for prop in expr.named_children:
            if prop.type == 'pair':
                key_node = prop.child_by_field_name('key')
                key = property_key(key_node) if key_node is not None else None
                # Computed keys are skipped
                if key is None:
                    continue
                chain.append(ObjectPropNode(key=key, span=self.span(key_node)))
                self.trace_expression(prop.child_by_field_name('value'), chain, depth + 1, seen)

            elif prop.type == 'shorthand_property_identifier':
                chain.append(ObjectPropNode(key=node_text(prop), span=self.span(prop)))
                self.trace_expression(prop, chain, depth + 1, seen)


def detect_env_member(expr: Node) -> Optional[str]:
    """Return X for ``process.env.X`` or ``import.meta.env.X``, otherwise None."""
    if expr.type != 'member_expression':
        return None
    prop = expr.child_by_field_name('property')
    obj = unwrap(expr.child_by_field_name('object'))
    if prop is None or prop.type != 'property_identifier':
        return None
    if obj is None or obj.type != 'member_expression':
        return None

    env_prop = obj.child_by_field_name('property')
    if env_prop is None or node_text(env_prop) != 'env':
        return None

    base = unwrap(obj.child_by_field_name('object'))
    if base is None:
        return None
    if base.type == 'identifier' and node_text(base) == 'process':
        return node_text(prop)
    if base.type == 'meta_property' and ''.join(node_text(base).split()) == 'import.meta':
        return node_text(prop)
    return None
