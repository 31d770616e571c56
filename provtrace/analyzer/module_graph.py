"""Per-module structural graph: imports, exports, re-exports, definitions, mutations
and the literal index of exported data.

One ``ModuleGraphCollector.collect`` call walks the whole tree once with an explicit
work-stack and fills every row list of a ``ModuleGraph``.
"""
from dataclasses import asdict, dataclass, field
from typing import Dict, Iterator, List, Optional, Tuple

from tree_sitter import Node

from .bindings import iter_import_specifiers
from .member_path import static_member_path
from .syntax import (
    array_elements,
    expression_children,
    make_span,
    node_text,
    property_key,
    string_value,
    unwrap,
)


PUSH_METHODS = {'push', 'unshift', 'splice'}
SET_METHODS = {'set', 'setIn'}

# TypeScript wrappers that do not change the runtime value (`{...} as const`)
TYPE_WRAPPERS = ('as_expression', 'satisfies_expression', 'non_null_expression')

NAMED_DEFAULT_EXPRESSIONS = (
    'function_expression', 'function', 'generator_function', 'class',
)


@dataclass(frozen=True)
class ImportRow:
    local: str  # local alias in this module
    imported: str  # 'default' | '*' | exported name
    source: str  # module specifier
    span: str


@dataclass(frozen=True)
class ExportRow:
    exported: str  # name visible to other modules
    local: str  # local symbol bound in this module
    span: str


@dataclass(frozen=True)
class ReexportRow:
    exported: str
    imported: str
    source: str
    span: str


@dataclass(frozen=True)
class DefRow:
    local: str
    kind: str  # var | let | const | func | class
    span: str


@dataclass(frozen=True)
class MutationRow:
    root: str  # root identifier being mutated
    path: str  # '', '.items', '["k"][0]'
    kind: str  # assign | update | call:Object.assign | call:push | call:set
    span: str


@dataclass(frozen=True)
class LiteralIndexRow:
    export_name: str
    path: str  # 'endpoint', 'nav[0].label'
    text: str
    span: str


ROW_TYPES = {
    'imports': ImportRow,
    'exports': ExportRow,
    'reexports': ReexportRow,
    'defs': DefRow,
    'mutations': MutationRow,
    'literal_index': LiteralIndexRow,
}


@dataclass
class ModuleGraph:
    """Structural summary of one module."""
    file: str = ''
    imports: List[ImportRow] = field(default_factory=list)
    exports: List[ExportRow] = field(default_factory=list)
    reexports: List[ReexportRow] = field(default_factory=list)
    defs: List[DefRow] = field(default_factory=list)
    mutations: List[MutationRow] = field(default_factory=list)
    literal_index: List[LiteralIndexRow] = field(default_factory=list)

    def rows(self) -> Iterator[Tuple[str, object]]:
        """Yield ``(table_name, row)`` for every row in the graph."""
        for table in ROW_TYPES:
            for row in getattr(self, table):
                yield table, row

    def counts(self) -> Dict[str, int]:
        return {table: len(getattr(self, table)) for table in ROW_TYPES}

    def to_dict(self) -> dict:
        data = {'file': self.file}
        for table in ROW_TYPES:
            data[table] = [asdict(row) for row in getattr(self, table)]
        return data

    @classmethod
    def from_dict(cls, data: dict) -> 'ModuleGraph':
        graph = cls(file=data.get('file', ''))
        for table, row_type in ROW_TYPES.items():
            rows = getattr(graph, table)
            for row in data.get(table, []):
                rows.append(row_type(**row))
        return graph


class ModuleGraphCollector:
    """Collect the ModuleGraph of one module."""

    def __init__(self, file_path: str):
        self.file_path = file_path
        self.graph = ModuleGraph(file=file_path)

    def span(self, node: Optional[Node]) -> str:
        return make_span(self.file_path, node)

    def collect(self, root: Node) -> ModuleGraph:
        stack = [root]

        while stack:
            node = stack.pop()
            kind = node.type

            if kind == 'import_statement':
                self._visit_import(node)
                continue

            if kind == 'export_statement':
                if node.child_by_field_name('source') is not None:
                    self._visit_reexport(node)
                    continue
                self._visit_export(node)

            elif kind in ('lexical_declaration', 'variable_declaration'):
                self._visit_declaration(node)

            elif kind in ('function_declaration', 'generator_function_declaration'):
                name_node = node.child_by_field_name('name')
                if name_node is not None:
                    self.graph.defs.append(DefRow(node_text(name_node), 'func', self.span(name_node)))

            elif kind in ('class_declaration', 'abstract_class_declaration'):
                name_node = node.child_by_field_name('name')
                if name_node is not None:
                    self.graph.defs.append(DefRow(node_text(name_node), 'class', self.span(name_node)))

            elif kind in ('assignment_expression', 'augmented_assignment_expression'):
                self._record_mutation(node.child_by_field_name('left'), 'assign', node)

            elif kind == 'update_expression':
                self._record_mutation(node.child_by_field_name('argument'), 'update', node)

            elif kind == 'call_expression':
                self._visit_call(node)

            stack.extend(reversed(node.named_children))

        return self.graph

    # ------------------------------------------------------------------
    # Imports / exports
    # ------------------------------------------------------------------

    def _visit_import(self, node: Node):
        source_node = node.child_by_field_name('source')
        if source_node is None:
            return
        source = string_value(source_node)
        for local_node, imported in iter_import_specifiers(node):
            self.graph.imports.append(ImportRow(
                local=node_text(local_node),
                imported=imported,
                source=source,
                span=self.span(local_node),
            ))

    def _visit_reexport(self, node: Node):
        source = string_value(node.child_by_field_name('source'))
        clause = _first_child_of_type(node, 'export_clause')

        if clause is not None:
            # export { a, b as c } from './mod'
            for spec in clause.named_children:
                if spec.type != 'export_specifier':
                    continue
                name_node = spec.child_by_field_name('name')
                alias_node = spec.child_by_field_name('alias')
                if name_node is None:
                    continue
                self.graph.reexports.append(ReexportRow(
                    exported=_export_name(alias_node if alias_node is not None else name_node),
                    imported=_export_name(name_node),
                    source=source,
                    span=self.span(spec),
                ))
            return

        namespace = _first_child_of_type(node, 'namespace_export')
        if namespace is not None:
            # export * as ns from './mod'
            names = [child for child in namespace.named_children]
            exported = _export_name(names[0]) if names else '*'
            self.graph.reexports.append(ReexportRow(exported, '*', source, self.span(namespace)))
        else:
            # export * from './mod'
            self.graph.reexports.append(ReexportRow('*', '*', source, self.span(node)))

    def _visit_export(self, node: Node):
        is_default = any(child.type == 'default' for child in node.children)
        declaration = node.child_by_field_name('declaration')

        if declaration is not None:
            dtype = declaration.type
            if dtype in ('lexical_declaration', 'variable_declaration'):
                for declarator in declaration.named_children:
                    if declarator.type != 'variable_declarator':
                        continue
                    name_node = declarator.child_by_field_name('name')
                    if name_node is None or name_node.type != 'identifier':
                        continue
                    name = node_text(name_node)
                    self.graph.exports.append(ExportRow(name, name, self.span(name_node)))
                    value = declarator.child_by_field_name('value')
                    if value is not None:
                        self._harvest_literal_index(name, value)
            else:
                name_node = declaration.child_by_field_name('name')
                if name_node is not None and dtype in (
                    'function_declaration', 'generator_function_declaration',
                    'class_declaration', 'abstract_class_declaration',
                ):
                    name = node_text(name_node)
                    exported = 'default' if is_default else name
                    self.graph.exports.append(ExportRow(exported, name, self.span(name_node)))
            return

        value = unwrap(node.child_by_field_name('value'))
        if value is not None:
            if not is_default:
                return
            # export default someIdentifier;
            if value.type == 'identifier':
                self.graph.exports.append(ExportRow('default', node_text(value), self.span(value)))
            # export default function App() {} parsed as a named expression
            elif value.type in NAMED_DEFAULT_EXPRESSIONS:
                name_node = value.child_by_field_name('name')
                if name_node is not None:
                    name = node_text(name_node)
                    def_kind = 'class' if value.type == 'class' else 'func'
                    self.graph.defs.append(DefRow(name, def_kind, self.span(name_node)))
                    self.graph.exports.append(ExportRow('default', name, self.span(name_node)))
            return

        clause = _first_child_of_type(node, 'export_clause')
        if clause is None:
            return
        # export { a, b as c }
        for spec in clause.named_children:
            if spec.type != 'export_specifier':
                continue
            name_node = spec.child_by_field_name('name')
            alias_node = spec.child_by_field_name('alias')
            if name_node is None or name_node.type != 'identifier':
                continue
            self.graph.exports.append(ExportRow(
                exported=_export_name(alias_node if alias_node is not None else name_node),
                local=node_text(name_node),
                span=self.span(name_node),
            ))

    # ------------------------------------------------------------------
    # Definitions
    # ------------------------------------------------------------------

    def _visit_declaration(self, node: Node):
        # First token is the keyword: var / let / const
        decl_kind = node.children[0].type if node.children else 'var'
        if decl_kind not in ('var', 'let', 'const'):
            decl_kind = 'var'

        for declarator in node.named_children:
            if declarator.type != 'variable_declarator':
                continue
            name_node = declarator.child_by_field_name('name')
            if name_node is not None and name_node.type == 'identifier':
                self.graph.defs.append(DefRow(node_text(name_node), decl_kind, self.span(declarator)))

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def _record_mutation(self, target: Optional[Node], kind: str, at: Node):
        member_path = static_member_path(target)
        if member_path is None:
            return
        self.graph.mutations.append(MutationRow(
            root=member_path.root,
            path=member_path.path,
            kind=kind,
            span=self.span(at),
        ))

    def _visit_call(self, node: Node):
        callee = unwrap(node.child_by_field_name('function'))
        if callee is None or callee.type != 'member_expression':
            return
        obj = unwrap(callee.child_by_field_name('object'))
        prop = callee.child_by_field_name('property')
        if obj is None or prop is None or prop.type != 'property_identifier':
            return
        method = node_text(prop)

        # Object.assign(target, ...)
        if obj.type == 'identifier' and node_text(obj) == 'Object' and method == 'assign':
            args = expression_children(node.child_by_field_name('arguments'))
            if args and args[0].type != 'spread_element':
                self._record_mutation(args[0], 'call:Object.assign', node)
            return

        if method in PUSH_METHODS:
            self._record_mutation(obj, 'call:push', node)
        elif method in SET_METHODS:
            self._record_mutation(obj, 'call:set', node)

    # ------------------------------------------------------------------
    # Literal index
    # ------------------------------------------------------------------

    def _harvest_literal_index(self, export_name: str, value: Node):
        """Record every string leaf reachable through objects and arrays."""
        stack = [(value, '')]

        while stack:
            node, prefix = stack.pop()
            node = unwrap(node)
            while node is not None and node.type in TYPE_WRAPPERS:
                inner = node.named_children
                node = unwrap(inner[0]) if inner else None
            if node is None:
                continue

            if node.type == 'object':
                pending = []
                for prop in node.named_children:
                    if prop.type != 'pair':
                        continue
                    key_node = prop.child_by_field_name('key')
                    key = property_key(key_node) if key_node is not None else None
                    prop_value = prop.child_by_field_name('value')
                    if key is None or prop_value is None:
                        continue
                    path = f"{prefix}.{key}" if prefix else key
                    pending.append((prop_value, path))
                stack.extend(reversed(pending))

            elif node.type == 'array':
                pending = []
                for index, element in array_elements(node):
                    if element.type == 'spread_element':
                        continue
                    pending.append((element, f"{prefix}[{index}]"))
                stack.extend(reversed(pending))

            elif node.type == 'string':
                self.graph.literal_index.append(LiteralIndexRow(
                    export_name=export_name,
                    path=prefix,
                    text=string_value(node),
                    span=self.span(node),
                ))


def collect_module_graph(root: Node, file_path: str) -> ModuleGraph:
    """Convenience wrapper around ModuleGraphCollector."""
    return ModuleGraphCollector(file_path).collect(root)


def _first_child_of_type(node: Node, node_type: str) -> Optional[Node]:
    for child in node.named_children:
        if child.type == node_type:
            return child
    return None


def _export_name(node: Node) -> str:
    """Exported names may be identifiers or (ES2022) string literals."""
    if node.type == 'string':
        return string_value(node)
    return node_text(node)
