"""Module-global binding table.

Maps every identifier declared in a module to where it was defined: a variable declarator
(with its initializer), a function declaration (with its body) or an import specifier.
The table is flat: block scoping is ignored and a later declaration of the same name
replaces an earlier one.
"""
from dataclasses import dataclass
from typing import Dict, Iterator, Optional

from tree_sitter import Node

from .syntax import make_span, node_text, string_value


@dataclass(frozen=True)
class ImportInfo:
    """Where an imported binding comes from."""
    source: str  # module specifier, e.g. './constants'
    imported: str  # 'default', '*' or the exported name


@dataclass(frozen=True)
class Binding:
    """Definition metadata for one identifier."""
    name: str
    def_span: str
    init: Optional[Node] = None
    import_info: Optional[ImportInfo] = None
    fn_body_span: Optional[str] = None


class BindingTable:
    """Flat name -> Binding map for a single module."""

    def __init__(self, file_path: str = ''):
        self.file_path = file_path
        self._bindings: Dict[str, Binding] = {}

    def record(self, name: str, def_span: str, init: Optional[Node] = None,
               import_info: Optional[ImportInfo] = None,
               fn_body_span: Optional[str] = None) -> Binding:
        """Record a binding, replacing any previous entry with the same name."""
        binding = Binding(
            name=name,
            def_span=def_span,
            init=init,
            import_info=import_info,
            fn_body_span=fn_body_span,
        )
        self._bindings[name] = binding
        return binding

    def lookup(self, name: str) -> Optional[Binding]:
        return self._bindings.get(name)

    def __contains__(self, name: str) -> bool:
        return name in self._bindings

    def __len__(self) -> int:
        return len(self._bindings)

    def __iter__(self) -> Iterator[Binding]:
        return iter(self._bindings.values())

    def names(self):
        return list(self._bindings)


def collect_bindings(root: Node, file_path: str) -> BindingTable:
    """Build the binding table for a module in one pass over its tree.

    Args:
        root: Root node of the parsed module (``tree.root_node``)
        file_path: Logical path used in spans

    Returns:
        Populated BindingTable
    """
    table = BindingTable(file_path)
    stack = [root]

    while stack:
        node = stack.pop()

        if node.type == 'variable_declarator':
            name_node = node.child_by_field_name('name')
            # Destructuring patterns are not tracked
            if name_node is not None and name_node.type == 'identifier':
                table.record(
                    node_text(name_node),
                    make_span(file_path, name_node),
                    init=node.child_by_field_name('value'),
                )

        elif node.type in ('function_declaration', 'generator_function_declaration'):
            name_node = node.child_by_field_name('name')
            if name_node is not None:
                body = node.child_by_field_name('body')
                table.record(
                    node_text(name_node),
                    make_span(file_path, name_node),
                    fn_body_span=make_span(file_path, body) if body is not None else None,
                )

        elif node.type == 'import_statement':
            _record_imports(table, node, file_path)
            continue

        stack.extend(reversed(node.named_children))

    return table


def _record_imports(table: BindingTable, node: Node, file_path: str):
    source_node = node.child_by_field_name('source')
    if source_node is None:
        return
    source = string_value(source_node)

    for local_node, imported in iter_import_specifiers(node):
        table.record(
            node_text(local_node),
            make_span(file_path, local_node),
            import_info=ImportInfo(source=source, imported=imported),
        )


def iter_import_specifiers(import_node: Node):
    """Yield ``(local_identifier_node, imported_name)`` for each specifier of an import.

    Default imports report ``'default'``, namespace imports ``'*'``.
    """
    for clause in import_node.named_children:
        if clause.type != 'import_clause':
            continue
        for child in clause.named_children:
            # import x from 'mod'
            if child.type == 'identifier':
                yield child, 'default'

            # import * as ns from 'mod'
            elif child.type == 'namespace_import':
                for ns_child in child.named_children:
                    if ns_child.type == 'identifier':
                        yield ns_child, '*'

            # import { a, b as c, "d-e" as f } from 'mod'
            elif child.type == 'named_imports':
                for specifier in child.named_children:
                    if specifier.type != 'import_specifier':
                        continue
                    name_node = specifier.child_by_field_name('name')
                    alias_node = specifier.child_by_field_name('alias')
                    if name_node is None:
                        continue
                    local_node = alias_node if alias_node is not None else name_node
                    if name_node.type == 'string':
                        imported = node_text(local_node)
                    else:
                        imported = node_text(name_node)
                    yield local_node, imported
