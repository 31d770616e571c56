"""Static member-path resolution.

Reduces ``a.b["c"][0].d`` to the root identifier ``a`` and the textual path
``.b["c"][0].d``. Anything that cannot be known without running the code (a computed
property that is not a literal, a root that is a call result or ``this``) resolves to None.
"""
from dataclasses import dataclass
from typing import Optional

from tree_sitter import Node

from .syntax import node_text, number_value, string_value, unwrap


@dataclass(frozen=True)
class MemberPath:
    root: str
    path: str


def static_member_path(expr: Optional[Node]) -> Optional[MemberPath]:
    """Resolve a member-access chain to ``MemberPath(root, path)``.

    A bare identifier resolves to ``MemberPath(name, '')``.

    Returns:
        MemberPath, or None when the chain is not statically resolvable
    """
    parts = []
    current = unwrap(expr)

    while current is not None and current.type in ('member_expression', 'subscript_expression'):
        if current.type == 'member_expression':
            prop = current.child_by_field_name('property')
            if prop is None:
                return None
            parts.append(f".{node_text(prop)}")
        else:
            index = unwrap(current.child_by_field_name('index'))
            if index is None:
                return None
            if index.type == 'string':
                parts.append(f'["{string_value(index)}"]')
            elif index.type == 'number':
                parts.append(f"[{number_value(index)}]")
            else:
                return None
        current = unwrap(current.child_by_field_name('object'))

    if current is not None and current.type == 'identifier':
        return MemberPath(root=node_text(current), path=''.join(reversed(parts)))

    return None
