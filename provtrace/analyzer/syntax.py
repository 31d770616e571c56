"""Small helpers shared by every tree-sitter walker in the analyzer.

All walkers speak in tree-sitter node types of the javascript/typescript/tsx grammars.
Spans are encoded as ``"<file>:<line>"`` with a 1-indexed line, or ``"<file>:0"`` when
the location is unknown.
"""
import re
from typing import Optional

from tree_sitter import Node


# Node types that read a property off an object (`a.b` and `a[b]`)
MEMBER_TYPES = ('member_expression', 'subscript_expression')

LITERAL_TYPES = ('string', 'number', 'true', 'false', 'null')

# Punctuation tokens that show up as children of argument/array/object nodes
PUNCTUATION = {'(', ')', '[', ']', '{', '}', ','}

ESCAPE_RE = re.compile(r"\\(u\{[0-9a-fA-F]+\}|u[0-9a-fA-F]{4}|x[0-9a-fA-F]{2}|\r\n|[\s\S])")

SIMPLE_ESCAPES = {
    'n': '\n', 't': '\t', 'r': '\r', 'b': '\b',
    'f': '\f', 'v': '\v', '0': '\0',
}

LINE_CONTINUATIONS = {'\n', '\r', '\r\n', '\u2028', '\u2029'}


def make_span(file_path: str, node: Optional[Node]) -> str:
    """Encode the start line of a node as a span string."""
    if node is None:
        return f"{file_path}:0"
    try:
        return f"{file_path}:{node.start_point[0] + 1}"
    except (AttributeError, IndexError, TypeError):
        return f"{file_path}:0"


def node_text(node: Optional[Node]) -> str:
    """Return the source text of a node ('' when unavailable)."""
    if node is None or node.text is None:
        return ''
    return node.text.decode('utf-8', errors='replace')


def unwrap(node: Optional[Node]) -> Optional[Node]:
    """Strip any number of enclosing parentheses."""
    while node is not None and node.type == 'parenthesized_expression':
        inner = [child for child in node.named_children if child.type != 'comment']
        if not inner:
            return node
        node = inner[0]
    return node


def string_value(node: Node) -> str:
    """Return the value of a string literal: quotes stripped, escape sequences decoded."""
    text = node_text(node)
    if len(text) >= 2 and text[0] in '"\'' and text[-1] == text[0]:
        text = text[1:-1]
    return decode_escapes(text)


def decode_escapes(text: str) -> str:
    """Decode JavaScript string escapes (``\\n``, ``\\x41``, ``\\u00e9``, ``\\u{1F600}``, ...).

    Line continuations are removed and ``\\uD83D\\uDE00`` style surrogate pairs are joined.
    Unknown escapes decode to the escaped character itself.
    """
    if '\\' not in text:
        return text

    decoded = ESCAPE_RE.sub(_decode_escape, text)
    try:
        return decoded.encode('utf-16', 'surrogatepass').decode('utf-16')
    except UnicodeDecodeError:
        # Lone surrogate
        return decoded


def _decode_escape(match: re.Match) -> str:
    escape = match.group(1)
    if escape in SIMPLE_ESCAPES:
        return SIMPLE_ESCAPES[escape]
    if escape in LINE_CONTINUATIONS:
        return ''
    if escape.startswith('u{'):
        code_point = int(escape[2:-1], 16)
        return chr(code_point) if code_point <= 0x10FFFF else match.group(0)
    if escape[0] in 'xu' and len(escape) > 1:
        return chr(int(escape[1:], 16))
    return escape


def number_value(node: Node) -> str:
    """Return a numeric literal the way JavaScript prints it (``1.0`` -> ``1``)."""
    text = node_text(node).replace('_', '')
    try:
        if text.lower().startswith(('0x', '0o', '0b')):
            return str(int(text, 0))
        value = float(text)
    except ValueError:
        return text
    if value.is_integer() and abs(value) < 1e21:
        return str(int(value))
    return repr(value)


def property_key(node: Node) -> Optional[str]:
    """Return the static key of an object property key node, or None when computed."""
    if node.type in ('property_identifier', 'identifier', 'shorthand_property_identifier'):
        return node_text(node)
    if node.type == 'string':
        return string_value(node)
    if node.type == 'number':
        return number_value(node)
    return None


def expression_children(node: Optional[Node]) -> list:
    """Named children of an ``arguments``-like node, comments dropped."""
    if node is None:
        return []
    return [child for child in node.named_children if child.type != 'comment']


def array_elements(node: Node) -> list:
    """Return ``(index, element)`` pairs of an array literal, counting holes."""
    elements = []
    index = 0
    pending = False
    for child in node.children:
        if child.type == ',':
            index += 1
            pending = False
        elif child.type in ('[', ']', 'comment'):
            continue
        elif child.is_named and not pending:
            elements.append((index, child))
            pending = True
    return elements
