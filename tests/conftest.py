"""Shared fixtures: parse small JS/TSX snippets with the real tree-sitter grammars."""
import textwrap

import pytest

from provtrace.analyzer.bindings import collect_bindings
from provtrace.analyzer.parser import LanguageParser
from provtrace.analyzer.provenance import ExpressionTracer
from provtrace.analyzer.syntax import node_text, unwrap
from provtrace.config import reset_config


def _find_all(root, node_type):
    found = []
    stack = [root]
    while stack:
        node = stack.pop()
        if node.type == node_type:
            found.append(node)
        stack.extend(reversed(node.named_children))
    return found


class Module:
    """A parsed snippet plus helpers to pick nodes out of it."""

    def __init__(self, source: str, file_path: str = 'test.jsx', language: str = 'javascript'):
        self.source = textwrap.dedent(source).strip('\n')
        self.file_path = file_path
        self.tree = LanguageParser(language).parse_source(self.source)
        self.root = self.tree.root_node
        self.bindings = collect_bindings(self.root, file_path)
        self.tracer = ExpressionTracer(file_path, self.bindings)

    def find_all(self, node_type):
        return _find_all(self.root, node_type)

    def value_of(self, name):
        """Initializer of ``const name = ...``."""
        for declarator in self.find_all('variable_declarator'):
            if node_text(declarator.child_by_field_name('name')) == name:
                return declarator.child_by_field_name('value')
        raise LookupError(name)

    def last_expression(self):
        """Expression of the last expression statement in the module."""
        statements = [s for s in self.root.named_children if s.type == 'expression_statement']
        return unwrap(statements[-1].named_children[0])

    def trace_last(self):
        return self.tracer.trace(self.last_expression())


@pytest.fixture
def parse_module():
    """Factory fixture: parse_module(source, file_path='test.jsx', language='javascript')."""
    return Module


@pytest.fixture
def clean_env(monkeypatch):
    """Unset every PROVTRACE_* variable for the test and restore afterwards.

    Each variable is set first so that values loaded from a .env file during the test are
    removed again on teardown.
    """
    for name in ('PROVTRACE_CACHE_DIR', 'PROVTRACE_EXCLUDED_DIRS',
                 'PROVTRACE_USE_CACHE', 'PROVTRACE_TSCONFIG'):
        monkeypatch.setenv(name, '')
        monkeypatch.delenv(name)
    reset_config()
    yield monkeypatch
    reset_config()


@pytest.fixture
def sample_project(tmp_path):
    """A small React project on disk."""
    files = {
        'tsconfig.json': """
            {
              // path aliases
              "compilerOptions": {
                "baseUrl": ".",
                "paths": { "@app/*": ["src/*"] },
              }
            }
        """,
        'src/constants.ts': """
            export const SITE = { title: "Acme Store", links: ["https://acme.test"] };
            export const CURRENCY = "USD";
        """,
        'src/format.ts': """
            export function formatPrice(value: number) {
              return value.toFixed(2);
            }
        """,
        'src/index.ts': """
            export * from './constants';
            export { formatPrice as price } from './format';
        """,
        'src/App.tsx': """
            import { SITE, CURRENCY } from '@app/constants';
            import { formatPrice } from './format';

            const cart = { items: [] };
            cart.items.push({ id: 1 });

            export default function App() {
              return (
                <main>
                  <h1>{SITE.title}</h1>
                  <span>{formatPrice(10)} {CURRENCY}</span>
                </main>
              );
            }
        """,
        'node_modules/lib/index.js': "export const ignored = 'yes';\n",
        'README.md': "# not source\n",
    }
    for relative, content in files.items():
        path = tmp_path / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(textwrap.dedent(content).lstrip('\n'), encoding='utf-8')
    return tmp_path
