"""Tests for the module graph collector."""
from provtrace.analyzer.module_graph import (
    DefRow,
    ExportRow,
    ImportRow,
    LiteralIndexRow,
    ModuleGraph,
    MutationRow,
    ReexportRow,
    collect_module_graph,
)


def graph_of(parse_module, source, file_path='mod.js', language='javascript'):
    module = parse_module(source, file_path=file_path, language=language)
    return collect_module_graph(module.root, file_path)


class TestExportsAndDefs:
    """Definitions, exports and the literal index of exported data."""

    def test_exported_config_object(self, parse_module):
        graph = graph_of(parse_module, 'export const CONFIG = { endpoint: "https://x", retries: 3 };')

        assert graph.defs == [DefRow('CONFIG', 'const', 'mod.js:1')]
        assert graph.exports == [ExportRow('CONFIG', 'CONFIG', 'mod.js:1')]
        assert graph.literal_index == [LiteralIndexRow('CONFIG', 'endpoint', 'https://x', 'mod.js:1')]

    def test_declaration_kinds(self, parse_module):
        graph = graph_of(parse_module, """
            var a = 1;
            let b;
            const c = 2, d = 3;
            function f() {}
            class K {}
        """)

        assert [(d.local, d.kind) for d in graph.defs] == [
            ('a', 'var'), ('b', 'let'), ('c', 'const'), ('d', 'const'), ('f', 'func'), ('K', 'class'),
        ]
        assert graph.exports == []

    def test_each_declaration_has_one_def_row(self, parse_module):
        graph = graph_of(parse_module, """
            export function helper() {}
            export class Store {}
        """)

        assert [d.local for d in graph.defs] == ['helper', 'Store']
        assert graph.exports == [
            ExportRow('helper', 'helper', 'mod.js:1'),
            ExportRow('Store', 'Store', 'mod.js:2'),
        ]

    def test_default_function_export(self, parse_module):
        graph = graph_of(parse_module, 'export default function App() { return null; }')

        assert graph.exports == [ExportRow('default', 'App', 'mod.js:1')]
        assert graph.defs == [DefRow('App', 'func', 'mod.js:1')]

    def test_default_identifier_export(self, parse_module):
        graph = graph_of(parse_module, """
            const theme = "dark";
            export default theme;
        """)

        assert graph.exports == [ExportRow('default', 'theme', 'mod.js:2')]

    def test_export_clause(self, parse_module):
        graph = graph_of(parse_module, """
            const x = 1, y = 2;
            export { x, y as why };
        """)

        assert graph.exports == [
            ExportRow('x', 'x', 'mod.js:2'),
            ExportRow('why', 'y', 'mod.js:2'),
        ]
        assert graph.reexports == []

    def test_nested_literal_index(self, parse_module):
        graph = graph_of(parse_module, """
            export const MENU = {
              items: [{ label: "Home" }, "About", 42],
              meta: { title: 'T' },
            };
        """)

        assert [(r.path, r.text) for r in graph.literal_index] == [
            ('items[0].label', 'Home'),
            ('items[1]', 'About'),
            ('meta.title', 'T'),
        ]
        assert graph.literal_index[0].span == 'mod.js:2'
        assert graph.literal_index[2].span == 'mod.js:3'

    def test_top_level_string_export(self, parse_module):
        graph = graph_of(parse_module, 'export const GREETING = "hi";')

        assert graph.literal_index == [LiteralIndexRow('GREETING', '', 'hi', 'mod.js:1')]

    def test_unexported_data_is_not_indexed(self, parse_module):
        graph = graph_of(parse_module, 'const PRIVATE = { a: "b" };')

        assert graph.literal_index == []

    def test_as_const_is_unwrapped(self, parse_module):
        graph = graph_of(
            parse_module,
            'export const ROUTES = { home: "/" } as const;',
            file_path='routes.ts',
            language='typescript',
        )

        assert graph.literal_index == [LiteralIndexRow('ROUTES', 'home', '/', 'routes.ts:1')]

    def test_escaped_text_is_decoded(self, parse_module):
        graph = graph_of(parse_module, r'''export const A = { msg: "It\'s \"ok\"\n" };''')

        assert [r.text for r in graph.literal_index] == ['It\'s "ok"\n']

    def test_escape_forms(self, parse_module):
        graph = graph_of(parse_module, r'''
            export const TEXTS = [
              "\t\\\0\v\b\f",
              "\x41\u00e9\u{1F600}\uD83D\uDE00",
              'line \
            continued',
              "\q",
            ];
        ''')

        assert [r.text for r in graph.literal_index] == [
            '\t\\\0\v\b\f',
            'Aé\U0001F600\U0001F600',
            'line continued',
            'q',
        ]

    def test_escaped_keys_and_sources(self, parse_module):
        graph = graph_of(parse_module, r'''
            import x from "./\x61bc";
            export const M = { "k\x65y": "v" };
        ''')

        assert graph.imports[0].source == './abc'
        assert graph.literal_index == [LiteralIndexRow('M', 'key', 'v', 'mod.js:2')]


class TestImportsAndReexports:
    """Import and re-export rows."""

    def test_import_rows(self, parse_module):
        graph = graph_of(parse_module, """
            import React, { useState as useS } from 'react';
            import * as api from './api';
        """)

        assert graph.imports == [
            ImportRow('React', 'default', 'react', 'mod.js:1'),
            ImportRow('useS', 'useState', 'react', 'mod.js:1'),
            ImportRow('api', '*', './api', 'mod.js:2'),
        ]

    def test_side_effect_import_has_no_rows(self, parse_module):
        graph = graph_of(parse_module, "import './styles.css';")

        assert graph.imports == []

    def test_reexport_rows(self, parse_module):
        graph = graph_of(parse_module, """
            export { a, b as c } from './m';
            export * from './all';
            export * as ns from './ns';
        """)

        assert graph.reexports == [
            ReexportRow('a', 'a', './m', 'mod.js:1'),
            ReexportRow('c', 'b', './m', 'mod.js:1'),
            ReexportRow('*', '*', './all', 'mod.js:2'),
            ReexportRow('ns', '*', './ns', 'mod.js:3'),
        ]
        assert graph.exports == []


class TestMutations:
    """Mutation rows for assignments, updates and mutating calls."""

    def test_push(self, parse_module):
        graph = graph_of(parse_module, 'state.items.push(x);')

        assert graph.mutations == [MutationRow('state', '.items', 'call:push', 'mod.js:1')]

    def test_dynamic_target_is_dropped(self, parse_module):
        graph = graph_of(parse_module, 'arr[i] = 5;')

        assert graph.mutations == []

    def test_assignments_and_updates(self, parse_module):
        graph = graph_of(parse_module, """
            count += 1;
            i++;
            config["theme"].color = "red";
        """)

        assert graph.mutations == [
            MutationRow('count', '', 'assign', 'mod.js:1'),
            MutationRow('i', '', 'update', 'mod.js:2'),
            MutationRow('config', '["theme"].color', 'assign', 'mod.js:3'),
        ]

    def test_mutating_calls(self, parse_module):
        graph = graph_of(parse_module, """
            Object.assign(settings.theme, patch);
            cache.set("k", v);
            list.unshift(1);
            list.splice(0, 1);
            store.setIn(["a"], 1);
        """)

        assert [(m.root, m.path, m.kind) for m in graph.mutations] == [
            ('settings', '.theme', 'call:Object.assign'),
            ('cache', '', 'call:set'),
            ('list', '', 'call:push'),
            ('list', '', 'call:push'),
            ('store', '', 'call:set'),
        ]

    def test_other_methods_are_not_mutations(self, parse_module):
        graph = graph_of(parse_module, """
            list.filter(Boolean);
            getStore().push(1);
        """)

        assert graph.mutations == []

    def test_mutation_inside_function(self, parse_module):
        graph = graph_of(parse_module, """
            function add(item) {
              cart.items.push(item);
            }
        """)

        assert graph.mutations == [MutationRow('cart', '.items', 'call:push', 'mod.js:2')]


class TestModuleGraph:
    """ModuleGraph helpers."""

    def test_counts(self, parse_module):
        graph = graph_of(parse_module, """
            import a from './a';
            export const b = "x";
        """)

        assert graph.counts() == {
            'imports': 1, 'exports': 1, 'reexports': 0,
            'defs': 1, 'mutations': 0, 'literal_index': 1,
        }

    def test_dict_round_trip(self, parse_module):
        graph = graph_of(parse_module, """
            import a from './a';
            export const b = { c: "d" };
            b.c = a;
        """)

        restored = ModuleGraph.from_dict(graph.to_dict())
        assert restored == graph
        assert restored.file == 'mod.js'

    def test_rows(self, parse_module):
        graph = graph_of(parse_module, 'export const b = "x";')

        assert [table for table, _ in graph.rows()] == ['exports', 'defs', 'literal_index']
