"""Tests for the module-global binding table."""
from provtrace.analyzer.bindings import BindingTable, ImportInfo, collect_bindings
from provtrace.analyzer.syntax import node_text


class TestCollectBindings:
    """collect_bindings records declarators, functions and imports."""

    def test_declarators(self, parse_module):
        module = parse_module("""
            const a = 1, b = "x";
            let c;
            var { d } = obj;
        """)
        bindings = module.bindings

        assert node_text(bindings.lookup('a').init) == '1'
        assert node_text(bindings.lookup('b').init) == '"x"'
        assert bindings.lookup('b').def_span == 'test.jsx:1'
        assert bindings.lookup('c').init is None
        # Destructuring patterns are ignored
        assert 'd' not in bindings

    def test_function_declaration(self, parse_module):
        module = parse_module("""
            function render(props) {
              return props;
            }
            function* ids() {}
        """)
        render = module.bindings.lookup('render')

        assert render.def_span == 'test.jsx:1'
        assert render.fn_body_span == 'test.jsx:1'
        assert render.init is None
        assert 'ids' in module.bindings
        # Parameters are not module bindings
        assert 'props' not in module.bindings

    def test_imports(self, parse_module):
        module = parse_module("""
            import React, { useState as useS, useMemo } from 'react';
            import * as api from "./api";
        """)
        bindings = module.bindings

        assert bindings.lookup('React').import_info == ImportInfo('react', 'default')
        assert bindings.lookup('useS').import_info == ImportInfo('react', 'useState')
        assert bindings.lookup('useMemo').import_info == ImportInfo('react', 'useMemo')
        assert bindings.lookup('api').import_info == ImportInfo('./api', '*')
        assert bindings.lookup('api').def_span == 'test.jsx:2'
        assert 'useState' not in bindings

    def test_nested_declarations_are_module_global(self, parse_module):
        module = parse_module("""
            var x = 1;
            function f() {
              var x = 2;
            }
        """)

        # Flat scope: the later declaration wins
        assert node_text(module.bindings.lookup('x').init) == '2'

    def test_typescript_module(self, parse_module):
        module = parse_module(
            'const limit: number = 10;\ntype Props = { a: string };\n',
            file_path='limits.ts',
            language='typescript',
        )

        assert node_text(module.bindings.lookup('limit').init) == '10'
        assert module.bindings.lookup('limit').def_span == 'limits.ts:1'
        assert len(module.bindings) == 1


class TestBindingTable:
    """Direct BindingTable operations."""

    def test_record_overwrites(self):
        table = BindingTable('a.js')
        table.record('x', 'a.js:1')
        table.record('x', 'a.js:9')

        assert table.lookup('x').def_span == 'a.js:9'
        assert len(table) == 1
        assert table.names() == ['x']

    def test_lookup_missing(self):
        assert BindingTable().lookup('nope') is None

    def test_empty_module(self, parse_module):
        assert len(collect_bindings(parse_module('').root, 'empty.js')) == 0
