"""Tests for import resolution and tsconfig alias loading."""
import pytest

from provtrace.analyzer.config_parser import load_path_aliases, load_tsconfig
from provtrace.analyzer.resolver import ImportResolver


@pytest.fixture
def project(tmp_path):
    files = [
        'src/app.tsx',
        'src/utils.ts',
        'src/types.d.ts',
        'src/data.json',
        'src/components/index.tsx',
        'src/legacy/helpers.js',
        'lib/shared.mjs',
    ]
    for relative in files:
        path = tmp_path / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text('', encoding='utf-8')
    return tmp_path


class TestImportResolver:
    """JS/TS module specifier resolution."""

    def test_relative_with_probed_extension(self, project):
        resolver = ImportResolver(project)

        assert resolver.resolve(project / 'src/app.tsx', './utils') == (project / 'src/utils.ts').resolve()

    def test_relative_exact_file(self, project):
        resolver = ImportResolver(project)

        assert resolver.resolve(project / 'src/app.tsx', './data.json') == (project / 'src/data.json').resolve()

    def test_declaration_file(self, project):
        resolver = ImportResolver(project)

        assert resolver.resolve(project / 'src/app.tsx', './types') == (project / 'src/types.d.ts').resolve()

    def test_directory_index(self, project):
        resolver = ImportResolver(project)

        assert resolver.resolve(project / 'src/app.tsx', './components') == \
            (project / 'src/components/index.tsx').resolve()

    def test_parent_directory(self, project):
        resolver = ImportResolver(project)

        assert resolver.resolve(project / 'src/legacy/helpers.js', '../utils') == \
            (project / 'src/utils.ts').resolve()

    def test_relative_current_file_path(self, project):
        resolver = ImportResolver(project)

        assert resolver.resolve('src/app.tsx', './utils') == (project / 'src/utils.ts').resolve()

    def test_alias(self, project):
        resolver = ImportResolver(project, {'@app/*': ['src/*'], '@lib/*': ['lib/*']})

        assert resolver.resolve(project / 'src/app.tsx', '@app/legacy/helpers') == \
            (project / 'src/legacy/helpers.js').resolve()
        assert resolver.resolve(project / 'src/app.tsx', '@lib/shared') == (project / 'lib/shared.mjs').resolve()

    def test_project_root_fallback(self, project):
        resolver = ImportResolver(project)

        assert resolver.resolve(project / 'src/app.tsx', 'src/utils') == (project / 'src/utils.ts').resolve()

    @pytest.mark.parametrize('source', ['react', './missing', '', '@app/nope'])
    def test_unresolved(self, project, source):
        resolver = ImportResolver(project, {'@app/*': ['src/*']})

        assert resolver.resolve(project / 'src/app.tsx', source) is None


class TestTsconfig:
    """tsconfig.json path alias extraction."""

    def test_paths_with_comments_and_trailing_commas(self, tmp_path):
        (tmp_path / 'tsconfig.json').write_text("""
        {
          // editor settings
          "compilerOptions": {
            "baseUrl": "./src", /* everything lives in src */
            "paths": {
              "@ui/*": ["components/*"],
              "@/*": ["*", "generated/*"],
            },
          },
          "include": ["src/**/*"]
        }
        """, encoding='utf-8')

        assert load_path_aliases(tmp_path) == {
            '@ui/*': ['src/components/*'],
            '@/*': ['src/*', 'src/generated/*'],
        }

    def test_url_strings_survive_comment_stripping(self, tmp_path):
        (tmp_path / 'tsconfig.json').write_text(
            '{"compilerOptions": {"paths": {"x": ["http://example.com/*"]}}}', encoding='utf-8'
        )

        assert load_tsconfig(tmp_path / 'tsconfig.json')['compilerOptions']['paths']['x'] == \
            ['http://example.com/*']

    def test_missing_tsconfig(self, tmp_path):
        assert load_path_aliases(tmp_path) == {}

    def test_malformed_tsconfig(self, tmp_path):
        (tmp_path / 'tsconfig.json').write_text('{ not json', encoding='utf-8')

        assert load_tsconfig(tmp_path / 'tsconfig.json') is None
        assert load_path_aliases(tmp_path) == {}

    def test_nested_tsconfig_location(self, tmp_path):
        (tmp_path / 'web').mkdir()
        (tmp_path / 'web' / 'tsconfig.json').write_text(
            '{"compilerOptions": {"paths": {"@web/*": ["src/*"]}}}', encoding='utf-8'
        )

        assert load_path_aliases(tmp_path, 'web/tsconfig.json') == {'@web/*': ['web/src/*']}
