from pathlib import Path
from typing import Optional, Dict, List


class ImportResolver:
    """
    Module specifier resolution for JS/TS projects.
    Resolves import sources to files on disk using bundler-style lookup rules.
    """

    EXTENSIONS = ['.ts', '.tsx', '.d.ts', '.js', '.jsx', '.mjs', '.cjs', '.json']

    def __init__(self, project_root: Path, ts_aliases: Dict[str, List[str]] = None):
        self.root = Path(project_root).resolve()
        # Normalize tsconfig paths: {"@app/*": ["src/*"]} -> {"@app": "src"}
        self.ts_aliases = {}
        if ts_aliases:
            for alias, targets in ts_aliases.items():
                clean_alias = alias.replace("/*", "")
                # First target wins
                if targets:
                    clean_target = targets[0].replace("/*", "")
                    self.ts_aliases[clean_alias] = clean_target

    def resolve(self, current_file: Path, source: str) -> Optional[Path]:
        """
        Determines the file an import source refers to.

        Args:
            current_file: The file containing the import.
            source: The module specifier (e.g., './utils', '@app/config').

        Returns:
            Resolved absolute path, or None for packages and missing files.
        """
        if not source:
            return None

        current_file = Path(current_file)
        if not current_file.is_absolute():
            current_file = self.root / current_file

        # 1. Relative imports
        if source.startswith('.'):
            candidate = (current_file.parent / source).resolve()
            return self._probe(candidate)

        # 2. Path aliases (tsconfig), longest alias first
        for alias in sorted(self.ts_aliases, key=len, reverse=True):
            if source == alias or source.startswith(alias + '/'):
                remainder = source[len(alias):].lstrip('/')
                candidate = self.root / self.ts_aliases[alias] / remainder
                return self._probe(candidate)

        # 3. Project-root based specifiers (baseUrl style)
        candidate = self.root / source
        return self._probe(candidate)

    def _probe(self, path: Path) -> Optional[Path]:
        """
        Probes for file existence using JS resolution rules:
        1. Exact match
        2. Appended extensions
        3. Directory index files
        """
        if path.is_file():
            return path.resolve()

        for ext in self.EXTENSIONS:
            candidate = path.with_name(path.name + ext)
            if candidate.is_file():
                return candidate.resolve()

        if path.is_dir():
            for ext in self.EXTENSIONS:
                index_file = path / f"index{ext}"
                if index_file.is_file():
                    return index_file.resolve()

        return None
