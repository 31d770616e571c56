"""tsconfig.json path-mapping reader.

Extracts ``compilerOptions.paths`` (resolved against ``baseUrl``) so that aliased import
sources such as ``@app/config`` can be resolved to project files.
"""

from pathlib import Path
from typing import Dict, List, Optional
import json
import logging
import posixpath
import re


logger = logging.getLogger(__name__)


def _strip_json_comments(content: str) -> str:
    """Remove // and /* */ comments outside of string literals."""
    pattern = re.compile(r'("(?:\\.|[^"\\])*")|//[^\n]*|/\*.*?\*/', re.DOTALL)
    return pattern.sub(lambda m: m.group(1) or '', content)


def _strip_trailing_commas(content: str) -> str:
    pattern = re.compile(r'("(?:\\.|[^"\\])*")|,(\s*[}\]])')
    return pattern.sub(lambda m: m.group(1) or m.group(2), content)


def load_tsconfig(tsconfig_path: Path) -> Optional[dict]:
    """Read a tsconfig file, tolerating comments and trailing commas.

    Args:
        tsconfig_path: Path to tsconfig.json

    Returns:
        Parsed JSON data, or None if missing or malformed
    """
    tsconfig_path = Path(tsconfig_path)
    if not tsconfig_path.is_file():
        return None

    try:
        with open(tsconfig_path, 'r', encoding='utf-8') as f:
            content = f.read()
        return json.loads(_strip_trailing_commas(_strip_json_comments(content)))
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
        logger.warning("Could not read %s: %s", tsconfig_path, e)
        return None


def load_path_aliases(project_root: Path, tsconfig_name: str = 'tsconfig.json') -> Dict[str, List[str]]:
    """Extract path aliases from a project's tsconfig.

    Patterns detected:
    - compilerOptions.paths: {"@utils/*": ["src/utils/*"]}
    - compilerOptions.baseUrl: "src" (targets are relative to it)

    Args:
        project_root: Root directory of the project
        tsconfig_name: tsconfig location relative to the project root

    Returns:
        Dict mapping alias patterns to target patterns relative to the project root
    """
    data = load_tsconfig(Path(project_root) / tsconfig_name)
    if not isinstance(data, dict):
        return {}

    compiler_options = data.get('compilerOptions') or {}
    paths = compiler_options.get('paths') or {}
    base_url = compiler_options.get('baseUrl') or '.'
    config_dir = posixpath.dirname(Path(tsconfig_name).as_posix())

    aliases = {}
    for alias, targets in paths.items():
        if not isinstance(targets, list):
            continue
        aliases[alias] = [
            posixpath.normpath(posixpath.join(config_dir, base_url, target))
            for target in targets
            if isinstance(target, str)
        ]
    return aliases
