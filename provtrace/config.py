"""Configuration management for provtrace.

Loads environment variables and provides centralized config access.
"""
import os
from pathlib import Path
from typing import Optional
from dotenv import load_dotenv

__version__ = "0.3.0"


DEFAULT_EXCLUDED_DIRS = {
    'node_modules', 'bower_components', 'jspm_packages',
    'dist', 'build', 'out', 'coverage',
    '.next', '.nuxt', '.svelte-kit', '.turbo', '.cache',
    '.git', '.provtrace_cache',
}

DEFAULT_FILE_PATTERNS = [
    '**/*.js', '**/*.jsx', '**/*.mjs', '**/*.cjs',
    '**/*.ts', '**/*.tsx', '**/*.mts', '**/*.cts',
]

TRUE_VALUES = {'1', 'true', 'yes', 'on'}
FALSE_VALUES = {'0', 'false', 'no', 'off'}


class Config:
    """Configuration loader with environment variable support."""

    def __init__(self, env_path: Optional[Path] = None):
        """Initialize config by loading a .env file.

        Args:
            env_path: .env location; defaults to the current working directory
        """
        if env_path is None:
            env_path = Path.cwd() / ".env"
        # Real environment variables take precedence over .env entries
        load_dotenv(env_path)

    @property
    def cache_dir(self) -> str:
        """Get cache directory name (relative to the scanned project).

        Returns:
            Cache directory name
        """
        return os.getenv("PROVTRACE_CACHE_DIR", ".provtrace_cache")

    @property
    def excluded_dirs(self) -> set[str]:
        """Get directory names skipped during file discovery.

        Priority:
        1. Defaults (node_modules, dist, .git, ...)
        2. Plus comma separated names from PROVTRACE_EXCLUDED_DIRS

        Returns:
            Set of directory names
        """
        excluded = set(DEFAULT_EXCLUDED_DIRS)
        excluded.add(self.cache_dir)
        extra = os.getenv("PROVTRACE_EXCLUDED_DIRS", "")
        excluded.update(name.strip() for name in extra.split(",") if name.strip())
        return excluded

    @property
    def file_patterns(self) -> list[str]:
        return list(DEFAULT_FILE_PATTERNS)

    @property
    def use_cache(self) -> bool:
        """Whether scans reuse cached module graphs.

        Raises:
            ValueError: If PROVTRACE_USE_CACHE is not a boolean value
        """
        raw = os.getenv("PROVTRACE_USE_CACHE", "true").strip().lower()
        if raw in TRUE_VALUES:
            return True
        if raw in FALSE_VALUES:
            return False
        raise ValueError(
            f"PROVTRACE_USE_CACHE must be a boolean value, got {raw!r}"
        )

    @property
    def tsconfig_path(self) -> str:
        """Get tsconfig location relative to the scanned project.

        Returns:
            Relative tsconfig path
        """
        return os.getenv("PROVTRACE_TSCONFIG", "tsconfig.json")


# Singleton instance
_config = None


def get_config() -> Config:
    """Get or create singleton Config instance.

    Returns:
        Config instance
    """
    global _config
    if _config is None:
        _config = Config()
    return _config


def reset_config():
    """Drop the singleton so the next get_config() re-reads the environment."""
    global _config
    _config = None
