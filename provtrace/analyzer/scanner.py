"""Project scanner: discovers source files and fills a module graph registry.

Cache-aware: unchanged files get their module graph from the SQLite cache and are not
parsed again.
"""
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, List, Optional, Set

from .analysis import analyze_file
from .cache import GraphCache
from .config_parser import load_path_aliases
from .registry import ModuleGraphRegistry
from .resolver import ImportResolver
from provtrace.config import Config, get_config


logger = logging.getLogger(__name__)


@dataclass
class ScanResult:
    """Outcome of one project scan."""
    registry: ModuleGraphRegistry
    files: List[str] = field(default_factory=list)
    cached: int = 0
    analyzed: int = 0
    skipped: List[str] = field(default_factory=list)


class ProjectScanner:
    """Build a fresh module graph registry for a project."""

    def __init__(self, project_root: str | Path = ".", config: Optional[Config] = None,
                 use_cache: Optional[bool] = None):
        """Initialize scanner.

        Args:
            project_root: Root directory of project to analyze
            config: Configuration (defaults to the global config)
            use_cache: Override config.use_cache
        """
        self.project_root = Path(project_root).resolve()
        self.config = config or get_config()
        self.use_cache = self.config.use_cache if use_cache is None else use_cache

    def discover_files(self) -> List[Path]:
        """Discover all source files matching the configured patterns.

        Returns:
            Sorted list of files outside excluded directories
        """
        files: Set[Path] = set()
        for pattern in self.config.file_patterns:
            files.update(self.project_root.glob(pattern))

        excluded_dirs = self.config.excluded_dirs
        filtered_files = []
        for file_path in files:
            relative_parts = file_path.relative_to(self.project_root).parts
            if not any(part in excluded_dirs for part in relative_parts[:-1]) and file_path.is_file():
                filtered_files.append(file_path)

        return sorted(filtered_files)

    def display_path(self, file_path: Path) -> str:
        return file_path.relative_to(self.project_root).as_posix()

    def resolver(self) -> ImportResolver:
        aliases = load_path_aliases(self.project_root, self.config.tsconfig_path)
        return ImportResolver(self.project_root, aliases)

    def scan(self, registry: Optional[ModuleGraphRegistry] = None,
             on_file: Optional[Callable[[Path], None]] = None) -> ScanResult:
        """Analyze every discovered file.

        Args:
            registry: Registry to fill; it is reset first. A new one is created if omitted.
            on_file: Progress callback invoked after each file

        Returns:
            ScanResult with the filled registry
        """
        if registry is None:
            registry = ModuleGraphRegistry()
        registry.reset()
        result = ScanResult(registry=registry)

        cache = GraphCache(self.project_root, self.config.cache_dir) if self.use_cache else None
        try:
            for file_path in self.discover_files():
                self._process_file(file_path, result, cache)
                if on_file is not None:
                    on_file(file_path)
        finally:
            if cache is not None:
                cache.close()

        logger.info(
            "Scanned %d files (%d cached, %d analyzed, %d skipped)",
            len(result.files), result.cached, result.analyzed, len(result.skipped),
        )
        return result

    def _process_file(self, file_path: Path, result: ScanResult, cache: Optional[GraphCache]):
        """Register the module graph of one file, from cache when possible."""
        display_path = self.display_path(file_path)

        # 1. FAST PATH: unchanged file
        if cache is not None:
            cached_graph = cache.get_module_graph(file_path)
            if cached_graph is not None:
                result.registry.put(display_path, cached_graph)
                result.files.append(display_path)
                result.cached += 1
                return

        # 2. SLOW PATH: parse and collect the module graph only
        analysis = analyze_file(file_path, registry=result.registry, display_path=display_path,
                                with_elements=False)
        if analysis is None:
            result.skipped.append(display_path)
            return

        result.files.append(display_path)
        result.analyzed += 1

        # 3. Update cache
        if cache is not None:
            cache.set_module_graph(file_path, analysis.graph)
