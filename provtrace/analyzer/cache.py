"""Module graph cache for repeat scans.

Cache Strategy:
- Store the serialized ModuleGraph per file
- Use file mtime + size as cache key
- If file unchanged, skip parsing and graph collection

Cache Format: SQLite database
Location: <cache dir>/graphs.db in project root
"""

import json
import logging
import sqlite3
from pathlib import Path
from typing import Dict, Optional, Tuple

from .module_graph import ModuleGraph


logger = logging.getLogger(__name__)


class GraphCache:
    """Cache for per-file module graphs."""

    def __init__(self, project_root: Path, cache_dir: str = '.provtrace_cache'):
        """Initialize cache database.

        Args:
            project_root: Root directory of the project being analyzed
            cache_dir: Cache directory name relative to the project root
        """
        self.project_root = Path(project_root)
        self.cache_dir = self.project_root / cache_dir
        self.cache_file = self.cache_dir / 'graphs.db'

        self.cache_dir.mkdir(parents=True, exist_ok=True)

        self.conn = sqlite3.connect(str(self.cache_file))
        self._init_database()

    def _init_database(self):
        """Create cache tables if they don't exist."""
        cursor = self.conn.cursor()

        cursor.execute('''
            CREATE TABLE IF NOT EXISTS file_metadata (
                file_path TEXT PRIMARY KEY,
                mtime REAL NOT NULL,
                size INTEGER NOT NULL,
                cache_key TEXT NOT NULL
            )
        ''')

        cursor.execute('''
            CREATE TABLE IF NOT EXISTS module_graphs (
                file_path TEXT PRIMARY KEY,
                graph_data TEXT NOT NULL,
                cache_key TEXT NOT NULL,
                FOREIGN KEY (file_path) REFERENCES file_metadata(file_path)
            )
        ''')

        self.conn.commit()

    def _get_cache_key(self, file_path: Path) -> Optional[Tuple[float, int, str]]:
        """Generate cache key from file mtime and size.

        Args:
            file_path: Path to file

        Returns:
            Tuple of (mtime, size, key) or None if file doesn't exist
        """
        try:
            stat = Path(file_path).stat()
        except OSError:
            return None

        mtime = stat.st_mtime
        size = stat.st_size
        return (mtime, size, f"{mtime}:{size}")

    def is_file_cached(self, file_path: Path) -> bool:
        """Check if a file's cache entry is still valid (mtime + size unchanged)."""
        cache_key_data = self._get_cache_key(file_path)
        if not cache_key_data:
            return False

        mtime, size, _ = cache_key_data
        cursor = self.conn.cursor()
        cursor.execute('''
            SELECT mtime, size FROM file_metadata
            WHERE file_path = ?
        ''', (str(file_path),))

        result = cursor.fetchone()
        if not result:
            return False

        cached_mtime, cached_size = result
        return cached_mtime == mtime and cached_size == size

    def get_module_graph(self, file_path: Path) -> Optional[ModuleGraph]:
        """Get the cached module graph of a file.

        Args:
            file_path: Path to file

        Returns:
            ModuleGraph, or None if absent, stale or unreadable
        """
        if not self.is_file_cached(file_path):
            return None

        cursor = self.conn.cursor()
        cursor.execute('''
            SELECT graph_data FROM module_graphs
            WHERE file_path = ?
        ''', (str(file_path),))

        result = cursor.fetchone()
        if not result:
            return None

        try:
            return ModuleGraph.from_dict(json.loads(result[0]))
        except (json.JSONDecodeError, TypeError, AttributeError) as e:
            logger.debug("Discarding corrupt cache entry for %s: %s", file_path, e)
            return None

    def set_module_graph(self, file_path: Path, graph: ModuleGraph):
        """Cache the module graph of a file.

        Args:
            file_path: Path to file
            graph: Collected module graph
        """
        cache_key_data = self._get_cache_key(file_path)
        if not cache_key_data:
            return

        mtime, size, cache_key = cache_key_data

        cursor = self.conn.cursor()
        cursor.execute('''
            INSERT OR REPLACE INTO file_metadata (file_path, mtime, size, cache_key)
            VALUES (?, ?, ?, ?)
        ''', (str(file_path), mtime, size, cache_key))

        cursor.execute('''
            INSERT OR REPLACE INTO module_graphs (file_path, graph_data, cache_key)
            VALUES (?, ?, ?)
        ''', (str(file_path), json.dumps(graph.to_dict()), cache_key))

        self.conn.commit()

    def invalidate_file(self, file_path: Path):
        """Invalidate cache for a specific file."""
        cursor = self.conn.cursor()
        cursor.execute('DELETE FROM module_graphs WHERE file_path = ?', (str(file_path),))
        cursor.execute('DELETE FROM file_metadata WHERE file_path = ?', (str(file_path),))
        self.conn.commit()

    def clear_cache(self):
        """Clear all cached data."""
        cursor = self.conn.cursor()
        cursor.execute('DELETE FROM module_graphs')
        cursor.execute('DELETE FROM file_metadata')
        self.conn.commit()

    def get_cache_stats(self) -> Dict[str, int]:
        """Get cache statistics."""
        cursor = self.conn.cursor()
        cursor.execute('SELECT COUNT(*) FROM file_metadata')
        total_files = cursor.fetchone()[0]
        cursor.execute('SELECT COUNT(*) FROM module_graphs')
        graphs_cached = cursor.fetchone()[0]

        return {
            'total_files': total_files,
            'module_graphs_cached': graphs_cached,
        }

    def close(self):
        """Close database connection."""
        if self.conn:
            self.conn.close()
            self.conn = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
