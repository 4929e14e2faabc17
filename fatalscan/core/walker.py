from __future__ import annotations
import logging
from pathlib import Path
from typing import Iterable, Iterator, List, Optional

DEFAULT_EXCLUDE_DIRS = [
    "node_modules", "vendor", ".git", ".svn", ".hg", "tests", "test", "__tests__", "spec",
    "docs", "documentation", "assets/js", "assets/css", "dist", "build", ".github", ".vscode",
    ".idea", "wp-fatal-tester", "fatalscan",
]

DEFAULT_EXCLUDE_FILES = [
    "composer.json", "composer.lock", "package.json", "package-lock.json", "yarn.lock",
    "webpack.config.js", "gulpfile.js", "gruntfile.js", ".gitignore", ".gitattributes",
    "README.md", "CHANGELOG.md", "LICENSE", "LICENSE.txt",
]

DEFAULT_MAX_FILE_SIZE = 5_000_000

logger = logging.getLogger(__name__)


class PluginFileWalker:
    """Lists the PHP sources of a plugin tree, skipping dependency, VCS and build directories."""

    def __init__(
        self,
        root: Path,
        exclude_dirs: Optional[Iterable[str]] = None,
        exclude_files: Optional[Iterable[str]] = None,
        extensions: Iterable[str] = (".php",),
        max_file_size: int = DEFAULT_MAX_FILE_SIZE,
    ) -> None:
        self.root = Path(root)
        dirs = list(DEFAULT_EXCLUDE_DIRS if exclude_dirs is None else exclude_dirs)
        # "assets/js" style entries match a run of path components
        self.exclude_dirs = {d for d in dirs if "/" not in d}
        self.exclude_dir_paths = [tuple(d.split("/")) for d in dirs if "/" in d]
        self.exclude_files = set(DEFAULT_EXCLUDE_FILES if exclude_files is None else exclude_files)
        self.extensions = {e.lower() for e in extensions}
        self.max_file_size = max_file_size

    def _excluded_dir(self, parts) -> bool:
        for i, part in enumerate(parts):
            if part.startswith(".") or part in self.exclude_dirs:
                return True
            for seq in self.exclude_dir_paths:
                if tuple(parts[i:i + len(seq)]) == seq:
                    return True
        return False

    def _iter_files(self) -> Iterator[Path]:
        for p in self.root.rglob("*"):
            if p.is_dir():
                continue
            rel = p.relative_to(self.root)
            if self._excluded_dir(rel.parts[:-1]):
                continue
            if p.name.startswith(".") or p.name in self.exclude_files:
                continue
            if p.suffix.lower() not in self.extensions:
                continue
            try:
                if p.stat().st_size > self.max_file_size:
                    logger.info("Skipping %s: larger than %d bytes", rel, self.max_file_size)
                    continue
            except OSError as exc:
                logger.warning("Unable to stat %s: %s", p, exc)
                continue
            yield p

    def files(self) -> List[Path]:
        if self.root.is_file():
            return [self.root] if self.root.suffix.lower() in self.extensions else []
        return sorted(self._iter_files())
