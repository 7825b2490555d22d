"""File collection with glob matching for step context."""

import glob
import logging
from pathlib import Path
from typing import Dict, Iterable, List, Optional

logger = logging.getLogger(__name__)

# Build and version-control directories never included in context
DEFAULT_IGNORE = ('node_modules', 'dist', 'build', '.git', '__pycache__', '.venv')


class FileCollector:
    """Matches glob patterns against the workspace and reads file contents."""

    def __init__(self, workspace: Optional[Path] = None, ignore: Iterable[str] = DEFAULT_IGNORE):
        """Initialize collector with workspace root.

        Args:
            workspace: Directory patterns are resolved against (default: cwd)
            ignore: Directory names excluded from matches
        """
        self.workspace = Path(workspace).resolve() if workspace else Path.cwd().resolve()
        self.ignore = tuple(ignore)

    def match(self, pattern: str, ignore: Optional[Iterable[str]] = None) -> List[str]:
        """Expand a glob pattern to file paths.

        Relative patterns resolve against the workspace and yield workspace
        relative paths; '**' matches across directories.

        Args:
            pattern: Glob pattern
            ignore: Directory names to exclude (default: collector's list)

        Returns:
            Matched file paths in lexicographic order
        """
        ignored = set(self.ignore if ignore is None else ignore)
        is_absolute = Path(pattern).is_absolute()
        full_pattern = pattern if is_absolute else str(self.workspace / pattern)

        matches = []
        for match in glob.glob(full_pattern, recursive=True):
            match_path = Path(match)
            if not match_path.is_file():
                continue

            if is_absolute:
                label = match_path
            else:
                try:
                    label = match_path.relative_to(self.workspace)
                except ValueError:
                    label = match_path

            if ignored.intersection(label.parts[:-1]):
                continue
            matches.append(label.as_posix())

        return sorted(matches)

    def read(self, path: str) -> str:
        """Read a matched file's full text.

        Raises:
            OSError: If the file cannot be read
            UnicodeDecodeError: If the file is not UTF-8 text
        """
        file_path = Path(path)
        if not file_path.is_absolute():
            file_path = self.workspace / file_path
        return file_path.read_text(encoding='utf-8')

    def collect(self, patterns: List[str]) -> Dict[str, str]:
        """Read every file matched by the patterns.

        Files matched by several patterns appear once, at their first match.
        Unreadable files and failing patterns are skipped with a warning.

        Args:
            patterns: Resolved glob patterns

        Returns:
            Mapping of path to content in match order
        """
        contents: Dict[str, str] = {}

        for pattern in patterns:
            try:
                paths = self.match(pattern)
            except (OSError, ValueError) as e:
                logger.warning(f"Could not expand file pattern '{pattern}': {e}")
                continue

            if not paths:
                logger.debug(f"No files matched pattern: {pattern}")

            for path in paths:
                if path in contents:
                    continue
                try:
                    contents[path] = self.read(path)
                except (OSError, UnicodeDecodeError) as e:
                    logger.warning(f"Could not read file {path}: {e}")

        return contents

    @staticmethod
    def format_for_context(contents: Dict[str, str]) -> str:
        """Render file contents as labelled blocks."""
        sections = []
        for path, content in contents.items():
            sections.append(f"--- {path} ---\n{content}\n")
        return "\n".join(sections)
