import os
import logging
from pathlib import Path
from typing import Iterable, Iterator

from .. import config


def is_supported(path: Path) -> bool:
    """True when the extension (case-insensitive) is on the import allow-list."""
    return Path(path).suffix.lstrip(".").lower() in config.ALLOWED_EXTS


class SourceScanner:
    """
    Expands the paths handed to an import into individual files.

    Files are passed through untouched (the import boundary decides whether
    they are accepted); directories are listed in stable, case-insensitive
    name order.
    """

    def expand(self, paths: Iterable[Path], recursive: bool = False) -> Iterator[Path]:
        for p in paths:
            p = Path(p)
            if p.is_dir():
                yield from self.iter_files(p, recursive)
            else:
                yield p

    def iter_files(self, root: Path, recursive: bool = False) -> Iterator[Path]:
        """Depth-first walker using os.scandir for speed."""
        stack = [root]
        while stack:
            current = stack.pop()

            try:
                with os.scandir(current) as it:
                    entries = list(it)
            except (OSError, PermissionError):
                logging.warning(f"Permission denied: {current}")
                continue

            # Sort for stable traversal order
            entries.sort(key=lambda e: e.name.lower())

            dirs = []
            files = []
            for e in entries:
                # macOS resource forks and dotfiles are never assets
                if e.name.startswith("."):
                    continue
                if e.is_dir(follow_symlinks=False):
                    dirs.append(Path(e.path))
                elif e.is_file(follow_symlinks=False):
                    files.append(Path(e.path))

            if recursive:
                # Push dirs to stack (reversed so we process A before Z)
                for d in reversed(dirs):
                    stack.append(d)

            for f in files:
                yield f
