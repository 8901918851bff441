"""
Atomic output writer.

Every output tree is written to a temporary directory next to its
destination. Only when all trees are complete are the destinations
swapped in. If staging or any swap fails, the swaps already made are
undone, the temporaries are removed and existing output is left as it was.
"""

from __future__ import annotations

import logging
import os
import shutil
import tempfile
from pathlib import Path
from typing import Optional

from ..config import ConfigError
from .base import GeneratedFile

logger = logging.getLogger("sdlgen.emit")


def _is_within(path: Path, other: Path) -> bool:
    try:
        path.relative_to(other)
    except ValueError:
        return False
    return True


class OutputWriter:
    """
    Commit generated trees to disk.

    Example:
        >>> writer = OutputWriter()
        >>> writer.commit({Path("out/generated"): files})
    """

    def commit(self, trees: dict[Path, list[GeneratedFile]]) -> list[Path]:
        """
        Write every tree, replacing the previous contents of each destination.

        Args:
            trees: Destination directory -> files relative to it

        Returns:
            Paths of all written files

        Raises:
            ConfigError: If one destination lies inside another
            OSError: If writing fails (nothing is committed)
        """
        dests = sorted((Path(d).resolve() for d in trees), key=lambda p: p.as_posix())
        for a in dests:
            for b in dests:
                if a != b and _is_within(a, b):
                    raise ConfigError(f"output directory {a} is inside {b}")

        staged: list[tuple[Path, Path]] = []
        try:
            for dest, files in sorted(trees.items(), key=lambda kv: Path(kv[0]).as_posix()):
                dest = Path(dest).resolve()
                staged.append((dest, self._stage(dest, files)))
        except BaseException:
            for _, tmp in staged:
                shutil.rmtree(tmp, ignore_errors=True)
            raise

        # dest -> backup of its previous contents (None if it didn't exist)
        swapped: list[tuple[Path, Optional[Path]]] = []
        try:
            for dest, tmp in staged:
                swapped.append((dest, self._swap(dest, tmp)))
        except BaseException:
            self._rollback(swapped)
            for _, tmp in staged[len(swapped):]:
                shutil.rmtree(tmp, ignore_errors=True)
            raise

        written = []
        for dest, backup in swapped:
            if backup is not None:
                shutil.rmtree(backup)
            written.extend(sorted(p for p in dest.rglob("*") if p.is_file()))
            logger.debug(f"Committed {dest}")
        return written

    def _stage(self, dest: Path, files: list[GeneratedFile]) -> Path:
        dest.parent.mkdir(parents=True, exist_ok=True)
        tmp = Path(tempfile.mkdtemp(prefix=f".{dest.name}.", suffix=".tmp", dir=dest.parent))
        try:
            for f in files:
                target = tmp / f.path
                target.parent.mkdir(parents=True, exist_ok=True)
                with open(target, "w", encoding="utf-8", newline="\n") as fh:
                    fh.write(f.content)
        except BaseException:
            shutil.rmtree(tmp, ignore_errors=True)
            raise
        return tmp

    @staticmethod
    def _swap(dest: Path, tmp: Path) -> Optional[Path]:
        """
        Move ``tmp`` into place at ``dest``.

        Returns the backup holding the previous ``dest``, or None if there
        was none. If the rename fails ``dest`` is restored and ``tmp``
        removed.
        """
        backup = None
        if dest.exists():
            backup = Path(tempfile.mkdtemp(prefix=f".{dest.name}.", suffix=".old", dir=dest.parent))
            backup.rmdir()
            os.replace(dest, backup)
        try:
            os.replace(tmp, dest)
        except BaseException:
            if backup is not None:
                os.replace(backup, dest)
            shutil.rmtree(tmp, ignore_errors=True)
            raise
        return backup

    @staticmethod
    def _rollback(swapped: list[tuple[Path, Optional[Path]]]) -> None:
        """Undo completed swaps, newest first."""
        for dest, backup in reversed(swapped):
            shutil.rmtree(dest)
            if backup is not None:
                os.replace(backup, dest)
            logger.debug(f"Rolled back {dest}")
