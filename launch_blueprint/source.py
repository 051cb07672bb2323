"""
source.py

Responsibility: Stage the source repository into the generated workspace.

The clone lands in a durable storage directory first and is reused while it
exists there; the `.git` directory is removed right after cloning. The cached
tree is then copied into the destination repository path.
"""

from __future__ import annotations

import logging
import os
import shutil
import subprocess
from pathlib import Path

logger = logging.getLogger(__name__)

GIT_CLONE_TIMEOUT_SECONDS = 30


class SourceError(RuntimeError):
    pass


def _run(cmd: list[str], *, cwd: Path, timeout: float | None = None) -> None:
    """
    Run a subprocess command, raising a SourceError on failure or timeout.
    """
    logger.debug("Running %s in %s", " ".join(cmd), cwd)
    try:
        subprocess.run(
            cmd,
            cwd=str(cwd),
            check=True,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            text=True,
            timeout=timeout,
        )
    except subprocess.CalledProcessError as e:
        raise SourceError(f"Command failed: {' '.join(cmd)}\n\n{e.stdout}") from e
    except subprocess.TimeoutExpired as e:
        raise SourceError(f"Command timed out after {timeout}s: {' '.join(cmd)}") from e


def clone_command(source_repository: str, title: str, *, branch: str | None = None) -> list[str]:
    cmd = ["git", "clone", "--depth", "1"]
    if branch:
        cmd += ["--branch", branch]
    return cmd + [source_repository, title]


def copy_tree(source_dir: Path, destination_dir: Path) -> int:
    """
    Copy every file under source_dir into destination_dir, walking in sorted
    order. Existing destination files are overwritten. Returns the file count.
    """
    copied = 0
    for root, dirs, filenames in os.walk(source_dir):
        dirs.sort()
        root_path = Path(root)
        target_root = destination_dir / root_path.relative_to(source_dir)
        target_root.mkdir(parents=True, exist_ok=True)
        for name in sorted(filenames):
            shutil.copy2(root_path / name, target_root / name)
            copied += 1
    return copied


def stage_source(
    *,
    source_repository: str,
    title: str,
    durable_storage_path: str | Path,
    destination: str | Path,
    branch: str | None = None,
) -> Path:
    """
    Make sure `durable_storage_path/title` holds a clone of the source
    repository, then copy it to `destination`. Returns the destination path.
    """
    storage = Path(durable_storage_path).resolve()
    storage.mkdir(parents=True, exist_ok=True)
    cached = storage / title

    if cached.exists():
        logger.info("Reusing cached clone: %s", cached)
    else:
        logger.info("Cloning %s%s", source_repository, f" ({branch})" if branch else "")
        try:
            _run(clone_command(source_repository, title, branch=branch), cwd=storage, timeout=GIT_CLONE_TIMEOUT_SECONDS)
        except SourceError:
            # A killed or failed clone must not be picked up as a cached one.
            shutil.rmtree(cached, ignore_errors=True)
            raise
        if not cached.is_dir():
            raise SourceError(f"Clone did not produce a directory: {cached}")
        # .git is not part of the scaffolded sources.
        shutil.rmtree(cached / ".git", ignore_errors=True)

    dest = Path(destination).resolve()
    count = copy_tree(cached, dest)
    logger.info("Copied %d files into %s", count, dest)
    return dest
