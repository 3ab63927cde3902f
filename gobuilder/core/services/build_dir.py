"""
Build directory bookkeeping — create it once and keep it out of git.

Rules:
    - missing            → create it, append ``<dir>/`` to .gitignore
    - exists, ignored    → use as is
    - exists, not ignored → refuse: it may hold files someone cares about
"""

from __future__ import annotations

import logging
from pathlib import Path

from gobuilder.core.errors import PreconditionError

logger = logging.getLogger(__name__)

GITIGNORE = ".gitignore"


def _normalize(entry: str) -> str:
    entry = entry.strip()
    if entry.startswith("./"):
        entry = entry[2:]
    return entry.strip("/")


def is_ignored(build_dir: str, project_root: Path) -> bool:
    """Whether .gitignore lists ``build_dir`` (with or without slashes)."""
    gitignore = project_root / GITIGNORE
    if not gitignore.is_file():
        return False
    wanted = _normalize(build_dir)
    try:
        lines = gitignore.read_text(encoding="utf-8").splitlines()
    except OSError as e:
        raise PreconditionError(f"Cannot read {gitignore}: {e}") from e
    return any(_normalize(line) == wanted for line in lines if not line.lstrip().startswith("#"))


def register_ignored(build_dir: str, project_root: Path) -> None:
    """Append ``<build_dir>/`` to .gitignore unless already listed."""
    if is_ignored(build_dir, project_root):
        return
    gitignore = project_root / GITIGNORE
    prefix = ""
    if gitignore.is_file():
        existing = gitignore.read_text(encoding="utf-8")
        if existing and not existing.endswith("\n"):
            prefix = "\n"
    with gitignore.open("a", encoding="utf-8") as fh:
        fh.write(f"{prefix}{_normalize(build_dir)}/\n")
    logger.info("Added %s/ to %s", _normalize(build_dir), gitignore)


def ensure_build_dir(build_dir: str, project_root: Path, create: bool = True) -> Path:
    """Validate (and unless ``create`` is False, set up) the build directory.

    Returns:
        Absolute path of the build directory.

    Raises:
        PreconditionError: If the directory exists but is not ignored,
            or cannot be created.
    """
    path = Path(build_dir)
    if not path.is_absolute():
        path = project_root / path
    elif not path.is_relative_to(project_root):
        # outside the repository: nothing to keep out of git
        if create:
            try:
                path.mkdir(parents=True, exist_ok=True)
            except OSError as e:
                raise PreconditionError(f"Cannot create build directory {build_dir}: {e}") from e
        return path
    else:
        build_dir = path.relative_to(project_root).as_posix()

    if path.exists():
        if not path.is_dir():
            raise PreconditionError(f"{build_dir} exists and is not a directory")
        if not is_ignored(build_dir, project_root):
            raise PreconditionError(
                f"Directory {build_dir} exists but is not in {GITIGNORE}; "
                "add it there or choose another build_dir"
            )
        return path

    if not create:
        logger.debug("Build directory %s would be created", build_dir)
        return path

    try:
        path.mkdir(parents=True, exist_ok=True)
        register_ignored(build_dir, project_root)
    except OSError as e:
        raise PreconditionError(f"Cannot create build directory {build_dir}: {e}") from e

    logger.info("Created build directory %s", path)
    return path
