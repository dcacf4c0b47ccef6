"""
Finding the test files to run.

In strict mode every ``t*.nim`` file below the test directory is a test. When
a project has no test directory, a loose search of the project root picks up
``.nim``/``.nims`` files and, when one of them is named after the project,
narrows the result to that single file.
"""

from __future__ import annotations

import re
from pathlib import Path

from loguru import logger

from gridrunner.datastructures.type_aliases import ProjectName, TestPath

NIM_EXTENSIONS: tuple[str, ...] = (".nim", ".nims")

_INVALID_CHARS = re.compile(r"[^A-Za-z0-9_]")
_REPEATED_UNDERSCORES = re.compile(r"_+")


def sanitize_identifier(name: str, *, caps_okay: bool = True) -> str | None:
    """Coerce ``name`` into a valid identifier, or None if nothing is left."""
    text = _INVALID_CHARS.sub("", name)
    text = _REPEATED_UNDERSCORES.sub("_", text)
    text = text.lstrip("_0123456789").rstrip("_")
    if not text:
        return None
    if not caps_okay:
        text = text.lower()
    return text


def matching(among: list[TestPath], project: ProjectName) -> list[TestPath]:
    """Files from ``among`` whose import name equals the project's."""
    wanted = sanitize_identifier(project)
    if wanted is None:
        return []
    found: list[TestPath] = []
    for file in among:
        name = sanitize_identifier(Path(file).stem)
        if name is not None and name == wanted:
            found.append(file)
    return found


def _by_age(paths: list[TestPath]) -> list[TestPath]:
    """Most recently changed first; files that vanished since the walk are dropped."""
    stamped: list[tuple[float, TestPath]] = []
    for path in paths:
        try:
            mtime = Path(path).stat().st_mtime
        except OSError as e:
            logger.debug("Skipping {}: {}", path, e)
            continue
        stamped.append((mtime, path))
    stamped.sort(key=lambda entry: entry[0], reverse=True)
    return [path for _, path in stamped]


def _strict_search(directory: Path) -> list[TestPath]:
    return [
        str(path)
        for path in directory.rglob("t*.nim")
        if path.is_file() and path.name.endswith(".nim")
    ]


def _loose_search(directory: Path, project: ProjectName) -> list[TestPath]:
    result = [
        str(path)
        for path in directory.iterdir()
        if path.is_file() and path.suffix in NIM_EXTENSIONS
    ]

    project_matches = sorted(matching(result, project))
    for extension in NIM_EXTENSIONS:
        files = [file for file in result if Path(file).suffix == extension]
        if not files:
            continue
        matches = sorted(matching(files, project))
        if len(matches) == 1:
            pass
        elif matches and matches == project_matches:
            pass
        else:
            continue
        # a single file named for the project is the best thing to run
        return [matches[0]]
    return result


def ordered(
    directory: str | Path,
    tests_only: bool = True,
    *,
    project: ProjectName | None = None,
) -> list[TestPath]:
    """Test files under ``directory``, most recently changed first.

    With ``tests_only`` the search is recursive and only ``t*.nim`` files
    count; otherwise it is flat, accepts ``.nims`` too, and prefers a single
    file named after ``project`` (the current directory's name by default).
    """
    root = Path(directory)
    if not root.is_dir():
        return []
    if tests_only:
        found = _strict_search(root)
    else:
        found = _loose_search(root, project if project is not None else Path.cwd().name)
    return _by_age(found)


def discover_tests(
    directory: str | Path, *, fallback: str | Path | None = None
) -> list[TestPath]:
    """Tests in ``directory``, or the best candidates in ``fallback``.

    ``fallback`` defaults to the current directory.
    """
    tests = ordered(directory)
    if tests:
        return tests
    loose_root = Path(fallback) if fallback is not None else Path.cwd()
    logger.info("No tests found in {}; searching {}", directory, loose_root)
    return ordered(loose_root, tests_only=False, project=loose_root.resolve().name)
