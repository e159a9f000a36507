"""Load a project directory into an in-memory ProjectSnapshot."""

import logging
import re
from pathlib import Path

from codelore.models import EXTENSION_LANGUAGES, DependencyEdge, ProjectSnapshot, SourceFile
from codelore.source_utils import THIRD_PARTY_DIRS

logger = logging.getLogger(__name__)

SKIP_DIRS = frozenset({".git", ".svn", ".hg", "build", "__pycache__", ".idea", ".vscode", *THIRD_PARTY_DIRS})
MAX_FILE_BYTES = 1024 * 1024

SYSTEM_MODULES = frozenset({
    "Foundation", "UIKit", "SwiftUI", "Combine", "XCTest", "CoreData", "CoreGraphics", "CoreFoundation",
    "QuartzCore", "AVFoundation", "CoreLocation", "MapKit", "WebKit", "Photos", "UserNotifications",
    "Security", "os", "Darwin", "Dispatch", "ObjectiveC", "AppKit", "Cocoa", "StoreKit", "SafariServices",
})
_IMPORT_RES = (
    re.compile(r"^\s*(?:@testable\s+|@_exported\s+)?import\s+(\w+)", re.MULTILINE),
    re.compile(r"^\s*#import\s+<(\w+)/", re.MULTILINE),
    re.compile(r"^\s*@import\s+(\w+)", re.MULTILINE),
)


def _iter_source_paths(root: Path):
    for path in sorted(root.rglob("*")):
        rel_parts = path.relative_to(root).parts
        if any(part in SKIP_DIRS or part.startswith(".") for part in rel_parts[:-1]):
            continue
        if path.is_file() and path.suffix.lower() in EXTENSION_LANGUAGES:
            yield path


def _module_of(relative: str) -> str:
    parts = relative.split("/")
    if len(parts) >= 3 and parts[0] in ("Sources", "Tests"):
        return parts[1]
    return parts[0] if len(parts) > 1 else ""


def _dependency_edges(files: list[SourceFile], target_file_map: dict[str, list[str]]) -> list[DependencyEdge]:
    module_of_file = {p: t for t, paths in target_file_map.items() for p in paths}
    edges: dict[tuple[str, str], None] = {}
    for f in files:
        source = module_of_file.get(f.relative_path)
        if not source:
            continue
        for pattern in _IMPORT_RES:
            for name in pattern.findall(f.content):
                if name != source and name not in SYSTEM_MODULES:
                    edges.setdefault((source, name), None)
    return [DependencyEdge(source=s, target=t) for s, t in edges]


def load_snapshot(root: str | Path, name: str | None = None) -> ProjectSnapshot:
    """Read every source file under ``root`` (UTF-8 with replacement) into a snapshot.

    Modules are inferred from top-level directories, or ``Sources/<Target>``
    for Swift packages; dependency edges come from import statements.
    """
    root = Path(root).resolve()
    if not root.is_dir():
        raise NotADirectoryError(f"Not a directory: {root}")

    files: list[SourceFile] = []
    for path in _iter_source_paths(root):
        try:
            if path.stat().st_size > MAX_FILE_BYTES:
                logger.debug(f"Skipping large file {path}")
                continue
            content = path.read_bytes().decode("utf-8", errors="replace")
        except OSError as e:
            logger.debug(f"Skipping unreadable file {path}: {e}")
            continue
        files.append(SourceFile(path=str(path), relative_path=path.relative_to(root).as_posix(), content=content))

    target_file_map: dict[str, list[str]] = {}
    for f in files:
        module = _module_of(f.relative_path)
        if module:
            target_file_map.setdefault(module, []).append(f.relative_path)

    snapshot = ProjectSnapshot(
        name=name or root.name,
        files=files,
        target_file_map=target_file_map,
        dep_edges=_dependency_edges(files, target_file_map),
    )
    logger.info(
        f"Loaded {len(files)} files from {root} ({snapshot.primary_lang or 'unknown'} primary, "
        f"{len(target_file_map)} modules)"
    )
    return snapshot
