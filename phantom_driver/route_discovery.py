"""
Route Discovery

Searches a folder tree for saved route files and wraps each one in a
PhantomRoute. A bad file only costs that file: it is skipped and reported,
the rest of the tree is still loaded.
"""

import logging
import os
from dataclasses import dataclass, field
from typing import Dict, List

from .errors import PhantomRouteError
from .phantom_route import PhantomRoute
from .route_data import ROUTE_EXTENSION

logger = logging.getLogger(__name__)


@dataclass
class SkippedRouteFile:
    """A route file that discovery could not use."""
    path: str
    reason: str


@dataclass
class DiscoveryResult:
    """Routes found under a search root, keyed by canonical name."""
    root: str
    routes: Dict[str, PhantomRoute] = field(default_factory=dict)
    skipped: List[SkippedRouteFile] = field(default_factory=list)

    @property
    def found_any(self) -> bool:
        return bool(self.routes)


def has_route_extension(filename: str, extension: str = ROUTE_EXTENSION) -> bool:
    """True for e.g. 'napalm_left.route' or 'NAPALM_LEFT.ROUTE'."""
    _, dot, suffix = filename.rpartition(".")
    return bool(dot) and suffix.lower() == extension.lower()


def discover_routes(root: str, extension: str = ROUTE_EXTENSION) -> DiscoveryResult:
    """
    Recursively find every route file under root.

    Directories are walked depth-first in sorted order, so when two files
    produce the same route name the first one found is kept and the other is
    reported as a duplicate.

    Args:
        root: Folder to search. Should be as high up in the file system as possible
        extension: Route file extension without the dot, matched case-insensitively

    Returns:
        DiscoveryResult with the loaded routes and the skipped files
    """
    result = DiscoveryResult(root=os.path.abspath(root))
    if not os.path.isdir(root):
        logger.warning(f"Route search folder does not exist: {root}")
        return result

    _search_folder(result.root, extension, result)
    logger.info(f"Discovered {len(result.routes)} routes under {result.root}"
                + (f", skipped {len(result.skipped)} files" if result.skipped else ""))
    return result


def _search_folder(folder: str, extension: str, result: DiscoveryResult):
    try:
        entries = sorted(os.scandir(folder), key=lambda entry: entry.name)
    except OSError as e:
        logger.warning(f"Cannot list {folder}: {e}")
        return

    for entry in entries:
        # Symlinked folders are not followed, a link back up the tree would never end
        if entry.is_dir(follow_symlinks=False):
            _search_folder(entry.path, extension, result)
        elif entry.is_file() and has_route_extension(entry.name, extension):
            _load_route_file(entry.path, result)


def _load_route_file(path: str, result: DiscoveryResult):
    try:
        route = PhantomRoute.load(path)
    except PhantomRouteError as e:
        logger.error(f"Skipping route file {path}: {e}")
        result.skipped.append(SkippedRouteFile(path=path, reason=str(e)))
        return

    existing = result.routes.get(route.name)
    if existing is not None:
        reason = f"duplicate of route {route.name} already loaded from {existing.path}"
        logger.warning(f"Skipping route file {path}: {reason}")
        result.skipped.append(SkippedRouteFile(path=path, reason=reason))
        return

    result.routes[route.name] = route
