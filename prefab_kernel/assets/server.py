"""
Asset Server — the resource-loading facility payloads resolve through.

``load`` issues a request and returns a handle immediately. Whether the data
behind the handle is available is tracked separately in ``LoadState`` and is
never awaited by prefab resolution.
"""

import logging
from pathlib import Path
from typing import Dict, List, Optional

from prefab_kernel.models.assets import AssetKind, Handle, LoadState

logger = logging.getLogger(__name__)


class AssetServer:
    """
    In-memory asset server. Requests are recorded, not performed; a host
    (or a test) drives them to LOADED / FAILED.
    """

    def __init__(self, asset_root: Optional[str] = None):
        self.asset_root = Path(asset_root) if asset_root else None
        self._by_path: Dict[str, Handle] = {}
        self._states: Dict[int, LoadState] = {}
        self._next_id = 1

    def load(self, path: str, kind: AssetKind = AssetKind.OTHER) -> Handle:
        """Request an asset. Loading the same path twice returns the same handle."""
        handle = self._by_path.get(path)
        if handle is not None:
            return handle

        handle = Handle(id=self._next_id, kind=kind, path=path)
        self._next_id += 1
        self._by_path[path] = handle
        self._states[handle.id] = LoadState.LOADING
        logger.debug("Requested %s asset %s as handle %d", kind.value, path, handle.id)
        return handle

    def resolve_path(self, handle: Handle) -> Optional[Path]:
        """Where the asset behind a handle is expected on disk."""
        if handle.path is None:
            return None
        if self.asset_root is None:
            return Path(handle.path)
        return self.asset_root / handle.path

    def load_state(self, handle: Handle) -> LoadState:
        if handle.is_default:
            return LoadState.LOADED
        return self._states.get(handle.id, LoadState.NOT_LOADED)

    def mark_loaded(self, handle: Handle) -> None:
        self._states[handle.id] = LoadState.LOADED

    def mark_failed(self, handle: Handle) -> None:
        logger.warning("Asset %s failed to load", handle.path)
        self._states[handle.id] = LoadState.FAILED

    def handles(self) -> List[Handle]:
        """All handles issued so far, in request order."""
        return sorted(self._by_path.values(), key=lambda h: h.id)
