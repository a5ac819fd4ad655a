"""
Prefab Kernel API — FastAPI endpoints.

Exposes a live world over REST for:
- Spawning UI prefabs from YAML/JSON documents
- World state inspection
- Asset request inspection
- Configuration
"""

from typing import Optional

from fastapi import FastAPI, HTTPException
from pydantic import BaseModel

from prefab_kernel.assets.server import AssetServer
from prefab_kernel.models.config import PrefabConfig, configure_logging
from prefab_kernel.models.world import Entity
from prefab_kernel.prefab.commands import Commands
from prefab_kernel.prefab.loader import SYNTAXES, PrefabFormatError
from prefab_kernel.prefab.spawner import PrefabEntity
from prefab_kernel.ui.callbacks import UiButtonCallbacks
from prefab_kernel.ui.format import UiFormat
from prefab_kernel.ui.widgets import RepeatWidget
from prefab_kernel.world_model.store import World


# --- Request/Response Models ---

class UiPrefabRequest(BaseModel):
    content: str
    syntax: str = "yaml"
    prepare: bool = True


class SpawnResponse(BaseModel):
    status: str
    prefab_id: str
    root: str
    nodes: int
    spawned: int


# --- Application Factory ---

def create_app(
    world: Optional[World] = None,
    config: Optional[PrefabConfig] = None,
) -> FastAPI:
    """Create and configure the FastAPI application."""

    app = FastAPI(
        title="Prefab Kernel API",
        description="Load declarative prefabs into a live entity world",
        version="0.1.0",
    )

    cfg = config or PrefabConfig()
    configure_logging(cfg)

    w = world or World()
    if w.get_resource(AssetServer) is None:
        w.insert_resource(AssetServer(cfg.asset_root))
    if w.get_resource(UiButtonCallbacks) is None:
        w.insert_resource(UiButtonCallbacks())

    commands = Commands(w, cfg)

    app.state.world = w
    app.state.commands = commands

    # === PREFABS ===

    @app.post("/prefabs/ui", response_model=SpawnResponse)
    def spawn_ui_prefab(req: UiPrefabRequest):
        """Load a UI prefab document and spawn it."""
        if req.syntax not in SYNTAXES:
            raise HTTPException(422, f"Unsupported syntax: {req.syntax}")

        fmt = UiFormat(custom_widget=RepeatWidget, syntax=req.syntax)
        try:
            prefab = fmt.load_from_bytes(req.content.encode())
        except PrefabFormatError as e:
            raise HTTPException(422, str(e))

        if req.prepare:
            root = commands.prepare_and_spawn_prefab(prefab)
        else:
            root = commands.spawn_prefab(prefab)
        commands.apply()

        spawned = [
            e for e in w.entities_with(PrefabEntity)
            if w.get(e, PrefabEntity).prefab_id == prefab.id
        ]
        return SpawnResponse(
            status="spawned" if spawned else "aborted",
            prefab_id=prefab.id,
            root=str(root),
            nodes=len(prefab),
            spawned=len(spawned),
        )

    # === WORLD STATE ===

    @app.get("/world/state")
    def get_world_state():
        """Current world snapshot."""
        return w.snapshot().model_dump(mode="json")

    @app.get("/world/entities/{entity_id}")
    def get_entity(entity_id: str):
        """One entity's components and hierarchy."""
        try:
            entity = Entity.parse(entity_id)
        except ValueError:
            raise HTTPException(404, "Entity not found")
        if not w.contains(entity):
            raise HTTPException(404, "Entity not found")
        return w.snapshot().entities[str(entity)].model_dump(mode="json")

    # === ASSETS ===

    @app.get("/assets")
    def list_assets():
        """All asset requests issued so far."""
        server = w.get_resource(AssetServer)
        return [
            {"handle": h.model_dump(mode="json"), "state": server.load_state(h).value}
            for h in server.handles()
        ]

    # === CONFIG ===

    @app.get("/config")
    def get_config():
        return commands.config.model_dump()

    @app.put("/config")
    def update_config(new_config: PrefabConfig):
        """Update spawning configuration."""
        commands.config = new_config
        configure_logging(new_config)
        return new_config.model_dump()

    return app


# Default application instance
app = create_app()
