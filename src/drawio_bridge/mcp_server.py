"""Agent-facing MCP server.

Exposes every catalogue command as an MCP tool. Tool functions only collect
arguments; validation and the editor round-trip happen in DiagramTools.
"""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING, Any

from .commands import COMMANDS, DEFAULT_EDGE_STYLE, DEFAULT_VERTEX_STYLE
from .tools import DiagramTools

if TYPE_CHECKING:
    from fastmcp import FastMCP

logger = logging.getLogger(__name__)

SERVER_NAME = "drawio-bridge"


def _drop_none(**kwargs: Any) -> dict[str, Any]:
    return {k: v for k, v in kwargs.items() if v is not None}


def create_mcp_server(tools: DiagramTools) -> FastMCP:
    """Create a FastMCP server bound to the given command handlers."""
    from fastmcp import FastMCP

    mcp = FastMCP(SERVER_NAME)

    async def run(name: str, args: dict[str, Any]) -> str:
        result = await tools.call(name, args)
        return json.dumps(result)

    def register(name: str):
        return mcp.tool(name=name, description=COMMANDS[name].description)

    @register("get-selected-cell")
    async def get_selected_cell() -> str:
        return await run("get-selected-cell", {})

    @register("add-rectangle")
    async def add_rectangle(
        x: float = 100,
        y: float = 100,
        width: float = 200,
        height: float = 100,
        text: str = "New Cell",
        style: str = DEFAULT_VERTEX_STYLE,
    ) -> str:
        return await run(
            "add-rectangle",
            {"x": x, "y": y, "width": width, "height": height, "text": text, "style": style},
        )

    @register("add-edge")
    async def add_edge(
        source_id: str,
        target_id: str,
        text: str | None = None,
        style: str = DEFAULT_EDGE_STYLE,
    ) -> str:
        return await run(
            "add-edge",
            _drop_none(source_id=source_id, target_id=target_id, text=text, style=style),
        )

    @register("delete-cell-by-id")
    async def delete_cell_by_id(cell_id: str) -> str:
        return await run("delete-cell-by-id", {"cell_id": cell_id})

    @register("get-shape-categories")
    async def get_shape_categories() -> str:
        return await run("get-shape-categories", {})

    @register("get-shapes-in-category")
    async def get_shapes_in_category(category_id: str) -> str:
        return await run("get-shapes-in-category", {"category_id": category_id})

    @register("get-shape-by-name")
    async def get_shape_by_name(shape_name: str) -> str:
        return await run("get-shape-by-name", {"shape_name": shape_name})

    @register("add-cell-of-shape")
    async def add_cell_of_shape(
        shape_name: str,
        x: float = 100,
        y: float = 100,
        width: float = 200,
        height: float = 100,
        text: str | None = None,
        style: str | None = None,
    ) -> str:
        return await run(
            "add-cell-of-shape",
            _drop_none(
                shape_name=shape_name, x=x, y=y, width=width, height=height, text=text, style=style
            ),
        )

    @register("set-cell-shape")
    async def set_cell_shape(cell_id: str, shape_name: str) -> str:
        return await run("set-cell-shape", {"cell_id": cell_id, "shape_name": shape_name})

    @register("set-cell-data")
    async def set_cell_data(cell_id: str, key: str, value: str | int | float | bool) -> str:
        return await run("set-cell-data", {"cell_id": cell_id, "key": key, "value": value})

    @register("edit-cell")
    async def edit_cell(
        cell_id: str,
        text: str | None = None,
        x: float | None = None,
        y: float | None = None,
        width: float | None = None,
        height: float | None = None,
        style: str | None = None,
    ) -> str:
        return await run(
            "edit-cell",
            _drop_none(
                cell_id=cell_id, text=text, x=x, y=y, width=width, height=height, style=style
            ),
        )

    @register("edit-edge")
    async def edit_edge(
        cell_id: str,
        text: str | None = None,
        source_id: str | None = None,
        target_id: str | None = None,
        style: str | None = None,
    ) -> str:
        return await run(
            "edit-edge",
            _drop_none(
                cell_id=cell_id, text=text, source_id=source_id, target_id=target_id, style=style
            ),
        )

    @register("list-paged-model")
    async def list_paged_model(
        page: int = 0,
        page_size: int = 50,
        filter: dict[str, Any] | None = None,
    ) -> str:
        return await run(
            "list-paged-model", _drop_none(page=page, page_size=page_size, filter=filter)
        )

    logger.debug(f"Registered {len(COMMANDS)} MCP tools")
    return mcp
