"""Diagram command catalogue.

Each command the editor understands is described by a name, a description
and a pydantic model for its arguments. Arguments are validated here, at
the handler boundary, before anything is broadcast.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

DEFAULT_VERTEX_STYLE = "whiteSpace=wrap;html=1;fillColor=#dae8fc;strokeColor=#6c8ebf;"
DEFAULT_EDGE_STYLE = (
    "edgeStyle=orthogonalEdgeStyle;rounded=0;orthogonalLoop=1;jettySize=auto;html=1;"
)


class CommandArgs(BaseModel):
    """Base for command argument models."""

    model_config = ConfigDict(extra="forbid")

    def to_payload(self) -> dict[str, Any]:
        """Arguments as sent to the editor, without unset optionals."""
        return self.model_dump(exclude_none=True)


class NoArgs(CommandArgs):
    pass


class AddRectangleArgs(CommandArgs):
    x: float = Field(100, description="X-axis position")
    y: float = Field(100, description="Y-axis position")
    width: float = Field(200, description="Width")
    height: float = Field(100, description="Height")
    text: str = Field("New Cell", description="Text content")
    style: str = Field(DEFAULT_VERTEX_STYLE, description="Draw.io visual styles")


class AddEdgeArgs(CommandArgs):
    source_id: str = Field(description="Source cell ID")
    target_id: str = Field(description="Target cell ID")
    text: str | None = Field(None, description="Text content")
    style: str = Field(DEFAULT_EDGE_STYLE, description="Edge visual styles")


class CellIdArgs(CommandArgs):
    cell_id: str = Field(description="Cell ID")


class CategoryArgs(CommandArgs):
    category_id: str = Field(description="Category ID")


class ShapeNameArgs(CommandArgs):
    shape_name: str = Field(description="Shape name")


class AddCellOfShapeArgs(CommandArgs):
    shape_name: str = Field(description="Shape name")
    x: float = Field(100, description="X-axis position")
    y: float = Field(100, description="Y-axis position")
    width: float = Field(200, description="Width")
    height: float = Field(100, description="Height")
    text: str | None = Field(None, description="Text content")
    style: str | None = Field(None, description="Additional styles")


class SetCellShapeArgs(CommandArgs):
    cell_id: str = Field(description="Cell ID")
    shape_name: str = Field(description="Shape name")


class SetCellDataArgs(CommandArgs):
    cell_id: str = Field(description="Cell ID")
    key: str = Field(description="Attribute name")
    value: str | int | float | bool = Field(description="Attribute value")


class EditCellArgs(CommandArgs):
    cell_id: str = Field(description="Cell ID")
    text: str | None = Field(None, description="Text content")
    x: float | None = Field(None, description="X position")
    y: float | None = Field(None, description="Y position")
    width: float | None = Field(None, description="Width")
    height: float | None = Field(None, description="Height")
    style: str | None = Field(None, description="Style string")


class EditEdgeArgs(CommandArgs):
    cell_id: str = Field(description="Edge cell ID")
    text: str | None = Field(None, description="Label text")
    source_id: str | None = Field(None, description="New source ID")
    target_id: str | None = Field(None, description="New target ID")
    style: str | None = Field(None, description="Style string")


class CellType(str, Enum):
    EDGE = "edge"
    VERTEX = "vertex"
    OBJECT = "object"
    LAYER = "layer"
    GROUP = "group"


class ModelFilter(CommandArgs):
    cell_type: CellType | None = None
    attributes: list[Any] | None = None


class ListPagedModelArgs(CommandArgs):
    page: int = Field(0, ge=0, description="Page number")
    page_size: int = Field(50, ge=1, description="Page size")
    filter: ModelFilter | None = Field(None, description="Filter criteria")

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(mode="json", exclude_none=True)


@dataclass(frozen=True)
class CommandSpec:
    """One command the editor can execute."""

    name: str
    description: str
    args: type[CommandArgs]


COMMANDS: dict[str, CommandSpec] = {
    spec.name: spec
    for spec in [
        CommandSpec(
            "get-selected-cell",
            "Retrieve selected cell (vertex or edge) on the current page of a Draw.io diagram",
            NoArgs,
        ),
        CommandSpec(
            "add-rectangle",
            "Add new Rectangle vertex cell on the current page of a Draw.io diagram",
            AddRectangleArgs,
        ),
        CommandSpec(
            "add-edge", "Create an edge (relation) between two vertexes (cells)", AddEdgeArgs
        ),
        CommandSpec("delete-cell-by-id", "Delete a cell (vertex or edge) by ID", CellIdArgs),
        CommandSpec(
            "get-shape-categories",
            "Retrieve available shape categories from the diagram's library",
            NoArgs,
        ),
        CommandSpec(
            "get-shapes-in-category",
            "Retrieve all shapes in a category from the diagram's library",
            CategoryArgs,
        ),
        CommandSpec("get-shape-by-name", "Retrieve a specific shape by its name", ShapeNameArgs),
        CommandSpec("add-cell-of-shape", "Add new vertex cell by shape name", AddCellOfShapeArgs),
        CommandSpec(
            "set-cell-shape",
            "Update visual style of existing vertex cell to match a library shape",
            SetCellShapeArgs,
        ),
        CommandSpec(
            "set-cell-data", "Set or update custom attribute on existing cell", SetCellDataArgs
        ),
        CommandSpec("edit-cell", "Update properties of existing vertex/shape cell", EditCellArgs),
        CommandSpec("edit-edge", "Update properties of existing edge", EditEdgeArgs),
        CommandSpec(
            "list-paged-model",
            "Retrieve paginated view of all cells in the diagram",
            ListPagedModelArgs,
        ),
    ]
}
