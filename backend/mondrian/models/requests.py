"""API request models."""

from __future__ import annotations

import math

from pydantic import BaseModel, Field, model_validator

from mondrian.engine.classifier import weight_from_outputs
from mondrian.engine.pipeline import Item


class TxOutput(BaseModel):
    value: float | None = Field(default=None, allow_inf_nan=False, description="Output value (satoshis)")


class ItemIn(BaseModel):
    id: str = Field(..., description="Stable item identifier (e.g. txid)")
    raw_weight: float | None = Field(
        default=None, ge=0, allow_inf_nan=False, description="Item weight; wins over outputs",
    )
    outputs: list[TxOutput] | None = Field(
        default=None,
        description="Transaction outputs; weight is their summed value when raw_weight is absent",
    )

    @model_validator(mode="after")
    def _outputs_sum_is_finite(self) -> ItemIn:
        if self.raw_weight is None and self.outputs:
            total = weight_from_outputs([o.model_dump() for o in self.outputs])
            if not math.isfinite(total):
                raise ValueError(f"summed output value of item {self.id!r} overflows")
        return self

    def to_item(self) -> Item:
        if self.raw_weight is not None:
            return Item(self.id, self.raw_weight)
        return Item.from_outputs(self.id, [o.model_dump() for o in self.outputs or []])


class LayoutRequest(BaseModel):
    items: list[ItemIn] = Field(default_factory=list, description="Items in placement order")
    max_tier: int | None = Field(default=None, ge=1, description="Optional size tier cap")

    def to_items(self) -> list[Item]:
        return [item.to_item() for item in self.items]


class VisualizeRequest(LayoutRequest):
    dataset_id: str = Field(..., description="Identity of the dataset, e.g. block height")


class ReconstructRequest(BaseModel):
    dataset_id: str = Field(..., description="Identity of the dataset the image was rendered from")
    item_count: int = Field(..., ge=0, description="Number of items in the dataset")
    image: str = Field(..., description="PNG as base64 or data:image/png;base64 URL")
