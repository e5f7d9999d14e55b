"""Order and inventory models.

Orders arrive as Shopify webhook payloads; only the fields the updater acts
on are modelled, everything else in the payload is ignored.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator


class LifecycleEvent(str, Enum):
    """Order lifecycle events the updater reacts to."""

    ORDER_CREATED = "order-created"
    ORDER_CANCELLED = "order-cancelled"
    ORDER_FULFILLED = "order-fulfilled"


class LineItem(BaseModel):
    model_config = ConfigDict(extra="ignore")

    # Custom line items have no variant
    variant_id: int | str | None = None
    quantity: int = Field(gt=0)
    title: str | None = None


class Order(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: int | str
    name: str | None = None
    order_number: int | str | None = None
    line_items: list[LineItem] = Field(default_factory=list)

    @property
    def key(self) -> str:
        """Identifier used for tracking (always a string)."""
        return str(self.id)

    @property
    def label(self) -> str:
        return str(self.order_number or self.name or self.id)


class TestLineItem(BaseModel):
    __test__ = False

    model_config = ConfigDict(extra="ignore")

    variant_id: int | str
    quantity: int = Field(gt=0)


class TestOrderRequest(BaseModel):
    """Body of the manual test endpoint."""

    __test__ = False

    orderId: int | str
    lineItems: list[TestLineItem]

    @field_validator("orderId")
    @classmethod
    def validate_order_id(cls, v):
        """Reject zero and empty ids."""
        if not v:
            raise ValueError("orderId must be non-empty")
        return v


@dataclass
class InventoryAdjustment:
    """A signed adjustment applied to one (inventory item, location) pair."""

    variant_id: int | str
    inventory_item_id: int | str
    location_id: int | str
    delta: int
    available_before: int | None = None


class Action(str, Enum):
    DEDUCTED = "deducted"
    RESTORED = "restored"
    COMPENSATED = "compensated"
    SKIPPED_UNTRACKED = "skipped_untracked"
    SKIPPED_DUPLICATE = "skipped_duplicate"
    TESTED = "tested"


@dataclass
class LineItemResult:
    variant_id: int | str | None
    delta: int
    ok: bool
    error: str | None = None


@dataclass
class ProcessingResult:
    """Outcome of processing one lifecycle event for one order."""

    order_id: str
    event: LifecycleEvent | None
    action: Action
    line_results: list[LineItemResult] = field(default_factory=list)

    @property
    def adjusted(self) -> int:
        return sum(1 for r in self.line_results if r.ok)

    @property
    def failed(self) -> int:
        return sum(1 for r in self.line_results if not r.ok)
