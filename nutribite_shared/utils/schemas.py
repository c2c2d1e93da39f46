"""
Shared Pydantic schemas used across the application.

Money is kept as Decimal internally and rendered as a JSON number.
"""

from datetime import datetime
from decimal import Decimal
from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field, PlainSerializer, StrictInt


# =============================================================================
# Common Types
# =============================================================================

JsonDecimal = Annotated[Decimal, PlainSerializer(float, return_type=float, when_used="json")]
Money = JsonDecimal
OrderStatusLiteral = Literal["draft", "confirmed"]


# =============================================================================
# Cart Schemas
# =============================================================================


class CartAddRequest(BaseModel):
    """Add units of a product to the cart."""

    product_id: int = Field(gt=0)
    quantity: StrictInt = 1


class CartUpdateRequest(BaseModel):
    """Set the quantity of a cart line (0 deletes it)."""

    quantity: StrictInt


class CartItemOutput(BaseModel):
    id: int
    product_id: int
    quantity: int
    unit_price_net: Money
    tax_rate: Money
    tax_amount: Money
    unit_price_gross: Money
    line_total: Money
    # Current product state, for display
    recipe_id: int | None = None
    recipe_name: str | None = None
    picture: str | None = None
    calories: int = 0
    category_id: int | None = None
    category_name: str | None = None
    stock: int
    current_price: Money


class CartListOutput(BaseModel):
    items: list[CartItemOutput]


class CartLineOutput(BaseModel):
    """Result of add / update; quantity is the effective (possibly capped) value."""

    ok: bool = True
    id: int
    product_id: int
    requested: int
    quantity: int
    capped: bool
    deleted: bool = False
    unit_price_gross: Money | None = None


class CartRemovedOutput(BaseModel):
    ok: bool = True
    removed: int


class CartSummaryOutput(BaseModel):
    total_price: Money
    total_items: int
    total_calories: int


# =============================================================================
# Checkout / Order Schemas
# =============================================================================


class CheckoutRequest(BaseModel):
    """
    schedule maps a category key (category id as string, "0" for
    uncategorized, or category name) to an ISO datetime. applyToAll
    overrides it with one datetime for every category.
    """

    model_config = ConfigDict(populate_by_name=True)

    schedule: dict[str, str | None] = Field(default_factory=dict)
    apply_to_all: str | None = Field(default=None, alias="applyToAll")


class CheckoutOrderOutput(BaseModel):
    order_id: int
    category_id: int | None = None
    delivery_time: datetime
    total_price: Money
    total_calories: int


class CheckoutOutput(BaseModel):
    order_id: int
    orders: list[CheckoutOrderOutput]
    replayed: bool = False


class OrderOutput(BaseModel):
    order_id: int
    status: OrderStatusLiteral
    category_id: int | None = None
    delivery_at: datetime
    total_price: Money
    total_calories: int
    created_at: datetime | None = None
    confirmed_at: datetime | None = None


class OrderItemOutput(BaseModel):
    id: int
    product_id: int
    quantity: int
    unit_price_net: Money
    tax_rate: Money
    tax_amount: Money
    unit_price_gross: Money
    line_total: Money
    category_id: int | None = None
    delivery_at: datetime
    recipe_name: str | None = None
    picture: str | None = None
    calories: int | None = None


class OrderDetailOutput(BaseModel):
    order: OrderOutput
    items: list[OrderItemOutput]


class OrderListOutput(BaseModel):
    items: list[OrderOutput]


class OrderConfirmOutput(BaseModel):
    ok: bool = True
    order_id: int
    status: OrderStatusLiteral


class RebuildCartOutput(BaseModel):
    rebuilt: int
    skipped: list[int] = Field(default_factory=list)


class LatestDraftOutput(BaseModel):
    order_id: int


# =============================================================================
# Admin Inventory Schemas
# =============================================================================


class StockUpdateRequest(BaseModel):
    """New absolute stock; must be a finite whole number >= 0."""

    stock: int | float | str | None = None


class StockUpdateOutput(BaseModel):
    ok: bool = True
    product_id: int
    recipe_id: int
    stock: int
    recipe_deleted: bool
    notify_admin: bool


class StockStatusOutput(BaseModel):
    product_id: int
    recipe_id: int | None = None
    stock: int
    recipe_deleted: bool
    deleted_at: datetime | None = None


class PriceUpdateRequest(BaseModel):
    """Either a raw factor, or percent with mode (default increase)."""

    factor: Decimal | None = None
    percent: Decimal | None = None
    mode: str | None = None


class PriceUpdateOutput(BaseModel):
    ok: bool = True
    product_id: int
    stock: int
    old_price: Money
    new_price: Money
    factor: Money


# =============================================================================
# Catalog Schemas
# =============================================================================


class ProductOutput(BaseModel):
    product_id: int
    recipe_id: int | None = None
    price: Money
    price_gross: Money
    stock: int
    name: str | None = None
    description: str | None = None
    calories: int | None = None
    protein_g: JsonDecimal | None = None
    carbs_g: JsonDecimal | None = None
    fats_g: JsonDecimal | None = None
    picture: str | None = None
    diet_type_id: int | None = None
    diet_name: str | None = None
    category_id: int | None = None
    category_name: str | None = None


class AdminProductOutput(ProductOutput):
    deleted_at: datetime | None = None


class PageMeta(BaseModel):
    limit: int
    offset: int
    total: int


class ProductListOutput(BaseModel):
    items: list[ProductOutput]
    meta: PageMeta


class AdminProductListOutput(BaseModel):
    items: list[AdminProductOutput]
    meta: PageMeta


class CategoryCountOutput(BaseModel):
    id: int
    name: str
    product_count: int


class CategoryListOutput(BaseModel):
    items: list[CategoryCountOutput]
