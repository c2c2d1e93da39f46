"""
Response views: ORM entities and service results -> API schemas.
"""

from nutribite_shared.utils.schemas import (
    AdminProductOutput,
    CartItemOutput,
    CartLineOutput,
    CheckoutOrderOutput,
    CheckoutOutput,
    OrderItemOutput,
    OrderOutput,
    ProductOutput,
    StockStatusOutput,
)
from nutribite_api.models import CartItem, Order, OrderItem, Product
from nutribite_api.services.domain.cart_service import CartLineResult
from nutribite_api.services.domain.checkout_service import CheckoutResult
from nutribite_api.services.domain.pricing import line_total, price


def cart_item_view(item: CartItem) -> CartItemOutput:
    product = item.product
    recipe = product.recipe
    category = recipe.category if recipe is not None else None
    return CartItemOutput(
        id=item.id,
        product_id=item.product_id,
        quantity=item.quantity,
        unit_price_net=item.unit_price_net,
        tax_rate=item.tax_rate,
        tax_amount=item.tax_amount,
        unit_price_gross=item.unit_price_gross,
        line_total=line_total(item.unit_price_gross, item.quantity),
        recipe_id=product.recipe_id,
        recipe_name=recipe.name if recipe else None,
        picture=recipe.picture if recipe else None,
        calories=(recipe.calories or 0) if recipe else 0,
        category_id=category.id if category else None,
        category_name=category.name if category else None,
        stock=product.stock,
        current_price=product.price,
    )


def cart_line_view(result: CartLineResult) -> CartLineOutput:
    return CartLineOutput(
        id=result.item_id,
        product_id=result.product_id,
        requested=result.requested,
        quantity=result.quantity,
        capped=result.capped,
        deleted=result.deleted,
        unit_price_gross=result.unit_price_gross,
    )


def checkout_view(result: CheckoutResult) -> CheckoutOutput:
    return CheckoutOutput(
        order_id=result.order_id,
        replayed=result.replayed,
        orders=[
            CheckoutOrderOutput(
                order_id=order.id,
                category_id=order.category_id,
                delivery_time=order.delivery_at,
                total_price=order.total_price,
                total_calories=order.total_calories,
            )
            for order in result.orders
        ],
    )


def order_view(order: Order) -> OrderOutput:
    return OrderOutput(
        order_id=order.id,
        status=order.status,
        category_id=order.category_id,
        delivery_at=order.delivery_at,
        total_price=order.total_price,
        total_calories=order.total_calories,
        created_at=order.created_at,
        confirmed_at=order.confirmed_at,
    )


def order_item_view(item: OrderItem) -> OrderItemOutput:
    recipe = item.product.recipe if item.product is not None else None
    return OrderItemOutput(
        id=item.id,
        product_id=item.product_id,
        quantity=item.quantity,
        unit_price_net=item.unit_price_net,
        tax_rate=item.tax_rate,
        tax_amount=item.tax_amount,
        unit_price_gross=item.unit_price_gross,
        line_total=line_total(item.unit_price_gross, item.quantity),
        category_id=item.category_id,
        delivery_at=item.delivery_at,
        recipe_name=recipe.name if recipe else None,
        picture=recipe.picture if recipe else None,
        calories=recipe.calories if recipe else None,
    )


def _product_fields(product: Product) -> dict:
    recipe = product.recipe
    return {
        "product_id": product.id,
        "recipe_id": product.recipe_id,
        "price": product.price,
        "price_gross": price(product.price).gross,
        "stock": product.stock,
        "name": recipe.name if recipe else None,
        "description": recipe.description if recipe else None,
        "calories": recipe.calories if recipe else None,
        "protein_g": recipe.protein_g if recipe else None,
        "carbs_g": recipe.carbs_g if recipe else None,
        "fats_g": recipe.fats_g if recipe else None,
        "picture": recipe.picture if recipe else None,
        "diet_type_id": recipe.diet_type_id if recipe else None,
        "diet_name": recipe.diet_type.name if recipe and recipe.diet_type else None,
        "category_id": recipe.category_id if recipe else None,
        "category_name": recipe.category.name if recipe and recipe.category else None,
    }


def product_view(product: Product) -> ProductOutput:
    return ProductOutput(**_product_fields(product))


def admin_product_view(product: Product) -> AdminProductOutput:
    recipe = product.recipe
    return AdminProductOutput(
        **_product_fields(product),
        deleted_at=recipe.deleted_at if recipe else None,
    )


def stock_status_view(product: Product) -> StockStatusOutput:
    recipe = product.recipe
    return StockStatusOutput(
        product_id=product.id,
        recipe_id=product.recipe_id,
        stock=product.stock,
        recipe_deleted=bool(recipe and recipe.deleted_at is not None),
        deleted_at=recipe.deleted_at if recipe else None,
    )
