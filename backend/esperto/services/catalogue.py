"""
Product and store lookups shared by the catalogue routes and contributions.
"""
from decimal import Decimal
from typing import Optional

from sqlalchemy.orm import Session

from esperto.models import Product, ProductPrice, Store
from esperto.services.normalization import normalize_string


def _same_quantity(a, b) -> bool:
    if a is None or b is None:
        return a is None and b is None
    return Decimal(str(a)) == Decimal(str(b))


def find_or_create_product(
    db: Session,
    name: str,
    quantity: Optional[Decimal] = None,
    unit: Optional[str] = None,
) -> Product:
    """Reuse a product whose normalised name, quantity and unit match, else create it."""
    name = name.strip()
    quantity = quantity if quantity is not None else Decimal("1")
    unit = unit or "un"

    # Accents and spacing defeat SQL LIKE, so names are compared after normalising
    target = normalize_string(name)
    for product in db.query(Product).all():
        if (
            normalize_string(product.name) == target
            and _same_quantity(product.quantity, quantity)
            and (product.unit or "un") == unit
        ):
            return product

    product = Product(name=name, quantity=quantity, unit=unit)
    db.add(product)
    db.flush()
    return product


def find_or_create_store(db: Session, name: str) -> Store:
    """Reuse a store whose normalised name matches, else create it."""
    name = name.strip()
    target = normalize_string(name)
    for store in db.query(Store).all():
        if normalize_string(store.name) == target:
            return store

    store = Store(name=name)
    db.add(store)
    db.flush()
    return store


def upsert_product_price(
    db: Session,
    product_id: int,
    store_id: int,
    price: Decimal,
    comparison_id: Optional[int] = None,
) -> ProductPrice:
    """Set the current price of a product at a store."""
    product_price = db.query(ProductPrice).filter(
        ProductPrice.product_id == product_id,
        ProductPrice.store_id == store_id
    ).first()

    if product_price:
        product_price.price = price
        if comparison_id is not None:
            product_price.comparison_id = comparison_id
    else:
        product_price = ProductPrice(
            product_id=product_id,
            store_id=store_id,
            price=price,
            comparison_id=comparison_id
        )
        db.add(product_price)

    db.flush()
    return product_price
