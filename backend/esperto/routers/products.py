from decimal import Decimal

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session, joinedload
from esperto.database import get_db
from esperto.models import Product, ProductPrice, User
from esperto.routers.auth import require_auth
from esperto.schemas.product import (
    ProductCreate, ProductGroup, ProductWithPrices, StorePriceInfo,
)
from esperto.services.cache import CacheService, get_cache
from esperto.services.normalization import group_duplicate_products

router = APIRouter(prefix="/products", tags=["products"])


def product_with_prices(product: Product) -> ProductWithPrices:
    """Serialize a product with its current price at each store."""
    return ProductWithPrices(
        id=product.id,
        name=product.name,
        quantity=float(product.quantity) if product.quantity is not None else 1,
        unit=product.unit or "un",
        category=product.category,
        created_at=product.created_at,
        prices=[
            StorePriceInfo(
                store_id=pp.store_id,
                store_name=pp.store.name,
                price=float(pp.price)
            )
            for pp in sorted(product.product_prices, key=lambda pp: pp.price)
        ]
    )


def _load_products(db: Session) -> list[Product]:
    return db.query(Product).options(
        joinedload(Product.product_prices).joinedload(ProductPrice.store)
    ).order_by(Product.name).all()


@router.get("", response_model=list[ProductWithPrices])
async def list_products(
    db: Session = Depends(get_db),
    cache: CacheService = Depends(get_cache)
):
    """List all products with their prices, ordered by name."""
    cached = await cache.get_products()
    if cached is not None:
        return cached

    products = [product_with_prices(p).model_dump(mode="json") for p in _load_products(db)]
    await cache.set_products(products)
    return products


@router.get("/search", response_model=list[ProductWithPrices])
def search_products(
    q: str = Query(..., min_length=2),
    limit: int = 20,
    db: Session = Depends(get_db)
):
    """Search products by name."""
    products = db.query(Product).filter(
        Product.name.ilike(f"%{q}%")
    ).order_by(Product.name).limit(limit).all()
    return [product_with_prices(p) for p in products]


@router.get("/grouped", response_model=list[ProductGroup])
def list_grouped_products(db: Session = Depends(get_db)):
    """Products grouped by normalised name so spelling variants show once."""
    groups = group_duplicate_products(_load_products(db))
    return [
        ProductGroup(
            product=product_with_prices(group["product"]),
            display_name=group["display_name"],
            variant_count=group["variant_count"],
            variants=[product_with_prices(p) for p in group["variants"]]
        )
        for group in sorted(groups, key=lambda g: g["display_name"])
    ]


@router.post("", response_model=ProductWithPrices, status_code=201)
async def create_product(
    product_data: ProductCreate,
    user: User = Depends(require_auth),
    db: Session = Depends(get_db),
    cache: CacheService = Depends(get_cache)
):
    """Add a product to the catalogue."""
    product = Product(
        name=product_data.name.strip(),
        quantity=Decimal(str(product_data.quantity)),
        unit=product_data.unit,
        category=product_data.category
    )
    db.add(product)
    db.commit()
    db.refresh(product)

    await cache.invalidate_catalogue()
    return product_with_prices(product)
