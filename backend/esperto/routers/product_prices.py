from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from esperto.database import get_db
from esperto.models import Comparison, Product, Store, User
from esperto.routers.auth import require_auth
from esperto.schemas.product import ProductPrice as ProductPriceSchema, ProductPriceCreate
from esperto.services.cache import CacheService, get_cache
from esperto.services.catalogue import upsert_product_price

router = APIRouter(prefix="/product-prices", tags=["product-prices"])


@router.post("", response_model=ProductPriceSchema)
async def set_product_price(
    price_data: ProductPriceCreate,
    user: User = Depends(require_auth),
    db: Session = Depends(get_db),
    cache: CacheService = Depends(get_cache)
):
    """Create or update the price of a product at a store."""
    if not db.query(Product).filter(Product.id == price_data.product_id).first():
        raise HTTPException(status_code=404, detail="Product not found")
    if not db.query(Store).filter(Store.id == price_data.store_id).first():
        raise HTTPException(status_code=404, detail="Store not found")
    if price_data.comparison_id is not None:
        comparison = db.query(Comparison).filter(
            Comparison.id == price_data.comparison_id,
            Comparison.user_id == user.id
        ).first()
        if not comparison:
            raise HTTPException(status_code=404, detail="Comparison not found")

    product_price = upsert_product_price(
        db,
        price_data.product_id,
        price_data.store_id,
        price_data.price,
        comparison_id=price_data.comparison_id
    )
    db.commit()
    db.refresh(product_price)

    await cache.invalidate_catalogue()
    return ProductPriceSchema(
        id=product_price.id,
        product_id=product_price.product_id,
        store_id=product_price.store_id,
        comparison_id=product_price.comparison_id,
        price=float(product_price.price)
    )
