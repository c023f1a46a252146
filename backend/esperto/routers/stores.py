from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from esperto.database import get_db
from esperto.models import Store, User
from esperto.routers.auth import require_auth
from esperto.schemas.store import Store as StoreSchema, StoreCreate
from esperto.services.cache import CacheService, get_cache
from esperto.services.normalization import normalize_string

router = APIRouter(prefix="/stores", tags=["stores"])


@router.get("", response_model=list[StoreSchema])
async def list_stores(
    db: Session = Depends(get_db),
    cache: CacheService = Depends(get_cache)
):
    """List all stores, ordered by name."""
    cached = await cache.get_stores()
    if cached is not None:
        return cached

    stores = [
        StoreSchema.model_validate(store).model_dump(mode="json")
        for store in db.query(Store).order_by(Store.name).all()
    ]
    await cache.set_stores(stores)
    return stores


@router.post("", response_model=StoreSchema, status_code=201)
async def create_store(
    store_data: StoreCreate,
    user: User = Depends(require_auth),
    db: Session = Depends(get_db),
    cache: CacheService = Depends(get_cache)
):
    """Add a store. Names that only differ in case, accents or spacing are rejected."""
    name = store_data.name.strip()
    target = normalize_string(name)
    for existing in db.query(Store).all():
        if normalize_string(existing.name) == target:
            raise HTTPException(status_code=400, detail="Store already exists")

    store = Store(name=name)
    db.add(store)
    db.commit()
    db.refresh(store)

    await cache.invalidate_catalogue()
    return store
