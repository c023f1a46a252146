"""
Comparisons router: saved shopping lists compared across stores.
"""
import logging
from datetime import date
from decimal import Decimal

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session, joinedload
from sqlalchemy import desc

from esperto.database import get_db
from esperto.models import (
    Comparison, ComparisonProduct, ComparisonStore, Product, ProductPrice, Store, User,
)
from esperto.routers.auth import require_auth
from esperto.routers.products import product_with_prices
from esperto.schemas.comparison import (
    Comparison as ComparisonSchema, ComparisonCreate, ComparisonSummary, ComparisonUpdate, StoreTotal,
)
from esperto.schemas.store import Store as StoreSchema
from esperto.services.comparison_calc import (
    calculate_optimal_total, calculate_totals_by_store, summarize_totals,
)
from esperto.services.feature_gate import FeatureGate, current_month_usage
from esperto.services.plans import COMPARISONS_PER_MONTH
from esperto.services.policy_store import PolicyStore, get_policy_store

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/comparisons", tags=["comparisons"])

LIMIT_REACHED_MESSAGE = (
    "Você atingiu o limite de comparações do seu plano este mês. "
    "Faça upgrade para continuar comparando."
)


def _serialize(comparison: Comparison) -> ComparisonSchema:
    return ComparisonSchema(
        id=comparison.id,
        user_id=comparison.user_id,
        title=comparison.title,
        date=comparison.date,
        created_at=comparison.created_at,
        stores=[StoreSchema.model_validate(cs.store) for cs in comparison.comparison_stores],
        products=[product_with_prices(cp.product) for cp in comparison.comparison_products]
    )


def _get_owned(db: Session, comparison_id: int, user: User) -> Comparison:
    comparison = db.query(Comparison).options(
        joinedload(Comparison.comparison_stores).joinedload(ComparisonStore.store),
        joinedload(Comparison.comparison_products).joinedload(ComparisonProduct.product)
    ).filter(
        Comparison.id == comparison_id,
        Comparison.user_id == user.id
    ).first()
    if not comparison:
        raise HTTPException(status_code=404, detail="Comparison not found")
    return comparison


def _set_links(db: Session, comparison: Comparison, data: ComparisonCreate) -> None:
    product_ids = list(dict.fromkeys(p.id for p in data.products))
    store_ids = list(dict.fromkeys(s.id for s in data.stores))

    if db.query(Product).filter(Product.id.in_(product_ids)).count() != len(product_ids):
        raise HTTPException(status_code=404, detail="Product not found")
    if db.query(Store).filter(Store.id.in_(store_ids)).count() != len(store_ids):
        raise HTTPException(status_code=404, detail="Store not found")

    comparison.comparison_products = [ComparisonProduct(product_id=pid) for pid in product_ids]
    comparison.comparison_stores = [ComparisonStore(store_id=sid) for sid in store_ids]


@router.get("", response_model=list[ComparisonSchema])
def list_comparisons(
    user: User = Depends(require_auth),
    db: Session = Depends(get_db)
):
    """The caller's comparisons, newest first."""
    comparisons = db.query(Comparison).options(
        joinedload(Comparison.comparison_stores).joinedload(ComparisonStore.store),
        joinedload(Comparison.comparison_products).joinedload(ComparisonProduct.product)
    ).filter(
        Comparison.user_id == user.id
    ).order_by(desc(Comparison.created_at), desc(Comparison.id)).all()
    return [_serialize(c) for c in comparisons]


@router.post("", response_model=ComparisonSchema, status_code=201)
def create_comparison(
    data: ComparisonCreate,
    user: User = Depends(require_auth),
    policy_store: PolicyStore = Depends(get_policy_store),
    db: Session = Depends(get_db)
):
    """Save a comparison. Counts against the plan's monthly comparisons."""
    if not data.products or not data.stores:
        raise HTTPException(status_code=400, detail="Select at least one product and one store")

    today = date.today()
    gate = FeatureGate(db, policy_store)
    if not gate.validate_feature_access(user, COMPARISONS_PER_MONTH, current_month_usage(user, today)):
        raise HTTPException(status_code=403, detail=LIMIT_REACHED_MESSAGE)

    comparison = Comparison(user_id=user.id, title=data.title)
    if data.date:
        comparison.date = data.date
    _set_links(db, comparison, data)
    db.add(comparison)
    db.commit()

    gate.increment_usage_counter(user, COMPARISONS_PER_MONTH, today)
    logger.info(f"Comparison {comparison.id} created by {user.id}")
    return _serialize(_get_owned(db, comparison.id, user))


@router.put("/{comparison_id}", response_model=ComparisonSchema)
def update_comparison(
    comparison_id: int,
    data: ComparisonUpdate,
    user: User = Depends(require_auth),
    db: Session = Depends(get_db)
):
    """Replace a comparison's products and stores."""
    comparison = _get_owned(db, comparison_id, user)
    _set_links(db, comparison, data)
    if data.title is not None:
        comparison.title = data.title
    if data.date is not None:
        comparison.date = data.date
    db.commit()

    return _serialize(_get_owned(db, comparison_id, user))


@router.delete("/{comparison_id}")
def delete_comparison(
    comparison_id: int,
    user: User = Depends(require_auth),
    db: Session = Depends(get_db)
):
    comparison = _get_owned(db, comparison_id, user)
    db.delete(comparison)
    db.commit()
    return {"message": "Comparison deleted"}


@router.get("/{comparison_id}/summary", response_model=ComparisonSummary)
def get_comparison_summary(
    comparison_id: int,
    user: User = Depends(require_auth),
    db: Session = Depends(get_db)
):
    """
    Basket totals for a comparison.

    Each store's total sums price times product quantity; the optimal total
    buys every product at its cheapest store.
    """
    comparison = _get_owned(db, comparison_id, user)
    stores = [cs.store for cs in comparison.comparison_stores]
    store_ids = [s.id for s in stores]
    product_ids = [cp.product_id for cp in comparison.comparison_products]

    prices = db.query(ProductPrice).filter(
        ProductPrice.product_id.in_(product_ids),
        ProductPrice.store_id.in_(store_ids)
    ).all()
    by_product: dict[int, dict[int, Decimal]] = {pid: {} for pid in product_ids}
    for pp in prices:
        by_product[pp.product_id][pp.store_id] = pp.price

    items = [
        (by_product[cp.product_id], cp.product.quantity or Decimal("1"))
        for cp in comparison.comparison_products
    ]
    totals = calculate_totals_by_store(items, store_ids)
    optimal = calculate_optimal_total(items, store_ids)
    summary = summarize_totals(totals)

    return ComparisonSummary(
        comparison_id=comparison.id,
        totals=[
            StoreTotal(store_id=s.id, store_name=s.name, total=float(totals[s.id]))
            for s in stores
        ],
        optimal_total=float(optimal),
        highest=float(summary["highest"]),
        lowest=float(summary["lowest"]),
        average=float(summary["average"]),
        savings=float(summary["highest"] - optimal) if totals else 0.0
    )
