"""
Subscription plans and their feature ceilings.

The local check here is advisory; the authoritative decision comes from the
policy store (see feature_gate.py).
"""
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum

UNLIMITED = -1


class PlanTier(str, Enum):
    FREE = "free"
    PREMIUM = "premium"
    PRO = "pro"
    EMPRESARIAL = "empresarial"


# Feature names used across the API
COMPARISONS_PER_MONTH = "comparisonsPerMonth"
SAVED_COMPARISONS = "savedComparisons"
REPORTS_HISTORY = "reportsHistory"
PRICE_ALERTS = "priceAlerts"


@dataclass(frozen=True)
class Plan:
    id: PlanTier
    name: str
    price: Decimal
    description: str
    limitations: dict[str, int]
    features: list[str] = field(default_factory=list)
    popular: bool = False


PLANS: list[Plan] = [
    Plan(
        id=PlanTier.FREE,
        name="Gratuito",
        price=Decimal("0"),
        description="Ideal para começar a economizar",
        features=[
            "Até 5 comparações por mês",
            "Comparação básica de preços",
            "Acesso às ofertas do dia",
            "Relatório mensal básico",
        ],
        limitations={
            COMPARISONS_PER_MONTH: 5,
            SAVED_COMPARISONS: 0,
            REPORTS_HISTORY: 1,
            PRICE_ALERTS: 0,
        },
    ),
    Plan(
        id=PlanTier.PREMIUM,
        name="Premium",
        price=Decimal("19.90"),
        description="Para quem quer economizar mais",
        features=[
            "Comparações ilimitadas",
            "Salvar até 10 comparações",
            "Alertas de preço (5 produtos)",
            "Relatórios detalhados (6 meses)",
        ],
        limitations={
            COMPARISONS_PER_MONTH: UNLIMITED,
            SAVED_COMPARISONS: 10,
            REPORTS_HISTORY: 6,
            PRICE_ALERTS: 5,
        },
        popular=True,
    ),
    Plan(
        id=PlanTier.PRO,
        name="Pro",
        price=Decimal("39.90"),
        description="Para compradores profissionais",
        features=[
            "Tudo do Premium",
            "Comparações salvas ilimitadas",
            "Alertas de preço ilimitados",
            "Histórico completo de relatórios",
        ],
        limitations={
            COMPARISONS_PER_MONTH: UNLIMITED,
            SAVED_COMPARISONS: UNLIMITED,
            REPORTS_HISTORY: UNLIMITED,
            PRICE_ALERTS: UNLIMITED,
        },
    ),
    Plan(
        id=PlanTier.EMPRESARIAL,
        name="Empresarial",
        price=Decimal("99.90"),
        description="Para empresas e equipes",
        features=[
            "Tudo do Pro",
            "Até 10 usuários",
            "Relatórios personalizados",
        ],
        limitations={
            COMPARISONS_PER_MONTH: UNLIMITED,
            SAVED_COMPARISONS: UNLIMITED,
            REPORTS_HISTORY: UNLIMITED,
            PRICE_ALERTS: UNLIMITED,
        },
    ),
]

_PLANS_BY_ID = {plan.id.value: plan for plan in PLANS}


def get_plan_by_id(plan_id: str | PlanTier | None) -> Plan:
    """Look up a plan; unknown ids resolve to the free plan."""
    if isinstance(plan_id, PlanTier):
        plan_id = plan_id.value
    return _PLANS_BY_ID.get(plan_id or "", PLANS[0])


def get_feature_limit(plan_id: str | PlanTier | None, feature: str) -> int:
    """Ceiling for a feature; unknown features have no allowance."""
    return get_plan_by_id(plan_id).limitations.get(feature, 0)


def can_use_feature(plan_id: str | PlanTier | None, feature: str, current_usage: int) -> bool:
    """True while usage is below the plan ceiling, always True when unlimited."""
    limit = get_feature_limit(plan_id, feature)
    if limit == UNLIMITED:
        return True
    return current_usage < limit
