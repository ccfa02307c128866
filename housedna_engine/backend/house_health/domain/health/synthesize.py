# backend/house_health/domain/health/synthesize.py
from __future__ import annotations

from datetime import timedelta
from typing import Iterable

from .decay import AsOf, as_of_date, is_inspection_stale, score_component
from .policy import DEFAULT_POLICY, HealthPolicy
from .types import Candidate, ComponentSnapshot, RiskLevel, ScoreResult, category_name

HOUSE_ALERT_DESCRIPTION = "住宅全体の健全性が低下しています。専門家による総合診断を推奨します"
HOUSE_ALERT_ACTION = "建物全体の劣化診断（インスペクション）を専門家に依頼してください"


def worn_description(name: str) -> str:
    return f"{name}の劣化が進んでいます（推定残寿命わずか）"


def repair_description(name: str) -> str:
    return f"{name}の点検・補修を検討してください"


def warranty_description(name: str) -> str:
    return f"{name}の保証期限が近づいています／切れています"


def inspection_description(name: str) -> str:
    return f"{name}の点検が長期間行われていません"


def component_candidates(
    component: ComponentSnapshot,
    now: AsOf,
    policy: HealthPolicy = DEFAULT_POLICY,
) -> list[Candidate]:
    """Each rule fires independently; one component can yield several candidates."""
    today = as_of_date(now)
    name = category_name(component.category)
    cid = component.component_id
    out: list[Candidate] = []

    score = score_component(component, today, policy)
    if score < policy.high_risk_threshold:
        out.append(
            Candidate(
                risk_level=RiskLevel.high,
                description=worn_description(name),
                component_id=cid,
                recommended_action=f"{name}の交換・改修の見積もりを早急に取得してください",
            )
        )
    elif score < policy.medium_risk_threshold:
        out.append(
            Candidate(
                risk_level=RiskLevel.medium,
                description=repair_description(name),
                component_id=cid,
                recommended_action=f"{name}の点検を依頼し、必要に応じて部分補修を行ってください",
            )
        )

    exp = component.warranty_expiry_date
    if exp is not None and exp <= today + timedelta(days=policy.warranty_notice_days):
        out.append(
            Candidate(
                risk_level=RiskLevel.medium,
                description=warranty_description(name),
                component_id=cid,
                recommended_action="保証の延長または保証期間内の点検を検討してください",
            )
        )

    if is_inspection_stale(component, today, policy):
        out.append(
            Candidate(
                risk_level=RiskLevel.low,
                description=inspection_description(name),
                component_id=cid,
                recommended_action=f"{name}の定期点検を実施してください",
            )
        )

    return out


def synthesize(
    components: Iterable[ComponentSnapshot],
    result: ScoreResult,
    now: AsOf,
    policy: HealthPolicy = DEFAULT_POLICY,
) -> list[Candidate]:
    """
    Stateless: a function of the current components and score only.
    Risk levels assigned here are the only source of truth for display.

    Order: house-level alert first, then components in input order.
    """
    out: list[Candidate] = []
    if result.overall_score < policy.house_alert_threshold:
        out.append(
            Candidate(
                risk_level=RiskLevel.high,
                description=HOUSE_ALERT_DESCRIPTION,
                component_id=None,
                recommended_action=HOUSE_ALERT_ACTION,
            )
        )

    for c in components:
        out.extend(component_candidates(c, now, policy))

    return out
