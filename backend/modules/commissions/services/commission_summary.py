# backend/modules/commissions/services/commission_summary.py

from sqlalchemy.orm import Session
from sqlalchemy import func
from typing import Any, Dict
from datetime import datetime
from decimal import Decimal
import logging

from core.exceptions import ValidationError
from core.money import ZERO, round_money
from core.query_logger import log_query_performance
from core.time_utils import as_naive_utc
from ..models.transaction_models import Transaction, CommissionBreakdown, TransactionStatus

logger = logging.getLogger(__name__)


def _money(value) -> Decimal:
    # SQL SUM over NUMERIC may come back as float, int or None depending on backend
    if value is None:
        return ZERO
    return round_money(str(value))


def commission_summary(db: Session, start: datetime, end: datetime) -> Dict[str, Any]:
    """
    Platform commission report over transactions settled in ``[start, end)``.

    Net commission is what the platform keeps after agent commissions and
    team overrides.
    """
    start, end = as_naive_utc(start), as_naive_utc(end)
    if end <= start:
        raise ValidationError("end must be after start")

    with log_query_performance("commission_summary"):
        rows = (
            db.query(
                Transaction.transaction_type,
                func.count(Transaction.id),
                func.sum(CommissionBreakdown.gross_amount),
                func.sum(CommissionBreakdown.platform_commission),
                func.sum(CommissionBreakdown.agent_commission),
                func.sum(CommissionBreakdown.override_amount),
            )
            .join(
                CommissionBreakdown,
                CommissionBreakdown.transaction_id == Transaction.transaction_id,
            )
            .filter(
                Transaction.status == TransactionStatus.SETTLED,
                Transaction.settled_at >= start,
                Transaction.settled_at < end,
            )
            .group_by(Transaction.transaction_type)
            .all()
        )

    total_count = 0
    volume = platform = agents = overrides = ZERO
    by_type: Dict[str, Dict[str, Any]] = {}

    for tx_type, count, type_volume, type_platform, type_agents, type_overrides in rows:
        total_count += count
        volume += _money(type_volume)
        platform += _money(type_platform)
        agents += _money(type_agents)
        overrides += _money(type_overrides)
        by_type[tx_type.value] = {
            "count": count,
            "volume": _money(type_volume),
            "commission": _money(type_platform),
        }

    summary = {
        "start_date": start,
        "end_date": end,
        "total_transaction_volume": volume,
        "total_platform_commission": platform,
        "total_agent_commissions": agents,
        "total_team_overrides": overrides,
        "net_commission": platform - agents - overrides,
        "total_transactions": total_count,
        "avg_transaction_amount": round_money(volume / total_count) if total_count else ZERO,
        "avg_commission_amount": round_money(platform / total_count) if total_count else ZERO,
        "by_type": by_type,
    }

    logger.info(
        f"Commission summary {start.isoformat()} to {end.isoformat()}: "
        f"{total_count} transactions, volume {volume}"
    )
    return summary
