# backend/modules/commissions/routes/commission_routes.py

from fastapi import APIRouter, BackgroundTasks, Depends, Query, status
from sqlalchemy.orm import Session
from typing import List, Optional
from datetime import datetime, timedelta

from core.database import get_db
from core.notification_service import NotificationType, notification_service
from core.time_utils import utc_now
from ..models.agent_models import CommissionStatus
from ..schemas.commission_schemas import (
    SalesAgentCreate,
    SalesAgentResponse,
    ReferralScanCreate,
    ReferralScanResponse,
    ReferralConversionResponse,
    AgentCommissionResponse,
    CommissionSummaryResponse,
)
from ..services.agent_service import SalesAgentService
from ..services.commission_summary import commission_summary

agent_router = APIRouter(prefix="/sales-agents", tags=["sales-agents"])
referral_router = APIRouter(prefix="/referral-scans", tags=["referral-scans"])
commission_router = APIRouter(prefix="/commissions", tags=["commissions"])


# ========== Sales agents ==========


@agent_router.post("", response_model=SalesAgentResponse, status_code=status.HTTP_201_CREATED)
def create_sales_agent(payload: SalesAgentCreate, db: Session = Depends(get_db)):
    """Register a sales agent, optionally under the agent who recruited them"""
    return SalesAgentService(db).create_agent(
        user_id=payload.user_id,
        name=payload.name,
        commission_rate=payload.commission_rate,
        recruited_by_code=payload.recruited_by_code,
    )


@agent_router.get("/{agent_id}", response_model=SalesAgentResponse)
def get_sales_agent(agent_id: int, db: Session = Depends(get_db)):
    return SalesAgentService(db).get_agent(agent_id)


@agent_router.post("/{agent_id}/deactivate", response_model=SalesAgentResponse)
def deactivate_sales_agent(agent_id: int, db: Session = Depends(get_db)):
    return SalesAgentService(db).deactivate_agent(agent_id)


@agent_router.get("/{agent_id}/commissions", response_model=List[AgentCommissionResponse])
def list_agent_commissions(
    agent_id: int,
    commission_status: Optional[CommissionStatus] = Query(None, alias="status"),
    db: Session = Depends(get_db),
):
    return SalesAgentService(db).list_commissions(agent_id, status=commission_status)


# ========== Referral scans ==========


@referral_router.post(
    "", response_model=ReferralScanResponse, status_code=status.HTTP_201_CREATED
)
def record_referral_scan(payload: ReferralScanCreate, db: Session = Depends(get_db)):
    return SalesAgentService(db).record_referral_scan(
        payload.referral_code, user_agent=payload.user_agent
    )


@referral_router.post("/{referral_scan_id}/convert", response_model=ReferralConversionResponse)
def convert_referral_scan(
    referral_scan_id: int,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
):
    """Mark a referral visit as converted; repeated calls report converted_now=false"""
    service = SalesAgentService(db)
    converted_now = service.mark_converted(referral_scan_id)
    scan = service.get_referral_scan(referral_scan_id)

    if converted_now:
        agent = service.get_agent(scan.agent_id)
        background_tasks.add_task(
            notification_service.notify,
            agent.user_id,
            NotificationType.REFERRAL_CONVERTED,
            {"referral_scan_id": scan.id, "agent_id": agent.id},
        )

    return ReferralConversionResponse(
        referral_scan=ReferralScanResponse.model_validate(scan),
        converted_now=converted_now,
    )


# ========== Ledger ==========


@commission_router.get("/summary", response_model=CommissionSummaryResponse)
def get_commission_summary(
    start: Optional[datetime] = Query(None),
    end: Optional[datetime] = Query(None),
    db: Session = Depends(get_db),
):
    """Commission totals over settled transactions; defaults to the last 30 days"""
    end = end or utc_now()
    start = start or end - timedelta(days=30)
    return commission_summary(db, start, end)


@commission_router.post("/{commission_id}/mark-paid", response_model=AgentCommissionResponse)
def mark_commission_paid(commission_id: int, db: Session = Depends(get_db)):
    return SalesAgentService(db).mark_commission_paid(commission_id)
