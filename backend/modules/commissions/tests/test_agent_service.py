# backend/modules/commissions/tests/test_agent_service.py

import re
import pytest
from datetime import datetime
from decimal import Decimal
from unittest.mock import patch

from core.exceptions import ValidationError
from modules.commissions.models import (
    AgentCommission,
    AgentTier,
    CommissionSource,
    CommissionStatus,
    ReferralScan,
    SalesAgent,
)
from modules.commissions.services import (
    SalesAgentService,
    SalesAgentNotFound,
    ReferralScanNotFound,
    CommissionNotFound,
)


class TestSalesAgents:

    def test_create_agent(self, agent_service: SalesAgentService):
        agent = agent_service.create_agent(user_id="u1", name="Ann Agent")

        assert re.fullmatch(r"AGT-[0-9A-F]{8}", agent.referral_code)
        assert agent.is_active is True
        assert agent.recruited_by_id is None
        assert agent.recruited_at is None
        assert agent.total_earned == Decimal("0")
        assert agent.total_pending == Decimal("0")
        assert agent.tier == AgentTier.BRONZE
        assert agent.lifetime_referrals == 0

    def test_create_recruited_agent(self, recruiter, recruit):
        assert recruit.recruited_by_id == recruiter.id
        assert recruit.recruited_at is not None
        assert recruit.recruiter.id == recruiter.id

    def test_recruiter_code_lookup_is_case_insensitive(self, agent_service, recruiter):
        agent = agent_service.create_agent(
            user_id="u2", name="Lower", recruited_by_code=recruiter.referral_code.lower()
        )

        assert agent.recruited_by_id == recruiter.id

    def test_unknown_recruiter_code(self, agent_service: SalesAgentService):
        with pytest.raises(SalesAgentNotFound):
            agent_service.create_agent(user_id="u1", name="X", recruited_by_code="AGT-00000000")

    @pytest.mark.parametrize("rate", ["-0.1", "1.5"])
    def test_invalid_commission_rate(self, agent_service: SalesAgentService, rate):
        with pytest.raises(ValidationError):
            agent_service.create_agent(user_id="u1", name="X", commission_rate=rate)

    @pytest.mark.parametrize("rate", ["0.12345", "0.00001"])
    def test_commission_rate_beyond_four_places_rejected(self, agent_service, db_session, rate):
        with pytest.raises(ValidationError):
            agent_service.create_agent(user_id="u1", name="X", commission_rate=rate)

        assert db_session.query(SalesAgent).count() == 0

    def test_four_place_commission_rate_stored_exactly(self, agent_service: SalesAgentService):
        agent = agent_service.create_agent(user_id="u1", name="X", commission_rate="0.1234")

        assert agent.commission_rate == Decimal("0.1234")

    def test_deactivate_is_idempotent(self, agent_service: SalesAgentService, recruiter):
        agent_service.deactivate_agent(recruiter.id)

        assert agent_service.deactivate_agent(recruiter.id).is_active is False

    def test_get_unknown_agent(self, agent_service: SalesAgentService):
        with pytest.raises(SalesAgentNotFound) as exc_info:
            agent_service.get_agent(999)

        assert exc_info.value.error_code == "SALES_AGENT_NOT_FOUND"


class TestReferralScans:

    def test_record_referral_scan(self, agent_service: SalesAgentService, recruiter):
        scan = agent_service.record_referral_scan(recruiter.referral_code, "Mozilla/5.0")

        assert scan.agent_id == recruiter.id
        assert scan.referral_code == recruiter.referral_code
        assert scan.user_agent == "Mozilla/5.0"
        assert scan.converted is False
        assert scan.converted_at is None

    def test_unknown_referral_code(self, agent_service: SalesAgentService):
        with pytest.raises(SalesAgentNotFound):
            agent_service.record_referral_scan("AGT-FFFFFFFF")

    def test_converts_exactly_once(self, agent_service: SalesAgentService, recruiter):
        scan = agent_service.record_referral_scan(recruiter.referral_code)
        when = datetime(2024, 5, 1, 9, 30)

        first = agent_service.mark_converted(scan.id, when)
        second = agent_service.mark_converted(scan.id, datetime(2024, 5, 2))

        stored = agent_service.get_referral_scan(scan.id)
        assert first is True
        assert second is False
        assert stored.converted is True
        assert stored.converted_at == when

    def test_convert_unknown_scan(self, agent_service: SalesAgentService):
        with pytest.raises(ReferralScanNotFound):
            agent_service.mark_converted(12345)

    def test_no_signup_bonus_by_default(self, agent_service, db_session, recruiter):
        scan = agent_service.record_referral_scan(recruiter.referral_code)

        agent_service.mark_converted(scan.id)

        assert db_session.query(AgentCommission).count() == 0

    def test_signup_bonus_when_configured(self, db_session, recruiter, make_engine):
        service = SalesAgentService(
            db_session, make_engine(signup_bonus=Decimal("5.00"))
        )
        scan = service.record_referral_scan(recruiter.referral_code)

        service.mark_converted(scan.id)
        service.mark_converted(scan.id)

        credits = db_session.query(AgentCommission).all()
        assert len(credits) == 1
        assert credits[0].source == CommissionSource.SIGNUP_BONUS
        assert credits[0].amount == Decimal("5.00")
        assert credits[0].referral_scan_id == scan.id
        assert service.get_agent(recruiter.id).total_pending == Decimal("5.00")

    def test_signup_bonus_suppressed_for_inactive_agent(self, db_session, recruiter, make_engine):
        service = SalesAgentService(
            db_session, make_engine(signup_bonus=Decimal("5.00"))
        )
        scan = service.record_referral_scan(recruiter.referral_code)
        service.deactivate_agent(recruiter.id)

        assert service.mark_converted(scan.id) is True
        assert db_session.query(AgentCommission).count() == 0

    def test_failed_bonus_credit_rolls_back_conversion(self, db_session, recruiter, make_engine):
        service = SalesAgentService(
            db_session, make_engine(signup_bonus=Decimal("5.00"))
        )
        scan = service.record_referral_scan(recruiter.referral_code)

        with patch.object(service, "credit", side_effect=RuntimeError("ledger unavailable")):
            with pytest.raises(RuntimeError):
                service.mark_converted(scan.id)

        assert service.get_referral_scan(scan.id).converted is False
        assert service.get_agent(recruiter.id).lifetime_referrals == 0
        assert db_session.query(AgentCommission).count() == 0

        # The scan is still convertible once the ledger recovers
        assert service.mark_converted(scan.id) is True
        assert db_session.query(AgentCommission).count() == 1

    def test_failure_without_commit_leaves_rollback_to_caller(self, db_session, recruiter, make_engine):
        service = SalesAgentService(
            db_session, make_engine(signup_bonus=Decimal("5.00"))
        )
        scan = service.record_referral_scan(recruiter.referral_code)

        with patch.object(service, "credit", side_effect=RuntimeError("ledger unavailable")):
            with pytest.raises(RuntimeError):
                service.mark_converted(scan.id, commit=False)

        stored = db_session.query(ReferralScan.converted).filter(ReferralScan.id == scan.id).scalar()
        assert stored is True

        db_session.rollback()
        assert service.get_referral_scan(scan.id).converted is False


class TestTiers:

    def _set_referrals(self, db_session, agent, count: int):
        db_session.query(SalesAgent).filter(SalesAgent.id == agent.id).update(
            {"lifetime_referrals": count}
        )
        db_session.commit()

    def _convert_one(self, service: SalesAgentService, agent):
        scan = service.record_referral_scan(agent.referral_code)
        assert service.mark_converted(scan.id) is True

    def test_conversion_counts_lifetime_referral(self, agent_service, recruiter):
        self._convert_one(agent_service, recruiter)
        self._convert_one(agent_service, recruiter)

        agent = agent_service.get_agent(recruiter.id)
        assert agent.lifetime_referrals == 2
        assert agent.tier == AgentTier.BRONZE

    def test_repeat_conversion_is_not_counted(self, agent_service, recruiter):
        scan = agent_service.record_referral_scan(recruiter.referral_code)
        agent_service.mark_converted(scan.id)
        agent_service.mark_converted(scan.id)

        assert agent_service.get_agent(recruiter.id).lifetime_referrals == 1

    @pytest.mark.parametrize(
        "before,tier",
        [
            (24, AgentTier.SILVER),
            (99, AgentTier.GOLD),
            (199, AgentTier.PLATINUM),
            (499, AgentTier.DIAMOND),
        ],
    )
    def test_promotion_at_threshold(self, agent_service, db_session, recruiter, before, tier):
        self._set_referrals(db_session, recruiter, before)

        self._convert_one(agent_service, recruiter)

        agent = agent_service.get_agent(recruiter.id)
        assert agent.lifetime_referrals == before + 1
        assert agent.tier == tier

    @pytest.mark.parametrize("before", [23, 98, 198, 498])
    def test_no_promotion_below_threshold(self, agent_service, db_session, recruiter, before):
        tier_before = agent_service.engine.tier_for(before)
        db_session.query(SalesAgent).filter(SalesAgent.id == recruiter.id).update(
            {"lifetime_referrals": before, "tier": tier_before}
        )
        db_session.commit()

        self._convert_one(agent_service, recruiter)

        assert agent_service.get_agent(recruiter.id).tier == tier_before

    def test_tier_rate_used_for_settlement_split(self, agent_service, db_session, recruiter):
        self._set_referrals(db_session, recruiter, 24)
        self._convert_one(agent_service, recruiter)

        split = agent_service.engine.split("2500.00", agent_service.get_agent(recruiter.id))

        assert split.agent_rate == Decimal("0.12")
        assert split.agent_commission == Decimal("22.50")

    def test_personal_rate_kept_after_promotion(self, agent_service, db_session):
        agent = agent_service.create_agent(user_id="u9", name="Fixed", commission_rate="0.20")
        self._set_referrals(db_session, agent, 24)
        self._convert_one(agent_service, agent)

        promoted = agent_service.get_agent(agent.id)
        split = agent_service.engine.split("100.00", promoted)

        assert promoted.tier == AgentTier.SILVER
        assert split.agent_rate == Decimal("0.20")


class TestRecruitmentBonus:

    def _convert(self, service: SalesAgentService, agent, times: int):
        for _ in range(times):
            scan = service.record_referral_scan(agent.referral_code)
            service.mark_converted(scan.id)

    def test_bonus_after_threshold_sales(self, agent_service, db_session, recruiter, recruit):
        self._convert(agent_service, recruit, 2)
        assert db_session.query(AgentCommission).count() == 0

        self._convert(agent_service, recruit, 1)

        bonus = db_session.query(AgentCommission).one()
        assert bonus.agent_id == recruiter.id
        assert bonus.source == CommissionSource.RECRUITMENT_BONUS
        assert bonus.amount == Decimal("75.00")
        assert bonus.recruited_agent_id == recruit.id
        assert agent_service.get_agent(recruiter.id).total_pending == Decimal("75.00")

    def test_bonus_paid_once_per_recruit(self, agent_service, db_session, recruiter, recruit):
        self._convert(agent_service, recruit, 5)

        assert db_session.query(AgentCommission).count() == 1

    def test_unrecruited_agent_earns_no_bonus(self, agent_service, db_session, recruiter):
        self._convert(agent_service, recruiter, 4)

        assert db_session.query(AgentCommission).count() == 0

    def test_inactive_recruiter_gets_no_bonus(self, agent_service, db_session, recruiter, recruit):
        agent_service.deactivate_agent(recruiter.id)

        self._convert(agent_service, recruit, 3)

        assert db_session.query(AgentCommission).count() == 0


class TestLedger:

    def test_credit_raises_pending_total(self, agent_service, db_session, recruiter):
        agent_service.credit(recruiter.id, CommissionSource.TRANSACTION, "18.75", transaction_id="t1")
        agent_service.credit(recruiter.id, CommissionSource.TRANSACTION, "0.75", transaction_id="t2")
        db_session.commit()

        agent = agent_service.get_agent(recruiter.id)
        assert agent.total_pending == Decimal("19.50")
        assert agent.total_earned == Decimal("0")

    def test_mark_paid_moves_pending_to_earned(self, agent_service, db_session, recruiter):
        commission = agent_service.credit(
            recruiter.id, CommissionSource.TRANSACTION, "18.75", transaction_id="t1"
        )
        db_session.commit()

        paid = agent_service.mark_commission_paid(commission.id)

        agent = agent_service.get_agent(recruiter.id)
        assert paid.status == CommissionStatus.PAID
        assert paid.paid_at is not None
        assert agent.total_pending == Decimal("0")
        assert agent.total_earned == Decimal("18.75")

    def test_paying_twice_is_noop(self, agent_service, db_session, recruiter):
        commission = agent_service.credit(
            recruiter.id, CommissionSource.TRANSACTION, "10.00", transaction_id="t1"
        )
        db_session.commit()

        agent_service.mark_commission_paid(commission.id)
        agent_service.mark_commission_paid(commission.id)

        agent = agent_service.get_agent(recruiter.id)
        assert agent.total_earned == Decimal("10.00")
        assert agent.total_pending == Decimal("0")

    def test_mark_unknown_commission_paid(self, agent_service: SalesAgentService):
        with pytest.raises(CommissionNotFound):
            agent_service.mark_commission_paid(404)

    def test_list_commissions_by_status(self, agent_service, db_session, recruiter):
        first = agent_service.credit(recruiter.id, CommissionSource.TRANSACTION, "1.00", transaction_id="a")
        agent_service.credit(recruiter.id, CommissionSource.TRANSACTION, "2.00", transaction_id="b")
        db_session.commit()
        agent_service.mark_commission_paid(first.id)

        pending = agent_service.list_commissions(recruiter.id, CommissionStatus.PENDING)
        everything = agent_service.list_commissions(recruiter.id)

        assert [c.amount for c in pending] == [Decimal("2.00")]
        assert len(everything) == 2
