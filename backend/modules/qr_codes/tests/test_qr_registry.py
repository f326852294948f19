# backend/modules/qr_codes/tests/test_qr_registry.py

import pytest
import uuid
from datetime import datetime, timedelta, timezone
from decimal import Decimal

from core.exceptions import InvalidConfig
from modules.qr_codes.models import QRCode, QRScan, QRCodeType
from modules.qr_codes.services import QRCodeRegistry, QRCodeNotFound


class TestQRCodeCreation:

    def test_create_loyalty_code(self, registry: QRCodeRegistry):
        code = registry.create("biz-1", QRCodeType.LOYALTY, {"points_value": 25})

        assert uuid.UUID(code.id)
        assert code.business_id == "biz-1"
        assert code.code_type == QRCodeType.LOYALTY
        assert code.points_value == 25
        assert code.discount_percentage is None
        assert code.is_active is True
        assert code.current_scans == 0

    def test_create_discount_code(self, registry: QRCodeRegistry):
        code = registry.create(
            "biz-1", "discount", {"discount_percentage": "20.5", "scan_limit": 100}
        )

        assert code.code_type == QRCodeType.DISCOUNT
        assert code.discount_percentage == Decimal("20.50")
        assert code.scan_limit == 100
        assert code.points_value is None

    def test_create_info_code_ignores_reward_fields(self, registry: QRCodeRegistry):
        code = registry.create(
            "biz-1", QRCodeType.INFO, {"points_value": 10, "discount_percentage": 5}
        )

        assert code.points_value is None
        assert code.discount_percentage is None

    @pytest.mark.parametrize("percentage", [None, Decimal("-1"), Decimal("100.01"), "abc"])
    def test_invalid_discount_percentage(self, registry: QRCodeRegistry, percentage):
        config = {} if percentage is None else {"discount_percentage": percentage}

        with pytest.raises(InvalidConfig) as exc_info:
            registry.create("biz-1", QRCodeType.DISCOUNT, config)

        assert exc_info.value.error_code == "INVALID_CONFIG"

    @pytest.mark.parametrize("percentage", [Decimal("0"), Decimal("100")])
    def test_discount_percentage_bounds_are_inclusive(self, registry: QRCodeRegistry, percentage):
        code = registry.create("biz-1", QRCodeType.DISCOUNT, {"discount_percentage": percentage})

        assert code.discount_percentage == percentage

    @pytest.mark.parametrize("percentage", ["12.345", Decimal("0.001")])
    def test_discount_percentage_beyond_two_places(self, registry: QRCodeRegistry, db_session, percentage):
        with pytest.raises(InvalidConfig):
            registry.create("biz-1", QRCodeType.DISCOUNT, {"discount_percentage": percentage})

        assert db_session.query(QRCode).count() == 0

    @pytest.mark.parametrize("points", [None, -1, "10", True])
    def test_invalid_points_value(self, registry: QRCodeRegistry, points):
        config = {} if points is None else {"points_value": points}

        with pytest.raises(InvalidConfig):
            registry.create("biz-1", QRCodeType.LOYALTY, config)

    def test_negative_scan_limit_rejected(self, registry: QRCodeRegistry):
        with pytest.raises(InvalidConfig):
            registry.create("biz-1", QRCodeType.LOYALTY, {"points_value": 1, "scan_limit": -1})

    def test_aware_expiration_stored_as_utc(self, registry: QRCodeRegistry):
        expires = datetime(2030, 1, 1, 10, 0, tzinfo=timezone(timedelta(hours=-5)))

        code = registry.create(
            "biz-1", QRCodeType.LOYALTY, {"points_value": 1, "expiration_date": expires}
        )

        assert code.expiration_date == datetime(2030, 1, 1, 15, 0)

    def test_failed_create_writes_nothing(self, registry: QRCodeRegistry, db_session):
        with pytest.raises(InvalidConfig):
            registry.create("biz-1", QRCodeType.DISCOUNT, {})

        assert db_session.query(QRCode).count() == 0


class TestQRCodeLookupAndUpdate:

    def test_get_existing(self, registry: QRCodeRegistry, loyalty_code: QRCode):
        assert registry.get(loyalty_code.id).id == loyalty_code.id

    def test_get_unknown(self, registry: QRCodeRegistry):
        with pytest.raises(QRCodeNotFound) as exc_info:
            registry.get(str(uuid.uuid4()))

        assert exc_info.value.status_code == 404
        assert exc_info.value.error_code == "QR_CODE_NOT_FOUND"

    def test_get_malformed_id_is_not_found(self, registry: QRCodeRegistry):
        with pytest.raises(QRCodeNotFound):
            registry.get("not-a-uuid")

    def test_update_scan_limit_and_expiry(self, registry: QRCodeRegistry, discount_code: QRCode):
        expires = datetime(2031, 5, 1)

        updated = registry.update(
            discount_code.id, {"scan_limit": 50, "expiration_date": expires}
        )

        assert updated.scan_limit == 50
        assert updated.expiration_date == expires
        assert updated.discount_percentage == Decimal("15.00")

    def test_update_revalidates(self, registry: QRCodeRegistry, discount_code: QRCode):
        with pytest.raises(InvalidConfig):
            registry.update(discount_code.id, {"discount_percentage": Decimal("150")})

        assert registry.get(discount_code.id).discount_percentage == Decimal("15.00")

    def test_update_rejects_sub_hundredth_percentage(self, registry: QRCodeRegistry, discount_code: QRCode):
        with pytest.raises(InvalidConfig):
            registry.update(discount_code.id, {"discount_percentage": "12.345"})

        assert registry.get(discount_code.id).discount_percentage == Decimal("15.00")

    def test_update_never_touches_counter(self, registry: QRCodeRegistry, loyalty_code: QRCode):
        registry.record_scan(loyalty_code.id)
        registry.db.commit()

        updated = registry.update(loyalty_code.id, {"current_scans": 0, "points_value": 75})

        assert updated.current_scans == 1
        assert updated.points_value == 75

    def test_list_for_business(self, registry: QRCodeRegistry, loyalty_code, discount_code):
        registry.create("biz-2", QRCodeType.INFO, {})
        registry.deactivate(discount_code.id)

        all_codes = registry.list_for_business("biz-1")
        active = registry.list_for_business("biz-1", active_only=True)

        assert {c.id for c in all_codes} == {loyalty_code.id, discount_code.id}
        assert [c.id for c in active] == [loyalty_code.id]


class TestQRCodeActivation:

    def test_deactivate_and_reactivate(self, registry: QRCodeRegistry, loyalty_code: QRCode):
        assert registry.deactivate(loyalty_code.id).is_active is False
        assert registry.reactivate(loyalty_code.id).is_active is True

    def test_deactivate_is_idempotent(self, registry: QRCodeRegistry, loyalty_code: QRCode):
        registry.deactivate(loyalty_code.id)
        again = registry.deactivate(loyalty_code.id)

        assert again.is_active is False

    def test_reactivate_active_code_is_noop(self, registry: QRCodeRegistry, loyalty_code: QRCode):
        assert registry.reactivate(loyalty_code.id).is_active is True


class TestRecordScan:

    def test_increments_counter(self, registry: QRCodeRegistry, discount_code: QRCode):
        assert registry.record_scan(discount_code.id) is True
        registry.db.commit()

        assert registry.get(discount_code.id).current_scans == 1

    def test_refuses_past_limit(self, registry: QRCodeRegistry, db_session):
        code = registry.create("biz-1", QRCodeType.LOYALTY, {"points_value": 1, "scan_limit": 2})

        results = [registry.record_scan(code.id) for _ in range(3)]
        db_session.commit()

        assert results == [True, True, False]
        assert registry.get(code.id).current_scans == 2

    def test_scan_limit_zero_never_refuses(self, registry: QRCodeRegistry, db_session):
        code = registry.create("biz-1", QRCodeType.LOYALTY, {"points_value": 1, "scan_limit": 0})
        db_session.query(QRCode).filter(QRCode.id == code.id).update(
            {"current_scans": 1_000_000}, synchronize_session=False
        )
        db_session.commit()

        assert registry.record_scan(code.id) is True
        db_session.commit()
        assert registry.get(code.id).current_scans == 1_000_001

    def test_refuses_inactive(self, registry: QRCodeRegistry, loyalty_code: QRCode):
        registry.deactivate(loyalty_code.id)

        assert registry.record_scan(loyalty_code.id) is False

    def test_refuses_expired(self, registry: QRCodeRegistry, db_session):
        now = datetime(2024, 1, 1, 12, 0)
        code = registry.create(
            "biz-1",
            QRCodeType.LOYALTY,
            {"points_value": 1, "expiration_date": now - timedelta(seconds=1)},
        )

        assert registry.record_scan(code.id, now) is False
        assert registry.record_scan(code.id, now - timedelta(seconds=2)) is True


class TestBusinessStats:

    def test_stats_across_codes(self, registry: QRCodeRegistry, db_session, loyalty_code, discount_code):
        registry.deactivate(discount_code.id)
        db_session.add_all(
            [
                QRScan(qr_code_id=loyalty_code.id, customer_id="c1", points_awarded=50),
                QRScan(qr_code_id=loyalty_code.id, customer_id="c2", points_awarded=50),
                QRScan(
                    qr_code_id=discount_code.id,
                    customer_id="c1",
                    discount_applied=Decimal("12.00"),
                    order_total=Decimal("80.00"),
                ),
            ]
        )
        db_session.commit()

        stats = registry.business_stats("biz-1")

        assert stats["total_codes"] == 2
        assert stats["active_codes"] == 1
        assert stats["total_scans"] == 3
        assert stats["total_points_awarded"] == 100
        assert stats["total_discount_applied"] == Decimal("12.00")

    def test_stats_for_unknown_business(self, registry: QRCodeRegistry):
        stats = registry.business_stats("nobody")

        assert stats["total_codes"] == 0
        assert stats["total_scans"] == 0
        assert stats["total_discount_applied"] == Decimal("0.00")

    def test_list_scans_newest_first(self, registry: QRCodeRegistry, db_session, loyalty_code):
        base = datetime(2024, 1, 1)
        for i in range(3):
            db_session.add(
                QRScan(
                    qr_code_id=loyalty_code.id,
                    customer_id=f"c{i}",
                    scanned_at=base + timedelta(minutes=i),
                )
            )
        db_session.commit()

        scans = registry.list_scans(loyalty_code.id, limit=2)

        assert [s.customer_id for s in scans] == ["c2", "c1"]
