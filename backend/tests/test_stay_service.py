"""
Stay, payment and shop service tests.

Verifies:
- Check-in opens a stay with a real initial entry and occupies the room
- Check-out closes the stay and sets room cleaning + pending flag
- Room history ordering and missing-field defaults
- Payments, extensions and shop purchases append ledger entries
- Flat payment ledger is cached until a write
"""

from datetime import datetime, timedelta

import pytest

from frontdesk.extensions import db
from frontdesk.models import PaymentEntry, Stay
from frontdesk.services import payment_service, shop_service, stay_service
from frontdesk.services.errors import NotFoundError
from frontdesk.services.reconciliation_service import EntryType
from frontdesk.validation import ConflictError, ValidationError


T0 = datetime(2025, 3, 5, 14, 30)


def _open_stay(room, **overrides):
    kwargs = dict(room_id=room.id, guest_name="Asha Rao", rent_cents=100000, checked_in_at=T0)
    kwargs.update(overrides)
    return stay_service.check_in(**kwargs)


# =============================================================================
# CHECK-IN
# =============================================================================


class TestCheckIn:

    def test_opens_stay_and_occupies_room(self, make_room):
        room = make_room(101)

        stay = _open_stay(room, phone_number="9876543210", mode="gpay")

        assert stay.is_checked_out is False
        assert stay.rent_cents == 100000
        assert room.status == "occupied"
        assert room.has_pending_payment is False

        entries = payment_service.list_payment_entries(stay.id)
        assert len(entries) == 1
        assert entries[0].entry_type == "initial"
        assert entries[0].mode == "gpay"
        assert entries[0].amount_cents == 100000
        assert entries[0].timestamp == T0

    def test_partial_initial_payment_flags_room(self, make_room):
        room = make_room(101)

        _open_stay(room, initial_amount_cents=40000)

        assert room.has_pending_payment is True

    def test_occupied_room_conflicts(self, make_room):
        room = make_room(101)
        _open_stay(room)

        with pytest.raises(ConflictError, match="already occupied"):
            _open_stay(room, guest_name="Second Guest")

    def test_maintenance_room_conflicts(self, make_room):
        room = make_room(101, status="maintenance")

        with pytest.raises(ConflictError):
            _open_stay(room)

    def test_missing_room(self, db_session):
        with pytest.raises(NotFoundError):
            stay_service.check_in(room_id=999, guest_name="Asha", rent_cents=100)

    @pytest.mark.parametrize("overrides", [
        {"guest_name": "  "},
        {"rent_cents": -5},
        {"rent_cents": 10.5},
        {"mode": "card"},
        {"initial_amount_cents": True},
    ])
    def test_invalid_input_rejected(self, make_room, overrides):
        room = make_room(101)
        with pytest.raises(ValidationError):
            _open_stay(room, **overrides)
        assert db.session.query(Stay).count() == 0


# =============================================================================
# CHECK-OUT
# =============================================================================


class TestCheckOut:

    def test_paid_in_full(self, make_room):
        room = make_room(101)
        stay = _open_stay(room)

        closed, result = stay_service.check_out(stay.id, checked_out_at=T0 + timedelta(days=1))

        assert closed.is_checked_out is True
        assert closed.checked_out_at == T0 + timedelta(days=1)
        assert result.pending_balance_cents == 0
        assert room.status == "cleaning"
        assert room.has_pending_payment is False

    def test_balance_due_sets_pending_flag(self, make_room):
        room = make_room(101)
        stay = _open_stay(room)
        payment_service.extend_stay(stay.id, amount_cents=50000, timestamp=T0 + timedelta(days=1))

        _, result = stay_service.check_out(stay.id)

        assert result.pending_balance_cents == 50000
        assert room.has_pending_payment is True

    def test_already_checked_out(self, make_room):
        room = make_room(101)
        stay = _open_stay(room)
        stay_service.check_out(stay.id)

        with pytest.raises(ConflictError):
            stay_service.check_out(stay.id)

    def test_room_can_be_let_again_after_checkout(self, make_room):
        room = make_room(101)
        first = _open_stay(room)
        stay_service.check_out(first.id)

        second = _open_stay(room, guest_name="Ravi Kumar", checked_in_at=T0 + timedelta(days=2))

        assert second.id != first.id
        assert room.status == "occupied"


# =============================================================================
# HISTORY
# =============================================================================


class TestRoomHistory:

    def test_only_checked_out_stays_most_recent_first(self, make_room, make_stay):
        room = make_room(101)
        older = make_stay(room, checked_in_at=T0)
        newer = make_stay(room, checked_in_at=T0 + timedelta(days=3))
        make_stay(room, checked_in_at=T0 + timedelta(days=5), is_checked_out=False)

        stays = stay_service.list_stays_for_room(room.id)

        assert [s.id for s in stays] == [newer.id, older.id]

    def test_stay_without_check_in_time_sorts_last(self, db_session, make_room, make_stay):
        room = make_room(101)
        dated = make_stay(room)
        undated = Stay(room_id=room.id, is_checked_out=True)
        db_session.add(undated)
        db_session.commit()

        stays = stay_service.list_stays_for_room(room.id)

        assert [s.id for s in stays] == [dated.id, undated.id]

    def test_missing_fields_use_defaults(self, db_session, make_room):
        room = make_room(101)
        stay = Stay(room_id=room.id, is_checked_out=True, checked_in_at=T0)
        db_session.add(stay)
        db_session.commit()

        data = stay_service.list_stays_for_room(room.id)[0].to_dict()

        assert data["guest_name"] == "Unknown Guest"
        assert data["phone_number"] == "N/A"
        assert data["rent_cents"] == 0

    def test_room_without_history(self, make_room):
        room = make_room(101)
        assert stay_service.list_stays_for_room(room.id) == []


# =============================================================================
# PAYMENTS, EXTENSIONS, SHOP PURCHASES
# =============================================================================


class TestPayments:

    def test_record_additional_payment(self, make_room):
        room = make_room(101)
        stay = _open_stay(room, initial_amount_cents=40000)

        entry = payment_service.record_payment(
            stay.id, amount_cents=60000, mode="cash", timestamp=T0 + timedelta(hours=2),
        )

        assert entry.entry_type == "advance"
        result = stay_service.reconcile_stay(stay.id)["reconciliation"]
        assert result.total_paid_cents == 100000
        assert result.pending_balance_cents == 0

    def test_second_initial_conflicts(self, make_room):
        room = make_room(101)
        stay = _open_stay(room)

        with pytest.raises(ConflictError):
            payment_service.record_payment(stay.id, amount_cents=100, mode="cash", entry_type="initial")

    @pytest.mark.parametrize("stored_type", ["Initial", " initial", "INITIAL "])
    def test_legacy_initial_spelling_blocks_second_initial(self, make_room, make_stay, add_entry, stored_type):
        stay = make_stay(make_room(101), is_checked_out=False)
        add_entry(stay, 40000, stored_type, timestamp=T0)

        with pytest.raises(ConflictError):
            payment_service.record_payment(stay.id, amount_cents=60000, mode="cash", entry_type="initial")

        result = stay_service.reconcile_stay(stay.id)["reconciliation"]
        assert result.total_paid_cents == 40000
        assert result.discarded_initial_entries == []
        assert len(payment_service.list_payment_entries(stay.id)) == 1

    def test_initial_allowed_when_none_stored(self, make_room, make_stay):
        room = make_room(101)
        stay = make_stay(room, is_checked_out=False)

        entry = payment_service.record_payment(stay.id, amount_cents=100, mode="cash", entry_type="initial")

        assert entry.entry_type == "initial"

    @pytest.mark.parametrize("kwargs", [
        {"amount_cents": 0, "mode": "cash"},
        {"amount_cents": 100, "mode": "cheque"},
        {"amount_cents": 100, "mode": "cash", "entry_type": "shop-purchase"},
    ])
    def test_invalid_payment_rejected(self, make_room, make_stay, kwargs):
        stay = make_stay(make_room(101), is_checked_out=False)
        with pytest.raises(ValidationError):
            payment_service.record_payment(stay.id, **kwargs)

    def test_extension_type_routes_to_extend_stay(self, make_room):
        room = make_room(101)
        stay = _open_stay(room)

        entry = payment_service.record_payment(stay.id, amount_cents=50000, mode="cash", entry_type="extension")

        assert entry.entry_type == "extension"
        assert entry.mode == "n/a"
        assert room.status == "extension"

    def test_extend_checked_out_stay_conflicts(self, make_room, make_stay):
        stay = make_stay(make_room(101))
        with pytest.raises(ConflictError):
            payment_service.extend_stay(stay.id, amount_cents=50000)

    def test_entries_listed_by_timestamp(self, make_room, make_stay, add_entry):
        stay = make_stay(make_room(101))
        late = add_entry(stay, 500, "advance", timestamp=T0 + timedelta(hours=5))
        early = add_entry(stay, 700, "advance", timestamp=T0 + timedelta(hours=1))

        entries = payment_service.list_payment_entries(stay.id)

        assert [e.id for e in entries] == [early.id, late.id]


class TestShopPurchases:

    def test_purchase_adds_negative_ledger_entry(self, make_room):
        room = make_room(101)
        stay = _open_stay(room)

        purchase = shop_service.record_shop_purchase(
            stay.id, item_name="Water bottle", quantity=2, amount_cents=4000,
            created_at=T0 + timedelta(hours=1),
        )

        assert purchase.payment_status == "pending"
        entry = (
            db.session.query(PaymentEntry)
            .filter(PaymentEntry.entry_type == EntryType.SHOP_PURCHASE.value)
            .one()
        )
        assert entry.amount_cents == -4000
        assert entry.description == "Water bottle x2"

        result = stay_service.reconcile_stay(stay.id)
        assert result["reconciliation"].total_rent_owed_cents == 104000
        assert result["reconciliation"].pending_balance_cents == 4000
        assert result["shop_purchase_total_cents"] == 4000

    @pytest.mark.parametrize("kwargs", [
        {"item_name": "", "quantity": 1, "amount_cents": 100},
        {"item_name": "Soap", "quantity": 0, "amount_cents": 100},
        {"item_name": "Soap", "quantity": 1, "amount_cents": 100, "payment_status": "refunded"},
    ])
    def test_invalid_purchase_rejected(self, make_room, make_stay, kwargs):
        stay = make_stay(make_room(101), is_checked_out=False)
        with pytest.raises(ValidationError):
            shop_service.record_shop_purchase(stay.id, **kwargs)

    def test_purchase_on_checked_out_stay_conflicts(self, make_room, make_stay):
        stay = make_stay(make_room(101))
        with pytest.raises(ConflictError):
            shop_service.record_shop_purchase(stay.id, item_name="Soap", quantity=1, amount_cents=100)


# =============================================================================
# RECONCILE / ALL PAYMENTS
# =============================================================================


class TestReconcileStay:

    def test_legacy_stay_without_entries(self, make_room, make_stay, add_purchase):
        stay = make_stay(make_room(101), rent_cents=80000)
        add_purchase(stay, amount_cents=2500)

        result = stay_service.reconcile_stay(stay.id)

        recon = result["reconciliation"]
        assert [t.entry_type for t in recon.transactions] == [EntryType.CHECK_IN_CHARGE, EntryType.INITIAL]
        assert recon.initial_payment.synthesized is True
        assert recon.pending_balance_cents == 0
        # purchases without a ledger entry are reported, not charged
        assert result["shop_purchase_total_cents"] == 2500

    def test_missing_stay(self, db_session):
        with pytest.raises(NotFoundError):
            stay_service.reconcile_stay(12345)


class TestAllPayments:

    def test_rows_carry_guest_and_room(self, make_room, make_stay, add_entry):
        room = make_room(204, floor="2")
        stay = make_stay(room, guest_name=None)
        add_entry(stay, 50000, "initial", timestamp=T0)
        add_entry(stay, 20000, "extension", mode="n/a", timestamp=T0 + timedelta(days=1))
        add_entry(stay, 5000, None, timestamp=T0 + timedelta(days=2))

        rows = payment_service.list_all_payments()

        assert [r["description"] for r in rows] == ["Initial payment", "Stay extension", "Additional payment"]
        assert rows[2]["type"] == "additional"
        assert all(r["customer_name"] == "Guest" for r in rows)
        assert all(r["room_number"] == 204 for r in rows)
        assert all(r["payment_status"] == "completed" for r in rows)

    def test_direct_payments_follow_stay_entries(self, make_room, make_stay, add_entry):
        stay = make_stay(make_room(101))
        add_entry(stay, 50000, "initial", timestamp=T0)

        payment_service.record_direct_payment(
            amount_cents=12000, mode="cash", room_number=305, payment_type="deposit",
            description="Key deposit", timestamp=T0 + timedelta(hours=1),
        )
        payment_service.record_direct_payment(amount_cents=3000, mode="gpay", timestamp=T0)

        rows = payment_service.list_all_payments()

        assert [r["source"] for r in rows] == ["stay", "direct", "direct"]
        # direct rows in timestamp order
        assert [r["amount_cents"] for r in rows[1:]] == [3000, 12000]
        assert rows[1]["customer_name"] == "Guest"
        assert rows[1]["type"] == "payment"
        assert rows[1]["description"] == "Payment"
        assert rows[2]["room_number"] == 305
        assert rows[2]["type"] == "deposit"
        assert rows[2]["description"] == "Key deposit"
        assert all(r["stay_id"] is None for r in rows[1:])

    def test_direct_payment_does_not_touch_stay_ledgers(self, make_room, make_stay):
        stay = make_stay(make_room(101), rent_cents=80000)

        payment_service.record_direct_payment(amount_cents=5000, mode="cash", room_number=101)

        recon = stay_service.reconcile_stay(stay.id)["reconciliation"]
        assert len(recon.transactions) == 2
        assert recon.total_paid_cents == 80000

    @pytest.mark.parametrize("kwargs", [
        {"amount_cents": 0, "mode": "cash"},
        {"amount_cents": 100, "mode": "n/a"},
        {"amount_cents": 100, "mode": "cash", "room_number": 0},
        {"amount_cents": 100, "mode": "cash", "room_number": True},
    ])
    def test_invalid_direct_payment_rejected(self, db_session, kwargs):
        with pytest.raises(ValidationError):
            payment_service.record_direct_payment(**kwargs)

    def test_cached_until_write(self, db_session, make_room):
        room = make_room(101)
        stay = _open_stay(room)
        first = payment_service.list_all_payments()
        assert len(first) == 1

        db_session.add(PaymentEntry(stay_id=stay.id, amount_cents=10, mode="cash", entry_type="advance", timestamp=T0))
        db_session.commit()
        assert payment_service.list_all_payments() is first

        payment_service.record_payment(stay.id, amount_cents=500, mode="gpay")
        assert len(payment_service.list_all_payments()) == 3
