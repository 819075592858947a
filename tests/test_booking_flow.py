"""Integration tests: draft reducer + coordinator + pricing + store together."""

from decimal import Decimal

from shoot_scheduler.order.coordinator import reconcile
from shoot_scheduler.order.draft import (
    AddProperty,
    AdvanceLifecycle,
    ApplyDiscount,
    EditDetails,
    SelectDate,
    SelectSlot,
    UpdateAgent,
    UpdateServices,
    draft_quote,
    new_draft,
    property_durations,
    reduce,
)
from shoot_scheduler.order.lifecycle import OrderState, OrderTrigger
from shoot_scheduler.schemas.booking_schema import DiscountCode
from shoot_scheduler.tools.availability import check_availability
from shoot_scheduler.tools.booking import confirm_order
from shoot_scheduler.tools.discounts import DiscountRegistry
from shoot_scheduler.tools.duration import duration_minutes
from shoot_scheduler.tools.pricing import price
from tests.conftest import MONDAY, make_record, make_selection


class TestScenarios:
    def test_photography_only_duration(self):
        assert duration_minutes(make_selection(photography=True, photoCount=20)) == 40

    def test_presented_video_with_drone_duration(self):
        selection = make_selection(
            agentPresentedVideo=True, agentPresentedVideoDrone=True, bedrooms=3
        )
        assert duration_minutes(selection) == 115 + 25

    def test_booking_blocks_its_neighbourhood(self, store):
        store.add_booking(make_record(MONDAY, "12:00", "13:00"))
        result = check_availability(MONDAY, 60, store)
        assert not any(660 <= slot.start < 780 for slot in result.slots)

    def test_siblings_requesting_same_slot(self, store, draft):
        first = draft.properties[0].id
        draft = reduce(draft, AddProperty("second"))
        for pid in (first, "second"):
            draft = reduce(draft, UpdateServices(pid, {"photography": True, "photoCount": 24}))
            draft = reduce(draft, SelectDate(pid, MONDAY))
            draft = reduce(draft, SelectSlot(pid, "13:00"))

        draft, schedules = reconcile(draft, store)

        second_starts = schedules["second"].start_times
        assert "13:00" not in second_starts
        assert not any("12:00" <= start <= "14:00" for start in second_starts)
        assert draft.get_property(first).time_slot == "13:00"
        assert draft.get_property("second").time_slot is None

    def test_full_bundle_price_sums_line_items(self):
        selection = make_selection(
            photography=True,
            photoCount=30,
            dronePhotography=True,
            dronePhotoCount=8,
            standardVideo=True,
            standardVideoDrone=True,
            bedrooms=3,
        )
        assert price(selection) == Decimal("460")


class TestFullOrderFlow:
    """Simulate an agent filling the form through to confirmed bookings."""

    def _fill(self, draft, store):
        first = draft.properties[0].id
        draft = reduce(draft, UpdateAgent({"name": "Sam Taylor", "email": "sam@example.com"}))
        draft = reduce(draft, EditDetails(first, address="14 Preston Road", postcode="BN1 6AA"))
        draft = reduce(draft, UpdateServices(first, {"photography": True, "photoCount": 24}))
        draft = reduce(draft, AddProperty("second"))
        draft = reduce(draft, EditDetails("second", address="7 Church Lane"))
        draft = reduce(draft, UpdateServices("second", {"agentPresentedVideo": True, "bedrooms": 3}))
        draft = reduce(draft, SelectDate(first, MONDAY))
        draft = reduce(draft, SelectSlot(first, "09:00"))
        draft = reduce(draft, SelectDate("second", MONDAY))
        draft = reduce(draft, SelectSlot("second", "14:00"))
        draft, schedules = reconcile(draft, store)
        assert not any(s.cleared or s.conflicted for s in schedules.values())
        return draft

    def test_happy_path(self, store):
        codes = DiscountRegistry([DiscountCode(code="SPRING10", percentage=10)])
        draft = self._fill(new_draft(), store)

        assert property_durations(draft) == {draft.properties[0].id: 60, "second": 115}

        validation = codes.validate_code("spring10")
        draft = reduce(draft, ApplyDiscount(validation["code"], validation["percentage"]))
        quote = draft_quote(draft)
        assert quote.subtotal == Decimal("331")
        assert quote.multi_property_discount == Decimal("15")
        assert quote.code_discount == Decimal("31.60")
        assert quote.total == Decimal("284.40")

        draft = reduce(draft, AdvanceLifecycle(OrderTrigger.CHECKOUT_STARTED))
        result = confirm_order(
            draft.properties, draft.agent, store,
            draft.discount_code, draft.discount_percentage, discounts=codes,
        )
        assert result.success
        draft = reduce(draft, AdvanceLifecycle(OrderTrigger.PAYMENT_CONFIRMED))

        assert draft.status == OrderState.CONFIRMED
        assert [(b.start_time, b.end_time) for b in result.bookings] == [
            ("09:00", "10:00"),
            ("14:00", "15:55"),
        ]
        assert codes.get("SPRING10").times_used == 1

    def test_slot_taken_during_checkout(self, store):
        draft = self._fill(new_draft(), store)
        draft = reduce(draft, AdvanceLifecycle(OrderTrigger.CHECKOUT_STARTED))

        # another order takes the afternoon while this one is paying
        store.add_booking(make_record(MONDAY, "14:30", "15:30", order_ref="ORD-OTHER"))

        result = confirm_order(draft.properties, draft.agent, store)
        assert not result.success
        assert [c.property_id for c in result.conflicts] == ["second"]

        draft = reduce(draft, AdvanceLifecycle(OrderTrigger.SLOT_CONFLICT))
        assert draft.status == OrderState.RESELECT_SLOT

        retry = check_availability(MONDAY, property_durations(draft)["second"], store)
        new_start = retry.slots[-1].start_time
        draft = reduce(draft, SelectSlot("second", new_start))
        draft = reduce(draft, AdvanceLifecycle(OrderTrigger.SLOT_RESELECTED))

        pending = [p for p in draft.properties if p.id == "second"]
        result = confirm_order(pending, draft.agent, store, order_ref=result.order_ref)
        assert result.success
        draft = reduce(draft, AdvanceLifecycle(OrderTrigger.PAYMENT_CONFIRMED))
        assert draft.status == OrderState.CONFIRMED
        assert len(store.get_confirmed_bookings(MONDAY)) == 3
