"""
Offline console demo: walks a multi-property order from empty form to
confirmed bookings using the real duration, pricing, slot and
coordination code against an in-memory store.

Usage:
    python console_demo.py
    python console_demo.py --scenario conflict
    python console_demo.py --scenario month --month 2026-03
"""

import argparse
import sys

from shoot_scheduler.config import settings
from shoot_scheduler.order.coordinator import reconcile
from shoot_scheduler.order.draft import (
    AddProperty,
    AdvanceLifecycle,
    ApplyDiscount,
    BookingDraft,
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
from shoot_scheduler.order.lifecycle import OrderTrigger
from shoot_scheduler.schemas.booking_schema import DiscountCode, PropertyDraft
from shoot_scheduler.schemas.service_schema import ServiceSelection
from shoot_scheduler.tools.availability import month_overview, unavailable_dates
from shoot_scheduler.tools.booking import InMemoryBookingStore, build_booking_record, confirm_order
from shoot_scheduler.tools.discounts import DiscountRegistry
from shoot_scheduler.tools.pricing import order_line_items

GREEN = "\033[92m"
YELLOW = "\033[93m"
RED = "\033[91m"
DIM = "\033[2m"
RESET = "\033[0m"
BOLD = "\033[1m"

DEMO_DATE = "2026-03-02"  # a Monday


class ConsoleSession:
    """Scripted booking session printed to the terminal."""

    def __init__(self) -> None:
        self.store = InMemoryBookingStore()
        self.discounts = DiscountRegistry([DiscountCode(code="SPRING10", percentage=10)])
        self.draft: BookingDraft = new_draft()
        self._seed_existing_booking()

    def _seed_existing_booking(self) -> None:
        existing = PropertyDraft(
            id="seed",
            address="1 Marine Parade, Brighton",
            services=ServiceSelection(photography=True),
            preferred_date=DEMO_DATE,
            time_slot="12:00",
        )
        self.store.add_booking(build_booking_record(existing, self.draft.agent, "ORD-SEED"))
        self.log(f"Seeded a confirmed 40-minute shoot on {DEMO_DATE} at 12:00")

    def say(self, text: str) -> None:
        print(f"{GREEN}{text}{RESET}")

    def log(self, text: str) -> None:
        print(f"{DIM}  >> {text}{RESET}")

    def banner(self, title: str) -> None:
        print(f"\n{BOLD}{'=' * 60}{RESET}")
        print(f"{BOLD}  {title}{RESET}")
        print(f"{BOLD}{'=' * 60}{RESET}")

    def apply(self, action) -> None:
        self.draft = reduce(self.draft, action)
        self.draft, schedules = reconcile(self.draft, self.store)
        for pid, schedule in schedules.items():
            if schedule.cleared:
                print(f"{YELLOW}  Slot for {pid} no longer fits; please pick again.{RESET}")
            if schedule.conflicted:
                print(f"{RED}  {pid} has no remaining slot on its date.{RESET}")

    def show_slots(self, property_id: str) -> None:
        _, schedules = reconcile(self.draft, self.store)
        schedule = schedules.get(property_id)
        if schedule is None:
            self.log(f"{property_id}: no date chosen")
            return
        self.log(f"{property_id}: {', '.join(schedule.start_times) or 'no slots'}")

    def show_quote(self) -> None:
        items = order_line_items([(p.services, p.address) for p in self.draft.properties])
        for item in items:
            print(f"  {item.name:<48} {item.amount:>9.2f}")
        quote = draft_quote(self.draft)
        if quote.code_discount:
            print(f"  {'Discount (' + str(quote.discount_percentage) + '% off)':<48} "
                  f"{-quote.code_discount:>9.2f}")
        print(f"{BOLD}  {'Total (' + quote.currency + ')':<48} {quote.total:>9.2f}{RESET}")

    def run_scenario(self, scenario: str) -> None:
        if scenario == "booking":
            self._run_booking()
        elif scenario == "conflict":
            self._run_conflict()
        else:
            print(f"{RED}Unknown scenario: {scenario}{RESET}")

    def _fill_two_properties(self) -> tuple[str, str]:
        first = self.draft.properties[0].id
        self.apply(UpdateAgent({"name": "Sam Taylor", "email": "sam@example.com",
                                "phone": "01273 555 010"}))
        self.apply(EditDetails(first, address="14 Preston Road, Brighton"))
        self.apply(UpdateServices(first, {"photography": True, "photoCount": 24,
                                          "standardVideo": True, "standardVideoDrone": True,
                                          "bedrooms": 3}))
        self.apply(AddProperty("second"))
        self.apply(EditDetails("second", address="7 Church Lane, Hove"))
        self.apply(UpdateServices("second", {"agentPresentedVideo": True, "bedrooms": 3}))
        durations = property_durations(self.draft)
        self.log(f"Durations: {durations}")
        return first, "second"

    def _run_booking(self) -> None:
        self.banner(f"{settings.app_name} - two-property order")
        first, second = self._fill_two_properties()

        self.apply(SelectDate(first, DEMO_DATE))
        self.show_slots(first)
        self.apply(SelectSlot(first, "09:00"))

        self.apply(SelectDate(second, DEMO_DATE))
        self.show_slots(second)
        self.apply(SelectSlot(second, "14:00"))

        validation = self.discounts.validate_code("spring10")
        self.say(validation["message"])
        if validation.get("valid"):
            self.apply(ApplyDiscount(validation["code"], validation["percentage"]))

        self.show_quote()
        self._checkout()

    def _run_conflict(self) -> None:
        self.banner(f"{settings.app_name} - sibling conflict")
        first, second = self._fill_two_properties()

        self.apply(SelectDate(first, DEMO_DATE))
        self.apply(SelectSlot(first, "14:00"))
        self.apply(SelectDate(second, DEMO_DATE))
        self.apply(SelectSlot(second, "14:00"))
        self.show_slots(second)

        self.apply(SelectSlot(second, "09:00"))
        self.show_slots(first)
        self._checkout()

    def _checkout(self) -> None:
        self.draft = reduce(self.draft, AdvanceLifecycle(OrderTrigger.CHECKOUT_STARTED))
        result = confirm_order(
            self.draft.properties,
            self.draft.agent,
            self.store,
            self.draft.discount_code,
            self.draft.discount_percentage,
            discounts=self.discounts,
        )
        trigger = OrderTrigger.PAYMENT_CONFIRMED if result.success else OrderTrigger.SLOT_CONFLICT
        self.draft = reduce(self.draft, AdvanceLifecycle(trigger))
        self.say(result.message)
        for booking in result.bookings:
            self.log(f"{booking.address}: {booking.start_time}-{booking.end_time}, "
                     f"total {booking.total / 100:.2f}")
        self.log(f"Order status: {self.draft.status.value}")


def _print_month(month: str) -> None:
    store = InMemoryBookingStore()
    overview = month_overview(month, store)
    for day, status in overview.items():
        print(f"  {day}  {status.value}")
    print(f"  Unavailable: {unavailable_dates(month, store)}")


def main() -> None:
    parser = argparse.ArgumentParser(description="Run an offline booking demo.")
    parser.add_argument(
        "--scenario",
        choices=["booking", "conflict", "month"],
        default="booking",
        help="Scripted scenario to play.",
    )
    parser.add_argument(
        "--month",
        default=DEMO_DATE[:7],
        help="Month to render for the 'month' scenario (YYYY-MM).",
    )
    args = parser.parse_args()

    if args.scenario == "month":
        try:
            _print_month(args.month)
        except ValueError as exc:
            print(f"{RED}{exc}{RESET}")
            sys.exit(1)
        return

    ConsoleSession().run_scenario(args.scenario)


if __name__ == "__main__":
    main()
