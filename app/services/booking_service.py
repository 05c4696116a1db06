"""Booking lifecycle service.

Owns every write to a booking: creation, edits, state transitions, expiry
and purging. Each transition locks the booking row, re-checks the state
machine, applies the change together with its status log entry, and relies
on the ``version`` counter to reject concurrent writers.

Gate lookups (verification, payment) are made before any row lock is taken;
the lock is held only to apply the result.
"""

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta
from decimal import Decimal
from uuid import UUID

from sqlalchemy import delete, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.exc import StaleDataError

from app.config import settings
from app.core.exceptions import (
    ConflictingUpdate,
    InvalidInput,
    InvalidTransition,
    NotFoundError,
    SlotUnavailable,
)
from app.domain.booking_state import (
    DELETABLE_STATES,
    EDITABLE_STATES,
    EXPIRABLE_STATES,
    INITIAL_STATES,
    BookingStatus,
    assert_booking_transition,
)
from app.domain.pricing import (
    PriceBreakdown,
    PricingConfig,
    RentalType,
    calculate_base_from_total,
    calculate_extra_km_fee,
    calculate_price,
    calculate_rental_cost,
    calculate_tax,
    calculate_total,
    calculate_young_driver_surcharge,
    rental_days,
    rental_quantity,
    round2,
    validate_rental_quantity,
)
from app.gateways.base import PaymentGateway, VerificationGateway
from app.models.booking import Booking, BookingStatusLog
from app.models.types import as_utc, utcnow
from app.models.vehicle import Vehicle, VehicleStatus
from app.schemas.booking import (
    BookingCancelRequest,
    BookingCreate,
    BookingUpdate,
    CompleteTripRequest,
    StartTripRequest,
)
from app.services.availability_service import availability_service
from app.services.platform_service import platform_service
from app.services.vehicle_service import vehicle_service

logger = logging.getLogger(__name__)

# PostgreSQL exclusion constraint backing the availability check
OVERLAP_CONSTRAINT = "ex_bookings_vehicle_overlap"

EXPIRED_REASON = "Expired: not confirmed in time"


@dataclass
class BookingQuote:
    """Priced rental window for one vehicle."""

    rental_type: RentalType
    quantity: Decimal
    rental_cost: Decimal
    surcharge_amount: Decimal
    breakdown: PriceBreakdown
    tax_percentage: Decimal
    currency: str


def validate_booking_window(start: datetime, end: datetime, now: datetime) -> None:
    """Guard: rental window respects the booking policy.

    Raises:
        InvalidInput: On reversed dates, too short or too long rentals, a start
            in the past (beyond a small grace) or too far in the future
    """
    if end <= start:
        raise InvalidInput("End date must be after start date")

    duration = end - start
    if duration < timedelta(hours=settings.min_booking_hours):
        raise InvalidInput(f"Minimum rental duration is {settings.min_booking_hours} hours")
    if duration > timedelta(days=settings.max_booking_days):
        raise InvalidInput(f"Maximum rental duration is {settings.max_booking_days} days")

    if start < now - timedelta(minutes=settings.past_start_grace_minutes):
        raise InvalidInput("Start date cannot be in the past")
    if start > now + timedelta(days=settings.max_advance_booking_days):
        raise InvalidInput(
            f"Bookings can be made at most {settings.max_advance_booking_days} days in advance"
        )


def validate_guest_contact(
    renter_id: UUID | None,
    guest_name: str | None,
    guest_phone: str | None,
    guest_email: str | None,
) -> None:
    """Guard: a booking without a renter account needs guest contact details."""
    if renter_id is not None:
        return
    if not guest_name or not guest_name.strip():
        raise InvalidInput("Guest name is required for bookings without a renter")
    if not guest_phone and not guest_email:
        raise InvalidInput("Guest phone or email is required for bookings without a renter")


class BookingService:
    """Service for booking lifecycle operations."""

    # ============ Lookups ============

    async def get_booking(self, db: AsyncSession, booking_id: UUID) -> Booking:
        result = await db.execute(select(Booking).where(Booking.id == booking_id))
        booking = result.scalar_one_or_none()
        if not booking:
            raise NotFoundError("Booking", str(booking_id))
        return booking

    async def list_bookings(
        self,
        db: AsyncSession,
        vehicle_id: UUID | None = None,
        renter_id: UUID | None = None,
        status: BookingStatus | None = None,
        page: int = 1,
        page_size: int = 20,
    ) -> tuple[list[Booking], int]:
        """List bookings, newest rental window first.

        Returns:
            Tuple of (bookings on the requested page, total matching count)
        """
        query = select(Booking)
        if vehicle_id is not None:
            query = query.where(Booking.vehicle_id == vehicle_id)
        if renter_id is not None:
            query = query.where(Booking.renter_id == renter_id)
        if status is not None:
            query = query.where(Booking.status == status)

        count_result = await db.execute(select(func.count()).select_from(query.subquery()))
        total = count_result.scalar_one()

        offset = (page - 1) * page_size
        result = await db.execute(
            query.order_by(Booking.start_date.desc()).offset(offset).limit(page_size)
        )
        return list(result.scalars().all()), total

    async def get_status_history(self, db: AsyncSession, booking_id: UUID) -> list[BookingStatusLog]:
        await self.get_booking(db, booking_id)
        result = await db.execute(
            select(BookingStatusLog)
            .where(BookingStatusLog.booking_id == booking_id)
            .order_by(BookingStatusLog.created_at)
        )
        return list(result.scalars().all())

    # ============ Pricing ============

    async def calculate_quote(
        self,
        db: AsyncSession,
        vehicle: Vehicle,
        start: datetime,
        end: datetime,
        rental_type: RentalType = RentalType.DAY,
        estimated_km: Decimal | None = None,
        driver_age: int | None = None,
        config: PricingConfig | None = None,
    ) -> BookingQuote:
        """Price a rental from the vehicle's rate card and current platform settings.

        Args:
            db: Database session
            vehicle: Vehicle being rented
            start: Rental start
            end: Rental end
            rental_type: Billing mode (DAY bills whole days, HOUR whole hours)
            estimated_km: Expected distance, required for KM rentals
            driver_age: Age of the main driver, for the young-driver surcharge
            config: Pricing settings snapshot; read from the store when omitted

        Returns:
            BookingQuote with quantity, surcharge and tax-inclusive breakdown
        """
        if config is None:
            config = await platform_service.pricing_config(db)

        quantity = rental_quantity(rental_type, start, end, estimated_km)
        validate_rental_quantity(rental_type, quantity)
        rental_cost = calculate_rental_cost(rental_type, quantity, vehicle.rate_card, vehicle.id)
        surcharge = calculate_young_driver_surcharge(driver_age, config)

        return BookingQuote(
            rental_type=rental_type,
            quantity=quantity,
            rental_cost=rental_cost,
            surcharge_amount=surcharge,
            breakdown=calculate_price(rental_cost + surcharge, config.tax_percentage),
            tax_percentage=config.tax_percentage,
            currency=config.currency,
        )

    async def _price_booking(
        self,
        db: AsyncSession,
        vehicle: Vehicle,
        start: datetime,
        end: datetime,
        rental_type: RentalType,
        estimated_km: Decimal | None,
        driver_age: int | None,
        base_price: Decimal | None,
        total_price: Decimal | None,
    ) -> tuple[PriceBreakdown, Decimal, PricingConfig]:
        """Explicit prices win over the rate card; base wins over total."""
        config = await platform_service.pricing_config(db)

        if base_price is not None:
            return calculate_price(base_price, config.tax_percentage), Decimal("0.00"), config
        if total_price is not None:
            return calculate_base_from_total(total_price, config.tax_percentage), Decimal("0.00"), config

        quote = await self.calculate_quote(
            db, vehicle, start, end, rental_type, estimated_km, driver_age, config=config
        )
        return quote.breakdown, quote.surcharge_amount, config

    # ============ Persistence helpers ============

    async def _lock_booking(
        self,
        db: AsyncSession,
        booking_id: UUID,
        expected_version: int | None = None,
    ) -> Booking:
        """Load a booking with its row lock held until commit.

        Raises:
            NotFoundError: If the booking does not exist
            ConflictingUpdate: If the caller's version is stale
        """
        result = await db.execute(
            select(Booking)
            .where(Booking.id == booking_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        booking = result.scalar_one_or_none()
        if not booking:
            raise NotFoundError("Booking", str(booking_id))

        if expected_version is not None and booking.version != expected_version:
            logger.warning(
                f"Stale write on booking {booking.id}: expected version {expected_version}, "
                f"found {booking.version}"
            )
            raise ConflictingUpdate(booking.id, expected_version, booking.version)
        return booking

    async def _flush(self, db: AsyncSession, booking: Booking) -> None:
        """Flush pending changes, mapping store races to domain errors."""
        booking_id = booking.id
        vehicle_id = booking.vehicle_id
        start, end = booking.start_date, booking.end_date

        try:
            await db.flush()
        except StaleDataError:
            logger.warning(f"Concurrent update lost on booking {booking_id}")
            raise ConflictingUpdate(booking_id) from None
        except IntegrityError as e:
            if OVERLAP_CONSTRAINT in str(e.orig):
                logger.warning(f"Overlap constraint rejected booking {booking_id} on vehicle {vehicle_id}")
                raise SlotUnavailable(vehicle_id, start=start, end=end) from None
            logger.error(f"Integrity error writing booking {booking_id}: {e.orig}")
            raise

    def _log_transition(
        self,
        db: AsyncSession,
        booking: Booking,
        from_status: BookingStatus | None,
        to_status: BookingStatus,
        actor: str,
        note: str | None = None,
    ) -> None:
        db.add(
            BookingStatusLog(
                booking_id=booking.id,
                from_status=from_status.value if from_status else None,
                to_status=to_status.value,
                actor=actor,
                note=note,
            )
        )
        source = from_status.value if from_status else "new"
        logger.info(f"Booking {booking.id}: {source} → {to_status.value} (by {actor})")

    # ============ Create / edit / delete ============

    async def create_booking(
        self,
        db: AsyncSession,
        data: BookingCreate,
        actor: str = "admin",
        now: datetime | None = None,
    ) -> Booking:
        """Create a booking after validation, availability and pricing.

        The vehicle row is locked for the check-then-insert so two requests
        for the same vehicle are serialized.

        Raises:
            InvalidInput: On policy violations or bad prices
            NotFoundError: If the vehicle does not exist
            SlotUnavailable: If the vehicle is blocked or already booked
            RateUnavailable: If the vehicle does not offer the rental type
        """
        now = now or utcnow()
        start, end = as_utc(data.start_date), as_utc(data.end_date)

        if data.initial_status not in INITIAL_STATES:
            raise InvalidInput(
                f"Bookings must start as DRAFT or PENDING, not {data.initial_status.value}"
            )
        validate_booking_window(start, end, now)
        validate_guest_contact(data.renter_id, data.guest_name, data.guest_phone, data.guest_email)

        vehicle = await vehicle_service.get_vehicle(db, data.vehicle_id, lock=True)
        if not vehicle.is_available:
            raise SlotUnavailable(
                vehicle.id,
                start=start,
                end=end,
                detail=f"Vehicle {vehicle.id} is not accepting bookings",
            )
        await availability_service.assert_available(db, vehicle.id, start, end)

        breakdown, surcharge, config = await self._price_booking(
            db,
            vehicle,
            start,
            end,
            data.rental_type,
            data.estimated_km,
            data.driver_age,
            data.base_price,
            data.total_price,
        )

        status = data.initial_status
        booking = Booking(
            id=uuid.uuid4(),
            vehicle_id=vehicle.id,
            renter_id=data.renter_id,
            guest_name=data.guest_name,
            guest_phone=data.guest_phone,
            guest_email=data.guest_email,
            driver_age=data.driver_age,
            start_date=start,
            end_date=end,
            rental_type=data.rental_type,
            estimated_km=data.estimated_km,
            base_price=breakdown.base_price,
            surcharge_amount=surcharge,
            tax_amount=breakdown.tax_amount,
            total_price=breakdown.total_price,
            deposit_amount=vehicle.deposit_amount or Decimal("0.00"),
            currency=config.currency,
            price_override=data.base_price is not None or data.total_price is not None,
            status=status,
            expires_at=(
                now + timedelta(hours=settings.booking_expiry_hours)
                if status in EXPIRABLE_STATES
                else None
            ),
            pickup_notes=data.pickup_notes,
        )
        db.add(booking)
        self._log_transition(db, booking, None, status, actor, note="created")
        await self._flush(db, booking)

        logger.info(
            f"Booking {booking.id} created on vehicle {vehicle.id}: "
            f"{start.isoformat()} - {end.isoformat()}, total {booking.total_price} {booking.currency}"
        )
        return booking

    async def update_booking(
        self,
        db: AsyncSession,
        booking_id: UUID,
        data: BookingUpdate,
        actor: str = "admin",
        now: datetime | None = None,
    ) -> Booking:
        """Edit a DRAFT or PENDING booking; moved dates are re-checked and re-priced.

        A price entered by hand is kept until a new one is sent; rate-card
        prices follow the dates, driver age and estimated distance.
        """
        now = now or utcnow()
        booking = await self._lock_booking(db, booking_id, data.expected_version)
        if booking.status not in EDITABLE_STATES:
            raise InvalidInput(
                f"Only DRAFT or PENDING bookings can be edited; booking is {booking.status.value}"
            )

        changes = data.model_dump(exclude_unset=True, exclude={"expected_version"})
        start = as_utc(changes.get("start_date")) or booking.start_date
        end = as_utc(changes.get("end_date")) or booking.end_date
        dates_changed = start != booking.start_date or end != booking.end_date

        vehicle = await vehicle_service.get_vehicle(db, booking.vehicle_id, lock=dates_changed)
        if dates_changed:
            validate_booking_window(start, end, now)
            await availability_service.assert_available(
                db, vehicle.id, start, end, exclude_booking_id=booking.id
            )

        guest_name = changes.get("guest_name", booking.guest_name)
        guest_phone = changes.get("guest_phone", booking.guest_phone)
        guest_email = changes.get("guest_email", booking.guest_email)
        validate_guest_contact(booking.renter_id, guest_name, guest_phone, guest_email)

        driver_age = changes.get("driver_age", booking.driver_age)
        estimated_km = data.estimated_km if data.estimated_km is not None else booking.estimated_km
        explicit_price = data.base_price is not None or data.total_price is not None
        reprice = explicit_price or (
            not booking.price_override
            and (
                "driver_age" in changes
                or data.estimated_km is not None
                or (dates_changed and booking.rental_type != RentalType.KM)
            )
        )
        if reprice:
            breakdown, surcharge, _ = await self._price_booking(
                db,
                vehicle,
                start,
                end,
                booking.rental_type,
                estimated_km,
                driver_age,
                data.base_price,
                data.total_price,
            )
            booking.base_price = breakdown.base_price
            booking.tax_amount = breakdown.tax_amount
            booking.total_price = breakdown.total_price
            booking.surcharge_amount = surcharge
            if explicit_price:
                booking.price_override = True

        booking.start_date = start
        booking.end_date = end
        booking.guest_name = guest_name
        booking.guest_phone = guest_phone
        booking.guest_email = guest_email
        booking.driver_age = driver_age
        booking.estimated_km = estimated_km
        if "pickup_notes" in changes:
            booking.pickup_notes = changes["pickup_notes"]

        await self._flush(db, booking)
        logger.info(f"Booking {booking.id} updated by {actor}: {', '.join(sorted(changes)) or 'no changes'}")
        return booking

    async def delete_booking(self, db: AsyncSession, booking_id: UUID) -> None:
        """Delete a DRAFT or CANCELLED booking along with its status history."""
        booking = await self._lock_booking(db, booking_id)
        if booking.status not in DELETABLE_STATES:
            raise InvalidInput(
                f"Only DRAFT or CANCELLED bookings can be deleted; booking is {booking.status.value}"
            )

        await db.execute(delete(BookingStatusLog).where(BookingStatusLog.booking_id == booking.id))
        await db.delete(booking)
        await self._flush(db, booking)
        logger.info(f"Booking {booking_id} deleted")

    # ============ Transitions ============

    async def confirm_reservation(
        self,
        db: AsyncSession,
        booking_id: UUID,
        expected_version: int | None = None,
        actor: str = "customer",
        now: datetime | None = None,
    ) -> Booking:
        """DRAFT → PENDING: the customer commits; the expiry clock starts."""
        now = now or utcnow()
        booking = await self._lock_booking(db, booking_id, expected_version)
        assert_booking_transition(booking.status, BookingStatus.PENDING, booking.id)

        previous = booking.status
        booking.status = BookingStatus.PENDING
        booking.expires_at = now + timedelta(hours=settings.booking_expiry_hours)

        self._log_transition(db, booking, previous, BookingStatus.PENDING, actor)
        await self._flush(db, booking)
        return booking

    async def verify_booking(
        self,
        db: AsyncSession,
        booking_id: UUID,
        gateway: VerificationGateway,
        expected_version: int | None = None,
        actor: str = "admin",
        now: datetime | None = None,
    ) -> Booking:
        """DRAFT/PENDING → VERIFIED once the renter's documents are approved.

        Guests are verified by booking ID, registered renters by renter ID.

        Raises:
            InvalidTransition: If the booking is not awaiting verification or
                the verification gate does not report APPROVED
        """
        now = now or utcnow()
        booking = await self.get_booking(db, booking_id)
        assert_booking_transition(booking.status, BookingStatus.VERIFIED, booking.id)

        subject_id = booking.renter_id or booking.id
        verification = await gateway.get_verification_status(subject_id)
        if not verification.approved:
            reason = f"verification is {verification.status.value}"
            if verification.reason:
                reason = f"{reason} ({verification.reason})"
            logger.warning(f"Verification refused for booking {booking.id}: {reason}")
            raise InvalidTransition(
                booking.status.value, BookingStatus.VERIFIED.value, booking.id, reason=reason
            )

        booking = await self._lock_booking(db, booking_id, expected_version)
        assert_booking_transition(booking.status, BookingStatus.VERIFIED, booking.id)

        previous = booking.status
        booking.status = BookingStatus.VERIFIED
        if booking.expires_at is None:
            booking.expires_at = now + timedelta(hours=settings.booking_expiry_hours)

        self._log_transition(db, booking, previous, BookingStatus.VERIFIED, actor)
        await self._flush(db, booking)
        return booking

    async def confirm_payment(
        self,
        db: AsyncSession,
        booking_id: UUID,
        gateway: PaymentGateway,
        expected_version: int | None = None,
        actor: str = "system",
        now: datetime | None = None,
    ) -> Booking:
        """VERIFIED → CONFIRMED once the payment gate reports settlement.

        Raises:
            InvalidTransition: If the booking is not VERIFIED or the charge has
                not settled
        """
        now = now or utcnow()
        booking = await self.get_booking(db, booking_id)
        assert_booking_transition(booking.status, BookingStatus.CONFIRMED, booking.id)

        settlement = await gateway.get_settlement_status(booking.id)
        if not settlement.settled:
            reason = "payment not settled"
            if settlement.error_message:
                reason = f"{reason} ({settlement.error_message})"
            logger.warning(f"Payment refused for booking {booking.id}: {reason}")
            raise InvalidTransition(
                booking.status.value, BookingStatus.CONFIRMED.value, booking.id, reason=reason
            )

        booking = await self._lock_booking(db, booking_id, expected_version)
        assert_booking_transition(booking.status, BookingStatus.CONFIRMED, booking.id)

        previous = booking.status
        booking.status = BookingStatus.CONFIRMED
        booking.confirmed_at = now
        booking.expires_at = None

        self._log_transition(
            db,
            booking,
            previous,
            BookingStatus.CONFIRMED,
            actor,
            note=f"transaction {settlement.transaction_id}" if settlement.transaction_id else None,
        )
        await self._flush(db, booking)
        return booking

    async def start_trip(
        self,
        db: AsyncSession,
        booking_id: UUID,
        data: StartTripRequest,
        now: datetime | None = None,
    ) -> Booking:
        """CONFIRMED → ONGOING: hand the vehicle over.

        Booking status, pickup odometer and the vehicle's fleet status change
        in one transaction.
        """
        now = now or utcnow()
        booking = await self._lock_booking(db, booking_id, data.expected_version)
        assert_booking_transition(booking.status, BookingStatus.ONGOING, booking.id)

        earliest = booking.start_date - timedelta(minutes=settings.trip_start_grace_minutes)
        if now < earliest:
            raise InvalidTransition(
                booking.status.value,
                BookingStatus.ONGOING.value,
                booking.id,
                reason=f"trip cannot start before {earliest.isoformat()}",
            )

        vehicle = await vehicle_service.get_vehicle(db, booking.vehicle_id, lock=True)
        if vehicle.status != VehicleStatus.AVAILABLE:
            raise SlotUnavailable(
                vehicle.id,
                detail=f"Vehicle {vehicle.id} is {vehicle.status.value} and cannot be handed over",
            )
        if data.start_odometer < (vehicle.current_odometer or 0):
            raise InvalidInput(
                f"Start odometer {data.start_odometer} is below the vehicle's recorded "
                f"{vehicle.current_odometer}"
            )

        previous = booking.status
        booking.status = BookingStatus.ONGOING
        booking.started_at = now
        booking.start_odometer = data.start_odometer
        if data.pickup_notes is not None:
            booking.pickup_notes = data.pickup_notes
        vehicle_service.mark_rented(vehicle)

        self._log_transition(db, booking, previous, BookingStatus.ONGOING, data.actor)
        await self._flush(db, booking)
        return booking

    async def complete_trip(
        self,
        db: AsyncSession,
        booking_id: UUID,
        data: CompleteTripRequest,
        now: datetime | None = None,
    ) -> Booking:
        """ONGOING → COMPLETED: take the vehicle back and settle fees.

        Extra kilometres beyond the daily allowance and any damage fee are
        added to the base price and taxed; KM rentals are re-billed on the
        distance actually driven. The vehicle goes to MAINTENANCE.
        """
        now = now or utcnow()
        booking = await self._lock_booking(db, booking_id, data.expected_version)
        assert_booking_transition(booking.status, BookingStatus.COMPLETED, booking.id)

        start_odometer = booking.start_odometer
        if start_odometer is not None and data.end_odometer < start_odometer:
            raise InvalidInput(
                f"End odometer {data.end_odometer} is below start odometer {start_odometer}"
            )

        vehicle = await vehicle_service.get_vehicle(db, booking.vehicle_id, lock=True)
        config = await platform_service.pricing_config(db)
        distance = data.end_odometer - start_odometer if start_odometer is not None else Decimal("0")

        rental_base = Decimal(booking.base_price)
        rental_tax = Decimal(booking.tax_amount)
        extra_km_fee = Decimal("0.00")
        if booking.rental_type == RentalType.KM:
            if distance > 0 and vehicle.rate_card.rate_for(RentalType.KM) is not None:
                actual_cost = calculate_rental_cost(RentalType.KM, distance, vehicle.rate_card, vehicle.id)
                actual = calculate_price(actual_cost + booking.surcharge_amount, config.tax_percentage)
                rental_base, rental_tax = actual.base_price, actual.tax_amount
        else:
            extra_km_fee = calculate_extra_km_fee(
                distance,
                rental_days(booking.start_date, booking.end_date),
                vehicle.daily_km_limit,
                vehicle.extra_km_charge,
            )

        damage_fee = round2(data.damage_fee)
        fees = extra_km_fee + damage_fee
        booking.base_price = round2(rental_base + fees)
        booking.tax_amount = round2(rental_tax + calculate_tax(fees, config.tax_percentage))
        booking.total_price = calculate_total(booking.base_price, booking.tax_amount)

        previous = booking.status
        booking.status = BookingStatus.COMPLETED
        booking.completed_at = now
        booking.end_odometer = data.end_odometer
        booking.extra_km_fee = extra_km_fee
        booking.damage_fee = damage_fee
        if data.return_notes is not None:
            booking.return_notes = data.return_notes
        vehicle_service.mark_returned(vehicle, data.end_odometer)

        note = None
        if fees > 0:
            note = f"fees: extra km {extra_km_fee}, damage {damage_fee}"
        self._log_transition(db, booking, previous, BookingStatus.COMPLETED, data.actor, note=note)
        await self._flush(db, booking)
        return booking

    async def cancel_booking(
        self,
        db: AsyncSession,
        booking_id: UUID,
        data: BookingCancelRequest,
        now: datetime | None = None,
    ) -> Booking:
        """Any non-terminal state → CANCELLED; frees the vehicle's calendar."""
        now = now or utcnow()
        booking = await self._lock_booking(db, booking_id, data.expected_version)
        assert_booking_transition(booking.status, BookingStatus.CANCELLED, booking.id)

        previous = booking.status
        booking.status = BookingStatus.CANCELLED
        booking.cancelled_at = now
        booking.cancellation_reason = data.reason
        booking.expires_at = None

        # Vehicle was already handed over; it comes back through maintenance
        if previous == BookingStatus.ONGOING:
            vehicle = await vehicle_service.get_vehicle(db, booking.vehicle_id, lock=True)
            vehicle_service.mark_returned(vehicle)

        self._log_transition(db, booking, previous, BookingStatus.CANCELLED, data.actor, note=data.reason)
        await self._flush(db, booking)
        return booking

    # ============ Maintenance jobs ============

    async def expire_stale_bookings(self, db: AsyncSession, now: datetime | None = None) -> int:
        """Cancel PENDING/VERIFIED bookings whose confirmation window has passed.

        Returns:
            Number of bookings expired
        """
        now = now or utcnow()
        result = await db.execute(
            select(Booking)
            .where(
                Booking.status.in_(list(EXPIRABLE_STATES)),
                Booking.expires_at.is_not(None),
                Booking.expires_at <= now,
            )
            .with_for_update(skip_locked=True)
            .execution_options(populate_existing=True)
        )
        bookings = list(result.scalars().all())

        for booking in bookings:
            previous = booking.status
            booking.status = BookingStatus.CANCELLED
            booking.cancelled_at = now
            booking.cancellation_reason = EXPIRED_REASON
            booking.expires_at = None
            self._log_transition(db, booking, previous, BookingStatus.CANCELLED, "system", note="expired")

        if bookings:
            await db.flush()
            logger.info(f"Expired {len(bookings)} stale booking(s)")
        return len(bookings)

    async def purge_completed_bookings(
        self,
        db: AsyncSession,
        days_old: int | None = None,
        now: datetime | None = None,
    ) -> int:
        """Delete COMPLETED bookings not touched for ``days_old`` days.

        Returns:
            Number of bookings deleted
        """
        now = now or utcnow()
        days_old = days_old if days_old is not None else settings.completed_booking_retention_days
        cutoff = now - timedelta(days=days_old)

        result = await db.execute(
            select(Booking.id).where(
                Booking.status == BookingStatus.COMPLETED,
                Booking.updated_at < cutoff,
            )
        )
        booking_ids = list(result.scalars().all())
        if not booking_ids:
            return 0

        await db.execute(delete(BookingStatusLog).where(BookingStatusLog.booking_id.in_(booking_ids)))
        await db.execute(delete(Booking).where(Booking.id.in_(booking_ids)))
        logger.info(f"Purged {len(booking_ids)} completed booking(s) older than {days_old} days")
        return len(booking_ids)


booking_service = BookingService()
