"""Repository layer responsible for all database access."""

from __future__ import annotations

import json
import sqlite3
from datetime import date, datetime, timezone
from decimal import Decimal
from pathlib import Path
from typing import Any, Iterable, Optional

from booking_engine.domain.models import (
    Booking,
    BookingStatus,
    CancellationReason,
    CancellationRecord,
    Capacity,
    DateInterval,
    DateRange,
    GuestContact,
    GuestCounts,
    HotelPolicy,
    IntervalReason,
    IntervalSet,
    NightlyRate,
    PaymentMethod,
    PaymentState,
    PaymentStatus,
    PricingBreakdown,
    RefundPolicy,
    Room,
    RoomStatus,
    SeasonalRule,
)
from booking_engine.utils.config import Settings, get_settings
from booking_engine.utils.logger import get_logger


logger = get_logger(__name__)


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value is not None else None


def _utc_iso(value: datetime) -> str:
    """Stored timestamps are UTC ISO strings; naive filters are read as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc).isoformat()
    return value.astimezone(timezone.utc).isoformat()


def _parse_datetime(value: Optional[str]) -> Optional[datetime]:
    return datetime.fromisoformat(value) if value else None


def _pricing_to_json(pricing: PricingBreakdown) -> str:
    return json.dumps(
        {
            "currency": pricing.currency,
            "nights": pricing.nights,
            "nightly_rates": [
                {"date": item.date.isoformat(), "rate": str(item.rate)}
                for item in pricing.nightly_rates
            ],
            "base_amount": str(pricing.base_amount),
            "discount_amount": str(pricing.discount_amount),
            "subtotal": str(pricing.subtotal),
            "taxes_and_fees": str(pricing.taxes_and_fees),
            "fees": str(pricing.fees),
            "total": str(pricing.total),
            "average_per_night": str(pricing.average_per_night),
        }
    )


def _pricing_from_json(payload: str) -> PricingBreakdown:
    data = json.loads(payload)
    return PricingBreakdown(
        currency=data["currency"],
        nights=int(data["nights"]),
        nightly_rates=tuple(
            NightlyRate(date=date.fromisoformat(item["date"]), rate=Decimal(item["rate"]))
            for item in data["nightly_rates"]
        ),
        base_amount=Decimal(data["base_amount"]),
        discount_amount=Decimal(data["discount_amount"]),
        subtotal=Decimal(data["subtotal"]),
        taxes_and_fees=Decimal(data["taxes_and_fees"]),
        fees=Decimal(data["fees"]),
        total=Decimal(data["total"]),
        average_per_night=Decimal(data["average_per_night"]),
    )


def _contact_to_json(contact: Optional[GuestContact]) -> Optional[str]:
    if contact is None:
        return None
    return json.dumps(
        {
            "first_name": contact.first_name,
            "last_name": contact.last_name,
            "email": contact.email,
            "phone": contact.phone,
        }
    )


def _contact_from_json(payload: Optional[str]) -> Optional[GuestContact]:
    if not payload:
        return None
    return GuestContact(**json.loads(payload))


def _cancellation_to_json(record: Optional[CancellationRecord]) -> Optional[str]:
    if record is None:
        return None
    return json.dumps(
        {
            "cancelled_at": record.cancelled_at.isoformat(),
            "cancelled_by": record.cancelled_by,
            "reason": record.reason.value,
            "refund_policy": record.refund_policy.value,
            "refund_amount": str(record.refund_amount),
            "hours_before_check_in": record.hours_before_check_in,
        }
    )


def _cancellation_from_json(payload: Optional[str]) -> Optional[CancellationRecord]:
    if not payload:
        return None
    data = json.loads(payload)
    return CancellationRecord(
        cancelled_at=datetime.fromisoformat(data["cancelled_at"]),
        cancelled_by=data["cancelled_by"],
        reason=CancellationReason(data["reason"]),
        refund_policy=RefundPolicy(data["refund_policy"]),
        refund_amount=Decimal(data["refund_amount"]),
        hours_before_check_in=float(data["hours_before_check_in"]),
    )


class DataRepository:
    """Encapsulates SQLite access so business logic stays storage-agnostic."""

    def __init__(self, settings: Optional[Settings] = None) -> None:
        self._settings = settings or get_settings()
        self._db_path = Path(self._settings.database_path)
        self._db_path.parent.mkdir(parents=True, exist_ok=True)

    def _connect(self) -> sqlite3.Connection:
        connection = sqlite3.connect(
            self._db_path,
            timeout=self._settings.database_timeout_seconds,
        )
        connection.row_factory = sqlite3.Row
        connection.execute("PRAGMA foreign_keys = ON;")
        return connection

    def initialize_database(self) -> None:
        """Create all persistence artifacts before API startup."""
        try:
            with self._connect() as conn:
                cursor = conn.cursor()

                cursor.execute(
                    """
                    CREATE TABLE IF NOT EXISTS HotelPolicies (
                        hotel_id TEXT PRIMARY KEY,
                        cancellation_deadline_hours INTEGER NOT NULL
                            CHECK (cancellation_deadline_hours >= 0)
                    );
                    """
                )

                cursor.execute(
                    """
                    CREATE TABLE IF NOT EXISTS Rooms (
                        id TEXT PRIMARY KEY,
                        hotel_id TEXT NOT NULL,
                        room_number TEXT NOT NULL,
                        name TEXT NOT NULL,
                        capacity_adults INTEGER NOT NULL CHECK (capacity_adults >= 1),
                        capacity_children INTEGER NOT NULL DEFAULT 0,
                        capacity_infants INTEGER NOT NULL DEFAULT 0,
                        base_price TEXT NOT NULL,
                        currency TEXT NOT NULL DEFAULT 'USD',
                        taxes_and_fees TEXT NOT NULL DEFAULT '0',
                        discount_percentage TEXT NOT NULL DEFAULT '0',
                        status TEXT NOT NULL DEFAULT 'active',
                        is_available INTEGER NOT NULL DEFAULT 1 CHECK (is_available IN (0,1)),
                        minimum_stay INTEGER NOT NULL DEFAULT 1,
                        maximum_stay INTEGER NOT NULL DEFAULT 365,
                        advance_booking_days INTEGER NOT NULL DEFAULT 365,
                        created_at DATETIME DEFAULT CURRENT_TIMESTAMP,
                        UNIQUE (hotel_id, room_number)
                    );
                    """
                )

                cursor.execute(
                    """
                    CREATE TABLE IF NOT EXISTS SeasonalRules (
                        id INTEGER PRIMARY KEY AUTOINCREMENT,
                        room_id TEXT NOT NULL,
                        position INTEGER NOT NULL,
                        name TEXT NOT NULL,
                        start_date TEXT NOT NULL,
                        end_date TEXT NOT NULL,
                        multiplier TEXT NOT NULL,
                        FOREIGN KEY (room_id) REFERENCES Rooms(id)
                    );
                    """
                )

                cursor.execute(
                    """
                    CREATE TABLE IF NOT EXISTS Bookings (
                        id TEXT PRIMARY KEY,
                        confirmation_code TEXT NOT NULL UNIQUE,
                        room_id TEXT NOT NULL,
                        hotel_id TEXT NOT NULL,
                        requester_id TEXT NOT NULL,
                        adults INTEGER NOT NULL CHECK (adults >= 1),
                        children INTEGER NOT NULL DEFAULT 0,
                        infants INTEGER NOT NULL DEFAULT 0,
                        check_in TEXT NOT NULL,
                        check_out TEXT NOT NULL,
                        nights INTEGER NOT NULL CHECK (nights > 0),
                        status TEXT NOT NULL,
                        payment_method TEXT NOT NULL,
                        payment_status TEXT NOT NULL,
                        paid_amount TEXT NOT NULL DEFAULT '0',
                        paid_at TEXT,
                        refund_amount TEXT NOT NULL DEFAULT '0',
                        refunded_at TEXT,
                        total_amount TEXT NOT NULL,
                        pricing_json TEXT NOT NULL,
                        contact_json TEXT,
                        cancellation_json TEXT,
                        special_requests TEXT,
                        created_at TEXT NOT NULL,
                        updated_at TEXT NOT NULL,
                        last_modified_by TEXT,
                        last_action TEXT NOT NULL,
                        FOREIGN KEY (room_id) REFERENCES Rooms(id)
                    );
                    """
                )

                cursor.execute(
                    """
                    CREATE TABLE IF NOT EXISTS RoomIntervals (
                        id INTEGER PRIMARY KEY AUTOINCREMENT,
                        room_id TEXT NOT NULL,
                        start_date TEXT NOT NULL,
                        end_date TEXT NOT NULL,
                        reason TEXT NOT NULL
                            CHECK (reason IN ('booked','maintenance','blocked','renovation')),
                        booking_id TEXT,
                        created_at DATETIME DEFAULT CURRENT_TIMESTAMP,
                        UNIQUE (room_id, start_date, end_date),
                        FOREIGN KEY (room_id) REFERENCES Rooms(id),
                        FOREIGN KEY (booking_id) REFERENCES Bookings(id)
                    );
                    """
                )

                cursor.execute(
                    """
                    CREATE INDEX IF NOT EXISTS idx_rooms_hotel_status
                    ON Rooms(hotel_id, status);
                    """
                )
                cursor.execute(
                    """
                    CREATE INDEX IF NOT EXISTS idx_bookings_hotel_status_checkin
                    ON Bookings(hotel_id, status, check_in);
                    """
                )
                cursor.execute(
                    """
                    CREATE INDEX IF NOT EXISTS idx_intervals_room_start
                    ON RoomIntervals(room_id, start_date);
                    """
                )
                conn.commit()
            logger.info("Database initialized at %s", self._db_path)
        except sqlite3.Error as exc:
            raise RuntimeError(f"Database initialization failed: {exc}") from exc

    def seed_demo_data(self, hotel_id: str) -> int:
        """Seed a small demo hotel only when no rooms exist yet."""
        try:
            with self._connect() as conn:
                cursor = conn.cursor()
                cursor.execute("SELECT COUNT(*) AS count FROM Rooms;")
                if int(cursor.fetchone()["count"]) > 0:
                    logger.info("Demo data already present; skipping seed")
                    return 0
        except sqlite3.Error as exc:
            raise RuntimeError(f"Demo data seeding failed: {exc}") from exc

        current_year = datetime.now().year
        summer = SeasonalRule(
            name="summer",
            range=DateRange(date(current_year, 7, 1), date(current_year, 9, 1)),
            multiplier=Decimal("1.5"),
        )
        winter_holidays = SeasonalRule(
            name="winter-holidays",
            range=DateRange(date(current_year, 12, 20), date(current_year + 1, 1, 5)),
            multiplier=Decimal("1.8"),
        )
        demo_rooms = [
            ("101", "Standard Single", Capacity(1, 0, 0), "79.00", "0"),
            ("102", "Standard Double", Capacity(2, 1, 1), "109.00", "0"),
            ("201", "Deluxe King", Capacity(2, 2, 1), "159.00", "10"),
            ("202", "Deluxe Twin", Capacity(2, 1, 1), "149.00", "0"),
            ("301", "Family Suite", Capacity(4, 3, 2), "249.00", "5"),
            ("401", "Presidential Suite", Capacity(4, 2, 1), "599.00", "0"),
        ]
        for room_number, name, capacity, base_price, discount in demo_rooms:
            self.save_room(
                Room(
                    room_id=f"{hotel_id}-{room_number}",
                    hotel_id=hotel_id,
                    room_number=room_number,
                    name=name,
                    capacity=capacity,
                    base_price=Decimal(base_price),
                    taxes_and_fees=Decimal("12.50"),
                    discount_percentage=Decimal(discount),
                    seasonal_rules=(summer, winter_holidays),
                )
            )
        self.save_hotel_policy(HotelPolicy(hotel_id=hotel_id, cancellation_deadline_hours=24))
        logger.info("Demo seed completed with %s rooms for hotel %s", len(demo_rooms), hotel_id)
        return len(demo_rooms)

    def save_room(self, room: Room) -> None:
        """Upsert room attributes and its ordered seasonal rules. Holds are stored separately."""
        with self._connect() as conn:
            cursor = conn.cursor()
            cursor.execute(
                """
                INSERT INTO Rooms (
                    id, hotel_id, room_number, name,
                    capacity_adults, capacity_children, capacity_infants,
                    base_price, currency, taxes_and_fees, discount_percentage,
                    status, is_available, minimum_stay, maximum_stay, advance_booking_days
                )
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT(id) DO UPDATE SET
                    hotel_id = excluded.hotel_id,
                    room_number = excluded.room_number,
                    name = excluded.name,
                    capacity_adults = excluded.capacity_adults,
                    capacity_children = excluded.capacity_children,
                    capacity_infants = excluded.capacity_infants,
                    base_price = excluded.base_price,
                    currency = excluded.currency,
                    taxes_and_fees = excluded.taxes_and_fees,
                    discount_percentage = excluded.discount_percentage,
                    status = excluded.status,
                    is_available = excluded.is_available,
                    minimum_stay = excluded.minimum_stay,
                    maximum_stay = excluded.maximum_stay,
                    advance_booking_days = excluded.advance_booking_days;
                """,
                (
                    room.room_id,
                    room.hotel_id,
                    room.room_number,
                    room.name,
                    room.capacity.adults,
                    room.capacity.children,
                    room.capacity.infants,
                    str(room.base_price),
                    room.currency,
                    str(room.taxes_and_fees),
                    str(room.discount_percentage),
                    room.status.value,
                    1 if room.is_available else 0,
                    room.minimum_stay,
                    room.maximum_stay,
                    room.advance_booking_days,
                ),
            )
            cursor.execute("DELETE FROM SeasonalRules WHERE room_id = ?;", (room.room_id,))
            cursor.executemany(
                """
                INSERT INTO SeasonalRules (room_id, position, name, start_date, end_date, multiplier)
                VALUES (?, ?, ?, ?, ?, ?);
                """,
                [
                    (
                        room.room_id,
                        position,
                        rule.name,
                        rule.range.start.isoformat(),
                        rule.range.end.isoformat(),
                        str(rule.multiplier),
                    )
                    for position, rule in enumerate(room.seasonal_rules)
                ],
            )
            conn.commit()

    def get_room(self, room_id: str) -> Optional[Room]:
        """Load a room with its seasonal rules and a freshly built interval set."""
        with self._connect() as conn:
            cursor = conn.cursor()
            cursor.execute("SELECT * FROM Rooms WHERE id = ?;", (room_id,))
            row = cursor.fetchone()
            if row is None:
                return None

            cursor.execute(
                """
                SELECT name, start_date, end_date, multiplier
                FROM SeasonalRules
                WHERE room_id = ?
                ORDER BY position ASC;
                """,
                (room_id,),
            )
            rules = tuple(
                SeasonalRule(
                    name=str(rule["name"]),
                    range=DateRange(
                        date.fromisoformat(rule["start_date"]),
                        date.fromisoformat(rule["end_date"]),
                    ),
                    multiplier=Decimal(rule["multiplier"]),
                )
                for rule in cursor.fetchall()
            )

            cursor.execute(
                """
                SELECT start_date, end_date, reason, booking_id
                FROM RoomIntervals
                WHERE room_id = ?
                ORDER BY start_date ASC;
                """,
                (room_id,),
            )
            intervals = [
                DateInterval(
                    range=DateRange(
                        date.fromisoformat(item["start_date"]),
                        date.fromisoformat(item["end_date"]),
                    ),
                    reason=IntervalReason(item["reason"]),
                    booking_id=item["booking_id"],
                )
                for item in cursor.fetchall()
            ]

        return Room(
            room_id=str(row["id"]),
            hotel_id=str(row["hotel_id"]),
            room_number=str(row["room_number"]),
            name=str(row["name"]),
            capacity=Capacity(
                adults=int(row["capacity_adults"]),
                children=int(row["capacity_children"]),
                infants=int(row["capacity_infants"]),
            ),
            base_price=Decimal(row["base_price"]),
            currency=str(row["currency"]),
            taxes_and_fees=Decimal(row["taxes_and_fees"]),
            discount_percentage=Decimal(row["discount_percentage"]),
            seasonal_rules=rules,
            status=RoomStatus(row["status"]),
            is_available=bool(row["is_available"]),
            minimum_stay=int(row["minimum_stay"]),
            maximum_stay=int(row["maximum_stay"]),
            advance_booking_days=int(row["advance_booking_days"]),
            intervals=IntervalSet(intervals),
        )

    def list_room_ids(self, hotel_id: str) -> list[str]:
        with self._connect() as conn:
            cursor = conn.cursor()
            cursor.execute(
                "SELECT id FROM Rooms WHERE hotel_id = ? ORDER BY room_number ASC;",
                (hotel_id,),
            )
            return [str(row["id"]) for row in cursor.fetchall()]

    def room_number_in_use(
        self,
        hotel_id: str,
        room_number: str,
        exclude_room_id: Optional[str] = None,
    ) -> bool:
        with self._connect() as conn:
            cursor = conn.cursor()
            cursor.execute(
                "SELECT id FROM Rooms WHERE hotel_id = ? AND room_number = ? AND id != ?;",
                (hotel_id, room_number, exclude_room_id or ""),
            )
            return cursor.fetchone() is not None

    def count_room_bookings(self, room_id: str, statuses: Iterable[BookingStatus]) -> int:
        """Count the room's bookings whose status is one of ``statuses``."""
        values = [item.value for item in statuses]
        if not values:
            return 0
        with self._connect() as conn:
            cursor = conn.cursor()
            cursor.execute(
                f"""
                SELECT COUNT(*) AS count FROM Bookings
                WHERE room_id = ? AND status IN ({", ".join("?" for _ in values)});
                """,
                (room_id, *values),
            )
            return int(cursor.fetchone()["count"])

    def save_hotel_policy(self, policy: HotelPolicy) -> None:
        with self._connect() as conn:
            conn.execute(
                """
                INSERT INTO HotelPolicies (hotel_id, cancellation_deadline_hours)
                VALUES (?, ?)
                ON CONFLICT(hotel_id) DO UPDATE SET
                    cancellation_deadline_hours = excluded.cancellation_deadline_hours;
                """,
                (policy.hotel_id, policy.cancellation_deadline_hours),
            )
            conn.commit()

    def get_hotel_policy(self, hotel_id: str) -> Optional[HotelPolicy]:
        with self._connect() as conn:
            cursor = conn.cursor()
            cursor.execute(
                "SELECT hotel_id, cancellation_deadline_hours FROM HotelPolicies WHERE hotel_id = ?;",
                (hotel_id,),
            )
            row = cursor.fetchone()
            if row is None:
                return None
            return HotelPolicy(
                hotel_id=str(row["hotel_id"]),
                cancellation_deadline_hours=int(row["cancellation_deadline_hours"]),
            )

    def insert_interval(self, room_id: str, interval: DateInterval) -> None:
        with self._connect() as conn:
            self._insert_interval_row(conn, room_id, interval)
            conn.commit()

    def delete_interval(self, room_id: str, date_range: DateRange) -> int:
        """Delete the exact hold row and return how many rows were removed."""
        with self._connect() as conn:
            deleted = self._delete_interval_row(conn, room_id, date_range)
            if deleted != 1:
                conn.rollback()
                return deleted
            conn.commit()
            return deleted

    def insert_booking_with_interval(self, booking: Booking, interval: DateInterval) -> None:
        """Persist a new booking and its hold in one transaction."""
        with self._connect() as conn:
            conn.execute(
                f"""
                INSERT INTO Bookings ({", ".join(self._BOOKING_COLUMNS)})
                VALUES ({", ".join("?" for _ in self._BOOKING_COLUMNS)});
                """,
                self._booking_values(booking),
            )
            self._insert_interval_row(conn, booking.room_id, interval)
            conn.commit()

    def update_booking(self, booking: Booking) -> None:
        with self._connect() as conn:
            self._update_booking_row(conn, booking)
            conn.commit()

    def update_booking_and_release(self, booking: Booking) -> int:
        """Store a cancelled booking and drop its hold row in one transaction.

        Nothing is committed unless exactly one hold row was removed.
        """
        with self._connect() as conn:
            self._update_booking_row(conn, booking)
            deleted = self._delete_interval_row(conn, booking.room_id, booking.stay)
            if deleted != 1:
                conn.rollback()
                return deleted
            conn.commit()
            return deleted

    def get_booking(self, booking_id: str) -> Optional[Booking]:
        with self._connect() as conn:
            cursor = conn.cursor()
            cursor.execute("SELECT * FROM Bookings WHERE id = ?;", (booking_id,))
            row = cursor.fetchone()
            return self._row_to_booking(row) if row is not None else None

    def get_booking_by_confirmation_code(self, confirmation_code: str) -> Optional[Booking]:
        with self._connect() as conn:
            cursor = conn.cursor()
            cursor.execute(
                "SELECT * FROM Bookings WHERE confirmation_code = ?;",
                (confirmation_code.upper(),),
            )
            row = cursor.fetchone()
            return self._row_to_booking(row) if row is not None else None

    def list_bookings(
        self,
        hotel_id: Optional[str] = None,
        created_from: Optional[datetime] = None,
        created_to: Optional[datetime] = None,
    ) -> list[Booking]:
        """Return bookings filtered by hotel and creation window, oldest first."""
        conditions: list[str] = []
        params: list[Any] = []
        if hotel_id is not None:
            conditions.append("hotel_id = ?")
            params.append(hotel_id)
        if created_from is not None:
            conditions.append("created_at >= ?")
            params.append(_utc_iso(created_from))
        if created_to is not None:
            conditions.append("created_at <= ?")
            params.append(_utc_iso(created_to))
        where = f"WHERE {' AND '.join(conditions)}" if conditions else ""
        with self._connect() as conn:
            cursor = conn.cursor()
            cursor.execute(
                f"SELECT * FROM Bookings {where} ORDER BY created_at ASC, id ASC;",
                tuple(params),
            )
            return [self._row_to_booking(row) for row in cursor.fetchall()]

    def count_intervals(self, room_id: str) -> int:
        with self._connect() as conn:
            cursor = conn.cursor()
            cursor.execute(
                "SELECT COUNT(*) AS count FROM RoomIntervals WHERE room_id = ?;",
                (room_id,),
            )
            return int(cursor.fetchone()["count"])

    _BOOKING_COLUMNS = (
        "id",
        "confirmation_code",
        "room_id",
        "hotel_id",
        "requester_id",
        "adults",
        "children",
        "infants",
        "check_in",
        "check_out",
        "nights",
        "status",
        "payment_method",
        "payment_status",
        "paid_amount",
        "paid_at",
        "refund_amount",
        "refunded_at",
        "total_amount",
        "pricing_json",
        "contact_json",
        "cancellation_json",
        "special_requests",
        "created_at",
        "updated_at",
        "last_modified_by",
        "last_action",
    )

    @staticmethod
    def _booking_values(booking: Booking) -> tuple[Any, ...]:
        return (
            booking.booking_id,
            booking.confirmation_code,
            booking.room_id,
            booking.hotel_id,
            booking.requester_id,
            booking.guests.adults,
            booking.guests.children,
            booking.guests.infants,
            booking.stay.start.isoformat(),
            booking.stay.end.isoformat(),
            booking.nights,
            booking.status.value,
            booking.payment.method.value,
            booking.payment.status.value,
            str(booking.payment.paid_amount),
            _iso(booking.payment.paid_at),
            str(booking.payment.refund_amount),
            _iso(booking.payment.refunded_at),
            str(booking.pricing.total),
            _pricing_to_json(booking.pricing),
            _contact_to_json(booking.contact),
            _cancellation_to_json(booking.cancellation),
            booking.special_requests,
            _utc_iso(booking.created_at),
            _iso(booking.updated_at),
            booking.last_modified_by,
            booking.last_action,
        )

    def _update_booking_row(self, conn: sqlite3.Connection, booking: Booking) -> None:
        assignments = ", ".join(f"{column} = ?" for column in self._BOOKING_COLUMNS[1:])
        values = self._booking_values(booking)
        cursor = conn.execute(
            f"UPDATE Bookings SET {assignments} WHERE id = ?;",
            (*values[1:], values[0]),
        )
        if cursor.rowcount != 1:
            raise RuntimeError(f"Booking {booking.booking_id} does not exist in storage")

    @staticmethod
    def _insert_interval_row(
        conn: sqlite3.Connection,
        room_id: str,
        interval: DateInterval,
    ) -> None:
        conn.execute(
            """
            INSERT INTO RoomIntervals (room_id, start_date, end_date, reason, booking_id)
            VALUES (?, ?, ?, ?, ?);
            """,
            (
                room_id,
                interval.range.start.isoformat(),
                interval.range.end.isoformat(),
                interval.reason.value,
                interval.booking_id,
            ),
        )

    @staticmethod
    def _delete_interval_row(
        conn: sqlite3.Connection,
        room_id: str,
        date_range: DateRange,
    ) -> int:
        cursor = conn.execute(
            """
            DELETE FROM RoomIntervals
            WHERE room_id = ? AND start_date = ? AND end_date = ?;
            """,
            (room_id, date_range.start.isoformat(), date_range.end.isoformat()),
        )
        return int(cursor.rowcount)

    @staticmethod
    def _row_to_booking(row: sqlite3.Row) -> Booking:
        return Booking(
            booking_id=str(row["id"]),
            confirmation_code=str(row["confirmation_code"]),
            room_id=str(row["room_id"]),
            hotel_id=str(row["hotel_id"]),
            requester_id=str(row["requester_id"]),
            guests=GuestCounts(
                adults=int(row["adults"]),
                children=int(row["children"]),
                infants=int(row["infants"]),
            ),
            stay=DateRange(
                date.fromisoformat(row["check_in"]),
                date.fromisoformat(row["check_out"]),
            ),
            pricing=_pricing_from_json(row["pricing_json"]),
            payment=PaymentState(
                method=PaymentMethod(row["payment_method"]),
                status=PaymentStatus(row["payment_status"]),
                paid_amount=Decimal(row["paid_amount"]),
                paid_at=_parse_datetime(row["paid_at"]),
                refund_amount=Decimal(row["refund_amount"]),
                refunded_at=_parse_datetime(row["refunded_at"]),
            ),
            status=BookingStatus(row["status"]),
            contact=_contact_from_json(row["contact_json"]),
            cancellation=_cancellation_from_json(row["cancellation_json"]),
            special_requests=row["special_requests"],
            created_at=_parse_datetime(row["created_at"]),
            updated_at=_parse_datetime(row["updated_at"]),
            last_modified_by=row["last_modified_by"],
            last_action=str(row["last_action"]),
        )
