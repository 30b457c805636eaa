from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Sequence

import mysql.connector
from mysql.connector import errorcode

from ..core.enums import DailyLogStatus, LocationType, TripStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import as_float, as_optional_float, db_cursor, fetchall, fetchone
from .model import DailyLog, LocationPing, NewTrip, Trip
from .repository import TripRepository

_SELECT_TRIP = """
    SELECT t.trip_id, t.employee_id, t.source, t.destination, t.purpose, t.estimated_cost,
           t.start_date, t.end_date, t.dest_lat, t.dest_lng, t.status, t.rejection_reason,
           t.hr_action_by, t.created_at, t.updated_at,
           CONCAT(e.first_name, ' ', e.last_name) AS employee_name, e.employee_code, e.department
    FROM trips t
    JOIN employees e ON e.employee_id = t.employee_id
"""

_SELECT_LOG = """
    SELECT log_id, trip_id, log_date, status, start_time, end_time,
           start_lat, start_lng, end_lat, end_lng, tasks_done
    FROM trip_daily_logs
"""


def _to_trip(r: dict) -> Trip:
    return Trip(
        trip_id=int(r["trip_id"]),
        employee_id=int(r["employee_id"]),
        source=r["source"],
        destination=r["destination"],
        purpose=r["purpose"],
        start_date=r["start_date"],
        end_date=r["end_date"],
        status=TripStatus(r["status"]),
        estimated_cost=as_float(r.get("estimated_cost")),
        dest_lat=as_optional_float(r.get("dest_lat")),
        dest_lng=as_optional_float(r.get("dest_lng")),
        rejection_reason=r.get("rejection_reason"),
        hr_action_by=r.get("hr_action_by"),
        created_at=r.get("created_at"),
        updated_at=r.get("updated_at"),
        employee_name=r.get("employee_name") or "",
        employee_code=r.get("employee_code") or "",
        department=r.get("department") or "",
    )


def _to_log(r: dict) -> DailyLog:
    return DailyLog(
        log_id=int(r["log_id"]),
        trip_id=int(r["trip_id"]),
        log_date=r["log_date"],
        status=DailyLogStatus(r["status"]),
        start_time=r.get("start_time"),
        end_time=r.get("end_time"),
        start_lat=as_optional_float(r.get("start_lat")),
        start_lng=as_optional_float(r.get("start_lng")),
        end_lat=as_optional_float(r.get("end_lat")),
        end_lng=as_optional_float(r.get("end_lng")),
        tasks_done=r.get("tasks_done"),
    )


def _to_ping(r: dict) -> LocationPing:
    return LocationPing(
        location_id=int(r["location_id"]),
        trip_id=int(r["trip_id"]),
        lat=as_float(r["lat"]),
        lng=as_float(r["lng"]),
        recorded_at=r["recorded_at"],
        day_number=int(r["day_number"]),
        location_type=LocationType(r["location_type"]),
        address=r.get("address"),
        note=r.get("note"),
    )


class MySQLTripRepository(TripRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    # ---- trips

    def create(self, trip: NewTrip) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO trips (
                    employee_id, source, destination, purpose, estimated_cost,
                    start_date, end_date, dest_lat, dest_lng, status
                )
                VALUES (%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    int(trip.employee_id),
                    trip.source,
                    trip.destination,
                    trip.purpose,
                    float(trip.estimated_cost),
                    trip.start_date,
                    trip.end_date,
                    trip.dest_lat,
                    trip.dest_lng,
                    TripStatus.PENDING.value,
                ),
            )
            return int(cur.lastrowid)

    def get(self, trip_id: int) -> Optional[Trip]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"{_SELECT_TRIP} WHERE t.trip_id=%s", (int(trip_id),))
            row = fetchone(cur)
            return _to_trip(row) if row else None

    def list_for_employee(self, employee_id: int) -> Sequence[Trip]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"{_SELECT_TRIP} WHERE t.employee_id=%s ORDER BY t.created_at DESC", (int(employee_id),))
            return [_to_trip(r) for r in fetchall(cur)]

    def list_by_status(self, status: TripStatus, *, limit: Optional[int] = None) -> Sequence[Trip]:
        sql = f"{_SELECT_TRIP} WHERE t.status=%s ORDER BY t.updated_at DESC"
        params: list = [status.value]
        if limit:
            sql += " LIMIT %s"
            params.append(int(limit))
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql, tuple(params))
            return [_to_trip(r) for r in fetchall(cur)]

    def list_active_on(self, day: date) -> Sequence[Trip]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"{_SELECT_TRIP} WHERE t.status=%s AND t.start_date<=%s AND t.end_date>=%s ORDER BY t.start_date",
                (TripStatus.APPROVED.value, day, day),
            )
            return [_to_trip(r) for r in fetchall(cur)]

    def transition(
        self,
        trip_id: int,
        *,
        expected: TripStatus,
        target: TripStatus,
        hr_action_by: Optional[int] = None,
        rejection_reason: Optional[str] = None,
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE trips
                SET status=%s,
                    hr_action_by=COALESCE(%s, hr_action_by),
                    rejection_reason=COALESCE(%s, rejection_reason)
                WHERE trip_id=%s AND status=%s
                """,
                (target.value, hr_action_by, rejection_reason, int(trip_id), expected.value),
            )
            return cur.rowcount > 0

    # ---- location pings

    def add_location(self, ping: LocationPing) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO trip_locations (trip_id, lat, lng, recorded_at, day_number, location_type, address, note)
                VALUES (%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    int(ping.trip_id),
                    float(ping.lat),
                    float(ping.lng),
                    ping.recorded_at,
                    int(ping.day_number),
                    ping.location_type.value,
                    ping.address,
                    ping.note,
                ),
            )
            return int(cur.lastrowid)

    def list_locations(self, trip_id: int) -> Sequence[LocationPing]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT location_id, trip_id, lat, lng, recorded_at, day_number, location_type, address, note
                FROM trip_locations
                WHERE trip_id=%s
                ORDER BY recorded_at, location_id
                """,
                (int(trip_id),),
            )
            return [_to_ping(r) for r in fetchall(cur)]

    # ---- daily logs

    def get_log_for_date(self, trip_id: int, log_date: date) -> Optional[DailyLog]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"{_SELECT_LOG} WHERE trip_id=%s AND log_date=%s", (int(trip_id), log_date))
            row = fetchone(cur)
            return _to_log(row) if row else None

    def get_log(self, trip_id: int, log_id: int) -> Optional[DailyLog]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"{_SELECT_LOG} WHERE trip_id=%s AND log_id=%s", (int(trip_id), int(log_id)))
            row = fetchone(cur)
            return _to_log(row) if row else None

    def get_open_log(self, trip_id: int) -> Optional[DailyLog]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"{_SELECT_LOG} WHERE trip_id=%s AND status=%s ORDER BY log_date DESC LIMIT 1",
                (int(trip_id), DailyLogStatus.STARTED.value),
            )
            row = fetchone(cur)
            return _to_log(row) if row else None

    def list_logs(self, trip_id: int) -> Sequence[DailyLog]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"{_SELECT_LOG} WHERE trip_id=%s ORDER BY log_date", (int(trip_id),))
            return [_to_log(r) for r in fetchall(cur)]

    def start_log(
        self, trip_id: int, *, log_date: date, start_time: datetime, lat: Optional[float], lng: Optional[float]
    ) -> bool:
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    """
                    UPDATE trip_daily_logs
                    SET status=%s, start_time=%s, start_lat=%s, start_lng=%s
                    WHERE trip_id=%s AND log_date=%s AND status=%s
                    """,
                    (
                        DailyLogStatus.STARTED.value,
                        start_time,
                        lat,
                        lng,
                        int(trip_id),
                        log_date,
                        DailyLogStatus.PENDING.value,
                    ),
                )
                if cur.rowcount > 0:
                    return True
                cur.execute(
                    """
                    INSERT INTO trip_daily_logs (trip_id, log_date, status, start_time, start_lat, start_lng)
                    VALUES (%s,%s,%s,%s,%s,%s)
                    """,
                    (int(trip_id), log_date, DailyLogStatus.STARTED.value, start_time, lat, lng),
                )
                return True
        except mysql.connector.IntegrityError as e:
            # A log for that day already exists and is past Pending.
            if e.errno == errorcode.ER_DUP_ENTRY:
                return False
            raise

    def end_log(
        self,
        log_id: int,
        *,
        end_time: datetime,
        lat: Optional[float],
        lng: Optional[float],
        tasks_done: Optional[str],
        keep_existing_tasks: bool = False,
    ) -> bool:
        tasks_expr = "COALESCE(NULLIF(tasks_done, ''), %s)" if keep_existing_tasks else "%s"
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                UPDATE trip_daily_logs
                SET status=%s, end_time=%s, end_lat=%s, end_lng=%s, tasks_done={tasks_expr}
                WHERE log_id=%s AND status=%s
                """,
                (
                    DailyLogStatus.COMPLETED.value,
                    end_time,
                    lat,
                    lng,
                    tasks_done,
                    int(log_id),
                    DailyLogStatus.STARTED.value,
                ),
            )
            return cur.rowcount > 0

    def update_log_tasks(self, log_id: int, tasks_done: str) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("UPDATE trip_daily_logs SET tasks_done=%s WHERE log_id=%s", (tasks_done, int(log_id)))
            return cur.rowcount > 0
