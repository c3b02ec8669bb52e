# ventas_etl/core/dates.py
"""Ventanas de fecha en la zona horaria de negocio (Chile, UTC-3 fijo).

Bsale filtra documentos por `emissiondaterange=[inicio,fin]` en segundos
epoch UTC. Un día local de negocio va de 00:00:01 a 23:59:59 en UTC-3, sin
ajuste por horario de verano.
"""
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone
from typing import Optional, Union

from ventas_etl.core.config import settings

BUSINESS_TZ = timezone(timedelta(hours=-3))
DAY_START = time(0, 0, 1)
DAY_END = time(23, 59, 59)

DateLike = Union[str, date]


@dataclass(frozen=True)
class DateWindow:
    start: int
    end: int

    def as_param(self) -> str:
        return f"[{self.start},{self.end}]"

    def __str__(self) -> str:
        return f"{format_business_time(self.start)} a {format_business_time(self.end)}"


def _as_date(value: DateLike) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(value)


def _epoch(day: date, at: time) -> int:
    return int(datetime.combine(day, at, tzinfo=BUSINESS_TZ).timestamp())


def window_for_range(fecha_inicio: DateLike, fecha_fin: DateLike) -> DateWindow:
    """Ventana desde las 00:00:01 de fecha_inicio hasta las 23:59:59 de fecha_fin (hora local)."""
    return DateWindow(
        start=_epoch(_as_date(fecha_inicio), DAY_START),
        end=_epoch(_as_date(fecha_fin), DAY_END),
    )


def window_for_day(day: DateLike) -> DateWindow:
    return window_for_range(day, day)


def default_window() -> DateWindow:
    return window_for_range(settings.DEFAULT_START_DATE, settings.DEFAULT_END_DATE)


def business_today(now: Optional[datetime] = None) -> date:
    now = now or datetime.now(timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    return now.astimezone(BUSINESS_TZ).date()


def business_yesterday(now: Optional[datetime] = None) -> date:
    return business_today(now) - timedelta(days=1)


def format_business_time(epoch_seconds: int) -> str:
    """Formatea un epoch como 'dd-mm-YYYY HH:MM:SS' en hora local de negocio (para logs)."""
    return datetime.fromtimestamp(epoch_seconds, tz=BUSINESS_TZ).strftime("%d-%m-%Y %H:%M:%S")
