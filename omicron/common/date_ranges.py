"""
Ventanas de calendario compartidas por cortes de caja, estadísticas e historial

Todas las ventanas se resuelven en la zona horaria local del negocio
(settings.TIMEZONE). Los tickets se guardan con fecha UTC sin tzinfo, por lo
que aquí viven también las conversiones entre ambos mundos.

- day:   [00:00 del día, 00:00 del día siguiente - 1ms]
- week:  la semana inicia en domingo; domingo 00:00 a sábado fin de día
- month: día 1 a 00:00 hasta el último día del mes a fin de día
"""

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone
from enum import Enum
from typing import Optional
from zoneinfo import ZoneInfo

from omicron.core.config import settings


END_OF_DAY_OFFSET = timedelta(milliseconds=1)

MONTH_NAMES = [
    "enero", "febrero", "marzo", "abril", "mayo", "junio",
    "julio", "agosto", "septiembre", "octubre", "noviembre", "diciembre"
]
WEEKDAY_SHORT = ["lun", "mar", "mié", "jue", "vie", "sáb", "dom"]


class RangeKind(str, Enum):
    DAY = "day"
    WEEK = "week"
    MONTH = "month"


@dataclass(frozen=True)
class ResolvedRange:
    """Rango cerrado [start, end] en hora local"""
    kind: RangeKind
    start: datetime
    end: datetime
    label: str

    @property
    def start_utc(self) -> datetime:
        return to_utc_naive(self.start)

    @property
    def end_utc(self) -> datetime:
        return to_utc_naive(self.end)


def get_zone() -> ZoneInfo:
    return ZoneInfo(settings.TIMEZONE)


def utcnow() -> datetime:
    """Hora actual UTC sin tzinfo, formato de almacenamiento"""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def local_now() -> datetime:
    return datetime.now(get_zone())


def to_local(moment: datetime) -> datetime:
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(get_zone())


def to_utc_naive(moment: datetime) -> datetime:
    return moment.astimezone(timezone.utc).replace(tzinfo=None)


def local_midnight(day: date) -> datetime:
    return datetime.combine(day, time.min, tzinfo=get_zone())


def end_of_day(day: date) -> datetime:
    # Medianoche siguiente menos 1ms, respetando cambios de horario
    return local_midnight(day + timedelta(days=1)) - END_OF_DAY_OFFSET


def days_since_sunday(day: date) -> int:
    # date.weekday(): lunes=0 ... domingo=6
    return (day.weekday() + 1) % 7


def format_date(day: date) -> str:
    return day.strftime("%d/%m/%Y")


def resolve_range(reference: date, kind: RangeKind) -> ResolvedRange:
    """Resolver la ventana de calendario que contiene `reference`"""
    if isinstance(reference, datetime):
        reference = to_local(reference).date()

    kind = RangeKind(kind)

    if kind == RangeKind.DAY:
        first, last = reference, reference
        label = f"{WEEKDAY_SHORT[reference.weekday()]} {format_date(reference)}"
    elif kind == RangeKind.WEEK:
        first = reference - timedelta(days=days_since_sunday(reference))
        last = first + timedelta(days=6)
        label = f"Semana del {format_date(first)} al {format_date(last)}"
    else:
        first = reference.replace(day=1)
        next_month = (first + timedelta(days=32)).replace(day=1)
        last = next_month - timedelta(days=1)
        label = f"{MONTH_NAMES[reference.month - 1].capitalize()} {reference.year}"

    return ResolvedRange(
        kind=kind,
        start=local_midnight(first),
        end=end_of_day(last),
        label=label
    )


def local_day(moment: datetime) -> date:
    return to_local(moment).date()


def last_days(days: int, now: Optional[datetime] = None) -> list:
    """Los últimos `days` días de calendario, del más antiguo al más reciente"""
    today = local_day(now) if now else local_now().date()
    return [today - timedelta(days=offset) for offset in range(days - 1, -1, -1)]
