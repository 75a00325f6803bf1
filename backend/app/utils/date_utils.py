from datetime import date, datetime

import pytz

from app.config.settings import settings


def today_local() -> date:
    """Fecha actual en la zona horaria configurada (por defecto Buenos Aires)."""
    try:
        tz = pytz.timezone(settings.TIMEZONE)
    except pytz.UnknownTimeZoneError:
        tz = pytz.utc
    return datetime.now(tz).date()


def format_date(value) -> str:
    """Formato DD/MM/YYYY que exige TusFacturas."""
    return value.strftime("%d/%m/%Y")
