from __future__ import annotations

from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal


def format_brl(value: float | str) -> str:
    """Format a number as R$ X.XXX,XX."""
    d = Decimal(str(value)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
    formatted = f"{d:,.2f}".replace(",", "X").replace(".", ",").replace("X", ".")
    return f"R$ {formatted}"


def format_iss_retido(iss_retido: int) -> str:
    return "Sim" if iss_retido == 1 else "Não"


def format_date_br(value: str) -> str:
    """Render an ISO date/datetime as DD/MM/AAAA [HH:MM:SS]; other text is returned as-is."""
    text = value.strip()
    if not text:
        return ""
    try:
        dt = datetime.fromisoformat(text.replace("Z", "+00:00"))
    except ValueError:
        return text
    if "T" in text or " " in text:
        return dt.strftime("%d/%m/%Y %H:%M:%S")
    return dt.strftime("%d/%m/%Y")
