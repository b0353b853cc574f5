"""
Utilitaires de dates et de clés de jour.

Une clé de jour (`YYYY-MM-DD`) identifie un jour calendaire en heure locale. Elle est toujours
dérivée des composantes année/mois/jour de la valeur elle-même, jamais d'une conversion UTC: une
heure tardive dans un fuseau en retard sur UTC ne doit pas glisser au lendemain.
"""

from __future__ import annotations

import calendar
from datetime import date, datetime, timedelta

WEEKDAYS = ("Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat")
GRID_DAYS = 42  # 6 semaines


def to_date_key(value: date | datetime) -> str:
    """Formate une date (ou datetime, naïf ou non) en clé `YYYY-MM-DD` locale."""
    return f"{value.year:04d}-{value.month:02d}-{value.day:02d}"


def parse_date_key(key: str) -> date:
    """Convertit une clé `YYYY-MM-DD` en `date`.

    Raises:
        ValueError: si la clé n'est pas au format attendu.
    """
    return datetime.strptime(key, "%Y-%m-%d").date()


def build_calendar_dates(year: int, month: int) -> list[date]:
    """Construit la grille de 42 jours affichée pour un mois donné.

    La grille commence au dimanche précédant (ou égal à) le 1er du mois et se complète avec les
    premiers jours du mois suivant.

    Args:
        year: Année affichée.
        month: Mois affiché (1-12).

    Returns:
        list[date]: 42 dates consécutives, croissantes.
    """
    first = date(year, month, 1)
    # weekday(): lundi=0 ... dimanche=6 ; la grille commence le dimanche
    lead = (first.weekday() + 1) % 7
    start = first - timedelta(days=lead)
    return [start + timedelta(days=i) for i in range(GRID_DAYS)]


def shift_month(value: date, delta: int) -> date:
    """Retourne le 1er du mois décalé de `delta` mois."""
    index = value.year * 12 + (value.month - 1) + delta
    return date(index // 12, index % 12 + 1, 1)


def month_name(month: int) -> str:
    """Nom anglais complet du mois (1-12)."""
    return calendar.month_name[month]


def weekday_short(value: date) -> str:
    """Abréviation du jour de la semaine (`Sun`..`Sat`)."""
    return WEEKDAYS[(value.weekday() + 1) % 7]
