"""Saisie du planificateur: plages horaires et nouveaux événements."""

from __future__ import annotations

import re

from dashboard.domain.entities import ALL_DAY_END, ALL_DAY_START, DEFAULT_EVENT_COLOR, Event

TIME_RANGE_RE = re.compile(r"^\s*(\d{1,2}):(\d{2})\s*-\s*(\d{1,2}):(\d{2})\s*$")


def _clock(hours: str, minutes: str) -> str | None:
    h, m = int(hours), int(minutes)
    if h > 23 or m > 59:
        return None
    return f"{h:02d}:{m:02d}"


def parse_time_range(text: str | None) -> tuple[str, str] | None:
    """Analyse une plage `H:MM-HH:MM`.

    Les heures sont complétées par des zéros pour que le tri par chaîne reste correct.

    Returns:
        tuple[str, str] | None: (début, fin), ou None si la saisie est vide ou invalide.
    """
    if not text or not text.strip():
        return None
    match = TIME_RANGE_RE.match(text)
    if not match:
        return None
    start = _clock(match.group(1), match.group(2))
    end = _clock(match.group(3), match.group(4))
    if start is None or end is None:
        return None
    return start, end


def build_new_event(title: str, time_range: str | None = None, color: str | None = None) -> Event | None:
    """Construit un événement depuis la saisie du planificateur.

    Une plage vide donne un événement « toute la journée » (`00:00`-`23:59`). Un titre vide ou
    une plage non vide mais illisible n'ajoutent rien.
    """
    title = (title or "").strip()
    if not title:
        return None
    if not time_range or not time_range.strip():
        return Event(
            title=title,
            start=ALL_DAY_START,
            end=ALL_DAY_END,
            all_day=True,
            color=color or DEFAULT_EVENT_COLOR,
        )
    parsed = parse_time_range(time_range)
    if parsed is None:
        return None
    start, end = parsed
    return Event(title=title, start=start, end=end, all_day=False, color=color or DEFAULT_EVENT_COLOR)
