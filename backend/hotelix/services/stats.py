"""Intervention statistics for the hotel dashboard and technician pages.

All percentages and averages are rounded half-up to integers.
Global and technician stats are served through ``intervention_cache``;
counts and technician status are always computed live.
"""
from __future__ import annotations
import math
from dataclasses import dataclass, asdict
from datetime import datetime, timedelta, timezone
from typing import Dict, Iterable, List, Optional, Tuple
from sqlalchemy import func, select
from hotelix import get_db
from hotelix.cache.intervention_cache import intervention_cache
from hotelix.models.intervention import Intervention

TECHNICIAN_BUSY_THRESHOLD = 3
DAILY_BUCKETS = 10
DEFAULT_TECHNICIAN_PERIOD_DAYS = 30
# Upper bound accepted for period_days query parameters (about a century)
MAX_PERIOD_DAYS = 36500

STATUT_DISPONIBLE = 'DISPONIBLE'
STATUT_OCCUPE = 'OCCUPE'
STATUT_HORS_LIGNE = 'HORS_LIGNE'

STATS_PERIODS = [
    {'label': '7 derniers jours', 'days': 7, 'key': '7d'},
    {'label': '30 derniers jours', 'days': 30, 'key': '30d'},
    {'label': '90 derniers jours', 'days': 90, 'key': '90d'},
    {'label': 'Toute la période', 'days': 0, 'key': 'all'},
]


@dataclass
class GlobalStats:
    total_interventions: int
    en_cours: int
    en_attente: int
    terminees: int
    annulees: int
    taux_reussite: int
    temps_moyen_resolution: int  # minutes

    def to_dict(self):
        return asdict(self)


@dataclass
class TechnicianStats:
    interventions_par_jour: List[Dict[str, object]]
    temps_moyen_intervention: int  # minutes
    taux_reussite: int
    repartition_par_type: List[Dict[str, object]]
    totaux_mensuel: Dict[str, int]

    def to_dict(self):
        return asdict(self)


@dataclass
class InterventionCounts:
    en_cours: int = 0
    en_attente: int = 0
    terminees: int = 0
    annulees: int = 0
    total: int = 0

    def to_dict(self):
        return asdict(self)


@dataclass
class StatsFilters:
    hotel_id: Optional[int] = None
    technicien_id: Optional[int] = None
    period_days: Optional[int] = None
    date_debut: Optional[datetime] = None
    date_fin: Optional[datetime] = None


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def percentage(part: int, total: int) -> int:
    return round_half_up(part / total * 100) if total else 0


def as_utc(dt: Optional[datetime]) -> Optional[datetime]:
    """SQLite hands back naive datetimes; everything is stored as UTC."""
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def _now(now: Optional[datetime]) -> datetime:
    return as_utc(now) if now else datetime.now(timezone.utc)


def period_start(period_days: Optional[int], now: Optional[datetime] = None) -> Optional[datetime]:
    if not period_days:
        return None
    return _now(now) - timedelta(days=period_days)


def mean_duration_minutes(rows: Iterable[Tuple[str, Optional[datetime], Optional[datetime]]]) -> int:
    """Mean of (date_fin - date_debut) over TERMINEE rows having both dates."""
    durations = [
        (as_utc(fin) - as_utc(debut)).total_seconds()
        for statut, debut, fin in rows
        if statut == Intervention.STATUT_TERMINEE and debut is not None and fin is not None
    ]
    if not durations:
        return 0
    return round_half_up(sum(durations) / len(durations) / 60)


def _count_by_statut(statuts: Iterable[str]) -> InterventionCounts:
    counts = InterventionCounts()
    for statut in statuts:
        counts.total += 1
        if statut == Intervention.STATUT_EN_COURS:
            counts.en_cours += 1
        elif statut == Intervention.STATUT_EN_ATTENTE:
            counts.en_attente += 1
        elif statut == Intervention.STATUT_TERMINEE:
            counts.terminees += 1
        elif statut == Intervention.STATUT_ANNULEE:
            counts.annulees += 1
    return counts


class StatsService:

    @staticmethod
    def compute_global_stats(hotel_id: int, period_days: Optional[int] = None, now: Optional[datetime] = None) -> GlobalStats:
        session = get_db()
        q = select(Intervention.statut, Intervention.date_debut, Intervention.date_fin).where(Intervention.hotel_id == hotel_id)
        start = period_start(period_days, now)
        if start is not None:
            q = q.where(Intervention.date_creation >= start)
        rows = session.execute(q).all()
        counts = _count_by_statut(r[0] for r in rows)
        return GlobalStats(
            total_interventions=counts.total,
            en_cours=counts.en_cours,
            en_attente=counts.en_attente,
            terminees=counts.terminees,
            annulees=counts.annulees,
            taux_reussite=percentage(counts.terminees, counts.total),
            temps_moyen_resolution=mean_duration_minutes(rows),
        )

    @staticmethod
    def get_global_stats(hotel_id: int, period_days: Optional[int] = None) -> GlobalStats:
        period_days = period_days or None
        cached = intervention_cache.get_global_stats(hotel_id, period_days)
        if cached is not None:
            return cached
        stats = StatsService.compute_global_stats(hotel_id, period_days)
        intervention_cache.set_global_stats(hotel_id, period_days, stats)
        return stats

    @staticmethod
    def compute_technician_stats(technicien_id: int, period_days: int = DEFAULT_TECHNICIAN_PERIOD_DAYS,
                                 now: Optional[datetime] = None) -> TechnicianStats:
        session = get_db()
        now = _now(now)
        q = select(
            Intervention.type, Intervention.statut, Intervention.date_creation,
            Intervention.date_debut, Intervention.date_fin,
        ).where(Intervention.assigne_id == technicien_id)
        start = period_start(period_days, now)
        if start is not None:
            q = q.where(Intervention.date_creation >= start)
        rows = session.execute(q).all()

        per_day: Dict[str, int] = {}
        for r in rows:
            day = as_utc(r.date_creation).date().isoformat()
            per_day[day] = per_day.get(day, 0) + 1
        interventions_par_jour = []
        for i in range(DAILY_BUCKETS - 1, -1, -1):
            day = (now - timedelta(days=i)).date().isoformat()
            interventions_par_jour.append({'date': day, 'count': per_day.get(day, 0)})

        counts = _count_by_statut(r.statut for r in rows)
        by_type: Dict[str, int] = {}
        for r in rows:
            by_type[r.type] = by_type.get(r.type, 0) + 1
        repartition = [
            {'type': t, 'count': c, 'percentage': percentage(c, counts.total)}
            for t, c in sorted(by_type.items(), key=lambda item: (-item[1], item[0]))
        ]
        return TechnicianStats(
            interventions_par_jour=interventions_par_jour,
            temps_moyen_intervention=mean_duration_minutes((r.statut, r.date_debut, r.date_fin) for r in rows),
            taux_reussite=percentage(counts.terminees, counts.total),
            repartition_par_type=repartition,
            totaux_mensuel={
                'en_cours': counts.en_cours,
                'terminees': counts.terminees,
                'annulees': counts.annulees,
                'en_attente': counts.en_attente,
            },
        )

    @staticmethod
    def get_technician_stats(technicien_id: int, period_days: int = DEFAULT_TECHNICIAN_PERIOD_DAYS) -> TechnicianStats:
        cached = intervention_cache.get_technician_stats(technicien_id, period_days)
        if cached is not None:
            return cached
        stats = StatsService.compute_technician_stats(technicien_id, period_days)
        intervention_cache.set_technician_stats(technicien_id, period_days, stats)
        return stats

    @staticmethod
    def get_intervention_counts(filters: StatsFilters, now: Optional[datetime] = None) -> InterventionCounts:
        session = get_db()
        q = select(Intervention.statut, func.count(Intervention.id))
        if filters.hotel_id is not None:
            q = q.where(Intervention.hotel_id == filters.hotel_id)
        if filters.technicien_id:
            q = q.where(Intervention.assigne_id == filters.technicien_id)
        if filters.period_days:
            q = q.where(Intervention.date_creation >= period_start(filters.period_days, now))
        else:
            if filters.date_debut:
                q = q.where(Intervention.date_creation >= as_utc(filters.date_debut))
            if filters.date_fin:
                q = q.where(Intervention.date_creation <= as_utc(filters.date_fin))
        q = q.group_by(Intervention.statut)
        counts = InterventionCounts()
        for statut, n in session.execute(q).all():
            n = int(n)
            counts.total += n
            if statut == Intervention.STATUT_EN_COURS:
                counts.en_cours = n
            elif statut == Intervention.STATUT_EN_ATTENTE:
                counts.en_attente = n
            elif statut == Intervention.STATUT_TERMINEE:
                counts.terminees = n
            elif statut == Intervention.STATUT_ANNULEE:
                counts.annulees = n
        return counts

    @staticmethod
    def status_from_counts(counts: InterventionCounts) -> str:
        return STATUT_DISPONIBLE if counts.en_cours < TECHNICIAN_BUSY_THRESHOLD else STATUT_OCCUPE

    @staticmethod
    def get_technician_status(technicien_id: int) -> str:
        counts = StatsService.get_intervention_counts(StatsFilters(technicien_id=technicien_id))
        return StatsService.status_from_counts(counts)


__all__ = [
    'StatsService', 'GlobalStats', 'TechnicianStats', 'InterventionCounts', 'StatsFilters',
    'STATS_PERIODS', 'MAX_PERIOD_DAYS', 'TECHNICIAN_BUSY_THRESHOLD', 'round_half_up', 'percentage', 'as_utc',
]
