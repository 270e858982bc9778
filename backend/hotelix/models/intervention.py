from __future__ import annotations
from datetime import datetime
from typing import Optional
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy import Integer, String, Text, ForeignKey, DateTime, func
from hotelix.models.hotel import Base, utcnow


class Intervention(Base):
    __tablename__ = 'interventions'
    # Status constants
    STATUT_EN_ATTENTE = 'EN_ATTENTE'
    STATUT_EN_COURS = 'EN_COURS'
    STATUT_TERMINEE = 'TERMINEE'
    STATUT_ANNULEE = 'ANNULEE'
    ALL_STATUTS = (STATUT_EN_ATTENTE, STATUT_EN_COURS, STATUT_TERMINEE, STATUT_ANNULEE)
    CLOSED_STATUTS = (STATUT_TERMINEE, STATUT_ANNULEE)

    ALL_TYPES = ('PLOMBERIE', 'ELECTRICITE', 'CLIMATISATION', 'CHAUFFAGE', 'MENUISERIE',
                 'PEINTURE', 'NETTOYAGE', 'MENAGE', 'AUTRE')

    # Ordered from lowest to highest
    ALL_PRIORITES = ('BASSE', 'NORMALE', 'HAUTE', 'URGENTE')
    PRIORITE_RANK = {p: i for i, p in enumerate(ALL_PRIORITES)}

    ORIGINE_CLIENT = 'CLIENT'
    ORIGINE_STAFF = 'STAFF'
    ALL_ORIGINES = (ORIGINE_CLIENT, ORIGINE_STAFF)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    titre: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text)
    type: Mapped[str] = mapped_column(String(32), nullable=False, index=True)
    priorite: Mapped[str] = mapped_column(String(16), nullable=False, default='NORMALE')
    origine: Mapped[str] = mapped_column(String(16), nullable=False, default=ORIGINE_STAFF)
    statut: Mapped[str] = mapped_column(String(16), nullable=False, default=STATUT_EN_ATTENTE, index=True)
    date_creation: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow, index=True)
    date_debut: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
    date_fin: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
    hotel_id: Mapped[int] = mapped_column(ForeignKey('hotels.id', ondelete='CASCADE'), nullable=False, index=True)
    demandeur_id: Mapped[int] = mapped_column(ForeignKey('users.id'), nullable=False)
    assigne_id: Mapped[Optional[int]] = mapped_column(ForeignKey('users.id', ondelete='SET NULL'), index=True)
    zone_id: Mapped[int] = mapped_column(ForeignKey('zones.id'), nullable=False)
    sous_zone_id: Mapped[Optional[int]] = mapped_column(ForeignKey('sous_zones.id'))
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    demandeur = relationship('User', foreign_keys=[demandeur_id])
    assigne = relationship('User', foreign_keys=[assigne_id])
    zone = relationship('Zone')
    sous_zone = relationship('SousZone')

    def set_statut(self, statut: str, now: Optional[datetime] = None):
        """Statut is a label, not a state machine: any statut may follow any other.

        Entering EN_COURS stamps date_debut once; TERMINEE stamps date_fin and
        every other statut clears it.
        """
        now = now or utcnow()
        if statut == self.STATUT_EN_COURS and self.date_debut is None:
            self.date_debut = now
        self.date_fin = now if statut == self.STATUT_TERMINEE else None
        self.statut = statut
