from __future__ import annotations
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy import Integer, String, ForeignKey
from hotelix.models.hotel import Base


class Zone(Base):
    __tablename__ = 'zones'
    TYPE_CHAMBRE = 'CHAMBRE'
    TYPE_RECEPTION = 'RECEPTION'
    TYPE_RESTAURANT = 'RESTAURANT'
    TYPE_SPA = 'SPA'
    TYPE_PISCINE = 'PISCINE'
    TYPE_CUISINE = 'CUISINE'
    TYPE_ESPACE_COMMUN = 'ESPACE_COMMUN'
    TYPE_EXTERIEUR = 'EXTERIEUR'
    TYPE_TECHNIQUE = 'TECHNIQUE'
    ALL_TYPES = (TYPE_CHAMBRE, TYPE_RECEPTION, TYPE_RESTAURANT, TYPE_SPA, TYPE_PISCINE,
                 TYPE_CUISINE, TYPE_ESPACE_COMMUN, TYPE_EXTERIEUR, TYPE_TECHNIQUE)
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    nom: Mapped[str] = mapped_column(String(128), nullable=False)
    type: Mapped[str] = mapped_column(String(32), nullable=False)
    hotel_id: Mapped[int] = mapped_column(ForeignKey('hotels.id', ondelete='CASCADE'), nullable=False, index=True)
    hotel = relationship('Hotel', back_populates='zones')
    sous_zones = relationship('SousZone', back_populates='zone', order_by='SousZone.nom')


class SousZone(Base):
    __tablename__ = 'sous_zones'
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    nom: Mapped[str] = mapped_column(String(128), nullable=False)
    # Deleting a zone that still has sous-zones is refused at the route level
    zone_id: Mapped[int] = mapped_column(ForeignKey('zones.id', ondelete='RESTRICT'), nullable=False, index=True)
    zone = relationship('Zone', back_populates='sous_zones')
