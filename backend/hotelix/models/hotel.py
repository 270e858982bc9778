from __future__ import annotations
from datetime import datetime, timezone
from typing import Optional
from sqlalchemy.orm import declarative_base, relationship, Mapped, mapped_column
from sqlalchemy import String, Integer, ForeignKey, DateTime, func

Base = declarative_base()


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Hotel(Base):
    __tablename__ = 'hotels'
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    nom: Mapped[str] = mapped_column(String(128), nullable=False)
    adresse: Mapped[str] = mapped_column(String(255), nullable=False)
    pays: Mapped[str] = mapped_column(String(64), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
    users = relationship('User', back_populates='hotel')
    zones = relationship('Zone', back_populates='hotel', order_by='Zone.nom')


class User(Base):
    __tablename__ = 'users'
    ROLE_MANAGER = 'MANAGER'
    ROLE_STAFF = 'STAFF'
    ROLE_TECHNICIEN = 'TECHNICIEN'
    ALL_ROLES = (ROLE_MANAGER, ROLE_STAFF, ROLE_TECHNICIEN)
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    email: Mapped[str] = mapped_column(String(128), unique=True, index=True, nullable=False)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    name: Mapped[Optional[str]] = mapped_column(String(128))
    role: Mapped[str] = mapped_column(String(16), nullable=False, default=ROLE_STAFF, index=True)
    specialite: Mapped[Optional[str]] = mapped_column(String(64))
    hotel_id: Mapped[int] = mapped_column(ForeignKey('hotels.id', ondelete='CASCADE'), nullable=False, index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
    hotel = relationship('Hotel', back_populates='users')

    def set_password(self, raw: str):
        from werkzeug.security import generate_password_hash
        self.password_hash = generate_password_hash(raw)

    def verify_password(self, raw: str) -> bool:
        from werkzeug.security import check_password_hash
        return check_password_hash(self.password_hash, raw)
