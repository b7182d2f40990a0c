# backend/slotbook/repositories/__init__.py
"""
Repository layer for the scheduling engine.

Key Components:
- BaseRepository: shared lookups, inserts and updates (never commits)
- RepositoryFactory: single construction seam used by services
- ProviderRepository: providers, services and operating hours
- ConflictCheckerRepository: appointments that currently occupy a calendar
- AppointmentRepository: listing, updates and auto-completion candidates
- ProviderDayLockRepository: per provider/day reservation locks

Usage:
    from slotbook.repositories import RepositoryFactory

    repository = RepositoryFactory.create_conflict_checker_repository(db)
    occupied = repository.get_occupied_slots(provider_id, target_date)
"""

from .appointment_repository import AppointmentRepository
from .base_repository import BaseRepository
from .conflict_checker_repository import ConflictCheckerRepository, OccupiedSlot
from .factory import RepositoryFactory
from .provider_day_lock_repository import ProviderDayLockRepository
from .provider_repository import ProviderRepository

__all__ = [
    "AppointmentRepository",
    "BaseRepository",
    "ConflictCheckerRepository",
    "OccupiedSlot",
    "ProviderDayLockRepository",
    "ProviderRepository",
    "RepositoryFactory",
]
