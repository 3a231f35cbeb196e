"""
Database models for coffee pairing.
"""
from coffee_pairing.models.organization import Organization
from coffee_pairing.models.user import User, UserRole
from coffee_pairing.models.algorithm_settings import AlgorithmSetting
from coffee_pairing.models.pairing import (
    PairingPeriod,
    PairingPeriodStatus,
    Pairing,
    PairingStatus,
)
from coffee_pairing.models.user_block import UserBlock
from coffee_pairing.models.cycle_participation import CycleParticipation
from coffee_pairing.models.achievement import Achievement, UserAchievement
from coffee_pairing.models.scheduler_control import SchedulerControl
from coffee_pairing.models.audit_log import AuditLog

__all__ = [
    "Organization",
    "User",
    "UserRole",
    "AlgorithmSetting",
    "PairingPeriod",
    "PairingPeriodStatus",
    "Pairing",
    "PairingStatus",
    "UserBlock",
    "CycleParticipation",
    "Achievement",
    "UserAchievement",
    "SchedulerControl",
    "AuditLog",
]
