"""
Settings store for the pairing algorithm.
"""
import logging
import secrets
from dataclasses import dataclass
from typing import Any, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from coffee_pairing.core.config import Settings, get_settings
from coffee_pairing.core.exceptions import InvalidArgument, OrganizationNotFound
from coffee_pairing.core.security import CallerIdentity, ensure_can_administer
from coffee_pairing.models.algorithm_settings import AlgorithmSetting
from coffee_pairing.repositories.settings_repository import AlgorithmSettingsRepository
from coffee_pairing.repositories.user_repository import UserRepository
from coffee_pairing.services.audit_service import log_update

logger = logging.getLogger(__name__)

MIN_RANDOM_SEED = 1
MAX_RANDOM_SEED = 2_147_483_647


def generate_random_seed() -> int:
    """Cryptographically random seed in [MIN_RANDOM_SEED, MAX_RANDOM_SEED]."""
    return secrets.randbelow(MAX_RANDOM_SEED) + MIN_RANDOM_SEED


def _is_integer(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def period_length_warning(period_length_days: int, config: Settings) -> Optional[str]:
    """Advisory message when the period length is outside the recommended bounds."""
    if period_length_days < config.PAIRING_MIN_PERIOD_DAYS:
        return f"Warning: Period length is too short (< {config.PAIRING_MIN_PERIOD_DAYS} days)"
    if period_length_days > config.PAIRING_MAX_PERIOD_DAYS:
        return f"Warning: Period length is too long (> {config.PAIRING_MAX_PERIOD_DAYS} days)"
    return None


@dataclass
class SettingsUpdateResult:
    setting: AlgorithmSetting
    warning: Optional[str] = None


class AlgorithmSettingsService:
    """Service class for reading and updating per-organization algorithm settings."""

    def __init__(self, db: AsyncSession, config: Optional[Settings] = None):
        self.db = db
        self.config = config or get_settings()
        self.repository = AlgorithmSettingsRepository(db)

    async def get_or_create(self, organization_id: int) -> AlgorithmSetting:
        """
        Return the organization's settings, creating defaults on first access.
        """
        setting = await self.repository.get(organization_id)
        if setting is not None:
            return setting

        setting = await self.repository.insert_if_absent(
            organization_id,
            period_length_days=self.config.PAIRING_DEFAULT_PERIOD_DAYS,
            random_seed=generate_random_seed(),
        )
        logger.info(f"Created default algorithm settings for organization {organization_id}")
        return setting

    async def get_for_admin(self, organization_id: int, identity: CallerIdentity) -> AlgorithmSetting:
        ensure_can_administer(identity, organization_id)
        await self._ensure_organization(organization_id)
        return await self.get_or_create(organization_id)

    async def update(
        self,
        organization_id: int,
        identity: CallerIdentity,
        period_length_days: Any = None,
        random_seed: Any = None,
    ) -> SettingsUpdateResult:
        """
        Update settings after validating the caller and the values.

        Omitted values keep what is stored. A period length outside the
        recommended bounds is saved anyway and reported as a warning.
        """
        ensure_can_administer(identity, organization_id)

        if period_length_days is not None:
            if not _is_integer(period_length_days) or period_length_days <= 0:
                raise InvalidArgument("periodLengthDays must be a positive integer")

        if random_seed is not None:
            if not _is_integer(random_seed) or not (MIN_RANDOM_SEED <= random_seed <= MAX_RANDOM_SEED):
                raise InvalidArgument(
                    f"randomSeed must be an integer between {MIN_RANDOM_SEED} and {MAX_RANDOM_SEED}"
                )

        await self._ensure_organization(organization_id)
        setting = await self.get_or_create(organization_id)

        old_values = {
            "period_length_days": setting.period_length_days,
            "random_seed": setting.random_seed,
        }

        if period_length_days is not None:
            setting.period_length_days = period_length_days
        elif setting.period_length_days is None:
            setting.period_length_days = self.config.PAIRING_DEFAULT_PERIOD_DAYS

        if random_seed is not None:
            setting.random_seed = random_seed
        elif setting.random_seed is None:
            setting.random_seed = generate_random_seed()

        await self.db.flush()
        await self.db.refresh(setting)

        await log_update(
            self.db,
            setting,
            "AlgorithmSetting",
            old_values=old_values,
            new_values={
                "period_length_days": setting.period_length_days,
                "random_seed": setting.random_seed,
            },
            organization_id=organization_id,
            actor=identity,
        )

        warning = period_length_warning(setting.period_length_days, self.config)
        if warning:
            logger.warning(f"Organization {organization_id}: {warning}")

        return SettingsUpdateResult(setting=setting, warning=warning)

    async def _ensure_organization(self, organization_id: int) -> None:
        if await UserRepository(self.db).get_organization(organization_id) is None:
            raise OrganizationNotFound(organization_id)
