"""
Test the algorithm settings store
"""
import pytest
from sqlalchemy import select

from coffee_pairing.core.exceptions import Forbidden, InvalidArgument, OrganizationNotFound
from coffee_pairing.core.security import CallerIdentity
from coffee_pairing.models.algorithm_settings import AlgorithmSetting
from coffee_pairing.models.audit_log import AuditLog
from coffee_pairing.models.user import UserRole
from coffee_pairing.services.algorithm_settings_service import (
    AlgorithmSettingsService,
    MAX_RANDOM_SEED,
    generate_random_seed,
    period_length_warning,
)


def org_admin(org_id: int, user_id: int = 100) -> CallerIdentity:
    return CallerIdentity(id=user_id, role=UserRole.ORG_ADMIN, organization_id=org_id)


class TestGetOrCreate:
    """Settings are provisioned with defaults on first read."""

    @pytest.mark.asyncio
    async def test_creates_defaults(self, db_session, make_organization, test_settings):
        org = await make_organization()
        service = AlgorithmSettingsService(db_session, test_settings)

        setting = await service.get_or_create(org.id)

        assert setting.organization_id == org.id
        assert setting.period_length_days == 21
        assert 1 <= setting.random_seed <= MAX_RANDOM_SEED

    @pytest.mark.asyncio
    async def test_is_idempotent(self, db_session, make_organization, test_settings):
        org = await make_organization()
        service = AlgorithmSettingsService(db_session, test_settings)

        first = await service.get_or_create(org.id)
        second = await service.get_or_create(org.id)
        await db_session.commit()

        assert first.id == second.id
        assert first.random_seed == second.random_seed
        rows = (await db_session.execute(select(AlgorithmSetting))).scalars().all()
        assert len(rows) == 1

    @pytest.mark.asyncio
    async def test_upsert_keeps_existing_row(self, db_session, make_organization):
        """A losing concurrent insert returns the row that won."""
        from coffee_pairing.repositories.settings_repository import AlgorithmSettingsRepository

        org = await make_organization()
        repository = AlgorithmSettingsRepository(db_session)

        winner = await repository.insert_if_absent(org.id, period_length_days=14, random_seed=42)
        loser = await repository.insert_if_absent(org.id, period_length_days=30, random_seed=7)

        assert loser.id == winner.id
        assert loser.period_length_days == 14
        assert loser.random_seed == 42

    def test_generated_seeds_in_range(self):
        seeds = {generate_random_seed() for _ in range(200)}
        assert all(1 <= seed <= MAX_RANDOM_SEED for seed in seeds)
        assert len(seeds) > 1


class TestUpdateSettings:
    """Validation, authorization and warnings on update."""

    @pytest.mark.asyncio
    async def test_short_period_warns_but_saves(self, db_session, make_organization, test_settings):
        org = await make_organization()
        service = AlgorithmSettingsService(db_session, test_settings)

        result = await service.update(org.id, org_admin(org.id), period_length_days=2)

        assert result.warning == "Warning: Period length is too short (< 7 days)"
        assert result.setting.period_length_days == 2

    @pytest.mark.asyncio
    async def test_long_period_warns(self, db_session, make_organization, test_settings):
        org = await make_organization()
        service = AlgorithmSettingsService(db_session, test_settings)

        result = await service.update(org.id, org_admin(org.id), period_length_days=400)

        assert result.warning == "Warning: Period length is too long (> 365 days)"
        assert result.setting.period_length_days == 400

    @pytest.mark.asyncio
    async def test_in_range_has_no_warning(self, db_session, make_organization, test_settings):
        org = await make_organization()
        service = AlgorithmSettingsService(db_session, test_settings)

        result = await service.update(org.id, org_admin(org.id), period_length_days=14, random_seed=12345)

        assert result.warning is None
        assert result.setting.period_length_days == 14
        assert result.setting.random_seed == 12345

    @pytest.mark.asyncio
    async def test_omitted_fields_keep_stored_values(self, db_session, make_organization, test_settings):
        org = await make_organization()
        service = AlgorithmSettingsService(db_session, test_settings)
        await service.update(org.id, org_admin(org.id), period_length_days=10, random_seed=999)

        result = await service.update(org.id, org_admin(org.id), random_seed=1000)

        assert result.setting.period_length_days == 10
        assert result.setting.random_seed == 1000

    @pytest.mark.asyncio
    @pytest.mark.parametrize("value", [0, -5, 2.5, "14", True])
    async def test_rejects_invalid_period_length(self, db_session, make_organization, test_settings, value):
        org = await make_organization()
        service = AlgorithmSettingsService(db_session, test_settings)

        with pytest.raises(InvalidArgument, match="periodLengthDays must be a positive integer"):
            await service.update(org.id, org_admin(org.id), period_length_days=value)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("value", [0, -1, MAX_RANDOM_SEED + 1, 3.0])
    async def test_rejects_invalid_seed(self, db_session, make_organization, test_settings, value):
        org = await make_organization()
        service = AlgorithmSettingsService(db_session, test_settings)

        with pytest.raises(InvalidArgument, match="randomSeed must be an integer between 1 and 2147483647"):
            await service.update(org.id, org_admin(org.id), random_seed=value)

    @pytest.mark.asyncio
    async def test_seed_bounds_are_inclusive(self, db_session, make_organization, test_settings):
        org = await make_organization()
        service = AlgorithmSettingsService(db_session, test_settings)

        low = await service.update(org.id, org_admin(org.id), random_seed=1)
        assert low.setting.random_seed == 1
        high = await service.update(org.id, org_admin(org.id), random_seed=MAX_RANDOM_SEED)
        assert high.setting.random_seed == MAX_RANDOM_SEED

    @pytest.mark.asyncio
    async def test_plain_user_is_forbidden(self, db_session, make_organization, test_settings):
        org = await make_organization()
        service = AlgorithmSettingsService(db_session, test_settings)
        member = CallerIdentity(id=5, role=UserRole.USER, organization_id=org.id)

        with pytest.raises(Forbidden):
            await service.update(org.id, member, period_length_days=14)

    @pytest.mark.asyncio
    async def test_admin_of_other_org_is_forbidden(self, db_session, make_organization, test_settings):
        org = await make_organization("ACME")
        other = await make_organization("GLOBEX")
        service = AlgorithmSettingsService(db_session, test_settings)

        with pytest.raises(Forbidden):
            await service.update(org.id, org_admin(other.id), period_length_days=14)

    @pytest.mark.asyncio
    async def test_super_admin_can_update_any_org(self, db_session, make_organization, test_settings):
        org = await make_organization("ACME")
        other = await make_organization("GLOBEX")
        service = AlgorithmSettingsService(db_session, test_settings)
        super_admin = CallerIdentity(id=1, role=UserRole.SUPER_ADMIN, organization_id=other.id)

        result = await service.update(org.id, super_admin, period_length_days=28)

        assert result.setting.period_length_days == 28

    @pytest.mark.asyncio
    async def test_unknown_organization(self, db_session, test_settings):
        service = AlgorithmSettingsService(db_session, test_settings)
        super_admin = CallerIdentity(id=1, role=UserRole.SUPER_ADMIN, organization_id=1)

        with pytest.raises(OrganizationNotFound):
            await service.update(999, super_admin, period_length_days=14)

    @pytest.mark.asyncio
    async def test_update_is_audited(self, db_session, make_organization, test_settings):
        org = await make_organization()
        service = AlgorithmSettingsService(db_session, test_settings)
        await service.get_or_create(org.id)

        await service.update(org.id, org_admin(org.id), period_length_days=14)

        logs = (await db_session.execute(select(AuditLog))).scalars().all()
        assert len(logs) == 1
        assert logs[0].entity_type == "AlgorithmSetting"
        assert logs[0].action == "UPDATE"
        assert logs[0].changes["period_length_days"]["new"] == 14


class TestPeriodLengthWarning:

    def test_bounds(self, test_settings):
        assert period_length_warning(7, test_settings) is None
        assert period_length_warning(365, test_settings) is None
        assert period_length_warning(6, test_settings) is not None
        assert period_length_warning(366, test_settings) is not None
