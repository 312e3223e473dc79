"""
Tests for tenant scoping, soft delete and audit stamping in CRUDBase
"""

from uuid import uuid4

import pytest
from sqlalchemy import select

from taskhub.core.context import CurrentCaller
from taskhub.core.exceptions import ConcurrencyConflictError, ImmutableRecordError, TenantMismatchError
from taskhub.models.project import Project
from taskhub.repositories.activity_log import activity_log_repository
from taskhub.repositories.project import project_repository


# ==================== Fixtures ====================

@pytest.fixture
def ctx_a(admin_a, caller_for):
    return caller_for(admin_a)


@pytest.fixture
def ctx_b(admin_b, caller_for):
    return caller_for(admin_b)


@pytest.fixture
async def project_a(seeded_db, ctx_a):
    return await project_repository.create(seeded_db, ctx_a, obj_in={"name": "Apollo"})


class TestCreateStamping:

    @pytest.mark.asyncio
    async def test_tenant_and_audit_stamped(self, project_a, ctx_a):
        assert project_a.tenant_id == ctx_a.tenant_id
        assert project_a.created_by == ctx_a.user_id
        assert project_a.created_at is not None
        assert project_a.updated_at is None
        assert project_a.is_deleted is False
        assert project_a.version == 1

    @pytest.mark.asyncio
    async def test_client_supplied_audit_fields_ignored(self, seeded_db, ctx_a):
        forged_id = uuid4()
        project = await project_repository.create(
            seeded_db,
            ctx_a,
            obj_in={"name": "Forged", "created_by": forged_id, "is_deleted": True, "version": 9},
        )

        assert project.created_by == ctx_a.user_id
        assert project.is_deleted is False
        assert project.version == 1

    @pytest.mark.asyncio
    async def test_cross_tenant_insert_rejected(self, seeded_db, ctx_a, ctx_b):
        with pytest.raises(TenantMismatchError):
            await project_repository.create(
                seeded_db, ctx_a, obj_in={"name": "Intruder", "tenant_id": ctx_b.tenant_id}
            )

    @pytest.mark.asyncio
    async def test_matching_tenant_in_input_accepted(self, seeded_db, ctx_a):
        project = await project_repository.create(
            seeded_db, ctx_a, obj_in={"name": "Explicit", "tenant_id": ctx_a.tenant_id}
        )
        assert project.tenant_id == ctx_a.tenant_id


class TestScopedReads:

    @pytest.mark.asyncio
    async def test_other_tenant_record_invisible(self, seeded_db, project_a, ctx_b):
        assert await project_repository.get(seeded_db, ctx_b, project_a.id) is None
        assert await project_repository.get_multi(seeded_db, ctx_b) == []
        assert await project_repository.count(seeded_db, ctx_b) == 0

    @pytest.mark.asyncio
    async def test_own_records_listed(self, seeded_db, project_a, ctx_a, ctx_b):
        await project_repository.create(seeded_db, ctx_b, obj_in={"name": "Gemini"})

        names = [p.name for p in await project_repository.get_multi(seeded_db, ctx_a)]

        assert names == ["Apollo"]
        assert await project_repository.count(seeded_db, ctx_a) == 1

    @pytest.mark.asyncio
    async def test_filter_cannot_widen_tenant(self, seeded_db, project_a, ctx_b):
        found = await project_repository.get_multi(seeded_db, ctx_b, filters={"tenant_id": project_a.tenant_id})
        assert found == []

    @pytest.mark.asyncio
    async def test_system_context_spans_tenants(self, seeded_db, project_a, ctx_b):
        await project_repository.create(seeded_db, ctx_b, obj_in={"name": "Gemini"})

        assert await project_repository.count(seeded_db, CurrentCaller.system()) == 2


class TestSoftDelete:

    @pytest.mark.asyncio
    async def test_deleted_record_hidden_but_kept(self, seeded_db, project_a, ctx_a):
        await project_repository.remove(seeded_db, ctx_a, project_a)

        assert await project_repository.get(seeded_db, ctx_a, project_a.id) is None
        assert await project_repository.get(seeded_db, CurrentCaller.system(), project_a.id) is None

        row = (await seeded_db.execute(select(Project).where(Project.id == project_a.id))).scalar_one()
        assert row.is_deleted is True
        assert row.deleted_by == ctx_a.user_id
        assert row.deleted_at is not None

    @pytest.mark.asyncio
    async def test_delete_by_id_of_other_tenant_is_noop(self, seeded_db, project_a, ctx_b):
        assert await project_repository.delete(seeded_db, ctx_b, id=project_a.id) is None
        assert project_a.is_deleted is False


class TestUpdate:

    @pytest.mark.asyncio
    async def test_update_stamps_modifier(self, seeded_db, project_a, ctx_a):
        updated = await project_repository.update(seeded_db, ctx_a, db_obj=project_a, obj_in={"name": "Artemis"})

        assert updated.name == "Artemis"
        assert updated.updated_by == ctx_a.user_id
        assert updated.updated_at is not None
        assert updated.version == 2

    @pytest.mark.asyncio
    async def test_update_of_other_tenant_instance_rejected(self, seeded_db, project_a, ctx_b):
        with pytest.raises(TenantMismatchError):
            await project_repository.update(seeded_db, ctx_b, db_obj=project_a, obj_in={"name": "Hijack"})

    @pytest.mark.asyncio
    async def test_tenant_cannot_be_reassigned(self, seeded_db, project_a, ctx_a, ctx_b):
        with pytest.raises(TenantMismatchError):
            await project_repository.update(
                seeded_db, ctx_a, db_obj=project_a, obj_in={"tenant_id": ctx_b.tenant_id}
            )

    @pytest.mark.asyncio
    async def test_stale_expected_version(self, seeded_db, project_a, ctx_a):
        with pytest.raises(ConcurrencyConflictError):
            await project_repository.update(
                seeded_db, ctx_a, db_obj=project_a, obj_in={"name": "Late"}, expected_version=7
            )

    @pytest.mark.asyncio
    async def test_concurrent_writer_detected(self, session_factory, project_a, ctx_a):
        async with session_factory() as first, session_factory() as second:
            mine = await project_repository.get(first, ctx_a, project_a.id)
            theirs = await project_repository.get(second, ctx_a, project_a.id)

            await project_repository.update(second, ctx_a, db_obj=theirs, obj_in={"name": "Theirs"})

            with pytest.raises(ConcurrencyConflictError):
                await project_repository.update(first, ctx_a, db_obj=mine, obj_in={"name": "Mine"})


class TestActivityLogImmutable:

    @pytest.mark.asyncio
    async def test_entries_cannot_change(self, seeded_db, project_a, ctx_a):
        entry = await activity_log_repository.record(
            seeded_db, ctx_a, action="Created", entity_type="Project", entity_id=project_a.id
        )
        await seeded_db.commit()

        with pytest.raises(ImmutableRecordError):
            await activity_log_repository.update(seeded_db, ctx_a, db_obj=entry, obj_in={"action": "X"})
        with pytest.raises(ImmutableRecordError):
            await activity_log_repository.remove(seeded_db, ctx_a, entry)
        with pytest.raises(ImmutableRecordError):
            await activity_log_repository.delete(seeded_db, ctx_a, id=entry.id)

    @pytest.mark.asyncio
    async def test_entries_are_tenant_scoped(self, seeded_db, project_a, ctx_a, ctx_b):
        await activity_log_repository.record(
            seeded_db, ctx_a, action="Created", entity_type="Project", entity_id=project_a.id
        )
        await seeded_db.commit()

        own, own_total = await activity_log_repository.list_entries(seeded_db, ctx_a)
        other, other_total = await activity_log_repository.list_entries(seeded_db, ctx_b)

        assert own_total == 1 and own[0].user_id == ctx_a.user_id
        assert other_total == 0 and other == []
