"""Tests for SchemaService and schema version assignment."""
import pytest

from tagvault.events import subjects
from tagvault.exceptions import InternalException, NestedTypesNotAllowedException, NotFoundException
from tagvault.repositories.namespace_repository import NamespaceRepository
from tagvault.repositories.schema_repository import SchemaRepository
from tagvault.services.schema_service import SchemaService

GLOBAL_SCHEMA = {
    "type": "object",
    "properties": {"department": {"type": "string"}, "confidential": {"type": "boolean"}},
}


class TestGlobalSchema:
    """Test the namespace-global schema."""

    async def test_set_and_get(self, schema_service, namespace, publisher) -> None:
        stored = await schema_service.set_global_schema(namespace.name, GLOBAL_SCHEMA)

        assert stored.version == 1
        assert stored.tag_path is None
        assert stored.json_schema == GLOBAL_SCHEMA

        fetched = await schema_service.get_global_schema(namespace.name)
        assert fetched.version == 1
        assert publisher.subjects() == [subjects.SCHEMA_CHANGED]

    async def test_identical_schema_keeps_version(self, schema_service, namespace, publisher) -> None:
        await schema_service.set_global_schema(namespace.name, GLOBAL_SCHEMA)
        again = await schema_service.set_global_schema(namespace.name, dict(GLOBAL_SCHEMA))

        assert again.version == 1
        assert len(publisher.events) == 1

    async def test_versions_increase(self, schema_service, namespace) -> None:
        await schema_service.set_global_schema(namespace.name, GLOBAL_SCHEMA)
        second = await schema_service.set_global_schema(namespace.name, {"type": "object"})

        assert second.version == 2
        latest = await schema_service.get_global_schema(namespace.name)
        assert latest.json_schema == {"type": "object"}

    async def test_scoped_per_namespace(self, schema_service, namespace_service, namespace) -> None:
        other = await namespace_service.create_namespace("globex")
        await schema_service.set_global_schema(namespace.name, GLOBAL_SCHEMA)

        assert await schema_service.get_global_schema(other.name) is None

    async def test_nested_schema_rejected(self, schema_service, namespace) -> None:
        with pytest.raises(NestedTypesNotAllowedException):
            await schema_service.set_global_schema(
                namespace.name, {"type": "object", "properties": {"meta": {"type": "object"}}}
            )

    async def test_unknown_namespace(self, schema_service) -> None:
        with pytest.raises(NotFoundException):
            await schema_service.set_global_schema("nowhere", GLOBAL_SCHEMA)


class TestVersionAssignment:
    """Test the unique-version retry loop."""

    async def test_retries_after_version_collision(self, session, schema_service, namespace, monkeypatch) -> None:
        """Test a stale max(version) read collides once and is retried."""
        await schema_service.set_global_schema(namespace.name, GLOBAL_SCHEMA)

        original = SchemaRepository.latest_version
        calls = []

        async def stale_once(self, namespace_id, tag_id):
            calls.append(tag_id)
            if len(calls) == 1:
                return 0
            return await original(self, namespace_id, tag_id)

        monkeypatch.setattr(SchemaRepository, "latest_version", stale_once)

        stored = await schema_service.set_global_schema(namespace.name, {"type": "object"})

        assert stored.version == 2
        assert len(calls) == 2

    async def test_gives_up_after_max_retries(self, session, namespace, monkeypatch) -> None:
        service = SchemaService(session, max_retries=2)
        await service.set_global_schema(namespace.name, GLOBAL_SCHEMA)

        async def always_stale(self, namespace_id, tag_id):
            return 0

        monkeypatch.setattr(SchemaRepository, "latest_version", always_stale)

        with pytest.raises(InternalException):
            await service.set_global_schema(namespace.name, {"type": "object"})

        monkeypatch.undo()
        latest = await service.get_global_schema(namespace.name)
        assert latest.version == 1

    async def test_store_inside_callers_transaction(self, session, schema_service, namespace) -> None:
        ns = await NamespaceRepository(session).get_by_name(namespace.name)

        first = await schema_service.store(ns.id, None, GLOBAL_SCHEMA)
        second = await schema_service.store(ns.id, None, {"type": "object"})
        await session.commit()

        assert (first.version, second.version) == (1, 2)
        assert (await schema_service.latest(ns.id, None)).version == 2
