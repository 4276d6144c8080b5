"""Tests for TagService."""
import pytest

from tagvault.events import subjects
from tagvault.exceptions import (
    AlreadyExistsException,
    InvalidArgumentException,
    InvalidParentReferenceException,
    NestedTypesNotAllowedException,
    NotFoundException,
    ParentNotFoundException,
)
from tagvault.services.tag_service import (
    build_tag_path,
    generate_color_from_name,
    validate_color,
    validate_tag_name,
    validate_tag_path,
)

INVOICE_SCHEMA = {
    "type": "object",
    "properties": {
        "amount": {"type": "number", "minimum": 0},
        "currency": {"type": "string", "enum": ["EUR", "USD"]},
    },
    "required": ["amount"],
}


class TestTagNames:
    """Test name, path and color rules."""

    @pytest.mark.parametrize("name", ["a", "Q3", "invoices", "tax-2023", "my_tag", "A" * 100])
    def test_valid_names(self, name: str) -> None:
        assert validate_tag_name(name) == name

    @pytest.mark.parametrize(
        "name", ["", "-lead", "trail_", "has space", "a/b", "A" * 101, "ünïcode", "docs\n", "\ndocs"]
    )
    def test_invalid_names(self, name: str) -> None:
        with pytest.raises(InvalidArgumentException):
            validate_tag_name(name)

    def test_path_must_start_with_slash(self) -> None:
        with pytest.raises(InvalidArgumentException):
            validate_tag_path("financial/reports")

    def test_path_segments_follow_name_rule(self) -> None:
        assert validate_tag_path("/financial/reports") == "/financial/reports"
        with pytest.raises(InvalidArgumentException):
            validate_tag_path("/financial//reports")
        with pytest.raises(InvalidArgumentException):
            validate_tag_path("/financial/reports\n")

    def test_path_length_limit(self) -> None:
        with pytest.raises(InvalidArgumentException):
            validate_tag_path("/" + "/".join(["abcdefghij"] * 24))

    def test_color_rule(self) -> None:
        assert validate_color("#FF00aa") == "#FF00aa"
        assert validate_color("") is None
        assert validate_color(None) is None
        for bad in ("FF00AA", "#FF00A", "#GG0000", "red", "#FFFFFF\n"):
            with pytest.raises(InvalidArgumentException):
                validate_color(bad)

    def test_build_tag_path(self) -> None:
        assert build_tag_path(None, "finance") == "/finance"
        assert build_tag_path("", "finance") == "/finance"
        assert build_tag_path("/finance", "q1") == "/finance/q1"
        assert build_tag_path("/finance/", "q1") == "/finance/q1"


class TestColorGeneration:
    """Test deterministic color derivation."""

    def test_deterministic(self) -> None:
        assert generate_color_from_name("finance") == generate_color_from_name("finance")

    def test_format_and_range(self) -> None:
        color = generate_color_from_name("finance")
        assert validate_color(color) == color
        assert color == color.upper()
        for channel in (color[1:3], color[3:5], color[5:7]):
            assert 80 <= int(channel, 16) <= 255

    def test_distinct_names_distinct_colors(self) -> None:
        assert generate_color_from_name("finance") != generate_color_from_name("legal")


class TestCreateTag:
    """Test tag creation."""

    async def test_create_root_tag(self, tag_service, namespace) -> None:
        """Test creating a root tag computes its path and color."""
        tag = await tag_service.create_tag(namespace.name, "finance", description="Money matters")

        assert tag.path == "/finance"
        assert tag.parent_path is None
        assert tag.description == "Money matters"
        assert tag.color == generate_color_from_name("finance")
        assert tag.json_schema is None

    async def test_create_child_tag(self, tag_service, namespace) -> None:
        """Test create then get returns the materialized path."""
        await tag_service.create_tag(namespace.name, "financial")
        await tag_service.create_tag(namespace.name, "reports", parent_path="/financial")
        await tag_service.create_tag(namespace.name, "2023", parent_path="/financial/reports", color="#112233")

        tag = await tag_service.get_tag_by_path(namespace.name, "/financial/reports/2023")
        assert tag.name == "2023"
        assert tag.parent_path == "/financial/reports"
        assert tag.color == "#112233"

    async def test_create_with_schema(self, tag_service, namespace, publisher) -> None:
        """Test a schema creates version 1 and announces it."""
        tag = await tag_service.create_tag(namespace.name, "invoice", json_schema=INVOICE_SCHEMA)

        assert tag.schema_version == 1
        assert tag.json_schema == INVOICE_SCHEMA
        assert publisher.subjects() == [subjects.SCHEMA_CHANGED]
        _, payload = publisher.events[0]
        assert payload["tag_path"] == "/invoice"
        assert payload["old_json_schema"] is None
        assert payload["new_json_schema"] == INVOICE_SCHEMA

    async def test_create_with_nested_schema_rejected(self, tag_service, namespace) -> None:
        schema = {"type": "object", "properties": {"lines": {"type": "array"}}}
        with pytest.raises(NestedTypesNotAllowedException):
            await tag_service.create_tag(namespace.name, "invoice", json_schema=schema)

        assert await tag_service.list_tags(namespace.name) == []

    async def test_duplicate_root_tag(self, tag_service, namespace) -> None:
        await tag_service.create_tag(namespace.name, "finance")
        with pytest.raises(AlreadyExistsException):
            await tag_service.create_tag(namespace.name, "finance")

    async def test_same_name_in_two_namespaces(self, tag_service, namespace_service, namespace) -> None:
        other = await namespace_service.create_namespace("globex")

        first = await tag_service.create_tag(namespace.name, "finance")
        second = await tag_service.create_tag(other.name, "finance")

        assert first.path == second.path == "/finance"

    async def test_same_name_under_different_parents(self, tag_service, namespace) -> None:
        await tag_service.create_tag(namespace.name, "finance")
        await tag_service.create_tag(namespace.name, "legal")
        await tag_service.create_tag(namespace.name, "2023", parent_path="/finance")
        await tag_service.create_tag(namespace.name, "2023", parent_path="/legal")

        paths = [tag.path for tag in await tag_service.list_tags(namespace.name)]
        assert paths == ["/finance", "/finance/2023", "/legal", "/legal/2023"]

    async def test_missing_parent(self, tag_service, namespace) -> None:
        with pytest.raises(ParentNotFoundException):
            await tag_service.create_tag(namespace.name, "q1", parent_path="/nope")

    async def test_missing_namespace(self, tag_service) -> None:
        with pytest.raises(NotFoundException):
            await tag_service.create_tag("nowhere", "finance")

    async def test_invalid_color(self, tag_service, namespace) -> None:
        with pytest.raises(InvalidArgumentException):
            await tag_service.create_tag(namespace.name, "finance", color="blue")

    async def test_trailing_newline_in_name_rejected(self, tag_service, namespace) -> None:
        with pytest.raises(InvalidArgumentException):
            await tag_service.create_tag(namespace.name, "docs\n")
        assert await tag_service.list_tags(namespace.name) == []


class TestUpdateTag:
    """Test rename, move and schema updates."""

    async def test_rename_rewrites_descendants(self, tag_service, namespace) -> None:
        await tag_service.create_tag(namespace.name, "finance")
        await tag_service.create_tag(namespace.name, "reports", parent_path="/finance")
        await tag_service.create_tag(namespace.name, "2023", parent_path="/finance/reports")

        updated = await tag_service.update_tag(namespace.name, "/finance", new_name="money")

        assert updated.path == "/money"
        paths = [tag.path for tag in await tag_service.list_tags(namespace.name)]
        assert paths == ["/money", "/money/reports", "/money/reports/2023"]

    async def test_move_under_other_parent(self, tag_service, namespace) -> None:
        await tag_service.create_tag(namespace.name, "finance")
        await tag_service.create_tag(namespace.name, "archive")
        await tag_service.create_tag(namespace.name, "reports", parent_path="/finance")
        await tag_service.create_tag(namespace.name, "q1", parent_path="/finance/reports")

        moved = await tag_service.update_tag(namespace.name, "/finance/reports", new_parent_path="/archive")

        assert moved.path == "/archive/reports"
        assert moved.parent_path == "/archive"
        child = await tag_service.get_tag_by_path(namespace.name, "/archive/reports/q1")
        assert child.parent_path == "/archive/reports"
        with pytest.raises(NotFoundException):
            await tag_service.get_tag_by_path(namespace.name, "/finance/reports/q1")

    async def test_move_to_root(self, tag_service, namespace) -> None:
        await tag_service.create_tag(namespace.name, "finance")
        await tag_service.create_tag(namespace.name, "reports", parent_path="/finance")

        moved = await tag_service.update_tag(namespace.name, "/finance/reports", new_parent_path="")

        assert moved.path == "/reports"
        assert moved.parent_path is None

    async def test_none_parent_keeps_current_parent(self, tag_service, namespace) -> None:
        await tag_service.create_tag(namespace.name, "finance")
        await tag_service.create_tag(namespace.name, "reports", parent_path="/finance")

        updated = await tag_service.update_tag(namespace.name, "/finance/reports", description="Quarterly")

        assert updated.path == "/finance/reports"
        assert updated.description == "Quarterly"

    async def test_move_under_itself_rejected(self, tag_service, namespace) -> None:
        await tag_service.create_tag(namespace.name, "a")

        with pytest.raises(InvalidParentReferenceException):
            await tag_service.update_tag(namespace.name, "/a", new_parent_path="/a")

    async def test_move_under_descendant_rejected(self, tag_service, namespace) -> None:
        await tag_service.create_tag(namespace.name, "a")
        await tag_service.create_tag(namespace.name, "b", parent_path="/a")
        await tag_service.create_tag(namespace.name, "c", parent_path="/a/b")

        with pytest.raises(InvalidParentReferenceException):
            await tag_service.update_tag(namespace.name, "/a", new_parent_path="/a/b")
        with pytest.raises(InvalidParentReferenceException):
            await tag_service.update_tag(namespace.name, "/a", new_parent_path="/a/b/c")

        tag = await tag_service.get_tag_by_path(namespace.name, "/a")
        assert tag.parent_path is None

    async def test_sibling_prefix_is_not_a_descendant(self, tag_service, namespace) -> None:
        """Test '/ab' is not considered inside '/a'."""
        await tag_service.create_tag(namespace.name, "a")
        await tag_service.create_tag(namespace.name, "ab")

        moved = await tag_service.update_tag(namespace.name, "/a", new_parent_path="/ab")
        assert moved.path == "/ab/a"

    async def test_rename_collision(self, tag_service, namespace) -> None:
        await tag_service.create_tag(namespace.name, "finance")
        await tag_service.create_tag(namespace.name, "legal")

        with pytest.raises(AlreadyExistsException):
            await tag_service.update_tag(namespace.name, "/legal", new_name="finance")

        paths = [tag.path for tag in await tag_service.list_tags(namespace.name)]
        assert paths == ["/finance", "/legal"]

    async def test_color_kept_unless_given(self, tag_service, namespace) -> None:
        await tag_service.create_tag(namespace.name, "finance", color="#123456")

        renamed = await tag_service.update_tag(namespace.name, "/finance", new_name="money")
        assert renamed.color == "#123456"

        recolored = await tag_service.update_tag(namespace.name, "/money", color="#654321")
        assert recolored.color == "#654321"

    async def test_schema_versioning(self, tag_service, namespace, publisher) -> None:
        """Test only a changed schema creates a new version."""
        await tag_service.create_tag(namespace.name, "invoice", json_schema=INVOICE_SCHEMA)

        same = await tag_service.update_tag(namespace.name, "/invoice", json_schema=dict(INVOICE_SCHEMA))
        assert same.schema_version == 1

        changed_schema = {"type": "object", "properties": {"amount": {"type": "number"}}}
        changed = await tag_service.update_tag(namespace.name, "/invoice", json_schema=changed_schema)
        assert changed.schema_version == 2
        assert changed.json_schema == changed_schema

        assert publisher.subjects() == [subjects.SCHEMA_CHANGED, subjects.SCHEMA_CHANGED]
        _, payload = publisher.events[-1]
        assert payload["version"] == 2
        assert payload["old_json_schema"] == INVOICE_SCHEMA
        assert payload["new_json_schema"] == changed_schema

    async def test_schema_survives_rename(self, tag_service, namespace) -> None:
        await tag_service.create_tag(namespace.name, "invoice", json_schema=INVOICE_SCHEMA)

        renamed = await tag_service.update_tag(namespace.name, "/invoice", new_name="bill")

        assert renamed.schema_version == 1
        assert renamed.json_schema == INVOICE_SCHEMA

    async def test_update_missing_tag(self, tag_service, namespace) -> None:
        with pytest.raises(NotFoundException):
            await tag_service.update_tag(namespace.name, "/ghost", new_name="spirit")


class TestDeleteTag:
    """Test subtree deletion."""

    async def test_delete_removes_subtree_and_associations(
        self, tag_service, document_tag_service, namespace, document
    ) -> None:
        await tag_service.create_tag(namespace.name, "a", json_schema=INVOICE_SCHEMA)
        await tag_service.create_tag(namespace.name, "b", parent_path="/a")
        await tag_service.create_tag(namespace.name, "c", parent_path="/a/b")
        await tag_service.create_tag(namespace.name, "keep")
        await document_tag_service.attach_tag(namespace.name, document.id, "/a/b/c")
        await document_tag_service.attach_tag(namespace.name, document.id, "/keep")

        removed = await tag_service.delete_tag(namespace.name, "/a")

        assert removed == 3
        paths = [tag.path for tag in await tag_service.list_tags(namespace.name)]
        assert paths == ["/keep"]
        remaining = await document_tag_service.list_document_tags(namespace.name, document.id)
        assert [t.path for t in remaining] == ["/keep"]
        for path in ("/a", "/a/b", "/a/b/c"):
            with pytest.raises(NotFoundException):
                await tag_service.get_tag_by_path(namespace.name, path)

    async def test_recreate_after_delete_starts_fresh(self, tag_service, namespace) -> None:
        await tag_service.create_tag(namespace.name, "invoice", json_schema=INVOICE_SCHEMA)
        await tag_service.delete_tag(namespace.name, "/invoice")

        tag = await tag_service.create_tag(namespace.name, "invoice")
        assert tag.json_schema is None
        assert tag.schema_version is None

    async def test_delete_missing_tag(self, tag_service, namespace) -> None:
        with pytest.raises(NotFoundException):
            await tag_service.delete_tag(namespace.name, "/ghost")
