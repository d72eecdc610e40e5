"""
tests/test_validators.py
Unit tests for prismagen.validators.

Tests cover:
- Clean schemas and warning-only diagnostics
- Missing and composite identifiers (fail fast)
- Relation ids that name no scalar field
- Duplicate field names and unknown directives
"""

from __future__ import annotations

import logging

import pytest

from prismagen.errors import (
    CompositeIdentifierError,
    MissingIdentifierError,
    SchemaValidationError,
)
from prismagen.models import JoinFieldRecord, ModelRegistry, ParsedSchema
from prismagen.parser import parse_definition
from prismagen.type_map import map_relation_type
from prismagen.validators import (
    COMPOSITE_ID,
    DUPLICATE_FIELD,
    NO_ID_FIELD,
    RELATION_ID_UNKNOWN,
    UNKNOWN_DIRECTIVE,
    check_schema,
    require_identifier,
    validate_schema,
)

from conftest import ORDER_PRISMA, make_field


# ===========================================================================
# Parsed fixtures
# ===========================================================================


class TestParsedSchemas:
    def test_customer_is_clean(self, customer: ParsedSchema) -> None:
        result = validate_schema(customer)
        assert result.is_valid
        assert len(result) == 0

    def test_unknown_directive_is_warning(self, order: ParsedSchema) -> None:
        result = check_schema(order)
        assert result.is_valid
        assert result.codes() == [UNKNOWN_DIRECTIVE]
        assert "#XY" in result.warnings[0].message

    def test_unknown_directive_logged_once(self, caplog: pytest.LogCaptureFixture) -> None:
        registry = ModelRegistry(names=frozenset({"Order", "Customer"}))
        with caplog.at_level(logging.WARNING, logger="prismagen"):
            schema = parse_definition(ORDER_PRISMA, registry, file_id="order")
            assert [r for r in caplog.records if r.levelno >= logging.WARNING] == []
            check_schema(schema)

        warnings = [r for r in caplog.records if r.levelno >= logging.WARNING]
        assert len(warnings) == 1
        assert warnings[0].name == "prismagen.validators"
        assert "#XY" in warnings[0].getMessage()

    def test_aggregates_are_clean(self, aggregates: list) -> None:
        for schema in aggregates:
            assert check_schema(schema).is_valid


# ===========================================================================
# Identifier checks
# ===========================================================================


class TestIdentifier:
    def test_missing_id(self, schema_without_id: ParsedSchema) -> None:
        result = validate_schema(schema_without_id)
        assert result.codes() == [NO_ID_FIELD]
        assert not result.is_valid

        with pytest.raises(MissingIdentifierError, match="no @id field"):
            check_schema(schema_without_id)
        with pytest.raises(MissingIdentifierError):
            require_identifier(schema_without_id)

    def test_missing_id_allowed_when_not_required(
        self, schema_without_id: ParsedSchema
    ) -> None:
        assert check_schema(schema_without_id, require_id=False).is_valid

    def test_composite_id(self, schema_with_composite_id: ParsedSchema) -> None:
        assert validate_schema(schema_with_composite_id).codes() == [COMPOSITE_ID]
        assert schema_with_composite_id.id_field is None

        with pytest.raises(CompositeIdentifierError, match="userId, groupId"):
            require_identifier(schema_with_composite_id)
        with pytest.raises(CompositeIdentifierError):
            check_schema(schema_with_composite_id, require_id=False)

    def test_identifier_errors_are_validation_errors(
        self, schema_without_id: ParsedSchema
    ) -> None:
        with pytest.raises(SchemaValidationError):
            require_identifier(schema_without_id)

    def test_require_identifier(self, order: ParsedSchema) -> None:
        assert require_identifier(order).name == "id"


# ===========================================================================
# Relation and field checks
# ===========================================================================


class TestRelationsAndFields:
    def test_unknown_relation_id(self) -> None:
        schema = ParsedSchema(
            name="Order",
            description="주문",
            fields=(make_field("id", "Int", is_id=True),),
            joins=(
                JoinFieldRecord(
                    name="customer",
                    relation_id="customerId",
                    model="Customer",
                    type=map_relation_type("Customer"),
                ),
            ),
        )
        result = validate_schema(schema)
        assert result.codes() == [RELATION_ID_UNKNOWN]

        with pytest.raises(SchemaValidationError) as exc_info:
            check_schema(schema)
        assert not isinstance(exc_info.value, MissingIdentifierError)
        assert len(exc_info.value.problems) == 1
        assert "customerId" in exc_info.value.problems[0]

    def test_duplicate_field_is_warning(self) -> None:
        schema = ParsedSchema(
            name="Post",
            description="글",
            fields=(
                make_field("id", "Int", is_id=True),
                make_field("title"),
                make_field("title"),
            ),
        )
        result = check_schema(schema)
        assert result.is_valid
        assert result.codes() == [DUPLICATE_FIELD]

    def test_unknown_directive_warning_per_token(self) -> None:
        schema = ParsedSchema(
            name="Post",
            description="글",
            fields=(
                make_field("id", "Int", is_id=True),
                make_field("title", unknown_directives=("#AA", "#BB")),
            ),
        )
        result = validate_schema(schema)
        assert [d.code for d in result.warnings] == [UNKNOWN_DIRECTIVE, UNKNOWN_DIRECTIVE]
        assert repr(result) == "<ValidationResult errors=0 warnings=2>"
