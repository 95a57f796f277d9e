"""Tests for PermissionCode parsing and wildcard matching."""

import itertools

import pytest

from authz.domain.exceptions import ValidationException
from authz.domain.value_objects import PermissionCode

CONCRETE = [
    "stock",
    "core.users",
    "stock.products.read",
    "stock.products.update",
    "hr.employees.read.all",
    "hr.employees.read.own",
    "finance.invoices.delete",
]
WILDCARDS = ["*.*.*", "stock.*.read", "stock.products.*", "*", "hr.*.*.all"]


class TestPermissionCodeParsing:
    """1-4 dot-separated segments of letters, digits, '*', '_' and '-'."""

    @pytest.mark.parametrize("value", CONCRETE + WILDCARDS)
    def test_valid_codes(self, value: str) -> None:
        code = PermissionCode.create(value)
        assert code.value == value
        assert str(code) == value
        assert PermissionCode.is_valid(value)

    @pytest.mark.parametrize(
        "value",
        [
            "",
            "core..create",
            "core.users.create.extra.more",
            ".core",
            "core.",
            "core.us ers.read",
            "core.users.read!",
        ],
    )
    def test_invalid_codes_raise(self, value: str) -> None:
        with pytest.raises(ValidationException) as exc_info:
            PermissionCode.create(value)
        assert exc_info.value.error_code == "VALIDATION_ERROR"
        assert not PermissionCode.is_valid(value)

    def test_segments_are_split(self) -> None:
        code = PermissionCode.create("hr.employees.read.all")
        assert (code.module, code.resource, code.action, code.scope) == (
            "hr",
            "employees",
            "read",
            "all",
        )
        assert not code.is_wildcard

    def test_short_codes_pad_with_root(self) -> None:
        code = PermissionCode.create("stock")
        assert code.resource == "_root"
        assert code.action == "_root"
        assert code.scope is None

    def test_create_from_parts(self) -> None:
        assert PermissionCode.create_from_parts("stock", "products", "read").value == (
            "stock.products.read"
        )


class TestPermissionCodeMatching:
    def test_concrete_codes_match_by_value(self) -> None:
        for a, b in itertools.product(CONCRETE, repeat=2):
            ca, cb = PermissionCode.create(a), PermissionCode.create(b)
            assert ca.matches(cb) == (a == b)

    def test_matching_is_symmetric(self) -> None:
        values = CONCRETE + WILDCARDS
        for a, b in itertools.product(values, repeat=2):
            ca, cb = PermissionCode.create(a), PermissionCode.create(b)
            assert ca.matches(cb) == cb.matches(ca), (a, b)

    @pytest.mark.parametrize("value", [c for c in CONCRETE if c.count(".") >= 2])
    def test_full_wildcard_matches_concrete_three_segment_codes(self, value: str) -> None:
        assert PermissionCode.create("*.*.*").matches(PermissionCode.create(value))

    def test_partial_wildcard(self) -> None:
        code = PermissionCode.create("stock.*.read")
        assert code.matches(PermissionCode.create("stock.products.read"))
        assert not code.matches(PermissionCode.create("stock.products.update"))
        assert not code.matches(PermissionCode.create("hr.products.read"))

    def test_scope_is_ignored_by_wildcards(self) -> None:
        assert PermissionCode.create("hr.employees.*").matches(
            PermissionCode.create("hr.employees.read.own")
        )

    def test_equals_is_strict(self) -> None:
        wildcard = PermissionCode.create("stock.*.read")
        concrete = PermissionCode.create("stock.products.read")
        assert wildcard.matches(concrete)
        assert not wildcard.equals(concrete)
        assert concrete.equals(PermissionCode.create("stock.products.read"))
