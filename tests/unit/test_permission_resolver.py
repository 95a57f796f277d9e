"""Tests for PermissionResolver: direct grants, group priority bands and default deny."""

from datetime import timedelta

from authz.application.services import PermissionResolver
from authz.domain.enums import DecisionSource
from authz.domain.value_objects import PermissionCode
from tests.fakes import NOW, OTHER_TENANT, TENANT, USER, Store


async def _resolve(resolver: PermissionResolver, code: str, context=None, tenant_id: str = TENANT):
    return await resolver.resolve(tenant_id, USER, PermissionCode.create(code), context, NOW)


async def test_default_deny_when_nothing_applies(resolver: PermissionResolver) -> None:
    decision = await _resolve(resolver, "finance.invoices.read")
    assert decision.allowed is False
    assert decision.matched_via is DecisionSource.DEFAULT
    assert decision.matched_code is None


async def test_direct_allow(store: Store, resolver: PermissionResolver) -> None:
    store.grant(store.add_permission("finance.invoices.read"))
    decision = await _resolve(resolver, "finance.invoices.read")
    assert decision.allowed is True
    assert decision.matched_via is DecisionSource.DIRECT
    assert decision.matched_code == "finance.invoices.read"


async def test_direct_deny_overrides_group_allow(store: Store, resolver: PermissionResolver) -> None:
    permission = store.add_permission("finance.invoices.delete")
    store.add_group("admin", priority=100)
    store.add_member("admin")
    store.attach("admin", permission, "allow")
    store.grant(permission, "deny")

    decision = await _resolve(resolver, "finance.invoices.delete")
    assert decision.allowed is False
    assert decision.matched_via is DecisionSource.DIRECT


async def test_direct_deny_wins_over_direct_allow(store: Store, resolver: PermissionResolver) -> None:
    store.grant(store.add_permission("finance.*.*"), "allow")
    store.grant(store.add_permission("finance.invoices.delete"), "deny")
    assert (await _resolve(resolver, "finance.invoices.delete")).allowed is False
    assert (await _resolve(resolver, "finance.invoices.read")).allowed is True


async def test_expired_direct_grant_is_ignored(store: Store, resolver: PermissionResolver) -> None:
    store.grant(store.add_permission("finance.invoices.read"), expires_at=NOW)
    decision = await _resolve(resolver, "finance.invoices.read")
    assert decision.matched_via is DecisionSource.DEFAULT


async def test_future_expiry_still_applies(store: Store, resolver: PermissionResolver) -> None:
    store.grant(store.add_permission("finance.invoices.read"), expires_at=NOW + timedelta(hours=1))
    assert (await _resolve(resolver, "finance.invoices.read")).allowed is True


async def test_higher_priority_group_wins(store: Store, resolver: PermissionResolver) -> None:
    """Admin(100) allows everything; Billing(50) denies invoice deletion; Admin wins."""
    everything = store.add_permission("*.*.*")
    delete = store.add_permission("finance.invoices.delete")
    store.add_group("admin", priority=100)
    store.add_group("billing", priority=50)
    store.add_member("admin")
    store.add_member("billing")
    store.attach("admin", everything, "allow")
    store.attach("billing", delete, "deny")

    decision = await _resolve(resolver, "finance.invoices.delete")
    assert decision.allowed is True
    assert decision.matched_via is DecisionSource.GROUP
    assert decision.group_id == "admin"
    assert decision.matched_code == "*.*.*"


async def test_deny_wins_within_same_priority(store: Store, resolver: PermissionResolver) -> None:
    permission = store.add_permission("stock.products.update")
    store.add_group("sales", priority=10)
    store.add_group("audit", priority=10)
    store.add_member("sales")
    store.add_member("audit")
    store.attach("sales", permission, "allow")
    store.attach("audit", permission, "deny")

    decision = await _resolve(resolver, "stock.products.update")
    assert decision.allowed is False
    assert decision.group_id == "audit"


async def test_lower_band_ignored_when_higher_band_applies(store: Store, resolver: PermissionResolver) -> None:
    permission = store.add_permission("stock.products.update")
    store.add_group("low", priority=1)
    store.add_group("high", priority=5)
    store.add_member("low")
    store.add_member("high")
    store.attach("low", permission, "deny")
    store.attach("high", permission, "allow")
    assert (await _resolve(resolver, "stock.products.update")).allowed is True


async def test_conditions_gate_group_assignment(store: Store, resolver: PermissionResolver) -> None:
    permission = store.add_permission("finance.payments.approve")
    store.add_group("approvers", priority=1)
    store.add_member("approvers")
    store.attach("approvers", permission, "allow", conditions={"max_amount": 1000})

    assert (await _resolve(resolver, "finance.payments.approve", {"amount": 500})).allowed is True
    assert (await _resolve(resolver, "finance.payments.approve", {"amount": 5000})).allowed is False


async def test_context_includes_caller_identity(store: Store, resolver: PermissionResolver) -> None:
    permission = store.add_permission("docs.files.update")
    store.grant(
        permission,
        conditions={"version": 1, "all": [{"attr": "owner_id", "op": "eq", "value": {"ctx": "user_id"}}]},
    )
    assert (await _resolve(resolver, "docs.files.update", {"owner_id": USER})).allowed is True
    assert (await _resolve(resolver, "docs.files.update", {"owner_id": "someone"})).allowed is False
    spoofed = {"owner_id": "someone", "user_id": "someone", "tenant_id": "other"}
    assert (await _resolve(resolver, "docs.files.update", spoofed)).allowed is False


async def test_malformed_conditions_are_a_non_match(store: Store, resolver: PermissionResolver) -> None:
    permission = store.add_permission("docs.files.delete")
    store.add_group("editors", priority=5)
    store.add_group("readers", priority=1)
    store.add_member("editors")
    store.add_member("readers")
    store.attach("editors", permission, "deny", conditions={"version": 9, "all": []})
    store.attach("readers", store.add_permission("docs.files.*"), "allow")

    decision = await _resolve(resolver, "docs.files.delete")
    assert decision.allowed is True
    assert decision.group_id == "readers"


async def test_inactive_group_is_ignored(store: Store, resolver: PermissionResolver) -> None:
    permission = store.add_permission("stock.products.read")
    store.add_group("ops", priority=1, is_active=False)
    store.add_member("ops")
    store.attach("ops", permission)
    assert (await _resolve(resolver, "stock.products.read")).allowed is False


async def test_other_tenant_group_is_ignored(store: Store, resolver: PermissionResolver) -> None:
    permission = store.add_permission("stock.products.read")
    store.add_group("ops", priority=1, tenant_id=OTHER_TENANT)
    store.add_member("ops")
    store.attach("ops", permission)
    assert (await _resolve(resolver, "stock.products.read")).allowed is False
    assert (await _resolve(resolver, "stock.products.read", tenant_id=OTHER_TENANT)).allowed is True


async def test_system_wide_group_applies_in_every_tenant(store: Store, resolver: PermissionResolver) -> None:
    permission = store.add_permission("self.profile.read")
    store.add_group("everyone", tenant_id=None)
    store.add_member("everyone")
    store.attach("everyone", permission)
    assert (await _resolve(resolver, "self.profile.read")).allowed is True
    assert (await _resolve(resolver, "self.profile.read", tenant_id=OTHER_TENANT)).allowed is True


async def test_expired_membership_is_ignored(store: Store, resolver: PermissionResolver) -> None:
    permission = store.add_permission("stock.products.read")
    store.add_group("ops", priority=1)
    store.add_member("ops", expires_at=NOW - timedelta(minutes=1))
    store.attach("ops", permission)
    assert (await _resolve(resolver, "stock.products.read")).allowed is False


async def test_parent_group_grants_nothing_to_child(store: Store, resolver: PermissionResolver) -> None:
    permission = store.add_permission("stock.products.read")
    store.add_group("parent", priority=1)
    store.add_group("child", priority=1, parent_id="parent")
    store.add_member("child")
    store.attach("parent", permission)
    assert (await _resolve(resolver, "stock.products.read")).allowed is False


async def test_deleted_permission_is_skipped(store: Store, resolver: PermissionResolver) -> None:
    permission = store.add_permission("stock.products.read")
    permission.soft_delete(NOW)
    store.grant(permission)
    assert (await _resolve(resolver, "stock.products.read")).allowed is False


async def test_tenant_scoped_direct_grant(store: Store, resolver: PermissionResolver) -> None:
    store.grant(store.add_permission("stock.products.read"), tenant_id=TENANT)
    assert (await _resolve(resolver, "stock.products.read")).allowed is True
    assert (await _resolve(resolver, "stock.products.read", tenant_id=OTHER_TENANT)).allowed is False


async def test_allowed_codes_excludes_denied_and_conditional(store: Store, resolver: PermissionResolver) -> None:
    read = store.add_permission("finance.invoices.read")
    delete = store.add_permission("finance.invoices.delete")
    approve = store.add_permission("finance.payments.approve")
    store.add_group("billing", priority=1)
    store.add_member("billing")
    store.attach("billing", read)
    store.attach("billing", delete)
    store.attach("billing", approve, conditions={"max_amount": 10})
    store.grant(delete, "deny")

    snapshot = await resolver.load_snapshot(TENANT, USER, NOW)
    assert resolver.allowed_codes(snapshot, NOW) == {"finance.invoices.read"}


async def test_decide_reuses_snapshot_without_storage(store: Store, resolver: PermissionResolver) -> None:
    store.grant(store.add_permission("finance.invoices.read"))
    snapshot = await resolver.load_snapshot(TENANT, USER, NOW)
    calls = store.permissions.calls

    decision = resolver.decide(snapshot, PermissionCode.create("finance.invoices.read"), {}, NOW)
    assert decision.allowed is True
    assert store.permissions.calls == calls


async def test_scope_suffixes_are_independent_codes(store: Store, resolver: PermissionResolver) -> None:
    store.grant(store.add_permission("hr.employees.read.team"))
    assert (await _resolve(resolver, "hr.employees.read.team")).allowed is True
    assert (await _resolve(resolver, "hr.employees.read.all")).allowed is False
    assert (await _resolve(resolver, "hr.employees.read")).allowed is False
