"""
Custom roles: creation, update and deletion under the no-escalation rule.
"""

import pytest
from sqlalchemy import select

from estate_backend.interface.roles import CustomRoleCreate, CustomRoleUpdate, PagePermissionInput
from estate_backend.model import Role, UserRole
from estate_backend.permissions import hierarchy
from estate_backend.permissions import roles as role_store
from estate_backend.permissions.catalog import get_page_by_url
from estate_backend.permissions.core import AccessDecisionPoint
from estate_backend.permissions.errors import (
    InconsistentPermissionSet,
    ParentRoleNotFound,
    PermissionDenied,
    PrivilegeEscalationDenied,
    RoleInUse,
    RoleNameTaken,
    RoleNotFound,
)
from estate_backend.permissions.hierarchy import GrantSet, escalation_violations
from estate_backend.tests.fixtures import make_role, make_user, principal_for


def page_id(db, url):
    return get_page_by_url(db, url).id


def adp_for(db, user):
    return AccessDecisionPoint(principal_for(db, user), db)


class TestEscalationViolations:

    def test_subset_has_no_violations(self):
        violations = escalation_violations(
            GrantSet({"tenants.view_own"}, {(1, "view")}),
            GrantSet({"tenants.view_own", "tenants.create"}, {(1, "view"), (1, "update")}),
        )
        assert violations.permissions == set()
        assert violations.pages == set()

    def test_reports_every_excess_grant(self):
        violations = escalation_violations(
            GrantSet({"tenants.view_own", "tenants.delete", "users.manage"}, {(1, "view"), (2, "delete")}),
            GrantSet({"tenants.view_own"}, {(1, "view")}),
        )
        assert violations.permissions == {"tenants.delete", "users.manage"}
        assert violations.pages == {(2, "delete")}

    def test_own_variant_does_not_cover_plain_action(self):
        violations = escalation_violations(GrantSet({"tenants.view"}), GrantSet({"tenants.view_own"}))
        assert violations.permissions == {"tenants.view"}


class TestCreateCustomRole:

    def test_owner_creates_subset_role(self, estate, seeded_db):
        tenants_page = page_id(seeded_db, "/tenants")

        role = adp_for(seeded_db, estate.owner_a).create_custom_role(CustomRoleCreate(
            name="Front desk",
            resource_permissions=["tenants.view_own", "tenants.create"],
            page_permissions=[PagePermissionInput(page_id=tenants_page, view=True, create=True)],
        ))

        assert role.created_by == estate.owner_a.id
        assert role.is_custom
        assert role_store.role_effective_permissions(seeded_db, role.id) == {"tenants.view_own", "tenants.create"}
        assert role_store.role_effective_pages(seeded_db, role.id) == {(tenants_page, "view"), (tenants_page, "create")}

    def test_escalation_is_rejected_not_truncated(self, estate, seeded_db):
        limited = make_role(seeded_db, "Limited", ["tenants.view_own", "tenants.create"])
        user = make_user(seeded_db, "limited@estate.test", created_by=estate.owner_a)
        role_store.assign_role(seeded_db, user.id, limited.id)
        seeded_db.commit()

        with pytest.raises(PrivilegeEscalationDenied) as exc_info:
            adp_for(seeded_db, user).create_custom_role(CustomRoleCreate(
                name="Deleter",
                resource_permissions=["tenants.view_own", "tenants.delete"],
            ))

        assert exc_info.value.ids == ["tenants.delete"]
        assert not role_store.role_name_exists(seeded_db, "Deleter")

    def test_page_without_view_is_inconsistent(self, estate, seeded_db):
        tenants_page = page_id(seeded_db, "/tenants")

        with pytest.raises(InconsistentPermissionSet) as exc_info:
            adp_for(seeded_db, estate.owner_a).create_custom_role(CustomRoleCreate(
                name="Updater",
                page_permissions=[PagePermissionInput(page_id=tenants_page, update=True, view=False)],
            ))

        assert exc_info.value.ids == [tenants_page]

    def test_page_escalation(self, seeded_db):
        manager = make_user(seeded_db, "manager@estate.test", role_names=["manager"])
        role = role_store.get_role_by_name(seeded_db, "manager")
        role_store.grant_permission(seeded_db, role.id, "roles.create")
        seeded_db.commit()
        tenants_page = page_id(seeded_db, "/tenants")

        with pytest.raises(PrivilegeEscalationDenied) as exc_info:
            adp_for(seeded_db, manager).create_custom_role(CustomRoleCreate(
                name="Tenant remover",
                page_permissions=[PagePermissionInput(page_id=tenants_page, view=True, delete=True)],
            ))

        assert exc_info.value.ids == [f"page:{tenants_page}:delete"]

    def test_unknown_permission_is_escalation(self, estate, seeded_db):
        with pytest.raises(PrivilegeEscalationDenied):
            adp_for(seeded_db, estate.admin).create_custom_role(CustomRoleCreate(
                name="Pilot",
                resource_permissions=["spaceships.fly"],
            ))

    def test_requires_roles_create(self, estate, seeded_db):
        with pytest.raises(PermissionDenied) as exc_info:
            adp_for(seeded_db, estate.staff_a).create_custom_role(CustomRoleCreate(
                name="Viewer",
                resource_permissions=["tenants.view"],
            ))
        assert exc_info.value.ids == ["roles.create"]

    def test_system_role_must_allow_custom_roles(self, seeded_db):
        manager = make_user(seeded_db, "manager@estate.test", role_names=["manager"])
        role_store.grant_permission(seeded_db, role_store.get_role_by_name(seeded_db, "manager").id, "roles.create")
        seeded_db.commit()

        with pytest.raises(PermissionDenied) as exc_info:
            adp_for(seeded_db, manager).create_custom_role(CustomRoleCreate(
                name="Clerk",
                resource_permissions=["tenants.view"],
            ))

        assert exc_info.value.ids == [manager.id]
        assert not role_store.role_name_exists(seeded_db, "Clerk")

    def test_custom_roles_allowed_through_template(self, estate, seeded_db):
        owner_role = role_store.get_role_by_name(seeded_db, "owner")
        deputy_role = make_role(seeded_db, "Deputy owner", parent=owner_role)
        deputy = make_user(seeded_db, "deputy@estate.test", created_by=estate.owner_a)
        role_store.assign_role(seeded_db, deputy.id, deputy_role.id)
        seeded_db.commit()

        role = adp_for(seeded_db, deputy).create_custom_role(CustomRoleCreate(
            name="Deputy helper",
            resource_permissions=["tenants.view_own"],
        ))

        assert role.created_by == deputy.id

    def test_admin_may_grant_anything(self, estate, seeded_db):
        role = adp_for(seeded_db, estate.admin).create_custom_role(CustomRoleCreate(
            name="Auditor",
            resource_permissions=["financial_transactions.view", "reports.view"],
        ))
        assert role.created_by == estate.admin.id

    def test_name_taken(self, estate, seeded_db):
        with pytest.raises(RoleNameTaken):
            adp_for(seeded_db, estate.owner_a).create_custom_role(CustomRoleCreate(name="manager"))

    def test_parent_template_counts_towards_request(self, estate, seeded_db):
        manager = role_store.get_role_by_name(seeded_db, "manager")

        with pytest.raises(PrivilegeEscalationDenied) as exc_info:
            adp_for(seeded_db, estate.owner_a).create_custom_role(CustomRoleCreate(
                name="Like a manager",
                parent_role_id=manager.id,
            ))

        # owner holds tenants.view_own, the template carries tenants.view
        assert "tenants.view" in exc_info.value.ids

    def test_own_role_as_template(self, estate, seeded_db):
        adp = adp_for(seeded_db, estate.owner_a)
        base = adp.create_custom_role(CustomRoleCreate(name="Base", resource_permissions=["tenants.view_own"]))

        child = adp.create_custom_role(CustomRoleCreate(
            name="Child",
            parent_role_id=base.id,
            resource_permissions=["buildings.view_own"],
        ))

        assert child.parent_role_id == base.id
        assert role_store.role_effective_permissions(seeded_db, child.id) == {"tenants.view_own", "buildings.view_own"}

    def test_foreign_template(self, estate, seeded_db):
        foreign = adp_for(seeded_db, estate.owner_b).create_custom_role(
            CustomRoleCreate(name="B base", resource_permissions=["tenants.view_own"])
        )

        with pytest.raises(PermissionDenied):
            adp_for(seeded_db, estate.owner_a).create_custom_role(
                CustomRoleCreate(name="Borrowed", parent_role_id=foreign.id)
            )

    def test_missing_parent(self, estate, seeded_db):
        with pytest.raises(ParentRoleNotFound):
            adp_for(seeded_db, estate.owner_a).create_custom_role(
                CustomRoleCreate(name="Lost", parent_role_id=424242)
            )

    def test_sub_role_limit(self, estate, seeded_db):
        owner_role = role_store.get_role_by_name(seeded_db, "owner")
        owner_role.max_sub_roles = 1
        seeded_db.commit()

        adp = adp_for(seeded_db, estate.owner_a)
        adp.create_custom_role(CustomRoleCreate(name="One"))

        with pytest.raises(PermissionDenied):
            adp.create_custom_role(CustomRoleCreate(name="Two"))

        # the limit counts per creator
        adp_for(seeded_db, estate.owner_b).create_custom_role(CustomRoleCreate(name="Other one"))

    def test_failed_write_rolls_back(self, estate, seeded_db, monkeypatch):
        def fail(*args, **kwargs):
            raise RuntimeError("disk full")

        monkeypatch.setattr(role_store, "replace_role_grants", fail)

        with pytest.raises(RuntimeError):
            adp_for(seeded_db, estate.owner_a).create_custom_role(
                CustomRoleCreate(name="Half done", resource_permissions=["tenants.view_own"])
            )

        assert not role_store.role_name_exists(seeded_db, "Half done")


class TestUpdateRolePermissions:

    def create(self, db, user, name="Front desk", permissions=("tenants.view_own",)):
        return adp_for(db, user).create_custom_role(CustomRoleCreate(name=name, resource_permissions=list(permissions)))

    def test_replaces_grants(self, estate, seeded_db):
        role = self.create(seeded_db, estate.owner_a)
        buildings_page = page_id(seeded_db, "/buildings")

        adp_for(seeded_db, estate.owner_a).update_role_permissions(role.id, CustomRoleUpdate(
            description="Buildings only",
            resource_permissions=["buildings.view_own", "buildings.update_own"],
            page_permissions=[PagePermissionInput(page_id=buildings_page, view=True, update=True)],
        ))

        assert role_store.role_effective_permissions(seeded_db, role.id) == {"buildings.view_own", "buildings.update_own"}
        assert role_store.role_effective_pages(seeded_db, role.id) == {(buildings_page, "view"), (buildings_page, "update")}
        assert seeded_db.get(Role, role.id).description == "Buildings only"

    def test_escalation(self, estate, seeded_db):
        role = self.create(seeded_db, estate.owner_a)

        with pytest.raises(PrivilegeEscalationDenied):
            adp_for(seeded_db, estate.owner_a).update_role_permissions(
                role.id, CustomRoleUpdate(resource_permissions=["tenants.delete"])
            )

        assert role_store.role_effective_permissions(seeded_db, role.id) == {"tenants.view_own"}

    def test_inconsistent_pages(self, estate, seeded_db):
        role = self.create(seeded_db, estate.owner_a)
        with pytest.raises(InconsistentPermissionSet):
            adp_for(seeded_db, estate.owner_a).update_role_permissions(role.id, CustomRoleUpdate(
                page_permissions=[PagePermissionInput(page_id=page_id(seeded_db, "/tenants"), manage=True)],
            ))

    def test_other_owners_role(self, estate, seeded_db):
        role = self.create(seeded_db, estate.owner_b)
        with pytest.raises(PermissionDenied):
            adp_for(seeded_db, estate.owner_a).update_role_permissions(role.id, CustomRoleUpdate())

    def test_system_role_is_immutable(self, estate, seeded_db):
        staff = role_store.get_role_by_name(seeded_db, "staff")
        with pytest.raises(PermissionDenied):
            adp_for(seeded_db, estate.admin).update_role_permissions(staff.id, CustomRoleUpdate())

    def test_missing_role(self, estate, seeded_db):
        with pytest.raises(RoleNotFound):
            adp_for(seeded_db, estate.owner_a).update_role_permissions(424242, CustomRoleUpdate())

    def test_rename_to_taken_name(self, estate, seeded_db):
        role = self.create(seeded_db, estate.owner_a)
        with pytest.raises(RoleNameTaken):
            adp_for(seeded_db, estate.owner_a).update_role_permissions(role.id, CustomRoleUpdate(name="owner"))

    def test_concurrent_rename_loses_on_unique_constraint(self, estate, seeded_db, monkeypatch):
        first = self.create(seeded_db, estate.owner_a, name="First")
        self.create(seeded_db, estate.owner_a, name="Second")

        # Both renames passed the pre-check; only the constraint decides
        monkeypatch.setattr(role_store, "role_name_exists", lambda db, name: False)

        with pytest.raises(RoleNameTaken) as exc_info:
            adp_for(seeded_db, estate.owner_a).update_role_permissions(first.id, CustomRoleUpdate(name="Second"))

        assert exc_info.value.ids == ["Second"]
        assert seeded_db.get(Role, first.id).name == "First"
        assert role_store.role_effective_permissions(seeded_db, first.id) == {"tenants.view_own"}

    def test_admin_updates_any_custom_role(self, estate, seeded_db):
        role = self.create(seeded_db, estate.owner_b)
        adp_for(seeded_db, estate.admin).update_role_permissions(
            role.id, CustomRoleUpdate(name="Renamed", resource_permissions=["tenants.view"])
        )
        assert seeded_db.get(Role, role.id).name == "Renamed"


class TestDeleteCustomRole:

    def setup_role(self, db, estate, name="Front desk", holders=()):
        role = adp_for(db, estate.owner_a).create_custom_role(
            CustomRoleCreate(name=name, resource_permissions=["tenants.view_own"])
        )
        for user in holders:
            role_store.assign_role(db, user.id, role.id)
        db.commit()
        return role

    def test_unused_role(self, estate, seeded_db):
        role = self.setup_role(seeded_db, estate)
        role_id = role.id

        assert adp_for(seeded_db, estate.owner_a).delete_custom_role(role_id) == []
        assert seeded_db.get(Role, role_id) is None

    def test_held_role_needs_fallback(self, estate, seeded_db):
        holder = make_user(seeded_db, "holder@estate.test", created_by=estate.owner_a)
        role = self.setup_role(seeded_db, estate, holders=[holder])

        with pytest.raises(RoleInUse) as exc_info:
            adp_for(seeded_db, estate.owner_a).delete_custom_role(role.id)

        assert exc_info.value.ids == [holder.id]
        assert seeded_db.get(Role, role.id) is not None

    def test_reassignment_keeps_every_user_with_a_role(self, estate, seeded_db):
        holder = make_user(seeded_db, "holder@estate.test", created_by=estate.owner_a)
        role = self.setup_role(seeded_db, estate, holders=[holder])
        fallback = self.setup_role(seeded_db, estate, name="Fallback")
        role_id = role.id

        moved = adp_for(seeded_db, estate.owner_a).delete_custom_role(role_id, reassign_to_role_id=fallback.id)

        assert moved == [holder.id]
        assert role_store.user_role_ids(seeded_db, holder.id) == [fallback.id]
        assert seeded_db.get(Role, role_id) is None

    def test_fallback_must_be_grantable(self, estate, seeded_db):
        holder = make_user(seeded_db, "holder@estate.test", created_by=estate.owner_a)
        role = self.setup_role(seeded_db, estate, holders=[holder])
        manager = role_store.get_role_by_name(seeded_db, "manager")

        with pytest.raises(PrivilegeEscalationDenied):
            adp_for(seeded_db, estate.owner_a).delete_custom_role(role.id, reassign_to_role_id=manager.id)

        assert role_store.user_role_ids(seeded_db, holder.id) == [role.id]

    def test_fallback_cannot_be_the_deleted_role(self, estate, seeded_db):
        holder = make_user(seeded_db, "holder@estate.test", created_by=estate.owner_a)
        role = self.setup_role(seeded_db, estate, holders=[holder])

        with pytest.raises(RoleInUse):
            adp_for(seeded_db, estate.owner_a).delete_custom_role(role.id, reassign_to_role_id=role.id)

    def test_missing_fallback(self, estate, seeded_db):
        holder = make_user(seeded_db, "holder@estate.test", created_by=estate.owner_a)
        role = self.setup_role(seeded_db, estate, holders=[holder])

        with pytest.raises(RoleNotFound):
            adp_for(seeded_db, estate.owner_a).delete_custom_role(role.id, reassign_to_role_id=424242)

    def test_template_in_use(self, estate, seeded_db):
        base = self.setup_role(seeded_db, estate, name="Base")
        child = adp_for(seeded_db, estate.owner_a).create_custom_role(
            CustomRoleCreate(name="Child", parent_role_id=base.id)
        )

        with pytest.raises(RoleInUse) as exc_info:
            adp_for(seeded_db, estate.owner_a).delete_custom_role(base.id)

        assert exc_info.value.ids == [child.id]

    def test_system_role(self, estate, seeded_db):
        security = role_store.get_role_by_name(seeded_db, "security")
        with pytest.raises(PermissionDenied):
            adp_for(seeded_db, estate.admin).delete_custom_role(security.id)

    def test_other_owners_role(self, estate, seeded_db):
        role = self.setup_role(seeded_db, estate)
        with pytest.raises(PermissionDenied):
            adp_for(seeded_db, estate.owner_b).delete_custom_role(role.id)

    def test_user_with_both_roles_keeps_fallback(self, estate, seeded_db):
        holder = make_user(seeded_db, "holder@estate.test", created_by=estate.owner_a)
        fallback = self.setup_role(seeded_db, estate, name="Fallback", holders=[holder])
        role = self.setup_role(seeded_db, estate, holders=[holder])

        adp_for(seeded_db, estate.owner_a).delete_custom_role(role.id, reassign_to_role_id=fallback.id)

        assert seeded_db.scalars(select(UserRole.role_id).where(UserRole.user_id == holder.id)).all() == [fallback.id]
