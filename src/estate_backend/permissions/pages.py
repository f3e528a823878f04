from collections import defaultdict
from typing import Dict, Iterator, List, Set
from sqlalchemy import select
from sqlalchemy.orm import Session

from estate_backend.interface.pages import PageDescriptor
from estate_backend.model.sidebar import PAGE_PERMISSION_TYPES, PagePermission, RolePagePermission, SidebarPage
from estate_backend.permissions import roles as role_store
from estate_backend.permissions.principal import Principal


class AccessiblePages:
    """Sidebar pages the actor may view.

    Finite and restartable: every iteration re-reads the store, so grants changed
    between two iterations are reflected in the second.
    """

    def __init__(self, principal: Principal, db: Session):
        self.principal = principal
        self.db = db

    def _granted_types(self) -> Dict[int, Set[str]]:
        if self.principal.is_admin:
            rows = self.db.execute(select(PagePermission.page_id, PagePermission.permission_type)).all()
        else:
            role_ids = role_store.effective_role_ids(self.db, role_store.user_role_ids(self.db, self.principal.user_id))
            if not role_ids:
                return {}
            rows = self.db.execute(
                select(RolePagePermission.page_id, RolePagePermission.permission_type).where(
                    RolePagePermission.role_id.in_(role_ids),
                    RolePagePermission.is_granted.is_(True),
                )
            ).all()

        granted: Dict[int, Set[str]] = defaultdict(set)
        for page_id, permission_type in rows:
            granted[page_id].add(permission_type)
        return granted

    def __iter__(self) -> Iterator[PageDescriptor]:
        if self.principal.user_id is None and not self.principal.is_admin:
            return iter(())

        granted = self._granted_types()
        pages = self.db.scalars(
            select(SidebarPage)
            .where(SidebarPage.is_active.is_(True))
            .order_by(SidebarPage.display_order, SidebarPage.id)
        ).all()

        descriptors: List[PageDescriptor] = []
        for page in pages:
            types = granted.get(page.id, set())
            if not self.principal.is_admin and "view" not in types:
                continue
            descriptors.append(PageDescriptor(
                id=page.id,
                name=page.name,
                url=page.url,
                icon=page.icon,
                display_order=page.display_order,
                description=page.description,
                permission_types=[t for t in PAGE_PERMISSION_TYPES if t in types],
            ))

        return iter(descriptors)


def list_accessible_pages(principal: Principal, db: Session) -> AccessiblePages:
    return AccessiblePages(principal, db)
