import logging
from typing import Optional, List
from sqlalchemy.orm import Session
from sqlalchemy import select, delete
from sqlalchemy.exc import IntegrityError
from fastapi import HTTPException

from .models import Organization, OrganizationType
from .schema import OrganizationCreate, OrganizationUpdate, OrganizationSchema, OrganizationTreeNode
from . import hierarchy

logger = logging.getLogger(__name__)

def list_organizations(db: Session, *, type: Optional[OrganizationType] = None) -> List[Organization]:
    stmt = select(Organization)
    if type is not None:
        stmt = stmt.where(Organization.type == type)
    stmt = stmt.order_by(Organization.id.asc())
    return list(db.scalars(stmt))

def get_organization(db: Session, org_id: int) -> Optional[Organization]:
    return db.get(Organization, org_id)

def get_children(db: Session, org_id: int) -> List[Organization]:
    stmt = select(Organization).where(Organization.parent_id == org_id).order_by(Organization.id.asc())
    return list(db.scalars(stmt))

def _require_parent(db: Session, parent_id: Optional[int]) -> None:
    if parent_id is not None and db.get(Organization, parent_id) is None:
        raise HTTPException(status_code=404, detail="parent organization not found")

def _require_branch_name(type: OrganizationType, branch_name: Optional[str]) -> None:
    if type == OrganizationType.branch and not branch_name:
        raise HTTPException(status_code=400, detail="branch_name is required for branch nodes")

def create_organization(db: Session, dto: OrganizationCreate) -> Organization:
    _require_parent(db, dto.parent_id)
    _require_branch_name(dto.type, dto.branch_name)

    org = Organization(
        name=dto.name,
        type=dto.type,
        parent_id=dto.parent_id,
        email=dto.email,
        branch_name=dto.branch_name,
    )
    db.add(org)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=400, detail="organization email already exists")
    db.refresh(org)
    logger.info("created %s node %s (parent=%s)", org.type.value, org.id, org.parent_id)
    return org

def update_organization(db: Session, org_id: int, patch: OrganizationUpdate) -> Organization:
    org = db.get(Organization, org_id)
    if not org:
        raise HTTPException(status_code=404, detail="organization not found")

    data = patch.model_dump(exclude_unset=True, exclude_none=True)
    if "parent_id" in data and data["parent_id"] != org.parent_id:
        _require_parent(db, data["parent_id"])
    _require_branch_name(data.get("type", org.type), data.get("branch_name", org.branch_name))

    for k, v in data.items():
        setattr(org, k, v)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=400, detail="organization email already exists")

    db.refresh(org)
    return org

def delete_organization(db: Session, org_id: int) -> None:
    org = db.get(Organization, org_id)
    if not org:
        raise HTTPException(status_code=404, detail="organization not found")

    # not atomic with the delete below; a child added in between is not seen
    if get_children(db, org_id):
        raise HTTPException(
            status_code=409,
            detail="cannot delete organization with children, delete or reassign them first",
        )
    db.delete(org)
    db.commit()
    logger.info("deleted organization %s", org_id)

# ---------- hierarchy ----------

def get_tree(db: Session, root_id: int) -> OrganizationTreeNode:
    tree = hierarchy.build_tree(list_organizations(db), root_id)
    if tree is None:
        raise HTTPException(status_code=404, detail="organization not found")
    return tree

def get_forest(db: Session) -> List[OrganizationTreeNode]:
    return hierarchy.build_forest(list_organizations(db))

def get_ancestry_path(db: Session, org_id: int) -> List[OrganizationSchema]:
    return hierarchy.ancestry_path(list_organizations(db), org_id)

# ---------- demo data ----------

DEMO_LADDER = [
    dict(name="System Administrator", type=OrganizationType.admin, email="admin@company.com"),
    dict(name="HR Department", type=OrganizationType.hr, email="hr@company.com"),
    dict(name="Operations Manager", type=OrganizationType.operations_manager, email="ops@company.com"),
    dict(name="Store Manager", type=OrganizationType.manager, email="manager@company.com"),
    dict(name="Store Supervisor", type=OrganizationType.supervisor, email="supervisor@company.com"),
    dict(
        name="Main Branch",
        type=OrganizationType.branch,
        email="mainbranch@company.com",
        branch_name="Main Street Branch",
    ),
    dict(name="John Doe", type=OrganizationType.staff, email="john@company.com"),
]

def seed_hierarchy(db: Session) -> List[Organization]:
    """Replace every organization with the seven level demo ladder, admin first."""
    db.execute(delete(Organization))
    db.commit()

    created: List[Organization] = []
    parent_id = None
    for entry in DEMO_LADDER:
        node = create_organization(db, OrganizationCreate(parent_id=parent_id, **entry))
        created.append(node)
        parent_id = node.id
    return created
