from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from core.database import get_db

from .models import OrganizationType
from .schema import (
    OrganizationSchema,
    OrganizationTreeNode,
    OrganizationCreatePayload,
    OrganizationCreate,
    OrganizationUpdate,
)
from . import service

organization_router = APIRouter(prefix="/organizations", tags=["organizations"])

@organization_router.get("", response_model=list[OrganizationSchema])
def list_organizations(
    type: Optional[OrganizationType] = Query(None, description="Only nodes of this type"),
    db: Session = Depends(get_db),
    ):
    return service.list_organizations(db, type=type)

# Whole hierarchy, one tree per top-level node
@organization_router.get("/tree", response_model=list[OrganizationTreeNode])
def organization_forest(db: Session = Depends(get_db)):
    return service.get_forest(db)

# Get org by id
@organization_router.get("/{org_id}", response_model=OrganizationSchema)
def organization_detail(org_id: int, db: Session = Depends(get_db)):
    obj = service.get_organization(db, org_id)
    if not obj:
        raise HTTPException(status_code=404, detail="organization not found")
    return obj

@organization_router.get("/{org_id}/children", response_model=list[OrganizationSchema])
def organization_children(org_id: int, db: Session = Depends(get_db)):
    return service.get_children(db, org_id)

@organization_router.get("/{org_id}/tree", response_model=OrganizationTreeNode)
def organization_tree(org_id: int, db: Session = Depends(get_db)):
    return service.get_tree(db, org_id)

# Root first, ending at org_id
@organization_router.get("/{org_id}/path", response_model=list[OrganizationSchema])
def organization_path(org_id: int, db: Session = Depends(get_db)):
    return service.get_ancestry_path(db, org_id)

# Create org
@organization_router.post("", response_model=OrganizationSchema, status_code=status.HTTP_201_CREATED)
def organization_post(payload: OrganizationCreatePayload, db: Session = Depends(get_db)):
    dto = OrganizationCreate(**payload.model_dump())
    return service.create_organization(db, dto)

# Update org
@organization_router.put("/{org_id}", response_model=OrganizationSchema)
def organization_put(org_id: int, payload: OrganizationUpdate, db: Session = Depends(get_db)):
    return service.update_organization(db, org_id, payload)

# Delete org, refused while it still has children
@organization_router.delete("/{org_id}")
def organization_delete(org_id: int, db: Session = Depends(get_db)):
    service.delete_organization(db, org_id)
    return {"message": "organization deleted"}
