from __future__ import annotations
from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field, model_validator
from .models import OrganizationType

class OrganizationSchema(BaseModel):
    id: int
    name: str
    type: OrganizationType
    parent_id: Optional[int] = None
    email: str
    branch_name: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    model_config = ConfigDict(from_attributes=True)

class OrganizationTreeNode(OrganizationSchema):
    children: List["OrganizationTreeNode"] = Field(default_factory=list)

# what clients send
class OrganizationCreatePayload(BaseModel):
    name: str = Field(..., min_length=1)
    type: OrganizationType
    parent_id: Optional[int] = None
    email: str = Field(..., min_length=3)
    branch_name: Optional[str] = None
    model_config = ConfigDict(extra="forbid")

    @model_validator(mode="after")
    def check_branch_name(self):
        if self.type == OrganizationType.branch and not self.branch_name:
            raise ValueError("branch_name is required for branch nodes")
        return self

# internal DTO for service
class OrganizationCreate(BaseModel):
    name: str
    type: OrganizationType
    parent_id: Optional[int] = None
    email: str
    branch_name: Optional[str] = None

class OrganizationUpdate(BaseModel):
    name: Optional[str] = None
    type: Optional[OrganizationType] = None
    parent_id: Optional[int] = None
    email: Optional[str] = None
    branch_name: Optional[str] = None
    model_config = ConfigDict(extra="forbid")

OrganizationTreeNode.model_rebuild()
