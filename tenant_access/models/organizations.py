from pydantic import BaseModel
from tenant_access.models.auth import OrganizationSummary


class AdminContextSelect(BaseModel):
    organization_id: str


class AdminContextResponse(BaseModel):
    selected_organization: OrganizationSummary | None
    effective_organization_id: str | None
