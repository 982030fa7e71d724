from pydantic import BaseModel


class AccessCheckResponse(BaseModel):
    action: str
    module: str
    resource: str
    allowed: bool
    reason: str
    message: str | None = None


class ModuleAccessResponse(BaseModel):
    module: str
    allowed: bool


class PermissionMatrixResponse(BaseModel):
    effective_organization_id: str | None
    modules: dict[str, dict[str, dict[str, bool]]]
