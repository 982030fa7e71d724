from uuid import uuid4

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from tenant_access.observability import bind_request_id, unbind_request_id
from tenant_access.routers import (
    access,
    auth_routes,
    organizations,
)

app = FastAPI(title="Tenant Access", version="0.1.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def attach_request_id(request: Request, call_next):
    request_id = (
        request.headers.get("X-Request-ID")
        or request.headers.get("X-Correlation-ID")
        or str(uuid4())
    )
    request.state.request_id = request_id
    token = bind_request_id(request_id)
    try:
        response = await call_next(request)
    finally:
        unbind_request_id(token)
    response.headers["X-Request-ID"] = request_id
    return response

app.include_router(auth_routes.router)
app.include_router(access.router)
app.include_router(organizations.router)


@app.get("/")
async def root():
    return {"status": "ok", "service": "tenant-access"}


@app.get("/health")
async def health():
    return {"status": "healthy"}
