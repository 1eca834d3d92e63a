"""FastAPI surface exposing one deployment workspace to a dashboard view."""

import os
from typing import Any, Dict, List, Optional

from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field
import uvicorn

from ..config import Settings
from ..selector import classify
from ..workspace import Workspace


# Pydantic models
class ClassifyRequest(BaseModel):
    metadata: Dict[str, Any]


class ClassifyResponse(BaseModel):
    deployable: bool
    target: Optional[str] = None
    reason: Optional[str] = None
    warnings: List[str] = Field(default_factory=list)


class DeployRequest(BaseModel):
    token: Optional[str] = None


class DeployResponse(BaseModel):
    ok: bool
    status: str
    error: Optional[str] = None


class SubscribeRequest(BaseModel):
    serviceName: str


def _classify_response(metadata: Dict[str, Any], workspace: Optional[Workspace] = None) -> ClassifyResponse:
    try:
        decision = workspace.apply_scan(metadata) if workspace else classify(metadata)
    except ValueError as e:
        raise HTTPException(
            status_code=422,
            detail={
                "code": "invalid_metadata",
                "message": str(e),
                "hint": "Send the scanner's project metadata object"
            }
        )
    if decision is None:
        return ClassifyResponse(deployable=False)
    return ClassifyResponse(deployable=True, **decision.to_dict())


def create_app(workspace: Workspace, settings: Optional[Settings] = None) -> FastAPI:
    """Build the API around an already constructed workspace."""
    settings = settings or Settings.from_env()

    app = FastAPI(
        title="SmartDeploy API",
        description="Deployment orchestration client",
        version="1.0.0"
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/")
    async def root():
        """Health check endpoint."""
        return {"message": "SmartDeploy API is running", "version": "1.0.0"}

    @app.post("/classify", response_model=ClassifyResponse)
    async def classify_endpoint(request: ClassifyRequest):
        """Classify scan metadata without touching the workspace."""
        return _classify_response(request.metadata)

    @app.post("/scan", response_model=ClassifyResponse)
    async def scan_endpoint(request: ClassifyRequest):
        """Classify scan metadata and copy the decision into the draft."""
        return _classify_response(request.metadata, workspace)

    @app.get("/session")
    async def session_endpoint():
        """Current session model for rendering."""
        return workspace.session.snapshot().to_dict()

    @app.get("/draft")
    async def get_draft():
        return {"draft": workspace.draft, "pendingSave": workspace.reconciler.pending}

    @app.patch("/draft")
    async def patch_draft(changes: Dict[str, Any]):
        """Apply form edits; they are saved after the debounce window."""
        draft = workspace.edit(changes)
        return {"draft": draft, "pendingSave": workspace.reconciler.pending}

    @app.post("/deploy", response_model=DeployResponse)
    async def deploy_endpoint(request: DeployRequest):
        """Submit the current draft for deployment."""
        token = request.token or settings.token
        if not token:
            raise HTTPException(
                status_code=401,
                detail={
                    "code": "missing_token",
                    "message": "No credentials available for deployment",
                    "hint": "Pass a token or set SMARTDEPLOY_TOKEN"
                }
            )
        if not workspace.can_deploy:
            raise HTTPException(
                status_code=409,
                detail={
                    "code": "deploy_unavailable",
                    "message": "Nothing deployable, or a deployment is already running",
                    "hint": "Scan the project and wait for the running deployment to finish"
                }
            )
        ok = workspace.deploy(token)
        session = workspace.session
        return DeployResponse(ok=ok, status=session.status.value, error=session.error)

    @app.post("/subscribe")
    async def subscribe_endpoint(request: SubscribeRequest):
        """Start streaming live service logs."""
        if not workspace.session.subscribe(request.serviceName):
            raise HTTPException(
                status_code=503,
                detail={
                    "code": "not_connected",
                    "message": "Not connected to the deploy server",
                    "hint": "Reopen the workspace"
                }
            )
        return {"ok": True}

    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException):
        """Wrap HTTP errors as {"error": detail}."""
        return JSONResponse(status_code=exc.status_code, content={"error": exc.detail})

    return app


if __name__ == "__main__":
    settings = Settings.from_env()
    workspace = Workspace.from_settings(settings, service_name=os.getenv("SMARTDEPLOY_SERVICE"))
    workspace.session.open()
    port = int(os.getenv("PORT", 8080))
    uvicorn.run(create_app(workspace, settings), host="0.0.0.0", port=port)
