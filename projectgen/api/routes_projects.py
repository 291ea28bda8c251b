from typing import List
from fastapi import APIRouter, Depends, HTTPException, status
from projectgen.api.deps import get_gateway, get_service
from projectgen.db.gateway import PersistenceGateway
from projectgen.schemas.projects import (
    CancelResponse,
    ChatMessage,
    GenerateAccepted,
    GenerateRequest,
    MessageCreateRequest,
    Project,
    ProjectCreateRequest,
)
from projectgen.tasks.jobs import GenerationService

router = APIRouter(prefix="/projects")


async def _require_project(project_id: str, gateway: PersistenceGateway) -> Project:
    project = await gateway.get_project(project_id)
    if not project:
        raise HTTPException(status_code=404, detail="Project not found")
    return project


@router.post("", response_model=Project, response_model_by_alias=True)
async def create_project(req: ProjectCreateRequest, gateway: PersistenceGateway = Depends(get_gateway)):
    return await gateway.create_project(name=req.name, description=req.description)


@router.get("", response_model=List[Project], response_model_by_alias=True)
async def list_projects(gateway: PersistenceGateway = Depends(get_gateway)):
    return await gateway.list_projects()


@router.get("/{project_id}", response_model=Project, response_model_by_alias=True)
async def get_project(project_id: str, gateway: PersistenceGateway = Depends(get_gateway)):
    return await _require_project(project_id, gateway)


@router.get("/{project_id}/messages", response_model=List[ChatMessage], response_model_by_alias=True)
async def list_messages(project_id: str, gateway: PersistenceGateway = Depends(get_gateway)):
    await _require_project(project_id, gateway)
    return await gateway.list_messages(project_id)


@router.post("/{project_id}/messages", response_model=ChatMessage, response_model_by_alias=True)
async def create_message(
    project_id: str,
    req: MessageCreateRequest,
    service: GenerationService = Depends(get_service),
):
    await _require_project(project_id, service.gateway)
    message = await service.gateway.append_message(project_id, req.role, req.content, req.metadata)
    if req.role == "user":
        # A user message is a generation request; a running job just ignores it.
        service.submit_generation(project_id, req.content)
    return message


@router.post(
    "/{project_id}/generate",
    response_model=GenerateAccepted,
    response_model_by_alias=True,
    status_code=status.HTTP_202_ACCEPTED,
)
async def generate(
    project_id: str,
    req: GenerateRequest,
    service: GenerationService = Depends(get_service),
):
    await _require_project(project_id, service.gateway)
    result = service.submit_generation(project_id, req.prompt, record_prompt=True)
    if not result.accepted:
        raise HTTPException(status_code=409, detail=result.reason)
    return GenerateAccepted(accepted=True, project_id=project_id)


@router.post("/{project_id}/cancel", response_model=CancelResponse, response_model_by_alias=True)
async def cancel(project_id: str, service: GenerationService = Depends(get_service)):
    await _require_project(project_id, service.gateway)
    return CancelResponse(project_id=project_id, cancelled=service.cancel(project_id))
