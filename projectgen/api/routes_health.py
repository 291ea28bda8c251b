from fastapi import APIRouter, Depends
from projectgen.api.deps import get_service
from projectgen.schemas.projects import ProviderStatus, ServiceStatus
from projectgen.tasks.jobs import GenerationService

router = APIRouter()

@router.get("/health")
def health():
    return {"status": "ok"}

@router.get("/status", response_model=ServiceStatus, response_model_by_alias=True)
def status(service: GenerationService = Depends(get_service)):
    selector = service.selector_factory()
    return ServiceStatus(
        ai_providers=ProviderStatus(configured=selector.configured_map(), active=selector.active_name()),
        preview_deploy=service.deployer is not None,
        running_jobs=len(service.registry),
    )
