from fastapi import Request
from projectgen.db.gateway import PersistenceGateway
from projectgen.tasks.jobs import GenerationService


def get_service(request: Request) -> GenerationService:
    return request.app.state.service


def get_gateway(request: Request) -> PersistenceGateway:
    return request.app.state.service.gateway
