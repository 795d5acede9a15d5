from fastapi import Depends, Request

from .config import Settings, load_settings
from .services.generation import GenerationClient
from .services.templates import TemplateRegistry


def get_settings() -> Settings:
    # FastAPI caches dependency results per request, so env and prompts.yml
    # are read once per request however many dependencies ask for them.
    return load_settings()


def get_registry(request: Request) -> TemplateRegistry:
    return request.app.state.registry


def get_generation_client(settings: Settings = Depends(get_settings)) -> GenerationClient:
    return GenerationClient(settings)


def get_prompts(settings: Settings = Depends(get_settings)) -> dict:
    return settings.prompts
