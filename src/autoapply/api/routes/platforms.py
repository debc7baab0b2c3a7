"""Platform classification and field-mapping routes."""

from typing import Annotated

from fastapi import APIRouter, Query
from pydantic import BaseModel

from autoapply.api.dependencies import ClassifierDep
from autoapply.api.schemas import FieldMappingResponse
from autoapply.automation.classifier import AuthenticationState, PlatformDetection, PlatformInfo
from autoapply.automation.models import ApplicantProfile
from autoapply.automation.strategies import PlatformStrategyRegistry

router = APIRouter()


class AuthStateRequest(BaseModel):
    url: str
    page_content: str


@router.get("", response_model=list[PlatformInfo])
async def list_platforms(classifier: ClassifierDep):
    """Registered platforms in match order (the generic fallback is not listed)."""
    return classifier.supported_platforms()


@router.get("/classify", response_model=PlatformDetection)
async def classify_url(url: Annotated[str, Query(min_length=1)], classifier: ClassifierDep):
    return classifier.classify(url)


@router.post("/auth-state", response_model=AuthenticationState)
async def detect_auth_state(request: AuthStateRequest, classifier: ClassifierDep):
    """Check captured page content for logged-in / login-page markers."""
    return classifier.detect_authentication_state(request.page_content, request.url)


@router.post("/{platform}/map-fields", response_model=FieldMappingResponse)
async def map_fields(platform: str, profile: ApplicantProfile):
    """Preview the form values a platform strategy produces for a profile.

    Unknown platform names map through the generic strategy.
    """
    strategy = PlatformStrategyRegistry.resolve(platform)
    return FieldMappingResponse(platform=strategy.name, fields=strategy.map_fields(profile))
