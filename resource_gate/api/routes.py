"""API endpoints for learning-resource previews."""

import logging

from fastapi import APIRouter, Depends, Request
from slowapi import Limiter
from slowapi.util import get_remote_address

from resource_gate import config
from resource_gate.api.models import ResourceMetadata, ResourceUrlRequest, UrlCheckResponse
from resource_gate.resources.metadata import MetadataFetcher
from resource_gate.security.validator import ResourceUrlValidator, get_validator

logger = logging.getLogger(__name__)
router = APIRouter()

limiter = Limiter(key_func=get_remote_address)


def get_metadata_fetcher(request: Request) -> MetadataFetcher:
    return request.app.state.metadata_fetcher


def get_url_validator() -> ResourceUrlValidator:
    return get_validator()


@router.post("/resource-metadata", response_model_by_alias=True)
@limiter.limit(config.METADATA_RATE_LIMIT)
async def resource_metadata(
    request: Request,
    body: ResourceUrlRequest,
    fetcher: MetadataFetcher = Depends(get_metadata_fetcher),
) -> ResourceMetadata:
    """Return preview metadata for an allowlisted resource URL.

    Rejected URLs raise ResourceNotPermittedError, mapped to 403 in main.
    """
    return await fetcher.fetch(body.url)


@router.post("/resource-url/check")
@limiter.limit(config.METADATA_RATE_LIMIT)
async def check_resource_url(
    request: Request,
    body: ResourceUrlRequest,
    validator: ResourceUrlValidator = Depends(get_url_validator),
) -> UrlCheckResponse:
    """Report whether a URL may be fetched, without saying why not."""
    result = await validator.validate(body.url)
    return UrlCheckResponse(allowed=result.valid)


@router.get("/health/ready")
async def health_ready() -> dict:
    """Readiness probe. The allowlist is loaded at import, so this only reports its size."""
    allowed = config.get_allowed_domains()
    return {"ready": len(allowed) > 0, "allowed_domains": len(allowed)}
