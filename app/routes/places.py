"""Address autocomplete proxy for job locations"""

import logging
import os
from typing import Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel

from ..auth import get_current_user
from ..errors import UpstreamError
from ..models import User
from ..rate_limiter import create_rate_limiter
from ..services.places import GooglePlacesClient, PlacesError, get_places_client

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/places", tags=["Places"])

rate_limit_autocomplete = create_rate_limiter(
    limit=int(os.getenv("PLACES_AUTOCOMPLETE_RPM", "60")),
    window_seconds=60,
    key_prefix="places_autocomplete",
)


class Prediction(BaseModel):
    description: str
    placeId: Optional[str] = None


class AutocompleteResponse(BaseModel):
    predictions: list[Prediction]


@router.get("/autocomplete", response_model=AutocompleteResponse)
async def autocomplete(
    input: str = Query("", max_length=200),
    sessionToken: Optional[str] = Query(None, max_length=100),
    current_user: User = Depends(get_current_user),
    places: GooglePlacesClient = Depends(get_places_client),
    _: None = Depends(rate_limit_autocomplete),
):
    """Address predictions for partial input, restricted to the configured country"""
    try:
        predictions = await places.autocomplete(input, session_token=sessionToken)
    except PlacesError as e:
        raise UpstreamError(str(e)) from e
    return AutocompleteResponse(predictions=[Prediction(**p) for p in predictions])
