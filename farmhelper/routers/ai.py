from typing import Optional

from fastapi import APIRouter, Depends, HTTPException

from farmhelper.config import settings
from farmhelper.dependencies import get_advisory_claims
from farmhelper.schemas.advisory import AdvisoryRequest, AdvisoryResponse
from farmhelper.services.advisory import advisory_pipeline
from farmhelper.services.errors import FarmHelperError
from farmhelper.services.tokens import TokenClaims

router = APIRouter(prefix="/ai", tags=["ai"])


def audio_url(file_name: Optional[str]) -> Optional[str]:
    if not file_name:
        return None
    return f"{settings.public_base_url}/audio/{file_name}"


@router.post("/soil", response_model=AdvisoryResponse)
def soil(
    payload: AdvisoryRequest,
    _: Optional[TokenClaims] = Depends(get_advisory_claims),
) -> AdvisoryResponse:
    try:
        advisory = advisory_pipeline.generate(
            payload.locality,
            payload.crop_type,
            payload.growth_stage,
            payload.soil_type,
            payload.message,
        )
    except FarmHelperError as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.message) from exc
    return AdvisoryResponse(
        message="Success!",
        data=advisory.data,
        audio=audio_url(advisory.audio_file),
    )
