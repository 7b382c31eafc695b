from fastapi import APIRouter, Depends

from calsnap.constants import APP_SETTINGS, UPLOAD_SETTINGS
from calsnap.dto import HealthResponse
from calsnap.oracle.client import OracleClient
from calsnap.routes.dependencies import get_oracle

router = APIRouter()


@router.get("", response_model=HealthResponse, response_model_exclude_none=True)
def health_check():
    return HealthResponse(
        status="ok",
        service=APP_SETTINGS.APP_NAME,
        supported_formats={
            "document": list(UPLOAD_SETTINGS.DOCUMENT_TYPES),
            "image": list(UPLOAD_SETTINGS.IMAGE_TYPES),
            "audio": list(UPLOAD_SETTINGS.AUDIO_TYPES),
        },
        max_file_size_mb=UPLOAD_SETTINGS.MAX_FILE_SIZE_MB,
    )


@router.get("/oracle", response_model=HealthResponse, response_model_exclude_none=True)
def oracle_health_check(oracle: OracleClient = Depends(get_oracle)):
    """
    Report how the extraction oracle is configured.
    """
    components = oracle.describe()
    status = "error" if components.get("api_key") == "missing" else "ok"
    return HealthResponse(status=status, components=components)
