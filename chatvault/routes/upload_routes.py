"""Upload-credential route for direct browser uploads to the image CDN."""

import logging
from typing import Dict, Union

from fastapi import APIRouter, Depends, Request

from chatvault.core.metrics_logger import UPLOAD_AUTH_ISSUED, log_metric
from chatvault.core.upload_auth import UploadAuthSigner

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["upload"])


def get_upload_signer() -> UploadAuthSigner:
    from chatvault.infrastructure.app_factory import app_factory
    return app_factory.get_upload_signer()


@router.get("/upload")
async def upload_auth(
    request: Request,
    signer: UploadAuthSigner = Depends(get_upload_signer),
) -> Dict[str, Union[str, int]]:
    """Issue a fresh ``{token, expire, signature}`` set for one upload.

    The caller may be anonymous when FEATURE_UPLOAD_AUTH_REQUIRED is off,
    so the user id is read from request state without requiring it.
    """
    params = signer.get_authentication_parameters()
    log_metric(UPLOAD_AUTH_ISSUED, getattr(request.state, "user_id", None))
    return params
