"""Admin credential check used by the admin page before unlocking editing."""

from fastapi import APIRouter, Response

from ..dependencies import AdminDependency

router = APIRouter()


@router.get("/check", status_code=204, dependencies=[AdminDependency])
async def check_credentials() -> Response:
    """204 when the supplied admin credentials are valid, 401 otherwise."""
    return Response(status_code=204)
