"""
Roster router.

Endpoints:
- GET /members - Public roster
- POST /members - Add a member (admin)
- PUT /members/{member_id} - Edit a member (admin)
- DELETE /members/{member_id} - Remove a member (admin)
- POST /members/{member_id}/refresh-pubg - Refresh PUBG stats (admin)
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Path, Response

from ...core.http import ExternalAPIError
from ...core.models import Member, MemberCreate, MemberUpdate, StatSummary
from ...services import MemberNotFoundError, MissingPubgReferenceError
from ..dependencies import AdminDependency, MemberStatsDependency, ReposDependency
from ..errors import NotFoundError, ValidationError, upstream_error

logger = logging.getLogger(__name__)

router = APIRouter()

MemberId = Annotated[str, Path(min_length=1, max_length=64, description="Member id")]


@router.get("")
async def list_members(repos: ReposDependency) -> list[Member]:
    """All roster entries, oldest first."""
    return repos.members.list()


@router.post("", status_code=201, dependencies=[AdminDependency])
async def create_member(payload: MemberCreate, repos: ReposDependency) -> Member:
    member = repos.members.insert(payload.to_member())
    logger.info(f"Added member {member.nickname} ({member.id})")
    return member


@router.put("/{member_id}", dependencies=[AdminDependency])
async def update_member(member_id: MemberId, payload: MemberUpdate, repos: ReposDependency) -> Member:
    """
    Partial edit. Changing the PUBG name or platform drops the cached
    account id so the next refresh resolves it again.
    """
    current = repos.members.get(member_id)
    if current is None:
        raise NotFoundError("Member", member_id)
    updated = repos.members.update(payload.apply(current))
    if updated is None:
        raise NotFoundError("Member", member_id)
    return updated


@router.delete("/{member_id}", status_code=204, dependencies=[AdminDependency])
async def delete_member(member_id: MemberId, repos: ReposDependency) -> Response:
    if not repos.members.delete(member_id):
        raise NotFoundError("Member", member_id)
    logger.info(f"Deleted member {member_id}")
    return Response(status_code=204)


@router.post("/{member_id}/refresh-pubg", dependencies=[AdminDependency])
async def refresh_member_stats(member_id: MemberId, service: MemberStatsDependency) -> StatSummary:
    """Fetch PUBG stats for the member's scope, aggregate and store them."""
    try:
        return await service.refresh(member_id)
    except MemberNotFoundError:
        raise NotFoundError("Member", member_id)
    except MissingPubgReferenceError as e:
        raise ValidationError(str(e), detail="Set a PUBG name before refreshing")
    except ExternalAPIError as e:
        logger.warning(f"PUBG refresh failed for member {member_id}: {e.message}")
        raise upstream_error("PUBG", e)
