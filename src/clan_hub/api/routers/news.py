"""
News feed router.

Endpoints:
- GET /news - Public feed, newest first
- POST /news - Create a post with metadata autofill (admin)
- PUT /news/{item_id} - Edit a post (admin)
- DELETE /news/{item_id} - Delete a post (admin)
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Path, Query, Response

from ...core.models import NewsItem, NewsItemCreate, NewsItemUpdate
from ...repositories import DuplicateUrlError
from ...services import NewsNotFoundError
from ..dependencies import AdminDependency, NewsServiceDependency, ReposDependency
from ..errors import ConflictError, NotFoundError

logger = logging.getLogger(__name__)

router = APIRouter()

ItemId = Annotated[str, Path(min_length=1, max_length=64, description="News item id")]


@router.get("")
async def list_news(
    repos: ReposDependency,
    limit: Annotated[int | None, Query(ge=1, le=200, description="Max items")] = None,
) -> list[NewsItem]:
    return repos.news.list(limit)


@router.post("", status_code=201, dependencies=[AdminDependency])
async def create_news(payload: NewsItemCreate, service: NewsServiceDependency) -> NewsItem:
    try:
        return await service.create_post(payload)
    except DuplicateUrlError as e:
        raise ConflictError("A post for this link already exists", detail=e.url)


@router.put("/{item_id}", dependencies=[AdminDependency])
async def update_news(item_id: ItemId, payload: NewsItemUpdate, service: NewsServiceDependency) -> NewsItem:
    try:
        return service.update_post(item_id, payload)
    except NewsNotFoundError:
        raise NotFoundError("News item", item_id)
    except DuplicateUrlError as e:
        raise ConflictError("Another post already uses this link", detail=e.url)


@router.delete("/{item_id}", status_code=204, dependencies=[AdminDependency])
async def delete_news(item_id: ItemId, service: NewsServiceDependency) -> Response:
    try:
        service.delete_post(item_id)
    except NewsNotFoundError:
        raise NotFoundError("News item", item_id)
    return Response(status_code=204)
