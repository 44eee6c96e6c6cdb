"""
Albums API router
"""
from typing import List

from fastapi import APIRouter, Depends, File, UploadFile

from api.dependencies import get_post_service
from middleware.auth import get_current_user, require_verified_seller
from middleware.uploads import validate_image_files
from models.api.post import CreateAlbumData, LikeRequest
from services.post_service import PostService

public = APIRouter()
protected = APIRouter(dependencies=[Depends(get_current_user)])


# =============================================================================
# PUBLIC
# =============================================================================

@public.get("/random/{page}/{id}")
async def get_random_albums(
    page: int,
    id: str,
    posts: PostService = Depends(get_post_service),
):
    """Page through albums of the sellers the user subscribes to"""
    return await posts.get_random_albums(page, id)


@public.get("/seller/{id}", status_code=201)
async def get_seller_albums(id: str, posts: PostService = Depends(get_post_service)):
    return await posts.get_seller_albums(id)


@public.get("/plan/{id}", status_code=201)
async def get_album_plan(id: str, posts: PostService = Depends(get_post_service)):
    return await posts.get_album_plan(id)


@public.post("/likes/{id}", status_code=201)
async def like_album(
    id: str,
    body: LikeRequest,
    posts: PostService = Depends(get_post_service),
):
    """Toggle a like; liking again removes it"""
    return await posts.like_post(id, body.userId)


@public.post("/upload/{id}", status_code=201)
async def upload_album_pictures(
    id: str,
    files: List[UploadFile] = File(...),
    posts: PostService = Depends(get_post_service),
):
    await posts.upload_post_pictures(validate_image_files(files), id)
    return {"message": "post pictures have been uploaded successfully"}


# =============================================================================
# AUTHENTICATED
# =============================================================================

@protected.get("/popular/{id}", status_code=201)
async def get_popular_albums(id: str, posts: PostService = Depends(get_post_service)):
    return {"popularPosts": await posts.get_popular_albums(id)}


@protected.get("/category/{id}", status_code=201)
async def get_albums_by_category(id: str, posts: PostService = Depends(get_post_service)):
    return {"AlbumByCategory": await posts.get_album_by_category(id)}


@protected.get("/pictures/{id}", status_code=201)
async def get_album_pictures(id: str, posts: PostService = Depends(get_post_service)):
    return {"data": await posts.get_post_pictures(id)}


@protected.get("/all-categories", status_code=201)
async def get_categories(posts: PostService = Depends(get_post_service)):
    return {"categories": await posts.get_categories()}


@protected.put("/views/{id}")
async def update_views(id: str, posts: PostService = Depends(get_post_service)):
    views = await posts.update_views(id)
    return {"updatedViews": {"message": "Views updated successfully", "views": views, "postId": id}}


@protected.get("/{id}", status_code=201)
async def get_all_albums(id: str, posts: PostService = Depends(get_post_service)):
    """Every album except the user's own"""
    return {"allAlbums": await posts.get_all_albums(id)}


@protected.delete("/{id}")
async def delete_album(id: str, posts: PostService = Depends(get_post_service)):
    deleted_id = await posts.delete_album(id)
    return {"message": "Album deleted successfully", "deletedPostId": deleted_id}


@protected.post("/{id}", status_code=201, dependencies=[Depends(require_verified_seller)])
async def create_album(
    id: str,
    body: CreateAlbumData,
    posts: PostService = Depends(get_post_service),
):
    """
    Create an album for seller `id`

    Returns:
        {albumData, collection}; views and likes start at 0
    """
    return await posts.create_post(id, body)


router = APIRouter(prefix="/albums", tags=["albums"])
router.include_router(public)
router.include_router(protected)
