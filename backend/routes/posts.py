from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile, status

from backend.deps import Services, get_current_user, get_optional_user, get_services
from backend.media import MAX_IMAGE_BYTES
from backend.models import InteractionView, Message, PostView, Principal

router = APIRouter(prefix="/posts", tags=["posts"])


async def _image_url(services: Services, image: Optional[UploadFile], image_url: Optional[str]) -> Optional[str]:
    if image is None or not image.filename:
        return image_url
    # One byte past the cap is enough for validate() to reject it
    data = await image.read(MAX_IMAGE_BYTES + 1)
    return await services.uploader.upload(image.filename, image.content_type, data)


@router.get("", response_model=List[PostView])
async def list_posts(
    page: int = Query(1, ge=1),
    limit: Optional[int] = Query(None, ge=1, le=100),
    services: Services = Depends(get_services),
):
    return await services.posts.list_posts(page=page, limit=limit)


@router.get("/{post_id}", response_model=PostView)
async def get_post(post_id: str, services: Services = Depends(get_services)):
    return await services.posts.get_post(post_id)


@router.get("/{post_id}/interactions", response_model=InteractionView)
async def get_interactions(
    post_id: str,
    current_user: Optional[Principal] = Depends(get_optional_user),
    services: Services = Depends(get_services),
):
    actor_id = current_user.id if current_user else None
    return await services.interactions.get_interactions(post_id, actor_id)


@router.post("", response_model=PostView, status_code=status.HTTP_201_CREATED)
async def create_post(
    title: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    content: Optional[str] = Form(None),
    image_url: Optional[str] = Form(None),
    image: Optional[UploadFile] = File(None),
    current_user: Principal = Depends(get_current_user),
    services: Services = Depends(get_services),
):
    final_image_url = await _image_url(services, image, image_url)
    return await services.posts.create_post(current_user, title, description, content, final_image_url)


@router.put("/{post_id}", response_model=PostView)
async def update_post(
    post_id: str,
    title: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    content: Optional[str] = Form(None),
    image_url: Optional[str] = Form(None),
    image: Optional[UploadFile] = File(None),
    current_user: Principal = Depends(get_current_user),
    services: Services = Depends(get_services),
):
    fields = {"title": title, "description": description, "content": content}
    if image is not None and image.filename:
        fields["image_url"] = await _image_url(services, image, image_url)
    elif image_url is not None:
        fields["image_url"] = image_url
    return await services.posts.update_post(current_user, post_id, **fields)


@router.delete("/{post_id}", response_model=Message)
async def delete_post(
    post_id: str,
    current_user: Principal = Depends(get_current_user),
    services: Services = Depends(get_services),
):
    await services.posts.delete_post(current_user, post_id)
    return Message(message="Post deleted successfully")
