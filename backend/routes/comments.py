from typing import List

from fastapi import APIRouter, Depends, status

from backend.deps import Services, get_current_user, get_services
from backend.models import CommentCreate, CommentView, Message, Principal

router = APIRouter(prefix="/comments", tags=["comments"])


@router.post("", response_model=CommentView, status_code=status.HTTP_201_CREATED)
async def create_comment(
    body: CommentCreate,
    current_user: Principal = Depends(get_current_user),
    services: Services = Depends(get_services),
):
    return await services.interactions.add_comment(body.post_id, current_user, body.text)


@router.get("/post/{post_id}", response_model=List[CommentView])
async def list_comments(post_id: str, services: Services = Depends(get_services)):
    return await services.interactions.list_comments(post_id)


@router.delete("/{comment_id}", response_model=Message)
async def delete_comment(
    comment_id: str,
    current_user: Principal = Depends(get_current_user),
    services: Services = Depends(get_services),
):
    await services.interactions.delete_comment(current_user, comment_id)
    return Message(message="Comment deleted")
