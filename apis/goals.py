from fastapi import APIRouter, Depends, HTTPException, status
from database import get_store
from models.auth import User
from helpers.auth import get_current_user, get_optional_user
from helpers.errors import command_errors
from store.document_store import DocumentStore
from sync.commands import GoalCommands
from .schemas.personal import CreateGoalRequest, GoalResponse, UpdateGoalRequest
from apis.schemas.base import MessageResponse
from typing import List, Optional

router = APIRouter(prefix="/goals", tags=["goals"])


@router.get("")
async def list_goals(
    user: User = Depends(get_current_user),
    document_store: DocumentStore = Depends(get_store)
) -> List[GoalResponse]:
    with command_errors():
        goals = await GoalCommands(document_store, user).list()
    return [GoalResponse.model_validate(goal) for goal in goals]


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_goal(
    goal_data: CreateGoalRequest,
    user: User = Depends(get_current_user),
    document_store: DocumentStore = Depends(get_store)
) -> GoalResponse:
    commands = GoalCommands(document_store, user)
    with command_errors():
        goal_id = await commands.create(goal_data.model_dump(exclude_none=True))
        goal = await commands.get(goal_id)
    return GoalResponse.model_validate(goal)


@router.get("/{goal_id}")
async def get_goal(
    goal_id: str,
    user: Optional[User] = Depends(get_optional_user),
    document_store: DocumentStore = Depends(get_store)
) -> GoalResponse:
    with command_errors():
        goal = await GoalCommands(document_store, user).get(goal_id)
    return GoalResponse.model_validate(goal)


@router.put("/{goal_id}")
async def update_goal(
    goal_id: str,
    goal_data: UpdateGoalRequest,
    user: User = Depends(get_current_user),
    document_store: DocumentStore = Depends(get_store)
) -> GoalResponse:
    commands = GoalCommands(document_store, user)
    with command_errors():
        await commands.update(goal_id, goal_data.model_dump(exclude_unset=True, exclude_none=True))
        goal = await commands.get(goal_id)
    return GoalResponse.model_validate(goal)


@router.delete("/{goal_id}")
async def delete_goal(
    goal_id: str,
    user: User = Depends(get_current_user),
    document_store: DocumentStore = Depends(get_store)
) -> MessageResponse:
    with command_errors():
        deleted = await GoalCommands(document_store, user).delete(goal_id)

    if not deleted:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Goal not found"
        )
    return MessageResponse(message="Goal deleted successfully")
