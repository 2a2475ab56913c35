"""
Feature: User lookup for invitations
  As a board owner
  I want to search users by email
  So that I can invite them to my board

Scenario: Search needs at least three characters
Scenario: Search excludes me and current board members
Scenario: Search returns at most five results
Scenario: Only admins can list all users
"""

import pytest
from fastapi import HTTPException
from apis.users import get_me, get_user, list_users, search_users
from models.auth import UserRole
from conftest import make_user


@pytest.mark.asyncio
async def test_get_me(owner):
    result = await get_me(user=owner)
    assert result.username == "owner"
    assert result.model_dump(by_alias=True)["avatarUrl"] is None


@pytest.mark.asyncio
async def test_search_requires_three_characters(session, store, owner, outsider):
    assert await search_users(email="ou", board_id=None, user=owner, db_session=session, document_store=store) == []


@pytest.mark.asyncio
async def test_search_excludes_self_and_members(session, store, owner, member, outsider, board):
    results = await search_users(email="example.com", board_id=board.id, user=owner, db_session=session, document_store=store)
    assert [r.id for r in results] == [outsider.id]

    results = await search_users(email="EXAMPLE", board_id=None, user=owner, db_session=session, document_store=store)
    assert sorted(r.username for r in results) == ["member", "outsider"]


@pytest.mark.asyncio
async def test_search_is_capped(session, store, owner):
    for index in range(7):
        make_user(session, f"teammate{index}")

    results = await search_users(email="teammate", board_id=None, user=owner, db_session=session, document_store=store)
    assert len(results) == 5


@pytest.mark.asyncio
async def test_search_on_hidden_board_is_not_found(session, store, outsider, board):
    with pytest.raises(HTTPException) as exc_info:
        await search_users(email="example", board_id=board.id, user=outsider, db_session=session, document_store=store)
    assert exc_info.value.status_code == 404


@pytest.mark.asyncio
async def test_list_users_admin_only(session, owner, admin):
    with pytest.raises(HTTPException) as exc_info:
        await list_users(is_active=True, user=owner, db_session=session)
    assert exc_info.value.status_code == 403

    users = await list_users(is_active=True, user=admin, db_session=session)
    assert {u.username for u in users} == {"owner", "admin"}
    assert {u.role for u in users} == {UserRole.ADMIN, UserRole.MEMBER}


@pytest.mark.asyncio
async def test_get_user_profile(session, owner, member):
    assert (await get_user(user_id=member.id, user=owner, db_session=session)).username == "member"
    with pytest.raises(HTTPException) as exc_info:
        await get_user(user_id="user_ghost", user=owner, db_session=session)
    assert exc_info.value.status_code == 404
