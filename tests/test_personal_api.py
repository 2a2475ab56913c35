"""
Feature: Reminders, notes and goals
  As a user
  I want private personal items I can optionally share
  So that I can plan my own work next to the boards

Scenario: Create and list my own items
Scenario: Other users cannot read private items
Scenario: Shared items are readable without a token but not editable
Scenario: Completing a reminder through the API
"""

import pytest
from datetime import timedelta
from fastapi import HTTPException
from apis.goals import create_goal, delete_goal, get_goal, list_goals, update_goal
from apis.notes import create_note, delete_note, get_note, list_notes, update_note
from apis.reminders import complete_reminder, create_reminder, delete_reminder, get_reminder, list_reminders, update_reminder
from apis.schemas.personal import (
    CreateGoalRequest, CreateNoteRequest, CreateReminderRequest,
    UpdateGoalRequest, UpdateNoteRequest, UpdateReminderRequest,
)
from models.boards import Priority
from models.helper import utcnow
from models.reminders import RecurrenceType


@pytest.mark.asyncio
async def test_notes_crud(store, owner, outsider):
    note = await create_note(note_data=CreateNoteRequest(title="Ideas", content="Dark mode"), user=owner, document_store=store)

    assert [n.id for n in await list_notes(user=owner, document_store=store)] == [note.id]
    assert await list_notes(user=outsider, document_store=store) == []

    with pytest.raises(HTTPException) as exc_info:
        await get_note(note_id=note.id, user=outsider, document_store=store)
    assert exc_info.value.status_code == 404

    updated = await update_note(note_id=note.id, note_data=UpdateNoteRequest(isShared=True), user=owner, document_store=store)
    assert updated.is_shared is True
    assert (await get_note(note_id=note.id, user=None, document_store=store)).content == "Dark mode"

    with pytest.raises(HTTPException) as exc_info:
        await update_note(note_id=note.id, note_data=UpdateNoteRequest(content="Mine"), user=outsider, document_store=store)
    assert exc_info.value.status_code == 403

    assert (await delete_note(note_id=note.id, user=owner, document_store=store)).message == "Note deleted successfully"
    with pytest.raises(HTTPException) as exc_info:
        await delete_note(note_id=note.id, user=owner, document_store=store)
    assert exc_info.value.status_code == 404


@pytest.mark.asyncio
async def test_goals_crud(store, owner):
    goal = await create_goal(goal_data=CreateGoalRequest(title="Run 10k", priority="High"), user=owner, document_store=store)
    assert goal.priority == Priority.HIGH
    assert goal.is_completed is False

    updated = await update_goal(goal_id=goal.id, goal_data=UpdateGoalRequest(isCompleted=True), user=owner, document_store=store)
    assert updated.is_completed is True
    assert updated.title == "Run 10k"

    assert len(await list_goals(user=owner, document_store=store)) == 1
    assert (await get_goal(goal_id=goal.id, user=owner, document_store=store)).id == goal.id
    await delete_goal(goal_id=goal.id, user=owner, document_store=store)
    assert await list_goals(user=owner, document_store=store) == []


@pytest.mark.asyncio
async def test_reminders_crud_and_complete(store, owner):
    soon = await create_reminder(
        reminder_data=CreateReminderRequest(title="Dentist", dateTime=utcnow() + timedelta(days=2)),
        user=owner, document_store=store
    )
    weekly = await create_reminder(
        reminder_data=CreateReminderRequest(title="Review", date_time=utcnow() - timedelta(hours=1), recurrence="Weekly"),
        user=owner, document_store=store
    )

    # Soonest first
    assert [r.title for r in await list_reminders(user=owner, document_store=store)] == ["Review", "Dentist"]

    rolled = await complete_reminder(reminder_id=weekly.id, user=owner, document_store=store)
    assert rolled.recurrence == RecurrenceType.WEEKLY
    assert rolled.is_completed is False

    done = await complete_reminder(reminder_id=soon.id, user=owner, document_store=store)
    assert done.is_completed is True

    renamed = await update_reminder(reminder_id=soon.id, reminder_data=UpdateReminderRequest(title="Dentist (moved)"), user=owner, document_store=store)
    assert renamed.title == "Dentist (moved)"
    assert (await get_reminder(reminder_id=soon.id, user=owner, document_store=store)).title == "Dentist (moved)"

    await delete_reminder(reminder_id=soon.id, user=owner, document_store=store)
    assert [r.id for r in await list_reminders(user=owner, document_store=store)] == [weekly.id]


@pytest.mark.asyncio
async def test_custom_reminder_without_interval_is_rejected(store, owner):
    with pytest.raises(HTTPException) as exc_info:
        await create_reminder(
            reminder_data=CreateReminderRequest(title="Gym", date_time=utcnow(), recurrence="Custom"),
            user=owner, document_store=store
        )
    assert exc_info.value.status_code == 422
