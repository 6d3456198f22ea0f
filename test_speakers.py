import pytest
from httpx import AsyncClient
from fastapi import status

from event_manager.schemas import SpeakerUpdate
from event_manager.services.speaker_service import SpeakerService


async def create_speaker(client: AsyncClient, **overrides) -> dict:
    payload = {
        "name": "Ada Lovelace",
        "bio": "Analyst",
        "email": "ada@example.com",
        "phone": None,
        "expertise": "Engines",
    }
    payload.update(overrides)
    response = await client.post("/api/v1/speakers/", json=payload)
    assert response.status_code == status.HTTP_201_CREATED, response.text
    return response.json()


@pytest.mark.asyncio
async def test_create_and_get_speaker(client: AsyncClient):
    speaker = await create_speaker(client)
    assert speaker["name"] == "Ada Lovelace"
    assert speaker["phone"] is None

    response = await client.get(f"/api/v1/speakers/{speaker['id']}")
    assert response.status_code == status.HTTP_200_OK
    assert response.json() == speaker


@pytest.mark.asyncio
async def test_create_speaker_requires_valid_email(client: AsyncClient):
    response = await client.post("/api/v1/speakers/", json={"name": "Bad", "email": "not-an-email"})
    assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY


@pytest.mark.asyncio
async def test_list_speakers(client: AsyncClient):
    assert (await client.get("/api/v1/speakers/")).json() == []
    first = await create_speaker(client)
    second = await create_speaker(client, name="Alan Turing", email="alan@example.com")
    listing = (await client.get("/api/v1/speakers/")).json()
    assert [s["id"] for s in listing] == [first["id"], second["id"]]


@pytest.mark.asyncio
async def test_update_speaker(client: AsyncClient):
    speaker = await create_speaker(client)
    response = await client.patch(
        f"/api/v1/speakers/{speaker['id']}", json={"bio": None, "phone": "+1 555 0100"}
    )
    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert data["bio"] is None
    assert data["phone"] == "+1 555 0100"
    assert data["expertise"] == "Engines"

    assert (await client.patch(f"/api/v1/speakers/{speaker['id']}", json={"name": None})).status_code == 422
    assert (await client.patch("/api/v1/speakers/999", json={"name": "X"})).status_code == 404


@pytest.mark.asyncio
async def test_get_missing_speaker(client: AsyncClient):
    response = await client.get("/api/v1/speakers/999")
    assert response.status_code == status.HTTP_404_NOT_FOUND
    assert response.json()["detail"] == "Speaker not found"


@pytest.mark.asyncio
async def test_assign_and_unassign_speaker(client: AsyncClient, create_event):
    event = await create_event()
    speaker = await create_speaker(client)

    assign = await client.post(f"/api/v1/events/{event['id']}/speakers/{speaker['id']}")
    assert assign.status_code == status.HTTP_201_CREATED
    assert assign.json()["event_id"] == event["id"]
    assert assign.json()["speaker_id"] == speaker["id"]

    speakers = (await client.get(f"/api/v1/events/{event['id']}/speakers")).json()
    assert [s["id"] for s in speakers] == [speaker["id"]]

    duplicate = await client.post(f"/api/v1/events/{event['id']}/speakers/{speaker['id']}")
    assert duplicate.status_code == status.HTTP_409_CONFLICT

    unassign = await client.delete(f"/api/v1/events/{event['id']}/speakers/{speaker['id']}")
    assert unassign.json() == {"success": True}
    assert (await client.get(f"/api/v1/events/{event['id']}/speakers")).json() == []

    again = await client.delete(f"/api/v1/events/{event['id']}/speakers/{speaker['id']}")
    assert again.json() == {"success": False}


@pytest.mark.asyncio
async def test_assign_requires_existing_event_and_speaker(client: AsyncClient, create_event):
    event = await create_event()
    speaker = await create_speaker(client)

    missing_event = await client.post(f"/api/v1/events/999/speakers/{speaker['id']}")
    assert missing_event.status_code == status.HTTP_404_NOT_FOUND
    assert missing_event.json()["detail"] == "Event not found"

    missing_speaker = await client.post(f"/api/v1/events/{event['id']}/speakers/999")
    assert missing_speaker.status_code == status.HTTP_404_NOT_FOUND
    assert missing_speaker.json()["detail"] == "Speaker not found"


@pytest.mark.asyncio
async def test_speakers_for_missing_event(client: AsyncClient):
    assert (await client.get("/api/v1/events/999/speakers")).status_code == status.HTTP_404_NOT_FOUND


@pytest.mark.asyncio
async def test_delete_speaker_removes_assignments(client: AsyncClient, create_event):
    event = await create_event()
    speaker = await create_speaker(client)
    await client.post(f"/api/v1/events/{event['id']}/speakers/{speaker['id']}")

    response = await client.delete(f"/api/v1/speakers/{speaker['id']}")
    assert response.json() == {"success": True}
    assert (await client.get(f"/api/v1/events/{event['id']}/speakers")).json() == []
    assert (await client.delete(f"/api/v1/speakers/{speaker['id']}")).json() == {"success": False}


@pytest.mark.asyncio
async def test_failed_speaker_update_is_rolled_back(client: AsyncClient, db, failing_commit):
    speaker = await create_speaker(client)

    with pytest.raises(RuntimeError):
        await SpeakerService().update_speaker(db, speaker["id"], SpeakerUpdate(name="Never stored"))

    assert failing_commit == [True]
    assert (await client.get(f"/api/v1/speakers/{speaker['id']}")).json()["name"] == "Ada Lovelace"


@pytest.mark.asyncio
async def test_failed_unassign_keeps_assignment(client: AsyncClient, db, create_event, failing_commit):
    event = await create_event()
    speaker = await create_speaker(client)
    await client.post(f"/api/v1/events/{event['id']}/speakers/{speaker['id']}")

    with pytest.raises(RuntimeError):
        await SpeakerService().unassign_speaker(db, event["id"], speaker["id"])

    assert failing_commit == [True]
    speakers = (await client.get(f"/api/v1/events/{event['id']}/speakers")).json()
    assert [s["id"] for s in speakers] == [speaker["id"]]
