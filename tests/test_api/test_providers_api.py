"""Tests for the provider directory, availability and schedule editing endpoints."""

MONDAY = "2030-01-07"
D1 = "/api/v1/providers/d1"


async def _slots(client, headers, provider_id="d1", date=MONDAY):
    response = await client.get(
        f"/api/v1/providers/{provider_id}/availability", params={"date": date}, headers=headers
    )
    assert response.status_code == 200, response.text
    return response.json()["slots"]


class TestDirectory:
    async def test_list_doctors(self, client, patient_headers):
        response = await client.get("/api/v1/providers", headers=patient_headers)

        assert response.status_code == 200
        ids = {d["id"] for d in response.json()}
        assert ids == {"d1", "d2", "d3", "d4", "d5"}

    async def test_search(self, client, patient_headers):
        response = await client.get("/api/v1/providers", params={"search": "neuro"}, headers=patient_headers)
        assert [d["id"] for d in response.json()] == ["d2"]

    async def test_requires_login(self, client):
        assert (await client.get("/api/v1/providers")).status_code == 401

    async def test_profile(self, client, patient_headers):
        response = await client.get(f"{D1}/profile", headers=patient_headers)

        assert response.status_code == 200
        monday = response.json()["schedules"][1]
        assert monday["is_active"]
        assert [r["start"] for r in monday["ranges"]] == ["09:00", "15:00"]

    async def test_profile_of_patient_is_404(self, client, patient_headers):
        response = await client.get("/api/v1/providers/p1/profile", headers=patient_headers)
        assert response.status_code == 404


class TestAvailability:
    async def test_monday_slots(self, client, patient_headers):
        slots = await _slots(client, patient_headers)

        assert slots[:2] == ["09:00", "09:30"]
        assert "12:30" in slots and "13:00" not in slots
        assert slots[-1] == "17:30"
        assert len(slots) == 14

    async def test_inactive_day(self, client, patient_headers):
        # 2030-01-06 is a Sunday
        assert await _slots(client, patient_headers, date="2030-01-06") == []

    async def test_unknown_provider(self, client, patient_headers):
        assert await _slots(client, patient_headers, provider_id="nobody") == []

    async def test_bad_date(self, client, patient_headers):
        response = await client.get(
            f"{D1}/availability", params={"date": "07/01/2030"}, headers=patient_headers
        )
        assert response.status_code == 400

    async def test_compact_date_cannot_bypass_blackout(self, client, doctor_headers, patient_headers):
        await client.post(
            f"{D1}/blocked-slots", json={"date": MONDAY, "reason": "Conference"}, headers=doctor_headers
        )

        assert await _slots(client, patient_headers) == []
        response = await client.get(
            f"{D1}/availability", params={"date": "20300107"}, headers=patient_headers
        )
        assert response.status_code == 400


class TestScheduleEdits:
    async def test_toggle_day(self, client, doctor_headers):
        response = await client.put(f"{D1}/days/0/active", json={"is_active": True}, headers=doctor_headers)

        assert response.status_code == 200
        profile = response.json()
        assert profile["schedules"][0]["is_active"]
        assert profile["version"] == 2

    async def test_only_owner_may_edit(self, client, patient_headers, doctor_headers):
        as_patient = await client.put(f"{D1}/days/0/active", json={"is_active": True}, headers=patient_headers)
        other_doctor = await client.put(
            "/api/v1/providers/d2/days/0/active", json={"is_active": True}, headers=doctor_headers
        )
        anonymous = await client.put(f"{D1}/days/0/active", json={"is_active": True})

        assert as_patient.status_code == 403
        assert other_doctor.status_code == 403
        assert anonymous.status_code == 401

    async def test_stale_version(self, client, doctor_headers):
        response = await client.post(
            f"{D1}/days/1/ranges", params={"expected_version": 0}, headers=doctor_headers
        )
        assert response.status_code == 409

    async def test_add_and_update_range(self, client, doctor_headers):
        # Seeded Saturday keeps the weekday ranges while switched off
        added = await client.post(f"{D1}/days/6/ranges", headers=doctor_headers)
        assert added.json()["schedules"][6]["ranges"][-1] == {"start": "09:00", "end": "17:00"}
        assert len(added.json()["schedules"][6]["ranges"]) == 3

        updated = await client.patch(
            f"{D1}/days/6/ranges/2", json={"field": "end", "value": "12:00"}, headers=doctor_headers
        )
        assert updated.json()["schedules"][6]["ranges"][2] == {"start": "09:00", "end": "12:00"}

    async def test_remove_range(self, client, doctor_headers, patient_headers):
        response = await client.delete(f"{D1}/days/1/ranges/1", headers=doctor_headers)

        assert response.status_code == 200
        assert len(response.json()["schedules"][1]["ranges"]) == 1
        assert (await _slots(client, patient_headers))[-1] == "12:30"

    async def test_rejected_edit_leaves_profile(self, client, doctor_headers):
        await client.delete(f"{D1}/days/1/ranges/1", headers=doctor_headers)

        response = await client.delete(f"{D1}/days/1/ranges/0", headers=doctor_headers)

        assert response.status_code == 200
        assert response.json()["version"] == 2
        assert len(response.json()["schedules"][1]["ranges"]) == 1

    async def test_copy_to_weekdays(self, client, login):
        headers = await login("elena.r@medecho.ai")
        await client.patch(
            "/api/v1/providers/d3/days/6/ranges/0",
            json={"field": "end", "value": "10:00"},
            headers=headers,
        )

        response = await client.post("/api/v1/providers/d3/days/6/copy-to-weekdays", headers=headers)

        schedules = response.json()["schedules"]
        for day in range(1, 6):
            assert schedules[day]["ranges"] == [{"start": "08:00", "end": "10:00"}]
        assert not schedules[0]["is_active"]


class TestBlockedSlots:
    async def test_all_day_block(self, client, doctor_headers, patient_headers):
        response = await client.post(
            f"{D1}/blocked-slots", json={"date": MONDAY, "reason": "Conference"}, headers=doctor_headers
        )

        assert response.status_code == 200
        assert await _slots(client, patient_headers) == []

    async def test_timed_block(self, client, doctor_headers, patient_headers):
        await client.post(
            f"{D1}/blocked-slots",
            json={"date": MONDAY, "reason": "Rounds", "is_all_day": False, "start": "09:00", "end": "10:00"},
            headers=doctor_headers,
        )

        slots = await _slots(client, patient_headers)
        assert slots[0] == "10:00"
        assert len(slots) == 12

    async def test_block_with_non_iso_date_rejected(self, client, doctor_headers, patient_headers):
        response = await client.post(
            f"{D1}/blocked-slots", json={"date": "2030-1-7", "reason": "Conference"}, headers=doctor_headers
        )

        assert response.status_code == 422
        profile = await client.get(f"{D1}/profile", headers=patient_headers)
        assert profile.json()["blocked_slots"] == []

    async def test_block_date_is_stripped(self, client, doctor_headers):
        response = await client.post(
            f"{D1}/blocked-slots", json={"date": f" {MONDAY} ", "reason": "Conference"}, headers=doctor_headers
        )
        assert response.json()["blocked_slots"][0]["date"] == MONDAY

    async def test_block_without_reason_ignored(self, client, doctor_headers):
        response = await client.post(
            f"{D1}/blocked-slots", json={"date": MONDAY, "reason": "  "}, headers=doctor_headers
        )
        assert response.json()["blocked_slots"] == []

    async def test_remove_block(self, client, doctor_headers, patient_headers):
        added = await client.post(
            f"{D1}/blocked-slots", json={"date": MONDAY, "reason": "Conference"}, headers=doctor_headers
        )
        blocked_id = added.json()["blocked_slots"][0]["id"]

        response = await client.delete(f"{D1}/blocked-slots/{blocked_id}", headers=doctor_headers)

        assert response.json()["blocked_slots"] == []
        assert len(await _slots(client, patient_headers)) == 14
