"""Tests for medical report endpoints."""

REPORTS = "/api/v1/reports"


def _report(patient_id="p1"):
    return {
        "patient_id": patient_id,
        "date": "2030-01-07",
        "summary": "Follow-up after hypertension diagnosis.",
        "diagnosis": "Controlled hypertension",
        "prescription": ["Lisinopril 10mg"],
        "vitals": {"bp": "128/82", "weight": "71kg"},
    }


class TestReports:
    async def test_patient_sees_own_history(self, client, patient_headers, other_patient_headers):
        mine = await client.get(REPORTS, headers=patient_headers)
        theirs = await client.get(REPORTS, params={"patient_id": "p1"}, headers=other_patient_headers)

        assert [r["id"] for r in mine.json()] == ["r1"]
        assert theirs.json() == []

    async def test_doctor_files_report(self, client, doctor_headers, patient_headers):
        response = await client.post(REPORTS, json=_report(), headers=doctor_headers)

        assert response.status_code == 201
        body = response.json()
        assert body["doctor_id"] == "d1"
        assert body["doctor_name"] == "Dr. Sarah Wilson"
        assert body["vitals"]["bp"] == "128/82"

        history = await client.get(REPORTS, headers=patient_headers)
        assert [r["id"] for r in history.json()] == [body["id"], "r1"]

    async def test_patient_cannot_file(self, client, patient_headers):
        response = await client.post(REPORTS, json=_report(), headers=patient_headers)
        assert response.status_code == 403

    async def test_unknown_patient(self, client, doctor_headers):
        response = await client.post(REPORTS, json=_report(patient_id="d2"), headers=doctor_headers)
        assert response.status_code == 404

    async def test_doctor_views_patient_history(self, client, login):
        headers = await login("james.m@medecho.ai")

        by_patient = await client.get(REPORTS, params={"patient_id": "p1"}, headers=headers)
        own = await client.get(REPORTS, headers=headers)

        assert [r["id"] for r in by_patient.json()] == ["r1"]
        assert own.json() == []
