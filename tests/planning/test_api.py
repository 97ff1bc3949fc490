import pytest
from unittest import mock

from sqlalchemy.exc import OperationalError

from walkplanner.services.planning.data_loader import load_weekly_view
from walkplanner.services.planning.errors import StoreUnavailableError
from walkplanner.services.planning.types import RoutineTier

from conftest import add_assignment, add_dog, add_dogs, add_routine


def init_slots(client):
    response = client.post("/api/v1/slots/initialize")
    assert response.status_code == 201
    return response.json()


class TestSlotsApi:

    def test_initialize_and_list(self, client):
        created = init_slots(client)
        assert len(created) == 15
        assert created[0]["slot_id"] == "LU-B1"
        assert created[0]["walk_start_time"] == "10:00:00"

        listed = client.get("/api/v1/slots").json()
        assert [s["slot_id"] for s in listed] == [s["slot_id"] for s in created]


class TestPlanningApi:

    def test_weekly_view(self, client, db):
        init_slots(client)
        dog_id = add_dog(db, "Rex")
        add_assignment(db, dog_id, "LU-B1")

        response = client.get("/api/v1/planning/2025/10")

        assert response.status_code == 200
        body = response.json()
        assert body["monday"] == "2025-03-03"
        assert len(body["slots"]) == 15
        slot = body["slots"][0]
        assert slot["occupancy"] == 1
        assert slot["remaining"] == 3
        assert slot["assignments"][0]["dog_name"] == "Rex"
        assert float(body["estimated_revenue"]) == 30

    def test_invalid_week_is_422(self, client):
        init_slots(client)
        assert client.get("/api/v1/planning/2025/53").status_code == 422

    def test_override_update(self, client):
        init_slots(client)
        response = client.put("/api/v1/planning/2025/10/slots/MA-B1", json={"sector": "S2", "capacity": 5})
        assert response.status_code == 200
        assert response.json()["override"]["capacity"] == 5

    def test_override_violation_is_409(self, client):
        init_slots(client)
        response = client.put(
            "/api/v1/planning/2025/10/slots/MA-B1",
            json={"walk_type": "INDIVIDUAL", "capacity": 3},
        )
        assert response.status_code == 409
        codes = [v["code"] for v in response.json()["detail"]["report"]["violations"]]
        assert "INDIVIDUAL_WALK_CAPACITY" in codes

    def test_malformed_slot_id_is_422(self, client):
        init_slots(client)
        response = client.put("/api/v1/planning/2025/10/slots/SA-B1", json={"capacity": 3})
        assert response.status_code == 422

    def test_import_validation(self, client, db):
        init_slots(client)
        dogs = add_dogs(db, 5)
        payload = {"assignments": [{"dog_id": d, "slot_id": "LU-B1"} for d in dogs]}

        response = client.post("/api/v1/planning/2025/10/import/validate", json=payload)

        assert response.status_code == 200
        body = response.json()
        assert body["is_valid"] is False
        assert [v["code"] for v in body["violations"]] == ["GROUP_FULL"]

    def test_analysis(self, client, db):
        init_slots(client)
        dog_id = add_dog(db)
        add_routine(db, dog_id, RoutineTier.R2)
        add_assignment(db, dog_id, "LU-B1")
        add_assignment(db, dog_id, "LU-B2")

        body = client.get("/api/v1/planning/2025/10/analysis").json()

        assert body["load"]["total_assignments"] == 2
        assert body["conflicts"][0]["conflict_type"] == "consecutive_blocks"
        assert body["compliance"][0]["status"] == "ok"

    def test_auto_assign_and_suggestions(self, client, db):
        init_slots(client)
        dog_id = add_dog(db)
        add_routine(db, dog_id, RoutineTier.R2)

        suggestions = client.get(f"/api/v1/planning/2025/10/suggestions/{dog_id}?limit=2").json()
        assert [s["slot_id"] for s in suggestions] == ["LU-B1", "LU-B2"]

        body = client.post(f"/api/v1/planning/2025/10/auto-assign/{dog_id}").json()
        assert body["outcome"] == "ASSIGNED"
        assert body["assigned_slots"] == ["LU-B1", "MA-B1"]

        again = client.post(f"/api/v1/planning/2025/10/auto-assign/{dog_id}").json()
        assert again["outcome"] == "ALREADY_SATISFIED"


class TestAssignmentsApi:

    def test_create_then_full(self, client, db):
        init_slots(client)
        dogs = add_dogs(db, 5)
        for dog_id in dogs[:4]:
            response = client.post("/api/v1/assignments", json={"dog_id": dog_id, "slot_id": "LU-B1", "year": 2025, "week": 10})
            assert response.status_code == 201

        response = client.post("/api/v1/assignments", json={"dog_id": dogs[4], "slot_id": "LU-B1", "year": 2025, "week": 10})

        assert response.status_code == 409
        violation = response.json()["detail"]["report"]["violations"][0]
        assert violation["code"] == "GROUP_FULL"
        assert violation["context"] == {"groupId": "LU-B1", "currentGroupCount": 4, "maxCapacity": 4}

    def test_unknown_dog_is_404(self, client):
        init_slots(client)
        response = client.post("/api/v1/assignments", json={"dog_id": 5, "slot_id": "LU-B1", "year": 2025, "week": 10})
        assert response.status_code == 404

    def test_completion_bills_the_walk(self, client, db):
        init_slots(client)
        dog_id = add_dog(db)
        assignment_id = add_assignment(db, dog_id, "ME-B1")

        response = client.patch(f"/api/v1/assignments/{assignment_id}/completion", json={"is_completed": True})
        assert response.status_code == 200
        assert response.json()["is_completed"] is True

        unsynced = client.get("/api/v1/billing/2025/10/unsynced").json()
        assert unsynced == []

    def test_completion_writes_once(self, client, db):
        init_slots(client)
        assignment_id = add_assignment(db, add_dog(db), "ME-B2")

        with mock.patch("walkplanner.api.routes.assignments.set_assignment_completion") as rewrite:
            response = client.patch(f"/api/v1/assignments/{assignment_id}/completion", json={"is_completed": True})

        assert response.status_code == 200
        assert response.json()["is_completed"] is True
        rewrite.assert_not_called()

    def test_uncompleting_does_not_bill(self, client, db):
        init_slots(client)
        assignment_id = add_assignment(db, add_dog(db), "ME-B2", completed=True)

        response = client.patch(f"/api/v1/assignments/{assignment_id}/completion", json={"is_completed": False})

        assert response.json()["is_completed"] is False
        assert client.get("/api/v1/billing/2025/10/unsynced").json() == []

    def test_delete(self, client, db):
        init_slots(client)
        assignment_id = add_assignment(db, add_dog(db), "ME-B1")
        assert client.delete(f"/api/v1/assignments/{assignment_id}").status_code == 204
        assert client.delete(f"/api/v1/assignments/{assignment_id}").status_code == 404

    def test_individual_walk(self, client, db):
        init_slots(client)
        dog_id = add_dog(db)
        response = client.post(
            "/api/v1/assignments/individual",
            json={"dog_id": dog_id, "slot_id": "VE-B2", "year": 2025, "week": 10},
        )
        assert response.status_code == 201
        slot = client.get("/api/v1/planning/2025/10").json()["slots"][13]
        assert slot["slot_id"] == "VE-B2"
        assert slot["walk_type"] == "INDIVIDUAL"
        assert slot["capacity"] == 1


class TestRoutinesAndRalliesApi:

    def test_routine_round_trip(self, client, db):
        dog_id = add_dog(db, "Bella", address="Route de Nyon 1, Prangins")
        response = client.put(f"/api/v1/dog-routines/{dog_id}", json={"tier": "R3", "preferred_days": ["LU", "ME"]})
        assert response.status_code == 200
        assert response.json()["sector"] == "S1"

        body = client.get(f"/api/v1/dog-routines/{dog_id}").json()
        assert body["preferred_days"] == ["LU", "ME"]
        assert len(client.get("/api/v1/dog-routines").json()) == 1

    def test_missing_routine_is_404(self, client):
        assert client.get("/api/v1/dog-routines/7").status_code == 404

    def test_rally(self, client, db):
        init_slots(client)
        dogs = add_dogs(db, 3)
        response = client.post(
            "/api/v1/rallies",
            json={"event_date": "2025-03-05", "start_block": "B2", "dog_ids": dogs},
        )
        assert response.status_code == 201
        assert response.json()["rally"]["blocks"] == ["B2", "B3"]

        bad = client.post("/api/v1/rallies", json={"event_date": "2025-03-05", "start_block": "B3", "dog_ids": []})
        assert bad.status_code == 409

        assert len(client.get("/api/v1/rallies").json()) == 1


class TestBillingApi:

    def test_sync_is_idempotent(self, client, db):
        init_slots(client)
        assignment_id = add_assignment(db, add_dog(db), "LU-B3", completed=True)

        first = client.post(f"/api/v1/billing/assignments/{assignment_id}/sync").json()
        second = client.post(f"/api/v1/billing/assignments/{assignment_id}/sync").json()

        assert first["outcome"] == "CREATED"
        assert second["outcome"] == "ALREADY_SYNCED"
        assert second["billable"]["id"] == first["billable"]["id"]

    def test_week_sync(self, client, db):
        init_slots(client)
        for dog_id in add_dogs(db, 2):
            add_assignment(db, dog_id, "MA-B2", completed=True)

        body = client.post("/api/v1/billing/2025/10/sync").json()

        assert body["total"] == 2
        assert body["success"] == 2
        assert len(body["created_ids"]) == 2


class TestAbsencesApi:

    def test_late_cancellation_is_billed(self, client, db):
        init_slots(client)
        assignment_id = add_assignment(db, add_dog(db), "LU-B1")

        response = client.post("/api/v1/absences", json={
            "assignment_id": assignment_id,
            "absence_type": "OTHER",
            "cancelled_at": "2025-03-03T08:00:00",
        })

        assert response.status_code == 201
        body = response.json()
        assert body["outcome"] == "CREATED"
        assert body["absence"]["policy"] == "FULL_CHARGE"
        assert float(body["billable"]["unit_price"]) == 30

        week = client.get("/api/v1/absences/weeks/2025/10").json()
        assert [a["slot_id"] for a in week] == ["LU-B1"]
        summary = client.get("/api/v1/absences/weeks/2025/10/summary").json()
        assert summary["total"] == 1
        assert float(summary["charged_amount"]) == 30

    def test_completed_walk_is_422(self, client, db):
        init_slots(client)
        assignment_id = add_assignment(db, add_dog(db), "LU-B1", completed=True)
        response = client.post("/api/v1/absences", json={"assignment_id": assignment_id, "absence_type": "OTHER"})
        assert response.status_code == 422

    def test_vacation(self, client, db):
        init_slots(client)
        dog_id = add_dog(db)
        add_assignment(db, dog_id, "MA-B1")

        response = client.post("/api/v1/absences/vacations", json={
            "dog_id": dog_id,
            "start_date": "2025-03-04",
            "end_date": "2025-03-07",
            "cancelled_at": "2025-02-20T09:00:00",
        })

        assert response.status_code == 201
        body = response.json()
        assert [c["outcome"] for c in body["cancellations"]] == ["NOT_CHARGEABLE"]
        listed = client.get(f"/api/v1/absences/vacations?dog_id={dog_id}").json()
        assert listed[0]["end_date"] == "2025-03-07"

    def test_reschedule_flow(self, client, db):
        init_slots(client)
        assignment_id = add_assignment(db, add_dog(db), "LU-B1")
        absence_id = client.post(
            "/api/v1/absences", json={"assignment_id": assignment_id, "absence_type": "DOG_SICK"}
        ).json()["absence"]["id"]

        suggestions = client.get(f"/api/v1/absences/{absence_id}/reschedule-suggestions?limit=3").json()
        assert len(suggestions) == 3
        target = suggestions[0]

        payload = {"slot_id": target["slot_id"], "year": target["year"], "week": target["week"]}
        response = client.post(f"/api/v1/absences/{absence_id}/reschedule", json=payload)
        assert response.status_code == 201
        assert response.json()["assignment"]["slot_id"] == target["slot_id"]

        again = client.post(f"/api/v1/absences/{absence_id}/reschedule", json=payload)
        assert again.status_code == 409

    def test_unknown_absence_is_404(self, client):
        init_slots(client)
        assert client.get("/api/v1/absences/42/reschedule-suggestions").status_code == 404


class TestStoreUnavailable:

    def test_503_and_retryable(self, client):
        error = OperationalError("SELECT 1", {}, Exception("connection refused"))
        with mock.patch("walkplanner.services.planning.data_loader.load_slot_templates", side_effect=error):
            response = client.get("/api/v1/planning/2025/10")
        assert response.status_code == 503
        assert response.json()["retryable"] is True

    def test_late_fetch_failure_returns_no_grid(self, client, db):
        init_slots(client)
        add_assignment(db, add_dog(db), "LU-B1")
        error = OperationalError("SELECT 1", {}, Exception("server closed the connection"))

        with mock.patch("walkplanner.services.planning.data_loader.load_week_assignments", side_effect=error):
            response = client.get("/api/v1/planning/2025/10")

        assert response.status_code == 503
        assert "slots" not in response.json()
        assert response.json()["retryable"] is True

    def test_service_raises_instead_of_partial_view(self, planning_db):
        error = OperationalError("SELECT 1", {}, Exception("server closed the connection"))
        with mock.patch("walkplanner.services.planning.data_loader.load_week_assignments", side_effect=error):
            with pytest.raises(StoreUnavailableError):
                load_weekly_view(planning_db, 2025, 10)


def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}
