"""HTTP tests for the public and admin routes."""


class TestHealth:
    def test_health(self, client):
        r = client.get("/health")
        assert r.status_code == 200
        body = r.json()
        assert body["status"] == "OK"
        assert body["database_mode"] == "In-Memory"
        assert body["reports_count"] == 0

    def test_root(self, client):
        assert client.get("/").json() == {"ok": True, "docs": "/docs"}


class TestReports:
    def test_submit_report(self, client, create_report):
        body = create_report(location={"lat": 40.7128, "lng": -74.006}, contact_info="a@example.com")
        assert body["success"] is True
        assert body["status"] == "reported"
        assert body["has_location"] is True
        assert body["has_media"] is False
        assert body["title"] == f"Issue Report #{body['tracking_id'].split('-')[-1]}"
        assert client.get("/health").json()["reports_count"] == 1

    def test_short_description_rejected(self, client):
        r = client.post("/reports", json={"description": "   short   "})
        assert r.status_code == 422

    def test_invalid_contact_rejected(self, client):
        r = client.post("/reports", json={"description": "Broken bench in the park", "contact_info": "nope"})
        assert r.status_code == 422

    def test_public_detail_hides_anonymous_contact(self, client, create_report):
        body = create_report(anonymous=True, contact_info="secret@example.com")

        r = client.get(f"/reports/{body['tracking_id']}")

        assert r.status_code == 200
        data = r.json()
        assert data["contact_info"] is None
        assert data["created_by"] == "anonymous"

    def test_unknown_tracking_id(self, client):
        r = client.get("/reports/RPT-20240101-9999")
        assert r.status_code == 404
        assert r.json()["detail"] == "Report not found"

    def test_public_list_filters(self, client, create_report):
        create_report(priority="high", location={"lat": 40.7128, "lng": -74.006})
        create_report(priority="low")

        assert len(client.get("/reports").json()) == 2
        assert len(client.get("/reports", params={"severity": "high"}).json()) == 1
        assert len(client.get("/reports", params={"format": "map"}).json()) == 1

    def test_public_list_near(self, client, create_report):
        create_report(location={"lat": 40.7128, "lng": -74.006})
        create_report(location={"lat": 41.5, "lng": -74.006})

        r = client.get("/reports", params={"near": "40.713,-74.005", "radius_km": 2})

        assert r.status_code == 200
        assert len(r.json()) == 1

    def test_public_list_bad_near(self, client):
        r = client.get("/reports", params={"near": "north"})
        assert r.status_code == 400


class TestAdminAuth:
    def test_missing_role_is_unauthorized(self, client):
        assert client.get("/teams").status_code == 401
        assert client.get("/admin/reports").status_code == 401

    def test_viewer_can_read_but_not_write(self, client, viewer_headers):
        assert client.get("/teams", headers=viewer_headers).status_code == 200
        r = client.post(
            "/teams",
            json={"name": "Crew", "department": "utilities"},
            headers=viewer_headers,
        )
        assert r.status_code == 403


class TestTeams:
    def test_create_and_get(self, client, admin_headers, create_team):
        team = create_team(name="  Utilities Maintenance ", capacity=6)

        assert team["name"] == "Utilities Maintenance"
        assert team["current_load"] == 0
        assert team["available_capacity"] == 6
        assert team["utilization_rate"] == 0
        assert team["can_take_assignment"] is True

        r = client.get(f"/teams/{team['id']}", headers=admin_headers)
        assert r.status_code == 200
        assert r.json()["name"] == "Utilities Maintenance"

    def test_duplicate_name_conflicts(self, client, admin_headers, create_team):
        create_team(name="Crew One")
        r = client.post(
            "/teams",
            json={"name": "Crew One", "department": "utilities"},
            headers=admin_headers,
        )
        assert r.status_code == 409

    def test_unknown_team(self, client, admin_headers):
        assert client.get("/teams/nope", headers=admin_headers).status_code == 404

    def test_available_ordering(self, client, admin_headers, create_team, create_report):
        busy = create_team(name="Busy", capacity=8)
        calm = create_team(name="Calm", capacity=6)
        create_team(name="Elsewhere", specialties=["environment"])
        for _ in range(3):
            rid = create_report()["id"]
            client.patch(f"/reports/{rid}/assign", json={"team_id": busy["id"]}, headers=admin_headers)
        rid = create_report()["id"]
        client.patch(f"/reports/{rid}/assign", json={"team_id": calm["id"]}, headers=admin_headers)

        r = client.get("/teams/available", params={"category": "infrastructure"}, headers=admin_headers)

        assert r.status_code == 200
        assert [t["name"] for t in r.json()] == ["Calm", "Busy"]

    def test_update_and_deactivate(self, client, admin_headers, create_team):
        team = create_team()

        r = client.patch(f"/teams/{team['id']}", json={"capacity": 9}, headers=admin_headers)
        assert r.status_code == 200
        assert r.json()["capacity"] == 9

        r = client.delete(f"/teams/{team['id']}", headers=admin_headers)
        assert r.status_code == 200
        assert client.get("/teams", headers=admin_headers).json() == []

        logs = client.get("/admin/audit", headers=admin_headers).json()
        assert [log["type"] for log in logs] == ["team.deactivate", "team.update", "team.create"]
        assert logs[0]["actor"]["username"] == "tester"


class TestAssignment:
    def test_assign_moves_report_in_progress(self, client, admin_headers, create_team, create_report):
        team = create_team(capacity=2)
        report = create_report()

        r = client.patch(
            f"/reports/{report['id']}/assign",
            json={"team_id": team["id"], "priority": "high"},
            headers=admin_headers,
        )

        assert r.status_code == 200, r.text
        body = r.json()
        assert body["report"]["status"] == "in-progress"
        assert body["report"]["assigned_to"] == team["id"]
        assert body["team"]["current_load"] == 1
        assert body["team"]["available_capacity"] == 1

    def test_capacity_exceeded_is_conflict(self, client, admin_headers, create_team, create_report):
        team = create_team(capacity=2)
        ids = [create_report()["id"] for _ in range(3)]
        for rid in ids[:2]:
            r = client.patch(f"/reports/{rid}/assign", json={"team_id": team["id"]}, headers=admin_headers)
            assert r.status_code == 200

        r = client.patch(f"/reports/{ids[2]}/assign", json={"team_id": team["id"]}, headers=admin_headers)

        assert r.status_code == 409
        assert r.json()["detail"] == "Team capacity exceeded. Available: 0, Requested: 1"
        team_now = client.get(f"/teams/{team['id']}", headers=admin_headers).json()
        assert team_now["current_load"] == 2
        assert team_now["can_take_assignment"] is False

    def test_unassign(self, client, admin_headers, create_team, create_report):
        team = create_team()
        report = create_report()
        client.patch(f"/reports/{report['id']}/assign", json={"team_id": team["id"]}, headers=admin_headers)

        r = client.patch(f"/reports/{report['id']}/unassign", headers=admin_headers)

        assert r.status_code == 200
        assert r.json()["report"]["assigned_to"] is None
        assert r.json()["team"]["current_load"] == 0

    def test_unassign_not_assigned_is_404(self, client, admin_headers, create_team, create_report):
        team = create_team()
        report = create_report()

        r = client.patch(
            f"/teams/{team['id']}/unassign",
            json={"report_id": report["id"]},
            headers=admin_headers,
        )

        assert r.status_code == 404

    def test_bulk_assign(self, client, admin_headers, create_team, create_report):
        team = create_team(capacity=3)
        ids = [create_report()["id"] for _ in range(4)]

        r = client.patch(f"/teams/{team['id']}/assign", json={"report_ids": ids}, headers=admin_headers)
        assert r.status_code == 409

        r = client.patch(f"/teams/{team['id']}/assign", json={"report_ids": ids[:3]}, headers=admin_headers)
        assert r.status_code == 200
        body = r.json()
        assert len(body["assigned"]) == 3
        assert body["skipped"] == []
        assert body["team"]["current_load"] == 3

    def test_suggested_team(self, client, admin_headers, create_team, create_report):
        team = create_team()
        report = create_report()

        r = client.get(f"/reports/{report['id']}/suggested-team", headers=admin_headers)

        assert r.json()["team"]["id"] == team["id"]


class TestStatus:
    def test_invalid_transition_is_400(self, client, admin_headers, create_report):
        report = create_report()
        r = client.patch(
            f"/reports/{report['id']}/status",
            json={"status": "closed"},
            headers=admin_headers,
        )
        assert r.status_code == 400
        assert r.json()["detail"] == "Invalid transition from reported to closed"

    def test_closing_releases_slot(self, client, admin_headers, create_team, create_report):
        team = create_team(capacity=1)
        report = create_report(contact_info="citizen@example.com")
        client.patch(f"/reports/{report['id']}/assign", json={"team_id": team["id"]}, headers=admin_headers)

        for status in ("resolved", "closed"):
            r = client.patch(
                f"/reports/{report['id']}/status",
                json={"status": status, "note": f"{status} by crew"},
                headers=admin_headers,
            )
            assert r.status_code == 200, r.text

        assert r.json()["report"]["status"] == "closed"
        team_now = client.get(f"/teams/{team['id']}", headers=admin_headers).json()
        assert team_now["current_load"] == 0
        assert team_now["assigned_reports"] == []

        status = client.get("/notifications/status").json()
        assert status["queues"]["email"]["total"] == 4

    def test_closed_report_cannot_be_assigned(self, client, admin_headers, create_team, create_report):
        team = create_team()
        report = create_report()
        for status in ("in-progress", "resolved", "closed"):
            client.patch(f"/reports/{report['id']}/status", json={"status": status}, headers=admin_headers)

        r = client.patch(f"/reports/{report['id']}/assign", json={"team_id": team["id"]}, headers=admin_headers)

        assert r.status_code == 409


class TestAdminReports:
    def test_pagination(self, client, admin_headers, create_report):
        for _ in range(5):
            create_report()

        r = client.get("/admin/reports", params={"offset": 0, "limit": 2}, headers=admin_headers)

        assert r.status_code == 200
        body = r.json()
        assert len(body["reports"]) == 2
        assert body["pagination"] == {"total": 5, "offset": 0, "limit": 2, "has_more": True}

    def test_admin_view_keeps_contact(self, client, admin_headers, create_report):
        create_report(anonymous=True, contact_info="secret@example.com")
        body = client.get("/admin/reports", headers=admin_headers).json()
        assert body["reports"][0]["contact_info"] == "secret@example.com"

    def test_invalid_sort_field(self, client, admin_headers):
        r = client.get("/admin/reports", params={"sort_by": "description"}, headers=admin_headers)
        assert r.status_code == 422


class TestNotifications:
    def test_events_after_sequence(self, client, create_report):
        create_report()
        create_report()

        r = client.get("/notifications")
        assert r.status_code == 200
        body = r.json()
        assert [e["type"] for e in body["events"]] == ["report.created", "report.created"]
        assert body["last_seq"] == 2

        later = client.get("/notifications", params={"after": 1}).json()
        assert [e["seq"] for e in later["events"]] == [2]

    def test_status(self, client):
        body = client.get("/notifications/status").json()
        assert body["status"] == "OK"
        assert body["queues"]["email"] == {"queued": 0, "total": 0}
