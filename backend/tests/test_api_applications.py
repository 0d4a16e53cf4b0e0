import pytest
from rentfinder.db.models import Application, Property


def _inquiry_count(session, property_id):
    session.expire_all()
    return session.get(Property, property_id).inquiry_count


@pytest.fixture
def submit(client, auth_headers):
    """POST an application for ``prop`` as ``user``"""

    def _submit(user, prop, **payload):
        body = {"propertyId": prop.id}
        body.update(payload)
        return client.post("/api/applications", json=body, headers=auth_headers(user))

    return _submit


class TestSubmitApplication:
    """Test cases for submitting applications"""

    def test_submit_application(self, submit, renter, make_property, test_db_session):
        prop = make_property()

        response = submit(
            renter, prop,
            message="  Looking to move in next month  ",
            leaseTerm=12,
            offeredPrice=1950,
            isPreApproved=True,
        )

        assert response.status_code == 201
        application = response.json()["application"]
        assert application["status"] == "PENDING"
        assert application["propertyId"] == prop.id
        assert application["userId"] == renter.id
        assert application["message"] == "Looking to move in next month"
        assert application["leaseTerm"] == 12
        assert application["offeredPrice"] == 1950
        assert application["isPreApproved"] is True
        assert application["submittedAt"] is not None
        assert application["property"]["title"] == "Sunny Apartment"
        assert application["user"]["email"] == renter.email
        assert _inquiry_count(test_db_session, prop.id) == 1

    def test_duplicate_application_rejected(self, submit, renter, make_property, test_db_session):
        """Test that applying twice fails and leaves the inquiry counter untouched"""
        prop = make_property()
        assert submit(renter, prop).status_code == 201

        response = submit(renter, prop)

        assert response.status_code == 400
        assert response.json() == {"error": "You already have an application for this property"}
        assert _inquiry_count(test_db_session, prop.id) == 1
        assert test_db_session.query(Application).count() == 1

    def test_inquiry_count_across_applicants(self, submit, make_user, make_property, test_db_session):
        prop = make_property()
        for _ in range(3):
            assert submit(make_user(role="BUYER"), prop).status_code == 201

        assert _inquiry_count(test_db_session, prop.id) == 3

    def test_inactive_property_rejected(self, submit, renter, make_property, test_db_session):
        prop = make_property(status="RENTED")

        response = submit(renter, prop)

        assert response.status_code == 400
        assert response.json() == {"error": "Property is not available"}
        assert _inquiry_count(test_db_session, prop.id) == 0

    def test_own_property_rejected(self, submit, landlord, make_property):
        prop = make_property()

        response = submit(landlord, prop)

        assert response.status_code == 400
        assert response.json() == {"error": "Cannot apply to your own property"}

    def test_missing_property(self, client, renter, auth_headers):
        response = client.post(
            "/api/applications", json={"propertyId": "missing"}, headers=auth_headers(renter)
        )
        assert response.status_code == 404
        assert response.json() == {"error": "Property not found"}

    def test_negative_offer_is_a_validation_error(self, submit, renter, make_property):
        prop = make_property()
        response = submit(renter, prop, offeredPrice=-5)
        assert response.status_code == 400
        assert response.json()["errors"][0]["field"] == "offeredPrice"

    def test_requires_authentication(self, client, make_property):
        prop = make_property()
        response = client.post("/api/applications", json={"propertyId": prop.id})
        assert response.status_code == 401


class TestListApplications:
    """Test cases for listing submitted and received applications"""

    def test_list_own_applications(self, client, submit, renter, make_user, make_property, auth_headers):
        first = make_property(title="First")
        second = make_property(title="Second")
        submit(renter, first)
        submit(renter, second)
        submit(make_user(role="BUYER"), first)

        response = client.get("/api/applications", headers=auth_headers(renter))

        assert response.status_code == 200
        applications = response.json()["applications"]
        assert [a["property"]["title"] for a in applications] == ["Second", "First"]
        assert {a["userId"] for a in applications} == {renter.id}

    def test_status_filter(self, client, submit, renter, make_property, auth_headers):
        first = make_property()
        second = make_property()
        submit(renter, first)
        application_id = submit(renter, second).json()["application"]["id"]
        client.delete(f"/api/applications/{application_id}", headers=auth_headers(renter))

        withdrawn = client.get("/api/applications?status=withdrawn", headers=auth_headers(renter))
        unknown = client.get("/api/applications?status=bogus", headers=auth_headers(renter))

        assert [a["id"] for a in withdrawn.json()["applications"]] == [application_id]
        assert len(unknown.json()["applications"]) == 2

    def test_received_applications(self, client, submit, landlord, renter, make_user, make_property, auth_headers):
        other_owner = make_user(role="LANDLORD")
        mine = make_property(title="Mine")
        theirs = make_property(title="Theirs", owner=other_owner)
        submit(renter, mine)
        submit(renter, theirs)

        response = client.get("/api/applications/received", headers=auth_headers(landlord))

        assert response.status_code == 200
        applications = response.json()["applications"]
        assert len(applications) == 1
        assert applications[0]["propertyId"] == mine.id
        assert applications[0]["user"]["id"] == renter.id

    def test_received_filtered_by_property(self, client, submit, landlord, renter, make_property, auth_headers):
        first = make_property()
        second = make_property()
        submit(renter, first)
        submit(renter, second)

        response = client.get(
            f"/api/applications/received?propertyId={second.id}", headers=auth_headers(landlord)
        )

        assert [a["propertyId"] for a in response.json()["applications"]] == [second.id]


class TestApplicationStatus:
    """Test cases for owner decisions on applications"""

    def test_owner_moves_application_through_review(self, client, submit, landlord, renter, make_property, auth_headers):
        prop = make_property()
        application_id = submit(renter, prop).json()["application"]["id"]

        reviewing = client.put(
            f"/api/applications/{application_id}/status",
            json={"status": "REVIEWING"},
            headers=auth_headers(landlord),
        )
        approved = client.put(
            f"/api/applications/{application_id}/status",
            json={"status": "approved"},
            headers=auth_headers(landlord),
        )

        assert reviewing.status_code == 200
        assert reviewing.json()["application"]["reviewedAt"] is not None
        assert reviewing.json()["application"]["respondedAt"] is None
        assert approved.status_code == 200
        assert approved.json()["application"]["status"] == "APPROVED"
        assert approved.json()["application"]["respondedAt"] is not None

    def test_admin_may_decide(self, client, submit, make_user, renter, make_property, auth_headers):
        prop = make_property()
        application_id = submit(renter, prop).json()["application"]["id"]

        response = client.put(
            f"/api/applications/{application_id}/status",
            json={"status": "REJECTED"},
            headers=auth_headers(make_user(role="ADMIN")),
        )

        assert response.status_code == 200
        assert response.json()["application"]["status"] == "REJECTED"

    def test_non_owner_forbidden(self, client, submit, renter, make_user, make_property, auth_headers):
        prop = make_property()
        application_id = submit(renter, prop).json()["application"]["id"]

        response = client.put(
            f"/api/applications/{application_id}/status",
            json={"status": "APPROVED"},
            headers=auth_headers(renter),
        )

        assert response.status_code == 403
        assert response.json() == {"error": "Not authorized"}

    @pytest.mark.parametrize("new_status", ["WITHDRAWN", "PENDING", "bogus"])
    def test_invalid_status(self, client, submit, landlord, renter, make_property, auth_headers, new_status):
        prop = make_property()
        application_id = submit(renter, prop).json()["application"]["id"]

        response = client.put(
            f"/api/applications/{application_id}/status",
            json={"status": new_status},
            headers=auth_headers(landlord),
        )

        assert response.status_code == 400
        assert response.json()["errors"][0]["field"] == "status"

    def test_missing_application(self, client, landlord, auth_headers):
        response = client.put(
            "/api/applications/missing/status", json={"status": "APPROVED"}, headers=auth_headers(landlord)
        )
        assert response.status_code == 404
        assert response.json() == {"error": "Application not found"}


class TestWithdrawApplication:
    """Test cases for withdrawing applications"""

    def test_withdraw(self, client, submit, renter, make_property, auth_headers, test_db_session):
        prop = make_property()
        application_id = submit(renter, prop).json()["application"]["id"]

        response = client.delete(f"/api/applications/{application_id}", headers=auth_headers(renter))

        assert response.status_code == 200
        assert response.json() == {"message": "Application withdrawn"}
        test_db_session.expire_all()
        assert test_db_session.get(Application, application_id).status == "WITHDRAWN"
        # Withdrawing keeps the inquiry on record
        assert _inquiry_count(test_db_session, prop.id) == 1

    def test_withdraw_decided_application(self, client, submit, landlord, renter, make_property, auth_headers):
        """Test that an approved application can no longer be withdrawn"""
        prop = make_property()
        application_id = submit(renter, prop).json()["application"]["id"]
        client.put(
            f"/api/applications/{application_id}/status",
            json={"status": "APPROVED"},
            headers=auth_headers(landlord),
        )

        response = client.delete(f"/api/applications/{application_id}", headers=auth_headers(renter))

        assert response.status_code == 400
        assert response.json() == {"error": "Cannot withdraw this application"}

    def test_withdraw_someone_elses_application(self, client, submit, renter, make_user, make_property, auth_headers):
        prop = make_property()
        application_id = submit(renter, prop).json()["application"]["id"]

        response = client.delete(
            f"/api/applications/{application_id}", headers=auth_headers(make_user(role="RENTER"))
        )

        assert response.status_code == 403

    def test_withdraw_missing(self, client, renter, auth_headers):
        response = client.delete("/api/applications/missing", headers=auth_headers(renter))
        assert response.status_code == 404


class TestScheduleViewing:
    """Test cases for viewing requests"""

    def test_schedule_viewing(self, client, renter, make_property, auth_headers):
        prop = make_property()

        response = client.post(
            f"/api/applications/{prop.id}/schedule-viewing",
            json={"scheduledAt": "2026-11-02T10:30:00", "type": "video_call", "notes": "Evenings work best"},
            headers=auth_headers(renter),
        )

        assert response.status_code == 201
        viewing = response.json()["viewing"]
        assert viewing["propertyId"] == prop.id
        assert viewing["userId"] == renter.id
        assert viewing["type"] == "VIDEO_CALL"
        assert viewing["scheduledAt"].startswith("2026-11-02T10:30:00")
        assert viewing["notes"] == "Evenings work best"

    def test_default_viewing_type(self, client, renter, make_property, auth_headers):
        prop = make_property()
        response = client.post(
            f"/api/applications/{prop.id}/schedule-viewing",
            json={"scheduledAt": "2026-11-02T10:30:00"},
            headers=auth_headers(renter),
        )
        assert response.json()["viewing"]["type"] == "IN_PERSON"

    def test_viewing_for_missing_property(self, client, renter, auth_headers):
        response = client.post(
            "/api/applications/missing/schedule-viewing",
            json={"scheduledAt": "2026-11-02T10:30:00"},
            headers=auth_headers(renter),
        )
        assert response.status_code == 404

    def test_viewing_requires_time(self, client, renter, make_property, auth_headers):
        prop = make_property()
        response = client.post(
            f"/api/applications/{prop.id}/schedule-viewing", json={}, headers=auth_headers(renter)
        )
        assert response.status_code == 400
