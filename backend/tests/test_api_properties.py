import pytest
from unittest.mock import MagicMock
from sqlalchemy.exc import OperationalError
from rentfinder.core.database import get_db
from rentfinder.db.models import Property, SavedProperty
from rentfinder.main import app


def _ids(response):
    return [p["id"] for p in response.json()["properties"]]


class TestListProperties:
    """Test cases for GET /api/properties"""

    def test_pagination_metadata(self, client, make_property):
        """Test page slicing and the page count"""
        for i in range(15):
            make_property(title=f"Listing {i}")

        response = client.get("/api/properties", params={"limit": 12})
        assert response.status_code == 200
        result = response.json()
        assert len(result["properties"]) == 12
        assert result["pagination"] == {"page": 1, "limit": 12, "total": 15, "pages": 2}

        response = client.get("/api/properties", params={"limit": 12, "page": 2})
        result = response.json()
        assert len(result["properties"]) == 3
        assert result["pagination"]["page"] == 2

    def test_pages_do_not_overlap(self, client, make_property):
        """Test that consecutive pages are disjoint under a tied sort key"""
        for i in range(7):
            make_property(title=f"Same price {i}", price=1000)

        first = _ids(client.get("/api/properties", params={"limit": 4, "sortBy": "price"}))
        second = _ids(client.get("/api/properties", params={"limit": 4, "page": 2, "sortBy": "price"}))

        assert len(first) == 4
        assert len(second) == 3
        assert set(first).isdisjoint(second)

    def test_empty_result(self, client):
        response = client.get("/api/properties")
        assert response.status_code == 200
        assert response.json() == {
            "properties": [],
            "pagination": {"page": 1, "limit": 12, "total": 0, "pages": 0},
        }

    def test_invalid_paging_falls_back_to_defaults(self, client, make_property):
        """Test that unparseable page and limit values are ignored"""
        make_property()

        response = client.get("/api/properties", params={"page": "abc", "limit": "-5"})
        assert response.status_code == 200
        pagination = response.json()["pagination"]
        assert pagination["page"] == 1
        assert pagination["limit"] == 12

    def test_limit_is_capped(self, client, make_property):
        make_property()
        response = client.get("/api/properties", params={"limit": 500})
        assert response.json()["pagination"]["limit"] == 100

    def test_huge_page_falls_back_to_first_page(self, client, make_property):
        """Test that a page number beyond any representable offset is ignored"""
        prop = make_property()

        response = client.get("/api/properties", params={"page": "99999999999999999999", "limit": 100})

        assert response.status_code == 200
        assert response.json()["pagination"]["page"] == 1
        assert _ids(response) == [prop.id]

    def test_page_beyond_data_is_empty(self, client, make_property):
        make_property()

        response = client.get("/api/properties", params={"page": "1000000"})

        assert response.status_code == 200
        assert response.json()["properties"] == []
        assert response.json()["pagination"]["total"] == 1

    def test_only_active_listings(self, client, make_property):
        """Test that non-active listings never appear in search results"""
        active = make_property(title="Active")
        make_property(title="Rented", status="RENTED")
        make_property(title="Sold", status="SOLD", listing_type="SALE")

        response = client.get("/api/properties")
        assert _ids(response) == [active.id]
        assert response.json()["pagination"]["total"] == 1

    def test_type_filter_is_case_insensitive(self, client, make_property):
        condo = make_property(type="CONDO")
        make_property(type="HOUSE")

        response = client.get("/api/properties", params={"type": "condo"})
        assert _ids(response) == [condo.id]

    def test_unknown_type_is_ignored(self, client, make_property):
        make_property(type="CONDO")
        make_property(type="HOUSE")

        response = client.get("/api/properties", params={"type": "castle"})
        assert response.status_code == 200
        assert response.json()["pagination"]["total"] == 2

    def test_listing_type_filter(self, client, make_property):
        sale = make_property(listing_type="SALE", price=500000, price_type="TOTAL")
        make_property(listing_type="RENT")

        response = client.get("/api/properties", params={"listingType": "SALE"})
        assert _ids(response) == [sale.id]

    def test_price_bounds_are_inclusive(self, client, make_property):
        low = make_property(price=1000)
        mid = make_property(price=1500)
        high = make_property(price=2000)
        make_property(price=2500)

        response = client.get("/api/properties", params={
            "minPrice": 1000, "maxPrice": 2000, "sortBy": "price", "sortOrder": "asc"
        })
        assert _ids(response) == [low.id, mid.id, high.id]

    def test_non_numeric_price_is_ignored(self, client, make_property):
        make_property(price=1000)
        make_property(price=3000)

        response = client.get("/api/properties", params={"maxPrice": "cheap"})
        assert response.json()["pagination"]["total"] == 2

    def test_bedrooms_zero_matches_studios(self, client, make_property):
        studio = make_property(bedrooms=0, type="STUDIO")
        make_property(bedrooms=1)

        response = client.get("/api/properties", params={"bedrooms": "0"})
        assert _ids(response) == [studio.id]

    def test_bedrooms_exact(self, client, make_property):
        two = make_property(bedrooms=2)
        make_property(bedrooms=3)

        response = client.get("/api/properties", params={"bedrooms": "2"})
        assert _ids(response) == [two.id]

    def test_bedrooms_at_least(self, client, make_property):
        """Test that "4+" means four or more bedrooms"""
        make_property(bedrooms=3)
        four = make_property(bedrooms=4, price=3000)
        six = make_property(bedrooms=6, price=4000)

        response = client.get("/api/properties", params={
            "bedrooms": "4+", "sortBy": "price", "sortOrder": "asc"
        })
        assert _ids(response) == [four.id, six.id]

    def test_bathrooms_minimum(self, client, make_property):
        make_property(bathrooms=1)
        two = make_property(bathrooms=2.5)

        response = client.get("/api/properties", params={"bathrooms": "2"})
        assert _ids(response) == [two.id]

    def test_pet_friendly_only_when_true(self, client, make_property):
        pets = make_property(pet_friendly=True)
        make_property(pet_friendly=False)

        assert _ids(client.get("/api/properties", params={"petFriendly": "true"})) == [pets.id]
        response = client.get("/api/properties", params={"petFriendly": "yes"})
        assert response.json()["pagination"]["total"] == 2

    def test_features_match_any(self, client, make_property):
        """Test that a feature list matches listings having at least one of them"""
        pool = make_property(features=["Pool"], price=1000)
        gym = make_property(features=["Gym", "Parking"], price=2000)
        make_property(features=["Balcony"], price=3000)

        response = client.get("/api/properties", params={
            "features": "Pool,Gym", "sortBy": "price", "sortOrder": "asc"
        })
        assert _ids(response) == [pool.id, gym.id]
        assert response.json()["pagination"]["total"] == 2

    def test_city_substring_case_insensitive(self, client, make_property):
        sf = make_property(city="San Francisco")
        make_property(city="Oakland")

        response = client.get("/api/properties", params={"city": "francisco"})
        assert _ids(response) == [sf.id]

    def test_search_matches_descriptive_columns(self, client, make_property):
        by_title = make_property(title="Garden Cottage", price=1000)
        by_description = make_property(description="Quiet garden views", price=2000)
        by_address = make_property(address="12 Garden Row", price=3000)
        make_property(title="Downtown Flat", price=4000)

        response = client.get("/api/properties", params={
            "search": "GARDEN", "sortBy": "price", "sortOrder": "asc"
        })
        assert _ids(response) == [by_title.id, by_description.id, by_address.id]

    def test_search_treats_wildcards_literally(self, client, make_property):
        make_property(title="Plain listing")
        response = client.get("/api/properties", params={"search": "%"})
        assert response.json()["pagination"]["total"] == 0

    def test_sort_by_price(self, client, make_property):
        cheap = make_property(price=900)
        pricey = make_property(price=3100)
        middle = make_property(price=1800)

        asc = _ids(client.get("/api/properties", params={"sortBy": "price", "sortOrder": "asc"}))
        desc = _ids(client.get("/api/properties", params={"sortBy": "price", "sortOrder": "desc"}))

        assert asc == [cheap.id, middle.id, pricey.id]
        assert desc == [pricey.id, middle.id, cheap.id]

    def test_sort_ties_broken_by_id(self, client, make_property):
        ids = sorted(make_property(price=1200).id for _ in range(4))

        response = client.get("/api/properties", params={"sortBy": "price", "sortOrder": "desc"})
        assert _ids(response) == ids

    def test_sort_by_aura_score(self, client, make_property):
        low = make_property(aura_score_overall=60)
        high = make_property(aura_score_overall=95)

        response = client.get("/api/properties", params={"sortBy": "auraScore", "sortOrder": "desc"})
        assert _ids(response) == [high.id, low.id]

    def test_combined_filters(self, client, make_property):
        match = make_property(city="Austin", bedrooms=3, price=2200, features=["Pool"])
        make_property(city="Austin", bedrooms=3, price=2200, features=["Gym"])
        make_property(city="Austin", bedrooms=1, price=2200, features=["Pool"])
        make_property(city="Dallas", bedrooms=3, price=2200, features=["Pool"])

        response = client.get("/api/properties", params={
            "city": "austin", "bedrooms": "3", "maxPrice": 2500, "features": "Pool"
        })
        assert _ids(response) == [match.id]

    def test_response_uses_camel_case(self, client, make_property):
        make_property(images=["https://img.example.com/1.jpg"], features=["Pool"])

        prop = client.get("/api/properties").json()["properties"][0]
        for field in ["listingType", "priceType", "zipCode", "viewCount", "saveCount", "isSaved", "ownerId"]:
            assert field in prop
        assert prop["images"][0]["isPrimary"] is True
        assert prop["features"][0]["name"] == "Pool"

    def test_is_saved_reflects_viewer(self, client, make_property, renter, make_user,
                                      auth_headers, test_db_session):
        """Test that isSaved is computed for the requesting user only"""
        saved = make_property(price=1000)
        make_property(price=2000)
        test_db_session.add(SavedProperty(user_id=renter.id, property_id=saved.id))
        test_db_session.commit()

        params = {"sortBy": "price", "sortOrder": "asc"}
        mine = client.get("/api/properties", params=params, headers=auth_headers(renter)).json()
        assert [p["isSaved"] for p in mine["properties"]] == [True, False]

        stranger = make_user(role="RENTER")
        theirs = client.get("/api/properties", params=params, headers=auth_headers(stranger)).json()
        assert [p["isSaved"] for p in theirs["properties"]] == [False, False]

        anonymous = client.get("/api/properties", params=params).json()
        assert [p["isSaved"] for p in anonymous["properties"]] == [False, False]

    def test_invalid_token_is_treated_as_anonymous(self, client, make_property):
        make_property()
        response = client.get("/api/properties", headers={"Authorization": "Bearer not-a-token"})
        assert response.status_code == 200
        assert response.json()["properties"][0]["isSaved"] is False


class TestGetProperty:
    """Test cases for GET /api/properties/{id}"""

    def test_get_property_increments_views(self, client, make_property):
        prop = make_property()

        first = client.get(f"/api/properties/{prop.id}")
        assert first.status_code == 200
        assert first.json()["property"]["viewCount"] == 1

        second = client.get(f"/api/properties/{prop.id}")
        assert second.json()["property"]["viewCount"] == 2

    def test_get_property_not_found(self, client):
        response = client.get("/api/properties/does-not-exist")
        assert response.status_code == 404
        assert response.json() == {"error": "Property not found"}

    def test_rented_property_is_readable_but_not_searchable(self, client, make_property):
        """Test that detail reads ignore status while search does not"""
        prop = make_property(status="RENTED")

        detail = client.get(f"/api/properties/{prop.id}")
        assert detail.status_code == 200
        assert detail.json()["property"]["status"] == "RENTED"

        assert _ids(client.get("/api/properties")) == []

    def test_get_property_is_saved(self, client, make_property, renter, auth_headers):
        prop = make_property()
        client.post(f"/api/users/saved/{prop.id}", headers=auth_headers(renter))

        response = client.get(f"/api/properties/{prop.id}", headers=auth_headers(renter))
        assert response.json()["property"]["isSaved"] is True


class TestFeaturedAndSimilar:
    """Test cases for the featured and similar listing endpoints"""

    def test_featured_orders_by_score(self, client, make_property):
        make_property(aura_score_overall=70)
        good = make_property(aura_score_overall=88)
        best = make_property(aura_score_overall=97)
        make_property(aura_score_overall=99, status="INACTIVE")

        response = client.get("/api/properties/featured")
        assert response.status_code == 200
        assert _ids(response) == [best.id, good.id]

    def test_featured_limit_is_parsed_permissively(self, client, make_property):
        for score in (86, 90, 95):
            make_property(aura_score_overall=score)

        response = client.get("/api/properties/featured", params={"limit": "abc"})
        assert response.status_code == 200
        assert len(response.json()["properties"]) == 3

        response = client.get("/api/properties/featured", params={"limit": "2"})
        assert len(response.json()["properties"]) == 2

        response = client.get("/api/properties/featured", params={"limit": "-4"})
        assert response.status_code == 200
        assert len(response.json()["properties"]) == 3

    def test_featured_by_listing_type(self, client, make_property):
        make_property(aura_score_overall=90, listing_type="RENT")
        sale = make_property(aura_score_overall=90, listing_type="SALE", price_type="TOTAL")

        response = client.get("/api/properties/featured", params={"listingType": "SALE"})
        assert _ids(response) == [sale.id]

    def test_similar_properties(self, client, make_property):
        reference = make_property(city="Denver", price=2000)
        close = make_property(city="Denver", price=2400)
        make_property(city="Denver", price=3000)
        make_property(city="Boulder", price=2000)
        make_property(city="Denver", price=2000, listing_type="SALE", price_type="TOTAL")

        response = client.get(f"/api/properties/{reference.id}/similar")
        assert response.status_code == 200
        assert [p["id"] for p in response.json()["similar"]] == [close.id]

    def test_similar_not_found(self, client):
        response = client.get("/api/properties/missing/similar")
        assert response.status_code == 404


def _payload(**overrides):
    payload = {
        "title": "  Harbor View Flat  ",
        "description": "Two bedroom flat overlooking the harbor",
        "type": "apartment",
        "listingType": "RENT",
        "price": 1500,
        "address": "9 Quay St",
        "city": "Portland",
        "state": "ME",
        "zipCode": "04101",
        "bedrooms": 2,
        "bathrooms": 1,
        "sqft": 850,
        "features": ["Parking", {"name": "Dishwasher", "category": "APPLIANCE"}],
        "images": ["https://img.example.com/a.jpg", "https://img.example.com/b.jpg"],
    }
    payload.update(overrides)
    return payload


class TestPropertyLifecycle:
    """Test cases for creating, updating and deleting listings"""

    def test_create_property(self, client, landlord, auth_headers):
        response = client.post("/api/properties", json=_payload(), headers=auth_headers(landlord))

        assert response.status_code == 201
        prop = response.json()["property"]
        assert prop["title"] == "Harbor View Flat"
        assert prop["type"] == "APARTMENT"
        assert prop["priceType"] == "MONTHLY"
        assert prop["status"] == "ACTIVE"
        assert prop["ownerId"] == landlord.id
        assert prop["viewCount"] == 0
        assert [i["isPrimary"] for i in prop["images"]] == [True, False]
        assert {f["name"] for f in prop["features"]} == {"Parking", "Dishwasher"}

    def test_created_property_is_searchable(self, client, landlord, auth_headers):
        """Test that a new listing shows up under a matching price ceiling"""
        created = client.post(
            "/api/properties", json=_payload(price=2000, bedrooms=2), headers=auth_headers(landlord)
        ).json()

        params = {"listingType": "RENT", "bedrooms": "2", "maxPrice": 2500}
        response = client.get("/api/properties", params=params)
        assert _ids(response) == [created["property"]["id"]]

        response = client.get("/api/properties", params={**params, "maxPrice": 1500})
        assert _ids(response) == []

    def test_sale_listing_defaults_to_total_price(self, client, landlord, auth_headers):
        response = client.post(
            "/api/properties",
            json=_payload(listingType="SALE", price=450000),
            headers=auth_headers(landlord),
        )
        assert response.json()["property"]["priceType"] == "TOTAL"

    def test_create_requires_authentication(self, client):
        response = client.post("/api/properties", json=_payload())
        assert response.status_code == 401
        assert response.json() == {"error": "Authentication required"}

    def test_create_forbidden_for_renters(self, client, renter, auth_headers):
        response = client.post("/api/properties", json=_payload(), headers=auth_headers(renter))
        assert response.status_code == 403

    def test_create_validation_errors(self, client, landlord, auth_headers):
        response = client.post(
            "/api/properties",
            json=_payload(price=-5, bedrooms=-1),
            headers=auth_headers(landlord),
        )

        assert response.status_code == 400
        fields = {error["field"] for error in response.json()["errors"]}
        assert {"price", "bedrooms"} <= fields

    def test_update_property(self, client, landlord, make_property, auth_headers):
        prop = make_property(features=["Pool"])

        response = client.put(
            f"/api/properties/{prop.id}",
            json={"price": 2100, "status": "RENTED", "features": ["Gym"]},
            headers=auth_headers(landlord),
        )

        assert response.status_code == 200
        updated = response.json()["property"]
        assert updated["price"] == 2100
        assert updated["status"] == "RENTED"
        assert updated["title"] == prop.title
        assert [f["name"] for f in updated["features"]] == ["Gym"]

        # Rented listings drop out of search
        assert _ids(client.get("/api/properties")) == []

    def test_update_by_other_user_forbidden(self, client, make_property, make_user, auth_headers):
        prop = make_property()
        intruder = make_user(role="LANDLORD")

        response = client.put(
            f"/api/properties/{prop.id}", json={"price": 1}, headers=auth_headers(intruder)
        )
        assert response.status_code == 403

    def test_admin_can_update_any_listing(self, client, make_property, make_user, auth_headers):
        prop = make_property()
        admin = make_user(role="ADMIN")

        response = client.put(
            f"/api/properties/{prop.id}", json={"title": "Renamed"}, headers=auth_headers(admin)
        )
        assert response.status_code == 200
        assert response.json()["property"]["title"] == "Renamed"

    def test_update_not_found(self, client, landlord, auth_headers):
        response = client.put("/api/properties/missing", json={"price": 1}, headers=auth_headers(landlord))
        assert response.status_code == 404

    def test_delete_property(self, client, landlord, renter, make_property, auth_headers, test_db_session):
        prop = make_property(features=["Pool"], images=["https://img.example.com/1.jpg"])
        client.post(f"/api/users/saved/{prop.id}", headers=auth_headers(renter))

        response = client.delete(f"/api/properties/{prop.id}", headers=auth_headers(landlord))
        assert response.status_code == 200
        assert response.json() == {"message": "Property deleted"}

        assert client.get(f"/api/properties/{prop.id}").status_code == 404
        assert client.get("/api/users/saved", headers=auth_headers(renter)).json() == {"saved": []}
        assert test_db_session.query(Property).count() == 0

    def test_delete_forbidden_for_non_owner(self, client, make_property, make_user, auth_headers):
        prop = make_property()
        other = make_user(role="AGENT")

        response = client.delete(f"/api/properties/{prop.id}", headers=auth_headers(other))
        assert response.status_code == 403


class TestHealth:

    def test_health_check(self, client):
        response = client.get("/api/health")
        assert response.status_code == 200
        result = response.json()
        assert result["status"] == "ok"
        assert result["services"]["database"] == "healthy"

    def test_health_check_degraded(self, client):
        """Test that a failing database is reported instead of raised"""
        broken = MagicMock()
        broken.execute.side_effect = OperationalError("SELECT 1", {}, Exception("database is locked"))
        app.dependency_overrides[get_db] = lambda: broken

        response = client.get("/api/health")

        assert response.status_code == 200
        assert response.json()["status"] == "degraded"
        assert response.json()["services"]["database"] == "unhealthy"
