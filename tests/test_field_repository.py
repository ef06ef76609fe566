"""
Tests for the field repository cache and CRUD calls
"""

import pydantic
import pytest

from conftest import make_field
from grovi.data.messages import get_message
from grovi.errors import NotAuthenticatedError, NotFoundError, PermissionDeniedError, ServerError, ValidationError

NEW_FIELD = {
    "name": "  East paddy  ",
    "geometry": {
        "type": "Polygon",
        "coordinates": [[[100.1, 14.1], [100.11, 14.1], [100.11, 14.11], [100.1, 14.1]]],
    },
    "crop_type": "ข้าว",
    "planting_season": "",
    "planting_date": "2024-06-01",
}


def test_login_loads_field_list(signed_in):
    assert [f.id for f in signed_in.fields.fields] == ["f1", "f2"]
    assert signed_in.fields.find("f2").name == "North plot"
    assert signed_in.fields.find("missing") is None


def test_refresh_replaces_cache(signed_in, backend):
    backend.add("GET", "/fields/", (200, [make_field("f3", name="Only one")]))

    fields = signed_in.fields.refresh()

    assert [f.id for f in fields] == ["f3"]
    assert [f.id for f in signed_in.fields.fields] == ["f3"]
    assert not signed_in.fields.is_loading


def test_refresh_failure_keeps_cache(signed_in, backend):
    backend.add("GET", "/fields/", (500, None))

    with pytest.raises(ServerError) as exc_info:
        signed_in.fields.refresh()

    assert exc_info.value.message == get_message("load_fields_failed")
    assert [f.id for f in signed_in.fields.fields] == ["f1", "f2"]
    assert not signed_in.fields.is_loading


def test_numeric_ids_are_normalised_to_strings(signed_in, backend):
    backend.add("GET", "/fields/", (200, [make_field(42)]))

    signed_in.fields.refresh()

    assert signed_in.fields.find(42).id == "42"


def test_create_appends_confirmed_record(signed_in, backend):
    backend.add("POST", "/fields/", (200, make_field("f3", name="East paddy")))

    field = signed_in.fields.create(NEW_FIELD)

    assert field.id == "f3"
    assert [f.id for f in signed_in.fields.fields] == ["f1", "f2", "f3"]

    payload = backend.called("POST", "/fields/")[0]["json"]
    assert payload["name"] == "East paddy"
    assert payload["planting_season"] is None
    assert payload["planting_date"] == "2024-06-01T00:00:00.000Z"
    assert "address" not in payload


def test_create_sends_address_when_given(signed_in, backend):
    backend.add("POST", "/fields/", (200, make_field("f3")))

    signed_in.fields.create(dict(NEW_FIELD, address="Suphan Buri"))

    assert backend.called("POST", "/fields/")[0]["json"]["address"] == "Suphan Buri"


def test_create_failure_leaves_cache_untouched(signed_in, backend):
    before = signed_in.fields.fields
    backend.add("POST", "/fields/", (422, {"detail": [{"loc": ["body", "geometry"], "msg": "invalid"}]}))

    with pytest.raises(ValidationError):
        signed_in.fields.create(NEW_FIELD)

    assert signed_in.fields.fields == before


@pytest.mark.parametrize("geometry", [
    {"type": "Point", "coordinates": [100.0, 14.0]},
    {"type": "Polygon", "coordinates": []},
    {"type": "LineString", "coordinates": [[100.0, 14.0], [100.1, 14.1]]},
])
def test_create_rejects_non_polygon_geometry_before_sending(signed_in, backend, geometry):
    with pytest.raises(pydantic.ValidationError):
        signed_in.fields.create(dict(NEW_FIELD, geometry=geometry))

    assert backend.called("POST", "/fields/") == []


def test_create_rejects_blank_name(signed_in, backend):
    with pytest.raises(pydantic.ValidationError):
        signed_in.fields.create(dict(NEW_FIELD, name="   "))

    assert backend.called("POST", "/fields/") == []


def test_create_rejects_malformed_planting_date(signed_in, backend):
    with pytest.raises(pydantic.ValidationError):
        signed_in.fields.create(dict(NEW_FIELD, planting_date="next monsoon"))

    assert backend.called("POST", "/fields/") == []


def test_update_replaces_entry_and_current(signed_in, backend):
    backend.add("GET", "/fields/f1", (200, make_field("f1")))
    signed_in.fields.get("f1")
    backend.add("PUT", "/fields/f1", (200, make_field("f1", name="Renamed", crop_type="ข้าวโพด")))

    field = signed_in.fields.update("f1", {"name": "Renamed", "crop_type": "ข้าวโพด"})

    assert field.name == "Renamed"
    assert signed_in.fields.find("f1").name == "Renamed"
    assert signed_in.fields.current.name == "Renamed"
    assert [f.id for f in signed_in.fields.fields] == ["f1", "f2"]
    assert backend.called("PUT", "/fields/f1")[0]["json"] == {"name": "Renamed", "crop_type": "ข้าวโพด"}


def test_update_rejects_geometry(signed_in, backend):
    with pytest.raises(pydantic.ValidationError):
        signed_in.fields.update("f1", {"geometry": {"type": "Polygon", "coordinates": [[[0, 0], [1, 0], [1, 1], [0, 0]]]}})

    assert backend.called("PUT", "/fields/f1") == []


def test_update_failure_leaves_cache_untouched(signed_in, backend):
    before = signed_in.fields.fields
    backend.add("PUT", "/fields/f1", (403, None))

    with pytest.raises(PermissionDeniedError) as exc_info:
        signed_in.fields.update("f1", {"name": "Renamed"})

    assert exc_info.value.message == get_message("forbidden")
    assert signed_in.fields.fields == before


def test_remove_filters_entry_and_clears_current(signed_in, backend):
    backend.add("GET", "/fields/f2", (200, make_field("f2", name="North plot")))
    signed_in.fields.get("f2")
    backend.add("DELETE", "/fields/f2", (200, {"message": "Field deleted successfully"}))

    signed_in.fields.remove("f2")

    assert [f.id for f in signed_in.fields.fields] == ["f1"]
    assert signed_in.fields.current is None


def test_remove_failure_leaves_cache_untouched(signed_in, backend):
    before = signed_in.fields.fields
    backend.add("DELETE", "/fields/f2", (500, {"detail": "Database error"}))

    with pytest.raises(ServerError) as exc_info:
        signed_in.fields.remove("f2")

    assert exc_info.value.message == "Database error"
    assert signed_in.fields.fields == before


def test_failed_steps_in_a_sequence_leave_no_trace(signed_in, backend):
    backend.add("POST", "/fields/", (200, make_field("f3")))
    backend.add("PUT", "/fields/f3", (500, None))
    backend.add("DELETE", "/fields/f1", (200, None))

    signed_in.fields.create(NEW_FIELD)
    with pytest.raises(ServerError):
        signed_in.fields.update("f3", {"name": "Never applied"})
    signed_in.fields.remove("f1")

    assert [f.id for f in signed_in.fields.fields] == ["f2", "f3"]
    assert signed_in.fields.find("f3").name == make_field("f3")["name"]


def test_get_bypasses_cache_and_sets_current(signed_in, backend):
    backend.add("GET", "/fields/f9", (200, make_field("f9", name="Shared plot")))

    field = signed_in.fields.get("f9")

    assert field.name == "Shared plot"
    assert signed_in.fields.current == field
    assert signed_in.fields.find("f9") is None


def test_get_missing_field(signed_in, backend):
    with pytest.raises(NotFoundError):
        signed_in.fields.get("nope")


def test_operations_need_a_session(app, backend):
    app.start()

    with pytest.raises(NotAuthenticatedError):
        app.fields.refresh()
    with pytest.raises(NotAuthenticatedError):
        app.fields.create(NEW_FIELD)
    with pytest.raises(NotAuthenticatedError):
        app.fields.remove("f1")

    assert backend.calls == []


def test_logout_clears_cache(signed_in):
    signed_in.fields.set_current(signed_in.fields.find("f1"))

    signed_in.session.logout()

    assert signed_in.fields.fields == []
    assert signed_in.fields.current is None


def test_fields_view_is_a_copy(signed_in):
    view = signed_in.fields.fields
    view.clear()

    assert len(signed_in.fields.fields) == 2


def test_thumbnail_lookup(signed_in, backend):
    backend.add("GET", "/fields/f1/thumbnail", (200, {"field_id": "f1", "image_data": "data:image/png;base64,AAA"}))

    assert signed_in.fields.get_thumbnail("f1") == "data:image/png;base64,AAA"


def test_missing_thumbnail_is_none(signed_in, backend, navigations):
    assert signed_in.fields.get_thumbnail("f2") is None
    assert navigations == []


def test_thumbnail_lookup_without_session_makes_no_call(app, backend):
    app.start()

    assert app.fields.get_thumbnail("f1") is None
    assert backend.calls == []


def test_save_thumbnail(signed_in, backend):
    backend.add("POST", "/fields/f1/thumbnail", (200, {"message": "ok"}))

    assert signed_in.fields.save_thumbnail("f1", "data:image/png;base64,AAA") is True
    assert backend.called("POST", "/fields/f1/thumbnail")[0]["json"] == {
        "field_id": "f1",
        "image_data": "data:image/png;base64,AAA",
    }


def test_save_thumbnail_failure_is_reported_not_raised(signed_in, backend):
    backend.add("POST", "/fields/f1/thumbnail", (500, None))

    assert signed_in.fields.save_thumbnail("f1", "data:image/png;base64,AAA") is False


def test_create_field_stores_generated_thumbnail(signed_in, backend):
    backend.add("POST", "/fields/", (200, make_field("f3")))
    backend.add("POST", "/fields/f3/thumbnail", (200, {"message": "ok"}))

    signed_in.create_field(NEW_FIELD)

    payload = backend.called("POST", "/fields/f3/thumbnail")[0]["json"]
    assert payload["field_id"] == "f3"
    assert payload["image_data"].startswith("data:image/png;base64,")


def test_login_as_another_user_replaces_cache(signed_in, backend):
    other = {"id": 8, "name": "Malee", "username": "other", "email": "malee@example.com"}
    backend.add("GET", "/fields/f1", (200, make_field("f1")))
    signed_in.fields.get("f1")
    backend.add("POST", "/auth/login", (200, {"access_token": "token-other", "user": other}))
    backend.add("GET", "/fields/", (200, [make_field("z9", user_id=8)]))

    signed_in.session.login("other", "pw")

    assert signed_in.session.user.username == "other"
    assert [f.id for f in signed_in.fields.fields] == ["z9"]
    assert signed_in.fields.current is None


def test_login_as_another_user_with_failed_load_keeps_no_fields(signed_in, backend):
    other = {"id": 8, "name": "Malee", "username": "other", "email": "malee@example.com"}
    backend.add("POST", "/auth/login", (200, {"access_token": "token-other", "user": other}))
    backend.add("GET", "/fields/", (500, {"detail": "boom"}))

    signed_in.session.login("other", "pw")

    assert signed_in.session.user.username == "other"
    assert signed_in.fields.fields == []
