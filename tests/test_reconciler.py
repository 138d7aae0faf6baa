"""
Test suite for the create-or-fetch-existing reconciler.

Coverage:
- Identity extraction from JSON bodies and Location headers
- Conflict resolution through lookup
- Unresolvable conflicts and unexpected statuses

Test types: Unit
"""

import json

import pytest
import requests
from requests.structures import CaseInsensitiveDict

from nexaauth.exceptions import ConflictUnresolvedError, ProviderError
from nexaauth.provisioning.reconciler import Reconciled, reconcile
from nexaauth.services.keycloak import resource_id_from_response


def make_response(status, body=None, headers=None) -> requests.Response:
    response = requests.Response()
    response.status_code = status
    response.headers = CaseInsensitiveDict(headers or {})
    response._content = json.dumps(body).encode() if body is not None else b""
    response.encoding = "utf-8"
    return response


def fail_lookup():
    raise AssertionError("lookup must not run")


#                         EXTRACTION TESTS
# ----------------------------------------------------------------------------


@pytest.mark.reconcile
@pytest.mark.unit
class TestResourceIdExtraction:
    def test_id_from_json_body(self):
        response = make_response(201, {"id": "abc-123"})
        assert resource_id_from_response(response) == "abc-123"

    def test_id_from_location_header(self):
        response = make_response(
            201,
            headers={"Location": "http://kc/admin/realms/r/clients/uuid-42"},
        )
        assert resource_id_from_response(response) == "uuid-42"

    def test_body_takes_precedence_over_location(self):
        response = make_response(
            201,
            {"id": "from-body"},
            headers={"Location": "http://kc/admin/realms/r/organizations/from-header"},
        )
        assert resource_id_from_response(response) == "from-body"

    def test_no_identity_returns_none(self):
        assert resource_id_from_response(make_response(201)) is None


#                         RECONCILE TESTS
# ----------------------------------------------------------------------------


@pytest.mark.reconcile
@pytest.mark.unit
class TestReconcile:
    """Test suite for reconcile."""

    def test_success_returns_created_value(self):
        result = reconcile(
            "widget",
            create=lambda: make_response(201, {"id": "w-1"}),
            lookup=fail_lookup,
        )

        assert result == Reconciled(value="w-1", created=True)

    def test_conflict_returns_looked_up_value(self):
        result = reconcile(
            "widget",
            create=lambda: make_response(409, {"errorMessage": "exists"}),
            lookup=lambda: "w-existing",
        )

        assert result.value == "w-existing"
        assert result.created is False

    def test_conflict_without_match_raises(self):
        with pytest.raises(ConflictUnresolvedError) as exc_info:
            reconcile(
                "widget",
                create=lambda: make_response(409),
                lookup=lambda: None,
            )

        assert exc_info.value.code == "CONFLICT_UNRESOLVED"
        assert exc_info.value.upstream_status == 409

    def test_unexpected_status_raises_provider_error(self):
        with pytest.raises(ProviderError) as exc_info:
            reconcile(
                "widget",
                create=lambda: make_response(500, {"error": "boom"}),
                lookup=fail_lookup,
            )

        error = exc_info.value
        assert error.upstream_status == 500
        assert error.details["upstream_status"] == 500
        assert error.details["response"] == {"error": "boom"}

    def test_success_without_identity_raises(self):
        with pytest.raises(ProviderError):
            reconcile("widget", create=lambda: make_response(201), lookup=fail_lookup)

    def test_custom_extract_is_used(self):
        result = reconcile(
            "widget",
            create=lambda: make_response(201, {"id": "w-1", "name": "w"}),
            lookup=fail_lookup,
            extract=lambda response: response.json()["name"],
        )

        assert result.value == "w"

    def test_custom_conflict_status(self):
        result = reconcile(
            "widget",
            create=lambda: make_response(400),
            lookup=lambda: "w-existing",
            conflict_status=400,
        )

        assert result.created is False
