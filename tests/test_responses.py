from datetime import datetime, timezone

from ewallet.responses import Response, UserSummary


def test_minimal_response_omits_empty_fields():
    assert Response(success=False, message="Unauthorized").to_dict() == {
        "success": False,
        "message": "Unauthorized",
    }


def test_user_summary_uses_camel_case_keys():
    summary = UserSummary(id=4, name="anna", email="anna@example.com", phone_number="p-001")
    assert summary.to_dict() == {
        "id": 4,
        "name": "anna",
        "email": "anna@example.com",
        "phoneNumber": "p-001",
    }


def test_result_list_is_converted_and_keyed_as_results():
    summary = UserSummary(id=1, name="bob", email="bob@example.com", phone_number="p-002")
    body = Response(
        success=True,
        message="Success to get users",
        page_info={"totalData": 1},
        result=[summary],
    ).to_dict()
    assert body["results"] == [summary.to_dict()]
    assert body["pageInfo"] == {"totalData": 1}
    assert "errors" not in body


def test_empty_list_result_is_kept():
    body = Response(success=True, message="ok", result=[]).to_dict()
    assert body["results"] == []


def test_datetimes_are_iso_formatted():
    moment = datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc)
    body = Response(success=True, message="ok", result={"timeEnd": moment}).to_dict()
    assert body["results"] == {"timeEnd": moment.isoformat()}