from nezhadash.common import (
    API_ERROR_UNAUTHORIZED,
    CommonResponse,
    LoginResponse,
    Profile,
    Response,
    ServerGroup,
    ServerGroupResponseItem,
)


def test_success_response_with_scalar_data():
    assert CommonResponse(success=True, data=7).to_dict() == {"success": True, "data": 7}


def test_error_response_omits_empty_fields():
    result = CommonResponse(error="boom").to_dict()
    assert result == {"error": "boom"}


def test_empty_response_is_empty_dict():
    assert CommonResponse().to_dict() == {}


def test_response_with_dataclass_data():
    payload = LoginResponse(token="token", expire="2024-01-01T00:00:00Z")
    result = CommonResponse(success=True, data=payload).to_dict()
    assert result["data"] == {"token": "token", "expire": "2024-01-01T00:00:00Z"}
    assert result["success"] is True


def test_empty_list_data_is_omitted():
    assert "data" not in CommonResponse(success=True, data=[]).to_dict()


def test_nested_group_item_is_plain():
    item = ServerGroupResponseItem(group=ServerGroup(id=3, name="edge"), servers=[1, 2])
    result = CommonResponse(success=True, data=[item]).to_dict()
    assert result["data"][0]["servers"] == [1, 2]
    assert result["data"][0]["group"]["name"] == "edge"
    assert result["data"][0]["group"]["id"] == 3


def test_plain_response_omits_zero_code():
    assert Response(message="hi").to_dict() == {"message": "hi"}
    assert Response(code=API_ERROR_UNAUTHORIZED).to_dict() == {"code": API_ERROR_UNAUTHORIZED}


def test_profile_carries_user_fields():
    profile = Profile(id=4, username="admin", login_ip="127.0.0.1")
    assert (profile.id, profile.username, profile.login_ip) == (4, "admin", "127.0.0.1")