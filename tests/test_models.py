"""Tests for Pydantic data models."""

from datetime import UTC, datetime

import pytest
from pydantic import ValidationError

from polaris_api.models import (
    ApiResponse,
    AppVersion,
    AppVersionAdminInfo,
    AppVersionInfo,
    ErrorResponse,
    LoginResponse,
    UpdateUserInfoRequest,
    UploadType,
    User,
    UserInfo,
    WechatLoginRequest,
    ok,
)


class TestUserModels:
    """Test user data models."""

    def test_user_info_from_user(self):
        user = User(
            id=7,
            openid="ext-001",
            nick_name="Mom",
            avatar_url="https://img/a.png",
            last_login_time=2000,
            created_at=1000,
            updated_at=2000,
        )
        info = UserInfo.from_user(user)

        assert info.model_dump(by_alias=True) == {
            "openid": "ext-001",
            "nickName": "Mom",
            "avatarUrl": "https://img/a.png",
            "createTime": 1000,
            "lastLoginTime": 2000,
        }

    def test_login_request_accepts_camel_case(self):
        request = WechatLoginRequest.model_validate(
            {"code": "abc123", "nickName": "Mom", "avatarUrl": "https://img/a.png"}
        )
        assert request.nick_name == "Mom"
        assert request.avatar_url == "https://img/a.png"

    def test_login_request_defaults(self):
        request = WechatLoginRequest(code="abc123")
        assert request.nick_name == ""
        assert request.avatar_url == ""

    def test_login_request_requires_code(self):
        with pytest.raises(ValidationError):
            WechatLoginRequest(code="")

    def test_update_request_requires_nickname(self):
        with pytest.raises(ValidationError):
            UpdateUserInfoRequest.model_validate({"avatarUrl": "x"})

    def test_login_response_keys(self):
        response = LoginResponse(
            token="t", user_info=UserInfo(openid="ext-001"), is_new_user=True
        )
        assert set(response.model_dump(by_alias=True)) == {"token", "userInfo", "isNewUser"}


class TestAppVersionModels:
    def test_build_time_in_milliseconds(self):
        record = AppVersion(
            id=1,
            version="1.0.0",
            build_time=datetime(2025, 1, 1, tzinfo=UTC),
        )
        info = AppVersionInfo.from_record(record)

        assert info.build_time == 1735689600000
        assert "isActive" not in info.model_dump(by_alias=True)

    def test_admin_info_includes_active_flag(self):
        record = AppVersion(id=1, version="1.0.0", is_active=True)
        info = AppVersionAdminInfo.from_record(record)

        assert info.is_active is True
        assert info.model_dump(by_alias=True)["isActive"] is True


class TestEnvelopes:
    def test_success_envelope(self):
        body = ok({"x": 1}).model_dump()

        assert body["code"] == 0
        assert body["message"] == "success"
        assert body["data"] == {"x": 1}
        assert isinstance(body["timestamp"], int)

    def test_typed_envelope(self):
        body = ApiResponse[UserInfo](data=UserInfo(openid="ext-001")).model_dump(by_alias=True)
        assert body["data"]["openid"] == "ext-001"

    def test_error_envelope(self):
        body = ErrorResponse(code=1001, message="bad").model_dump()
        assert set(body) == {"code", "message", "timestamp"}


def test_upload_type_values():
    assert UploadType("user_avatar") is UploadType.USER_AVATAR
    assert UploadType("baby_avatar") is UploadType.BABY_AVATAR
    with pytest.raises(ValueError):
        UploadType("pet_avatar")
