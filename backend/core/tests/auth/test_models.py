"""Tests for user and error record models."""

from core.auth.models import ErrorRecord, User, UserSettings


def _user(**overrides) -> User:
    fields = {"user_id": "user_1", "username": "alice", "salt": "ab", "password_hash": "cd"}
    fields.update(overrides)
    return User(**fields)


class TestUser:
    def test_serializes_with_camel_case_keys(self):
        data = _user().model_dump(mode="json", by_alias=True)

        assert data["userId"] == "user_1"
        assert data["hash"] == "cd"
        assert data["installedApps"] == ["core-system", "file-manager"]
        assert data["settings"]["autoSave"] is True
        assert data["stats"] == {"files": 0, "apps": 0, "sessions": 0}

    def test_roundtrips_from_serialized_form(self):
        original = _user(theme="dark", settings=UserSettings(theme="dark"))
        restored = User.model_validate(original.model_dump(mode="json", by_alias=True))
        assert restored == original

    def test_default_installed_apps_are_not_shared(self):
        a = _user()
        b = _user(user_id="user_2")
        a.installed_apps.append("terminal-pro")
        assert b.installed_apps == ["core-system", "file-manager"]

    def test_profile_is_a_copy(self):
        user = _user()
        profile = user.profile()
        profile.settings.font_size = 20
        assert user.settings.font_size == 14


class TestErrorRecord:
    def test_keeps_unknown_fields(self):
        record = ErrorRecord.model_validate({"code": "NET001", "message": "offline", "browser": "firefox"})
        assert record.model_dump()["browser"] == "firefox"

    def test_accepts_bare_string(self):
        assert ErrorRecord.model_validate("boom").message == "boom"

    def test_accepts_null(self):
        assert ErrorRecord.model_validate(None) == ErrorRecord()

    def test_coerces_numeric_code(self):
        assert ErrorRecord.model_validate({"code": 404}).code == "404"

    def test_non_object_report_becomes_message(self):
        assert ErrorRecord.model_validate(["boom"]).message == '["boom"]'
        assert ErrorRecord.model_validate(42).message == "42"

    def test_non_string_fields_stored_as_text(self):
        record = ErrorRecord.model_validate(
            {"message": {"text": "boom"}, "stack": ["at a", "at b"], "user": 7, "time": None},
        )
        assert record.message == '{"text": "boom"}'
        assert record.stack == '["at a", "at b"]'
        assert record.user == "7"
        assert record.time is None

    def test_validating_an_instance_keeps_it(self):
        record = ErrorRecord(code="A", message="first")
        user = _user(error_log=[record])
        assert user.error_log[0].message == "first"
