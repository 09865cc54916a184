import pytest
from pydantic import ValidationError

from page_meta.config import Settings


def test_settings_defaults() -> None:
    settings = Settings.model_validate({})
    assert settings.peek_size == 4096
    assert settings.decode_errors == "replace"
    assert settings.follow_redirects is True


def test_settings_parses_env_aliases() -> None:
    settings = Settings.model_validate(
        {
            "PAGE_META_PORT": "9000",
            "PAGE_META_FETCH_TIMEOUT_S": "5",
            "PAGE_META_PEEK_SIZE": "1024",
            "PAGE_META_DECODE_ERRORS": "strict",
        }
    )
    assert settings.port == 9000
    assert settings.fetch_timeout_s == 5.0
    assert settings.peek_size == 1024
    assert settings.decode_errors == "strict"


def test_settings_rejects_bad_values() -> None:
    with pytest.raises(ValidationError):
        Settings.model_validate({"PAGE_META_PEEK_SIZE": "0"})
    with pytest.raises(ValidationError):
        Settings.model_validate({"PAGE_META_DECODE_ERRORS": "surrogateescape"})
