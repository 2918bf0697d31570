import pytest

from cohort_scheduler.core.errors import AuthenticationError
from cohort_scheduler.core.security import extract_bearer_token, verify_cron_secret


def test_extract_bearer_token():
    assert extract_bearer_token("Bearer abc") == "abc"
    assert extract_bearer_token("bearer  abc ") == "abc"
    assert extract_bearer_token("Basic abc") is None
    assert extract_bearer_token(None) is None


def test_secret_must_match():
    verify_cron_secret("Bearer s3cret", "s3cret")
    with pytest.raises(AuthenticationError):
        verify_cron_secret("Bearer wrong", "s3cret")
    with pytest.raises(AuthenticationError):
        verify_cron_secret(None, "s3cret")


def test_unset_secret_leaves_trigger_open():
    verify_cron_secret(None, None)
