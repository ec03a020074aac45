import pytest
from pydantic import ValidationError

from pim_sync.core.config import Settings


def test_job_ttl_must_be_positive():
    with pytest.raises(ValidationError):
        Settings(_env_file=None, job_ttl_seconds=0)


def test_job_ttl_default_is_a_day():
    assert Settings(_env_file=None).job_ttl_seconds == 86400
