import pytest

from fixtures.tokens import lookup_known_token


@pytest.fixture()
def metadata_lookup():
    return lookup_known_token
