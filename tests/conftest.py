import pytest

from hybrid_rag.core.models.document import SearchScope

from tests.fakes import ImmediateExecutor


@pytest.fixture
def scope() -> SearchScope:
    return SearchScope(user_id="user-1")


@pytest.fixture
def executor() -> ImmediateExecutor:
    return ImmediateExecutor()
