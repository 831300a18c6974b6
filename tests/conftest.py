import pytest

from tests.fakes import ScriptedLLM


@pytest.fixture
def scripted_llm():
    """Factory: scripted_llm([reply, ...]) -> ScriptedLLM."""
    return ScriptedLLM
