"""
Shared pytest fixtures
"""
import pytest

from config import Settings
from projects import LocalStorage, ProjectStore
from slide_schema import PlanItem, Slide


@pytest.fixture
def settings() -> Settings:
    return Settings(
        llm_provider="gemini",
        gemini_api_key="test-key",
        openai_api_key=None,
        anthropic_api_key=None,
    )


@pytest.fixture
def storage(tmp_path) -> LocalStorage:
    return LocalStorage(tmp_path / "storage.json")


@pytest.fixture
def store(storage) -> ProjectStore:
    return ProjectStore(storage)


@pytest.fixture
def plan_items():
    return [
        PlanItem(phase="Hook", instruction="Open with the big number."),
        PlanItem(phase="Problem", instruction="Show the market gap."),
        PlanItem(phase="Solution", instruction="Reveal the product."),
        PlanItem(phase="Close", instruction="Call to action."),
    ]


@pytest.fixture
def sample_slides():
    return [
        Slide(id=f"s{i}", html=f"<h1>Slide {i}</h1>", prompt="A short talk about slides.")
        for i in range(3)
    ]
