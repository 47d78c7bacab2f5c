import logging
from typing import Callable, Optional

import pytest

from segmentviz.elements.question import (
    GroupingQuestion,
    Question,
    ResponseGroup,
    ResponseQuestion,
)
from segmentviz.logger import viz_logger
from segmentviz.statistics.config import SessionConfig
from segmentviz.statistics.validation import RespondentData, ResponseValue


def pytest_configure(config):
    """Set up test environment before tests run."""
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    # Enable the split table logger
    viz_logger.disabled = False


AGE = Question("age", "demographics")
GENDER = Question("gender", "demographics")
OPINION = Question("opinion", "attitudes")
WEIGHT = Question("weight", "meta")

YOUNG, OLD = 0, 1
MALE, FEMALE = 0, 1


@pytest.fixture
def age() -> GroupingQuestion:
    return GroupingQuestion(
        AGE, [ResponseGroup("young", [1, 2]), ResponseGroup("old", [3, 4])]
    )


@pytest.fixture
def gender() -> GroupingQuestion:
    return GroupingQuestion(
        GENDER, [ResponseGroup("male", [1]), ResponseGroup("female", [2])]
    )


@pytest.fixture
def opinion() -> ResponseQuestion:
    return ResponseQuestion(
        OPINION,
        expanded=[
            ResponseGroup("strongly agree", [1]),
            ResponseGroup("agree", [2]),
            ResponseGroup("disagree", [3]),
            ResponseGroup("strongly disagree", [4]),
        ],
        collapsed=[
            ResponseGroup("agree", [1, 2]),
            ResponseGroup("disagree", [3, 4]),
        ],
    )


@pytest.fixture
def session(age, gender, opinion) -> SessionConfig:
    return SessionConfig(grouping_questions=[age, gender], response_questions=[opinion])


@pytest.fixture
def weighted_session(age, gender, opinion) -> SessionConfig:
    return SessionConfig(
        grouping_questions=[age, gender],
        response_questions=[opinion],
        weight_question=WEIGHT,
    )


RespondentFactory = Callable[..., RespondentData]


@pytest.fixture
def respondent() -> RespondentFactory:
    """Build a respondent from raw codes; None means the question was skipped."""
    counter = {"next": 0}

    def make(
        age: Optional[float] = 1,
        gender: Optional[float] = 1,
        opinion: Optional[float] = 1,
        weight: Optional[float] = None,
    ) -> RespondentData:
        counter["next"] += 1
        responses = [
            ResponseValue(AGE, age),
            ResponseValue(GENDER, gender),
            ResponseValue(OPINION, opinion),
        ]
        if weight is not None:
            responses.append(ResponseValue(WEIGHT, weight))
        return RespondentData(f"r{counter['next']}", responses)

    return make
