from typing import Annotated, Any, Optional

from pydantic import BaseModel, BeforeValidator, ConfigDict, model_validator
from pydantic.alias_generators import to_camel

from .models import Question


def _to_str(value: Any) -> Any:
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return value


Text = Annotated[str, BeforeValidator(_to_str)]


class ActionIn(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class PlayerJoinIn(ActionIn):
    name: Text

    @model_validator(mode="before")
    @classmethod
    def _bare_name(cls, data: Any) -> Any:
        if isinstance(data, str):
            return {"name": data}
        return data


class PlayerActionIn(ActionIn):
    player_name: Text


class SuggestCategoryIn(ActionIn):
    player_name: Text
    category_name: Text


class AddQuestionIn(Question):
    category_name: Text


class SubmitAnswerIn(ActionIn):
    player_name: Text
    question_id: Text
    answer: Optional[Text] = None


class UpdateScoreIn(ActionIn):
    player_name: Text
    score: int


class PointsIn(ActionIn):
    player_name: Text
    points: int
    question_id: Text
