from typing import Any

from fastapi import APIRouter
from pydantic import Field, field_validator

from app.api.deps import CurrentUserId, Orchestrator
from app.grading.artifacts import SHAPE_SEMANTIC_PROPS, CamelModel, GradeResult

router = APIRouter()


class GradeRequest(CamelModel):
    snapshot: Any = None
    problem_statement: str = Field(min_length=1)

    @field_validator("problem_statement")
    @classmethod
    def _strip_problem_statement(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("problem statement must not be blank")
        return value


class ShapeTypeInfo(CamelModel):
    type: str
    props: dict[str, list[str] | None]


@router.post("/", response_model=GradeResult, response_model_exclude_none=True)
async def grade_diagram(
    grade_in: GradeRequest,
    current_user_id: CurrentUserId,
    orchestrator: Orchestrator,
) -> Any:
    return await orchestrator.grade(
        user_id=current_user_id,
        snapshot=grade_in.snapshot,
        problem_statement=grade_in.problem_statement,
    )


@router.get("/shape-types", response_model=list[ShapeTypeInfo])
async def read_shape_types() -> Any:
    return [
        ShapeTypeInfo(type=shape_type.value, props=props)
        for shape_type, props in SHAPE_SEMANTIC_PROPS.items()
    ]
