from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Snake_case in Python, camelCase on the wire and in prompts."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ShapeType(str, Enum):
    DATABASE = "database"
    SERVER = "server"
    LOAD_BALANCER = "loadBalancer"
    CLIENT = "client"
    CACHE = "cache"
    ARROW = "arrow"


# Semantic props each custom canvas shape carries besides its w/h box.
SHAPE_SEMANTIC_PROPS: dict[ShapeType, dict[str, list[str] | None]] = {
    ShapeType.DATABASE: {"label": None, "dbType": ["postgres", "mysql", "mongodb", "redis"]},
    ShapeType.SERVER: {"label": None},
    ShapeType.LOAD_BALANCER: {"label": None},
    ShapeType.CLIENT: {"label": None, "clientType": ["mobile", "web"]},
    ShapeType.CACHE: {"label": None},
    ShapeType.ARROW: {},
}


class GraphNode(CamelModel):
    id: str
    type: str
    props: dict[str, Any] = Field(default_factory=dict)


class GraphEdge(CamelModel):
    from_: str = Field(alias="from")
    to: str


class LogicalGraph(CamelModel):
    """Semantic-only projection of a canvas snapshot."""
    nodes: list[GraphNode] = Field(default_factory=list)
    edges: list[GraphEdge] = Field(default_factory=list)

    def node_types(self) -> list[str]:
        return list(dict.fromkeys(node.type for node in self.nodes))


class GradeVerdict(CamelModel):
    """Structured critique returned by the grading model."""
    score: int = Field(ge=1, le=10, description="Overall score from 1 (poor) to 10 (excellent)")
    feedback: str = Field(description="Detailed feedback explaining the score")
    strengths: list[str] = Field(description="What the candidate did well")
    weaknesses: list[str] = Field(description="What could be improved")
    missing_components: list[str] = Field(description="Essential components the design should add")
    security_risks: list[str] = Field(description="Security risks identified in the design")


class AdmissionDecision(CamelModel):
    success: bool
    remaining: int
    reset_at: int = Field(description="Epoch milliseconds when the window frees up")


class GradeSuccess(CamelModel):
    success: Literal[True] = True
    result: GradeVerdict
    remaining: int


class GradeFailure(CamelModel):
    success: Literal[False] = False
    error: str
    reset_at: int | None = None


GradeResult = GradeSuccess | GradeFailure
