import logging
from typing import Any

from app.core.config import settings
from app.grading.artifacts import GradeFailure, GradeResult, GradeSuccess, GradeVerdict
from app.grading.graph_extractor import extract_logical_graph
from app.grading.llm_client import LLMClient
from app.grading.prompts.grader import GRADER_SYSTEM_PROMPT, build_grading_prompt
from app.grading.rate_limit import AdmissionController, DisabledAdmissionController

logger = logging.getLogger(__name__)

EMPTY_BOARD_ERROR = "No components found on the board. Add some system design shapes first."
GRADING_FAILED_ERROR = "Grading failed. Please try again."


class GradingOrchestrator:
    """
    Runs one grading request: quota check, snapshot extraction, model call.

    Expected outcomes (quota exhausted, empty board, model failure) come back as
    a GradeFailure; nothing raises out of `grade` except cancellation.
    """

    def __init__(
        self,
        admission: AdmissionController | DisabledAdmissionController,
        llm: LLMClient | None = None,
    ):
        self.admission = admission
        self.llm = llm or LLMClient(model_name=settings.MODEL_GRADER or settings.MODEL_DEFAULT)

    def quota_exceeded_message(self) -> str:
        return f"Rate limit exceeded. You've used all {self.admission.quota} grades this hour."

    async def grade(self, user_id: str, snapshot: Any, problem_statement: str) -> GradeResult:
        # Admission runs before extraction, so an empty board still costs a unit.
        admission = await self.admission.check(user_id)
        if not admission.success:
            return GradeFailure(error=self.quota_exceeded_message(), reset_at=admission.reset_at)

        graph = extract_logical_graph(snapshot)
        if not graph.nodes:
            logger.info("Nothing to grade for user %s: board has no components", user_id)
            return GradeFailure(error=EMPTY_BOARD_ERROR)

        logger.info(
            "Grading diagram for user %s (%s components, %s connections)",
            user_id,
            len(graph.nodes),
            len(graph.edges),
        )
        try:
            verdict = await self.llm.generate_structured(
                system_prompt=GRADER_SYSTEM_PROMPT,
                user_prompt=build_grading_prompt(problem_statement, graph),
                response_schema=GradeVerdict,
            )
        except Exception:
            logger.exception("Grading failed for user %s", user_id)
            return GradeFailure(error=GRADING_FAILED_ERROR)

        return GradeSuccess(result=verdict, remaining=admission.remaining)
