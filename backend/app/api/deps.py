from typing import Annotated

from fastapi import Depends, Header, HTTPException, Request

from app.grading.orchestrator import GradingOrchestrator


def get_current_user_id(
    x_user_id: Annotated[str | None, Header()] = None,
) -> str:
    """Caller identity, as forwarded by the auth gateway in front of this service."""
    user_id = (x_user_id or "").strip()
    if not user_id:
        raise HTTPException(status_code=401, detail="Not authenticated")
    return user_id


def get_grading_orchestrator(request: Request) -> GradingOrchestrator:
    return request.app.state.grading_orchestrator


CurrentUserId = Annotated[str, Depends(get_current_user_id)]
Orchestrator = Annotated[GradingOrchestrator, Depends(get_grading_orchestrator)]
