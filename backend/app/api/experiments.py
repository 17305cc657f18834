"""Administrative experiment endpoints."""
from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.orm import Session
from typing import List, Optional
from uuid import UUID

from app.database import get_db
from app.models.user import User
from app.models.experiment import Experiment
from app.middleware.auth import get_current_user
from app.schemas.experiment import ExperimentCreate, ExperimentResponse, ExperimentDetailResponse
from app.schemas.analysis import AnalysisResponse
from app.schemas.outcome import OutcomeEventResponse
from app.services.experiments import ExperimentService
from app.services.analysis import AnalysisService

router = APIRouter()


def get_owned_experiment(experiment_id: UUID, user: User, db: Session) -> Experiment:
    """Load an experiment the caller owns; others are reported as missing."""
    return ExperimentService(db).get_experiment(experiment_id, owner_id=user.id)


def with_recent_events(experiment: Experiment, db: Session) -> ExperimentDetailResponse:
    """Detail view of an experiment including its latest outcome events."""
    detail = ExperimentDetailResponse.model_validate(experiment)
    detail.recent_events = [
        OutcomeEventResponse.model_validate(event)
        for event in ExperimentService(db).recent_events(experiment.id)
    ]
    return detail


@router.post("/experiments", response_model=ExperimentResponse, status_code=201)
async def create_experiment(
    experiment_request: ExperimentCreate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    Create an experiment in draft status.

    - Caller must own the project
    - At least two variants whose traffic weights sum to 100
    """
    return ExperimentService(db).create_experiment(
        user.id,
        experiment_request.project_id,
        experiment_request
    )


@router.get("/experiments", response_model=List[ExperimentResponse])
async def list_experiments(
    project_id: Optional[UUID] = None,
    limit: int = Query(10, ge=1, le=100),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """List the caller's experiments, newest first."""
    return ExperimentService(db).list_experiments(user.id, project_id=project_id, limit=limit)


@router.get("/experiments/{experiment_id}", response_model=ExperimentDetailResponse)
async def get_experiment(
    experiment_id: UUID,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Get an experiment with its variants and its 100 most recent outcome events."""
    return with_recent_events(get_owned_experiment(experiment_id, user, db), db)


@router.post("/experiments/{experiment_id}/start", response_model=ExperimentResponse)
async def start_experiment(
    experiment_id: UUID,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Start a draft experiment."""
    get_owned_experiment(experiment_id, user, db)
    return ExperimentService(db).start(experiment_id)


@router.post("/experiments/{experiment_id}/pause", response_model=ExperimentResponse)
async def pause_experiment(
    experiment_id: UUID,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Pause a running experiment."""
    get_owned_experiment(experiment_id, user, db)
    return ExperimentService(db).pause(experiment_id)


@router.post("/experiments/{experiment_id}/resume", response_model=ExperimentResponse)
async def resume_experiment(
    experiment_id: UUID,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Resume a paused experiment."""
    get_owned_experiment(experiment_id, user, db)
    return ExperimentService(db).resume(experiment_id)


@router.post("/experiments/{experiment_id}/complete", response_model=ExperimentDetailResponse)
async def complete_experiment(
    experiment_id: UUID,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Complete an experiment and record the winner, if any."""
    get_owned_experiment(experiment_id, user, db)
    return with_recent_events(ExperimentService(db).complete(experiment_id), db)


@router.get("/experiments/{experiment_id}/analysis", response_model=AnalysisResponse)
async def analyze_experiment(
    experiment_id: UUID,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    Live analysis of an experiment.

    Callable in any status; completion is never triggered from here.
    """
    get_owned_experiment(experiment_id, user, db)
    report = AnalysisService(db).analyze(experiment_id)
    return AnalysisResponse.model_validate(report)


@router.delete("/experiments/{experiment_id}", status_code=204)
async def delete_experiment(
    experiment_id: UUID,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Delete a non-running experiment and all its data."""
    get_owned_experiment(experiment_id, user, db)
    ExperimentService(db).delete_experiment(experiment_id)
    return Response(status_code=204)
