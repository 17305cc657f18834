"""Tests for experiment analysis and winner selection."""
import uuid
from types import SimpleNamespace

import pytest
from sqlalchemy.orm import Session

from app.exceptions import NotFoundError
from app.models.experiment import ExperimentStatus, GoalMetric
from app.schemas.experiment import VariantCreate
from app.services.allocator import TrafficAllocator
from app.services.analysis import AnalysisService, goal_metric_accessor, pick_best
from app.services.experiments import ExperimentService
from app.services.metrics import MetricsService, OutcomeEventData
from conftest import SequenceRandom


def run_experiment(db: Session, experiment, sessions_per_variant: int, conversions: dict):
    """
    Allocate alternating sessions to the two variants and record outcomes.

    conversions maps variant position to the number of completed sessions.
    """
    ExperimentService(db).start(experiment.id)
    allocator = TrafficAllocator(db, rng=SequenceRandom([0.1, 0.9]))
    metrics = MetricsService(db)

    sessions = {0: [], 1: []}
    for i in range(sessions_per_variant * 2):
        session_id = f"session_{i}"
        variant = allocator.allocate(experiment.id, session_id)
        sessions[0 if variant.name == "Control" else 1].append((session_id, variant.id))

    for position, assigned in sessions.items():
        for index, (session_id, variant_id) in enumerate(assigned):
            metrics.record_result(experiment.id, OutcomeEventData(
                session_id,
                variant_id,
                engaged=True,
                completed=index < conversions[position],
                view_time=30.0
            ))

    return sessions


def test_significant_winner(db: Session, create_experiment):
    """Test 40% vs 60% conversion over 200 allocations declares Variant A."""
    experiment = create_experiment(goal_metric="completion")
    run_experiment(db, experiment, 100, {0: 40, 1: 60})
    treatment_id = experiment.variants[1].id

    report = AnalysisService(db).analyze(experiment.id)

    assert report.is_statistically_significant is True
    assert report.confidence == pytest.approx(0.9977, abs=1e-3)
    assert report.improvement == pytest.approx(50.0)
    assert report.winner == treatment_id
    assert report.sample_size == 200

    stats = {s.name: s for s in report.variant_stats}
    assert stats["Control"].conversion_rate == pytest.approx(40.0)
    assert stats["Variant A"].conversion_rate == pytest.approx(60.0)
    assert stats["Control"].impressions == 100
    assert stats["Variant A"].conversions == 60


def test_no_winner_when_rates_match(db: Session, create_experiment):
    """Test that equal 45% conversion on 20 impressions each has no winner."""
    experiment = create_experiment(goal_metric="completion")
    run_experiment(db, experiment, 20, {0: 9, 1: 9})

    report = AnalysisService(db).analyze(experiment.id)

    assert report.is_statistically_significant is False
    assert report.winner is None
    assert report.sample_size == 40
    assert report.improvement == 0.0


def test_small_samples_are_never_significant(db: Session, create_experiment):
    """Test that arms under 10 impressions never report significance."""
    experiment = create_experiment(goal_metric="completion")
    run_experiment(db, experiment, 9, {0: 0, 1: 9})

    report = AnalysisService(db).analyze(experiment.id)

    assert report.is_statistically_significant is False
    assert report.confidence == 0.0
    assert report.winner is None
    assert report.improvement == 0.0  # control rate is zero


def test_complete_commits_winner(db: Session, create_experiment):
    """Test that completion stores the analysis winner."""
    experiment = create_experiment(goal_metric="completion")
    run_experiment(db, experiment, 100, {0: 40, 1: 60})

    completed = ExperimentService(db).complete(experiment.id)

    assert completed.status == ExperimentStatus.COMPLETED
    assert completed.winner_variant_id == experiment.variants[1].id
    assert completed.ended_at is not None


def test_first_variant_is_control_when_none_flagged(db: Session, create_experiment):
    """Test the implicit control and goal metric selection on view time."""
    experiment = create_experiment(
        goal_metric="view_time",
        variants=[
            VariantCreate(name="Control", traffic_weight=50),
            VariantCreate(name="Longer", traffic_weight=50),
        ]
    )
    ExperimentService(db).start(experiment.id)
    allocator = TrafficAllocator(db, rng=SequenceRandom([0.1, 0.9]))
    metrics = MetricsService(db)
    for i in range(4):
        variant = allocator.allocate(experiment.id, f"s{i}")
        view_time = 10.0 if variant.name == "Control" else 25.0
        metrics.record_result(experiment.id, OutcomeEventData(f"s{i}", variant.id, view_time=view_time))

    report = AnalysisService(db).analyze(experiment.id)

    assert report.control_variant_id == experiment.variants[0].id
    assert report.best_variant_id == experiment.variants[1].id
    assert report.improvement == pytest.approx(150.0)
    assert report.winner is None  # too few impressions


def test_engagement_goal_uses_engagement_score(db: Session, create_experiment):
    """Test that the default goal compares engagement scores."""
    experiment = create_experiment()
    ExperimentService(db).start(experiment.id)
    allocator = TrafficAllocator(db, rng=SequenceRandom([0.1, 0.9]))
    metrics = MetricsService(db)
    for i in range(4):
        variant = allocator.allocate(experiment.id, f"s{i}")
        engaged = variant.name == "Control" or i == 1
        metrics.record_result(experiment.id, OutcomeEventData(f"s{i}", variant.id, engaged=engaged))

    report = AnalysisService(db).analyze(experiment.id)

    assert report.goal_metric == GoalMetric.ENGAGEMENT
    # Control engaged 2/2, Variant A 1/2: control stays best
    assert report.best_variant_id == experiment.variants[0].id
    assert report.improvement == 0.0


def test_analysis_is_read_only(db: Session, create_experiment):
    """Test that analysis never changes status or winner."""
    experiment = create_experiment(goal_metric="completion")
    run_experiment(db, experiment, 100, {0: 40, 1: 60})

    AnalysisService(db).analyze(experiment.id)
    refreshed = ExperimentService(db).get_experiment(experiment.id)

    assert refreshed.status == ExperimentStatus.RUNNING
    assert refreshed.winner_variant_id is None


def test_analyze_unknown_experiment(db: Session):
    """Test that analysis of an unknown experiment raises NotFoundError."""
    with pytest.raises(NotFoundError):
        AnalysisService(db).analyze(uuid.uuid4())


def test_pick_best_keeps_first_on_tie():
    """Test that ties resolve to the first maximal variant."""
    stats = [
        SimpleNamespace(name="a", engagement_score=10.0),
        SimpleNamespace(name="b", engagement_score=30.0),
        SimpleNamespace(name="c", engagement_score=30.0),
    ]

    assert pick_best(stats, goal_metric_accessor(GoalMetric.ENGAGEMENT)).name == "b"


def test_goal_metric_accessors():
    """Test the goal metric to statistic mapping."""
    stats = SimpleNamespace(engagement_score=1.0, conversion_rate=2.0, avg_view_time=3.0)

    assert goal_metric_accessor(GoalMetric.ENGAGEMENT)(stats) == 1.0
    assert goal_metric_accessor(GoalMetric.COMPLETION)(stats) == 2.0
    assert goal_metric_accessor(GoalMetric.VIEW_TIME)(stats) == 3.0
    assert goal_metric_accessor(None)(stats) == 1.0
