"""Coordinator: decomposition, delegation, dependency graph and the tick loop."""

from mission_control.coordinator.assignment import (
    AgentRecommendation,
    AssignmentOutcome,
    auto_assign,
    compute_workloads,
    recommend_agents,
)
from mission_control.coordinator.decomposer import (
    GENERIC_STRATEGY_NAME,
    STRATEGIES,
    WorkflowAgent,
    WorkflowDefinition,
    WorkflowStep,
    decompose,
    get_strategy,
)
from mission_control.coordinator.delegator import delegate, delegate_all, score_candidate
from mission_control.coordinator.graph import (
    CriticalPath,
    CycleError,
    DependencyEdge,
    DependencyGraph,
    DependencyNode,
    build_dependency_graph,
    critical_path,
    detect_cycles,
    find_ready_tasks,
    topological_sort,
)
from mission_control.coordinator.loop import (
    CoordinatorActions,
    CoordinatorConfig,
    CoordinatorLoop,
    CoordinatorState,
    Escalation,
    StuckAlert,
    TaskDelegation,
)
from mission_control.coordinator.models import (
    ActivityEvent,
    AgentCandidate,
    AgentRole,
    AgentStatus,
    DecompositionResult,
    DelegationResult,
    PerformanceHistory,
    ScoreBreakdown,
    Subtask,
    TaskInput,
    TaskInputError,
    TaskSnapshot,
)
from mission_control.coordinator.workflow_trigger import (
    TaskAnalysis,
    analyze_for_workflow,
    get_workflow_recommendation,
    should_auto_trigger,
)

__all__ = [
    "GENERIC_STRATEGY_NAME",
    "STRATEGIES",
    "ActivityEvent",
    "AgentCandidate",
    "AgentRecommendation",
    "AgentRole",
    "AgentStatus",
    "AssignmentOutcome",
    "CoordinatorActions",
    "CoordinatorConfig",
    "CoordinatorLoop",
    "CoordinatorState",
    "CriticalPath",
    "CycleError",
    "DecompositionResult",
    "DelegationResult",
    "DependencyEdge",
    "DependencyGraph",
    "DependencyNode",
    "Escalation",
    "PerformanceHistory",
    "ScoreBreakdown",
    "StuckAlert",
    "Subtask",
    "TaskAnalysis",
    "TaskDelegation",
    "TaskInput",
    "TaskInputError",
    "TaskSnapshot",
    "WorkflowAgent",
    "WorkflowDefinition",
    "WorkflowStep",
    "analyze_for_workflow",
    "auto_assign",
    "build_dependency_graph",
    "compute_workloads",
    "critical_path",
    "decompose",
    "delegate",
    "delegate_all",
    "detect_cycles",
    "find_ready_tasks",
    "get_strategy",
    "get_workflow_recommendation",
    "recommend_agents",
    "score_candidate",
    "should_auto_trigger",
    "topological_sort",
]
