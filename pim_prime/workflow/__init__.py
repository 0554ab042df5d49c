# PIM PRIME Workflows
"""
Modules:
    catalog: Pending approvals in review order
    state_machine: Reviewer approval workflow
    policy_service: Activation policy convergence
"""

from .catalog import CatalogListing, RequestCatalog
from .state_machine import (
    ApprovalWorkflow,
    ReviewAction,
    WorkflowConfig,
    WorkflowState,
    WorkflowStep,
)
from .policy_service import ConvergenceReport, PolicyService

__all__ = [
    "CatalogListing",
    "RequestCatalog",
    "ApprovalWorkflow",
    "ReviewAction",
    "WorkflowConfig",
    "WorkflowState",
    "WorkflowStep",
    "ConvergenceReport",
    "PolicyService",
]
