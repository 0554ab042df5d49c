# PIM PRIME - Privileged Identity Management
"""
PIM PRIME: activation policy convergence and access request review.

Core Components:
    - PolicyBuilder: Desired settings to a complete activation rule set
    - RequestCatalog: Pending approvals in review order
    - ApprovalWorkflow: List, select, inspect and decide
    - AccessAuthority / DirectoryLookup: REST clients for the backends

Example:
    from pim_prime import ApprovalWorkflow, RequestCatalog

    catalog = RequestCatalog(authority)
    workflow = ApprovalWorkflow(catalog, authority, session)
    step = workflow.refresh()

Author: PIM PRIME Development Team
Version: 1.0.0
"""

from pim_prime.core.config_manager import ConfigManager
from pim_prime.core.session import AuthSession, TokenAudience
from pim_prime.workflow.catalog import CatalogListing, RequestCatalog
from pim_prime.workflow.state_machine import ApprovalWorkflow, WorkflowState
from pim_prime.workflow.policy_service import PolicyService

__version__ = "1.0.0"
__author__ = "PIM PRIME Development Team"

__all__ = [
    "ConfigManager",
    "AuthSession",
    "TokenAudience",
    "CatalogListing",
    "RequestCatalog",
    "ApprovalWorkflow",
    "WorkflowState",
    "PolicyService",
]
