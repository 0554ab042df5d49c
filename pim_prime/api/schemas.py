"""
Authority Schemas

Pydantic models for the JSON documents exchanged with the access
authority and the directory. Field aliases follow the services' camelCase
names; unknown fields are tolerated on responses.
"""

import logging
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from shared.pim_core.approvals import PendingApproval

logger = logging.getLogger(__name__)


class _Response(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="allow")


# ==================== Schedule Requests ====================


class ExpandedEntity(_Response):
    """Display metadata the authority expands onto a request."""

    id: Optional[str] = None
    display_name: Optional[str] = Field(default=None, alias="displayName")
    type: Optional[str] = None


class ExpandedProperties(_Response):
    principal: Optional[ExpandedEntity] = None
    role_definition: Optional[ExpandedEntity] = Field(default=None, alias="roleDefinition")
    scope: Optional[ExpandedEntity] = None


class TicketInfo(_Response):
    ticket_number: Optional[str] = Field(default=None, alias="ticketNumber")
    ticket_system: Optional[str] = Field(default=None, alias="ticketSystem")


class ExpirationInfo(_Response):
    type: Optional[str] = None
    end_date_time: Optional[datetime] = Field(default=None, alias="endDateTime")
    duration: Optional[str] = None


class ScheduleInfo(_Response):
    start_date_time: Optional[datetime] = Field(default=None, alias="startDateTime")
    expiration: Optional[ExpirationInfo] = None


class ScheduleRequestProperties(_Response):
    approval_id: Optional[str] = Field(default=None, alias="approvalId")
    status: Optional[str] = None
    request_type: Optional[str] = Field(default=None, alias="requestType")
    justification: Optional[str] = None
    created_on: Optional[datetime] = Field(default=None, alias="createdOn")
    principal_id: Optional[str] = Field(default=None, alias="principalId")
    role_definition_id: Optional[str] = Field(default=None, alias="roleDefinitionId")
    schedule_info: Optional[ScheduleInfo] = Field(default=None, alias="scheduleInfo")
    ticket_info: Optional[TicketInfo] = Field(default=None, alias="ticketInfo")
    expanded_properties: Optional[ExpandedProperties] = Field(
        default=None, alias="expandedProperties"
    )


class ScheduleRequest(_Response):
    """One role assignment schedule request."""

    id: str
    name: Optional[str] = None
    properties: ScheduleRequestProperties = Field(default_factory=ScheduleRequestProperties)

    def to_pending_approval(self) -> Optional[PendingApproval]:
        """Snapshot for the reviewer, or None when nothing awaits a decision."""
        props = self.properties
        if not props.approval_id:
            logger.debug(f"Skipping request without approval: {self.id}")
            return None

        expanded = props.expanded_properties or ExpandedProperties()
        principal = expanded.principal or ExpandedEntity()
        role = expanded.role_definition or ExpandedEntity()
        scope = expanded.scope or ExpandedEntity()
        schedule = props.schedule_info or ScheduleInfo()
        expiration = schedule.expiration or ExpirationInfo()
        ticket = props.ticket_info or TicketInfo()

        return PendingApproval(
            approval_id=props.approval_id,
            created_on=props.created_on,
            requestor_display_name=principal.display_name or props.principal_id or "unknown",
            role_display_name=role.display_name or props.role_definition_id or "unknown",
            resource_display_name=scope.display_name or scope.id or "unknown",
            resource_type=scope.type or "unknown",
            justification=props.justification or "",
            ticket_number=ticket.ticket_number or None,
            ticket_system=ticket.ticket_system or None,
            schedule_start=schedule.start_date_time,
            schedule_duration=expiration.duration,
            status=props.status or "unknown",
        )


class ScheduleRequestListResult(_Response):
    value: List[ScheduleRequest] = Field(default_factory=list)


# ==================== Approvals ====================


class ApprovalStageResource(_Response):
    id: str
    name: Optional[str] = None


class ApprovalStageListResult(_Response):
    value: List[ApprovalStageResource] = Field(default_factory=list)


# ==================== Policies ====================


class PolicyRuleResource(_Response):
    """An existing rule on a policy; only its address and type are read."""

    id: str
    rule_type: Optional[str] = Field(default=None, alias="ruleType")


class PolicyProperties(_Response):
    display_name: Optional[str] = Field(default=None, alias="displayName")
    scope: Optional[str] = None
    rules: List[PolicyRuleResource] = Field(default_factory=list)


class PolicyResource(_Response):
    id: str
    name: Optional[str] = None
    properties: PolicyProperties = Field(default_factory=PolicyProperties)


class PolicyAssignmentProperties(_Response):
    policy_id: Optional[str] = Field(default=None, alias="policyId")
    role_definition_id: Optional[str] = Field(default=None, alias="roleDefinitionId")
    scope: Optional[str] = None


class PolicyAssignmentResource(_Response):
    id: str
    properties: PolicyAssignmentProperties = Field(default_factory=PolicyAssignmentProperties)


class PolicyAssignmentListResult(_Response):
    value: List[PolicyAssignmentResource] = Field(default_factory=list)


# ==================== Directory ====================


class RoleDefinitionProperties(_Response):
    role_name: Optional[str] = Field(default=None, alias="roleName")
    type: Optional[str] = None


class RoleDefinitionResource(_Response):
    id: str
    name: Optional[str] = None
    properties: RoleDefinitionProperties = Field(default_factory=RoleDefinitionProperties)


class RoleDefinitionListResult(_Response):
    value: List[RoleDefinitionResource] = Field(default_factory=list)


class DirectoryGroup(_Response):
    id: str
    display_name: Optional[str] = Field(default=None, alias="displayName")


class DirectoryGroupListResult(_Response):
    value: List[DirectoryGroup] = Field(default_factory=list)
