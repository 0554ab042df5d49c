"""CLI shell: menu loop and the interactive review pass.

Thin adapter between a terminal and ApprovalWorkflow. Input and output
are injectable callables so the shell can be driven by scripted tests.
"""

import logging
from typing import Callable, Optional

from pim_prime.access.audit import AuditEventType, AuditLogger
from pim_prime.cli.menu import RESERVED_OPTIONS, print_menu
from pim_prime.cli.views import render_detail, render_listing
from pim_prime.core.session import AuthSession
from pim_prime.workflow.state_machine import ApprovalWorkflow, ReviewAction, WorkflowState
from shared.pim_core.exceptions import PIMError, SelectionError, describe_error, is_recoverable

logger = logging.getLogger(__name__)

SELECT_PROMPT = "Select a request number (c to cancel): "
ACTION_PROMPT = "[A]pprove, [D]eny or [C]ancel: "
JUSTIFICATION_PROMPT = "Justification (blank for default): "


class ReviewShell:
    """
    Interactive menu around the approval workflow.

    Example:
        shell = ReviewShell(lambda: ApprovalWorkflow(catalog, authority, session),
                            session, audit)
        shell.run()
    """

    def __init__(
        self,
        workflow_factory: Callable[[], ApprovalWorkflow],
        session: AuthSession,
        audit: Optional[AuditLogger] = None,
        input_fn: Callable[[str], str] = input,
        output_fn: Callable[[str], None] = print,
    ):
        self.workflow_factory = workflow_factory
        self.session = session
        self.audit = audit
        self.input = input_fn
        self.output = output_fn

    def run(self) -> int:
        """Menu loop until the reviewer exits; returns the exit code."""
        while True:
            print_menu(self.output)
            try:
                choice = self.input("Choose an option: ").strip()
            except (EOFError, KeyboardInterrupt):
                self.output("")
                return 0

            if choice == "1":
                if not self._guarded(self.review):
                    return 1
            elif choice in RESERVED_OPTIONS:
                self.output("  That option is not available in this version.")
            elif choice == "4":
                self.disconnect()
            elif choice == "5":
                self.output("  Goodbye.")
                return 0
            else:
                self.output(f"  Unknown option: {choice}")

    def _guarded(self, action: Callable[[], None]) -> bool:
        """Run a menu action; False when the session cannot carry on."""
        try:
            action()
        except (EOFError, KeyboardInterrupt):
            self.output("")
            self.output("  Review interrupted.")
        except PIMError as e:
            logger.error(f"Review aborted: {e}")
            self.output(f"  {describe_error('Review', e)}")
            if not is_recoverable(e):
                self.output("  Ending session.")
                return False
        return True

    def disconnect(self) -> None:
        if not self.session.is_connected:
            self.output("  Already disconnected.")
            return
        self.session.disconnect()
        if self.audit is not None:
            self.audit.log(
                AuditEventType.SESSION_DISCONNECTED,
                actor=self.session.account,
                tenant_id=self.session.tenant_id,
                resource_type="session",
            )
        self.output("  Disconnected.")

    def review(self) -> None:
        """List, select, inspect and decide until the reviewer cancels."""
        workflow = self.workflow_factory()

        while True:
            step = workflow.refresh()
            if step.state == WorkflowState.LISTING:
                self.output(f"  {step.message}")
                return

            self.output(render_listing(step.listing))
            try:
                step = workflow.select(self.input(SELECT_PROMPT))
            except SelectionError as e:
                self.output(f"  {e.message}")
                continue

            if step.state == WorkflowState.EXITED:
                self.output(f"  {step.message}")
                return

            self.output(render_detail(step.selected))
            step = self._decide(workflow)
            self.output(f"  {step.message}")

    def _decide(self, workflow: ApprovalWorkflow):
        while True:
            raw = self.input(ACTION_PROMPT)
            try:
                action = ReviewAction.parse(raw)
            except SelectionError as e:
                self.output(f"  {e.message}")
                continue

            justification = ""
            if action is not ReviewAction.CANCEL:
                justification = self.input(JUSTIFICATION_PROMPT)
            return workflow.decide(action, justification)


__all__ = ["ReviewShell", "SELECT_PROMPT", "ACTION_PROMPT", "JUSTIFICATION_PROMPT"]
