"""
Routing workflow.

Currently contains:
- AlertRouterWorkflow: LangGraph pipeline routing one alarm event to Slack and PagerDuty
"""

from alert_router.workflow.router_workflow import AlertRouterWorkflow, RouterState

__all__ = ['AlertRouterWorkflow', 'RouterState']
