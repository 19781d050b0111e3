"""
LangGraph workflow that routes one CloudWatch alarm event.

Nodes, in order:
1. inject_tags - Fetch the alarm's tags (fatal on failure)
2. resolve_routing - Slack channel + PagerDuty routing key (fatal on lookup error)
3. classify_transition - trigger / resolve / ignore for Slack and for PagerDuty
4. gather_evidence - Metric samples + chart link (best-effort)
5. post_to_slack - Triggered/resolved message (fatal on failure, skips paging)
6. submit_to_pagerduty - Event with the alarm ARN as dedup key (fatal on failure)

Ignored transitions stop after gather_evidence; suppressed alarms stop after
post_to_slack.
"""

import logging
from typing import Any, Dict, Optional, TypedDict

from langgraph.graph import END, StateGraph

from alert_router.classifier import TransitionAction, classify, is_paging_suppressed
from alert_router.config import RouterConfig
from alert_router.errors import TagLookupError
from alert_router.evidence import EvidenceBuilder
from alert_router.models import AlarmTransitionEvent, MetricSamples, RoutingDecision
from alert_router.ports import ChatService, MetadataGateway, ObjectStore, PagingService, ParameterStore
from alert_router.routing import resolve_routing
from alert_router.tools.pagerduty_tools import build_event_payload
from alert_router.tools.slack_tools import build_resolved_blocks, build_triggered_blocks

logger = logging.getLogger(__name__)


class RouterState(TypedDict):
    """State object passed between workflow nodes."""
    # Input
    event: AlarmTransitionEvent

    # Decisions
    routing: Optional[RoutingDecision]
    chat_action: Optional[TransitionAction]
    paging_action: Optional[TransitionAction]
    suppressed: bool

    # Enrichment
    samples: Optional[MetricSamples]
    sample_error: str
    evidence_link: Optional[str]

    # Output
    slack_channel_id: Optional[str]
    slack_ts: Optional[str]
    paged: bool


class AlertRouterWorkflow:
    """LangGraph workflow for routing CloudWatch alarms to Slack and PagerDuty."""

    def __init__(
        self,
        config: RouterConfig,
        gateway: MetadataGateway,
        store: ObjectStore,
        chat: ChatService,
        pager: PagingService,
        parameters: ParameterStore,
        evidence: Optional[EvidenceBuilder] = None,
    ):
        """
        Initialize the workflow.

        Args:
            config: Immutable router configuration
            gateway: Alarm tags and metric samples
            store: Chart image storage
            chat: Slack
            pager: PagerDuty
            parameters: Parameter store holding per-service routing keys
            evidence: Evidence builder (default: built from gateway/store/config)
        """
        self.config = config
        self.gateway = gateway
        self.chat = chat
        self.pager = pager
        self.parameters = parameters
        self.evidence = evidence or EvidenceBuilder(gateway, store, config)
        self.graph = self._build_graph()

    def _build_graph(self):
        """Build and compile the LangGraph workflow."""
        workflow = StateGraph(RouterState)

        # Add nodes
        workflow.add_node('inject_tags', self.inject_tags)
        workflow.add_node('resolve_routing', self.resolve_routing)
        workflow.add_node('classify_transition', self.classify_transition)
        workflow.add_node('gather_evidence', self.gather_evidence)
        workflow.add_node('post_to_slack', self.post_to_slack)
        workflow.add_node('submit_to_pagerduty', self.submit_to_pagerduty)

        # Define edges
        workflow.set_entry_point('inject_tags')
        workflow.add_edge('inject_tags', 'resolve_routing')
        workflow.add_edge('resolve_routing', 'classify_transition')
        workflow.add_edge('classify_transition', 'gather_evidence')
        workflow.add_conditional_edges(
            'gather_evidence',
            self._after_evidence,
            {'post_to_slack': 'post_to_slack', END: END},
        )
        workflow.add_conditional_edges(
            'post_to_slack',
            self._after_slack,
            {'submit_to_pagerduty': 'submit_to_pagerduty', END: END},
        )
        workflow.add_edge('submit_to_pagerduty', END)

        return workflow.compile()

    def inject_tags(self, state: RouterState) -> RouterState:
        """
        Node 1: Attach the alarm's tags to the event.

        Tags drive both routing and suppression, so failure here aborts the event.
        """
        event = state['event']
        try:
            tags = self.gateway.get_tags(event.alarm_arn)
        except TagLookupError:
            raise
        except Exception as e:
            raise TagLookupError(f'Error injecting tags for {event.alarm_arn}: {e}') from e

        logger.info(f'Tags for {event.alarm_name}: {tags}')
        state['event'] = event.with_tags(tags)
        return state

    def resolve_routing(self, state: RouterState) -> RouterState:
        """Node 2: Resolve the Slack channel and PagerDuty routing key."""
        state['routing'] = resolve_routing(state['event'].tags, self.config, self.parameters)
        return state

    def classify_transition(self, state: RouterState) -> RouterState:
        """
        Node 3: Classify the transition.

        Suppression only gates PagerDuty, so Slack uses the unsuppressed action.
        """
        event = state['event']
        suppressed = is_paging_suppressed(event.tags)

        state['suppressed'] = suppressed
        state['chat_action'] = classify(event.previous_state, event.current_state, False)
        state['paging_action'] = classify(event.previous_state, event.current_state, suppressed)

        logger.info(
            f'{event.alarm_name}: {event.previous_state} -> {event.current_state}, '
            f'slack action: {state["chat_action"].value}, pagerduty action: {state["paging_action"].value}'
        )
        return state

    def gather_evidence(self, state: RouterState) -> RouterState:
        """Node 4: Fetch samples and publish the chart (never fails)."""
        fetch = self.evidence.collect_samples(state['event'])
        state['samples'] = fetch.samples
        state['sample_error'] = fetch.error
        state['evidence_link'] = self.evidence.publish_chart(fetch.samples)
        return state

    def _after_evidence(self, state: RouterState) -> str:
        if state['chat_action'] == TransitionAction.IGNORE:
            logger.info(f'Ignoring alarm {state["event"].alarm_name} (action = {state["chat_action"].value})')
            return END
        return 'post_to_slack'

    def post_to_slack(self, state: RouterState) -> RouterState:
        """Node 5: Send the triggered/resolved message."""
        event = state['event']
        channel = state['routing'].channel

        if state['chat_action'] == TransitionAction.RESOLVE:
            logger.info('Sending a message to slack (resolved)')
            blocks = build_resolved_blocks(
                event, state['samples'], state['evidence_link'], state['sample_error']
            )
            text = f'Resolved: {event.alarm_name}'
        else:
            logger.info('Sending a message to slack (triggered)')
            blocks = build_triggered_blocks(
                event, state['samples'], state['evidence_link'], state['sample_error']
            )
            text = f'Triggered: {event.alarm_name}'

        channel_id, ts = self.chat.send_blocks(channel, blocks, text)
        logger.info(f'Slack message details: channelID: {channel_id}, timestamp: {ts}')

        state['slack_channel_id'] = channel_id
        state['slack_ts'] = ts
        return state

    def _after_slack(self, state: RouterState) -> str:
        if state['suppressed']:
            logger.warning(
                f"'alerts:suppress_pagerduty' tag is set to 'true' for {state['event'].alarm_name}. "
                'Not sending event to PagerDuty.'
            )
            return END
        if state['paging_action'] == TransitionAction.IGNORE:
            return END
        return 'submit_to_pagerduty'

    def submit_to_pagerduty(self, state: RouterState) -> RouterState:
        """Node 6: Submit the event to PagerDuty."""
        event = state['event']
        action = state['paging_action']

        self.pager.submit_event(
            state['routing'].routing_key,
            action.value,
            event.alarm_arn,
            build_event_payload(event),
        )
        state['paged'] = True
        return state

    def run(self, event: AlarmTransitionEvent) -> Dict[str, Any]:
        """
        Route one alarm event.

        Args:
            event: Parsed alarm state-change event (tags are injected here)

        Returns:
            Final state with routing decision, actions and Slack message ref

        Raises:
            TagLookupError, RoutingKeyLookupError, ChatSendError, PagingSubmitError
        """
        initial_state: RouterState = {
            'event': event,
            'routing': None,
            'chat_action': None,
            'paging_action': None,
            'suppressed': False,
            'samples': None,
            'sample_error': '',
            'evidence_link': None,
            'slack_channel_id': None,
            'slack_ts': None,
            'paged': False,
        }

        return self.graph.invoke(initial_state)
