"""Republishing rule synchronization against the media-control panel.

`activate` fans out one task per enabled destination. Each task returns a
`Configured` or `ManualRequired` outcome instead of raising, so a failing
destination never aborts the others and the remote being down turns into
instructions an operator can apply by hand.
"""

import asyncio
from dataclasses import dataclass

from loguru import logger

from relaycast.schemas import RepublishingStatus
from relaycast.services.integrations.media_control import (
    AddRuleParams,
    ConfigurationError,
    MediaControlClient,
    MediaControlError,
    RemoteRejectionError,
    RemoveRuleParams,
    RepublishingRule,
    extract_rule_id,
)
from relaycast.shared.api.utils import mask_secret

from .stream_models import Destination, LiveStreamRecord, ManualConfigDetails, RepublishingResult

RuleKey = tuple[str | None, str | None, str | None, str | None]


@dataclass(frozen=True)
class Configured:
    rule_id: str | None
    message: str = "Republishing rule configured"


@dataclass(frozen=True)
class ManualRequired:
    reason: str
    message: str


SyncOutcome = Configured | ManualRequired


def rule_params(stream: LiveStreamRecord, destination: Destination) -> AddRuleParams:
    return AddRuleParams(
        src_app=stream.source_app,
        src_stream=stream.source_stream,
        dest_addr=destination.destination_url,
        dest_port=destination.destination_port,
        dest_app=destination.destination_app,
        dest_stream=destination.destination_stream,
        enabled=True,
    )


def to_result(
    stream: LiveStreamRecord,
    destination: Destination,
    outcome: SyncOutcome,
) -> RepublishingResult:
    if isinstance(outcome, Configured):
        return RepublishingResult(
            destination=destination.destination_name,
            destination_id=destination.destination_id,
            status=RepublishingStatus.CONFIGURED,
            message=outcome.message,
            rule_id=outcome.rule_id,
        )

    return RepublishingResult(
        destination=destination.destination_name,
        destination_id=destination.destination_id,
        status=RepublishingStatus.MANUAL_REQUIRED,
        message=outcome.message,
        reason=outcome.reason,
        details=ManualConfigDetails(
            source_app=stream.source_app,
            source_stream=stream.source_stream,
            dest_addr=destination.destination_url,
            dest_port=destination.destination_port,
            dest_app=destination.destination_app,
            dest_stream=destination.destination_stream,
        ),
    )


class RepublishingCoordinator:
    """Reconciles a stream's destinations with the panel's rule table.

    Rules are identified by `(src_app, src_stream, dest_app, dest_stream)`;
    a destination whose rule already exists is reported as configured without
    a second add, so repeated activation does not fail or duplicate rules.
    """

    def __init__(self, client: MediaControlClient, timeout_seconds: float | None = None):
        self.client = client
        self.timeout_seconds = timeout_seconds or client.settings.timeout_seconds

    async def activate(self, stream: LiveStreamRecord) -> list[RepublishingResult]:
        destinations = stream.enabled_destinations
        if not destinations:
            return []

        if not self.client.is_configured:
            logger.warning(
                f"Media control not configured, {len(destinations)} destination(s) of stream "
                f"{stream.stream_id} need manual setup"
            )
            outcome = ManualRequired(
                reason=ConfigurationError.reason,
                message="Media control API is not configured, add the rule manually",
            )
            return [to_result(stream, d, outcome) for d in destinations]

        existing, failure = await self._existing_rules()
        if failure is not None:
            # Panel unreachable: every add would fail the same way
            return [to_result(stream, d, failure) for d in destinations]

        outcomes = await asyncio.gather(
            *(self._add_rule(stream, d, existing) for d in destinations)
        )
        results = [to_result(stream, d, o) for d, o in zip(destinations, outcomes)]

        configured = sum(1 for r in results if r.status == RepublishingStatus.CONFIGURED)
        logger.info(
            f"Republishing for stream {stream.stream_id}: "
            f"{configured}/{len(results)} configured, {len(results) - configured} manual"
        )
        return results

    async def deactivate(self, stream: LiveStreamRecord) -> list[str]:
        """Best-effort removal of the stream's rules, retired destinations included.

        Returns the ids of destinations whose rule was removed. Failures are
        logged and never raised.
        """
        targets = [
            d for d in [*stream.destinations, *stream.retired_destinations] if d.has_remote_rule
        ]
        if not targets:
            return []

        if not self.client.is_configured:
            logger.warning(
                f"Media control not configured, rules of stream {stream.stream_id} "
                "must be removed manually"
            )
            return []

        existing: dict[RuleKey, RepublishingRule] = {}
        if any(not d.rule_id for d in targets):
            existing, failure = await self._existing_rules()
            if failure is not None:
                logger.warning(
                    f"Cannot look up rules of stream {stream.stream_id}: {failure.message}"
                )

        removed = await asyncio.gather(
            *(self._remove_rule(stream, d, existing) for d in targets)
        )
        cleared = [d.destination_id for d, ok in zip(targets, removed) if ok]
        logger.info(
            f"Removed {len(cleared)}/{len(targets)} republishing rule(s) of stream {stream.stream_id}"
        )
        return cleared

    async def _existing_rules(self) -> tuple[dict[RuleKey, RepublishingRule], ManualRequired | None]:
        """Current rule table keyed by rule tuple.

        A rejected listing is not fatal (adds are still attempted); any other
        failure is returned as the outcome every destination would get.
        """
        try:
            rules = await asyncio.wait_for(
                self.client.list_republishing_rules(),
                timeout=self.timeout_seconds,
            )
        except asyncio.TimeoutError:
            logger.warning("Listing republishing rules timed out")
            return {}, ManualRequired(reason="unreachable", message="Media control API timed out")
        except RemoteRejectionError as e:
            logger.warning(f"Listing republishing rules rejected: {e}")
            return {}, None
        except MediaControlError as e:
            logger.warning(f"Listing republishing rules failed: {e}")
            return {}, ManualRequired(reason=e.reason, message=str(e))

        return {rule.rule_key: rule for rule in rules}, None

    async def _add_rule(
        self,
        stream: LiveStreamRecord,
        destination: Destination,
        existing: dict[RuleKey, RepublishingRule],
    ) -> SyncOutcome:
        params = rule_params(stream, destination)
        label = (
            f"{destination.destination_name} "
            f"({params.dest_addr}/{params.dest_app}/{mask_secret(params.dest_stream)})"
        )

        rule = existing.get(params.rule_key)
        if rule is not None:
            logger.debug(f"Rule for {label} already present: {rule.rule_id}")
            return Configured(rule_id=rule.rule_id, message="Republishing rule already present")

        try:
            response = await asyncio.wait_for(
                self.client.add_republishing_rule(params),
                timeout=self.timeout_seconds,
            )
        except asyncio.TimeoutError:
            logger.warning(f"Adding rule for {label} timed out")
            return ManualRequired(reason="unreachable", message="Media control API timed out")
        except MediaControlError as e:
            logger.warning(f"Adding rule for {label} failed: {e}")
            return ManualRequired(reason=e.reason, message=str(e))

        return Configured(rule_id=extract_rule_id(response))

    async def _remove_rule(
        self,
        stream: LiveStreamRecord,
        destination: Destination,
        existing: dict[RuleKey, RepublishingRule],
    ) -> bool:
        rule_id = destination.rule_id
        if not rule_id:
            rule = existing.get(rule_params(stream, destination).rule_key)
            rule_id = rule.rule_id if rule else None
        if not rule_id:
            logger.warning(
                f"No rule id known for destination {destination.destination_id} "
                f"of stream {stream.stream_id}, skipping removal"
            )
            return False

        try:
            await asyncio.wait_for(
                self.client.remove_republishing_rule(RemoveRuleParams(rule_id=rule_id)),
                timeout=self.timeout_seconds,
            )
        except asyncio.TimeoutError:
            logger.warning(f"Removing rule {rule_id} timed out")
            return False
        except MediaControlError as e:
            logger.warning(f"Removing rule {rule_id} failed: {e}")
            return False
        return True
