"""Live stream domain service - lifecycle of logical streams."""

from loguru import logger

from relaycast.app_config import AppEnvironConfig, get_app_environ_config
from relaycast.schemas import LiveStreamStatus, RepublishingStatus
from relaycast.services.integrations.media_control import (
    MediaControlClient,
    MediaControlError,
    MediaControlSettings,
)
from relaycast.shared.domain.entity_change import utc_now
from relaycast.utils.app_errors import AppErrorCode, NotFoundError

from ...utils.idgen import new_stream_id
from ..repositories import (
    BeanieLiveStreamRepository,
    BeanieStreamAppRepository,
    BeanieStreamKeyRepository,
    LiveStreamRepository,
    StreamAppRepository,
    StreamKeyRepository,
)
from ..stream_app.stream_identity import StreamIdentityRegistry
from ._locks import StreamLockRegistry
from ._republishing import RepublishingCoordinator
from .stream_models import (
    ActiveSessionsResponse,
    Destination,
    IngestStatusResponse,
    LiveStreamCreateParams,
    LiveStreamRecord,
    LiveStreamStartResponse,
    LiveStreamUpdateParams,
    LiveStreamUpdateResponse,
    RepublishingResult,
    RtmpInfoResponse,
)
from .stream_state_machine import StreamStateMachine


def apply_results(stream: LiveStreamRecord, results: list[RepublishingResult]) -> None:
    """Record per-destination sync outcomes on the stream."""
    by_id = {r.destination_id: r for r in results}
    for destination in stream.destinations:
        result = by_id.get(destination.destination_id)
        if result is None:
            continue
        destination.sync_status = result.status
        if result.status == RepublishingStatus.CONFIGURED:
            destination.rule_id = result.rule_id
            destination.last_error = None
        else:
            destination.last_error = result.message


def clear_rules(stream: LiveStreamRecord, destination_ids: list[str]) -> None:
    cleared = set(destination_ids)
    for destination in stream.destinations:
        if destination.destination_id in cleared:
            destination.rule_id = None
            destination.sync_status = None
            destination.last_error = None
    stream.retired_destinations = [
        d for d in stream.retired_destinations if d.destination_id not in cleared
    ]


def replace_destinations(stream: LiveStreamRecord, destinations: list[Destination]) -> None:
    """Swap in new destinations, keeping old ones whose remote rule still exists.

    Kept entries are retried by the next stop, end or delete.
    """
    leftover = [d for d in stream.destinations if d.has_remote_rule]
    if leftover:
        logger.warning(
            f"Stream {stream.stream_id}: {len(leftover)} replaced destination(s) still have "
            "remote rules, removal will be retried"
        )
    stream.retired_destinations = [*stream.retired_destinations, *leftover]
    stream.destinations = destinations


def drop_shared_retired(stream: LiveStreamRecord) -> None:
    """Forget retired entries whose rule was re-adopted by a current destination."""
    active_ids = {d.rule_id for d in stream.destinations if d.rule_id}
    stream.retired_destinations = [
        d for d in stream.retired_destinations if d.rule_id not in active_ids
    ]


class StreamLifecycleManager:
    """Creates, starts, stops and tears down logical live streams.

    Status transitions are validated by `StreamStateMachine` and operations on
    one stream are serialized through a per-stream lock. Remote failures never
    abort a local transition: they come back as `manual_required` results or
    are logged.
    """

    def __init__(
        self,
        streams: LiveStreamRepository | None = None,
        apps: StreamAppRepository | None = None,
        keys: StreamKeyRepository | None = None,
        coordinator: RepublishingCoordinator | None = None,
        locks: StreamLockRegistry | None = None,
        cfg: AppEnvironConfig | None = None,
    ):
        cfg = cfg or get_app_environ_config()
        self.streams = streams or BeanieLiveStreamRepository()
        self.apps = apps or BeanieStreamAppRepository()
        self.keys = keys or BeanieStreamKeyRepository()
        self.identity = StreamIdentityRegistry(self.apps, self.keys, self.streams)
        self.coordinator = coordinator or RepublishingCoordinator(
            MediaControlClient(MediaControlSettings.from_app_config(cfg))
        )
        self.locks = locks or StreamLockRegistry()
        self.rtmp_host = cfg.MEDIA_SERVER_HOST
        self.rtmp_port = cfg.MEDIA_SERVER_RTMP_PORT

    # ==================== STREAMS ====================

    async def create_stream(self, params: LiveStreamCreateParams) -> LiveStreamRecord:
        """Create a stream in `inactive` state under an owned (app, key) pair.

        Raises NotFoundError if the app or key is unknown to the caller,
        ConflictError if the app is inactive.
        """
        app, key = await self.identity.resolve_ingest(params.user_id, params.app_id, params.key_id)

        async with self.locks.hold(f"app:{app.app_id}"):
            source_stream = await self.identity.allocate_source_stream(app.app_id, params.title)
            now = utc_now()
            stream = LiveStreamRecord(
                stream_id=new_stream_id(),
                user_id=params.user_id,
                title=params.title,
                description=params.description,
                app_id=app.app_id,
                key_id=key.key_id,
                source_app=app.rtmp_app_path,
                source_stream=source_stream,
                status=LiveStreamStatus.INACTIVE,
                destinations=params.destinations,
                created_at=now,
                updated_at=now,
            )
            await self.streams.insert(stream)

        logger.info(
            f"Created stream {stream.stream_id} ({app.rtmp_app_path}/{source_stream}) "
            f"with {len(stream.destinations)} destination(s)"
        )
        return stream

    async def list_streams(
        self,
        user_id: str,
        status: LiveStreamStatus | None = None,
    ) -> list[LiveStreamRecord]:
        return await self.streams.list_by_user(user_id, status=status)

    async def get_stream(self, stream_id: str, user_id: str) -> LiveStreamRecord:
        """Get a stream owned by `user_id`.

        Missing and foreign streams both raise NotFoundError.
        """
        stream = await self.streams.get(stream_id)
        if stream is None or stream.user_id != user_id:
            raise NotFoundError(f"Stream not found: {stream_id}")
        return stream

    async def update_stream(
        self,
        stream_id: str,
        user_id: str,
        params: LiveStreamUpdateParams,
    ) -> LiveStreamUpdateResponse:
        """Update title, description and destinations.

        The source stream name is kept even when the title changes. Replacing
        the destinations of a live stream removes the old rules and configures
        the new ones.
        """
        async with self.locks.hold(f"stream:{stream_id}"):
            stream = await self.get_stream(stream_id, user_id)
            updates = params.model_dump(exclude_unset=True, exclude={"destinations"})
            for field, value in updates.items():
                setattr(stream, field, value)

            results: list[RepublishingResult] | None = None
            if "destinations" in params.model_fields_set and params.destinations is not None:
                if stream.status == LiveStreamStatus.LIVE:
                    cleared = await self.coordinator.deactivate(stream)
                    clear_rules(stream, cleared)
                    replace_destinations(stream, params.destinations)
                    results = await self.coordinator.activate(stream)
                    apply_results(stream, results)
                    drop_shared_retired(stream)
                else:
                    replace_destinations(stream, params.destinations)

            stream.updated_at = utc_now()
            await self.streams.save(stream)

        logger.debug(f"Updated stream {stream_id}: {sorted(params.model_fields_set)}")
        return LiveStreamUpdateResponse(stream=stream, republishing_results=results)

    async def delete_stream(self, stream_id: str, user_id: str) -> bool:
        """Delete a stream in any state, removing its rules best-effort first."""
        async with self.locks.hold(f"stream:{stream_id}"):
            stream = await self.get_stream(stream_id, user_id)
            await self.coordinator.deactivate(stream)
            deleted = await self.streams.delete(stream_id)

        logger.info(f"Deleted stream {stream_id} (was {stream.status})")
        return deleted

    # ==================== LIFECYCLE ====================

    async def start_stream(self, stream_id: str, user_id: str) -> LiveStreamStartResponse:
        """Move a stream to `live` and configure its republishing rules.

        Starting a stream that is already live re-runs the synchronization
        without a status change. Remote failures are reported per destination
        as `manual_required` and never prevent the transition.
        """
        async with self.locks.hold(f"stream:{stream_id}"):
            stream = await self.get_stream(stream_id, user_id)
            already_live = stream.status == LiveStreamStatus.LIVE
            if not already_live:
                StreamStateMachine.ensure_transition(stream.status, LiveStreamStatus.LIVE)

            results = await self.coordinator.activate(stream)
            apply_results(stream, results)

            now = utc_now()
            if not already_live:
                logger.info(f"Stream {stream_id}: {stream.status} -> {LiveStreamStatus.LIVE}")
                stream.status = LiveStreamStatus.LIVE
                stream.started_at = now
                stream.ended_at = None
                await self.keys.record_usage(stream.key_id, now)
            stream.updated_at = now
            await self.streams.save(stream)

        return LiveStreamStartResponse(stream=stream, republishing_results=results)

    async def stop_stream(self, stream_id: str, user_id: str) -> LiveStreamRecord:
        """Move a live stream back to `inactive` so it can be started again.

        Stopping a stream that is not live succeeds without changes.
        """
        return await self._leave_live(stream_id, user_id, LiveStreamStatus.INACTIVE)

    async def end_stream(self, stream_id: str, user_id: str) -> LiveStreamRecord:
        """Finish a live broadcast (`live -> ended`). Ending an ended stream is a no-op.

        Raises ConflictError for a stream that never went live since its last stop.
        """
        return await self._leave_live(stream_id, user_id, LiveStreamStatus.ENDED)

    async def _leave_live(
        self,
        stream_id: str,
        user_id: str,
        target: LiveStreamStatus,
    ) -> LiveStreamRecord:
        async with self.locks.hold(f"stream:{stream_id}"):
            stream = await self.get_stream(stream_id, user_id)
            if stream.status == target:
                logger.debug(f"Stream {stream_id} already {target}")
                return stream
            if target == LiveStreamStatus.INACTIVE and stream.status != LiveStreamStatus.LIVE:
                logger.debug(f"Stream {stream_id} is {stream.status}, nothing to stop")
                return stream
            StreamStateMachine.ensure_transition(stream.status, target)

            cleared = await self.coordinator.deactivate(stream)
            clear_rules(stream, cleared)

            logger.info(f"Stream {stream_id}: {stream.status} -> {target}")
            now = utc_now()
            stream.status = target
            stream.ended_at = now
            stream.updated_at = now
            await self.streams.save(stream)

        return stream

    # ==================== READ MODELS ====================

    async def get_rtmp_info(self, stream_id: str, user_id: str) -> RtmpInfoResponse:
        """Ingest URL and key an encoder pushes to. Available in every state."""
        stream = await self.get_stream(stream_id, user_id)
        key = await self.keys.get(stream.key_id)
        if key is None:
            raise NotFoundError(
                f"Stream key not found: {stream.key_id}",
                errcode=AppErrorCode.E_STREAM_KEY_NOT_FOUND,
            )

        return RtmpInfoResponse(
            rtmp_url=f"rtmp://{self.rtmp_host}:{self.rtmp_port}/{stream.source_app}",
            stream_key=key.stream_key,
            source_app=stream.source_app,
            source_stream=stream.source_stream,
            republishing=stream.destinations,
        )

    async def get_active_sessions(self, user_id: str) -> ActiveSessionsResponse:
        streams = await self.streams.list_by_user(user_id, status=LiveStreamStatus.LIVE)
        return ActiveSessionsResponse(streams=streams, count=len(streams))

    async def get_ingest_status(self, stream_id: str, user_id: str) -> IngestStatusResponse:
        """Whether the media server currently receives the stream's source feed.

        When the panel cannot be asked, `is_ingesting` is None and `error`
        says why.
        """
        stream = await self.get_stream(stream_id, user_id)
        response = IngestStatusResponse(
            stream_id=stream.stream_id,
            source_stream=stream.source_stream,
            status=stream.status,
        )
        try:
            response.is_ingesting = await self.coordinator.client.is_stream_active(
                stream.source_stream
            )
        except MediaControlError as e:
            logger.warning(f"Ingest status of stream {stream_id} unavailable: {e}")
            response.error = str(e)
        return response
