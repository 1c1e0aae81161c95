from __future__ import annotations

from prometheus_client import CollectorRegistry, Counter

registry = CollectorRegistry()
ACTIONS_DISPATCHED = Counter("hubsync_actions_dispatched", "Actions handed to the analytics sink", registry=registry)
SINK_FAILURES = Counter("hubsync_sink_failures", "Batches the sink failed to accept", registry=registry)
REMOTE_RETRIES = Counter("hubsync_remote_retries", "Retried HubSpot calls", ["operation"], registry=registry)
REMOTE_EXHAUSTED = Counter("hubsync_remote_exhausted", "HubSpot calls that ran out of attempts", ["operation"], registry=registry)
STAGE_FAILURES = Counter("hubsync_stage_failures", "Failed account stages", ["stage"], registry=registry)
