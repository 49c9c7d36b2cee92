"""
Best-effort audit logging of access decisions
"""
import asyncio
from typing import Set

from accessgate.utils.logger import Logger
from .models import AuditEntry
from .sinks import AuditSink

audit_logger = Logger(__name__)


class AccessAuditLogger:
    """Appends audit entries to a sink without ever failing the caller.

    In fire-and-forget mode each write runs as a background task so a slow
    sink does not add to authorization latency; `drain` waits for them.
    """

    def __init__(self, sink: AuditSink, fire_and_forget: bool = True):
        self.sink = sink
        self.fire_and_forget = fire_and_forget
        self._pending: Set[asyncio.Task] = set()

    @property
    def pending(self) -> int:
        return len(self._pending)

    async def record(self, entry: AuditEntry) -> None:
        if not self.fire_and_forget:
            await self.write(entry)
            return

        task = asyncio.create_task(self.write(entry))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def write(self, entry: AuditEntry) -> bool:
        try:
            await self.sink.append(entry)
            audit_logger.debug(
                f"Audit entry recorded: {entry.user_id} {entry.resource}:{entry.action} allowed={entry.allowed}"
            )
            return True
        except Exception as e:
            audit_logger.error(
                f"Failed to record audit entry for {entry.user_id} on {entry.resource}:{entry.action}: {e}",
                exc_info=True,
            )
            return False

    async def drain(self) -> None:
        """Wait for every in-flight write to settle"""
        if self._pending:
            await asyncio.gather(*list(self._pending))
