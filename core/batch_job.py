# core/batch_job.py
import asyncio
from typing import Awaitable, Callable, Optional, Sequence
from core.entities import ItemFailure, ItemResult, JobProgress, JobState, WorkItem
from util.errors import ConflictError
from util.timing import timed
import logging

logger = logging.getLogger(__name__)

ItemOperation = Callable[[WorkItem], Awaitable[ItemResult]]
SuccessCallback = Callable[[int, str], Awaitable[None]]
Sleeper = Callable[[float], Awaitable[None]]

DEFAULT_THROTTLE_MS = 4000


class BatchJobController:
    """
    Runs one batch at a time over a list of work items, strictly in order.

    Flow:
    - launch()/start_run() reset the state and the stop flag, then walk the items.
    - Each item's operation is awaited; failures are recorded and the run moves on.
    - A fixed throttle separates consecutive items.
    - request_stop() is checked only between items; the in-flight item finishes.
    - get_progress() returns a frozen snapshot, safe to hand to any reader.

    All mutation happens on one event loop in synchronous steps between awaits,
    so readers never observe a half-updated state.
    """

    def __init__(
        self,
        throttle_ms: int = DEFAULT_THROTTLE_MS,
        sleep: Sleeper = asyncio.sleep,
    ) -> None:
        self._throttle_s = max(0, throttle_ms) / 1000.0
        self._sleep = sleep
        self._state = JobState()
        self._stop_requested = False
        self._task: Optional[asyncio.Task] = None

    # ---------------- Public API ----------------

    @property
    def is_running(self) -> bool:
        return self._state.is_running

    async def start_run(
        self,
        items: Sequence[WorkItem],
        operation: ItemOperation,
        on_item_success: SuccessCallback,
    ) -> None:
        """
        Run the batch to completion (or until stopped) in the caller's task.
        Raises ConflictError if a run is already active.
        """
        batch = self._begin(items)
        await self._run(batch, operation, on_item_success)

    def launch(
        self,
        items: Sequence[WorkItem],
        operation: ItemOperation,
        on_item_success: SuccessCallback,
    ) -> asyncio.Task:
        """
        Start a run as a detached task and return immediately.
        The conflict check and state reset happen before this returns.
        """
        batch = self._begin(items)
        task = asyncio.create_task(
            self._run(batch, operation, on_item_success), name="batch-image-job"
        )
        self._task = task
        return task

    def get_progress(self) -> JobProgress:
        return JobProgress.of(self._state)

    def request_stop(self) -> None:
        if not self._stop_requested:
            logger.info("batch.stop.requested running=%s", self._state.is_running)
        self._stop_requested = True

    async def wait_idle(self) -> None:
        """Wait for the launched run, if any, to finish."""
        task = self._task
        if task is not None and not task.done():
            await asyncio.shield(task)

    # ---------------- Run loop ----------------

    def _begin(self, items: Sequence[WorkItem]) -> list[WorkItem]:
        if self._state.is_running:
            logger.warning(
                "batch.start.conflict current=%d total=%d",
                self._state.current,
                self._state.total,
            )
            raise ConflictError("a run is already in progress")
        batch = list(items)
        self._stop_requested = False
        self._state = JobState(total=len(batch), is_running=True)
        logger.info("batch.start total=%d throttle_s=%.1f", len(batch), self._throttle_s)
        return batch

    async def _run(
        self,
        batch: list[WorkItem],
        operation: ItemOperation,
        on_item_success: SuccessCallback,
    ) -> None:
        state = self._state
        last = len(batch) - 1
        try:
            with timed(logger, "batch.run", total=len(batch)):
                for index, item in enumerate(batch):
                    if self._stop_requested:
                        logger.info(
                            "batch.stopped processed=%d total=%d", index, len(batch)
                        )
                        break

                    # current and label move together, before the first await
                    state.current = index + 1
                    state.current_item_label = item.label

                    await self._process(state, item, operation, on_item_success)

                    if index < last and not self._stop_requested:
                        await self._sleep(self._throttle_s)
        finally:
            state.is_running = False
            state.current_item_label = ""
            logger.info(
                "batch.finish completed=%d failed=%d total=%d",
                state.completed_count,
                state.failed_count,
                state.total,
            )

    async def _process(
        self,
        state: JobState,
        item: WorkItem,
        operation: ItemOperation,
        on_item_success: SuccessCallback,
    ) -> None:
        try:
            result = await operation(item)
            if result.success:
                await on_item_success(item.id, result.value or "")
                state.completed_count += 1
                logger.info("batch.item.ok id=%s pos=%d", item.id, state.current)
                return
            message = result.error or "Unknown error"
        except Exception as e:
            logger.error("batch.item.error id=%s err=%s", item.id, type(e).__name__)
            message = str(e) or type(e).__name__

        state.failed_count += 1
        state.failures.append(
            ItemFailure(item_id=item.id, label=item.label, error_message=message)
        )
        logger.warning("batch.item.failed id=%s reason=%s", item.id, message)
