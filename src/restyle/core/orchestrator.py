"""Workflow orchestration for the two generation flows.

Single-shot flow
----------------
style image + source image -> one synthesized image::

    idle -> synthesizing-images -> done | failed

Multi-prompt flow
-----------------
reference image + source image -> three prompts -> three images::

    idle -> deriving-prompts -> synthesizing-images -> done | failed

The three syntheses run concurrently and are joined together: the run is
done only if all three succeed. One failure fails the whole run and clears
every slot, including the ones that succeeded.

Run identity
------------
Each run gets a monotonically increasing id. Only the newest run may
publish; a run that has been superseded (by a new run or by :meth:`clear`)
keeps its in-flight calls but its results never reach subscribers. A
superseded multi-prompt run does not start its synthesis calls.

Everything runs on one event loop and snapshots are immutable, so no
locking is needed.
"""

import asyncio
import logging
from collections.abc import Callable
from dataclasses import replace

from .errors import RestyleError, UnknownError
from .gemini_client import GeminiClient
from .models import (
    EncodedImage,
    Flow,
    RunPhase,
    RunState,
    WorkflowSnapshot,
    empty_slots,
)
from .validation import (
    PROMPT_STUDIO_MISSING_IMAGES,
    STYLE_TRANSFER_MISSING_IMAGES,
    validate_run_inputs,
)

logger = logging.getLogger(__name__)

Subscriber = Callable[[WorkflowSnapshot], None]


class WorkflowOrchestrator:
    """Runs the flows against a :class:`GeminiClient` and publishes snapshots.

    Args:
        client: API client (anything with the GeminiClient coroutine methods)
    """

    def __init__(self, client: GeminiClient):
        self._client = client
        self._snapshot = WorkflowSnapshot()
        self._latest_run_id = 0
        self._subscribers: list[Subscriber] = []

    @property
    def snapshot(self) -> WorkflowSnapshot:
        """Latest published snapshot."""
        return self._snapshot

    @property
    def current_run_id(self) -> int:
        return self._latest_run_id

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """Register a callback invoked with every published snapshot.

        Returns:
            Function that removes the callback again
        """
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def is_current(self, run_id: int) -> bool:
        return run_id == self._latest_run_id

    def clear(self) -> WorkflowSnapshot:
        """Reset to idle. Any run still in flight becomes stale."""
        self._latest_run_id += 1
        logger.info("Clearing results")
        snapshot = WorkflowSnapshot(run_id=self._latest_run_id)
        self._publish(snapshot)
        return snapshot

    async def run_single_shot(
        self, style_image: EncodedImage | None, source_image: EncodedImage | None
    ) -> WorkflowSnapshot:
        """Synthesize one image from a style image and a source image.

        Raises:
            ValidationError: If either image is missing (nothing is published)

        Returns:
            Final snapshot of this run
        """
        style_image, source_image = validate_run_inputs(
            style_image, source_image, STYLE_TRANSFER_MISSING_IMAGES
        )
        snapshot = self._begin("single-shot", RunPhase.SYNTHESIZING_IMAGES)

        try:
            image = await self._client.synthesize_styled_image(style_image, source_image)
        except Exception as e:
            return self._fail(snapshot, e)

        snapshot = replace(snapshot, state=snapshot.state.advance(RunPhase.DONE), image=image)
        self._commit(snapshot)
        return snapshot

    async def run_multi_prompt(
        self, reference_image: EncodedImage | None, source_image: EncodedImage | None
    ) -> WorkflowSnapshot:
        """Derive three prompts and synthesize one image per prompt.

        Raises:
            ValidationError: If either image is missing (nothing is published)

        Returns:
            Final snapshot of this run
        """
        reference_image, source_image = validate_run_inputs(
            reference_image, source_image, PROMPT_STUDIO_MISSING_IMAGES
        )
        snapshot = self._begin("multi-prompt", RunPhase.DERIVING_PROMPTS)

        try:
            prompts = await self._client.derive_prompts(reference_image)
        except Exception as e:
            return self._fail(snapshot, e)

        # Prompts are published before any synthesis starts
        snapshot = replace(
            snapshot,
            slots=tuple(replace(slot, prompt=prompts.get(slot.kind)) for slot in snapshot.slots),
        )
        self._commit(snapshot)
        if not self.is_current(snapshot.run_id):
            return snapshot

        snapshot = replace(snapshot, state=snapshot.state.advance(RunPhase.SYNTHESIZING_IMAGES))
        self._commit(snapshot)

        results = await asyncio.gather(
            *(self._client.synthesize_image(slot.prompt, source_image) for slot in snapshot.slots),
            return_exceptions=True,
        )

        failures = [result for result in results if isinstance(result, BaseException)]
        if failures:
            logger.warning(
                f"Run {snapshot.run_id}: {len(failures)} of {len(results)} image syntheses failed"
            )
            return self._fail(snapshot, failures[0])

        snapshot = replace(
            snapshot,
            state=snapshot.state.advance(RunPhase.DONE),
            slots=tuple(replace(slot, image=image) for slot, image in zip(snapshot.slots, results)),
        )
        self._commit(snapshot)
        return snapshot

    def _begin(self, flow: Flow, phase: RunPhase) -> WorkflowSnapshot:
        self._latest_run_id += 1
        logger.info(f"Starting {flow} run {self._latest_run_id}")
        snapshot = WorkflowSnapshot(
            run_id=self._latest_run_id,
            flow=flow,
            state=RunState().advance(phase),
            slots=empty_slots() if flow == "multi-prompt" else (),
        )
        self._commit(snapshot)
        return snapshot

    def _fail(self, snapshot: WorkflowSnapshot, error: BaseException) -> WorkflowSnapshot:
        if isinstance(error, RestyleError):
            message = str(error)
        else:
            logger.error(f"Unexpected error in run {snapshot.run_id}: {error}", exc_info=error)
            message = str(UnknownError())

        logger.warning(f"Run {snapshot.run_id} failed: {message}")
        failed = replace(
            snapshot,
            state=snapshot.state.advance(RunPhase.FAILED, message),
            slots=empty_slots() if snapshot.flow == "multi-prompt" else (),
            image=None,
        )
        self._commit(failed)
        return failed

    def _commit(self, snapshot: WorkflowSnapshot) -> bool:
        if not self.is_current(snapshot.run_id):
            logger.debug(
                f"Discarding update from stale run {snapshot.run_id} "
                f"(current run is {self._latest_run_id})"
            )
            return False
        self._publish(snapshot)
        return True

    def _publish(self, snapshot: WorkflowSnapshot) -> None:
        self._snapshot = snapshot
        for callback in list(self._subscribers):
            callback(snapshot)
