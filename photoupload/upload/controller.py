"""Interaction state machine for a single photo upload area.

`transition` is the whole state table as a pure function. The controller
feeds it events, runs the upload pipeline, and owns the revocable handle of
the preview currently on display.
"""

from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass
from enum import Enum

from photoupload.imaging.resources import ResourceHandle, ResourceRegistry
from photoupload.logging.logger import Log
from photoupload.upload.models import CandidateFile, ErrorKind, Invalid
from photoupload.upload.processor import UploadProcessor

ImageSelectCallback = Callable[[CandidateFile | None, str | None], None]
FilePicker = Callable[[], Awaitable[Sequence[CandidateFile]]]


class InteractionState(str, Enum):
    IDLE = "idle"
    DRAGGING = "dragging"
    LOADING = "loading"
    HAS_PREVIEW = "has_preview"
    ERROR = "error"


@dataclass(frozen=True)
class DragEnter:
    has_files: bool = True


@dataclass(frozen=True)
class DragLeave:
    left_boundary: bool = True


@dataclass(frozen=True)
class Drop:
    file_count: int


@dataclass(frozen=True)
class Activate:
    """Click, Enter/Space or the change action: the file picker opens."""


@dataclass(frozen=True)
class SelectionMade:
    file_count: int


@dataclass(frozen=True)
class Remove:
    pass


@dataclass(frozen=True)
class PipelineSucceeded:
    pass


@dataclass(frozen=True)
class PipelineFailed:
    pass


@dataclass(frozen=True)
class Reset:
    has_preview: bool


Event = (
    DragEnter
    | DragLeave
    | Drop
    | Activate
    | SelectionMade
    | Remove
    | PipelineSucceeded
    | PipelineFailed
    | Reset
)

_RESTING = frozenset(
    {InteractionState.IDLE, InteractionState.HAS_PREVIEW, InteractionState.ERROR}
)


def transition(
    state: InteractionState,
    event: Event,
    *,
    resting: InteractionState = InteractionState.IDLE,
    disabled: bool = False,
) -> InteractionState:
    """Return the state that follows `event`.

    `resting` is the state shown when nothing transient is happening (idle,
    has-preview or error). Drag-leave and empty selections fall back to it.
    Pairs not covered below leave the state unchanged.
    """
    if isinstance(event, Reset):
        return InteractionState.HAS_PREVIEW if event.has_preview else InteractionState.IDLE
    if state is InteractionState.LOADING:
        if isinstance(event, PipelineSucceeded):
            return InteractionState.HAS_PREVIEW
        if isinstance(event, PipelineFailed):
            return InteractionState.ERROR
        if isinstance(event, SelectionMade) and event.file_count == 0:
            return resting
        return state

    if isinstance(event, DragEnter):
        if disabled or not event.has_files or state not in _RESTING:
            return state
        return InteractionState.DRAGGING
    if isinstance(event, DragLeave):
        if state is InteractionState.DRAGGING and event.left_boundary:
            return resting
        return state
    if isinstance(event, Drop):
        if disabled or event.file_count == 0:
            return resting
        return InteractionState.LOADING
    if isinstance(event, Activate):
        if disabled or state not in _RESTING:
            return state
        return InteractionState.LOADING
    if isinstance(event, Remove):
        if disabled or state is InteractionState.DRAGGING:
            return state
        return InteractionState.IDLE
    return state


@dataclass(frozen=True)
class ActivePreview:
    payload: str
    handle: ResourceHandle | None = None


class UploadInteractionController:
    """Drives one upload area: drag and drop, picker, keyboard, removal.

    At most one pipeline runs at a time; attempts made while loading are
    rejected. On success the previous preview handle is released exactly once
    and `on_image_select(file, preview)` is called. Failures only set `error`.
    """

    ACTIVATE_KEYS = frozenset({"Enter", " "})
    REMOVE_KEYS = frozenset({"Delete", "Backspace"})

    def __init__(
        self,
        processor: UploadProcessor,
        registry: ResourceRegistry,
        on_image_select: ImageSelectCallback,
        file_picker: FilePicker | None = None,
        *,
        current_preview: str | None = None,
        label: str = "Photo Upload",
        required: bool = False,
        disabled: bool = False,
    ) -> None:
        self._processor = processor
        self._registry = registry
        self._on_image_select = on_image_select
        self._file_picker = file_picker
        self.label = label
        self.required = required
        self.disabled = disabled

        self._preview = ActivePreview(current_preview) if current_preview else None
        self._error: Invalid | None = None
        self._disposed = False
        self._generation = 0
        self._state = (
            InteractionState.HAS_PREVIEW if self._preview else InteractionState.IDLE
        )

    @property
    def state(self) -> InteractionState:
        return self._state

    @property
    def error(self) -> str | None:
        return self._error.reason if self._error else None

    @property
    def error_kind(self) -> ErrorKind | None:
        return self._error.kind if self._error else None

    @property
    def preview(self) -> str | None:
        return self._preview.payload if self._preview else None

    @property
    def preview_handle(self) -> ResourceHandle | None:
        return self._preview.handle if self._preview else None

    @property
    def is_dragging(self) -> bool:
        return self._state is InteractionState.DRAGGING

    @property
    def is_loading(self) -> bool:
        return self._state is InteractionState.LOADING

    @property
    def is_satisfied(self) -> bool:
        """False when the area is required and holds no accepted photo."""
        return not self.required or self._preview is not None

    def drag_enter(self, has_files: bool = True) -> InteractionState:
        return self._apply(DragEnter(has_files))

    def drag_leave(self, left_boundary: bool = True) -> InteractionState:
        """Handle a leave event; `left_boundary` is False when moving onto a child."""
        return self._apply(DragLeave(left_boundary))

    async def drop(self, files: Sequence[CandidateFile]) -> bool:
        """Start the pipeline on the first dropped file. Extra files are ignored."""
        if self._busy("drop"):
            return False
        if self._apply(Drop(len(files))) is not InteractionState.LOADING:
            return False
        if len(files) > 1:
            Log.debug(f"Ignoring {len(files) - 1} extra dropped file(s)")
        await self._run(files[0])
        return True

    async def activate(self) -> bool:
        """Click, Enter or Space on an empty area: open the picker."""
        if self._preview is not None:
            return False
        return await self._pick()

    async def change(self) -> bool:
        """Replace the current photo through the picker."""
        if self._preview is None:
            return False
        return await self._pick()

    async def key_down(self, key: str) -> bool:
        if self.disabled:
            return False
        if key in self.ACTIVATE_KEYS and self._preview is None:
            return await self._pick()
        if key in self.REMOVE_KEYS and self._preview is not None:
            return self.remove()
        return False

    def remove(self) -> bool:
        """Drop the current photo and tell the caller with (None, None)."""
        if self._preview is None or self._state is InteractionState.LOADING:
            return False
        if self._apply(Remove()) is not InteractionState.IDLE:
            return False
        self._release_preview()
        self._error = None
        self._on_image_select(None, None)
        return True

    def reset(self, current_preview: str | None = None) -> InteractionState:
        """Replace the preview from outside, e.g. when the form is reloaded.

        A pipeline still running is discarded, as with `dispose`.
        """
        self._generation += 1
        self._release_preview()
        self._error = None
        if current_preview:
            self._preview = ActivePreview(current_preview)
        return self._apply(Reset(has_preview=self._preview is not None))

    def dispose(self) -> None:
        """Release held resources. Pipelines still running are discarded."""
        self._disposed = True
        self._generation += 1
        self._release_preview()

    async def _pick(self) -> bool:
        if self._busy("selection"):
            return False
        if self._file_picker is None:
            Log.warning("No file picker configured")
            return False
        if self._apply(Activate()) is not InteractionState.LOADING:
            return False
        try:
            files = await self._file_picker()
        except Exception:
            self._state = self._resting()
            raise
        self._apply(SelectionMade(len(files)))
        if not files:
            return False
        await self._run(files[0])
        return True

    async def _run(self, file: CandidateFile) -> None:
        self._error = None
        self._generation += 1
        generation = self._generation

        outcome = await self._processor.process(file)
        if self._disposed or generation != self._generation:
            Log.debug(f"Discarding result for '{file.name}' from a stale attempt")
            return

        if isinstance(outcome, Invalid):
            self._fail(outcome)
            return

        result = outcome.payload
        if result.file.data is None:
            raise ValueError(f"Accepted file '{result.file.name}' was not loaded into memory")
        handle = self._registry.acquire(result.file.data)
        self._release_preview()
        self._preview = ActivePreview(result.preview, handle)
        self._apply(PipelineSucceeded())
        self._on_image_select(result.file, result.preview)

    def _fail(self, outcome: Invalid) -> None:
        self._error = outcome
        self._apply(PipelineFailed())

    def _release_preview(self) -> None:
        if self._preview is not None and self._preview.handle is not None:
            self._registry.release(self._preview.handle)
        self._preview = None

    def _busy(self, action: str) -> bool:
        if self._disposed:
            Log.warning(f"Ignoring {action} on a disposed upload area")
            return True
        if self._state is InteractionState.LOADING:
            Log.warning(f"Ignoring {action} while an upload is in progress")
            return True
        return False

    def _resting(self) -> InteractionState:
        if self._error is not None:
            return InteractionState.ERROR
        if self._preview is not None:
            return InteractionState.HAS_PREVIEW
        return InteractionState.IDLE

    def _apply(self, event: Event) -> InteractionState:
        new_state = transition(
            self._state, event, resting=self._resting(), disabled=self.disabled
        )
        if new_state is not self._state:
            Log.debug(f"{self.label}: {self._state.value} -> {new_state.value}")
        self._state = new_state
        return new_state
