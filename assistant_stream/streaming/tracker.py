from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, List

from ..models.events import BlockDeltaEvent, BlockEndEvent, BlockKind, BlockStartEvent, ProtocolEvent
from ..observability.logging import StreamLogger

logger = StreamLogger("tracker")

Emit = Callable[[ProtocolEvent], None]


class BlockState(str, Enum):
    UNSTARTED = "unstarted"
    STARTED = "started"
    FINISHED = "finished"


@dataclass
class ContentBlock:
    """One addressable span of streamed content.

    State only moves forward: unstarted -> started -> finished.
    """
    id: str
    kind: BlockKind
    state: BlockState = BlockState.UNSTARTED
    accumulated_text: str = ""

    @property
    def started(self) -> bool:
        return self.state is not BlockState.UNSTARTED

    @property
    def finished(self) -> bool:
        return self.state is BlockState.FINISHED

    @property
    def is_open(self) -> bool:
        return self.state is BlockState.STARTED


class DeltaTracker:
    """Turns keyed delta/done signals into well-formed start/delta/end events.

    One tracker handles one content kind. Blocks are kept in first-seen
    order, which is the order ``finish_all`` closes them in.
    """

    def __init__(self, kind: BlockKind, emit: Emit):
        self.kind = kind
        self._emit = emit
        self._blocks: Dict[str, ContentBlock] = {}

    def _ensure(self, block_id: str) -> ContentBlock:
        block = self._blocks.get(block_id)
        if block is None:
            block = ContentBlock(id=block_id, kind=self.kind)
            self._blocks[block_id] = block
        return block

    def write_delta(self, block_id: str, delta: str) -> None:
        if not delta:
            return

        block = self._ensure(block_id)
        if block.finished:
            logger.debug("Dropping delta for finished block", block_id=block_id, kind=self.kind)
            return

        if not block.started:
            self._emit(BlockStartEvent(kind=self.kind, id=block_id))
            block.state = BlockState.STARTED

        self._emit(BlockDeltaEvent(kind=self.kind, id=block_id, delta=delta))
        block.accumulated_text += delta

    def finish(self, block_id: str) -> None:
        block = self._blocks.get(block_id)
        if block is None or not block.is_open:
            return
        self._emit(BlockEndEvent(kind=self.kind, id=block_id))
        block.state = BlockState.FINISHED

    def finish_all(self) -> None:
        for block_id in list(self._blocks):
            self.finish(block_id)

    @property
    def blocks(self) -> List[ContentBlock]:
        return list(self._blocks.values())

    @property
    def text(self) -> str:
        return "".join(block.accumulated_text for block in self._blocks.values())

    def get(self, block_id: str) -> ContentBlock:
        return self._blocks[block_id]
