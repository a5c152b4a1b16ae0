"""Editing session over one document.

An :class:`EditingSession` exclusively owns a dense ``list[Block]``; list
order is the document order.  Every mutation is index based.  Block ids
exist for correlating asynchronous results (such as uploads) with their
blocks, so they are preserved on reordering and refreshed on
duplication.

A session is single-owner and not synchronised.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator

from blockify.analysis import compute_document_metrics
from blockify.blocks import blocks_to_json, create_empty, duplicate_block
from blockify.config import BlockifyConfig
from blockify.converter.json_normalizer import JsonNormalizer, parse_json_text
from blockify.converter.markdown_serializer import MarkdownSerializer
from blockify.errors import BlockifyValidationError
from blockify.models import Block, BlockType, ExportBundle


class EditingSession:
    """In-memory document with index-based editing operations.

    Parameters
    ----------
    blocks:
        Initial document.  The list is copied.
    config:
        Used by :meth:`export` and :meth:`from_json`.
    """

    def __init__(
        self,
        blocks: Iterable[Block] | None = None,
        config: BlockifyConfig | None = None,
    ) -> None:
        self._config = config or BlockifyConfig()
        self._blocks: list[Block] = list(blocks or [])

    # ------------------------------------------------------------------
    # Read access
    # ------------------------------------------------------------------

    @property
    def blocks(self) -> list[Block]:
        """A shallow copy of the document."""
        return list(self._blocks)

    def __len__(self) -> int:
        return len(self._blocks)

    def __iter__(self) -> Iterator[Block]:
        return iter(list(self._blocks))

    def __getitem__(self, index: int) -> Block:
        return self._blocks[self._check_index(index, "get")]

    def find(self, block_id: str) -> int | None:
        """Return the index of the block with *block_id*, or ``None``."""
        for index, block in enumerate(self._blocks):
            if block.id == block_id:
                return index
        return None

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------

    def add(self, block_type: BlockType | str, after_index: int | None = None) -> Block:
        """Create an empty block and insert it.

        Appended at the end when *after_index* is ``None``; otherwise
        inserted right after that index.
        """
        block = create_empty(block_type)
        if after_index is None:
            self._blocks.append(block)
        else:
            self._check_index(after_index, "add")
            self._blocks.insert(after_index + 1, block)
        return block

    def insert(self, index: int, block: Block) -> None:
        """Insert *block* before *index*; ``index == len(self)`` appends."""
        if not 0 <= index <= len(self._blocks):
            raise self._index_error(index, "insert")
        self._blocks.insert(index, block)

    def update(self, index: int, block: Block) -> None:
        """Replace the block at *index*."""
        self._blocks[self._check_index(index, "update")] = block

    def remove(self, index: int) -> Block:
        """Remove and return the block at *index*."""
        return self._blocks.pop(self._check_index(index, "remove"))

    def move(self, from_index: int, to_index: int) -> None:
        """Move the block at *from_index* so it ends up at *to_index*."""
        self._check_index(from_index, "move")
        self._check_index(to_index, "move")
        block = self._blocks.pop(from_index)
        self._blocks.insert(to_index, block)

    def move_up(self, index: int) -> None:
        """Swap with the previous block; a no-op for the first block."""
        self._check_index(index, "move_up")
        if index > 0:
            self.move(index, index - 1)

    def move_down(self, index: int) -> None:
        """Swap with the next block; a no-op for the last block."""
        self._check_index(index, "move_down")
        if index < len(self._blocks) - 1:
            self.move(index, index + 1)

    def duplicate(self, index: int) -> Block:
        """Insert a deep copy with a fresh id right after *index*."""
        copy = duplicate_block(self._blocks[self._check_index(index, "duplicate")])
        self._blocks.insert(index + 1, copy)
        return copy

    def extend(self, blocks: Iterable[Block]) -> None:
        self._blocks.extend(blocks)

    def replace_all(self, blocks: Iterable[Block]) -> None:
        self._blocks = list(blocks)

    def clear(self) -> None:
        self._blocks = []

    # ------------------------------------------------------------------
    # Import / export
    # ------------------------------------------------------------------

    def to_json(self, indent: int | None = 2) -> str:
        """Serialise the document to a JSON array of block dicts."""
        return blocks_to_json(self._blocks, indent=indent)

    @classmethod
    def from_json(cls, text: str, config: BlockifyConfig | None = None) -> EditingSession:
        """Build a session from a JSON document.

        Typed block arrays (as written by :meth:`to_json`) come back
        unchanged; other shapes go through the loose-JSON normalizer.

        Raises
        ------
        BlockifyJSONDecodeError
            If *text* is not valid JSON.
        """
        result = JsonNormalizer(config).normalize(parse_json_text(text))
        return cls(result.blocks, config)

    def export(self) -> ExportBundle:
        """Return blocks plus the derived Markdown and metrics."""
        blocks = self.blocks
        return ExportBundle(
            blocks=blocks,
            markdown=MarkdownSerializer(self._config).serialize(blocks),
            metrics=compute_document_metrics(blocks, self._config),
        )

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _index_error(self, index: int, operation: str) -> BlockifyValidationError:
        return BlockifyValidationError(
            f"Index {index} out of range for {operation} "
            f"(document has {len(self._blocks)} blocks)",
            context={"index": index, "length": len(self._blocks), "operation": operation},
        )

    def _check_index(self, index: int, operation: str) -> int:
        if isinstance(index, bool) or not isinstance(index, int):
            raise self._index_error(index, operation)
        if not 0 <= index < len(self._blocks):
            raise self._index_error(index, operation)
        return index
