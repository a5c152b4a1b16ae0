"""Layout pairing advisor.

Finds image blocks sitting directly next to a paragraph or heading and
proposes merging each pair into one side-by-side MediaText block.  The
caller decides per candidate; declined candidates and every other block
pass through unchanged.

Usage::

    candidates = find_image_text_pairs(blocks)
    choices = {0: LayoutChoice.MEDIA_LEFT}
    blocks = apply_layout_choices(blocks, candidates, choices)
"""

from __future__ import annotations

from collections.abc import Mapping

from blockify.config import BlockifyConfig
from blockify.errors import BlockifyValidationError
from blockify.models import (
    Block,
    BlockType,
    HeadingBlock,
    ImageBlock,
    LayoutCandidate,
    LayoutChoice,
    MediaPosition,
    MediaTextBlock,
    ParagraphBlock,
    VerticalAlign,
)

_TEXT_TYPES = frozenset({BlockType.PARAGRAPH, BlockType.HEADING})

_POSITIONS: dict[LayoutChoice, MediaPosition] = {
    LayoutChoice.MEDIA_LEFT: MediaPosition.LEFT,
    LayoutChoice.MEDIA_RIGHT: MediaPosition.RIGHT,
}


def _check_candidate(blocks: list[Block], candidate: LayoutCandidate) -> None:
    n = len(blocks)
    ok = (
        0 <= candidate.image_index < n
        and 0 <= candidate.text_index < n
        and abs(candidate.image_index - candidate.text_index) == 1
        and blocks[candidate.image_index].type == BlockType.IMAGE
        and blocks[candidate.text_index].type in _TEXT_TYPES
    )
    if not ok:
        raise BlockifyValidationError(
            "Layout candidate does not match the document",
            context={
                "image_index": candidate.image_index,
                "text_index": candidate.text_index,
                "length": n,
            },
        )


def find_image_text_pairs(blocks: list[Block]) -> list[LayoutCandidate]:
    """Return non-overlapping adjacent image/text pairs, scanning left to right.

    A pair is ``(Image, Paragraph|Heading)`` or ``(Paragraph|Heading, Image)``.
    Once two blocks are paired neither is considered again, so
    ``[Image, Paragraph, Image]`` yields only the first pair.
    """
    candidates: list[LayoutCandidate] = []
    i = 0
    while i < len(blocks) - 1:
        first, second = blocks[i].type, blocks[i + 1].type
        if first == BlockType.IMAGE and second in _TEXT_TYPES:
            candidates.append(LayoutCandidate(image_index=i, text_index=i + 1))
            i += 2
        elif first in _TEXT_TYPES and second == BlockType.IMAGE:
            candidates.append(LayoutCandidate(image_index=i + 1, text_index=i))
            i += 2
        else:
            i += 1
    return candidates


def merge_pair(
    image: ImageBlock,
    text: ParagraphBlock | HeadingBlock,
    position: MediaPosition | str = MediaPosition.LEFT,
    config: BlockifyConfig | None = None,
) -> MediaTextBlock:
    """Build the MediaText block replacing *image* and *text*.

    A heading supplies the ``title``; a paragraph supplies the ``text``.
    """
    config = config or BlockifyConfig()
    is_heading = text.type == BlockType.HEADING
    return MediaTextBlock(
        image_url=image.url,
        image_alt=image.alt,
        image_caption=image.caption,
        image_link=image.link,
        title=text.text if is_heading else None,
        text="" if is_heading else text.text,
        media_position=MediaPosition(position),
        media_width=config.media_text_width,
        vertical_align=VerticalAlign.CENTER,
    )


def apply_layout_choices(
    blocks: list[Block],
    candidates: list[LayoutCandidate],
    choices: Mapping[int, LayoutChoice | str] | None = None,
    config: BlockifyConfig | None = None,
) -> list[Block]:
    """Return a new document with the accepted candidates merged.

    Parameters
    ----------
    blocks:
        The document the candidates were computed on.
    candidates:
        Output of :func:`find_image_text_pairs` for *blocks*.
    choices:
        Maps a candidate's position in *candidates* to a
        :class:`LayoutChoice`.  Missing positions mean ``SEPARATE``.
    config:
        Supplies ``media_text_width``.

    Returns
    -------
    list[Block]
        A new list; *blocks* is not modified.  Each merged pair is
        replaced by one MediaText block at the position of the pair's
        first block.

    Raises
    ------
    BlockifyValidationError
        If an accepted candidate no longer matches *blocks*, or shares a
        block with an earlier accepted candidate.
    """
    choices = choices or {}
    merged_at: dict[int, MediaTextBlock] = {}
    consumed: set[int] = set()

    for position, candidate in enumerate(candidates):
        choice = LayoutChoice(choices.get(position, LayoutChoice.SEPARATE))
        if choice == LayoutChoice.SEPARATE:
            continue
        _check_candidate(blocks, candidate)
        if candidate.image_index in consumed or candidate.text_index in consumed:
            raise BlockifyValidationError(
                "Layout candidates overlap",
                context={
                    "position": position,
                    "image_index": candidate.image_index,
                    "text_index": candidate.text_index,
                },
            )
        merged_at[candidate.first_index] = merge_pair(
            blocks[candidate.image_index],
            blocks[candidate.text_index],
            _POSITIONS[choice],
            config,
        )
        consumed.update((candidate.image_index, candidate.text_index))

    result: list[Block] = []
    for index, block in enumerate(blocks):
        if index in merged_at:
            result.append(merged_at[index])
        elif index not in consumed:
            result.append(block)
    return result
