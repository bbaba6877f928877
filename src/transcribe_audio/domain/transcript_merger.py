"""Core business logic for reassembling per-channel transcripts."""

import logging
from collections.abc import Iterable

from .models import TaggedSegment, TranscriptionSuccess

logger = logging.getLogger(__name__)


class TranscriptMerger:
    """Turns a stream of tagged recognition segments into per-channel transcripts."""

    def merge(self, segments: Iterable[TaggedSegment]) -> TranscriptionSuccess:
        """
        Builds the per-channel transcript mapping for one recognition run.

        Args:
            segments: Recognition segments in backend arrival order.

        Returns:
            TranscriptionSuccess mapping each observed channel tag to its texts.
        """
        segments = list(segments)
        tagged = self.filter_valid(segments)

        dropped = len(segments) - len(tagged)
        if dropped:
            logger.warning(
                "Dropped segments without channel tag or transcript",
                extra={"dropped_count": dropped, "segment_count": len(segments)},
            )

        return TranscriptionSuccess(
            transcripts_by_channel=self.group_by_channel(tagged)
        )

    @staticmethod
    def filter_valid(segments: Iterable[TaggedSegment]) -> list[tuple[int, str]]:
        """Keeps only segments carrying both a channel tag and a transcript."""
        return [
            (segment.channel_tag, segment.text)
            for segment in segments
            if segment.channel_tag is not None and segment.text is not None
        ]

    @staticmethod
    def group_by_channel(tagged: Iterable[tuple[int, str]]) -> dict[int, list[str]]:
        """
        Groups texts by channel tag in a single pass.

        Texts within a channel keep their input order, so channel-interleaved
        input reconstructs into per-channel ordered transcripts.
        """
        grouped: dict[int, list[str]] = {}
        for tag, text in tagged:
            if tag in grouped:
                grouped[tag].append(text)
            else:
                grouped[tag] = [text]
        return grouped
