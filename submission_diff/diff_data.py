"""
Data classes representing the diff between a starter file set and a submission.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterator, List

NO_NEWLINE_MARKER = '\\ No newline at end of file'


class DiffStatus(Enum):
    """
    Enumeration that describes how a single file path differs between starter and submission.
    """

    ADDED = 'added'
    REMOVED = 'removed'
    MODIFIED = 'modified'


class LineTag(Enum):
    """
    Classification of a single line inside a hunk.
    """

    CONTEXT = 'context'
    ADDED = 'added'
    REMOVED = 'removed'

    @property
    def marker(self) -> str:
        """
        :return: Unified diff marker character for this tag.
        """
        return {LineTag.CONTEXT: ' ', LineTag.ADDED: '+', LineTag.REMOVED: '-'}[self]


@dataclass(frozen=True)
class DiffLine:
    """
    One line of a hunk. The text never contains the line terminator; `missing_newline` is set for
    the final line of a side that does not end with a newline.
    """
    tag: LineTag
    text: str
    missing_newline: bool = False

    def rendered(self) -> str:
        return self.tag.marker + self.text

    def source(self) -> str:
        """
        :return: The line as it appears in its source text, including the terminator.
        """
        return self.text if self.missing_newline else self.text + '\n'


@dataclass
class Hunk:
    """
    A contiguous change region. Start lines are 1-indexed, also for zero-length ranges, which
    start at the position of the change. The unified diff header shows the preceding line for them.
    """
    old_start: int
    old_lines: int
    new_start: int
    new_lines: int
    lines: List[DiffLine] = field(default_factory=list)

    @property
    def header(self) -> str:
        old_start = self.old_start if self.old_lines else self.old_start - 1
        new_start = self.new_start if self.new_lines else self.new_start - 1
        return f'@@ -{old_start},{self.old_lines} +{new_start},{self.new_lines} @@'

    def rendered_lines(self) -> List[str]:
        """
        Renders the lines of this hunk with their markers, followed by the no-newline notice where
        a side ends without a newline.

        :return: List of rendered lines without terminators.
        """
        rendered = []
        for line in self.lines:
            rendered.append(line.rendered())
            if line.missing_newline:
                rendered.append(NO_NEWLINE_MARKER)
        return rendered

    def old_text(self) -> str:
        """
        :return: The starter text covered by this hunk (context and removed lines).
        """
        return ''.join(line.source() for line in self.lines if line.tag != LineTag.ADDED)

    def new_text(self) -> str:
        """
        :return: The submission text covered by this hunk (context and added lines).
        """
        return ''.join(line.source() for line in self.lines if line.tag != LineTag.REMOVED)


@dataclass
class FileDiff:
    """
    Comparison result for a single file path.
    """
    path: str
    status: DiffStatus
    patch: str
    hunks: List[Hunk]

    def line_counts(self) -> Dict[LineTag, int]:
        """
        Counts the tagged lines over all hunks.
        :return: Dict mapping `LineTag` to the number of lines.
        """
        counts = {tag: 0 for tag in LineTag}
        for hunk in self.hunks:
            for line in hunk.lines:
                counts[line.tag] += 1

        return counts


@dataclass
class ComparisonResult:
    """
    This class contains the file diffs of one comparison, in a stable path order. Files with equal
    content are not part of the result.
    """
    records: List[FileDiff] = field(default_factory=list)

    def __iter__(self) -> Iterator[FileDiff]:
        return iter(self.records)

    def __len__(self) -> int:
        return len(self.records)

    def __getitem__(self, index: int) -> FileDiff:
        return self.records[index]

    def paths(self) -> List[str]:
        return [record.path for record in self.records]

    def stats(self) -> Dict[DiffStatus, int]:
        """
        Computes the total number of occurrences per `DiffStatus`.
        :return: Dict mapping `DiffStatus` to the corresponding file counts.
        """
        counts = {status: 0 for status in DiffStatus}
        for record in self.records:
            counts[record.status] += 1

        return counts
