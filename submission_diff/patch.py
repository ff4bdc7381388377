"""
Line-based diff of two texts, as structured hunks and as unified patch text.
"""

from __future__ import annotations

import difflib
from typing import Iterable, List

from submission_diff.diff_data import DiffLine, DiffStatus, FileDiff, Hunk, LineTag
from submission_diff.utils import split_lines

DEFAULT_CONTEXT_LINES = 4
DEFAULT_BASELINE_LABEL = 'starter'
DEFAULT_CANDIDATE_LABEL = 'submission'
INDEX_DIVIDER = '=' * 67


def _tag_lines(tag: LineTag, lines: Iterable[str]) -> List[DiffLine]:
    return [
        DiffLine(tag, line[:-1], False) if line.endswith('\n') else DiffLine(tag, line, True)
        for line in lines
    ]


def compute_hunks(baseline_text: str, candidate_text: str,
                  context_lines: int = DEFAULT_CONTEXT_LINES) -> List[Hunk]:
    """
    Computes the change regions between two texts. Unchanged runs of more than twice
    `context_lines` lines separate two hunks.

    :param baseline_text: Starter text.
    :param candidate_text: Submission text.
    :param context_lines: Number of unchanged lines shown around each change.
    :return: Hunks ordered by their start line, empty if the texts are equal.
    """
    if context_lines < 0:
        raise ValueError('context_lines must not be negative.')

    old = split_lines(baseline_text)
    new = split_lines(candidate_text)
    matcher = difflib.SequenceMatcher(None, old, new, autojunk=False)

    hunks = []
    for group in matcher.get_grouped_opcodes(context_lines):
        old_begin, old_end = group[0][1], group[-1][2]
        new_begin, new_end = group[0][3], group[-1][4]

        lines = []
        for tag, i1, i2, j1, j2 in group:
            if tag == 'equal':
                lines += _tag_lines(LineTag.CONTEXT, old[i1:i2])
                continue
            if tag in ('replace', 'delete'):
                lines += _tag_lines(LineTag.REMOVED, old[i1:i2])
            if tag in ('replace', 'insert'):
                lines += _tag_lines(LineTag.ADDED, new[j1:j2])

        hunks.append(Hunk(
            old_start=old_begin + 1,
            old_lines=old_end - old_begin,
            new_start=new_begin + 1,
            new_lines=new_end - new_begin,
            lines=lines,
        ))

    return hunks


def render_patch(path: str, hunks: List[Hunk], baseline_label: str = DEFAULT_BASELINE_LABEL,
                 candidate_label: str = DEFAULT_CANDIDATE_LABEL) -> str:
    """
    Renders hunks as unified patch text with an index header.

    :param path: File path shown in the header.
    :param hunks: Hunks to render.
    :param baseline_label: Label of the starter side.
    :param candidate_label: Label of the submission side.
    :return: Patch text, terminated by a newline.
    """
    lines = [
        f'Index: {path}',
        INDEX_DIVIDER,
        f'--- {path}\t{baseline_label}',
        f'+++ {path}\t{candidate_label}',
    ]
    for hunk in hunks:
        lines.append(hunk.header)
        lines += hunk.rendered_lines()

    return '\n'.join(lines) + '\n'


def classify_status(baseline_text: str, candidate_text: str) -> DiffStatus:
    """
    Classifies a file difference. A file without content on one side counts as absent there.
    """
    if not baseline_text and candidate_text:
        return DiffStatus.ADDED
    if baseline_text and not candidate_text:
        return DiffStatus.REMOVED
    return DiffStatus.MODIFIED


def diff_files(path: str, baseline_text: str, candidate_text: str,
               baseline_label: str = DEFAULT_BASELINE_LABEL,
               candidate_label: str = DEFAULT_CANDIDATE_LABEL,
               context_lines: int = DEFAULT_CONTEXT_LINES) -> FileDiff:
    """
    Diffs the starter and submission versions of one file. The patch text is rendered from the
    computed hunks, so both always describe the same changes.

    :param path: File path of both versions.
    :param baseline_text: Starter text, empty if the file is absent.
    :param candidate_text: Submission text, empty if the file is absent.
    :param baseline_label: Label of the starter side in the patch header.
    :param candidate_label: Label of the submission side in the patch header.
    :param context_lines: Number of unchanged lines shown around each change.
    :return: Diff of the file.
    """
    hunks = compute_hunks(baseline_text, candidate_text, context_lines)
    return FileDiff(
        path=path,
        status=classify_status(baseline_text, candidate_text),
        patch=render_patch(path, hunks, baseline_label, candidate_label),
        hunks=hunks,
    )
