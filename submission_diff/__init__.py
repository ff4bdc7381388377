"""
Submission diff tool
"""

from .__version__ import (
    __author__,
    __author_email__,
    __copyright__,
    __description__,
    __license__,
    __title__,
    __version__,
)

from .diff_data import (
    DiffStatus,
    LineTag,
    DiffLine,
    Hunk,
    FileDiff,
    ComparisonResult,
)

from .archive_format_handler import (
    DispatchingArchiveHandler,
    ArchiveEntry,
    ArchiveFormatError,
    ArchiveOpenError,
    EntryDecodeError,
    InputTypeError,
)

from .file_comparison import FileHasher

from .extraction import (
    ExtractionRules,
    DEFAULT_RULES,
    FileSet,
    SubmissionTable,
    submitter_id,
    extract_archive,
    group_submissions,
)

from .patch import (
    DEFAULT_CONTEXT_LINES,
    compute_hunks,
    render_patch,
    diff_files,
)

from .comparison import (
    Comparator,
    compare,
    union_paths,
)

from .cli_output import DiffPrinter
