"""Line bookmarks kept in a plain-text file and kept correct as files are edited.

Layout (all relative to the workspace root):

    linemarks.toml        # optional config
    marks.md              # the bookmark file, the only source of truth

marks.md line types:
    [<name>: ]<path>:<line>     # bookmark; <path> absolute or workspace-relative
    # ...                       # comment
    <!-- ... -->                # comment, may span lines
    anything else               # ignored

Live edits of bookmarked files are folded into pending line shifts by
ChangeTracker and written back in one debounced rewrite through BookmarkStore.
"""

from linemarks.adjust import compute_adjustments, merge_adjustments
from linemarks.config import LinemarksConfig, init_marks_file, load_config
from linemarks.models import Bookmark, EditOutcome, EditResult, NameCheck, NameProblem
from linemarks.parser import (
    find_bookmark_file_line,
    find_header_end,
    format_entry,
    parse_file,
    rewrite_line_number,
    validate_name,
)
from linemarks.store import BookmarkStore
from linemarks.tracker import ChangeTracker

__all__ = [
    "Bookmark",
    "BookmarkStore",
    "ChangeTracker",
    "EditOutcome",
    "EditResult",
    "LinemarksConfig",
    "NameCheck",
    "NameProblem",
    "compute_adjustments",
    "find_bookmark_file_line",
    "find_header_end",
    "format_entry",
    "init_marks_file",
    "load_config",
    "merge_adjustments",
    "parse_file",
    "rewrite_line_number",
    "validate_name",
]
