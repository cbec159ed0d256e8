import logging

from app.errors import MalformedPatchError, PatchConflictError
from app.patch.differ import split_lines
from app.patch.models import DiffDocument


def apply_patch(base_text: str, document: DiffDocument) -> str:
    """Applies a parsed patch to the content it was computed against

    Every hunk must match the base exactly at the position its header
    declares, there is no fuzzy matching and no partial application.

    Args:
        base_text (str): current content of the file, empty if it does not exist
        document (DiffDocument): parsed patch

    Raises:
        PatchConflictError: base content differs from the patch context
        MalformedPatchError: hunks overlap or are out of order

    Returns:
        str: new content, empty when the patch deletes the file
    """

    log = logging.getLogger(__name__)

    base = split_lines(base_text)

    if document.is_new_file() and len(base) > 0:
        raise PatchConflictError(
            f"Patch creates {document.new_label} but the file already has content"
        )

    result = list[str]()
    cursor = 0
    offset = 0

    for idx, hunk in enumerate(document.hunks):
        position = hunk.old_position()
        if position < cursor:
            raise MalformedPatchError("Hunks overlap or are out of order", idx)

        expected = [line.raw() for line in hunk.old_lines()]
        actual = base[position : position + len(expected)]

        if position > len(base) or actual != expected:
            raise PatchConflictError(
                "Base content does not match expected patch context",
                hunk_index=idx,
                base_line=position + 1,
                expected=expected,
            )

        if hunk.new_start - hunk.old_start != offset:
            log.debug(
                f"hunk {idx} declares offset {hunk.new_start - hunk.old_start}, tracked {offset}"
            )

        result.extend(base[cursor:position])
        result.extend(line.raw() for line in hunk.new_lines())

        cursor = position + len(expected)
        offset += hunk.new_line_count - hunk.old_line_count

    result.extend(base[cursor:])

    if any(not raw.endswith("\n") for raw in result[:-1]):
        raise PatchConflictError(
            "Patch adds lines after a line without a trailing newline"
        )

    if document.is_deletion():
        if result:
            raise PatchConflictError(
                f"Patch deletes {document.old_label} but {len(result)} lines would remain"
            )
        return ""

    return "".join(result)
