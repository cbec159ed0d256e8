import logging
import unidiff

from app.patch.models import NO_FILE
from app.repositories.commit import PatchChange


def split_patch_set(text: str) -> list[PatchChange]:
    """Splits a multi-file unified diff (e.g. `git diff` output) per file

    Binary files and files without hunks carry no applicable content and are
    skipped.

    Args:
        text (str): unified diff covering any number of files

    Returns:
        list[PatchChange]: one single-file patch per changed text file
    """

    log = logging.getLogger(__name__)

    try:
        patch_set = unidiff.PatchSet(text)
    except unidiff.UnidiffParseError as e:
        raise ValueError(f"Invalid patch set: {str(e)}")

    changes = list[PatchChange]()
    for patched_file in patch_set:
        path = _repository_path(patched_file)

        if patched_file.is_binary_file or len(patched_file) == 0:
            log.warning(f"Skipping {path}: no textual hunks")
            continue

        changes.append(PatchChange(path=path, patch=str(patched_file)))

    return changes


###########
# private #
###########


def _repository_path(patched_file: unidiff.PatchedFile) -> str:
    name = patched_file.target_file
    if name == NO_FILE:
        name = patched_file.source_file

    for prefix in ("a/", "b/"):
        if name.startswith(prefix):
            name = name[len(prefix) :]
            break

    return name if name.startswith("/") else f"/{name}"
