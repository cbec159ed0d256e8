import re

from app.errors import MalformedPatchError
from app.patch.models import DiffDocument, Hunk, HunkLine, LineKind

_KINDS: dict[str, LineKind] = {" ": "context", "+": "add", "-": "delete"}


class PatchParser:
    """Parse a single-file unified diff into a structured DiffDocument.

    Purely structural: line counts declared by every hunk header are checked
    against the body, nothing is compared with any file content.
    """

    OLD_FILE_HEADER = re.compile(r"^--- (?P<label>[^\t]*)")
    NEW_FILE_HEADER = re.compile(r"^\+\+\+ (?P<label>[^\t]*)")
    HUNK_HEADER = re.compile(
        r"^@@ -(?P<old_start>\d+)(?:,(?P<old_count>\d+))?"
        r" \+(?P<new_start>\d+)(?:,(?P<new_count>\d+))? @@"
    )

    def __init__(self, text: str) -> None:
        self._lines = text.split("\n")
        # trailing empty lines are not part of the patch, " " is a context line
        while self._lines and self._lines[-1] in ("", "\r"):
            self._lines.pop()
        self._pos = 0

    def parse(self) -> DiffDocument:
        old_label, new_label = self._parse_header()

        hunks = list[Hunk]()
        while not self._at_end():
            line = self._lines[self._pos]

            if PatchParser.OLD_FILE_HEADER.match(line):
                raise self._malformed(
                    "Patch describes more than one file", len(hunks)
                )

            match = PatchParser.HUNK_HEADER.match(line)
            if match is None:
                raise self._malformed(f"Unexpected line {line!r}", len(hunks))

            if hunks and _has_eof_marker(hunks[-1]):
                raise self._malformed(
                    "Hunk follows the end of file marker", len(hunks)
                )

            hunks.append(self._parse_hunk(match, len(hunks)))

        document = DiffDocument(old_label=old_label, new_label=new_label, hunks=hunks)
        _check_layout(document)

        return document

    def _parse_header(self) -> tuple[str, str]:
        # anything before the first '--- ' (diff --git, index, ===) is preamble
        while self._pos < len(self._lines):
            line = self._lines[self._pos]

            if PatchParser.HUNK_HEADER.match(line):
                raise self._malformed("Hunk found before the file header")

            old_match = PatchParser.OLD_FILE_HEADER.match(line)
            if old_match is None:
                self._pos += 1
                continue

            self._pos += 1
            if self._pos >= len(self._lines):
                raise self._malformed("Missing '+++' header")

            new_match = PatchParser.NEW_FILE_HEADER.match(self._lines[self._pos])
            if new_match is None:
                raise self._malformed("Missing '+++' header after '---' header")

            self._pos += 1
            return _label(old_match.group("label")), _label(new_match.group("label"))

        raise MalformedPatchError("No '---' / '+++' file header found")

    def _parse_hunk(self, match: re.Match[str], hunk_index: int) -> Hunk:
        old_count = _count(match.group("old_count"))
        new_count = _count(match.group("new_count"))
        self._pos += 1

        lines = list[HunkLine]()
        old_seen, new_seen = 0, 0
        old_closed, new_closed = False, False

        while old_seen < old_count or new_seen < new_count:
            if self._pos >= len(self._lines):
                raise self._malformed(
                    f"Hunk ends early: declared -{old_count},+{new_count},"
                    f" found -{old_seen},+{new_seen}",
                    hunk_index,
                )

            line = self._lines[self._pos]
            prefix = line[:1]

            if prefix == "\\":
                old_closed, new_closed = self._mark_eof(
                    lines, old_closed, new_closed, hunk_index
                )
                self._pos += 1
                continue

            if prefix not in _KINDS:
                raise self._malformed(f"Invalid line prefix {prefix!r}", hunk_index)

            hunk_line = HunkLine(kind=_KINDS[prefix], text=line[1:])

            if hunk_line.in_old():
                old_seen += 1
                if old_closed or old_seen > old_count:
                    raise self._malformed(
                        f"More old-side lines than the declared {old_count}",
                        hunk_index,
                    )

            if hunk_line.in_new():
                new_seen += 1
                if new_closed or new_seen > new_count:
                    raise self._malformed(
                        f"More new-side lines than the declared {new_count}",
                        hunk_index,
                    )

            lines.append(hunk_line)
            self._pos += 1

        if self._pos < len(self._lines) and self._lines[self._pos].startswith("\\"):
            self._mark_eof(lines, old_closed, new_closed, hunk_index)
            self._pos += 1

        if (
            not self._at_end()
            and self._lines[self._pos][:1] in _KINDS
            and not PatchParser.OLD_FILE_HEADER.match(self._lines[self._pos])
        ):
            raise self._malformed(
                f"Hunk has more lines than declared -{old_count},+{new_count}",
                hunk_index,
            )

        return Hunk(
            old_start=int(match.group("old_start")),
            old_line_count=old_count,
            new_start=int(match.group("new_start")),
            new_line_count=new_count,
            lines=lines,
        )

    def _mark_eof(
        self,
        lines: list[HunkLine],
        old_closed: bool,
        new_closed: bool,
        hunk_index: int,
    ) -> tuple[bool, bool]:
        if len(lines) == 0 or lines[-1].no_newline:
            raise self._malformed(
                "End of file marker does not follow a hunk line", hunk_index
            )

        marked = lines[-1]
        marked.no_newline = True

        return old_closed or marked.in_old(), new_closed or marked.in_new()

    def _at_end(self) -> bool:
        return self._pos >= len(self._lines)

    def _malformed(
        self, message: str, hunk_index: int | None = None
    ) -> MalformedPatchError:
        return MalformedPatchError(
            message, hunk_index=hunk_index, line_number=self._pos + 1
        )


def parse_patch(text: str) -> DiffDocument:
    return PatchParser(text).parse()


###########
# private #
###########


def _label(raw: str) -> str:
    return raw.rstrip("\r")


def _count(raw: str | None) -> int:
    return 1 if raw is None else int(raw)


def _has_eof_marker(hunk: Hunk) -> bool:
    return any(line.no_newline for line in hunk.lines)


def _check_layout(document: DiffDocument) -> None:
    prev_end = 0
    for idx, hunk in enumerate(document.hunks):
        if hunk.old_line_count > 0 and hunk.old_start == 0:
            raise MalformedPatchError("Old range starts at line 0", hunk_index=idx)

        position = hunk.old_position()
        if position < prev_end:
            raise MalformedPatchError(
                "Hunks overlap or are out of order", hunk_index=idx
            )
        prev_end = position + hunk.old_line_count

    if document.is_new_file():
        if len(document.hunks) > 1:
            raise MalformedPatchError("New file patch has more than one hunk")
        if document.hunks and document.hunks[0].old_lines():
            raise MalformedPatchError(
                "New file patch expects existing lines", hunk_index=0
            )

    if document.is_deletion():
        for idx, hunk in enumerate(document.hunks):
            if hunk.new_lines():
                raise MalformedPatchError(
                    "Deletion patch keeps or adds lines", hunk_index=idx
                )
