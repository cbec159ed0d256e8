import pydantic
import typing

# label used in place of a file name when one side of the diff does not exist
NO_FILE = "/dev/null"

NO_NEWLINE_MARKER = "\\ No newline at end of file"

LineKind = typing.Literal["context", "add", "delete"]

_PREFIXES: dict[str, str] = {"context": " ", "add": "+", "delete": "-"}


class HunkLine(pydantic.BaseModel):
    kind: LineKind
    text: str
    no_newline: bool = False

    @staticmethod
    def from_raw(kind: LineKind, raw: str) -> "HunkLine":
        """Builds a line from file content that still carries its terminator"""

        if raw.endswith("\n"):
            return HunkLine(kind=kind, text=raw[:-1])
        return HunkLine(kind=kind, text=raw, no_newline=True)

    def raw(self) -> str:
        return self.text if self.no_newline else f"{self.text}\n"

    def render(self) -> list[str]:
        rendered = [f"{_PREFIXES[self.kind]}{self.text}"]
        if self.no_newline:
            rendered.append(NO_NEWLINE_MARKER)
        return rendered

    def in_old(self) -> bool:
        return self.kind != "add"

    def in_new(self) -> bool:
        return self.kind != "delete"


class Hunk(pydantic.BaseModel):
    old_start: int
    old_line_count: int
    new_start: int
    new_line_count: int
    lines: list[HunkLine]

    def old_lines(self) -> list[HunkLine]:
        return [line for line in self.lines if line.in_old()]

    def new_lines(self) -> list[HunkLine]:
        return [line for line in self.lines if line.in_new()]

    def old_position(self) -> int:
        """0-based index of the first base line the hunk covers"""

        return self.old_start - 1 if self.old_line_count > 0 else self.old_start

    def header(self) -> str:
        return (
            f"@@ -{self.old_start},{self.old_line_count}"
            f" +{self.new_start},{self.new_line_count} @@"
        )


class DiffDocument(pydantic.BaseModel):
    old_label: str
    new_label: str
    hunks: list[Hunk] = []

    def is_new_file(self) -> bool:
        return self.old_label == NO_FILE

    def is_deletion(self) -> bool:
        return self.new_label == NO_FILE

    def added_lines(self) -> int:
        return sum(
            1 for hunk in self.hunks for line in hunk.lines if line.kind == "add"
        )

    def removed_lines(self) -> int:
        return sum(
            1 for hunk in self.hunks for line in hunk.lines if line.kind == "delete"
        )
