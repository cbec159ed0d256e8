import unittest

from app.errors import MalformedPatchError, PatchConflictError
from app.patch.applier import apply_patch
from app.patch.differ import create_two_files_patch, diff
from app.patch.models import NO_NEWLINE_MARKER
from app.patch.parser import parse_patch

# (old, new) pairs exercising the line-ending edge cases
_REVISIONS = [
    ("", "first\nsecond\n"),
    ("a\nb\nc\n", "a\nc\n"),
    ("a\nb\nc\n", "c\nb\na\n"),
    ("no newline", "no newline\n"),
    ("with newline\n", "with newline"),
    ("x\r\ny\r\n", "x\r\nz\r\n"),
    ("\n\n\n", "\n"),
    (
        "".join(f"{i}\n" for i in range(40)),
        "".join(f"{i}\n" for i in range(40) if i % 7 != 0) + "tail",
    ),
]


class ApplyPatchTest(unittest.TestCase):
    def test_edit(self) -> None:
        document = parse_patch(
            '--- /src/index.js\n+++ /src/index.js\n@@ -1,1 +1,1 @@\n-console.log("hello");\n+console.log("world");\n'
        )
        self.assertEqual(
            apply_patch('console.log("hello");\n', document),
            'console.log("world");\n',
        )

    def test_new_file(self) -> None:
        document = parse_patch("--- /dev/null\n+++ /new.txt\n@@ -0,0 +1,1 @@\n+hi\n")
        self.assertEqual(apply_patch("", document), "hi\n")

    def test_new_file_over_existing_content(self) -> None:
        document = parse_patch("--- /dev/null\n+++ /new.txt\n@@ -0,0 +1,1 @@\n+hi\n")
        with self.assertRaises(PatchConflictError):
            apply_patch("already here\n", document)

    def test_deletion(self) -> None:
        document = parse_patch("--- /f\n+++ /dev/null\n@@ -1,2 +0,0 @@\n-a\n-b\n")
        self.assertEqual(apply_patch("a\nb\n", document), "")

    def test_deletion_leaving_lines(self) -> None:
        document = parse_patch("--- /f\n+++ /dev/null\n@@ -1,1 +0,0 @@\n-a\n")
        with self.assertRaises(PatchConflictError):
            apply_patch("a\nb\n", document)

    def test_conflict(self) -> None:
        document = parse_patch("--- /f\n+++ /f\n@@ -1,1 +1,1 @@\n-old line\n+new line\n")

        with self.assertRaises(PatchConflictError) as ctx:
            apply_patch("nothing here\n", document)

        self.assertEqual(ctx.exception.hunk_index, 0)
        self.assertEqual(ctx.exception.base_line, 1)
        self.assertEqual(ctx.exception.expected, ["old line\n"])
        self.assertIn("Base content does not match expected patch context", str(ctx.exception))

    def test_conflict_beyond_end_of_base(self) -> None:
        document = parse_patch("--- /f\n+++ /f\n@@ -5,1 +5,1 @@\n-e\n+E\n")
        with self.assertRaises(PatchConflictError):
            apply_patch("a\nb\n", document)

    def test_no_fuzzy_matching(self) -> None:
        # context exists in the base, one line below the declared position
        document = parse_patch("--- /f\n+++ /f\n@@ -1,1 +1,1 @@\n-b\n+B\n")
        with self.assertRaises(PatchConflictError):
            apply_patch("a\nb\n", document)

    def test_final_newline_mismatch(self) -> None:
        document = parse_patch("--- /f\n+++ /f\n@@ -1,1 +1,1 @@\n-a\n+b\n")
        with self.assertRaises(PatchConflictError):
            apply_patch("a", document)

    def test_insertion_after_line_without_newline(self) -> None:
        document = parse_patch("--- /f\n+++ /f\n@@ -1,0 +2,1 @@\n+b\n")
        with self.assertRaises(PatchConflictError):
            apply_patch("a", document)

    def test_removing_final_newline(self) -> None:
        document = parse_patch(
            f"--- /f\n+++ /f\n@@ -1,1 +1,1 @@\n-a\n+a\n{NO_NEWLINE_MARKER}\n"
        )
        self.assertEqual(apply_patch("a\n", document), "a")

    def test_multiple_hunks(self) -> None:
        old = "".join(f"{i}\n" for i in range(30))
        new = old.replace("1\n", "one\n", 1).replace("28\n", "twenty-eight\n")

        document = diff("/f", "/f", old, new)
        self.assertEqual(len(document.hunks), 2)
        self.assertEqual(apply_patch(old, document), new)

    def test_overlapping_hunks(self) -> None:
        document = diff("/f", "/f", "a\nb\nc\n", "a\nB\nc\n", context_lines=0)
        document.hunks.append(document.hunks[0].model_copy())

        with self.assertRaises(MalformedPatchError):
            apply_patch("a\nb\nc\n", document)

    def test_empty_patch_is_identity(self) -> None:
        document = parse_patch("--- /f\n+++ /f\n")
        self.assertEqual(apply_patch("unchanged\ntext", document), "unchanged\ntext")

    def test_round_trip(self) -> None:
        for old, new in _REVISIONS:
            for context_lines in (0, 1, 3):
                with self.subTest(old=old, new=new, context_lines=context_lines):
                    patch = create_two_files_patch(
                        "/f" if old else None, "/f", old, new, context_lines
                    )
                    self.assertEqual(apply_patch(old, parse_patch(patch)), new)

    def test_identity(self) -> None:
        for old, _ in _REVISIONS:
            with self.subTest(old=old):
                patch = create_two_files_patch("/f", "/f", old, old)
                self.assertEqual(apply_patch(old, parse_patch(patch)), old)


if __name__ == "__main__":
    unittest.main()
