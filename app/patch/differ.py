import pydantic

from app.patch.models import DiffDocument, Hunk, HunkLine, LineKind, NO_FILE

DEFAULT_CONTEXT_LINES = 3


class ChangeBlock(pydantic.BaseModel):
    """Contiguous run of changed lines: a[a_start:a_end] replaced by b[b_start:b_end]"""

    a_start: int
    a_end: int
    b_start: int
    b_end: int


def split_lines(text: str) -> list[str]:
    """Splits text on '\\n' keeping the terminators.

    Only the last line may come back without a terminator, which is how a
    missing newline at the end of the file is represented.
    """

    if not text:
        return list()

    lines = text.split("\n")
    tail = lines.pop()

    raw_lines = [f"{line}\n" for line in lines]
    if tail:
        raw_lines.append(tail)

    return raw_lines


def diff(
    old_label: str | None,
    new_label: str | None,
    old_text: str,
    new_text: str,
    context_lines: int = DEFAULT_CONTEXT_LINES,
) -> DiffDocument:
    """Computes the unified diff between two versions of a file

    Args:
        old_label (str | None): name of the old file, None if it did not exist
        new_label (str | None): name of the new file, None if it was deleted
        old_text (str): old content
        new_text (str): new content
        context_lines (int): unchanged lines kept around each change

    Returns:
        DiffDocument: hunks turning old_text into new_text
    """

    assert context_lines >= 0, "Invalid amount of context lines"

    a = split_lines(old_text)
    b = split_lines(new_text)

    return DiffDocument(
        old_label=old_label or NO_FILE,
        new_label=new_label or NO_FILE,
        hunks=_group_hunks(a, b, _change_blocks(a, b), context_lines),
    )


def format_patch(document: DiffDocument) -> str:
    rendered = [f"--- {document.old_label}", f"+++ {document.new_label}"]

    for hunk in document.hunks:
        rendered.append(hunk.header())
        for line in hunk.lines:
            rendered.extend(line.render())

    return "\n".join(rendered) + "\n"


def create_two_files_patch(
    old_label: str | None,
    new_label: str | None,
    old_text: str,
    new_text: str,
    context_lines: int = DEFAULT_CONTEXT_LINES,
) -> str:
    return format_patch(diff(old_label, new_label, old_text, new_text, context_lines))


###########
# private #
###########


def _change_blocks(a: list[str], b: list[str]) -> list[ChangeBlock]:
    prefix = 0
    while prefix < len(a) and prefix < len(b) and a[prefix] == b[prefix]:
        prefix += 1

    suffix = 0
    while (
        suffix < len(a) - prefix
        and suffix < len(b) - prefix
        and a[len(a) - 1 - suffix] == b[len(b) - 1 - suffix]
    ):
        suffix += 1

    ops = _shortest_edit(a[prefix : len(a) - suffix], b[prefix : len(b) - suffix])

    blocks = list[ChangeBlock]()
    i, j = prefix, prefix
    current: ChangeBlock | None = None

    for op in ops:
        if op == "equal":
            if current is not None:
                current.a_end, current.b_end = i, j
                blocks.append(current)
                current = None
            i += 1
            j += 1
            continue

        if current is None:
            current = ChangeBlock(a_start=i, a_end=i, b_start=j, b_end=j)

        if op == "delete":
            i += 1
        else:
            j += 1

    if current is not None:
        current.a_end, current.b_end = i, j
        blocks.append(current)

    return blocks


def _shortest_edit(a: list[str], b: list[str]) -> list[str]:
    """Myers' greedy O(ND) algorithm, returns 'equal'/'delete'/'insert' ops"""

    n, m = len(a), len(b)
    v = {1: 0}
    trace = list[dict[int, int]]()

    for d in range(n + m + 1):
        trace.append(dict(v))
        for k in range(-d, d + 1, 2):
            if k == -d or (k != d and v[k - 1] < v[k + 1]):
                x = v[k + 1]
            else:
                x = v[k - 1] + 1
            y = x - k
            while x < n and y < m and a[x] == b[y]:
                x += 1
                y += 1
            v[k] = x
            if x >= n and y >= m:
                return _backtrack(trace, n, m)

    raise AssertionError("edit script must be found within n + m steps")


def _backtrack(trace: list[dict[int, int]], n: int, m: int) -> list[str]:
    ops = list[str]()
    x, y = n, m

    for d in range(len(trace) - 1, -1, -1):
        v = trace[d]
        k = x - y

        if k == -d or (k != d and v[k - 1] < v[k + 1]):
            prev_k = k + 1
        else:
            prev_k = k - 1

        prev_x = v[prev_k]
        prev_y = prev_x - prev_k

        while x > prev_x and y > prev_y:
            ops.append("equal")
            x -= 1
            y -= 1

        if d > 0:
            ops.append("insert" if x == prev_x else "delete")

        x, y = prev_x, prev_y

    ops.reverse()
    return ops


def _group_hunks(
    a: list[str], b: list[str], blocks: list[ChangeBlock], context_lines: int
) -> list[Hunk]:
    groups = list[list[ChangeBlock]]()
    for block in blocks:
        if groups and block.a_start - groups[-1][-1].a_end <= 2 * context_lines:
            groups[-1].append(block)
        else:
            groups.append([block])

    return [_build_hunk(a, b, group, context_lines) for group in groups]


def _build_hunk(
    a: list[str], b: list[str], group: list[ChangeBlock], context_lines: int
) -> Hunk:
    first, last = group[0], group[-1]
    lead = min(context_lines, first.a_start)
    trail = min(context_lines, len(a) - last.a_end)

    lines = _hunk_lines("context", a[first.a_start - lead : first.a_start])

    prev_end = first.a_start
    for block in group:
        lines += _hunk_lines("context", a[prev_end : block.a_start])
        lines += _hunk_lines("delete", a[block.a_start : block.a_end])
        lines += _hunk_lines("add", b[block.b_start : block.b_end])
        prev_end = block.a_end

    lines += _hunk_lines("context", a[last.a_end : last.a_end + trail])

    old_count = sum(1 for line in lines if line.in_old())
    new_count = sum(1 for line in lines if line.in_new())
    old_start = first.a_start - lead
    new_start = first.b_start - lead

    # an empty side points at the line preceding the change
    return Hunk(
        old_start=old_start + 1 if old_count else old_start,
        old_line_count=old_count,
        new_start=new_start + 1 if new_count else new_start,
        new_line_count=new_count,
        lines=lines,
    )


def _hunk_lines(kind: LineKind, raw_lines: list[str]) -> list[HunkLine]:
    return [HunkLine.from_raw(kind, raw) for raw in raw_lines]
