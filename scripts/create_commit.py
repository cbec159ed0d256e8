import sys
import os

sys.path.append(os.path.join(os.path.dirname(os.path.abspath(__file__)), ".."))

from app.repositories.patch_set import split_patch_set
from app.routes.api.v1.tools.actions.create_commit import Response
from app.routes.api.v1.tools.endpoint import ToolName
from scripts.internal.bridge_request import call_tool


def create_commit() -> None:
    """
    argv[0] -- script name
    argv[1] -- branch name
    argv[2] -- commit message
    argv[3] -- path to a unified diff, e.g. the output of `git diff`
    """

    with open(sys.argv[3]) as patch_file:
        changes = split_patch_set(patch_file.read())

    response = call_tool(
        ToolName.CREATE_COMMIT.value,
        {
            "branch_name": sys.argv[1],
            "commit_message": sys.argv[2],
            "changes": [change.model_dump() for change in changes],
        },
    )

    if response == None:
        return

    model = Response(**response)

    print(model.model_dump_json())


if __name__ == "__main__":
    create_commit()
