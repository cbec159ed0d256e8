import sys
import os

sys.path.append(os.path.join(os.path.dirname(os.path.abspath(__file__)), ".."))

from app.pull_requests.changes import PullRequestChanges
from app.routes.api.v1.tools.endpoint import ToolName
from scripts.internal.bridge_request import call_tool


def pull_request_changes() -> None:
    """
    argv[0] -- script name
    argv[1] -- pull request id
    """

    response = call_tool(
        ToolName.GET_PULL_REQUEST_CHANGES.value,
        {"pull_request_id": int(sys.argv[1])},
    )

    if response == None:
        return

    model = PullRequestChanges(**response)

    for file in model.files:
        print(file.patch)


if __name__ == "__main__":
    pull_request_changes()
