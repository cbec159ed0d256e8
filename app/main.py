import contextlib
import fastapi
import logging
import typing

from app.config import CONFIG
from app.auth.authentication import authenticate_request
from app.devops.client import IDevOpsClient
from app.devops.rest_client import AzureDevOpsClientConfig, AzureDevOpsRestClient
from app.pull_requests.changes import ChangeCollector
from app.repositories.commit import CommitConstructor

from app.routes.api.v1.tools.endpoint import (
    endpoint_api_v1_tools,
    Response as ResponseApiV1Tools,
)
from app.routes.health.endpoint import (
    endpoint_health,
    Response as ResponseHealth,
)

logging.basicConfig(
    level=CONFIG.LOG_LEVEL,
    format="%(asctime)s [%(levelname)s] [%(name)s] %(message)s",
)


def get_devops_client(request: fastapi.Request) -> IDevOpsClient:
    client: IDevOpsClient = request.app.state.devops_client
    return client


def get_change_collector(request: fastapi.Request) -> ChangeCollector:
    collector: ChangeCollector = request.app.state.change_collector
    return collector


def get_commit_constructor(request: fastapi.Request) -> CommitConstructor:
    constructor: CommitConstructor = request.app.state.commit_constructor
    return constructor


@contextlib.asynccontextmanager
async def lifespan(app: fastapi.FastAPI):  # type: ignore
    log = logging.getLogger(__name__)

    log.info("Initializing devops client")
    client = AzureDevOpsRestClient(
        AzureDevOpsClientConfig(
            org_url=CONFIG.DEVOPS_ORG_URL,
            project=CONFIG.DEVOPS_PROJECT,
            repository=CONFIG.DEVOPS_REPOSITORY,
            token=CONFIG.DEVOPS_TOKEN,
            api_version=CONFIG.DEVOPS_API_VERSION,
            timeout=CONFIG.HTTP_TIMEOUT,
        )
    )
    app.state.devops_client = client
    app.state.change_collector = ChangeCollector(
        client,
        context_lines=CONFIG.DIFF_CONTEXT_LINES,
        max_concurrency=CONFIG.MAX_CONCURRENT_FETCHES,
    )
    app.state.commit_constructor = CommitConstructor(
        client, max_concurrency=CONFIG.MAX_CONCURRENT_FETCHES
    )
    log.info("Listening for requests")
    yield
    log.info("Closing devops client")
    await client.close()


bridge = fastapi.FastAPI(lifespan=lifespan)


@bridge.get("/health")
def health(request: fastapi.Request) -> ResponseHealth:
    """Basic healthcheck endpoint

    Returns:
        ResponseHealth: response with the 'healthy' status
    """

    if not authenticate_request(request):
        raise fastapi.HTTPException(status_code=401, detail="Authentication failed")

    return endpoint_health(CONFIG.DEVOPS_PROJECT, CONFIG.DEVOPS_REPOSITORY)


@bridge.post("/api/v1/tools")
async def api_v1_tools(
    request: fastapi.Request,
    tool: typing.Annotated[str, fastapi.Query()],
    arguments: typing.Annotated[dict[str, typing.Any], fastapi.Body()],
    client: typing.Annotated[IDevOpsClient, fastapi.Depends(get_devops_client)],
    collector: typing.Annotated[
        ChangeCollector, fastapi.Depends(get_change_collector)
    ],
    constructor: typing.Annotated[
        CommitConstructor, fastapi.Depends(get_commit_constructor)
    ],
) -> ResponseApiV1Tools:
    """Entrypoint for the remote tools

    Args:
        request (fastapi.Request): request
        tool (typing.Annotated[str, fastapi.Query()]): tool to call
        arguments (typing.Annotated[dict, fastapi.Body()]): tool arguments
        client (typing.Annotated[IDevOpsClient, fastapi.Depends(get_devops_client)]): hosting service client
        collector (typing.Annotated[ChangeCollector, fastapi.Depends(get_change_collector)]): pull request changes collector
        constructor (typing.Annotated[CommitConstructor, fastapi.Depends(get_commit_constructor)]): commit constructor

    Returns:
        ResponseApiV1Tools: response. depends on the tool called
    """

    if not authenticate_request(request):
        raise fastapi.HTTPException(status_code=401, detail="Authentication failed")

    return await endpoint_api_v1_tools(
        client=client,
        collector=collector,
        constructor=constructor,
        tool=tool,
        arguments=arguments,
    )
