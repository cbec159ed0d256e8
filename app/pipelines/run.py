import logging

from app.errors import DevOpsError, NotFoundError
from app.devops.client import IDevOpsClient, UntypedRecord
from app.pull_requests.checks import coerce_id


async def resolve_pipeline_id(
    client: IDevOpsClient, run_id: int, pipeline_id: int | None = None
) -> int | None:
    """Pipeline id of a run, looked up through the build with the same id.

    Resolution failures are not fatal: the caller falls back to the
    pipeline-less route.
    """

    if pipeline_id is not None:
        return pipeline_id

    log = logging.getLogger(__name__)

    try:
        build = await client.get_build(run_id)
    except DevOpsError as e:
        log.warning(f"Could not resolve pipeline of run {run_id}, falling back: {str(e)}")
        return None

    resolved = coerce_id((build.get("definition") or dict()).get("id"))
    if resolved is None:
        log.warning(f"Build {run_id} has no usable definition id, falling back")

    return resolved


async def get_pipeline_run(
    client: IDevOpsClient, run_id: int, pipeline_id: int | None = None
) -> UntypedRecord:
    resolved = await resolve_pipeline_id(client, run_id, pipeline_id)

    candidates: list[int | None] = [None]
    if resolved is not None:
        candidates.insert(0, resolved)

    run: UntypedRecord | None = None
    for candidate in candidates:
        try:
            run = await client.get_pipeline_run(run_id, candidate)
        except NotFoundError:
            continue
        break

    if run is None:
        raise NotFoundError(
            f"Pipeline run {run_id} not found in project {client.project_id()}"
        )

    if pipeline_id is not None:
        run_pipeline_id = coerce_id((run.get("pipeline") or dict()).get("id"))
        if run_pipeline_id != pipeline_id:
            raise NotFoundError(
                f"Run {run_id} does not belong to pipeline {pipeline_id}"
            )

    return run
