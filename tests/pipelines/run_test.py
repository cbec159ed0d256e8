import unittest

from app.errors import NotFoundError
from app.pipelines.run import get_pipeline_run, resolve_pipeline_id

from tests.devops.mock.fake_client import FakeDevOpsClient

RUN = {"id": 123, "name": "20240101.1", "state": "completed", "pipeline": {"id": 55}}


class PipelineRunTest(unittest.IsolatedAsyncioTestCase):
    async def test_run_resolved_through_build(self) -> None:
        client = FakeDevOpsClient(
            builds={123: {"id": 123, "definition": {"id": 55}}},
            runs={(55, 123): RUN},
        )

        run = await get_pipeline_run(client, 123)

        self.assertEqual(run, RUN)
        self.assertEqual(client.run_lookups, [(123, 55)])

    async def test_fallback_without_pipeline(self) -> None:
        client = FakeDevOpsClient(runs={(None, 123): RUN})

        run = await get_pipeline_run(client, 123)

        self.assertEqual(run, RUN)
        self.assertEqual(client.run_lookups, [(123, None)])

    async def test_fallback_when_pipeline_route_misses(self) -> None:
        client = FakeDevOpsClient(
            builds={123: {"id": 123, "definition": {"id": "55"}}},
            runs={(None, 123): RUN},
        )

        run = await get_pipeline_run(client, 123)

        self.assertEqual(run, RUN)
        self.assertEqual(client.run_lookups, [(123, 55), (123, None)])

    async def test_not_found(self) -> None:
        with self.assertRaises(NotFoundError) as ctx:
            await get_pipeline_run(FakeDevOpsClient(), 7)
        self.assertEqual(str(ctx.exception), "Pipeline run 7 not found in project project")

    async def test_explicit_pipeline(self) -> None:
        client = FakeDevOpsClient(runs={(55, 123): RUN})

        run = await get_pipeline_run(client, 123, pipeline_id=55)

        self.assertEqual(run["id"], 123)

    async def test_run_of_another_pipeline(self) -> None:
        client = FakeDevOpsClient(runs={(None, 123): RUN})

        with self.assertRaises(NotFoundError) as ctx:
            await get_pipeline_run(client, 123, pipeline_id=99)
        self.assertEqual(str(ctx.exception), "Run 123 does not belong to pipeline 99")

    async def test_resolve_pipeline_id(self) -> None:
        client = FakeDevOpsClient(builds={1: {"id": 1, "definition": {}}})

        self.assertEqual(await resolve_pipeline_id(client, 1, 4), 4)
        self.assertIsNone(await resolve_pipeline_id(client, 1))
        self.assertIsNone(await resolve_pipeline_id(client, 2))


if __name__ == "__main__":
    unittest.main()
