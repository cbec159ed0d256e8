import base64
import httpx
import json
import unittest

from app.errors import NotFoundError, UpstreamError
from app.devops.client import CommitChange, CommitRequest
from app.devops.rest_client import AzureDevOpsClientConfig, AzureDevOpsRestClient

ORG_URL = "https://dev.azure.com/org"
REPO_PATH = "/org/project/_apis/git/repositories/repo"


def _config(**overrides) -> AzureDevOpsClientConfig:  # type: ignore
    fields = dict(org_url=ORG_URL, project="project", repository="repo", token="pat")
    fields.update(overrides)
    return AzureDevOpsClientConfig(**fields)


class _Recorder:
    """Routes requests by path to canned responses and remembers them"""

    def __init__(self, routes: dict[str, httpx.Response]) -> None:
        self.routes = routes
        self.requests = list[httpx.Request]()

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if request.url.path not in self.routes:
            return httpx.Response(404)
        return self.routes[request.url.path]


class AzureDevOpsRestClientTest(unittest.IsolatedAsyncioTestCase):
    def _client(self, routes: dict[str, httpx.Response]) -> AzureDevOpsRestClient:
        self.recorder = _Recorder(routes)
        return AzureDevOpsRestClient(
            _config(), transport=httpx.MockTransport(self.recorder)
        )

    def test_invalid_org_url(self) -> None:
        with self.assertRaises(ValueError):
            AzureDevOpsRestClient(_config(org_url="not a url"))

    async def test_fetch_content(self) -> None:
        client = self._client(
            {f"{REPO_PATH}/blobs/abc": httpx.Response(200, content=b"hello\n")}
        )

        self.assertEqual(await client.fetch_content("abc"), "hello\n")

        request = self.recorder.requests[0]
        self.assertEqual(request.url.params["$format"], "octetStream")
        self.assertEqual(request.url.params["api-version"], "7.1")
        self.assertEqual(
            request.headers["authorization"],
            "Basic " + base64.b64encode(b":pat").decode("ascii"),
        )
        await client.close()

    async def test_fetch_item_content(self) -> None:
        client = self._client(
            {f"{REPO_PATH}/items": httpx.Response(200, content=b"content")}
        )

        self.assertEqual(await client.fetch_item_content("/a.txt", "c1"), "content")

        params = self.recorder.requests[0].url.params
        self.assertEqual(params["path"], "/a.txt")
        self.assertEqual(params["versionDescriptor.version"], "c1")
        self.assertEqual(params["versionDescriptor.versionType"], "commit")

    async def test_not_found(self) -> None:
        client = self._client({})
        with self.assertRaises(NotFoundError):
            await client.fetch_content("missing")

    async def test_server_error(self) -> None:
        client = self._client({f"{REPO_PATH}/blobs/abc": httpx.Response(500)})
        with self.assertRaises(UpstreamError) as ctx:
            await client.fetch_content("abc")
        self.assertTrue(str(ctx.exception).startswith("Failed to fetch blob abc:"))

    async def test_transport_error(self) -> None:
        def unreachable(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        client = AzureDevOpsRestClient(
            _config(), transport=httpx.MockTransport(unreachable)
        )
        with self.assertRaises(UpstreamError):
            await client.list_iterations(1)

    async def test_binary_content(self) -> None:
        client = self._client(
            {f"{REPO_PATH}/blobs/abc": httpx.Response(200, content=b"\xff\xfe\x00")}
        )
        with self.assertRaises(UpstreamError):
            await client.fetch_content("abc")

    async def test_list_iterations(self) -> None:
        client = self._client(
            {
                f"{REPO_PATH}/pullRequests/7/iterations": httpx.Response(
                    200, json={"value": [{"id": 1}, {"id": 2}], "count": 2}
                )
            }
        )

        iterations = await client.list_iterations(7)

        self.assertEqual([iteration.id for iteration in iterations], [1, 2])

    async def test_unexpected_response(self) -> None:
        client = self._client(
            {
                f"{REPO_PATH}/pullRequests/7/iterations": httpx.Response(
                    200, json={"value": [{"name": "no id"}]}
                )
            }
        )
        with self.assertRaises(UpstreamError):
            await client.list_iterations(7)

    async def test_list_change_entries(self) -> None:
        pages = [
            {
                "changeEntries": [
                    {
                        "changeType": "edit",
                        "item": {
                            "path": "/a.txt",
                            "objectId": "new-a",
                            "originalObjectId": "old-a",
                        },
                    },
                    {
                        "changeType": "add",
                        "item": {"path": "/b.txt", "objectId": "new-b"},
                    },
                ],
                "nextSkip": 2,
                "nextTop": 2,
            },
            {
                "changeEntries": [
                    {
                        "changeType": "delete",
                        "item": {
                            "path": "/c.txt",
                            "objectId": "old-c",
                            "originalObjectId": "old-c",
                        },
                    },
                    {
                        "changeType": "rename, edit",
                        "originalPath": "/d.txt",
                        "item": {
                            "path": "/e.txt",
                            "objectId": "new-e",
                            "originalObjectId": "old-d",
                        },
                    },
                ],
                "nextSkip": 0,
                "nextTop": 0,
            },
        ]

        def handler(request: httpx.Request) -> httpx.Response:
            skip = int(request.url.params["$skip"])
            return httpx.Response(200, json=pages[0 if skip == 0 else 1])

        client = AzureDevOpsRestClient(_config(), transport=httpx.MockTransport(handler))

        entries = await client.list_change_entries(7, 2)

        self.assertEqual(
            [(e.path, e.old_object_id, e.new_object_id) for e in entries],
            [
                ("/a.txt", "old-a", "new-a"),
                ("/b.txt", None, "new-b"),
                ("/c.txt", "old-c", None),
                ("/e.txt", "old-d", "new-e"),
            ],
        )
        self.assertEqual(entries[3].original_path, "/d.txt")

    async def test_policy_evaluations(self) -> None:
        client = self._client(
            {
                "/org/project/_apis/policy/evaluations": httpx.Response(
                    200, json={"value": [{"evaluationId": "e1"}]}
                )
            }
        )

        evaluations = await client.list_policy_evaluations("vstfs:///x/1")

        self.assertEqual(evaluations, [{"evaluationId": "e1"}])
        params = self.recorder.requests[0].url.params
        self.assertEqual(params["artifactId"], "vstfs:///x/1")
        self.assertEqual(params["api-version"], "7.1-preview.1")

    async def test_resolve_branch_tip(self) -> None:
        client = self._client(
            {
                f"{REPO_PATH}/refs": httpx.Response(
                    200,
                    json={
                        "value": [
                            {"name": "refs/heads/main-old", "objectId": "111"},
                            {"name": "refs/heads/main", "objectId": "222"},
                        ]
                    },
                )
            }
        )

        self.assertEqual(await client.resolve_branch_tip("refs/heads/main"), "222")
        self.assertEqual(self.recorder.requests[0].url.params["filter"], "heads/main")

        with self.assertRaises(NotFoundError):
            await client.resolve_branch_tip("feature")

    async def test_submit_push(self) -> None:
        client = self._client(
            {
                f"{REPO_PATH}/pushes": httpx.Response(
                    201, json={"pushId": 9, "commits": [{"commitId": "c1"}]}
                )
            }
        )

        result = await client.submit_push(
            CommitRequest(
                branch_name="main",
                base_commit_id="base",
                message="msg",
                changes=[
                    CommitChange(path="/a.txt", change_type="edit", new_content="x\n"),
                    CommitChange(path="/b.txt", change_type="delete"),
                ],
            )
        )

        self.assertEqual((result.push_id, result.commit_ids), (9, ["c1"]))

        request = self.recorder.requests[0]
        self.assertEqual(request.method, "POST")
        self.assertEqual(
            json.loads(request.content),
            {
                "refUpdates": [{"name": "refs/heads/main", "oldObjectId": "base"}],
                "commits": [
                    {
                        "comment": "msg",
                        "changes": [
                            {
                                "changeType": "edit",
                                "item": {"path": "/a.txt"},
                                "newContent": {"content": "x\n", "contentType": "rawtext"},
                            },
                            {"changeType": "delete", "item": {"path": "/b.txt"}},
                        ],
                    }
                ],
            },
        )

    async def test_pipeline_run_routes(self) -> None:
        client = self._client(
            {
                "/org/project/_apis/pipelines/5/runs/9": httpx.Response(
                    200, json={"id": 9, "pipeline": {"id": 5}}
                ),
                "/org/project/_apis/pipelines/runs/9": httpx.Response(
                    200, json={"id": 9}
                ),
                "/org/project/_apis/build/builds/9": httpx.Response(
                    200, json={"id": 9, "definition": {"id": 5}}
                ),
            }
        )

        self.assertEqual((await client.get_pipeline_run(9, 5))["pipeline"], {"id": 5})
        self.assertEqual(await client.get_pipeline_run(9, None), {"id": 9})
        self.assertEqual((await client.get_build(9))["definition"], {"id": 5})


if __name__ == "__main__":
    unittest.main()
