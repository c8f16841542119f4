import hashlib
import json
import os
from datetime import datetime, timezone
from email.utils import format_datetime
from urllib.parse import unquote

import httpx
import pytest

from objectstore_sdk.client.identity import ServiceCatalogCache
from objectstore_sdk.client.object_storage import ObjectStorage
from objectstore_sdk.client.session import Session
from objectstore_sdk.client.transport import HttpTransport
from objectstore_sdk.fs.filesystem import ObjectStoreFS

ACCOUNT_PATH = "/v1/AUTH_test"
ACCOUNT_URL = f"https://swift.example.com{ACCOUNT_PATH}"
OTHER_ACCOUNT_URL = "https://swift-b.example.com/v1/AUTH_test"
AUTH_URL = "https://identity.example.com/v2.0"
TOKEN = "test-token"
USERNAME = "alice"
PASSWORD = "secret"

CONTAINER_HEADER_PREFIXES = ('x-container-read', 'x-container-write', 'x-container-meta-')


def pytest_configure(config):
    """Configure test environment."""
    # Keep tests independent of any real credentials file
    os.environ.setdefault("OBJSTORE_CREDENTIALS_FILE", os.path.join(os.sep, "nonexistent", "credentials.yaml"))
    os.environ.setdefault("OBJSTORE_FUSE_TRACE_OPS", "true")


def pytest_sessionstart(session):
    """Called before test session starts."""
    print("\nSetting up test session...")


def pytest_sessionfinish(session, exitstatus):
    """Called after test session finishes."""
    print("\nTearing down test session...")


def service_catalog():
    return [
        {"type": "identity", "name": "keystone",
         "endpoints": [{"region": "region-a", "publicURL": AUTH_URL}]},
        {"type": "object-store", "name": "swift",
         "endpoints": [
             {"region": "region-a", "publicURL": ACCOUNT_URL},
             {"region": "region-b", "publicURL": OTHER_ACCOUNT_URL},
         ]},
    ]


class FakeSwift:
    """
    In-memory object storage server, served through httpx.MockTransport.

    Implements the subset of the account, container and object API the SDK
    uses, plus v2 password authentication.
    """

    def __init__(self):
        self.containers = {}
        self.requests = []

    # -- helpers used by tests -------------------------------------------

    def put_object(self, container, name, content, content_type="application/octet-stream", etag=None):
        if isinstance(content, str):
            content = content.encode("utf-8")
        self.containers.setdefault(container, {"headers": {}, "objects": {}})
        self.containers[container]["objects"][name] = {
            "content": content,
            "content_type": content_type,
            "etag": etag or hashlib.md5(content).hexdigest(),
            "last_modified": datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc),
            "meta": {},
        }

    def content(self, container, name):
        return self.containers[container]["objects"][name]["content"]

    def has_object(self, container, name):
        return name in self.containers.get(container, {}).get("objects", {})

    def count(self, method, fragment=""):
        return sum(1 for m, url in self.requests if m == method and fragment in url)

    # -- request dispatch ---------------------------------------------------

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append((request.method, str(request.url)))
        if request.url.host == "identity.example.com":
            return self._identity(request)
        if request.headers.get("X-Auth-Token") != TOKEN:
            return httpx.Response(401, text="Unauthorized")

        path = request.url.path
        if not path.startswith(ACCOUNT_PATH):
            return httpx.Response(404)
        rest = path[len(ACCOUNT_PATH):].lstrip("/")
        container, _, name = rest.partition("/")
        container = unquote(container)
        name = unquote(name)

        if not container:
            return self._account(request)
        if not name:
            return self._container(request, container)
        return self._object(request, container, name)

    def _identity(self, request):
        if request.method != "POST" or not request.url.path.endswith("/tokens"):
            return httpx.Response(404)
        auth = json.loads(request.content)["auth"]
        creds = auth.get("passwordCredentials", {})
        if creds.get("username") != USERNAME or creds.get("password") != PASSWORD:
            return httpx.Response(401, text="Invalid credentials")
        return httpx.Response(200, json={
            "access": {
                "token": {
                    "id": TOKEN,
                    "expires": "2030-01-01T00:00:00Z",
                    "tenant": {"id": auth.get("tenantId", "t-1"), "name": auth.get("tenantName", "research")},
                },
                "serviceCatalog": service_catalog(),
            }
        })

    def _account(self, request):
        if request.method == "HEAD":
            objects = sum(len(c["objects"]) for c in self.containers.values())
            used = sum(len(o["content"]) for c in self.containers.values() for o in c["objects"].values())
            return httpx.Response(204, headers={
                "X-Account-Bytes-Used": str(used),
                "X-Account-Container-Count": str(len(self.containers)),
                "X-Account-Object-Count": str(objects),
            })
        if request.method == "GET":
            params = request.url.params
            names = sorted(self.containers)
            if params.get("marker"):
                names = [n for n in names if n > params["marker"]]
            if params.get("limit"):
                names = names[:int(params["limit"])]
            body = [{"name": n,
                     "count": len(self.containers[n]["objects"]),
                     "bytes": sum(len(o["content"]) for o in self.containers[n]["objects"].values())}
                    for n in names]
            return httpx.Response(200, json=body)
        return httpx.Response(405)

    def _container(self, request, name):
        record = self.containers.get(name)
        method = request.method

        if method == "PUT":
            if record is not None:
                return httpx.Response(202)
            self.containers[name] = {"headers": self._container_headers(request), "objects": {}}
            return httpx.Response(201)
        if record is None:
            return httpx.Response(404, text="Not Found")
        if method == "HEAD":
            headers = {
                "X-Container-Object-Count": str(len(record["objects"])),
                "X-Container-Bytes-Used": str(sum(len(o["content"]) for o in record["objects"].values())),
            }
            headers.update(record["headers"])
            return httpx.Response(204, headers=headers)
        if method == "POST":
            for key, value in self._container_headers(request).items():
                if value:
                    record["headers"][key] = value
                else:
                    record["headers"].pop(key, None)
            return httpx.Response(204)
        if method == "DELETE":
            if record["objects"]:
                return httpx.Response(409, text="Conflict")
            del self.containers[name]
            return httpx.Response(204)
        if method == "GET":
            return httpx.Response(200, json=self._listing(record, request.url.params))
        return httpx.Response(405)

    def _container_headers(self, request):
        return {
            key.title(): value for key, value in request.headers.items()
            if key.lower().startswith(CONTAINER_HEADER_PREFIXES)
        }

    def _listing(self, record, params):
        prefix = params.get("prefix", "")
        delimiter = params.get("delimiter")
        path = params.get("path")
        if path is not None:
            prefix = path.rstrip("/") + "/" if path else ""
            delimiter = "/"

        entries = []
        seen = set()
        for name in sorted(record["objects"]):
            if not name.startswith(prefix):
                continue
            rest = name[len(prefix):]
            if delimiter and delimiter in rest:
                if path is not None:
                    continue
                subdir = prefix + rest[:rest.index(delimiter) + 1]
                if subdir not in seen:
                    seen.add(subdir)
                    entries.append({"subdir": subdir})
                continue
            obj = record["objects"][name]
            entries.append({
                "name": name,
                "hash": obj["etag"],
                "bytes": len(obj["content"]),
                "content_type": obj["content_type"],
                "last_modified": obj["last_modified"].replace(tzinfo=None).isoformat(),
            })

        marker = params.get("marker")
        if marker:
            entries = [e for e in entries if e.get("name", e.get("subdir")) > marker]
        if params.get("limit"):
            entries = entries[:int(params["limit"])]
        return entries

    def _object_headers(self, obj):
        headers = {
            "Content-Type": obj["content_type"],
            "Etag": obj["etag"],
            "Last-Modified": format_datetime(obj["last_modified"], usegmt=True),
            "X-Trans-Id": "tx123",
        }
        headers.update(obj["meta"])
        return headers

    def _object(self, request, container, name):
        record = self.containers.get(container)
        if record is None:
            return httpx.Response(404, text="Not Found")
        objects = record["objects"]
        obj = objects.get(name)
        method = request.method

        if method == "PUT":
            content = request.content
            etag = request.headers.get("Etag")
            digest = hashlib.md5(content).hexdigest()
            if etag and etag != digest:
                return httpx.Response(422, text="Unprocessable Entity")
            objects[name] = {
                "content": content,
                "content_type": request.headers.get("Content-Type", "application/octet-stream"),
                "etag": digest,
                "last_modified": datetime.now(timezone.utc).replace(microsecond=0),
                "meta": {k.title(): v for k, v in request.headers.items()
                         if k.lower().startswith("x-object-meta-")},
            }
            return httpx.Response(201, headers={"Etag": digest})
        if obj is None:
            return httpx.Response(404, text="Not Found")
        if method == "GET":
            return httpx.Response(200, content=obj["content"], headers=self._object_headers(obj))
        if method == "HEAD":
            headers = self._object_headers(obj)
            headers["Content-Length"] = str(len(obj["content"]))
            return httpx.Response(200, headers=headers)
        if method == "POST":
            obj["meta"] = {k.title(): v for k, v in request.headers.items()
                           if k.lower().startswith("x-object-meta-")}
            return httpx.Response(202)
        if method == "DELETE":
            del objects[name]
            return httpx.Response(204)
        if method == "COPY":
            dest_container, _, dest_name = request.headers["Destination"].lstrip("/").partition("/")
            dest = self.containers.get(unquote(dest_container))
            if dest is None:
                return httpx.Response(404, text="Not Found")
            dest["objects"][unquote(dest_name)] = dict(obj, meta=dict(obj["meta"]))
            return httpx.Response(201)
        return httpx.Response(405)


@pytest.fixture
def swift():
    """Fixture providing an empty in-memory object store."""
    return FakeSwift()


@pytest.fixture
def transport(swift):
    """Fixture to provide an HTTP transport wired to the fake store."""
    transport = HttpTransport(transport=httpx.MockTransport(swift.handler), max_retries=1)
    yield transport
    transport.close()


@pytest.fixture
def store(transport):
    return ObjectStorage(TOKEN, ACCOUNT_URL, transport)


@pytest.fixture
def container(store):
    store.create_container("test")
    return store.container("test")


@pytest.fixture
def session():
    return Session(token=TOKEN, swift_endpoint=ACCOUNT_URL)


@pytest.fixture
def fs(session, transport, store):
    store.create_container("test")
    filesystem = ObjectStoreFS(session, transport=transport, catalog_cache=ServiceCatalogCache())
    yield filesystem
