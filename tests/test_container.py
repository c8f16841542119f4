import hashlib
import io

import httpx
import pytest

from objectstore_sdk.client.acl import ACL
from objectstore_sdk.client.container import Container
from objectstore_sdk.client.exceptions import ConfigurationError, NotFoundError, ObjectStoreError
from objectstore_sdk.client.objects import EntryKind, RemoteObject, StorageObject, Subdir
from objectstore_sdk.client.transport import HttpTransport

from conftest import ACCOUNT_URL, TOKEN


def lowered(metadata):
    return {key.lower(): value for key, value in metadata.items()}


def test_save_fetch_delete_scenario(store, swift):
    assert store.create_container("X")
    container = store.container("X")

    assert container.save(StorageObject("foo.txt", "hi", "text/plain"))
    assert swift.content("X", "foo.txt") == b"hi"

    assert container.object("foo.txt").content() == b"hi"
    assert container.delete("foo.txt") is True
    assert container.delete("foo.txt") is False


def test_save_sends_etag_metadata_and_headers(container, swift):
    obj = StorageObject("docs/readme.md", b"# hello", "text/markdown")
    obj.metadata = {"Author": "alice"}
    obj.set_additional_headers({"X-Delete-After": "3600"})
    container.save(obj)

    fetched = container.proxy_object("docs/readme.md")
    assert fetched.content_type == "text/markdown"
    assert lowered(fetched.metadata) == {"author": "alice"}
    assert fetched.etag == hashlib.md5(b"# hello").hexdigest()
    assert fetched.content_length == 7


def test_save_from_stream(container, swift):
    stream = io.BytesIO(b"streamed body")
    stream.seek(5)
    container.save(StorageObject("s.bin"), stream)
    assert swift.content("test", "s.bin") == b"streamed body"


def test_save_chunked(container, swift):
    obj = StorageObject("chunked.bin", b"x" * 10)
    obj.set_chunked(True)
    container.save(obj)
    assert swift.content("test", "chunked.bin") == b"x" * 10


def test_save_requires_name(container):
    with pytest.raises(ValueError):
        container.save(StorageObject(""))


def test_object_not_found(container):
    with pytest.raises(NotFoundError):
        container.object("missing")
    with pytest.raises(NotFoundError):
        container.proxy_object("missing")


def test_object_is_eager_and_proxy_is_lazy(container, swift):
    swift.put_object("test", "a.txt", "body")
    assert container.object("a.txt").has_content()
    assert swift.count("GET", "/test/a.txt") == 1

    proxy = container.proxy_object("a.txt")
    assert not proxy.has_content()
    assert swift.count("HEAD", "/test/a.txt") == 1
    assert proxy.content() == b"body"
    assert swift.count("GET", "/test/a.txt") == 2


def test_copy_within_and_across_containers(store, container, swift):
    swift.put_object("test", "src.txt", "payload")
    store.create_container("other")
    source = container.proxy_object("src.txt")

    assert container.copy(source, "dup.txt")
    assert container.copy(source, "moved/src.txt", "other")
    assert swift.content("test", "dup.txt") == b"payload"
    assert swift.content("other", "moved/src.txt") == b"payload"
    assert swift.has_object("test", "src.txt")


def test_copy_requires_new_name(container, swift):
    swift.put_object("test", "src.txt", "payload")
    with pytest.raises(ValueError):
        container.copy(container.proxy_object("src.txt"), "")


def test_update_metadata(container, swift):
    swift.put_object("test", "m.txt", "body")
    obj = container.proxy_object("m.txt")
    obj.metadata = {"Color": "blue"}
    assert container.update_metadata(obj)
    assert lowered(container.proxy_object("m.txt").metadata) == {"color": "blue"}


def test_prefix_listing_yields_leaf_and_subdir(container, swift):
    swift.put_object("test", "a/b.txt", "1")
    swift.put_object("test", "a/c/d.txt", "2")

    entries = container.objects_with_prefix("a/", "/")
    leaves = [e for e in entries if e.kind is EntryKind.LEAF]
    branches = [e for e in entries if e.kind is EntryKind.BRANCH]

    assert [leaf.name for leaf in leaves] == ["a/b.txt"]
    assert isinstance(leaves[0], RemoteObject)
    assert branches == [Subdir("a/c/", "/")]


def test_listing_entries_carry_metadata(container, swift):
    swift.put_object("test", "x.txt", "12345", content_type="text/plain")
    (entry,) = container.objects()
    assert entry.content_length == 5
    assert entry.content_type == "text/plain"
    assert entry.etag == hashlib.md5(b"12345").hexdigest()
    assert entry.last_modified > 0


def test_objects_by_path_lists_one_level(container, swift):
    swift.put_object("test", "a/b.txt", "1")
    swift.put_object("test", "a/c/d.txt", "2")
    swift.put_object("test", "top.txt", "3")
    assert [e.name for e in container.objects_by_path("a")] == ["a/b.txt"]


def test_limit_and_marker_page_listing(container, swift):
    for name in ("a", "b", "c", "d"):
        swift.put_object("test", name, name)
    assert [e.name for e in container.objects(limit=2)] == ["a", "b"]
    assert [e.name for e in container.objects(limit=2, marker="b")] == ["c", "d"]


def test_iteration_covers_every_object(container, swift):
    for i in range(5):
        swift.put_object("test", f"obj-{i}", str(i))
    assert [e.name for e in container] == [f"obj-{i}" for i in range(5)]


def test_unexpected_listing_entry_is_an_error():
    handler = lambda request: httpx.Response(200, json=[{"weird": True}])
    transport = HttpTransport(transport=httpx.MockTransport(handler))
    container = Container("c", f"{ACCOUNT_URL}/c", TOKEN, transport)
    with pytest.raises(ObjectStoreError) as exc_info:
        container.objects()
    assert exc_info.value.code == "ERR_UNEXPECTED_ENTITY"


def test_empty_listing(container):
    assert container.objects() == []


def test_listed_container_loads_details_once(store, swift):
    store.create_container("pub", ACL.make_public(), {"Owner": "alice"})
    swift.put_object("pub", "f", "abc")

    container = store.containers()["pub"]
    assert container.count() == 1
    assert container.bytes() == 3
    assert swift.count("HEAD", "/pub") == 0

    assert container.acl().is_public()
    assert lowered(container.metadata()) == {"owner": "alice"}
    assert swift.count("HEAD", "/pub") == 1


def test_unbound_container_raises_configuration_error():
    container = Container("orphan")
    with pytest.raises(ConfigurationError):
        container.acl()
    with pytest.raises(ConfigurationError):
        container.object("x")
