import json
from pathlib import Path

from gostman_interchange.formats.base import Folder, Request
from gostman_interchange.formats.postman import (
    export_to_postman,
    import_postman_collection,
    parse_postman_collection,
    parse_url,
    url_to_string,
)
from gostman_interchange.formats.postman_models import POSTMAN_SCHEMA_URL, Url

FIXTURES = Path(__file__).parent / "fixtures"


def _load_sample() -> dict:
    return json.loads((FIXTURES / "sample.postman.json").read_text(encoding="utf-8"))


def _by_name(requests, name):
    return [r for r in requests if r.name == name][0]


class TestPostmanImport:
    def test_counts_and_collection_name(self):
        result = import_postman_collection(_load_sample())
        assert result.collection_name == "Pet Store"
        assert len(result.requests) == 4
        assert len(result.folders) == 2

    def test_folders_pre_order_with_parent_links(self):
        result = import_postman_collection(_load_sample())
        pets, owners = result.folders
        assert pets.name == "Pets"
        assert pets.parent_id is None
        assert pets.description == "Everything about pets"
        assert pets.is_open is True
        assert owners.name == "Owners"
        assert owners.parent_id == pets.id

    def test_requests_placed_in_their_folders(self):
        result = import_postman_collection(_load_sample())
        pets, owners = result.folders
        assert _by_name(result.requests, "List pets").folder_id == pets.id
        assert _by_name(result.requests, "Create owner").folder_id == owners.id
        assert _by_name(result.requests, "Search").folder_id is None

    def test_disabled_query_and_headers_skipped(self):
        result = import_postman_collection(_load_sample())
        req = _by_name(result.requests, "List pets")
        assert req.id == "list-pets"
        assert req.url == "{{baseUrl}}/pets?limit=10&offset=0"
        assert req.query_map == {"limit": "10"}
        assert req.header_map == {"Accept": "application/json"}
        assert req.body == ""

    def test_auth_flattened_into_headers(self):
        result = import_postman_collection(_load_sample())
        req = _by_name(result.requests, "Create owner")
        assert req.header_map == {"token": "secret-token"}

    def test_urlencoded_body_becomes_json_object(self):
        result = import_postman_collection(_load_sample())
        req = _by_name(result.requests, "Create owner")
        assert json.loads(req.body) == {"name": "Alice", "age": "31"}
        assert req.body.startswith("{\n  ")

    def test_unnamed_request_uses_url_path(self):
        result = import_postman_collection(_load_sample())
        req = _by_name(result.requests, "/pets")
        assert req.method == "POST"
        assert req.url == "https://petstore.example.com/pets"
        assert req.body == '{"name": "Rex"}'
        assert req.description == "Adds a pet"
        assert req.id

    def test_graphql_body_and_unknown_method(self):
        result = import_postman_collection(_load_sample())
        req = _by_name(result.requests, "Search")
        assert req.method == "GET"
        assert req.body == "{ pets { name } }"

    def test_generated_ids_are_unique(self):
        result = import_postman_collection(_load_sample())
        ids = [f.id for f in result.folders] + [r.id for r in result.requests]
        assert len(set(ids)) == len(ids)

    def test_formdata_body(self):
        collection = {
            "info": {"name": "Forms", "schema": POSTMAN_SCHEMA_URL},
            "item": [
                {
                    "name": "Upload",
                    "request": {
                        "method": "POST",
                        "url": "https://x.io/upload",
                        "body": {
                            "mode": "formdata",
                            "formdata": [
                                {"key": "title", "value": "cat"},
                                {"key": "hidden", "value": "x", "disabled": True},
                            ],
                        },
                    },
                }
            ],
        }
        result = import_postman_collection(collection)
        assert json.loads(result.requests[0].body) == {"title": "cat"}

    def test_missing_name_defaults(self):
        result = import_postman_collection({"item": [{"request": {"method": "GET"}}]})
        assert result.collection_name == "Imported Collection"
        assert result.requests[0].name == "Untitled Request"
        assert result.requests[0].url == ""


class TestParsePostmanCollection:
    def test_success(self):
        outcome = parse_postman_collection((FIXTURES / "sample.postman.json").read_text(encoding="utf-8"))
        assert outcome.success is True
        assert outcome.format == "postman"
        assert len(outcome.requests) == 4

    def test_invalid_json(self):
        outcome = parse_postman_collection("{not json")
        assert outcome.success is False
        assert "Invalid JSON" in outcome.error
        assert outcome.requests == []

    def test_wrong_envelope_shape(self):
        outcome = parse_postman_collection(json.dumps({"info": {"name": "x"}, "item": "nope"}))
        assert outcome.success is False
        assert "Invalid Postman collection" in outcome.error
        assert outcome.requests == []
        assert outcome.folders == []

    def test_not_an_object(self):
        outcome = parse_postman_collection("[1, 2, 3]")
        assert outcome.success is False

    def test_malformed_auth_parameters(self):
        collection = {
            "info": {"name": "Auth", "schema": POSTMAN_SCHEMA_URL},
            "item": [
                {
                    "name": "Keyed",
                    "request": {
                        "method": "GET",
                        "url": "https://x.io",
                        "auth": {"type": "apikey", "apikey": [{"key": 1, "value": "v"}]},
                    },
                }
            ],
        }
        outcome = parse_postman_collection(json.dumps(collection))
        assert outcome.success is False
        assert "Invalid Postman collection" in outcome.error
        assert outcome.requests == []

    def test_auth_parameters_v20_mapping(self):
        collection = {
            "item": [
                {
                    "name": "Basic",
                    "request": {
                        "url": "https://x.io",
                        "auth": {"type": "basic", "basic": {"username": "ann", "password": "pw"}},
                    },
                }
            ],
        }
        req = import_postman_collection(collection).requests[0]
        assert req.header_map == {"username": "ann", "password": "pw"}


class TestUrlParsing:
    def test_parse_variable_host(self):
        url = parse_url("{{baseUrl}}/users/:id?active=true#top")
        assert url.host == ["{{baseUrl}}"]
        assert url.path == ["users", ":id"]
        assert [(q.key, q.value) for q in url.query] == [("active", "true")]
        assert url.hash == "top"

    def test_parse_port(self):
        url = parse_url("http://localhost:8080/api")
        assert url.protocol == "http"
        assert url.host == ["localhost"]
        assert url.port == "8080"
        assert url.path == ["api"]

    def test_rebuild_without_raw(self):
        url = Url(protocol="https", host=["api", "x", "com"], port="8443", path=["v1", "items"])
        assert url_to_string(url) == "https://api.x.com:8443/v1/items"


class TestPostmanExport:
    def test_collection_info(self):
        collection = export_to_postman([], [], {"name": "My API", "description": "Docs"})
        assert collection["info"]["name"] == "My API"
        assert collection["info"]["description"] == "Docs"
        assert collection["info"]["schema"] == POSTMAN_SCHEMA_URL
        assert collection["item"] == []

    def test_default_options(self):
        collection = export_to_postman([Request(name="a", url="https://x.io")])
        assert collection["info"]["name"] == "Gostman Collection"

    def test_headers_query_and_json_body(self):
        req = Request(
            name="Create",
            method="POST",
            url="https://api.x.com/items",
            headers={"Content-Type": "application/json"},
            query_params={"dry": "1"},
            body='  {"a": 1}',
        )
        item = export_to_postman([req])["item"][0]
        request = item["request"]
        assert item["name"] == "Create"
        assert request["method"] == "POST"
        assert request["header"] == [{"key": "Content-Type", "value": "application/json"}]
        assert request["url"]["raw"] == "https://api.x.com/items"
        assert request["url"]["query"] == [{"key": "dry", "value": "1"}]
        assert request["body"]["mode"] == "raw"
        assert request["body"]["options"] == {"raw": {"language": "json"}}

    def test_plain_body_has_no_language_hint(self):
        req = Request(name="Text", method="POST", url="https://x.io", body="hello")
        body = export_to_postman([req])["item"][0]["request"]["body"]
        assert body == {"mode": "raw", "raw": "hello"}

    def test_query_already_in_url_not_duplicated(self):
        req = Request(url="https://x.io/a?page=2", query_params={"page": "2", "size": "5"})
        query = export_to_postman([req])["item"][0]["request"]["url"]["query"]
        assert [q["key"] for q in query] == ["page", "size"]

    def test_requests_grouped_into_folders(self):
        folders = [Folder(id="f1", name="Users"), Folder(id="f2", name="Orders")]
        requests = [
            Request(id="r1", name="List users", url="https://x.io/users", folder_id="f1"),
            Request(id="r2", name="Health", url="https://x.io/health"),
            Request(id="r3", name="List orders", url="https://x.io/orders", folder_id="f2"),
            Request(id="r4", name="Get user", url="https://x.io/users/1", folder_id="f1"),
        ]
        items = export_to_postman(requests, folders)["item"]
        assert [i["name"] for i in items] == ["Health", "Users", "Orders"]
        assert [i["name"] for i in items[1]["item"]] == ["List users", "Get user"]

    def test_dangling_folder_reference_goes_to_root(self):
        req = Request(name="Orphan", url="https://x.io", folder_id="missing")
        items = export_to_postman([req], [])["item"]
        assert items[0]["name"] == "Orphan"
        assert "item" not in items[0]

    def test_empty_folder_elided(self):
        folders = [Folder(id="f1", name="Empty"), Folder(id="f2", name="Full")]
        requests = [Request(name="r", url="https://x.io", folder_id="f2")]
        items = export_to_postman(requests, folders)["item"]
        assert "Empty" not in [i["name"] for i in items]
        assert [i["name"] for i in items] == ["Full"]

    def test_folders_exported_flat(self):
        folders = [
            Folder(id="parent", name="Parent"),
            Folder(id="child", name="Child", parent_id="parent"),
        ]
        requests = [
            Request(name="top", url="https://x.io", folder_id="parent"),
            Request(name="deep", url="https://x.io", folder_id="child"),
        ]
        items = export_to_postman(requests, folders)["item"]
        assert [i["name"] for i in items] == ["Parent", "Child"]
        assert [i["name"] for i in items[0]["item"]] == ["top"]
        assert [i["name"] for i in items[1]["item"]] == ["deep"]

    def test_parent_without_own_requests_elided(self):
        folders = [
            Folder(id="parent", name="Parent"),
            Folder(id="child", name="Child", parent_id="parent"),
        ]
        requests = [Request(name="deep", url="https://x.io", folder_id="child")]
        items = export_to_postman(requests, folders)["item"]
        assert "Parent" not in [i["name"] for i in items]
        assert [i["name"] for i in items] == ["Child"]

    def test_malformed_headers_tolerated(self):
        requests = [
            Request(name="bad", url="https://x.io", headers="{oops", query_params="[1]"),
            Request(name="good", url="https://x.io", headers={"A": "b"}),
        ]
        items = export_to_postman(requests)["item"]
        assert items[0]["request"]["header"] == []
        assert items[1]["request"]["header"] == [{"key": "A", "value": "b"}]


class TestPostmanRoundTrip:
    def test_round_trip_preserves_request_fields(self):
        original = Request(
            name="Update user",
            method="PUT",
            url="https://api.x.com/users/7?notify=yes",
            headers={"Authorization": "Bearer t0k", "Accept": "application/json"},
            query_params={"notify": "yes"},
            body='{"name": "Bob"}',
            description="Renames a user",
        )
        imported = import_postman_collection(export_to_postman([original], [])).requests[0]
        assert imported.name == original.name
        assert imported.method == original.method
        assert imported.url == original.url
        assert imported.header_map == original.header_map
        assert imported.query_map == original.query_map
        assert imported.body == original.body
        assert imported.description == original.description
        assert imported.id == original.id

    def test_round_trip_flattens_folders(self):
        folders = [Folder(id="p", name="Parent"), Folder(id="c", name="Child", parent_id="p")]
        requests = [
            Request(name="top", url="https://x.io/top", folder_id="p"),
            Request(name="deep", url="https://x.io/deep", folder_id="c"),
        ]
        result = import_postman_collection(export_to_postman(requests, folders))
        parent, child = result.folders
        assert (parent.name, child.name) == ("Parent", "Child")
        assert child.parent_id is None
        assert _by_name(result.requests, "deep").folder_id == child.id
