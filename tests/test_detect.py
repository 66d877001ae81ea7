import json
from pathlib import Path

import pytest

from gostman_interchange.formats.detect import Format, detect_format

FIXTURES = Path(__file__).parent / "fixtures"


class TestDetectFormat:
    def test_detect_postman_fixture(self):
        assert detect_format((FIXTURES / "sample.postman.json").read_text(encoding="utf-8")) == Format.POSTMAN

    def test_detect_gostman_fixture(self):
        assert detect_format((FIXTURES / "sample.gostman.json").read_text(encoding="utf-8")) == "gostman"

    def test_detect_openapi(self):
        assert detect_format(json.dumps({"openapi": "3.0.3", "paths": {}})) == Format.OPENAPI

    def test_detect_swagger_needs_info(self):
        assert detect_format(json.dumps({"swagger": "2.0", "info": {"title": "x"}})) == Format.OPENAPI
        assert detect_format(json.dumps({"swagger": "2.0"})) == Format.UNKNOWN

    def test_detect_native_without_gostman_key(self):
        assert detect_format(json.dumps({"version": "1.0.0", "requests": []})) == Format.GOSTMAN

    def test_postman_wins_over_openapi(self):
        doc = {"openapi": "3.0.0", "info": {"schema": "https://schema.getpostman.com/json/collection/v2.1.0/"}}
        assert detect_format(json.dumps(doc)) == Format.POSTMAN

    def test_openapi_wins_over_native(self):
        assert detect_format(json.dumps({"openapi": "3.0.0", "gostman": {}})) == Format.OPENAPI

    def test_postman_without_schema_is_unknown(self):
        assert detect_format(json.dumps({"info": {"name": "x"}, "item": []})) == Format.UNKNOWN

    def test_accepts_parsed_dict(self):
        assert detect_format({"gostman": {}}) == Format.GOSTMAN

    def test_yaml_is_not_detected(self):
        assert detect_format("openapi: 3.0.3\ninfo:\n  title: x\n") == Format.UNKNOWN


class TestDetectTotality:
    @pytest.mark.parametrize(
        "text",
        [
            "",
            "   ",
            "not json at all",
            "{",
            "null",
            "42",
            '"string"',
            "[1, 2, 3]",
            '{"info": "not an object"}',
            '{"info": {"schema": 7}}',
            "[" * 100000,
            "\x00\xff",
        ],
    )
    def test_never_raises(self, text):
        assert detect_format(text) in set(Format)

    def test_result_is_one_of_four_labels(self):
        assert {f.value for f in Format} == {"postman", "openapi", "gostman", "unknown"}
