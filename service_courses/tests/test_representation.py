"""
Unit tests for Accept negotiation and XML rendering.
"""

from xml.etree import ElementTree

import pytest

from shared.errors import NotAcceptable
from service_courses.app.caching.representation import (
    JSON_MEDIA_TYPE,
    XML_MEDIA_TYPE,
    negotiate,
    render,
    serialize_xml,
)


class TestNegotiate:
    """Test cases for negotiate."""

    @pytest.mark.parametrize("accept", [None, "", "   ", "*/*", "application/*", "application/json", "text/json"])
    def test_json_by_default(self, accept):
        assert negotiate(accept) == JSON_MEDIA_TYPE

    @pytest.mark.parametrize("accept", ["application/xml", "text/xml", "TEXT/XML", "application/atom+xml"])
    def test_xml_media_ranges(self, accept):
        assert negotiate(accept) == XML_MEDIA_TYPE

    def test_vendor_json(self):
        assert negotiate("application/vnd.courselib.hateoas+json") == JSON_MEDIA_TYPE

    def test_highest_quality_wins(self):
        """Test q-values outrank header order."""
        assert negotiate("application/json;q=0.4, application/xml;q=0.9") == XML_MEDIA_TYPE
        assert negotiate("application/xml;q=0.4, */*") == JSON_MEDIA_TYPE

    def test_header_order_breaks_ties(self):
        assert negotiate("application/xml, application/json") == XML_MEDIA_TYPE
        assert negotiate("application/json, application/xml") == JSON_MEDIA_TYPE

    def test_zero_quality_excludes(self):
        """Test q=0 rules a representation out."""
        assert negotiate("application/json;q=0, */*;q=0.1") == JSON_MEDIA_TYPE
        assert negotiate("application/json;q=0, text/xml;q=0.2") == XML_MEDIA_TYPE

    @pytest.mark.parametrize("accept", ["application/pdf", "image/png, text/html", "application/json;q=0"])
    def test_not_acceptable(self, accept):
        """Test headers admitting neither representation are refused."""
        with pytest.raises(NotAcceptable):
            negotiate(accept)


class TestSerializeXml:
    """Test cases for serialize_xml."""

    def test_entity_document(self):
        """Test a shaped entity becomes one element per field, in order."""
        root = ElementTree.fromstring(serialize_xml({"name": "Berry", "age": 373}, "AuthorDto"))

        assert root.tag == "AuthorDto"
        assert [(child.tag, child.text) for child in root] == [("name", "Berry"), ("age", "373")]

    def test_collection_document(self):
        root = ElementTree.fromstring(serialize_xml([{"title": "A"}, {"title": "B"}], "CourseDto"))

        assert root.tag == "ArrayOfCourseDto"
        assert [child.tag for child in root] == ["CourseDto", "CourseDto"]
        assert [child.findtext("title") for child in root] == ["A", "B"]

    def test_empty_collection(self):
        assert serialize_xml([], "CourseDto") == b"<ArrayOfCourseDto />"

    def test_null_and_boolean_values(self):
        """Test null fields are marked nil and booleans are lower case."""
        root = ElementTree.fromstring(serialize_xml({"description": None, "active": True}, "CourseDto"))

        assert root.find("description").get("nil") == "true"
        assert root.findtext("active") == "true"

    def test_text_is_escaped(self):
        """Test markup characters in values survive a round through the parser."""
        body = serialize_xml({"title": "Rum & <Rye>"}, "CourseDto")

        assert b"&amp;" in body
        assert ElementTree.fromstring(body).findtext("title") == "Rum & <Rye>"


class TestRender:
    """Test cases for render."""

    def test_json(self):
        assert render({"title": "A"}, JSON_MEDIA_TYPE, "CourseDto") == b'{"title":"A"}'

    def test_xml(self):
        assert render({"title": "A"}, XML_MEDIA_TYPE, "CourseDto") == b"<CourseDto><title>A</title></CourseDto>"
