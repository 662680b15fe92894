"""
Sort mappings and field shapes of the Course Library DTOs.
"""

from ..mapping.property_checker import PropertyShapeValidator
from ..mapping.property_mapping import EntityMapping, FieldMapping, PropertyMappingRegistry, SourceField
from .models import Author, AuthorDto, Course, CourseDto


AUTHOR_MAPPING = EntityMapping(
    entity_type=AuthorDto,
    source_type=Author,
    mappings=(
        FieldMapping("id", (SourceField("id"),)),
        FieldMapping("mainCategory", (SourceField("main_category"),)),
        # An older birth date means a higher age
        FieldMapping("age", (SourceField("date_of_birth", revert_order=True),)),
        FieldMapping(
            "name",
            (SourceField("first_name"), SourceField("last_name")),
            is_default_sort=True,
        ),
    ),
)

COURSE_MAPPING = EntityMapping(
    entity_type=CourseDto,
    source_type=Course,
    mappings=(
        FieldMapping("id", (SourceField("id"),)),
        FieldMapping("title", (SourceField("title"),), is_default_sort=True),
        FieldMapping("description", (SourceField("description"),)),
    ),
)


def build_property_mappings() -> PropertyMappingRegistry:
    return PropertyMappingRegistry([AUTHOR_MAPPING, COURSE_MAPPING])


def build_shape_validator() -> PropertyShapeValidator:
    return PropertyShapeValidator([AuthorDto, CourseDto])
