"""Tests for the pydantic materializer."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from uuid import UUID

import pytest
from pydantic import BaseModel, Field, RootModel, ValidationError

from conftest import BlogPost
from simpli_http import (
    MaterializationError,
    ShapeOptions,
    http_exclude,
    request_exclude,
    response_exclude,
    response_expose,
    response_serialize,
)


class Author(BaseModel):
    id: int
    name: str
    email: str | None = None


@dataclass
class Comment:
    id: int
    text: str
    tags: list[str] = field(default_factory=list)


class Color(Enum):
    RED = "red"


class Aliased(BaseModel):
    user_id: int = Field(alias="userId")
    title: str


class Node(BaseModel):
    root: str
    depth: int = 0


class Tags(RootModel[list[str]]):
    pass


class TestToPlain:
    """Test instance -> plain conversion."""

    def test_scalars_pass_through(self, materializer):
        assert materializer.to_plain(None) is None
        assert materializer.to_plain("a") == "a"
        assert materializer.to_plain(3) == 3

    def test_pydantic_model(self, materializer):
        assert materializer.to_plain(Author(id=1, name="Ana")) == {"id": 1, "name": "Ana", "email": None}

    def test_pydantic_alias_is_used(self, materializer, visibility):
        class Profile(BaseModel):
            display_name: str = Field(serialization_alias="displayName")
            secret: str = "x"

        visibility.register(Profile, {"secret": request_exclude()})

        assert materializer.to_plain(Profile(display_name="Ana")) == {"displayName": "Ana"}

    def test_nested_objects(self, materializer):
        post = BlogPost()
        post.id = 1
        post.body = Comment(2, "nice", ["a"])

        plain = materializer.to_plain(post)

        assert plain["body"] == {"id": 2, "text": "nice", "tags": ["a"]}

    def test_private_attributes_are_skipped(self, materializer):
        post = BlogPost()
        post._cache = "internal"

        assert "_cache" not in materializer.to_plain(post)

    def test_exclude_none(self, materializer):
        post = BlogPost()
        post.id = 5

        assert materializer.to_plain(post, ShapeOptions(exclude_none=True)) == {"id": 5}

    def test_collections_and_special_values(self, materializer):
        value = {
            "when": datetime(2024, 1, 2, 3, 4, 5),
            "id": UUID("12345678-1234-5678-1234-567812345678"),
            "color": Color.RED,
            "items": (1, 2),
        }

        assert materializer.to_plain(value) == {
            "when": "2024-01-02T03:04:05",
            "id": "12345678-1234-5678-1234-567812345678",
            "color": "red",
            "items": [1, 2],
        }


class TestToShapeConstructor:
    """Test plain -> new instance."""

    def test_pydantic_model(self, materializer):
        author = materializer.to_shape(Author, {"id": "3", "name": "Ana"})

        assert author == Author(id=3, name="Ana")

    def test_strict_option(self, materializer):
        with pytest.raises(ValidationError):
            materializer.to_shape(Author, {"id": "3", "name": "Ana"}, ShapeOptions(strict=True))

    def test_dataclass(self, materializer):
        comment = materializer.to_shape(Comment, {"id": 1, "text": "hi", "unknown": True})

        assert comment == Comment(1, "hi")

    def test_mapping_construct(self, materializer):
        assert materializer.to_shape(dict[str, int], {"year": "2009"}) == {"year": 2009}

    def test_builtins(self, materializer):
        assert materializer.to_shape(int, "42") == 42
        assert materializer.to_shape(str, "") == ""
        assert materializer.to_shape(bool, "true") is True

    def test_list_of_builtins(self, materializer):
        assert materializer.to_shape(str, ["a", "b"]) == ["a", "b"]

    def test_typing_construct(self, materializer):
        assert materializer.to_shape(list[Author], [{"id": 1, "name": "A"}]) == [Author(id=1, name="A")]

    def test_list_of_models(self, materializer):
        authors = materializer.to_shape(Author, [{"id": 1, "name": "A"}, {"id": 2, "name": "B"}])

        assert [a.id for a in authors] == [1, 2]

    def test_list_of_models_with_root_field(self, materializer):
        nodes = materializer.to_shape(Node, [{"root": "a"}, {"root": "b", "depth": 1}])

        assert nodes == [Node(root="a"), Node(root="b", depth=1)]

    def test_root_model_takes_whole_list(self, materializer):
        assert materializer.to_shape(Tags, ["x", "y"]) == Tags(["x", "y"])

    def test_plain_class(self, materializer):
        post = materializer.to_shape(BlogPost, {"id": 1, "title": "t", "extra": "kept"})

        assert isinstance(post, BlogPost)
        assert post.id == 1
        assert post.extra == "kept"

    def test_plain_class_from_scalar_fails(self, materializer):
        with pytest.raises(MaterializationError, match="Cannot materialize str into BlogPost"):
            materializer.to_shape(BlogPost, "text")

    def test_plain_class_needing_arguments_fails(self, materializer):
        class NeedsArgs:
            def __init__(self, required):
                self.required = required

        with pytest.raises(MaterializationError, match="without arguments"):
            materializer.to_shape(NeedsArgs, {"required": 1})

    def test_factory_function(self, materializer):
        def parse(plain):
            return ("parsed", plain)

        assert materializer.to_shape(parse, {"a": 1}) == ("parsed", {"a": 1})


class TestToShapeInstance:
    """Test plain -> existing instance."""

    def test_plain_object_is_populated(self, materializer):
        post = BlogPost()
        post.title = "kept"

        result = materializer.to_shape(post, {"id": 7})

        assert result is post
        assert (post.id, post.title) == (7, "kept")

    def test_pydantic_instance_is_updated_in_place(self, materializer):
        author = Author(id=1, name="Ana")

        result = materializer.to_shape(author, {"email": "ana@example.com"})

        assert result is author
        assert author.email == "ana@example.com"
        assert author.name == "Ana"

    def test_pydantic_instance_validation_error(self, materializer):
        author = Author(id=1, name="Ana")

        with pytest.raises(ValidationError):
            materializer.to_shape(author, {"id": "nope"})

        assert author.id == 1

    def test_aliased_pydantic_instance_is_partially_updated(self, materializer):
        item = Aliased(userId=7, title="old")

        result = materializer.to_shape(item, {"title": "new"})

        assert result is item
        assert (item.user_id, item.title) == (7, "new")

    def test_aliased_pydantic_instance_reads_alias_key(self, materializer):
        item = Aliased(userId=7, title="old")

        materializer.to_shape(item, {"userId": 8})

        assert (item.user_id, item.title) == (8, "old")

    def test_dataclass_instance_is_updated_in_place(self, materializer):
        comment = Comment(1, "old")

        result = materializer.to_shape(comment, {"text": "new", "tags": ["x"]})

        assert result is comment
        assert comment == Comment(1, "new", ["x"])

    def test_list_instance(self, materializer):
        items = [0]

        assert materializer.to_shape(items, [1, 2]) is items
        assert items == [1, 2]

    def test_instance_from_array_fails(self, materializer):
        with pytest.raises(MaterializationError):
            materializer.to_shape(BlogPost(), [{"id": 1}])

    def test_mapping_from_scalar_fails(self, materializer):
        with pytest.raises(MaterializationError):
            materializer.to_shape({}, 3)


class TestFieldRules:
    """Test field rules during materialization."""

    def test_response_rules(self, materializer, visibility):
        visibility.register(
            BlogPost,
            {
                "user_id": response_expose("userId"),
                "body": response_exclude(),
                "title": http_exclude(),
            },
        )

        post = materializer.to_shape(
            BlogPost, {"id": 1, "userId": 9, "user_id": 5, "body": "x", "title": "t"}
        )

        assert post.user_id == 9
        assert post.body is None
        assert post.title is None

    def test_nested_shape_rule(self, materializer, visibility):
        visibility.register(BlogPost, {"body": response_serialize(Comment)})

        post = materializer.to_shape(BlogPost, {"body": {"id": 1, "text": "hi"}})

        assert post.body == Comment(1, "hi")

    def test_nested_shape_rule_on_list(self, materializer, visibility):
        visibility.register(BlogPost, {"body": response_serialize(Author)})

        post = materializer.to_shape(BlogPost, {"body": [{"id": 1, "name": "a"}]})

        assert post.body == [Author(id=1, name="a")]

    def test_request_only_rules_do_not_affect_responses(self, materializer, visibility):
        visibility.register(BlogPost, {"title": request_exclude()})

        assert materializer.to_shape(BlogPost, {"title": "t"}).title == "t"
