from __future__ import annotations

import logging

import pytest
from sqlalchemy.orm import Session

from restful_api.models.author import Author
from restful_api.models.post import Post
from restful_api.models.request_log import RequestLog
from restful_api.transformers.base import BaseTransformer, camel_case
from restful_api.transformers.post_transformer import EXCERPT_LENGTH, PostTransformer


@pytest.fixture()
def author(db_session: Session) -> Author:
    a = Author(name="Barbara Liskov", email="barbara@example.com", password_hash="secret")
    db_session.add(a)
    db_session.commit()
    db_session.refresh(a)
    return a


def test_uuid_models_hide_primary_key_and_hidden_attributes(author: Author):
    data = BaseTransformer("snake").transform(author)
    assert data["author_uuid"] == author.author_uuid
    assert "author_id" not in data
    assert "password_hash" not in data
    assert data["name"] == "Barbara Liskov"
    assert isinstance(data["created_at"], str)


def test_models_without_uuid_keep_primary_key(db_session: Session):
    log = RequestLog(method="GET", path="/", status_code=200)
    db_session.add(log)
    db_session.commit()
    db_session.refresh(log)

    data = BaseTransformer("snake").transform(log)
    assert data["request_log_id"] == log.request_log_id
    assert data["status_code"] == 200


def test_camel_case_keys(author: Author):
    data = BaseTransformer("camel").transform(author)
    assert "authorUuid" in data
    assert "createdAt" in data
    assert "author_uuid" not in data


def test_case_type_from_env(monkeypatch: pytest.MonkeyPatch, author: Author):
    monkeypatch.setenv("RESTFUL_API_CASE_TYPE", "camel")
    assert "authorUuid" in BaseTransformer().transform(author)


def test_unknown_case_type_is_rejected():
    with pytest.raises(ValueError):
        BaseTransformer("kebab")


def test_unknown_case_type_in_env_falls_back_to_snake(
    monkeypatch: pytest.MonkeyPatch, caplog: pytest.LogCaptureFixture, author: Author
):
    monkeypatch.setenv("RESTFUL_API_CASE_TYPE", "kebab")
    with caplog.at_level(logging.WARNING, logger="restful_api.transformers.base"):
        transformer = Author.get_transformer()

    assert transformer.case_type == "snake"
    assert "author_uuid" in transformer.transform(author)
    assert "RESTFUL_API_CASE_TYPE" in caplog.text


def test_camel_case():
    assert camel_case("author_uuid") == "authorUuid"
    assert camel_case("status_code_2") == "statusCode2"
    assert camel_case("name") == "name"


def test_transform_keeps_attribute_order(author: Author):
    author.order_attributes_uuid_first()
    assert list(BaseTransformer("snake").transform(author))[0] == "author_uuid"


def test_loaded_relations_use_their_own_transformer(db_session: Session, author: Author):
    author_uuid = author.author_uuid
    post = Post(author_id=author.author_id, title="Abstraction", body="x" * (EXCERPT_LENGTH + 20))
    db_session.add(post)
    db_session.commit()
    post_uuid = post.post_uuid
    db_session.expunge_all()

    loaded = Post.query(db_session).with_local().find(post_uuid)
    data = PostTransformer("snake").transform(loaded)

    assert "post_id" not in data
    assert "author_id" not in data
    assert data["author_uuid"] == author_uuid
    assert data["excerpt"].endswith("...")
    assert len(data["excerpt"]) == EXCERPT_LENGTH + 3
    assert data["author"]["author_uuid"] == author_uuid
    assert "password_hash" not in data["author"]
    assert "posts" not in data["author"]


def test_unloaded_relations_are_skipped(db_session: Session, author: Author):
    post = Post(author_id=author.author_id, title="Short", body="tiny")
    db_session.add(post)
    db_session.commit()
    post_uuid = post.post_uuid
    db_session.expunge_all()

    plain = Post.query(db_session).find(post_uuid)
    data = plain.get_transformer().transform(plain)
    assert "author" not in data
    assert data["excerpt"] == "tiny"


def test_transform_collection(db_session: Session, author: Author):
    data = BaseTransformer("snake").transform_collection([author])
    assert [d["author_uuid"] for d in data] == [author.author_uuid]
