from __future__ import annotations

from sqlalchemy import inspect
from sqlalchemy.orm import Session

from restful_api.core.identifiers import generate_uuid, is_uuid
from restful_api.models.author import Author
from restful_api.models.post import Post
from restful_api.models.request_log import RequestLog
from restful_api.transformers.base import BaseTransformer
from restful_api.transformers.post_transformer import PostTransformer


def _author(db: Session, **kwargs) -> Author:
    kwargs.setdefault("name", "Ada Lovelace")
    kwargs.setdefault("email", f"{generate_uuid()}@example.com")
    author = Author(**kwargs)
    db.add(author)
    db.flush()
    return author


def test_uuid_generated_on_create(db_session: Session):
    author = _author(db_session)
    assert author.author_id is not None
    assert is_uuid(author.author_uuid)

    db_session.commit()
    persisted = db_session.get(Author, author.author_id)
    assert persisted is not None
    assert persisted.author_uuid == author.author_uuid


def test_uuids_are_distinct_across_creations(db_session: Session):
    uuids = {_author(db_session).author_uuid for _ in range(10)}
    assert len(uuids) == 10


def test_caller_supplied_uuid_is_kept(db_session: Session):
    supplied = "3fa85f64-5717-4562-b3fc-2c963f66afa6"
    author = _author(db_session, author_uuid=supplied)
    db_session.commit()
    assert db_session.get(Author, author.author_id).author_uuid == supplied


def test_uuid_not_regenerated_on_update(db_session: Session):
    author = _author(db_session)
    original = author.author_uuid
    db_session.commit()

    author.name = "Ada King"
    db_session.commit()
    assert author.author_uuid == original


def test_model_without_uuid_key_persists_without_one(db_session: Session):
    log = RequestLog(method="GET", path="/v1/authors", status_code=200)
    db_session.add(log)
    db_session.flush()
    assert log.request_log_id is not None
    assert log.ensure_uuid() is None
    assert log.get_uuid_key() is None


def test_validation_rules_updating_defaults_to_create_rules():
    assert Author.validation_rules() == {"name": "required|string|max:255", "email": "required|email|max:255"}
    assert Author.validation_rules_updating() == Author.validation_rules()


def test_validation_rules_updating_can_be_overridden():
    assert "author_id" in Post.validation_rules()
    assert "author_id" not in Post.validation_rules_updating()
    assert Post.validation_rules_updating()["title"].startswith("sometimes")


def test_validation_defaults_are_empty():
    assert RequestLog.validation_messages() == {}
    assert Author.validation_messages() == {"email.email": "Please provide a valid email address."}


def test_get_transformer_defaults_and_overrides():
    assert type(Author.get_transformer()) is BaseTransformer
    assert type(RequestLog.get_transformer()) is BaseTransformer
    assert isinstance(Post.get_transformer(), PostTransformer)
    # Fresh instance each call.
    assert Post.get_transformer() is not Post.get_transformer()


def test_key_names():
    assert Author.get_key_name() == "author_id"
    assert Author.get_uuid_key_name() == "author_uuid"
    assert Post.get_key_name() == "post_id"
    assert RequestLog.get_uuid_key_name() is None


def test_immutable_attributes_include_keys():
    assert Author.get_immutable_attributes() >= {"author_id", "author_uuid", "created_at", "deleted_at"}
    assert Post.get_immutable_attributes() >= {"post_id", "post_uuid", "author_id"}
    assert "request_log_id" in RequestLog.get_immutable_attributes()
    assert Post.immutable_attributes_in({"title": "x", "author_id": 3, "post_uuid": "u"}) == ["author_id", "post_uuid"]
    assert Post.immutable_attributes_in({"title": "x"}) == []


def test_immutable_attributes_can_be_assigned_internally(db_session: Session):
    author = _author(db_session)
    db_session.commit()
    author.created_at = author.created_at
    author.author_uuid = generate_uuid()
    db_session.commit()


def test_order_attributes_uuid_first(db_session: Session):
    author = _author(db_session)
    keys = list(author.get_attributes())
    assert keys.index("author_uuid") > keys.index("name")
    before = author.get_attributes()

    author.order_attributes_uuid_first()
    after = author.get_attributes()
    assert list(after)[0] == "author_uuid"
    assert after == before
    assert author not in db_session.dirty
    assert not inspect(author).modified


def test_order_attributes_uuid_first_is_idempotent(db_session: Session):
    author = _author(db_session)
    author.order_attributes_uuid_first()
    once = list(author.get_attributes().items())
    author.order_attributes_uuid_first()
    assert list(author.get_attributes().items()) == once


def test_order_attributes_uuid_first_noop_without_uuid_key(db_session: Session):
    log = RequestLog(method="POST", path="/v1/posts", status_code=201)
    db_session.add(log)
    db_session.flush()
    before = list(log.get_attributes().items())
    log.order_attributes_uuid_first()
    assert list(log.get_attributes().items()) == before


def test_order_attributes_uuid_first_loads_expired_uuid(db_session: Session):
    author = _author(db_session)
    db_session.commit()  # expires all attributes
    author.order_attributes_uuid_first()
    assert list(author.get_attributes())[0] == "author_uuid"
