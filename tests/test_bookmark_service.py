"""Tests for the bookmark service."""

from uuid import uuid4

import pytest

from artspark.domain.errors import Forbidden, NotFound, Unauthenticated
from artspark.domain.users import Identity
from artspark.services.bookmarks import BookmarkService
from artspark.services.session_context import SessionContext


def test_add_and_list_newest_first(bookmark_repository, session) -> None:
    service = BookmarkService(bookmark_repository, session)
    first = service.add("https://images.unsplash.com/one")
    second = service.add("https://example.com/two", source="web")

    bookmarks = service.list_mine()

    assert [item.id for item in bookmarks] == [second, first]
    assert bookmarks[1].source == "unsplash"
    assert {item.uid for item in bookmarks} == {"A"}


def test_list_without_session_is_empty(bookmark_repository, anonymous) -> None:
    service = BookmarkService(bookmark_repository, anonymous)

    assert service.list_mine() == []


def test_add_requires_session(bookmark_repository, anonymous) -> None:
    service = BookmarkService(bookmark_repository, anonymous)

    with pytest.raises(Unauthenticated):
        service.add("https://images.unsplash.com/one")


def test_remove_deletes_bookmark(bookmark_repository, session) -> None:
    service = BookmarkService(bookmark_repository, session)
    bookmark_id = service.add("https://images.unsplash.com/one")

    service.remove(bookmark_id)

    assert service.list_mine() == []


def test_remove_rejects_other_users_bookmark(bookmark_repository, session) -> None:
    owner = BookmarkService(bookmark_repository, session)
    bookmark_id = owner.add("https://images.unsplash.com/one")
    intruder = BookmarkService(
        bookmark_repository, SessionContext(Identity("B", "b@example.com"))
    )

    with pytest.raises(Forbidden):
        intruder.remove(bookmark_id)
    assert [item.id for item in owner.list_mine()] == [bookmark_id]


def test_remove_missing_or_anonymous(bookmark_repository, session, anonymous) -> None:
    bookmark_id = BookmarkService(bookmark_repository, session).add(
        "https://images.unsplash.com/one"
    )

    with pytest.raises(NotFound):
        BookmarkService(bookmark_repository, session).remove(uuid4())
    with pytest.raises(Unauthenticated):
        BookmarkService(bookmark_repository, anonymous).remove(bookmark_id)
    assert bookmark_id in bookmark_repository.bookmarks
