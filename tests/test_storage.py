"""
Unit tests for the storage engine.

Tests cover:
- Case-insensitive unique lookups and uniqueness enforcement
- Like/follow toggles and their primitives
- Feed aggregation: live counts, ordering, viewer state
- Serialization of concurrent writes on one key
"""

from concurrent.futures import ThreadPoolExecutor
from threading import Barrier

import pytest
from sqlalchemy import create_engine, insert

from connectx.core.exceptions import ConstraintViolation, InternalConsistencyError, NotFound
from connectx.crud import crud_follow, crud_like
from connectx.models import Comment, Post
from connectx.schemas.post import CommentCreate, PostCreate
from connectx.storage import Storage


def _post(storage, user, caption=None):
    return storage.create_post(user.id, PostCreate(image_url=f"https://img.example/{caption}.jpg", caption=caption))


def _feed_entry(storage, post_id, viewer_id=None):
    return next(v for v in storage.get_posts(viewer_id=viewer_id) if v.post.id == post_id)


def _insert_orphan(storage, model, **values):
    """Write a row through a bare engine, where SQLite leaves foreign keys off."""
    bare = create_engine(storage.engine.url)
    try:
        with bare.begin() as conn:
            conn.execute(insert(model.__table__).values(**values))
    finally:
        bare.dispose()


class TestUsers:
    """User creation and lookup."""

    def test_lookup_by_username_is_case_insensitive(self, storage, make_user):
        alice = make_user("Alice")

        for name in ("Alice", "alice", "ALICE", "aLiCe"):
            found = storage.get_user_by_username(name)
            assert found is not None
            assert found.id == alice.id

    def test_lookup_by_email_is_case_insensitive(self, storage, make_user):
        alice = make_user("alice", email="Alice@Example.com")
        assert storage.get_user_by_email("alice@example.COM").id == alice.id

    def test_absent_user_returns_none(self, storage):
        assert storage.get_user(12345) is None
        assert storage.get_user_by_username("nobody") is None
        assert storage.get_user_by_email("nobody@example.com") is None

    def test_create_assigns_id_and_timestamp(self, storage, make_user):
        alice = make_user("alice")
        bob = make_user("bob")
        assert alice.id != bob.id
        assert alice.created_at is not None
        assert storage.get_user(alice.id).username == "alice"

    def test_duplicate_username_any_case_rejected(self, storage, make_user):
        make_user("alice")
        with pytest.raises(ConstraintViolation) as exc_info:
            make_user("ALICE", email="other@example.com")
        assert "Username" in exc_info.value.detail

    def test_duplicate_email_rejected(self, storage, make_user):
        make_user("alice", email="shared@example.com")
        with pytest.raises(ConstraintViolation) as exc_info:
            make_user("bob", email="SHARED@example.com")
        assert "Email" in exc_info.value.detail

    def test_failed_create_leaves_no_row(self, storage, make_user):
        make_user("alice")
        with pytest.raises(ConstraintViolation):
            make_user("alice", email="again@example.com")
        assert storage.get_user_by_email("again@example.com") is None


class TestPostsAndComments:
    """Post creation and the aggregation reads."""

    def test_create_and_get_post(self, storage, make_user):
        alice = make_user("alice")
        post = _post(storage, alice, "sunset")

        fetched = storage.get_post_by_id(post.id)
        assert fetched.user_id == alice.id
        assert fetched.caption == "sunset"
        assert storage.get_post_by_id(post.id + 100) is None

    def test_create_post_for_unknown_user(self, storage):
        with pytest.raises(NotFound):
            storage.create_post(999, PostCreate(image_url="https://img/x.jpg"))

    def test_feed_is_newest_first(self, storage, make_user):
        alice = make_user("alice")
        first = _post(storage, alice, "t1")
        second = _post(storage, alice, "t2")
        third = _post(storage, alice, "t3")

        ids = [view.post.id for view in storage.get_posts()]
        assert ids == [third.id, second.id, first.id]

    def test_feed_ties_broken_by_id(self, storage, make_user):
        alice = make_user("alice")
        posts = [_post(storage, alice, str(i)) for i in range(3)]
        with storage.session() as db:
            stamp = db.get(Post, posts[0].id).created_at
            for post in posts:
                db.get(Post, post.id).created_at = stamp
            db.commit()

        ids = [view.post.id for view in storage.get_posts()]
        assert ids == sorted((p.id for p in posts), reverse=True)

    def test_feed_counts_are_live(self, storage, make_user):
        alice = make_user("alice")
        post = _post(storage, alice, "count-me")
        other = _post(storage, alice, "untouched")
        likers = [make_user(f"liker{i}") for i in range(3)]

        for liker in likers:
            storage.create_like(liker.id, post.id)
        storage.create_comment(likers[0].id, post.id, CommentCreate(content="one"))
        storage.create_comment(likers[1].id, post.id, CommentCreate(content="two"))

        entry = _feed_entry(storage, post.id)
        assert (entry.like_count, entry.comment_count) == (3, 2)
        assert entry.author.username == "alice"

        storage.remove_like(likers[2].id, post.id)
        assert _feed_entry(storage, post.id).like_count == 2

        untouched = _feed_entry(storage, other.id)
        assert (untouched.like_count, untouched.comment_count) == (0, 0)

    def test_feed_reports_viewer_like(self, storage, make_user):
        alice = make_user("alice")
        bob = make_user("bob")
        post = _post(storage, alice, "p")
        storage.create_like(bob.id, post.id)

        assert _feed_entry(storage, post.id, viewer_id=bob.id).liked is True
        assert _feed_entry(storage, post.id, viewer_id=alice.id).liked is False
        assert _feed_entry(storage, post.id).liked is False

    def test_feed_filtered_by_author(self, storage, make_user):
        alice = make_user("alice")
        bob = make_user("bob")
        _post(storage, alice, "a1")
        bob_post = _post(storage, bob, "b1")
        storage.create_like(alice.id, bob_post.id)

        views = storage.get_posts(author_id=bob.id)
        assert [v.post.id for v in views] == [bob_post.id]
        assert views[0].like_count == 1

    def test_single_post_view(self, storage, make_user):
        alice = make_user("alice")
        post = _post(storage, alice, "solo")
        storage.create_comment(alice.id, post.id, CommentCreate(content="first"))

        view = storage.get_post_view(post.id)
        assert view.comment_count == 1
        assert storage.get_post_view(post.id + 1) is None

    def test_empty_feed(self, storage):
        assert storage.get_posts() == []

    def test_missing_author_is_consistency_error(self, storage, make_user):
        """An orphaned post must fail loudly, never vanish from the feed."""
        alice = make_user("alice")
        _post(storage, alice, "fine")
        _insert_orphan(storage, Post, user_id=4242, image_url="https://img/orphan.jpg")

        with pytest.raises(InternalConsistencyError):
            storage.get_posts()

    def test_comments_joined_with_author_newest_first(self, storage, make_user):
        alice = make_user("alice")
        bob = make_user("bob")
        post = _post(storage, alice, "p")

        storage.create_comment(bob.id, post.id, CommentCreate(content="nice!"))
        storage.create_comment(alice.id, post.id, CommentCreate(content="thanks"))

        rows = storage.get_comments_by_post_id(post.id)
        assert [(c.content, u.username) for c, u in rows] == [("thanks", "alice"), ("nice!", "bob")]

    def test_orphan_comment_is_consistency_error(self, storage, make_user):
        alice = make_user("alice")
        post = _post(storage, alice, "p")
        _insert_orphan(storage, Comment, user_id=4242, post_id=post.id, content="ghost")

        with pytest.raises(InternalConsistencyError):
            storage.get_comments_by_post_id(post.id)

    def test_comment_on_missing_post(self, storage, make_user):
        alice = make_user("alice")
        with pytest.raises(NotFound):
            storage.create_comment(alice.id, 77, CommentCreate(content="hello?"))

    def test_comment_by_unknown_user(self, storage, make_user):
        alice = make_user("alice")
        post = _post(storage, alice, "p")
        with pytest.raises(NotFound):
            storage.create_comment(9999, post.id, CommentCreate(content="who am i"))
        assert _feed_entry(storage, post.id).comment_count == 0



class TestLikes:
    """Like primitives and toggle."""

    def test_toggle_twice_restores_baseline(self, storage, make_user):
        alice = make_user("alice")
        bob = make_user("bob")
        post = _post(storage, alice, "p")
        storage.create_like(alice.id, post.id)
        baseline = _feed_entry(storage, post.id).like_count

        assert storage.toggle_like(bob.id, post.id) is True
        assert _feed_entry(storage, post.id).like_count == baseline + 1
        assert storage.toggle_like(bob.id, post.id) is False
        assert _feed_entry(storage, post.id).like_count == baseline
        assert storage.get_like(bob.id, post.id) is None

    def test_duplicate_like_rejected(self, storage, make_user):
        alice = make_user("alice")
        post = _post(storage, alice, "p")
        storage.create_like(alice.id, post.id)

        with pytest.raises(ConstraintViolation):
            storage.create_like(alice.id, post.id)
        assert _feed_entry(storage, post.id).like_count == 1

    def test_remove_absent_like_is_noop(self, storage, make_user):
        alice = make_user("alice")
        post = _post(storage, alice, "p")
        storage.remove_like(alice.id, post.id)
        assert storage.get_like(alice.id, post.id) is None

    def test_like_missing_post(self, storage, make_user):
        alice = make_user("alice")
        with pytest.raises(NotFound):
            storage.toggle_like(alice.id, 999)
        with pytest.raises(NotFound):
            storage.create_like(alice.id, 999)

    def test_like_by_unknown_user(self, storage, make_user):
        alice = make_user("alice")
        post = _post(storage, alice, "p")

        with pytest.raises(NotFound):
            storage.toggle_like(9999, post.id)
        with pytest.raises(NotFound):
            storage.create_like(9999, post.id)
        assert _feed_entry(storage, post.id).like_count == 0

    def test_foreign_keys_enforced_below_storage(self, storage, make_user):
        alice = make_user("alice")
        post = _post(storage, alice, "p")

        with storage.session() as db:
            with pytest.raises(ConstraintViolation) as exc_info:
                crud_like.create_like(db, user_id=9999, post_id=post.id)
        assert exc_info.value.detail == "Referenced record does not exist"
        assert _feed_entry(storage, post.id).like_count == 0


    def test_concurrent_create_like_stores_one_row(self, storage, make_user):
        alice = make_user("alice")
        post = _post(storage, alice, "p")
        workers = 8
        barrier = Barrier(workers)

        def attempt():
            barrier.wait()
            try:
                storage.create_like(alice.id, post.id)
                return "created"
            except ConstraintViolation:
                return "rejected"

        with ThreadPoolExecutor(max_workers=workers) as pool:
            outcomes = list(pool.map(lambda _: attempt(), range(workers)))

        assert outcomes.count("created") == 1
        assert outcomes.count("rejected") == workers - 1
        assert _feed_entry(storage, post.id).like_count == 1

    def test_unique_constraint_holds_without_process_lock(self, storage, make_user):
        """A second storage instance (no shared lock) still cannot double-like."""
        alice = make_user("alice")
        post = _post(storage, alice, "p")
        other = Storage(storage.engine)

        storage.create_like(alice.id, post.id)
        with pytest.raises(ConstraintViolation):
            other.create_like(alice.id, post.id)

    def test_concurrent_toggles_are_linearized(self, storage, make_user):
        alice = make_user("alice")
        post = _post(storage, alice, "p")
        workers = 10
        barrier = Barrier(workers)

        def toggle():
            barrier.wait()
            return storage.toggle_like(alice.id, post.id)

        with ThreadPoolExecutor(max_workers=workers) as pool:
            results = list(pool.map(lambda _: toggle(), range(workers)))

        # Every toggle flipped exactly once: half on, half off, ending absent
        assert results.count(True) == workers // 2
        assert results.count(False) == workers // 2
        assert storage.get_like(alice.id, post.id) is None
        assert _feed_entry(storage, post.id).like_count == 0


class TestFollows:
    """Follow primitives, toggle and profile stats."""

    def test_toggle_follow(self, storage, make_user):
        alice = make_user("alice")
        bob = make_user("bob")

        assert storage.toggle_follow(alice.id, bob.id) is True
        assert storage.is_following(alice.id, bob.id)
        assert not storage.is_following(bob.id, alice.id)
        assert storage.toggle_follow(alice.id, bob.id) is False
        assert storage.get_follow(alice.id, bob.id) is None

    def test_self_follow_rejected(self, storage, make_user):
        alice = make_user("alice")

        with pytest.raises(ConstraintViolation):
            storage.toggle_follow(alice.id, alice.id)
        with pytest.raises(ConstraintViolation):
            storage.create_follow(alice.id, alice.id)
        assert storage.get_follow(alice.id, alice.id) is None

    def test_duplicate_follow_rejected(self, storage, make_user):
        alice = make_user("alice")
        bob = make_user("bob")
        storage.create_follow(alice.id, bob.id)
        with pytest.raises(ConstraintViolation):
            storage.create_follow(alice.id, bob.id)

    def test_follow_unknown_user(self, storage, make_user):
        alice = make_user("alice")

        with pytest.raises(NotFound):
            storage.toggle_follow(alice.id, 9999)
        with pytest.raises(NotFound):
            storage.toggle_follow(9999, alice.id)
        with pytest.raises(NotFound):
            storage.create_follow(alice.id, 9999)
        assert storage.get_user_stats(alice.id) == {
            "post_count": 0,
            "follower_count": 0,
            "following_count": 0,
        }

        with storage.session() as db:
            with pytest.raises(ConstraintViolation):
                crud_follow.create_follow(db, follower_id=alice.id, following_id=9999)
        assert storage.get_follow(alice.id, 9999) is None

    def test_user_stats(self, storage, make_user):
        alice = make_user("alice")
        bob = make_user("bob")
        carol = make_user("carol")
        _post(storage, alice, "a")
        _post(storage, alice, "b")
        storage.create_follow(bob.id, alice.id)
        storage.create_follow(carol.id, alice.id)
        storage.create_follow(alice.id, bob.id)

        assert storage.get_user_stats(alice.id) == {
            "post_count": 2,
            "follower_count": 2,
            "following_count": 1,
        }
        storage.remove_follow(carol.id, alice.id)
        assert storage.get_user_stats(alice.id)["follower_count"] == 1
