"""Tests for the publication workflow state machine."""

from __future__ import annotations

import logging
from collections.abc import Callable

import pytest

from lumina.domain import Category, PlagiarismMatch, Post, PostStatus, UserRole
from lumina.repositories import MemoryContentStore
from lumina.services import gate
from lumina.services.errors import (
    ConflictError,
    GateFailure,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)
from lumina.services.engagement import EngagementService
from lumina.services.workflow import AuthorStats, PostDraft, PublicationWorkflow


@pytest.fixture()
def admin(memory_store, make_user):
    return make_user(memory_store, "Platform Overseer", UserRole.ADMIN, is_approved=True)


@pytest.fixture()
def author(memory_store, make_user):
    return make_user(memory_store, "Ada Verified", UserRole.AUTHOR, is_approved=True)


@pytest.fixture()
def draft(article) -> PostDraft:
    return PostDraft(title="The Shape of Light", content=article(), category=Category.DESIGN)


@pytest.fixture()
def pending(workflow: PublicationWorkflow, author, draft):
    return workflow.create_post(author.id, draft, submit=True)


class InterleavingStore(MemoryContentStore):
    """Memory store that runs queued actions right after the next post read.

    Lets a test slot a competing request between an operation's read and its
    write.
    """

    def __init__(self) -> None:
        super().__init__()
        self._queued: list[Callable[[], object]] = []

    def after_next_read(self, action: Callable[[], object]) -> None:
        self._queued.append(action)

    def _run_queued(self) -> None:
        actions, self._queued = self._queued, []
        for action in actions:
            action()

    def get_post(self, post_id: str) -> Post | None:
        post = super().get_post(post_id)
        self._run_queued()
        return post

    def find_post(self, id_or_slug: str) -> Post | None:
        post = super().find_post(id_or_slug)
        self._run_queued()
        return post


@pytest.fixture()
def racing_store() -> InterleavingStore:
    return InterleavingStore()


@pytest.fixture()
def racing_workflow(racing_store, governance, clock) -> PublicationWorkflow:
    return PublicationWorkflow(racing_store, governance, clock=clock)


def _status(workflow: PublicationWorkflow, post_id: str) -> PostStatus:
    return workflow.store.get_post(post_id).status


# Authoring


def test_create_post_derives_fields(workflow, author, draft) -> None:
    post = workflow.create_post(author.id, draft)
    assert post.status == PostStatus.DRAFT
    assert post.slug == "the-shape-of-light"
    assert post.author_name == "Ada Verified"
    assert post.reading_time == 2
    assert post.excerpt.startswith("Overview word")
    assert workflow.store.get_post(post.id) == post


def test_create_post_rejects_readers(workflow, memory_store, make_user, draft) -> None:
    reader = make_user(memory_store, "Rhea Reader", UserRole.READER)
    with pytest.raises(PermissionDeniedError):
        workflow.create_post(reader.id, draft)


def test_create_with_submit_runs_gate(workflow, author, article) -> None:
    thin = PostDraft(title="Thin", content="<p>Barely there.</p>", category=Category.UNCATEGORIZED)
    with pytest.raises(GateFailure) as excinfo:
        workflow.create_post(author.id, thin, submit=True)
    assert excinfo.value.failed_checks == ("category", "density", "structure")
    assert workflow.store.list_posts(author_id=author.id) == []


def test_submit_moves_draft_to_pending(workflow, author, draft) -> None:
    post = workflow.create_post(author.id, draft)
    submitted = workflow.submit(author.id, post.id)
    assert submitted.status == PostStatus.PENDING
    assert _status(workflow, post.id) == PostStatus.PENDING


def test_gate_failure_leaves_post_untouched(workflow, author, article) -> None:
    post = workflow.create_post(
        author.id,
        PostDraft(title="Headless", content=article(heading=False), category=Category.CULTURE),
    )
    with pytest.raises(GateFailure) as excinfo:
        workflow.submit(author.id, post.id)
    assert excinfo.value.failed_checks == (gate.CHECK_STRUCTURE,)
    assert isinstance(excinfo.value, ValidationError)
    assert workflow.store.get_post(post.id) == post


def test_unverified_author_cannot_submit(workflow, memory_store, make_user, draft) -> None:
    newcomer = make_user(memory_store, "Nova Pending", UserRole.AUTHOR)
    post = workflow.create_post(newcomer.id, draft)
    with pytest.raises(PermissionDeniedError):
        workflow.submit(newcomer.id, post.id)

    newcomer.is_subscribed = True
    memory_store.save_user(newcomer)
    assert workflow.submit(newcomer.id, post.id).status == PostStatus.PENDING


def test_only_author_submits(workflow, admin, author, draft) -> None:
    post = workflow.create_post(author.id, draft)
    with pytest.raises(PermissionDeniedError):
        workflow.submit(admin.id, post.id)


def test_submit_from_published_conflicts(workflow, admin, author, pending) -> None:
    workflow.approve(admin.id, pending.id)
    with pytest.raises(ConflictError):
        workflow.submit(author.id, pending.id)


def test_update_post_rederives_and_resnapshots_name(workflow, memory_store, author, draft) -> None:
    post = workflow.create_post(author.id, draft)
    author.name = "Ada Renamed"
    memory_store.save_user(author)

    updated = workflow.update_post(author.id, post.id, title="A New Dawn", category="Business")
    assert updated.slug == "a-new-dawn"
    assert updated.category == Category.BUSINESS
    assert updated.author_name == "Ada Renamed"


def test_update_post_rejects_unknown_fields(workflow, author, draft) -> None:
    post = workflow.create_post(author.id, draft)
    with pytest.raises(ValidationError):
        workflow.update_post(author.id, post.id, status=PostStatus.PUBLISHED)


def test_published_posts_are_not_editable(workflow, admin, author, pending) -> None:
    workflow.approve(admin.id, pending.id)
    with pytest.raises(ConflictError):
        workflow.update_post(author.id, pending.id, title="Sneaky edit")


# Moderation


def test_approve_publishes_and_clears_note(workflow, admin, author, pending) -> None:
    workflow.reject(admin.id, pending.id, note="Not yet")
    published = workflow.approve(admin.id, pending.id)
    assert published.status == PostStatus.PUBLISHED
    assert published.moderation_note is None
    assert published.published_at is not None


def test_non_admin_cannot_moderate(workflow, author, pending) -> None:
    with pytest.raises(PermissionDeniedError):
        workflow.approve(author.id, pending.id)
    assert _status(workflow, pending.id) == PostStatus.PENDING


def test_quick_approve_is_approve(workflow, admin, pending) -> None:
    assert workflow.quick_approve(admin.id, pending.id).status == PostStatus.PUBLISHED


def test_reject_keeps_optional_note(workflow, admin, pending) -> None:
    rejected = workflow.reject(admin.id, pending.id)
    assert rejected.status == PostStatus.REJECTED
    assert rejected.moderation_note == ""


@pytest.mark.parametrize("note", [None, "", "   "])
def test_revision_requires_note(workflow, admin, pending, note) -> None:
    with pytest.raises(ValidationError):
        workflow.request_revision(admin.id, pending.id, note)
    assert _status(workflow, pending.id) == PostStatus.PENDING


def test_revision_note_is_validated_before_lookup(workflow) -> None:
    with pytest.raises(ValidationError):
        workflow.decide("nobody", "missing", PostStatus.REVISION_REQUESTED, "")


def test_revision_round_trip_keeps_note(workflow, admin, author, pending) -> None:
    returned = workflow.request_revision(admin.id, pending.id, "  Tighten the intro  ")
    assert returned.status == PostStatus.REVISION_REQUESTED
    assert returned.moderation_note == "Tighten the intro"

    workflow.update_post(author.id, pending.id, title="The Shape of Light, Revised")
    resubmitted = workflow.submit(author.id, pending.id)
    assert resubmitted.status == PostStatus.PENDING
    assert resubmitted.moderation_note == "Tighten the intro"


def test_decide_rejects_non_decision_kinds(workflow, admin, pending) -> None:
    with pytest.raises(ValidationError):
        workflow.decide(admin.id, pending.id, PostStatus.PUBLISHED, "ok")


def test_decisions_only_apply_to_pending(workflow, admin, pending) -> None:
    workflow.approve(admin.id, pending.id)
    with pytest.raises(ConflictError):
        workflow.reject(admin.id, pending.id, "too late")


def test_stale_expected_status_conflicts(workflow, admin, pending) -> None:
    workflow.approve(admin.id, pending.id, expected_status=PostStatus.PENDING)
    with pytest.raises(ConflictError):
        workflow.request_revision(
            admin.id,
            pending.id,
            "Needs sources",
            expected_status=PostStatus.PENDING,
        )
    assert _status(workflow, pending.id) == PostStatus.PUBLISHED


def test_concurrent_moderators_cannot_both_win(racing_workflow, racing_store, make_user, draft) -> None:
    first = make_user(racing_store, "Platform Overseer", UserRole.ADMIN, is_approved=True)
    second = make_user(racing_store, "Second Overseer", UserRole.ADMIN, is_approved=True)
    author = make_user(racing_store, "Ada Verified", UserRole.AUTHOR, is_approved=True)
    post = racing_workflow.create_post(author.id, draft, submit=True)

    # The second moderator approves between the first one's read and write.
    racing_store.after_next_read(lambda: racing_workflow.approve(second.id, post.id))
    with pytest.raises(ConflictError):
        racing_workflow.reject(first.id, post.id, "bad")

    stored = racing_store.get_post(post.id)
    assert stored.status == PostStatus.PUBLISHED
    assert stored.moderation_note is None


def test_like_during_moderation_is_kept(racing_workflow, racing_store, make_user, draft) -> None:
    admin = make_user(racing_store, "Platform Overseer", UserRole.ADMIN, is_approved=True)
    author = make_user(racing_store, "Ada Verified", UserRole.AUTHOR, is_approved=True)
    reader = make_user(racing_store, "Rhea Reader", UserRole.READER)
    post = racing_workflow.create_post(author.id, draft, submit=True)
    racing_workflow.approve(admin.id, post.id)
    engagement = EngagementService(racing_store)

    racing_store.after_next_read(lambda: engagement.toggle_like(post.id, reader.id))
    racing_workflow.delete(admin.id, post.id)
    racing_workflow.restore(admin.id, post.id)

    stored = racing_store.get_post(post.id)
    assert stored.status == PostStatus.PUBLISHED
    assert racing_store.get_user(reader.id).liked_posts == [post.id]
    assert stored.likes == 1
    assert stored.views == 0

    racing_store.after_next_read(lambda: engagement.record_view(post.id))
    racing_workflow.attach_originality(author.id, post.id, 10.0, [])
    assert racing_store.get_post(post.id).views == 1


def test_transitions_are_logged(workflow, admin, pending, caplog) -> None:
    with caplog.at_level(logging.INFO, logger="lumina.services.workflow"):
        workflow.approve(admin.id, pending.id)
    assert f"Post {pending.id} moved PENDING -> PUBLISHED by {admin.id}" in caplog.text


# Delete and restore


def test_delete_and_restore(workflow, admin, author, pending) -> None:
    workflow.approve(admin.id, pending.id)
    deleted = workflow.delete(author.id, pending.id)
    assert deleted.status == PostStatus.DELETED
    assert workflow.list_public() == []

    restored = workflow.restore(admin.id, pending.id)
    assert restored.status == PostStatus.PUBLISHED
    assert restored.moderation_note is None
    assert [p.id for p in workflow.list_public()] == [pending.id]


def test_restore_rejected_post_skips_gate(workflow, admin, author, pending) -> None:
    workflow.reject(admin.id, pending.id, "Off topic")
    restored = workflow.restore(admin.id, pending.id)
    assert restored.status == PostStatus.PUBLISHED


def test_restore_requires_deleted_or_rejected(workflow, admin, pending) -> None:
    with pytest.raises(ConflictError):
        workflow.restore(admin.id, pending.id)


def test_drafts_cannot_be_deleted(workflow, author, draft) -> None:
    post = workflow.create_post(author.id, draft)
    with pytest.raises(ConflictError):
        workflow.delete(author.id, post.id)


def test_strangers_cannot_delete(workflow, memory_store, make_user, pending) -> None:
    other = make_user(memory_store, "Other Author", UserRole.AUTHOR, is_approved=True)
    with pytest.raises(PermissionDeniedError):
        workflow.delete(other.id, pending.id)


# Originality


def test_attach_originality_never_changes_status(workflow, author, pending, caplog) -> None:
    match = PlagiarismMatch(url="https://example.com", title="Ex", similarity=91.0, matched_text="x")
    with caplog.at_level(logging.WARNING, logger="lumina.services.workflow"):
        post = workflow.attach_originality(author.id, pending.id, 91.0, [match])
    assert post.status == PostStatus.PENDING
    assert post.plagiarism_matches == [match]
    assert post.plagiarism_checked_at is not None
    assert "exceeds advisory threshold" in caplog.text

    report = workflow.audit(author.id, pending.id)
    assert report.passed
    assert report.exceeds_plagiarism_threshold


@pytest.mark.parametrize("score", [-1, 100.5])
def test_attach_originality_validates_score(workflow, author, pending, score) -> None:
    with pytest.raises(ValidationError):
        workflow.attach_originality(author.id, pending.id, score, [])


def test_attach_analysis_is_advisory(workflow, author, pending, caplog) -> None:
    with caplog.at_level(logging.INFO, logger="lumina.services.workflow"):
        post = workflow.attach_analysis(author.id, pending.id, 41.0, "Academic")
    assert post.status == PostStatus.PENDING
    assert post.tone == "Academic"
    assert "below advisory minimum" in caplog.text

    report = workflow.audit(author.id, pending.id)
    assert report.passed
    assert report.readability_score == 41.0
    assert report.below_readability_threshold

    with pytest.raises(ValidationError):
        workflow.attach_analysis(author.id, pending.id, 101.0, "Academic")


# Identity verification


def test_identity_approval(workflow, memory_store, make_user, admin) -> None:
    newcomer = make_user(memory_store, "Nova Pending", UserRole.AUTHOR)
    make_user(memory_store, "Sam Subscriber", UserRole.AUTHOR, is_subscribed=True)
    make_user(memory_store, "Rhea Reader", UserRole.READER)

    assert [u.id for u in workflow.pending_authors(admin.id)] == [newcomer.id]
    approved = workflow.approve_identity(admin.id, newcomer.id)
    assert approved.is_approved
    assert approved.can_publish
    assert workflow.pending_authors(admin.id) == []


@pytest.mark.parametrize("role", [UserRole.READER, UserRole.ADMIN])
def test_identity_approval_only_targets_authors(workflow, memory_store, make_user, admin, role) -> None:
    target = make_user(memory_store, "Not An Author", role)
    with pytest.raises(ConflictError):
        workflow.approve_identity(admin.id, target.id)
    assert memory_store.get_user(target.id).is_approved is False


def test_identity_approval_requires_admin(workflow, author) -> None:
    with pytest.raises(PermissionDeniedError):
        workflow.pending_authors(author.id)


# Reading


def test_visibility(workflow, memory_store, make_user, admin, author, pending) -> None:
    reader = make_user(memory_store, "Rhea Reader", UserRole.READER)

    assert workflow.get_visible_post(author.id, pending.id).id == pending.id
    assert workflow.get_visible_post(admin.id, pending.slug).id == pending.id
    with pytest.raises(NotFoundError):
        workflow.get_visible_post(reader.id, pending.id)
    with pytest.raises(NotFoundError):
        workflow.get_visible_post(None, pending.slug)

    workflow.approve(admin.id, pending.id)
    assert workflow.get_visible_post(None, pending.slug).id == pending.id


def test_listings(workflow, admin, author, draft, article) -> None:
    first = workflow.create_post(author.id, draft, submit=True)
    second = workflow.create_post(
        author.id,
        PostDraft(title="Second", content=article(), category=Category.PRODUCT),
        submit=True,
    )
    workflow.approve(admin.id, first.id)
    workflow.approve(admin.id, second.id)

    assert [p.id for p in workflow.list_public()] == [second.id, first.id]
    assert [p.id for p in workflow.list_public(Category.PRODUCT)] == [second.id]
    assert workflow.featured_post().id == second.id

    workflow.delete(author.id, first.id)
    assert [p.id for p in workflow.list_author_posts(author.id)] == [second.id]
    assert [p.id for p in workflow.list_author_posts(author.id, PostStatus.DELETED)] == [first.id]


@pytest.mark.parametrize("store_fixture", ["memory_store", "sql_store"])
@pytest.mark.parametrize("status", list(PostStatus))
def test_public_listing_holds_exactly_published_posts(
    request, store_fixture, status, make_user, make_post, governance
) -> None:
    store = request.getfixturevalue(store_fixture)
    author = make_user(store, "Ada Verified", UserRole.AUTHOR, is_approved=True)
    post = make_post(store, author, status)
    workflow = PublicationWorkflow(store, governance)

    listed = [p.id for p in workflow.list_public()]
    assert (post.id in listed) is (status == PostStatus.PUBLISHED)
    assert (post.id in [p.id for p in workflow.list_public(author_id=author.id)]) is (
        status == PostStatus.PUBLISHED
    )


def test_public_listing_by_author(workflow, memory_store, make_user, make_post, author) -> None:
    other = make_user(memory_store, "Olin Other", UserRole.AUTHOR, is_approved=True)
    mine = make_post(memory_store, author, PostStatus.PUBLISHED)
    make_post(memory_store, author, PostStatus.PENDING)
    make_post(memory_store, other, PostStatus.PUBLISHED)

    assert [p.id for p in workflow.list_public(author_id=author.id)] == [mine.id]


def test_author_stats(workflow, memory_store, make_post, admin, author, make_user) -> None:
    make_post(memory_store, author, PostStatus.PUBLISHED, likes=3, views=40)
    make_post(memory_store, author, PostStatus.PUBLISHED, likes=1, views=2)
    make_post(memory_store, author, PostStatus.DELETED, likes=2, views=8)
    make_post(memory_store, author, PostStatus.DRAFT)
    other = make_user(memory_store, "Olin Other", UserRole.AUTHOR, is_approved=True)
    make_post(memory_store, other, PostStatus.PUBLISHED, likes=5, views=5)

    assert workflow.author_stats(author.id) == AuthorStats(
        post_count=4,
        published_count=2,
        total_views=50,
        total_likes=6,
    )
    assert workflow.author_stats(admin.id) == AuthorStats(
        post_count=5,
        published_count=3,
        total_views=55,
        total_likes=11,
    )


def test_featured_post_prefers_flag(workflow, memory_store, admin, author, make_post) -> None:
    featured = make_post(memory_store, author, PostStatus.PUBLISHED, is_featured=True)
    make_post(memory_store, author, PostStatus.PUBLISHED)
    assert workflow.featured_post().id == featured.id


def test_moderation_queue(workflow, admin, author, pending, draft) -> None:
    workflow.create_post(author.id, draft)
    assert [p.id for p in workflow.moderation_queue(admin.id)] == [pending.id]
    assert workflow.moderation_queue(admin.id, PostStatus.REJECTED) == []
