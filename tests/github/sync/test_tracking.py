"""Tests for TrackedRepositoryService and sync result objects."""

import pytest

from pr_attention.db.models import RepositoryProvenance, SyncStatus
from pr_attention.db.repositories import RepositoryRepository
from pr_attention.github.exceptions import GitHubNotFoundError
from pr_attention.github.sync import SyncIssue, TrackedRepositoryService, classify_run_status
from tests.factories import make_gh_repository, make_repository, make_user


@pytest.fixture
async def user(db_session):
    user = make_user(db_session)
    await db_session.flush()
    return user


@pytest.fixture
def service(db_session, mock_github):
    mock_github.get_repository.return_value = make_gh_repository(default_branch="dev")
    return TrackedRepositoryService(RepositoryRepository(db_session), mock_github)


class TestTrackedRepositoryService:
    """Tests for adding, listing and removing tracked repositories."""

    async def test_add(self, service, mock_github, user):
        repo = await service.add("octo/widgets", user_id=user.id)

        assert repo.id is not None
        assert repo.full_name == "octo/widgets"
        assert repo.default_branch == "dev"
        assert repo.is_tracked is True
        assert repo.provenance == RepositoryProvenance.EXPLICIT
        mock_github.get_repository.assert_awaited_once_with("octo", "widgets")

    async def test_add_invalid_name(self, service, mock_github, user):
        with pytest.raises(ValueError):
            await service.add("widgets", user_id=user.id)

        mock_github.get_repository.assert_not_awaited()

    async def test_add_unknown_repository(self, service, mock_github, user, db_session):
        mock_github.get_repository.side_effect = GitHubNotFoundError("not found")

        with pytest.raises(GitHubNotFoundError):
            await service.add("octo/ghost", user_id=user.id)

        assert await RepositoryRepository(db_session).count() == 0

    async def test_readd_after_remove(self, service, user):
        first = await service.add("octo/widgets", user_id=user.id)
        await service.remove(first.id)

        again = await service.add("octo/widgets", user_id=user.id)

        assert again.id == first.id
        assert again.is_tracked is True

    async def test_explicit_add_upgrades_seeded(self, service, user, db_session):
        make_repository(db_session, user=user, provenance=RepositoryProvenance.SEEDED)
        await db_session.flush()

        repo = await service.add("octo/widgets", user_id=user.id)

        assert repo.provenance == RepositoryProvenance.EXPLICIT

    async def test_list_tracked(self, service, user, db_session):
        make_repository(db_session, name="widgets", user=user)
        make_repository(db_session, name="gadgets", user=user, is_tracked=False)
        await db_session.flush()

        tracked = await service.list_tracked(user.id)

        assert [r.full_name for r in tracked] == ["octo/widgets"]

    @pytest.mark.parametrize("by", ["id", "id_string", "name"])
    async def test_remove(self, service, user, db_session, by):
        repo = make_repository(db_session, user=user)
        await db_session.flush()
        identifier = {"id": repo.id, "id_string": str(repo.id), "name": "Octo/Widgets"}[by]

        removed = await service.remove(identifier)

        assert removed is repo
        assert repo.is_tracked is False
        assert await service.list_tracked(user.id) == []

    async def test_remove_unknown(self, service):
        assert await service.remove("octo/nothing") is None
        assert await service.remove(999) is None

    async def test_add_without_client(self, db_session, user):
        service = TrackedRepositoryService(RepositoryRepository(db_session))

        with pytest.raises(RuntimeError):
            await service.add("octo/widgets", user_id=user.id)


class TestSyncResults:
    """Tests for run classification and issue formatting."""

    def test_classify(self):
        issue = SyncIssue(repository="octo/widgets", message="boom")

        assert classify_run_status(0, []) == SyncStatus.SUCCESS
        assert classify_run_status(3, [issue]) == SyncStatus.PARTIAL
        assert classify_run_status(0, [issue]) == SyncStatus.FAILED

    def test_issue_str_and_dict(self):
        repo_issue = SyncIssue(repository="octo/widgets", message="boom")
        pr_issue = SyncIssue(repository="octo/widgets", message="boom", pull_number=7)

        assert str(repo_issue) == "octo/widgets: boom"
        assert str(pr_issue) == "octo/widgets#7: boom"
        assert repo_issue.to_dict() == {"repository": "octo/widgets", "message": "boom"}
        assert pr_issue.to_dict()["pull_number"] == 7

    def test_issue_from_exception_without_message(self):
        issue = SyncIssue.from_exception("octo/widgets", TimeoutError())

        assert issue.message == "TimeoutError"
