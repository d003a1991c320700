import asyncio
import base64
import json

import pytest

from clabot.author_map import Author, AuthorMap
from clabot.cla_file import ClaFile, ClaFileError, ClaFileRepository
from tests.github_stub import FakeGitHub, make_settings

CONTENTS_PATH = "/repos/octo-org/widgets/contents/signatures/cla.json"


def _encoded(data: dict) -> str:
    return base64.b64encode(json.dumps(data).encode()).decode()


class TestAuthor:
    def test_identity_prefers_github_id(self):
        assert Author("alice", 1) == Author("alice-renamed", 1)
        assert Author("alice", 1) != Author("alice", 2)

    def test_unlinked_identity_is_case_insensitive_name(self):
        assert Author("Alice Smith") == Author("alice smith")
        assert not Author("Alice Smith").linked

    def test_metadata_does_not_affect_equality(self):
        assert Author("alice", 1, comment_id=5) == Author("alice", 1)
        assert len({Author("alice", 1, comment_id=5), Author("alice", 1)}) == 1


class TestAuthorMap:
    def test_all_signed(self):
        alice, bob = Author("alice", 1), Author("bob", 2)
        assert AuthorMap([(alice, True), (bob, True)]).all_signed()
        assert not AuthorMap([(alice, True), (bob, False)]).all_signed()
        assert AuthorMap().all_signed()

    def test_partitions_keep_order(self):
        alice, bob, carol = Author("alice", 1), Author("bob", 2), Author("Carol")
        author_map = AuthorMap([(alice, False), (bob, True), (carol, False)])

        assert author_map.signed_authors() == [bob]
        assert author_map.unsigned_authors() == [alice, carol]
        assert author_map.unlinked_authors() == [carol]
        assert len(author_map) == 3


class TestClaFile:
    def test_map_signed_authors(self):
        alice, bob = Author("alice", 1), Author("bob", 2)
        cla_file = ClaFile([alice])

        author_map = cla_file.map_signed_authors([alice, bob])

        assert list(author_map) == [(alice, True), (bob, False)]

    def test_add_signature_returns_only_new_authors(self):
        alice, bob = Author("alice", 1), Author("bob", 2)
        cla_file = ClaFile([alice])

        added = cla_file.add_signature([alice, bob, bob])

        assert added == [bob]
        assert cla_file.signed_authors == [alice, bob]

    def test_json_round_trip_keeps_metadata(self):
        alice = Author("alice", 1, comment_id=10, created_at="2024-01-01T00:00:00Z",
                       repo_id=99, pull_request_no=7)

        loaded = ClaFile.from_json(ClaFile([alice]).to_json())

        restored = loaded.signed_authors[0]
        assert restored == alice
        assert restored.comment_id == 10
        assert restored.pull_request_no == 7

    def test_ledger_format(self):
        data = json.loads(ClaFile([Author("alice", 1, comment_id=10)]).to_json())
        assert data == {
            "signedContributors": [
                {"name": "alice", "id": 1, "comment_id": 10, "created_at": None,
                 "repoId": None, "pullRequestNo": None}
            ]
        }

    def test_duplicate_ledger_entries_collapse(self):
        text = json.dumps({"signedContributors": [{"name": "a", "id": 1}, {"name": "a", "id": 1}]})
        assert len(ClaFile.from_json(text)) == 1

    def test_string_ids_are_read_as_numbers(self):
        cla_file = ClaFile.from_json('{"signedContributors": [{"name": "alice", "id": "1"}]}')

        assert cla_file.signed_authors[0].id == 1
        assert cla_file.is_signed(Author("alice", 1))
        assert cla_file.add_signature([Author("alice", 1)]) == []

    def test_blank_text_is_empty_ledger(self):
        assert len(ClaFile.from_json("  \n")) == 0

    @pytest.mark.parametrize("text", ["{not json", "[]", '{"signedContributors": {}}'])
    def test_malformed_ledger_raises(self, text):
        with pytest.raises(ClaFileError):
            ClaFile.from_json(text)


class TestClaFileRepository:
    def test_missing_file_yields_empty_ledger(self):
        github = FakeGitHub()
        repository = ClaFileRepository(make_settings(), github.client())

        cla_file = asyncio.run(repository.get_cla_file())

        assert len(cla_file) == 0
        assert repository.sha is None
        assert github.requests[0].url.params["ref"] == "master"

    def test_get_decodes_contents(self):
        github = FakeGitHub()
        github.add(
            "GET",
            CONTENTS_PATH,
            {"sha": "blob1", "content": _encoded({"signedContributors": [{"name": "alice", "id": 1}]})},
        )
        repository = ClaFileRepository(make_settings(), github.client())

        cla_file = asyncio.run(repository.get_cla_file())

        assert cla_file.is_signed(Author("alice", 1))
        assert repository.sha == "blob1"

    def test_commit_sends_content_branch_and_sha(self):
        github = FakeGitHub()
        github.add("GET", CONTENTS_PATH, {"sha": "blob1", "content": _encoded({"signedContributors": []})})
        github.add("PUT", CONTENTS_PATH, {"content": {"sha": "blob2"}})
        repository = ClaFileRepository(make_settings(cla_file_branch="cla"), github.client())

        async def run():
            cla_file = await repository.get_cla_file()
            cla_file.add_signature([Author("bob", 2)])
            await repository.commit_cla_file("Add bob.")

        asyncio.run(run())

        body = FakeGitHub.json_body(github.calls("PUT", CONTENTS_PATH)[0])
        assert body["message"] == "Add bob."
        assert body["branch"] == "cla"
        assert body["sha"] == "blob1"
        written = json.loads(base64.b64decode(body["content"]))
        assert written["signedContributors"][0]["name"] == "bob"
        assert repository.sha == "blob2"

    def test_commit_of_new_file_has_no_sha(self):
        github = FakeGitHub()
        github.add("PUT", CONTENTS_PATH, {"content": {"sha": "blob1"}}, status=201)
        repository = ClaFileRepository(make_settings(), github.client())

        async def run():
            await repository.get_cla_file()
            await repository.commit_cla_file("Add bob.")

        asyncio.run(run())

        assert "sha" not in FakeGitHub.json_body(github.calls("PUT", CONTENTS_PATH)[0])

    def test_uses_remote_repository(self):
        github = FakeGitHub()
        settings = make_settings(remote_repository_owner="octo-org", remote_repository_name="legal")
        repository = ClaFileRepository(settings, github.client())

        asyncio.run(repository.get_cla_file())

        assert github.requests[0].url.path == "/repos/octo-org/legal/contents/signatures/cla.json"

    def test_commit_before_get_raises(self):
        repository = ClaFileRepository(make_settings(), FakeGitHub().client())
        with pytest.raises(ClaFileError):
            asyncio.run(repository.commit_cla_file("Add bob."))
