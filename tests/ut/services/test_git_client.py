"""GitClient 测试（假执行器，不访问网络）"""

from __future__ import annotations

import tempfile
from pathlib import Path

import pytest

from pkgsrc.core.exceptions import GitCheckoutFailedError, ValidationError
from pkgsrc.core.protocols import CloneStatus
from pkgsrc.services.source.git import GitClient, check_ref
from pkgsrc.utils.shell import CommandResult


@pytest.fixture()
def client(fake_git, tmp_path: Path) -> GitClient:
    return GitClient(executor=fake_git, scratch_root=tmp_path / "scratch")


class TestCheckRef:
    @pytest.mark.parametrize("ref", ["1.2.0", "v1.0-rc1", "release/2024", "abc123"])
    def test_valid(self, ref: str) -> None:
        check_ref(ref)

    @pytest.mark.parametrize("ref", ["--upload-pack=x", "a b", "x;rm", ""])
    def test_invalid(self, ref: str) -> None:
        with pytest.raises(ValidationError):
            check_ref(ref)


class TestSafeClone:
    def test_existing_checkout(self, client: GitClient, tmp_path: Path) -> None:
        target = tmp_path / "co"
        (target / ".git").mkdir(parents=True)
        outcome = client.safe_clone(tmp_path / "nowhere", "1.0", target)
        assert outcome.status == CloneStatus.CHECKED_OUT
        assert outcome.path == target

    def test_existing_checkout_wrong_version(self, tmp_path: Path) -> None:
        class Mismatch:
            def execute(self, cmd, *, cwd=".", env=None, timeout=None):
                sha = "aaa" if cmd[-1] == "HEAD" else "bbb"
                return CommandResult(0, sha, "")

        target = tmp_path / "co"
        (target / ".git").mkdir(parents=True)
        client = GitClient(executor=Mismatch(), scratch_root=tmp_path / "scratch")
        outcome = client.safe_clone(tmp_path / "nowhere", "1.0", target)
        assert outcome.status == CloneStatus.DIR_TO_USE
        assert outcome.path.parent == tmp_path / "scratch"

    def test_local_repository(self, client: GitClient, fake_git, tmp_path: Path) -> None:
        source = tmp_path / "repo"
        (source / ".git").mkdir(parents=True)
        target = tmp_path / "dest" / "co"
        outcome = client.safe_clone(source, "1.0", target)
        assert outcome.status == CloneStatus.CHECKED_OUT
        assert fake_git.clones == [["git", "clone", str(source), str(target)]]
        assert fake_git.checkouts == [["git", "checkout", "1.0"]]

    def test_staging_dir(self, client: GitClient, tmp_path: Path) -> None:
        outcome = client.safe_clone(tmp_path / "nowhere", None, tmp_path / "co")
        assert outcome.status == CloneStatus.DIR_TO_USE
        assert outcome.path.is_dir()
        assert outcome.path.name.startswith(".pkgsrc-")

    def test_default_staging_next_to_target(
        self, fake_git, tmp_path: Path, monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        systmp = tmp_path / "systmp"
        systmp.mkdir()
        monkeypatch.setattr(tempfile, "tempdir", str(systmp))
        ws = tmp_path / "ws"
        ws.mkdir()
        target = ws / "build" / "x86_64" / "src" / "acme" / "widget"

        outcome = GitClient(executor=fake_git).safe_clone(tmp_path / "nowhere", None, target)
        assert outcome.status == CloneStatus.DIR_TO_USE
        assert outcome.path.parent == ws
        assert list(systmp.iterdir()) == []
        assert not (ws / "build").exists()

    def test_staging_parent_prefers_scratch_root(self, client: GitClient, tmp_path: Path) -> None:
        assert client.staging_parent(tmp_path / "a" / "b") == tmp_path / "scratch"

    def test_bad_version(self, client: GitClient, tmp_path: Path) -> None:
        with pytest.raises(ValidationError):
            client.safe_clone(tmp_path, "-x", tmp_path / "co")


class TestCloneUrl:
    def test_clone_and_checkout(self, client: GitClient, fake_git, tmp_path: Path) -> None:
        client.clone_url("https://github.com/acme/widget", tmp_path / "w", "1.2.0")
        assert fake_git.clones == [["git", "clone", "https://github.com/acme/widget", str(tmp_path / "w")]]
        assert fake_git.checkouts == [["git", "checkout", "1.2.0"]]

    def test_no_version_skips_checkout(self, client: GitClient, fake_git, tmp_path: Path) -> None:
        client.clone_url("https://example.com/a/b", tmp_path / "w", None)
        assert fake_git.checkouts == []

    def test_failure(self, fake_git_factory, tmp_path: Path) -> None:
        client = GitClient(executor=fake_git_factory(fail_clone=True))
        with pytest.raises(GitCheckoutFailedError) as exc:
            client.clone_url("https://github.com/acme/gone", tmp_path / "w", None)
        assert exc.value.url == "https://github.com/acme/gone"
        assert "repository not found" in str(exc.value)

    def test_rejects_scheme(self, client: GitClient, tmp_path: Path) -> None:
        with pytest.raises(ValidationError):
            client.clone_url("file:///etc", tmp_path / "w", None)


class TestMisc:
    def test_make_read_only_skips_git(self, client: GitClient, make_tree, tmp_path: Path) -> None:
        make_tree(tmp_path, {"lib.rs": "x", "sub/main.rs": "y", ".git/config": "z"})
        client.make_read_only(tmp_path)
        assert (tmp_path / "lib.rs").stat().st_mode & 0o222 == 0
        assert (tmp_path / "sub/main.rs").stat().st_mode & 0o222 == 0
        assert (tmp_path / ".git/config").stat().st_mode & 0o200
