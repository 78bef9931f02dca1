"""
Brief: Tests for gitcl.main CLI commands with a fake git supplier.

Inputs:
  - None

Outputs:
  - None
"""

import io

import pytest

import gitcl.main as main_mod
from gitcl.git import GitError
from gitcl.main import build_parser, main
from gitcl.render import PREAMBLE

SHA3 = "3" * 40
SHA2 = "2" * 40
SHA1 = "1" * 40


@pytest.fixture
def history(make_commit):
    """
    Brief: Newest-first history with one release and one pre-release.

    Inputs:
      - make_commit: commit factory

    Outputs:
      - list of CommitRecord
    """
    return [
        make_commit(SHA3, "[fixed] bug A", day=3),
        make_commit(SHA2, "Bump", "[release] v1.0.0", day=2),
        make_commit(SHA1, "[added] feature B", day=1),
    ]


@pytest.fixture
def fake_git(monkeypatch, history):
    """
    Brief: Replace GitShell in gitcl.main with a configurable fake.

    Inputs:
      - monkeypatch: pytest fixture
      - history: commit list returned by commits()

    Outputs:
      - dict controlling the fake: commits, remote, error, init kwargs
    """
    state = {
        "commits": history,
        "remote": "git@github.com:org/repo.git",
        "error": None,
        "init": None,
    }

    class FakeShell:
        def __init__(self, binary="git", cwd=None):
            state["init"] = {"binary": binary, "cwd": cwd}

        def commits(self, rev="HEAD"):
            state["rev"] = rev
            if state["error"]:
                raise GitError(state["error"])
            return state["commits"]

        def find_remote_origin_url(self, remote="origin"):
            state["remote_name"] = remote
            return state["remote"]

    monkeypatch.setattr(main_mod, "GitShell", FakeShell)
    return state


def _run(argv):
    out = io.StringIO()
    code = main(argv, out=out)
    return code, out.getvalue()


def test_full_document_with_github_links(fake_git, tmp_path):
    """
    Brief: 'full' prints preamble, bracketed sections and GitHub compare links.

    Inputs:
      - fake_git: fake supplier

    Outputs:
      - None: Asserts the exact document
    """
    code, text = _run(["-C", str(tmp_path), "full"])
    assert code == 0
    assert text == (
        PREAMBLE
        + "\n## [Unreleased] - now\n\n### Fixed\n- bug A\n"
        + "\n## [v1.0.0] - 2024-01-02\n\n### Added\n- feature B\n"
        + "\n[Unreleased]: https://github.com/org/repo/compare/2222222...HEAD"
        + "\n[v1.0.0]: https://github.com/org/repo/compare/1111111...2222222\n"
    )
    assert fake_git["init"] == {"binary": "git", "cwd": str(tmp_path)}
    assert fake_git["rev"] == "HEAD"


def test_full_bitbucket_links(fake_git, tmp_path):
    """
    Brief: Bitbucket remotes get branches/compare links newest first.

    Inputs:
      - fake_git: fake supplier

    Outputs:
      - None: Asserts link line format
    """
    fake_git["remote"] = "git@bitbucket.org:org/repo.git"
    code, text = _run(["-C", str(tmp_path), "full"])
    assert code == 0
    assert (
        "[v1.0.0]: https://bitbucket.org/org/repo/branches/compare/2222222%0D1111111"
        in text
    )


def test_full_unknown_host_omits_links(fake_git, tmp_path, capsys):
    """
    Brief: Unsupported hosts drop link lines and warn on stderr.

    Inputs:
      - fake_git: fake supplier
      - capsys: pytest capture

    Outputs:
      - None: Asserts no link lines and a warning
    """
    fake_git["remote"] = "git@gitlab.com:org/repo.git"
    code, text = _run(["-C", str(tmp_path), "full"])
    assert code == 0
    assert "]: " not in text
    assert "## [v1.0.0] - 2024-01-02" in text
    assert "No compare URL format known" in capsys.readouterr().err


def test_full_missing_remote_url_is_fatal(fake_git, tmp_path, capsys):
    """
    Brief: A remote without URL aborts 'full' with exit 1 and no output.

    Inputs:
      - fake_git: fake supplier
      - capsys: pytest capture

    Outputs:
      - None: Asserts exit code, empty stdout and the logged error
    """
    fake_git["remote"] = None
    assert _run(["-C", str(tmp_path), "full"]) == (1, "")
    assert "Remote 'origin' has no URL configured" in capsys.readouterr().err


def test_full_no_links_skips_remote_lookup(fake_git, tmp_path):
    """
    Brief: --no-links renders plain headings without consulting the remote.

    Inputs:
      - fake_git: fake supplier

    Outputs:
      - None: Asserts output shape and that no remote was queried
    """
    fake_git["remote"] = None
    code, text = _run(["-C", str(tmp_path), "full", "--no-links"])
    assert code == 0
    assert "## Unreleased - now" in text
    assert "## v1.0.0 - 2024-01-02" in text
    assert "]: " not in text
    assert "remote_name" not in fake_git


def test_full_configured_provider_for_self_hosted_remote(fake_git, tmp_path):
    """
    Brief: git.provider selects the compare format for an unknown host.

    Inputs:
      - fake_git: fake supplier
      - tmp_path: directory holding .git-cl.yaml

    Outputs:
      - None: Asserts GitHub-style links on a self-hosted host
    """
    fake_git["remote"] = "git@git.corp.example:org/repo.git"
    (tmp_path / ".git-cl.yaml").write_text(
        "git:\n  provider: github\n", encoding="utf-8"
    )
    code, text = _run(["-C", str(tmp_path), "full"])
    assert code == 0
    assert (
        "[v1.0.0]: https://git.corp.example/org/repo/compare/1111111...2222222"
        in text
    )


def test_unknown_provider_alias_is_config_error(fake_git, tmp_path, capsys):
    """
    Brief: An unregistered git.provider alias fails config loading with exit 1.

    Inputs:
      - fake_git: fake supplier
      - capsys: pytest capture

    Outputs:
      - None: Asserts exit code, empty stdout and the suggestion text
    """
    cfg = tmp_path / "cl.yaml"
    cfg.write_text("git:\n  provider: githb\n", encoding="utf-8")
    assert _run(["--config", str(cfg), "full"]) == (1, "")
    err = capsys.readouterr().err
    assert "Unknown provider alias 'githb'" in err
    assert fake_git["init"] is None


def test_full_pre_flag_includes_prereleases(fake_git, make_commit, tmp_path):
    """
    Brief: --pre lets pre-release markers open their own section.

    Inputs:
      - fake_git: fake supplier
      - make_commit: commit factory

    Outputs:
      - None: Asserts the pre-release heading appears only with --pre
    """
    fake_git["commits"] = [
        make_commit(SHA3, "[release] v2.0.0-rc.1", "[added] rc", day=3),
        make_commit(SHA1, "[added] base", day=1),
    ]
    _, without = _run(["-C", str(tmp_path), "full"])
    assert "v2.0.0-rc.1" not in without
    assert "- rc" in without

    _, with_pre = _run(["-C", str(tmp_path), "full", "--pre"])
    assert "## [v2.0.0-rc.1] - 2024-01-03" in with_pre


def test_full_empty_history_prints_preamble_only(fake_git, tmp_path):
    """
    Brief: Empty history is not an error and yields only the preamble.

    Inputs:
      - fake_git: fake supplier

    Outputs:
      - None: Asserts output
    """
    fake_git["commits"] = []
    code, text = _run(["-C", str(tmp_path), "full"])
    assert code == 0
    assert text == PREAMBLE


def test_unreleased_latest_released_commits(fake_git, tmp_path):
    """
    Brief: Single-section commands print plain headings; commits lists annotated ones.

    Inputs:
      - fake_git: fake supplier

    Outputs:
      - None: Asserts each command's output
    """
    d = str(tmp_path)
    assert _run(["-C", d, "unreleased"]) == (
        0,
        "\n## Unreleased - now\n\n### Fixed\n- bug A\n",
    )
    assert _run(["-C", d, "latest"]) == (
        0,
        "\n## v1.0.0 - 2024-01-02\n\n### Added\n- feature B\n",
    )
    assert _run(["-C", d, "released", "v1.0.0"]) == (
        0,
        "\n## v1.0.0 - 2024-01-02\n\n### Added\n- feature B\n",
    )
    assert _run(["-C", d, "commits"]) == (
        0,
        "333333 [fixed] bug A\n111111 [added] feature B\n",
    )


def test_missing_release_exits_1(fake_git, make_commit, tmp_path, capsys):
    """
    Brief: latest/released fail with exit 1 when no matching release exists.

    Inputs:
      - fake_git: fake supplier

    Outputs:
      - None: Asserts exit codes, empty stdout and error text
    """
    assert _run(["-C", str(tmp_path), "released", "v9.9.9"]) == (1, "")
    assert "Release v9.9.9 not found" in capsys.readouterr().err

    fake_git["commits"] = [make_commit(SHA1, "[added] only", day=1)]
    assert _run(["-C", str(tmp_path), "latest"]) == (1, "")
    assert "No release found" in capsys.readouterr().err


def test_git_failure_exits_1_without_output(fake_git, tmp_path, capsys):
    """
    Brief: Supplier errors are fatal: exit 1 and nothing on stdout.

    Inputs:
      - fake_git: fake supplier

    Outputs:
      - None: Asserts exit code and logged error
    """
    fake_git["error"] = "fatal: not a git repository"
    assert _run(["-C", str(tmp_path), "full"]) == (1, "")
    assert "not a git repository" in capsys.readouterr().err


def test_config_file_and_cli_overrides(fake_git, tmp_path):
    """
    Brief: Config values apply and CLI flags override them.

    Inputs:
      - fake_git: fake supplier
      - tmp_path: directory holding .git-cl.yaml

    Outputs:
      - None: Asserts git settings and preamble handling
    """
    (tmp_path / ".git-cl.yaml").write_text(
        "git:\n  binary: /usr/bin/git\n  remote: upstream\n  rev: main\n"
        "changelog:\n  preamble: false\n",
        encoding="utf-8",
    )
    code, text = _run(["-C", str(tmp_path), "full"])
    assert code == 0
    assert not text.startswith("# Changelog")
    assert fake_git["init"]["binary"] == "/usr/bin/git"
    assert fake_git["rev"] == "main"
    assert fake_git["remote_name"] == "upstream"


def test_invalid_config_exits_1(fake_git, tmp_path, capsys):
    """
    Brief: Schema violations print the error and exit 1.

    Inputs:
      - fake_git: fake supplier

    Outputs:
      - None: Asserts exit code and message
    """
    cfg = tmp_path / "bad.yaml"
    cfg.write_text("changelog:\n  preamble: maybe\n", encoding="utf-8")
    assert _run(["--config", str(cfg), "full"]) == (1, "")
    assert "Invalid configuration" in capsys.readouterr().err

    assert _run(["--config", str(tmp_path / "missing.yaml"), "full"]) == (1, "")


def test_parser_requires_command():
    """
    Brief: Running without a subcommand is a usage error (exit 2).

    Inputs:
      - None

    Outputs:
      - None: Asserts SystemExit code
    """
    with pytest.raises(SystemExit) as excinfo:
        build_parser().parse_args([])
    assert excinfo.value.code == 2
