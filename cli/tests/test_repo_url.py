from pathlib import Path

import pytest

from stackboot.errors import InputError
from stackboot.repo_url import extract_owner_repo, parse_repo_url, select_repo_url


@pytest.mark.parametrize(
    "raw",
    [
        "https://github.com/acme/widgets.git",
        "https://github.com/acme/widgets",
        "http://github.com/acme/widgets.git",
        "git@github.com:acme/widgets.git",
        "git@github.com:acme/widgets",
    ],
)
def test_recognized_forms_share_canonical_urls(raw: str) -> None:
    repo = parse_repo_url(raw)

    assert repo.recognized
    assert repo.owner_repo == "acme/widgets"
    assert repo.https_url == "https://github.com/acme/widgets.git"
    assert repo.ssh_url == "git@github.com:acme/widgets.git"
    assert repo.repo_name == "widgets"


@pytest.mark.parametrize(
    "raw",
    [
        "https://gitlab.example.com/acme/widgets.git",
        "ssh://git@git.example.com:2222/acme/widgets.git",
        "https://github.com/acme/widgets/tree/main",
        "git@github.com:widgets.git",
    ],
)
def test_unrecognized_forms_pass_through(raw: str) -> None:
    repo = parse_repo_url(raw)

    assert not repo.recognized
    assert repo.https_url == raw
    assert repo.ssh_url == raw


def test_target_dir_scenario() -> None:
    repo = parse_repo_url("https://github.com/acme/widgets.git")

    assert repo.target_dir(Path("/home/alice")) == Path("/home/alice/widgets")


def test_unrecognized_target_dir_uses_basename() -> None:
    repo = parse_repo_url("https://gitlab.example.com/acme/gadgets.git")

    assert repo.target_dir(Path("/home/alice")) == Path("/home/alice/gadgets")


def test_parse_strips_whitespace() -> None:
    repo = parse_repo_url("  git@github.com:acme/widgets  \n")

    assert repo.raw == "git@github.com:acme/widgets"
    assert repo.recognized


def test_parse_empty_is_input_error() -> None:
    with pytest.raises(InputError, match="No repository URL provided"):
        parse_repo_url("   ")


def test_extract_owner_repo_rejects_other_hosts() -> None:
    assert extract_owner_repo("https://github.com.evil.test/acme/widgets") is None
    assert extract_owner_repo("https://github.com/acme/widgets.git") == "acme/widgets"


def test_select_repo_url_priority() -> None:
    assert select_repo_url("https://github.com/a/cli", "https://github.com/a/cfg") == "https://github.com/a/cli"
    assert select_repo_url(None, "  ", "https://github.com/a/cfg") == "https://github.com/a/cfg"


def test_select_repo_url_prompts_last() -> None:
    calls = []

    def _prompt() -> str:
        calls.append(True)
        return " git@github.com:acme/widgets.git "

    assert select_repo_url(None, "", prompt=_prompt) == "git@github.com:acme/widgets.git"
    assert calls == [True]


def test_select_repo_url_empty_prompt_is_fatal() -> None:
    with pytest.raises(InputError):
        select_repo_url(None, None, prompt=lambda: "")
    with pytest.raises(InputError):
        select_repo_url(None, None)
