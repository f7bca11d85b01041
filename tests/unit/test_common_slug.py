"""Unit tests for repository identity helpers."""

from __future__ import annotations

import pytest

from gruv.common.slug import InvalidRepositoryError, RepositoryRef, repo_slug


def test_repo_slug_combines_organization_and_repository() -> None:
    """repo_slug returns organization/repository."""
    assert repo_slug("acme", "widgets") == "acme/widgets"


class TestRepositoryRefParse:
    """Tests for ``RepositoryRef.parse``."""

    def test_trims_and_strips_git_suffix(self) -> None:
        """Whitespace and a trailing .git are removed; case is kept."""
        ref = RepositoryRef.parse("  Acme ", " Widgets.git ")
        assert ref == RepositoryRef("Acme", "Widgets")
        assert ref.slug == "Acme/Widgets"

    @pytest.mark.parametrize(
        ("organization", "repository", "field"),
        [
            ("", "widgets", "organization"),
            ("   ", "widgets", "organization"),
            (None, "widgets", "organization"),
            ("acme", "", "repository"),
            ("acme", ".git", "repository"),
            ("acme", None, "repository"),
        ],
    )
    def test_rejects_empty_names(
        self, organization: str | None, repository: str | None, field: str
    ) -> None:
        """Empty names raise InvalidRepositoryError naming the field."""
        with pytest.raises(InvalidRepositoryError) as excinfo:
            RepositoryRef.parse(organization, repository)
        assert excinfo.value.field == field
        assert isinstance(excinfo.value, ValueError)

    def test_comparison_ignores_case(self) -> None:
        """key and matches compare case-insensitively."""
        ref = RepositoryRef.parse("Acme", "Widgets")
        assert ref.key == ("acme", "widgets")
        assert ref.matches("ACME", "widgets")
        assert not ref.matches("acme", "gadgets")


class TestRepositoryRefFromUrl:
    """Tests for ``RepositoryRef.from_url``."""

    @pytest.mark.parametrize(
        "url",
        [
            "https://github.com/acme/widgets",
            "https://github.com/acme/widgets/",
            "https://github.com/acme/widgets.git",
            "http://www.github.com/acme/widgets",
            "github.com/acme/widgets",
            "git@github.com:acme/widgets.git",
            "  https://GitHub.com/acme/widgets  ",
        ],
    )
    def test_accepts_github_urls(self, url: str) -> None:
        """Web and clone URLs resolve to the same reference."""
        assert RepositoryRef.from_url(url) == RepositoryRef("acme", "widgets")

    @pytest.mark.parametrize(
        "url",
        [
            "",
            None,
            "https://gitlab.com/acme/widgets",
            "https://github.com/acme",
            "https://github.com/acme/widgets/issues",
            "acme/widgets",
        ],
    )
    def test_rejects_other_urls(self, url: str | None) -> None:
        """Anything that is not a GitHub repository URL is rejected."""
        with pytest.raises(InvalidRepositoryError) as excinfo:
            RepositoryRef.from_url(url)
        assert excinfo.value.field == "url"
