"""Repository identity helpers.

Repositories are identified by an ``organization`` and a ``repository`` name.
Both keep the case the caller supplied but compare case-insensitively, and a
trailing ``.git`` is dropped from the repository so clone URLs and plain names
refer to the same thing.
"""

from __future__ import annotations

import dataclasses as dc
import re

_GIT_SUFFIX = ".git"
_GITHUB_URL_PATTERN = re.compile(
    r"""
    \A
    (?:(?:https?://)?(?:www\.)?github\.com/ | git@github\.com:)
    (?P<organization>[^/\s]+)
    /
    (?P<repository>[^/\s#?]+)
    /?
    \Z
    """,
    re.IGNORECASE | re.VERBOSE,
)


class InvalidRepositoryError(ValueError):
    """Raised when an organization or repository name is unusable.

    Attributes
    ----------
    field
        Name of the offending field (``organization``, ``repository`` or
        ``url``).

    """

    def __init__(self, reason: str, *, field: str) -> None:
        """Initialise with a human-readable reason and the offending field."""
        self.reason = reason
        self.field = field
        super().__init__(f"{field}: {reason}")


def repo_slug(organization: str, repository: str) -> str:
    """Build an ``organization/repository`` slug.

    Examples
    --------
    >>> repo_slug("acme", "widgets")
    'acme/widgets'

    """
    return f"{organization}/{repository}"


def _clean(value: str | None, *, field: str) -> str:
    cleaned = (value or "").strip()
    if field == "repository":
        cleaned = cleaned.removesuffix(_GIT_SUFFIX).strip()
    if not cleaned:
        raise InvalidRepositoryError("must not be empty", field=field)
    return cleaned


@dc.dataclass(frozen=True, slots=True)
class RepositoryRef:
    """Validated reference to a GitHub repository.

    Build instances through :meth:`parse` or :meth:`from_url`; the
    constructor performs no validation.

    Attributes
    ----------
    organization
        Owning organization or user, trimmed.
    repository
        Repository name, trimmed and without a trailing ``.git``.

    """

    organization: str
    repository: str

    @classmethod
    def parse(cls, organization: str | None, repository: str | None) -> RepositoryRef:
        """Validate and normalise an organization/repository pair.

        Raises
        ------
        InvalidRepositoryError
            If either value is empty after trimming.

        Examples
        --------
        >>> RepositoryRef.parse(" Acme ", "widgets.git")
        RepositoryRef(organization='Acme', repository='widgets')

        """
        return cls(
            organization=_clean(organization, field="organization"),
            repository=_clean(repository, field="repository"),
        )

    @classmethod
    def from_url(cls, url: str | None) -> RepositoryRef:
        """Parse a GitHub web or clone URL into a reference.

        Accepts ``https://github.com/<org>/<repo>``, the same without a scheme,
        with a trailing ``/`` or ``.git``, and ``git@github.com:<org>/<repo>``.

        Raises
        ------
        InvalidRepositoryError
            If *url* does not name a GitHub repository.

        """
        match = _GITHUB_URL_PATTERN.match((url or "").strip())
        if match is None:
            raise InvalidRepositoryError(
                "expected a GitHub repository URL", field="url"
            )
        return cls.parse(match["organization"], match["repository"])

    @property
    def slug(self) -> str:
        """Return ``organization/repository``."""
        return repo_slug(self.organization, self.repository)

    @property
    def key(self) -> tuple[str, str]:
        """Case-insensitive identity used for comparisons and grouping."""
        return (self.organization.casefold(), self.repository.casefold())

    def matches(self, organization: str, repository: str) -> bool:
        """Return whether this reference names *organization*/*repository*."""
        return self.key == (organization.casefold(), repository.casefold())
