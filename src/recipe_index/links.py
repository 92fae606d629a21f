"""
Repository link templates.

Builds the `_links` block of the index, which tells clients where recipe
artifacts live on either a self-hosted git server or GitHub.
"""

from __future__ import annotations

import re
from dataclasses import asdict, dataclass, field
from enum import Enum

# scheme://[credentials@]host/path
REPOSITORY_URL_PATTERN = re.compile(
    r"^(?P<scheme>https?)://(?:(?P<credentials>.+)@)?(?P<host>[^/]+)/(?P<path>[^?]+)$"
)

RECIPE_TEMPLATE_RELATIVE = "{package_dotted}.{version}.json"
ARCHIVED_RECIPES_TEMPLATE_RELATIVE = "archived/{package_dotted}/{ref}.json"


class HostKind(str, Enum):
    """Shape of the repository identifier."""

    SELF_HOSTED = "self-hosted"
    GITHUB = "github"


@dataclass(frozen=True)
class RepositoryLinks:
    """URL templates published in the index.

    The `{package}`, `{package_dotted}`, `{version}` and `{ref}` placeholders
    are left in place for clients to substitute.
    """

    repository: str
    origin_template: str
    recipe_template: str
    recipe_template_relative: str
    archived_recipes_template: str
    archived_recipes_template_relative: str
    kind: HostKind = field(default=HostKind.GITHUB, compare=False)

    def to_dict(self) -> dict[str, str]:
        """Return the six templates, without the host kind."""
        data = asdict(self)
        del data["kind"]
        return data


def parse_repository_url(repository: str) -> tuple[str, str, str] | None:
    """Parse an absolute repository URL into `(scheme, host, path)`.

    Credentials are dropped, and the path loses its leading slashes and a
    trailing `.git`.

    Args:
        repository: Repository identifier from the command line.

    Returns:
        The parts, or None when `repository` is not an absolute http(s) URL
        (for instance a GitHub `owner/repo` pair).
    """
    match = REPOSITORY_URL_PATTERN.match(repository)
    if match is None:
        return None

    path = match.group("path").lstrip("/").removesuffix(".git")
    return match.group("scheme"), match.group("host"), path


def build_links(repository: str, source_branch: str, flex_branch: str) -> RepositoryLinks:
    """Build the link templates for a repository.

    A full URL is treated as a self-hosted server laid out like GitLab
    (`/-/raw/<branch>/...`); anything else is a GitHub `owner/repo` pair.

    Args:
        repository: `owner/repo` or a full http(s) URL.
        source_branch: Branch the recipes are read from.
        flex_branch: Branch the generated endpoint is published on.

    Returns:
        The link templates.
    """
    parts = parse_repository_url(repository)

    if parts is not None:
        scheme, host, path = parts
        raw_root = f"{scheme}://{host}/{path}/-/raw/{flex_branch}"
        return RepositoryLinks(
            repository=f"{scheme}://{host}/{path}",
            origin_template=f"{{package}}:{{version}}@{host}/{path}:{source_branch}",
            recipe_template=f"{raw_root}/{RECIPE_TEMPLATE_RELATIVE}",
            recipe_template_relative=RECIPE_TEMPLATE_RELATIVE,
            archived_recipes_template=f"{raw_root}/{ARCHIVED_RECIPES_TEMPLATE_RELATIVE}",
            archived_recipes_template_relative=ARCHIVED_RECIPES_TEMPLATE_RELATIVE,
            kind=HostKind.SELF_HOSTED,
        )

    raw_root = f"https://raw.githubusercontent.com/{repository}/{flex_branch}"
    return RepositoryLinks(
        repository=f"github.com/{repository}",
        origin_template=f"{{package}}:{{version}}@github.com/{repository}:{source_branch}",
        recipe_template=f"{raw_root}/{RECIPE_TEMPLATE_RELATIVE}",
        recipe_template_relative=RECIPE_TEMPLATE_RELATIVE,
        archived_recipes_template=f"{raw_root}/{ARCHIVED_RECIPES_TEMPLATE_RELATIVE}",
        archived_recipes_template_relative=ARCHIVED_RECIPES_TEMPLATE_RELATIVE,
        kind=HostKind.GITHUB,
    )
