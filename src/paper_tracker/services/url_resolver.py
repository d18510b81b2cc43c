"""URL resolver — classify a repository URL into provider kind and coordinates.

Pure functions, no I/O.  Unrecognized shapes yield ``None``; raising is left
to the caller (the provider factory).
"""

from __future__ import annotations

import re
from typing import Sequence
from urllib.parse import urlsplit

from paper_tracker.domain.value_objects import ParsedRepoUrl, ProviderKind, SelfHostedInstance

_GITHUB_HOSTS: frozenset[str] = frozenset({"github.com", "www.github.com"})
_GITLAB_HOSTS: frozenset[str] = frozenset({"gitlab.com", "www.gitlab.com"})

_OVERLEAF_GIT_RE = re.compile(
    r"^(?:https?://)?git\.overleaf\.com/(?P<project>[a-f0-9]+)(?:\.git)?/?$",
    re.IGNORECASE,
)
_OVERLEAF_WEB_RE = re.compile(
    r"^(?:https?://)?(?:www\.)?overleaf\.com/project/(?P<project>[a-f0-9]+)/?(?:[?#].*)?$",
    re.IGNORECASE,
)
_SSH_RE = re.compile(r"^(?:ssh://)?git@(?P<host>[^:/\s]+)[:/](?P<path>\S+)$")
_SEGMENT_RE = re.compile(r"^[\w.-]+$")


def classify_repo_url(
    url: str, instances: Sequence[SelfHostedInstance] = ()
) -> ParsedRepoUrl | None:
    """Return the parsed form of *url*, or ``None`` if it is not supported.

    Overleaf shapes are tried first because their path does not follow
    ``/owner/repo``.  GitLab-family URLs are matched against the configured
    self-hosted *instances* before falling back to gitlab.com; when several
    instances match, the one with the longest base URL wins.
    """
    if not isinstance(url, str) or not url.strip():
        return None
    url = url.strip()

    overleaf = parse_overleaf_url(url)
    if overleaf is not None:
        return overleaf

    location = _split_location(url)
    if location is None:
        return None
    host, path = location

    if host in _GITHUB_HOSTS:
        segments = _repo_segments(path)
        if segments is None or len(segments) != 2:
            return None
        return ParsedRepoUrl(ProviderKind.GITHUB, owner=segments[0], repo=segments[1])

    instance = match_self_hosted_instance(url, instances)
    if instance is not None:
        _, prefix = _split_location(instance.base_url) or ("", "")
        segments = _repo_segments(path[len(prefix) :])
        if segments is None or len(segments) < 2:
            return None
        return ParsedRepoUrl(
            ProviderKind.SELF_HOSTED_GITLAB,
            owner="/".join(segments[:-1]),
            repo=segments[-1],
            matched_instance_base_url=instance.base_url,
        )

    if host in _GITLAB_HOSTS:
        segments = _repo_segments(path)
        if segments is None or len(segments) < 2:
            return None
        return ParsedRepoUrl(
            ProviderKind.GITLAB, owner="/".join(segments[:-1]), repo=segments[-1]
        )

    return None


def parse_overleaf_url(url: str) -> ParsedRepoUrl | None:
    """Recognize ``git.overleaf.com/<id>`` and ``overleaf.com/project/<id>``."""
    match = _OVERLEAF_GIT_RE.match(url) or _OVERLEAF_WEB_RE.match(url)
    if not match:
        return None
    return ParsedRepoUrl(ProviderKind.OVERLEAF, owner="overleaf", repo=match["project"])


def match_self_hosted_instance(
    url: str, instances: Sequence[SelfHostedInstance]
) -> SelfHostedInstance | None:
    """Return the instance whose base URL is the longest prefix of *url*."""
    location = _split_location(url)
    if location is None:
        return None
    host, path = location

    best: SelfHostedInstance | None = None
    best_len = -1
    for instance in instances:
        instance_location = _split_location(instance.base_url)
        if instance_location is None:
            continue
        instance_host, prefix = instance_location
        if instance_host != host:
            continue
        if prefix and path != prefix and not path.startswith(prefix + "/"):
            continue
        if len(prefix) > best_len:
            best, best_len = instance, len(prefix)
    return best


# ── Helpers ─────────────────────────────────────────────────────────────────


def _split_location(url: str) -> tuple[str, str] | None:
    """Return ``(host[:port], path)`` with the path stripped of trailing slashes."""
    ssh = _SSH_RE.match(url)
    if ssh:
        return ssh["host"].lower(), "/" + ssh["path"].strip("/")

    candidate = url if "://" in url else f"https://{url}"
    try:
        parts = urlsplit(candidate)
        port = parts.port
    except ValueError:
        return None
    if parts.scheme not in ("http", "https") or not parts.hostname:
        return None

    host = parts.hostname.lower()
    if port is not None:
        host = f"{host}:{port}"
    return host, parts.path.rstrip("/")


def _repo_segments(path: str) -> list[str] | None:
    path = path.strip("/")
    if path.endswith(".git"):
        path = path[: -len(".git")]
    if not path:
        return None
    segments = path.split("/")
    for segment in segments:
        if segment in (".", "..") or not _SEGMENT_RE.match(segment):
            return None
    return segments
