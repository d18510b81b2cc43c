"""API routes — thin controllers over the provider factory and use case."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Response

from paper_tracker.domain.exceptions import InvalidRepositoryUrlError
from paper_tracker.domain.ports.credentials import TokenGetters
from paper_tracker.domain.value_objects import SelfHostedInstance
from paper_tracker.infrastructure.provider_factory import ProviderFactory, ResolvedProvider
from paper_tracker.interface.dependencies import (
    get_factory,
    get_instances,
    get_token_getters,
)
from paper_tracker.interface.schemas import (
    ChangesRequest,
    ChangesResponse,
    CommitResponse,
    FileContentRequest,
    FileEntryResponse,
    LatestCommitRequest,
    ListFilesRequest,
    RepositoryInfoResponse,
    RepositoryRequest,
)
from paper_tracker.services.change_detection import ChangeDetectionUseCase

router = APIRouter(prefix="/repositories")

_ERRORS = {
    401: {"description": "Credentials missing or rejected; sign in again"},
    403: {"description": "No permission to access the repository"},
    404: {"description": "Repository or file not found"},
    422: {"description": "Invalid URL or unknown self-hosted instance"},
    502: {"description": "Provider error"},
    504: {"description": "Provider timed out"},
}


async def _resolve(
    body: RepositoryRequest,
    factory: ProviderFactory,
    instances: list[SelfHostedInstance],
    token_getters: TokenGetters,
) -> ResolvedProvider:
    return await factory.resolve(body.repo_url, instances, token_getters, user_id=body.user_id)


async def _branch_or_default(resolved: ResolvedProvider, branch: str | None) -> str:
    if branch:
        return branch
    info = await resolved.provider.fetch_repository_info(resolved.owner, resolved.repo)
    return info.default_branch


@router.post("/preview", response_model=RepositoryInfoResponse, responses=_ERRORS)
async def preview(
    body: RepositoryRequest,
    factory: ProviderFactory = Depends(get_factory),
    instances: list[SelfHostedInstance] = Depends(get_instances),
) -> RepositoryInfoResponse:
    """Describe a public GitHub or gitlab.com repository without credentials."""
    resolved = factory.resolve_public(body.repo_url, instances)
    if resolved is None:
        raise InvalidRepositoryUrlError(
            body.repo_url,
            "Public preview is only available for GitHub and gitlab.com repositories.",
        )
    info = await resolved.provider.fetch_repository_info(resolved.owner, resolved.repo)
    return RepositoryInfoResponse.from_domain(info)


@router.post("/info", response_model=RepositoryInfoResponse, responses=_ERRORS)
async def repository_info(
    body: RepositoryRequest,
    factory: ProviderFactory = Depends(get_factory),
    instances: list[SelfHostedInstance] = Depends(get_instances),
    token_getters: TokenGetters = Depends(get_token_getters),
) -> RepositoryInfoResponse:
    resolved = await _resolve(body, factory, instances, token_getters)
    info = await resolved.provider.fetch_repository_info(resolved.owner, resolved.repo)
    return RepositoryInfoResponse.from_domain(info)


@router.post("/files", response_model=list[FileEntryResponse], responses=_ERRORS)
async def list_files(
    body: ListFilesRequest,
    factory: ProviderFactory = Depends(get_factory),
    instances: list[SelfHostedInstance] = Depends(get_instances),
    token_getters: TokenGetters = Depends(get_token_getters),
) -> list[FileEntryResponse]:
    """List one directory level (the root when ``path`` is omitted)."""
    resolved = await _resolve(body, factory, instances, token_getters)
    branch = await _branch_or_default(resolved, body.branch)
    entries = await resolved.provider.list_files(
        resolved.owner, resolved.repo, branch, body.path or None
    )
    return [FileEntryResponse.from_domain(e) for e in entries]


@router.post(
    "/file-content",
    response_class=Response,
    responses={**_ERRORS, 200: {"content": {"application/octet-stream": {}}}},
)
async def file_content(
    body: FileContentRequest,
    factory: ProviderFactory = Depends(get_factory),
    instances: list[SelfHostedInstance] = Depends(get_instances),
    token_getters: TokenGetters = Depends(get_token_getters),
) -> Response:
    """Raw bytes of one file; 404 with ``code=file_not_found`` if it is gone."""
    resolved = await _resolve(body, factory, instances, token_getters)
    branch = await _branch_or_default(resolved, body.branch)
    content = await resolved.provider.fetch_file_content(
        resolved.owner, resolved.repo, branch, body.file_path
    )
    return Response(content=content, media_type="application/octet-stream")


@router.post("/latest-commit", response_model=CommitResponse, responses=_ERRORS)
async def latest_commit(
    body: LatestCommitRequest,
    factory: ProviderFactory = Depends(get_factory),
    instances: list[SelfHostedInstance] = Depends(get_instances),
    token_getters: TokenGetters = Depends(get_token_getters),
) -> CommitResponse:
    """Head commit of a branch; ``unchanged`` when it equals ``known_sha``."""
    resolved = await _resolve(body, factory, instances, token_getters)
    branch = await _branch_or_default(resolved, body.branch)
    commit = await resolved.provider.fetch_latest_commit(
        resolved.owner, resolved.repo, branch, body.known_sha
    )
    return CommitResponse.from_domain(commit)


@router.post("/changes", response_model=ChangesResponse, responses=_ERRORS)
async def changes(
    body: ChangesRequest,
    factory: ProviderFactory = Depends(get_factory),
    instances: list[SelfHostedInstance] = Depends(get_instances),
    token_getters: TokenGetters = Depends(get_token_getters),
) -> ChangesResponse:
    """Report which tracked files must be rebuilt."""
    resolved = await _resolve(body, factory, instances, token_getters)
    branch = await _branch_or_default(resolved, body.branch)
    use_case = ChangeDetectionUseCase(resolved.provider, resolved.owner, resolved.repo)
    report = await use_case.check(
        branch,
        [tracked.to_domain() for tracked in body.tracked_files],
        known_sha=body.known_sha,
    )
    return ChangesResponse.from_domain(report)
