import base64
import logging
from typing import Iterable, Optional
from urllib.parse import quote

import httpx

from ghsbinder.constants import (
    GITHUB_API_URL,
    GITHUB_OWNER,
    GITHUB_USER_AGENT,
    REPO_TOPICS
)
from ghsbinder.exceptions import GitHubConflict, GitHubError, GitHubNotFound
from ghsbinder.models import Repository

log = logging.getLogger(__name__)

DEFAULT_BRANCH = "main"


def raise_for_api_status(response: httpx.Response, conflict: Iterable[int] = (409,)) -> None:
    """Maps an error response onto ``GitHubNotFound``, ``GitHubConflict`` or ``GitHubError``."""
    if response.is_success:
        return

    try:
        message = response.json().get("message", response.text)
    except ValueError:
        message = response.text

    if response.status_code == 404:
        raise GitHubNotFound(404, message)
    if response.status_code in conflict:
        raise GitHubConflict(response.status_code, message)
    raise GitHubError(response.status_code, message)


class GitHubClient:
    def __init__(self, token: str, owner: str = GITHUB_OWNER, base_url: str = GITHUB_API_URL,
                 transport: Optional[httpx.AsyncBaseTransport] = None):
        self.owner = owner
        self.http = httpx.AsyncClient(
            base_url=base_url,
            headers={
                "Authorization": f"Bearer {token}",
                "Accept": "application/vnd.github+json",
                "User-Agent": GITHUB_USER_AGENT,
                "X-GitHub-Api-Version": "2022-11-28",
            },
            timeout=30,
            transport=transport,
        )

    async def aclose(self) -> None:
        await self.http.aclose()

    def _repo_path(self, repo: str) -> str:
        return f"/repos/{self.owner}/{repo}"

    async def get_repository(self, repo: str) -> Repository:
        response = await self.http.get(self._repo_path(repo))
        raise_for_api_status(response)
        return Repository.model_validate(response.json())

    async def create_repository(self, name: str, description: str, homepage: str = "",
                                topics: list[str] = REPO_TOPICS) -> Repository:
        """Creates a public repository, or returns the existing one of the same name."""
        response = await self.http.post("/user/repos", json={
            "name": name,
            "description": description,
            "private": False,
            "homepage": homepage,
            "has_issues": False,
            "has_projects": False,
            "has_wiki": False,
            "auto_init": True,
            "license_template": "mit",
        })
        try:
            # GitHub answers 422 when the name is already taken
            raise_for_api_status(response, conflict=(409, 422))
        except GitHubConflict:
            repository = await self.get_repository(name)
            log.info("Using existing repository: %s (default branch: %s)",
                     repository.name, repository.default_branch)
            return repository

        repository = Repository.model_validate(response.json())
        log.info("Created repository: %s (default branch: %s)",
                 repository.name, repository.default_branch)
        await self.set_topics(repository.name, topics)
        return repository

    async def set_topics(self, repo: str, topics: list[str]) -> None:
        response = await self.http.put(f"{self._repo_path(repo)}/topics", json={"names": topics})
        raise_for_api_status(response)

    def _contents_path(self, repo: str, path: str) -> str:
        # Filenames may carry spaces, "#" or "?"
        return f"{self._repo_path(repo)}/contents/{quote(path, safe='/')}"

    async def get_file_sha(self, repo: str, path: str, branch: str) -> Optional[str]:
        """Revision marker of ``path`` on ``branch``, or None when the file does not exist yet."""
        response = await self.http.get(
            self._contents_path(repo, path),
            params={"ref": branch},
        )
        try:
            raise_for_api_status(response)
        except GitHubNotFound:
            return None
        return response.json().get("sha")

    async def upload_binary_file(self, repo: str, path: str, content: bytes,
                                 message: str, branch: str) -> dict:
        """Creates or updates ``path`` with ``content``.

        The raw bytes are base64-encoded exactly once, as the contents API expects.
        """
        payload = {
            "message": message,
            "content": base64.b64encode(content).decode("ascii"),
            "branch": branch,
        }
        sha = await self.get_file_sha(repo, path, branch)
        if sha:
            payload["sha"] = sha

        response = await self.http.put(self._contents_path(repo, path), json=payload)
        raise_for_api_status(response)
        return response.json()

    async def upload_text_file(self, repo: str, path: str, content: str,
                               message: str, branch: str) -> dict:
        return await self.upload_binary_file(repo, path, content.encode("utf-8"), message, branch)

    async def enable_pages(self, repo: str, branch: str) -> None:
        response = await self.http.post(f"{self._repo_path(repo)}/pages", json={
            "source": {"branch": branch, "path": "/"},
        })
        try:
            raise_for_api_status(response)
        except GitHubConflict:
            log.info("GitHub Pages already enabled for %s", repo)
            return
        log.info("Enabled GitHub Pages for %s on branch: %s", repo, branch)

    async def detect_pages_branch(self, repo: str, default: str = DEFAULT_BRANCH) -> str:
        try:
            response = await self.http.get(f"{self._repo_path(repo)}/pages")
            raise_for_api_status(response)
            return response.json().get("source", {}).get("branch") or default
        except (httpx.HTTPError, GitHubError, ValueError) as e:
            log.warning("Pages branch detection failed for %s: %s", repo, e)
            return default

    async def delete_repository(self, repo: str) -> None:
        response = await self.http.delete(self._repo_path(repo))
        raise_for_api_status(response)
        log.info("Deleted repository %s/%s", self.owner, repo)
