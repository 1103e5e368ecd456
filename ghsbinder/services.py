from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import httpx

from ghsbinder import constants
from ghsbinder.deployer import BinderDeployer
from ghsbinder.registry import ChemicalManager
from ghsbinder.utils.github import GitHubClient
from ghsbinder.utils.staging import StagingArea
from ghsbinder.utils.store import CustomerStore
from ghsbinder.utils.templater import Templater


class MissingCredentials(RuntimeError):
    pass


def require_token(token: Optional[str] = None) -> str:
    token = token or constants.GITHUB_TOKEN
    if not token:
        raise MissingCredentials("Please set the GITHUB_TOKEN environment variable")
    return token


@dataclass
class Services:
    """Everything an operation needs, built once per process."""

    github: GitHubClient
    http: httpx.AsyncClient
    store: CustomerStore
    templater: Templater
    deployer: BinderDeployer
    chemicals: ChemicalManager
    staging: StagingArea
    pdfs_dir: Path

    @classmethod
    def create(
        cls,
        github: GitHubClient,
        http: Optional[httpx.AsyncClient] = None,
        configs_dir: Path = constants.CUSTOMER_CONFIGS_DIR,
        pdfs_dir: Path = constants.PDFS_DIR,
        assets_dir: Path = constants.ASSETS_DIR,
        uploads_dir: Path = constants.UPLOADS_DIR,
        **deployer_options,
    ) -> "Services":
        http = http or httpx.AsyncClient(timeout=30)
        store = CustomerStore(configs_dir, uploads_dir, owner=github.owner)
        templater = Templater()
        deployer = BinderDeployer(github, store, templater, http,
                                  pdfs_dir=pdfs_dir, assets_dir=assets_dir, **deployer_options)
        return cls(
            github=github,
            http=http,
            store=store,
            templater=templater,
            deployer=deployer,
            chemicals=ChemicalManager(store, deployer, templater),
            staging=StagingArea(store, uploads_dir),
            pdfs_dir=Path(pdfs_dir),
        )

    @classmethod
    def from_environment(cls, token: Optional[str] = None) -> "Services":
        return cls.create(GitHubClient(require_token(token)))

    async def aclose(self) -> None:
        await self.github.aclose()
        await self.http.aclose()
