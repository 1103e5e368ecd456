"""Shared fixtures: a fake GitHub API and Pages host served through httpx.MockTransport."""

import base64
import json
import os
from datetime import date
from io import BytesIO

# Settings are read at import time, so they must be in place first
os.environ.setdefault("GITHUB_TOKEN", "test-token")
os.environ.setdefault("GITHUB_OWNER", "rascoused")

import httpx
import pytest
from PyPDF2 import PdfWriter

from ghsbinder.models import ChemicalRecord, DocumentRef, pdf_url
from ghsbinder.services import Services
from ghsbinder.utils.github import GitHubClient
from ghsbinder.utils.store import CustomerStore

OWNER = "rascoused"


class FakeGitHub:
    """Just enough of the GitHub REST API for a deployment to run end to end."""

    def __init__(self, existing=None, fail=None):
        # repository name -> default branch
        self.repos = dict(existing or {})
        # (repository, path) -> content bytes
        self.files = {}
        self.shas = {}
        self.pages = set()
        self.topics = {}
        self.requests = []
        # (method, path suffix) -> status code to answer with instead
        self.fail = dict(fail or {})

    def repo_json(self, name):
        return {
            "name": name,
            "full_name": f"{OWNER}/{name}",
            "html_url": f"https://github.com/{OWNER}/{name}",
            "default_branch": self.repos[name],
        }

    def uploads(self):
        return [
            (request.url.path.split("/contents/", 1)[1], json.loads(request.content))
            for request in self.requests
            if request.method == "PUT" and "/contents/" in request.url.path
        ]

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        method, path = request.method, request.url.path

        for (fail_method, suffix), status in self.fail.items():
            if method == fail_method and path.endswith(suffix):
                return httpx.Response(status, json={"message": "Simulated failure"})

        if method == "POST" and path == "/user/repos":
            name = json.loads(request.content)["name"]
            if name in self.repos:
                return httpx.Response(422, json={"message": "name already exists on this account"})
            self.repos[name] = "main"
            return httpx.Response(201, json=self.repo_json(name))

        parts = path.split("/")
        if len(parts) < 4 or parts[1] != "repos" or parts[2] != OWNER:
            return httpx.Response(404, json={"message": "Not Found"})
        repo, rest = parts[3], "/".join(parts[4:])
        if repo not in self.repos:
            return httpx.Response(404, json={"message": "Not Found"})

        if rest == "":
            if method == "GET":
                return httpx.Response(200, json=self.repo_json(repo))
            if method == "DELETE":
                del self.repos[repo]
                return httpx.Response(204)
        if rest == "topics" and method == "PUT":
            self.topics[repo] = json.loads(request.content)["names"]
            return httpx.Response(200, json={"names": self.topics[repo]})
        if rest.startswith("contents/"):
            file_path = rest[len("contents/"):]
            key = (repo, file_path)
            if method == "GET":
                if key not in self.files:
                    return httpx.Response(404, json={"message": "Not Found"})
                return httpx.Response(200, json={"sha": self.shas[key], "path": file_path})
            if method == "PUT":
                body = json.loads(request.content)
                if key in self.files and body.get("sha") != self.shas[key]:
                    return httpx.Response(409, json={"message": "sha does not match"})
                self.files[key] = base64.b64decode(body["content"])
                self.shas[key] = f"sha-{len(self.requests)}"
                return httpx.Response(201, json={"content": {"path": file_path, "sha": self.shas[key]}})
        if rest == "pages":
            if method == "POST":
                if repo in self.pages:
                    return httpx.Response(409, json={"message": "GitHub Pages is already enabled."})
                self.pages.add(repo)
                return httpx.Response(201, json={"source": json.loads(request.content)["source"]})
            if method == "GET":
                if repo not in self.pages:
                    return httpx.Response(404, json={"message": "Not Found"})
                return httpx.Response(200, json={"source": {"branch": self.repos[repo], "path": "/"}})

        return httpx.Response(500, json={"message": f"Unhandled {method} {path}"})


class FakePages:
    """Serves whatever the fake GitHub holds under ``https://<owner>.github.io/<repo>/``."""

    def __init__(self, github: FakeGitHub, content_type="application/pdf"):
        self.github = github
        self.content_type = content_type
        self.requests = []
        # Number of leading requests answered with 404 while Pages is still building
        self.not_ready = 0

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.not_ready:
            self.not_ready -= 1
            return httpx.Response(404)

        _, repo, *rest = request.url.path.split("/")
        content = self.github.files.get((repo, "/".join(rest)))
        if content is None:
            return httpx.Response(404)
        return httpx.Response(200, headers={
            "content-type": self.content_type,
            "content-length": str(len(content)),
        })


def raw_pdf(size=2048) -> bytes:
    return b"%PDF-1.4\n" + b"0" * size


def blank_pdf(pages=1) -> bytes:
    writer = PdfWriter()
    for _ in range(pages):
        writer.add_blank_page(width=612, height=792)
    output = BytesIO()
    writer.write(output)
    return output.getvalue()


def chemical_record(name, literature, sds, active=True) -> ChemicalRecord:
    return ChemicalRecord(
        id=name.lower().replace(" ", "-"),
        name=name,
        literature=DocumentRef(filename=literature, url=pdf_url(literature), title=f"{name} Product Literature"),
        sds=DocumentRef(filename=sds, url=pdf_url(sds), title=f"{name} Safety Data Sheet"),
        last_updated=date(2024, 1, 15),
        active=active,
        deactivated_date=None if active else date(2024, 2, 1),
    )


@pytest.fixture
def fake_github():
    return FakeGitHub()


@pytest.fixture
def fake_pages(fake_github):
    return FakePages(fake_github)


@pytest.fixture
def dirs(tmp_path):
    paths = {name: tmp_path / name for name in ("configs", "pdfs", "assets", "uploads")}
    for path in paths.values():
        path.mkdir()
    return paths


@pytest.fixture
def sleeps():
    return []


@pytest.fixture
def services(dirs, fake_github, fake_pages, sleeps):
    async def sleep(seconds):
        sleeps.append(seconds)

    github = GitHubClient("test-token", owner=OWNER, transport=httpx.MockTransport(fake_github))
    return Services.create(
        github,
        http=httpx.AsyncClient(transport=httpx.MockTransport(fake_pages)),
        configs_dir=dirs["configs"],
        pdfs_dir=dirs["pdfs"],
        assets_dir=dirs["assets"],
        uploads_dir=dirs["uploads"],
        settle_seconds=10,
        sleep=sleep,
    )


@pytest.fixture
def store(dirs):
    return CustomerStore(dirs["configs"], dirs["uploads"], owner=OWNER)


@pytest.fixture
def customer(services):
    return services.store.create({
        "name": "Acme Chemical",
        "slug": "acme",
        "phone": "555-0100",
        "emergency": "1-800-424-9300",
    })
